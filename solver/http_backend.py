"""Solver-Backend über die Schulverwaltungs-API (httpx).

Endpunkte (relativ zu base_url + api_prefix):
  GET  /wizard-data               → Institutionsdaten
  POST /generate-mock-data        → synthetische Testdaten
  POST /simulations               → Simulation anlegen (liefert data.id)
  POST /simulations/{id}/run      → Simulation rechnen

Alle Antworten sind in {success, data, message} verpackt.
"""

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from config.schema import BackendConfig, SimulationConfig
from models.snapshot import (
    InstitutionSnapshot,
    SimulationInstance,
    SyntheticDataRequest,
    SyntheticSnapshot,
)
from solver.backend import BackendError, RunPayload, RunResponse

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response) -> str:
    """Fehlermeldung des Servers (Feld "message") oder der HTTP-Status."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        msg = body.get("message") or body.get("error") or body.get("detail")
        if isinstance(msg, str) and msg:
            return msg
    return f"HTTP {response.status_code}: {response.reason_phrase}"


def _encode_instance(instance: SimulationInstance) -> dict[str, Any]:
    """Serialisiert die Instanz für die API (nicht zugewiesene Lehrkraft = 0)."""
    requirements = []
    for r in instance.requirements:
        data = r.model_dump(mode="json")
        if data["teacher_id"] is None:
            data["teacher_id"] = 0
        requirements.append(data)
    return {
        "teachers": [t.model_dump(mode="json") for t in instance.teachers],
        "subjects": [s.model_dump(mode="json") for s in instance.subjects],
        "classes": [c.model_dump(mode="json") for c in instance.classes],
        "requirements": requirements,
        "teacher_preferences": [p.model_dump(mode="json") for p in instance.teacher_preferences],
        "subject_constraints": [c.model_dump(mode="json") for c in instance.subject_constraints],
    }


class HttpSimulatorBackend:
    """SimulatorBackend gegen die REST-API der Schulverwaltung.

    Ohne request_timeout_seconds wartet der Client unbegrenzt, weil der
    Solver serverseitig bis zu time_limit_seconds rechnet.
    """

    def __init__(
        self,
        config: BackendConfig,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.config = config
        headers = {"Accept": "application/json"}
        if config.token:
            headers["Authorization"] = f"Bearer {config.token}"
        base = config.base_url.rstrip("/") + "/" + config.api_prefix.strip("/")
        self._client = httpx.Client(
            base_url=base,
            headers=headers,
            timeout=config.request_timeout_seconds,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "HttpSimulatorBackend":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ─── Transport ─────────────────────────────────────────────────────────

    def _request(self, method: str, path: str, json: Optional[dict] = None) -> dict:
        """Führt einen Request aus und gibt den kompletten Umschlag zurück."""
        logger.debug(f"{method} {path}")
        try:
            response = self._client.request(method, path, json=json)
        except httpx.HTTPError as exc:
            raise BackendError(f"Verbindung zum Server fehlgeschlagen: {exc}") from exc

        if response.is_error:
            raise BackendError(_error_message(response), status_code=response.status_code)
        try:
            body = response.json()
        except ValueError as exc:
            raise BackendError(
                f"Ungültige Antwort von {path}: kein JSON", response.status_code
            ) from exc
        if not isinstance(body, dict):
            raise BackendError(f"Ungültige Antwort von {path}: Objekt erwartet")
        return body

    def _data(self, method: str, path: str, json: Optional[dict] = None) -> dict:
        """Wie _request, verlangt aber success=true und liefert das data-Feld."""
        body = self._request(method, path, json)
        if not body.get("success") or not isinstance(body.get("data"), dict):
            raise BackendError(
                body.get("message") or body.get("error") or f"Anfrage {path} fehlgeschlagen"
            )
        return body["data"]

    # ─── SimulatorBackend ──────────────────────────────────────────────────

    def fetch_institution_snapshot(self) -> InstitutionSnapshot:
        data = self._data("GET", "/wizard-data")
        try:
            return InstitutionSnapshot.model_validate({**data, "source": "existing"})
        except ValidationError as exc:
            raise BackendError(f"Institutionsdaten unvollständig: {exc}") from exc

    def generate_synthetic_snapshot(
        self, request: SyntheticDataRequest
    ) -> SyntheticSnapshot:
        data = self._data("POST", "/generate-mock-data", json=request.model_dump())
        payload = {k: v for k, v in data.items() if k != "config"}
        payload["source"] = "custom"
        payload["config_overrides"] = data.get("config") or {}
        try:
            snapshot = SyntheticSnapshot.model_validate(payload)
            SimulationConfig.model_validate(snapshot.config_overrides)
        except ValidationError as exc:
            raise BackendError(f"Testdaten unvollständig: {exc}") from exc
        return snapshot

    def create_simulation(self, name: str, instance: SimulationInstance) -> str:
        body = {
            "name": name,
            # Es wird immer der aktuelle lokale Stand gesendet
            "data_source": "custom",
            "config": instance.config.model_dump(mode="json"),
            "custom_data": _encode_instance(instance),
        }
        data = self._data("POST", "/simulations", json=body)
        if "id" not in data:
            raise BackendError("Antwort auf /simulations enthält keine id")
        return str(data["id"])

    def run_simulation(self, simulation_id: str) -> RunResponse:
        body = self._request("POST", f"/simulations/{simulation_id}/run")
        data = body.get("data") or {}
        result = data.get("result")
        quality = data.get("quality_report")
        try:
            payload = None
            if isinstance(result, dict):
                payload = RunPayload.model_validate(
                    {**result, "quality_report": result.get("quality_report") or quality}
                )
            return RunResponse(
                success=bool(body.get("success")),
                result=payload,
                solving_time_ms=int(data.get("solving_time_ms") or 0),
                message=body.get("message"),
                status=data.get("status") or body.get("status"),
                conflicts=body.get("conflicts") or data.get("conflicts") or [],
                conflict_heatmap=body.get("conflict_heatmap") or data.get("conflict_heatmap"),
            )
        except ValidationError as exc:
            raise BackendError(f"Ungültiges Simulationsergebnis: {exc}") from exc
