"""SimulatorBackend im eigenen Prozess: Konfliktprüfung + CP-SAT.

Dient als Referenz-Backend ohne Server. Simulationen werden nur im Speicher
gehalten und sind mit dem Prozess verloren.
"""

import logging
import uuid
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from analysis.conflicts import ConflictAnalyzer
from analysis.quality_report import QualityAnalyzer
from config.schema import BackendConfig
from data.synthetic import SyntheticDataGenerator
from models.snapshot import (
    InstitutionSnapshot,
    SimulationInstance,
    SyntheticDataRequest,
    SyntheticSnapshot,
)
from solver.backend import BackendError, RunPayload, RunResponse, RunStatus
from solver.cpsat import ScheduleSolver
from solver.orchestrator import build_by_class, build_by_teacher

logger = logging.getLogger(__name__)


class LocalSimulatorBackend:
    """Rechnet Simulationen lokal mit OR-Tools.

    Ohne institution_snapshot in der Config liefert fetch_institution_snapshot()
    einen reproduzierbaren Beispieldatensatz (Seed aus der Config).
    """

    def __init__(
        self, config: Optional[BackendConfig] = None, seed: Optional[int] = 42
    ) -> None:
        self.config = config or BackendConfig()
        self.seed = seed
        self._simulations: dict[str, SimulationInstance] = {}

    def fetch_institution_snapshot(self) -> InstitutionSnapshot:
        path = self.config.institution_snapshot
        if not path:
            return SyntheticDataGenerator(SyntheticDataRequest(), seed=self.seed).generate_institution()

        path = Path(path)
        if not path.exists():
            raise BackendError(f"Institutionsdaten nicht gefunden: {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                return InstitutionSnapshot.model_validate_json(f.read())
        except ValidationError as exc:
            raise BackendError(f"Institutionsdaten ungültig ({path}): {exc}") from exc

    def generate_synthetic_snapshot(
        self, request: SyntheticDataRequest
    ) -> SyntheticSnapshot:
        return SyntheticDataGenerator(request, seed=self.seed).generate()

    def create_simulation(self, name: str, instance: SimulationInstance) -> str:
        simulation_id = uuid.uuid4().hex[:12]
        self._simulations[simulation_id] = instance.model_copy(deep=True)
        logger.debug(f"Simulation '{name}' registriert als {simulation_id}")
        return simulation_id

    def run_simulation(self, simulation_id: str) -> RunResponse:
        instance = self._simulations.get(simulation_id)
        if instance is None:
            raise BackendError(f"Simulation {simulation_id} nicht gefunden", status_code=404)

        analyzer = ConflictAnalyzer(instance)
        conflicts = analyzer.analyze()
        heatmap = analyzer.heatmap()

        critical = [c for c in conflicts if c.is_critical]
        if critical:
            logger.warning(f"Simulation {simulation_id}: {len(critical)} kritische Konflikte")
            return RunResponse(
                success=False,
                message=f"{len(critical)} kritische Konflikte verhindern einen gültigen Stundenplan.",
                status=RunStatus.INFEASIBLE.value,
                conflicts=conflicts,
                conflict_heatmap=heatmap,
            )

        outcome = ScheduleSolver(instance).solve()
        if not outcome.entries:
            messages = {
                RunStatus.INFEASIBLE: "Für die Vorgaben existiert kein gültiger Stundenplan.",
                RunStatus.TIMEOUT: "Zeitlimit erreicht, ohne einen Stundenplan zu finden.",
            }
            return RunResponse(
                success=False,
                solving_time_ms=outcome.solving_time_ms,
                message=messages.get(outcome.status, "Der Solver ist fehlgeschlagen."),
                status=outcome.status.value,
                conflicts=conflicts,
                conflict_heatmap=heatmap,
            )

        report = QualityAnalyzer().analyze(instance, outcome.entries)
        return RunResponse(
            success=True,
            solving_time_ms=outcome.solving_time_ms,
            status=outcome.status.value,
            result=RunPayload(
                schedule=outcome.entries,
                by_teacher=build_by_teacher(outcome.entries),
                by_class=build_by_class(outcome.entries),
                quality_report=report,
            ),
            conflicts=conflicts,
            conflict_heatmap=heatmap,
        )
