"""Vertragstests für das HTTP-Backend (httpx.MockTransport statt echtem Server)."""

import json

import httpx
import pytest

from config.schema import BackendConfig, BackendKind
from models.school_model import SimulationModel
from models.snapshot import SyntheticDataRequest
from solver.backend import BackendError, RunStatus
from solver.http_backend import HttpSimulatorBackend
from solver.orchestrator import RunOrchestrator

PREFIX = "/api/admin/schedule-simulator"

SNAPSHOT_DATA = {
    "teachers": [{"id": 1, "name": "Anna Müller", "weekly_quota": 20}],
    "subjects": [{"id": 1, "name": "Mathematik"}],
    "classes": [{"id": 1, "grade": "Jahrgang 5", "class_name": "a"}],
    "teacher_preferences": [{"teacher_id": 1, "golden_days": ["Fr"]}],
    "subject_constraints": [{"subject_id": 1, "max_per_day": 1}],
}

ENTRY = {
    "teacher_id": 1, "teacher_name": "Anna Müller",
    "subject_id": 1, "subject_name": "Mathematik",
    "class_id": 1, "grade": "Jahrgang 5", "class_name": "a",
    "day": "Mo", "period": 2,
}


def make_backend(handler, token=None) -> HttpSimulatorBackend:
    config = BackendConfig(kind=BackendKind.HTTP, base_url="http://schule.test/api", token=token)
    return HttpSimulatorBackend(config, transport=httpx.MockTransport(handler))


def make_instance(unassigned: bool = False):
    model = SimulationModel()
    model.add_teacher("Anna Müller")
    model.add_subject("Mathematik")
    model.add_class_group()
    req = model.upsert_requirement(1, 1, 3)
    if unassigned:
        model.assign_teacher(req.id, None)
    return model.to_instance()


# ─── Institutions- und Testdaten ──────────────────────────────────────────────

class TestSnapshots:
    def test_fetch_institution(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["method"] = request.method
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json={"success": True, "data": SNAPSHOT_DATA})

        with make_backend(handler, token="geheim") as backend:
            snapshot = backend.fetch_institution_snapshot()

        assert seen == {"path": f"{PREFIX}/wizard-data", "method": "GET",
                        "auth": "Bearer geheim"}
        assert snapshot.source == "existing"
        assert snapshot.teachers[0].weekly_quota == 20
        assert snapshot.teacher_preferences[0].golden_days == ["Fr"]

    def test_generate_mock_data(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            data = {
                **SNAPSHOT_DATA,
                "requirements": [{
                    "id": 1, "class_id": 1, "grade": "Jahrgang 5", "class_name": "a",
                    "subject_id": 1, "subject_name": "Mathematik",
                    "teacher_id": 0, "teacher_name": "", "periods_per_week": 4,
                }],
                "config": {"default_periods_per_day": 6},
            }
            return httpx.Response(200, json={"success": True, "data": data})

        backend = make_backend(handler)
        snapshot = backend.generate_synthetic_snapshot(
            SyntheticDataRequest(num_teachers=5, periods_per_day=6)
        )
        assert seen["path"] == f"{PREFIX}/generate-mock-data"
        assert seen["body"]["num_teachers"] == 5
        assert seen["body"]["periods_per_day"] == 6
        assert snapshot.source == "custom"
        assert snapshot.requirements[0].teacher_id is None
        assert snapshot.config_overrides == {"default_periods_per_day": 6}

    def test_out_of_range_config_rejected(self):
        def handler(request):
            data = {**SNAPSHOT_DATA, "config": {"time_limit_seconds": 7200}}
            return httpx.Response(200, json={"success": True, "data": data})

        with pytest.raises(BackendError, match="time_limit_seconds"):
            make_backend(handler).generate_synthetic_snapshot(SyntheticDataRequest())

    def test_incomplete_snapshot(self):
        def handler(request):
            return httpx.Response(200, json={"success": True, "data": {"teachers": [{"id": 1}]}})

        with pytest.raises(BackendError):
            make_backend(handler).fetch_institution_snapshot()


# ─── Simulation anlegen & rechnen ─────────────────────────────────────────────

class TestSimulations:
    def test_create_sends_custom_data(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json={"success": True, "data": {"id": 17}})

        sim_id = make_backend(handler).create_simulation("Probe", make_instance(unassigned=True))
        body = seen["body"]
        assert sim_id == "17"
        assert seen["path"] == f"{PREFIX}/simulations"
        assert body["name"] == "Probe"
        assert body["data_source"] == "custom"
        assert body["config"]["time_limit_seconds"] == 120
        assert body["custom_data"]["requirements"][0]["teacher_id"] == 0
        assert set(body["custom_data"]) == {
            "teachers", "subjects", "classes", "requirements",
            "teacher_preferences", "subject_constraints",
        }

    def test_create_without_id(self):
        def handler(request):
            return httpx.Response(200, json={"success": True, "data": {}})

        with pytest.raises(BackendError):
            make_backend(handler).create_simulation("Probe", make_instance())

    def test_run_success(self):
        def handler(request):
            assert request.url.path == f"{PREFIX}/simulations/17/run"
            return httpx.Response(200, json={"success": True, "data": {
                "status": "optimal",
                "solving_time_ms": 850,
                "result": {"schedule": [ENTRY], "by_teacher": {}, "by_class": {}},
                "quality_report": {
                    "overall_score": 87.5,
                    "metrics": {"coverage": {"score": 100, "details": {"scheduled": 1}}},
                    "warnings": ["Viele Springstunden"],
                    "suggestions": [],
                },
            }})

        resp = make_backend(handler).run_simulation("17")
        assert resp.success
        assert resp.status == "optimal"
        assert resp.solving_time_ms == 850
        assert resp.result.schedule[0].period == 2
        assert resp.result.quality_report.overall_score == 87.5
        assert resp.result.quality_report.warnings[0].message == "Viele Springstunden"

    def test_run_failure_with_conflicts(self):
        def handler(request):
            return httpx.Response(200, json={
                "success": False,
                "message": "Keine Lösung gefunden",
                "conflicts": [{"type": "teacher_overload", "message": "zu viel",
                               "severity": "critical", "suggestion": "umverteilen"}],
                "conflict_heatmap": {"Mo": {"1": 0.5, "2": 1.4}},
            })

        resp = make_backend(handler).run_simulation("17")
        assert not resp.success
        assert resp.message == "Keine Lösung gefunden"
        assert resp.conflicts[0].is_critical
        assert resp.conflict_heatmap.value("Mo", 2) == 1.4


# ─── Fehlerbehandlung ─────────────────────────────────────────────────────────

class TestErrors:
    def test_http_error_uses_server_message(self):
        def handler(request):
            return httpx.Response(422, json={"success": False, "message": "Ungültige Config"})

        with pytest.raises(BackendError) as exc:
            make_backend(handler).fetch_institution_snapshot()
        assert exc.value.message == "Ungültige Config"
        assert exc.value.status_code == 422

    def test_http_error_without_body(self):
        def handler(request):
            return httpx.Response(500, text="boom")

        with pytest.raises(BackendError) as exc:
            make_backend(handler).fetch_institution_snapshot()
        assert "500" in exc.value.message

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("Verbindung abgelehnt", request=request)

        with pytest.raises(BackendError):
            make_backend(handler).fetch_institution_snapshot()

    def test_success_false_envelope(self):
        def handler(request):
            return httpx.Response(200, json={"success": False, "message": "Nicht erlaubt"})

        with pytest.raises(BackendError) as exc:
            make_backend(handler).fetch_institution_snapshot()
        assert exc.value.message == "Nicht erlaubt"

    def test_non_json_response(self):
        def handler(request):
            return httpx.Response(200, text="<html></html>")

        with pytest.raises(BackendError):
            make_backend(handler).fetch_institution_snapshot()


# ─── Ende-zu-Ende über den Orchestrator ───────────────────────────────────────

class TestOrchestratorOverHttp:
    def test_full_run(self):
        def handler(request):
            if request.url.path.endswith("/simulations"):
                return httpx.Response(201, json={"success": True, "data": {"id": "abc"}})
            return httpx.Response(200, json={"success": True, "data": {
                "status": "feasible",
                "result": {"schedule": [ENTRY]},
            }})

        result = RunOrchestrator(make_backend(handler)).run(make_instance())
        assert result.status == RunStatus.FEASIBLE
        assert result.simulation_id == "abc"
        assert result.by_class["1"].cell("Mo", 2).subject == "Mathematik"

    def test_server_error_becomes_error_status(self):
        def handler(request):
            return httpx.Response(503, json={"message": "Wartung"})

        result = RunOrchestrator(make_backend(handler)).run(make_instance())
        assert result.status == RunStatus.ERROR
        assert result.error_message == "Wartung"
