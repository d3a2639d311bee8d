"""Tests für den RunOrchestrator: Status-Normalisierung, Sichten, Fehlergrenze."""

import pytest

from models.school_model import SimulationModel
from solver.backend import (
    BackendError,
    ClassCell,
    ClassTimetable,
    ConflictInfo,
    RunPayload,
    RunResponse,
    RunStatus,
    ScheduleEntry,
    SimulatorBackend,
)
from solver.orchestrator import (
    RunOrchestrator,
    build_by_class,
    build_by_teacher,
    normalize_status,
)


# ─── Hilfsfunktionen ──────────────────────────────────────────────────────────

def make_instance():
    model = SimulationModel()
    model.add_teacher("Anna Müller")
    model.add_subject("Mathematik")
    model.add_class_group()
    model.upsert_requirement(1, 1, 2)
    return model.to_instance()


def entry(day: str = "Mo", period: int = 1, teacher_id=1, class_id: int = 1) -> ScheduleEntry:
    return ScheduleEntry(
        teacher_id=teacher_id, teacher_name="Anna Müller" if teacher_id else "",
        subject_id=1, subject_name="Mathematik",
        class_id=class_id, grade="Jahrgang 5", class_name="a",
        day=day, period=period,
    )


def response(success: bool, entries=None, status=None, **kw) -> RunResponse:
    result = RunPayload(schedule=entries) if entries is not None else None
    return RunResponse(success=success, result=result, status=status, **kw)


class ScriptedBackend:
    """Liefert eine feste Antwort oder wirft eine feste Ausnahme."""

    def __init__(self, run_response=None, create_error=None, run_error=None) -> None:
        self.run_response = run_response
        self.create_error = create_error
        self.run_error = run_error
        self.created = []

    def fetch_institution_snapshot(self):
        raise NotImplementedError

    def generate_synthetic_snapshot(self, request):
        raise NotImplementedError

    def create_simulation(self, name, instance):
        if self.create_error:
            raise self.create_error
        instance.requirements.clear()   # das Backend darf seine Kopie verändern
        self.created.append(name)
        return "42"

    def run_simulation(self, simulation_id):
        if self.run_error:
            raise self.run_error
        return self.run_response


# ─── normalize_status ─────────────────────────────────────────────────────────

class TestNormalizeStatus:
    @pytest.mark.parametrize("hint,expected", [
        (None, RunStatus.OPTIMAL),
        ("optimal", RunStatus.OPTIMAL),
        ("FEASIBLE", RunStatus.FEASIBLE),
        ("timeout", RunStatus.TIMEOUT),
        ("infeasible", RunStatus.OPTIMAL),
        ("unbekannt", RunStatus.OPTIMAL),
    ])
    def test_success_with_schedule(self, hint, expected):
        assert normalize_status(response(True, [entry()], hint)) == expected

    @pytest.mark.parametrize("hint,expected", [
        (None, RunStatus.ERROR),
        ("optimal", RunStatus.ERROR),
        ("timeout", RunStatus.TIMEOUT),
    ])
    def test_success_without_schedule_never_optimal(self, hint, expected):
        assert normalize_status(response(True, [], hint)) == expected
        assert normalize_status(response(True, None, hint)) == expected

    @pytest.mark.parametrize("hint,expected", [
        (None, RunStatus.INFEASIBLE),
        ("infeasible", RunStatus.INFEASIBLE),
        ("optimal", RunStatus.INFEASIBLE),
        ("error", RunStatus.ERROR),
        ("timeout", RunStatus.ERROR),
    ])
    def test_failure_is_infeasible_or_error(self, hint, expected):
        status = normalize_status(response(False, [entry()], hint))
        assert status == expected
        assert status in (RunStatus.INFEASIBLE, RunStatus.ERROR)


# ─── Sichten ──────────────────────────────────────────────────────────────────

class TestViews:
    def test_by_class(self):
        views = build_by_class([entry("Mo", 1), entry("Di", 3)])
        assert list(views) == ["1"]
        view = views["1"]
        assert view.cell("Mo", 1).subject == "Mathematik"
        assert view.cell("Di", 3).teacher == "Anna Müller"
        assert view.cell("Mi", 1) is None

    def test_by_teacher_skips_unassigned(self):
        views = build_by_teacher([entry("Mo", 1), entry("Mo", 2, teacher_id=None)])
        assert list(views) == ["1"]
        assert views["1"].sessions_count == 1
        assert views["1"].cell("Mo", 1).class_label == "Jahrgang 5 a"


# ─── RunOrchestrator ──────────────────────────────────────────────────────────

class TestOrchestrator:
    def test_protocol(self):
        assert isinstance(ScriptedBackend(), SimulatorBackend)

    def test_success_builds_missing_views(self):
        backend = ScriptedBackend(response(True, [entry(), entry("Di", 2)], "feasible",
                                           solving_time_ms=120))
        result = RunOrchestrator(backend).run(make_instance())
        assert result.status == RunStatus.FEASIBLE
        assert result.simulation_id == "42"
        assert result.solving_time_ms == 120
        assert len(result.schedule) == 2
        assert "1" in result.by_class and "1" in result.by_teacher
        assert result.has_schedule
        assert result.error_message is None

    def test_success_keeps_server_views(self):
        server_view = ClassTimetable(grade="Jahrgang 5", class_name="a",
                                     schedule={"Fr": {6: ClassCell(subject="Sport")}})
        resp = RunResponse(
            success=True,
            result=RunPayload(schedule=[entry()], by_class={"9": server_view}),
        )
        result = RunOrchestrator(ScriptedBackend(resp)).run(make_instance())
        assert list(result.by_class) == ["9"]
        assert result.by_teacher

    def test_failure_carries_conflicts(self):
        conflicts = [ConflictInfo(type="class_overload", message="zu viel", severity="critical")]
        resp = response(False, None, None, message="Keine Lösung", conflicts=conflicts,
                        conflict_heatmap={"Mo": {1: 1.2}})
        result = RunOrchestrator(ScriptedBackend(resp)).run(make_instance())
        assert result.status == RunStatus.INFEASIBLE
        assert result.error_message == "Keine Lösung"
        assert result.schedule == []
        assert result.conflicts[0].is_critical
        assert result.conflict_heatmap.value("Mo", 1) == 1.2
        assert not result.has_schedule

    def test_failure_default_message(self):
        result = RunOrchestrator(ScriptedBackend(response(False))).run(make_instance())
        assert result.status == RunStatus.INFEASIBLE
        assert result.error_message

    def test_success_without_schedule_is_error(self):
        result = RunOrchestrator(ScriptedBackend(response(True, []))).run(make_instance())
        assert result.status == RunStatus.ERROR
        assert result.schedule == []

    @pytest.mark.parametrize("kind", ["create", "run"])
    def test_backend_error_never_propagates(self, kind):
        err = BackendError("HTTP 500: Internal Server Error", status_code=500)
        backend = ScriptedBackend(**{f"{kind}_error": err})
        result = RunOrchestrator(backend).run(make_instance())
        assert result.status == RunStatus.ERROR
        assert "500" in result.error_message

    def test_unexpected_exception_is_error(self):
        backend = ScriptedBackend(run_error=KeyError("data"))
        result = RunOrchestrator(backend).run(make_instance())
        assert result.status == RunStatus.ERROR
        assert result.simulation_id == "42"

    def test_instance_untouched(self):
        instance = make_instance()
        backend = ScriptedBackend(response(True, [entry()]))
        RunOrchestrator(backend).run(instance)
        assert len(instance.requirements) == 1
        assert backend.created == ["Neue Simulation"]
