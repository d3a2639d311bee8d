"""Simulationslauf: anlegen → ausführen → Status normalisieren.

Der Orchestrator ist die einzige Stelle, an der Backend-Fehler abgefangen
werden. Jeder Lauf endet in einem RunResult mit einem der fünf Status.
"""

import logging
import time
from typing import Optional

from models.snapshot import SimulationInstance
from solver.backend import (
    ClassCell,
    ClassTimetable,
    RunResponse,
    RunResult,
    RunStatus,
    ScheduleEntry,
    SimulatorBackend,
    TeacherCell,
    TeacherTimetable,
)

logger = logging.getLogger(__name__)

_SCHEDULE_HINTS = {RunStatus.OPTIMAL, RunStatus.FEASIBLE, RunStatus.TIMEOUT}


def _parse_hint(hint: Optional[str]) -> Optional[RunStatus]:
    if not hint:
        return None
    try:
        return RunStatus(hint.lower())
    except ValueError:
        return None


def normalize_status(response: RunResponse) -> RunStatus:
    """Leitet den Ergebnis-Status aus der Backend-Antwort ab.

    Erfolg mit Einträgen   → Status-Hinweis (optimal/feasible/timeout), sonst optimal
    Erfolg ohne Einträge   → timeout falls gemeldet, sonst error (nie optimal)
    Misserfolg             → error falls error/timeout gemeldet, sonst infeasible
    """
    hint = _parse_hint(response.status)
    schedule = response.result.schedule if response.result else []

    if response.success:
        if schedule:
            return hint if hint in _SCHEDULE_HINTS else RunStatus.OPTIMAL
        return RunStatus.TIMEOUT if hint == RunStatus.TIMEOUT else RunStatus.ERROR

    if hint in (RunStatus.ERROR, RunStatus.TIMEOUT):
        return RunStatus.ERROR
    return RunStatus.INFEASIBLE


# ─── Sichten aus dem flachen Plan ────────────────────────────────────────────

def build_by_class(schedule: list[ScheduleEntry]) -> dict[str, ClassTimetable]:
    """Gruppiert Einträge nach Klasse (Schlüssel = class_id als String)."""
    views: dict[str, ClassTimetable] = {}
    for e in schedule:
        view = views.setdefault(
            str(e.class_id), ClassTimetable(grade=e.grade, class_name=e.class_name)
        )
        view.schedule.setdefault(e.day, {})[e.period] = ClassCell(
            subject=e.subject_name, teacher=e.teacher_name
        )
    return views


def build_by_teacher(schedule: list[ScheduleEntry]) -> dict[str, TeacherTimetable]:
    """Gruppiert Einträge nach Lehrkraft (Schlüssel = teacher_id als String)."""
    views: dict[str, TeacherTimetable] = {}
    for e in schedule:
        if e.teacher_id is None:
            continue
        view = views.setdefault(str(e.teacher_id), TeacherTimetable(name=e.teacher_name))
        view.schedule.setdefault(e.day, {})[e.period] = TeacherCell(
            subject=e.subject_name, class_label=f"{e.grade} {e.class_name}"
        )
        view.sessions_count += 1
    return views


# ─── Orchestrator ────────────────────────────────────────────────────────────

class RunOrchestrator:
    """Führt eine Simulation über ein Backend aus.

    Verwendung:
        orchestrator = RunOrchestrator(backend)
        result = orchestrator.run(model.to_instance())
    """

    def __init__(self, backend: SimulatorBackend) -> None:
        self.backend = backend

    def run(self, instance: SimulationInstance) -> RunResult:
        """Legt die Simulation an und startet sie. Wirft nie."""
        # Das Backend bekommt eine Kopie, die Instanz des Aufrufers bleibt unberührt
        payload = instance.model_copy(deep=True)
        t0 = time.time()
        simulation_id: Optional[str] = None
        try:
            simulation_id = self.backend.create_simulation(payload.config.name, payload)
            logger.info(f"Simulation angelegt: {simulation_id}")
            response = self.backend.run_simulation(simulation_id)
        except Exception as exc:
            logger.exception(f"Simulationslauf fehlgeschlagen: {exc}")
            return RunResult(
                status=RunStatus.ERROR,
                solving_time_ms=int((time.time() - t0) * 1000),
                error_message=str(exc) or exc.__class__.__name__,
                simulation_id=simulation_id,
            )

        status = normalize_status(response)
        logger.info(
            f"Simulation {simulation_id}: {status.value} "
            f"({response.solving_time_ms} ms)"
        )
        return self._to_result(response, status, simulation_id)

    def _to_result(
        self, response: RunResponse, status: RunStatus, simulation_id: Optional[str]
    ) -> RunResult:
        if status in _SCHEDULE_HINTS and response.result and response.result.schedule:
            payload = response.result
            return RunResult(
                status=status,
                solving_time_ms=response.solving_time_ms,
                schedule=payload.schedule,
                by_teacher=payload.by_teacher or build_by_teacher(payload.schedule),
                by_class=payload.by_class or build_by_class(payload.schedule),
                quality_report=payload.quality_report,
                conflicts=response.conflicts,
                conflict_heatmap=response.conflict_heatmap,
                simulation_id=simulation_id,
            )

        message = response.message
        if not message:
            message = {
                RunStatus.INFEASIBLE: "Für die Vorgaben existiert kein gültiger Stundenplan.",
                RunStatus.TIMEOUT: "Zeitlimit erreicht, ohne einen Stundenplan zu finden.",
            }.get(status, "Der Solver hat keinen Stundenplan geliefert.")
        return RunResult(
            status=status,
            solving_time_ms=response.solving_time_ms,
            conflicts=response.conflicts,
            conflict_heatmap=response.conflict_heatmap,
            error_message=message,
            simulation_id=simulation_id,
        )
