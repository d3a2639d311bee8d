"""Schnittstelle zum Solver-Dienst und die Ergebnis-Modelle eines Laufs.

Ein Backend ist alles, was die vier Operationen des Protokolls
SimulatorBackend anbietet: die Schulverwaltungs-API (http_backend) oder der
lokale CP-SAT-Solver (local_backend).
"""

from enum import Enum
from typing import Any, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from models.snapshot import (
    InstitutionSnapshot,
    SimulationInstance,
    SyntheticDataRequest,
    SyntheticSnapshot,
)


class BackendError(Exception):
    """Fehler beim Aufruf eines Solver-Backends (Transport, HTTP-Status, Antwortformat)."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


# ─── Stundenplan-Einträge & Sichten ───────────────────────────────────────────

class ScheduleEntry(BaseModel):
    """Eine einzelne Unterrichtsstunde im fertigen Stundenplan."""

    teacher_id: Optional[int] = None
    teacher_name: str = ""
    subject_id: int
    subject_name: str
    class_id: int
    grade: str
    class_name: str
    day: str
    period: int           # 1-basiert

    @field_validator("teacher_id", mode="before")
    @classmethod
    def _zero_means_unassigned(cls, v):
        return None if v == 0 else v


class ClassCell(BaseModel):
    subject: str = ""
    teacher: str = ""


class TeacherCell(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    subject: str = ""
    class_label: str = Field("", alias="class")


class ClassTimetable(BaseModel):
    """Wochenraster einer Klasse: schedule[tag][stunde] → Fach + Lehrkraft."""

    grade: str = ""
    class_name: str = ""
    schedule: dict[str, dict[int, ClassCell]] = {}

    def cell(self, day: str, period: int) -> Optional[ClassCell]:
        return self.schedule.get(day, {}).get(period)


class TeacherTimetable(BaseModel):
    """Wochenraster einer Lehrkraft: schedule[tag][stunde] → Fach + Klasse."""

    name: str = ""
    sessions_count: int = 0
    schedule: dict[str, dict[int, TeacherCell]] = {}

    def cell(self, day: str, period: int) -> Optional[TeacherCell]:
        return self.schedule.get(day, {}).get(period)


# ─── Qualität & Konflikte ─────────────────────────────────────────────────────

class QualityMetric(BaseModel):
    score: float = 0.0          # 0–100
    details: Any = None


class QualityWarning(BaseModel):
    type: str = "general"
    message: str


class QualityReport(BaseModel):
    """Qualitätsbericht eines Plans (coverage, teacher_distribution, subject_distribution, preferences_met)."""

    overall_score: float = 0.0
    metrics: dict[str, QualityMetric] = {}
    warnings: list[QualityWarning] = []
    suggestions: list[str] = []

    @field_validator("warnings", mode="before")
    @classmethod
    def _plain_strings(cls, v):
        # Manche Server liefern Warnungen als reine Strings
        if isinstance(v, list):
            return [{"message": w} if isinstance(w, str) else w for w in v]
        return v


class ConflictInfo(BaseModel):
    type: str = "general"
    message: str
    severity: str = "warning"    # "critical" | "warning"
    suggestion: str = ""

    @property
    def is_critical(self) -> bool:
        return self.severity == "critical"


class ConflictHeatmap(BaseModel):
    """Erwartete Belegungsdichte pro (Tag, Stunde), 0.0 = frei, 1.0 = voll."""

    cells: dict[str, dict[int, float]] = {}

    @model_validator(mode="before")
    @classmethod
    def _accept_raw_mapping(cls, data):
        # Roh-Mapping {tag: {stunde: wert}} ohne "cells"-Hülle
        if isinstance(data, dict) and "cells" not in data:
            return {"cells": data}
        return data

    @property
    def days(self) -> list[str]:
        return list(self.cells.keys())

    @property
    def max_period(self) -> int:
        return max((p for row in self.cells.values() for p in row), default=0)

    def value(self, day: str, period: int) -> float:
        return self.cells.get(day, {}).get(period, 0.0)


# ─── Antwort von run_simulation ──────────────────────────────────────────────

class RunPayload(BaseModel):
    schedule: list[ScheduleEntry] = []
    by_teacher: dict[str, TeacherTimetable] = {}
    by_class: dict[str, ClassTimetable] = {}
    quality_report: Optional[QualityReport] = None


class RunResponse(BaseModel):
    """Rohantwort eines Backends auf run_simulation()."""

    success: bool
    result: Optional[RunPayload] = None
    solving_time_ms: int = 0
    message: Optional[str] = None
    # Optionaler Status-Hinweis des Solvers ("optimal", "timeout", ...)
    status: Optional[str] = None
    conflicts: list[ConflictInfo] = []
    conflict_heatmap: Optional[ConflictHeatmap] = None


# ─── Normalisiertes Ergebnis ─────────────────────────────────────────────────

class RunStatus(str, Enum):
    OPTIMAL = "optimal"
    FEASIBLE = "feasible"
    INFEASIBLE = "infeasible"
    TIMEOUT = "timeout"
    ERROR = "error"


class RunResult(BaseModel):
    """Ergebnis eines Simulationslaufs, wie es der Presenter konsumiert."""

    status: RunStatus
    solving_time_ms: int = 0
    schedule: list[ScheduleEntry] = []
    by_teacher: dict[str, TeacherTimetable] = {}
    by_class: dict[str, ClassTimetable] = {}
    quality_report: Optional[QualityReport] = None
    conflicts: list[ConflictInfo] = []
    conflict_heatmap: Optional[ConflictHeatmap] = None
    error_message: Optional[str] = None
    simulation_id: Optional[str] = None

    @property
    def has_schedule(self) -> bool:
        return self.status in (RunStatus.OPTIMAL, RunStatus.FEASIBLE, RunStatus.TIMEOUT) \
            and bool(self.schedule)


# ─── Protokoll ───────────────────────────────────────────────────────────────

@runtime_checkable
class SimulatorBackend(Protocol):
    """Die vier Operationen, die ein Solver-Backend bereitstellen muss.

    Alle Methoden werfen BackendError bei Fehlern.
    """

    def fetch_institution_snapshot(self) -> InstitutionSnapshot: ...

    def generate_synthetic_snapshot(
        self, request: SyntheticDataRequest
    ) -> SyntheticSnapshot: ...

    def create_simulation(self, name: str, instance: SimulationInstance) -> str: ...

    def run_simulation(self, simulation_id: str) -> RunResponse: ...
