"""SimulationSession: ein Wizard-Durchlauf mit Modell, Schritt und Ergebnis.

Jede Session besitzt ihr Modell exklusiv. Zu jeder Zeit läuft höchstens
eine Simulation; ein zweiter Start wird mit RunInProgressError abgewiesen.
"""

import logging
import random
import threading
from typing import Optional

from analysis.capacity import CapacityReport, analyze_capacity
from models.school_model import SimulationModel
from models.snapshot import DataSource, SyntheticDataRequest
from session.steps import StepGateError, StepMachine, WizardStep, can_proceed
from solver import heuristics
from solver.backend import BackendError, RunResult, SimulatorBackend
from solver.orchestrator import RunOrchestrator

logger = logging.getLogger(__name__)


class RunInProgressError(RuntimeError):
    """Es läuft bereits eine Simulation in dieser Session."""


class SimulationSession:
    """Zustand eines Simulator-Durchlaufs.

    Alle Änderungen am Modell laufen über die Session, damit der
    Kapazitäts-Check nach jeder Änderung aktuell ist.
    """

    def __init__(
        self,
        model: Optional[SimulationModel] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.model = model or SimulationModel()
        self.steps = StepMachine()
        self.data_source: Optional[DataSource] = None
        self.result: Optional[RunResult] = None
        self.error: Optional[str] = None
        self.rng = rng or random.Random()
        self._run_lock = threading.Lock()
        self.capacity: CapacityReport = analyze_capacity(self.model)

    # ─── Zustand ──────────────────────────────────────────────────────────

    @property
    def step(self) -> WizardStep:
        return self.steps.current

    @property
    def is_running(self) -> bool:
        return self._run_lock.locked()

    def can_proceed(self) -> bool:
        return can_proceed(self.step, self.model)

    def refresh(self) -> CapacityReport:
        self.capacity = analyze_capacity(self.model)
        return self.capacity

    # ─── Navigation ───────────────────────────────────────────────────────

    def next_step(self) -> WizardStep:
        """Weiter zum nächsten Schritt. StepGateError, wenn das Gate zu ist."""
        return self.steps.next(self.model)

    def previous_step(self) -> WizardStep:
        return self.steps.back()

    def reset(self) -> WizardStep:
        """Neue Simulation: Ergebnis verwerfen, zurück zu Schritt 1 (Daten bleiben)."""
        self.result = None
        self.error = None
        return self.steps.reset()

    # ─── Datenquelle ──────────────────────────────────────────────────────

    def switch_data_source(self, source: DataSource) -> None:
        """Wechsel der Datenquelle verwirft den gesamten Datensatz."""
        if source != self.data_source:
            self.model.clear()
            self.data_source = source
            self.refresh()

    def _apply(self, snapshot, source: DataSource) -> bool:
        try:
            self.model.apply_snapshot(snapshot)
        except ValueError as exc:
            logger.error(f"Snapshot enthält ungültige Einstellungen: {exc}")
            self.error = f"Ungültige Einstellungen im Snapshot: {exc}"
            return False
        self.data_source = source
        self.refresh()
        return True

    def load_institution(self, backend: SimulatorBackend) -> bool:
        """Lädt Institutionsdaten. Bei Fehlern bleibt das Modell unverändert."""
        self.error = None
        try:
            snapshot = backend.fetch_institution_snapshot()
        except BackendError as exc:
            logger.error(f"Institutionsdaten konnten nicht geladen werden: {exc}")
            self.error = exc.message
            return False
        return self._apply(snapshot, DataSource.EXISTING)

    def generate_synthetic(
        self, backend: SimulatorBackend, request: Optional[SyntheticDataRequest] = None
    ) -> bool:
        """Erzeugt Testdaten. Bei Fehlern bleibt das Modell unverändert."""
        self.error = None
        request = request or SyntheticDataRequest(
            periods_per_day=self.model.config.default_periods_per_day
        )
        try:
            snapshot = backend.generate_synthetic_snapshot(request)
        except BackendError as exc:
            logger.error(f"Testdaten konnten nicht erzeugt werden: {exc}")
            self.error = exc.message
            return False
        return self._apply(snapshot, DataSource.CUSTOM)

    # ─── Bearbeitung ──────────────────────────────────────────────────────

    def update_config(self, **updates) -> None:
        self.model.config = self.model.config.model_validate(
            {**self.model.config.model_dump(), **updates}
        )
        self.refresh()

    def add_teacher(self, name: Optional[str] = None):
        teacher = self.model.add_teacher(name)
        self.refresh()
        return teacher

    def remove_teacher(self, teacher_id: int) -> None:
        self.model.remove_teacher(teacher_id)
        self.refresh()

    def add_subject(self, name: Optional[str] = None):
        subject = self.model.add_subject(name)
        self.refresh()
        return subject

    def remove_subject(self, subject_id: int) -> None:
        self.model.remove_subject(subject_id)
        self.refresh()

    def add_class_group(self):
        group = self.model.add_class_group()
        self.refresh()
        return group

    def remove_class_group(self, class_id: int) -> None:
        self.model.remove_class_group(class_id)
        self.refresh()

    def set_grade_periods(self, grade: str, subject_id: int, periods: int) -> None:
        self.model.set_grade_periods(grade, subject_id, periods)
        self.refresh()

    def assign_teacher(self, requirement_id: int, teacher_id: Optional[int]) -> None:
        self.model.assign_teacher(requirement_id, teacher_id)
        self.refresh()

    def update_teacher_preference(self, teacher_id: int, **updates) -> None:
        self.model.upsert_teacher_preference(teacher_id, **updates)
        self.refresh()

    def update_subject_constraint(self, subject_id: int, **updates) -> None:
        self.model.upsert_subject_constraint(subject_id, **updates)
        self.refresh()

    # ─── Heuristiken ──────────────────────────────────────────────────────

    def generate_random_periods(self) -> dict[str, dict[int, int]]:
        allocation = heuristics.generate_random_periods(self.model, self.rng)
        self.refresh()
        return allocation

    def distribute_teachers_randomly(self) -> None:
        heuristics.distribute_teachers_randomly(self.model, self.rng)
        self.refresh()

    def distribute_teachers_balanced(self) -> dict[int, int]:
        loads = heuristics.distribute_teachers_balanced(self.model)
        self.refresh()
        return loads

    # ─── Simulation ───────────────────────────────────────────────────────

    def run(self, orchestrator: RunOrchestrator) -> RunResult:
        """Startet die Simulation aus 'Prüfen & Starten' und wechselt zum Ergebnis.

        Raises:
            StepGateError: wenn die Session nicht in REVIEW_AND_RUN steht
            RunInProgressError: wenn bereits ein Lauf aktiv ist
        """
        if self.step != WizardStep.REVIEW_AND_RUN:
            raise StepGateError(self.step, "Simulation nur aus 'Prüfen & Starten' möglich.")
        if not self._run_lock.acquire(blocking=False):
            raise RunInProgressError("Es läuft bereits eine Simulation.")
        try:
            self.error = None
            self.result = None
            self.result = orchestrator.run(self.model.to_instance())
            self.steps.enter_results()
            return self.result
        finally:
            self._run_lock.release()
