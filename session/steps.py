"""Schritt-Steuerung des Simulations-Wizards.

Linearer Ablauf mit genau einer Rücksprung-Kante (reset):

  DATA_SOURCE → BASIC_CONFIG → TEACHER_PREFERENCES → SUBJECT_CONSTRAINTS
  → PERIOD_ALLOCATION → REVIEW_AND_RUN → RESULTS
"""

from enum import IntEnum

from models.school_model import SimulationModel


class WizardStep(IntEnum):
    DATA_SOURCE = 1
    BASIC_CONFIG = 2
    TEACHER_PREFERENCES = 3
    SUBJECT_CONSTRAINTS = 4
    PERIOD_ALLOCATION = 5
    REVIEW_AND_RUN = 6
    RESULTS = 7


STEP_TITLES: dict[WizardStep, str] = {
    WizardStep.DATA_SOURCE: "Datenquelle",
    WizardStep.BASIC_CONFIG: "Grundeinstellungen",
    WizardStep.TEACHER_PREFERENCES: "Lehrer-Wünsche",
    WizardStep.SUBJECT_CONSTRAINTS: "Fach-Regeln",
    WizardStep.PERIOD_ALLOCATION: "Stundenverteilung",
    WizardStep.REVIEW_AND_RUN: "Prüfen & Starten",
    WizardStep.RESULTS: "Ergebnis",
}


class StepGateError(Exception):
    """Ein Schritt kann (noch) nicht verlassen werden. Der Zustand bleibt unverändert."""

    def __init__(self, step: WizardStep, reason: str) -> None:
        super().__init__(f"{STEP_TITLES[step]}: {reason}")
        self.step = step
        self.reason = reason


def gate_reason(step: WizardStep, model: SimulationModel) -> str | None:
    """Begründung, warum `step` nicht verlassen werden darf (None = frei)."""
    if step == WizardStep.DATA_SOURCE:
        return None
    if step == WizardStep.BASIC_CONFIG:
        if not model.config.name.strip():
            return "Name der Simulation fehlt."
        if not model.config.working_days:
            return "Mindestens ein Unterrichtstag muss gewählt sein."
        return None
    if step == WizardStep.TEACHER_PREFERENCES:
        return None if model.teachers else "Keine Lehrkräfte vorhanden."
    if step == WizardStep.SUBJECT_CONSTRAINTS:
        return None if model.subjects else "Keine Fächer vorhanden."
    if step == WizardStep.PERIOD_ALLOCATION:
        if not model.classes:
            return "Keine Klassen vorhanden."
        if not any(r.periods_per_week > 0 for r in model.requirements):
            return "Noch keine Wochenstunden verteilt."
        return None
    if step == WizardStep.REVIEW_AND_RUN:
        return None
    return "Das Ergebnis ist der letzte Schritt."


def can_proceed(step: WizardStep, model: SimulationModel) -> bool:
    return gate_reason(step, model) is None


class StepMachine:
    """Aktueller Wizard-Schritt inkl. Übergangsregeln.

    Vorwärts nur bei offenem Gate, rückwärts immer (ohne Datenverlust).
    RESULTS wird nur über einen Lauf erreicht und nur per reset() verlassen.
    """

    def __init__(self) -> None:
        self.current = WizardStep.DATA_SOURCE

    @property
    def is_results(self) -> bool:
        return self.current == WizardStep.RESULTS

    def next(self, model: SimulationModel) -> WizardStep:
        if self.current >= WizardStep.REVIEW_AND_RUN:
            raise StepGateError(
                self.current, "Weiter geht es nur über den Start der Simulation."
            )
        reason = gate_reason(self.current, model)
        if reason is not None:
            raise StepGateError(self.current, reason)
        self.current = WizardStep(self.current + 1)
        return self.current

    def back(self) -> WizardStep:
        if self.is_results:
            raise StepGateError(self.current, "Für eine neue Simulation reset() verwenden.")
        if self.current > WizardStep.DATA_SOURCE:
            self.current = WizardStep(self.current - 1)
        return self.current

    def enter_results(self) -> WizardStep:
        if self.current != WizardStep.REVIEW_AND_RUN:
            raise StepGateError(self.current, "Simulation nur aus 'Prüfen & Starten' möglich.")
        self.current = WizardStep.RESULTS
        return self.current

    def reset(self) -> WizardStep:
        self.current = WizardStep.DATA_SOURCE
        return self.current
