"""Wizard-Ablauf: Schritt-Steuerung und Session-Zustand."""

from session.steps import STEP_TITLES, StepGateError, StepMachine, WizardStep, can_proceed
from session.controller import RunInProgressError, SimulationSession

__all__ = [
    "STEP_TITLES",
    "StepGateError",
    "StepMachine",
    "WizardStep",
    "can_proceed",
    "RunInProgressError",
    "SimulationSession",
]
