"""Solver-Modul: Backend-Schnittstelle, Simulationslauf und Heuristiken."""

from .backend import (
    BackendError,
    RunResponse,
    RunResult,
    RunStatus,
    ScheduleEntry,
    SimulatorBackend,
)
from .orchestrator import RunOrchestrator

__all__ = [
    "BackendError",
    "RunResponse",
    "RunResult",
    "RunStatus",
    "ScheduleEntry",
    "SimulatorBackend",
    "RunOrchestrator",
]
