"""Datenmodelle für Unterrichtsfächer und Fach-Regeln (Pydantic v2)."""

from typing import Optional
from pydantic import BaseModel, Field


class Subject(BaseModel):
    """Repräsentiert ein Unterrichtsfach."""

    id: int
    name: str
    name_en: Optional[str] = None


class SubjectConstraint(BaseModel):
    """Regeln für die Lage eines Fachs im Stundenplan. Höchstens einer pro Fach."""

    subject_id: int
    requires_consecutive: bool = False   # Doppelstunde (bzw. Block) erwünscht
    consecutive_count: int = Field(2, ge=2, le=4)
    avoid_first_period: bool = False
    avoid_last_period: bool = False
    no_consecutive_days: bool = False    # nicht an zwei Tagen hintereinander
    max_per_day: int = Field(2, ge=1, le=10)
    is_heavy: bool = False               # anspruchsvolles Fach → früh legen

    @property
    def avoided_periods_count(self) -> int:
        """Anzahl gesperrter Randstunden pro Tag."""
        return int(self.avoid_first_period) + int(self.avoid_last_period)
