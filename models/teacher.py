"""Datenmodelle für Lehrkräfte und ihre Wünsche (Pydantic v2)."""

from enum import Enum

from pydantic import BaseModel, Field, model_validator


class PreferTime(str, Enum):
    ANY = "any"
    EARLY = "early"   # lieber früh am Tag
    LATE = "late"     # lieber spät am Tag


class TeachingStyle(str, Enum):
    ANY = "any"
    CONSECUTIVE = "consecutive"   # Stunden gebündelt
    DISTRIBUTED = "distributed"   # Stunden über den Tag verteilt


class Teacher(BaseModel):
    """Repräsentiert eine einzelne Lehrkraft."""

    id: int
    name: str
    weekly_quota: int = 24   # Deputat in Wochenstunden


class TeacherPreference(BaseModel):
    """Wünsche einer Lehrkraft. Höchstens ein Eintrag pro Lehrkraft.

    Fehlt der Eintrag, gelten die Defaults dieses Modells.
    """

    teacher_id: int
    weekly_quota: int = Field(24, ge=1, le=40)
    min_daily_periods: int = Field(2, ge=0, le=10)
    max_daily_periods: int = Field(6, ge=1, le=10)
    max_consecutive: int = Field(3, ge=1, le=10)
    prefer_time: PreferTime = PreferTime.ANY
    teaching_style: TeachingStyle = TeachingStyle.ANY
    golden_days: list[str] = []   # Tage, die möglichst frei bleiben sollen

    @model_validator(mode='after')
    def _check_daily_bounds(self):
        if self.min_daily_periods > self.max_daily_periods:
            raise ValueError(
                f"min_daily_periods ({self.min_daily_periods}) > "
                f"max_daily_periods ({self.max_daily_periods})"
            )
        return self
