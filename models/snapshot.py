"""Datenquellen-Snapshots und die vollständige Probleminstanz (Pydantic v2)."""

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field

from config.schema import SimulationConfig
from models.requirement import Requirement
from models.school_class import ClassGroup
from models.subject import Subject, SubjectConstraint
from models.teacher import Teacher, TeacherPreference


class DataSource(str, Enum):
    EXISTING = "existing"   # Institutionsdaten aus der Schulverwaltung
    CUSTOM = "custom"       # manuell / synthetisch erzeugt


class InstitutionSnapshot(BaseModel):
    """Institutionsdaten. Enthalten KEINEN Stundenbedarf, der wird im Wizard verteilt."""

    source: Literal["existing"] = "existing"
    teachers: list[Teacher] = []
    subjects: list[Subject] = []
    classes: list[ClassGroup] = []
    teacher_preferences: list[TeacherPreference] = []
    subject_constraints: list[SubjectConstraint] = []


class SyntheticSnapshot(BaseModel):
    """Synthetische Testdaten inkl. Stundenbedarf und Config-Überschreibungen."""

    source: Literal["custom"] = "custom"
    teachers: list[Teacher] = []
    subjects: list[Subject] = []
    classes: list[ClassGroup] = []
    requirements: list[Requirement] = []
    teacher_preferences: list[TeacherPreference] = []
    subject_constraints: list[SubjectConstraint] = []
    config_overrides: dict[str, Any] = {}


DataSnapshot = Annotated[
    Union[InstitutionSnapshot, SyntheticSnapshot],
    Field(discriminator="source"),
]


class SyntheticDataRequest(BaseModel):
    """Parameter für generate_synthetic_snapshot()."""

    num_teachers: int = Field(10, ge=1)
    num_subjects: int = Field(8, ge=1)
    num_grades: int = Field(3, ge=1)
    classes_per_grade: int = Field(3, ge=1)
    periods_per_day: int = Field(7, ge=1, le=10)


class SimulationInstance(BaseModel):
    """Die vollständige Probleminstanz, wie sie an den Solver geht."""

    teachers: list[Teacher]
    subjects: list[Subject]
    classes: list[ClassGroup]
    requirements: list[Requirement]
    teacher_preferences: list[TeacherPreference]
    subject_constraints: list[SubjectConstraint]
    config: SimulationConfig

    def preference_for(self, teacher_id: int) -> TeacherPreference:
        for p in self.teacher_preferences:
            if p.teacher_id == teacher_id:
                return p
        return TeacherPreference(teacher_id=teacher_id)

    def constraint_for(self, subject_id: int) -> SubjectConstraint:
        for c in self.subject_constraints:
            if c.subject_id == subject_id:
                return c
        return SubjectConstraint(subject_id=subject_id)
