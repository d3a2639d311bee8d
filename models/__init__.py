from models.teacher import Teacher, TeacherPreference, PreferTime, TeachingStyle
from models.subject import Subject, SubjectConstraint
from models.school_class import ClassGroup
from models.requirement import Requirement
from models.snapshot import (
    DataSource,
    InstitutionSnapshot,
    SimulationInstance,
    SyntheticDataRequest,
    SyntheticSnapshot,
)
from models.school_model import SimulationModel

__all__ = [
    "Teacher",
    "TeacherPreference",
    "PreferTime",
    "TeachingStyle",
    "Subject",
    "SubjectConstraint",
    "ClassGroup",
    "Requirement",
    "DataSource",
    "InstitutionSnapshot",
    "SyntheticSnapshot",
    "SyntheticDataRequest",
    "SimulationInstance",
    "SimulationModel",
]
