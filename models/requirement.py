"""Stundenbedarf: Klasse × Fach × Lehrkraft × Wochenstunden (Pydantic v2)."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator


class Requirement(BaseModel):
    """Zentrales Verknüpfungsobjekt: "Klasse c braucht Fach s bei Lehrkraft t, n Std./Woche".

    Die Namensfelder sind bewusst Kopien zur Anzeige. Ein Umbenennen von
    Lehrkraft oder Fach ändert bestehende Einträge NICHT.
    """

    id: int
    class_id: int
    grade: str
    class_name: str
    subject_id: int
    subject_name: str
    teacher_id: Optional[int] = None   # None = noch nicht zugewiesen
    teacher_name: str = ""
    periods_per_week: int = Field(0, ge=0)

    @field_validator("teacher_id", mode="before")
    @classmethod
    def _zero_means_unassigned(cls, v):
        # Die API kodiert "nicht zugewiesen" als 0
        if v == 0:
            return None
        return v

    @property
    def is_assigned(self) -> bool:
        return self.teacher_id is not None
