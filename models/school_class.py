"""Datenmodell für eine Schulklasse (Pydantic v2)."""

from pydantic import BaseModel


class ClassGroup(BaseModel):
    """Repräsentiert eine einzelne Klasse eines Jahrgangs (z.B. Jahrgang 7 / b)."""

    id: int
    grade: str        # "Jahrgang 7"
    class_name: str   # "b"

    @property
    def label(self) -> str:
        return f"{self.grade} {self.class_name}"
