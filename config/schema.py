from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional
from enum import Enum


class BackendKind(str, Enum):
    HTTP = "http"
    LOCAL = "local"


# ─── SIMULATION (Grundeinstellungen des Wizards) ───

class SimulationConfig(BaseModel):
    """Grundeinstellungen einer Stundenplan-Simulation.

    Wird unverändert an den Solver übergeben. Das Zeitlimit ist ein
    Parameter für den Solver, keine lokale Deadline.
    """
    # Anzeigename der Simulation
    name: str = Field("Neue Simulation",
        description="Name der Simulation")
    # Unterrichtstage (Reihenfolge = Anzeige-Reihenfolge)
    working_days: list[str] = Field(
        default=["Mo", "Di", "Mi", "Do", "Fr"],
        description="Unterrichtstage")
    # Stunden pro Tag, abweichend vom Default (Tag → Anzahl)
    periods_per_day: dict[str, int] = Field(
        default_factory=dict,
        description="Stunden pro Tag (überschreibt den Default)")
    # Default-Stundenanzahl für Tage ohne eigenen Eintrag
    default_periods_per_day: int = Field(7, ge=1, le=10,
        description="Stunden pro Tag (Default)")
    # Max. Unterrichtsstunden einer Lehrkraft pro Tag
    max_teacher_periods_per_day: int = Field(6, ge=1, le=10,
        description="Max. Stunden pro Lehrkraft und Tag")
    # Max. aufeinanderfolgende Stunden einer Lehrkraft
    max_consecutive_periods: int = Field(3, ge=1, le=8,
        description="Max. Stunden am Stück")
    # Zeitlimit für den Solver in Sekunden
    time_limit_seconds: int = Field(120, ge=1, le=3600,
        description="Zeitlimit Solver (Sekunden)")

    @field_validator("periods_per_day")
    @classmethod
    def _check_periods(cls, v: dict[str, int]) -> dict[str, int]:
        for day, count in v.items():
            if count < 1:
                raise ValueError(f"Stundenanzahl für '{day}' muss >= 1 sein")
        return v

    def periods_for(self, day: str) -> int:
        """Stundenanzahl eines Tages (Tageseintrag oder Default)."""
        return self.periods_per_day.get(day, self.default_periods_per_day)

    @property
    def max_periods(self) -> int:
        """Längster Unterrichtstag der Woche."""
        if not self.working_days:
            return self.default_periods_per_day
        return max(self.periods_for(d) for d in self.working_days)

    @property
    def weekly_periods(self) -> int:
        """Verfügbare Stunden pro Klasse und Woche."""
        return sum(self.periods_for(d) for d in self.working_days)


# ─── BACKEND ───

class BackendConfig(BaseModel):
    """Anbindung an den Solver-Dienst."""
    # "http" = Schulverwaltungs-API, "local" = CP-SAT im Prozess
    kind: BackendKind = Field(BackendKind.LOCAL)
    # Basis-URL der API (nur für kind=http)
    base_url: str = Field("http://localhost:8000/api",
        description="Basis-URL der Schulverwaltungs-API")
    # Pfad-Präfix des Simulator-Moduls
    api_prefix: str = Field("/admin/schedule-simulator")
    # Bearer-Token (optional)
    token: Optional[str] = None
    # Client-Timeout in Sekunden; None = kein Timeout (Solver kann lange rechnen)
    request_timeout_seconds: Optional[float] = Field(None, gt=0)
    # JSON-Datei mit Institutionsdaten (nur für kind=local)
    institution_snapshot: Optional[str] = None


# ─── TESTDATEN ───

class GeneratorConfig(BaseModel):
    """Parameter für synthetische Testdaten."""
    num_teachers: int = Field(10, ge=1, le=200)
    num_subjects: int = Field(8, ge=1, le=30)
    num_grades: int = Field(3, ge=1, le=6)
    classes_per_grade: int = Field(3, ge=1, le=5)
    # Zufalls-Seed; None = nicht reproduzierbar
    seed: Optional[int] = 42


# ─── GESAMT-CONFIG ───

class SimulatorConfig(BaseModel):
    """Gesamtkonfiguration des Simulators."""
    # Name der Schule (nur Anzeige)
    school_name: str = Field("Muster-Schule",
        description="Name der Schule")
    backend: BackendConfig = Field(default_factory=BackendConfig)
    generator: GeneratorConfig = Field(default_factory=GeneratorConfig)
    # Startwerte für neue Simulationen
    simulation: SimulationConfig = Field(default_factory=SimulationConfig)

    @model_validator(mode='after')
    def _check_backend(self):
        if self.backend.kind == BackendKind.HTTP and not self.backend.base_url:
            raise ValueError("backend.base_url fehlt für kind=http")
        return self
