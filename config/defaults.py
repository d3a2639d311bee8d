from config.schema import (
    BackendConfig,
    GeneratorConfig,
    SimulationConfig,
    SimulatorConfig,
)

WORKING_DAYS: list[str] = ["Mo", "Di", "Mi", "Do", "Fr"]

# Feste Listen für die Standard-Benennung neuer Klassen (Round-Robin)
GRADE_NAMES: list[str] = [
    "Jahrgang 5", "Jahrgang 6", "Jahrgang 7",
    "Jahrgang 8", "Jahrgang 9", "Jahrgang 10",
]
CLASS_LETTERS: list[str] = ["a", "b", "c", "d", "e"]

# Kandidaten für zufällige Wochenstunden eines Fachs
PERIOD_OPTIONS: list[int] = [2, 3, 4, 5, 6]

DEFAULT_WEEKLY_QUOTA = 24


# Fächerkatalog für synthetische Daten.
# heavy = Hauptfach (möglichst früh), block = Doppelstunde erwünscht,
# avoid_first/avoid_last = Randstunden meiden.
SUBJECT_CATALOGUE: dict[str, dict] = {
    "Mathematik": {"en": "Mathematics", "heavy": True,  "block": False, "avoid_first": False, "avoid_last": True,  "max_per_day": 2},
    "Deutsch":    {"en": "German",      "heavy": True,  "block": False, "avoid_first": False, "avoid_last": True,  "max_per_day": 2},
    "Englisch":   {"en": "English",     "heavy": True,  "block": False, "avoid_first": False, "avoid_last": False, "max_per_day": 2},
    "Biologie":   {"en": "Biology",     "heavy": False, "block": False, "avoid_first": False, "avoid_last": False, "max_per_day": 2},
    "Physik":     {"en": "Physics",     "heavy": True,  "block": False, "avoid_first": False, "avoid_last": False, "max_per_day": 2},
    "Geschichte": {"en": "History",     "heavy": False, "block": False, "avoid_first": False, "avoid_last": False, "max_per_day": 1},
    "Erdkunde":   {"en": "Geography",   "heavy": False, "block": False, "avoid_first": False, "avoid_last": False, "max_per_day": 1},
    "Sport":      {"en": "Sports",      "heavy": False, "block": True,  "avoid_first": True,  "avoid_last": False, "max_per_day": 2},
    "Kunst":      {"en": "Art",         "heavy": False, "block": True,  "avoid_first": False, "avoid_last": False, "max_per_day": 2},
    "Musik":      {"en": "Music",       "heavy": False, "block": False, "avoid_first": False, "avoid_last": False, "max_per_day": 1},
    "Chemie":     {"en": "Chemistry",   "heavy": True,  "block": False, "avoid_first": False, "avoid_last": False, "max_per_day": 2},
    "Religion":   {"en": "Religion",    "heavy": False, "block": False, "avoid_first": False, "avoid_last": False, "max_per_day": 1},
    "Politik":    {"en": "Politics",    "heavy": False, "block": False, "avoid_first": False, "avoid_last": False, "max_per_day": 1},
    "Informatik": {"en": "Computer Science", "heavy": False, "block": True, "avoid_first": False, "avoid_last": False, "max_per_day": 2},
    "Latein":     {"en": "Latin",       "heavy": True,  "block": False, "avoid_first": False, "avoid_last": False, "max_per_day": 2},
    "Französisch": {"en": "French",     "heavy": True,  "block": False, "avoid_first": False, "avoid_last": False, "max_per_day": 2},
}


def default_simulation_config() -> SimulationConfig:
    """Startwerte einer neuen Simulation: 5 Tage × 7 Stunden."""
    return SimulationConfig(
        name="Neue Simulation",
        working_days=list(WORKING_DAYS),
        periods_per_day={day: 7 for day in WORKING_DAYS},
        default_periods_per_day=7,
        max_teacher_periods_per_day=6,
        max_consecutive_periods=3,
        time_limit_seconds=120,
    )


def default_simulator_config() -> SimulatorConfig:
    """Vollständige Default-Konfiguration (lokaler CP-SAT-Backend)."""
    return SimulatorConfig(
        school_name="Muster-Schule",
        backend=BackendConfig(),
        generator=GeneratorConfig(),
        simulation=default_simulation_config(),
    )
