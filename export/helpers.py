"""Gemeinsame Hilfsfunktionen für Konsolen- und Excel-Ausgabe."""

from collections import defaultdict
from datetime import date
from typing import Iterable, Optional

from config.schema import SimulationConfig
from solver.backend import ClassCell, ScheduleEntry, TeacherCell

# ─── Farbpalette (RRGGBB, ohne #) ─────────────────────────────────────────────

COLORS: dict[str, str] = {
    "lesson":   "B3D4FF",
    "teacher":  "D4E8FF",
    "free":     "F5F5F5",
    "good":     "B3FFB3",
    "medium":   "FFF2B3",
    "bad":      "FF9999",
    "header":   "4472C4",
}


def today_str() -> str:
    """Gibt das heutige Datum als DD.MM.YYYY zurück."""
    return date.today().strftime("%d.%m.%Y")


# ─── Bewertungen ──────────────────────────────────────────────────────────────

def score_level(score: float) -> str:
    """'good' ab 90, 'medium' ab 70, sonst 'bad' (Skala 0–100)."""
    if score >= 90:
        return "good"
    if score >= 70:
        return "medium"
    return "bad"


def heat_level(value: float) -> str:
    """Stufe einer Heatmap-Zelle (Belegungsdichte 0.0–1.0+)."""
    if value > 1.0:
        return "bad"
    if value >= 0.75:
        return "medium"
    return "good"


# ─── Raster ───────────────────────────────────────────────────────────────────

def grid_periods(config: SimulationConfig) -> list[int]:
    """Stunden-Zeilen eines Wochenrasters (1 … längster Tag)."""
    return list(range(1, config.max_periods + 1))


def period_exists(config: SimulationConfig, day: str, period: int) -> bool:
    return period <= config.periods_for(day)


# ─── Springstunden ────────────────────────────────────────────────────────────

def count_gaps(entries: Iterable[ScheduleEntry]) -> int:
    """Zählt Springstunden (freie Stunden zwischen erster und letzter Stunde pro Tag)."""
    by_day: dict[str, list[int]] = defaultdict(list)
    for e in entries:
        by_day[e.day].append(e.period)
    total = 0
    for periods in by_day.values():
        unique = sorted(set(periods))
        if len(unique) > 1:
            total += unique[-1] - unique[0] + 1 - len(unique)
    return total


def entries_by_teacher(entries: Iterable[ScheduleEntry]) -> dict[int, list[ScheduleEntry]]:
    result: dict[int, list[ScheduleEntry]] = defaultdict(list)
    for e in entries:
        if e.teacher_id is not None:
            result[e.teacher_id].append(e)
    return result


# ─── Zelleninhalt-Formatierung ────────────────────────────────────────────────

def format_class_cell(cell: Optional[ClassCell]) -> str:
    """"Fach\\nLehrkraft" bzw. "" für eine freie Stunde."""
    if cell is None:
        return ""
    return f"{cell.subject}\n{cell.teacher}" if cell.teacher else cell.subject


def format_teacher_cell(cell: Optional[TeacherCell]) -> str:
    """"Fach\\nKlasse" bzw. "" für eine freie Stunde."""
    if cell is None:
        return ""
    return f"{cell.subject}\n{cell.class_label}" if cell.class_label else cell.subject
