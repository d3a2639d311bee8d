"""Lokale Vorbelegungs-Heuristiken (nicht optimal, laufen vor dem Solver).

Alle Funktionen verändern ausschließlich das übergebene SimulationModel und
sind No-ops, solange es keine Lehrkräfte oder keine Fächer gibt.
"""

import logging
import random
from typing import Optional

from config.defaults import PERIOD_OPTIONS
from models.school_model import SimulationModel

logger = logging.getLogger(__name__)


def _is_empty(model: SimulationModel) -> bool:
    return not model.teachers or not model.subjects


def split_weekly_periods(
    capacity: int, num_subjects: int, rng: random.Random
) -> list[int]:
    """Verteilt `capacity` Wochenstunden zufällig auf `num_subjects` Fächer.

    Jedes Fach außer dem letzten zieht aus PERIOD_OPTIONS und wird so gekappt,
    dass für die restlichen Fächer mindestens je 1 Stunde bleibt. Das letzte
    Fach bekommt den Rest. Summe == capacity, solange capacity >= num_subjects;
    sonst erhält jedes Fach 1 Stunde.
    """
    shares: list[int] = []
    assigned = 0
    for index in range(num_subjects):
        if index == num_subjects - 1:
            shares.append(max(1, capacity - assigned))
            break
        subjects_after = num_subjects - index - 1
        max_for_this = capacity - assigned - subjects_after
        periods = min(rng.choice(PERIOD_OPTIONS), max_for_this)
        periods = max(1, periods)
        shares.append(periods)
        assigned += periods
    return shares


def generate_random_periods(
    model: SimulationModel, rng: Optional[random.Random] = None
) -> dict[str, dict[int, int]]:
    """Füllt für jeden Jahrgang die Wochenstunden aller Fächer zufällig auf.

    Kapazität pro Jahrgang = Anzahl Unterrichtstage × Default-Stunden pro Tag.

    Returns:
        {jahrgang: {subject_id: wochenstunden}}
    """
    if _is_empty(model):
        return {}
    rng = rng or random.Random()
    capacity = len(model.config.working_days) * model.config.default_periods_per_day

    allocation: dict[str, dict[int, int]] = {}
    for grade in model.grades:
        shares = split_weekly_periods(capacity, len(model.subjects), rng)
        allocation[grade] = {}
        for subject, periods in zip(model.subjects, shares):
            model.set_grade_periods(grade, subject.id, periods)
            allocation[grade][subject.id] = periods
        logger.debug(f"Zufallsstunden {grade}: {allocation[grade]}")
    return allocation


def distribute_teachers_randomly(
    model: SimulationModel, rng: Optional[random.Random] = None
) -> None:
    """Weist jedem Stundenbedarf eine zufällige Lehrkraft zu (ohne Rücksicht auf Auslastung).

    Gedacht für Stress-Szenarien, nicht für gute Pläne.
    """
    if _is_empty(model):
        return
    rng = rng or random.Random()
    for req in model.requirements:
        teacher = rng.choice(model.teachers)
        req.teacher_id = teacher.id
        req.teacher_name = teacher.name


def distribute_teachers_balanced(model: SimulationModel) -> dict[int, int]:
    """Gleichmäßige Lehrerverteilung per Greedy-LPT (Longest Processing Time first).

    Stundenbedarfe werden absteigend nach Wochenstunden abgearbeitet; jeder
    geht an die Lehrkraft mit der bisher geringsten Gesamtlast (bei Gleichstand
    die kleinste ID). Garantie: max(Last) - min(Last) <= größter Einzelbedarf.

    Die Reihenfolge von model.requirements bleibt unverändert.

    Returns:
        {teacher_id: zugewiesene Wochenstunden}
    """
    if _is_empty(model):
        return {}

    loads: dict[int, int] = {t.id: 0 for t in model.teachers}
    by_id = {t.id: t for t in model.teachers}

    # sorted() ist stabil → gleiche Stundenzahl behält Ursprungsreihenfolge
    ordered = sorted(model.requirements, key=lambda r: r.periods_per_week, reverse=True)
    for req in ordered:
        teacher_id = min(loads, key=lambda tid: (loads[tid], tid))
        req.teacher_id = teacher_id
        req.teacher_name = by_id[teacher_id].name
        loads[teacher_id] += req.periods_per_week

    if loads:
        logger.info(
            f"Ausgewogene Verteilung: {len(ordered)} Bedarfe, "
            f"Last min={min(loads.values())} max={max(loads.values())}"
        )
    return loads
