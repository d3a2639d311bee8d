"""Testdaten-Generator für den Stundenplan-Simulator.

Erzeugt einen vollständigen, in der Regel lösbaren Datensatz:
  - Fächer aus SUBJECT_CATALOGUE (inkl. Fach-Regeln)
  - Lehrkräfte mit zufälligen Namen und Wünschen
  - Klassen als Jahrgänge × Buchstaben
  - Stundenbedarf per Zufallsverteilung (ca. 70 % der Wochenstunden belegt)
    und ausgewogener Lehrerverteilung
"""

import logging
import random
from typing import Optional

from config.defaults import CLASS_LETTERS, GRADE_NAMES, SUBJECT_CATALOGUE, WORKING_DAYS
from models.school_class import ClassGroup
from models.school_model import SimulationModel
from models.snapshot import InstitutionSnapshot, SyntheticDataRequest, SyntheticSnapshot
from models.subject import Subject, SubjectConstraint
from models.teacher import PreferTime, Teacher, TeacherPreference, TeachingStyle
from solver.heuristics import distribute_teachers_balanced, split_weekly_periods

logger = logging.getLogger(__name__)

# Anteil der Wochenstunden einer Klasse, der mit Unterricht belegt wird
FILL_RATIO = 0.7

# ─── Namens-Listen ────────────────────────────────────────────────────────────

_FIRST_NAMES = [
    "Andreas", "Bernd", "Christian", "Dieter", "Hans", "Jürgen", "Klaus",
    "Markus", "Michael", "Peter", "Stefan", "Thomas", "Tobias", "Yusuf",
    "Anna", "Birgit", "Christine", "Eva", "Iris", "Kathrin", "Lena",
    "Maria", "Renate", "Sandra", "Tanja", "Ulrike", "Vera", "Zoe",
]

_LAST_NAMES = [
    "Müller", "Schmidt", "Schneider", "Fischer", "Weber", "Meyer",
    "Wagner", "Becker", "Schulz", "Hoffmann", "Schäfer", "Koch",
    "Bauer", "Richter", "Klein", "Wolf", "Schröder", "Neumann",
    "Schwarz", "Zimmermann", "Braun", "Krüger", "Hartmann", "Lange",
    "Krause", "Meier", "Lehmann", "Kaiser", "Fuchs", "Vogel",
]


class SyntheticDataGenerator:
    """Generiert synthetische Simulationsdaten aus einem SyntheticDataRequest."""

    def __init__(self, request: SyntheticDataRequest, seed: Optional[int] = None) -> None:
        self.request = request
        self.rng = random.Random(seed)
        self._used_names: set[str] = set()

    # ─── Fächer ───────────────────────────────────────────────────────────────

    def _generate_subjects(self) -> tuple[list[Subject], list[SubjectConstraint]]:
        subjects: list[Subject] = []
        constraints: list[SubjectConstraint] = []
        catalogue = list(SUBJECT_CATALOGUE.items())
        for i in range(self.request.num_subjects):
            sid = i + 1
            if i < len(catalogue):
                name, meta = catalogue[i]
                subjects.append(Subject(id=sid, name=name, name_en=meta["en"]))
                constraints.append(SubjectConstraint(
                    subject_id=sid,
                    requires_consecutive=meta["block"],
                    avoid_first_period=meta["avoid_first"],
                    avoid_last_period=meta["avoid_last"],
                    max_per_day=meta["max_per_day"],
                    is_heavy=meta["heavy"],
                ))
            else:
                subjects.append(Subject(id=sid, name=f"Fach {sid}"))
        return subjects, constraints

    # ─── Lehrkräfte ───────────────────────────────────────────────────────────

    def _make_name(self) -> str:
        for _ in range(50):
            name = f"{self.rng.choice(_FIRST_NAMES)} {self.rng.choice(_LAST_NAMES)}"
            if name not in self._used_names:
                self._used_names.add(name)
                return name
        # Namensraum erschöpft: nummerieren
        name = f"Lehrer {len(self._used_names) + 1}"
        self._used_names.add(name)
        return name

    def _generate_teachers(self) -> tuple[list[Teacher], list[TeacherPreference]]:
        teachers: list[Teacher] = []
        prefs: list[TeacherPreference] = []
        for i in range(self.request.num_teachers):
            tid = i + 1
            teachers.append(Teacher(id=tid, name=self._make_name()))

            # Etwa jede dritte Lehrkraft äußert Wünsche
            if self.rng.random() < 0.35:
                golden = [self.rng.choice(WORKING_DAYS)] if self.rng.random() < 0.5 else []
                prefs.append(TeacherPreference(
                    teacher_id=tid,
                    min_daily_periods=1,
                    prefer_time=self.rng.choice(list(PreferTime)),
                    teaching_style=self.rng.choice(list(TeachingStyle)),
                    golden_days=golden,
                ))
        return teachers, prefs

    # ─── Klassen ──────────────────────────────────────────────────────────────

    def _generate_classes(self) -> list[ClassGroup]:
        classes = []
        for g in range(self.request.num_grades):
            grade = GRADE_NAMES[g % len(GRADE_NAMES)]
            for c in range(self.request.classes_per_grade):
                classes.append(ClassGroup(
                    id=len(classes) + 1,
                    grade=grade,
                    class_name=CLASS_LETTERS[c % len(CLASS_LETTERS)],
                ))
        return classes

    # ─── Gesamt ───────────────────────────────────────────────────────────────

    def generate(self) -> SyntheticSnapshot:
        """Erzeugt einen vollständigen SyntheticSnapshot."""
        subjects, constraints = self._generate_subjects()
        teachers, prefs = self._generate_teachers()
        classes = self._generate_classes()

        ppd = self.request.periods_per_day
        overrides = {
            "working_days": list(WORKING_DAYS),
            "default_periods_per_day": ppd,
            "periods_per_day": {d: ppd for d in WORKING_DAYS},
        }

        model = SimulationModel(
            teachers=teachers,
            subjects=subjects,
            classes=classes,
            teacher_preferences=prefs,
            subject_constraints=constraints,
        )
        model.config = model.config.model_validate(
            {**model.config.model_dump(), **overrides}
        )

        capacity = max(len(subjects), int(len(WORKING_DAYS) * ppd * FILL_RATIO))
        for grade in model.grades:
            shares = split_weekly_periods(capacity, len(subjects), self.rng)
            for subject, periods in zip(subjects, shares):
                # Tageslimit des Fachs muss einhaltbar bleiben
                limit = model.constraint_for(subject.id).max_per_day * len(WORKING_DAYS)
                model.set_grade_periods(grade, subject.id, min(periods, limit))
        distribute_teachers_balanced(model)

        logger.info(
            f"Testdaten: {len(teachers)} Lehrkräfte, {len(subjects)} Fächer, "
            f"{len(classes)} Klassen, {len(model.requirements)} Stundenbedarfe"
        )
        return SyntheticSnapshot(
            teachers=model.teachers,
            subjects=model.subjects,
            classes=model.classes,
            requirements=model.requirements,
            teacher_preferences=model.teacher_preferences,
            subject_constraints=model.subject_constraints,
            config_overrides=overrides,
        )

    def generate_institution(self) -> InstitutionSnapshot:
        """Wie generate(), aber ohne Stundenbedarf (Institutionsdaten-Ersatz)."""
        snapshot = self.generate()
        return InstitutionSnapshot(
            teachers=snapshot.teachers,
            subjects=snapshot.subjects,
            classes=snapshot.classes,
            teacher_preferences=snapshot.teacher_preferences,
            subject_constraints=snapshot.subject_constraints,
        )
