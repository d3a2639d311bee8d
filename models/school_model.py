"""SimulationModel: Der vollständige, veränderbare Datensatz einer Simulation (Pydantic v2).

Alle Änderungen an Lehrkräften, Fächern, Klassen und Stundenbedarf laufen über
die Methoden dieses Modells, damit die Kaskaden (Wünsche, Fach-Regeln,
Stundenbedarf) nie inkonsistent werden.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, Field

from config.defaults import CLASS_LETTERS, DEFAULT_WEEKLY_QUOTA, GRADE_NAMES, default_simulation_config
from config.schema import SimulationConfig
from models.requirement import Requirement
from models.school_class import ClassGroup
from models.snapshot import InstitutionSnapshot, SimulationInstance, SyntheticSnapshot
from models.subject import Subject, SubjectConstraint
from models.teacher import Teacher, TeacherPreference

logger = logging.getLogger(__name__)


def _next_id(items) -> int:
    return max((i.id for i in items), default=0) + 1


class SimulationModel(BaseModel):
    """Lehrkräfte, Fächer, Klassen, Stundenbedarf, Wünsche, Regeln und Config."""

    teachers: list[Teacher] = []
    subjects: list[Subject] = []
    classes: list[ClassGroup] = []
    requirements: list[Requirement] = []
    teacher_preferences: list[TeacherPreference] = []
    subject_constraints: list[SubjectConstraint] = []
    config: SimulationConfig = Field(default_factory=default_simulation_config)

    # ─── Lookups ───

    def get_teacher(self, teacher_id: int) -> Optional[Teacher]:
        return next((t for t in self.teachers if t.id == teacher_id), None)

    def get_subject(self, subject_id: int) -> Optional[Subject]:
        return next((s for s in self.subjects if s.id == subject_id), None)

    def get_class(self, class_id: int) -> Optional[ClassGroup]:
        return next((c for c in self.classes if c.id == class_id), None)

    def find_requirement(self, class_id: int, subject_id: int) -> Optional[Requirement]:
        return next(
            (r for r in self.requirements
             if r.class_id == class_id and r.subject_id == subject_id),
            None,
        )

    @property
    def grades(self) -> list[str]:
        """Alle Jahrgänge in Reihenfolge ihres ersten Auftretens."""
        seen: list[str] = []
        for c in self.classes:
            if c.grade not in seen:
                seen.append(c.grade)
        return seen

    def classes_in_grade(self, grade: str) -> list[ClassGroup]:
        return [c for c in self.classes if c.grade == grade]

    def teacher_loads(self) -> dict[int, int]:
        """Zugewiesene Wochenstunden pro Lehrkraft (alle Lehrkräfte, auch ohne Stunden)."""
        loads = {t.id: 0 for t in self.teachers}
        for r in self.requirements:
            if r.teacher_id in loads:
                loads[r.teacher_id] += r.periods_per_week
        return loads

    # ─── Lehrkräfte ───

    def add_teacher(self, name: Optional[str] = None) -> Teacher:
        new_id = _next_id(self.teachers)
        teacher = Teacher(
            id=new_id,
            name=name or f"Lehrer {new_id}",
            weekly_quota=DEFAULT_WEEKLY_QUOTA,
        )
        self.teachers.append(teacher)
        return teacher

    def rename_teacher(self, teacher_id: int, name: str) -> None:
        # Stundenbedarf behält seine Namenskopie
        teacher = self.get_teacher(teacher_id)
        if teacher is not None:
            teacher.name = name

    def remove_teacher(self, teacher_id: int) -> None:
        """Entfernt die Lehrkraft samt Wunsch-Eintrag und allen ihren Stundenbedarfen."""
        self.teachers = [t for t in self.teachers if t.id != teacher_id]
        self.teacher_preferences = [
            p for p in self.teacher_preferences if p.teacher_id != teacher_id
        ]
        self.requirements = [r for r in self.requirements if r.teacher_id != teacher_id]

    # ─── Fächer ───

    def add_subject(self, name: Optional[str] = None) -> Subject:
        new_id = _next_id(self.subjects)
        subject = Subject(id=new_id, name=name or f"Fach {new_id}")
        self.subjects.append(subject)
        return subject

    def rename_subject(self, subject_id: int, name: str) -> None:
        subject = self.get_subject(subject_id)
        if subject is not None:
            subject.name = name

    def remove_subject(self, subject_id: int) -> None:
        """Entfernt das Fach samt Fach-Regel und allen zugehörigen Stundenbedarfen."""
        self.subjects = [s for s in self.subjects if s.id != subject_id]
        self.subject_constraints = [
            c for c in self.subject_constraints if c.subject_id != subject_id
        ]
        self.requirements = [r for r in self.requirements if r.subject_id != subject_id]

    # ─── Klassen ───

    def add_class_group(self) -> ClassGroup:
        """Legt eine Klasse mit Standard-Namen an.

        Round-Robin über GRADE_NAMES × CLASS_LETTERS anhand der aktuellen
        Klassenzahl: 5 Buchstaben pro Jahrgang, danach der nächste Jahrgang.
        """
        n = len(self.classes)
        grade_idx = (n // len(CLASS_LETTERS)) % len(GRADE_NAMES)
        letter_idx = n % len(CLASS_LETTERS)
        group = ClassGroup(
            id=_next_id(self.classes),
            grade=GRADE_NAMES[grade_idx],
            class_name=CLASS_LETTERS[letter_idx],
        )
        self.classes.append(group)
        return group

    def remove_class_group(self, class_id: int) -> None:
        self.classes = [c for c in self.classes if c.id != class_id]
        self.requirements = [r for r in self.requirements if r.class_id != class_id]

    # ─── Stundenbedarf ───

    def upsert_requirement(
        self, class_id: int, subject_id: int, periods: int
    ) -> Optional[Requirement]:
        """Setzt die Wochenstunden für (Klasse, Fach).

        Existiert noch kein Eintrag, wird die erste Lehrkraft zugewiesen
        (bzw. keine, wenn es noch keine Lehrkräfte gibt). Unbekannte Klassen
        oder Fächer → None.
        """
        if periods < 0:
            raise ValueError(f"Wochenstunden müssen >= 0 sein (erhalten: {periods})")

        existing = self.find_requirement(class_id, subject_id)
        if existing is not None:
            existing.periods_per_week = periods
            return existing

        cls = self.get_class(class_id)
        subject = self.get_subject(subject_id)
        if cls is None or subject is None:
            logger.debug(
                f"upsert_requirement ignoriert: Klasse {class_id} / Fach {subject_id} unbekannt"
            )
            return None

        first = self.teachers[0] if self.teachers else None
        req = Requirement(
            id=_next_id(self.requirements),
            class_id=cls.id,
            grade=cls.grade,
            class_name=cls.class_name,
            subject_id=subject.id,
            subject_name=subject.name,
            teacher_id=first.id if first else None,
            teacher_name=first.name if first else "",
            periods_per_week=periods,
        )
        self.requirements.append(req)
        return req

    def set_grade_periods(self, grade: str, subject_id: int, periods: int) -> None:
        """Setzt die Wochenstunden eines Fachs für alle Klassen eines Jahrgangs."""
        for cls in self.classes_in_grade(grade):
            self.upsert_requirement(cls.id, subject_id, periods)

    def grade_periods(self, grade: str, subject_id: int) -> int:
        """Wochenstunden eines Fachs im Jahrgang (erster gefundener Eintrag, sonst 0)."""
        for r in self.requirements:
            if r.grade == grade and r.subject_id == subject_id:
                return r.periods_per_week
        return 0

    def assign_teacher(self, requirement_id: int, teacher_id: Optional[int]) -> None:
        """Weist einem Stundenbedarf eine Lehrkraft zu (None = Zuweisung aufheben)."""
        req = next((r for r in self.requirements if r.id == requirement_id), None)
        if req is None:
            return
        teacher = self.get_teacher(teacher_id) if teacher_id is not None else None
        req.teacher_id = teacher.id if teacher else None
        req.teacher_name = teacher.name if teacher else ""

    # ─── Wünsche & Fach-Regeln ───

    def preference_for(self, teacher_id: int) -> TeacherPreference:
        """Gespeicherter Wunsch-Eintrag oder die Defaults."""
        for p in self.teacher_preferences:
            if p.teacher_id == teacher_id:
                return p
        return TeacherPreference(teacher_id=teacher_id)

    def upsert_teacher_preference(self, teacher_id: int, **updates) -> TeacherPreference:
        current = self.preference_for(teacher_id)
        merged = TeacherPreference.model_validate(
            {**current.model_dump(), **updates, "teacher_id": teacher_id}
        )
        self.teacher_preferences = [
            p for p in self.teacher_preferences if p.teacher_id != teacher_id
        ] + [merged]
        return merged

    def constraint_for(self, subject_id: int) -> SubjectConstraint:
        for c in self.subject_constraints:
            if c.subject_id == subject_id:
                return c
        return SubjectConstraint(subject_id=subject_id)

    def upsert_subject_constraint(self, subject_id: int, **updates) -> SubjectConstraint:
        current = self.constraint_for(subject_id)
        merged = SubjectConstraint.model_validate(
            {**current.model_dump(), **updates, "subject_id": subject_id}
        )
        self.subject_constraints = [
            c for c in self.subject_constraints if c.subject_id != subject_id
        ] + [merged]
        return merged

    # ─── Datenquelle ───

    def clear(self) -> None:
        """Verwirft alle sechs Entitäts-Sammlungen (Config bleibt erhalten)."""
        self.teachers = []
        self.subjects = []
        self.classes = []
        self.requirements = []
        self.teacher_preferences = []
        self.subject_constraints = []

    def apply_snapshot(
        self, snapshot: Union[InstitutionSnapshot, SyntheticSnapshot]
    ) -> None:
        """Ersetzt den Datensatz durch einen Snapshot.

        Config-Überschreibungen werden vor jeder Änderung validiert; bei
        ungültigen Werten (ValueError) bleibt das Modell unverändert.
        """
        config = self.config
        requirements = []  # Institutionsdaten bringen keinen Stundenbedarf mit
        if isinstance(snapshot, SyntheticSnapshot):
            requirements = list(snapshot.requirements)
            if snapshot.config_overrides:
                config = SimulationConfig.model_validate(
                    {**self.config.model_dump(), **snapshot.config_overrides}
                )
        self.teachers = list(snapshot.teachers)
        self.subjects = list(snapshot.subjects)
        self.classes = list(snapshot.classes)
        self.teacher_preferences = list(snapshot.teacher_preferences)
        self.subject_constraints = list(snapshot.subject_constraints)
        self.requirements = requirements
        self.config = config

    def to_instance(self) -> SimulationInstance:
        """Tiefe Kopie des aktuellen Stands als Solver-Instanz."""
        snapshot = self.model_copy(deep=True)
        return SimulationInstance(
            teachers=snapshot.teachers,
            subjects=snapshot.subjects,
            classes=snapshot.classes,
            requirements=snapshot.requirements,
            teacher_preferences=snapshot.teacher_preferences,
            subject_constraints=snapshot.subject_constraints,
            config=snapshot.config,
        )

    # ─── Übersicht ───

    def summary(self) -> str:
        """Kurze Übersicht über den Datensatz."""
        total_need = sum(r.periods_per_week for r in self.requirements)
        unassigned = sum(1 for r in self.requirements if not r.is_assigned)
        lines = [
            f"Simulation: {self.config.name}",
            f"Tage: {', '.join(self.config.working_days) or '—'}",
            f"Lehrkräfte: {len(self.teachers)}",
            f"Fächer: {len(self.subjects)}",
            f"Klassen: {len(self.classes)} ({len(self.grades)} Jahrgänge)",
            f"Stundenbedarf: {len(self.requirements)} Einträge, {total_need}h/Woche",
            f"Ohne Lehrkraft: {unassigned}" if unassigned else "",
        ]
        return "\n".join(l for l in lines if l)

    # ─── Persistenz ────────────────────────────────────────────────────────

    def save_json(self, path: Path) -> None:
        """Speichert den kompletten Datensatz als JSON-Datei."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(self.model_dump_json(indent=2))

    @classmethod
    def load_json(cls, path: Path) -> "SimulationModel":
        """Lädt einen Datensatz aus einer JSON-Datei."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"JSON-Datei nicht gefunden: {path}")
        with open(path, "r", encoding="utf-8") as f:
            return cls.model_validate_json(f.read())
