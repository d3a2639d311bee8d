"""Tests für das SimulationModel (Aufbau, Kaskaden, Snapshots, Persistenz)."""

import pytest

from config.defaults import CLASS_LETTERS, GRADE_NAMES
from models.requirement import Requirement
from models.school_model import SimulationModel
from models.snapshot import InstitutionSnapshot, SyntheticSnapshot
from models.school_class import ClassGroup
from models.subject import Subject, SubjectConstraint
from models.teacher import Teacher, TeacherPreference


# ─── Hilfsfunktionen ──────────────────────────────────────────────────────────

def make_model() -> SimulationModel:
    """2 Lehrkräfte, 2 Fächer, 2 Klassen, Stundenbedarf für beide Klassen."""
    model = SimulationModel()
    model.add_teacher("Anna Müller")
    model.add_teacher("Bernd Weber")
    model.add_subject("Mathematik")
    model.add_subject("Deutsch")
    model.add_class_group()
    model.add_class_group()
    for cls in model.classes:
        model.upsert_requirement(cls.id, 1, 4)
        model.upsert_requirement(cls.id, 2, 3)
    return model


# ─── Lehrkräfte ───────────────────────────────────────────────────────────────

class TestTeachers:
    def test_ids_are_max_plus_one(self):
        """Neue ID = größte vorhandene ID + 1 (nicht Anzahl + 1)."""
        model = SimulationModel()
        assert model.add_teacher().id == 1
        model.add_teacher()
        model.add_teacher()
        model.remove_teacher(2)
        assert model.add_teacher().id == 4

    def test_default_name(self):
        model = SimulationModel()
        assert model.add_teacher().name == "Lehrer 1"

    def test_remove_cascades_requirements_and_preference(self):
        """Entfernen löscht genau die N Stundenbedarfe der Lehrkraft und ihren Wunsch."""
        model = make_model()
        model.assign_teacher(model.requirements[0].id, 2)
        model.upsert_teacher_preference(1, max_daily_periods=4)
        before = len(model.requirements)
        owned = sum(1 for r in model.requirements if r.teacher_id == 1)

        model.remove_teacher(1)

        assert len(model.requirements) == before - owned
        assert all(r.teacher_id != 1 for r in model.requirements)
        assert all(p.teacher_id != 1 for p in model.teacher_preferences)

    def test_rename_keeps_requirement_copy(self):
        """Die Namenskopie im Stundenbedarf bleibt beim Umbenennen erhalten."""
        model = make_model()
        model.rename_teacher(1, "Anna Schulz")
        assert model.get_teacher(1).name == "Anna Schulz"
        assert model.requirements[0].teacher_name == "Anna Müller"


# ─── Fächer & Klassen ─────────────────────────────────────────────────────────

class TestSubjectsAndClasses:
    def test_remove_subject_cascades(self):
        model = make_model()
        model.upsert_subject_constraint(1, max_per_day=1)
        model.remove_subject(1)
        assert model.get_subject(1) is None
        assert all(r.subject_id != 1 for r in model.requirements)
        assert all(c.subject_id != 1 for c in model.subject_constraints)

    def test_class_round_robin_naming(self):
        """5 Buchstaben pro Jahrgang, danach der nächste Jahrgang."""
        model = SimulationModel()
        groups = [model.add_class_group() for _ in range(len(CLASS_LETTERS) + 1)]
        assert groups[0].grade == GRADE_NAMES[0]
        assert groups[0].class_name == CLASS_LETTERS[0]
        assert groups[len(CLASS_LETTERS) - 1].class_name == CLASS_LETTERS[-1]
        assert groups[-1].grade == GRADE_NAMES[1]
        assert groups[-1].class_name == CLASS_LETTERS[0]

    def test_class_labels_unique(self):
        model = SimulationModel()
        for _ in range(12):
            model.add_class_group()
        labels = [c.label for c in model.classes]
        assert len(labels) == len(set(labels))

    def test_remove_class_cascades(self):
        model = make_model()
        model.remove_class_group(1)
        assert all(r.class_id != 1 for r in model.requirements)
        assert len(model.requirements) == 2


# ─── Stundenbedarf ────────────────────────────────────────────────────────────

class TestRequirements:
    def test_upsert_creates_with_first_teacher(self):
        model = make_model()
        req = model.find_requirement(1, 1)
        assert req.teacher_id == 1
        assert req.teacher_name == "Anna Müller"
        assert req.periods_per_week == 4

    def test_upsert_updates_existing(self):
        model = make_model()
        before = len(model.requirements)
        model.upsert_requirement(1, 1, 6)
        assert len(model.requirements) == before
        assert model.find_requirement(1, 1).periods_per_week == 6

    def test_upsert_without_teachers_is_unassigned(self):
        model = SimulationModel()
        model.add_subject()
        model.add_class_group()
        req = model.upsert_requirement(1, 1, 2)
        assert req.teacher_id is None
        assert not req.is_assigned

    def test_upsert_unknown_ids_returns_none(self):
        model = make_model()
        assert model.upsert_requirement(99, 1, 2) is None
        assert model.upsert_requirement(1, 99, 2) is None

    def test_negative_periods_rejected(self):
        model = make_model()
        with pytest.raises(ValueError):
            model.upsert_requirement(1, 1, -1)

    def test_zero_teacher_id_means_unassigned(self):
        """0 vom Server wird als 'nicht zugewiesen' gelesen."""
        req = Requirement(
            id=1, class_id=1, grade="Jahrgang 5", class_name="a",
            subject_id=1, subject_name="Mathematik", teacher_id=0,
        )
        assert req.teacher_id is None

    def test_set_grade_periods(self):
        model = make_model()
        model.set_grade_periods(GRADE_NAMES[0], 2, 5)
        assert model.grade_periods(GRADE_NAMES[0], 2) == 5
        assert all(
            r.periods_per_week == 5 for r in model.requirements if r.subject_id == 2
        )

    def test_assign_teacher_none_unassigns(self):
        model = make_model()
        req = model.requirements[0]
        model.assign_teacher(req.id, None)
        assert req.teacher_id is None
        assert req.teacher_name == ""

    def test_teacher_loads(self):
        model = make_model()
        assert model.teacher_loads() == {1: 14, 2: 0}


# ─── Leeres Modell ────────────────────────────────────────────────────────────

class TestEmptyModel:
    def test_mutations_on_empty_model(self):
        """Alle Änderungen sind auf einem leeren Modell fehlerfrei."""
        model = SimulationModel()
        model.remove_teacher(1)
        model.remove_subject(1)
        model.remove_class_group(1)
        model.assign_teacher(1, 1)
        model.set_grade_periods("Jahrgang 5", 1, 3)
        model.rename_teacher(1, "x")
        model.rename_subject(1, "x")
        assert model.upsert_requirement(1, 1, 2) is None
        assert model.grades == []
        assert model.teacher_loads() == {}

    def test_preference_defaults(self):
        model = SimulationModel()
        pref = model.preference_for(7)
        assert pref.teacher_id == 7
        assert pref.max_daily_periods == 6
        assert model.teacher_preferences == []


# ─── Wünsche & Regeln ─────────────────────────────────────────────────────────

class TestPreferencesAndConstraints:
    def test_upsert_preference_single_entry(self):
        model = make_model()
        model.upsert_teacher_preference(1, max_daily_periods=4)
        model.upsert_teacher_preference(1, golden_days=["Fr"])
        prefs = [p for p in model.teacher_preferences if p.teacher_id == 1]
        assert len(prefs) == 1
        assert prefs[0].max_daily_periods == 4
        assert prefs[0].golden_days == ["Fr"]

    def test_invalid_preference_rejected(self):
        model = make_model()
        with pytest.raises(ValueError):
            model.upsert_teacher_preference(1, min_daily_periods=5, max_daily_periods=3)
        assert model.teacher_preferences == []

    def test_upsert_constraint(self):
        model = make_model()
        c = model.upsert_subject_constraint(2, avoid_first_period=True)
        assert c.avoided_periods_count == 1
        assert model.constraint_for(2).avoid_first_period


# ─── Snapshots ────────────────────────────────────────────────────────────────

class TestSnapshots:
    def test_institution_snapshot_has_no_requirements(self):
        model = make_model()
        snapshot = InstitutionSnapshot(
            teachers=[Teacher(id=5, name="Eva Koch")],
            subjects=[Subject(id=1, name="Kunst")],
            classes=[ClassGroup(id=1, grade="Jahrgang 6", class_name="a")],
        )
        model.apply_snapshot(snapshot)
        assert [t.id for t in model.teachers] == [5]
        assert model.requirements == []

    def test_synthetic_snapshot_applies_overrides(self):
        model = SimulationModel()
        snapshot = SyntheticSnapshot(
            teachers=[Teacher(id=1, name="Eva Koch")],
            subjects=[Subject(id=1, name="Kunst")],
            classes=[ClassGroup(id=1, grade="Jahrgang 6", class_name="a")],
            requirements=[Requirement(
                id=1, class_id=1, grade="Jahrgang 6", class_name="a",
                subject_id=1, subject_name="Kunst", teacher_id=1, periods_per_week=2,
            )],
            config_overrides={"default_periods_per_day": 5, "working_days": ["Mo", "Di"]},
        )
        model.apply_snapshot(snapshot)
        assert len(model.requirements) == 1
        assert model.config.default_periods_per_day == 5
        assert model.config.working_days == ["Mo", "Di"]

    def test_invalid_overrides_leave_model_untouched(self):
        model = make_model()
        before = model.model_dump()
        snapshot = SyntheticSnapshot(
            teachers=[Teacher(id=9, name="Neu")],
            config_overrides={"default_periods_per_day": 12},
        )
        with pytest.raises(ValueError):
            model.apply_snapshot(snapshot)
        assert model.model_dump() == before

    def test_clear_empties_all_collections(self):
        model = make_model()
        model.upsert_teacher_preference(1, max_daily_periods=4)
        model.upsert_subject_constraint(1, max_per_day=1)
        model.clear()
        for coll in (model.teachers, model.subjects, model.classes, model.requirements,
                     model.teacher_preferences, model.subject_constraints):
            assert coll == []

    def test_to_instance_is_deep_copy(self):
        model = make_model()
        instance = model.to_instance()
        instance.requirements[0].periods_per_week = 99
        instance.teachers[0].name = "geändert"
        assert model.requirements[0].periods_per_week == 4
        assert model.teachers[0].name == "Anna Müller"


# ─── Persistenz ───────────────────────────────────────────────────────────────

class TestPersistence:
    def test_json_roundtrip(self, tmp_path):
        model = make_model()
        model.upsert_teacher_preference(2, golden_days=["Mi"])
        model.upsert_subject_constraint(1, is_heavy=True)
        model.assign_teacher(model.requirements[1].id, None)
        path = tmp_path / "sim.json"
        model.save_json(path)

        loaded = SimulationModel.load_json(path)
        assert loaded == model
        assert loaded.requirements[1].teacher_id is None

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            SimulationModel.load_json(tmp_path / "fehlt.json")

    def test_summary_mentions_counts(self):
        text = make_model().summary()
        assert "Lehrkräfte: 2" in text
        assert "Klassen: 2" in text
