"""Tests für Konfigurationsschema, YAML-Manager und Szenarien."""

from pathlib import Path

import pytest
from pydantic import ValidationError
from rich.prompt import Confirm, IntPrompt, Prompt

from config.defaults import (
    SUBJECT_CATALOGUE,
    WORKING_DAYS,
    default_simulation_config,
    default_simulator_config,
)
from config.manager import ConfigManager, backend_label
from config.schema import BackendConfig, BackendKind, SimulationConfig, SimulatorConfig
from models.school_model import SimulationModel


def make_manager(tmp_path: Path) -> ConfigManager:
    mgr = ConfigManager()
    mgr.CONFIG_DIR = tmp_path
    mgr.DEFAULT_CONFIG = tmp_path / "simulator_config.yaml"
    mgr.SCENARIOS_DIR = tmp_path / "scenarios"
    return mgr


# ─── DEFAULT-KONFIGURATION ────────────────────────────────────────────────────

class TestDefaultConfig:
    def test_default_simulation(self):
        """5 Tage × 7 Stunden, 120 s Zeitlimit."""
        sim = default_simulation_config()
        assert sim.working_days == WORKING_DAYS
        assert sim.weekly_periods == 35
        assert sim.max_periods == 7
        assert sim.time_limit_seconds == 120

    def test_default_simulator_is_local(self):
        config = default_simulator_config()
        assert config.backend.kind == BackendKind.LOCAL
        assert config.backend.request_timeout_seconds is None
        assert "lokal" in backend_label(config)

    def test_catalogue_entries_complete(self):
        keys = {"en", "heavy", "block", "avoid_first", "avoid_last", "max_per_day"}
        assert all(set(meta) == keys for meta in SUBJECT_CATALOGUE.values())


# ─── PYDANTIC-VALIDIERUNG ─────────────────────────────────────────────────────

class TestPydanticValidation:
    def test_periods_for_uses_default(self):
        sim = SimulationConfig(periods_per_day={"Mo": 4}, default_periods_per_day=6)
        assert sim.periods_for("Mo") == 4
        assert sim.periods_for("Di") == 6
        assert sim.weekly_periods == 4 + 4 * 6

    def test_zero_periods_rejected(self):
        with pytest.raises(ValidationError):
            SimulationConfig(periods_per_day={"Mo": 0})

    @pytest.mark.parametrize("field,value", [
        ("default_periods_per_day", 11),
        ("max_consecutive_periods", 0),
        ("time_limit_seconds", 0),
    ])
    def test_bounds(self, field, value):
        with pytest.raises(ValidationError):
            SimulationConfig(**{field: value})

    def test_http_needs_base_url(self):
        with pytest.raises(ValidationError):
            SimulatorConfig(backend=BackendConfig(kind=BackendKind.HTTP, base_url=""))

    def test_http_label(self):
        config = SimulatorConfig(backend=BackendConfig(kind=BackendKind.HTTP,
                                                       base_url="https://schule.example/api"))
        assert "https://schule.example/api" in backend_label(config)


# ─── YAML SPEICHERN / LADEN ───────────────────────────────────────────────────

class TestConfigManager:
    def test_save_and_load_roundtrip(self, tmp_path: Path):
        config = default_simulator_config()
        config.school_name = "Gesamtschule Nord"
        config.simulation.periods_per_day["Fr"] = 5
        mgr = make_manager(tmp_path)

        mgr.save(config)
        assert mgr.DEFAULT_CONFIG.exists()

        loaded = mgr.load()
        assert loaded == config
        assert loaded.simulation.periods_for("Fr") == 5

    def test_yaml_has_comments(self, tmp_path: Path):
        mgr = make_manager(tmp_path)
        mgr.save(default_simulator_config())
        text = mgr.DEFAULT_CONFIG.read_text(encoding="utf-8")
        assert text.startswith("# ====")
        assert "Solver-Anbindung" in text
        assert "Parameter für den Solver" in text

    def test_first_run_check(self, tmp_path: Path):
        mgr = make_manager(tmp_path)
        assert mgr.first_run_check() is True
        mgr.save(default_simulator_config())
        assert mgr.first_run_check() is False

    def test_load_nonexistent_raises(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            make_manager(tmp_path).load(tmp_path / "not_there.yaml")

    def test_invalid_yaml_values(self, tmp_path: Path):
        path = tmp_path / "kaputt.yaml"
        path.write_text("simulation:\n  default_periods_per_day: 99\n", encoding="utf-8")
        with pytest.raises(ValueError, match="ungültig"):
            make_manager(tmp_path).load(path)

    def test_empty_yaml_gives_defaults(self, tmp_path: Path):
        path = tmp_path / "leer.yaml"
        path.write_text("", encoding="utf-8")
        assert make_manager(tmp_path).load(path) == SimulatorConfig()

    def test_edit_rejects_invalid_grid(self, tmp_path: Path, monkeypatch):
        """Ungültige Startwerte im Bearbeitungsmenü ändern nichts."""
        answers = {Prompt: ["4", "Mo", "0"], IntPrompt: [12, 6, 3, 120], Confirm: [False]}
        for cls, queue in answers.items():
            monkeypatch.setattr(cls, "ask", lambda *a, _q=queue, **k: _q.pop(0))
        mgr = make_manager(tmp_path)
        config = default_simulator_config()
        edited = mgr.edit_interactive(config)
        assert edited.simulation == config.simulation
        assert mgr.load() == config


# ─── SZENARIEN ────────────────────────────────────────────────────────────────

def make_model() -> SimulationModel:
    model = SimulationModel()
    model.config.name = "Szenario-Test"
    model.add_teacher("Anna Müller")
    model.add_subject("Mathematik")
    model.add_class_group()
    model.upsert_requirement(1, 1, 4)
    return model


class TestScenarios:
    def test_save_and_load(self, tmp_path: Path):
        mgr = make_manager(tmp_path)
        assert mgr.save_scenario(make_model(), "versuch", "Nur zum Testen")
        loaded = mgr.load_scenario("versuch")
        assert loaded.config.name == "Szenario-Test"
        assert loaded.requirements[0].periods_per_week == 4

    def test_list(self, tmp_path: Path):
        mgr = make_manager(tmp_path)
        mgr.save_scenario(make_model(), "b_zweites")
        mgr.save_scenario(make_model(), "a_erstes", "Beschreibung")
        scenarios = mgr.list_scenarios()
        assert [s["name"] for s in scenarios] == ["a_erstes", "b_zweites"]
        assert scenarios[0]["description"] == "Beschreibung"
        assert scenarios[0]["created"]

    def test_list_empty(self, tmp_path: Path):
        assert make_manager(tmp_path).list_scenarios() == []

    def test_load_missing(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            make_manager(tmp_path).load_scenario("gibtsnicht")

    def test_overwrite_declined(self, tmp_path: Path, monkeypatch):
        mgr = make_manager(tmp_path)
        mgr.save_scenario(make_model(), "versuch")
        monkeypatch.setattr(Confirm, "ask", lambda *a, **k: False)
        changed = make_model()
        changed.config.name = "Geändert"
        assert not mgr.save_scenario(changed, "versuch")
        assert mgr.load_scenario("versuch").config.name == "Szenario-Test"

    def test_overwrite_flag(self, tmp_path: Path):
        mgr = make_manager(tmp_path)
        mgr.save_scenario(make_model(), "versuch")
        changed = make_model()
        changed.config.name = "Geändert"
        assert mgr.save_scenario(changed, "versuch", overwrite=True)
        assert mgr.load_scenario("versuch").config.name == "Geändert"
