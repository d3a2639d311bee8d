"""Tests für die Kommandozeile (click.testing.CliRunner)."""

from pathlib import Path

import pytest
from click.testing import CliRunner

from config.defaults import default_simulator_config
from config.manager import ConfigManager
from main import cli

GENERATE_SMALL = [
    "generate", "--teachers", "4", "--subjects", "3",
    "--grades", "1", "--classes-per-grade", "1",
]


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch) -> Path:
    """Arbeitsverzeichnis mit gespeicherter Default-Config (lokales Backend)."""
    monkeypatch.chdir(tmp_path)
    config = default_simulator_config()
    config.simulation.time_limit_seconds = 10
    ConfigManager().save(config)
    return tmp_path


class TestWithoutConfig:
    def test_help_lists_commands(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for name in ("setup", "config", "generate", "load", "distribute", "validate",
                     "wizard", "run", "show", "export", "scenario"):
            assert name in result.output

    def test_config_show_needs_setup(self, runner, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(cli, ["config", "show"])
        assert result.exit_code == 1
        assert "setup" in result.output

    def test_run_needs_dataset(self, runner, workdir):
        result = runner.invoke(cli, ["run"])
        assert result.exit_code == 1
        assert "Kein Datensatz" in result.output


class TestDataset:
    def test_config_show(self, runner, workdir):
        result = runner.invoke(cli, ["config", "show"])
        assert result.exit_code == 0
        assert "Muster-Schule" in result.output

    def test_generate_and_validate(self, runner, workdir):
        result = runner.invoke(cli, GENERATE_SMALL)
        assert result.exit_code == 0, result.output
        assert (workdir / "output" / "simulation.json").exists()

        result = runner.invoke(cli, ["validate", "--strict"])
        assert result.exit_code == 0, result.output
        assert "Lehrkräfte: 4" in result.output

    def test_load_institution(self, runner, workdir):
        result = runner.invoke(cli, ["load"])
        assert result.exit_code == 0, result.output
        assert "Stundenbedarf: 0 Einträge" in result.output

    @pytest.mark.parametrize("mode", ["random-periods", "random-teachers", "balanced-teachers"])
    def test_distribute(self, runner, workdir, mode):
        runner.invoke(cli, GENERATE_SMALL)
        result = runner.invoke(cli, ["distribute", mode, "--seed", "3"])
        assert result.exit_code == 0, result.output


class TestRunAndResults:
    def test_run_show_export(self, runner, workdir):
        assert runner.invoke(cli, GENERATE_SMALL).exit_code == 0

        result = runner.invoke(cli, ["run", "--time-limit", "10"])
        assert result.exit_code == 0, result.output
        assert (workdir / "output" / "result.json").exists()

        for view in ("class", "teacher", "heatmap"):
            result = runner.invoke(cli, ["show", "--view", view])
            assert result.exit_code == 0, result.output

        result = runner.invoke(cli, ["export", "-o", "output/plan.xlsx"])
        assert result.exit_code == 0, result.output
        assert (workdir / "output" / "plan.xlsx").exists()

    def test_infeasible_run_exits_1(self, runner, workdir):
        assert runner.invoke(cli, GENERATE_SMALL).exit_code == 0
        # Zwei Stunden pro Tag reichen nicht für den generierten Bedarf
        from models.school_model import SimulationModel
        path = workdir / "output" / "simulation.json"
        model = SimulationModel.load_json(path)
        model.config.default_periods_per_day = 2
        model.config.periods_per_day = {}
        model.save_json(path)

        result = runner.invoke(cli, ["run"])
        assert result.exit_code == 1
        assert (workdir / "output" / "result.json").exists()

    def test_show_without_result(self, runner, workdir):
        runner.invoke(cli, GENERATE_SMALL)
        result = runner.invoke(cli, ["show"])
        assert result.exit_code == 1
        assert "Kein Ergebnis" in result.output


class TestScenarioCommands:
    def test_save_list_load(self, runner, workdir):
        runner.invoke(cli, GENERATE_SMALL)
        result = runner.invoke(cli, ["scenario", "save", "klein", "-d", "Vier Lehrkräfte"])
        assert result.exit_code == 0, result.output
        assert (workdir / "scenarios" / "klein.json").exists()

        result = runner.invoke(cli, ["scenario", "list"])
        assert "klein" in result.output

        (workdir / "output" / "simulation.json").unlink()
        result = runner.invoke(cli, ["scenario", "load", "klein"])
        assert result.exit_code == 0, result.output
        assert (workdir / "output" / "simulation.json").exists()

    def test_load_unknown(self, runner, workdir):
        result = runner.invoke(cli, ["scenario", "load", "gibtsnicht"])
        assert result.exit_code == 1

    def test_list_empty(self, runner, workdir):
        result = runner.invoke(cli, ["scenario", "list"])
        assert "Keine Szenarien" in result.output
