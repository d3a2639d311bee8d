"""Konfigurationsmanager: Laden, Speichern, Szenarien und interaktives Bearbeiten.

Nutzt ruamel.yaml für YAML-Serialisierung mit Kommentaren. Szenarien sind
gespeicherte Simulations-Datensätze (JSON) mit einer kleinen Metadaten-Datei.
"""

import json
from datetime import date
from pathlib import Path
from typing import Optional

from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table
from rich import box
from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap

from config.schema import BackendConfig, BackendKind, GeneratorConfig, SimulatorConfig
from models.school_model import SimulationModel

console = Console()
yaml = YAML()
yaml.default_flow_style = False
yaml.width = 120


# ─── YAML-KOMMENTAR-AUFBAU ───

_YAML_HEADER = f"""\
# ============================================
# Stundenplan-Simulator — Konfiguration
# Erstellt: {date.today().isoformat()}
# ============================================
"""

_SECTION_COMMENTS = {
    "backend": (
        "Solver-Anbindung",
        "kind: local = CP-SAT im Prozess, http = Schulverwaltungs-API.",
    ),
    "generator": (
        "Testdaten",
        "Umfang der synthetischen Daten. seed: null = nicht reproduzierbar.",
    ),
    "simulation": (
        "Simulation",
        "Startwerte für neue Simulationen (Tage, Stunden, Grenzen, Zeitlimit).",
    ),
}


class ConfigManager:
    CONFIG_DIR = Path("config")
    DEFAULT_CONFIG = CONFIG_DIR / "simulator_config.yaml"
    SCENARIOS_DIR = Path("scenarios")

    def first_run_check(self) -> bool:
        """Gibt True zurück wenn noch keine Config existiert (Erstaufruf)."""
        return not self.DEFAULT_CONFIG.exists()

    # ─── Laden ───

    def load(self, path: Optional[Path] = None) -> SimulatorConfig:
        """Lade Config aus YAML. Validiert automatisch via Pydantic."""
        target = path or self.DEFAULT_CONFIG
        if not target.exists():
            raise FileNotFoundError(
                f"Konfigurationsdatei nicht gefunden: {target}\n"
                f"Führen Sie 'python main.py setup' aus, um den Simulator einzurichten."
            )
        with open(target, "r", encoding="utf-8") as f:
            raw = yaml.load(f)
        try:
            return SimulatorConfig.model_validate(dict(raw or {}))
        except ValidationError as e:
            raise ValueError(
                f"Konfigurationsdatei ungültig: {target}\n"
                f"Pydantic-Fehler: {e}"
            ) from e

    # ─── Speichern ───

    def save(self, config: SimulatorConfig, path: Optional[Path] = None) -> None:
        """Speichere Config als YAML mit deutschen Kommentaren."""
        target = path or self.DEFAULT_CONFIG
        target.parent.mkdir(parents=True, exist_ok=True)

        data = self._build_commented_yaml(config)

        with open(target, "w", encoding="utf-8") as f:
            f.write(_YAML_HEADER + "\n")
            yaml.dump(data, f)

        console.print(f"[green]✓[/green] Konfiguration gespeichert: {target}")

    def _build_commented_yaml(self, config: SimulatorConfig) -> CommentedMap:
        """Baut die YAML-Struktur mit Kommentaren auf."""
        raw = json.loads(config.model_dump_json())
        cm = CommentedMap(raw)

        for field, (label, comment) in _SECTION_COMMENTS.items():
            cm.yaml_set_comment_before_after_key(
                field,
                before=f"\n─── {label} ───" + (f"\n{comment}" if comment else ""),
            )

        sim_map = CommentedMap(cm["simulation"])
        sim_map.yaml_add_eol_comment("Parameter für den Solver", "time_limit_seconds")
        cm["simulation"] = sim_map

        backend_map = CommentedMap(cm["backend"])
        backend_map.yaml_add_eol_comment("null = kein Client-Timeout", "request_timeout_seconds")
        cm["backend"] = backend_map

        return cm

    # ─── Szenarios ───

    def _scenario_paths(self, name: str) -> tuple[Path, Path]:
        return (
            self.SCENARIOS_DIR / f"{name}.json",
            self.SCENARIOS_DIR / f"{name}.meta.yaml",
        )

    def save_scenario(self, model: SimulationModel, name: str,
                      description: str = "", overwrite: bool = False) -> bool:
        """Speichert einen Simulations-Datensatz als benanntes Szenario.

        Existiert das Szenario bereits und ist overwrite nicht gesetzt, wird
        nachgefragt. Rückgabe: True wenn gespeichert wurde.
        """
        self.SCENARIOS_DIR.mkdir(parents=True, exist_ok=True)
        path, meta_path = self._scenario_paths(name)
        if path.exists() and not overwrite:
            if not Confirm.ask(
                f"Szenario '{name}' existiert bereits. Überschreiben?", default=False
            ):
                console.print("[yellow]Abgebrochen.[/yellow]")
                return False
        model.save_json(path)
        with open(meta_path, "w", encoding="utf-8") as f:
            yaml.dump({
                "name": name,
                "description": description,
                "created": date.today().isoformat(),
                "simulation": model.config.name,
            }, f)
        console.print(f"[green]✓[/green] Szenario '{name}' gespeichert.")
        return True

    def list_scenarios(self) -> list[dict]:
        """Listet alle gespeicherten Szenarien auf."""
        if not self.SCENARIOS_DIR.exists():
            return []
        scenarios = []
        for p in sorted(self.SCENARIOS_DIR.glob("*.json")):
            meta_path = self.SCENARIOS_DIR / f"{p.stem}.meta.yaml"
            description = ""
            created = ""
            if meta_path.exists():
                with open(meta_path, "r", encoding="utf-8") as f:
                    meta = yaml.load(f) or {}
                    description = meta.get("description", "")
                    created = str(meta.get("created", ""))
            scenarios.append({
                "name": p.stem,
                "path": str(p),
                "description": description,
                "created": created,
            })
        return scenarios

    def load_scenario(self, name: str) -> SimulationModel:
        """Lädt ein gespeichertes Szenario."""
        path, _ = self._scenario_paths(name)
        if not path.exists():
            raise FileNotFoundError(
                f"Szenario '{name}' nicht gefunden. "
                f"Verfügbar: {[s['name'] for s in self.list_scenarios()]}"
            )
        return SimulationModel.load_json(path)

    # ─── Interaktives Bearbeiten ───

    def edit_interactive(self, config: SimulatorConfig) -> SimulatorConfig:
        """Interaktives Bearbeitungsmenü für die Konfiguration."""
        while True:
            console.print()
            console.print(Panel(
                "[bold]Konfiguration bearbeiten[/bold]",
                border_style="cyan",
            ))
            console.print("  [bold]1.[/bold] Schulname")
            console.print("  [bold]2.[/bold] Solver-Anbindung")
            console.print("  [bold]3.[/bold] Testdaten")
            console.print("  [bold]4.[/bold] Simulations-Startwerte")
            console.print("  [bold]0.[/bold] Speichern & Zurück")

            choice = Prompt.ask("\nAuswahl", default="0")

            if choice == "1":
                config = config.model_copy(update={
                    "school_name": Prompt.ask("Name der Schule", default=config.school_name)
                })
            elif choice == "2":
                config = config.model_copy(
                    update={"backend": self._edit_backend(config.backend)}
                )
            elif choice == "3":
                config = config.model_copy(
                    update={"generator": self._edit_generator(config.generator)}
                )
            elif choice == "4":
                from config.wizard import wizard_simulation
                try:
                    config = config.model_copy(
                        update={"simulation": wizard_simulation(config.simulation)}
                    )
                except ValueError as e:
                    console.print(f"[red]Ungültige Eingabe: {e}[/red]")
            elif choice == "0":
                self.save(config)
                break
            else:
                console.print("[yellow]Ungültige Auswahl.[/yellow]")

        return config

    def _show_section(self, title: str, values: dict) -> None:
        table = Table(title=title, box=box.SIMPLE)
        table.add_column("Parameter", style="bold")
        table.add_column("Aktuell")
        for k, v in values.items():
            table.add_row(k, str(v))
        console.print(table)

    def _edit_backend(self, bc: BackendConfig) -> BackendConfig:
        """Solver-Anbindung interaktiv anpassen."""
        self._show_section("Aktuelle Solver-Anbindung", bc.model_dump(exclude={"token"}))
        if not Confirm.ask("Änderungen vornehmen?", default=False):
            return bc
        from config.wizard import _wizard_backend
        return _wizard_backend(bc)

    def _edit_generator(self, gc: GeneratorConfig) -> GeneratorConfig:
        """Testdaten-Umfang interaktiv anpassen."""
        self._show_section("Aktuelle Testdaten-Parameter", gc.model_dump())
        if not Confirm.ask("Änderungen vornehmen?", default=False):
            return gc
        return GeneratorConfig(
            num_teachers=IntPrompt.ask("Lehrkräfte", default=gc.num_teachers),
            num_subjects=IntPrompt.ask("Fächer", default=gc.num_subjects),
            num_grades=IntPrompt.ask("Jahrgänge", default=gc.num_grades),
            classes_per_grade=IntPrompt.ask("Klassen pro Jahrgang",
                                            default=gc.classes_per_grade),
            seed=gc.seed,
        )


def backend_label(config: SimulatorConfig) -> str:
    """Kurzbeschreibung der Solver-Anbindung für Ausgaben."""
    if config.backend.kind == BackendKind.HTTP:
        return f"HTTP ({config.backend.base_url}{config.backend.api_prefix})"
    return "lokal (CP-SAT)"
