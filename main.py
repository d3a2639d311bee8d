"""Stundenplan-Simulator — Haupt-CLI.

Verwendung:
  python main.py setup                    Ersteinrichtung (Wizard)
  python main.py config edit              Konfiguration bearbeiten
  python main.py config show              Konfiguration anzeigen
  python main.py generate                 Testdaten erzeugen
  python main.py load                     Institutionsdaten laden
  python main.py distribute <modus>       Stunden/Lehrkräfte vorbelegen
  python main.py validate                 Kapazitäts- und Konflikt-Check
  python main.py wizard                   Interaktiver Simulations-Wizard
  python main.py run                      Simulation starten
  python main.py show --view teacher      Ergebnis anzeigen
  python main.py export                   Ergebnis als Excel exportieren
  python main.py scenario save <name>     Szenario speichern
  python main.py scenario load <name>     Szenario laden
  python main.py scenario list            Szenarien auflisten
"""

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich import box

console = Console()

# Standard-Pfade für den Arbeitsstand zwischen zwei Aufrufen
DEFAULT_SESSION_JSON = Path("output/simulation.json")
DEFAULT_RESULT_JSON = Path("output/result.json")


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=verbose)],
        force=True,
    )


def _load_config_or_abort():
    """Lädt die Konfiguration oder bricht mit Fehlermeldung ab."""
    from config.manager import ConfigManager
    mgr = ConfigManager()
    if mgr.first_run_check():
        console.print(
            "[red]Keine Konfiguration gefunden.[/red]\n"
            "Führen Sie zunächst [bold]python main.py setup[/bold] aus."
        )
        sys.exit(1)
    try:
        return mgr, mgr.load()
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)


def _load_model_or_abort(json_path: str):
    """Lädt den gespeicherten Simulations-Datensatz oder bricht ab."""
    from models.school_model import SimulationModel
    p = Path(json_path)
    if not p.exists():
        console.print(
            f"[red]Kein Datensatz gefunden: {p}[/red]\n"
            "Verwenden Sie [bold]python main.py generate[/bold] "
            "oder [bold]python main.py load[/bold]."
        )
        sys.exit(1)
    return SimulationModel.load_json(p)


def _load_result_or_abort(result_path: str):
    from solver.backend import RunResult
    p = Path(result_path)
    if not p.exists():
        console.print(
            f"[red]Kein Ergebnis gefunden: {p}[/red]\n"
            "Führen Sie zunächst [bold]python main.py run[/bold] aus."
        )
        sys.exit(1)
    with open(p, "r", encoding="utf-8") as f:
        return RunResult.model_validate_json(f.read())


def _save_result(result, result_path: str) -> None:
    p = Path(result_path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with open(p, "w", encoding="utf-8") as f:
        f.write(result.model_dump_json(indent=2))
    console.print(f"[green]✓[/green] Ergebnis gespeichert: {p}")


def _close_backend(backend) -> None:
    close = getattr(backend, "close", None)
    if close is not None:
        close()


# ─── SETUP ────────────────────────────────────────────────────────────────────

@click.command("setup")
def cmd_setup():
    """Ersteinrichtung: Simulator-Konfiguration mit dem Setup-Wizard anlegen."""
    from config.wizard import run_wizard
    from config.manager import ConfigManager

    mgr = ConfigManager()
    if not mgr.first_run_check():
        console.print(
            "[yellow]Eine Konfiguration existiert bereits.[/yellow]\n"
            "Verwenden Sie [bold]python main.py config edit[/bold] zum Bearbeiten."
        )
        if not click.confirm("Trotzdem neu einrichten?", default=False):
            return

    config = run_wizard()
    if config is not None:
        mgr.save(config)
        console.print("[bold green]Einrichtung abgeschlossen![/bold green]")
        console.print("Führen Sie jetzt [bold]python main.py generate[/bold] aus.")


# ─── CONFIG ───────────────────────────────────────────────────────────────────

@click.group("config")
def cmd_config():
    """Konfiguration anzeigen oder bearbeiten."""


@cmd_config.command("show")
def config_show():
    """Zeigt die aktuelle Konfiguration an."""
    from config.manager import backend_label
    from config.wizard import show_period_grid

    mgr, config = _load_config_or_abort()

    console.print(Panel(
        f"[bold]{config.school_name}[/bold]  |  Backend: {backend_label(config)}",
        title="Simulator-Konfiguration",
        border_style="cyan",
    ))

    sim = config.simulation
    show_period_grid(sim)
    console.print(
        f"[bold]Grenzen:[/bold] max. {sim.max_teacher_periods_per_day} Std./Tag je Lehrkraft | "
        f"max. {sim.max_consecutive_periods} am Stück | "
        f"Zeitlimit {sim.time_limit_seconds}s"
    )

    gen = config.generator
    console.print(
        f"[bold]Testdaten:[/bold] {gen.num_teachers} Lehrkräfte | "
        f"{gen.num_subjects} Fächer | {gen.num_grades}×{gen.classes_per_grade} Klassen | "
        f"Seed {gen.seed if gen.seed is not None else '—'}"
    )


@cmd_config.command("edit")
def config_edit():
    """Bearbeitet die Konfiguration interaktiv."""
    mgr, config = _load_config_or_abort()
    mgr.edit_interactive(config)


# ─── GENERATE / LOAD ──────────────────────────────────────────────────────────

def _new_session(config):
    from models.school_model import SimulationModel
    from session.controller import SimulationSession
    model = SimulationModel(config=config.simulation.model_copy(deep=True))
    return SimulationSession(model)


@click.command("generate")
@click.option("--teachers", type=int, default=None, help="Anzahl Lehrkräfte.")
@click.option("--subjects", type=int, default=None, help="Anzahl Fächer.")
@click.option("--grades", type=int, default=None, help="Anzahl Jahrgänge.")
@click.option("--classes-per-grade", type=int, default=None, help="Klassen pro Jahrgang.")
@click.option("--json-path", default=str(DEFAULT_SESSION_JSON),
              help="Pfad für den Datensatz.")
def cmd_generate(teachers, subjects, grades, classes_per_grade, json_path: str):
    """Erzeugt synthetische Testdaten inkl. Stundenbedarf."""
    from models.snapshot import DataSource, SyntheticDataRequest
    from solver.factory import create_backend

    mgr, config = _load_config_or_abort()
    gen = config.generator
    request = SyntheticDataRequest(
        num_teachers=teachers or gen.num_teachers,
        num_subjects=subjects or gen.num_subjects,
        num_grades=grades or gen.num_grades,
        classes_per_grade=classes_per_grade or gen.classes_per_grade,
        periods_per_day=config.simulation.default_periods_per_day,
    )

    session = _new_session(config)
    session.switch_data_source(DataSource.CUSTOM)
    backend = create_backend(config)
    console.print("[bold]Testdaten werden generiert...[/bold]")
    try:
        ok = session.generate_synthetic(backend, request)
    finally:
        _close_backend(backend)
    if not ok:
        console.print(f"[red bold]Testdaten fehlgeschlagen:[/red bold] {session.error}")
        sys.exit(1)

    console.print(f"\n[dim]{session.model.summary()}[/dim]")
    session.capacity.print_rich()
    session.model.save_json(Path(json_path))
    console.print(f"[green]✓[/green] Datensatz gespeichert: {json_path}")


@click.command("load")
@click.option("--json-path", default=str(DEFAULT_SESSION_JSON),
              help="Pfad für den Datensatz.")
def cmd_load(json_path: str):
    """Lädt die Institutionsdaten (ohne Stundenbedarf) als neuen Datensatz."""
    from models.snapshot import DataSource
    from solver.factory import create_backend

    mgr, config = _load_config_or_abort()
    session = _new_session(config)
    session.switch_data_source(DataSource.EXISTING)
    backend = create_backend(config)
    try:
        ok = session.load_institution(backend)
    finally:
        _close_backend(backend)
    if not ok:
        console.print(f"[red bold]Laden fehlgeschlagen:[/red bold] {session.error}")
        sys.exit(1)

    console.print(f"[green]✓[/green] Institutionsdaten geladen.\n{session.model.summary()}")
    session.model.save_json(Path(json_path))
    console.print(f"[green]✓[/green] Datensatz gespeichert: {json_path}")


# ─── DISTRIBUTE ───────────────────────────────────────────────────────────────

@click.command("distribute")
@click.argument("mode", type=click.Choice(
    ["random-periods", "random-teachers", "balanced-teachers"]))
@click.option("--seed", type=int, default=None, help="Zufalls-Seed.")
@click.option("--json-path", default=str(DEFAULT_SESSION_JSON),
              help="Pfad zum gespeicherten Datensatz.")
def cmd_distribute(mode: str, seed, json_path: str):
    """Belegt Wochenstunden oder Lehrkräfte per Heuristik vor."""
    import random
    from session.controller import SimulationSession

    model = _load_model_or_abort(json_path)
    session = SimulationSession(model, rng=random.Random(seed))

    if not model.teachers or not model.subjects:
        console.print("[yellow]Keine Lehrkräfte oder Fächer vorhanden, nichts zu tun.[/yellow]")
        return

    if mode == "random-periods":
        allocation = session.generate_random_periods()
        for grade, periods in allocation.items():
            console.print(f"  {grade}: {sum(periods.values())} Std./Woche")
    elif mode == "random-teachers":
        session.distribute_teachers_randomly()
    else:
        loads = session.distribute_teachers_balanced()
        table = Table(title="Lehrerlast", box=box.ROUNDED)
        table.add_column("Lehrkraft")
        table.add_column("Std./Woche", justify="right")
        for t in model.teachers:
            table.add_row(t.name, str(loads.get(t.id, 0)))
        console.print(table)

    session.capacity.print_rich()
    model.save_json(Path(json_path))
    console.print(f"[green]✓[/green] Datensatz gespeichert: {json_path}")


# ─── VALIDATE ─────────────────────────────────────────────────────────────────

@click.command("validate")
@click.option("--json-path", default=str(DEFAULT_SESSION_JSON),
              help="Pfad zum gespeicherten Datensatz.")
@click.option("--strict", is_flag=True, default=False,
              help="Exit-Code 1 bei Überkapazität.")
def cmd_validate(json_path: str, strict: bool):
    """Kapazitäts-Check und Konflikt-Vorprüfung des Datensatzes."""
    from analysis.capacity import analyze_capacity
    from analysis.conflicts import ConflictAnalyzer

    model = _load_model_or_abort(json_path)
    console.print(f"\n{model.summary()}\n")
    report = analyze_capacity(model)
    report.print_rich()

    conflicts = ConflictAnalyzer(model.to_instance()).analyze()
    for c in conflicts:
        color = "red" if c.is_critical else "yellow"
        console.print(f"  [{color}]• {c.message}[/{color}]")
        if c.suggestion:
            console.print(f"    [dim]{c.suggestion}[/dim]")

    if strict and report.over_capacity:
        sys.exit(1)


# ─── WIZARD ───────────────────────────────────────────────────────────────────

@click.command("wizard")
@click.option("--resume", is_flag=True, default=False,
              help="Gespeicherten Datensatz weiterbearbeiten.")
@click.option("--json-path", default=str(DEFAULT_SESSION_JSON),
              help="Pfad zum Datensatz.")
@click.option("--result-path", default=str(DEFAULT_RESULT_JSON),
              help="Pfad für das Ergebnis.")
def cmd_wizard(resume: bool, json_path: str, result_path: str):
    """Interaktiver Simulations-Wizard in sechs Schritten."""
    from session.controller import SimulationSession
    from session.interactive import InteractiveWizard
    from solver.factory import create_backend

    mgr, config = _load_config_or_abort()
    if resume:
        session = SimulationSession(_load_model_or_abort(json_path))
    else:
        session = _new_session(config)

    backend = create_backend(config)
    try:
        InteractiveWizard(session, backend, config.generator, console=console).run()
    finally:
        _close_backend(backend)

    session.model.save_json(Path(json_path))
    console.print(f"[green]✓[/green] Datensatz gespeichert: {json_path}")
    if session.result is not None:
        _save_result(session.result, result_path)


# ─── RUN ──────────────────────────────────────────────────────────────────────

@click.command("run")
@click.option("--json-path", default=str(DEFAULT_SESSION_JSON),
              help="Pfad zum gespeicherten Datensatz.")
@click.option("--result-path", default=str(DEFAULT_RESULT_JSON),
              help="Pfad für das Ergebnis.")
@click.option("--time-limit", type=int, default=None,
              help="Zeitlimit für den Solver (Sekunden).")
def cmd_run(json_path: str, result_path: str, time_limit):
    """Startet die Simulation für den gespeicherten Datensatz."""
    from export import ResultPresenter
    from session.controller import SimulationSession
    from session.steps import StepGateError, WizardStep
    from solver.factory import create_backend
    from solver.orchestrator import RunOrchestrator

    mgr, config = _load_config_or_abort()
    session = SimulationSession(_load_model_or_abort(json_path))
    if time_limit is not None:
        session.update_config(time_limit_seconds=time_limit)

    try:
        while session.step != WizardStep.REVIEW_AND_RUN:
            session.next_step()
    except StepGateError as e:
        console.print(f"[red]Simulation nicht möglich:[/red] {e}")
        sys.exit(1)

    session.capacity.print_rich()
    backend = create_backend(config)
    try:
        with console.status("Simulation läuft..."):
            result = session.run(RunOrchestrator(backend))
    finally:
        _close_backend(backend)

    ResultPresenter(result, session.model.config, console=console).print_summary()
    _save_result(result, result_path)
    sys.exit(0 if result.has_schedule else 1)


# ─── SHOW ─────────────────────────────────────────────────────────────────────

@click.command("show")
@click.option("--view", "view", type=click.Choice(["class", "teacher", "heatmap"]),
              default="class", help="Sicht auf das Ergebnis.")
@click.option("--json-path", default=str(DEFAULT_SESSION_JSON),
              help="Pfad zum gespeicherten Datensatz.")
@click.option("--result-path", default=str(DEFAULT_RESULT_JSON),
              help="Pfad zum Ergebnis.")
def cmd_show(view: str, json_path: str, result_path: str):
    """Zeigt das letzte Simulationsergebnis an."""
    from export import ResultPresenter, ViewMode

    model = _load_model_or_abort(json_path)
    result = _load_result_or_abort(result_path)
    ResultPresenter(result, model.config, console=console).show(ViewMode(view))


# ─── EXPORT ───────────────────────────────────────────────────────────────────

@click.command("export")
@click.option("--output", "-o", default="output/simulation.xlsx",
              help="Ausgabepfad der Excel-Datei.")
@click.option("--json-path", default=str(DEFAULT_SESSION_JSON),
              help="Pfad zum gespeicherten Datensatz.")
@click.option("--result-path", default=str(DEFAULT_RESULT_JSON),
              help="Pfad zum Ergebnis.")
def cmd_export(output: str, json_path: str, result_path: str):
    """Exportiert das letzte Simulationsergebnis als Excel-Datei."""
    from export import ExcelExporter

    mgr, config = _load_config_or_abort()
    model = _load_model_or_abort(json_path)
    result = _load_result_or_abort(result_path)
    path = ExcelExporter(result, model.config, school_name=config.school_name).export(
        Path(output)
    )
    console.print(f"[green]✓[/green] Excel gespeichert: {path}")


# ─── SCENARIO ─────────────────────────────────────────────────────────────────

@click.group("scenario")
def cmd_scenario():
    """Szenarien verwalten (speichern, laden, auflisten)."""


@cmd_scenario.command("save")
@click.argument("name")
@click.option("--description", "-d", default="", help="Beschreibung des Szenarios.")
@click.option("--json-path", default=str(DEFAULT_SESSION_JSON),
              help="Pfad zum gespeicherten Datensatz.")
def scenario_save(name: str, description: str, json_path: str):
    """Speichert den aktuellen Datensatz als Szenario."""
    from config.manager import ConfigManager
    model = _load_model_or_abort(json_path)
    ConfigManager().save_scenario(model, name, description)


@cmd_scenario.command("load")
@click.argument("name")
@click.option("--json-path", default=str(DEFAULT_SESSION_JSON),
              help="Ziel für den Datensatz.")
def scenario_load(name: str, json_path: str):
    """Lädt ein gespeichertes Szenario als aktuellen Datensatz."""
    from config.manager import ConfigManager
    mgr = ConfigManager()
    try:
        model = mgr.load_scenario(name)
    except FileNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    model.save_json(Path(json_path))
    console.print(f"[green]✓[/green] Szenario '{name}' als aktueller Datensatz gesetzt.")


@cmd_scenario.command("list")
def scenario_list():
    """Listet alle gespeicherten Szenarien auf."""
    from config.manager import ConfigManager
    mgr = ConfigManager()
    scenarios = mgr.list_scenarios()

    if not scenarios:
        console.print("[dim]Keine Szenarien vorhanden.[/dim]")
        return

    table = Table(title="Gespeicherte Szenarien", box=box.ROUNDED)
    table.add_column("Name", style="bold")
    table.add_column("Erstellt")
    table.add_column("Beschreibung")
    for s in scenarios:
        table.add_row(s["name"], s.get("created", ""), s.get("description", ""))
    console.print(table)


# ─── HAUPT-CLI ────────────────────────────────────────────────────────────────

@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False,
              help="Ausführliche Log-Ausgabe (DEBUG).")
def cli(verbose: bool):
    """Stundenplan-Simulator: Datensatz aufbauen, vorbelegen und durchrechnen.

    Starten Sie mit: python main.py setup
    """
    _setup_logging(verbose)


def main():
    """Einstiegspunkt. Startet automatisch den Setup-Wizard beim ersten Aufruf."""
    from config.manager import ConfigManager
    mgr = ConfigManager()

    if len(sys.argv) == 1 and mgr.first_run_check():
        console.print(Panel(
            "[bold]Willkommen beim Stundenplan-Simulator![/bold]\n\n"
            "Keine Konfiguration gefunden.\n"
            "Der Setup-Wizard wird jetzt gestartet...",
            border_style="cyan",
        ))
        sys.argv.append("setup")

    cli()


# Befehle registrieren
cli.add_command(cmd_setup)
cli.add_command(cmd_config)
cli.add_command(cmd_generate)
cli.add_command(cmd_load)
cli.add_command(cmd_distribute)
cli.add_command(cmd_validate)
cli.add_command(cmd_wizard)
cli.add_command(cmd_run)
cli.add_command(cmd_show)
cli.add_command(cmd_export)
cli.add_command(cmd_scenario)


if __name__ == "__main__":
    main()
