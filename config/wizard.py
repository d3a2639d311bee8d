"""Interaktiver Setup-Wizard für die Ersteinrichtung des Stundenplan-Simulators.

Fragt Schule, Solver-Anbindung, Testdaten-Umfang und die Startwerte
neuer Simulationen ab. Nutzt rich für die Konsolenausgabe.
"""

from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, FloatPrompt, IntPrompt, Prompt
from rich.table import Table
from rich import box

from config.defaults import WORKING_DAYS, default_simulator_config
from config.schema import (
    BackendConfig,
    BackendKind,
    GeneratorConfig,
    SimulationConfig,
    SimulatorConfig,
)

console = Console()


def _header(title: str) -> None:
    console.print()
    console.print(Panel(f"[bold cyan]{title}[/bold cyan]", expand=False))


def _info(text: str) -> None:
    console.print(f"[dim]{text}[/dim]")


def _success(text: str) -> None:
    console.print(f"[green]✓[/green] {text}")


def _warn(text: str) -> None:
    console.print(f"[yellow]⚠[/yellow]  {text}")


def show_period_grid(sim: SimulationConfig) -> None:
    """Zeigt Tage und Stundenanzahl als rich-Tabelle an."""
    table = Table(title="Wochenraster", box=box.ROUNDED)
    table.add_column("Tag", style="bold", width=6)
    table.add_column("Stunden", justify="right")
    for day in sim.working_days:
        table.add_row(day, str(sim.periods_for(day)))
    table.add_row("[bold]Woche[/bold]", f"[bold]{sim.weekly_periods}[/bold]")
    console.print(table)


# ─── SCHRITT 1: Schule ───

def _wizard_school(default: str) -> str:
    _header("Schritt 1 — Schule")
    return Prompt.ask("Name der Schule", default=default)


# ─── SCHRITT 2: Solver-Anbindung ───

def _wizard_backend(current: Optional[BackendConfig] = None) -> BackendConfig:
    _header("Schritt 2 — Solver-Anbindung")
    _info("local: CP-SAT läuft im Prozess. http: Schulverwaltungs-API.")
    current = current or BackendConfig()

    kind = BackendKind(Prompt.ask(
        "Backend", choices=[k.value for k in BackendKind], default=current.kind.value
    ))
    if kind == BackendKind.LOCAL:
        snapshot = Prompt.ask(
            "JSON-Datei mit Institutionsdaten (leer = synthetisch)",
            default=current.institution_snapshot or "",
        )
        return current.model_copy(update={
            "kind": kind,
            "institution_snapshot": snapshot or None,
        })

    base_url = Prompt.ask("Basis-URL der API", default=current.base_url)
    token = Prompt.ask("Bearer-Token (leer = keins)", default=current.token or "",
                       password=True)
    timeout = FloatPrompt.ask("Client-Timeout in Sekunden (0 = keins)",
                              default=current.request_timeout_seconds or 0.0)
    return current.model_copy(update={
        "kind": kind,
        "base_url": base_url.rstrip("/"),
        "token": token or None,
        "request_timeout_seconds": timeout if timeout > 0 else None,
    })


# ─── SCHRITT 3: Testdaten ───

def _wizard_generator(current: GeneratorConfig) -> GeneratorConfig:
    _header("Schritt 3 — Testdaten")
    _info("Umfang der synthetisch erzeugten Daten.")
    seed = IntPrompt.ask("Zufalls-Seed (-1 = zufällig)",
                         default=current.seed if current.seed is not None else -1)
    return GeneratorConfig(
        num_teachers=IntPrompt.ask("Lehrkräfte", default=current.num_teachers),
        num_subjects=IntPrompt.ask("Fächer", default=current.num_subjects),
        num_grades=IntPrompt.ask("Jahrgänge", default=current.num_grades),
        classes_per_grade=IntPrompt.ask("Klassen pro Jahrgang",
                                        default=current.classes_per_grade),
        seed=None if seed < 0 else seed,
    )


# ─── SCHRITT 4: Simulation ───

def wizard_simulation(current: SimulationConfig) -> SimulationConfig:
    _header("Schritt 4 — Simulations-Startwerte")
    show_period_grid(current)

    days_raw = Prompt.ask(
        "Unterrichtstage (kommagetrennt)", default=",".join(current.working_days)
    )
    days = [d.strip() for d in days_raw.split(",") if d.strip()]
    if not days:
        _warn(f"Keine Tage angegeben, verwende {', '.join(WORKING_DAYS)}.")
        days = list(WORKING_DAYS)

    default_ppd = IntPrompt.ask("Stunden pro Tag (Default)",
                                default=current.default_periods_per_day)
    periods_per_day = {day: default_ppd for day in days}
    if Confirm.ask("Einzelne Tage abweichend festlegen?", default=False):
        for day in days:
            periods_per_day[day] = IntPrompt.ask(
                f"  Stunden am {day}", default=current.periods_per_day.get(day, default_ppd)
            )

    sim = SimulationConfig(
        name=current.name,
        working_days=days,
        periods_per_day=periods_per_day,
        default_periods_per_day=default_ppd,
        max_teacher_periods_per_day=IntPrompt.ask(
            "Max. Stunden pro Lehrkraft und Tag",
            default=current.max_teacher_periods_per_day),
        max_consecutive_periods=IntPrompt.ask(
            "Max. Stunden am Stück", default=current.max_consecutive_periods),
        time_limit_seconds=IntPrompt.ask(
            "Zeitlimit Solver (Sekunden)", default=current.time_limit_seconds),
    )
    show_period_grid(sim)
    return sim


def _show_summary(config: SimulatorConfig) -> None:
    _header("Zusammenfassung")
    table = Table(box=box.ROUNDED, title="Konfigurationsübersicht")
    table.add_column("Bereich", style="bold cyan")
    table.add_column("Wert")

    sim = config.simulation
    table.add_row("Schule", config.school_name)
    table.add_row("Backend", config.backend.kind.value)
    if config.backend.kind == BackendKind.HTTP:
        table.add_row("API", config.backend.base_url + config.backend.api_prefix)
    gen = config.generator
    table.add_row(
        "Testdaten",
        f"{gen.num_teachers} Lehrkräfte, {gen.num_subjects} Fächer, "
        f"{gen.num_grades}×{gen.classes_per_grade} Klassen",
    )
    table.add_row(
        "Wochenraster",
        f"{len(sim.working_days)} Tage, {sim.weekly_periods} Stunden/Woche",
    )
    table.add_row("Solver-Zeitlimit", f"{sim.time_limit_seconds}s")
    console.print(table)


# ─── HAUPT-WIZARD ───

def run_wizard() -> Optional[SimulatorConfig]:
    """Führt den vollständigen interaktiven Setup-Wizard aus.

    Returns:
        Fertige SimulatorConfig oder None, wenn der Nutzer abbricht.
    """
    console.print()
    console.print(Panel(
        "[bold]Willkommen beim Stundenplan-Simulator![/bold]\n\n"
        "Der Wizard richtet Solver-Anbindung und Startwerte ein.\n"
        "[dim]Standard-Werte können mit Enter übernommen werden.[/dim]",
        title="[bold cyan]Stundenplan-Simulator[/bold cyan]",
        border_style="cyan",
    ))

    if not Confirm.ask("\nMöchten Sie den Simulator jetzt einrichten?", default=True):
        console.print("[yellow]Einrichtung abgebrochen.[/yellow]")
        return None

    defaults = default_simulator_config()
    try:
        config = SimulatorConfig(
            school_name=_wizard_school(defaults.school_name),
            backend=_wizard_backend(defaults.backend),
            generator=_wizard_generator(defaults.generator),
            simulation=wizard_simulation(defaults.simulation),
        )

        _show_summary(config)

        if not Confirm.ask("\nKonfiguration speichern?", default=True):
            console.print("[yellow]Konfiguration wird nicht gespeichert.[/yellow]")
            return None

        _success("Konfiguration wird gespeichert...")
        return config

    except KeyboardInterrupt:
        console.print("\n[yellow]Wizard abgebrochen.[/yellow]")
        return None
    except ValueError as e:
        console.print(f"\n[red]Fehler während der Konfiguration: {e}[/red]")
        return None
