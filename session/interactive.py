"""Interaktiver Simulations-Wizard auf der Konsole (rich-Prompts).

Jeder Schritt zeigt seinen Stand und ein kleines Menü. Alle Änderungen
laufen über die SimulationSession, die Navigation über deren StepMachine.
"""

import logging
from pathlib import Path
from typing import Callable, Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table

from config.schema import GeneratorConfig
from config.wizard import wizard_simulation
from models.snapshot import DataSource, SyntheticDataRequest
from models.teacher import PreferTime, TeachingStyle
from session.controller import RunInProgressError, SimulationSession
from session.steps import STEP_TITLES, StepGateError, WizardStep
from solver.backend import SimulatorBackend
from solver.orchestrator import RunOrchestrator

logger = logging.getLogger(__name__)

NAV_HINT = "[dim]w = weiter, z = zurück, q = beenden[/dim]"


class InteractiveWizard:
    """Führt eine Session Schritt für Schritt bis zum Ergebnis."""

    def __init__(
        self,
        session: SimulationSession,
        backend: SimulatorBackend,
        generator: Optional[GeneratorConfig] = None,
        console: Optional[Console] = None,
        export_dir: Path = Path("output"),
    ) -> None:
        self.session = session
        self.backend = backend
        self.generator = generator or GeneratorConfig()
        self.console = console or Console()
        self.export_dir = export_dir
        self._handlers: dict[WizardStep, Callable[[], Optional[str]]] = {
            WizardStep.DATA_SOURCE: self._step_data_source,
            WizardStep.BASIC_CONFIG: self._step_basic_config,
            WizardStep.TEACHER_PREFERENCES: self._step_teachers,
            WizardStep.SUBJECT_CONSTRAINTS: self._step_subjects,
            WizardStep.PERIOD_ALLOCATION: self._step_periods,
            WizardStep.REVIEW_AND_RUN: self._step_review,
            WizardStep.RESULTS: self._step_results,
        }

    # ─── Hauptschleife ────────────────────────────────────────────────────

    def run(self) -> SimulationSession:
        try:
            while True:
                step = self.session.step
                self.console.print()
                self.console.print(Panel(
                    f"[bold cyan]Schritt {int(step)}/{len(WizardStep)}: "
                    f"{STEP_TITLES[step]}[/bold cyan]",
                    expand=False,
                ))
                action = self._handlers[step]()
                if action == "q":
                    break
                if action == "w":
                    self._forward()
                elif action == "z":
                    self._back()
        except KeyboardInterrupt:
            self.console.print("\n[yellow]Wizard abgebrochen.[/yellow]")
        return self.session

    def _forward(self) -> None:
        try:
            self.session.next_step()
        except StepGateError as exc:
            self.console.print(f"[red]{exc}[/red]")

    def _back(self) -> None:
        try:
            self.session.previous_step()
        except StepGateError as exc:
            self.console.print(f"[red]{exc}[/red]")

    def _menu(self, options: dict[str, str]) -> str:
        for key, label in options.items():
            self.console.print(f"  [bold]{key}[/bold]  {label}")
        self.console.print(NAV_HINT)
        return Prompt.ask(
            "Auswahl", choices=list(options) + ["w", "z", "q"], default="w"
        )

    # ─── Schritt 1: Datenquelle ───────────────────────────────────────────

    def _step_data_source(self) -> Optional[str]:
        source = self.session.data_source
        self.console.print(
            f"Aktuelle Quelle: [bold]{source.value if source else '—'}[/bold]"
        )
        if self.session.model.teachers:
            self.console.print(f"[dim]{self.session.model.summary()}[/dim]")
        choice = self._menu({
            "1": "Institutionsdaten laden",
            "2": "Testdaten erzeugen",
        })
        if choice == "1":
            self.session.switch_data_source(DataSource.EXISTING)
            if not self.session.load_institution(self.backend):
                self.console.print(f"[red]{self.session.error}[/red]")
        elif choice == "2":
            self.session.switch_data_source(DataSource.CUSTOM)
            request = SyntheticDataRequest(
                num_teachers=self.generator.num_teachers,
                num_subjects=self.generator.num_subjects,
                num_grades=self.generator.num_grades,
                classes_per_grade=self.generator.classes_per_grade,
                periods_per_day=self.session.model.config.default_periods_per_day,
            )
            if not self.session.generate_synthetic(self.backend, request):
                self.console.print(f"[red]{self.session.error}[/red]")
        else:
            return choice
        return None

    # ─── Schritt 2: Grundeinstellungen ────────────────────────────────────

    def _step_basic_config(self) -> Optional[str]:
        cfg = self.session.model.config
        self.console.print(
            f"Name: [bold]{cfg.name}[/bold] | Tage: {', '.join(cfg.working_days) or '—'} | "
            f"{cfg.weekly_periods} Std./Woche | Zeitlimit {cfg.time_limit_seconds}s"
        )
        choice = self._menu({"1": "Name ändern", "2": "Wochenraster & Grenzen"})
        if choice == "1":
            self.session.update_config(name=Prompt.ask("Name der Simulation", default=cfg.name))
        elif choice == "2":
            try:
                sim = wizard_simulation(cfg)
            except ValueError as exc:
                self.console.print(f"[red]Ungültige Eingabe: {exc}[/red]")
                return None
            self.session.update_config(**sim.model_dump(exclude={"name"}))
        else:
            return choice
        return None

    # ─── Schritt 3: Lehrer-Wünsche ────────────────────────────────────────

    def _show_teachers(self) -> None:
        model = self.session.model
        loads = model.teacher_loads()
        table = Table(title="Lehrkräfte", box=box.ROUNDED)
        for col in ("ID", "Name", "Last", "Deputat", "Max/Tag", "Zeit", "Stil", "Freie Tage"):
            table.add_column(col)
        for t in model.teachers:
            p = model.preference_for(t.id)
            table.add_row(
                str(t.id), t.name, str(loads.get(t.id, 0)), str(p.weekly_quota),
                str(p.max_daily_periods), p.prefer_time.value,
                p.teaching_style.value, ", ".join(p.golden_days),
            )
        self.console.print(table)

    def _step_teachers(self) -> Optional[str]:
        self._show_teachers()
        choice = self._menu({
            "1": "Lehrkraft hinzufügen",
            "2": "Lehrkraft entfernen",
            "3": "Wünsche bearbeiten",
        })
        model = self.session.model
        if choice == "1":
            name = Prompt.ask("Name (leer = automatisch)", default="")
            self.session.add_teacher(name or None)
        elif choice == "2":
            self.session.remove_teacher(IntPrompt.ask("ID"))
        elif choice == "3":
            teacher_id = IntPrompt.ask("ID")
            if model.get_teacher(teacher_id) is None:
                self.console.print("[yellow]Unbekannte Lehrkraft.[/yellow]")
                return None
            current = model.preference_for(teacher_id)
            golden = Prompt.ask(
                "Freie Tage (kommagetrennt)", default=",".join(current.golden_days)
            )
            try:
                self.session.update_teacher_preference(
                    teacher_id,
                    weekly_quota=IntPrompt.ask("Deputat", default=current.weekly_quota),
                    min_daily_periods=IntPrompt.ask(
                        "Min. Stunden/Tag", default=current.min_daily_periods),
                    max_daily_periods=IntPrompt.ask(
                        "Max. Stunden/Tag", default=current.max_daily_periods),
                    max_consecutive=IntPrompt.ask(
                        "Max. am Stück", default=current.max_consecutive),
                    prefer_time=Prompt.ask(
                        "Tageszeit", choices=[p.value for p in PreferTime],
                        default=current.prefer_time.value),
                    teaching_style=Prompt.ask(
                        "Stil", choices=[s.value for s in TeachingStyle],
                        default=current.teaching_style.value),
                    golden_days=[d.strip() for d in golden.split(",") if d.strip()],
                )
            except ValueError as exc:
                self.console.print(f"[red]Ungültige Eingabe: {exc}[/red]")
        else:
            return choice
        return None

    # ─── Schritt 4: Fach-Regeln ───────────────────────────────────────────

    def _show_subjects(self) -> None:
        model = self.session.model
        table = Table(title="Fächer", box=box.ROUNDED)
        for col in ("ID", "Fach", "Block", "Nicht 1.", "Nicht letzte", "Max/Tag", "Hauptfach"):
            table.add_column(col)
        mark = {True: "✓", False: ""}
        for s in model.subjects:
            c = model.constraint_for(s.id)
            table.add_row(
                str(s.id), s.name,
                f"{c.consecutive_count}er" if c.requires_consecutive else "",
                mark[c.avoid_first_period], mark[c.avoid_last_period],
                str(c.max_per_day), mark[c.is_heavy],
            )
        self.console.print(table)

    def _step_subjects(self) -> Optional[str]:
        self._show_subjects()
        choice = self._menu({
            "1": "Fach hinzufügen",
            "2": "Fach entfernen",
            "3": "Regeln bearbeiten",
        })
        model = self.session.model
        if choice == "1":
            name = Prompt.ask("Name (leer = automatisch)", default="")
            self.session.add_subject(name or None)
        elif choice == "2":
            self.session.remove_subject(IntPrompt.ask("ID"))
        elif choice == "3":
            subject_id = IntPrompt.ask("ID")
            if model.get_subject(subject_id) is None:
                self.console.print("[yellow]Unbekanntes Fach.[/yellow]")
                return None
            c = model.constraint_for(subject_id)
            try:
                self.session.update_subject_constraint(
                    subject_id,
                    requires_consecutive=Confirm.ask(
                        "Doppelstunden", default=c.requires_consecutive),
                    avoid_first_period=Confirm.ask(
                        "Nicht in der 1. Stunde", default=c.avoid_first_period),
                    avoid_last_period=Confirm.ask(
                        "Nicht in der letzten Stunde", default=c.avoid_last_period),
                    no_consecutive_days=Confirm.ask(
                        "Nicht an aufeinanderfolgenden Tagen", default=c.no_consecutive_days),
                    max_per_day=IntPrompt.ask("Max. pro Tag", default=c.max_per_day),
                    is_heavy=Confirm.ask("Hauptfach (früh legen)", default=c.is_heavy),
                )
            except ValueError as exc:
                self.console.print(f"[red]Ungültige Eingabe: {exc}[/red]")
        else:
            return choice
        return None

    # ─── Schritt 5: Stundenverteilung ─────────────────────────────────────

    def _show_allocation(self) -> None:
        model = self.session.model
        table = Table(title="Wochenstunden je Jahrgang", box=box.ROUNDED)
        table.add_column("Fach (ID)")
        for grade in model.grades:
            table.add_column(grade, justify="right")
        for s in model.subjects:
            table.add_row(
                f"{s.name} ({s.id})",
                *[str(model.grade_periods(g, s.id)) for g in model.grades],
            )
        self.console.print(table)
        self.session.capacity.print_rich()

    def _step_periods(self) -> Optional[str]:
        self._show_allocation()
        choice = self._menu({
            "1": "Wochenstunden setzen (Jahrgang × Fach)",
            "2": "Zufällige Wochenstunden",
            "3": "Lehrkräfte zufällig verteilen",
            "4": "Lehrkräfte ausgewogen verteilen",
            "5": "Klasse hinzufügen",
        })
        model = self.session.model
        if choice == "1":
            if not model.grades:
                self.console.print("[yellow]Noch keine Klassen vorhanden.[/yellow]")
                return None
            grade = Prompt.ask("Jahrgang", choices=model.grades)
            subject_id = IntPrompt.ask("Fach-ID")
            try:
                self.session.set_grade_periods(grade, subject_id, IntPrompt.ask("Wochenstunden"))
            except ValueError as exc:
                self.console.print(f"[red]Ungültige Eingabe: {exc}[/red]")
        elif choice == "2":
            self.session.generate_random_periods()
        elif choice == "3":
            self.session.distribute_teachers_randomly()
        elif choice == "4":
            loads = self.session.distribute_teachers_balanced()
            if loads:
                self.console.print(
                    f"[green]✓[/green] Last min={min(loads.values())} "
                    f"max={max(loads.values())}"
                )
        elif choice == "5":
            group = self.session.add_class_group()
            self.console.print(f"[green]✓[/green] Klasse {group.label} angelegt.")
        else:
            return choice
        return None

    # ─── Schritt 6: Prüfen & Starten ──────────────────────────────────────

    def _step_review(self) -> Optional[str]:
        self.console.print(self.session.model.summary())
        self.session.refresh().print_rich()
        choice = self._menu({"s": "Simulation starten"})
        if choice == "s":
            self._run_simulation()
            return None
        if choice == "w":
            self.console.print("[yellow]Weiter geht es nur über 's' (Simulation starten).[/yellow]")
            return None
        return choice

    def _run_simulation(self) -> None:
        with self.console.status("Simulation läuft..."):
            try:
                self.session.run(RunOrchestrator(self.backend))
            except (StepGateError, RunInProgressError) as exc:
                self.console.print(f"[red]{exc}[/red]")

    # ─── Schritt 7: Ergebnis ──────────────────────────────────────────────

    def _step_results(self) -> Optional[str]:
        from export import ExcelExporter, ResultPresenter, ViewMode

        result = self.session.result
        presenter = ResultPresenter(result, self.session.model.config, console=self.console)
        modes = {str(i): m for i, m in enumerate(presenter.available_modes(), 1)}
        presenter.show(ViewMode.CLASS)

        self.console.print("  " + "  ".join(f"[bold]{k}[/bold] {m.value}" for k, m in modes.items()))
        self.console.print("  [bold]x[/bold] Excel-Export  [bold]n[/bold] neue Simulation  [bold]q[/bold] beenden")
        choice = Prompt.ask("Auswahl", choices=list(modes) + ["x", "n", "q"], default="q")
        if choice in modes:
            presenter.show(modes[choice])
            Prompt.ask("[dim]Enter zum Fortfahren[/dim]", default="")
        elif choice == "x":
            path = ExcelExporter(result, self.session.model.config).export(
                self.export_dir / "simulation.xlsx"
            )
            self.console.print(f"[green]✓[/green] Excel gespeichert: {path}")
        elif choice == "n":
            self.session.reset()
        else:
            return "q"
        return None
