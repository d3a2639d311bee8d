"""Terminal-Darstellung eines Simulationsergebnisses (Rich).

Drei Sichten auf dasselbe RunResult: Klassen-Raster, Lehrer-Raster und
Belegungs-Heatmap. Fehlende Sichten oder Zellen gelten als freie Stunden.
"""

from enum import Enum
from typing import Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from config.schema import SimulationConfig
from export.helpers import (
    format_class_cell, format_teacher_cell, grid_periods, heat_level,
    period_exists, score_level,
)
from solver.backend import (
    ClassTimetable, ConflictHeatmap, RunResult, RunStatus, TeacherTimetable,
)

FREE = "—"
NO_PERIOD = ""

METRIC_LABELS: dict[str, str] = {
    "coverage": "Abdeckung",
    "teacher_distribution": "Lehrerverteilung",
    "subject_distribution": "Fachverteilung",
    "preferences_met": "Erfüllte Wünsche",
}

STATUS_LABELS: dict[RunStatus, str] = {
    RunStatus.OPTIMAL: "[green]optimal[/green]",
    RunStatus.FEASIBLE: "[green]zulässig[/green]",
    RunStatus.TIMEOUT: "[yellow]Zeitlimit[/yellow]",
    RunStatus.INFEASIBLE: "[red]unlösbar[/red]",
    RunStatus.ERROR: "[red]Fehler[/red]",
}

_LEVEL_STYLE = {"good": "green", "medium": "yellow", "bad": "red"}


class ViewMode(str, Enum):
    CLASS = "class"
    TEACHER = "teacher"
    HEATMAP = "heatmap"


# ─── Zeilen-Projektionen (ohne Rich, auch für Tests/Export) ─────────────────

def render_class_rows(
    view: ClassTimetable, config: SimulationConfig
) -> list[list[str]]:
    """Tabellenzeilen eines Klassen-Rasters: [Std., Tag1, Tag2, …]."""
    rows = []
    for p in grid_periods(config):
        cells = [str(p)]
        for day in config.working_days:
            if not period_exists(config, day, p):
                cells.append(NO_PERIOD)
                continue
            cells.append(format_class_cell(view.cell(day, p)) or FREE)
        rows.append(cells)
    return rows


def render_teacher_rows(
    view: TeacherTimetable, config: SimulationConfig
) -> list[list[str]]:
    """Tabellenzeilen eines Lehrer-Rasters; Springstunden werden markiert."""
    occupied: dict[str, list[int]] = {
        day: sorted(view.schedule.get(day, {}).keys()) for day in config.working_days
    }
    rows = []
    for p in grid_periods(config):
        cells = [str(p)]
        for day in config.working_days:
            if not period_exists(config, day, p):
                cells.append(NO_PERIOD)
                continue
            text = format_teacher_cell(view.cell(day, p))
            if not text:
                periods = occupied[day]
                is_gap = bool(periods) and periods[0] < p < periods[-1]
                text = "↕ Springstunde" if is_gap else FREE
            cells.append(text)
        rows.append(cells)
    return rows


def render_heatmap_rows(
    heatmap: ConflictHeatmap, config: SimulationConfig
) -> list[list[str]]:
    """Tabellenzeilen der Heatmap als Prozentwerte."""
    rows = []
    max_p = max(config.max_periods, heatmap.max_period)
    for p in range(1, max_p + 1):
        cells = [str(p)]
        for day in config.working_days:
            if day in heatmap.cells and p in heatmap.cells[day]:
                cells.append(f"{heatmap.value(day, p):.0%}")
            else:
                cells.append(NO_PERIOD)
        rows.append(cells)
    return rows


# ─── Presenter ────────────────────────────────────────────────────────────────

class ResultPresenter:
    """Gibt ein RunResult in der gewählten Sicht auf der Konsole aus."""

    def __init__(
        self,
        result: RunResult,
        config: SimulationConfig,
        console: Optional[Console] = None,
    ) -> None:
        self.result = result
        self.config = config
        self.console = console or Console()

    def available_modes(self) -> list[ViewMode]:
        modes = [ViewMode.CLASS, ViewMode.TEACHER]
        if self.result.conflict_heatmap is not None:
            modes.append(ViewMode.HEATMAP)
        return modes

    def show(self, mode: ViewMode = ViewMode.CLASS) -> None:
        self.print_summary()
        if not self.result.has_schedule:
            self.print_conflicts()
            if mode == ViewMode.HEATMAP:
                self.print_heatmap()
            return
        if mode == ViewMode.CLASS:
            self.print_classes()
        elif mode == ViewMode.TEACHER:
            self.print_teachers()
        else:
            self.print_heatmap()
        self.print_quality()

    # ── Bausteine ─────────────────────────────────────────────────────────

    def print_summary(self) -> None:
        r = self.result
        lines = [
            f"Status: {STATUS_LABELS[r.status]}",
            f"Rechenzeit: {r.solving_time_ms} ms",
            f"Geplante Stunden: {len(r.schedule)}",
        ]
        if r.quality_report is not None:
            style = _LEVEL_STYLE[score_level(r.quality_report.overall_score)]
            lines.append(
                f"Qualität: [{style}]{round(r.quality_report.overall_score)}%[/{style}]"
            )
        if r.error_message:
            lines.append(f"\n[red]{r.error_message}[/red]")
        self.console.print(Panel("\n".join(lines), title="Simulationsergebnis", border_style="cyan"))

    def _grid_table(self, title: str, rows: list[list[str]]) -> Table:
        table = Table(title=title, box=box.ROUNDED, show_lines=True)
        table.add_column("Std.", justify="right", width=4)
        for day in self.config.working_days:
            table.add_column(day, justify="center", min_width=12)
        for row in rows:
            table.add_row(*row)
        return table

    def print_classes(self) -> None:
        if not self.result.by_class:
            self.console.print("[dim]Keine Klassenpläne vorhanden.[/dim]")
            return
        for view in self.result.by_class.values():
            self.console.print(self._grid_table(
                f"{view.grade} {view.class_name}", render_class_rows(view, self.config)
            ))

    def print_teachers(self) -> None:
        if not self.result.by_teacher:
            self.console.print("[dim]Keine Lehrerpläne vorhanden.[/dim]")
            return
        for view in self.result.by_teacher.values():
            self.console.print(self._grid_table(
                f"{view.name} ({view.sessions_count} Std.)",
                render_teacher_rows(view, self.config),
            ))

    def print_heatmap(self) -> None:
        heatmap = self.result.conflict_heatmap
        if heatmap is None:
            self.console.print("[dim]Keine Heatmap vorhanden.[/dim]")
            return
        table = Table(title="Belegungsdichte", box=box.ROUNDED)
        table.add_column("Std.", justify="right", width=4)
        for day in self.config.working_days:
            table.add_column(day, justify="center")
        for row in render_heatmap_rows(heatmap, self.config):
            p = int(row[0])
            styled = [row[0]]
            for day, text in zip(self.config.working_days, row[1:]):
                if not text:
                    styled.append(text)
                    continue
                style = _LEVEL_STYLE[heat_level(heatmap.value(day, p))]
                styled.append(f"[{style}]{text}[/{style}]")
            table.add_row(*styled)
        self.console.print(table)

    def print_quality(self) -> None:
        report = self.result.quality_report
        if report is None:
            return
        table = Table(title="Qualitätsbericht", box=box.ROUNDED)
        table.add_column("Kennzahl")
        table.add_column("Wert", justify="right")
        for key, metric in report.metrics.items():
            style = _LEVEL_STYLE[score_level(metric.score)]
            table.add_row(METRIC_LABELS.get(key, key), f"[{style}]{round(metric.score)}%[/{style}]")
        self.console.print(table)
        for w in report.warnings:
            self.console.print(f"  [yellow]⚠ {w.message}[/yellow]")
        for s in report.suggestions:
            self.console.print(f"  [dim]→ {s}[/dim]")

    def print_conflicts(self) -> None:
        if not self.result.conflicts:
            return
        self.console.print("[bold]Erkannte Konflikte:[/bold]")
        for c in self.result.conflicts:
            color = "red" if c.is_critical else "yellow"
            self.console.print(f"  [{color}]• {c.message}[/{color}]")
            if c.suggestion:
                self.console.print(f"    [dim]{c.suggestion}[/dim]")
