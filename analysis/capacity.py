"""Kapazitäts-Check: benötigte vs. verfügbare Stunden.

Rein informativ. Ein Überhang blockiert weder den Wizard noch den Lauf.
"""

from pydantic import BaseModel

from models.school_model import SimulationModel


class CapacityReport(BaseModel):
    """Ergebnis des Kapazitäts-Checks."""

    total_required: int
    total_available: int
    class_count: int
    over_capacity: bool
    warnings: list[str] = []

    @property
    def utilization(self) -> float:
        """Auslastung 0.0–n (1.0 = alle verfügbaren Stunden verplant)."""
        if self.total_available == 0:
            return 0.0 if self.total_required == 0 else float("inf")
        return self.total_required / self.total_available

    def print_rich(self) -> None:
        """Gibt den Report formatiert über Rich aus."""
        from rich.console import Console
        from rich.panel import Panel

        console = Console()
        color = "red" if self.over_capacity else "green"
        lines = [
            f"Benötigte Stunden: [bold]{self.total_required}[/bold]",
            f"Verfügbare Stunden: [bold]{self.total_available}[/bold] "
            f"({self.class_count} Klassen)",
        ]
        if self.total_available:
            lines.append(f"Auslastung: [{color}]{self.utilization:.1%}[/{color}]")
        if self.over_capacity:
            lines.append(
                "\n[red bold]Warnung: Es werden mehr Stunden benötigt als verfügbar sind.[/red bold]\n"
                "[red]Der Solver findet eventuell keine Lösung. Stunden reduzieren "
                "oder Unterrichtstage erhöhen.[/red]"
            )
        if self.warnings:
            lines.append("\n[yellow bold]Hinweise:[/yellow bold]")
            for w in self.warnings:
                lines.append(f"  [yellow]• {w}[/yellow]")

        console.print(Panel("\n".join(lines), title="Kapazitäts-Check", border_style="cyan"))


def analyze_capacity(model: SimulationModel) -> CapacityReport:
    """Berechnet Stundenbedarf und -angebot des aktuellen Datensatzes.

    total_available = (Σ Stunden pro Unterrichtstag) × Anzahl Klassen
    """
    cfg = model.config
    total_required = sum(r.periods_per_week for r in model.requirements)
    weekly = cfg.weekly_periods
    total_available = weekly * len(model.classes)

    warnings: list[str] = []

    # Pro Klasse: Bedarf ≤ Wochenstunden
    per_class: dict[int, int] = {}
    for r in model.requirements:
        per_class[r.class_id] = per_class.get(r.class_id, 0) + r.periods_per_week
    for cls in model.classes:
        need = per_class.get(cls.id, 0)
        if need > weekly:
            warnings.append(
                f"Klasse {cls.label}: {need}h Bedarf bei nur {weekly}h pro Woche."
            )

    # Pro Lehrkraft: Last ≤ Deputat
    for teacher_id, load in model.teacher_loads().items():
        quota = model.preference_for(teacher_id).weekly_quota
        if load > quota:
            teacher = model.get_teacher(teacher_id)
            warnings.append(
                f"{teacher.name}: {load}h zugewiesen bei Deputat {quota}h."
            )

    unassigned = [
        r for r in model.requirements
        if r.periods_per_week > 0 and not r.is_assigned
    ]
    if unassigned:
        warnings.append(f"{len(unassigned)} Stundenbedarf(e) ohne Lehrkraft.")

    return CapacityReport(
        total_required=total_required,
        total_available=total_available,
        class_count=len(model.classes),
        over_capacity=total_required > total_available,
        warnings=warnings,
    )
