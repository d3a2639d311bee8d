"""Konflikt-Vorprüfung einer Simulationsinstanz (vor dem Solver).

Findet Vorgaben, die garantiert (critical) oder wahrscheinlich (warning)
zu einem unlösbaren Modell führen, und berechnet die erwartete
Belegungsdichte pro Tag und Stunde.
"""

from collections import defaultdict

from models.snapshot import SimulationInstance
from solver.backend import ConflictHeatmap, ConflictInfo


class ConflictAnalyzer:
    """Statische Konfliktanalyse auf Basis von Stundenbedarf und Regeln."""

    def __init__(self, instance: SimulationInstance) -> None:
        self.instance = instance
        self.cfg = instance.config

    def analyze(self) -> list[ConflictInfo]:
        conflicts: list[ConflictInfo] = []
        conflicts.extend(self._check_unassigned())
        conflicts.extend(self._check_class_overload())
        conflicts.extend(self._check_teacher_overload())
        conflicts.extend(self._check_subject_daily_limit())
        conflicts.extend(self._check_avoided_periods())
        conflicts.extend(self._check_teacher_quota())
        conflicts.extend(self._check_min_daily())
        return conflicts

    def has_critical(self) -> bool:
        return any(c.is_critical for c in self.analyze())

    # ── Einzelne Prüfungen ────────────────────────────────────────────────────

    def _check_unassigned(self) -> list[ConflictInfo]:
        result = []
        for r in self.instance.requirements:
            if r.periods_per_week > 0 and not r.is_assigned:
                result.append(ConflictInfo(
                    type="unassigned_teacher",
                    severity="critical",
                    message=f"{r.grade} {r.class_name} / {r.subject_name}: keine Lehrkraft zugewiesen.",
                    suggestion="Lehrkraft zuweisen oder ausgewogene Verteilung ausführen.",
                ))
        return result

    def _check_class_overload(self) -> list[ConflictInfo]:
        weekly = self.cfg.weekly_periods
        need: dict[int, int] = defaultdict(int)
        for r in self.instance.requirements:
            need[r.class_id] += r.periods_per_week

        result = []
        for cls in self.instance.classes:
            if need[cls.id] > weekly:
                result.append(ConflictInfo(
                    type="class_overload",
                    severity="critical",
                    message=f"Klasse {cls.label}: {need[cls.id]}h Bedarf, aber nur {weekly}h pro Woche.",
                    suggestion="Wochenstunden der Klasse reduzieren oder Stunden pro Tag erhöhen.",
                ))
        return result

    def _teacher_loads(self) -> dict[int, int]:
        loads: dict[int, int] = defaultdict(int)
        for r in self.instance.requirements:
            if r.teacher_id is not None:
                loads[r.teacher_id] += r.periods_per_week
        return loads

    def _check_teacher_overload(self) -> list[ConflictInfo]:
        result = []
        loads = self._teacher_loads()
        for teacher in self.instance.teachers:
            pref = self.instance.preference_for(teacher.id)
            daily = min(self.cfg.max_teacher_periods_per_day, pref.max_daily_periods)
            capacity = sum(min(daily, self.cfg.periods_for(d)) for d in self.cfg.working_days)
            if loads[teacher.id] > capacity:
                result.append(ConflictInfo(
                    type="teacher_overload",
                    severity="critical",
                    message=(
                        f"{teacher.name}: {loads[teacher.id]}h zugewiesen, "
                        f"maximal {capacity}h pro Woche möglich."
                    ),
                    suggestion="Stunden auf andere Lehrkräfte verteilen.",
                ))
        return result

    def _check_subject_daily_limit(self) -> list[ConflictInfo]:
        days = len(self.cfg.working_days)
        result = []
        for r in self.instance.requirements:
            limit = self.instance.constraint_for(r.subject_id).max_per_day * days
            if r.periods_per_week > limit:
                result.append(ConflictInfo(
                    type="subject_daily_limit",
                    severity="critical",
                    message=(
                        f"{r.grade} {r.class_name} / {r.subject_name}: {r.periods_per_week}h "
                        f"bei max. {limit}h pro Woche (Tageslimit)."
                    ),
                    suggestion="Tageslimit des Fachs erhöhen oder Wochenstunden senken.",
                ))
        return result

    def _check_avoided_periods(self) -> list[ConflictInfo]:
        result = []
        for r in self.instance.requirements:
            rule = self.instance.constraint_for(r.subject_id)
            if not rule.avoided_periods_count:
                continue
            usable = sum(
                min(rule.max_per_day, max(0, self.cfg.periods_for(d) - rule.avoided_periods_count))
                for d in self.cfg.working_days
            )
            if r.periods_per_week > usable:
                result.append(ConflictInfo(
                    type="avoided_periods",
                    severity="critical",
                    message=(
                        f"{r.grade} {r.class_name} / {r.subject_name}: nur {usable} erlaubte "
                        f"Stunden für {r.periods_per_week}h Bedarf (Randstunden gesperrt)."
                    ),
                    suggestion="Sperre der ersten/letzten Stunde lockern.",
                ))
        return result

    def _check_teacher_quota(self) -> list[ConflictInfo]:
        result = []
        loads = self._teacher_loads()
        for teacher in self.instance.teachers:
            quota = self.instance.preference_for(teacher.id).weekly_quota
            if loads[teacher.id] > quota:
                result.append(ConflictInfo(
                    type="teacher_quota",
                    severity="warning",
                    message=f"{teacher.name}: {loads[teacher.id]}h über Deputat ({quota}h).",
                    suggestion="Deputat anpassen oder Stunden umverteilen.",
                ))
        return result

    def _check_min_daily(self) -> list[ConflictInfo]:
        result = []
        days = len(self.cfg.working_days)
        loads = self._teacher_loads()
        for teacher in self.instance.teachers:
            load = loads[teacher.id]
            pref = self.instance.preference_for(teacher.id)
            if 0 < load < pref.min_daily_periods * days:
                result.append(ConflictInfo(
                    type="min_daily_periods",
                    severity="warning",
                    message=(
                        f"{teacher.name}: {load}h reichen nicht für "
                        f"{pref.min_daily_periods}h an jedem der {days} Tage."
                    ),
                    suggestion="Mindeststunden pro Tag senken.",
                ))
        return result

    # ── Heatmap ──────────────────────────────────────────────────────────────

    def heatmap(self) -> ConflictHeatmap:
        """Erwartete Belegung je (Tag, Stunde), gemittelt über alle Klassen.

        Jeder Stundenbedarf verteilt seine Wochenstunden gleichmäßig auf die
        für ihn erlaubten Zellen. Werte > 1.0 bedeuten Überbelegung.
        """
        cells: dict[str, dict[int, float]] = {
            d: {p: 0.0 for p in range(1, self.cfg.periods_for(d) + 1)}
            for d in self.cfg.working_days
        }
        classes = self.instance.classes
        if not classes:
            return ConflictHeatmap(cells=cells)

        for r in self.instance.requirements:
            if r.periods_per_week <= 0:
                continue
            rule = self.instance.constraint_for(r.subject_id)
            allowed = []
            for d in self.cfg.working_days:
                last = self.cfg.periods_for(d)
                for p in range(1, last + 1):
                    if rule.avoid_first_period and p == 1:
                        continue
                    if rule.avoid_last_period and p == last:
                        continue
                    allowed.append((d, p))
            if not allowed:
                continue
            share = r.periods_per_week / len(allowed)
            for d, p in allowed:
                cells[d][p] += share

        n = len(classes)
        return ConflictHeatmap(cells={
            d: {p: round(v / n, 2) for p, v in row.items()}
            for d, row in cells.items()
        })
