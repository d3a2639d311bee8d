"""Qualitätsbericht für fertige Stundenpläne.

Vier Kennzahlen (je 0–100), der Gesamtwert ist ihr Mittel:
  coverage              – Anteil der geplanten an den geforderten Stunden
  teacher_distribution  – Fairness der Lehrerauslastung (Jain) abzüglich Springstunden
  subject_distribution  – Verteilung der Fächer über die Woche
  preferences_met       – Anteil erfüllter Wünsche und Fach-Regeln
"""

from collections import defaultdict

from models.snapshot import SimulationInstance
from models.teacher import PreferTime
from solver.backend import QualityMetric, QualityReport, QualityWarning, ScheduleEntry
from export.helpers import count_gaps, entries_by_teacher

# Ab so vielen Springstunden pro Woche gibt es eine Warnung
GAP_WARNING_THRESHOLD = 4


class QualityAnalyzer:
    """Berechnet den QualityReport für einen Plan und seine Instanz."""

    def analyze(
        self, instance: SimulationInstance, entries: list[ScheduleEntry]
    ) -> QualityReport:
        warnings: list[QualityWarning] = []
        suggestions: list[str] = []

        coverage = self._coverage(instance, entries, warnings)
        teacher_dist = self._teacher_distribution(instance, entries, warnings)
        subject_dist = self._subject_distribution(instance, entries)
        prefs = self._preferences_met(instance, entries)

        metrics = {
            "coverage": coverage,
            "teacher_distribution": teacher_dist,
            "subject_distribution": subject_dist,
            "preferences_met": prefs,
        }
        overall = sum(m.score for m in metrics.values()) / len(metrics)

        if teacher_dist.score < 70:
            suggestions.append("Ausgewogene Lehrerverteilung ausführen, um die Last anzugleichen.")
        if subject_dist.score < 70:
            suggestions.append("Tageslimits der Fächer senken, damit sie sich über die Woche verteilen.")
        if prefs.score < 70:
            suggestions.append("Wünsche lockern oder das Zeitlimit des Solvers erhöhen.")

        return QualityReport(
            overall_score=round(overall, 1),
            metrics=metrics,
            warnings=warnings,
            suggestions=suggestions,
        )

    # ── Kennzahlen ────────────────────────────────────────────────────────────

    def _coverage(self, instance, entries, warnings) -> QualityMetric:
        required = sum(r.periods_per_week for r in instance.requirements)
        scheduled = len(entries)
        score = 100.0 if required == 0 else min(100.0, scheduled / required * 100)
        if scheduled < required:
            warnings.append(QualityWarning(
                type="coverage",
                message=f"{required - scheduled} von {required} Stunden wurden nicht eingeplant.",
            ))
        return QualityMetric(
            score=round(score, 1),
            details={"scheduled": scheduled, "required": required},
        )

    def _teacher_distribution(self, instance, entries, warnings) -> QualityMetric:
        by_teacher = entries_by_teacher(entries)
        teacher_names = {t.id: t.name for t in instance.teachers}

        # Nur Lehrkräfte mit Stundenbedarf zählen für die Fairness
        active = sorted({r.teacher_id for r in instance.requirements
                         if r.teacher_id is not None and r.periods_per_week > 0})
        actuals = [len(by_teacher.get(t, [])) for t in active]

        # Jain's Fairness Index: (Σ x_i)² / (n * Σ x_i²)
        n = len(actuals)
        sum_sq = sum(a * a for a in actuals)
        fairness = (sum(actuals) ** 2) / (n * sum_sq) if sum_sq > 0 else 1.0

        total_gaps = 0
        for t in active:
            gaps = count_gaps(by_teacher.get(t, []))
            total_gaps += gaps
            if gaps >= GAP_WARNING_THRESHOLD:
                warnings.append(QualityWarning(
                    type="gaps",
                    message=f"{teacher_names.get(t, t)}: {gaps} Springstunden pro Woche.",
                ))
            quota = instance.preference_for(t).weekly_quota
            if len(by_teacher.get(t, [])) > quota:
                warnings.append(QualityWarning(
                    type="teacher_quota",
                    message=f"{teacher_names.get(t, t)}: {len(by_teacher[t])}h über Deputat ({quota}h).",
                ))

        # Pro Springstunde (gemittelt über Lehrkräfte) 5 Punkte Abzug
        avg_gaps = total_gaps / n if n else 0.0
        score = max(0.0, fairness * 100 - avg_gaps * 5)
        return QualityMetric(
            score=round(score, 1),
            details={
                "fairness_index": round(fairness, 4),
                "total_gaps": total_gaps,
                "avg_gaps_per_teacher": round(avg_gaps, 2),
            },
        )

    def _subject_distribution(self, instance, entries) -> QualityMetric:
        """Pro (Klasse, Fach): verschiedene Tage / min(Stunden, Tage)."""
        days_per_week = len(instance.config.working_days) or 1
        subject_days: dict[tuple, set[str]] = defaultdict(set)
        subject_hours: dict[tuple, int] = defaultdict(int)
        for e in entries:
            key = (e.class_id, e.subject_id)
            subject_days[key].add(e.day)
            subject_hours[key] += 1

        if not subject_hours:
            return QualityMetric(score=100.0, details={"spread": 1.0})

        scores = []
        for key, hours in subject_hours.items():
            max_days = min(hours, days_per_week)
            scores.append(len(subject_days[key]) / max_days)
        spread = sum(scores) / len(scores)
        return QualityMetric(score=round(spread * 100, 1), details={"spread": round(spread, 3)})

    def _preferences_met(self, instance, entries) -> QualityMetric:
        """Anteil erfüllter Einzel-Prüfungen (Wünsche + Fach-Regeln)."""
        cfg = instance.config
        checks = 0
        met = 0

        by_teacher = entries_by_teacher(entries)
        for t, t_entries in by_teacher.items():
            pref = instance.preference_for(t)
            per_day: dict[str, list[int]] = defaultdict(list)
            for e in t_entries:
                per_day[e.day].append(e.period)

            for day in pref.golden_days:
                checks += 1
                met += int(day not in per_day)

            for periods in per_day.values():
                checks += 1
                met += int(pref.min_daily_periods <= len(periods) <= pref.max_daily_periods)

            if pref.prefer_time != PreferTime.ANY:
                for e in t_entries:
                    half = cfg.periods_for(e.day) / 2
                    checks += 1
                    if pref.prefer_time == PreferTime.EARLY:
                        met += int(e.period <= half)
                    else:
                        met += int(e.period > half)

        by_req: dict[tuple, list[ScheduleEntry]] = defaultdict(list)
        for e in entries:
            by_req[(e.class_id, e.subject_id)].append(e)
        day_index = {d: i for i, d in enumerate(cfg.working_days)}

        for (_, subject_id), r_entries in by_req.items():
            rule = instance.constraint_for(subject_id)
            for e in r_entries:
                if rule.avoid_first_period:
                    checks += 1
                    met += int(e.period != 1)
                if rule.avoid_last_period:
                    checks += 1
                    met += int(e.period != cfg.periods_for(e.day))
            if rule.no_consecutive_days:
                idx = sorted({day_index[e.day] for e in r_entries if e.day in day_index})
                checks += 1
                met += int(all(b - a > 1 for a, b in zip(idx, idx[1:])))
            if rule.requires_consecutive:
                per_day: dict[str, set[int]] = defaultdict(set)
                for e in r_entries:
                    per_day[e.day].add(e.period)
                checks += 1
                met += int(any(
                    all(p + k in ps for k in range(rule.consecutive_count))
                    for ps in per_day.values() for p in ps
                ))

        score = 100.0 if checks == 0 else met / checks * 100
        return QualityMetric(score=round(score, 1), details={"met": met, "checked": checks})
