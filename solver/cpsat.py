"""CP-SAT Stundenplan-Solver (Google OR-Tools) für Simulationsinstanzen.

Architektur:
  - Die Lehrkraft ist pro Stundenbedarf bereits fest zugewiesen
  - Entscheidungsvariable x[req, tag, stunde] – findet diese Stunde dort statt
  - Harte Constraints: Wochenstunden, keine Doppelbelegung (Klasse/Lehrkraft),
    Tagesmaximum, max. Stunden am Stück, Fach-Tageslimit, Randstunden-Sperren
  - Weiche Constraints über eine gewichtete Zielfunktion (Minimierung)
"""

import os
import time
import logging
from typing import Optional

from pydantic import BaseModel
from ortools.sat.python import cp_model

from config.schema import SimulationConfig
from models.requirement import Requirement
from models.snapshot import SimulationInstance
from models.teacher import PreferTime, TeachingStyle
from solver.backend import RunStatus, ScheduleEntry

logger = logging.getLogger(__name__)


# Gewichte der weichen Constraints
SOFT_WEIGHTS: dict[str, int] = {
    "consecutive_block": 4,
    "no_consecutive_days": 3,
    "prefer_time": 1,
    "heavy_early": 1,
    "golden_days": 5,
    "teaching_style": 2,
}

_STATUS_MAP = {
    cp_model.OPTIMAL: RunStatus.OPTIMAL,
    cp_model.FEASIBLE: RunStatus.FEASIBLE,
    cp_model.INFEASIBLE: RunStatus.INFEASIBLE,
    cp_model.UNKNOWN: RunStatus.TIMEOUT,
}


class SolveOutcome(BaseModel):
    """Ergebnis eines CP-SAT-Laufs."""

    status: RunStatus
    entries: list[ScheduleEntry] = []
    solving_time_ms: int = 0
    objective_value: Optional[float] = None
    num_variables: int = 0
    num_constraints: int = 0


class ScheduleSolver:
    """CP-SAT basierter Solver für eine SimulationInstance.

    Verwendung:
        solver = ScheduleSolver(instance)
        outcome = solver.solve()
    """

    def __init__(
        self,
        instance: SimulationInstance,
        weights: Optional[dict[str, int]] = None,
        num_workers: Optional[int] = None,
    ) -> None:
        self.instance = instance
        self.config: SimulationConfig = instance.config
        self.weights = {**SOFT_WEIGHTS, **(weights or {})}
        self.num_workers = num_workers or os.cpu_count() or 4
        self._model = cp_model.CpModel()

        self._reqs: list[Requirement] = [
            r for r in instance.requirements if r.periods_per_week > 0
        ]
        self._days: list[str] = list(self.config.working_days)

        self._x: dict = {}                # (req_id, day, period) → BoolVar
        self._by_teacher_slot: dict = {}  # (teacher_id, day, period) → [BoolVar]
        self._by_class_slot: dict = {}    # (class_id, day, period) → [BoolVar]
        self._by_req_day: dict = {}       # (req_id, day) → [BoolVar]

    # ─── Öffentliche API ──────────────────────────────────────────────────────

    def solve(self, use_soft: bool = True) -> SolveOutcome:
        t0 = time.time()
        self._create_variables()
        self._add_constraints()
        if use_soft:
            self._add_soft_objective()

        cp_solver = cp_model.CpSolver()
        cp_solver.parameters.max_time_in_seconds = self.config.time_limit_seconds
        cp_solver.parameters.num_workers = self.num_workers
        cp_solver.parameters.log_search_progress = False

        status = cp_solver.solve(self._model)
        elapsed_ms = int((time.time() - t0) * 1000)
        run_status = _STATUS_MAP.get(status, RunStatus.ERROR)

        logger.info(
            f"Solver beendet: {cp_solver.status_name(status)} | "
            f"Zeit: {elapsed_ms} ms | Variablen: {len(self._x)}"
        )

        outcome = SolveOutcome(
            status=run_status,
            solving_time_ms=elapsed_ms,
            num_variables=len(self._x),
            num_constraints=len(self._model.proto.constraints),
        )
        if status in (cp_model.OPTIMAL, cp_model.FEASIBLE):
            outcome.entries = self._extract_entries(cp_solver)
            if use_soft:
                outcome.objective_value = float(cp_solver.objective_value)
        return outcome

    # ─── Variablen ────────────────────────────────────────────────────────────

    def _allowed_periods(self, req: Requirement, day: str) -> list[int]:
        rule = self.instance.constraint_for(req.subject_id)
        last = self.config.periods_for(day)
        periods = []
        for p in range(1, last + 1):
            if rule.avoid_first_period and p == 1:
                continue
            if rule.avoid_last_period and p == last:
                continue
            periods.append(p)
        return periods

    def _create_variables(self) -> None:
        """x[r, d, p] nur für erlaubte Zellen (Randstunden-Sperren = keine Variable)."""
        for r in self._reqs:
            for day in self._days:
                for p in self._allowed_periods(r, day):
                    var = self._model.new_bool_var(f"x_{r.id}_{day}_{p}")
                    self._x[(r.id, day, p)] = var
                    self._by_class_slot.setdefault((r.class_id, day, p), []).append(var)
                    self._by_req_day.setdefault((r.id, day), []).append(var)
                    if r.teacher_id is not None:
                        self._by_teacher_slot.setdefault(
                            (r.teacher_id, day, p), []
                        ).append(var)

    def _teacher_ids(self) -> set[int]:
        return {r.teacher_id for r in self._reqs if r.teacher_id is not None}

    # ─── Harte Constraints ────────────────────────────────────────────────────

    def _add_constraints(self) -> None:
        self._c1_weekly_periods()
        self._c2_no_class_conflict()
        self._c3_no_teacher_conflict()
        self._c4_teacher_daily_max()
        self._c5_teacher_max_consecutive()
        self._c6_subject_max_per_day()

    def _c1_weekly_periods(self) -> None:
        """Summe der Stunden == Wochenstunden pro Stundenbedarf."""
        for r in self._reqs:
            vars_ = [v for (rid, _, _), v in self._x.items() if rid == r.id]
            if not vars_:
                # Keine erlaubte Zelle: Konstante 0 == n macht das Modell INFEASIBLE
                vars_ = [self._model.new_constant(0)]
            self._model.add(sum(vars_) == r.periods_per_week)

    def _c2_no_class_conflict(self) -> None:
        """Keine Klasse doppelt belegt an einem Slot."""
        for vars_ in self._by_class_slot.values():
            if len(vars_) > 1:
                self._model.add(sum(vars_) <= 1)

    def _c3_no_teacher_conflict(self) -> None:
        """Kein Lehrer doppelt belegt an einem Slot."""
        for vars_ in self._by_teacher_slot.values():
            if len(vars_) > 1:
                self._model.add(sum(vars_) <= 1)

    def _c4_teacher_daily_max(self) -> None:
        """Maximale Stunden pro Tag pro Lehrer (Config und Wunsch, der kleinere Wert)."""
        for t in self._teacher_ids():
            pref = self.instance.preference_for(t)
            limit = min(self.config.max_teacher_periods_per_day, pref.max_daily_periods)
            for day in self._days:
                day_vars = [
                    v for (tid, d, _), vs in self._by_teacher_slot.items()
                    if tid == t and d == day for v in vs
                ]
                if len(day_vars) > limit:
                    self._model.add(sum(day_vars) <= limit)

    def _c5_teacher_max_consecutive(self) -> None:
        """In jedem Fenster von k+1 Stunden höchstens k belegt."""
        for t in self._teacher_ids():
            pref = self.instance.preference_for(t)
            k = min(self.config.max_consecutive_periods, pref.max_consecutive)
            for day in self._days:
                last = self.config.periods_for(day)
                for start in range(1, last - k + 1):
                    window = [
                        v for p in range(start, start + k + 1)
                        for v in self._by_teacher_slot.get((t, day, p), [])
                    ]
                    if len(window) > k:
                        self._model.add(sum(window) <= k)

    def _c6_subject_max_per_day(self) -> None:
        for r in self._reqs:
            limit = self.instance.constraint_for(r.subject_id).max_per_day
            for day in self._days:
                vars_ = self._by_req_day.get((r.id, day), [])
                if len(vars_) > limit:
                    self._model.add(sum(vars_) <= limit)

    # ─── Soft-Constraints / Zielfunktion ──────────────────────────────────────

    def _add_soft_objective(self) -> None:
        w = self.weights
        terms = []
        if w["consecutive_block"] > 0:
            terms.extend(self._soft_consecutive_blocks(w["consecutive_block"]))
        if w["no_consecutive_days"] > 0:
            terms.extend(self._soft_no_consecutive_days(w["no_consecutive_days"]))
        if w["prefer_time"] > 0:
            terms.extend(self._soft_prefer_time(w["prefer_time"]))
        if w["heavy_early"] > 0:
            terms.extend(self._soft_heavy_early(w["heavy_early"]))
        if w["golden_days"] > 0:
            terms.extend(self._soft_golden_days(w["golden_days"]))
        if w["teaching_style"] > 0:
            terms.extend(self._soft_teaching_style(w["teaching_style"]))
        if terms:
            self._model.minimize(sum(terms))

    def _day_active(self, name: str, vars_: list):
        """BoolVar, die genau dann 1 ist, wenn eine der vars_ aktiv ist."""
        a = self._model.new_bool_var(name)
        self._model.add_bool_or(vars_).only_enforce_if(a)
        self._model.add(sum(vars_) == 0).only_enforce_if(a.negated())
        return a

    def _soft_consecutive_blocks(self, weight: int) -> list:
        """Bonus für Blöcke aus consecutive_count Stunden bei requires_consecutive."""
        terms = []
        for r in self._reqs:
            rule = self.instance.constraint_for(r.subject_id)
            if not rule.requires_consecutive:
                continue
            n = rule.consecutive_count
            for day in self._days:
                for start in range(1, self.config.periods_for(day) - n + 2):
                    window = [self._x.get((r.id, day, p)) for p in range(start, start + n)]
                    if any(v is None for v in window):
                        continue
                    block = self._model.new_bool_var(f"block_{r.id}_{day}_{start}")
                    for v in window:
                        self._model.add_implication(block, v)
                    terms.append(-weight * block)
        return terms

    def _soft_no_consecutive_days(self, weight: int) -> list:
        """Strafe, wenn ein Fach an zwei aufeinanderfolgenden Tagen liegt."""
        terms = []
        for r in self._reqs:
            if not self.instance.constraint_for(r.subject_id).no_consecutive_days:
                continue
            active = {}
            for day in self._days:
                vars_ = self._by_req_day.get((r.id, day), [])
                if vars_:
                    active[day] = self._day_active(f"ncd_{r.id}_{day}", vars_)
            for d1, d2 in zip(self._days, self._days[1:]):
                if d1 in active and d2 in active:
                    both = self._model.new_bool_var(f"ncd_both_{r.id}_{d1}_{d2}")
                    self._model.add(active[d1] + active[d2] - 1 <= both)
                    terms.append(weight * both)
        return terms

    def _soft_prefer_time(self, weight: int) -> list:
        """Lehrkräfte mit Zeitwunsch: Abstand zum bevorzugten Tagesrand kostet."""
        terms = []
        for r in self._reqs:
            if r.teacher_id is None:
                continue
            pref = self.instance.preference_for(r.teacher_id).prefer_time
            if pref == PreferTime.ANY:
                continue
            for (rid, day, p), v in self._x.items():
                if rid != r.id:
                    continue
                cost = p - 1 if pref == PreferTime.EARLY else self.config.periods_for(day) - p
                if cost:
                    terms.append(weight * cost * v)
        return terms

    def _soft_heavy_early(self, weight: int) -> list:
        """Anspruchsvolle Fächer möglichst früh am Tag."""
        terms = []
        for r in self._reqs:
            if not self.instance.constraint_for(r.subject_id).is_heavy:
                continue
            for (rid, _, p), v in self._x.items():
                if rid == r.id and p > 1:
                    terms.append(weight * (p - 1) * v)
        return terms

    def _soft_golden_days(self, weight: int) -> list:
        """Strafe, wenn eine Lehrkraft an einem ihrer freien Wunschtage unterrichtet."""
        terms = []
        for t in self._teacher_ids():
            for day in self.instance.preference_for(t).golden_days:
                if day not in self._days:
                    continue
                vars_ = [
                    v for (tid, d, _), vs in self._by_teacher_slot.items()
                    if tid == t and d == day for v in vs
                ]
                if vars_:
                    terms.append(weight * self._day_active(f"golden_{t}_{day}", vars_))
        return terms

    def _soft_teaching_style(self, weight: int) -> list:
        """consecutive → Bonus für direkt folgende Stunden, distributed → Strafe."""
        terms = []
        for t in self._teacher_ids():
            style = self.instance.preference_for(t).teaching_style
            if style == TeachingStyle.ANY:
                continue
            sign = -1 if style == TeachingStyle.CONSECUTIVE else 1
            for day in self._days:
                for p in range(1, self.config.periods_for(day)):
                    cur = self._by_teacher_slot.get((t, day, p))
                    nxt = self._by_teacher_slot.get((t, day, p + 1))
                    if not cur or not nxt:
                        continue
                    adj = self._model.new_bool_var(f"adj_{t}_{day}_{p}")
                    if sign < 0:
                        # Bonus: adj darf nur 1 sein, wenn beide Stunden belegt sind
                        self._model.add(adj <= sum(cur))
                        self._model.add(adj <= sum(nxt))
                    else:
                        # Strafe: adj muss 1 sein, wenn beide Stunden belegt sind
                        self._model.add(sum(cur) + sum(nxt) - 1 <= adj)
                    terms.append(sign * weight * adj)
        return terms

    # ─── Ergebnis-Extraktion ──────────────────────────────────────────────────

    def _extract_entries(self, cp_solver: cp_model.CpSolver) -> list[ScheduleEntry]:
        by_id = {r.id: r for r in self._reqs}
        entries = []
        for (rid, day, p), var in self._x.items():
            if cp_solver.value(var) != 1:
                continue
            r = by_id[rid]
            entries.append(ScheduleEntry(
                teacher_id=r.teacher_id,
                teacher_name=r.teacher_name,
                subject_id=r.subject_id,
                subject_name=r.subject_name,
                class_id=r.class_id,
                grade=r.grade,
                class_name=r.class_name,
                day=day,
                period=p,
            ))
        day_order = {d: i for i, d in enumerate(self._days)}
        entries.sort(key=lambda e: (e.class_id, day_order[e.day], e.period))
        return entries
