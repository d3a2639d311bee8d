"""Excel-Export eines Simulationsergebnisses (openpyxl)."""

from pathlib import Path

from config.schema import SimulationConfig
from solver.backend import RunResult

from export.helpers import COLORS, heat_level, score_level, today_str
from export.tui_renderer import (
    FREE, METRIC_LABELS, render_class_rows, render_heatmap_rows, render_teacher_rows,
)


class ExcelExporter:
    """Exportiert ein RunResult in eine Excel-Datei.

    Blätter: Übersicht, Qualität (falls vorhanden), Konflikte (falls vorhanden),
    Heatmap (falls vorhanden), je ein Blatt pro Klasse und pro Lehrkraft.
    """

    COL_STD_W = 6
    COL_DAY_W = 22
    ROW_HEADER_H = 22
    ROW_LESSON_H = 36

    # Excel erlaubt max. 31 Zeichen und keine dieser Zeichen im Blattnamen
    _SHEET_FORBIDDEN = set('[]:*?/\\')

    def __init__(self, result: RunResult, config: SimulationConfig, school_name: str = ""):
        self.result = result
        self.config = config
        self.school_name = school_name or config.name
        self._sheet_names: set[str] = set()

    # ─── Öffentliche API ──────────────────────────────────────────────────────

    def export(self, output_path: Path) -> Path:
        from openpyxl import Workbook
        wb = Workbook()
        wb.remove(wb.active)

        self._sheet_uebersicht(wb)
        if self.result.quality_report is not None:
            self._sheet_qualitaet(wb)
        if self.result.conflicts:
            self._sheet_konflikte(wb)
        if self.result.conflict_heatmap is not None:
            self._sheet_heatmap(wb)
        for view in self.result.by_class.values():
            self._sheet_grid(
                wb, f"{view.grade} {view.class_name}",
                render_class_rows(view, self.config), COLORS["lesson"],
            )
        for view in self.result.by_teacher.values():
            self._sheet_grid(
                wb, view.name, render_teacher_rows(view, self.config), COLORS["teacher"],
            )

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        wb.save(output_path)
        return output_path

    # ─── Style-Helpers ────────────────────────────────────────────────────────

    def _fill(self, hex_color: str):
        from openpyxl.styles import PatternFill
        return PatternFill(start_color=hex_color, end_color=hex_color, fill_type="solid")

    def _center_align(self, wrap: bool = True):
        from openpyxl.styles import Alignment
        return Alignment(wrap_text=wrap, horizontal="center", vertical="center")

    def _thin_border(self):
        from openpyxl.styles import Border, Side
        s = Side(border_style="thin", color="BBBBBB")
        return Border(left=s, right=s, top=s, bottom=s)

    def _sheet_title(self, name: str) -> str:
        clean = "".join("_" if ch in self._SHEET_FORBIDDEN else ch for ch in name)[:31]
        title, n = clean or "Blatt", 2
        while title in self._sheet_names:
            suffix = f" ({n})"
            title = clean[: 31 - len(suffix)] + suffix
            n += 1
        self._sheet_names.add(title)
        return title

    def _write_header(self, ws, row: int, headers: list[str]) -> None:
        from openpyxl.styles import Font
        fill = self._fill(COLORS["header"])
        border = self._thin_border()
        for col, text in enumerate(headers, 1):
            cell = ws.cell(row=row, column=col, value=text)
            cell.fill = fill
            cell.font = Font(bold=True, color="FFFFFF", size=10)
            cell.alignment = self._center_align(wrap=False)
            cell.border = border
        ws.row_dimensions[row].height = self.ROW_HEADER_H

    # ─── Sheets ───────────────────────────────────────────────────────────────

    def _sheet_uebersicht(self, wb) -> None:
        from openpyxl.styles import Font
        ws = wb.create_sheet(title=self._sheet_title("Übersicht"), index=0)
        r = self.result

        ws.cell(row=1, column=1, value=self.school_name).font = Font(bold=True, size=14)
        ws.cell(row=2, column=1, value=f"Simulation: {self.config.name}")
        ws.cell(row=3, column=1, value=f"Erstellt: {today_str()}")
        ws.cell(row=4, column=1, value=f"Status: {r.status.value}")
        ws.cell(row=5, column=1, value=f"Rechenzeit: {r.solving_time_ms} ms")
        ws.cell(row=6, column=1, value=f"Geplante Stunden: {len(r.schedule)}")
        if r.quality_report is not None:
            ws.cell(row=7, column=1, value=f"Qualität: {round(r.quality_report.overall_score)}%")
        if r.error_message:
            ws.cell(row=8, column=1, value=r.error_message).font = Font(color="CC0000")
        ws.column_dimensions["A"].width = 50

    def _sheet_qualitaet(self, wb) -> None:
        ws = wb.create_sheet(title=self._sheet_title("Qualität"))
        report = self.result.quality_report
        self._write_header(ws, 1, ["Kennzahl", "Wert (%)"])
        border = self._thin_border()
        row = 2
        for key, metric in report.metrics.items():
            ws.cell(row=row, column=1, value=METRIC_LABELS.get(key, key)).border = border
            c = ws.cell(row=row, column=2, value=round(metric.score, 1))
            c.border = border
            c.fill = self._fill(COLORS[score_level(metric.score)])
            row += 1

        row += 1
        for w in report.warnings:
            ws.cell(row=row, column=1, value=f"Warnung ({w.type}): {w.message}")
            row += 1
        for s in report.suggestions:
            ws.cell(row=row, column=1, value=f"Vorschlag: {s}")
            row += 1
        ws.column_dimensions["A"].width = 60
        ws.column_dimensions["B"].width = 12

    def _sheet_konflikte(self, wb) -> None:
        ws = wb.create_sheet(title=self._sheet_title("Konflikte"))
        self._write_header(ws, 1, ["Schwere", "Typ", "Meldung", "Vorschlag"])
        border = self._thin_border()
        for row, c in enumerate(self.result.conflicts, 2):
            cell = ws.cell(row=row, column=1, value=c.severity)
            cell.fill = self._fill(COLORS["bad"] if c.is_critical else COLORS["medium"])
            cell.border = border
            ws.cell(row=row, column=2, value=c.type).border = border
            ws.cell(row=row, column=3, value=c.message).border = border
            ws.cell(row=row, column=4, value=c.suggestion).border = border
        for col, width in zip("ABCD", (10, 22, 70, 50)):
            ws.column_dimensions[col].width = width

    def _sheet_heatmap(self, wb) -> None:
        ws = wb.create_sheet(title=self._sheet_title("Heatmap"))
        heatmap = self.result.conflict_heatmap
        self._write_header(ws, 1, ["Std."] + list(self.config.working_days))
        border = self._thin_border()
        for r_idx, row in enumerate(render_heatmap_rows(heatmap, self.config), 2):
            p = int(row[0])
            ws.cell(row=r_idx, column=1, value=p).border = border
            for c_idx, day in enumerate(self.config.working_days, 2):
                if not row[c_idx - 1]:
                    continue
                value = heatmap.value(day, p)
                c = ws.cell(row=r_idx, column=c_idx, value=round(value, 2))
                c.number_format = "0%"
                c.fill = self._fill(COLORS[heat_level(value)])
                c.alignment = self._center_align(wrap=False)
                c.border = border

    def _sheet_grid(self, wb, name: str, rows: list[list[str]], color: str) -> None:
        from openpyxl.styles import Font
        from openpyxl.utils import get_column_letter

        ws = wb.create_sheet(title=self._sheet_title(name))
        ws.column_dimensions["A"].width = self.COL_STD_W
        for col in range(2, 2 + len(self.config.working_days)):
            ws.column_dimensions[get_column_letter(col)].width = self.COL_DAY_W

        self._write_header(ws, 1, ["Std."] + list(self.config.working_days))
        border = self._thin_border()
        for r_idx, row in enumerate(rows, 2):
            c = ws.cell(row=r_idx, column=1, value=int(row[0]))
            c.font = Font(bold=True, size=9)
            c.alignment = self._center_align(wrap=False)
            c.border = border
            for c_idx, text in enumerate(row[1:], 2):
                busy = bool(text) and text != FREE and not text.startswith("↕")
                c = ws.cell(row=r_idx, column=c_idx, value=text if busy else None)
                c.fill = self._fill(color if busy else COLORS["free"])
                c.alignment = self._center_align()
                c.font = Font(size=8)
                c.border = border
            ws.row_dimensions[r_idx].height = self.ROW_LESSON_H
