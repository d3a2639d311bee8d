"""Export-Modul: Konsolen-Darstellung (Rich) und Excel (openpyxl) für Simulationsergebnisse."""

from export.tui_renderer import ResultPresenter, ViewMode
from export.excel_export import ExcelExporter

__all__ = ["ResultPresenter", "ViewMode", "ExcelExporter"]
