"""Reporting tool: CSV summaries and paginated PDF grading reports."""

from .layout import ReportSurface
from .report import ReportExporter, paginate
from .summary import export_summary, render_summary_csv

__all__ = [
    'ReportSurface',
    'ReportExporter',
    'paginate',
    'export_summary',
    'render_summary_csv',
]
