"""Output generation for rosters (CSV, text, PDF)."""

from dutyroster.output.csv_exporter import CSVExporter
from dutyroster.output.pdf_generator import PDFGenerator
from dutyroster.output.report_generator import ReportGenerator

__all__ = [
    "CSVExporter",
    "PDFGenerator",
    "ReportGenerator",
]
