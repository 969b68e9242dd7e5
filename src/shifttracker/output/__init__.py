"""Output generation for rosters (PDF, text)."""

from shifttracker.output.pdf_generator import PDFGenerator
from shifttracker.output.text_report import TextReportGenerator

__all__ = [
    "PDFGenerator",
    "TextReportGenerator",
]
