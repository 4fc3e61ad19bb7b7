"""Output generation for conflict reports (PDF, text)."""

from shiftguard.output.pdf_generator import PDFGenerator, describe_job, summarize
from shiftguard.output.text_report import TextReportGenerator

__all__ = [
    "PDFGenerator",
    "TextReportGenerator",
    "describe_job",
    "summarize",
]
