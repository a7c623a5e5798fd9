"""Monthly productivity/attendance workbook generator for the clinic."""

from productivity_report.errors import ReportGenerationError
from productivity_report.pipeline import generate_productivity_report

__all__ = ["generate_productivity_report", "ReportGenerationError"]
