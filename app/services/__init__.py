"""
Application services module.
"""

from app.services.cache import InMemoryReportCache, ReportCache, get_report_cache
from app.services.reports import ReportService, get_report_service

__all__ = [
    "InMemoryReportCache",
    "ReportCache",
    "get_report_cache",
    "ReportService",
    "get_report_service",
]
