"""
Trend Data

Trailing series of monthly reports ending at a reference month.
"""

from datetime import date
from typing import Optional, Tuple

from app.calculations.models import MonthlyReport, Project
from app.calculations.monthly import MonthlyReportGenerator
from app.calculations.periods import add_months

DEFAULT_TREND_MONTHS = 3


class TrendDataGenerator:
    def __init__(self, generator: Optional[MonthlyReportGenerator] = None):
        self.generator = generator or MonthlyReportGenerator()

    def trend(
        self, project: Project, month_count: int, as_of: date
    ) -> Tuple[MonthlyReport, ...]:
        """
        Reports for the ``month_count`` months ending at ``as_of``'s month,
        oldest first.
        """
        if month_count < 1:
            raise ValueError(f"month_count must be at least 1 (got {month_count})")

        return tuple(
            self.generator.generate(project, add_months(as_of, -offset))
            for offset in range(month_count - 1, -1, -1)
        )


def generate_trend_data(
    project: Project, as_of: date, month_count: int = DEFAULT_TREND_MONTHS
) -> Tuple[MonthlyReport, ...]:
    return TrendDataGenerator().trend(project, month_count, as_of)
