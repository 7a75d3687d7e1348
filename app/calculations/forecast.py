"""
Annual Forecast

Twelve consecutive monthly reports starting from a given month. Each month
is generated independently from the project records (equipment age is
recomputed from the acquisition date every time), so the months can be
computed in any order.
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from app.calculations.models import ForecastRow, ForecastSummary, MonthlyReport, Project
from app.calculations.money import ZERO, in_money_context
from app.calculations.monthly import MonthlyReportGenerator, calculate_cost_per_hour
from app.calculations.periods import month_range

FORECAST_MONTHS = 12


class AnnualForecastEngine:
    """Chains MonthlyReportGenerator over twelve consecutive months."""

    def __init__(self, generator: Optional[MonthlyReportGenerator] = None):
        self.generator = generator or MonthlyReportGenerator()

    def forecast(
        self, project: Project, start_month: int, start_year: int
    ) -> Tuple[MonthlyReport, ...]:
        """
        Forecast twelve months starting at (start_month, start_year).

        The year wraps after December. A month that cannot be resolved
        fails the whole forecast; partial forecasts are never returned.

        Raises:
            ValueError: If start_month is not 1-12
            MissingOperatingParameters: If any month has no parameters
        """
        if not 1 <= start_month <= 12:
            raise ValueError(f"start_month must be between 1 and 12 (got {start_month})")

        months = month_range(date(start_year, start_month, 1), FORECAST_MONTHS)
        return tuple(self.generator.generate(project, month) for month in months)


@in_money_context
def summarize_forecast(reports: Sequence[MonthlyReport]) -> ForecastSummary:
    """
    Running totals for a forecast plus the totals over the whole period.
    """
    rows: List[ForecastRow] = []
    cumulative = ZERO
    for report in reports:
        cumulative += report.total_cost
        rows.append(
            ForecastRow(
                month=report.month,
                year=report.year,
                projected_cost=report.total_cost,
                cumulative_cost=cumulative,
                operating_hours=report.operating_hours,
                cost_per_hour=report.cost_per_hour,
            )
        )

    total_hours: Decimal = sum((r.operating_hours for r in reports), ZERO)

    return ForecastSummary(
        rows=tuple(rows),
        total_cost=cumulative,
        fixed_costs=sum((r.fixed_costs for r in reports), ZERO),
        variable_costs=sum((r.variable_costs for r in reports), ZERO),
        depreciation=sum((r.depreciation for r in reports), ZERO),
        operating_hours=total_hours,
        average_cost_per_hour=calculate_cost_per_hour(cumulative, total_hours),
    )


def generate_annual_forecast(
    project: Project, start_month: int, start_year: int
) -> Tuple[MonthlyReport, ...]:
    return AnnualForecastEngine().forecast(project, start_month, start_year)
