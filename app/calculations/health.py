"""
Financial Health Score

Composite 0-100 score for a monthly report, built from three bounded
sub-scores combined by a fixed weighted average:

    Factor              Weight  Sub-score (0-100)
    Cost Efficiency     0.40    100 if cost/hour <= category benchmark,
                                else 100 * benchmark / (cost/hour);
                                0 when cost/hour is undefined
    Break-Even Margin   0.35    100 * min(1, hours / break-even hours);
                                100 when break-even is 0, 0 when undefined
    Depreciation Load   0.25    100 * (1 - min(1, load / 0.50)) where
                                load = depreciation / total cost;
                                100 when total cost is 0

Cost-per-hour benchmarks by equipment category are in
COST_PER_HOUR_BENCHMARKS. The project's category is the one holding the
largest total purchase value, summed over its active equipment.
"""

from decimal import Decimal
from typing import Dict, Optional

from app.calculations.models import HealthFactor, HealthScore, MonthlyReport, Project
from app.calculations.money import (
    HUNDRED,
    ONE,
    ZERO,
    in_money_context,
    quantize_money,
    to_decimal,
)

COST_EFFICIENCY_WEIGHT = Decimal("0.40")
BREAK_EVEN_WEIGHT = Decimal("0.35")
DEPRECIATION_LOAD_WEIGHT = Decimal("0.25")

# Depreciation share of total cost at which the load sub-score reaches 0
DEPRECIATION_LOAD_CEILING = Decimal("0.50")

COST_PER_HOUR_BENCHMARKS: Dict[str, Decimal] = {
    "Helicopter": Decimal("50000"),
    "Vehicle": Decimal("5000"),
    "Machinery": Decimal("10000"),
    "Other": Decimal("10000"),
}
DEFAULT_CATEGORY = "Other"


def _bounded(value: Decimal) -> Decimal:
    return quantize_money(max(ZERO, min(HUNDRED, value)))


def project_category(project: Project) -> str:
    """Category with the largest summed purchase value; ties go to the first seen."""
    totals: Dict[str, Decimal] = {}
    for eq in project.active_equipment:
        category = eq.category if eq.category in COST_PER_HOUR_BENCHMARKS else DEFAULT_CATEGORY
        totals[category] = totals.get(category, ZERO) + to_decimal(eq.purchase_price)

    best: Optional[str] = None
    for category, total in totals.items():
        if best is None or total > totals[best]:
            best = category
    return best or DEFAULT_CATEGORY


@in_money_context
def cost_efficiency_score(cost_per_hour: Decimal, benchmark: Decimal) -> Decimal:
    if not cost_per_hour.is_finite():
        return ZERO
    if cost_per_hour <= benchmark:
        return _bounded(HUNDRED)
    return _bounded(HUNDRED * benchmark / cost_per_hour)


@in_money_context
def break_even_margin_score(operating_hours: Decimal, break_even_hours: Decimal) -> Decimal:
    if not break_even_hours.is_finite():
        return ZERO
    if break_even_hours <= 0:
        return _bounded(HUNDRED)
    return _bounded(HUNDRED * min(ONE, operating_hours / break_even_hours))


@in_money_context
def depreciation_load_score(depreciation: Decimal, total_cost: Decimal) -> Decimal:
    if total_cost <= 0:
        return _bounded(HUNDRED)
    load = depreciation / total_cost
    return _bounded(HUNDRED * (ONE - min(ONE, load / DEPRECIATION_LOAD_CEILING)))


class FinancialHealthScorer:
    def __init__(self, benchmarks: Optional[Dict[str, Decimal]] = None):
        self.benchmarks = benchmarks or COST_PER_HOUR_BENCHMARKS

    @in_money_context
    def score(self, project: Project, report: MonthlyReport) -> HealthScore:
        category = project_category(project)
        benchmark = self.benchmarks.get(category, COST_PER_HOUR_BENCHMARKS[DEFAULT_CATEGORY])

        factors = (
            HealthFactor(
                name="Cost Efficiency",
                score=cost_efficiency_score(report.cost_per_hour, benchmark),
                weight=COST_EFFICIENCY_WEIGHT,
            ),
            HealthFactor(
                name="Break-Even Margin",
                score=break_even_margin_score(report.operating_hours, report.break_even_hours),
                weight=BREAK_EVEN_WEIGHT,
            ),
            HealthFactor(
                name="Depreciation Load",
                score=depreciation_load_score(report.depreciation, report.total_cost),
                weight=DEPRECIATION_LOAD_WEIGHT,
            ),
        )
        overall = sum((f.score * f.weight for f in factors), ZERO)

        return HealthScore(
            score=_bounded(overall),
            factors=factors,
            category=category,
            benchmark_cost_per_hour=benchmark,
        )


def calculate_financial_health_score(project: Project, report: MonthlyReport) -> HealthScore:
    return FinancialHealthScorer().score(project, report)
