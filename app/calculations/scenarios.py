"""
Scenario Analysis

Re-runs the monthly report under hypothetical usage and variable-cost
multipliers and compares each result with the unmodified baseline.

Only operating hours and the hourly fuel/maintenance rates are scaled. Fixed
costs and depreciation are not usage-dependent and stay as recorded, so a
scenario with both multipliers at 1 reproduces the baseline exactly.
"""

from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import List, Optional, Sequence

from app.calculations.errors import InvalidScenario
from app.calculations.models import (
    Delta,
    MonthlyReport,
    OperatingParameters,
    Project,
    ScenarioDefinition,
    ScenarioResult,
)
from app.calculations.money import (
    HUNDRED,
    UNDEFINED,
    ZERO,
    in_money_context,
    quantize_money,
    to_decimal,
)
from app.calculations.monthly import (
    MonthlyReportGenerator,
    annual_cost,
    resolve_operating_parameters,
)


@in_money_context
def calculate_delta(baseline: Decimal, value: Decimal) -> Delta:
    """
    Absolute and percentage change from ``baseline`` to ``value``.

    Undefined inputs (e.g. cost per hour at zero hours) only compare equal to
    each other; any other change involving them is UNDEFINED. A change from a
    zero baseline has an UNDEFINED percentage.
    """
    if not (baseline.is_finite() and value.is_finite()):
        if baseline == value:
            return Delta(baseline=baseline, value=value, absolute=ZERO, percent=ZERO)
        return Delta(baseline=baseline, value=value, absolute=UNDEFINED, percent=UNDEFINED)

    absolute = value - baseline
    if baseline == 0:
        percent = ZERO if absolute == 0 else UNDEFINED
    else:
        percent = quantize_money(absolute / baseline * HUNDRED)
    return Delta(baseline=baseline, value=value, absolute=absolute, percent=percent)


@in_money_context
def adjust_parameters(
    params: OperatingParameters, scenario: ScenarioDefinition
) -> OperatingParameters:
    """Scale usage and hourly variable costs by the scenario multipliers."""
    hours_multiplier = to_decimal(scenario.operating_hours_multiplier)
    cost_multiplier = to_decimal(scenario.cost_multiplier)

    if hours_multiplier < 0 or cost_multiplier < 0:
        raise InvalidScenario(f"Scenario '{scenario.name}': multipliers cannot be negative")

    return replace(
        params,
        operating_hours_per_month=to_decimal(params.operating_hours_per_month) * hours_multiplier,
        fuel_cost_per_hour=to_decimal(params.fuel_cost_per_hour) * cost_multiplier,
        maintenance_cost_per_hour=to_decimal(params.maintenance_cost_per_hour) * cost_multiplier,
    )


def compare_reports(name: str, baseline: MonthlyReport, report: MonthlyReport) -> ScenarioResult:
    return ScenarioResult(
        name=name,
        report=report,
        total_cost=calculate_delta(baseline.total_cost, report.total_cost),
        variable_costs=calculate_delta(baseline.variable_costs, report.variable_costs),
        cost_per_hour=calculate_delta(baseline.cost_per_hour, report.cost_per_hour),
        break_even_hours=calculate_delta(baseline.break_even_hours, report.break_even_hours),
        operating_hours=calculate_delta(baseline.operating_hours, report.operating_hours),
        annual_cost=annual_cost(report),
    )


class ScenarioAnalysisEngine:
    """Runs what-if scenarios against a project's monthly report."""

    def __init__(self, generator: Optional[MonthlyReportGenerator] = None):
        self.generator = generator or MonthlyReportGenerator()

    def analyze(
        self,
        project: Project,
        scenarios: Sequence[ScenarioDefinition],
        target_date: date,
    ) -> List[ScenarioResult]:
        """
        Evaluate each scenario for the month containing ``target_date``.

        Returns:
            One result per scenario, in input order
        """
        params = resolve_operating_parameters(project, target_date)
        baseline = self.generator.generate_with_parameters(project, target_date, params)

        results = []
        for scenario in scenarios:
            adjusted = adjust_parameters(params, scenario)
            report = self.generator.generate_with_parameters(project, target_date, adjusted)
            results.append(compare_reports(scenario.name, baseline, report))
        return results


def analyze_scenarios(
    project: Project, scenarios: Sequence[ScenarioDefinition], target_date: date
) -> List[ScenarioResult]:
    return ScenarioAnalysisEngine().analyze(project, scenarios, target_date)


# Preset what-if set used when the caller supplies none
DEFAULT_SCENARIOS = (
    ScenarioDefinition(name="High Usage", operating_hours_multiplier=Decimal("1.2")),
    ScenarioDefinition(name="Low Usage", operating_hours_multiplier=Decimal("0.8")),
    ScenarioDefinition(name="Cost Increase", cost_multiplier=Decimal("1.1")),
    ScenarioDefinition(name="Cost Decrease", cost_multiplier=Decimal("0.9")),
)
