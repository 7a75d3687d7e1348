"""
Monthly Cost Report

Combines depreciation, operating parameters and member allocation into the
cost report for one calendar month. Every other report (forecast, scenarios,
trend, health score) is built from these.

The generator is pure: the same project and target month always give the
same report, which is what makes caching reports by (project, type, period)
safe.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from app.calculations.allocation import allocate
from app.calculations.depreciation import UsageLookup, total_monthly_depreciation
from app.calculations.errors import MissingOperatingParameters
from app.calculations.models import (
    DefaultScope,
    ForMonth,
    MonthlyReport,
    OperatingParameters,
    Project,
)
from app.calculations.money import (
    HUNDRED,
    UNDEFINED,
    in_money_context,
    quantize_money,
    to_decimal,
)
from app.calculations.periods import month_start

DEFAULT_RESERVE_PERCENT = Decimal("15")


def find_operating_parameters(
    project: Project, target: date
) -> Optional[OperatingParameters]:
    """
    Parameters in force for a month: the month's own record, else the
    project default, else None.
    """
    scope = ForMonth.of(target)
    default = None
    for params in project.operating_parameters:
        if params.scope == scope:
            return params
        if default is None and isinstance(params.scope, DefaultScope):
            default = params
    return default


def resolve_operating_parameters(project: Project, target: date) -> OperatingParameters:
    """Like find_operating_parameters, but a missing record is an error."""
    params = find_operating_parameters(project, target)
    if params is None:
        raise MissingOperatingParameters(project.id, target.year, target.month)
    return params


def usage_from_parameters(project: Project) -> UsageLookup:
    """Monthly equipment usage taken from the project's operating hours."""

    def usage(month: date) -> Optional[Decimal]:
        params = find_operating_parameters(project, month)
        if params is None:
            return None
        return to_decimal(params.operating_hours_per_month)

    return usage


def calculate_fixed_costs(params: OperatingParameters) -> Decimal:
    """Insurance + salaries + facility rent + every other expense."""
    total = (
        to_decimal(params.insurance_monthly)
        + to_decimal(params.staff_salaries_monthly)
        + to_decimal(params.facility_rent_monthly)
    )
    for expense in params.other_expenses:
        total += to_decimal(expense.amount)
    return total


def calculate_variable_costs(params: OperatingParameters) -> Decimal:
    """Operating hours times the hourly fuel and maintenance cost."""
    hourly = to_decimal(params.fuel_cost_per_hour) + to_decimal(params.maintenance_cost_per_hour)
    return to_decimal(params.operating_hours_per_month) * hourly


@in_money_context
def calculate_cost_per_hour(total_cost: Decimal, operating_hours: Decimal) -> Decimal:
    """Total cost per operating hour; UNDEFINED for a month with no hours."""
    if operating_hours <= 0:
        return UNDEFINED
    return quantize_money(total_cost / operating_hours)


@in_money_context
def calculate_break_even_hours(
    fixed_costs: Decimal,
    depreciation: Decimal,
    total_cost: Decimal,
    variable_cost_per_hour: Decimal,
    hourly_rate: Optional[Decimal] = None,
) -> Decimal:
    """
    Operating hours needed to cover the month's cost.

    With a nominal hourly billing rate, this is the classic break-even point:
    (fixed + depreciation) / (rate - variable cost per hour). Without one, it
    is the hours at which billing the variable rate alone would cover the
    total cost: total / variable cost per hour.

    Returns UNDEFINED when the denominator is not positive.
    """
    if hourly_rate is not None:
        margin = to_decimal(hourly_rate) - variable_cost_per_hour
        if margin <= 0:
            return UNDEFINED
        return quantize_money((fixed_costs + depreciation) / margin)

    if variable_cost_per_hour <= 0:
        return UNDEFINED
    return quantize_money(total_cost / variable_cost_per_hour)


def annual_cost(report: MonthlyReport) -> Decimal:
    """Monthly total extrapolated to a year."""
    return report.total_cost * 12


@in_money_context
def monthly_reserve(total_cost, percentage=DEFAULT_RESERVE_PERCENT) -> Decimal:
    """Recommended monthly reserve, a percentage of the monthly cost."""
    return quantize_money(to_decimal(total_cost) * to_decimal(percentage) / HUNDRED)


class MonthlyReportGenerator:
    """Builds MonthlyReport values. Holds no state between calls."""

    def generate(self, project: Project, target_date: date) -> MonthlyReport:
        """
        Generate the cost report for the month containing ``target_date``.

        Raises:
            MissingOperatingParameters: No record for the month and no default
            InvalidEquipmentConfiguration: From any non-archived equipment
            NoActiveMembers: Cost to allocate but no active members
        """
        params = resolve_operating_parameters(project, target_date)
        return self.generate_with_parameters(project, target_date, params)

    @in_money_context
    def generate_with_parameters(
        self, project: Project, target_date: date, parameters: OperatingParameters
    ) -> MonthlyReport:
        """
        Generate a report using ``parameters`` for the month's costs.

        Depreciation still follows the project's own recorded usage, so
        hypothetical parameters (scenarios) never change it.
        """
        target = month_start(target_date)

        fixed_costs = quantize_money(calculate_fixed_costs(parameters))
        variable_costs = quantize_money(calculate_variable_costs(parameters))
        depreciation = quantize_money(
            total_monthly_depreciation(
                project.equipment, target, usage_from_parameters(project)
            )
        )
        total_cost = fixed_costs + variable_costs + depreciation

        operating_hours = to_decimal(parameters.operating_hours_per_month)
        variable_rate = to_decimal(parameters.variable_cost_per_hour)
        hourly_rate = project.hourly_rate

        return MonthlyReport(
            month=target.month,
            year=target.year,
            total_cost=total_cost,
            fixed_costs=fixed_costs,
            variable_costs=variable_costs,
            depreciation=depreciation,
            operating_hours=operating_hours,
            cost_per_hour=calculate_cost_per_hour(total_cost, operating_hours),
            break_even_hours=calculate_break_even_hours(
                fixed_costs, depreciation, total_cost, variable_rate, hourly_rate
            ),
            member_allocations=allocate(
                total_cost, project.active_members, project.cost_allocation_method
            ),
        )


def generate_monthly_report(project: Project, target_date: date) -> MonthlyReport:
    return MonthlyReportGenerator().generate(project, target_date)
