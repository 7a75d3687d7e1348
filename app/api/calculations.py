"""
Financial calculation API endpoints.

These endpoints accept a fully hydrated project in the request body and
return calculated results. Nothing is stored or cached; see projects.py for
the persisted, cached equivalents.

Money is returned as decimal strings so no precision is lost to JSON floats.
Undefined ratios (cost per hour at zero operating hours) are returned as null.
"""

from dataclasses import replace

from fastapi import APIRouter
from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import date
from decimal import Decimal

from app.calculations import allocation, depreciation, forecast, health, scenarios, trend
from app.calculations.models import (
    DEFAULT_SCOPE,
    DepreciationSummary,
    Delta,
    Equipment,
    ForMonth,
    ForecastSummary,
    HealthScore,
    MonthlyReport,
    OperatingParameters,
    OtherExpense,
    Project,
    ProjectMember,
    ScenarioDefinition,
    ScenarioResult,
    ScheduleEntry,
)
from app.calculations.monthly import (
    MonthlyReportGenerator,
    annual_cost,
    monthly_reserve,
    usage_from_parameters,
)
from app.config import get_settings

router = APIRouter()


# ============================================================================
# INPUT SCHEMAS
# ============================================================================


class OtherExpenseInput(BaseModel):
    description: str = ""
    amount: Decimal


class OperatingParametersInput(BaseModel):
    """Operating parameters; omit ``month`` for the project default."""

    month: Optional[date] = None
    operating_hours_per_month: Decimal = Decimal("0")
    fuel_cost_per_hour: Decimal = Decimal("0")
    maintenance_cost_per_hour: Decimal = Decimal("0")
    insurance_monthly: Decimal = Decimal("0")
    staff_salaries_monthly: Decimal = Decimal("0")
    facility_rent_monthly: Decimal = Decimal("0")
    other_expenses: List[OtherExpenseInput] = []

    def to_domain(self) -> OperatingParameters:
        return OperatingParameters(
            scope=ForMonth.of(self.month) if self.month else DEFAULT_SCOPE,
            operating_hours_per_month=self.operating_hours_per_month,
            fuel_cost_per_hour=self.fuel_cost_per_hour,
            maintenance_cost_per_hour=self.maintenance_cost_per_hour,
            insurance_monthly=self.insurance_monthly,
            staff_salaries_monthly=self.staff_salaries_monthly,
            facility_rent_monthly=self.facility_rent_monthly,
            other_expenses=tuple(
                OtherExpense(description=e.description, amount=e.amount)
                for e in self.other_expenses
            ),
        )


class EquipmentInput(BaseModel):
    id: Optional[str] = None
    name: str = ""
    category: str = "Other"
    purchase_price: Decimal
    acquisition_date: date
    service_life_years: int
    salvage_value: Optional[Decimal] = None
    depreciation_method: str = "straight_line"
    expected_usage_hours: Optional[Decimal] = None
    archived: bool = False

    def to_domain(self, fallback_id: str, project_id: Optional[str] = None) -> Equipment:
        return Equipment(
            id=self.id or fallback_id,
            project_id=project_id,
            name=self.name,
            category=self.category,
            purchase_price=self.purchase_price,
            acquisition_date=self.acquisition_date,
            service_life_years=self.service_life_years,
            salvage_value=self.salvage_value,
            depreciation_method=self.depreciation_method,
            expected_usage_hours=self.expected_usage_hours,
            archived=self.archived,
        )


class MemberInput(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    role: str = "member"
    ownership_share: Decimal = Decimal("0")
    operating_hours_per_month: Decimal = Decimal("0")
    status: str = "active"

    def to_domain(self, fallback_id: str) -> ProjectMember:
        return ProjectMember(
            id=self.id or fallback_id,
            name=self.name,
            email=self.email,
            role=self.role,
            ownership_share=self.ownership_share,
            operating_hours_per_month=self.operating_hours_per_month,
            status=self.status,
        )


class ProjectInput(BaseModel):
    """A project with its equipment, members and operating parameters."""

    id: str = "adhoc"
    name: str = ""
    currency: str = "USD"
    cost_allocation_method: str = "by_hours"
    hourly_rate: Optional[Decimal] = None
    equipment: List[EquipmentInput] = []
    members: List[MemberInput] = []
    operating_parameters: List[OperatingParametersInput] = []

    def to_domain(self) -> Project:
        return Project(
            id=self.id,
            name=self.name,
            currency=self.currency,
            cost_allocation_method=self.cost_allocation_method,
            hourly_rate=self.hourly_rate,
            equipment=tuple(
                eq.to_domain(f"equipment-{i + 1}", self.id)
                for i, eq in enumerate(self.equipment)
            ),
            members=tuple(
                m.to_domain(f"member-{i + 1}") for i, m in enumerate(self.members)
            ),
            operating_parameters=tuple(p.to_domain() for p in self.operating_parameters),
        )


class ScenarioInput(BaseModel):
    name: str
    operating_hours_multiplier: Optional[Decimal] = None
    cost_multiplier: Optional[Decimal] = None

    def to_domain(self) -> ScenarioDefinition:
        scenario = ScenarioDefinition(name=self.name)
        if self.operating_hours_multiplier is not None:
            scenario = replace(scenario, operating_hours_multiplier=self.operating_hours_multiplier)
        if self.cost_multiplier is not None:
            scenario = replace(scenario, cost_multiplier=self.cost_multiplier)
        return scenario


class PeriodRequest(BaseModel):
    """Project plus a target month; the current month when omitted."""

    project: ProjectInput
    month: Optional[int] = Field(default=None, ge=1, le=12)
    year: Optional[int] = Field(default=None, ge=1, le=9999)

    def target_date(self) -> date:
        return resolve_target_date(self.month, self.year)


class ForecastRequest(BaseModel):
    project: ProjectInput
    start_month: Optional[int] = Field(default=None, ge=1, le=12)
    start_year: Optional[int] = Field(default=None, ge=1, le=9999)


class ScenarioRequest(PeriodRequest):
    scenarios: Optional[List[ScenarioInput]] = None


class TrendRequest(PeriodRequest):
    months: Optional[int] = Field(default=None, ge=1, le=60)


class DepreciationRequest(BaseModel):
    project: ProjectInput
    as_of: Optional[date] = None
    include_schedule: bool = False


class AllocationRequest(BaseModel):
    total_cost: Decimal
    method: str = "by_hours"
    members: List[MemberInput]


def resolve_target_date(month: Optional[int], year: Optional[int]) -> date:
    today = date.today()
    return date(year or today.year, month or today.month, 1)


def scenario_definitions(inputs: Optional[List[ScenarioInput]]) -> List[ScenarioDefinition]:
    if not inputs:
        return list(scenarios.DEFAULT_SCENARIOS)
    return [s.to_domain() for s in inputs]


# ============================================================================
# SERIALIZATION
# ============================================================================


def decimal_to_str(value: Optional[Decimal]) -> Optional[str]:
    """Decimal as a string; None for missing or undefined values."""
    if value is None or not value.is_finite():
        return None
    return str(value)


def report_to_dict(report: MonthlyReport) -> Dict:
    return {
        "month": report.month,
        "year": report.year,
        "period": report.period.isoformat(),
        "total_cost": decimal_to_str(report.total_cost),
        "fixed_costs": decimal_to_str(report.fixed_costs),
        "variable_costs": decimal_to_str(report.variable_costs),
        "depreciation": decimal_to_str(report.depreciation),
        "operating_hours": decimal_to_str(report.operating_hours),
        "cost_per_hour": decimal_to_str(report.cost_per_hour),
        "break_even_hours": decimal_to_str(report.break_even_hours),
        "member_allocations": [
            {
                "member_id": a.member_id,
                "member_name": a.member_name,
                "allocated_cost": decimal_to_str(a.allocated_cost),
            }
            for a in report.member_allocations
        ],
    }


def delta_to_dict(delta: Delta) -> Dict:
    return {
        "baseline": decimal_to_str(delta.baseline),
        "value": decimal_to_str(delta.value),
        "difference": decimal_to_str(delta.absolute),
        "difference_percent": decimal_to_str(delta.percent),
    }


def scenario_to_dict(result: ScenarioResult) -> Dict:
    return {
        "name": result.name,
        "report": report_to_dict(result.report),
        "annual_cost": decimal_to_str(result.annual_cost),
        "total_cost": delta_to_dict(result.total_cost),
        "variable_costs": delta_to_dict(result.variable_costs),
        "cost_per_hour": delta_to_dict(result.cost_per_hour),
        "break_even_hours": delta_to_dict(result.break_even_hours),
        "operating_hours": delta_to_dict(result.operating_hours),
    }


def forecast_summary_to_dict(summary: ForecastSummary) -> Dict:
    return {
        "rows": [
            {
                "month": row.month,
                "year": row.year,
                "projected_cost": decimal_to_str(row.projected_cost),
                "cumulative_cost": decimal_to_str(row.cumulative_cost),
                "operating_hours": decimal_to_str(row.operating_hours),
                "cost_per_hour": decimal_to_str(row.cost_per_hour),
            }
            for row in summary.rows
        ],
        "total_cost": decimal_to_str(summary.total_cost),
        "fixed_costs": decimal_to_str(summary.fixed_costs),
        "variable_costs": decimal_to_str(summary.variable_costs),
        "depreciation": decimal_to_str(summary.depreciation),
        "operating_hours": decimal_to_str(summary.operating_hours),
        "average_cost_per_hour": decimal_to_str(summary.average_cost_per_hour),
    }


def health_to_dict(score: HealthScore) -> Dict:
    return {
        "score": decimal_to_str(score.score),
        "category": score.category,
        "benchmark_cost_per_hour": decimal_to_str(score.benchmark_cost_per_hour),
        "factors": [
            {
                "name": f.name,
                "score": decimal_to_str(f.score),
                "weight": decimal_to_str(f.weight),
            }
            for f in score.factors
        ],
    }


def summary_to_dict(summary: DepreciationSummary) -> Dict:
    return {
        "equipment_id": summary.equipment_id,
        "equipment_name": summary.equipment_name,
        "purchase_price": decimal_to_str(summary.purchase_price),
        "salvage_value": decimal_to_str(summary.salvage_value),
        "service_life_years": summary.service_life_years,
        "annual_depreciation": decimal_to_str(summary.annual_depreciation),
        "monthly_depreciation": decimal_to_str(summary.monthly_depreciation),
        "months_elapsed": summary.months_elapsed,
        "months_remaining": summary.months_remaining,
        "years_remaining": summary.years_remaining,
        "accumulated_depreciation": decimal_to_str(summary.accumulated_depreciation),
        "current_book_value": decimal_to_str(summary.current_book_value),
    }


def schedule_to_list(schedule: List[ScheduleEntry]) -> List[Dict]:
    return [
        {
            "month": entry.month.isoformat(),
            "depreciation": decimal_to_str(entry.amount),
            "accumulated_depreciation": decimal_to_str(entry.accumulated_depreciation),
            "book_value": decimal_to_str(entry.book_value),
        }
        for entry in schedule
    ]


def monthly_response(report: MonthlyReport) -> Dict:
    settings = get_settings()
    data = report_to_dict(report)
    data["annual_cost"] = decimal_to_str(annual_cost(report))
    data["monthly_reserve"] = decimal_to_str(
        monthly_reserve(report.total_cost, settings.monthly_reserve_percent)
    )
    return data


# ============================================================================
# ENDPOINTS
# ============================================================================


@router.post("/monthly")
async def calculate_monthly(inputs: PeriodRequest):
    """Calculate the cost report for one month."""
    report = MonthlyReportGenerator().generate(inputs.project.to_domain(), inputs.target_date())
    return monthly_response(report)


@router.post("/forecast")
async def calculate_forecast(inputs: ForecastRequest):
    """Forecast twelve months of costs from a start month."""
    today = date.today()
    reports = forecast.generate_annual_forecast(
        inputs.project.to_domain(),
        inputs.start_month or today.month,
        inputs.start_year or today.year,
    )
    return {
        "months": [report_to_dict(r) for r in reports],
        "summary": forecast_summary_to_dict(forecast.summarize_forecast(reports)),
    }


@router.post("/scenarios")
async def calculate_scenarios(inputs: ScenarioRequest):
    """Compare what-if scenarios against the baseline month."""
    project = inputs.project.to_domain()
    target = inputs.target_date()
    results = scenarios.analyze_scenarios(
        project, scenario_definitions(inputs.scenarios), target
    )
    baseline = MonthlyReportGenerator().generate(project, target)
    return {
        "baseline": report_to_dict(baseline),
        "scenarios": [scenario_to_dict(r) for r in results],
    }


@router.post("/trend")
async def calculate_trend(inputs: TrendRequest):
    """Trailing monthly reports ending at the target month."""
    months = inputs.months or get_settings().trend_default_months
    reports = trend.generate_trend_data(inputs.project.to_domain(), inputs.target_date(), months)
    return {"months": [report_to_dict(r) for r in reports]}


@router.post("/health")
async def calculate_health(inputs: PeriodRequest):
    """Financial health score for the target month."""
    project = inputs.project.to_domain()
    report = MonthlyReportGenerator().generate(project, inputs.target_date())
    score = health.calculate_financial_health_score(project, report)
    return {"report": report_to_dict(report), "health": health_to_dict(score)}


@router.post("/depreciation")
async def calculate_depreciation(inputs: DepreciationRequest):
    """Depreciation position of every active piece of equipment."""
    project = inputs.project.to_domain()
    as_of = inputs.as_of or date.today()
    usage = usage_from_parameters(project)

    response = {
        "as_of": as_of.isoformat(),
        "equipment": [
            summary_to_dict(s)
            for s in depreciation.depreciation_schedule_report(project.equipment, as_of, usage)
        ],
    }
    if inputs.include_schedule:
        response["schedules"] = {
            eq.id: schedule_to_list(depreciation.full_schedule(eq, usage))
            for eq in project.active_equipment
        }
    return response


@router.post("/allocation")
async def calculate_allocation(inputs: AllocationRequest):
    """Split a cost across members."""
    members = [m.to_domain(f"member-{i + 1}") for i, m in enumerate(inputs.members)]
    allocations = allocation.allocate(inputs.total_cost, members, inputs.method)
    return {
        "total_cost": decimal_to_str(sum((a.allocated_cost for a in allocations), Decimal("0"))),
        "allocations": [
            {
                "member_id": a.member_id,
                "member_name": a.member_name,
                "allocated_cost": decimal_to_str(a.allocated_cost),
            }
            for a in allocations
        ],
    }
