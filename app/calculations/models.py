"""
Domain records consumed and produced by the calculation engine.

Inputs are plain, fully hydrated values; the engine never loads anything.
Outputs are frozen dataclasses, so a report is never mutated after it has
been produced (a changed report is a new value).
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional, Tuple, Union

from app.calculations.money import ONE, ZERO

STRAIGHT_LINE = "straight_line"
UNITS_OF_PRODUCTION = "units_of_production"
DEPRECIATION_METHODS = (STRAIGHT_LINE, UNITS_OF_PRODUCTION)

BY_HOURS = "by_hours"
EQUAL = "equal"
PERCENTAGE = "percentage"
ALLOCATION_METHODS = (BY_HOURS, EQUAL, PERCENTAGE)

EQUIPMENT_CATEGORIES = ("Helicopter", "Vehicle", "Machinery", "Other")

MEMBER_ACTIVE = "active"
MEMBER_INACTIVE = "inactive"


@dataclass(frozen=True)
class Equipment:
    """A depreciable asset owned by a project."""

    id: str
    purchase_price: Decimal
    acquisition_date: date
    service_life_years: int
    salvage_value: Optional[Decimal] = None  # None = auto salvage (10%)
    depreciation_method: str = STRAIGHT_LINE
    archived: bool = False
    project_id: Optional[str] = None
    name: str = ""
    category: str = "Other"
    expected_usage_hours: Optional[Decimal] = None  # lifetime hours, units_of_production


@dataclass(frozen=True)
class DefaultScope:
    """Parameters that apply to any month without its own record."""


@dataclass(frozen=True)
class ForMonth:
    """Parameters that apply to one calendar month only."""

    year: int
    month: int

    @classmethod
    def of(cls, value: date) -> "ForMonth":
        return cls(year=value.year, month=value.month)


ParameterScope = Union[DefaultScope, ForMonth]
DEFAULT_SCOPE = DefaultScope()


@dataclass(frozen=True)
class OtherExpense:
    description: str
    amount: Decimal


@dataclass(frozen=True)
class OperatingParameters:
    """Monthly operating assumptions for a project."""

    operating_hours_per_month: Decimal = ZERO
    fuel_cost_per_hour: Decimal = ZERO
    maintenance_cost_per_hour: Decimal = ZERO
    insurance_monthly: Decimal = ZERO
    staff_salaries_monthly: Decimal = ZERO
    facility_rent_monthly: Decimal = ZERO
    other_expenses: Tuple[OtherExpense, ...] = ()
    scope: ParameterScope = DEFAULT_SCOPE

    @property
    def variable_cost_per_hour(self) -> Decimal:
        return self.fuel_cost_per_hour + self.maintenance_cost_per_hour


@dataclass(frozen=True)
class ProjectMember:
    id: str
    role: str = "member"
    ownership_share: Decimal = ZERO  # percentage, 0-100
    operating_hours_per_month: Decimal = ZERO
    status: str = MEMBER_ACTIVE
    name: Optional[str] = None
    email: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status == MEMBER_ACTIVE

    @property
    def display_name(self) -> str:
        return self.name or self.email or self.id


@dataclass(frozen=True)
class Project:
    id: str
    name: str = ""
    currency: str = "USD"
    cost_allocation_method: str = BY_HOURS
    equipment: Tuple[Equipment, ...] = ()
    members: Tuple[ProjectMember, ...] = ()
    operating_parameters: Tuple[OperatingParameters, ...] = ()
    hourly_rate: Optional[Decimal] = None  # nominal billing rate per hour

    @property
    def active_equipment(self) -> Tuple[Equipment, ...]:
        return tuple(eq for eq in self.equipment if not eq.archived)

    @property
    def active_members(self) -> Tuple[ProjectMember, ...]:
        return tuple(m for m in self.members if m.is_active)


# === Derived values ===


@dataclass(frozen=True)
class ScheduleEntry:
    """One month of a depreciation schedule."""

    month: date
    amount: Decimal
    accumulated_depreciation: Decimal
    book_value: Decimal


@dataclass(frozen=True)
class DepreciationSummary:
    """Point-in-time depreciation position of one piece of equipment."""

    equipment_id: str
    equipment_name: str
    purchase_price: Decimal
    salvage_value: Decimal
    service_life_years: int
    annual_depreciation: Decimal
    monthly_depreciation: Decimal
    months_elapsed: int
    months_remaining: int
    years_remaining: int
    accumulated_depreciation: Decimal
    current_book_value: Decimal


@dataclass(frozen=True)
class MemberAllocation:
    member_id: str
    member_name: str
    allocated_cost: Decimal


@dataclass(frozen=True)
class MonthlyReport:
    month: int
    year: int
    total_cost: Decimal
    fixed_costs: Decimal
    variable_costs: Decimal
    depreciation: Decimal
    operating_hours: Decimal
    cost_per_hour: Decimal
    break_even_hours: Decimal
    member_allocations: Tuple[MemberAllocation, ...] = ()

    @property
    def period(self) -> date:
        return date(self.year, self.month, 1)


@dataclass(frozen=True)
class ScenarioDefinition:
    name: str
    operating_hours_multiplier: Decimal = ONE
    cost_multiplier: Decimal = ONE


@dataclass(frozen=True)
class Delta:
    """Change of one metric against the baseline."""

    baseline: Decimal
    value: Decimal
    absolute: Decimal
    percent: Decimal


@dataclass(frozen=True)
class ScenarioResult:
    name: str
    report: MonthlyReport
    total_cost: Delta
    variable_costs: Delta
    cost_per_hour: Delta
    break_even_hours: Delta
    operating_hours: Delta
    annual_cost: Decimal


@dataclass(frozen=True)
class ForecastRow:
    """One month of an annual forecast with its running total."""

    month: int
    year: int
    projected_cost: Decimal
    cumulative_cost: Decimal
    operating_hours: Decimal
    cost_per_hour: Decimal


@dataclass(frozen=True)
class ForecastSummary:
    rows: Tuple[ForecastRow, ...]
    total_cost: Decimal
    fixed_costs: Decimal
    variable_costs: Decimal
    depreciation: Decimal
    operating_hours: Decimal
    average_cost_per_hour: Decimal


@dataclass(frozen=True)
class HealthFactor:
    name: str
    score: Decimal  # 0-100
    weight: Decimal


@dataclass(frozen=True)
class HealthScore:
    score: Decimal
    factors: Tuple[HealthFactor, ...] = field(default_factory=tuple)
    category: str = "Other"
    benchmark_cost_per_hour: Optional[Decimal] = None
