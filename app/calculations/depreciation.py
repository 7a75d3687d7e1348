"""
Equipment Depreciation Calculations

Per-month depreciation amounts and full schedules for a single piece of
equipment, using either the straight-line or the units-of-production method.

Amounts are rounded to the currency unit month by month and never take the
cumulative total past the depreciable base (purchase price minus salvage
value). Under straight-line the last month of the service life absorbs the
rounding residue, so the schedule sums to exactly the base. Under
units-of-production each month follows its own usage only, so idle months
charge nothing and an under-used asset ends its life partly undepreciated.
"""

from datetime import date
from decimal import Decimal
from typing import Callable, Iterator, List, Optional, Tuple

from app.calculations.errors import InvalidEquipmentConfiguration
from app.calculations.models import (
    DEPRECIATION_METHODS,
    DepreciationSummary,
    Equipment,
    STRAIGHT_LINE,
    ScheduleEntry,
    UNITS_OF_PRODUCTION,
)
from app.calculations.money import ZERO, in_money_context, quantize_money, to_decimal
from app.calculations.periods import add_months, month_start, months_between

AUTO_SALVAGE_RATE = Decimal("0.10")

# Returns the operating hours of a month, or None when no usage is recorded.
UsageLookup = Callable[[date], Optional[Decimal]]


def auto_salvage_value(purchase_price) -> Decimal:
    """Default salvage value when none is recorded: 10% of purchase price."""
    return quantize_money(to_decimal(purchase_price) * AUTO_SALVAGE_RATE)


class DepreciationCalculator:
    """
    Depreciation for one piece of equipment.

    The configuration is validated once here. An invalid configuration does
    not fail construction; instead every calculation raises
    InvalidEquipmentConfiguration, so bad upstream data is never silently
    clamped into a plausible number.

    Args:
        equipment: Equipment record
        usage: Monthly hours lookup, used by units_of_production only
    """

    @in_money_context
    def __init__(self, equipment: Equipment, usage: Optional[UsageLookup] = None):
        self.equipment = equipment
        self.usage = usage
        self.purchase_price = to_decimal(equipment.purchase_price)
        if equipment.salvage_value is None:
            self.salvage_value = auto_salvage_value(self.purchase_price)
        else:
            self.salvage_value = to_decimal(equipment.salvage_value)
        self.start = month_start(equipment.acquisition_date)
        self._invalid_reason = self._validate()

        if self._invalid_reason is None:
            self.depreciable_base = self.purchase_price - self.salvage_value
            self.life_months = int(equipment.service_life_years) * 12
            self.nominal_monthly = quantize_money(self.depreciable_base / self.life_months)
        else:
            self.depreciable_base = ZERO
            self.life_months = 0
            self.nominal_monthly = ZERO

    def _validate(self) -> Optional[str]:
        eq = self.equipment
        if eq.service_life_years is None or eq.service_life_years <= 0:
            return f"service life must be at least 1 year (got {eq.service_life_years})"
        if self.purchase_price < 0:
            return "purchase price cannot be negative"
        if self.salvage_value < 0:
            return "salvage value cannot be negative"
        if self.salvage_value > self.purchase_price:
            return (
                f"salvage value {self.salvage_value} exceeds "
                f"purchase price {self.purchase_price}"
            )
        if eq.depreciation_method not in DEPRECIATION_METHODS:
            return f"unknown depreciation method '{eq.depreciation_method}'"
        if eq.depreciation_method == UNITS_OF_PRODUCTION:
            expected = eq.expected_usage_hours
            if expected is None or to_decimal(expected) <= 0:
                return "units_of_production requires positive expected usage hours"
        return None

    def _check(self) -> None:
        if self._invalid_reason is not None:
            raise InvalidEquipmentConfiguration(self.equipment.id, self._invalid_reason)

    @property
    def is_valid(self) -> bool:
        return self._invalid_reason is None

    # --- per-month amounts ---

    def _straight_line_amount(self, index: int) -> Decimal:
        accumulated_before = min(self.depreciable_base, self.nominal_monthly * index)
        remaining = self.depreciable_base - accumulated_before
        if index == self.life_months - 1:
            return remaining
        return min(self.nominal_monthly, remaining)

    def _usage_amounts(self) -> Iterator[Decimal]:
        """Units-of-production amounts for each month of the service life."""
        expected = to_decimal(self.equipment.expected_usage_hours)
        rate = self.depreciable_base / expected
        accumulated = ZERO

        for index in range(self.life_months):
            remaining = self.depreciable_base - accumulated
            hours = self.usage(add_months(self.start, index)) if self.usage else None
            if hours is None or hours <= 0:
                amount = ZERO
            else:
                amount = min(quantize_money(rate * to_decimal(hours)), remaining)
            accumulated += amount
            yield amount

    def _amounts(self) -> Iterator[Decimal]:
        if self.equipment.depreciation_method == STRAIGHT_LINE:
            for index in range(self.life_months):
                yield self._straight_line_amount(index)
        else:
            yield from self._usage_amounts()

    @in_money_context
    def monthly_depreciation(self, target: date) -> Decimal:
        """
        Depreciation charged in the month containing ``target``.

        Zero before the acquisition month and once the depreciable base has
        been consumed.
        """
        self._check()
        index = months_between(self.start, target)
        if index < 0 or index >= self.life_months:
            return ZERO

        if self.equipment.depreciation_method == STRAIGHT_LINE:
            return self._straight_line_amount(index)

        for position, amount in enumerate(self._usage_amounts()):
            if position == index:
                return amount
        return ZERO

    @in_money_context
    def full_schedule(self) -> Tuple[ScheduleEntry, ...]:
        """
        Month-by-month schedule from the acquisition month.

        Spans the service life and stops early once the depreciable base is
        fully consumed.
        """
        self._check()
        if self.depreciable_base == 0:
            return ()

        schedule: List[ScheduleEntry] = []
        accumulated = ZERO
        for index, amount in enumerate(self._amounts()):
            accumulated += amount
            schedule.append(
                ScheduleEntry(
                    month=add_months(self.start, index),
                    amount=amount,
                    accumulated_depreciation=accumulated,
                    book_value=self.purchase_price - accumulated,
                )
            )
            if accumulated >= self.depreciable_base:
                break
        return tuple(schedule)

    @in_money_context
    def summary(self, as_of: date) -> DepreciationSummary:
        """Depreciation position of the equipment at the end of ``as_of``'s month."""
        self._check()
        as_of = month_start(as_of)
        schedule = self.full_schedule()

        accumulated = sum(
            (entry.amount for entry in schedule if entry.month <= as_of), ZERO
        )
        months_elapsed = max(0, min(self.life_months, months_between(self.start, as_of) + 1))
        months_remaining = self.life_months - months_elapsed

        if self.equipment.depreciation_method == STRAIGHT_LINE:
            annual = quantize_money(self.depreciable_base / self.equipment.service_life_years)
        else:
            # Trailing twelve months of actual usage-based depreciation
            window_start = add_months(as_of, -11)
            annual = sum(
                (e.amount for e in schedule if window_start <= e.month <= as_of), ZERO
            )

        return DepreciationSummary(
            equipment_id=self.equipment.id,
            equipment_name=self.equipment.name,
            purchase_price=self.purchase_price,
            salvage_value=self.salvage_value,
            service_life_years=self.equipment.service_life_years,
            annual_depreciation=annual,
            monthly_depreciation=self.monthly_depreciation(as_of),
            months_elapsed=months_elapsed,
            months_remaining=months_remaining,
            years_remaining=-(-months_remaining // 12),
            accumulated_depreciation=accumulated,
            current_book_value=self.purchase_price - accumulated,
        )


def monthly_depreciation(
    equipment: Equipment, target: date, usage: Optional[UsageLookup] = None
) -> Decimal:
    """Convenience wrapper around DepreciationCalculator.monthly_depreciation."""
    return DepreciationCalculator(equipment, usage).monthly_depreciation(target)


def full_schedule(
    equipment: Equipment, usage: Optional[UsageLookup] = None
) -> Tuple[ScheduleEntry, ...]:
    """Convenience wrapper around DepreciationCalculator.full_schedule."""
    return DepreciationCalculator(equipment, usage).full_schedule()


def total_monthly_depreciation(
    equipment: Tuple[Equipment, ...], target: date, usage: Optional[UsageLookup] = None
) -> Decimal:
    """Sum of monthly depreciation over all non-archived equipment."""
    return sum(
        (
            DepreciationCalculator(eq, usage).monthly_depreciation(target)
            for eq in equipment
            if not eq.archived
        ),
        ZERO,
    )


def depreciation_schedule_report(
    equipment: Tuple[Equipment, ...], as_of: date, usage: Optional[UsageLookup] = None
) -> List[DepreciationSummary]:
    """Depreciation summary of every non-archived piece of equipment."""
    return [
        DepreciationCalculator(eq, usage).summary(as_of)
        for eq in equipment
        if not eq.archived
    ]
