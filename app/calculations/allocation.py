"""
Cost Allocation

Splits a period's total cost across the active members of a project.

Shares are computed at full precision, floored to the currency unit, and the
leftover cents are handed out by largest remainder (ties go to the earlier
member), so the allocations always add up to exactly the total.
"""

from decimal import Decimal
from typing import Iterable, List, Sequence, Tuple

from app.calculations.errors import InvalidAllocationMethod, NoActiveMembers
from app.calculations.models import (
    ALLOCATION_METHODS,
    BY_HOURS,
    EQUAL,
    MemberAllocation,
    PERCENTAGE,
    ProjectMember,
)
from app.calculations.money import (
    CURRENCY_UNIT,
    ONE,
    ZERO,
    floor_money,
    in_money_context,
    quantize_money,
    to_decimal,
)


def allocation_weights(members: Sequence[ProjectMember], method: str) -> List[Decimal]:
    """
    Relative weight of each member under an allocation method.

    A method whose weights sum to zero (nobody logged hours, no ownership
    shares recorded) falls back to the equal split.
    """
    if method not in ALLOCATION_METHODS:
        raise InvalidAllocationMethod(method)

    if method == BY_HOURS:
        weights = [to_decimal(m.operating_hours_per_month) for m in members]
    elif method == PERCENTAGE:
        weights = [to_decimal(m.ownership_share) for m in members]
    else:
        weights = [ONE for _ in members]

    if sum(weights, ZERO) == 0:
        return [ONE for _ in members]
    return weights


@in_money_context
def distribute(total: Decimal, weights: Sequence[Decimal]) -> List[Decimal]:
    """
    Split ``total`` proportionally to ``weights`` in whole currency units.

    Percentage shares are normalized against the actual sum of weights, so
    ownership shares that do not add up to 100 still allocate everything.
    """
    weight_sum = sum(weights, ZERO)
    exact = [total * w / weight_sum for w in weights]
    shares = [floor_money(x) for x in exact]

    leftover_units = int((total - sum(shares, ZERO)) / CURRENCY_UNIT)
    if leftover_units:
        # Largest remainder first; stable order breaks ties
        order = sorted(range(len(shares)), key=lambda i: (-(exact[i] - shares[i]), i))
        for step in range(leftover_units):
            shares[order[step % len(order)]] += CURRENCY_UNIT
    return shares


def allocate(
    total_cost, members: Iterable[ProjectMember], method: str
) -> Tuple[MemberAllocation, ...]:
    """
    Allocate a total cost across active members.

    Args:
        total_cost: Cost to split (rounded to the currency unit first)
        members: Project members; inactive members are ignored
        method: 'by_hours', 'equal' or 'percentage'

    Returns:
        One allocation per active member, in input order

    Raises:
        NoActiveMembers: If there is cost to allocate but nobody to carry it
        InvalidAllocationMethod: If the method is not recognised
    """
    total = quantize_money(to_decimal(total_cost))
    active = [m for m in members if m.is_active]

    if not active:
        if total > 0:
            raise NoActiveMembers(total)
        if method not in ALLOCATION_METHODS:
            raise InvalidAllocationMethod(method)
        return ()

    shares = distribute(total, allocation_weights(active, method))

    return tuple(
        MemberAllocation(
            member_id=member.id,
            member_name=member.display_name,
            allocated_cost=share,
        )
        for member, share in zip(active, shares)
    )


def allocate_by_hours(total_cost, members: Iterable[ProjectMember]):
    return allocate(total_cost, members, BY_HOURS)


def allocate_equally(total_cost, members: Iterable[ProjectMember]):
    return allocate(total_cost, members, EQUAL)


def allocate_by_share(total_cost, members: Iterable[ProjectMember]):
    return allocate(total_cost, members, PERCENTAGE)
