"""
Weighted-average cost recurrence.

Pure functions, no I/O. Every quantity and average cost leaving this module
is quantized to four fractional digits, so replaying a stored chain
reproduces the stored values exactly.
"""

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Union

Number = Union[Decimal, int, str, float]

QUANTITY_QUANTUM = Decimal("0.0001")
COST_QUANTUM = Decimal("0.0001")


def to_decimal(value: Number) -> Decimal:
    """Coerce a number to Decimal without binary float artifacts."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def quantize_quantity(value: Number) -> Decimal:
    return to_decimal(value).quantize(QUANTITY_QUANTUM, rounding=ROUND_HALF_UP)


def quantize_cost(value: Number) -> Decimal:
    return to_decimal(value).quantize(COST_QUANTUM, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class CostState:
    """Running totals of a product at one point of its chain."""

    quantity: Decimal = field(default_factory=lambda: Decimal("0"))
    avg_cost: Decimal = field(default_factory=lambda: Decimal("0"))


ZERO_STATE = CostState()


def next_state(
    before_qty: Number,
    before_avg_cost: Number,
    delta: Number,
    unit_cost: Number,
) -> CostState:
    """
    Apply one movement to a running state.

    Purchases (delta > 0) blend unit_cost into the average, weighted by
    quantity; if the resulting quantity is not positive the average restarts
    at unit_cost. Sales never change the average.
    """
    before_qty = to_decimal(before_qty)
    before_avg_cost = to_decimal(before_avg_cost)
    delta = to_decimal(delta)
    unit_cost = to_decimal(unit_cost)

    after_qty = before_qty + delta
    if delta > 0:
        if after_qty > 0:
            after_avg = (before_avg_cost * before_qty + unit_cost * delta) / after_qty
        else:
            after_avg = unit_cost
    else:
        after_avg = before_avg_cost

    return CostState(
        quantity=quantize_quantity(after_qty),
        avg_cost=quantize_cost(after_avg),
    )


def advance(state: CostState, delta: Number, unit_cost: Number) -> CostState:
    """next_state() taking and returning a CostState."""
    return next_state(state.quantity, state.avg_cost, delta, unit_cost)


def replay(
    steps: Iterable[tuple[Number, Number]],
    start: CostState = ZERO_STATE,
) -> list[CostState]:
    """Fold (delta, unit_cost) pairs from a start state; returns every after-state."""
    states = []
    state = start
    for delta, unit_cost in steps:
        state = advance(state, delta, unit_cost)
        states.append(state)
    return states
