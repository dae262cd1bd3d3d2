"""
quotation_engines.financials -- Quotation financial aggregation.

Responsibility:
    Derive a quotation's financial snapshot (totals, gross profit, margin,
    pursuit cost per shipment) from its itemized revenue, cost and pursuit
    cost collections.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import quotation_kernel.  Items are accepted structurally
    (anything with ``subtotal`` / ``estimated_amount`` / ``amount``), so the
    module layer's dataclasses and plain test doubles both work.

Invariants enforced:
    - Decimal-only arithmetic; floats are rejected by ``money()``.
    - Totals are exact sums; an empty collection sums to 0.
    - ``profit_margin`` and ``pursuit_cost_per_shipment`` are rounded
      ROUND_HALF_UP to 2 places.  Nothing is truncated to an integer.
    - ``profit_margin`` is exactly 0 when total revenue is 0.
    - ``pursuit_cost_per_shipment`` is the whole pursuit total when
      ``estimated_shipments <= 0`` ("cannot divide, show the whole cost").

Failure modes:
    - None for arithmetic edge cases: zero revenue and zero/negative
      shipments are policy outcomes and never raise.
    - TypeError / ValueError only for malformed input amounts (floats,
      non-numeric strings).

Usage:
    from quotation_engines.financials import calculate_quotation_totals

    snapshot = calculate_quotation_totals(
        revenue_items=quotation.revenue_items,
        cost_items=quotation.cost_items,
        pursuit_costs=quotation.pursuit_costs,
        estimated_shipments=3,
    )
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol

from quotation_engines.tracer import traced_engine
from quotation_kernel.domain.values import (
    HUNDRED,
    ZERO,
    money,
    round_half_up,
    sum_money,
)
from quotation_kernel.logging_config import get_logger

logger = get_logger("engines.financials")


class HasSubtotal(Protocol):
    @property
    def subtotal(self) -> Decimal | None: ...


class HasEstimatedAmount(Protocol):
    @property
    def estimated_amount(self) -> Decimal | None: ...


class HasAmount(Protocol):
    @property
    def amount(self) -> Decimal | None: ...


@dataclass(frozen=True)
class FinancialSnapshot:
    """
    Derived financial figures for one quotation.

    Contract:
        Frozen; always the output of ``calculate_quotation_totals`` over the
        quotation's current items.  Never constructed from independently
        edited values.
    Guarantees:
        - ``gross_profit == total_revenue - total_cost`` (may be negative).
    """

    total_revenue: Decimal
    total_cost: Decimal
    total_pursuit_cost: Decimal
    gross_profit: Decimal
    profit_margin: Decimal
    pursuit_cost_per_shipment: Decimal

    @classmethod
    def empty(cls) -> FinancialSnapshot:
        return cls(ZERO, ZERO, ZERO, ZERO, ZERO, ZERO)

    @property
    def is_profitable(self) -> bool:
        return self.gross_profit > ZERO


def calculate_gross_profit(
    total_revenue: Decimal | int | str, total_cost: Decimal | int | str
) -> Decimal:
    """Revenue minus cost; negative when cost exceeds revenue."""
    return money(total_revenue) - money(total_cost)


def calculate_profit_margin(
    total_revenue: Decimal | int | str, total_cost: Decimal | int | str
) -> Decimal:
    """
    Gross profit as a percentage of revenue, rounded half-up to 2 places.

    Defined as exactly 0 when revenue is 0 (a reporting policy, not a
    division guard).
    """
    revenue = money(total_revenue)
    if revenue == ZERO:
        return ZERO
    gross_profit = revenue - money(total_cost)
    return round_half_up(gross_profit / revenue * HUNDRED)


def calculate_pursuit_cost_per_shipment(
    total_pursuit_cost: Decimal | int | str, shipments: int
) -> Decimal:
    """
    Pursuit cost recovered per shipment.

    ``round2(total / shipments)`` for ``shipments > 0``.  For ``shipments <= 0``
    the whole total is returned unchanged.
    """
    total = money(total_pursuit_cost)
    if shipments <= 0:
        return total
    return round_half_up(total / Decimal(shipments))


@traced_engine("financials", "1.0", fingerprint_fields=("estimated_shipments",))
def calculate_quotation_totals(
    revenue_items: Sequence[HasSubtotal],
    cost_items: Sequence[HasEstimatedAmount],
    pursuit_costs: Sequence[HasAmount],
    estimated_shipments: int = 1,
) -> FinancialSnapshot:
    """
    Aggregate item collections into a FinancialSnapshot.

    Preconditions:
        Item amounts are Decimal, int or numeric str (None counts as 0).

    Postconditions:
        - total_revenue == sum(subtotals); total_cost == sum(estimated amounts);
          total_pursuit_cost == sum(pursuit amounts).
        - profit_margin and pursuit_cost_per_shipment follow the policies of
          ``calculate_profit_margin`` / ``calculate_pursuit_cost_per_shipment``.
    """
    total_revenue = sum_money(item.subtotal for item in revenue_items)
    total_cost = sum_money(item.estimated_amount for item in cost_items)
    total_pursuit_cost = sum_money(item.amount for item in pursuit_costs)

    snapshot = FinancialSnapshot(
        total_revenue=total_revenue,
        total_cost=total_cost,
        total_pursuit_cost=total_pursuit_cost,
        gross_profit=calculate_gross_profit(total_revenue, total_cost),
        profit_margin=calculate_profit_margin(total_revenue, total_cost),
        pursuit_cost_per_shipment=calculate_pursuit_cost_per_shipment(
            total_pursuit_cost, estimated_shipments
        ),
    )

    logger.debug("quotation_totals_calculated", extra={
        "revenue_item_count": len(revenue_items),
        "cost_item_count": len(cost_items),
        "pursuit_cost_count": len(pursuit_costs),
        "estimated_shipments": estimated_shipments,
        "total_revenue": str(snapshot.total_revenue),
        "total_cost": str(snapshot.total_cost),
        "profit_margin": str(snapshot.profit_margin),
    })
    if estimated_shipments <= 0 and total_pursuit_cost != ZERO:
        logger.info("pursuit_cost_undivided", extra={
            "estimated_shipments": estimated_shipments,
            "total_pursuit_cost": str(total_pursuit_cost),
        })

    return snapshot
