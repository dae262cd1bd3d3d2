"""
quotation_engines.shipment_split -- Per-shipment partition of quotation lines.

Responsibility:
    Divide a won quotation's revenue and cost lines into N equal per-shipment
    slices so each shipment can become its own job order draft, and attach
    the pre-computed pursuit cost per shipment to every slice.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import quotation_kernel.  Lines are accepted structurally.

Invariants enforced:
    - Exactly N allocations for N >= 1, numbered 1..N.
    - Each line amount is divided by N in whole cents: every slice gets
      the share rounded down to the cent and the leftover cents go one each
      to the leading slices.  The slices of every line sum back to the
      original exactly and each is within 0.01 of amount / N.
    - Revenue quantity is divided by N at full precision; unit price and
      unit are carried unchanged.  On a slice, ``amount`` is authoritative;
      ``quantity * unit_price`` may differ from it by the cent distribution.
    - ``pursuit_cost_per_shipment`` is passed through unchanged; it is never
      recomputed here.

Failure modes:
    - InvalidShipmentCountError for N <= 0 or a non-integer N.  Nothing is
      clamped.

Usage:
    from quotation_engines.shipment_split import ShipmentSplitEngine

    result = ShipmentSplitEngine().split(
        revenue_items=quotation.revenue_items,
        cost_items=quotation.cost_items,
        pursuit_cost_per_shipment=quotation.financials.pursuit_cost_per_shipment,
        shipment_count=3,
    )
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import ROUND_FLOOR, Decimal
from typing import Any

from quotation_engines.tracer import traced_engine
from quotation_kernel.domain.values import ZERO, money
from quotation_kernel.exceptions import InvalidShipmentCountError
from quotation_kernel.logging_config import get_logger

logger = get_logger("engines.shipment_split")

DEFAULT_UNIT = "unit"
CENT = Decimal("0.01")


@dataclass(frozen=True)
class RevenueLineSlice:
    """
    One shipment's share of a revenue line.

    ``amount`` is this shipment's part of the line subtotal and is what
    totals are built from.  ``quantity`` is the line quantity over N, so
    ``quantity * unit_price`` can be a cent off ``amount``.
    """

    source_index: int
    category: Any
    description: str | None
    quantity: Decimal
    unit: str
    unit_price: Decimal
    amount: Decimal


@dataclass(frozen=True)
class CostLineSlice:
    """One shipment's share of a cost line."""

    source_index: int
    category: Any
    description: str | None
    estimated_amount: Decimal
    vendor_id: str | None = None
    vendor_name: str | None = None


@dataclass(frozen=True)
class ShipmentAllocation:
    """
    Lines and pursuit cost assigned to one shipment.

    Contract:
        ``sequence`` is 1-based; ``shipment_count`` is N for every
        allocation of the same split.
    """

    sequence: int
    shipment_count: int
    revenue_lines: tuple[RevenueLineSlice, ...]
    cost_lines: tuple[CostLineSlice, ...]
    pursuit_cost_allocation: Decimal

    @property
    def total_revenue(self) -> Decimal:
        return sum((line.amount for line in self.revenue_lines), ZERO)

    @property
    def total_cost(self) -> Decimal:
        return sum((line.estimated_amount for line in self.cost_lines), ZERO)


@dataclass(frozen=True)
class ShipmentSplitResult:
    """
    Outcome of a split.

    Guarantees:
        - ``len(allocations) == shipment_count``.
        - ``total_revenue`` / ``total_cost`` equal the unsplit totals.
    """

    shipment_count: int
    allocations: tuple[ShipmentAllocation, ...]
    total_revenue: Decimal
    total_cost: Decimal
    pursuit_cost_per_shipment: Decimal

    @property
    def total_pursuit_cost_allocated(self) -> Decimal:
        return self.pursuit_cost_per_shipment * self.shipment_count


def split_amount(amount: Decimal | int | str | None, shipment_count: int) -> tuple[Decimal, ...]:
    """
    Divide ``amount`` into ``shipment_count`` slices at most a cent apart.

    Every slice starts from ``amount / N`` rounded down to the cent.  The
    leftover cents go one each to the leading slices, and a sub-cent
    remainder (amounts with more than 2 places) joins the first slice that
    got no extra cent.  ``sum(slices) == amount`` exactly and every slice
    is within 0.01 of ``amount / N``.
    """
    _require_shipment_count(shipment_count)
    total = money(amount)
    base = (total / Decimal(shipment_count)).quantize(CENT, rounding=ROUND_FLOOR)
    remainder = total - base * shipment_count
    extra_cents = int(remainder // CENT)
    slices = [base + CENT] * extra_cents + [base] * (shipment_count - extra_cents)
    slices[extra_cents] += remainder - CENT * extra_cents
    return tuple(slices)


def _require_shipment_count(shipment_count: Any) -> None:
    if isinstance(shipment_count, bool) or not isinstance(shipment_count, int):
        raise InvalidShipmentCountError(shipment_count)
    if shipment_count <= 0:
        raise InvalidShipmentCountError(shipment_count)


class ShipmentSplitEngine:
    """
    Partition quotation lines across shipments.

    Contract:
        Pure; the engine holds no state between calls.
    Guarantees:
        - Per-line conservation: the N slices of a line sum to the line.
        - Deterministic: leftover cents always land on the leading
          shipments.
    Non-goals:
        - Does not build job order drafts; the quotation module pairs each
          allocation with the inherited header fields.
    """

    @traced_engine(
        "shipment_split",
        "1.0",
        fingerprint_fields=("shipment_count", "pursuit_cost_per_shipment"),
    )
    def split(
        self,
        revenue_items: Sequence[Any],
        cost_items: Sequence[Any],
        pursuit_cost_per_shipment: Decimal | int | str | None,
        shipment_count: int,
    ) -> ShipmentSplitResult:
        """
        Split revenue and cost lines into ``shipment_count`` allocations.

        Preconditions:
            Revenue lines expose ``quantity``, ``unit_price`` and
            ``subtotal``; cost lines expose ``estimated_amount``.
            ``category``, ``description``, ``unit``, ``vendor_id`` and
            ``vendor_name`` are copied when present.

        Raises:
            InvalidShipmentCountError: shipment_count <= 0 or not an int.
        """
        try:
            _require_shipment_count(shipment_count)
        except InvalidShipmentCountError:
            logger.warning("shipment_split_rejected", extra={
                "shipment_count": str(shipment_count),
            })
            raise

        n = shipment_count
        divisor = Decimal(n)
        pursuit = money(pursuit_cost_per_shipment)

        revenue_columns: list[tuple[RevenueLineSlice, ...]] = []
        for index, item in enumerate(revenue_items):
            quantity = money(item.quantity) / divisor
            unit = getattr(item, "unit", None) or DEFAULT_UNIT
            revenue_columns.append(tuple(
                RevenueLineSlice(
                    source_index=index,
                    category=getattr(item, "category", None),
                    description=getattr(item, "description", None),
                    quantity=quantity,
                    unit=unit,
                    unit_price=money(item.unit_price),
                    amount=amount,
                )
                for amount in split_amount(item.subtotal, n)
            ))

        cost_columns: list[tuple[CostLineSlice, ...]] = []
        for index, item in enumerate(cost_items):
            cost_columns.append(tuple(
                CostLineSlice(
                    source_index=index,
                    category=getattr(item, "category", None),
                    description=getattr(item, "description", None),
                    estimated_amount=amount,
                    vendor_id=getattr(item, "vendor_id", None),
                    vendor_name=getattr(item, "vendor_name", None),
                )
                for amount in split_amount(item.estimated_amount, n)
            ))

        allocations = tuple(
            ShipmentAllocation(
                sequence=i + 1,
                shipment_count=n,
                revenue_lines=tuple(column[i] for column in revenue_columns),
                cost_lines=tuple(column[i] for column in cost_columns),
                pursuit_cost_allocation=pursuit,
            )
            for i in range(n)
        )

        result = ShipmentSplitResult(
            shipment_count=n,
            allocations=allocations,
            total_revenue=sum((a.total_revenue for a in allocations), ZERO),
            total_cost=sum((a.total_cost for a in allocations), ZERO),
            pursuit_cost_per_shipment=pursuit,
        )

        logger.info("shipment_split_completed", extra={
            "shipment_count": n,
            "revenue_line_count": len(revenue_columns),
            "cost_line_count": len(cost_columns),
            "total_revenue": str(result.total_revenue),
            "total_cost": str(result.total_cost),
            "pursuit_cost_per_shipment": str(pursuit),
        })
        return result
