"""
Won Quotation to Job Order Drafts (``quotation_modules.quotation.conversion``).

Responsibility
--------------
Project a won quotation onto the header of a Proforma Job Order (PJO) and,
when the work ships in several lots, pair that header with each
per-shipment allocation produced by the shipment split engine.

Architecture position
---------------------
**Modules layer** -- pure mapping.  Arithmetic lives in
``quotation_engines.shipment_split``; this module only assembles values.

Invariants enforced
-------------------
* ``prepare_pjo_seed`` is total and unconditional: every field is copied or
  renamed (origin -> pol, destination -> pod), nulls stay null.
* Seeds never inherit engineering history: ``requires_engineering`` is
  False and ``engineering_status`` is ``not_required`` on every seed.
* ``split_quotation_by_shipments`` yields exactly N drafts, numbered 1..N.

Failure modes
-------------
* InvalidShipmentCountError for N <= 0 (from the split engine).
* QuotationNotWonError when ``convert_to_pjos`` is called before ``won``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from quotation_engines.engineering import EngineeringStatus
from quotation_engines.financials import calculate_pursuit_cost_per_shipment
from quotation_engines.shipment_split import (
    CostLineSlice,
    RevenueLineSlice,
    ShipmentSplitEngine,
)
from quotation_kernel.exceptions import QuotationNotWonError
from quotation_kernel.logging_config import get_logger
from quotation_modules.quotation.models import (
    ComplexityFactor,
    MarketType,
    Quotation,
    QuotationStatus,
)

logger = get_logger("modules.quotation.conversion")


@dataclass(frozen=True)
class PJOSeed:
    """Header fields for a job order created from a won quotation.

    Contract: frozen projection; the quotation does not own its seeds.
    Guarantees: engineering is always reset to not required.
    """
    quotation_id: UUID
    customer_id: UUID
    project_id: UUID | None
    commodity: str | None
    pol: str | None
    pod: str | None
    pol_lat: Decimal | None
    pol_lng: Decimal | None
    pol_place_id: str | None
    pod_lat: Decimal | None
    pod_lng: Decimal | None
    pod_place_id: str | None
    cargo_weight_kg: Decimal | None
    cargo_length_m: Decimal | None
    cargo_width_m: Decimal | None
    cargo_height_m: Decimal | None
    cargo_value: Decimal | None
    is_new_route: bool | None
    terrain_type: str | None
    requires_special_permit: bool | None
    is_hazardous: bool | None
    duration_days: int | None
    market_type: MarketType | None
    complexity_score: int | None
    complexity_factors: tuple[ComplexityFactor, ...]
    requires_engineering: bool = False
    engineering_status: EngineeringStatus = EngineeringStatus.NOT_REQUIRED


@dataclass(frozen=True)
class ShipmentDraft:
    """One job order draft: the inherited header plus one shipment's lines."""
    sequence: int
    shipment_count: int
    seed: PJOSeed
    revenue_lines: tuple[RevenueLineSlice, ...]
    cost_lines: tuple[CostLineSlice, ...]
    pursuit_cost_allocation: Decimal

    @property
    def total_revenue(self) -> Decimal:
        return sum((line.amount for line in self.revenue_lines), Decimal("0"))

    @property
    def total_cost(self) -> Decimal:
        return sum((line.estimated_amount for line in self.cost_lines), Decimal("0"))


def prepare_pjo_seed(quotation: Quotation) -> PJOSeed:
    """Project a quotation onto a PJO header."""
    return PJOSeed(
        quotation_id=quotation.id,
        customer_id=quotation.customer_id,
        project_id=quotation.project_id,
        commodity=quotation.commodity,
        pol=quotation.origin,
        pod=quotation.destination,
        pol_lat=quotation.origin_lat,
        pol_lng=quotation.origin_lng,
        pol_place_id=quotation.origin_place_id,
        pod_lat=quotation.destination_lat,
        pod_lng=quotation.destination_lng,
        pod_place_id=quotation.destination_place_id,
        cargo_weight_kg=quotation.cargo_weight_kg,
        cargo_length_m=quotation.cargo_length_m,
        cargo_width_m=quotation.cargo_width_m,
        cargo_height_m=quotation.cargo_height_m,
        cargo_value=quotation.cargo_value,
        is_new_route=quotation.is_new_route,
        terrain_type=quotation.terrain_type,
        requires_special_permit=quotation.requires_special_permit,
        is_hazardous=quotation.is_hazardous,
        duration_days=quotation.duration_days,
        market_type=quotation.market_type,
        complexity_score=quotation.complexity_score,
        complexity_factors=quotation.complexity_factors,
        # Engineering was done at quotation level
        requires_engineering=False,
        engineering_status=EngineeringStatus.NOT_REQUIRED,
    )


def split_quotation_by_shipments(
    quotation: Quotation,
    shipment_count: int,
    pursuit_cost_per_shipment: Decimal | None = None,
) -> tuple[ShipmentDraft, ...]:
    """
    Split a quotation into ``shipment_count`` job order drafts.

    ``pursuit_cost_per_shipment`` defaults to the quotation's total pursuit
    cost divided over ``shipment_count`` and is attached unchanged to every
    draft.  With ``shipment_count == estimated_shipments`` that is the
    quotation's own pre-computed figure.

    Raises:
        InvalidShipmentCountError: shipment_count <= 0 or not an int.
    """
    # A non-integer count is left for the split engine to reject.
    if pursuit_cost_per_shipment is None and isinstance(shipment_count, int):
        pursuit_cost_per_shipment = calculate_pursuit_cost_per_shipment(
            quotation.financials.total_pursuit_cost, shipment_count
        )

    result = ShipmentSplitEngine().split(
        revenue_items=quotation.revenue_items,
        cost_items=quotation.cost_items,
        pursuit_cost_per_shipment=pursuit_cost_per_shipment,
        shipment_count=shipment_count,
    )
    seed = prepare_pjo_seed(quotation)
    return tuple(
        ShipmentDraft(
            sequence=allocation.sequence,
            shipment_count=allocation.shipment_count,
            seed=seed,
            revenue_lines=allocation.revenue_lines,
            cost_lines=allocation.cost_lines,
            pursuit_cost_allocation=allocation.pursuit_cost_allocation,
        )
        for allocation in result.allocations
    )


def convert_to_pjos(
    quotation: Quotation,
    split_by_shipments: bool = False,
    shipment_count: int | None = None,
) -> tuple[ShipmentDraft, ...]:
    """
    Produce the job order drafts for a won quotation.

    Without splitting, one draft carries every line and the whole pursuit
    cost.  With splitting, ``shipment_count`` defaults to
    ``estimated_shipments`` and each draft carries the total pursuit cost
    divided over the actual shipment count.

    Raises:
        QuotationNotWonError: quotation is not won.
        InvalidShipmentCountError: split requested with N <= 0.
    """
    if quotation.status is not QuotationStatus.WON:
        logger.warning("pjo_conversion_rejected", extra={
            "quotation_id": str(quotation.id),
            "status": quotation.status.value,
        })
        raise QuotationNotWonError(str(quotation.id), quotation.status.value)

    financials = quotation.financials
    if split_by_shipments:
        count = quotation.estimated_shipments if shipment_count is None else shipment_count
        drafts = split_quotation_by_shipments(quotation, count)
    else:
        drafts = split_quotation_by_shipments(
            quotation, 1, financials.total_pursuit_cost
        )

    logger.info("pjo_drafts_prepared", extra={
        "quotation_id": str(quotation.id),
        "quotation_number": quotation.quotation_number,
        "split_by_shipments": split_by_shipments,
        "draft_count": len(drafts),
    })
    return drafts
