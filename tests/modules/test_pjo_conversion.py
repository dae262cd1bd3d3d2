"""
Tests for converting won quotations into job order drafts.

Covers:
- Seed projection (origin -> pol, destination -> pod, engineering reset)
- Split into N drafts with conserved totals
- Conversion only from won
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from quotation_kernel.exceptions import InvalidShipmentCountError, QuotationNotWonError
from quotation_modules.quotation.conversion import (
    convert_to_pjos,
    prepare_pjo_seed,
    split_quotation_by_shipments,
)
from quotation_modules.quotation.models import (
    ComplexityFactor,
    Draft,
    EngineeringStatus,
    EngineeringTrack,
    MarketType,
    QuotationStatus,
    Submitted,
    Won,
)

WON_AFTER_REVIEW = Won(engineering=EngineeringTrack.required(EngineeringStatus.COMPLETED))


class TestPreparePJOSeed:

    def test_route_and_cargo_projected(self, quotation_factory):
        project_id = uuid4()
        quotation = quotation_factory(
            project_id=project_id,
            commodity="Power transformer",
            origin_lat=Decimal("-6.0025"),
            origin_lng=Decimal("106.0114"),
            origin_place_id="place-cilegon",
            destination_lat=Decimal("-2.8200"),
            destination_lng=Decimal("122.1500"),
            destination_place_id="place-morowali",
            cargo_weight_kg=Decimal("120000"),
            cargo_length_m=Decimal("12.5"),
            cargo_width_m=Decimal("4.2"),
            cargo_height_m=Decimal("4.8"),
            cargo_value=Decimal("2500000"),
            is_new_route=True,
            terrain_type="mountain",
            requires_special_permit=True,
            is_hazardous=False,
            duration_days=21,
            market_type=MarketType.COMPLEX,
            complexity_score=45,
            complexity_factors=(ComplexityFactor("heavy_cargo", "Heavy cargo", 20, "120000"),),
            state=WON_AFTER_REVIEW,
        )
        seed = prepare_pjo_seed(quotation)
        assert seed.quotation_id == quotation.id
        assert seed.customer_id == quotation.customer_id
        assert seed.project_id == project_id
        assert seed.commodity == "Power transformer"
        assert seed.pol == "Cilegon"
        assert seed.pod == "Morowali"
        assert seed.pol_lat == Decimal("-6.0025")
        assert seed.pod_place_id == "place-morowali"
        assert seed.cargo_weight_kg == Decimal("120000")
        assert seed.cargo_height_m == Decimal("4.8")
        assert seed.is_new_route is True
        assert seed.terrain_type == "mountain"
        assert seed.duration_days == 21
        assert seed.market_type is MarketType.COMPLEX
        assert seed.complexity_score == 45
        assert seed.complexity_factors[0].criteria_code == "heavy_cargo"

    def test_engineering_never_inherited(self, quotation_factory):
        seed = prepare_pjo_seed(quotation_factory(state=WON_AFTER_REVIEW))
        assert seed.requires_engineering is False
        assert seed.engineering_status is EngineeringStatus.NOT_REQUIRED

    def test_nulls_stay_null(self, quotation_factory):
        seed = prepare_pjo_seed(quotation_factory())
        assert seed.project_id is None
        assert seed.cargo_value is None
        assert seed.complexity_factors == ()


class TestSplitQuotationByShipments:

    def test_three_shipments(self, quotation_factory, sample_items):
        quotation = quotation_factory(estimated_shipments=3, state=Won(), **sample_items)
        drafts = split_quotation_by_shipments(quotation, 3)
        assert len(drafts) == 3
        assert [d.sequence for d in drafts] == [1, 2, 3]
        for draft in drafts:
            assert draft.shipment_count == 3
            assert draft.total_revenue == Decimal("3000")
            assert draft.total_cost == Decimal("2000")
            assert draft.pursuit_cost_allocation == Decimal("100.00")
            assert draft.seed.pol == "Cilegon"
        assert sum(d.total_revenue for d in drafts) == Decimal("9000")

    def test_default_pursuit_cost_follows_count(self, quotation_factory, sample_items):
        quotation = quotation_factory(estimated_shipments=3, **sample_items)
        drafts = split_quotation_by_shipments(quotation, 4)
        assert [d.pursuit_cost_allocation for d in drafts] == [Decimal("75.00")] * 4

    def test_explicit_pursuit_cost_used_unchanged(self, quotation_factory, sample_items):
        quotation = quotation_factory(estimated_shipments=3, **sample_items)
        drafts = split_quotation_by_shipments(quotation, 2, Decimal("150"))
        assert [d.pursuit_cost_allocation for d in drafts] == [Decimal("150"), Decimal("150")]

    def test_does_not_require_won(self, quotation_factory, sample_items):
        drafts = split_quotation_by_shipments(quotation_factory(state=Draft(), **sample_items), 2)
        assert len(drafts) == 2

    @pytest.mark.parametrize("count", [0, -2])
    def test_invalid_count(self, quotation_factory, count):
        with pytest.raises(InvalidShipmentCountError):
            split_quotation_by_shipments(quotation_factory(), count)


class TestConvertToPJOs:

    def test_single_draft_carries_everything(self, quotation_factory, sample_items):
        quotation = quotation_factory(estimated_shipments=3, state=Won(), **sample_items)
        drafts = convert_to_pjos(quotation)
        assert len(drafts) == 1
        assert drafts[0].total_revenue == Decimal("9000")
        assert drafts[0].total_cost == Decimal("6000")
        assert drafts[0].pursuit_cost_allocation == Decimal("300")

    def test_split_defaults_to_estimated_shipments(self, quotation_factory, sample_items):
        quotation = quotation_factory(estimated_shipments=3, state=Won(), **sample_items)
        drafts = convert_to_pjos(quotation, split_by_shipments=True)
        assert len(drafts) == 3
        assert drafts[0].pursuit_cost_allocation == Decimal("100.00")

    def test_split_with_explicit_count(self, quotation_factory, sample_items):
        quotation = quotation_factory(estimated_shipments=3, state=Won(), **sample_items)
        drafts = convert_to_pjos(quotation, split_by_shipments=True, shipment_count=2)
        assert len(drafts) == 2
        assert [d.pursuit_cost_allocation for d in drafts] == [Decimal("150.00")] * 2
        assert sum(d.pursuit_cost_allocation for d in drafts) == quotation.financials.total_pursuit_cost
        assert sum(d.total_revenue for d in drafts) == Decimal("9000")

    @pytest.mark.parametrize(
        "state",
        [Draft(), Submitted()],
    )
    def test_requires_won(self, quotation_factory, state, captured_logs):
        quotation = quotation_factory(state=state)
        with pytest.raises(QuotationNotWonError) as exc_info:
            convert_to_pjos(quotation)
        assert exc_info.value.status == quotation.status.value
        assert any(r["message"] == "pjo_conversion_rejected" for r in captured_logs())

    def test_status_is_won(self, quotation_factory):
        quotation = quotation_factory(state=WON_AFTER_REVIEW)
        assert quotation.status is QuotationStatus.WON
        assert len(convert_to_pjos(quotation)) == 1
