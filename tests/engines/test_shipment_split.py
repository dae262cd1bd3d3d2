"""
Tests for the shipment split engine.

Covers:
- Exactly N allocations numbered 1..N
- Per-line conservation with leftover cents on the leading shipments
- Pursuit cost passed through unchanged
- Rejection of non-positive shipment counts
"""

from dataclasses import dataclass
from decimal import Decimal

import pytest

from quotation_engines.shipment_split import ShipmentSplitEngine, split_amount
from quotation_kernel.exceptions import InvalidShipmentCountError


@dataclass(frozen=True)
class Rev:
    quantity: Decimal
    unit_price: Decimal
    category: str = "transportation"
    description: str = "Heavy haul"
    unit: str | None = "trip"

    @property
    def subtotal(self) -> Decimal:
        return self.quantity * self.unit_price


@dataclass(frozen=True)
class Cost:
    estimated_amount: Decimal
    category: str = "trucking"
    description: str = "Prime mover"
    vendor_id: str | None = None
    vendor_name: str | None = None


@pytest.fixture
def engine():
    return ShipmentSplitEngine()


class TestSplitAmount:

    def test_even_division(self):
        assert split_amount(Decimal("9000"), 3) == (
            Decimal("3000.00"), Decimal("3000.00"), Decimal("3000.00"),
        )

    def test_leftover_cent_on_first(self):
        slices = split_amount(Decimal("100"), 3)
        assert slices == (Decimal("33.34"), Decimal("33.33"), Decimal("33.33"))
        assert sum(slices) == Decimal("100")

    def test_small_amount_over_many_shipments(self):
        """A dollar over 200 shipments: one cent each for half, zero for the rest."""
        slices = split_amount(Decimal("1.00"), 200)
        assert slices[:100] == (Decimal("0.01"),) * 100
        assert slices[100:] == (Decimal("0.00"),) * 100
        assert sum(slices) == Decimal("1.00")
        assert min(slices) >= Decimal("0")

    def test_several_leftover_cents(self):
        slices = split_amount(Decimal("0.07"), 4)
        assert slices == (Decimal("0.02"), Decimal("0.02"), Decimal("0.02"), Decimal("0.01"))

    def test_sub_cent_amount_kept_exact(self):
        slices = split_amount(Decimal("10.005"), 2)
        assert slices == (Decimal("5.005"), Decimal("5.00"))
        assert sum(slices) == Decimal("10.005")

    def test_negative_amount(self):
        slices = split_amount(Decimal("-100"), 3)
        assert slices == (Decimal("-33.33"), Decimal("-33.33"), Decimal("-33.34"))
        assert sum(slices) == Decimal("-100")

    def test_single_shipment_is_identity(self):
        assert split_amount(Decimal("123.45"), 1) == (Decimal("123.45"),)

    def test_none_is_zero(self):
        assert split_amount(None, 2) == (Decimal("0.00"), Decimal("0.00"))

    def test_invalid_count(self):
        with pytest.raises(InvalidShipmentCountError):
            split_amount(Decimal("100"), 0)


class TestShipmentSplitEngine:
    """Splitting revenue and cost lines across shipments."""

    def test_three_shipment_example(self, engine):
        """9000 revenue / 6000 cost / 100 pursuit per shipment over 3 shipments."""
        result = engine.split(
            revenue_items=[Rev(Decimal("3"), Decimal("3000"))],
            cost_items=[Cost(Decimal("6000"), vendor_name="PT Angkut Berat")],
            pursuit_cost_per_shipment=Decimal("100"),
            shipment_count=3,
        )
        assert result.shipment_count == 3
        assert [a.sequence for a in result.allocations] == [1, 2, 3]
        for allocation in result.allocations:
            assert allocation.shipment_count == 3
            assert allocation.total_revenue == Decimal("3000")
            assert allocation.total_cost == Decimal("2000")
            assert allocation.pursuit_cost_allocation == Decimal("100")
            line = allocation.revenue_lines[0]
            assert line.quantity == Decimal("1")
            assert line.unit_price == Decimal("3000")
            assert line.unit == "trip"
            assert allocation.cost_lines[0].vendor_name == "PT Angkut Berat"
        assert result.total_revenue == Decimal("9000")
        assert result.total_cost == Decimal("6000")
        assert result.total_pursuit_cost_allocated == Decimal("300")

    def test_leftover_cents_land_on_leading_shipments(self, engine):
        result = engine.split(
            revenue_items=[Rev(Decimal("1"), Decimal("100"))],
            cost_items=[Cost(Decimal("10"))],
            pursuit_cost_per_shipment=Decimal("0"),
            shipment_count=3,
        )
        revenue = [a.revenue_lines[0].amount for a in result.allocations]
        cost = [a.cost_lines[0].estimated_amount for a in result.allocations]
        assert revenue == [Decimal("33.34"), Decimal("33.33"), Decimal("33.33")]
        assert cost == [Decimal("3.34"), Decimal("3.33"), Decimal("3.33")]
        assert result.total_revenue == Decimal("100")
        assert result.total_cost == Decimal("10")

    def test_each_line_conserved_independently(self, engine):
        revenue = [Rev(Decimal("7"), Decimal("13.13")), Rev(Decimal("2"), Decimal("0.05"))]
        result = engine.split(revenue, [], Decimal("0"), 6)
        for index, item in enumerate(revenue):
            total = sum(a.revenue_lines[index].amount for a in result.allocations)
            assert total == item.subtotal

    def test_slice_amount_is_authoritative(self, engine):
        """Quantity is divided exactly; the amount carries the cent distribution."""
        result = engine.split([Rev(Decimal("1"), Decimal("100"))], [], 0, 3)
        first, second, _ = (a.revenue_lines[0] for a in result.allocations)
        assert first.quantity == second.quantity == Decimal("1") / Decimal("3")
        assert first.amount == Decimal("33.34")
        assert second.amount == Decimal("33.33")
        assert result.total_revenue == Decimal("100")

    def test_missing_unit_defaults(self, engine):
        result = engine.split([Rev(Decimal("2"), Decimal("10"), unit=None)], [], 0, 2)
        assert result.allocations[0].revenue_lines[0].unit == "unit"

    def test_empty_lines(self, engine):
        result = engine.split([], [], Decimal("50"), 2)
        assert len(result.allocations) == 2
        assert result.total_revenue == Decimal("0")
        assert all(a.pursuit_cost_allocation == Decimal("50") for a in result.allocations)

    def test_pursuit_cost_not_recomputed(self, engine):
        """The per-shipment figure is used as given, whatever N is."""
        result = engine.split([], [], Decimal("33.33"), 5)
        assert {a.pursuit_cost_allocation for a in result.allocations} == {Decimal("33.33")}

    @pytest.mark.parametrize("count", [0, -1, -3])
    def test_non_positive_count_rejected(self, engine, count):
        with pytest.raises(InvalidShipmentCountError) as exc_info:
            engine.split([Rev(Decimal("1"), Decimal("1"))], [], 0, count)
        assert exc_info.value.shipment_count == count

    @pytest.mark.parametrize("count", [2.0, "2", True])
    def test_non_integer_count_rejected(self, engine, count):
        with pytest.raises(InvalidShipmentCountError):
            engine.split([], [], 0, count)

    def test_rejection_logged(self, engine, captured_logs):
        with pytest.raises(InvalidShipmentCountError):
            engine.split([], [], 0, 0)
        assert any(r["message"] == "shipment_split_rejected" for r in captured_logs())

    def test_completion_logged(self, engine, captured_logs):
        engine.split([Rev(Decimal("1"), Decimal("10"))], [], 0, 2)
        completed = [r for r in captured_logs() if r["message"] == "shipment_split_completed"]
        assert completed[0]["shipment_count"] == 2
        assert completed[0]["total_revenue"] == "10.00"
