"""
Tests for the quotation domain models.

Covers:
- Decimal normalization and float rejection on items
- Closed enumerations at the boundary
- Tagged workflow states: valid and impossible combinations
- Flat-field round trip (to_fields / state_from_fields)
- OutcomeReason encoding, including legacy free text
- Financials derived from items on every read
"""

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from quotation_kernel.exceptions import InvalidStateCombinationError, UnknownValueError
from quotation_modules.quotation.models import (
    AssessmentStatus,
    AssessmentType,
    Cancelled,
    CostItem,
    Draft,
    EngineeringAssessment,
    EngineeringReview,
    EngineeringStatus,
    EngineeringTrack,
    LostReasonCategory,
    Lost,
    OutcomeReason,
    QuotationStatus,
    Ready,
    RevenueCategory,
    RevenueItem,
    ScopeOfWork,
    Submitted,
    Won,
    parse_enum,
    state_from_fields,
)


class TestItems:

    def test_revenue_subtotal_derived(self):
        item = RevenueItem("transportation", "Trailer", "2.5", 1000)
        assert item.category is RevenueCategory.TRANSPORTATION
        assert item.quantity == Decimal("2.5")
        assert item.subtotal == Decimal("2500.0")
        assert item.unit == "unit"

    def test_float_rejected(self):
        with pytest.raises(TypeError):
            RevenueItem("transportation", "Trailer", 1.5, Decimal("10"))
        with pytest.raises(TypeError):
            CostItem("trucking", "Prime mover", 6000.0)

    def test_unknown_category_rejected(self):
        with pytest.raises(UnknownValueError) as exc_info:
            CostItem("teleportation", "?", Decimal("1"))
        assert "trucking" in exc_info.value.allowed

    def test_items_get_distinct_ids(self):
        a = CostItem("fuel", "Diesel", Decimal("1"))
        b = CostItem("fuel", "Diesel", Decimal("1"))
        assert a.id != b.id

    def test_assessment_normalized(self):
        assessment = EngineeringAssessment("route_survey", "completed", "1500")
        assert assessment.assessment_type is AssessmentType.ROUTE_SURVEY
        assert assessment.status is AssessmentStatus.COMPLETED
        assert assessment.additional_cost_estimate == Decimal("1500")


class TestParseEnum:

    def test_member_passes_through(self):
        assert parse_enum(QuotationStatus, QuotationStatus.WON, "status") is QuotationStatus.WON

    def test_value_parsed(self):
        assert parse_enum(QuotationStatus, "engineering_review", "status") is QuotationStatus.ENGINEERING_REVIEW

    def test_case_sensitive(self):
        with pytest.raises(UnknownValueError):
            parse_enum(QuotationStatus, "Draft", "status")

    def test_rejection_logged(self, captured_logs):
        with pytest.raises(UnknownValueError):
            parse_enum(ScopeOfWork, "air_freight", "scope of work")
        logs = [r for r in captured_logs() if r["message"] == "unknown_enum_value"]
        assert logs[0]["value"] == "air_freight"


class TestStateVariants:
    """Impossible field combinations are unrepresentable."""

    def test_draft_defaults(self):
        state = Draft()
        assert state.status is QuotationStatus.DRAFT
        assert not state.engineering.requires_engineering
        assert state.engineering.engineering_status is EngineeringStatus.NOT_REQUIRED

    def test_engineering_review_defaults_to_pending(self):
        state = EngineeringReview()
        assert state.engineering.requires_engineering
        assert state.engineering.engineering_status is EngineeringStatus.PENDING

    def test_review_without_engineering(self):
        with pytest.raises(InvalidStateCombinationError):
            EngineeringReview(engineering=EngineeringTrack())

    def test_required_with_not_required_status(self):
        with pytest.raises(InvalidStateCombinationError):
            Draft(engineering=EngineeringTrack(True, EngineeringStatus.NOT_REQUIRED))

    def test_not_required_with_review_status(self):
        with pytest.raises(InvalidStateCombinationError):
            Ready(engineering=EngineeringTrack(False, EngineeringStatus.COMPLETED))

    @pytest.mark.parametrize("state_cls", [Submitted, Won, Lost])
    @pytest.mark.parametrize("status", [EngineeringStatus.PENDING, EngineeringStatus.IN_PROGRESS])
    def test_submitted_states_need_cleared_engineering(self, state_cls, status):
        with pytest.raises(InvalidStateCombinationError) as exc_info:
            state_cls(engineering=EngineeringTrack.required(status))
        assert exc_info.value.status == state_cls.status.value

    def test_waiver_reason_only_when_waived(self):
        with pytest.raises(InvalidStateCombinationError):
            Ready(engineering=EngineeringTrack(True, EngineeringStatus.COMPLETED, "no time"))
        state = Ready(engineering=EngineeringTrack(True, EngineeringStatus.WAIVED, "repeat route"))
        assert state.engineering.is_cleared

    def test_cancelled_allows_any_engineering(self):
        assert Cancelled(engineering=EngineeringTrack.required()).is_terminal

    def test_terminal_flags(self):
        assert Won().is_terminal and Lost().is_terminal and Cancelled().is_terminal
        assert not Draft().is_terminal and not Submitted().is_terminal


class TestStateFromFields:

    def test_round_trip_lost(self):
        state = Lost(
            engineering=EngineeringTrack(True, EngineeringStatus.WAIVED, "repeat route"),
            submitted_at=date(2025, 6, 1),
            submitted_to="Procurement",
            outcome_date=date(2025, 6, 20),
            outcome_reason=OutcomeReason(LostReasonCategory.PRICE_TOO_HIGH, "15% above"),
        )
        flat = state.to_fields()
        assert flat["status"] == "lost"
        assert flat["outcome_reason"] == "harga_tinggi|15% above"
        assert state_from_fields(**flat) == state

    @pytest.mark.parametrize(
        "state",
        [
            Draft(),
            EngineeringReview(),
            Ready(engineering=EngineeringTrack.required(EngineeringStatus.COMPLETED)),
            Submitted(submitted_at=date(2025, 6, 1), submitted_to="Buyer"),
            Won(outcome_date=date(2025, 6, 2)),
            Cancelled(outcome_date=date(2025, 6, 3), outcome_reason="Client postponed"),
        ],
    )
    def test_round_trip(self, state):
        assert state_from_fields(**state.to_fields()) == state

    def test_nulls_read_as_not_required(self):
        state = state_from_fields("draft", None, None)
        assert state == Draft()

    def test_irrelevant_fields_dropped(self):
        state = state_from_fields("ready", False, "not_required", outcome_reason="ignored")
        assert state == Ready()

    def test_unknown_status(self):
        with pytest.raises(UnknownValueError):
            state_from_fields("archived", False, "not_required")

    def test_unknown_engineering_status(self):
        with pytest.raises(UnknownValueError):
            state_from_fields("draft", True, "skipped")

    def test_impossible_combination(self):
        with pytest.raises(InvalidStateCombinationError):
            state_from_fields("submitted", True, "in_progress")


class TestOutcomeReason:

    def test_category_and_detail(self):
        reason = OutcomeReason.parse("kalah_kompetitor|Competitor had local fleet")
        assert reason.category is LostReasonCategory.LOST_TO_COMPETITOR
        assert reason.detail == "Competitor had local fleet"

    def test_category_only(self):
        reason = OutcomeReason.parse("teknikal_issue")
        assert reason == OutcomeReason(LostReasonCategory.TECHNICAL_ISSUE, "")
        assert reason.format() == "teknikal_issue"

    def test_legacy_free_text(self):
        reason = OutcomeReason.parse("Client chose rail")
        assert reason.category is LostReasonCategory.OTHER
        assert reason.detail == "Client chose rail"

    def test_unknown_category_keeps_whole_text(self):
        reason = OutcomeReason.parse("too_slow|missed window")
        assert reason.category is LostReasonCategory.OTHER
        assert reason.detail == "too_slow|missed window"

    def test_detail_may_contain_separator(self):
        reason = OutcomeReason.parse("lainnya|a|b")
        assert reason.detail == "a|b"
        assert reason.format() == "lainnya|a|b"

    def test_empty(self):
        assert OutcomeReason.parse(None) == OutcomeReason()
        assert OutcomeReason.parse("").format() == "lainnya"


class TestQuotationAggregate:

    def test_financials_follow_items(self, quotation_factory, sample_items):
        quotation = quotation_factory(estimated_shipments=3, **sample_items)
        financials = quotation.financials
        assert financials.total_revenue == Decimal("9000")
        assert financials.total_cost == Decimal("6000")
        assert financials.gross_profit == Decimal("3000")
        assert financials.profit_margin == Decimal("33.33")
        assert financials.pursuit_cost_per_shipment == Decimal("100.00")

        trimmed = replace(quotation, revenue_items=())
        assert trimmed.financials.total_revenue == Decimal("0")
        assert trimmed.financials.profit_margin == Decimal("0")

    def test_engineering_accessors(self, quotation_factory):
        quotation = quotation_factory(state=EngineeringReview())
        assert quotation.status is QuotationStatus.ENGINEERING_REVIEW
        assert quotation.requires_engineering
        assert quotation.engineering_status is EngineeringStatus.PENDING

    def test_additional_engineering_cost(self, quotation_factory):
        quotation = quotation_factory(assessments=(
            EngineeringAssessment("technical_review", "completed", Decimal("2000")),
            EngineeringAssessment("route_survey", "in_progress", Decimal("500")),
        ))
        assert quotation.engineering_additional_cost == Decimal("2000")

    @pytest.mark.parametrize(
        "scope,expected",
        [(None, True), ("inland_transport", True), ("multi_scope", True),
         ("customs_clearance", False), ("pbm", False)],
    )
    def test_requires_cargo_details(self, quotation_factory, scope, expected):
        assert quotation_factory(scope_of_work=scope).requires_cargo_details is expected

    def test_unknown_scope_rejected(self, quotation_factory):
        with pytest.raises(UnknownValueError):
            quotation_factory(scope_of_work="air_freight")
