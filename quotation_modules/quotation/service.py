"""
Quotation Module Service (``quotation_modules.quotation.service``).

Responsibility
--------------
Orchestrates the quotation lifecycle -- creation, item edits, status
changes, the engineering sub-workflow, outcome recording and conversion to
job order drafts -- by delegating pure computation to ``quotation_engines``
and returning new immutable ``Quotation`` values for the caller to persist.

Architecture position
---------------------
**Modules layer** -- thin glue.  ``QuotationService`` is the public entry
point for quotation operations.  It holds configuration and a clock, never
quotation state.

Invariants enforced
-------------------
* Every status change goes through the transition validator; submission
  additionally passes the engineering gate.
* Graph-legal moves that the engineering sub-state rules out (e.g. a draft
  that needs engineering jumping to ready) are rejected, never coerced.
* Items are immutable once the quotation is won, lost or cancelled.
* The caller serializes writes to one quotation; this service has no
  isolation of its own.

Failure modes
-------------
* InvalidTransitionError / TerminalStateError -- illegal status change.
* SubmissionBlockedError -- submission blocked by the engineering gate.
* EngineeringWaiverError -- waiver refused.
* QuotationClosedError -- item edit on a terminal quotation.
* QuotationNotWonError -- conversion of a quotation that is not won.
* InvalidShipmentCountError -- bad split count or shipment estimate.

Audit relevance
---------------
Structured log events for every state change and item edit, bound to the
quotation id through ``LogContext``.

Usage::

    service = QuotationService(get_active_config(), clock=clock)
    quotation = service.create_quotation(
        existing_count=41,
        customer_id=customer_id,
        title="Transformer haul",
        origin="Cilegon",
        destination="Morowali",
        classification=classification,
    )
    quotation = service.add_revenue_item(quotation, RevenueItem(...))
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from quotation_config.schema import QuotationConfig
from quotation_engines.analytics import calculate_pipeline_value, calculate_win_rate
from quotation_engines.deadlines import days_until_deadline, is_deadline_approaching
from quotation_engines.engineering import (
    EngineeringStatus,
    calculate_engineering_status,
    can_submit,
    can_waive_engineering,
    determine_required_assessments,
)
from quotation_engines.numbering import SequenceOverflowPolicy, generate_quotation_number
from quotation_kernel.domain.clock import Clock, SystemClock
from quotation_kernel.exceptions import (
    EngineeringWaiverError,
    InvalidShipmentCountError,
    InvalidTransitionError,
    QuotationClosedError,
    SubmissionBlockedError,
)
from quotation_kernel.logging_config import LogContext, get_logger
from quotation_modules.quotation.classification import initial_state_for
from quotation_modules.quotation.conversion import ShipmentDraft, convert_to_pjos
from quotation_modules.quotation.models import (
    Cancelled,
    CostItem,
    Draft,
    EngineeringAssessment,
    EngineeringReview,
    EngineeringTrack,
    Lost,
    MarketClassification,
    OutcomeReason,
    PursuitCostItem,
    Quotation,
    QuotationState,
    QuotationStatus,
    Ready,
    RevenueItem,
    Submitted,
    Won,
    parse_enum,
)
from quotation_modules.quotation.workflows import (
    QUOTATION_WORKFLOW,
    valid_next_statuses,
    validate_transition,
)

logger = get_logger("modules.quotation.service")


class QuotationService:
    """
    Coordinates quotation operations through the engines.

    Contract
    --------
    * Every mutating method takes a ``Quotation`` and returns a new one;
      the input is never modified.
    * Rejections raise typed kernel exceptions.

    Guarantees
    ----------
    * Clock is injectable for deterministic testing.
    * The returned quotation's ``financials`` reflect its items.

    Non-goals
    ---------
    * Does NOT persist anything or resolve concurrent edits.
    * Does NOT classify markets; the classification arrives as input.
    """

    def __init__(
        self,
        config: QuotationConfig | None = None,
        clock: Clock | None = None,
    ):
        self._config = config or QuotationConfig()
        self._clock = clock or SystemClock()
        self._overflow = SequenceOverflowPolicy(self._config.numbering.overflow)
        self._open_statuses = frozenset(
            parse_enum(QuotationStatus, s, "pipeline status")
            for s in self._config.pipeline.open_statuses
        )

    @property
    def config(self) -> QuotationConfig:
        return self._config

    # =========================================================================
    # Creation
    # =========================================================================

    def create_quotation(
        self,
        *,
        existing_count: int,
        customer_id: UUID,
        title: str,
        origin: str,
        destination: str,
        classification: MarketClassification | None = None,
        estimated_shipments: int | None = None,
        reference_date: date | None = None,
        quotation_id: UUID | None = None,
        **details: Any,
    ) -> Quotation:
        """
        Create a quotation numbered after ``existing_count`` for the year.

        The entry state comes from the classification: engineering review
        when it requires engineering, draft otherwise (or when absent).
        ``details`` carries the optional route and cargo descriptors.
        """
        numbering = self._config.numbering
        number = generate_quotation_number(
            existing_count,
            reference_date,
            clock=self._clock,
            prefix=numbering.prefix,
            width=numbering.width,
            overflow=self._overflow,
        )
        state: QuotationState = Draft()
        if classification is not None:
            state = initial_state_for(classification)
            details.setdefault("market_type", classification.market_type)
            details.setdefault("complexity_score", classification.complexity_score)
            details.setdefault("complexity_factors", classification.complexity_factors)

        quotation = Quotation(
            id=quotation_id or uuid4(),
            quotation_number=number,
            customer_id=customer_id,
            title=title,
            origin=origin,
            destination=destination,
            estimated_shipments=(
                self._config.financial.default_estimated_shipments
                if estimated_shipments is None
                else estimated_shipments
            ),
            state=state,
            **details,
        )
        logger.info("quotation_created", extra={
            "quotation_id": str(quotation.id),
            "quotation_number": quotation.quotation_number,
            "status": quotation.status.value,
            "requires_engineering": quotation.requires_engineering,
        })
        return quotation

    # =========================================================================
    # Items
    # =========================================================================

    def _require_open(self, quotation: Quotation) -> None:
        if quotation.is_terminal:
            logger.warning("quotation_item_edit_rejected", extra={
                "quotation_id": str(quotation.id),
                "status": quotation.status.value,
            })
            raise QuotationClosedError(str(quotation.id), quotation.status.value)

    def _log_items_changed(self, quotation: Quotation, action: str) -> None:
        financials = quotation.financials
        logger.info("quotation_items_changed", extra={
            "quotation_id": str(quotation.id),
            "action": action,
            "total_revenue": str(financials.total_revenue),
            "total_cost": str(financials.total_cost),
            "total_pursuit_cost": str(financials.total_pursuit_cost),
            "profit_margin": str(financials.profit_margin),
            "estimated_shipments": quotation.estimated_shipments,
            "pursuit_cost_per_shipment": str(financials.pursuit_cost_per_shipment),
        })

    def add_revenue_item(self, quotation: Quotation, item: RevenueItem) -> Quotation:
        self._require_open(quotation)
        updated = replace(quotation, revenue_items=quotation.revenue_items + (item,))
        self._log_items_changed(updated, "add_revenue_item")
        return updated

    def add_cost_item(self, quotation: Quotation, item: CostItem) -> Quotation:
        self._require_open(quotation)
        updated = replace(quotation, cost_items=quotation.cost_items + (item,))
        self._log_items_changed(updated, "add_cost_item")
        return updated

    def add_pursuit_cost(self, quotation: Quotation, item: PursuitCostItem) -> Quotation:
        self._require_open(quotation)
        updated = replace(quotation, pursuit_costs=quotation.pursuit_costs + (item,))
        self._log_items_changed(updated, "add_pursuit_cost")
        return updated

    def remove_item(self, quotation: Quotation, item_id: UUID) -> Quotation:
        """
        Remove a revenue, cost or pursuit cost item by id.

        Raises:
            QuotationClosedError: quotation is terminal.
            ValueError: no item has ``item_id``.
        """
        self._require_open(quotation)
        changes: dict[str, tuple] = {}
        for name in ("revenue_items", "cost_items", "pursuit_costs"):
            items = getattr(quotation, name)
            kept = tuple(i for i in items if i.id != item_id)
            if len(kept) != len(items):
                changes[name] = kept
        if not changes:
            raise ValueError(f"Item {item_id} not found on quotation {quotation.id}")
        updated = replace(quotation, **changes)
        self._log_items_changed(updated, "remove_item")
        return updated

    def set_estimated_shipments(self, quotation: Quotation, shipments: int) -> Quotation:
        """
        Change the shipment estimate the pursuit cost is spread over.

        Raises:
            QuotationClosedError: quotation is terminal.
            InvalidShipmentCountError: ``shipments`` is not a positive int.
        """
        self._require_open(quotation)
        _require_estimated_shipments(quotation, shipments)
        updated = replace(quotation, estimated_shipments=shipments)
        self._log_items_changed(updated, "set_estimated_shipments")
        return updated

    # =========================================================================
    # Status transitions
    # =========================================================================

    def transition(
        self,
        quotation: Quotation,
        to_status: QuotationStatus | str,
        **state_fields: Any,
    ) -> Quotation:
        """
        Move a quotation to ``to_status``.

        Checks, in order: graph legality, the submission gate (for
        ``submitted``), and the engineering sub-state narrowing.
        ``state_fields`` populate the target variant (``submitted_to``,
        ``outcome_reason``, ...).

        Raises:
            InvalidTransitionError / TerminalStateError: illegal move.
            SubmissionBlockedError: submission gate failed.
        """
        target = parse_enum(QuotationStatus, to_status, "quotation status")
        source = quotation.status

        with LogContext.bind(quotation_id=str(quotation.id)):
            validate_transition(source, target)

            if target is QuotationStatus.SUBMITTED:
                check = can_submit(source, quotation.requires_engineering, quotation.engineering_status)
                if not check.allowed:
                    logger.warning("quotation_submission_blocked", extra={
                        "quotation_id": str(quotation.id),
                        "reason_code": check.reason_code.value,
                    })
                    raise SubmissionBlockedError(
                        check.reason_code.value,
                        check.reason,
                        source.value,
                        quotation.engineering_status.value,
                    )
            elif target not in valid_next_statuses(
                source, quotation.requires_engineering, quotation.engineering_status
            ):
                logger.warning("quotation_transition_guard_failed", extra={
                    "quotation_id": str(quotation.id),
                    "from_state": source.value,
                    "to_state": target.value,
                    "engineering_status": quotation.engineering_status.value,
                })
                raise InvalidTransitionError(
                    QUOTATION_WORKFLOW.name,
                    source.value,
                    target.value,
                    f"Transition {source.value} -> {target.value} is blocked by "
                    f"engineering status {quotation.engineering_status.value} "
                    f"(requires_engineering={quotation.requires_engineering})",
                )

            updated = replace(quotation, state=self._build_state(quotation, target, state_fields))
            logger.info("quotation_status_changed", extra={
                "quotation_id": str(quotation.id),
                "from_state": source.value,
                "to_state": target.value,
            })
            return updated

    def _build_state(
        self,
        quotation: Quotation,
        target: QuotationStatus,
        state_fields: dict[str, Any],
    ) -> QuotationState:
        current = quotation.state
        engineering = current.engineering
        today = self._clock.today()
        submitted = {
            "submitted_at": getattr(current, "submitted_at", None),
            "submitted_to": getattr(current, "submitted_to", None),
        }

        match target:
            case QuotationStatus.READY:
                return Ready(engineering=engineering)
            case QuotationStatus.SUBMITTED:
                return Submitted(
                    engineering=engineering,
                    submitted_at=state_fields.get("submitted_at") or today,
                    submitted_to=state_fields.get("submitted_to"),
                )
            case QuotationStatus.WON:
                return Won(
                    engineering=engineering,
                    outcome_date=state_fields.get("outcome_date") or today,
                    **submitted,
                )
            case QuotationStatus.LOST:
                reason = state_fields.get("outcome_reason")
                if not isinstance(reason, OutcomeReason):
                    reason = OutcomeReason.parse(reason)
                return Lost(
                    engineering=engineering,
                    outcome_date=state_fields.get("outcome_date") or today,
                    outcome_reason=reason,
                    **submitted,
                )
            case QuotationStatus.CANCELLED:
                return Cancelled(
                    engineering=engineering,
                    outcome_date=state_fields.get("outcome_date") or today,
                    outcome_reason=state_fields.get("outcome_reason"),
                )
            case QuotationStatus.ENGINEERING_REVIEW:
                return EngineeringReview(engineering=engineering)
            case _:
                raise InvalidTransitionError(
                    QUOTATION_WORKFLOW.name, quotation.status.value, target.value
                )

    def mark_ready(self, quotation: Quotation) -> Quotation:
        return self.transition(quotation, QuotationStatus.READY)

    def submit(
        self,
        quotation: Quotation,
        submitted_to: str | None = None,
        submitted_at: date | None = None,
    ) -> Quotation:
        """Submit to the client; requires a legal move and a passing gate."""
        return self.transition(
            quotation,
            QuotationStatus.SUBMITTED,
            submitted_to=submitted_to,
            submitted_at=submitted_at,
        )

    def mark_won(self, quotation: Quotation, outcome_date: date | None = None) -> Quotation:
        return self.transition(quotation, QuotationStatus.WON, outcome_date=outcome_date)

    def mark_lost(
        self,
        quotation: Quotation,
        reason: OutcomeReason | str | None = None,
        outcome_date: date | None = None,
    ) -> Quotation:
        return self.transition(
            quotation,
            QuotationStatus.LOST,
            outcome_reason=reason,
            outcome_date=outcome_date,
        )

    def cancel(self, quotation: Quotation, reason: str | None = None) -> Quotation:
        return self.transition(quotation, QuotationStatus.CANCELLED, outcome_reason=reason)

    # =========================================================================
    # Engineering
    # =========================================================================

    def initialize_engineering(self, quotation: Quotation) -> Quotation:
        """
        Start an engineering review.

        Creates the assessments the quotation's complexity factors call for
        and moves a draft into ``engineering_review``.  A review that already
        has assessments is returned unchanged.

        Raises:
            InvalidTransitionError: quotation is past the review stage.
        """
        if quotation.status not in (QuotationStatus.DRAFT, QuotationStatus.ENGINEERING_REVIEW):
            raise InvalidTransitionError(
                QUOTATION_WORKFLOW.name,
                quotation.status.value,
                QuotationStatus.ENGINEERING_REVIEW.value,
                f"Engineering review cannot start from {quotation.status.value}",
            )
        if quotation.status is QuotationStatus.ENGINEERING_REVIEW and quotation.assessments:
            logger.info("engineering_review_already_initialized", extra={
                "quotation_id": str(quotation.id),
                "assessment_count": len(quotation.assessments),
            })
            return quotation
        assessments = tuple(
            EngineeringAssessment(assessment_type=t)
            for t in determine_required_assessments(quotation.complexity_factors)
        )
        updated = replace(
            quotation,
            assessments=assessments,
            state=EngineeringReview(engineering=EngineeringTrack.required()),
        )
        logger.info("engineering_review_initialized", extra={
            "quotation_id": str(quotation.id),
            "from_state": quotation.status.value,
            "assessment_types": [a.assessment_type.value for a in assessments],
        })
        return updated

    def record_assessments(
        self,
        quotation: Quotation,
        assessments: Iterable[EngineeringAssessment],
    ) -> Quotation:
        """Replace the assessments and roll their statuses up into the review."""
        if quotation.status is not QuotationStatus.ENGINEERING_REVIEW:
            raise InvalidTransitionError(
                QUOTATION_WORKFLOW.name,
                quotation.status.value,
                QuotationStatus.ENGINEERING_REVIEW.value,
                f"Assessments can only be recorded during engineering review, "
                f"status is {quotation.status.value}",
            )
        recorded = tuple(assessments)
        status = calculate_engineering_status(recorded)
        updated = replace(
            quotation,
            assessments=recorded,
            state=EngineeringReview(engineering=EngineeringTrack.required(status)),
        )
        logger.info("engineering_assessments_recorded", extra={
            "quotation_id": str(quotation.id),
            "assessment_count": len(recorded),
            "engineering_status": status.value,
            "additional_cost": str(updated.engineering_additional_cost),
        })
        return updated

    def waive_engineering(self, quotation: Quotation, reason: str) -> Quotation:
        """
        Waive a required engineering review.

        A quotation under review moves to ``ready``.

        Raises:
            EngineeringWaiverError: empty reason, engineering not required,
                or the review already completed.
        """
        quotation_id = str(quotation.id)
        if quotation.is_terminal:
            raise QuotationClosedError(quotation_id, quotation.status.value)
        if not reason or not reason.strip():
            raise EngineeringWaiverError(quotation_id, "a waiver reason is required")
        if not quotation.requires_engineering:
            raise EngineeringWaiverError(quotation_id, "engineering is not required")
        if not can_waive_engineering(quotation.engineering_status):
            raise EngineeringWaiverError(quotation_id, "engineering review already completed")

        track = EngineeringTrack(
            requires_engineering=True,
            engineering_status=EngineeringStatus.WAIVED,
            waived_reason=reason.strip(),
        )
        state: QuotationState
        if quotation.status is QuotationStatus.ENGINEERING_REVIEW:
            state = Ready(engineering=track)
        else:
            state = replace(quotation.state, engineering=track)
        updated = replace(quotation, state=state)
        logger.info("engineering_waived", extra={
            "quotation_id": quotation_id,
            "from_state": quotation.status.value,
            "to_state": updated.status.value,
        })
        return updated

    # =========================================================================
    # Conversion and reporting
    # =========================================================================

    def convert_to_pjos(
        self,
        quotation: Quotation,
        split_by_shipments: bool = False,
        shipment_count: int | None = None,
    ) -> tuple[ShipmentDraft, ...]:
        with LogContext.bind(quotation_id=str(quotation.id)):
            return convert_to_pjos(quotation, split_by_shipments, shipment_count)

    def pipeline_value(self, quotations: Iterable[Quotation]) -> Decimal:
        """Total revenue of quotations in the configured open statuses."""
        return calculate_pipeline_value(quotations, self._open_statuses)

    def win_rate(self, quotations: Iterable[Quotation]) -> Decimal:
        statuses = [q.status for q in quotations]
        return calculate_win_rate(
            statuses.count(QuotationStatus.WON),
            statuses.count(QuotationStatus.LOST),
        )

    def days_until_deadline(self, quotation: Quotation) -> int | None:
        return days_until_deadline(quotation.rfq_deadline, clock=self._clock)

    def is_deadline_approaching(self, quotation: Quotation) -> bool:
        """Open quotation whose RFQ deadline is within the configured threshold."""
        if quotation.is_terminal or quotation.status is QuotationStatus.SUBMITTED:
            return False
        return is_deadline_approaching(
            quotation.rfq_deadline,
            threshold_days=self._config.deadlines.approaching_threshold_days,
            clock=self._clock,
        )


def _require_estimated_shipments(quotation: Quotation, shipments: Any) -> None:
    if isinstance(shipments, bool) or not isinstance(shipments, int) or shipments <= 0:
        logger.warning("quotation_shipment_estimate_rejected", extra={
            "quotation_id": str(quotation.id),
            "estimated_shipments": repr(shipments),
        })
        raise InvalidShipmentCountError(shipments)
