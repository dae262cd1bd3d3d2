"""
Quotation Workflow (``quotation_modules.quotation.workflows``).

Responsibility
--------------
Declares the quotation lifecycle as a ``Workflow`` and binds the transition
validator engine to it.  Also narrows graph-legal targets by the
engineering sub-state so callers can enable only the actions that will
actually succeed.

Architecture position
---------------------
**Modules layer** -- declarative workflow definition.  Imports the canonical
Guard, Transition, Workflow from ``quotation_kernel.domain.workflow`` and
the validator from ``quotation_engines.transitions``.

Invariants enforced
-------------------
* The transition tuple is the complete adjacency table:

    draft              -> engineering_review, ready, cancelled
    engineering_review -> ready, cancelled
    ready              -> submitted, cancelled
    submitted          -> won, lost, cancelled
    won / lost / cancelled (terminal)

* ``cancelled`` is reachable from every non-terminal state.
* ``valid_next_statuses`` only ever removes targets from the graph-legal
  set; it never adds one.

Audit relevance
---------------
Workflow definition logged at module-load time with state and transition
counts.
"""

from __future__ import annotations

from enum import Enum

from quotation_engines.engineering import EngineeringStatus, is_engineering_cleared
from quotation_engines.transitions import TransitionValidator
from quotation_kernel.domain.workflow import Guard, Transition, Workflow
from quotation_kernel.logging_config import get_logger
from quotation_modules.quotation.models import QuotationStatus, parse_enum

logger = get_logger("modules.quotation.workflows")


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

ENGINEERING_REQUIRED = Guard(
    name="engineering_required",
    description="Market classification requires engineering review",
)

ENGINEERING_CLEARED = Guard(
    name="engineering_cleared",
    description="Engineering review is not required, completed, or waived",
)

SUBMISSION_GATE = Guard(
    name="submission_gate",
    description="Quotation is ready and engineering review is cleared",
)

logger.info(
    "quotation_workflow_guards_defined",
    extra={
        "guards": [
            ENGINEERING_REQUIRED.name,
            ENGINEERING_CLEARED.name,
            SUBMISSION_GATE.name,
        ],
    },
)


# -----------------------------------------------------------------------------
# Quotation Workflow
# -----------------------------------------------------------------------------

_S = QuotationStatus

QUOTATION_WORKFLOW = Workflow(
    name="quotation",
    description="Client quotation lifecycle from draft to outcome",
    initial_state=_S.DRAFT.value,
    states=tuple(s.value for s in QuotationStatus),
    terminal_states=(_S.WON.value, _S.LOST.value, _S.CANCELLED.value),
    transitions=(
        Transition("draft", "engineering_review", action="request_engineering", guard=ENGINEERING_REQUIRED),
        Transition("draft", "ready", action="mark_ready", guard=ENGINEERING_CLEARED),
        Transition("draft", "cancelled", action="cancel"),
        Transition("engineering_review", "ready", action="complete_engineering", guard=ENGINEERING_CLEARED),
        Transition("engineering_review", "cancelled", action="cancel"),
        Transition("ready", "submitted", action="submit", guard=SUBMISSION_GATE),
        Transition("ready", "cancelled", action="cancel"),
        Transition("submitted", "won", action="mark_won"),
        Transition("submitted", "lost", action="mark_lost"),
        Transition("submitted", "cancelled", action="cancel"),
    ),
)

logger.info(
    "quotation_workflow_registered",
    extra={
        "workflow_name": QUOTATION_WORKFLOW.name,
        "state_count": len(QUOTATION_WORKFLOW.states),
        "transition_count": len(QUOTATION_WORKFLOW.transitions),
        "initial_state": QUOTATION_WORKFLOW.initial_state,
    },
)

QUOTATION_VALIDATOR = TransitionValidator(QUOTATION_WORKFLOW)


def can_transition(from_status: QuotationStatus | str, to_status: QuotationStatus | str) -> bool:
    return QUOTATION_VALIDATOR.can_transition(
        parse_enum(QuotationStatus, from_status, "quotation status"),
        parse_enum(QuotationStatus, to_status, "quotation status"),
    )


def legal_targets(status: QuotationStatus | str) -> frozenset[QuotationStatus]:
    """Graph-legal next statuses, ignoring the engineering sub-state."""
    parsed = parse_enum(QuotationStatus, status, "quotation status")
    return frozenset(QuotationStatus(s) for s in QUOTATION_VALIDATOR.legal_targets(parsed))


def validate_transition(
    from_status: QuotationStatus | str, to_status: QuotationStatus | str
) -> Transition:
    """Return the declared transition or raise InvalidTransitionError / TerminalStateError."""
    return QUOTATION_VALIDATOR.validate(
        parse_enum(QuotationStatus, from_status, "quotation status"),
        parse_enum(QuotationStatus, to_status, "quotation status"),
    )


def valid_next_statuses(
    status: QuotationStatus | str,
    requires_engineering: bool | None,
    engineering_status: EngineeringStatus | Enum | str | None,
) -> tuple[QuotationStatus, ...]:
    """
    Next statuses that make sense for the engineering sub-state.

    - A draft that requires engineering may only enter review or cancel.
    - A draft without engineering skips the review.
    - A review that is not yet completed or waived may only cancel.

    Order follows the workflow's state declaration order.
    """
    parsed = parse_enum(QuotationStatus, status, "quotation status")
    targets = legal_targets(parsed)

    if parsed is QuotationStatus.DRAFT:
        if requires_engineering:
            targets &= {QuotationStatus.ENGINEERING_REVIEW, QuotationStatus.CANCELLED}
        else:
            targets -= {QuotationStatus.ENGINEERING_REVIEW}
    elif parsed is QuotationStatus.ENGINEERING_REVIEW:
        if not is_engineering_cleared(engineering_status):
            targets &= {QuotationStatus.CANCELLED}

    return tuple(s for s in QuotationStatus if s in targets)
