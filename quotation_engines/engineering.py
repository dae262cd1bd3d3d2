"""
quotation_engines.engineering -- Engineering gate and review roll-up.

Responsibility:
    - The submission gate: a quotation may be submitted to the client only
      from ``ready`` and, when engineering is required, only once the
      engineering review is completed or waived.
    - The engineering sub-workflow helpers: which assessments a set of
      complexity factors calls for, how assessment statuses roll up into the
      quotation's engineering status, and when a waiver is allowed.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Owns the engineering enumerations; the module layer re-exports them.

Invariants enforced:
    - ``can_submit`` is allowed iff status == ready AND
      (not requires_engineering OR engineering_status in {completed, waived}).
    - A blocked check always carries a reason code distinguishing
      NOT_READY from ENGINEERING_INCOMPLETE.
    - The gate is independent of transition legality; callers check both.

Failure modes:
    - None.  The gate reports, it does not raise.  The service layer turns a
      failed check into SubmissionBlockedError.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Protocol

from quotation_engines.tracer import traced_engine
from quotation_kernel.domain.values import ZERO, money
from quotation_kernel.logging_config import get_logger

logger = get_logger("engines.engineering")

READY_STATUS = "ready"


class EngineeringStatus(str, Enum):
    """Engineering review progress on a quotation."""

    NOT_REQUIRED = "not_required"
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    WAIVED = "waived"


CLEARED_ENGINEERING_STATUSES = frozenset(
    {EngineeringStatus.COMPLETED, EngineeringStatus.WAIVED}
)


class AssessmentStatus(str, Enum):
    """Status of one engineering assessment."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class AssessmentType(str, Enum):
    """Kinds of engineering assessment."""

    TECHNICAL_REVIEW = "technical_review"
    ROUTE_SURVEY = "route_survey"
    PERMIT_CHECK = "permit_check"
    JMP_CREATION = "jmp_creation"  # Journey management plan


ROUTE_ASSESSMENT_FACTORS = frozenset({"new_route", "challenging_terrain"})
PERMIT_ASSESSMENT_FACTORS = frozenset({"special_permits"})
JMP_ASSESSMENT_FACTORS = frozenset(
    {"over_length", "over_width", "over_height", "heavy_cargo"}
)


class SubmissionBlockReason(str, Enum):
    """Why a submission is blocked."""

    NOT_READY = "NOT_READY"
    ENGINEERING_INCOMPLETE = "ENGINEERING_INCOMPLETE"


@dataclass(frozen=True)
class SubmissionCheck:
    """Outcome of the submission gate."""

    allowed: bool
    reason_code: SubmissionBlockReason | None = None
    reason: str | None = None

    def __bool__(self) -> bool:
        return self.allowed


class AssessmentLike(Protocol):
    @property
    def status(self) -> AssessmentStatus | str: ...


class FactorLike(Protocol):
    @property
    def criteria_code(self) -> str: ...


def _value(v: Enum | str | None) -> str | None:
    return v.value if isinstance(v, Enum) else v


def is_engineering_cleared(engineering_status: EngineeringStatus | str | None) -> bool:
    """True if the review is completed or waived."""
    return _value(engineering_status) in {s.value for s in CLEARED_ENGINEERING_STATUSES}


@traced_engine(
    "engineering_gate",
    "1.0",
    fingerprint_fields=("status", "requires_engineering", "engineering_status"),
)
def can_submit(
    status: Enum | str | None,
    requires_engineering: bool | None,
    engineering_status: EngineeringStatus | str | None,
) -> SubmissionCheck:
    """
    Evaluate the submission gate.

    Postconditions:
        - ``allowed`` is True iff status is ready and engineering is either
          not required or completed/waived.
        - Otherwise ``reason_code`` names the first failing condition.
    """
    status_value = _value(status)
    if status_value != READY_STATUS:
        return SubmissionCheck(
            allowed=False,
            reason_code=SubmissionBlockReason.NOT_READY,
            reason=(
                f"Quotation must be in '{READY_STATUS}' status to submit. "
                f"Current status: {status_value}"
            ),
        )
    if requires_engineering and not is_engineering_cleared(engineering_status):
        return SubmissionCheck(
            allowed=False,
            reason_code=SubmissionBlockReason.ENGINEERING_INCOMPLETE,
            reason=(
                "Engineering review must be completed or waived before "
                f"submission. Current status: {_value(engineering_status)}"
            ),
        )
    return SubmissionCheck(allowed=True)


def determine_required_assessments(
    factors: Iterable[FactorLike] | None,
) -> tuple[AssessmentType, ...]:
    """
    Assessments a review must include for the given complexity factors.

    A technical review is always required; route, permit and journey
    management assessments are added when a matching factor is present.
    Order is stable: technical, route, permit, JMP.
    """
    codes = {f.criteria_code for f in (factors or ())}
    required = [AssessmentType.TECHNICAL_REVIEW]
    if codes & ROUTE_ASSESSMENT_FACTORS:
        required.append(AssessmentType.ROUTE_SURVEY)
    if codes & PERMIT_ASSESSMENT_FACTORS:
        required.append(AssessmentType.PERMIT_CHECK)
    if codes & JMP_ASSESSMENT_FACTORS:
        required.append(AssessmentType.JMP_CREATION)
    return tuple(required)


def calculate_engineering_status(
    assessments: Sequence[AssessmentLike] | None,
) -> EngineeringStatus:
    """
    Roll assessment statuses up into the quotation's engineering status.

    Cancelled assessments are ignored.  No active assessments -> pending;
    any pending -> pending; else any in progress -> in_progress; else
    completed.
    """
    active = [
        _value(a.status)
        for a in (assessments or ())
        if _value(a.status) != AssessmentStatus.CANCELLED.value
    ]
    if not active or AssessmentStatus.PENDING.value in active:
        return EngineeringStatus.PENDING
    if AssessmentStatus.IN_PROGRESS.value in active:
        return EngineeringStatus.IN_PROGRESS
    return EngineeringStatus.COMPLETED


def calculate_additional_costs(assessments: Sequence[object] | None) -> Decimal:
    """Sum ``additional_cost_estimate`` over completed assessments only."""
    total = ZERO
    for a in assessments or ():
        if _value(getattr(a, "status")) == AssessmentStatus.COMPLETED.value:
            total += money(getattr(a, "additional_cost_estimate", None))
    return total


def can_waive_engineering(engineering_status: EngineeringStatus | str | None) -> bool:
    """A review can be waived unless it already completed."""
    return _value(engineering_status) != EngineeringStatus.COMPLETED.value
