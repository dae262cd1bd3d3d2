"""
Quotation Domain Models (``quotation_modules.quotation.models``).

Responsibility
--------------
Frozen value objects for the quotation lifecycle: closed enumerations for
every status and category string, the three item collections, market
classification input, engineering assessments, the per-state workflow
variants, and the ``Quotation`` aggregate itself.

Architecture position
---------------------
**Modules layer** -- pure data definitions.  No I/O.  Engineering
enumerations are owned by ``quotation_engines.engineering`` and re-exported
here so callers have one import surface.

Invariants enforced
-------------------
* All monetary fields are ``Decimal``; floats are rejected with TypeError
  at construction, int and numeric str are normalized.
* ``RevenueItem.subtotal`` is derived (``quantity * unit_price``) and has
  no constructor argument.
* ``Quotation.financials`` is recomputed from the current items on every
  read; there is no stored snapshot to go stale.
* Workflow state is a tagged variant per status.  Field combinations that
  cannot occur (engineering review without engineering, submitted with
  incomplete engineering, ...) raise InvalidStateCombinationError.
* Raw strings outside a closed enumeration raise UnknownValueError at the
  boundary (``parse_enum`` / ``state_from_fields``).

Failure modes
-------------
* ``TypeError`` / ``ValueError`` for malformed amounts.
* ``UnknownValueError`` / ``InvalidStateCombinationError`` when parsing
  persisted flat fields.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar, TypeVar
from uuid import UUID, uuid4

from quotation_engines.engineering import (
    AssessmentStatus,
    AssessmentType,
    EngineeringStatus,
    calculate_additional_costs,
    is_engineering_cleared,
)
from quotation_engines.financials import FinancialSnapshot, calculate_quotation_totals
from quotation_kernel.domain.values import money
from quotation_kernel.exceptions import (
    InvalidStateCombinationError,
    UnknownValueError,
)
from quotation_kernel.logging_config import get_logger

logger = get_logger("modules.quotation.models")

E = TypeVar("E", bound=Enum)


class QuotationStatus(str, Enum):
    """Quotation workflow states.  Must align with ``workflows.QUOTATION_WORKFLOW.states``."""
    DRAFT = "draft"
    ENGINEERING_REVIEW = "engineering_review"
    READY = "ready"
    SUBMITTED = "submitted"
    WON = "won"
    LOST = "lost"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = frozenset(
    {QuotationStatus.WON, QuotationStatus.LOST, QuotationStatus.CANCELLED}
)


class MarketType(str, Enum):
    SIMPLE = "simple"
    COMPLEX = "complex"


class ScopeOfWork(str, Enum):
    """What the quotation covers; transport scopes need cargo and route detail."""
    INLAND_TRANSPORT = "inland_transport"
    CUSTOMS_CLEARANCE = "customs_clearance"
    PBM = "pbm"  # Loading and unloading (bongkar muat)
    LOCAL_SERVICE = "local_service"
    MULTI_SCOPE = "multi_scope"


TRANSPORT_SCOPES = frozenset({ScopeOfWork.INLAND_TRANSPORT, ScopeOfWork.MULTI_SCOPE})


class RevenueCategory(str, Enum):
    TRANSPORTATION = "transportation"
    HANDLING = "handling"
    DOCUMENTATION = "documentation"
    ESCORT = "escort"
    PERMIT = "permit"
    OTHER = "other"


class CostCategory(str, Enum):
    TRUCKING = "trucking"
    SHIPPING = "shipping"
    PORT = "port"
    HANDLING = "handling"
    CREW = "crew"
    FUEL = "fuel"
    TOLL = "toll"
    PERMIT = "permit"
    ESCORT = "escort"
    INSURANCE = "insurance"
    DOCUMENTATION = "documentation"
    OTHER = "other"


class PursuitCostCategory(str, Enum):
    TRAVEL = "travel"
    ACCOMMODATION = "accommodation"
    SURVEY = "survey"
    CANVASSING = "canvassing"
    ENTERTAINMENT = "entertainment"
    FACILITATOR_FEE = "facilitator_fee"
    DOCUMENTATION = "documentation"
    OTHER = "other"


class LostReasonCategory(str, Enum):
    """Why a quotation was lost, for marketing evaluation."""
    PRICE_TOO_HIGH = "harga_tinggi"
    LOST_TO_COMPETITOR = "kalah_kompetitor"
    TECHNICAL_ISSUE = "teknikal_issue"
    CUSTOMER_CANCEL = "customer_cancel"
    OTHER = "lainnya"


def parse_enum(enum_cls: type[E], value: Any, field_name: str) -> E:
    """
    Parse a raw value into a member of ``enum_cls``.

    Members pass through unchanged.  Anything else must equal a member's
    value exactly.

    Raises:
        UnknownValueError: value is not in the enumeration.
    """
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = tuple(str(m.value) for m in enum_cls)
        logger.warning("unknown_enum_value", extra={
            "field": field_name,
            "value": str(value),
        })
        raise UnknownValueError(field_name, value, allowed) from None


def _optional_amount(value: Any) -> Decimal | None:
    return None if value is None else money(value)


# -----------------------------------------------------------------------------
# Items
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class RevenueItem:
    """A priced line on the quotation.

    Contract: frozen; ``subtotal`` is derived and never stored.
    Guarantees: ``quantity`` and ``unit_price`` are Decimal.
    """
    category: RevenueCategory
    description: str
    quantity: Decimal
    unit_price: Decimal
    unit: str = "unit"
    id: UUID = field(default_factory=uuid4)

    def __post_init__(self) -> None:
        object.__setattr__(self, "category", parse_enum(RevenueCategory, self.category, "revenue category"))
        object.__setattr__(self, "quantity", money(self.quantity))
        object.__setattr__(self, "unit_price", money(self.unit_price))

    @property
    def subtotal(self) -> Decimal:
        return self.quantity * self.unit_price


@dataclass(frozen=True)
class CostItem:
    """An estimated cost line; carries an amount directly."""
    category: CostCategory
    description: str
    estimated_amount: Decimal
    vendor_id: UUID | None = None
    vendor_name: str | None = None
    id: UUID = field(default_factory=uuid4)

    def __post_init__(self) -> None:
        object.__setattr__(self, "category", parse_enum(CostCategory, self.category, "cost category"))
        object.__setattr__(self, "estimated_amount", money(self.estimated_amount))


@dataclass(frozen=True)
class PursuitCostItem:
    """Pre-win sales or engineering cost, recovered per shipment once won."""
    category: PursuitCostCategory
    description: str
    amount: Decimal
    cost_date: date | None = None
    marketing_portion: Decimal | None = None
    engineering_portion: Decimal | None = None
    id: UUID = field(default_factory=uuid4)

    def __post_init__(self) -> None:
        object.__setattr__(self, "category", parse_enum(PursuitCostCategory, self.category, "pursuit cost category"))
        object.__setattr__(self, "amount", money(self.amount))
        object.__setattr__(self, "marketing_portion", _optional_amount(self.marketing_portion))
        object.__setattr__(self, "engineering_portion", _optional_amount(self.engineering_portion))


# -----------------------------------------------------------------------------
# Classification and engineering
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class ComplexityFactor:
    """One triggered criterion from the market classifier."""
    criteria_code: str
    criteria_name: str = ""
    weight: int = 0
    triggered_value: str | None = None


@dataclass(frozen=True)
class MarketClassification:
    """Classifier output consumed once at creation.

    Contract: read-only input.  ``requires_engineering`` is trusted as-is;
    the score threshold that produced it is the classifier's concern.
    """
    market_type: MarketType
    complexity_score: int
    complexity_factors: tuple[ComplexityFactor, ...] = ()
    requires_engineering: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "market_type", parse_enum(MarketType, self.market_type, "market type"))


@dataclass(frozen=True)
class EngineeringAssessment:
    """One engineering assessment attached to a quotation under review."""
    assessment_type: AssessmentType
    status: AssessmentStatus = AssessmentStatus.PENDING
    additional_cost_estimate: Decimal | None = None
    notes: str | None = None
    id: UUID = field(default_factory=uuid4)

    def __post_init__(self) -> None:
        object.__setattr__(self, "assessment_type", parse_enum(AssessmentType, self.assessment_type, "assessment type"))
        object.__setattr__(self, "status", parse_enum(AssessmentStatus, self.status, "assessment status"))
        object.__setattr__(self, "additional_cost_estimate", _optional_amount(self.additional_cost_estimate))


@dataclass(frozen=True)
class OutcomeReason:
    """Lost-reason category plus free-text detail.

    Persisted as ``"category|detail"``, or just ``"category"`` without
    detail.  Legacy free text (no separator, not a category) and unknown
    categories parse as ``lainnya`` with the whole text as detail.
    """
    category: LostReasonCategory = LostReasonCategory.OTHER
    detail: str = ""

    SEPARATOR: ClassVar[str] = "|"

    @classmethod
    def parse(cls, text: str | None) -> OutcomeReason:
        if not text:
            return cls()
        raw_category, sep, detail = text.partition(cls.SEPARATOR)
        try:
            category = LostReasonCategory(raw_category)
        except ValueError:
            return cls(LostReasonCategory.OTHER, text)
        return cls(category, detail if sep else "")

    def format(self) -> str:
        detail = self.detail.strip()
        if detail:
            return f"{self.category.value}{self.SEPARATOR}{detail}"
        return self.category.value


# -----------------------------------------------------------------------------
# Workflow state variants
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class EngineeringTrack:
    """Engineering sub-state carried by every workflow state.

    Guarantees: ``requires_engineering`` is False exactly when the status is
    ``not_required``.
    """
    requires_engineering: bool = False
    engineering_status: EngineeringStatus = EngineeringStatus.NOT_REQUIRED
    waived_reason: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "engineering_status",
            parse_enum(EngineeringStatus, self.engineering_status, "engineering status"),
        )

    @classmethod
    def required(cls, status: EngineeringStatus = EngineeringStatus.PENDING) -> EngineeringTrack:
        return cls(requires_engineering=True, engineering_status=status)

    @property
    def is_cleared(self) -> bool:
        return is_engineering_cleared(self.engineering_status)

    def violation(self) -> str | None:
        not_required = self.engineering_status is EngineeringStatus.NOT_REQUIRED
        if self.requires_engineering and not_required:
            return "engineering required but status is not_required"
        if not self.requires_engineering and not not_required:
            return "engineering not required but has a review status"
        if self.waived_reason and self.engineering_status is not EngineeringStatus.WAIVED:
            return "waiver reason recorded on a review that is not waived"
        return None


@dataclass(frozen=True)
class QuotationState:
    """Base of the per-status workflow variants.

    Contract: concrete subclasses set ``status``; each carries only the
    fields meaningful for its status.
    """
    status: ClassVar[QuotationStatus]

    engineering: EngineeringTrack = field(default_factory=EngineeringTrack)

    def __post_init__(self) -> None:
        reason = self.engineering.violation() or self._violation()
        if reason is not None:
            raise InvalidStateCombinationError(
                self.status.value,
                self.engineering.requires_engineering,
                self.engineering.engineering_status.value,
                reason,
            )

    def _violation(self) -> str | None:
        return None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def to_fields(self) -> dict[str, Any]:
        """Flatten into persisted column values; inverse of ``state_from_fields``."""
        flat: dict[str, Any] = {
            "status": self.status.value,
            "requires_engineering": self.engineering.requires_engineering,
            "engineering_status": self.engineering.engineering_status.value,
            "engineering_waived_reason": self.engineering.waived_reason,
        }
        for f in fields(self):
            if f.name == "engineering":
                continue
            value = getattr(self, f.name)
            flat[f.name] = value.format() if isinstance(value, OutcomeReason) else value
        return flat


@dataclass(frozen=True)
class Draft(QuotationState):
    status: ClassVar[QuotationStatus] = QuotationStatus.DRAFT


@dataclass(frozen=True)
class EngineeringReview(QuotationState):
    status: ClassVar[QuotationStatus] = QuotationStatus.ENGINEERING_REVIEW

    engineering: EngineeringTrack = field(default_factory=EngineeringTrack.required)

    def _violation(self) -> str | None:
        if not self.engineering.requires_engineering:
            return "engineering review without required engineering"
        return None


@dataclass(frozen=True)
class Ready(QuotationState):
    status: ClassVar[QuotationStatus] = QuotationStatus.READY


def _submission_violation(state: QuotationState) -> str | None:
    if state.engineering.requires_engineering and not state.engineering.is_cleared:
        return "submitted past an incomplete engineering review"
    return None


@dataclass(frozen=True)
class Submitted(QuotationState):
    status: ClassVar[QuotationStatus] = QuotationStatus.SUBMITTED

    submitted_at: date | None = None
    submitted_to: str | None = None

    def _violation(self) -> str | None:
        return _submission_violation(self)


@dataclass(frozen=True)
class Won(QuotationState):
    status: ClassVar[QuotationStatus] = QuotationStatus.WON

    submitted_at: date | None = None
    submitted_to: str | None = None
    outcome_date: date | None = None

    def _violation(self) -> str | None:
        return _submission_violation(self)


@dataclass(frozen=True)
class Lost(QuotationState):
    status: ClassVar[QuotationStatus] = QuotationStatus.LOST

    submitted_at: date | None = None
    submitted_to: str | None = None
    outcome_date: date | None = None
    outcome_reason: OutcomeReason = field(default_factory=OutcomeReason)

    def _violation(self) -> str | None:
        return _submission_violation(self)


@dataclass(frozen=True)
class Cancelled(QuotationState):
    status: ClassVar[QuotationStatus] = QuotationStatus.CANCELLED

    outcome_date: date | None = None
    outcome_reason: str | None = None


STATE_TYPES: dict[QuotationStatus, type[QuotationState]] = {
    cls.status: cls
    for cls in (Draft, EngineeringReview, Ready, Submitted, Won, Lost, Cancelled)
}


def state_from_fields(
    status: Any,
    requires_engineering: bool | None,
    engineering_status: Any,
    *,
    engineering_waived_reason: str | None = None,
    submitted_at: date | None = None,
    submitted_to: str | None = None,
    outcome_date: date | None = None,
    outcome_reason: str | None = None,
) -> QuotationState:
    """
    Parse persisted flat columns into a workflow state variant.

    A null ``requires_engineering`` reads as False and a null
    ``engineering_status`` as ``not_required``, matching how unclassified
    rows were stored.  Fields irrelevant to the resulting status are
    dropped.

    Raises:
        UnknownValueError: status or engineering status is not a known value.
        InvalidStateCombinationError: the combination cannot occur.
    """
    parsed_status = parse_enum(QuotationStatus, status, "quotation status")
    track = EngineeringTrack(
        requires_engineering=bool(requires_engineering),
        engineering_status=(
            EngineeringStatus.NOT_REQUIRED
            if engineering_status is None
            else parse_enum(EngineeringStatus, engineering_status, "engineering status")
        ),
        waived_reason=engineering_waived_reason,
    )
    candidates: dict[str, Any] = {
        "submitted_at": submitted_at,
        "submitted_to": submitted_to,
        "outcome_date": outcome_date,
        "outcome_reason": outcome_reason,
    }
    state_cls = STATE_TYPES[parsed_status]
    if state_cls is Lost:
        candidates["outcome_reason"] = OutcomeReason.parse(outcome_reason)
    accepted = {f.name for f in fields(state_cls)}
    kwargs = {k: v for k, v in candidates.items() if k in accepted}
    return state_cls(engineering=track, **kwargs)


# -----------------------------------------------------------------------------
# Quotation aggregate
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class Quotation:
    """A client quotation with its items and workflow state.

    Contract: frozen; every edit produces a new value (see
    ``QuotationService``).
    Guarantees: ``financials`` always equals a fresh aggregation over the
    current items and ``estimated_shipments``.
    Non-goals: does not enforce transition legality; the service does.
    """
    id: UUID
    quotation_number: str
    customer_id: UUID
    title: str
    origin: str
    destination: str
    project_id: UUID | None = None
    commodity: str | None = None
    scope_of_work: ScopeOfWork | None = None
    rfq_number: str | None = None
    rfq_date: date | None = None
    rfq_deadline: date | None = None
    origin_lat: Decimal | None = None
    origin_lng: Decimal | None = None
    origin_place_id: str | None = None
    destination_lat: Decimal | None = None
    destination_lng: Decimal | None = None
    destination_place_id: str | None = None
    cargo_weight_kg: Decimal | None = None
    cargo_length_m: Decimal | None = None
    cargo_width_m: Decimal | None = None
    cargo_height_m: Decimal | None = None
    cargo_value: Decimal | None = None
    is_new_route: bool | None = None
    terrain_type: str | None = None
    requires_special_permit: bool | None = None
    is_hazardous: bool | None = None
    duration_days: int | None = None
    market_type: MarketType | None = None
    complexity_score: int | None = None
    complexity_factors: tuple[ComplexityFactor, ...] = ()
    estimated_shipments: int = 1
    revenue_items: tuple[RevenueItem, ...] = ()
    cost_items: tuple[CostItem, ...] = ()
    pursuit_costs: tuple[PursuitCostItem, ...] = ()
    assessments: tuple[EngineeringAssessment, ...] = ()
    state: QuotationState = field(default_factory=Draft)

    def __post_init__(self) -> None:
        if self.scope_of_work is not None:
            object.__setattr__(self, "scope_of_work", parse_enum(ScopeOfWork, self.scope_of_work, "scope of work"))
        if self.market_type is not None:
            object.__setattr__(self, "market_type", parse_enum(MarketType, self.market_type, "market type"))

    @property
    def status(self) -> QuotationStatus:
        return self.state.status

    @property
    def requires_engineering(self) -> bool:
        return self.state.engineering.requires_engineering

    @property
    def engineering_status(self) -> EngineeringStatus:
        return self.state.engineering.engineering_status

    @property
    def is_terminal(self) -> bool:
        return self.state.is_terminal

    @property
    def financials(self) -> FinancialSnapshot:
        return calculate_quotation_totals(
            self.revenue_items,
            self.cost_items,
            self.pursuit_costs,
            self.estimated_shipments,
        )

    @property
    def total_revenue(self) -> Decimal:
        return self.financials.total_revenue

    @property
    def engineering_additional_cost(self) -> Decimal:
        """Extra cost estimated by completed engineering assessments."""
        return calculate_additional_costs(self.assessments)

    @property
    def requires_cargo_details(self) -> bool:
        return self.scope_of_work is None or self.scope_of_work in TRANSPORT_SCOPES
