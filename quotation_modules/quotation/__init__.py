"""
Quotation Module (``quotation_modules.quotation``).

Responsibility
--------------
Client quotations from first draft to won or lost: item collections and
derived financials, the status workflow with its engineering gate, and
conversion of a won quotation into one or more Proforma Job Order drafts.

Architecture position
---------------------
**Modules layer** -- declarative workflow, frozen models, mapping and a
service facade.  Calculation is delegated to ``quotation_engines``.

Invariants enforced
-------------------
* Status changes follow ``QUOTATION_WORKFLOW``; terminal states are final.
* Submission requires a ready quotation with engineering cleared.
* Financial figures are derived from items on every read.
* Job order drafts never inherit engineering history.
"""

from quotation_modules.quotation.classification import (
    determine_initial_status,
    initial_state_for,
)
from quotation_modules.quotation.conversion import (
    PJOSeed,
    ShipmentDraft,
    convert_to_pjos,
    prepare_pjo_seed,
    split_quotation_by_shipments,
)
from quotation_modules.quotation.models import (
    AssessmentStatus,
    AssessmentType,
    Cancelled,
    ComplexityFactor,
    CostCategory,
    CostItem,
    Draft,
    EngineeringAssessment,
    EngineeringReview,
    EngineeringStatus,
    EngineeringTrack,
    LostReasonCategory,
    Lost,
    MarketClassification,
    MarketType,
    OutcomeReason,
    PursuitCostCategory,
    PursuitCostItem,
    Quotation,
    QuotationState,
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
from quotation_modules.quotation.service import QuotationService
from quotation_modules.quotation.workflows import (
    QUOTATION_WORKFLOW,
    can_transition,
    legal_targets,
    valid_next_statuses,
    validate_transition,
)

__all__ = [
    # Models
    "AssessmentStatus",
    "AssessmentType",
    "ComplexityFactor",
    "CostCategory",
    "CostItem",
    "EngineeringAssessment",
    "EngineeringStatus",
    "LostReasonCategory",
    "MarketClassification",
    "MarketType",
    "OutcomeReason",
    "PursuitCostCategory",
    "PursuitCostItem",
    "Quotation",
    "QuotationStatus",
    "RevenueCategory",
    "RevenueItem",
    "ScopeOfWork",
    "parse_enum",
    # Workflow states
    "QuotationState",
    "EngineeringTrack",
    "Draft",
    "EngineeringReview",
    "Ready",
    "Submitted",
    "Won",
    "Lost",
    "Cancelled",
    "state_from_fields",
    # Workflow
    "QUOTATION_WORKFLOW",
    "can_transition",
    "legal_targets",
    "validate_transition",
    "valid_next_statuses",
    # Classification
    "determine_initial_status",
    "initial_state_for",
    # Conversion
    "PJOSeed",
    "ShipmentDraft",
    "prepare_pjo_seed",
    "split_quotation_by_shipments",
    "convert_to_pjos",
    # Service
    "QuotationService",
]
