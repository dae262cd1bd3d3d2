"""
Module: quotation_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines.  This is the import surface for the quotation
    module layer.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import quotation_kernel (and sibling engine modules).
    MUST NOT import quotation_modules or quotation_config.

Invariants enforced:
    - Purity: engines never read the wall clock inline.  Dates default to
      an injected Clock.
    - Decimal-only arithmetic: floats are rejected at the boundary.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Engine entry points are traced via ``@traced_engine`` (see
    ``quotation_engines.tracer``), emitting QUOTATION_ENGINE_TRACE records.
"""

from quotation_kernel.logging_config import get_logger

logger = get_logger("engines")

from quotation_engines.analytics import (
    DEFAULT_OPEN_STATUSES,
    calculate_pipeline_value,
    calculate_win_rate,
)
from quotation_engines.deadlines import (
    days_until_deadline,
    is_deadline_approaching,
    is_overdue,
)
from quotation_engines.engineering import (
    AssessmentStatus,
    AssessmentType,
    EngineeringStatus,
    SubmissionBlockReason,
    SubmissionCheck,
    calculate_additional_costs,
    calculate_engineering_status,
    can_submit,
    can_waive_engineering,
    determine_required_assessments,
)
from quotation_engines.financials import (
    FinancialSnapshot,
    calculate_gross_profit,
    calculate_profit_margin,
    calculate_pursuit_cost_per_shipment,
    calculate_quotation_totals,
)
from quotation_engines.numbering import (
    QuotationNumber,
    SequenceOverflowPolicy,
    generate_quotation_number,
    parse_quotation_number,
)
from quotation_engines.shipment_split import (
    CostLineSlice,
    RevenueLineSlice,
    ShipmentAllocation,
    ShipmentSplitEngine,
    ShipmentSplitResult,
    split_amount,
)
from quotation_engines.transitions import TransitionValidator
from quotation_engines.variance import BudgetVariance, calculate_budget_variance

__all__ = [
    # Numbering
    "QuotationNumber",
    "SequenceOverflowPolicy",
    "generate_quotation_number",
    "parse_quotation_number",
    # Transitions
    "TransitionValidator",
    # Engineering gate
    "AssessmentStatus",
    "AssessmentType",
    "EngineeringStatus",
    "SubmissionBlockReason",
    "SubmissionCheck",
    "can_submit",
    "calculate_engineering_status",
    "determine_required_assessments",
    "calculate_additional_costs",
    "can_waive_engineering",
    # Financials
    "FinancialSnapshot",
    "calculate_quotation_totals",
    "calculate_gross_profit",
    "calculate_profit_margin",
    "calculate_pursuit_cost_per_shipment",
    # Variance
    "BudgetVariance",
    "calculate_budget_variance",
    # Shipment split
    "ShipmentSplitEngine",
    "ShipmentSplitResult",
    "ShipmentAllocation",
    "RevenueLineSlice",
    "CostLineSlice",
    "split_amount",
    # Analytics
    "DEFAULT_OPEN_STATUSES",
    "calculate_win_rate",
    "calculate_pipeline_value",
    # Deadlines
    "days_until_deadline",
    "is_deadline_approaching",
    "is_overdue",
]

logger.debug("engines_package_loaded", extra={
    "modules": [
        "numbering", "transitions", "engineering", "financials",
        "variance", "shipment_split", "analytics", "deadlines",
    ],
})
