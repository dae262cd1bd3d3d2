"""
Initial workflow state from market classification.

The classifier's ``requires_engineering`` flag is trusted verbatim; the
complexity score is not re-checked here.
"""

from __future__ import annotations

from quotation_kernel.logging_config import get_logger
from quotation_modules.quotation.models import (
    Draft,
    EngineeringReview,
    EngineeringTrack,
    MarketClassification,
    QuotationState,
    QuotationStatus,
)

logger = get_logger("modules.quotation.classification")


def determine_initial_status(classification: MarketClassification) -> QuotationStatus:
    if classification.requires_engineering:
        return QuotationStatus.ENGINEERING_REVIEW
    return QuotationStatus.DRAFT


def initial_state_for(classification: MarketClassification) -> QuotationState:
    """Entry state variant: a pending review, or a draft needing no engineering."""
    status = determine_initial_status(classification)
    logger.debug("initial_state_resolved", extra={
        "market_type": classification.market_type.value,
        "complexity_score": classification.complexity_score,
        "requires_engineering": classification.requires_engineering,
        "status": status.value,
    })
    if status is QuotationStatus.ENGINEERING_REVIEW:
        return EngineeringReview(engineering=EngineeringTrack.required())
    return Draft()
