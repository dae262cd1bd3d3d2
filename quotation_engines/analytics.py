"""
quotation_engines.analytics -- Pipeline and win-rate figures.

Responsibility:
    Summary metrics over sets of quotations: win rate of decided quotations
    and the revenue value of the open pipeline.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Win rate is 0 when nothing has been decided, otherwise
      ``round2(won / (won + lost) * 100)``.
    - Pipeline value counts only quotations whose status is in the open set;
      a missing revenue figure counts as 0.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal
from enum import Enum
from typing import Any

from quotation_engines.tracer import traced_engine
from quotation_kernel.domain.values import HUNDRED, ZERO, money, round_half_up

DEFAULT_OPEN_STATUSES: frozenset[str] = frozenset(
    {"draft", "engineering_review", "ready", "submitted"}
)


def _status_value(status: Enum | str | None) -> str | None:
    return status.value if isinstance(status, Enum) else status


@traced_engine("win_rate", "1.0", fingerprint_fields=("won_count", "lost_count"))
def calculate_win_rate(won_count: int, lost_count: int) -> Decimal:
    """Percentage of decided quotations that were won."""
    if won_count < 0 or lost_count < 0:
        raise ValueError(
            f"Counts must be non-negative, got won={won_count}, lost={lost_count}"
        )
    decided = won_count + lost_count
    if decided == 0:
        return ZERO
    return round_half_up(Decimal(won_count) / Decimal(decided) * HUNDRED)


def _revenue_of(quotation: Any) -> Decimal | int | str | None:
    if isinstance(quotation, dict):
        return quotation.get("total_revenue")
    revenue = getattr(quotation, "total_revenue", None)
    if revenue is None and hasattr(quotation, "financials"):
        revenue = quotation.financials.total_revenue
    return revenue


def _status_of(quotation: Any) -> str | None:
    if isinstance(quotation, dict):
        return _status_value(quotation.get("status"))
    return _status_value(getattr(quotation, "status", None))


def calculate_pipeline_value(
    quotations: Iterable[Any],
    open_statuses: Iterable[Enum | str] = DEFAULT_OPEN_STATUSES,
) -> Decimal:
    """
    Sum total revenue across quotations in the open statuses.

    Accepts mappings with ``status`` / ``total_revenue`` keys or objects
    exposing ``status`` and either ``total_revenue`` or ``financials``.
    """
    wanted = {_status_value(s) for s in open_statuses}
    return sum(
        (money(_revenue_of(q)) for q in quotations if _status_of(q) in wanted),
        ZERO,
    )
