"""
quotation_engines.variance -- Budget vs. actual variance.

Responsibility:
    Compare a budgeted (estimated) amount with the actual amount and report
    the variance and variance percentage.  Used when a converted job's
    actual costs are measured against the quotation's estimate.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - ``variance == budget - actual`` (positive = under budget).
    - ``variance_pct == variance / budget * 100`` when ``budget != 0``,
      else exactly 0.  Division-by-zero safe, never raises.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from quotation_engines.tracer import traced_engine
from quotation_kernel.domain.values import HUNDRED, ZERO, money, round_half_up


@dataclass(frozen=True)
class BudgetVariance:
    """
    Result of a budget variance calculation.

    All fields are immutable.  ``variance_pct`` is full precision; use
    ``rounded_pct`` for display.
    """

    budget: Decimal
    actual: Decimal
    variance: Decimal
    variance_pct: Decimal

    @property
    def is_over_budget(self) -> bool:
        return self.variance < ZERO

    @property
    def rounded_pct(self) -> Decimal:
        return round_half_up(self.variance_pct)


@traced_engine("variance", "1.0", fingerprint_fields=("budget", "actual"))
def calculate_budget_variance(
    budget: Decimal | int | str,
    actual: Decimal | int | str,
) -> BudgetVariance:
    """
    Formula: variance = budget - actual; pct = variance / budget * 100.

    A zero budget yields ``variance_pct == 0`` rather than an error.
    """
    budget_d = money(budget)
    actual_d = money(actual)
    variance = budget_d - actual_d
    variance_pct = ZERO if budget_d == ZERO else variance / budget_d * HUNDRED
    return BudgetVariance(
        budget=budget_d,
        actual=actual_d,
        variance=variance,
        variance_pct=variance_pct,
    )
