"""
Pure domain layer.

This module contains pure value objects and helpers with NO dependencies on:
- Database
- Wall-clock time (except ``SystemClock``)
- I/O

All domain objects are immutable and deterministic.
"""

from quotation_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from quotation_kernel.domain.values import (
    HUNDRED,
    MONEY_PLACES,
    ZERO,
    money,
    round_half_up,
    sum_money,
)
from quotation_kernel.domain.workflow import Guard, Transition, Workflow

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "HUNDRED",
    "MONEY_PLACES",
    "ZERO",
    "money",
    "round_half_up",
    "sum_money",
    "Guard",
    "Transition",
    "Workflow",
]
