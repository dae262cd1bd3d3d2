"""
Quotation configuration schema.

Frozen dataclasses the loader parses YAML into.  Defaults equal the
packaged ``sets/default.yaml``, so ``QuotationConfig()`` is usable in tests
without touching the filesystem.

Statuses and policies are kept as plain strings here; the quotation module
parses them into its enumerations.
"""

from __future__ import annotations

from dataclasses import dataclass, field

QUOTATION_STATUSES: tuple[str, ...] = (
    "draft",
    "engineering_review",
    "ready",
    "submitted",
    "won",
    "lost",
    "cancelled",
)

OVERFLOW_POLICIES: tuple[str, ...] = ("fail", "widen")


@dataclass(frozen=True)
class NumberingConfig:
    """Quotation number format."""

    prefix: str = "QUO"
    width: int = 4
    overflow: str = "fail"


@dataclass(frozen=True)
class FinancialConfig:
    default_estimated_shipments: int = 1


@dataclass(frozen=True)
class PipelineConfig:
    """Statuses counted as open pipeline."""

    open_statuses: tuple[str, ...] = ("draft", "engineering_review", "ready", "submitted")


@dataclass(frozen=True)
class DeadlineConfig:
    approaching_threshold_days: int = 3


@dataclass(frozen=True)
class QuotationConfig:
    """Complete configuration for the quotation module."""

    config_id: str = "default"
    version: int = 1
    numbering: NumberingConfig = field(default_factory=NumberingConfig)
    financial: FinancialConfig = field(default_factory=FinancialConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    deadlines: DeadlineConfig = field(default_factory=DeadlineConfig)
    checksum: str = ""
