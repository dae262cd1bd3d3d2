"""
Configuration Loader (``quotation_config.loader``).

Responsibility
--------------
Loads a YAML configuration set and parses it into the frozen
``quotation_config.schema`` dataclasses, collecting every validation
problem before failing.  Runtime callers go through
``quotation_config.get_active_config()`` instead of calling this directly.

Architecture position
---------------------
**Config layer** -- infrastructure tooling.  Depends only on the kernel
(for ``ConfigurationError``).

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass from ``schema.py``.
* Validation errors are reported together, not one at a time.
* ``compute_checksum`` is a deterministic SHA-256 over canonical JSON.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Invalid values  -> ``ConfigurationError`` listing every problem.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from quotation_config.schema import (
    OVERFLOW_POLICIES,
    QUOTATION_STATUSES,
    DeadlineConfig,
    FinancialConfig,
    NumberingConfig,
    PipelineConfig,
    QuotationConfig,
)
from quotation_kernel.exceptions import ConfigurationError


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _positive_int(value: Any, name: str, errors: list[str]) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        errors.append(f"{name} must be a positive integer, got {value!r}")
        return 1
    return value


def _non_negative_int(value: Any, name: str, errors: list[str]) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        errors.append(f"{name} must be a non-negative integer, got {value!r}")
        return 0
    return value


def parse_numbering(data: dict[str, Any], errors: list[str]) -> NumberingConfig:
    defaults = NumberingConfig()
    prefix = data.get("prefix", defaults.prefix)
    if not isinstance(prefix, str) or not prefix.isalpha() or not prefix.isupper():
        errors.append(f"numbering.prefix must be upper-case letters, got {prefix!r}")
        prefix = defaults.prefix
    overflow = str(data.get("overflow", defaults.overflow))
    if overflow not in OVERFLOW_POLICIES:
        errors.append(
            f"numbering.overflow must be one of {', '.join(OVERFLOW_POLICIES)}, got {overflow!r}"
        )
        overflow = defaults.overflow
    return NumberingConfig(
        prefix=prefix,
        width=_positive_int(data.get("width", defaults.width), "numbering.width", errors),
        overflow=overflow,
    )


def parse_financial(data: dict[str, Any], errors: list[str]) -> FinancialConfig:
    defaults = FinancialConfig()
    return FinancialConfig(
        default_estimated_shipments=_positive_int(
            data.get("default_estimated_shipments", defaults.default_estimated_shipments),
            "financial.default_estimated_shipments",
            errors,
        ),
    )


def parse_pipeline(data: dict[str, Any], errors: list[str]) -> PipelineConfig:
    raw = data.get("open_statuses", list(PipelineConfig().open_statuses))
    if not isinstance(raw, list):
        errors.append(f"pipeline.open_statuses must be a list, got {raw!r}")
        return PipelineConfig()
    unknown = [s for s in raw if s not in QUOTATION_STATUSES]
    if unknown:
        errors.append(f"pipeline.open_statuses has unknown statuses: {unknown}")
    return PipelineConfig(
        open_statuses=tuple(s for s in raw if s in QUOTATION_STATUSES),
    )


def parse_deadlines(data: dict[str, Any], errors: list[str]) -> DeadlineConfig:
    defaults = DeadlineConfig()
    return DeadlineConfig(
        approaching_threshold_days=_non_negative_int(
            data.get("approaching_threshold_days", defaults.approaching_threshold_days),
            "deadlines.approaching_threshold_days",
            errors,
        ),
    )


def parse_config(data: dict[str, Any], source: str = "<memory>") -> QuotationConfig:
    """
    Parse a configuration dict into a ``QuotationConfig``.

    Missing sections take their defaults.  The checksum is computed over
    the raw dict.

    Raises:
        ConfigurationError: with every problem found.
    """
    errors: list[str] = []
    defaults = QuotationConfig()
    config = QuotationConfig(
        config_id=str(data.get("config_id", defaults.config_id)),
        version=_positive_int(data.get("version", defaults.version), "version", errors),
        numbering=parse_numbering(data.get("numbering") or {}, errors),
        financial=parse_financial(data.get("financial") or {}, errors),
        pipeline=parse_pipeline(data.get("pipeline") or {}, errors),
        deadlines=parse_deadlines(data.get("deadlines") or {}, errors),
        checksum=compute_checksum(data),
    )
    if errors:
        raise ConfigurationError(source, errors)
    return config


def load_config(path: Path) -> QuotationConfig:
    """Load and parse a YAML configuration set."""
    return parse_config(load_yaml_file(path), source=str(path))


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
