"""
quotation_config -- single public entrypoint for quotation configuration.

Responsibility:
    Provides the one way to obtain configuration at runtime through
    ``get_active_config()``.  Services receive the returned
    ``QuotationConfig``; nothing else reads configuration files.

Architecture position:
    Configuration -- YAML-driven, validated at load time.
    Sits above ``quotation_kernel`` and below ``quotation_modules``.  The
    kernel and engines never import from ``quotation_config``.

Invariants enforced:
    - Validation: a set with any invalid value is rejected as a whole.
    - Deterministic checksum: the same YAML always yields the same checksum.

Failure modes:
    - ``FileNotFoundError`` -- the named configuration file does not exist.
    - ``ConfigurationError`` -- validation failures, all listed.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``QUOTATION_CONFIG_TRACE`` log entry with the config_id, version,
    source path and checksum.
"""

from __future__ import annotations

import logging
from pathlib import Path

from quotation_config.loader import compute_checksum, load_config, parse_config
from quotation_config.schema import (
    DeadlineConfig,
    FinancialConfig,
    NumberingConfig,
    PipelineConfig,
    QuotationConfig,
)

_logger = logging.getLogger("quotation_kernel.config")

# Default configuration sets directory
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"
DEFAULT_CONFIG_PATH = _DEFAULT_CONFIG_DIR / "default.yaml"


def get_active_config(path: Path | None = None) -> QuotationConfig:
    """Load, validate and trace the active configuration set.

    Args:
        path: YAML file to load.  Defaults to the packaged
            ``quotation_config/sets/default.yaml``.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigurationError: If validation fails.
    """
    source = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    config = load_config(source)

    _logger.info(
        "QUOTATION_CONFIG_TRACE",
        extra={
            "trace_type": "QUOTATION_CONFIG_TRACE",
            "config_id": config.config_id,
            "config_version": config.version,
            "source": str(source),
            "checksum": config.checksum,
        },
    )
    return config


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "DeadlineConfig",
    "FinancialConfig",
    "NumberingConfig",
    "PipelineConfig",
    "QuotationConfig",
    "compute_checksum",
    "get_active_config",
    "load_config",
    "parse_config",
]
