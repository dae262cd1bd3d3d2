"""
quotation_engines.numbering -- Deterministic quotation numbering.

Responsibility:
    Format and parse quotation numbers of the form ``QUO-<year>-<sequence>``,
    where ``<sequence>`` is the caller's existing-count plus one, zero-padded
    to a fixed width.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import quotation_kernel.

Invariants enforced:
    - Distinct counts within the same year never collide.
    - Uniqueness across years is NOT enforced: callers reset the counter
      yearly and the year segment disambiguates.
    - Purity: "now" comes from an injected Clock, never the wall clock inline.

Failure modes:
    - InvalidSequenceError for negative or non-integer counts.
    - SequenceOverflowError when count + 1 needs more digits than ``width``
      and the overflow policy is FAIL.  Nothing is wrapped or truncated.
    - InvalidQuotationNumberError when parsing malformed text.

Usage:
    from datetime import date
    from quotation_engines.numbering import generate_quotation_number

    generate_quotation_number(41, date(2025, 6, 15))  # "QUO-2025-0042"
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from enum import Enum

from quotation_engines.tracer import traced_engine
from quotation_kernel.domain.clock import Clock, SystemClock
from quotation_kernel.exceptions import (
    InvalidQuotationNumberError,
    InvalidSequenceError,
    SequenceOverflowError,
)
from quotation_kernel.logging_config import get_logger

logger = get_logger("engines.numbering")

DEFAULT_PREFIX = "QUO"
DEFAULT_WIDTH = 4

_NUMBER_PATTERN = re.compile(r"^(?P<prefix>[A-Z]+)-(?P<year>\d{4})-(?P<sequence>\d+)$")


class SequenceOverflowPolicy(str, Enum):
    """What to do when the next sequence no longer fits the padded width."""

    FAIL = "fail"  # Raise SequenceOverflowError
    WIDEN = "widen"  # Emit the natural, wider sequence (QUO-2025-10000)


@dataclass(frozen=True)
class QuotationNumber:
    """A parsed quotation number."""

    prefix: str
    year: int
    sequence: int

    def format(self, width: int = DEFAULT_WIDTH) -> str:
        return f"{self.prefix}-{self.year:04d}-{self.sequence:0{width}d}"


def _reference_year(reference_date: date | None, clock: Clock | None) -> int:
    # datetime is a date subclass; both expose .year
    if reference_date is None:
        return (clock or SystemClock()).today().year
    return reference_date.year


@traced_engine(
    "numbering", "1.0", fingerprint_fields=("existing_count", "reference_date", "prefix")
)
def generate_quotation_number(
    existing_count: int,
    reference_date: date | None = None,
    *,
    clock: Clock | None = None,
    prefix: str = DEFAULT_PREFIX,
    width: int = DEFAULT_WIDTH,
    overflow: SequenceOverflowPolicy = SequenceOverflowPolicy.FAIL,
) -> str:
    """
    Generate the next quotation number for a year.

    Preconditions:
        existing_count is a non-negative int (quotations already numbered
        this year).

    Postconditions:
        Returns ``<prefix>-<YYYY>-<existing_count + 1 padded to width>``.

    Raises:
        InvalidSequenceError: existing_count is negative or not an int.
        SequenceOverflowError: the sequence exceeds ``width`` digits under
            the FAIL policy.
    """
    if isinstance(existing_count, bool) or not isinstance(existing_count, int):
        raise InvalidSequenceError(existing_count)
    if existing_count < 0:
        raise InvalidSequenceError(existing_count)

    year = _reference_year(reference_date, clock)
    sequence = existing_count + 1

    if len(str(sequence)) > width:
        if SequenceOverflowPolicy(overflow) is SequenceOverflowPolicy.FAIL:
            logger.error("quotation_number_overflow", extra={
                "year": year,
                "sequence": sequence,
                "width": width,
            })
            raise SequenceOverflowError(year, sequence, width)
        logger.warning("quotation_number_widened", extra={
            "year": year,
            "sequence": sequence,
            "width": width,
        })

    return QuotationNumber(prefix=prefix, year=year, sequence=sequence).format(width)


def parse_quotation_number(text: str) -> QuotationNumber:
    """
    Parse ``PREFIX-YYYY-NNNN`` back into its parts.

    Raises:
        InvalidQuotationNumberError: text does not match the format or the
            sequence is zero.
    """
    match = _NUMBER_PATTERN.match(text.strip()) if isinstance(text, str) else None
    if match is None:
        raise InvalidQuotationNumberError(str(text))
    sequence = int(match.group("sequence"))
    if sequence < 1:
        raise InvalidQuotationNumberError(text)
    return QuotationNumber(
        prefix=match.group("prefix"),
        year=int(match.group("year")),
        sequence=sequence,
    )
