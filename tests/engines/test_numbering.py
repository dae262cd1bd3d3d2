"""
Tests for the quotation number generator.

Covers:
- Format and zero padding
- Reference date vs. injected clock
- Invalid counts
- Overflow policies
- Parsing
"""

from datetime import UTC, date, datetime

import pytest

from quotation_engines.numbering import (
    QuotationNumber,
    SequenceOverflowPolicy,
    generate_quotation_number,
    parse_quotation_number,
)
from quotation_kernel.domain.clock import DeterministicClock
from quotation_kernel.exceptions import (
    InvalidQuotationNumberError,
    InvalidSequenceError,
    SequenceOverflowError,
)


class TestGenerateQuotationNumber:
    """Format and padding."""

    def test_first_quotation_of_year(self):
        assert generate_quotation_number(0, date(2025, 6, 15)) == "QUO-2025-0001"

    def test_forty_second_quotation(self):
        assert generate_quotation_number(41, date(2025, 6, 15)) == "QUO-2025-0042"

    def test_last_four_digit_sequence(self):
        assert generate_quotation_number(9998, date(2025, 1, 1)) == "QUO-2025-9999"

    def test_year_comes_from_reference_date(self):
        assert generate_quotation_number(0, date(2031, 12, 31)).startswith("QUO-2031-")

    def test_accepts_datetime_reference(self):
        stamp = datetime(2026, 3, 1, 23, 59, tzinfo=UTC)
        assert generate_quotation_number(4, stamp) == "QUO-2026-0005"

    def test_defaults_to_clock_date(self):
        clock = DeterministicClock(datetime(2027, 2, 2, tzinfo=UTC))
        assert generate_quotation_number(9, clock=clock) == "QUO-2027-0010"

    def test_custom_prefix(self):
        assert generate_quotation_number(0, date(2025, 1, 1), prefix="QTN") == "QTN-2025-0001"

    def test_distinct_counts_never_collide(self):
        numbers = {generate_quotation_number(n, date(2025, 5, 5)) for n in range(500)}
        assert len(numbers) == 500

    def test_same_sequence_different_years_differ(self):
        """Callers reset yearly; the year segment disambiguates."""
        assert generate_quotation_number(0, date(2025, 1, 1)) != generate_quotation_number(
            0, date(2026, 1, 1)
        )


class TestInvalidCounts:
    """Negative and non-integer counts are rejected."""

    def test_negative_count(self):
        with pytest.raises(InvalidSequenceError) as exc_info:
            generate_quotation_number(-1, date(2025, 1, 1))
        assert exc_info.value.existing_count == -1
        assert exc_info.value.code == "INVALID_SEQUENCE"

    @pytest.mark.parametrize("count", [1.5, "3", True, None])
    def test_non_integer_count(self, count):
        with pytest.raises(InvalidSequenceError):
            generate_quotation_number(count, date(2025, 1, 1))


class TestOverflow:
    """Sequence numbers that outgrow the padded width."""

    def test_fail_policy_is_default(self):
        with pytest.raises(SequenceOverflowError) as exc_info:
            generate_quotation_number(9999, date(2025, 1, 1))
        assert exc_info.value.sequence == 10000
        assert exc_info.value.width == 4
        assert exc_info.value.year == 2025

    def test_widen_policy(self):
        number = generate_quotation_number(
            9999, date(2025, 1, 1), overflow=SequenceOverflowPolicy.WIDEN
        )
        assert number == "QUO-2025-10000"

    def test_widen_accepts_string_policy(self):
        assert generate_quotation_number(
            12344, date(2025, 1, 1), overflow="widen"
        ) == "QUO-2025-12345"

    def test_widen_logs_warning(self, captured_logs):
        generate_quotation_number(9999, date(2025, 1, 1), overflow=SequenceOverflowPolicy.WIDEN)
        logs = captured_logs()
        widened = [r for r in logs if r["message"] == "quotation_number_widened"]
        assert widened and widened[0]["sequence"] == 10000

    def test_wider_configured_width(self):
        assert generate_quotation_number(9999, date(2025, 1, 1), width=5) == "QUO-2025-10000"


class TestParseQuotationNumber:
    """Parsing the formatted number back."""

    def test_round_trip(self):
        parsed = parse_quotation_number("QUO-2025-0042")
        assert parsed == QuotationNumber(prefix="QUO", year=2025, sequence=42)
        assert parsed.format() == "QUO-2025-0042"

    def test_parses_widened_number(self):
        assert parse_quotation_number("QUO-2025-10000").sequence == 10000

    @pytest.mark.parametrize(
        "text",
        ["", "QUO-25-0001", "quo-2025-0001", "QUO-2025-", "QUO-2025-0000", "QUO_2025_0001"],
    )
    def test_rejects_malformed(self, text):
        with pytest.raises(InvalidQuotationNumberError):
            parse_quotation_number(text)


class TestNumberingTrace:
    """Engine invocations emit a trace record."""

    def test_trace_emitted(self, captured_logs):
        generate_quotation_number(0, date(2025, 6, 15))
        traces = [r for r in captured_logs() if r["message"] == "QUOTATION_ENGINE_TRACE"]
        assert traces
        assert traces[0]["engine_name"] == "numbering"
        assert len(traces[0]["input_fingerprint"]) == 16
