"""
Pytest fixtures for the quotation engine test suite.

Provides:
- Structured logging configured once per session, LogContext cleared per test
- ``captured_logs`` for asserting on emitted JSON log records
- A deterministic clock
- ``quotation_factory`` for building quotations with items and state
"""

import json
import logging
from datetime import UTC, datetime
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from quotation_kernel.domain.clock import DeterministicClock
from quotation_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from quotation_modules.quotation.models import (
    CostCategory,
    CostItem,
    Draft,
    PursuitCostCategory,
    PursuitCostItem,
    Quotation,
    RevenueCategory,
    RevenueItem,
)

# ---------------------------------------------------------------------------
# Logging fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture quotation_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            service.submit(quotation)
            logs = captured_logs()
            assert any(r["message"] == "quotation_status_changed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("quotation_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# ---------------------------------------------------------------------------
# Domain fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def deterministic_clock():
    """Clock fixed at 2025-06-15 09:00 UTC."""
    return DeterministicClock(datetime(2025, 6, 15, 9, 0, 0, tzinfo=UTC))


@pytest.fixture
def quotation_factory():
    """
    Build a quotation with sensible route and item defaults.

    Any ``Quotation`` field can be overridden by keyword.
    """

    def _make(**overrides) -> Quotation:
        fields = {
            "id": uuid4(),
            "quotation_number": "QUO-2025-0001",
            "customer_id": uuid4(),
            "title": "Transformer haul Cilegon to Morowali",
            "origin": "Cilegon",
            "destination": "Morowali",
            "estimated_shipments": 1,
            "state": Draft(),
        }
        fields.update(overrides)
        return Quotation(**fields)

    return _make


@pytest.fixture
def sample_items():
    """One line of each kind: 9000 revenue, 6000 cost, 300 pursuit cost."""
    return {
        "revenue_items": (
            RevenueItem(
                category=RevenueCategory.TRANSPORTATION,
                description="Heavy haul trailer",
                quantity=Decimal("3"),
                unit_price=Decimal("3000"),
                unit="trip",
            ),
        ),
        "cost_items": (
            CostItem(
                category=CostCategory.TRUCKING,
                description="Prime mover rental",
                estimated_amount=Decimal("6000"),
                vendor_name="PT Angkut Berat",
            ),
        ),
        "pursuit_costs": (
            PursuitCostItem(
                category=PursuitCostCategory.SURVEY,
                description="Route survey",
                amount=Decimal("300"),
            ),
        ),
    }
