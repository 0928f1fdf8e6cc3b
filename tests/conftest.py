"""
Pytest fixtures for the award engine test suite.

Provides:
- Structured logging configured for every test session
- Log capture as parsed JSON dicts
- A deterministic clock and a baseline jurisdiction
"""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO

import pytest

from award_kernel.domain.clock import DeterministicClock
from award_kernel.domain.compliance import BreakRule, JurisdictionRules
from award_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)

# Monday of the week used throughout the suite.
WEEK_START = date(2024, 3, 4)


# =============================================================================
# Logging fixtures
# =============================================================================


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
    Capture award_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            resolve_allowances(rules, context)
            logs = captured_logs()
            assert any(r["message"] == "allowances_resolved" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("award_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Domain fixtures
# =============================================================================


@pytest.fixture
def deterministic_clock():
    """Provide a deterministic clock for testing."""
    return DeterministicClock()


@pytest.fixture
def au_rules() -> JurisdictionRules:
    """Australian NES baseline: 10h daily cap, 38h week, DT after 10h."""
    return JurisdictionRules(
        code="AU-NES",
        name="Australia Federal (Modern Awards)",
        max_daily_hours=Decimal("10"),
        max_weekly_hours=Decimal("38"),
        overtime_threshold_daily=Decimal("8"),
        overtime_threshold_weekly=Decimal("38"),
        double_time_threshold=Decimal("10"),
        break_rules=(
            BreakRule("au-meal-break", "Meal Break", Decimal("5"), 30),
            BreakRule("au-rest-break-1", "Rest Break", Decimal("4"), 10, paid=True),
        ),
    )
