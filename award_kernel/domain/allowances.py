"""
On-call allowance domain types (``award_kernel.domain.allowances``).

Responsibility
--------------
Configured allowance rules (standby, callback, recall, emergency), the
shift context they are evaluated against, and the resolved outcome.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* ``AllowanceResolution.pay_without_exclusions >= total_pay``.
* Monetary fields are ``Decimal`` rounded to cents.
* ``excludes_with`` is a frozenset; incoming iterables are normalised.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

ZERO = Decimal("0")
DEFAULT_CALLBACK_MINIMUM_HOURS = Decimal("2")


class TriggerType(str, Enum):
    """What causes an allowance to become payable."""
    STANDBY = "standby"
    CALLBACK = "callback"
    RECALL = "recall"
    EMERGENCY = "emergency"

    @property
    def requires_callback(self) -> bool:
        return self is not TriggerType.STANDBY


class RateType(str, Enum):
    """How the configured rate is expressed (display only)."""
    PER_PERIOD = "per_period"
    PER_HOUR = "per_hour"
    DAILY = "daily"


@dataclass(frozen=True)
class AllowanceRule:
    """A configured on-call allowance.

    ``excludes_with`` declares mutual exclusion intent; it is resolved by
    priority (a rule can only exclude strictly lower-priority rules).
    ``callback_rate_multiplier`` is carried for display and does not
    change the resolved amount.
    """

    allowance_id: str
    name: str
    trigger_type: TriggerType
    rate: Decimal
    priority: int = 0
    stackable: bool = True
    excludes_with: frozenset[str] = frozenset()
    weekend_rate: Decimal | None = None
    public_holiday_multiplier: Decimal | None = None
    callback_minimum_hours: Decimal | None = None
    callback_rate_multiplier: Decimal | None = None
    is_active: bool = True
    code: str = ""
    rate_type: RateType = RateType.PER_PERIOD
    applicable_awards: frozenset[str] = frozenset()

    def __post_init__(self):
        if not isinstance(self.excludes_with, frozenset):
            object.__setattr__(self, "excludes_with", frozenset(self.excludes_with))
        if not isinstance(self.applicable_awards, frozenset):
            object.__setattr__(self, "applicable_awards", frozenset(self.applicable_awards))

    @property
    def minimum_callback_hours(self) -> Decimal:
        if self.callback_minimum_hours is not None:
            return self.callback_minimum_hours
        return DEFAULT_CALLBACK_MINIMUM_HOURS


@dataclass(frozen=True)
class ShiftContext:
    """Shift facts an allowance resolution is evaluated against."""

    is_weekend: bool = False
    is_public_holiday: bool = False
    was_called_back: bool = False
    callback_hours: Decimal = ZERO


@dataclass(frozen=True)
class AppliedAllowance:
    """Resolved outcome for one rule.  Excluded rules are still reported."""

    allowance_id: str
    name: str
    priority: int
    amount: Decimal
    applied: bool
    reason: str
    is_excluded: bool = False
    excluded_by: str | None = None
    triggered: bool = False


@dataclass(frozen=True)
class AllowanceResolution:
    """All resolution steps plus totals for one shift."""

    steps: tuple[AppliedAllowance, ...] = ()
    total_pay: Decimal = ZERO
    pay_without_exclusions: Decimal = ZERO
    issues: tuple[str, ...] = ()

    @property
    def exclusion_savings(self) -> Decimal:
        return self.pay_without_exclusions - self.total_pay

    @property
    def applied_steps(self) -> tuple[AppliedAllowance, ...]:
        return tuple(s for s in self.steps if s.applied)

    @property
    def excluded_steps(self) -> tuple[AppliedAllowance, ...]:
        return tuple(s for s in self.steps if s.is_excluded)
