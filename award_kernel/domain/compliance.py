"""
Compliance domain types (``award_kernel.domain.compliance``).

Responsibility
--------------
Jurisdiction rule configuration (hour limits, overtime thresholds, break
rules, penalty rates) and the outputs of a compliance validation run: severity-tagged
flags and the overall verdict.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* ``ComplianceValidation.is_compliant`` holds iff no flag in ``flags`` has
  ``Severity.CRITICAL``; ``blocking_issues`` lists exactly the critical
  flag descriptions.
* Flags with ``auto_resolved=True`` live only in ``resolved_flags`` and
  never influence the verdict.
* ``JurisdictionRules`` rejects non-positive thresholds at construction.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from decimal import Decimal
from enum import Enum

from award_kernel.domain.penalties import PenaltyRates


class Severity(str, Enum):
    """Compliance flag severity."""
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class FlagType(str, Enum):
    """Closed set of compliance checks."""
    MISSING_CLOCK_OUT = "missing_clock_out"
    EARLY_CLOCK_IN = "early_clock_in"
    LATE_CLOCK_OUT = "late_clock_out"
    MISSED_BREAK = "missed_break"
    EXCEEDED_BREAK = "exceeded_break"
    IRREGULAR_PUNCH = "irregular_punch"
    INVALID_PUNCH_ORDER = "invalid_punch_order"
    MAX_DAILY_HOURS = "max_daily_hours"
    MAX_WEEKLY_HOURS = "max_weekly_hours"
    OVERTIME_THRESHOLD = "overtime_threshold"
    PATTERN_DRIFT = "pattern_drift"


@dataclass(frozen=True)
class ComplianceFlag:
    """A single finding from a validation run."""

    flag_id: str
    flag_type: FlagType
    severity: Severity
    title: str
    description: str
    entry_date: date | None = None
    auto_resolved: bool = False


@dataclass(frozen=True)
class BreakRule:
    """Break entitlement triggered once a shift reaches ``min_work_hours``."""

    rule_id: str
    name: str
    min_work_hours: Decimal
    break_minutes: int
    paid: bool = False
    mandatory: bool = True

    def __post_init__(self):
        if self.min_work_hours < 0:
            raise ValueError("min_work_hours must not be negative")
        if self.break_minutes <= 0:
            raise ValueError("break_minutes must be positive")


@dataclass(frozen=True)
class JurisdictionRules:
    """Hour limits and break rules for one award or jurisdiction.

    ``double_time_threshold`` defaults to ``max_daily_hours`` when unset.
    ``max_break_minutes`` defaults to 1.5x the required break when unset.
    The ``earliest_unscheduled_start`` / ``latest_unscheduled_end`` bounds
    apply only to entries without a scheduled shift.
    ``penalty_rates`` price ordinary hours by day type;
    ``casual_loading_percent`` is added to the base rate of casual employees.
    """

    code: str
    name: str
    max_daily_hours: Decimal
    max_weekly_hours: Decimal
    overtime_threshold_daily: Decimal
    overtime_threshold_weekly: Decimal
    double_time_threshold: Decimal | None = None
    overtime_multiplier: Decimal = Decimal("1.5")
    double_time_multiplier: Decimal = Decimal("2")
    break_rules: tuple[BreakRule, ...] = ()
    max_break_minutes: int | None = None
    schedule_tolerance_minutes: int = 15
    earliest_unscheduled_start: time = time(5, 0)
    latest_unscheduled_end: time = time(22, 0)
    pattern_drift_minutes: int = 60
    penalty_rates: PenaltyRates = PenaltyRates()
    casual_loading_percent: Decimal = Decimal("25")

    def __post_init__(self):
        for name in (
            "max_daily_hours",
            "max_weekly_hours",
            "overtime_threshold_daily",
            "overtime_threshold_weekly",
            "overtime_multiplier",
            "double_time_multiplier",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        if self.double_time_threshold is not None and self.double_time_threshold <= 0:
            raise ValueError("double_time_threshold must be positive")
        if self.schedule_tolerance_minutes < 0:
            raise ValueError("schedule_tolerance_minutes must not be negative")
        if self.casual_loading_percent < 0:
            raise ValueError("casual_loading_percent must not be negative")

    @property
    def effective_double_time_threshold(self) -> Decimal:
        if self.double_time_threshold is not None:
            return self.double_time_threshold
        return self.max_daily_hours


@dataclass(frozen=True)
class ComplianceValidation:
    """Result of one validation run.  Recomputed from scratch on every call."""

    is_compliant: bool
    flags: tuple[ComplianceFlag, ...] = ()
    blocking_issues: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    resolved_flags: tuple[ComplianceFlag, ...] = ()

    @property
    def can_submit(self) -> bool:
        return self.is_compliant

    @property
    def critical_flags(self) -> tuple[ComplianceFlag, ...]:
        return tuple(f for f in self.flags if f.severity == Severity.CRITICAL)

    @property
    def warning_flags(self) -> tuple[ComplianceFlag, ...]:
        return tuple(f for f in self.flags if f.severity == Severity.WARNING)

    def has_flag_type(self, *flag_types: FlagType) -> bool:
        return any(f.flag_type in flag_types for f in self.flags)
