"""
Overtime domain types (``award_kernel.domain.overtime``).

Thresholds that drive hour classification, and the classified result.

Invariants enforced
-------------------
* ``regular_hours + daily_overtime_hours + weekly_overtime_hours +
  double_time_hours == total_hours`` exactly.
* ``total_pay == regular_pay + penalty_pay + overtime_pay + double_time_pay``
  exactly.  ``penalty_pay`` is the loading above base rate on ordinary hours
  worked on penalty days.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from award_kernel.domain.compliance import JurisdictionRules
from award_kernel.domain.penalties import DayType, PenaltyRates

ZERO = Decimal("0")


@dataclass(frozen=True)
class OvertimeThresholds:
    """Hour thresholds and pay multipliers for one classification run."""

    max_daily_hours: Decimal
    overtime_threshold_daily: Decimal
    max_weekly_hours: Decimal
    overtime_threshold_weekly: Decimal
    double_time_threshold: Decimal | None = None
    overtime_multiplier: Decimal = Decimal("1.5")
    double_time_multiplier: Decimal = Decimal("2")
    penalty_rates: PenaltyRates = PenaltyRates()

    def __post_init__(self):
        if self.overtime_threshold_daily <= 0:
            raise ValueError("overtime_threshold_daily must be positive")
        if self.overtime_threshold_weekly <= 0:
            raise ValueError("overtime_threshold_weekly must be positive")
        if self.max_daily_hours <= 0:
            raise ValueError("max_daily_hours must be positive")

    @property
    def double_time_ceiling(self) -> Decimal:
        if self.double_time_threshold is not None:
            return self.double_time_threshold
        return self.max_daily_hours

    @classmethod
    def from_jurisdiction(cls, rules: JurisdictionRules) -> OvertimeThresholds:
        return cls(
            max_daily_hours=rules.max_daily_hours,
            overtime_threshold_daily=rules.overtime_threshold_daily,
            max_weekly_hours=rules.max_weekly_hours,
            overtime_threshold_weekly=rules.overtime_threshold_weekly,
            double_time_threshold=rules.double_time_threshold,
            overtime_multiplier=rules.overtime_multiplier,
            double_time_multiplier=rules.double_time_multiplier,
            penalty_rates=rules.penalty_rates,
        )


@dataclass(frozen=True)
class DayClassification:
    """Hour buckets for a single calendar day."""

    work_date: date
    regular_hours: Decimal
    daily_overtime_hours: Decimal
    weekly_overtime_hours: Decimal
    double_time_hours: Decimal
    day_type: DayType = DayType.WEEKDAY

    @property
    def total_hours(self) -> Decimal:
        return (
            self.regular_hours
            + self.daily_overtime_hours
            + self.weekly_overtime_hours
            + self.double_time_hours
        )


@dataclass(frozen=True)
class OvertimeCalculation:
    """Classified hours and pay for one week."""

    total_hours: Decimal = ZERO
    regular_hours: Decimal = ZERO
    daily_overtime_hours: Decimal = ZERO
    weekly_overtime_hours: Decimal = ZERO
    double_time_hours: Decimal = ZERO
    regular_pay: Decimal = ZERO
    penalty_pay: Decimal = ZERO
    overtime_pay: Decimal = ZERO
    double_time_pay: Decimal = ZERO
    total_pay: Decimal = ZERO
    days: tuple[DayClassification, ...] = ()
    effective_hourly_rate: Decimal | None = None

    @property
    def overtime_hours(self) -> Decimal:
        """Daily plus weekly overtime (time-and-a-half hours)."""
        return self.daily_overtime_hours + self.weekly_overtime_hours
