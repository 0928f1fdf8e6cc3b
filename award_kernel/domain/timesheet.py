"""
Timesheet domain types (``award_kernel.domain.timesheet``).

Responsibility
--------------
Frozen value objects for one employee-week of clocked work: breaks, daily
time entries and the timesheet aggregate.  Derived minute/hour figures are
computed properties so that every engine reads the same numbers.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  Consumed by
the hours classifier and the compliance validator.

Invariants enforced
-------------------
* All models are ``frozen=True`` (immutable after construction).
* Hour figures are ``Decimal`` -- NEVER ``float``.
* Malformed punches (clock-out before clock-in) are representable; they
  are reported by the compliance validator rather than rejected here.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, time
from decimal import Decimal
from enum import Enum
from uuid import UUID, uuid4

MINUTES_PER_DAY = 24 * 60


def minutes_of_day(value: time) -> int:
    """Minutes elapsed since midnight for a wall-clock time."""
    return value.hour * 60 + value.minute


def minutes_to_hours(minutes: int) -> Decimal:
    """Convert whole minutes to hours, quantized to 4 decimal places."""
    return (Decimal(minutes) / Decimal(60)).quantize(Decimal("0.0001"))


class BreakType(str, Enum):
    """Kind of break recorded against a time entry."""
    MEAL = "meal"
    SHORT = "short"
    OTHER = "other"


class TimesheetStatus(str, Enum):
    """Timesheet lifecycle states."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass(frozen=True)
class Break:
    """A single break taken during a shift."""

    start: time
    end: time
    break_type: BreakType = BreakType.MEAL

    @property
    def duration_minutes(self) -> int:
        """Length of the break; a break ending before it starts counts as 0."""
        return self.span_minutes()

    def span_minutes(self, overnight: bool = False) -> int:
        """Length of the break within a shift.

        On an overnight shift a break whose end is earlier than its start
        runs past midnight.
        """
        span = minutes_of_day(self.end) - minutes_of_day(self.start)
        if span < 0 and overnight:
            span += MINUTES_PER_DAY
        return max(0, span)


@dataclass(frozen=True)
class TimeEntry:
    """One calendar day of work.

    ``ends_next_day`` marks an overnight shift whose clock-out falls on the
    following calendar day.  Without it, a clock-out earlier than the
    clock-in is a punch-order error.
    """

    work_date: date
    clock_in: time | None = None
    clock_out: time | None = None
    breaks: tuple[Break, ...] = ()
    notes: str = ""
    scheduled_start: time | None = None
    scheduled_end: time | None = None
    ends_next_day: bool = False
    entry_id: UUID = field(default_factory=uuid4)

    @property
    def has_punch_order_error(self) -> bool:
        if self.clock_in is None or self.clock_out is None or self.ends_next_day:
            return False
        return minutes_of_day(self.clock_out) < minutes_of_day(self.clock_in)

    @property
    def gross_minutes(self) -> int:
        if self.clock_in is None or self.clock_out is None:
            return 0
        span = minutes_of_day(self.clock_out) - minutes_of_day(self.clock_in)
        if self.ends_next_day:
            span += MINUTES_PER_DAY
        return max(0, span)

    @property
    def break_minutes(self) -> int:
        return sum(b.span_minutes(self.ends_next_day) for b in self.breaks)

    @property
    def net_minutes(self) -> int:
        return max(0, self.gross_minutes - self.break_minutes)

    @property
    def gross_hours(self) -> Decimal:
        return minutes_to_hours(self.gross_minutes)

    @property
    def net_hours(self) -> Decimal:
        return minutes_to_hours(self.net_minutes)


@dataclass(frozen=True)
class Timesheet:
    """Aggregate of time entries for one employee and week."""

    employee_id: UUID
    week_start: date
    entries: tuple[TimeEntry, ...] = ()
    status: TimesheetStatus = TimesheetStatus.PENDING
    award_classification: str | None = None
    is_casual: bool = False
    applied_allowances: tuple[str, ...] = ()
    timesheet_id: UUID = field(default_factory=uuid4)

    @property
    def total_net_minutes(self) -> int:
        return sum(e.net_minutes for e in self.entries)

    @property
    def total_hours(self) -> Decimal:
        return minutes_to_hours(self.total_net_minutes)

    def daily_net_minutes(self) -> dict[date, int]:
        """Net minutes worked per calendar day, in date order."""
        by_date: dict[date, int] = defaultdict(int)
        for entry in self.entries:
            by_date[entry.work_date] += entry.net_minutes
        return dict(sorted(by_date.items()))
