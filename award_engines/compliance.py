"""
Award Compliance Validation Engine (``award_engines.compliance``).

Responsibility
--------------
Inspect a timesheet's clock and break records against jurisdiction rules
and produce severity-tagged flags plus an overall verdict:

* per entry -- missing clock-out, punch order, irregular punches,
  early/late punches, excessive daily hours, missed and extended breaks
* per week -- weekly hour limit, high overtime, start-time pattern drift

Architecture position
---------------------
**Engines layer** -- pure functional core.  ZERO I/O, ZERO clock reads.
May only import from ``award_kernel``.

Invariants enforced
-------------------
* Each per-entry check yields zero or one flag with a deterministic id
  (``flag-<entry_id>-<check>``), so repeated runs produce identical output.
* ``is_compliant`` iff no active flag is critical; ``blocking_issues`` are
  the critical descriptions.
* Pattern drift is never critical.
* Flags are recomputed from scratch; a previous result only contributes
  ``resolved_flags`` for audit display.

Failure modes
-------------
* Malformed entries never raise; they become critical flags.
"""

from __future__ import annotations

import statistics
from decimal import Decimal

from award_engines.tracer import traced_engine
from award_kernel.domain.compliance import (
    ComplianceFlag,
    ComplianceValidation,
    FlagType,
    JurisdictionRules,
    Severity,
)
from award_kernel.domain.timesheet import (
    MINUTES_PER_DAY,
    TimeEntry,
    Timesheet,
    minutes_of_day,
)
from award_kernel.logging_config import get_logger

logger = get_logger("engines.compliance")

HIGH_OVERTIME_FRACTION = Decimal("0.5")
EXTENDED_BREAK_FACTOR = Decimal("1.5")


def _fmt_hours(value: Decimal) -> str:
    return f"{value.normalize():f}"


def _fmt_time(minutes: int) -> str:
    minutes %= MINUTES_PER_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def _flag(
    entry: TimeEntry,
    suffix: str,
    flag_type: FlagType,
    severity: Severity,
    title: str,
    description: str,
) -> ComplianceFlag:
    return ComplianceFlag(
        flag_id=f"flag-{entry.entry_id}-{suffix}",
        flag_type=flag_type,
        severity=severity,
        title=title,
        description=description,
        entry_date=entry.work_date,
    )


# ---------------------------------------------------------------------------
# Punch checks
# ---------------------------------------------------------------------------


def check_punches(entry: TimeEntry) -> list[ComplianceFlag]:
    """Missing clock-out, punch order and zero-net-hours checks."""
    if entry.clock_in is None and entry.clock_out is None:
        return []

    if entry.clock_out is None:
        return [_flag(
            entry, "missing-out", FlagType.MISSING_CLOCK_OUT, Severity.CRITICAL,
            "Missing Clock Out",
            f"No clock-out recorded for {entry.work_date}",
        )]

    if entry.clock_in is None:
        return [_flag(
            entry, "irregular", FlagType.IRREGULAR_PUNCH, Severity.CRITICAL,
            "Irregular Punch",
            f"Clock-out at {entry.clock_out:%H:%M} on {entry.work_date} has no clock-in",
        )]

    if entry.has_punch_order_error:
        return [_flag(
            entry, "punch-order", FlagType.INVALID_PUNCH_ORDER, Severity.CRITICAL,
            "Clock Out Before Clock In",
            f"Clock-out at {entry.clock_out:%H:%M} precedes clock-in at "
            f"{entry.clock_in:%H:%M} on {entry.work_date}",
        )]

    if entry.net_minutes == 0:
        return [_flag(
            entry, "irregular", FlagType.IRREGULAR_PUNCH, Severity.CRITICAL,
            "Irregular Punch",
            f"Zero net hours recorded for {entry.work_date} despite a clock-in "
            f"at {entry.clock_in:%H:%M}",
        )]

    return []


def check_schedule_adherence(
    entry: TimeEntry,
    rules: JurisdictionRules,
) -> list[ComplianceFlag]:
    """Early clock-in and late clock-out relative to the scheduled shift.

    Entries without a scheduled shift are compared to the jurisdiction's
    unscheduled start/end bounds instead.
    """
    flags: list[ComplianceFlag] = []
    tolerance = rules.schedule_tolerance_minutes

    if entry.clock_in is not None:
        clock_in = minutes_of_day(entry.clock_in)
        if entry.scheduled_start is not None:
            scheduled = minutes_of_day(entry.scheduled_start)
            if clock_in < scheduled - tolerance:
                flags.append(_flag(
                    entry, "early-in", FlagType.EARLY_CLOCK_IN, Severity.WARNING,
                    "Early Clock In",
                    f"Clock-in at {_fmt_time(clock_in)} is {scheduled - clock_in} "
                    f"minutes before the scheduled start {_fmt_time(scheduled)}",
                ))
        elif clock_in < minutes_of_day(rules.earliest_unscheduled_start):
            flags.append(_flag(
                entry, "early-in", FlagType.EARLY_CLOCK_IN, Severity.WARNING,
                "Unusual Early Start",
                f"Clock-in at {_fmt_time(clock_in)} is unusually early",
            ))

    if entry.clock_out is not None and not entry.has_punch_order_error:
        clock_out = minutes_of_day(entry.clock_out)
        if entry.ends_next_day:
            clock_out += MINUTES_PER_DAY
        if entry.scheduled_end is not None:
            scheduled = minutes_of_day(entry.scheduled_end)
            if entry.scheduled_start is not None and entry.scheduled_end < entry.scheduled_start:
                scheduled += MINUTES_PER_DAY
            if clock_out > scheduled + tolerance:
                flags.append(_flag(
                    entry, "late-out", FlagType.LATE_CLOCK_OUT, Severity.WARNING,
                    "Late Clock Out",
                    f"Clock-out at {_fmt_time(clock_out)} is {clock_out - scheduled} "
                    f"minutes after the scheduled end {_fmt_time(scheduled)}",
                ))
        elif minutes_of_day(entry.clock_out) >= minutes_of_day(rules.latest_unscheduled_end):
            # Unscheduled bounds compare wall-clock time only.
            flags.append(_flag(
                entry, "late-out", FlagType.LATE_CLOCK_OUT, Severity.WARNING,
                "Unusual Late End",
                f"Clock-out at {_fmt_time(clock_out)} is unusually late",
            ))

    return flags


def check_daily_hours(entry: TimeEntry, rules: JurisdictionRules) -> list[ComplianceFlag]:
    if entry.gross_hours > rules.max_daily_hours:
        return [_flag(
            entry, "max-hours", FlagType.MAX_DAILY_HOURS, Severity.CRITICAL,
            "Excessive Daily Hours",
            f"{_fmt_hours(entry.gross_hours)}h on {entry.work_date} exceeds maximum "
            f"allowed {_fmt_hours(rules.max_daily_hours)}h",
        )]
    return []


# ---------------------------------------------------------------------------
# Break checks
# ---------------------------------------------------------------------------


def check_breaks(entry: TimeEntry, rules: JurisdictionRules) -> list[ComplianceFlag]:
    """Missed or extended breaks for a completed shift.

    The requirement is the largest mandatory break whose shift-length
    trigger the entry reaches.  At most one break flag is produced.
    """
    if entry.clock_in is None or entry.clock_out is None or entry.has_punch_order_error:
        return []

    gross_hours = entry.gross_hours
    applicable = [
        rule for rule in rules.break_rules
        if rule.mandatory and gross_hours >= rule.min_work_hours
    ]
    taken = entry.break_minutes

    if applicable:
        governing = max(applicable, key=lambda r: (r.break_minutes, r.rule_id))
        if taken < governing.break_minutes:
            return [_flag(
                entry, "missed-break", FlagType.MISSED_BREAK, Severity.WARNING,
                "Missed Required Break",
                f"{governing.name} ({governing.break_minutes}m) not taken. "
                f"Only {taken}m recorded.",
            )]
        required = governing.break_minutes
    else:
        required = 0

    if rules.max_break_minutes is not None:
        limit = Decimal(rules.max_break_minutes)
    elif required:
        limit = Decimal(required) * EXTENDED_BREAK_FACTOR
    else:
        return []

    if taken > limit:
        return [_flag(
            entry, "exceeded-break", FlagType.EXCEEDED_BREAK, Severity.WARNING,
            "Extended Break Time",
            f"Break time ({taken}m) exceeds the {_fmt_hours(limit)}m maximum",
        )]
    return []


# ---------------------------------------------------------------------------
# Whole-timesheet checks
# ---------------------------------------------------------------------------


def check_weekly_hours(timesheet: Timesheet, rules: JurisdictionRules) -> list[ComplianceFlag]:
    total = timesheet.total_hours
    if total > rules.max_weekly_hours:
        return [ComplianceFlag(
            flag_id="flag-weekly-max",
            flag_type=FlagType.MAX_WEEKLY_HOURS,
            severity=Severity.CRITICAL,
            title="Weekly Hours Exceeded",
            description=(
                f"{_fmt_hours(total)}h exceeds maximum "
                f"{_fmt_hours(rules.max_weekly_hours)}h weekly limit"
            ),
        )]
    return []


def check_overtime(overtime_hours: Decimal, rules: JurisdictionRules) -> list[ComplianceFlag]:
    if overtime_hours > rules.overtime_threshold_weekly * HIGH_OVERTIME_FRACTION:
        return [ComplianceFlag(
            flag_id="flag-high-overtime",
            flag_type=FlagType.OVERTIME_THRESHOLD,
            severity=Severity.WARNING,
            title="High Overtime",
            description=f"{_fmt_hours(overtime_hours)}h overtime requires additional approval",
        )]
    return []


def _clock_in_minutes(timesheets: tuple[Timesheet, ...]) -> list[int]:
    return [
        minutes_of_day(e.clock_in)
        for ts in timesheets
        for e in ts.entries
        if e.clock_in is not None
    ]


def check_pattern_drift(
    timesheet: Timesheet,
    rules: JurisdictionRules,
    history: tuple[Timesheet, ...],
) -> list[ComplianceFlag]:
    """Compare this week's start times with the employee's historical norm.

    Each entry starting more than ``pattern_drift_minutes`` away from the
    historical mean start produces an info flag.  A week whose start-time
    spread exceeds the historical spread by more than the same margin
    produces one warning.
    """
    historical = _clock_in_minutes(history)
    if not historical:
        return []

    drift = rules.pattern_drift_minutes
    mean_start = round(sum(historical) / len(historical))
    flags: list[ComplianceFlag] = []

    for entry in timesheet.entries:
        if entry.clock_in is None:
            continue
        deviation = abs(minutes_of_day(entry.clock_in) - mean_start)
        if deviation > drift:
            flags.append(_flag(
                entry, "pattern-drift", FlagType.PATTERN_DRIFT, Severity.INFO,
                "Pattern Deviation",
                f"Clock-in time deviates {deviation} minutes from usual pattern "
                f"({_fmt_time(mean_start)})",
            ))

    week = _clock_in_minutes((timesheet,))
    if len(week) >= 2:
        week_spread = statistics.pstdev(week)
        usual_spread = statistics.pstdev(historical) if len(historical) >= 2 else 0.0
        if week_spread - usual_spread > drift:
            flags.append(ComplianceFlag(
                flag_id="flag-week-pattern-drift",
                flag_type=FlagType.PATTERN_DRIFT,
                severity=Severity.WARNING,
                title="Irregular Start Times",
                description=(
                    f"Start times this week vary by {round(week_spread)} minutes "
                    f"against a usual {round(usual_spread)} minutes"
                ),
            ))

    return flags


# ---------------------------------------------------------------------------
# Full validation
# ---------------------------------------------------------------------------


def _carry_resolved(
    previous: ComplianceValidation,
    active_ids: set[str],
) -> tuple[ComplianceFlag, ...]:
    resolved: dict[str, ComplianceFlag] = {}
    for flag in previous.resolved_flags + previous.flags:
        if flag.flag_id in active_ids or flag.flag_id in resolved:
            continue
        resolved[flag.flag_id] = ComplianceFlag(
            flag_id=flag.flag_id,
            flag_type=flag.flag_type,
            severity=flag.severity,
            title=flag.title,
            description=flag.description,
            entry_date=flag.entry_date,
            auto_resolved=True,
        )
    return tuple(resolved.values())


def _unique(values: list[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(values))


@traced_engine(
    "compliance_validator",
    "1.0",
    fingerprint_fields=("timesheet", "jurisdiction", "overtime_hours"),
)
def validate_compliance(
    timesheet: Timesheet,
    jurisdiction: JurisdictionRules,
    overtime_hours: Decimal | None = None,
    history: tuple[Timesheet, ...] = (),
    previous: ComplianceValidation | None = None,
) -> ComplianceValidation:
    """Validate a timesheet against jurisdiction rules.

    Args:
        timesheet: The timesheet to inspect.
        jurisdiction: Hour limits and break rules to apply.
        overtime_hours: Classified overtime for the week; the high-overtime
            check is skipped when None.
        history: Earlier timesheets of the same employee, for pattern drift.
        previous: The prior validation of this timesheet; its flags that no
            longer fire are returned in ``resolved_flags``.

    Returns:
        ComplianceValidation with flags in check order.
    """
    flags: list[ComplianceFlag] = []

    for entry in timesheet.entries:
        flags.extend(check_punches(entry))
        flags.extend(check_schedule_adherence(entry, jurisdiction))
        flags.extend(check_daily_hours(entry, jurisdiction))
        flags.extend(check_breaks(entry, jurisdiction))

    flags.extend(check_weekly_hours(timesheet, jurisdiction))
    if overtime_hours is not None:
        flags.extend(check_overtime(overtime_hours, jurisdiction))
    flags.extend(check_pattern_drift(timesheet, jurisdiction, history))

    blocking = _unique([f.description for f in flags if f.severity == Severity.CRITICAL])
    warnings = _unique([f.description for f in flags if f.severity == Severity.WARNING])
    resolved = (
        _carry_resolved(previous, {f.flag_id for f in flags})
        if previous is not None else ()
    )

    validation = ComplianceValidation(
        is_compliant=not blocking,
        flags=tuple(flags),
        blocking_issues=blocking,
        warnings=warnings,
        resolved_flags=resolved,
    )

    logger.info(
        "compliance_validated",
        extra={
            "timesheet_id": str(timesheet.timesheet_id),
            "jurisdiction": jurisdiction.code,
            "flag_count": len(flags),
            "critical_count": len(validation.critical_flags),
            "resolved_count": len(resolved),
            "is_compliant": validation.is_compliant,
        },
    )
    return validation
