"""
Tests for the award compliance validation engine.

Tests cover:
- Punch checks: missing clock-out, clock-out before clock-in, irregular punches
- Schedule adherence with tolerance, and unscheduled early/late bounds
- Daily and weekly hour limits
- Break rules: governing rule selection, missed and extended breaks
- High overtime and pattern drift
- Verdict invariants and auto-resolved flags
"""

from datetime import date, time, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from award_engines.compliance import (
    check_breaks,
    check_pattern_drift,
    check_punches,
    check_schedule_adherence,
    validate_compliance,
)
from award_kernel.domain.compliance import FlagType, Severity
from award_kernel.domain.timesheet import Break, TimeEntry, Timesheet

MONDAY = date(2024, 3, 4)
LUNCH = (Break(time(12, 0), time(12, 30)),)


def make_entry(
    clock_in: time | None = time(9, 0),
    clock_out: time | None = time(17, 0),
    breaks: tuple[Break, ...] = LUNCH,
    day: int = 0,
    **kwargs,
) -> TimeEntry:
    return TimeEntry(
        work_date=MONDAY + timedelta(days=day),
        clock_in=clock_in,
        clock_out=clock_out,
        breaks=breaks,
        **kwargs,
    )


def make_timesheet(*entries: TimeEntry) -> Timesheet:
    return Timesheet(employee_id=uuid4(), week_start=MONDAY, entries=entries)


def standard_week() -> Timesheet:
    return make_timesheet(*(make_entry(day=d) for d in range(5)))


def flag_types(validation) -> list[FlagType]:
    return [f.flag_type for f in validation.flags]


class TestCleanTimesheet:

    def test_standard_week_is_compliant(self, au_rules):
        validation = validate_compliance(standard_week(), au_rules, overtime_hours=Decimal("0"))
        assert validation.is_compliant
        assert validation.can_submit
        assert validation.flags == ()
        assert validation.blocking_issues == ()

    def test_empty_timesheet_is_compliant(self, au_rules):
        validation = validate_compliance(make_timesheet(), au_rules)
        assert validation.is_compliant
        assert validation.flags == ()


class TestPunchChecks:

    def test_missing_clock_out_is_critical(self):
        flags = check_punches(make_entry(clock_out=None))
        assert [f.flag_type for f in flags] == [FlagType.MISSING_CLOCK_OUT]
        assert flags[0].severity == Severity.CRITICAL
        assert flags[0].entry_date == MONDAY

    def test_clock_out_before_clock_in_is_critical(self):
        flags = check_punches(make_entry(time(17, 0), time(9, 0)))
        assert [f.flag_type for f in flags] == [FlagType.INVALID_PUNCH_ORDER]
        assert flags[0].severity == Severity.CRITICAL

    def test_overnight_shift_is_not_a_punch_order_error(self):
        entry = make_entry(time(22, 0), time(6, 0), breaks=(), ends_next_day=True)
        assert check_punches(entry) == []

    def test_clock_out_without_clock_in_is_irregular(self):
        flags = check_punches(make_entry(clock_in=None))
        assert [f.flag_type for f in flags] == [FlagType.IRREGULAR_PUNCH]

    def test_zero_net_hours_is_irregular(self):
        flags = check_punches(make_entry(time(9, 0), time(9, 0), breaks=()))
        assert [f.flag_type for f in flags] == [FlagType.IRREGULAR_PUNCH]

    def test_no_punches_no_flags(self):
        assert check_punches(make_entry(clock_in=None, clock_out=None)) == []

    def test_flag_ids_are_deterministic(self, au_rules):
        sheet = make_timesheet(make_entry(clock_out=None))
        first = validate_compliance(sheet, au_rules)
        second = validate_compliance(sheet, au_rules)
        assert first == second


class TestScheduleAdherence:

    def test_within_tolerance(self, au_rules):
        entry = make_entry(
            time(8, 50), time(17, 10),
            scheduled_start=time(9, 0), scheduled_end=time(17, 0),
        )
        assert check_schedule_adherence(entry, au_rules) == []

    def test_early_clock_in(self, au_rules):
        entry = make_entry(time(8, 30), scheduled_start=time(9, 0), scheduled_end=time(17, 0))
        flags = check_schedule_adherence(entry, au_rules)
        assert [f.flag_type for f in flags] == [FlagType.EARLY_CLOCK_IN]
        assert flags[0].severity == Severity.WARNING
        assert "30 minutes" in flags[0].description

    def test_late_clock_out(self, au_rules):
        entry = make_entry(clock_out=time(17, 45), scheduled_start=time(9, 0), scheduled_end=time(17, 0))
        flags = check_schedule_adherence(entry, au_rules)
        assert [f.flag_type for f in flags] == [FlagType.LATE_CLOCK_OUT]

    def test_unscheduled_early_start(self, au_rules):
        flags = check_schedule_adherence(make_entry(time(4, 30), time(12, 30)), au_rules)
        assert [f.flag_type for f in flags] == [FlagType.EARLY_CLOCK_IN]
        assert flags[0].title == "Unusual Early Start"

    def test_unscheduled_late_end_at_boundary(self, au_rules):
        flags = check_schedule_adherence(make_entry(time(14, 0), time(22, 0)), au_rules)
        assert [f.flag_type for f in flags] == [FlagType.LATE_CLOCK_OUT]

    def test_overnight_scheduled_shift(self, au_rules):
        entry = make_entry(
            time(22, 0), time(6, 5), breaks=(),
            scheduled_start=time(22, 0), scheduled_end=time(6, 0),
            ends_next_day=True,
        )
        assert check_schedule_adherence(entry, au_rules) == []

    def test_unscheduled_overnight_morning_finish_not_late(self, au_rules):
        entry = make_entry(time(21, 0), time(6, 0), breaks=(), ends_next_day=True)
        assert check_schedule_adherence(entry, au_rules) == []

    def test_unscheduled_same_day_late_finish_still_flagged(self, au_rules):
        flags = check_schedule_adherence(make_entry(time(15, 0), time(23, 30)), au_rules)
        assert [f.flag_type for f in flags] == [FlagType.LATE_CLOCK_OUT]
        assert "23:30" in flags[0].description


class TestHourLimits:

    def test_excessive_daily_hours(self, au_rules):
        sheet = make_timesheet(make_entry(time(6, 0), time(17, 0)))
        validation = validate_compliance(sheet, au_rules)
        assert FlagType.MAX_DAILY_HOURS in flag_types(validation)
        assert not validation.is_compliant
        assert "11h" in validation.blocking_issues[0]

    def test_daily_hours_at_limit_allowed(self, au_rules):
        sheet = make_timesheet(make_entry(time(7, 0), time(17, 0)))
        validation = validate_compliance(sheet, au_rules)
        assert not validation.has_flag_type(FlagType.MAX_DAILY_HOURS)

    def test_weekly_limit(self, au_rules):
        sheet = make_timesheet(*(make_entry(time(8, 0), time(17, 0), day=d) for d in range(5)))
        validation = validate_compliance(sheet, au_rules)
        weekly = [f for f in validation.flags if f.flag_type == FlagType.MAX_WEEKLY_HOURS]
        assert len(weekly) == 1
        assert weekly[0].severity == Severity.CRITICAL
        assert weekly[0].entry_date is None
        assert weekly[0].description == "42.5h exceeds maximum 38h weekly limit"


class TestBreaks:

    def test_missed_meal_break(self, au_rules):
        flags = check_breaks(make_entry(breaks=()), au_rules)
        assert [f.flag_type for f in flags] == [FlagType.MISSED_BREAK]
        assert flags[0].severity == Severity.WARNING
        assert flags[0].description == "Meal Break (30m) not taken. Only 0m recorded."

    def test_governing_rule_is_largest_applicable(self, au_rules):
        # 10 minutes satisfies the rest break but not the meal break.
        entry = make_entry(breaks=(Break(time(12, 0), time(12, 10)),))
        flags = check_breaks(entry, au_rules)
        assert "Meal Break (30m)" in flags[0].description

    def test_short_shift_needs_only_rest_break(self, au_rules):
        entry = make_entry(time(9, 0), time(13, 30), breaks=(Break(time(11, 0), time(11, 10)),))
        assert check_breaks(entry, au_rules) == []

    def test_shift_below_every_trigger(self, au_rules):
        assert check_breaks(make_entry(time(9, 0), time(12, 0), breaks=()), au_rules) == []

    def test_meal_break_across_midnight_satisfies_rule(self, au_rules):
        entry = make_entry(
            time(18, 0), time(2, 0),
            breaks=(Break(time(23, 45), time(0, 15)),),
            ends_next_day=True,
        )
        assert check_breaks(entry, au_rules) == []

    def test_extended_break(self, au_rules):
        entry = make_entry(breaks=(Break(time(12, 0), time(13, 0)),))
        flags = check_breaks(entry, au_rules)
        assert [f.flag_type for f in flags] == [FlagType.EXCEEDED_BREAK]
        assert flags[0].description == "Break time (60m) exceeds the 45m maximum"

    def test_non_mandatory_rule_not_enforced(self, au_rules):
        from dataclasses import replace

        from award_kernel.domain.compliance import BreakRule

        rules = replace(au_rules, break_rules=(
            BreakRule("rest", "Rest Break", Decimal("4"), 10, mandatory=False),
        ))
        assert check_breaks(make_entry(breaks=()), rules) == []

    def test_incomplete_entry_skips_break_check(self, au_rules):
        assert check_breaks(make_entry(clock_out=None, breaks=()), au_rules) == []


class TestOvertimeAndDrift:

    def test_high_overtime_warning(self, au_rules):
        validation = validate_compliance(standard_week(), au_rules, overtime_hours=Decimal("20"))
        assert validation.has_flag_type(FlagType.OVERTIME_THRESHOLD)
        assert validation.is_compliant
        assert validation.warnings == ("20h overtime requires additional approval",)

    def test_overtime_at_half_threshold_is_silent(self, au_rules):
        validation = validate_compliance(standard_week(), au_rules, overtime_hours=Decimal("19"))
        assert not validation.has_flag_type(FlagType.OVERTIME_THRESHOLD)

    def test_no_history_no_drift(self, au_rules):
        assert check_pattern_drift(standard_week(), au_rules, ()) == []

    def test_entry_drift_is_info(self, au_rules):
        history = (standard_week(), standard_week())
        sheet = make_timesheet(make_entry(time(11, 0), time(19, 0)))
        flags = check_pattern_drift(sheet, au_rules, history)
        assert [f.severity for f in flags] == [Severity.INFO]
        assert "120 minutes" in flags[0].description

    def test_irregular_week_is_warning_never_critical(self, au_rules):
        history = (standard_week(),)
        sheet = make_timesheet(
            make_entry(time(6, 0), time(14, 0), day=0),
            make_entry(time(13, 0), time(21, 0), day=1),
        )
        flags = check_pattern_drift(sheet, au_rules, history)
        assert any(f.flag_id == "flag-week-pattern-drift" for f in flags)
        assert all(f.severity != Severity.CRITICAL for f in flags)

        validation = validate_compliance(sheet, au_rules, history=history)
        assert validation.is_compliant


class TestVerdict:

    def test_compliant_iff_no_critical(self, au_rules):
        sheet = make_timesheet(make_entry(breaks=()), make_entry(clock_out=None, day=1))
        validation = validate_compliance(sheet, au_rules)
        assert not validation.is_compliant
        assert len(validation.critical_flags) == 1
        assert validation.blocking_issues == tuple(f.description for f in validation.critical_flags)
        assert len(validation.warning_flags) == 1

    def test_fixed_flags_become_auto_resolved(self, au_rules):
        broken = make_timesheet(make_entry(clock_out=None))
        first = validate_compliance(broken, au_rules)

        fixed = Timesheet(
            employee_id=broken.employee_id,
            week_start=MONDAY,
            entries=(
                TimeEntry(
                    work_date=MONDAY,
                    clock_in=time(9, 0),
                    clock_out=time(17, 0),
                    breaks=LUNCH,
                    entry_id=broken.entries[0].entry_id,
                ),
            ),
            timesheet_id=broken.timesheet_id,
        )
        second = validate_compliance(fixed, au_rules, previous=first)

        assert second.is_compliant
        assert second.flags == ()
        assert len(second.resolved_flags) == 1
        resolved = second.resolved_flags[0]
        assert resolved.auto_resolved
        assert resolved.flag_id == first.flags[0].flag_id

    def test_still_failing_flags_are_not_resolved(self, au_rules):
        sheet = make_timesheet(make_entry(clock_out=None))
        first = validate_compliance(sheet, au_rules)
        second = validate_compliance(sheet, au_rules, previous=first)
        assert second.resolved_flags == ()
        assert second.flags == first.flags

    def test_trace_and_summary_logged(self, au_rules, captured_logs):
        validate_compliance(standard_week(), au_rules)
        messages = [r["message"] for r in captured_logs()]
        assert "compliance_validated" in messages
        assert "AWARD_ENGINE_TRACE" in messages


@pytest.mark.parametrize(
    "entry, expected",
    [
        (make_entry(clock_out=None), FlagType.MISSING_CLOCK_OUT),
        (make_entry(time(17, 0), time(9, 0)), FlagType.INVALID_PUNCH_ORDER),
        (make_entry(time(5, 0), time(16, 30)), FlagType.MAX_DAILY_HOURS),
    ],
)
def test_critical_flag_types_block_submission(au_rules, entry, expected):
    validation = validate_compliance(make_timesheet(entry), au_rules)
    assert validation.has_flag_type(expected)
    assert not validation.can_submit
