"""Tests for combining hours pay with resolved allowances."""

from datetime import date
from decimal import Decimal

from award_engines.allowances import resolve_allowances
from award_engines.hours import classify_hours
from award_engines.pay_summary import summarize_pay
from award_kernel.domain.allowances import AllowanceRule, ShiftContext, TriggerType
from award_kernel.domain.overtime import OvertimeThresholds

THRESHOLDS = OvertimeThresholds(
    max_daily_hours=Decimal("10"),
    overtime_threshold_daily=Decimal("8"),
    max_weekly_hours=Decimal("38"),
    overtime_threshold_weekly=Decimal("38"),
)

STANDBY = AllowanceRule("standby", "Standby", TriggerType.STANDBY, Decimal("15.42"), priority=1)
CALLBACK = AllowanceRule(
    "callback", "Callback", TriggerType.CALLBACK, Decimal("52.50"), priority=2,
)


class TestSummarizePay:

    def test_hours_only(self):
        overtime = classify_hours({date(2024, 3, 4): 600}, None, Decimal("30"), THRESHOLDS)
        summary = summarize_pay(overtime)
        assert summary.hours_pay == Decimal("330.00")
        assert summary.allowance_pay == 0
        assert summary.gross_pay == Decimal("330.00")
        assert summary.allowance_lines == ()

    def test_allowances_aggregated_across_shifts(self):
        overtime = classify_hours({}, None, None, THRESHOLDS)
        quiet = resolve_allowances((STANDBY, CALLBACK), ShiftContext())
        busy = resolve_allowances(
            (STANDBY, CALLBACK),
            ShiftContext(was_called_back=True, callback_hours=Decimal("3")),
        )
        summary = summarize_pay(overtime, (quiet, busy))

        lines = {line.allowance_id: line for line in summary.allowance_lines}
        assert lines["standby"].shifts_paid == 2
        assert lines["standby"].amount == Decimal("30.84")
        assert lines["callback"].shifts_paid == 1
        assert lines["callback"].amount == Decimal("157.50")
        assert summary.allowance_pay == Decimal("188.34")
        assert summary.gross_pay == Decimal("188.34")
        assert summary.allowance_savings == 0
        assert [line.allowance_id for line in summary.allowance_lines] == ["standby", "callback"]
