"""
Tests for the end-to-end timesheet evaluation.

Tests cover:
- A clean week auto-approves and prices hours and allowances
- Overtime flows from the classifier into compliance and approval routing
- Evaluation log records carry the timesheet context
- Chain timestamps from an injected clock; public holiday penalty pricing
"""

from dataclasses import replace
from datetime import UTC, date, datetime, time, timedelta
from decimal import Decimal
from uuid import uuid4

from award_engines.pipeline import evaluate_timesheet
from award_kernel.domain.allowances import AllowanceRule, ShiftContext, TriggerType
from award_kernel.domain.approval import ApprovalTier
from award_kernel.domain.clock import DeterministicClock
from award_kernel.domain.compliance import FlagType
from award_kernel.domain.penalties import PenaltyRates
from award_kernel.domain.timesheet import Break, TimeEntry, Timesheet

MONDAY = date(2024, 3, 4)
EVALUATED_AT = datetime(2024, 3, 11, 8, 0, tzinfo=UTC)
LUNCH = (Break(time(12, 0), time(12, 30)),)


def make_timesheet(*shifts: tuple[time, time]) -> Timesheet:
    return Timesheet(
        employee_id=uuid4(),
        week_start=MONDAY,
        entries=tuple(
            TimeEntry(MONDAY + timedelta(days=i), start, end, breaks=LUNCH)
            for i, (start, end) in enumerate(shifts)
        ),
        award_classification="general",
    )


STANDBY = AllowanceRule("standby", "Standby", TriggerType.STANDBY, Decimal("15.42"), priority=1)


class TestEvaluateTimesheet:

    def test_clean_week(self, au_rules):
        sheet = make_timesheet(*[(time(9, 0), time(17, 0))] * 5)
        evaluation = evaluate_timesheet(
            sheet, au_rules,
            evaluated_at=EVALUATED_AT,
            hourly_rate=Decimal("30"),
            allowance_rules=(STANDBY,),
            shift_contexts=(ShiftContext(), ShiftContext(is_weekend=True)),
        )

        assert evaluation.overtime.total_hours == Decimal("37.5")
        assert evaluation.validation.is_compliant
        assert evaluation.approval_chain.auto_approved
        assert len(evaluation.allowances) == 2
        assert evaluation.pay_summary.hours_pay == Decimal("1125.00")
        assert evaluation.pay_summary.allowance_pay == Decimal("30.84")
        assert evaluation.pay_summary.gross_pay == Decimal("1155.84")

    def test_long_week_routes_to_hr(self, au_rules):
        # Five 10.5h shifts: 50h net, 10h overtime, over the weekly cap.
        sheet = make_timesheet(*[(time(6, 30), time(17, 30))] * 5)
        evaluation = evaluate_timesheet(sheet, au_rules, evaluated_at=EVALUATED_AT)

        assert evaluation.overtime.overtime_hours == Decimal("12")
        assert evaluation.validation.has_flag_type(
            FlagType.MAX_DAILY_HOURS, FlagType.MAX_WEEKLY_HOURS,
        )
        assert not evaluation.validation.is_compliant
        chain = evaluation.approval_chain
        assert [s.tier for s in chain.steps] == [
            ApprovalTier.MANAGER, ApprovalTier.SENIOR_MANAGER, ApprovalTier.HR,
        ]
        assert chain.timesheet_id == sheet.timesheet_id
        assert chain.started_at == EVALUATED_AT

    def test_log_records_carry_timesheet_context(self, au_rules, captured_logs):
        sheet = make_timesheet((time(9, 0), time(17, 0)))
        evaluate_timesheet(sheet, au_rules, evaluated_at=EVALUATED_AT)

        records = captured_logs()
        summary = next(r for r in records if r["message"] == "timesheet_evaluated")
        assert summary["timesheet_id"] == str(sheet.timesheet_id)
        assert summary["award_code"] == "AU-NES"
        assert summary["auto_approved"] is True

    def test_allowances_narrowed_to_award(self, au_rules):
        recall = AllowanceRule(
            "recall", "Recall", TriggerType.RECALL, Decimal("70"), priority=3,
            applicable_awards=frozenset({"healthcare"}),
        )
        sheet = make_timesheet((time(9, 0), time(17, 0)))
        evaluation = evaluate_timesheet(
            sheet, au_rules,
            evaluated_at=EVALUATED_AT,
            allowance_rules=(STANDBY, recall),
            shift_contexts=(ShiftContext(was_called_back=True, callback_hours=Decimal("1")),),
        )
        resolution = evaluation.allowances[0]
        assert [s.allowance_id for s in resolution.steps] == ["standby"]
        assert evaluation.pay_summary.allowance_pay == Decimal("15.42")

    def test_chain_stamped_from_clock_when_no_time_given(self, au_rules):
        clock = DeterministicClock(EVALUATED_AT)
        clock.advance_hours(2)
        sheet = make_timesheet((time(9, 0), time(17, 0)))
        evaluation = evaluate_timesheet(sheet, au_rules, clock=clock)
        assert evaluation.approval_chain.started_at == EVALUATED_AT + timedelta(hours=2)

    def test_explicit_time_wins_over_clock(self, au_rules):
        sheet = make_timesheet((time(9, 0), time(17, 0)))
        evaluation = evaluate_timesheet(
            sheet, au_rules,
            evaluated_at=EVALUATED_AT,
            clock=DeterministicClock(datetime(2030, 1, 1, tzinfo=UTC)),
        )
        assert evaluation.approval_chain.started_at == EVALUATED_AT

    def test_public_holiday_penalty_in_pay_summary(self, au_rules):
        rules = replace(au_rules, penalty_rates=PenaltyRates(public_holiday=Decimal("2.5")))
        sheet = make_timesheet((time(9, 0), time(17, 0)))
        evaluation = evaluate_timesheet(
            sheet, rules,
            evaluated_at=EVALUATED_AT,
            hourly_rate=Decimal("30"),
            public_holidays=(MONDAY,),
        )
        assert evaluation.pay_summary.regular_pay == Decimal("225.00")
        assert evaluation.pay_summary.penalty_pay == Decimal("337.50")
        assert evaluation.pay_summary.hours_pay == Decimal("562.50")

    def test_system_clock_by_default(self, au_rules):
        before = datetime.now(UTC)
        evaluation = evaluate_timesheet(make_timesheet((time(9, 0), time(17, 0))), au_rules)
        assert evaluation.approval_chain.started_at >= before
