"""
award_engines.pipeline -- One evaluation cycle over a timesheet snapshot.

Responsibility:
    Run the hours classifier, compliance validator, approval router and
    allowance resolver against the same timesheet, jurisdiction and rule
    snapshot, and return their outputs together with a pay summary.

Architecture position:
    Engines -- composition of pure engines, zero I/O.  Persisting the
    resulting chain and dispatching notifications stay with the caller.

Invariants enforced:
    - Every engine sees the same snapshot, so results are mutually
      consistent.
    - The compliance validator receives the classified overtime hours;
      the approval router receives the same figure.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from award_engines.allowances import resolve_allowances, rules_for_award
from award_engines.approval import DEFAULT_APPROVAL_POLICY, build_approval_chain
from award_engines.compliance import validate_compliance
from award_engines.hours import classify_timesheet
from award_engines.pay_summary import PaySummary, summarize_pay
from award_kernel.domain.allowances import AllowanceResolution, AllowanceRule, ShiftContext
from award_kernel.domain.approval import ApprovalChain, ApprovalPolicy
from award_kernel.domain.clock import Clock, SystemClock
from award_kernel.domain.compliance import ComplianceValidation, JurisdictionRules
from award_kernel.domain.overtime import OvertimeCalculation
from award_kernel.domain.timesheet import Timesheet
from award_kernel.logging_config import LogContext, get_logger

logger = get_logger("engines.pipeline")


@dataclass(frozen=True)
class TimesheetEvaluation:
    """All engine outputs for one evaluation cycle."""

    overtime: OvertimeCalculation
    validation: ComplianceValidation
    approval_chain: ApprovalChain
    allowances: tuple[AllowanceResolution, ...]
    pay_summary: PaySummary


def evaluate_timesheet(
    timesheet: Timesheet,
    jurisdiction: JurisdictionRules,
    *,
    evaluated_at: datetime | None = None,
    clock: Clock | None = None,
    hourly_rate: Decimal | None = None,
    allowance_rules: Iterable[AllowanceRule] = (),
    shift_contexts: Iterable[ShiftContext] = (),
    approval_policy: ApprovalPolicy = DEFAULT_APPROVAL_POLICY,
    history: tuple[Timesheet, ...] = (),
    previous_validation: ComplianceValidation | None = None,
    public_holidays: Iterable[date] = (),
) -> TimesheetEvaluation:
    """Evaluate a timesheet end to end.

    The approval chain is stamped with ``evaluated_at``, or with
    ``clock.now()`` when no time is given (``SystemClock`` by default).
    ``public_holidays`` lists the dates priced at the public holiday
    penalty rate.

    ``shift_contexts`` holds one context per on-call shift in the week;
    each is resolved against the same ``allowance_rules`` snapshot, narrowed
    to the rules applicable to the timesheet's award classification.
    """
    rules = rules_for_award(allowance_rules, timesheet.award_classification)
    if evaluated_at is None:
        evaluated_at = (clock or SystemClock()).now()

    with LogContext.bind(
        timesheet_id=str(timesheet.timesheet_id),
        employee_id=str(timesheet.employee_id),
        award_code=jurisdiction.code,
    ):
        overtime = classify_timesheet(timesheet, hourly_rate, jurisdiction, public_holidays)
        validation = validate_compliance(
            timesheet,
            jurisdiction,
            overtime_hours=overtime.overtime_hours,
            history=history,
            previous=previous_validation,
        )
        chain = build_approval_chain(
            validation,
            evaluated_at,
            policy=approval_policy,
            overtime_hours=overtime.overtime_hours,
            timesheet_id=timesheet.timesheet_id,
        )
        resolutions = tuple(resolve_allowances(rules, ctx) for ctx in shift_contexts)
        summary = summarize_pay(overtime, resolutions)

        logger.info(
            "timesheet_evaluated",
            extra={
                "is_compliant": validation.is_compliant,
                "auto_approved": chain.auto_approved,
                "gross_pay": str(summary.gross_pay),
            },
        )

    return TimesheetEvaluation(
        overtime=overtime,
        validation=validation,
        approval_chain=chain,
        allowances=resolutions,
        pay_summary=summary,
    )
