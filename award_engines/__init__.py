"""
Module: award_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines.  This is the canonical import surface for the
    presentation layer and any service that persists engine results.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import award_kernel (and sibling engine modules).

Invariants enforced:
    - Purity: engines never read the system clock.  Timestamps used for
      SLA deadlines are passed in explicitly by the caller.
    - Decimal-only arithmetic: hours and money use ``Decimal``.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Every engine entry point is traced via ``@traced_engine`` (see
    ``award_engines.tracer``), emitting AWARD_ENGINE_TRACE log records
    with engine name, version, input fingerprint and duration.

Usage:
    from award_engines import classify_hours, validate_compliance
    from award_engines import build_approval_chain, approve_step
    from award_engines import resolve_allowances
"""

from award_kernel.logging_config import get_logger

logger = get_logger("engines")

from award_engines.allowances import (
    compute_amount,
    is_triggered,
    priority_order,
    resolve_allowances,
    resolve_exclusions,
    rules_for_award,
    validate_allowance_rules,
)
from award_engines.approval import (
    DEFAULT_APPROVAL_POLICY,
    approve_step,
    build_approval_chain,
    escalate_step,
    is_step_overdue,
    overdue_steps,
    reject_step,
    required_tiers,
)
from award_engines.compliance import validate_compliance
from award_engines.hours import classify_hours, classify_timesheet, day_type_for
from award_engines.pay_summary import AllowanceLine, PaySummary, summarize_pay
from award_engines.pipeline import TimesheetEvaluation, evaluate_timesheet

__all__ = [
    # Hours
    "classify_hours",
    "classify_timesheet",
    "day_type_for",
    # Compliance
    "validate_compliance",
    # Approval
    "DEFAULT_APPROVAL_POLICY",
    "approve_step",
    "build_approval_chain",
    "escalate_step",
    "is_step_overdue",
    "overdue_steps",
    "reject_step",
    "required_tiers",
    # Allowances
    "compute_amount",
    "is_triggered",
    "priority_order",
    "resolve_allowances",
    "resolve_exclusions",
    "rules_for_award",
    "validate_allowance_rules",
    # Pay summary / pipeline
    "AllowanceLine",
    "PaySummary",
    "summarize_pay",
    "TimesheetEvaluation",
    "evaluate_timesheet",
]

logger.debug("engines_package_loaded", extra={
    "module_count": 6,
    "modules": [
        "hours", "compliance", "approval", "allowances",
        "pay_summary", "pipeline",
    ],
})
