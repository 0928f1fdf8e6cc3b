"""
Pure domain layer.

Immutable value objects for timesheets, compliance results, overtime
classification, approval chains and on-call allowances, with NO
dependencies on persistence, the system clock or I/O.
"""

from award_kernel.domain.allowances import (
    AllowanceResolution,
    AllowanceRule,
    AppliedAllowance,
    RateType,
    ShiftContext,
    TriggerType,
)
from award_kernel.domain.approval import (
    ApprovalChain,
    ApprovalPolicy,
    ApprovalStep,
    ApprovalTier,
    StepStatus,
    TransitionResult,
)
from award_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from award_kernel.domain.compliance import (
    BreakRule,
    ComplianceFlag,
    ComplianceValidation,
    FlagType,
    JurisdictionRules,
    Severity,
)
from award_kernel.domain.overtime import (
    DayClassification,
    OvertimeCalculation,
    OvertimeThresholds,
)
from award_kernel.domain.penalties import DayType, PenaltyRates
from award_kernel.domain.timesheet import (
    Break,
    BreakType,
    TimeEntry,
    Timesheet,
    TimesheetStatus,
)

__all__ = [
    # Allowances
    "AllowanceResolution",
    "AllowanceRule",
    "AppliedAllowance",
    "RateType",
    "ShiftContext",
    "TriggerType",
    # Approval
    "ApprovalChain",
    "ApprovalPolicy",
    "ApprovalStep",
    "ApprovalTier",
    "StepStatus",
    "TransitionResult",
    # Clock
    "Clock",
    "DeterministicClock",
    "SystemClock",
    # Compliance
    "BreakRule",
    "ComplianceFlag",
    "ComplianceValidation",
    "FlagType",
    "JurisdictionRules",
    "Severity",
    # Overtime
    "DayClassification",
    "OvertimeCalculation",
    "OvertimeThresholds",
    # Penalties
    "DayType",
    "PenaltyRates",
    # Timesheet
    "Break",
    "BreakType",
    "TimeEntry",
    "Timesheet",
    "TimesheetStatus",
]
