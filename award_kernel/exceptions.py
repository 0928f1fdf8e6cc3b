"""
Typed exception hierarchy for the award engine.

Every exception carries a ``code`` class attribute (machine-readable,
API-safe) and stores its context as attributes rather than only in the
message string, so callers catch by type and read structured data.

Hierarchy::

    AwardEngineError (base)
    |
    +-- ApprovalError
    |   +-- InvalidTransitionError
    |
    +-- ConfigurationError
        +-- UnknownJurisdictionError
        +-- UnknownRuleSetError
        +-- InvalidConfigurationError

Error codes:

Category      | Code                        | When raised
--------------|-----------------------------|------------------------------------------
Approval      | INVALID_APPROVAL_TRANSITION | approve/reject/escalate on a step that is
              |                             | not the current pending step (unwrap())
--------------|-----------------------------|------------------------------------------
Configuration | UNKNOWN_JURISDICTION        | no jurisdiction with the requested code
              | UNKNOWN_RULE_SET            | no allowance rule set with that name
              | INVALID_CONFIGURATION       | YAML fragment is structurally invalid

Data-quality problems in timesheets or allowance rules are never raised;
the engines encode them as compliance flags, rejected transitions or
resolution issues so the read path always produces a result.
"""


class AwardEngineError(Exception):
    """
    Base exception for all award engine errors.

    All subclasses must have a ``code`` class attribute.
    """

    code: str = "AWARD_ENGINE_ERROR"


# Approval exceptions


class ApprovalError(AwardEngineError):
    """Base exception for approval chain errors."""

    code: str = "APPROVAL_ERROR"


class InvalidTransitionError(ApprovalError):
    """An approval action was attempted on a step that cannot accept it."""

    code: str = "INVALID_APPROVAL_TRANSITION"

    def __init__(self, action: str, step_index: int, reason: str):
        self.action = action
        self.step_index = step_index
        self.reason = reason
        super().__init__(
            f"Cannot {action} step {step_index}: {reason}"
        )


# Configuration exceptions


class ConfigurationError(AwardEngineError):
    """Base exception for rule configuration errors."""

    code: str = "CONFIGURATION_ERROR"


class UnknownJurisdictionError(ConfigurationError):
    """No jurisdiction is configured under the requested code."""

    code: str = "UNKNOWN_JURISDICTION"

    def __init__(self, jurisdiction_code: str, available: tuple[str, ...] = ()):
        self.jurisdiction_code = jurisdiction_code
        self.available = available
        super().__init__(
            f"Unknown jurisdiction: {jurisdiction_code}"
            + (f" (available: {', '.join(available)})" if available else "")
        )


class UnknownRuleSetError(ConfigurationError):
    """No allowance rule set is configured under the requested name."""

    code: str = "UNKNOWN_RULE_SET"

    def __init__(self, rule_set: str):
        self.rule_set = rule_set
        super().__init__(f"Unknown allowance rule set: {rule_set}")


class InvalidConfigurationError(ConfigurationError):
    """A configuration fragment could not be parsed into domain objects."""

    code: str = "INVALID_CONFIGURATION"

    def __init__(self, source: str, detail: str):
        self.source = source
        self.detail = detail
        super().__init__(f"Invalid configuration in {source}: {detail}")
