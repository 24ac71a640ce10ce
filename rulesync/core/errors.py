"""Project error hierarchy."""


class RuleSyncError(Exception):
    """Base error."""


class RuleFileIOError(RuleSyncError, OSError):
    """Raised when a rule file cannot be read or written in time."""


class RuleDecodeError(RuleSyncError, ValueError):
    """Raised when rule file content is not a valid rule set."""


class RuleEncodeError(RuleSyncError, ValueError):
    """Raised when a rule set cannot be serialized."""


class BootstrapError(RuleSyncError):
    """Raised when the rule directory layout cannot be prepared."""


class UnknownRuleKindError(RuleSyncError, KeyError):
    """Raised when a rule kind name is not recognized."""
