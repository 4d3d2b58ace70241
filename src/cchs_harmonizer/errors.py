"""
Configuration-time errors.

These are the only exceptions the harmonizer raises on purpose. Each one
means the rule document itself is broken, so it is raised while loading,
before any respondent row is touched. Bad row data never raises; it is
folded into a tagged-missing value instead.
"""


class RuleConfigError(Exception):
    """Base class for a broken rule document."""
    pass


class RuleParseError(RuleConfigError):
    """Raised when a rule document cannot be parsed."""
    pass


class DependencyCycleError(RuleConfigError):
    """Raised when derived variables depend on each other in a loop."""

    def __init__(self, cycle):
        self.cycle = list(cycle)
        super().__init__(f"Cyclic derived-variable dependency: {' -> '.join(self.cycle)}")


class UnknownDerivationError(RuleConfigError):
    """Raised when a rule names a derivation function that is not registered."""
    pass


class MissingPatternError(RuleConfigError):
    """Raised when a raw-column rule declares no missing-code pattern."""
    pass


class DuplicateRuleError(RuleConfigError):
    """Raised when two rules produce the same target in the same cycle."""
    pass
