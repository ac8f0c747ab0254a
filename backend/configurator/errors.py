"""Error types raised by the configurator core, its HTTP client and its status machine.

A configuration that fails rules is NOT an error: it is a normal
ValidationResult with valid=False.
"""

from typing import Optional


class ConfiguratorError(Exception):
    """Base class for all configurator errors."""


class RuleSetLoadError(ConfiguratorError):
    """The declarative rule source is malformed or has duplicate ids.

    Fatal at startup: the service must not serve validation without a rule set.
    """


class EvaluationError(ConfiguratorError):
    """A predicate is structurally invalid (unknown operator, wrong arity, bad operand)."""

    def __init__(self, message: str, rule_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.rule_id = rule_id

    def __str__(self) -> str:
        if self.rule_id:
            return f"{self.message} (rule '{self.rule_id}')"
        return self.message


class TransportError(ConfiguratorError):
    """The remote validation call did not complete with a usable response."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class InvalidTransitionError(ConfiguratorError):
    """The validation status machine was asked for a transition it does not allow."""
