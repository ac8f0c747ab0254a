"""Rule models: rules, violations, and the aggregate validation result.

All models are immutable once built. A violation is a pure derivation of
(rule, configuration), so nothing here carries mutable state.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Rule(BaseModel):
    """A named predicate whose truth on a configuration denotes a violation."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1, description="Unique within a rule set")
    field: str = Field(min_length=1, description="Configuration field the violation is attributed to")
    message: str = Field(min_length=1, description="Human-readable violation message")
    logic: Any = Field(description="Predicate expression, checked at evaluation time")

    @field_validator("logic")
    @classmethod
    def _logic_not_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("logic must not be null")
        return value

    def violation(self, message: Optional[str] = None) -> "Violation":
        """Build the violation this rule produces, optionally with a replacement message."""
        return Violation(id=self.id, field=self.field, message=message or self.message)


class Violation(BaseModel):
    """A single rule violation, keyed by the triggering rule's id."""

    model_config = ConfigDict(frozen=True)

    id: str
    field: str
    message: str


class ValidationResult(BaseModel):
    """Verdict for one configuration against one rule set."""

    model_config = ConfigDict(frozen=True)

    valid: bool
    violations: tuple[Violation, ...] = ()

    @model_validator(mode="after")
    def _valid_iff_no_violations(self) -> "ValidationResult":
        if self.valid != (len(self.violations) == 0):
            raise ValueError("valid must be true exactly when there are no violations")
        return self

    @classmethod
    def build(cls, violations: list[Violation]) -> "ValidationResult":
        """Build a result whose valid flag is derived from the violation list."""
        return cls(valid=len(violations) == 0, violations=tuple(violations))
