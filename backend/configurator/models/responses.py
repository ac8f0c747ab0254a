"""API response models."""

from typing import Literal, Optional

from pydantic import BaseModel

from configurator.rules.models import ValidationResult, Violation


class ValidationResponse(BaseModel):
    """Wire shape of a validation verdict: {valid, violations: [{id, field, message}]}."""

    valid: bool
    violations: list[Violation] = []

    @classmethod
    def from_result(cls, result: ValidationResult) -> "ValidationResponse":
        return cls(valid=result.valid, violations=list(result.violations))


class RuleSummary(BaseModel):
    """Public view of a loaded rule (predicate omitted)."""

    id: str
    field: str
    message: str


class HealthResponse(BaseModel):
    """System health check response."""

    status: Literal["healthy", "unhealthy"]
    version: str
    uptime_seconds: float
    rule_count: int
    rules_source: Optional[str] = None
