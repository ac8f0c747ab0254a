"""Status events emitted by the dual validation coordinator."""

from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, Field

from configurator.rules.models import Violation


class BaseEvent(BaseModel):
    """Base model for coordinator events."""

    type: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def model_dump(self, **kwargs):
        """Always serialize datetimes as ISO strings for JSON safety."""
        kwargs.setdefault("mode", "json")
        return super().model_dump(**kwargs)


class StatusChangedEvent(BaseEvent):
    """Emitted on every status transition of a validation round."""

    type: Literal["status_changed"] = "status_changed"
    sequence: int
    previous: str
    status: str
    violations: list[Violation] = []
    message: Optional[str] = None
