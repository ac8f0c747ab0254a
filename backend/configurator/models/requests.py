"""API request models."""

from typing import Any

from pydantic import Field, RootModel


class ConfigurationRequest(RootModel[dict[str, Any]]):
    """A product configuration as submitted by the form.

    Open mapping: model, color and size are the usual keys, but any field a
    rule references may be sent. Unselected fields are omitted, null or "".
    """

    root: dict[str, Any] = Field(
        default_factory=dict,
        examples=[{"model": "A", "color": "blue", "size": "M"}],
    )
