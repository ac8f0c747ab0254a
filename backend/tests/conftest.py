"""Shared test fixtures."""

import json
from pathlib import Path
from typing import Any, Callable

import pytest

from configurator.rules.loader import RuleSet, load_rule_set


@pytest.fixture(scope="session")
def rule_set() -> RuleSet:
    """The bundled authoritative rule set."""
    return load_rule_set()


@pytest.fixture
def write_rules(tmp_path: Path) -> Callable[[Any], Path]:
    """Write rule data to a temporary JSON file and return its path."""

    def _write(data: Any, name: str = "rules.json") -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def broken_rule_entries() -> list[dict]:
    """Two sound rules around one whose predicate uses an unknown operator."""
    return [
        {
            "id": "no-red-model-c",
            "field": "color",
            "message": "Red is not allowed for model C",
            "logic": {"and": [{"==": [{"var": "model"}, "C"]}, {"==": [{"var": "color"}, "red"]}]},
        },
        {
            "id": "broken-rule",
            "field": "model",
            "message": "Never shown",
            "logic": {"regex_match": [{"var": "model"}, "^[A-C]$"]},
        },
        {
            "id": "model-required",
            "field": "model",
            "message": "Please select a model",
            "logic": {"missing": ["model"]},
        },
    ]
