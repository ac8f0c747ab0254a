"""Rule set loader: reads the declarative rule source once and freezes it.

The source is a JSON document, either {"rules": [...]} or a bare list, where
each entry is {"id", "field", "message", "logic"}. Predicate structure is NOT
checked here; a broken predicate surfaces as an evaluation error for that rule
only, so it cannot keep the service from starting.
"""

import json
from pathlib import Path
from typing import Any, Iterator, Optional, Union

import structlog
from pydantic import ValidationError as PydanticValidationError

from configurator.errors import RuleSetLoadError
from configurator.rules.models import Rule

logger = structlog.get_logger()

DEFAULT_RULES_PATH = Path(__file__).parent / "rules.json"


class RuleSet:
    """Ordered, read-only collection of rules with unique ids."""

    __slots__ = ("_rules", "_by_id", "source")

    def __init__(self, rules: list[Rule], source: Optional[str] = None):
        by_id: dict[str, Rule] = {}
        for rule in rules:
            if rule.id in by_id:
                raise RuleSetLoadError(f"Duplicate rule id '{rule.id}'")
            by_id[rule.id] = rule
        self._rules = tuple(rules)
        self._by_id = by_id
        self.source = source

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __getitem__(self, index: int) -> Rule:
        return self._rules[index]

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._by_id

    def __repr__(self) -> str:
        return f"RuleSet({len(self._rules)} rules, source={self.source!r})"

    @property
    def ids(self) -> tuple[str, ...]:
        return tuple(rule.id for rule in self._rules)

    def get(self, rule_id: str) -> Optional[Rule]:
        """Look up a rule by id."""
        return self._by_id.get(rule_id)


def parse_rule_set(data: Any, source: Optional[str] = None) -> RuleSet:
    """Build a RuleSet from already-decoded rule data.

    Raises:
        RuleSetLoadError: wrong top-level shape, a malformed entry, or duplicate ids
    """
    if isinstance(data, dict):
        if "rules" not in data:
            raise RuleSetLoadError("Rule source object has no 'rules' key")
        entries = data["rules"]
    else:
        entries = data

    if not isinstance(entries, list):
        raise RuleSetLoadError(f"Rules must be a list, got {type(entries).__name__}")

    rules: list[Rule] = []
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise RuleSetLoadError(f"Rule #{index + 1} must be an object, got {type(entry).__name__}")
        try:
            rules.append(Rule.model_validate(entry))
        except PydanticValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'entry'}: {err['msg']}" for err in e.errors()
            )
            label = entry.get("id") or f"#{index + 1}"
            raise RuleSetLoadError(f"Rule {label} is malformed: {problems}") from e

    return RuleSet(rules, source=source)


def load_rule_set(path: Union[str, Path, None] = None) -> RuleSet:
    """Load the rule set from a JSON file.

    Args:
        path: Rule source file. Defaults to the bundled rules.json.

    Returns:
        Immutable RuleSet in declared order

    Raises:
        RuleSetLoadError: file missing or unreadable, not UTF-8 JSON, or any
            malformed/duplicate entry
    """
    rules_path = Path(path) if path else DEFAULT_RULES_PATH

    try:
        data = json.loads(rules_path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise RuleSetLoadError(f"Rule source not found: {rules_path}") from e
    except OSError as e:
        raise RuleSetLoadError(f"Rule source {rules_path} could not be read: {e}") from e
    except UnicodeDecodeError as e:
        raise RuleSetLoadError(f"Rule source {rules_path} is not valid UTF-8: {e}") from e
    except json.JSONDecodeError as e:
        raise RuleSetLoadError(f"Rule source {rules_path} is not valid JSON: {e}") from e
    except RecursionError as e:
        raise RuleSetLoadError(f"Rule source {rules_path} is nested too deeply") from e

    rule_set = parse_rule_set(data, source=str(rules_path))

    logger.info("rule_set_loaded", source=str(rules_path), rule_count=len(rule_set), rule_ids=list(rule_set.ids))

    return rule_set
