"""Rule core: declarative rules, the predicate evaluator and the violation collector.

Usage:
    from configurator.rules import load_rule_set, collect

    rule_set = load_rule_set()
    result = collect({"model": "C", "color": "red"}, rule_set)
"""

from configurator.rules.collector import ViolationCollector, collect
from configurator.rules.loader import RuleSet, load_rule_set, parse_rule_set
from configurator.rules.models import Rule, ValidationResult, Violation
from configurator.rules.predicates import ABSENT, compile_predicate, evaluate

__all__ = [
    "ABSENT",
    "Rule",
    "RuleSet",
    "ValidationResult",
    "Violation",
    "ViolationCollector",
    "collect",
    "compile_predicate",
    "evaluate",
    "load_rule_set",
    "parse_rule_set",
]
