"""Violation collector: applies every rule of a rule set to one configuration.

Usage:
    result = collect(configuration, rule_set)
    if not result.valid:
        # render result.violations grouped by field
"""

import time
from typing import Any, Iterable, Mapping

import structlog

from configurator.errors import EvaluationError
from configurator.rules.models import Rule, ValidationResult, Violation
from configurator.rules.predicates import evaluate

logger = structlog.get_logger()

EVALUATION_ERROR_PREFIX = "Rule evaluation error"


def evaluate_rule(rule: Rule, configuration: Mapping[str, Any]) -> bool:
    """Evaluate one rule's predicate, tagging any failure with the rule id."""
    try:
        return evaluate(rule.logic, configuration)
    except EvaluationError as e:
        e.rule_id = rule.id
        raise


def collect(configuration: Mapping[str, Any], rule_set: Iterable[Rule]) -> ValidationResult:
    """Run every rule in declared order and gather the violations.

    A rule whose predicate cannot be evaluated still yields a violation, with
    a message describing the failure, so one broken rule never hides the
    results of the others.

    Args:
        configuration: Field name to value mapping
        rule_set: Rules in evaluation order

    Returns:
        ValidationResult, valid iff no violation was produced
    """
    start_time = time.perf_counter()
    violations: list[Violation] = []
    failed_rules: list[str] = []

    for rule in rule_set:
        try:
            if evaluate_rule(rule, configuration):
                violations.append(rule.violation())
        except EvaluationError as e:
            logger.error("rule_evaluation_failed", rule_id=rule.id, error=e.message)
            failed_rules.append(rule.id)
            violations.append(rule.violation(f"{EVALUATION_ERROR_PREFIX}: {e.message}"))

    result = ValidationResult.build(violations)

    logger.debug(
        "validation_complete",
        valid=result.valid,
        violation_count=len(violations),
        failed_rules=failed_rules,
        duration_ms=round((time.perf_counter() - start_time) * 1000, 3),
    )

    return result


class ViolationCollector:
    """Collector bound to one rule set.

    The rule set is read-only, so one instance can serve concurrent requests.
    """

    def __init__(self, rule_set: Iterable[Rule]):
        self.rules = tuple(rule_set)

    def collect(self, configuration: Mapping[str, Any]) -> ValidationResult:
        return collect(configuration, self.rules)

    @property
    def rule_ids(self) -> tuple[str, ...]:
        return tuple(rule.id for rule in self.rules)
