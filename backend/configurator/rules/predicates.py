"""Predicate evaluator: a small JSON-Logic-compatible expression language.

Rule predicates arrive as plain JSON (dicts, lists, literals). They are compiled
into a tree of tagged nodes and evaluated by structural recursion against a
configuration mapping. Evaluation is pure: same (predicate, configuration)
pair, same boolean.

Supported operators:
    var                 field reference, {"var": "model"}
    == === != !==       strict (in)equality, no type coercion
    < <= > >=           ordering over numbers or over strings
    in                  membership of a value in a list
    missing / present   absence / presence of one or more fields
    and / or            boolean combinators, one or more operands
    ! / not             boolean negation

Usage:
    if evaluate({"==": [{"var": "model"}, "C"]}, {"model": "C"}):
        ...
"""

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Union

from configurator.errors import EvaluationError


class _Absent:
    """Value of a reference to a field the configuration does not carry."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"


ABSENT = _Absent()

# Values an unselected form widget submits count as absent
_ABSENT_VALUES = (None, "")


# ── Expression tree ──


@dataclass(frozen=True)
class Literal:
    value: Any


@dataclass(frozen=True)
class ListExpr:
    items: tuple


@dataclass(frozen=True)
class Var:
    name: str


@dataclass(frozen=True)
class Compare:
    op: str
    left: "Expression"
    right: "Expression"


@dataclass(frozen=True)
class Membership:
    needle: "Expression"
    haystack: "Expression"


@dataclass(frozen=True)
class FieldCheck:
    op: str  # "missing" or "present"
    names: tuple[str, ...]


@dataclass(frozen=True)
class BoolOp:
    op: str  # "and" or "or"
    operands: tuple


@dataclass(frozen=True)
class Not:
    operand: "Expression"


Expression = Union[Literal, ListExpr, Var, Compare, Membership, FieldCheck, BoolOp, Not]

_EQUALITY_ALIASES = {"==": "==", "===": "==", "!=": "!=", "!==": "!="}
_LITERAL_TYPES = (str, int, float, bool, type(None))


# ── Compilation ──


def _expect_arity(op: str, args: list, exactly: Optional[int] = None, at_least: Optional[int] = None) -> None:
    if exactly is not None and len(args) != exactly:
        raise EvaluationError(f"Operator '{op}' expects {exactly} argument(s), got {len(args)}")
    if at_least is not None and len(args) < at_least:
        raise EvaluationError(f"Operator '{op}' expects at least {at_least} argument(s), got {len(args)}")


def _field_name(op: str, value: Any) -> str:
    if not isinstance(value, str) or not value:
        raise EvaluationError(f"Operator '{op}' expects non-empty field names, got {value!r}")
    return value


def _compile_var(op: str, args: list) -> Expression:
    _expect_arity(op, args, exactly=1)
    return Var(name=_field_name(op, args[0]))


def _compile_compare(op: str, args: list) -> Expression:
    _expect_arity(op, args, exactly=2)
    canonical = _EQUALITY_ALIASES.get(op, op)
    return Compare(op=canonical, left=_compile(args[0]), right=_compile(args[1]))


def _compile_in(op: str, args: list) -> Expression:
    _expect_arity(op, args, exactly=2)
    haystack = _compile(args[1])
    if isinstance(haystack, Literal):
        raise EvaluationError(f"Operator 'in' expects a list as its second argument, got {args[1]!r}")
    return Membership(needle=_compile(args[0]), haystack=haystack)


def _compile_field_check(op: str, args: list) -> Expression:
    _expect_arity(op, args, at_least=1)
    return FieldCheck(op=op, names=tuple(_field_name(op, a) for a in args))


def _compile_bool_op(op: str, args: list) -> Expression:
    _expect_arity(op, args, at_least=1)
    return BoolOp(op=op, operands=tuple(_compile(a) for a in args))


def _compile_not(op: str, args: list) -> Expression:
    _expect_arity(op, args, exactly=1)
    return Not(operand=_compile(args[0]))


_COMPILERS: dict[str, Callable[[str, list], Expression]] = {
    "var": _compile_var,
    "==": _compile_compare,
    "===": _compile_compare,
    "!=": _compile_compare,
    "!==": _compile_compare,
    "<": _compile_compare,
    "<=": _compile_compare,
    ">": _compile_compare,
    ">=": _compile_compare,
    "in": _compile_in,
    "missing": _compile_field_check,
    "present": _compile_field_check,
    "and": _compile_bool_op,
    "or": _compile_bool_op,
    "!": _compile_not,
    "not": _compile_not,
}

SUPPORTED_OPERATORS = frozenset(_COMPILERS)

# Counts JSON containers, so {"!": [x]} is two levels
MAX_PREDICATE_DEPTH = 100


def _nesting_depth(logic: Any) -> int:
    depth = 0
    stack = [(logic, 1)]
    while stack:
        node, level = stack.pop()
        depth = max(depth, level)
        if depth > MAX_PREDICATE_DEPTH:
            break
        if isinstance(node, dict):
            stack.extend((child, level + 1) for child in node.values())
        elif isinstance(node, list):
            stack.extend((child, level + 1) for child in node)
    return depth


def compile_predicate(logic: Any) -> Expression:
    """Compile JSON logic into an expression tree.

    Raises:
        EvaluationError: unknown operator, wrong arity, nesting deeper than
            MAX_PREDICATE_DEPTH, or a node that is not a single-operator
            object, a list, or a JSON literal.
    """
    if _nesting_depth(logic) > MAX_PREDICATE_DEPTH:
        raise EvaluationError(f"Predicate is nested deeper than {MAX_PREDICATE_DEPTH} levels")
    return _compile(logic)


def _compile(logic: Any) -> Expression:
    if isinstance(logic, dict):
        if len(logic) != 1:
            raise EvaluationError(
                f"Predicate node must hold exactly one operator, got {len(logic)}: {sorted(logic)}"
            )
        op, args = next(iter(logic.items()))
        compiler = _COMPILERS.get(op)
        if compiler is None:
            raise EvaluationError(f"Unrecognized operation {op}")
        # JSON-Logic shorthand: {"!": x} is {"!": [x]}
        if not isinstance(args, list):
            args = [args]
        return compiler(op, args)

    if isinstance(logic, list):
        return ListExpr(items=tuple(_compile(item) for item in logic))

    if isinstance(logic, _LITERAL_TYPES):
        return Literal(value=logic)

    raise EvaluationError(f"Unsupported predicate node of type {type(logic).__name__}")


# ── Evaluation ──


def _kind(value: Any) -> str:
    """Kind used for strict comparison; bool is never a number."""
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "list"
    if value is None:
        return "null"
    return type(value).__name__


def _strict_equal(left: Any, right: Any) -> bool:
    if _kind(left) != _kind(right):
        return False
    if _kind(left) == "list":
        return len(left) == len(right) and all(_strict_equal(a, b) for a, b in zip(left, right))
    return left == right


def _compare(op: str, left: Any, right: Any) -> bool:
    # Anything involving an absent field, or values of different kinds, is a no-match
    if left is ABSENT or right is ABSENT:
        return False
    if _kind(left) != _kind(right):
        return False

    if op == "==":
        return _strict_equal(left, right)
    if op == "!=":
        return not _strict_equal(left, right)

    if _kind(left) not in ("number", "string"):
        return False
    if op == "<":
        return left < right
    if op == "<=":
        return left <= right
    if op == ">":
        return left > right
    return left >= right


def _lookup(configuration: Mapping[str, Any], name: str) -> Any:
    value = configuration.get(name, ABSENT)
    if value is ABSENT or value in _ABSENT_VALUES:
        return ABSENT
    return value


def _boolean(op: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise EvaluationError(f"Operator '{op}' expects boolean operands, got {value!r}")
    return value


def _value(expr: Expression, configuration: Mapping[str, Any]) -> Any:
    if isinstance(expr, Literal):
        return expr.value

    if isinstance(expr, ListExpr):
        return [_value(item, configuration) for item in expr.items]

    if isinstance(expr, Var):
        return _lookup(configuration, expr.name)

    if isinstance(expr, Compare):
        return _compare(expr.op, _value(expr.left, configuration), _value(expr.right, configuration))

    if isinstance(expr, Membership):
        needle = _value(expr.needle, configuration)
        haystack = _value(expr.haystack, configuration)
        if needle is ABSENT or not isinstance(haystack, list):
            return False
        return any(_strict_equal(needle, item) for item in haystack if item is not ABSENT)

    if isinstance(expr, FieldCheck):
        absent = [_lookup(configuration, name) is ABSENT for name in expr.names]
        return any(absent) if expr.op == "missing" else not any(absent)

    if isinstance(expr, BoolOp):
        # Every operand is checked, so a non-boolean operand fails on any configuration
        operands = [_boolean(expr.op, _value(o, configuration)) for o in expr.operands]
        return all(operands) if expr.op == "and" else any(operands)

    if isinstance(expr, Not):
        return not _boolean("!", _value(expr.operand, configuration))

    raise EvaluationError(f"Unknown expression node {type(expr).__name__}")


def evaluate_expression(expr: Expression, configuration: Mapping[str, Any]) -> bool:
    """Evaluate a compiled expression; the outcome must be a boolean."""
    result = _value(expr, configuration)
    if not isinstance(result, bool):
        raise EvaluationError(f"Predicate must evaluate to a boolean, got {result!r}")
    return result


def evaluate(logic: Any, configuration: Mapping[str, Any]) -> bool:
    """Compile and evaluate a predicate against a configuration.

    Args:
        logic: Predicate expression as decoded JSON
        configuration: Field name to value mapping

    Returns:
        True if the predicate holds (for a rule: a violation)

    Raises:
        EvaluationError: if the predicate is structurally invalid
    """
    return evaluate_expression(compile_predicate(logic), configuration)
