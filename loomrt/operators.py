"""Binary operators, truthiness and operator precedence of the language."""

from __future__ import annotations

import re
from typing import Any, Optional

from loomrt.errors import LoomError
from loomrt.values import PathValue, as_string

_PRECEDENCE = {
    "||": 1,
    "&&": 2,
    "==": 3,
    "!=": 3,
    ">": 4,
    "<": 4,
    ">=": 4,
    "<=": 4,
    "+": 5,
    "-": 5,
    "*": 6,
    "/": 6,
}

_FLOAT_TEXT = re.compile(
    r"[+-]?(?:[0-9]+\.?[0-9]*(?:[eE][+-]?[0-9]+)?"
    r"|\.[0-9]+(?:[eE][+-]?[0-9]+)?"
    r"|(?i:inf|infinity|nan))"
)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _parse_float(text: str) -> Optional[float]:
    stripped = text.strip()
    if not _FLOAT_TEXT.fullmatch(stripped):
        return None
    return float(stripped)


def _to_number(value: Any) -> Optional[float]:
    if _is_number(value):
        return float(value)
    if isinstance(value, PathValue):
        return _parse_float(value.path)
    if isinstance(value, str):
        return _parse_float(value)
    return None


def _add(left: Any, right: Any) -> Any:
    if _is_number(left) and _is_number(right):
        return float(left) + float(right)
    if type(left) is str and type(right) is str:
        return left + right
    return as_string(left) + as_string(right)


def _arith(left: Any, right: Any, verb: str) -> tuple[float, float]:
    if _is_number(left) and _is_number(right):
        return float(left), float(right)
    raise LoomError(f"Cannot {verb} non-numbers")


def _compare(left: Any, op: str, right: Any) -> bool:
    a = _to_number(left)
    b = _to_number(right)
    if a is None or b is None:
        raise LoomError(f"Cannot compare '{op}' for non-numbers")
    if op == ">":
        return a > b
    if op == "<":
        return a < b
    if op == ">=":
        return a >= b
    return a <= b


def eval_binary_op(left: Any, op: str, right: Any) -> Any:
    """Apply a non-short-circuiting binary operator to two evaluated values.

    Raises LoomError for operands the operator does not accept, for
    division by zero and for unknown operators.
    """
    if op == "+":
        return _add(left, right)
    if op == "-":
        a, b = _arith(left, right, "subtract")
        return a - b
    if op == "*":
        a, b = _arith(left, right, "multiply")
        return a * b
    if op == "/":
        a, b = _arith(left, right, "divide")
        if b == 0.0:
            raise LoomError("Division by zero")
        return a / b
    if op == "==":
        return as_string(left) == as_string(right)
    if op == "!=":
        return as_string(left) != as_string(right)
    if op in (">", "<", ">=", "<="):
        return _compare(left, op, right)
    raise LoomError(f"Unknown operator: {op}")


def is_truthy(value: Any) -> bool:
    """Return whether a value counts as true in a condition."""
    if isinstance(value, bool):
        return value
    if _is_number(value):
        return value != 0
    if value is None:
        return False
    return as_string(value) != ""


def op_precedence(op: str) -> int:
    """Binding strength of a binary operator; higher binds tighter, unknown is 0."""
    return _PRECEDENCE.get(op, 0)