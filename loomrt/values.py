"""Runtime values and the scoped variable environment.

Values are plain Python objects: ``str`` for strings, :class:`PathValue`
for paths, ``int``/``float`` for numbers, ``bool``, ``list`` for lists,
``dict`` for records and ``None`` for null.  Lambdas (objects with a
``param`` attribute) and function definitions (objects with ``name``,
``parameters`` and ``body``) are carried as they are.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Decimal
from pathlib import PurePath
from typing import Any, Optional

from loomrt.errors import LoomError

_I64_MAX = 2**63 - 1
_I64_MIN = -(2**63)
_ASCII_FOLD = str.maketrans("ABCDEFGHIJKLMNOPQRSTUVWXYZ", "abcdefghijklmnopqrstuvwxyz")


@dataclass(frozen=True)
class PathValue:
    """A file-system path flowing through a pipe."""

    path: str

    def __str__(self) -> str:
        return self.path


def _is_function(value: Any) -> bool:
    return all(hasattr(value, attr) for attr in ("name", "parameters", "body"))


def _is_lambda(value: Any) -> bool:
    return hasattr(value, "param") and hasattr(value, "body")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _format_number(n: Any) -> str:
    if isinstance(n, int):
        return str(n)
    if math.isnan(n):
        return "NaN"
    if math.isinf(n):
        return "inf" if n > 0 else "-inf"
    truncated = max(min(int(n), _I64_MAX), _I64_MIN)
    if float(truncated) == n:
        return str(truncated)
    return format(Decimal(repr(n)), "f")


def _ascii_lower(text: str) -> str:
    return text.translate(_ASCII_FOLD)


def as_string(value: Any) -> str:
    """Render a value the way the runtime prints and compares it."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, PathValue):
        return value.path
    if isinstance(value, str):
        return value
    if _is_number(value):
        return _format_number(value)
    if isinstance(value, list):
        return "[" + ", ".join(as_string(item) for item in value) + "]"
    if isinstance(value, dict):
        parts = (f"{key}: {as_string(item)}" for key, item in value.items())
        return "{" + ", ".join(parts) + "}"
    if _is_lambda(value):
        return f"<lambda {value.param}>"
    if _is_function(value):
        return f"<function {value.name}>"
    return str(value)


def as_path(value: Any) -> Optional[str]:
    """Return the path a value stands for, or None when it has none."""
    if isinstance(value, PathValue):
        return value.path
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        inner = value.get("path")
        if isinstance(inner, PathValue):
            return inner.path
        if isinstance(inner, str):
            return inner
    return None


def _debug(value: Any) -> str:
    if value is None:
        return "Null"
    if isinstance(value, bool):
        kind = "Boolean"
    elif _is_number(value):
        kind = "Number"
    elif isinstance(value, list):
        kind = "List"
    elif _is_lambda(value):
        kind = "Lambda"
    elif _is_function(value):
        kind = "Function"
    else:
        kind = type(value).__name__
    return f"{kind}({as_string(value)})"


def get_member(value: Any, member: str) -> Any:
    """Look up ``value.member``, raising LoomError when it does not exist."""
    if isinstance(value, PathValue):
        if member == "name":
            name = PurePath(value.path).name
            return "" if name == ".." else name
        raise LoomError(f"No member '{member}' on path")
    if isinstance(value, dict):
        if member in value:
            return value[member]
        folded = _ascii_lower(member)
        for key, item in value.items():
            if _ascii_lower(key) == folded:
                return item
        raise LoomError(f"No member '{member}' found on record")
    if isinstance(value, str):
        if member == "length":
            return float(len(value.encode("utf-8")))
        raise LoomError(f"No member '{member}' on string")
    raise LoomError(f"Cannot access member '{member}' on {_debug(value)}")


class Environment:
    """A stack of variable scopes; the innermost scope wins on lookup."""

    def __init__(self) -> None:
        self._scopes: list[dict[str, Any]] = [{}]

    def push_scope(self) -> None:
        self._scopes.append({})

    def pop_scope(self) -> None:
        """Drop the innermost scope; the global scope is never dropped."""
        if len(self._scopes) > 1:
            self._scopes.pop()

    def set(self, name: str, value: Any) -> None:
        self._scopes[-1][name] = value

    def get(self, name: str) -> Any:
        """Return the value bound to *name*; raise KeyError when unbound."""
        for scope in reversed(self._scopes):
            if name in scope:
                return scope[name]
        raise KeyError(name)

    def __contains__(self, name: object) -> bool:
        return any(name in scope for scope in self._scopes)

    def register_function(self, func: Any) -> None:
        self.set(func.name, func)

    def get_function(self, name: str) -> Any:
        """Return the function definition bound to *name*, or None."""
        for scope in reversed(self._scopes):
            if name in scope:
                value = scope[name]
                return value if _is_function(value) else None
        return None

    def extract_globals(self) -> dict[str, Any]:
        """Return a copy of the global scope, used for module exports."""
        return dict(self._scopes[0])