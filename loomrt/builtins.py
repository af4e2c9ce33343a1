"""Built-in directives and functions available to every program."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Callable, Optional, Sequence

from loomrt.csvdata import parse_csv
from loomrt.errors import LoomError
from loomrt.values import PathValue, as_path, as_string

DirectiveHandler = Callable[[Sequence[Any], Any], Any]
FunctionHandler = Callable[[Sequence[Any]], Any]

DIRECTIVE_WATCH = "watch"
DIRECTIVE_ATOMIC = "atomic"
DIRECTIVE_LINES = "lines"
DIRECTIVE_CSV_PARSE = "csv.parse"
DIRECTIVE_LOG = "log"
DIRECTIVE_READ = "read"
DIRECTIVE_WRITE = "write"

DEFAULT_MAX_FILE_SIZE_BYTES = 32 * 1024 * 1024
DEFAULT_MAX_ROWS = 100_000

_UNSIGNED = re.compile(r"\+?[0-9]+")


def _positive_env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not _UNSIGNED.fullmatch(raw):
        return default
    value = int(raw)
    return value if value > 0 else default


def max_file_size_limit() -> int:
    """Largest file size in bytes that built-ins will read."""
    return _positive_env_int("LOOM_MAX_FILE_SIZE_BYTES", DEFAULT_MAX_FILE_SIZE_BYTES)


def max_rows_limit() -> int:
    """Largest number of CSV data rows that built-ins will parse."""
    return _positive_env_int("LOOM_MAX_ROWS", DEFAULT_MAX_ROWS)


def ensure_file_size_limit(path: str) -> None:
    """Raise LoomError when *path* cannot be stat'ed or exceeds the size limit."""
    try:
        size = os.stat(path).st_size
    except OSError as exc:
        raise LoomError(f"Failed to stat '{path}': {exc}") from exc
    limit = max_file_size_limit()
    if size > limit:
        raise LoomError(
            f"File '{path}' is {size} bytes, above max_file_size_bytes ({limit})"
        )


def _read_text(path: str) -> str:
    try:
        return Path(path).read_bytes().decode("utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise LoomError(f"Failed to read '{path}': {exc}") from exc


def _read_limited(path: str) -> str:
    ensure_file_size_limit(path)
    return _read_text(path)


def _split_lines(text: str) -> list[str]:
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def extract_read_path(value: Any) -> Optional[str]:
    """Find the path a value refers to: a path, a string, or a record's path/file."""
    if isinstance(value, PathValue):
        return value.path
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        if "path" in value:
            found = extract_read_path(value["path"])
            if found is not None:
                return found
        if "file" in value:
            return extract_read_path(value["file"])
    return None


def _first(args: Sequence[Any], default: Any) -> Any:
    return args[0] if args else default


def _watch(args: Sequence[Any], pipe_val: Any) -> Any:
    path = as_string(args[0]) if args else "."
    return {"file": PathValue(path), "path": PathValue(path), "type": "created"}


def _atomic(args: Sequence[Any], pipe_val: Any) -> Any:
    return pipe_val


def _lines(args: Sequence[Any], pipe_val: Any) -> Any:
    source = _first(args, pipe_val)
    source_path = as_path(source)
    if source_path is None:
        raise LoomError("@lines expects a file path source")
    return _split_lines(_read_limited(source_path))


def _csv_source(pipe_val: Any) -> tuple[str, str]:
    if isinstance(pipe_val, PathValue):
        return pipe_val.path, _read_limited(pipe_val.path)
    if isinstance(pipe_val, str):
        if "\n" in pipe_val or "\r" in pipe_val:
            return pipe_val, pipe_val
        if os.path.exists(pipe_val):
            return pipe_val, _read_limited(pipe_val)
        return pipe_val, pipe_val
    if isinstance(pipe_val, list):
        return "list", "".join(as_string(item) for item in pipe_val)
    if isinstance(pipe_val, dict):
        path = as_path(pipe_val)
        if path is None:
            raise LoomError("@csv.parse received a record without a file path")
        return path, _read_limited(path)
    text = as_string(pipe_val)
    if os.path.exists(text):
        return text, _read_limited(text)
    return text, text


def _csv_parse(args: Sequence[Any], pipe_val: Any) -> Any:
    source, text = _csv_source(pipe_val)
    return parse_csv(text, source, max_rows_limit())


def _log(args: Sequence[Any], pipe_val: Any) -> Any:
    print(as_string(pipe_val))
    return pipe_val


def _read(args: Sequence[Any], pipe_val: Any) -> Any:
    source = _first(args, pipe_val)
    path = extract_read_path(source)
    if path is None:
        raise LoomError("@read expects a path, event, or variable containing a path")
    return _read_limited(path)


def _write(args: Sequence[Any], pipe_val: Any) -> Any:
    path = as_string(args[0]) if args else "output.txt"
    try:
        with open(path, "w", encoding="utf-8", newline="") as handle:
            handle.write(as_string(pipe_val))
    except OSError as exc:
        raise LoomError(f"Failed to write '{path}': {exc}") from exc
    return path


def _passthrough(args: Sequence[Any]) -> Any:
    return _first(args, None)


def _print(args: Sequence[Any]) -> Any:
    message = as_string(args[0]) if args else ""
    print(message)
    return message


def _concat(args: Sequence[Any]) -> Any:
    return "".join(as_string(item) for item in args)


def _exists(args: Sequence[Any]) -> Any:
    path = as_string(args[0]) if args else ""
    return os.path.exists(path)


class BuiltinRegistry:
    """Lookup table of built-in directive and function handlers.

    Directive handlers take ``(args, pipe_value)``; function handlers take
    ``(args)``.  Both return the resulting value and raise LoomError on failure.
    """

    def __init__(self) -> None:
        self._directives: dict[str, DirectiveHandler] = {
            DIRECTIVE_WATCH: _watch,
            DIRECTIVE_ATOMIC: _atomic,
            DIRECTIVE_LINES: _lines,
            DIRECTIVE_CSV_PARSE: _csv_parse,
            DIRECTIVE_LOG: _log,
            DIRECTIVE_READ: _read,
            DIRECTIVE_WRITE: _write,
        }
        self._functions: dict[str, FunctionHandler] = {
            "filter": _passthrough,
            "map": _passthrough,
            "print": _print,
            "concat": _concat,
            "exists": _exists,
        }

    def get_directive(self, name: str) -> Optional[DirectiveHandler]:
        return self._directives.get(name)

    def get_builtin_function(self, name: str) -> Optional[FunctionHandler]:
        return self._functions.get(name)

    def directive_names(self) -> list[str]:
        return list(self._directives)

    def function_names(self) -> list[str]:
        return list(self._functions)