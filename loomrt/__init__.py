"""Runtime building blocks for the Loom pipeline language."""

__version__ = "0.1.0"

__all__ = [
    "atomic",
    "builtins",
    "csvdata",
    "errors",
    "files",
    "operators",
    "policy",
    "strings",
    "values",
]