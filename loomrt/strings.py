"""Helpers for the string literals of the Loom language."""

from __future__ import annotations

_ESCAPES = {
    '"': '"',
    "\\": "\\",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}


def unescape_string_contents(raw: str) -> str:
    """Resolve backslash escapes in the body of a string literal.

    ``\\"``, ``\\\\``, ``\\n``, ``\\r`` and ``\\t`` are replaced; any other
    escape is kept verbatim, as is a trailing lone backslash.
    """
    out: list[str] = []
    chars = iter(raw)
    for ch in chars:
        if ch != "\\":
            out.append(ch)
            continue
        following = next(chars, None)
        if following is None:
            out.append("\\")
        elif following in _ESCAPES:
            out.append(_ESCAPES[following])
        else:
            out.append("\\")
            out.append(following)
    return "".join(out)