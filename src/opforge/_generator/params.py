"""
Helpers for rewriting C++ parameter lists.

A method is declared once, with default arguments, and defined separately,
where C++ forbids repeating them. `strip_param_defaults` turns the declared
parameter list into the one used by the definition.
"""

from __future__ import annotations

_OPENERS = {"(": ")", "[": "]", "{": "}", "<": ">"}
_CLOSERS = {v: k for k, v in _OPENERS.items()}
# Characters that turn a following '=' into part of an operator.
_OPERATOR_PREFIXES = "=!<>+-*/%&|^"


def split_params(params: str) -> list[str]:
    """
    Splits a parameter list on commas that are not nested in brackets.

    Parentheses, square brackets, braces and angle brackets are tracked, and
    string and character literals are skipped. Surrounding whitespace is
    removed from each parameter; empty parameters are dropped.
    """
    parts: list[str] = []
    stack: list[str] = []
    current: list[str] = []
    quote: str | None = None
    i = 0
    while i < len(params):
        ch = params[i]
        current.append(ch)
        if quote is not None:
            if ch == "\\" and i + 1 < len(params):
                current.append(params[i + 1])
                i += 1
            elif ch == quote:
                quote = None
        elif ch in "\"'":
            quote = ch
        elif ch in _OPENERS:
            stack.append(_OPENERS[ch])
        elif ch in _CLOSERS and stack and stack[-1] == ch:
            stack.pop()
        elif ch == "," and not stack:
            current.pop()
            parts.append("".join(current))
            current = []
        i += 1
    parts.append("".join(current))
    return [p.strip() for p in parts if p.strip()]


def _find_default(param: str) -> int:
    """Returns the index of the top-level `=` starting a default, or -1."""
    depth = 0
    quote: str | None = None
    i = 0
    while i < len(param):
        ch = param[i]
        if quote is not None:
            if ch == "\\":
                i += 1
            elif ch == quote:
                quote = None
        elif ch in "\"'":
            quote = ch
        elif ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            depth = max(depth - 1, 0)
        elif ch == "=" and depth == 0:
            prev = param[i - 1] if i > 0 else ""
            nxt = param[i + 1] if i + 1 < len(param) else ""
            if prev not in _OPERATOR_PREFIXES and nxt != "=":
                return i
        i += 1
    return -1


def strip_param_defaults(params: str) -> str:
    """
    Removes default values from a C++ parameter list.

    Example:
        >>> strip_param_defaults("Context ctx, int a = 1, int b = 2")
        'Context ctx, int a, int b'
    """
    stripped = []
    for param in split_params(params):
        eq = _find_default(param)
        if eq >= 0:
            param = param[:eq].rstrip()
        stripped.append(param)
    return ", ".join(stripped)
