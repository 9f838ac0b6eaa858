"""
Substitution of `$` placeholders in C++ code templates.

Constraint predicates and attribute conversions are written as templates:
`$_self` stands for the value being checked or converted, `$_op` for the
operation, `$_builder` for an attribute builder, and `$0`...`$9` for
positional arguments. `$$` produces a literal `$`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace

_PLACEHOLDER = re.compile(r"\$(\$|_self|_op|_builder|\d)")


@dataclass(frozen=True)
class FmtContext:
    self_expr: str | None = None
    op_expr: str | None = None
    builder_expr: str | None = None

    def with_self(self, expr: str) -> FmtContext:
        return replace(self, self_expr=expr)

    def with_op(self, expr: str) -> FmtContext:
        return replace(self, op_expr=expr)

    def with_builder(self, expr: str) -> FmtContext:
        return replace(self, builder_expr=expr)


def tgfmt(template: str, ctx: FmtContext | None = None, *args: object) -> str:
    """
    Formats `template`, replacing placeholders bound in `ctx` or `args`.

    Placeholders with no binding are kept as-is, so a partially bound
    template can be formatted again later.
    """
    ctx = ctx or FmtContext()
    special = {
        "_self": ctx.self_expr,
        "_op": ctx.op_expr,
        "_builder": ctx.builder_expr,
    }

    def substitute(match: re.Match[str]) -> str:
        key = match.group(1)
        if key == "$":
            return "$"
        if key.isdigit():
            index = int(key)
            return str(args[index]) if index < len(args) else match.group(0)
        value = special[key]
        return value if value is not None else match.group(0)

    return _PLACEHOLDER.sub(substitute, template)
