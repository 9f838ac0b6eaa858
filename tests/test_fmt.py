"""Tests for C++ template formatting."""

from opforge._generator.fmt import FmtContext, tgfmt


def test_self_substitution():
    ctx = FmtContext().with_self("x")
    assert tgfmt("$_self.isa<TensorType>()", ctx) == "x.isa<TensorType>()"


def test_builder_and_positional():
    ctx = FmtContext().with_builder("b")
    assert tgfmt("$_builder.getI32IntegerAttr($0)", ctx, 5) == "b.getI32IntegerAttr(5)"


def test_unbound_placeholders_are_kept():
    ctx = FmtContext().with_self("v")
    assert tgfmt("$_op and $_self and $1", ctx, "zero") == "$_op and v and $1"


def test_dollar_escape():
    assert tgfmt("cost: $$5") == "cost: $5"


def test_contexts_are_immutable():
    base = FmtContext().with_op("op")
    derived = base.with_self("s")
    assert base.self_expr is None
    assert derived.op_expr == "op"
    assert derived.self_expr == "s"
