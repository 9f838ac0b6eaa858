"""Shared pytest fixtures for opforge tests."""

from __future__ import annotations

import io
from collections.abc import Callable

import pytest

from opforge import NamedValue, OpDefinition, traits, types
from opforge._generator.emitter import CodeEmitter
from opforge._generator.op_class import GeneratedClass
from opforge._generator.op_emitter import build_op_class
from opforge._internal.defs import TypeConstraint

# ============================================================================
# Schema Fixtures
# ============================================================================


@pytest.fixture
def value() -> Callable[..., NamedValue]:
    """Factory for operands and results; unnamed and unconstrained by default."""

    def make(
        name: str = "",
        constraint: TypeConstraint = types.AnyType,
        variadic: bool = False,
    ) -> NamedValue:
        return NamedValue(name=name, constraint=constraint, variadic=variadic)

    return make


@pytest.fixture
def make_op() -> Callable[..., OpDefinition]:
    """Factory for op definitions with a default name and class."""

    def make(**kwargs: object) -> OpDefinition:
        kwargs.setdefault("operation_name", "test.op")
        kwargs.setdefault("cpp_class_name", "TestOp")
        return OpDefinition(**kwargs)  # type: ignore[arg-type]

    return make


@pytest.fixture
def add_op(value) -> OpDefinition:
    """Two unnamed operands, one unnamed result, same operand/result type."""
    return OpDefinition(
        operation_name="add",
        cpp_class_name="AddOp",
        operands=(value(), value()),
        results=(value(),),
        traits=(traits.SameOperandsAndResultType,),
    )


# ============================================================================
# Emission Helpers
# ============================================================================


@pytest.fixture
def generate() -> Callable[[OpDefinition], GeneratedClass]:
    return build_op_class


@pytest.fixture
def decl_text() -> Callable[[OpDefinition], str]:
    def render(op_def: OpDefinition) -> str:
        emitter = CodeEmitter()
        build_op_class(op_def).write_decl_to(emitter)
        return emitter.get()

    return render


@pytest.fixture
def def_text() -> Callable[[OpDefinition], str]:
    def render(op_def: OpDefinition) -> str:
        emitter = CodeEmitter()
        build_op_class(op_def).write_def_to(emitter)
        return emitter.get()

    return render


@pytest.fixture
def sink() -> io.StringIO:
    return io.StringIO()
