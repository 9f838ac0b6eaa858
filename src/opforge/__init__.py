"""
opforge: generate the C++ boilerplate of MLIR-style operations.

Operations are described once, in Python, and opforge emits the op class
declarations and the method definitions: accessors, builders, parser and
printer hooks, and verifiers.

Example:
    from opforge import Dialect, Op, op, traits, types

    toy = Dialect("toy", "toy")

    class AddOp(Op):
        dialect = toy
        traits = [traits.NoSideEffect, traits.SameOperandsAndResultType]
        lhs = op.operand(types.Tensor)
        rhs = op.operand(types.Tensor)
        sum = op.result(types.Tensor)
"""

__version__ = "0.0.0.dev0"

from ._generator.gen_ops import (
    GENERATORS,
    GenInfo,
    GenOptions,
    emit_op_decls,
    emit_op_defs,
    run_generator,
)
from ._generator.op_emitter import build_op_class, emit_op_decl, emit_op_def
from ._internal import traits, types
from ._internal.defs import (
    AttrConstraint,
    CustomBuilder,
    Derived,
    NamedAttribute,
    NamedValue,
    NativeOpTrait,
    OpDefinition,
    Pred,
    PredOpTrait,
    SourceLocation,
    Stored,
    TypeConstraint,
)
from ._internal.domain import Dialect, Op
from ._internal.domain import cpp_builder_instance as cpp
from ._internal.domain import op_builder_instance as op
from ._internal.exceptions import (
    DefinitionError,
    OpForgeError,
    SchemaContradictionError,
    SchemaError,
    SchemaShapeError,
    UnknownGeneratorError,
)

__all__ = [
    "Dialect",
    "Op",
    "op",
    "cpp",
    "types",
    "traits",
    "AttrConstraint",
    "CustomBuilder",
    "Derived",
    "NamedAttribute",
    "NamedValue",
    "NativeOpTrait",
    "OpDefinition",
    "Pred",
    "PredOpTrait",
    "SourceLocation",
    "Stored",
    "TypeConstraint",
    "GENERATORS",
    "GenInfo",
    "GenOptions",
    "build_op_class",
    "emit_op_decl",
    "emit_op_def",
    "emit_op_decls",
    "emit_op_defs",
    "run_generator",
    "OpForgeError",
    "DefinitionError",
    "SchemaError",
    "SchemaContradictionError",
    "SchemaShapeError",
    "UnknownGeneratorError",
]
