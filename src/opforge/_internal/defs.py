"""
Internal, immutable data structures describing fully-resolved operations.

These objects form the read-only schema view of an operation. They are
produced by the DSL in `domain.py` (or built directly) and consumed by the
code generators.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from . import exceptions as _e


@dataclass(frozen=True)
class SourceLocation:
    file: str
    line: int

    def __str__(self) -> str:
        return f"{self.file}:{self.line}"


@dataclass(frozen=True)
class Pred:
    """
    A C++ boolean condition template.

    The template may refer to `$_self` (the value being checked), `$_op`
    (the operation) and `$_builder` (an attribute builder).
    """

    condition: str


@dataclass(frozen=True)
class TypeConstraint:
    """A constraint on the type of an operand or result."""

    description: str
    predicate: Pred | None = None


@dataclass(frozen=True)
class AttrConstraint:
    """
    A constraint on an attribute, together with how it is stored and read.

    `convert_from_storage` turns the stored attribute (`$_self`) into the
    accessor's return value. `const_builder_call` builds a stored attribute
    from a C++ constant (`$0`), and is needed for default values.
    """

    storage_type: str
    return_type: str
    description: str = ""
    convert_from_storage: str = "$_self"
    const_builder_call: str | None = None
    predicate: Pred | None = None
    is_type_attr: bool = False


@dataclass(frozen=True, kw_only=True)
class NamedValue:
    """An operand or a result. An empty name means the value is unnamed."""

    name: str
    constraint: TypeConstraint
    variadic: bool = False

    @property
    def has_predicate(self) -> bool:
        return self.constraint.predicate is not None


# Attribute kinds.


@dataclass(frozen=True)
class Derived:
    """An attribute computed by user code and never stored on the op."""

    body: str


@dataclass(frozen=True)
class Stored:
    """An attribute kept in the op's attribute dictionary."""

    default: str | None = None
    optional: bool = False


AttributeKind = Derived | Stored


@dataclass(frozen=True, kw_only=True)
class NamedAttribute:
    name: str
    attr: AttrConstraint
    kind: AttributeKind = field(default_factory=Stored)

    @property
    def is_derived(self) -> bool:
        return isinstance(self.kind, Derived)

    @property
    def allows_missing(self) -> bool:
        """Whether the op stays valid when the attribute is absent."""
        match self.kind:
            case Stored(default=default, optional=optional):
                return default is not None or optional
            case Derived():
                return True

    @property
    def is_required(self) -> bool:
        return not self.allows_missing


# Arity of the operand or result list.


@dataclass(frozen=True)
class Fixed:
    count: int


@dataclass(frozen=True)
class VariadicLast:
    """A variadic value preceded by `fixed_prefix` fixed values."""

    fixed_prefix: int


Arity = Fixed | VariadicLast


def arity_of(
    values: Sequence[NamedValue],
    kind: str = "operand",
    location: SourceLocation | None = None,
) -> Arity:
    """
    Classifies a list of operands or results.

    Raises:
        SchemaShapeError: if more than one value is variadic, or the variadic
            value is not the last one.
    """
    variadic_indices = [i for i, v in enumerate(values) if v.variadic]
    if not variadic_indices:
        return Fixed(len(values))
    if len(variadic_indices) > 1:
        raise _e.SchemaShapeError(
            f"more than one variadic {kind} (indices {variadic_indices})", location
        )
    if variadic_indices[0] != len(values) - 1:
        raise _e.SchemaShapeError(
            f"only the last {kind} can be variadic, "
            f"but {kind} #{variadic_indices[0]} is",
            location,
        )
    return VariadicLast(len(values) - 1)


# Traits.


@dataclass(frozen=True)
class NativeOpTrait:
    """A trait implemented in C++ and attached to the op class by name."""

    name: str


@dataclass(frozen=True)
class PredOpTrait:
    """A trait expressed as a condition over the whole operation."""

    description: str
    predicate: Pred


Trait = NativeOpTrait | PredOpTrait


@dataclass(frozen=True)
class CustomBuilder:
    """
    A user-written `build` overload.

    `params` is the full C++ parameter list. An empty `body` makes the
    builder declaration-only, for when the definition is written by hand.
    """

    params: str
    body: str = ""


Argument = NamedValue | NamedAttribute


@dataclass(frozen=True, kw_only=True)
class OpDefinition:
    """A complete, immutable definition of an operation."""

    operation_name: str
    cpp_class_name: str
    cpp_namespace: str = ""
    summary: str = ""
    operands: Sequence[NamedValue] = ()
    results: Sequence[NamedValue] = ()
    attributes: Sequence[NamedAttribute] = ()
    # Operands and stored attributes in declaration order. When left unset
    # the operands come first, followed by the stored attributes.
    arguments: Sequence[Argument] | None = None
    traits: Sequence[Trait] = ()
    builders: Sequence[CustomBuilder] = ()
    parser: str | None = None
    printer: str | None = None
    verifier: str | None = None
    has_canonicalizer: bool = False
    has_constant_folder: bool = False
    has_folder: bool = False
    location: SourceLocation | None = None

    @property
    def qualified_cpp_class_name(self) -> str:
        if not self.cpp_namespace:
            return self.cpp_class_name
        return f"{self.cpp_namespace.rstrip(':')}::{self.cpp_class_name}"

    @property
    def args(self) -> Sequence[Argument]:
        if self.arguments is not None:
            return self.arguments
        stored = [a for a in self.attributes if not a.is_derived]
        return (*self.operands, *stored)

    @property
    def operand_arity(self) -> Arity:
        return arity_of(self.operands, "operand", self.location)

    @property
    def result_arity(self) -> Arity:
        return arity_of(self.results, "result", self.location)

    @property
    def has_variadic_operand(self) -> bool:
        return any(v.variadic for v in self.operands)

    @property
    def has_variadic_result(self) -> bool:
        return any(v.variadic for v in self.results)

    @property
    def native_traits(self) -> list[NativeOpTrait]:
        return [t for t in self.traits if isinstance(t, NativeOpTrait)]

    @property
    def pred_traits(self) -> list[PredOpTrait]:
        return [t for t in self.traits if isinstance(t, PredOpTrait)]

    def has_trait(self, name: str) -> bool:
        return any(t.name == name for t in self.native_traits)

    def operand_name(self, index: int) -> str:
        """The operand's name, or a generated one if it is unnamed."""
        name = self.operands[index].name
        return name if name else f"opforge_arg{index}"

    def result_type_name(self, index: int) -> str:
        name = self.results[index].name
        return name if name else f"resultType{index}"
