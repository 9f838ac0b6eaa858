"""Internal implementation of the main user-facing classes and DSL builders."""

from __future__ import annotations

import inspect
import re
from collections.abc import Sequence
from types import MappingProxyType

from . import builders as _b
from . import defs as _d
from . import exceptions as _e

# Leading parameters of a `cpp.builder` declared with an argument list.
CUSTOM_BUILDER_CONTEXT = "Builder *builder, OperationState *result"


class OpBuilderNamespace:
    """The `op` builder for defining core operation components."""

    def operand(
        self,
        constraint: _d.TypeConstraint,
        *,
        variadic: bool = False,
        anonymous: bool = False,
    ) -> _b.OperandBuilder:
        """
        Defines an operand.

        An anonymous operand takes its position from the class attribute it is
        assigned to but gets no accessor method.
        """
        if not isinstance(constraint, _d.TypeConstraint):
            raise TypeError("Operands must be constrained by an opforge.types type.")
        return _b.OperandBuilder(
            constraint=constraint, is_variadic=variadic, anonymous=anonymous
        )

    def result(
        self,
        constraint: _d.TypeConstraint,
        *,
        variadic: bool = False,
        anonymous: bool = False,
    ) -> _b.ResultBuilder:
        """Defines a result."""
        if not isinstance(constraint, _d.TypeConstraint):
            raise TypeError("Results must be constrained by an opforge.types type.")
        return _b.ResultBuilder(
            constraint=constraint, is_variadic=variadic, anonymous=anonymous
        )

    def attribute(
        self,
        attr: _d.AttrConstraint,
        *,
        default: str | None = None,
        optional: bool = False,
    ) -> _b.AttributeBuilder:
        """
        Defines a stored attribute.

        `default` is a C++ constant expression fed to the attribute's
        constant builder when the attribute is missing.
        """
        if not isinstance(attr, _d.AttrConstraint):
            raise TypeError("Attributes must be an opforge.types attribute.")
        if default is not None and attr.const_builder_call is None:
            raise _e.DefinitionError(
                f"Attribute kind '{attr.storage_type}' cannot be built from a "
                "constant, so it cannot have a default value."
            )
        return _b.AttributeBuilder(attr=attr, default=default, optional=optional)

    def derived_attribute(
        self, return_type: str, body: str, *, doc: str | None = None
    ) -> _b.DerivedAttributeBuilder:
        """Defines an attribute computed by a C++ body instead of stored."""
        return _b.DerivedAttributeBuilder(return_type=return_type, body=body, doc=doc)


class CppBuilderNamespace:
    """The `cpp` builder for defining C++-specific helpers."""

    def builder(
        self,
        args: str | Sequence[tuple[str, str] | tuple[str, str, str]],
        body: str = "",
    ) -> _b.CppBuilderDef:
        """
        Defines a custom C++ builder method.

        `args` is either the complete C++ parameter list or a sequence of
        `(name, cpp_type)` / `(name, cpp_type, default)` tuples, which are
        appended to `Builder *builder, OperationState *result`. Without a
        body only the declaration is generated.
        """
        if isinstance(args, str):
            return _b.CppBuilderDef(params=args, body=body)
        b_args = [_b.CppBuilderArg(*arg) for arg in args]
        params = ", ".join([CUSTOM_BUILDER_CONTEXT, *(a.render() for a in b_args)])
        return _b.CppBuilderDef(params=params, body=body)


op_builder_instance = OpBuilderNamespace()
cpp_builder_instance = CppBuilderNamespace()


def _to_snake_case(name: str) -> str:
    """Converts CamelCase to snake_case for op names."""
    name = re.sub("(.)([A-Z][a-z]+)", r"\1_\2", name)
    return re.sub("([a-z0-9])([A-Z])", r"\1_\2", name).lower()


def _default_mnemonic(class_name: str) -> str:
    snake = _to_snake_case(class_name)
    if snake.endswith("_op") and snake != "_op":
        snake = snake[: -len("_op")]
    return snake


def _source_location(cls: type) -> _d.SourceLocation | None:
    try:
        file = inspect.getsourcefile(cls)
        _, line = inspect.getsourcelines(cls)
    except (OSError, TypeError):
        return None
    if file is None:
        return None
    return _d.SourceLocation(file=file, line=line)


class Dialect:
    """A container for a set of related operations."""

    def __init__(self, name: str, cpp_namespace: str = "", description: str | None = None):
        self.name = name
        self.cpp_namespace = cpp_namespace
        self.description = description
        self._ops: dict[str, _d.OpDefinition] = {}

    @property
    def ops(self) -> MappingProxyType[str, _d.OpDefinition]:
        """A read-only view of the operations defined in this dialect."""
        return MappingProxyType(self._ops)

    def op_definitions(self) -> list[_d.OpDefinition]:
        """The operations in the order they were defined."""
        return list(self._ops.values())

    def _register_op(self, op_def: _d.OpDefinition) -> None:
        if op_def.operation_name in self._ops:
            raise _e.DefinitionError(
                f"Op '{op_def.operation_name}' is already defined in dialect "
                f"'{self.name}'."
            )
        self._ops[op_def.operation_name] = op_def


class Op:
    """Base class for all class-based operation definitions."""

    dialect: Dialect
    mnemonic: str | None = None
    traits: Sequence[_d.Trait] = ()
    parser: str | None = None
    printer: str | None = None
    verifier: str | None = None
    has_canonicalizer: bool = False
    has_constant_folder: bool = False
    has_folder: bool = False

    def __init_subclass__(cls, **kwargs: object) -> None:
        """Introspects the subclass to build and register an OpDefinition."""
        super().__init_subclass__(**kwargs)

        # Abstract intermediates without a dialect are not registered.
        if not hasattr(cls, "dialect"):
            return

        op_def = _build_op_definition(cls)
        cls.dialect._register_op(op_def)


def _collect_members(cls: type) -> dict[str, object]:
    # Declaration order matters, so walk the class dicts instead of using
    # inspect.getmembers, which sorts by name.
    members: dict[str, object] = {}
    for klass in reversed(cls.__mro__):
        if klass is Op or not issubclass(klass, Op):
            continue
        # An override keeps the slot of the member it replaces.
        for name, value in vars(klass).items():
            members[name] = value
    return members


def _build_op_definition(cls: type[Op]) -> _d.OpDefinition:
    dialect = cls.dialect
    mnemonic = cls.mnemonic or _default_mnemonic(cls.__name__)
    op_name = f"{dialect.name}.{mnemonic}" if dialect.name else mnemonic

    operands: list[_d.NamedValue] = []
    results: list[_d.NamedValue] = []
    attributes: list[_d.NamedAttribute] = []
    arguments: list[_d.Argument] = []
    builders: list[_d.CustomBuilder] = []

    for name, value in _collect_members(cls).items():
        if isinstance(value, _b.OperandBuilder):
            operand = _d.NamedValue(
                name="" if value.anonymous else name,
                constraint=value.constraint,
                variadic=value.is_variadic,
            )
            operands.append(operand)
            arguments.append(operand)
        elif isinstance(value, _b.ResultBuilder):
            results.append(
                _d.NamedValue(
                    name="" if value.anonymous else name,
                    constraint=value.constraint,
                    variadic=value.is_variadic,
                )
            )
        elif isinstance(value, _b.AttributeBuilder):
            attribute = _d.NamedAttribute(
                name=name,
                attr=value.attr,
                kind=_d.Stored(default=value.default, optional=value.optional),
            )
            attributes.append(attribute)
            arguments.append(attribute)
        elif isinstance(value, _b.DerivedAttributeBuilder):
            attributes.append(
                _d.NamedAttribute(
                    name=name,
                    attr=_d.AttrConstraint(
                        storage_type="Attribute",
                        return_type=value.return_type,
                        description=value.doc or "",
                    ),
                    kind=_d.Derived(body=value.body),
                )
            )
        elif isinstance(value, _b.CppBuilderDef):
            builders.append(_d.CustomBuilder(params=value.params, body=value.body))

    for kind, values in (("operand", operands), ("result", results)):
        variadic = [v.name or "<anonymous>" for v in values if v.variadic]
        if len(variadic) > 1:
            raise _e.DefinitionError(
                f"Op '{op_name}' has more than one variadic {kind}: {variadic}"
            )
        if variadic and not values[-1].variadic:
            raise _e.DefinitionError(
                f"Op '{op_name}': variadic {kind} {variadic[0]} must be the last one."
            )

    traits = tuple(cls.traits)
    for trait in traits:
        if not isinstance(trait, (_d.NativeOpTrait, _d.PredOpTrait)):
            raise _e.DefinitionError(
                f"Op '{op_name}' lists {trait!r}, which is not an opforge trait."
            )

    return _d.OpDefinition(
        operation_name=op_name,
        cpp_class_name=cls.__name__,
        cpp_namespace=dialect.cpp_namespace,
        summary=inspect.cleandoc(cls.__doc__) if cls.__doc__ else "",
        operands=tuple(operands),
        results=tuple(results),
        attributes=tuple(attributes),
        arguments=tuple(arguments),
        traits=traits,
        builders=tuple(builders),
        parser=cls.parser,
        printer=cls.printer,
        verifier=cls.verifier,
        has_canonicalizer=cls.has_canonicalizer,
        has_constant_folder=cls.has_constant_folder,
        has_folder=cls.has_folder,
        location=_source_location(cls),
    )
