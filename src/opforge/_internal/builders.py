"""
Internal, temporary builder objects created by the public DSL.

These objects hold the state of a definition before it is finalized into
an immutable `OpDefinition`. They are not meant to be used directly.
"""

from dataclasses import dataclass

from . import defs as _d


@dataclass(frozen=True)
class OperandBuilder:
    constraint: _d.TypeConstraint
    is_variadic: bool
    anonymous: bool


@dataclass(frozen=True)
class ResultBuilder:
    constraint: _d.TypeConstraint
    is_variadic: bool
    anonymous: bool


@dataclass(frozen=True)
class AttributeBuilder:
    attr: _d.AttrConstraint
    default: str | None
    optional: bool


@dataclass(frozen=True)
class DerivedAttributeBuilder:
    return_type: str
    body: str
    doc: str | None


@dataclass(frozen=True)
class CppBuilderArg:
    name: str
    cpp_type: str
    default: str | None = None

    def render(self) -> str:
        sep = "" if self.cpp_type.endswith(("*", "&")) else " "
        text = f"{self.cpp_type}{sep}{self.name}"
        if self.default is not None:
            text += f" = {self.default}"
        return text


@dataclass(frozen=True)
class CppBuilderDef:
    params: str
    body: str
