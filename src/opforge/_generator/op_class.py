"""
Builders for one generated C++ op class.

An op is emitted twice: as a class declaration (for *Ops.h.inc) and as the
out-of-line method definitions (for *Ops.cpp.inc). Method signatures feed
both, while bodies only feed the definitions, so they are tracked apart.

`OpClass` is filled in by the op emitter and then frozen into a
`GeneratedClass`, which knows how to write both views.
"""

from __future__ import annotations

from dataclasses import dataclass

from .emitter import CodeEmitter
from .params import strip_param_defaults


def _ends_with_ref_or_ptr(cpp_type: str) -> bool:
    return cpp_type.endswith(("&", "*"))


@dataclass(frozen=True)
class MethodSignature:
    return_type: str
    name: str
    params: str = ""

    def _return_prefix(self) -> str:
        sep = "" if _ends_with_ref_or_ptr(self.return_type) else " "
        return f"{self.return_type}{sep}"

    def decl(self) -> str:
        """The signature as written inside the class declaration."""
        return f"{self._return_prefix()}{self.name}({self.params})"

    def defn(self, class_name: str = "") -> str:
        """
        The signature as written at the start of an out-of-line definition.

        The method name is qualified with `class_name` and default arguments
        are removed.
        """
        qualifier = f"{class_name}::" if class_name else ""
        params = strip_param_defaults(self.params)
        return f"{self._return_prefix()}{qualifier}{self.name}({params})"


class MethodBody:
    """
    An append-only method body.

    A body created for a declaration-only method ignores everything appended
    to it.
    """

    def __init__(self, decl_only: bool = False):
        self._effective = not decl_only
        self._parts: list[str] = []

    def append(self, *parts: object) -> MethodBody:
        if self._effective:
            self._parts.extend(str(part) for part in parts)
        return self

    def line(self, *parts: object) -> MethodBody:
        """Appends `parts` followed by a newline."""
        return self.append(*parts, "\n")

    def text(self) -> str:
        return "".join(self._parts)


class OpMethod:
    """A method of the generated op class, as a mutable handle."""

    def __init__(
        self,
        return_type: str,
        name: str,
        params: str = "",
        *,
        static: bool = False,
        decl_only: bool = False,
    ):
        self.signature = MethodSignature(return_type, name, params)
        self.body = MethodBody(decl_only)
        self.static = static
        self.decl_only = decl_only

    def freeze(self) -> GeneratedMethod:
        return GeneratedMethod(
            signature=self.signature,
            body=None if self.decl_only else self.body.text(),
            static=self.static,
        )


@dataclass(frozen=True)
class GeneratedMethod:
    signature: MethodSignature
    # None for declaration-only methods.
    body: str | None
    static: bool = False

    @property
    def decl_only(self) -> bool:
        return self.body is None

    def write_decl_to(self, emitter: CodeEmitter) -> None:
        emitter.line("static " if self.static else "", self.signature.decl(), ";")

    def write_def_to(self, emitter: CodeEmitter, class_name: str) -> None:
        if self.body is None:
            return
        emitter.line(self.signature.defn(class_name), " {")
        body = self.body
        if not body.endswith("\n"):
            body += "\n"
        emitter.raw(body)
        emitter.line("}")
        emitter.nl()


@dataclass(frozen=True)
class GeneratedClass:
    """The finished, immutable form of an op class."""

    name: str
    traits: tuple[str, ...]
    methods: tuple[GeneratedMethod, ...]

    def write_decl_to(self, emitter: CodeEmitter) -> None:
        emitter.write(f"class {self.name} : public Op<{self.name}")
        for trait in self.traits:
            emitter.write(", ", trait)
        emitter.line("> {")
        emitter.line("public:")
        with emitter.indent():
            emitter.line("using Op::Op;")
            for method in self.methods:
                method.write_decl_to(emitter)
        emitter.line("};")

    def write_def_to(self, emitter: CodeEmitter) -> None:
        for method in self.methods:
            method.write_def_to(emitter, self.name)

    def method(self, name: str) -> list[GeneratedMethod]:
        """All methods called `name`, in emission order."""
        return [m for m in self.methods if m.signature.name == name]


class OpClass:
    """Collects the traits and methods of one op class."""

    def __init__(self, name: str):
        self.name = name
        self._traits: list[str] = []
        self._methods: list[OpMethod] = []

    def add_trait(self, trait: str) -> None:
        """Adds an op trait, implicitly prefixed with `OpTrait::`."""
        self._traits.append(f"OpTrait::{trait}")

    def new_method(
        self,
        return_type: str,
        name: str,
        params: str = "",
        *,
        static: bool = False,
        decl_only: bool = False,
    ) -> OpMethod:
        method = OpMethod(
            return_type, name, params, static=static, decl_only=decl_only
        )
        self._methods.append(method)
        return method

    def finalize(self) -> GeneratedClass:
        return GeneratedClass(
            name=self.name,
            traits=tuple(self._traits),
            methods=tuple(m.freeze() for m in self._methods),
        )
