"""
Generates the C++ class of a single operation.

`OpEmitter` reads one `OpDefinition` and fills an `OpClass` with the op's
traits, accessors, builders, parser/printer hooks, verifier and
canonicalizer/folder declarations. The order of the generation steps is the
order in which methods appear in the output.
"""

from __future__ import annotations

import logging
from typing import TextIO

from .._internal import defs as _d
from .._internal import exceptions as _e
from .emitter import CodeEmitter
from .fmt import FmtContext, tgfmt
from .op_class import GeneratedClass, MethodBody, OpClass

logger = logging.getLogger(__name__)

# Name of the OperationState parameter of generated builders. Generated
# names carry a prefix so they cannot hide user-chosen accessor names.
BUILDER_STATE = "opforge_state"
GENERATED_PREFIX = "opforge_"

BUILDER_CONTEXT_PARAMS = f"Builder *, OperationState *{BUILDER_STATE}"

SAME_OPERANDS_AND_RESULT_TYPE = "SameOperandsAndResultType"
FIRST_ATTR_DERIVED_RESULT_TYPE = "FirstAttrDerivedResultType"


def _cpp_string(text: str) -> str:
    """Escapes `text` for use inside a C++ string literal."""
    return text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


class OpEmitter:
    """Builds the `GeneratedClass` for one operation."""

    def __init__(self, op_def: _d.OpDefinition):
        self.op = op_def
        self.op_class = OpClass(op_def.cpp_class_name)

    def emit(self) -> GeneratedClass:
        """
        Runs every generation step and returns the finished class.

        Raises:
            SchemaContradictionError: if the op declares both result type
                deduction traits.
            SchemaShapeError: if the op's operands, results or arguments
                cannot be generated.
        """
        self._gen_traits()
        self._gen_op_name_getter()
        self._gen_named_operand_getters()
        self._gen_named_result_getters()
        self._gen_attr_getters()
        self._gen_builders()
        self._gen_parser()
        self._gen_printer()
        self._gen_verifier()
        self._gen_canonicalizer_decls()
        self._gen_folder_decls()
        generated = self.op_class.finalize()
        logger.debug(
            "generated %s with %d methods",
            self.op.operation_name,
            len(generated.methods),
        )
        return generated

    def _error(self, message: str) -> _e.SchemaShapeError:
        return _e.SchemaShapeError(
            f"op '{self.op.operation_name}': {message}", self.op.location
        )

    # Traits and accessors.

    def _gen_traits(self) -> None:
        match self.op.result_arity:
            case _d.Fixed(0):
                self.op_class.add_trait("ZeroResult")
            case _d.Fixed(1):
                self.op_class.add_trait("OneResult")
            case _d.Fixed(n):
                self.op_class.add_trait(f"NResults<{n}>::Impl")
            case _d.VariadicLast(0):
                self.op_class.add_trait("VariadicResults")
            case _d.VariadicLast(n):
                self.op_class.add_trait(f"AtLeastNResults<{n}>::Impl")

        match self.op.operand_arity:
            case _d.Fixed(n):
                self.op_class.add_trait(f"NOperands<{n}>::Impl")
            case _d.VariadicLast(0):
                self.op_class.add_trait("VariadicOperands")
            case _d.VariadicLast(n):
                self.op_class.add_trait(f"AtLeastNOperands<{n}>::Impl")

        for trait in self.op.native_traits:
            self.op_class.add_trait(trait.name)

    def _gen_op_name_getter(self) -> None:
        method = self.op_class.new_method("StringRef", "getOperationName", static=True)
        method.body.line(f'  return "{_cpp_string(self.op.operation_name)}";')

    def _gen_named_operand_getters(self) -> None:
        for i, operand in enumerate(self.op.operands):
            if not operand.name:
                continue
            if not operand.variadic:
                method = self.op_class.new_method("Value *", operand.name)
                method.body.line(f"  return this->getOperation()->getOperand({i});")
            else:
                method = self.op_class.new_method(
                    "Operation::operand_range", operand.name
                )
                method.body.line(f"  assert(getOperation()->getNumOperands() >= {i});")
                method.body.line(
                    f"  return {{std::next(operand_begin(), {i}), operand_end()}};"
                )

    def _gen_named_result_getters(self) -> None:
        for i, result in enumerate(self.op.results):
            # Variadic results have no accessor.
            if result.variadic or not result.name:
                continue
            method = self.op_class.new_method("Value *", result.name)
            method.body.line(f"  return this->getOperation()->getResult({i});")

    def _gen_attr_getters(self) -> None:
        fctx = FmtContext().with_builder("mlir::Builder(this->getContext())")
        for named_attr in self.op.attributes:
            attr = named_attr.attr
            method = self.op_class.new_method(attr.return_type, named_attr.name)
            body = method.body

            match named_attr.kind:
                case _d.Derived(body=code):
                    body.line("  ", code)
                case _d.Stored(default=default):
                    body.line(
                        f'  auto attr = this->getAttr("{named_attr.name}")'
                        f".dyn_cast_or_null<{attr.storage_type}>();"
                    )
                    if default is not None:
                        if attr.const_builder_call is None:
                            raise self._error(
                                f"attribute '{named_attr.name}' has a default value "
                                "but its kind has no constant builder"
                            )
                        # TODO: the default attribute is rebuilt on every call;
                        # store it on the op when it is created instead.
                        default_attr = tgfmt(attr.const_builder_call, fctx, default)
                        converted = tgfmt(
                            attr.convert_from_storage, fctx.with_self(default_attr)
                        )
                        body.line("  if (!attr)")
                        body.line(f"    return {converted};")
                    converted = tgfmt(attr.convert_from_storage, fctx.with_self("attr"))
                    body.line(f"  return {converted};")

    # Builders.

    def _gen_builders(self) -> None:
        use_operand_type = self.op.has_trait(SAME_OPERANDS_AND_RESULT_TYPE)
        use_attr_type = self.op.has_trait(FIRST_ATTR_DERIVED_RESULT_TYPE)
        if use_operand_type and use_attr_type:
            raise _e.SchemaContradictionError(
                f"op '{self.op.operation_name}' has both "
                f"'{SAME_OPERANDS_AND_RESULT_TYPE}' and "
                f"'{FIRST_ATTR_DERIVED_RESULT_TYPE}' traits specified",
                self.op.location,
            )

        for builder in self.op.builders:
            has_body = bool(builder.body)
            method = self.op_class.new_method(
                "void", "build", builder.params, static=True, decl_only=not has_body
            )
            if has_body:
                method.body.append(builder.body)

        # 1. one stand-alone parameter per result type, operand and attribute
        self._gen_standalone_param_builder(use_operand_type=False, use_attr_type=False)
        # 2. aggregated parameters for result types, operands and attributes
        self._gen_aggregated_param_builder()
        # 3. stand-alone operands and attributes, result types deduced
        if not self.op.has_variadic_result and (use_operand_type or use_attr_type):
            self._gen_standalone_param_builder(use_operand_type, use_attr_type)

    def _gen_standalone_param_builder(
        self, use_operand_type: bool, use_attr_type: bool
    ) -> None:
        op = self.op
        deduce = use_operand_type or use_attr_type
        params = [BUILDER_CONTEXT_PARAMS]

        result_names: list[str] = []
        if not deduce:
            for i, result in enumerate(op.results):
                name = op.result_type_name(i)
                params.append(f"ArrayRef<Type> {name}" if result.variadic else f"Type {name}")
                result_names.append(name)

        stored_attrs = [a for a in op.attributes if not a.is_derived]
        num_operands = 0
        num_attrs = 0
        for arg in op.args:
            if (
                isinstance(arg, _d.NamedValue)
                and num_operands < len(op.operands)
                and arg == op.operands[num_operands]
            ):
                name = op.operand_name(num_operands)
                params.append(
                    f"ArrayRef<Value *> {name}" if arg.variadic else f"Value *{name}"
                )
                num_operands += 1
            elif (
                isinstance(arg, _d.NamedAttribute)
                and num_attrs < len(stored_attrs)
                and arg == stored_attrs[num_attrs]
            ):
                optional = "/*optional*/" if _is_optional(arg) else ""
                params.append(f"{optional}{arg.attr.storage_type} {arg.name}")
                num_attrs += 1
            else:
                raise self._error("op arguments must be either operands or attributes")
        if num_operands != len(op.operands) or num_attrs != len(stored_attrs):
            raise self._error(
                f"{len(op.args)} arguments do not partition into "
                f"{len(op.operands)} operands and {len(stored_attrs)} attributes"
            )

        method = self.op_class.new_method(
            "void", "build", ", ".join(params), static=True
        )
        body = method.body

        if op.results:
            if not deduce:
                self._add_values(body, "addTypes", result_names, op.has_variadic_result)
            else:
                result_type = self._deduced_result_type(use_attr_type)
                types = ", ".join([result_type] * len(op.results))
                body.line(f"  {BUILDER_STATE}->addTypes({{{types}}});")

        operand_names = [op.operand_name(i) for i in range(len(op.operands))]
        self._add_values(body, "addOperands", operand_names, op.has_variadic_operand)

        for named_attr in stored_attrs:
            add = f'{BUILDER_STATE}->addAttribute("{named_attr.name}", {named_attr.name});'
            if _is_optional(named_attr):
                body.line(f"  if ({named_attr.name}) {{")
                body.line(f"    {add}")
                body.line("  }")
            else:
                body.line(f"  {add}")

    @staticmethod
    def _add_values(
        body: MethodBody, adder: str, names: list[str], has_variadic: bool
    ) -> None:
        """Adds the fixed values as one batch, then the variadic range."""
        fixed = names[:-1] if has_variadic else names
        if fixed:
            body.line(f"  {BUILDER_STATE}->{adder}({{{', '.join(fixed)}}});")
        if has_variadic:
            body.line(f"  {BUILDER_STATE}->{adder}({names[-1]});")

    def _deduced_result_type(self, use_attr_type: bool) -> str:
        op = self.op
        if use_attr_type:
            if not op.attributes or op.attributes[0].is_derived:
                raise self._error(
                    f"'{FIRST_ATTR_DERIVED_RESULT_TYPE}' needs a stored first attribute"
                )
            first = op.attributes[0]
            if first.attr.is_type_attr:
                return f"{first.name}.getValue()"
            return f"{first.name}.getType()"

        if not op.operands:
            raise self._error(
                f"'{SAME_OPERANDS_AND_RESULT_TYPE}' needs at least one operand"
            )
        index = ".front()" if op.operands[0].variadic else ""
        return f"{op.operand_name(0)}{index}->getType()"

    def _gen_aggregated_param_builder(self) -> None:
        params = (
            f"{BUILDER_CONTEXT_PARAMS}, ArrayRef<Type> resultTypes, "
            "ArrayRef<Value *> operands, ArrayRef<NamedAttribute> attributes"
        )
        method = self.op_class.new_method("void", "build", params, static=True)
        body = method.body

        size_checks = (
            ("resultTypes", self.op.result_arity, "mismatched number of return types"),
            ("operands", self.op.operand_arity, "mismatched number of parameters"),
        )
        for collection, arity, message in size_checks:
            match arity:
                case _d.Fixed(n):
                    body.line(f'  assert({collection}.size() == {n}u && "{message}");')
                case _d.VariadicLast(0):
                    pass
                case _d.VariadicLast(n):
                    body.line(f'  assert({collection}.size() >= {n}u && "{message}");')
            adder = "addTypes" if collection == "resultTypes" else "addOperands"
            body.line(f"  {BUILDER_STATE}->{adder}({collection});")

        body.line("")
        body.line("  for (const auto& pair : attributes)")
        body.line(f"    {BUILDER_STATE}->addAttribute(pair.first, pair.second);")

    # Custom assembly hooks.

    def _gen_parser(self) -> None:
        code = (self.op.parser or "").strip()
        if not code:
            return
        method = self.op_class.new_method(
            "bool", "parse", "OpAsmParser *parser, OperationState *result", static=True
        )
        method.body.line("  ", code)

    def _gen_printer(self) -> None:
        code = (self.op.printer or "").strip()
        if not code:
            return
        method = self.op_class.new_method("void", "print", "OpAsmPrinter *p")
        method.body.line("  ", code)

    # Verifier.

    def _has_verifier_checks(self) -> bool:
        op = self.op
        if any(a.is_required or a.attr.predicate for a in op.attributes if not a.is_derived):
            return True
        values = (*op.operands, *op.results)
        if any(v.has_predicate and not v.variadic for v in values):
            return True
        return bool(op.pred_traits)

    def _gen_verifier(self) -> None:
        op = self.op
        custom = op.verifier if op.verifier and op.verifier.strip() else None
        if custom is None and not self._has_verifier_checks():
            return

        method = self.op_class.new_method("LogicalResult", "verify")
        body = method.body
        fctx = FmtContext().with_op("(*this->getOperation())")

        for named_attr in op.attributes:
            if named_attr.is_derived:
                continue
            name = named_attr.name
            # Prefixed so the local does not hide the attribute accessor.
            var = f"{GENERATED_PREFIX}{name}"
            body.line(f'  auto {var} = this->getAttr("{name}");')
            if named_attr.allows_missing:
                # Only checked when present; a default value is assumed valid.
                body.line(f"  if ({var}) {{")
            else:
                body.line(
                    f"  if (!{var}) return emitOpError(\"requires attribute '{name}'\");"
                )
                body.line("  {")
            pred = named_attr.attr.predicate
            if pred is not None:
                cond = tgfmt(pred.condition, fctx.with_self(var))
                desc = _cpp_string(named_attr.attr.description)
                body.line(
                    f"    if (!({cond})) return emitOpError(\"attribute '{name}' "
                    f'failed to satisfy constraint: {desc}");'
                )
            body.line("  }")

        for i, operand in enumerate(op.operands):
            self._verify_value(body, fctx, operand, i, is_operand=True)
        for i, result in enumerate(op.results):
            self._verify_value(body, fctx, result, i, is_operand=False)

        for trait in op.pred_traits:
            cond = tgfmt(trait.predicate.condition, fctx)
            body.line(f"  if (!({cond}))")
            body.line(
                f'    return emitOpError("failed to verify that '
                f'{_cpp_string(trait.description)}");'
            )

        if custom is not None:
            body.line(custom)
        else:
            body.line("  return mlir::success();")

    @staticmethod
    def _verify_value(
        body: MethodBody,
        fctx: FmtContext,
        value: _d.NamedValue,
        index: int,
        is_operand: bool,
    ) -> None:
        # Variadic operands and results are not verified.
        if value.variadic or value.constraint.predicate is None:
            return
        kind = "Operand" if is_operand else "Result"
        self_expr = f"this->getOperation()->get{kind}({index})->getType()"
        cond = tgfmt(value.constraint.predicate.condition, fctx.with_self(self_expr))
        description = value.constraint.description
        message = (
            f" must be {_cpp_string(description)}"
            if description
            else " type precondition failed"
        )
        body.line(f"  if (!({cond}))")
        body.line(f'    return emitOpError("{kind.lower()} #{index}{message}");')

    # Hand-written hooks.

    def _gen_canonicalizer_decls(self) -> None:
        if not self.op.has_canonicalizer:
            return
        self.op_class.new_method(
            "void",
            "getCanonicalizationPatterns",
            "OwningRewritePatternList &results, MLIRContext *context",
            static=True,
            decl_only=True,
        )

    def _gen_folder_decls(self) -> None:
        has_single_result = len(self.op.results) == 1

        if self.op.has_constant_folder:
            if has_single_result:
                self.op_class.new_method(
                    "Attribute",
                    "constantFold",
                    "ArrayRef<Attribute> operands, MLIRContext *context",
                    decl_only=True,
                )
            else:
                self.op_class.new_method(
                    "LogicalResult",
                    "constantFold",
                    "ArrayRef<Attribute> operands, "
                    "SmallVectorImpl<Attribute> &results, MLIRContext *context",
                    decl_only=True,
                )

        if self.op.has_folder:
            if has_single_result:
                self.op_class.new_method("Value *", "fold", decl_only=True)
            else:
                self.op_class.new_method(
                    "bool", "fold", "SmallVectorImpl<Value *> &results", decl_only=True
                )


def _is_optional(named_attr: _d.NamedAttribute) -> bool:
    match named_attr.kind:
        case _d.Stored(optional=optional):
            return optional
        case _d.Derived():
            return False


def build_op_class(op_def: _d.OpDefinition) -> GeneratedClass:
    """Runs the op emitter over `op_def`."""
    return OpEmitter(op_def).emit()


def emit_op_decl(op_def: _d.OpDefinition, os: TextIO) -> None:
    """Writes the C++ class declaration of `op_def` to `os`."""
    emitter = CodeEmitter()
    build_op_class(op_def).write_decl_to(emitter)
    os.write(emitter.get())


def emit_op_def(op_def: _d.OpDefinition, os: TextIO) -> None:
    """Writes the C++ method definitions of `op_def` to `os`."""
    emitter = CodeEmitter()
    build_op_class(op_def).write_def_to(emitter)
    os.write(emitter.get())
