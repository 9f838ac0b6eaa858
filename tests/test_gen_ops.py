"""Tests for the batch generators and the generator table."""

import io

import pytest

from opforge import (
    GENERATORS,
    GenInfo,
    GenOptions,
    SchemaContradictionError,
    UnknownGeneratorError,
    emit_op_decl,
    emit_op_decls,
    emit_op_def,
    emit_op_defs,
    run_generator,
    traits,
    types,
)

RULE = "//===" + "-" * 70 + "===//"


@pytest.fixture
def toy_ops(make_op, value):
    add = make_op(
        operation_name="toy.add",
        cpp_class_name="AddOp",
        cpp_namespace="toy",
        operands=(value(), value()),
        results=(value(),),
        traits=(traits.SameOperandsAndResultType,),
    )
    mul = make_op(
        operation_name="toy.mul",
        cpp_class_name="MulOp",
        cpp_namespace="toy",
        operands=(value("lhs", types.F32), value("rhs", types.F32)),
        results=(value("product"),),
    )
    return [add, mul]


class TestDeclarations:
    """Tests for emit_op_decls."""

    def test_full_output(self, add_op, sink):
        emit_op_decls([add_op], sink)
        assert sink.getvalue() == (
            "// AUTO-GENERATED by opforge. DO NOT EDIT.\n"
            "//\n"
            "// Op Declarations\n"
            "\n"
            "#ifdef GET_OP_CLASSES\n"
            "#undef GET_OP_CLASSES\n"
            "\n"
            "\n"
            f"{RULE}\n"
            "// AddOp declarations\n"
            f"{RULE}\n"
            "\n"
            "class AddOp : public Op<AddOp, OpTrait::OneResult, "
            "OpTrait::NOperands<2>::Impl, OpTrait::SameOperandsAndResultType> {\n"
            "public:\n"
            "  using Op::Op;\n"
            "  static StringRef getOperationName();\n"
            "  static void build(Builder *, OperationState *opforge_state, "
            "Type resultType0, Value *opforge_arg0, Value *opforge_arg1);\n"
            "  static void build(Builder *, OperationState *opforge_state, "
            "ArrayRef<Type> resultTypes, ArrayRef<Value *> operands, "
            "ArrayRef<NamedAttribute> attributes);\n"
            "  static void build(Builder *, OperationState *opforge_state, "
            "Value *opforge_arg0, Value *opforge_arg1);\n"
            "};\n"
            "\n"
            "#endif  // GET_OP_CLASSES\n"
            "\n"
        )

    def test_banners_use_qualified_names(self, toy_ops, sink):
        emit_op_decls(toy_ops, sink)
        output = sink.getvalue()
        assert "// toy::AddOp declarations\n" in output
        assert "// toy::MulOp declarations\n" in output
        assert output.index("class AddOp") < output.index("class MulOp")

    def test_no_op_list_in_declarations(self, toy_ops, sink):
        emit_op_decls(toy_ops, sink)
        assert "GET_OP_LIST" not in sink.getvalue()


class TestDefinitions:
    """Tests for emit_op_defs."""

    def test_op_list(self, toy_ops, sink):
        emit_op_defs(toy_ops, sink)
        output = sink.getvalue()
        assert (
            "#ifdef GET_OP_LIST\n"
            "#undef GET_OP_LIST\n"
            "\n"
            "toy::AddOp,\n"
            "toy::MulOp\n"
            "\n"
            "#endif  // GET_OP_LIST\n"
        ) in output
        assert output.index("GET_OP_LIST") < output.index("GET_OP_CLASSES")

    def test_op_list_can_be_disabled(self, toy_ops, sink):
        emit_op_defs(toy_ops, sink, GenOptions(emit_op_list=False))
        assert "GET_OP_LIST" not in sink.getvalue()

    def test_definitions(self, toy_ops, sink):
        emit_op_defs(toy_ops, sink)
        output = sink.getvalue()
        assert output.startswith("// AUTO-GENERATED by opforge. DO NOT EDIT.\n//\n// Op Definitions\n")
        assert "// toy::AddOp definitions\n" in output
        assert 'StringRef MulOp::getOperationName() {\n  return "toy.mul";\n}\n' in output
        assert "Value *MulOp::lhs() {\n" in output
        assert "LogicalResult MulOp::verify() {\n" in output
        assert "LogicalResult AddOp::verify()" not in output
        assert output.index("// toy::AddOp definitions") < output.index(
            "// toy::MulOp definitions"
        )

    def test_empty_batch(self, sink):
        emit_op_defs([], sink)
        output = sink.getvalue()
        assert "#ifdef GET_OP_LIST\n#undef GET_OP_LIST\n\n\n#endif  // GET_OP_LIST\n" in output
        assert "#ifdef GET_OP_CLASSES" in output


class TestBatchBehaviour:
    """Tests for determinism and failure handling."""

    @pytest.mark.parametrize("emit", [emit_op_decls, emit_op_defs])
    def test_output_is_deterministic(self, toy_ops, emit):
        first, second = io.StringIO(), io.StringIO()
        emit(toy_ops, first)
        emit(toy_ops, second)
        assert first.getvalue() == second.getvalue()

    @pytest.mark.parametrize("emit", [emit_op_decls, emit_op_defs])
    def test_schema_error_writes_nothing(self, toy_ops, make_op, sink, emit):
        bad = make_op(
            traits=(traits.SameOperandsAndResultType, traits.FirstAttrDerivedResultType)
        )
        with pytest.raises(SchemaContradictionError):
            emit([*toy_ops, bad], sink)
        assert sink.getvalue() == ""

    def test_single_op_entry_points(self, add_op, sink):
        emit_op_decl(add_op, sink)
        assert sink.getvalue().startswith("class AddOp : public Op<AddOp")
        definitions = io.StringIO()
        emit_op_def(add_op, definitions)
        assert definitions.getvalue().startswith("StringRef AddOp::getOperationName() {\n")


class TestGeneratorTable:
    """Tests for GENERATORS and run_generator."""

    def test_modes(self):
        assert list(GENERATORS) == ["gen-op-decls", "gen-op-defs"]
        assert GENERATORS["gen-op-decls"].fn is emit_op_decls
        assert GENERATORS["gen-op-defs"].fn is emit_op_defs

    def test_table_is_read_only(self):
        with pytest.raises(TypeError):
            GENERATORS["gen-other"] = GENERATORS["gen-op-decls"]  # type: ignore[index]

    def test_run_generator(self, toy_ops, sink):
        run_generator("gen-op-defs", toy_ops, sink, GenOptions(emit_op_list=False))
        expected = io.StringIO()
        emit_op_defs(toy_ops, expected, GenOptions(emit_op_list=False))
        assert sink.getvalue() == expected.getvalue()

    def test_unknown_mode(self, toy_ops, sink):
        with pytest.raises(UnknownGeneratorError, match="gen-op-decls, gen-op-defs"):
            run_generator("gen-nothing", toy_ops, sink)

    def test_custom_table(self, toy_ops, sink):
        calls = []

        def count_ops(ops, os, options):
            calls.append(options)
            os.write(f"{len(ops)}\n")

        table = {"count": GenInfo("count", "Count ops", count_ops)}
        run_generator("count", toy_ops, sink, registry=table)
        assert sink.getvalue() == "2\n"
        assert calls == [GenOptions()]
        with pytest.raises(UnknownGeneratorError):
            run_generator("gen-op-decls", toy_ops, sink, registry=table)
