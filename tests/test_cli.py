"""Tests for the opforge command line."""

import textwrap
from importlib import metadata
from pathlib import Path

import pytest
from typer.testing import CliRunner

from opforge import __version__
from opforge.cli import app

runner = CliRunner()

TOY_DIALECT = textwrap.dedent(
    '''
    from opforge import Dialect, Op, op, traits, types

    toy = Dialect("toy", "toy")


    class AddOp(Op):
        """Adds two tensors."""

        dialect = toy
        traits = [traits.NoSideEffect, traits.SameOperandsAndResultType]
        lhs = op.operand(types.Tensor)
        rhs = op.operand(types.Tensor)
        sum = op.result(types.Tensor)


    class ConstantOp(Op):
        dialect = toy
        value = op.attribute(types.I32Attr)
        out = op.result(types.I32)
    '''
)

BROKEN_DIALECT = textwrap.dedent(
    """
    from opforge import Dialect, Op, op, traits, types

    bad = Dialect("bad", "bad")


    class ConfusedOp(Op):
        dialect = bad
        traits = [traits.SameOperandsAndResultType, traits.FirstAttrDerivedResultType]
        x = op.operand(types.Tensor)
        y = op.result(types.Tensor)
    """
)


@pytest.fixture
def toy_file(tmp_path: Path) -> Path:
    path = tmp_path / "toy_ops.py"
    path.write_text(TOY_DIALECT)
    return path


@pytest.fixture
def broken_file(tmp_path: Path) -> Path:
    path = tmp_path / "broken_ops.py"
    path.write_text(BROKEN_DIALECT)
    return path


class TestGenerate:
    """Tests for the generate command."""

    def test_declarations_to_stdout(self, toy_file):
        result = runner.invoke(
            app, ["generate", str(toy_file), "-d", "toy", "-g", "gen-op-decls"]
        )
        assert result.exit_code == 0, result.output
        assert "// AUTO-GENERATED by opforge. DO NOT EDIT." in result.output
        assert "class AddOp : public Op<AddOp" in result.output
        assert "class ConstantOp : public Op<ConstantOp" in result.output

    def test_definitions_to_file(self, toy_file, tmp_path):
        output = tmp_path / "ToyOps.cpp.inc"
        result = runner.invoke(
            app,
            ["generate", str(toy_file), "-d", "toy", "-g", "gen-op-defs", "-o", str(output)],
        )
        assert result.exit_code == 0, result.output
        text = output.read_text()
        assert "toy::AddOp,\ntoy::ConstantOp\n" in text
        assert 'return "toy.add";' in text
        assert "LogicalResult ConstantOp::verify() {" in text
        assert "Success!" in result.output

    def test_without_op_list(self, toy_file):
        result = runner.invoke(
            app,
            ["generate", str(toy_file), "-d", "toy", "-g", "gen-op-defs", "--no-op-list"],
        )
        assert result.exit_code == 0, result.output
        assert "GET_OP_LIST" not in result.output
        assert "GET_OP_CLASSES" in result.output

    def test_options_from_environment(self, toy_file):
        result = runner.invoke(
            app,
            ["generate", str(toy_file)],
            env={"OPFORGE_DIALECT": "toy", "OPFORGE_GEN": "gen-op-decls"},
        )
        assert result.exit_code == 0, result.output
        assert "class AddOp" in result.output

    def test_unknown_generator(self, toy_file):
        result = runner.invoke(
            app, ["generate", str(toy_file), "-d", "toy", "-g", "gen-everything"]
        )
        assert result.exit_code == 1
        assert "Unknown generator" in result.output

    def test_missing_dialect(self, toy_file):
        result = runner.invoke(
            app, ["generate", str(toy_file), "-d", "nope", "-g", "gen-op-decls"]
        )
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_schema_error_writes_no_file(self, broken_file, tmp_path):
        output = tmp_path / "BadOps.h.inc"
        result = runner.invoke(
            app,
            ["generate", str(broken_file), "-d", "bad", "-g", "gen-op-decls", "-o", str(output)],
        )
        assert result.exit_code == 1
        assert "FirstAttrDerivedResultType" in result.output
        assert not output.exists()

    def test_invalid_definition(self, tmp_path):
        path = tmp_path / "dup_ops.py"
        path.write_text(
            textwrap.dedent(
                """
                from opforge import Dialect, Op

                dup = Dialect("dup")


                class AOp(Op):
                    dialect = dup


                class Other(Op):
                    dialect = dup
                    mnemonic = "a"
                """
            )
        )
        result = runner.invoke(app, ["generate", str(path), "-d", "dup", "-g", "gen-op-decls"])
        assert result.exit_code == 1
        assert "Invalid op definition" in result.output

    def test_wrong_constraint_kind(self, tmp_path):
        path = tmp_path / "kind_ops.py"
        path.write_text(
            textwrap.dedent(
                """
                from opforge import Dialect, Op, op, types

                kind = Dialect("kind")


                class CastOp(Op):
                    dialect = kind
                    x = op.operand(types.I32Attr)
                """
            )
        )
        result = runner.invoke(app, ["generate", str(path), "-d", "kind", "-g", "gen-op-decls"])
        assert result.exit_code == 1
        assert "Invalid op definition" in result.output
        assert "Traceback" not in result.output


class TestListing:
    """Tests for the listing commands."""

    def test_generators(self):
        result = runner.invoke(app, ["generators"])
        assert result.exit_code == 0
        assert "gen-op-decls" in result.output
        assert "Generate op definitions" in result.output

    def test_ops(self, toy_file):
        result = runner.invoke(
            app, ["ops", str(toy_file), "-d", "toy"], env={"COLUMNS": "200"}
        )
        assert result.exit_code == 0, result.output
        assert "toy.add" in result.output
        assert "toy.constant" in result.output

    def test_version(self):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_version_matches_distribution(self):
        assert metadata.version("opforge") == __version__
