"""
Emits the op declaration (*Ops.h.inc) and definition (*Ops.cpp.inc) files.

The includer selects a section of a generated file by defining its macro
before including it:

    #define GET_OP_CLASSES
    #include "MyOps.h.inc"

`GENERATORS` maps generator mode names to the functions producing each
file. The table is built once here and never changed; drivers look modes
up in it (or in a table of their own) through `run_generator`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import TextIO

from .._internal import defs as _d
from .._internal import exceptions as _e
from .emitter import CodeEmitter
from .op_emitter import build_op_class

logger = logging.getLogger(__name__)

_RULE = "//===" + "-" * 70 + "===//"


@dataclass(frozen=True)
class GenOptions:
    """Options shared by all generators."""

    # Emit the GET_OP_LIST section in the definitions file.
    emit_op_list: bool = True


GenFunction = Callable[[Sequence[_d.OpDefinition], TextIO, GenOptions], None]


@dataclass(frozen=True)
class GenInfo:
    name: str
    description: str
    fn: GenFunction


def emit_source_file_header(title: str, emitter: CodeEmitter) -> None:
    emitter.line("// AUTO-GENERATED by opforge. DO NOT EDIT.")
    emitter.line("//")
    emitter.line(f"// {title}")
    emitter.nl()


def _emit_banner(emitter: CodeEmitter, op_def: _d.OpDefinition, what: str) -> None:
    emitter.nl()
    emitter.line(_RULE)
    emitter.line(f"// {op_def.qualified_cpp_class_name} {what}")
    emitter.line(_RULE)
    emitter.nl()


def _emit_op_classes(
    ops: Sequence[_d.OpDefinition], emitter: CodeEmitter, emit_decl: bool
) -> None:
    with emitter.ifdef_scope("GET_OP_CLASSES"):
        for op_def in ops:
            generated = build_op_class(op_def)
            if emit_decl:
                _emit_banner(emitter, op_def, "declarations")
                generated.write_decl_to(emitter)
            else:
                _emit_banner(emitter, op_def, "definitions")
                generated.write_def_to(emitter)


def _emit_op_list(ops: Sequence[_d.OpDefinition], emitter: CodeEmitter) -> None:
    with emitter.ifdef_scope("GET_OP_LIST"):
        names = [op_def.qualified_cpp_class_name for op_def in ops]
        if names:
            emitter.line(",\n".join(names))


def emit_op_decls(
    ops: Sequence[_d.OpDefinition], os: TextIO, options: GenOptions | None = None
) -> None:
    """
    Writes the op declarations file for `ops` to `os`.

    The whole file is rendered before anything is written, so a schema error
    in any op leaves `os` untouched.
    """
    emitter = CodeEmitter()
    emit_source_file_header("Op Declarations", emitter)
    _emit_op_classes(ops, emitter, emit_decl=True)
    logger.debug("emitted declarations for %d ops", len(ops))
    os.write(emitter.get())


def emit_op_defs(
    ops: Sequence[_d.OpDefinition], os: TextIO, options: GenOptions | None = None
) -> None:
    """Writes the op definitions file for `ops` to `os`."""
    options = options or GenOptions()
    emitter = CodeEmitter()
    emit_source_file_header("Op Definitions", emitter)
    if options.emit_op_list:
        _emit_op_list(ops, emitter)
    _emit_op_classes(ops, emitter, emit_decl=False)
    logger.debug("emitted definitions for %d ops", len(ops))
    os.write(emitter.get())


GENERATORS: Mapping[str, GenInfo] = MappingProxyType(
    {
        "gen-op-decls": GenInfo("gen-op-decls", "Generate op declarations", emit_op_decls),
        "gen-op-defs": GenInfo("gen-op-defs", "Generate op definitions", emit_op_defs),
    }
)


def run_generator(
    mode: str,
    ops: Sequence[_d.OpDefinition],
    os: TextIO,
    options: GenOptions | None = None,
    registry: Mapping[str, GenInfo] = GENERATORS,
) -> None:
    """
    Runs the generator registered as `mode` in `registry`.

    Raises:
        UnknownGeneratorError: if `mode` is not in `registry`.
    """
    info = registry.get(mode)
    if info is None:
        known = ", ".join(sorted(registry))
        raise _e.UnknownGeneratorError(f"Unknown generator '{mode}' (known: {known}).")
    logger.debug("running %s over %d ops", mode, len(ops))
    info.fn(ops, os, options or GenOptions())
