"""
Text sink used to assemble generated C++ files.

Everything is kept in memory until `get()` is called, so a generator can
abandon a half-written file by simply dropping its emitter.
"""

from __future__ import annotations

import io
from collections.abc import Iterator
from contextlib import contextmanager


class CodeEmitter:
    """
    Accumulates generated code line by line.

    `write` and `line` prefix each new line with the current indentation.
    `raw` copies text that is already laid out (for example a method body
    written by the user) without touching it.
    """

    def __init__(self, indent_unit: str = "  "):
        self._out = io.StringIO()
        self._pending: list[str] = []
        self._depth = 0
        self._unit = indent_unit
        self._at_line_start = True

    def get(self) -> str:
        """Returns everything emitted so far."""
        self._commit()
        return self._out.getvalue()

    def _commit(self) -> None:
        if self._pending:
            self._out.write("".join(self._pending))
            self._pending.clear()

    def write(self, *parts: str) -> None:
        """Appends `parts` to the current line."""
        if self._at_line_start:
            self._pending.append(self._unit * self._depth)
            self._at_line_start = False
        self._pending.extend(parts)

    def raw(self, text: str) -> None:
        """Appends `text` exactly as given."""
        if not text:
            return
        self._commit()
        self._out.write(text)
        self._at_line_start = text.endswith("\n")

    def nl(self, count: int = 1) -> None:
        """Ends the current line, then adds `count - 1` empty lines."""
        self._commit()
        self._out.write("\n" * count)
        self._at_line_start = True

    def line(self, *parts: str) -> None:
        """Writes `parts` as one complete line."""
        if parts:
            self.write(*parts)
        self.nl()

    @contextmanager
    def indent(self, levels: int = 1) -> Iterator[None]:
        self._depth += levels
        try:
            yield
        finally:
            self._depth -= levels

    @contextmanager
    def ifdef_scope(self, name: str) -> Iterator[None]:
        """
        Wraps the emitted section in a macro selection block.

        The includer defines `name` to pick the section, and the section
        undefines it so the same file can be included again for another
        section:

            #ifdef GET_OP_CLASSES
            #undef GET_OP_CLASSES

            ...

            #endif  // GET_OP_CLASSES
        """
        self.line(f"#ifdef {name}")
        self.line(f"#undef {name}")
        self.nl()
        yield
        self.nl()
        self.line(f"#endif  // {name}")
        self.nl()
