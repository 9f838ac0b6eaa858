import importlib.util
import io
import logging
import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from opforge._generator.gen_ops import GENERATORS, GenOptions, run_generator
from opforge._internal.defs import Fixed, OpDefinition, VariadicLast
from opforge._internal.domain import Dialect
from opforge._internal.exceptions import OpForgeError

app = typer.Typer(
    name="opforge",
    help="Generate C++ op declarations and definitions from Python op definitions.",
    add_completion=True,
    pretty_exceptions_enable=False,
)
console = Console(stderr=True)

logger = logging.getLogger("opforge")


def configure_logging(verbose: bool) -> None:
    """Routes opforge's log records through rich."""
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        logger.addHandler(RichHandler(console=console, show_path=False))


def load_dialect(file: Path, dialect_name: str) -> Dialect:
    """
    Imports `file` and returns its module-level Dialect called `dialect_name`.

    Raises:
        typer.Exit: if the file cannot be imported or holds no such dialect.
    """
    spec = importlib.util.spec_from_file_location(file.stem, file)
    if spec is None or spec.loader is None:
        console.print(
            f"[bold red]Error:[/] Could not create module spec for [cyan]{file.name}[/]."
        )
        raise typer.Exit(1)

    module = importlib.util.module_from_spec(spec)
    sys.modules[file.stem] = module
    try:
        spec.loader.exec_module(module)
    except (OpForgeError, TypeError) as e:
        # The DSL raises TypeError for a constraint of the wrong kind.
        console.print(f"[bold red]Error:[/] Invalid op definition in [cyan]{file.name}[/]: {e}")
        raise typer.Exit(1) from e
    except (ImportError, SyntaxError) as e:
        console.print(
            f"[bold red]Error:[/] Failed to import [cyan]{file.name}[/]: {e}"
        )
        raise typer.Exit(1) from e
    except Exception as e:
        console.print(f"[bold red]Error:[/] An unexpected error occurred: {e}")
        raise typer.Exit(1) from e

    dialect_obj = getattr(module, dialect_name, None)
    if dialect_obj is None or not isinstance(dialect_obj, Dialect):
        console.print(
            "[bold red]Error:[/] Dialect object [bold cyan]"
            f"'{dialect_name}'[/bold cyan] not found in [cyan]{file.name}[/]."
        )
        raise typer.Exit(1)

    logger.debug("loaded dialect '%s' with %d ops", dialect_obj.name, len(dialect_obj.ops))
    return dialect_obj


def _arity_str(arity: Fixed | VariadicLast) -> str:
    match arity:
        case Fixed(n):
            return str(n)
        case VariadicLast(n):
            return f"{n}+"


_FILE_ARGUMENT = typer.Argument(
    ...,
    help="The Python file containing opforge dialect definitions.",
    exists=True,
    file_okay=True,
    dir_okay=False,
    readable=True,
    resolve_path=True,
)


@app.command()
def generate(
    file: Path = _FILE_ARGUMENT,
    dialect_name: str = typer.Option(
        ...,
        "--dialect",
        "-d",
        envvar="OPFORGE_DIALECT",
        help="The variable name of the Dialect object to generate.",
    ),
    gen: str = typer.Option(
        ...,
        "--gen",
        "-g",
        envvar="OPFORGE_GEN",
        help=f"The generator to run: {', '.join(GENERATORS)}.",
    ),
    output: Path = typer.Option(  # noqa: B008
        None,
        "--output",
        "-o",
        help="The output path. Prints to stdout by default.",
        file_okay=True,
        dir_okay=False,
        writable=True,
    ),
    op_list: bool = typer.Option(
        True,
        "--op-list/--no-op-list",
        help="Emit the GET_OP_LIST section in op definitions.",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable verbose output."
    ),
) -> None:
    """
    Generate op declarations (.h.inc) or definitions (.cpp.inc).
    """
    configure_logging(verbose)

    if gen not in GENERATORS:
        console.print(
            f"[bold red]Error:[/] Unknown generator [cyan]'{gen}'[/]. "
            f"Choose one of: {', '.join(GENERATORS)}."
        )
        raise typer.Exit(1)

    dialect_obj = load_dialect(file, dialect_name)
    console.print(
        f"Found dialect [bold cyan]'{dialect_obj.name}'[/bold cyan] "
        f"with {len(dialect_obj.ops)} op(s). Running [cyan]{gen}[/cyan]..."
    )

    buffer = io.StringIO()
    try:
        run_generator(
            gen,
            dialect_obj.op_definitions(),
            buffer,
            GenOptions(emit_op_list=op_list),
        )
    except OpForgeError as e:
        console.print(f"[bold red]Error:[/] {e}")
        raise typer.Exit(1) from e

    if output:
        output.write_text(buffer.getvalue())
        console.print(f"[bold green]Success![/] Written to [cyan]{output}[/cyan].")
    else:
        sys.stdout.write(buffer.getvalue())


@app.command()
def generators() -> None:
    """
    List the available generators.
    """
    table = Table(title="Generators")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    for info in GENERATORS.values():
        table.add_row(info.name, info.description)
    Console().print(table)


@app.command()
def ops(
    file: Path = _FILE_ARGUMENT,
    dialect_name: str = typer.Option(
        ...,
        "--dialect",
        "-d",
        envvar="OPFORGE_DIALECT",
        help="The variable name of the Dialect object to inspect.",
    ),
) -> None:
    """
    List the ops of a dialect with their operand and result counts.
    """
    dialect_obj = load_dialect(file, dialect_name)
    table = Table(title=f"Ops in '{dialect_obj.name}'")
    table.add_column("Op", style="cyan")
    table.add_column("C++ class")
    table.add_column("Operands", justify="right")
    table.add_column("Results", justify="right")
    table.add_column("Traits")
    for op_def in dialect_obj.op_definitions():
        table.add_row(*_op_row(op_def))
    Console().print(table)


def _op_row(op_def: OpDefinition) -> list[str]:
    try:
        operands = _arity_str(op_def.operand_arity)
        results = _arity_str(op_def.result_arity)
    except OpForgeError:
        operands = results = "[red]invalid[/red]"
    traits = ", ".join(t.name for t in op_def.native_traits)
    if op_def.pred_traits:
        traits += f" (+{len(op_def.pred_traits)} predicate)"
    return [op_def.operation_name, op_def.qualified_cpp_class_name, operands, results, traits]


@app.command()
def version() -> None:
    """
    Show the opforge CLI version.
    """
    from opforge import __version__

    Console().print(f"opforge version: [bold cyan]{__version__}[/bold cyan]")


if __name__ == "__main__":
    app()  # Typer handles the rest
