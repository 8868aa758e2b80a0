from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape

from type_injector.config import InjectorConfig
from type_injector.core.annotate import annotate_file
from type_injector.errors import TypeInjectorError

console = Console()
err_console = Console(stderr=True)


def annotate(
    path: Annotated[Path, typer.Argument(help="Swift source file to annotate.")],
    dump: Annotated[
        Path | None, typer.Option(help="Read the AST dump from this file instead of running swiftc.")
    ] = None,
    in_place: Annotated[bool, typer.Option("--in-place", "-i", help="Overwrite the source file.")] = False,
    bindings: Annotated[bool, typer.Option(help="Annotate local bindings.")] = True,
    calls: Annotated[bool, typer.Option(help="Spell out generic constructor arguments.")] = True,
    closures: Annotated[bool, typer.Option(help="Annotate closure signatures.")] = True,
) -> None:
    """Print (or write back) PATH with inferred types spelled out."""
    config = InjectorConfig.from_env().model_copy(
        update={"annotate_bindings": bindings, "annotate_calls": calls, "annotate_closures": closures}
    )
    try:
        result = annotate_file(path, dump_path=dump, config=config)
    except (TypeInjectorError, FileNotFoundError) as exc:
        err_console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1) from None

    if not in_place:
        # Source text goes out verbatim; rich would read "[Int]" as markup.
        typer.echo(result.annotated, nl=False)
        return
    if result.changed:
        path.write_text(result.annotated, encoding="utf-8")
        console.print(f"[green]Annotated[/green] {escape(str(path))} ({len(result.edits)} edit(s))")
    else:
        console.print(f"[yellow]Unchanged[/yellow] {escape(str(path))}")
