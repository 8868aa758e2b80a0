from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from type_injector.core.dump import load_dump
from type_injector.errors import TypeInjectorError
from type_injector.models import Node, Point

dump_app = typer.Typer(help="Inspect a type-checked AST dump.")
console = Console()
err_console = Console(stderr=True)


def _load(path: Path) -> Node:
    try:
        return load_dump(path)
    except (TypeInjectorError, FileNotFoundError) as exc:
        err_console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1) from None


def _label(node: Node) -> str:
    parts = [f"[bold]{escape(node.name)}[/bold]"]
    if node.value is not None:
        parts.append(f'"{escape(node.value)}"')
    if node.type is not None:
        parts.append(f"[cyan]{escape(node.type)}[/cyan]")
    if node.location is not None:
        parts.append(f"[dim]@{escape(str(node.location))}[/dim]")
    return " ".join(parts)


def _parse_position(position: str) -> tuple[int, int]:
    line, _, column = position.partition(":")
    if not line.isdigit() or not column.isdigit():
        raise typer.BadParameter("Expected LINE:COLUMN, e.g. 3:17.", param_hint="POSITION")
    return int(line), int(column)


@dump_app.command("tree")
def tree(
    path: Annotated[Path, typer.Argument(help="File holding the output of swiftc -dump-ast.")],
    depth: Annotated[int, typer.Option(help="Maximum depth to print.")] = 8,
) -> None:
    """Print the parsed dump as a tree."""
    root = _load(path)
    rendered = Tree(_label(root))
    branches: dict[int, Tree] = {id(root): rendered}
    for level, node in root.walk():
        if level >= depth:
            continue
        parent = branches[id(node)]
        for child in node.children:
            branches[id(child)] = parent.add(_label(child))
    console.print(rendered)


@dump_app.command("find")
def find(
    path: Annotated[Path, typer.Argument(help="File holding the output of swiftc -dump-ast.")],
    position: Annotated[str, typer.Argument(help="Source position as LINE:COLUMN (1-based).")],
    file: Annotated[str | None, typer.Option(help="File name used in the dump locations.")] = None,
) -> None:
    """Show the node recorded at POSITION."""
    line, column = _parse_position(position)
    root = _load(path)
    file_name = file or root.value or ""
    node = root.find(Point(file_name=file_name, line=line, column=column))
    if node is None:
        console.print(f"No node at {escape(file_name)}:{line}:{column}")
        raise typer.Exit(code=1)

    table = Table(show_header=False)
    table.add_column("field")
    table.add_column("value")
    table.add_row("name", escape(node.name))
    table.add_row("value", escape(node.value or ""))
    table.add_row("type", escape(node.type or ""))
    table.add_row("location", escape(str(node.location or "")))
    table.add_row("range", escape(str(node.range or "")))
    table.add_row("decl", escape(node.decl.signature if node.decl else ""))
    console.print(table)
