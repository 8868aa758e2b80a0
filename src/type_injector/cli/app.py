import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from type_injector.cli.annotate import annotate
from type_injector.cli.dump import dump_app

app = typer.Typer(
    name="swift-type-injector",
    help="Write the types swiftc inferred back into Swift source.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback()
def configure(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log every skipped construct.")] = False,
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


app.command("annotate")(annotate)
app.add_typer(dump_app, name="dump")


def main() -> None:
    app()
