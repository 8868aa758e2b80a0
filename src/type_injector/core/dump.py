import logging
import subprocess
from pathlib import Path

from type_injector.config import InjectorConfig
from type_injector.core.grammar import parse_dump
from type_injector.errors import CompilerInvocationError
from type_injector.models import Node

logger = logging.getLogger(__name__)


def dump_command(path: Path, config: InjectorConfig) -> list[str]:
    return [config.swiftc, "-dump-ast", "-suppress-warnings", *config.swiftc_args, str(path)]


def run_dump_ast(path: str | Path, config: InjectorConfig | None = None) -> str:
    """Run swiftc on *path* and return the type-checked AST dump text."""
    config = config or InjectorConfig.from_env()
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    command = dump_command(file_path, config)
    logger.info("Dumping AST: %s", " ".join(command))
    try:
        result = subprocess.run(command, check=False, capture_output=True, text=True)
    except FileNotFoundError:
        raise CompilerInvocationError(f"Compiler not found: {config.swiftc}") from None
    if result.returncode != 0:
        raise CompilerInvocationError(
            f"{config.swiftc} exited with status {result.returncode}",
            returncode=result.returncode,
            stderr=result.stderr,
        )
    # Older toolchains print the dump on stderr.
    return result.stdout if result.stdout.strip() else result.stderr


def load_dump(path: str | Path) -> Node:
    dump_path = Path(path)
    try:
        text = dump_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise FileNotFoundError(f"Dump file not found: {path}") from None
    return parse_dump(text)


def dump_source_file(path: str | Path, config: InjectorConfig | None = None) -> Node:
    return parse_dump(run_dump_ast(path, config))
