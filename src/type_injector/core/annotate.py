import logging
from dataclasses import dataclass
from pathlib import Path

from type_injector.config import InjectorConfig
from type_injector.core.dump import dump_source_file, load_dump
from type_injector.core.grammar import parse_dump
from type_injector.core.ports.syntax import SyntaxTree, TextEdit
from type_injector.core.rewriter import TypeAnnotationRewriter
from type_injector.models import Node
from type_injector.syntax.tree_sitter_swift import SwiftSyntaxTree

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnnotationResult:
    file_name: str
    original: str
    annotated: str
    edits: tuple[TextEdit, ...]

    @property
    def changed(self) -> bool:
        return self.annotated != self.original


def annotate_tree(node: Node, syntax: SyntaxTree, config: InjectorConfig | None = None) -> AnnotationResult:
    edits = TypeAnnotationRewriter(node, config).plan(syntax)
    annotated = syntax.apply(edits)
    logger.info("Planned %d annotation edit(s) for %s", len(edits), syntax.file_name)
    return AnnotationResult(
        file_name=syntax.file_name,
        original=syntax.apply([]),
        annotated=annotated,
        edits=tuple(edits),
    )


def annotate_source(
    source: str,
    dump_text: str,
    file_name: str = "main.swift",
    config: InjectorConfig | None = None,
) -> AnnotationResult:
    """Annotate *source* using an already captured dump of the same text."""
    node = parse_dump(dump_text)
    return annotate_tree(node, SwiftSyntaxTree.from_source(source, file_name), config)


def annotate_file(
    path: str | Path,
    dump_path: str | Path | None = None,
    config: InjectorConfig | None = None,
) -> AnnotationResult:
    """Annotate a file on disk; without *dump_path* swiftc is run to produce the dump."""
    config = config or InjectorConfig.from_env()
    syntax = SwiftSyntaxTree.from_file(path)
    node = load_dump(dump_path) if dump_path is not None else dump_source_file(path, config)
    return annotate_tree(node, syntax, config)
