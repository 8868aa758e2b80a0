import logging
from collections.abc import Iterator, Sequence
from pathlib import Path
from typing import cast

from tree_sitter import Node, Tree
from tree_sitter_language_pack import SupportedLanguage, get_parser

from type_injector.core.ports.syntax import (
    BindingSite,
    CallSite,
    ClosureParameter,
    ClosureSite,
    TextEdit,
    apply_edits,
)

logger = logging.getLogger(__name__)

_LANGUAGE = "swift"
_EFFECT_NODES = frozenset({"async", "throws"})
_CALL_NODES = ("call_expression", "constructor_expression")


def _position(node: Node) -> tuple[int, int]:
    """1-based line and byte column, the way swiftc prints locations."""
    return node.start_point[0] + 1, node.start_point[1] + 1


def _descendants(root: Node, node_type: str, stop: frozenset[str] = frozenset()) -> Iterator[Node]:
    """Pre-order search for ``node_type``; matched nodes and ``stop`` types are not entered."""
    stack = list(reversed(root.children))
    while stack:
        node = stack.pop()
        if node.type == node_type:
            yield node
            continue
        if node.type in stop:
            continue
        stack.extend(reversed(node.children))


class SwiftSyntaxTree:
    """Swift concrete syntax tree backed by tree-sitter.

    Implements the ``SyntaxTree`` port. Rendering splices edits into the
    original bytes, so everything outside an edit is reproduced exactly.
    """

    def __init__(self, source: bytes, tree: Tree, file_name: str) -> None:
        self._source = source
        self._tree = tree
        self._file_name = file_name

    @classmethod
    def from_source(cls, source: str | bytes, file_name: str = "main.swift") -> "SwiftSyntaxTree":
        source_bytes = source.encode("utf-8") if isinstance(source, str) else source
        parser = get_parser(cast(SupportedLanguage, _LANGUAGE))
        tree = parser.parse(source_bytes)
        if tree.root_node.has_error:
            logger.warning("Syntax errors in %s; constructs near them may be skipped", file_name)
        return cls(source_bytes, tree, file_name)

    @classmethod
    def from_file(cls, path: str | Path) -> "SwiftSyntaxTree":
        file_path = Path(path)
        try:
            source_bytes = file_path.read_bytes()
        except FileNotFoundError:
            raise FileNotFoundError(f"File not found: {path}") from None
        return cls.from_source(source_bytes, str(file_path))

    @property
    def file_name(self) -> str:
        return self._file_name

    @property
    def source(self) -> str:
        return self._source.decode("utf-8")

    def _text(self, node: Node) -> str:
        return self._source[node.start_byte : node.end_byte].decode("utf-8")

    def _walk(self, *node_types: str) -> Iterator[Node]:
        stack = [self._tree.root_node]
        while stack:
            node = stack.pop()
            if node.type in node_types:
                yield node
            stack.extend(reversed(node.children))

    # -- bindings ------------------------------------------------------------

    def bindings(self) -> list[BindingSite]:
        sites: list[BindingSite] = []
        for declaration in self._walk("property_declaration"):
            groups: list[list[Node]] = []
            for child in declaration.children:
                if child.type == "pattern":
                    groups.append([child])
                elif groups:
                    groups[-1].append(child)
            sites.extend(self._binding_site(group[0], group[1:]) for group in groups)
        return sites

    def _binding_site(self, pattern: Node, rest: Sequence[Node]) -> BindingSite:
        value: Node | None = None
        for index, node in enumerate(rest):
            if node.type == "=":
                value = next((candidate for candidate in rest[index + 1 :] if candidate.is_named), None)
                break
        name = self._text(pattern)
        line, column = _position(pattern)
        return BindingSite(
            name=name,
            line=line,
            column=column,
            name_end=pattern.end_byte,
            has_annotation=any(node.type == "type_annotation" for node in rest),
            has_initializer=value is not None,
            is_tuple_pattern=name.startswith("("),
            initializer_call=_position(value) if value is not None and value.type in _CALL_NODES else None,
        )

    # -- calls ---------------------------------------------------------------

    def calls(self) -> list[CallSite]:
        sites: list[CallSite] = []
        for call in self._walk(*_CALL_NODES):
            found = self._callee(call)
            if found is None:
                continue
            callee, generic = found
            line, column = _position(callee)
            sites.append(
                CallSite(
                    callee=self._text(callee),
                    line=line,
                    column=column,
                    callee_start=callee.start_byte,
                    callee_end=callee.end_byte,
                    has_generic_arguments=generic,
                )
            )
        return sites

    @staticmethod
    def _callee(call: Node) -> tuple[Node, bool] | None:
        if call.type == "constructor_expression":
            constructed = call.child_by_field_name("constructed_type")
            if constructed is None or constructed.type != "user_type":
                return None
            identifiers = [child for child in constructed.named_children if child.type == "type_identifier"]
            # Qualified names like Outer.Inner are left alone.
            if len(identifiers) != 1:
                return None
            generic = any(child.type == "type_arguments" for child in constructed.named_children)
            return identifiers[0], generic

        if not call.children:
            return None
        callee = call.children[0]
        following = callee.next_sibling
        if callee.type != "simple_identifier" or following is None:
            return None
        if following.type not in ("call_suffix", "type_arguments"):
            return None
        return callee, following.type == "type_arguments"

    # -- closures ------------------------------------------------------------

    def closures(self) -> list[ClosureSite]:
        return [self._closure_site(literal) for literal in self._walk("lambda_literal")]

    def _closure_site(self, literal: Node) -> ClosureSite:
        line, column = _position(literal)
        function_type = next((child for child in literal.named_children if child.type == "lambda_function_type"), None)
        if function_type is None:
            return ClosureSite(line=line, column=column)

        children = function_type.children
        signature_end = function_type.start_byte
        effects_end: int | None = None
        has_return_type = function_type.child_by_field_name("return_type") is not None
        for child in children:
            if child.type == "->":
                has_return_type = True
                break
            if child.type in _EFFECT_NODES:
                effects_end = child.end_byte
            elif effects_end is None:
                signature_end = child.end_byte

        parameters = tuple(
            self._closure_parameter(node)
            for node in _descendants(function_type, "lambda_parameter", stop=frozenset({"lambda_literal"}))
        )
        return ClosureSite(
            line=line,
            column=column,
            parameters=parameters,
            signature_start=function_type.start_byte,
            signature_end=signature_end,
            effects_end=effects_end if effects_end is not None else signature_end,
            parenthesized=bool(children) and children[0].type == "(",
            has_return_type=has_return_type,
            has_effects=effects_end is not None,
        )

    def _closure_parameter(self, node: Node) -> ClosureParameter:
        text = self._text(node)
        if ":" in text:
            return ClosureParameter(name=text.split(":", 1)[0].split()[-1], text=text, has_type=True)
        return ClosureParameter(name=text.strip(), text=text, has_type=False)

    def apply(self, edits: Sequence[TextEdit]) -> str:
        return apply_edits(self._source, edits)
