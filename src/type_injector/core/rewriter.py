"""Correlate syntax-tree constructs with dump nodes and derive annotation edits.

The engine never infers anything itself: it only reads the ``type`` the
compiler recorded for the node at a construct's position. Constructs whose
node or type cannot be found are left untouched.
"""

import logging
from collections.abc import Sequence

from type_injector.config import InjectorConfig
from type_injector.core.ports.syntax import (
    BindingSite,
    CallSite,
    ClosureParameter,
    ClosureSite,
    SyntaxTree,
    TextEdit,
)
from type_injector.core.types import (
    ArrayType,
    DictionaryType,
    FunctionType,
    NominalType,
    OptionalType,
    SwiftType,
    TupleType,
    TypeElement,
    parse_function_type,
    parse_type,
    render_result,
    render_type,
)
from type_injector.models import Node, Point

logger = logging.getLogger(__name__)

_CLOSURE_NODES = frozenset({"closure_expr"})
_CONSTRUCTOR_NODES = frozenset({"constructor_ref_call_expr"})
_ANONYMOUS = "_"


def _render_recorded(type_name: str) -> str:
    parsed = parse_type(type_name)
    return render_type(parsed) if parsed is not None else type_name


class TypeAnnotationRewriter:
    """Fill in missing annotations of one source file from its type-checked dump."""

    def __init__(self, node: Node, config: InjectorConfig | None = None) -> None:
        self._node = node
        self._config = config or InjectorConfig()

    @property
    def node(self) -> Node:
        return self._node

    def rewrite(self, syntax: SyntaxTree) -> str:
        edits = self.plan(syntax)
        logger.info("Applying %d annotation edit(s) to %s", len(edits), syntax.file_name)
        return syntax.apply(edits)

    def plan(self, syntax: SyntaxTree) -> list[TextEdit]:
        file_name = self._file_name(syntax)
        edits: list[TextEdit] = []

        rewritten_calls: set[tuple[int, int]] = set()
        if self._config.annotate_calls:
            for call in syntax.calls():
                edit = self._annotate_call(call, file_name)
                if edit is not None:
                    edits.append(edit)
                    rewritten_calls.add((call.line, call.column))

        if self._config.annotate_bindings:
            for binding in syntax.bindings():
                if binding.initializer_call is not None and binding.initializer_call in rewritten_calls:
                    logger.debug("Binding %s already spelled by its constructor call", binding.name)
                    continue
                edit = self._annotate_binding(binding, file_name)
                if edit is not None:
                    edits.append(edit)

        if self._config.annotate_closures:
            for closure in syntax.closures():
                edits.extend(self._annotate_closure(closure, file_name))

        return sorted(edits, key=lambda edit: (edit.start, edit.end))

    def _file_name(self, syntax: SyntaxTree) -> str:
        # Locations in the dump carry the path swiftc was given, which is the
        # value of the root source_file node.
        root = self._node
        if root.name == "source_file" and root.value:
            return root.value
        return syntax.file_name

    # -- bindings ------------------------------------------------------------

    def _annotate_binding(self, binding: BindingSite, file_name: str) -> TextEdit | None:
        if binding.has_annotation or not binding.has_initializer:
            return None
        if binding.is_tuple_pattern:
            logger.debug("Tuple pattern at %d:%d is not supported", binding.line, binding.column)
            return None
        point = Point(file_name=file_name, line=binding.line, column=binding.column)
        type_name = self._binding_type(point)
        if type_name is None:
            logger.debug("No recorded type for binding %s at %s", binding.name, point)
            return None
        return TextEdit(binding.name_end, binding.name_end, f": {_render_recorded(type_name)}")

    def _binding_type(self, point: Point) -> str | None:
        hit = self._node.find(point)
        if hit is not None and hit.type is not None:
            return hit.type
        declared = self._node.find_where(
            lambda node: node.type is not None and node.range is not None and node.range.start == point
        )
        return declared.type if declared is not None else None

    # -- generic constructor calls -------------------------------------------

    def _annotate_call(self, call: CallSite, file_name: str) -> TextEdit | None:
        if call.has_generic_arguments or not call.callee.lstrip("`")[:1].isupper():
            return None
        point = Point(file_name=file_name, line=call.line, column=call.column)
        hit = self._node.find(point)
        if hit is None:
            logger.debug("No recorded node for call to %s at %s", call.callee, point)
            return None
        type_name = _constructed_type(hit, point)
        if type_name is None:
            logger.debug("Call to %s at %s is not a constructor call", call.callee, point)
            return None
        constructed = parse_type(type_name)
        if isinstance(constructed, FunctionType):
            constructed = constructed.result
        constructed = _spelled_generic(constructed, call.callee.strip("`"))
        if not isinstance(constructed, NominalType) or not constructed.generic_arguments:
            return None
        return TextEdit(call.callee_start, call.callee_end, render_type(constructed))

    # -- closures ------------------------------------------------------------

    def _annotate_closure(self, closure: ClosureSite, file_name: str) -> list[TextEdit]:
        if not closure.has_signature:
            return []
        untyped = [p for p in closure.parameters if not p.has_type and p.name != _ANONYMOUS]
        if not untyped and closure.has_return_type:
            return []

        point = Point(file_name=file_name, line=closure.line, column=closure.column)
        node = self._closure_node(point)
        if node is None or node.type is None:
            logger.debug("No recorded type for closure at %s", point)
            return []
        function = parse_function_type(node.type)
        if function is None:
            logger.debug("Recorded closure type %r at %s is not a function type", node.type, point)
            return []
        elements = _match_parameters(closure.parameters, function.parameters)
        if elements is None:
            logger.debug(
                "Closure at %s has %d parameter(s), type %r does not match",
                point,
                len(closure.parameters),
                node.type,
            )
            return []

        assert closure.signature_start is not None and closure.signature_end is not None
        edits: list[TextEdit] = []
        if untyped or not closure.parenthesized:
            pieces = [_parameter_text(parameter, element) for parameter, element in zip(closure.parameters, elements)]
            edits.append(TextEdit(closure.signature_start, closure.signature_end, "(" + ", ".join(pieces) + ")"))
        if not closure.has_return_type:
            effects = "" if closure.has_effects else "".join(f" {effect}" for effect in function.effects)
            insert_at = closure.effects_end if closure.effects_end is not None else closure.signature_end
            edits.append(TextEdit(insert_at, insert_at, f"{effects} -> {render_result(function.result)}"))
        return edits

    def _closure_node(self, point: Point) -> Node | None:
        hit = self._node.find(point)
        if hit is None or hit.name in _CLOSURE_NODES:
            return hit
        return hit.find_where(lambda node: node.name in _CLOSURE_NODES and node.location == point)


def _parameter_text(parameter: ClosureParameter, element: TypeElement) -> str:
    if parameter.has_type or parameter.name == _ANONYMOUS:
        return parameter.text
    return f"{parameter.name}: {render_type(element.type)}" + ("..." if element.variadic else "")


def _match_parameters(
    parameters: Sequence[ClosureParameter], elements: Sequence[TypeElement]
) -> list[TypeElement] | None:
    if len(parameters) == len(elements):
        return list(elements)
    # A closure may destructure a single tuple argument into several names.
    if len(elements) == 1 and len(parameters) > 1:
        only = elements[0].type
        if isinstance(only, TupleType) and len(only.elements) == len(parameters):
            return [TypeElement(type=element.type, variadic=element.variadic) for element in only.elements]
    return None


def _constructed_type(hit: Node, point: Point) -> str | None:
    """Type of the construction recorded at ``point``, looking through implicit wrappers."""
    if hit.name in _CONSTRUCTOR_NODES:
        return hit.type
    owner = hit.find_where(
        lambda node: node.location == point and any(child.name in _CONSTRUCTOR_NODES for child in node.children)
    )
    if owner is None:
        return None
    if owner.type is not None:
        return owner.type
    return next(child.type for child in owner.children if child.name in _CONSTRUCTOR_NODES)


def _spelled_generic(constructed: SwiftType | None, callee: str) -> SwiftType | None:
    # [Int] built by Array(...) is written Array<Int>.
    if callee == "Array" and isinstance(constructed, ArrayType):
        return NominalType(segments=(("Array", (constructed.element,)),))
    if callee == "Dictionary" and isinstance(constructed, DictionaryType):
        return NominalType(segments=(("Dictionary", (constructed.key, constructed.value)),))
    if callee == "Optional" and isinstance(constructed, OptionalType) and not constructed.implicitly_unwrapped:
        return NominalType(segments=(("Optional", (constructed.wrapped,)),))
    return constructed
