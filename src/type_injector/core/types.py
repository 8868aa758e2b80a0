"""Structured view of the type names recorded in the dump.

Only as much of Swift's type grammar as the compiler prints is understood:
nominal types with generic arguments, tuples, arrays, dictionaries,
optionals, metatypes, protocol compositions, function types and the
attributes/specifiers that can prefix them (``@escaping``, ``inout``, ...).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import cache
from typing import Any, Union

from type_injector.core.combinators import (
    ParseFailure,
    Parser,
    choice,
    end_of_input,
    identifier,
    lazy,
    sequence,
    skip_spaces,
    take_while,
    token,
)

logger = logging.getLogger(__name__)

_SPECIFIERS = frozenset(
    {"inout", "__owned", "__shared", "borrowing", "consuming", "sending", "isolated", "some", "any"}
)
_EFFECTS = frozenset({"async", "throws", "rethrows"})


@dataclass(frozen=True)
class NominalType:
    segments: tuple[tuple[str, tuple[SwiftType, ...]], ...]

    @property
    def generic_arguments(self) -> tuple[SwiftType, ...]:
        return self.segments[-1][1]


@dataclass(frozen=True)
class TypeElement:
    type: SwiftType
    label: str | None = None
    variadic: bool = False


@dataclass(frozen=True)
class TupleType:
    elements: tuple[TypeElement, ...] = ()

    @property
    def is_unit(self) -> bool:
        return not self.elements


@dataclass(frozen=True)
class ArrayType:
    element: SwiftType


@dataclass(frozen=True)
class DictionaryType:
    key: SwiftType
    value: SwiftType


@dataclass(frozen=True)
class OptionalType:
    wrapped: SwiftType
    implicitly_unwrapped: bool = False


@dataclass(frozen=True)
class MetatypeType:
    instance: SwiftType
    kind: str = "Type"


@dataclass(frozen=True)
class AttributedType:
    attributes: tuple[str, ...]
    base: SwiftType


@dataclass(frozen=True)
class CompositionType:
    members: tuple[SwiftType, ...]


@dataclass(frozen=True)
class FunctionType:
    parameters: tuple[TypeElement, ...]
    result: SwiftType
    effects: tuple[str, ...] = ()


SwiftType = Union[
    NominalType,
    TupleType,
    ArrayType,
    DictionaryType,
    OptionalType,
    MetatypeType,
    AttributedType,
    CompositionType,
    FunctionType,
]


@dataclass(frozen=True)
class _ParenList:
    elements: tuple[TypeElement, ...]

    def as_type(self) -> SwiftType:
        if len(self.elements) == 1:
            only = self.elements[0]
            if only.label is None and not only.variadic:
                return only.type
        return TupleType(self.elements)


def _sym(literal: str) -> Parser[str]:
    return token(literal, skip_whitespace=True)


def _word(words: frozenset[str], expected: str) -> Parser[str]:
    ident = skip_spaces().skip_left(identifier())

    def run(text: str, position: int) -> tuple[str, int]:
        value, end = ident.run(text, position)
        if value not in words:
            raise ParseFailure(position, expected)
        return value, end

    return Parser(run, expected)


def _as_type(value: Any) -> SwiftType:
    return value.as_type() if isinstance(value, _ParenList) else value


@cache
def _type_attribute() -> Parser[str]:
    arguments = sequence(token("("), take_while(lambda c: c != ")"), token(")")).map("".join)
    return sequence(skip_spaces(), token("@"), identifier(), arguments.optional("")).map(
        lambda parts: "".join(parts[1:])
    )


@cache
def _element() -> Parser[TypeElement]:
    label = skip_spaces().skip_left(identifier()).skip_right(_sym(":"))
    return sequence(label.optional(), swift_type(), _sym("...").optional()).map(
        lambda parts: TypeElement(type=parts[1], label=parts[0], variadic=parts[2] is not None)
    )


@cache
def _paren_list() -> Parser[_ParenList]:
    separated = _element().then(_sym(",").skip_left(_element()).many(), lambda head, tail: [head, *tail])
    inner = separated.optional([])
    return _sym("(").skip_left(inner).skip_right(_sym(")")).map(lambda elements: _ParenList(tuple(elements)))


@cache
def _collection() -> Parser[SwiftType]:
    dictionary_value = _sym(":").skip_left(swift_type())
    body = swift_type().then(
        dictionary_value.optional(),
        lambda first, second: ArrayType(first) if second is None else DictionaryType(first, second),
    )
    return _sym("[").skip_left(body).skip_right(_sym("]"))


@cache
def _nominal() -> Parser[NominalType]:
    arguments = _sym("<").skip_left(
        swift_type().then(_sym(",").skip_left(swift_type()).many(), lambda head, tail: (head, *tail))
    ).skip_right(_sym(">"))
    segment = skip_spaces().skip_left(identifier()).then(arguments.optional(()), lambda name, args: (name, args))
    return segment.then(token(".").skip_left(segment).many(), lambda head, tail: NominalType((head, *tail)))


@cache
def _postfix() -> Parser[str]:
    return choice([token("?"), token("!"), token(".Type"), token(".Protocol")])


def _apply_postfix(base: Any, suffixes: list[str]) -> Any:
    for suffix in suffixes:
        base = _as_type(base)
        if suffix == "?":
            base = OptionalType(base)
        elif suffix == "!":
            base = OptionalType(base, implicitly_unwrapped=True)
        else:
            base = MetatypeType(base, kind=suffix[1:])
    return base


@cache
def _function_or_primary() -> Parser[SwiftType]:
    primary = choice([_paren_list(), _collection(), _nominal()])
    with_postfix = primary.then(_postfix().many(), _apply_postfix)
    arrow = sequence(_word(_EFFECTS, "effect").many(), _sym("->").skip_left(swift_type()))

    def build(base: Any, tail: list[Any] | None) -> SwiftType:
        if tail is None:
            return _as_type(base)
        effects, result = tail
        if isinstance(base, _ParenList):
            parameters = base.elements
        else:
            parameters = (TypeElement(type=base),)
        return FunctionType(parameters=parameters, result=result, effects=tuple(effects))

    return with_postfix.then(arrow.optional(), build)


@cache
def _swift_type() -> Parser[SwiftType]:
    prefix = choice([_type_attribute(), _word(_SPECIFIERS, "specifier")]).many()
    member = prefix.then(
        _function_or_primary(),
        lambda attrs, base: AttributedType(tuple(attrs), base) if attrs else base,
    )
    return member.then(
        _sym("&").skip_left(member).many(),
        lambda head, tail: CompositionType((head, *tail)) if tail else head,
    )


def swift_type() -> Parser[SwiftType]:
    return lazy(_swift_type)


@cache
def _document() -> Parser[SwiftType]:
    return swift_type().skip_right(skip_spaces()).skip_right(end_of_input())


def parse_type(text: str) -> SwiftType | None:
    """Parse a recorded type name, or return ``None`` when it is not understood."""
    try:
        parsed, _ = _document().run(text)
    except ParseFailure as exc:
        logger.debug("Cannot parse type %r: %s", text, exc)
        return None
    return parsed


def parse_function_type(text: str) -> FunctionType | None:
    parsed = parse_type(text)
    return parsed if isinstance(parsed, FunctionType) else None


def _needs_parentheses(swift: SwiftType) -> bool:
    return isinstance(swift, (FunctionType, CompositionType, AttributedType))


def render_element(element: TypeElement) -> str:
    text = render_type(element.type)
    if element.label is not None:
        text = f"{element.label}: {text}"
    return text + ("..." if element.variadic else "")


def render_result(result: SwiftType) -> str:
    """Render a function result; the empty tuple is spelled ``Void``."""
    if isinstance(result, TupleType) and result.is_unit:
        return "Void"
    return render_type(result)


def render_type(swift: SwiftType) -> str:
    if isinstance(swift, NominalType):
        return ".".join(
            name + (f"<{', '.join(render_type(arg) for arg in args)}>" if args else "") for name, args in swift.segments
        )
    if isinstance(swift, TupleType):
        return "(" + ", ".join(render_element(element) for element in swift.elements) + ")"
    if isinstance(swift, ArrayType):
        return f"[{render_type(swift.element)}]"
    if isinstance(swift, DictionaryType):
        return f"[{render_type(swift.key)} : {render_type(swift.value)}]"
    if isinstance(swift, (OptionalType, MetatypeType)):
        inner = swift.wrapped if isinstance(swift, OptionalType) else swift.instance
        text = render_type(inner)
        if _needs_parentheses(inner):
            text = f"({text})"
        if isinstance(swift, MetatypeType):
            return f"{text}.{swift.kind}"
        return text + ("!" if swift.implicitly_unwrapped else "?")
    if isinstance(swift, AttributedType):
        return " ".join((*swift.attributes, render_type(swift.base)))
    if isinstance(swift, CompositionType):
        return " & ".join(render_type(member) for member in swift.members)
    parameters = "(" + ", ".join(render_element(element) for element in swift.parameters) + ")"
    effects = "".join(f" {effect}" for effect in swift.effects)
    return f"{parameters}{effects} -> {render_result(swift.result)}"
