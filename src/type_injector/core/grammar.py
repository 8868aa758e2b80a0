"""Grammar of the textual AST dump printed by ``swiftc -dump-ast``.

The rules are built from :mod:`type_injector.core.combinators` and cached, so
each factory returns the same parser on every call. Order inside every
``choice``/``or_`` is significant: earlier alternatives shadow later ones.
"""

import logging
from functools import cache
from typing import Any

from type_injector.core.combinators import (
    ParseFailure,
    Parser,
    choice,
    end_of_input,
    keyword,
    lazy,
    number,
    quoted,
    sequence,
    skip_spaces,
    take_while,
    take_while1,
    token,
)
from type_injector.errors import MalformedDumpError
from type_injector.models import (
    Decl,
    DeclAttribute,
    DoubleQuotedToken,
    LocationAttribute,
    Node,
    NothrowAttribute,
    Point,
    Range,
    RangeAttribute,
    RawNode,
    RawToken,
    SingleQuotedToken,
    TypeAttribute,
    UnknownAttribute,
)

logger = logging.getLogger(__name__)

_RAW_EXCLUDED = frozenset(" \t\r\n()")
_RAW_START_EXCLUDED = _RAW_EXCLUDED | frozenset("'\"=")
_OPERATOR_CHARS = frozenset("/=-+!*%<>&|^~?")


@cache
def parse_node() -> Parser[RawNode]:
    """``"(" keyword [value] (attribute | node | token)* ")"``"""
    entry = skip_spaces().skip_left(parse_attribute_or_node()).skip_right(skip_spaces())
    body = sequence(
        keyword(),
        skip_spaces().skip_left(parse_node_value()),
        entry.many(),
    ).map(lambda parts: RawNode(name=parts[0], value=parts[1], entries=parts[2]))
    return token("(").skip_left(body).skip_right(skip_spaces()).skip_right(token(")"))


@cache
def parse_node_value() -> Parser[str | None]:
    return quoted('"', escapes=True).optional()


@cache
def parse_attribute_or_node() -> Parser[Any]:
    return parse_attribute().or_(lazy(parse_node)).or_(parse_token())


@cache
def _raw_text() -> Parser[str]:
    """Unquoted text up to whitespace or a parenthesis; never starts with a quote or `=`."""
    return take_while1(lambda c: c not in _RAW_START_EXCLUDED, "text").then(
        take_while(lambda c: c not in _RAW_EXCLUDED), lambda head, tail: head + tail
    )


@cache
def parse_token() -> Parser[Any]:
    single = quoted("'").map(lambda text: SingleQuotedToken(text=text))
    double = quoted('"', escapes=True).map(lambda text: DoubleQuotedToken(text=text))
    raw = _raw_text().map(lambda text: RawToken(text=text))
    return choice([single, double, raw])


@cache
def parse_attribute() -> Parser[Any]:
    return choice(
        [
            token("range=").skip_left(parse_range()).map(lambda r: RangeAttribute(range=r)),
            token("type=").skip_left(parse_type_name()).map(lambda name: TypeAttribute(name=name)),
            token("location=").skip_left(parse_point()).map(lambda p: LocationAttribute(point=p)),
            token("nothrow").map(lambda _: NothrowAttribute()),
            token("decl=").skip_left(parse_decl()).map(lambda d: DeclAttribute(decl=d)),
            parse_unknown(),
        ]
    )


@cache
def parse_unknown() -> Parser[UnknownAttribute]:
    """Any other ``keyword[=value]``; the value keeps its dump spelling."""
    value = choice(
        [
            parse_range(),
            parse_type_name(),
            parse_point(),
            parse_elements(),
            parse_decl(),
            quoted('"', escapes=True),
            parse_group(),
            _raw_text(),
        ]
    ).slice()
    return keyword().then(
        token("=").skip_left(value).map(str.rstrip).optional(),
        lambda name, raw: UnknownAttribute(keyword=name, raw_value=raw),
    )


@cache
def decl_signature() -> Parser[str]:
    """``Swift.(file).Int.init(_builtinIntegerLiteral:)``, ``Swift.(file).Int extension.+=`` and friends.

    Needs at least one dot.
    """
    operator = take_while1(lambda c: c in _OPERATOR_CHARS, "operator")
    name = keyword().or_(operator)
    # foo(arg:), foo() and ==(_:_:)
    func_sig = sequence(name, token("("), keyword().optional(""), token(")")).map("".join)
    # (file)
    file_sig = sequence(token("("), keyword(), token(")")).map("".join)
    component = choice([func_sig, file_sig, name])
    dotted = token(".").then(component, lambda dot, part: dot + part)
    return keyword().then(dotted.many1(), lambda head, tail: head + "".join(tail))


@cache
def parse_decl() -> Parser[Decl]:
    signatures = skip_spaces().skip_left(decl_signature()).skip_right(skip_spaces()).many1()
    return (
        signatures.map(" ".join)
        .skip_right(skip_spaces())
        .then(
            parse_decl_substitution().optional(),
            lambda signature, substitution: Decl(signature=signature, substitution=substitution),
        )
    )


def _close_balanced(text: str, start: int, closing: str) -> int:
    # Explicit stack instead of recursion: substitution maps nest deeply.
    depth = 0
    end = start
    length = len(text)
    while end < length:
        current = text[end]
        if current == closing and depth == 0:
            return end + 1
        if current == "(":
            depth += 1
        elif current == ")":
            if depth == 0:
                raise ParseFailure(end, "balanced parentheses")
            depth -= 1
        end += 1
    raise ParseFailure(end, f"'{closing}'")


def _balanced_substitution(text: str, position: int) -> tuple[str, int]:
    if not text.startswith("[with", position):
        raise ParseFailure(position, "'[with'")
    end = _close_balanced(text, position + len("[with"), "]")
    return text[position:end], end


def _balanced_group(text: str, position: int) -> tuple[str, int]:
    if not text.startswith("(", position):
        raise ParseFailure(position, "'('")
    end = _close_balanced(text, position + 1, ")")
    return text[position:end], end


@cache
def parse_decl_substitution() -> Parser[str]:
    return Parser(_balanced_substitution, "substitution")


@cache
def parse_group() -> Parser[str]:
    """A parenthesized run such as ``captures=(a<direct> self<direct>)``, kept verbatim."""
    return Parser(_balanced_group, "parenthesized group")


@cache
def parse_range() -> Parser[Range]:
    points = parse_point().skip_right(token(" - ")).then(parse_point(), lambda start, end: Range(start=start, end=end))
    return token("[").skip_left(points).skip_right(token("]"))


@cache
def parse_point() -> Parser[Point]:
    file_name = take_while1(lambda c: c not in ": \n", "file name")
    return sequence(
        file_name,
        token(":").skip_left(number()),
        token(":").skip_left(number()),
    ).map(lambda parts: Point(file_name=parts[0], line=parts[1], column=parts[2]))


@cache
def parse_type_name() -> Parser[str]:
    return quoted("'")


@cache
def parse_elements() -> Parser[list[str]]:
    return token("[").skip_left(take_while(lambda c: c != "]").map(lambda text: [text])).skip_right(token("]"))


@cache
def parse_dump_document() -> Parser[RawNode]:
    return skip_spaces().skip_left(parse_node()).skip_right(skip_spaces()).skip_right(end_of_input())


def parse_raw_dump(text: str) -> RawNode:
    try:
        raw, _ = parse_dump_document().run(text)
    except ParseFailure as exc:
        raise MalformedDumpError(f"Malformed AST dump: expected {exc.expected}", exc.position) from None
    except RecursionError:
        raise MalformedDumpError("Malformed AST dump: nesting too deep", 0) from None
    return raw


def parse_dump(text: str) -> Node:
    """Parse a whole dump into a :class:`Node` tree; all or nothing."""
    node = Node.from_raw(parse_raw_dump(text))
    logger.info("Parsed AST dump rooted at %s (%d characters)", node.name, len(text))
    return node
