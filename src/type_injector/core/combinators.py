"""Parser combinators over an immutable text buffer.

A parser wraps a function ``(text, position) -> (value, new_position)`` that
raises :class:`ParseFailure` when it does not match. Alternation is strictly
first-match: the right-hand side only runs after the left-hand side failed,
and a failed branch never consumes input. Grammar ambiguity is therefore
resolved by declaration order alone.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any, Generic, TypeVar

T = TypeVar("T")
U = TypeVar("U")
V = TypeVar("V")

ParseFn = Callable[[str, int], tuple[T, int]]

_WHITESPACE = frozenset(" \t\r\n")
_DIGITS = frozenset("0123456789")


class ParseFailure(Exception):
    def __init__(self, position: int, expected: str) -> None:
        super().__init__(f"expected {expected} at offset {position}")
        self.position = position
        self.expected = expected


def _furthest(left: ParseFailure, right: ParseFailure) -> ParseFailure:
    return left if left.position > right.position else right


class Parser(Generic[T]):
    __slots__ = ("_fn", "label")

    def __init__(self, fn: ParseFn[T], label: str = "parser") -> None:
        self._fn = fn
        self.label = label

    def __repr__(self) -> str:
        return f"Parser({self.label})"

    def run(self, text: str, position: int = 0) -> tuple[T, int]:
        return self._fn(text, position)

    def parse(self, text: str) -> tuple[T, str]:
        """Parse a prefix of ``text`` and return the value with the unconsumed tail."""
        value, end = self._fn(text, 0)
        return value, text[end:]

    def map(self, transform: Callable[[T], U]) -> Parser[U]:
        fn = self._fn

        def run(text: str, position: int) -> tuple[U, int]:
            value, position = fn(text, position)
            return transform(value), position

        return Parser(run, self.label)

    def then(self, other: Parser[U], combine: Callable[[T, U], V]) -> Parser[V]:
        first, second = self._fn, other._fn

        def run(text: str, position: int) -> tuple[V, int]:
            left, position = first(text, position)
            right, position = second(text, position)
            return combine(left, right), position

        return Parser(run, f"{self.label} {other.label}")

    def skip_left(self, other: Parser[U]) -> Parser[U]:
        """Run ``self`` then ``other``, keeping the value of ``other``."""
        return self.then(other, lambda _, right: right)

    def skip_right(self, other: Parser[Any]) -> Parser[T]:
        """Run ``self`` then ``other``, keeping the value of ``self``."""
        return self.then(other, lambda left, _: left)

    def or_(self, other: Parser[U]) -> Parser[T | U]:
        first, second = self._fn, other._fn

        def run(text: str, position: int) -> tuple[T | U, int]:
            try:
                return first(text, position)
            except ParseFailure as left:
                try:
                    return second(text, position)
                except ParseFailure as right:
                    raise _furthest(left, right) from None

        return Parser(run, f"{self.label} | {other.label}")

    def many(self) -> Parser[list[T]]:
        fn = self._fn

        def run(text: str, position: int) -> tuple[list[T], int]:
            values: list[T] = []
            while True:
                try:
                    value, end = fn(text, position)
                except ParseFailure:
                    return values, position
                values.append(value)
                if end == position:
                    return values, position
                position = end

        return Parser(run, f"many({self.label})")

    def many1(self) -> Parser[list[T]]:
        return self.then(self.many(), lambda head, tail: [head, *tail])

    def optional(self, default: U | None = None) -> Parser[T | U | None]:
        return self.or_(pure(default))

    def slice(self) -> Parser[str]:
        """Return the text consumed by ``self`` instead of its value."""
        fn = self._fn

        def run(text: str, position: int) -> tuple[str, int]:
            _, end = fn(text, position)
            return text[position:end], end

        return Parser(run, self.label)


def pure(value: T) -> Parser[T]:
    return Parser(lambda _, position: (value, position), "pure")


def fail(expected: str) -> Parser[Any]:
    def run(text: str, position: int) -> tuple[Any, int]:
        raise ParseFailure(position, expected)

    return Parser(run, expected)


def choice(parsers: Sequence[Parser[Any]]) -> Parser[Any]:
    """Return the result of the first parser in ``parsers`` that succeeds."""
    fns = [parser._fn for parser in parsers]
    label = " | ".join(parser.label for parser in parsers)

    def run(text: str, position: int) -> tuple[Any, int]:
        failure: ParseFailure | None = None
        for fn in fns:
            try:
                return fn(text, position)
            except ParseFailure as exc:
                failure = exc if failure is None else _furthest(failure, exc)
        raise failure if failure is not None else ParseFailure(position, label)

    return Parser(run, label)


def sequence(*parsers: Parser[Any]) -> Parser[list[Any]]:
    fns = [parser._fn for parser in parsers]

    def run(text: str, position: int) -> tuple[list[Any], int]:
        values = []
        for fn in fns:
            value, position = fn(text, position)
            values.append(value)
        return values, position

    return Parser(run, " ".join(parser.label for parser in parsers))


def lazy(factory: Callable[[], Parser[T]]) -> Parser[T]:
    """Defer building a parser until it first runs; used for recursive rules."""
    resolved: list[ParseFn[T]] = []

    def run(text: str, position: int) -> tuple[T, int]:
        if not resolved:
            resolved.append(factory()._fn)
        return resolved[0](text, position)

    return Parser(run, "lazy")


def skip_spaces() -> Parser[None]:
    def run(text: str, position: int) -> tuple[None, int]:
        length = len(text)
        while position < length and text[position] in _WHITESPACE:
            position += 1
        return None, position

    return Parser(run, "whitespace")


def token(literal: str, skip_whitespace: bool = False) -> Parser[str]:
    """Match ``literal`` exactly, optionally skipping whitespace around it."""
    label = repr(literal)

    def run(text: str, position: int) -> tuple[str, int]:
        if skip_whitespace:
            _, position = skip_spaces().run(text, position)
        if not text.startswith(literal, position):
            raise ParseFailure(position, label)
        position += len(literal)
        if skip_whitespace:
            _, position = skip_spaces().run(text, position)
        return literal, position

    return Parser(run, label)


def satisfy(predicate: Callable[[str], bool], expected: str = "character") -> Parser[str]:
    def run(text: str, position: int) -> tuple[str, int]:
        if position < len(text) and predicate(text[position]):
            return text[position], position + 1
        raise ParseFailure(position, expected)

    return Parser(run, expected)


def char(expected: str) -> Parser[str]:
    return satisfy(lambda c: c == expected, repr(expected))


def take_while(predicate: Callable[[str], bool]) -> Parser[str]:
    """Match the longest (possibly empty) run of characters accepted by ``predicate``."""

    def run(text: str, position: int) -> tuple[str, int]:
        end = position
        length = len(text)
        while end < length and predicate(text[end]):
            end += 1
        return text[position:end], end

    return Parser(run, "run")


def take_while1(predicate: Callable[[str], bool], expected: str = "text") -> Parser[str]:
    inner = take_while(predicate)

    def run(text: str, position: int) -> tuple[str, int]:
        value, end = inner.run(text, position)
        if end == position:
            raise ParseFailure(position, expected)
        return value, end

    return Parser(run, expected)


def _is_word_char(c: str) -> bool:
    return c.isalnum() or c == "_" or c == "$"


def keyword() -> Parser[str]:
    """Match a dump keyword: a word character followed by word characters, ``-`` or ``:``."""
    first = satisfy(_is_word_char, "keyword")
    rest = take_while(lambda c: _is_word_char(c) or c == "-" or c == ":")
    return first.then(rest, lambda head, tail: head + tail)


def identifier() -> Parser[str]:
    """Match a Swift identifier, including backtick-escaped ones."""
    plain = satisfy(lambda c: c.isalpha() or c == "_" or c == "$", "identifier").then(
        take_while(_is_word_char), lambda head, tail: head + tail
    )
    escaped = sequence(char("`"), take_while1(lambda c: c != "`" and c != "\n", "identifier"), char("`")).map(
        "".join
    )
    return plain.or_(escaped)


def number() -> Parser[int]:
    return take_while1(lambda c: c in _DIGITS, "number").map(int)


def quoted(quote: str, escapes: bool = False) -> Parser[str]:
    """Match text between two ``quote`` characters; the quotes are dropped.

    With ``escapes`` a backslash protects the next character, which is kept
    verbatim in the result.
    """
    label = f"{quote}-quoted text"

    def run(text: str, position: int) -> tuple[str, int]:
        if not text.startswith(quote, position):
            raise ParseFailure(position, label)
        end = position + 1
        length = len(text)
        while end < length:
            current = text[end]
            if current == quote:
                return text[position + 1 : end], end + 1
            if escapes and current == "\\":
                end += 1
            end += 1
        raise ParseFailure(position, f"closing {quote}")

    return Parser(run, label)


def end_of_input() -> Parser[None]:
    def run(text: str, position: int) -> tuple[None, int]:
        if position != len(text):
            raise ParseFailure(position, "end of input")
        return None, position

    return Parser(run, "end of input")
