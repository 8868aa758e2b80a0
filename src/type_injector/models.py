from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr


class Point(BaseModel):
    """A source position as printed by the compiler (1-based line and column).

    Ordering looks at line and column only; equality also compares the file name.
    """

    model_config = ConfigDict(frozen=True)

    file_name: str
    line: int
    column: int

    def _key(self) -> tuple[int, int]:
        return self.line, self.column

    def __lt__(self, other: Point) -> bool:
        return self._key() < other._key()

    def __le__(self, other: Point) -> bool:
        return self._key() <= other._key()

    def __gt__(self, other: Point) -> bool:
        return self._key() > other._key()

    def __ge__(self, other: Point) -> bool:
        return self._key() >= other._key()

    def __str__(self) -> str:
        return f"{self.file_name}:{self.line}:{self.column}"


class Range(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: Point
    end: Point

    def contains(self, point: Point) -> bool:
        return self.start <= point <= self.end

    def __str__(self) -> str:
        return f"[{self.start} - {self.end}]"


class SingleQuotedToken(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["single_quoted"] = "single_quoted"
    text: str


class DoubleQuotedToken(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["double_quoted"] = "double_quoted"
    text: str


class RawToken(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["raw"] = "raw"
    text: str


Token = Annotated[Union[SingleQuotedToken, DoubleQuotedToken, RawToken], Field(discriminator="kind")]


class Decl(BaseModel):
    """A declaration reference such as ``Swift.(file).Int.init(_builtinIntegerLiteral:)``.

    ``substitution`` keeps the ``[with ...]`` block verbatim.
    """

    model_config = ConfigDict(frozen=True)

    signature: str
    substitution: str | None = None


class RangeAttribute(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["range"] = "range"
    range: Range


class TypeAttribute(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["type"] = "type"
    name: str


class LocationAttribute(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["location"] = "location"
    point: Point


class NothrowAttribute(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["nothrow"] = "nothrow"


class DeclAttribute(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["decl"] = "decl"
    decl: Decl


class UnknownAttribute(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["unknown"] = "unknown"
    keyword: str
    raw_value: str | None = None


Attribute = Annotated[
    Union[RangeAttribute, TypeAttribute, LocationAttribute, NothrowAttribute, DeclAttribute, UnknownAttribute],
    Field(discriminator="kind"),
]

_ATTRIBUTE_TYPES = (RangeAttribute, TypeAttribute, LocationAttribute, NothrowAttribute, DeclAttribute, UnknownAttribute)
_TOKEN_TYPES = (SingleQuotedToken, DoubleQuotedToken, RawToken)


class RawNode(BaseModel):
    """Direct parse result: entries keep the dump order of attributes, children and tokens."""

    model_config = ConfigDict(frozen=True)

    name: str
    value: str | None = None
    entries: list[
        Union[
            RangeAttribute,
            TypeAttribute,
            LocationAttribute,
            NothrowAttribute,
            DeclAttribute,
            UnknownAttribute,
            SingleQuotedToken,
            DoubleQuotedToken,
            RawToken,
            RawNode,
        ]
    ] = Field(default_factory=list)


RawNode.model_rebuild()  # necessary for recursive types


class Node(BaseModel):
    """A type-checked AST node.

    ``value``, ``location``, ``range`` and ``type`` are derived once at
    construction from the first matching token or attribute.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    children: list[Node] = Field(default_factory=list)
    attributes: list[Attribute] = Field(default_factory=list)
    tokens: list[Token] = Field(default_factory=list)

    _value: str | None = PrivateAttr(default=None)
    _location: Point | None = PrivateAttr(default=None)
    _range: Range | None = PrivateAttr(default=None)
    _type: str | None = PrivateAttr(default=None)
    _decl: Decl | None = PrivateAttr(default=None)

    def model_post_init(self, __context: Any) -> None:
        self._value = next(
            (token.text for token in self.tokens if isinstance(token, (SingleQuotedToken, DoubleQuotedToken))),
            None,
        )
        self._location = next(
            (attr.point for attr in self.attributes if isinstance(attr, LocationAttribute)),
            None,
        )
        self._range = next(
            (attr.range for attr in self.attributes if isinstance(attr, RangeAttribute)),
            None,
        )
        self._type = next(
            (attr.name for attr in self.attributes if isinstance(attr, TypeAttribute)),
            None,
        )
        self._decl = next(
            (attr.decl for attr in self.attributes if isinstance(attr, DeclAttribute)),
            None,
        )

    @property
    def value(self) -> str | None:
        return self._value

    @property
    def location(self) -> Point | None:
        return self._location

    @property
    def range(self) -> Range | None:
        return self._range

    @property
    def type(self) -> str | None:
        return self._type

    @property
    def decl(self) -> Decl | None:
        return self._decl

    @classmethod
    def from_raw(cls, raw: RawNode) -> Node:
        children: list[Node] = []
        attributes: list[Any] = []
        tokens: list[Any] = [DoubleQuotedToken(text=raw.value)] if raw.value is not None else []
        for entry in raw.entries:
            if isinstance(entry, RawNode):
                children.append(cls.from_raw(entry))
            elif isinstance(entry, _ATTRIBUTE_TYPES):
                attributes.append(entry)
            elif isinstance(entry, _TOKEN_TYPES):
                tokens.append(entry)
        return cls(name=raw.name, children=children, attributes=attributes, tokens=tokens)

    def find(self, point: Point) -> Node | None:
        """Return the deepest node recorded at ``point``.

        A node with a location matches only on equality and prunes the search
        when it lies after ``point``. A node with only a range answers for
        ``point`` when no child does.
        """
        location = self._location
        if location is None:
            if self._range is not None and self._range.contains(point):
                return self._find_in_children(point) or self
            return self._find_in_children(point)
        if location == point:
            return self
        if location > point:
            return None
        return self._find_in_children(point)

    def _find_in_children(self, point: Point) -> Node | None:
        for child in self.children:
            hit = child.find(point)
            if hit is not None:
                return hit
        return None

    def find_where(self, predicate: Callable[[Node], bool]) -> Node | None:
        """Return ``self`` or a descendant accepted by ``predicate``.

        Direct children are checked before any deeper descendant.
        """
        if predicate(self):
            return self
        for child in self.children:
            if predicate(child):
                return child
        for child in self.children:
            found = child.find_where(predicate)
            if found is not None:
                return found
        return None

    def walk(self) -> Iterator[tuple[int, Node]]:
        """Yield ``(depth, node)`` pairs in pre-order."""
        stack: list[tuple[int, Node]] = [(0, self)]
        while stack:
            depth, node = stack.pop()
            yield depth, node
            stack.extend((depth + 1, child) for child in reversed(node.children))


Node.model_rebuild()  # necessary for recursive types
