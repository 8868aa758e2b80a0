from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol


@dataclass(frozen=True)
class TextEdit:
    """Replace the bytes ``[start, end)`` of the source with ``text``; ``start == end`` inserts."""

    start: int
    end: int
    text: str


@dataclass(frozen=True)
class BindingSite:
    """``let name = initializer``; line and column point at the bound name (1-based)."""

    name: str
    line: int
    column: int
    name_end: int
    has_annotation: bool
    has_initializer: bool = True
    is_tuple_pattern: bool = False
    initializer_call: tuple[int, int] | None = None


@dataclass(frozen=True)
class CallSite:
    """A call whose callee is a bare identifier, e.g. ``Box(value1: 1)``."""

    callee: str
    line: int
    column: int
    callee_start: int
    callee_end: int
    has_generic_arguments: bool = False


@dataclass(frozen=True)
class ClosureParameter:
    name: str
    text: str
    has_type: bool


@dataclass(frozen=True)
class ClosureSite:
    """A closure literal; line and column point at its opening brace.

    ``signature_start``/``signature_end`` delimit the parameter clause (with
    its parentheses when written) and ``effects_end`` the end of any
    ``async``/``throws`` that follows it.
    """

    line: int
    column: int
    parameters: tuple[ClosureParameter, ...] = field(default_factory=tuple)
    signature_start: int | None = None
    signature_end: int | None = None
    effects_end: int | None = None
    parenthesized: bool = False
    has_return_type: bool = False
    has_effects: bool = False

    @property
    def has_signature(self) -> bool:
        return self.signature_start is not None


def apply_edits(source: bytes, edits: Sequence[TextEdit]) -> str:
    """Splice ``edits`` into ``source``; bytes outside the edited spans are kept as is."""
    ordered = sorted(edits, key=lambda edit: (edit.start, edit.end))
    for previous, current in zip(ordered, ordered[1:]):
        if current.start < previous.end:
            raise ValueError(f"Overlapping edits at bytes {previous.start}-{previous.end} and {current.start}")
    result = source
    for edit in reversed(ordered):
        if not 0 <= edit.start <= edit.end <= len(result):
            raise ValueError(f"Edit {edit.start}-{edit.end} is outside the source")
        result = result[: edit.start] + edit.text.encode("utf-8") + result[edit.end :]
    return result.decode("utf-8")


class SyntaxTree(Protocol):
    """Concrete syntax tree of one Swift source file."""

    @property
    def file_name(self) -> str: ...

    def bindings(self) -> list[BindingSite]: ...

    def calls(self) -> list[CallSite]: ...

    def closures(self) -> list[ClosureSite]: ...

    def apply(self, edits: Sequence[TextEdit]) -> str: ...
