"""Shared fixtures and helpers for tests."""

from collections.abc import Callable
from pathlib import Path

import pytest

_REPO_ROOT = Path(__file__).parent.parent


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_REPO_ROOT / "tests")
        parts = rel.parts
        if parts and parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# Dumps shaped like `swiftc -dump-ast` output
# ---------------------------------------------------------------------------

BINDING_DUMP = """\
(source_file "main.swift"
  (top_level_code_decl range=[main.swift:1:1 - line:1:13]
    (brace_stmt implicit range=[main.swift:1:1 - line:1:13]
      (pattern_binding_decl range=[main.swift:1:1 - line:1:13]
        (pattern_named type='Int' 'value')
        (integer_literal_expr type='Int' location=main.swift:1:13 range=[main.swift:1:13 - line:1:13] \
value=1 builtin_initializer=Swift.(file).Int.init(_builtinIntegerLiteral:) initializer=**NULL**))))
  (var_decl range=[main.swift:1:5 - line:1:5] "value" type='Int' interface type='Int' access=internal let \
readImpl=stored immutable))
"""

BOX_SOURCE = """\
struct Box<T, U> {
    let value1: T
    let value2: U
}
func main() {
    _ = Box(value1: 1, value2: "foo")
}
"""

BOX_DUMP = """\
(source_file "main.swift"
  (func_decl range=[main.swift:5:1 - line:7:1] "main()" interface type='() -> ()' access=internal
    (parameter_list range=[main.swift:5:10 - line:5:11])
    (brace_stmt range=[main.swift:5:13 - line:7:1]
      (assign_expr type='()' location=main.swift:6:7 range=[main.swift:6:5 - line:6:37]
        (discard_assignment_expr type='@lvalue Box<Int, String>' location=main.swift:6:5 \
range=[main.swift:6:5 - line:6:5])
        (call_expr type='Box<Int, String>' location=main.swift:6:9 range=[main.swift:6:9 - line:6:37] nothrow \
arg_labels=value1:value2:
          (constructor_ref_call_expr type='(Int, String) -> Box<Int, String>' location=main.swift:6:9 \
range=[main.swift:6:9 - line:6:9] nothrow
            (declref_expr implicit type='(Box<Int, String>.Type) -> (Int, String) -> Box<Int, String>' \
location=main.swift:6:9 range=[main.swift:6:9 - line:6:9] decl=main.(file).Box.init(value1:value2:) \
[with (substitution_map generic_signature=<T, U> (substitution T -> Int) (substitution U -> String))] \
function_ref=single)
            (type_expr type='Box<Int, String>.Type' location=main.swift:6:9 range=[main.swift:6:9 - line:6:9] \
typerepr='Box'))
          (tuple_expr type='(value1: Int, value2: String)' location=main.swift:6:12 \
range=[main.swift:6:12 - line:6:37] names=value1,value2
            (integer_literal_expr type='Int' location=main.swift:6:21 range=[main.swift:6:21 - line:6:21] value=1)
            (string_literal_expr type='String' location=main.swift:6:32 range=[main.swift:6:32 - line:6:32] \
encoding=utf8 value="foo")))))))
"""

ALIAS_SOURCE = """\
struct Box<T1, T2> {
    let value1: T1
    let value2: T2
}
typealias Alias<T> = Box<T, T>
let alias = Alias(value1: 1, value2: 2)
"""

ALIAS_DUMP = """\
(source_file "main.swift"
  (top_level_code_decl range=[main.swift:6:1 - line:6:39]
    (brace_stmt implicit range=[main.swift:6:1 - line:6:39]
      (pattern_binding_decl range=[main.swift:6:1 - line:6:39]
        (pattern_named type='Box<Int, Int>' 'alias')
        (call_expr type='Box<Int, Int>' location=main.swift:6:13 range=[main.swift:6:13 - line:6:39] nothrow \
arg_labels=value1:value2:
          (constructor_ref_call_expr type='(Int, Int) -> Box<Int, Int>' location=main.swift:6:13 \
range=[main.swift:6:13 - line:6:13] nothrow
            (declref_expr implicit type='(Box<Int, Int>.Type) -> (Int, Int) -> Box<Int, Int>' \
location=main.swift:6:13 range=[main.swift:6:13 - line:6:13] decl=main.(file).Box.init(value1:value2:) \
[with (substitution_map generic_signature=<T1, T2> (substitution T1 -> Int) (substitution T2 -> Int))] \
function_ref=single)
            (type_expr type='Alias<Int>.Type' location=main.swift:6:13 range=[main.swift:6:13 - line:6:13] \
typerepr='Alias'))
          (tuple_expr type='(value1: Int, value2: Int)' location=main.swift:6:18 range=[main.swift:6:18 - line:6:39] \
names=value1,value2
            (integer_literal_expr type='Int' location=main.swift:6:27 range=[main.swift:6:27 - line:6:27] value=1)
            (integer_literal_expr type='Int' location=main.swift:6:38 range=[main.swift:6:38 - line:6:38] \
value=2))))))
  (var_decl range=[main.swift:6:5 - line:6:5] "alias" type='Box<Int, Int>' interface type='Box<Int, Int>' \
access=internal let readImpl=stored immutable))
"""


def build_closure_dump(
    line: int, column: int, type_name: str, file_name: str = "main.swift", captures: str | None = None
) -> str:
    """Dump of a call with a trailing closure whose ``{`` sits at ``line:column``.

    ``captures`` is printed the way swiftc lists captured variables, e.g. ``(a<direct>)``.
    """
    captured = f" captures={captures}" if captures else ""
    start = f"{file_name}:{line}:{column}"
    end = f"line:{line + 2}:1"
    return (
        f'(source_file "{file_name}"\n'
        f"  (top_level_code_decl range=[{file_name}:{line}:1 - {end}]\n"
        f"    (brace_stmt implicit range=[{file_name}:{line}:1 - {end}]\n"
        f"      (call_expr type='()' location={file_name}:{line}:1 range=[{file_name}:{line}:1 - {end}] "
        "nothrow arg_labels=_:\n"
        f"        (paren_expr type='({type_name})' location={start} range=[{start} - {end}] trailing-closure\n"
        f"          (closure_expr type='{type_name}' location={start} range=[{start} - {end}] "
        f"discriminator=0{captured}\n"
        f"            (parameter_list range=[{file_name}:{line}:{column + 2} - line:{line}:{column + 2}])\n"
        f"            (brace_stmt range=[{start} - {end}])))))))\n"
    )


@pytest.fixture
def binding_dump() -> str:
    """Dump of ``let value = 1`` compiled as ``main.swift``."""
    return BINDING_DUMP


@pytest.fixture
def box_source() -> str:
    return BOX_SOURCE


@pytest.fixture
def box_dump() -> str:
    return BOX_DUMP


@pytest.fixture
def alias_source() -> str:
    return ALIAS_SOURCE


@pytest.fixture
def alias_dump() -> str:
    return ALIAS_DUMP


@pytest.fixture
def closure_dump() -> Callable[..., str]:
    """Return a builder for single-closure dumps: ``closure_dump(line, column, type_name)``."""
    return build_closure_dump
