"""Tests for the swift-type-injector command line."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from type_injector.cli.app import app
from type_injector.errors import CompilerInvocationError

runner = CliRunner()


@pytest.fixture
def project(tmp_path: Path, binding_dump: str) -> tuple[Path, Path]:
    source = tmp_path / "main.swift"
    source.write_text("let value = 1\n", encoding="utf-8")
    dump = tmp_path / "main.ast"
    dump.write_text(binding_dump, encoding="utf-8")
    return source, dump


@pytest.mark.parametrize(
    "args",
    [
        [],
        ["annotate"],
        ["dump"],
        ["dump", "tree"],
        ["dump", "find"],
    ],
    ids=["root", "annotate", "dump", "dump-tree", "dump-find"],
)
def test_short_help_flag(args: list[str]) -> None:
    result = runner.invoke(app, [*args, "-h"])
    assert result.exit_code == 0
    assert "Usage" in result.output


class TestAnnotate:
    def test_prints_annotated_source(self, project: tuple[Path, Path]) -> None:
        source, dump = project
        result = runner.invoke(app, ["annotate", str(source), "--dump", str(dump)])

        assert result.exit_code == 0
        assert result.output == "let value: Int = 1\n"
        assert source.read_text(encoding="utf-8") == "let value = 1\n"

    def test_in_place_rewrites_file(self, project: tuple[Path, Path]) -> None:
        source, dump = project
        result = runner.invoke(app, ["annotate", str(source), "--dump", str(dump), "--in-place"])

        assert result.exit_code == 0
        assert "Annotated" in result.output
        assert source.read_text(encoding="utf-8") == "let value: Int = 1\n"

    def test_in_place_reports_unchanged(self, project: tuple[Path, Path]) -> None:
        source, dump = project
        result = runner.invoke(app, ["annotate", str(source), "--dump", str(dump), "-i", "--no-bindings"])

        assert result.exit_code == 0
        assert "Unchanged" in result.output
        assert source.read_text(encoding="utf-8") == "let value = 1\n"

    def test_missing_dump_exits_with_error(self, project: tuple[Path, Path], tmp_path: Path) -> None:
        source, _ = project
        result = runner.invoke(app, ["annotate", str(source), "--dump", str(tmp_path / "nope.ast")])

        assert result.exit_code == 1
        assert "Dump file not found" in result.output

    def test_compiler_error_exits_with_error(self, project: tuple[Path, Path]) -> None:
        source, _ = project
        with patch(
            "type_injector.core.annotate.dump_source_file",
            side_effect=CompilerInvocationError("swiftc exited with status 1", returncode=1),
        ):
            result = runner.invoke(app, ["annotate", str(source)])

        assert result.exit_code == 1
        assert "swiftc exited with status 1" in result.output


class TestDump:
    def test_tree_prints_nodes(self, project: tuple[Path, Path]) -> None:
        _, dump = project
        result = runner.invoke(app, ["dump", "tree", str(dump)])

        assert result.exit_code == 0
        assert "source_file" in result.output
        assert "var_decl" in result.output

    def test_tree_depth_limits_output(self, project: tuple[Path, Path]) -> None:
        _, dump = project
        result = runner.invoke(app, ["dump", "tree", str(dump), "--depth", "1"])

        assert result.exit_code == 0
        assert "top_level_code_decl" in result.output
        assert "brace_stmt" not in result.output

    def test_find_shows_node(self, project: tuple[Path, Path]) -> None:
        _, dump = project
        result = runner.invoke(app, ["dump", "find", str(dump), "1:13"])

        assert result.exit_code == 0
        assert "integer_literal_expr" in result.output
        assert "Int" in result.output

    def test_find_without_match(self, project: tuple[Path, Path]) -> None:
        _, dump = project
        result = runner.invoke(app, ["dump", "find", str(dump), "9:9"])

        assert result.exit_code == 1
        assert "No node" in result.output

    def test_find_rejects_bad_position(self, project: tuple[Path, Path]) -> None:
        _, dump = project
        result = runner.invoke(app, ["dump", "find", str(dump), "nine"])

        assert result.exit_code == 2

    def test_malformed_dump(self, tmp_path: Path) -> None:
        broken = tmp_path / "broken.ast"
        broken.write_text("(source_file", encoding="utf-8")

        result = runner.invoke(app, ["dump", "tree", str(broken)])

        assert result.exit_code == 1
        assert "Malformed AST dump" in result.output
