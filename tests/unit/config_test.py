"""Unit tests for environment-driven configuration."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from type_injector.config import InjectorConfig


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("SWIFTC", "SWIFTC_ARGS", "BINDINGS", "CALLS", "CLOSURES"):
        monkeypatch.delenv(f"SWIFT_TYPE_INJECTOR_{name}", raising=False)

    config = InjectorConfig.from_env()

    assert config.swiftc == "swiftc"
    assert config.swiftc_args == ()
    assert config.annotate_bindings and config.annotate_calls and config.annotate_closures


def test_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SWIFT_TYPE_INJECTOR_SWIFTC", "/usr/local/bin/swiftc")
    monkeypatch.setenv("SWIFT_TYPE_INJECTOR_SWIFTC_ARGS", "-sdk '/Library/My SDK' -target arm64-apple-macos14")
    monkeypatch.setenv("SWIFT_TYPE_INJECTOR_CLOSURES", "off")

    config = InjectorConfig.from_env()

    assert config.swiftc == "/usr/local/bin/swiftc"
    assert config.swiftc_args == ("-sdk", "/Library/My SDK", "-target", "arm64-apple-macos14")
    assert not config.annotate_closures


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("0", False), ("false", False), ("No", False), ("", False), ("1", True), ("yes", True), ("TRUE", True)],
)
def test_flag_values(monkeypatch: pytest.MonkeyPatch, raw: str, expected: bool) -> None:
    monkeypatch.setenv("SWIFT_TYPE_INJECTOR_CALLS", raw)
    assert InjectorConfig.from_env().annotate_calls is expected


def test_config_is_frozen() -> None:
    config = InjectorConfig()
    with pytest.raises(ValidationError):
        config.swiftc = "other"  # type: ignore[misc]
