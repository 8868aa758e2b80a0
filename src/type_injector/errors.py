class TypeInjectorError(Exception):
    """Base class for failures surfaced to callers of the injector."""


class MalformedDumpError(TypeInjectorError, ValueError):
    """The AST dump does not match the dump grammar."""

    def __init__(self, message: str, offset: int) -> None:
        super().__init__(f"{message} (at offset {offset})")
        self.offset = offset


class CompilerInvocationError(TypeInjectorError, RuntimeError):
    """swiftc could not be started or exited with an error."""

    def __init__(self, message: str, returncode: int | None = None, stderr: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr
