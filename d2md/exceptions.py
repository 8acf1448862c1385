from pathlib import Path
from typing import Any


class D2mdError(Exception):
    """Base exception for all diagram embedding errors."""

    def __init__(self, message: str, *, hint: str | None = None):
        super().__init__(message)
        self.hint = hint

    def __str__(self) -> str:
        message = super().__str__()
        if self.hint:
            return f"{message}\nHint: {self.hint}"
        return message

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.args[0], "hint": self.hint}


class ExecError(D2mdError):
    """Raised when an external command cannot be launched or exits non-zero."""

    def __init__(self, command: str, returncode: int | None, stderr: str = ""):
        if returncode is None:
            message = f"Failed to run {command!r}"
        else:
            message = f"{command!r} exited with code {returncode}"
        if stderr:
            message = f"{message}: {stderr.strip()}"
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.stderr = stderr


class D2RenderError(D2mdError):
    """Raised when d2 fails to render a diagram block."""

    def __init__(self, message: str, *, line: int | None = None, column: int | None = None, hint: str | None = None):
        super().__init__(message, hint=hint)
        self.line = line
        self.column = column

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "line": self.line, "column": self.column}


class D2SizeError(D2mdError):
    """Raised when a rendered diagram exists but cannot be read."""

    def __init__(self, path: Path):
        super().__init__(f"Failed to get D2 diagram size at '{path}'.")
        self.path = path

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "path": str(self.path)}


class D2NotInstalledError(D2mdError):
    """Raised at setup when the d2 executable is missing."""

    def __init__(self, command: str):
        super().__init__(
            f"Could not find {command!r}. Is D2 installed?",
            hint="Install D2 (https://d2lang.com/tour/install) or enable skip_generation to reuse existing diagrams.",
        )
        self.command = command


class D2DiagramsError(D2mdError):
    """Raised when several diagram blocks of one document failed to render."""

    def __init__(self, errors: list[D2RenderError]):
        locations = ", ".join(f"{e.line}:{e.column}" for e in errors)
        super().__init__(
            f"Failed to generate {len(errors)} D2 diagrams at {locations}.",
            hint=errors[0].hint if errors else None,
        )
        self.errors = errors

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "errors": [e.to_dict() for e in self.errors]}
