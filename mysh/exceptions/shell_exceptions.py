"""
Shell Exceptions

Base of the mysh exception hierarchy plus the errors raised by the
interactive shell, the builtins and the configuration loader.

Author: mysh developers
Version: 1.0.0
"""

from typing import Optional, Any


class MyshError(Exception):
    """
    Base exception for all mysh errors.

    Attributes:
        message: Human-readable error description
        error_code: Numeric error code for programmatic handling
        context: Additional context about the error

    Example:
        >>> raise MyshError("Something went wrong", error_code=1000)
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[int] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code or 1000
        self.context = context or {}

    def __str__(self) -> str:
        base = f"[Error {self.error_code}] {self.message}"
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base = f"{base} ({context_str})"
        return base

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code})"
        )


class ShellException(MyshError):
    """Base exception for errors raised by the interactive shell."""

    def __init__(
        self,
        message: str,
        error_code: Optional[int] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        super().__init__(message, error_code=error_code or 1100, context=context)


class UsageError(ShellException):
    """
    A builtin was called with missing or malformed arguments.

    Example:
        >>> raise UsageError("Usage: send <port> <host> <message>", command="send")
    """

    def __init__(
        self,
        message: str,
        command: Optional[str] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        ctx = context or {}
        if command is not None:
            ctx["command"] = command
        super().__init__(message, error_code=1101, context=ctx)
        self.command = command


class CommandNotFoundError(ShellException):
    """The requested program could not be executed."""

    def __init__(self, command: str) -> None:
        super().__init__(
            f"Unknown command: {command}",
            error_code=1102,
            context={"command": command}
        )
        self.command = command


class InvalidPathError(ShellException):
    """A path argument does not name an accessible file or directory."""

    def __init__(self, path: str) -> None:
        super().__init__(
            f"Invalid path: {path}",
            error_code=1103,
            context={"path": path}
        )
        self.path = path


class ConfigError(MyshError):
    """Raised when the configuration cannot be loaded or is invalid."""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        ctx = context or {}
        if path is not None:
            ctx["path"] = path
        super().__init__(message, error_code=1200, context=ctx)
        self.path = path
