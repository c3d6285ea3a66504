"""
IPC Exceptions

Exceptions raised by the broadcast server and the network client builtins.

Author: mysh developers
Version: 1.0.0
"""

from typing import Optional, Any

from .shell_exceptions import MyshError


class IPCException(MyshError):
    """
    Base exception for all network-related errors.

    Attributes:
        message: Human-readable error description
        error_code: Numeric error code for programmatic handling
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[int] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        super().__init__(message, error_code=error_code or 6000, context=context)


class InvalidPortError(IPCException):
    """The port argument is not an integer in 1..65535."""

    def __init__(self, port: Any) -> None:
        super().__init__(
            "Invalid port number",
            error_code=6001,
            context={"port": port}
        )
        self.port = port


class InvalidAddressError(IPCException):
    """The host argument is not a valid IPv4 address."""

    def __init__(self, host: str) -> None:
        super().__init__(
            "Invalid address",
            error_code=6002,
            context={"host": host}
        )
        self.host = host


class ServerBindError(IPCException):
    """
    The listening socket could not be bound.

    Example:
        >>> raise ServerBindError(9000)
    """

    def __init__(self, port: int, reason: Optional[str] = None) -> None:
        ctx: dict[str, Any] = {"port": port}
        if reason:
            ctx["reason"] = reason
        super().__init__("Address already in use", error_code=6003, context=ctx)
        self.port = port


class ServerAlreadyRunningError(IPCException):
    """start-server was issued while a server is active."""

    def __init__(self, port: int) -> None:
        super().__init__(
            "Server already running",
            error_code=6004,
            context={"port": port}
        )
        self.port = port


class ServerNotRunningError(IPCException):
    """close-server was issued while no server is active."""

    def __init__(self) -> None:
        super().__init__("No server running", error_code=6005)


class RosterFullError(IPCException):
    """The session roster is at capacity; the connection is refused."""

    def __init__(self, capacity: int) -> None:
        super().__init__(
            "Too many clients connected",
            error_code=6006,
            context={"capacity": capacity}
        )
        self.capacity = capacity


class ConnectionFailedError(IPCException):
    """A client builtin could not reach the server."""

    def __init__(self, host: str, port: int, reason: Optional[str] = None) -> None:
        ctx: dict[str, Any] = {"host": host, "port": port}
        if reason:
            ctx["reason"] = reason
        super().__init__("Connection failed", error_code=6007, context=ctx)
        self.host = host
        self.port = port
