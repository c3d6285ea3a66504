"""
mysh Exception Hierarchy

All custom exceptions inherit from MyshError.

Architecture:
    MyshError (Base)
    ├── ShellException
    │   ├── UsageError
    │   ├── CommandNotFoundError
    │   └── InvalidPathError
    ├── ConfigError
    ├── ProcessException
    │   ├── ForkError
    │   ├── PipelineError
    │   └── JobTableFullError
    └── IPCException
        ├── InvalidPortError
        ├── InvalidAddressError
        ├── ServerBindError
        ├── ServerAlreadyRunningError
        ├── ServerNotRunningError
        ├── RosterFullError
        └── ConnectionFailedError
"""

from .shell_exceptions import (
    MyshError,
    ShellException,
    UsageError,
    CommandNotFoundError,
    InvalidPathError,
    ConfigError,
)

from .process_exceptions import (
    ProcessException,
    ForkError,
    PipelineError,
    JobTableFullError,
)

from .ipc_exceptions import (
    IPCException,
    InvalidPortError,
    InvalidAddressError,
    ServerBindError,
    ServerAlreadyRunningError,
    ServerNotRunningError,
    RosterFullError,
    ConnectionFailedError,
)

__all__ = [
    # Shell exceptions
    "MyshError",
    "ShellException",
    "UsageError",
    "CommandNotFoundError",
    "InvalidPathError",
    "ConfigError",
    # Process exceptions
    "ProcessException",
    "ForkError",
    "PipelineError",
    "JobTableFullError",
    # IPC exceptions
    "IPCException",
    "InvalidPortError",
    "InvalidAddressError",
    "ServerBindError",
    "ServerAlreadyRunningError",
    "ServerNotRunningError",
    "RosterFullError",
    "ConnectionFailedError",
]
