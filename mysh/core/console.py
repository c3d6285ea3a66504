"""
Console helpers shared by the shell, the executor and the server.

Author: mysh developers
Version: 1.0.0
"""

import os
import sys
from typing import NoReturn


def report_error(message: str) -> None:
    """Write an ``ERROR: ...`` line to stderr."""
    print(f"ERROR: {message}", file=sys.stderr, flush=True)


def flush_streams() -> None:
    """
    Flush Python-level stdio buffers.

    Called before fork so buffered text is not written twice.
    """
    for stream in (sys.stdout, sys.stderr):
        try:
            stream.flush()
        except (OSError, ValueError):
            pass


def bind_standard_streams() -> None:
    """
    Point sys.stdin/sys.stdout at descriptors 0 and 1.

    Used in a forked pipeline stage after dup2 so that in-process
    builtins read from and write to the pipe.
    """
    sys.stdin = open(0, 'r', closefd=False)
    sys.stdout = open(1, 'w', closefd=False)


def exit_child(status: int) -> NoReturn:
    """Terminate a forked child without running parent cleanup handlers."""
    flush_streams()
    os._exit(status & 0xFF)
