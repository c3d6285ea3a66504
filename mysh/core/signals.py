"""
mysh Interrupt Relay

Process-wide SIGINT handling for the interactive loop.

The handler installed here never raises into the loop. It records an
Interrupt event and reprints the prompt; the loop drains the recorded
events with poll(). Forked children call reset_child_signals() before
running a stage so a foreground program stays interruptible.

Author: mysh developers
Version: 1.0.0
"""

import os
import signal
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Optional, List

from mysh.logger import get_logger


@dataclass
class Interrupt:
    """A delivered interrupt."""
    signum: int
    timestamp: float = field(default_factory=time.time)


def reset_child_signals() -> None:
    """
    Restore default dispositions in a freshly forked child.

    SIGPIPE is reset as well: the Python runtime ignores it, and an
    ignored disposition would survive exec into the child program.
    """
    signal.signal(signal.SIGINT, signal.SIG_DFL)
    if hasattr(signal, 'SIGPIPE'):
        signal.signal(signal.SIGPIPE, signal.SIG_DFL)


class InterruptRelay:
    """
    Turns SIGINT into events observed by the interactive loop.

    Example:
        >>> relay = InterruptRelay(prompt="mysh$ ")
        >>> relay.install()
        >>> ...
        >>> for interrupt in relay.poll():
        ...     pass
        >>> relay.restore()
    """

    def __init__(self, prompt: str = "", output_fd: int = 1):
        self._logger = get_logger('signals')
        self._prompt = prompt
        self._output_fd = output_fd
        self._events: deque[Interrupt] = deque()
        self._previous: Optional[Any] = None
        self._installed = False

    @property
    def installed(self) -> bool:
        return self._installed

    def install(self) -> None:
        """
        Install the SIGINT handler.

        Must be called from the main thread.
        """
        if self._installed:
            return
        if threading.current_thread() is not threading.main_thread():
            raise RuntimeError("InterruptRelay must be installed from the main thread")

        self._previous = signal.signal(signal.SIGINT, self._handle)
        self._installed = True
        self._logger.debug("SIGINT handler installed")

    def restore(self) -> None:
        """Put back the handler that was active before install()."""
        if not self._installed:
            return
        signal.signal(signal.SIGINT, self._previous)
        self._installed = False
        self._previous = None
        self._logger.debug("SIGINT handler restored")

    def _handle(self, signum: int, frame) -> None:
        self._events.append(Interrupt(signum=signum))
        reminder = f"\n{self._prompt}".encode()
        try:
            os.write(self._output_fd, reminder)
        except OSError:
            pass

    def pending(self) -> int:
        """Number of interrupts not yet polled."""
        return len(self._events)

    def poll(self) -> List[Interrupt]:
        """Drain and return the interrupts delivered since the last poll."""
        drained = []
        while self._events:
            drained.append(self._events.popleft())
        if drained:
            self._logger.debug(
                "Interrupts observed",
                context={'count': len(drained)}
            )
        return drained
