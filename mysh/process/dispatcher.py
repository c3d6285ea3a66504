"""
Command Dispatch Module

Runs one argument vector: a variable assignment, an in-process builtin
or an external program.

Author: mysh developers
Version: 1.0.0
"""

import os
import sys
import time
from typing import Optional, List, NoReturn

from mysh.core.config_loader import get_config
from mysh.core.console import report_error, flush_streams, exit_child
from mysh.core.signals import reset_child_signals
from mysh.exceptions import CommandNotFoundError, ForkError, JobTableFullError
from mysh.logger import get_logger
from mysh.shell.variables import VariableStore
from .jobs import JobTable


def wait_for(pid: int) -> int:
    """
    Block until ``pid`` exits.

    Returns:
        The exit code, or 128 + signal number if the child was killed
    """
    logger = get_logger('executor')
    try:
        _, status = os.waitpid(pid, 0)
    except ChildProcessError:
        logger.warning("Child already reaped", pid=pid)
        return 0

    code = os.waitstatus_to_exitcode(status)
    if code < 0:
        return 128 - code
    return code


class CommandDispatcher:
    """
    Dispatches a single command.

    Example:
        >>> dispatcher = CommandDispatcher(variables, jobs, builtins)
        >>> dispatcher.dispatch(['sleep', '5'], background=True)
        [1] 4242
        0
    """

    def __init__(
        self,
        variables: VariableStore,
        jobs: JobTable,
        builtins=None,
        launch_delay: Optional[float] = None
    ):
        self._variables = variables
        self._jobs = jobs
        self._builtins = builtins
        self._launch_delay = launch_delay
        self._logger = get_logger('executor')

    @property
    def launch_delay(self) -> float:
        if self._launch_delay is None:
            return get_config().jobs.launch_delay
        return self._launch_delay

    def _is_builtin(self, name: str) -> bool:
        return self._builtins is not None and self._builtins.is_builtin(name)

    def _run_builtin(self, argv: List[str]) -> int:
        status = self._builtins.execute(argv[0], argv[1:])
        if status != 0:
            report_error(f"Builtin failed: {argv[0]}")
        return status

    def dispatch(self, argv: List[str], background: bool = False) -> int:
        """
        Run one command in the shell process (forking for programs).

        Returns:
            Exit code of the command (0 for a tracked background launch)
        """
        if not argv:
            return 0

        if self._variables.assign(argv[0]):
            return 0

        if self._is_builtin(argv[0]) and not background:
            return self._run_builtin(argv)

        pid = self._fork()
        if pid == 0:
            self._exec_program(argv)

        if background:
            return self._track(pid, argv)

        self._logger.debug("Waiting for foreground process", pid=pid,
                           context={'command': argv[0]})
        return wait_for(pid)

    def exec_stage(self, argv: List[str]) -> NoReturn:
        """
        Run one pipeline stage inside an already forked child.

        Programs replace the child directly, so a pipeline of k stages
        creates exactly k processes. Never returns.
        """
        status = 1
        try:
            reset_child_signals()
            if not argv or self._variables.assign(argv[0]):
                status = 0
            elif self._is_builtin(argv[0]):
                status = self._run_builtin(argv)
            else:
                self._exec_program(argv)
        except Exception as e:
            report_error(f"{argv[0] if argv else 'stage'}: {e}")
        finally:
            exit_child(status)

    def _fork(self) -> int:
        flush_streams()
        try:
            return os.fork()
        except OSError as e:
            raise ForkError("Failed to fork process") from e

    def _exec_program(self, argv: List[str]) -> NoReturn:
        """Replace the current (child) process with ``argv``."""
        try:
            reset_child_signals()
            os.execvp(argv[0], argv)
        except (OSError, ValueError) as e:
            self._logger.debug("exec failed", context={'command': argv[0], 'error': e})
        report_error(CommandNotFoundError(argv[0]).message)
        exit_child(1)

    def _track(self, pid: int, argv: List[str]) -> int:
        # give the child a moment to start before printing the job line
        time.sleep(self.launch_delay)

        command = " ".join(argv)
        try:
            slot = self._jobs.add(pid, command)
        except JobTableFullError as e:
            report_error(e.message)
            return 1

        print(f"[{slot}] {pid}", file=sys.stdout, flush=True)
        return 0
