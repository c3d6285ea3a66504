"""
mysh Shell Module

The interactive read-parse-execute loop.

Author: mysh developers
Version: 1.0.0
"""

import threading
from typing import Optional

from mysh.core.config_loader import Config, get_config
from mysh.core.console import report_error
from mysh.core.context import ShellContext
from mysh.core.signals import InterruptRelay
from mysh.exceptions import MyshError
from mysh.logger import get_logger
from mysh.process.dispatcher import CommandDispatcher
from mysh.process.executor import PipelineExecutor
from .builtins import BuiltinCommands
from .parser import CommandParser


class Shell:
    """
    mysh Interactive Shell.

    Provides:
    - Variable assignment and ``$name`` expansion
    - Built-in commands
    - External programs, pipelines and background jobs
    - The broadcast server builtins

    Example:
        >>> shell = Shell()
        >>> shell.run()
    """

    def __init__(self, context: Optional[ShellContext] = None, config: Optional[Config] = None):
        self._config = config or (context.config if context is not None else get_config())
        self._context = context or ShellContext(self._config)
        self._logger = get_logger('shell')

        self._parser = CommandParser(self._context.variables)
        self._builtins = BuiltinCommands(self._context)
        self._dispatcher = CommandDispatcher(
            self._context.variables,
            self._context.jobs,
            self._builtins,
            launch_delay=self._config.jobs.launch_delay
        )
        self._executor = PipelineExecutor(self._dispatcher, self._context.variables)
        self._relay = InterruptRelay(prompt=self.prompt)

    @property
    def context(self) -> ShellContext:
        return self._context

    @property
    def parser(self) -> CommandParser:
        return self._parser

    @property
    def builtins(self) -> BuiltinCommands:
        return self._builtins

    @property
    def executor(self) -> PipelineExecutor:
        return self._executor

    @property
    def prompt(self) -> str:
        return self._config.shell.prompt

    def run(self) -> int:
        """
        Run the interactive shell.

        Each iteration reports finished background jobs, then reads one
        line. Ends on end-of-input or ``exit``.

        Returns:
            Exit code of the last command
        """
        if threading.current_thread() is threading.main_thread():
            self._relay.install()

        exit_code = 0
        try:
            while not self._context.exit_requested:
                self._context.jobs.reap()
                for interrupt in self._relay.poll():
                    self._logger.debug("Interrupt at prompt",
                                       context={'signum': interrupt.signum})

                try:
                    line = input(self.prompt)
                except EOFError:
                    print()
                    break

                exit_code = self._execute_line(line)
        finally:
            self._context.shutdown()
            self._relay.restore()

        return exit_code

    def _execute_line(self, line: str) -> int:
        """
        Execute a command line.

        Args:
            line: Command line string

        Returns:
            Exit code
        """
        parsed = self._parser.parse(line)

        if parsed is None or not parsed.argv:
            return 0

        if parsed.argv[0] == self._config.shell.exit_command:
            self.request_exit()
            return 0

        try:
            return self._executor.run(parsed.argv, parsed.background)
        except MyshError as e:
            report_error(e.message)
            self._logger.error("Command failed", context={'line': line, 'error': e})
            return 1
        except OSError as e:
            report_error(str(e))
            self._logger.exception("Command failed", context={'line': line})
            return 1

    def request_exit(self) -> None:
        """Request the shell to exit."""
        self._context.request_exit()

    def run_script(self, script: str) -> int:
        """
        Run a script (multiple commands).

        Finished background jobs are reported between lines, as at the
        interactive prompt.

        Returns:
            Last exit code
        """
        exit_code = 0

        for line in script.split('\n'):
            if self._context.exit_requested:
                break
            self._context.jobs.reap()
            exit_code = self._execute_line(line)

        return exit_code


def create_shell(config: Optional[Config] = None) -> Shell:
    """Factory function to create a shell."""
    return Shell(config=config)
