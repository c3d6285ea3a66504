"""
Pipeline Executor Module

Splits an argument vector at pipe markers and runs the stages as
processes wired together with OS pipes.

Author: mysh developers
Version: 1.0.0
"""

import os
import signal
from typing import List, Tuple

from mysh.core.console import flush_streams, bind_standard_streams, exit_child
from mysh.exceptions import ForkError, PipelineError
from mysh.logger import get_logger
from mysh.shell.parser import is_pipe
from mysh.shell.variables import VariableStore
from .dispatcher import CommandDispatcher, wait_for


def split_pipeline(argv: List[str]) -> List[List[str]]:
    """
    Split ``argv`` at pipe markers.

    Only parser-made markers (see ``is_pipe``) split; a plain ``"|"`` word
    is an ordinary argument.

    A vector without markers yields a single stage. Empty stages are
    kept so that stage count always equals markers + 1.
    """
    stages: List[List[str]] = [[]]
    for word in argv:
        if is_pipe(word):
            stages.append([])
        else:
            stages[-1].append(word)
    return stages


class PipelineExecutor:
    """
    Runs command lines.

    Single-stage lines go straight to the dispatcher and may run in the
    background. Multi-stage pipelines always run in the foreground: the
    executor waits for every stage before returning.

    Example:
        >>> executor = PipelineExecutor(dispatcher, variables)
        >>> executor.run(parser.parse('ls | wc').argv)
    """

    def __init__(self, dispatcher: CommandDispatcher, variables: VariableStore):
        self._dispatcher = dispatcher
        self._variables = variables
        self._logger = get_logger('executor')

    def run(self, argv: List[str], background: bool = False) -> int:
        """
        Execute a command line.

        Returns:
            Exit code of the last stage

        Raises:
            PipelineError: If the pipes could not be created
            ForkError: If a stage could not be forked
        """
        stages = split_pipeline(argv)

        if len(stages) == 1:
            return self._dispatcher.dispatch(stages[0], background)

        if background:
            self._logger.debug(
                "Background marker ignored for pipeline",
                context={'stages': len(stages)}
            )

        return self._run_pipeline(stages)

    def _run_pipeline(self, stages: List[List[str]]) -> int:
        pipes = self._open_pipes(len(stages) - 1)
        pids: List[int] = []

        with self._variables.scoped():
            try:
                for index, stage in enumerate(stages):
                    pids.append(self._fork_stage(index, stage, pipes))
            except ForkError:
                self._close_pipes(pipes)
                self._abort(pids)
                raise

            self._close_pipes(pipes)
            self._logger.debug("Pipeline started", context={'pids': pids})

            statuses = [wait_for(pid) for pid in pids]

        self._logger.debug("Pipeline finished", context={'statuses': statuses})
        return statuses[-1]

    def _open_pipes(self, count: int) -> List[Tuple[int, int]]:
        pipes: List[Tuple[int, int]] = []
        try:
            for _ in range(count):
                pipes.append(os.pipe())
        except OSError as e:
            self._close_pipes(pipes)
            raise PipelineError("Failed to create pipe", stages=count + 1) from e
        return pipes

    @staticmethod
    def _close_pipes(pipes: List[Tuple[int, int]]) -> None:
        for read_fd, write_fd in pipes:
            for fd in (read_fd, write_fd):
                try:
                    os.close(fd)
                except OSError:
                    pass

    def _fork_stage(self, index: int, stage: List[str], pipes: List[Tuple[int, int]]) -> int:
        flush_streams()
        try:
            pid = os.fork()
        except OSError as e:
            raise ForkError("Failed to fork process", stage=index) from e

        if pid == 0:
            try:
                if index > 0:
                    os.dup2(pipes[index - 1][0], 0)
                if index < len(pipes):
                    os.dup2(pipes[index][1], 1)
                self._close_pipes(pipes)
                bind_standard_streams()
            except OSError:
                exit_child(1)
            self._dispatcher.exec_stage(stage)

        return pid

    def _abort(self, pids: List[int]) -> None:
        """Terminate and reap stages that were already started."""
        for pid in pids:
            try:
                os.kill(pid, signal.SIGTERM)
            except ProcessLookupError:
                pass
        for pid in pids:
            wait_for(pid)
        if pids:
            self._logger.warning("Pipeline aborted", context={'pids': pids})
