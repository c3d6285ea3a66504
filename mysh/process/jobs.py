"""
Job Table Module

Tracks background processes started with a trailing ``&`` and reaps
them once they have exited.

Slots are 1-based and refer to the current position in the table, so
they shift down when earlier jobs are reaped.

Author: mysh developers
Version: 1.0.0
"""

import os
import sys
from dataclasses import dataclass
from typing import Optional, List, TextIO

from mysh.core.config_loader import get_config
from mysh.core.subsystem import Subsystem, SubsystemState
from mysh.exceptions import JobTableFullError


@dataclass
class BackgroundJob:
    """A tracked background process."""
    pid: int
    command: str
    alive: bool = True

    def __str__(self) -> str:
        return f"{self.command} {self.pid}"


class JobTable(Subsystem):
    """
    Background job table.

    Example:
        >>> jobs = JobTable()
        >>> jobs.initialize()
        >>> slot = jobs.add(pid, "sleep 5")
        >>> jobs.reap()   # once per prompt
    """

    def __init__(
        self,
        capacity: Optional[int] = None,
        stdout: Optional[TextIO] = None,
        stderr: Optional[TextIO] = None
    ):
        super().__init__('jobs')
        self._capacity = capacity
        self._jobs: List[BackgroundJob] = []
        self._stdout = stdout
        self._stderr = stderr

    def initialize(self) -> None:
        if self._capacity is None:
            self._capacity = get_config().jobs.capacity
        self.set_state(SubsystemState.RUNNING)

    @property
    def capacity(self) -> int:
        if self._capacity is None:
            return get_config().jobs.capacity
        return self._capacity

    def __len__(self) -> int:
        return len(self._jobs)

    def _out(self) -> TextIO:
        return self._stdout or sys.stdout

    def _err(self) -> TextIO:
        return self._stderr or sys.stderr

    def add(self, pid: int, command: str) -> int:
        """
        Start tracking a background process.

        Returns:
            The 1-based slot assigned to the job

        Raises:
            JobTableFullError: If the table is at capacity. The process is
                left running, untracked.
        """
        if len(self._jobs) >= self.capacity:
            self._logger.warning(
                "Job table full, process left untracked",
                pid=pid,
                context={'capacity': self.capacity, 'command': command}
            )
            raise JobTableFullError(pid=pid, capacity=self.capacity)

        self._jobs.append(BackgroundJob(pid=pid, command=command))
        self._logger.debug("Tracking background job", pid=pid,
                           context={'slot': len(self._jobs)})
        return len(self._jobs)

    def list_jobs(self) -> List[BackgroundJob]:
        """Return the live jobs in slot order."""
        return [job for job in self._jobs if job.alive]

    def find(self, pid: int) -> Optional[BackgroundJob]:
        for job in self._jobs:
            if job.pid == pid:
                return job
        return None

    def reap(self) -> List[BackgroundJob]:
        """
        Collect finished background jobs without blocking.

        Prints a completion notice for each finished job, then compacts
        the table (survivors keep their relative order).

        Returns:
            The jobs reaped by this pass
        """
        reaped: List[BackgroundJob] = []

        for slot, job in enumerate(self._jobs, start=1):
            if not job.alive:
                continue

            try:
                pid, _ = os.waitpid(job.pid, os.WNOHANG)
            except OSError as e:
                self._logger.error(
                    "Failed to check background process status",
                    pid=job.pid,
                    context={'error': e}
                )
                print("ERROR: Failed to check background process status",
                      file=self._err(), flush=True)
                job.alive = False
                reaped.append(job)
                continue

            if pid == 0:
                continue

            print(f"[{slot}]+  Done {job.command}", file=self._out(), flush=True)
            job.alive = False
            reaped.append(job)

        if reaped:
            self._jobs = [job for job in self._jobs if job.alive]
            self._logger.debug(
                "Reaped background jobs",
                context={'reaped': len(reaped), 'remaining': len(self._jobs)}
            )

        return reaped

    def cleanup(self) -> None:
        """Forget every entry. Running processes are not signalled."""
        if self._jobs:
            self._logger.info(
                "Releasing job table",
                context={'untracked': len(self._jobs)}
            )
        self._jobs.clear()
        self.set_state(SubsystemState.STOPPED)
