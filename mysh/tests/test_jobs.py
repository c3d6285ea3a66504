#!/usr/bin/env python3
"""
mysh Job Table Tests

Uses real child processes.

Run with: python -m pytest mysh/tests -v
"""

import io
import os
import signal
import time
import unittest

from mysh.exceptions import JobTableFullError
from mysh.process.jobs import BackgroundJob, JobTable


def spawn(*argv: str) -> int:
    return os.posix_spawnp(argv[0], list(argv), dict(os.environ))


def reap_until(jobs: JobTable, count: int, timeout: float = 5.0) -> list:
    """Call reap() until ``count`` jobs have been collected."""
    reaped = []
    deadline = time.monotonic() + timeout
    while len(reaped) < count and time.monotonic() < deadline:
        reaped.extend(jobs.reap())
        time.sleep(0.02)
    return reaped


class TestJobTable(unittest.TestCase):
    """Test background job tracking."""

    def setUp(self):
        self.out = io.StringIO()
        self.err = io.StringIO()
        self.jobs = JobTable(capacity=3, stdout=self.out, stderr=self.err)
        self.jobs.initialize()
        self._sleepers = []

    def tearDown(self):
        for pid in self._sleepers:
            try:
                os.kill(pid, signal.SIGKILL)
                os.waitpid(pid, 0)
            except (ProcessLookupError, ChildProcessError):
                pass

    def _sleeper(self) -> int:
        pid = spawn('sleep', '30')
        self._sleepers.append(pid)
        return pid

    def test_job_str(self):
        self.assertEqual(str(BackgroundJob(pid=12, command="sleep 5")), "sleep 5 12")

    def test_add_returns_slots(self):
        self.assertEqual(self.jobs.add(self._sleeper(), "sleep 30"), 1)
        self.assertEqual(self.jobs.add(self._sleeper(), "sleep 30"), 2)
        self.assertEqual(len(self.jobs), 2)
        self.assertEqual(self.jobs.capacity, 3)

    def test_capacity(self):
        """A full table refuses new jobs."""
        for _ in range(3):
            self.jobs.add(self._sleeper(), "sleep 30")

        with self.assertRaises(JobTableFullError) as ctx:
            self.jobs.add(4242, "sleep 30")

        self.assertEqual(ctx.exception.capacity, 3)
        self.assertEqual(len(self.jobs), 3)

    def test_reap_finished_job(self):
        """A finished job is reported once and removed."""
        running = self._sleeper()
        self.jobs.add(running, "sleep 30")
        self.jobs.add(spawn('true'), "true")

        reaped = reap_until(self.jobs, 1)

        self.assertEqual([job.command for job in reaped], ["true"])
        self.assertEqual(self.out.getvalue(), "[2]+  Done true\n")
        self.assertEqual([job.pid for job in self.jobs.list_jobs()], [running])

    def test_reap_is_idempotent(self):
        self.jobs.add(spawn('true'), "true")
        reap_until(self.jobs, 1)
        output = self.out.getvalue()

        self.assertEqual(self.jobs.reap(), [])
        self.assertEqual(self.jobs.reap(), [])
        self.assertEqual(self.out.getvalue(), output)
        self.assertEqual(len(self.jobs), 0)

    def test_reap_compacts_in_order(self):
        first = self._sleeper()
        self.jobs.add(first, "sleep 30")
        self.jobs.add(spawn('true'), "true")
        last = self._sleeper()
        self.jobs.add(last, "sleep 30")

        reap_until(self.jobs, 1)

        self.assertEqual([job.pid for job in self.jobs.list_jobs()], [first, last])
        self.assertEqual(self.jobs.find(last).command, "sleep 30")

    def test_reap_error_counts_as_done(self):
        """A pid that is not our child cannot be checked and is dropped."""
        self.jobs.add(os.getppid(), "stranger")

        reaped = self.jobs.reap()

        self.assertEqual(len(reaped), 1)
        self.assertIn("ERROR: Failed to check background process status", self.err.getvalue())
        self.assertEqual(len(self.jobs), 0)

    def test_cleanup(self):
        self.jobs.add(self._sleeper(), "sleep 30")
        self.jobs.cleanup()
        self.assertEqual(len(self.jobs), 0)


if __name__ == '__main__':
    unittest.main(verbosity=2)
