#!/usr/bin/env python3
"""
mysh Dispatcher and Pipeline Tests

These fork real processes. Pipeline output is collected through a file
written by the last stage, since forked children write to the real
descriptors rather than to captured Python streams.

Run with: python -m pytest mysh/tests -v
"""

import io
import os
import signal
import tempfile
import unittest
from unittest import mock

from mysh.core.config_loader import Config
from mysh.core.context import ShellContext
from mysh.process.dispatcher import CommandDispatcher, wait_for
from mysh.process.executor import PipelineExecutor, split_pipeline
from mysh.process.jobs import JobTable
from mysh.shell.builtins import BuiltinCommands
from mysh.shell.parser import PIPE
from mysh.shell.variables import VariableStore


class TestSplitPipeline(unittest.TestCase):
    """Test stage splitting."""

    def test_single_stage(self):
        self.assertEqual(split_pipeline(['ls', '-l']), [['ls', '-l']])

    def test_stages(self):
        self.assertEqual(
            split_pipeline(['a', PIPE, 'b', 'x', PIPE, 'c']),
            [['a'], ['b', 'x'], ['c']]
        )

    def test_empty_stage_kept(self):
        self.assertEqual(split_pipeline(['a', PIPE, PIPE, 'c']), [['a'], [], ['c']])

    def test_plain_bar_is_a_word(self):
        """A '|' that did not come from the parser is an ordinary argument."""
        self.assertEqual(split_pipeline(['echo', '|']), [['echo', '|']])


class ExecutorTestCase(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.variables = VariableStore()
        self.jobs = JobTable(capacity=4, stdout=io.StringIO(), stderr=io.StringIO())
        self.jobs.initialize()
        self.dispatcher = CommandDispatcher(self.variables, self.jobs, launch_delay=0)
        self.executor = PipelineExecutor(self.dispatcher, self.variables)

    def tearDown(self):
        for job in self.jobs.list_jobs():
            try:
                os.kill(job.pid, signal.SIGKILL)
                os.waitpid(job.pid, 0)
            except (ProcessLookupError, ChildProcessError):
                pass
        self._tmp.cleanup()

    def sink(self, name: str = 'out.txt') -> tuple:
        """A final stage writing its input to a file, and that file's path."""
        path = os.path.join(self._tmp.name, name)
        return ['sh', '-c', f'cat > {path}'], path

    @staticmethod
    def read(path: str) -> str:
        with open(path) as f:
            return f.read()


class TestDispatcher(ExecutorTestCase):
    """Test single command dispatch."""

    def test_empty(self):
        self.assertEqual(self.dispatcher.dispatch([]), 0)

    def test_assignment(self):
        self.assertEqual(self.dispatcher.dispatch(['X=5']), 0)
        self.assertEqual(self.variables.get('X'), '5')

    def test_foreground_exit_code(self):
        self.assertEqual(self.dispatcher.dispatch(['true']), 0)
        self.assertEqual(self.dispatcher.dispatch(['sh', '-c', 'exit 3']), 3)

    def test_unknown_command(self):
        self.assertEqual(self.dispatcher.dispatch(['mysh-no-such-program']), 1)

    def test_killed_child(self):
        self.assertEqual(self.dispatcher.dispatch(['sh', '-c', 'kill -TERM $$']),
                         128 + signal.SIGTERM)

    def test_background_is_tracked(self):
        status = self.dispatcher.dispatch(['sleep', '30'], background=True)

        self.assertEqual(status, 0)
        jobs = self.jobs.list_jobs()
        self.assertEqual(len(jobs), 1)
        self.assertEqual(jobs[0].command, "sleep 30")

    def test_background_table_full(self):
        """The process still runs but is not tracked."""
        forked = []
        real_fork = os.fork

        def recording_fork():
            pid = real_fork()
            if pid:
                forked.append(pid)
            return pid

        self.jobs = JobTable(capacity=0)
        self.jobs.initialize()
        dispatcher = CommandDispatcher(self.variables, self.jobs, launch_delay=0)

        with mock.patch('os.fork', side_effect=recording_fork):
            status = dispatcher.dispatch(['true'], background=True)

        self.assertEqual(status, 1)
        self.assertEqual(len(self.jobs), 0)
        self.assertEqual(len(forked), 1)
        self.assertEqual(wait_for(forked[0]), 0)

    def test_wait_for_reaped_child(self):
        pid = os.posix_spawnp('true', ['true'], dict(os.environ))
        os.waitpid(pid, 0)
        self.assertEqual(wait_for(pid), 0)


class TestPipeline(ExecutorTestCase):
    """Test multi-stage pipelines."""

    def test_data_flows(self):
        sink, path = self.sink()

        status = self.executor.run(['printf', 'b\\na\\n', PIPE, 'sort', PIPE] + sink)

        self.assertEqual(status, 0)
        self.assertEqual(self.read(path), "a\nb\n")

    def test_one_process_per_stage(self):
        """Every stage is forked once and waited for by its own pid."""
        forked, waited = [], []
        real_fork, real_waitpid = os.fork, os.waitpid

        def recording_fork():
            pid = real_fork()
            if pid:
                forked.append(pid)
            return pid

        def recording_waitpid(pid, options):
            waited.append(pid)
            return real_waitpid(pid, options)

        sink, path = self.sink()
        with mock.patch('os.fork', side_effect=recording_fork), \
                mock.patch('os.waitpid', side_effect=recording_waitpid):
            self.executor.run(['echo', 'hi', PIPE, 'cat', PIPE] + sink)

        self.assertEqual(len(forked), 3)
        self.assertEqual(sorted(waited), sorted(forked))
        self.assertEqual(self.read(path), "hi\n")

    def test_last_stage_status(self):
        self.assertEqual(self.executor.run(['true', PIPE, 'sh', '-c', 'exit 4']), 4)
        self.assertEqual(self.executor.run(['false', PIPE, 'true']), 0)

    def test_unknown_middle_stage(self):
        """A bad stage fails alone; the rest of the pipeline completes."""
        sink, path = self.sink()

        status = self.executor.run(['echo', 'x', PIPE, 'mysh-no-such-program', PIPE] + sink)

        self.assertEqual(status, 0)
        self.assertEqual(self.read(path), "")

    def test_background_ignored(self):
        status = self.executor.run(['true', PIPE, 'true'], background=True)

        self.assertEqual(status, 0)
        self.assertEqual(len(self.jobs), 0)

    def test_assignment_does_not_leak(self):
        self.variables.set('X', 'outer')

        self.executor.run(['X=inner', PIPE, 'true'])

        self.assertEqual(self.variables.get('X'), 'outer')

    def test_pipe_failure_starts_nothing(self):
        from mysh.exceptions import PipelineError

        with mock.patch('os.pipe', side_effect=OSError(24, "Too many open files")), \
                mock.patch('os.fork') as fork:
            with self.assertRaises(PipelineError):
                self.executor.run(['true', PIPE, 'true'])

        fork.assert_not_called()

    def test_fork_failure_aborts_started_stages(self):
        from mysh.exceptions import ForkError

        forked = []
        real_fork = os.fork

        def failing_fork():
            if forked:
                raise OSError(11, "Resource temporarily unavailable")
            pid = real_fork()
            if pid:
                forked.append(pid)
            return pid

        with mock.patch('os.fork', side_effect=failing_fork):
            with self.assertRaises(ForkError):
                self.executor.run(['sleep', '30', PIPE, 'cat'])

        self.assertEqual(len(forked), 1)
        with self.assertRaises(ChildProcessError):
            os.waitpid(forked[0], os.WNOHANG)


class TestPipelineBuiltins(ExecutorTestCase):
    """Builtins run inside pipeline stages."""

    def setUp(self):
        super().setUp()
        context = ShellContext(Config(), variables=self.variables, jobs=self.jobs)
        self.dispatcher = CommandDispatcher(
            self.variables, self.jobs, BuiltinCommands(context), launch_delay=0
        )
        self.executor = PipelineExecutor(self.dispatcher, self.variables)

    def test_builtin_writes_to_pipe(self):
        sink, path = self.sink()

        self.executor.run(['echo', 'one', 'two', PIPE] + sink)

        self.assertEqual(self.read(path), "one two\n")

    def test_builtin_reads_from_pipe(self):
        sink, path = self.sink()

        self.executor.run(['echo', 'one two', PIPE, 'wc', PIPE] + sink)

        self.assertEqual(
            self.read(path),
            "word count 2\ncharacter count 8\nnewline count 1\n"
        )

    def test_builtin_failure_status(self):
        self.assertEqual(self.executor.run(['true', PIPE, 'cd', '/mysh/no/such/dir']), 1)


if __name__ == '__main__':
    unittest.main(verbosity=2)
