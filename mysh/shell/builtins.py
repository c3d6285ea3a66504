"""
Shell Built-in Commands

Commands executed directly by the shell without creating a new
process (unless launched in the background or inside a pipeline).

Author: mysh developers
Version: 1.0.0
"""

import os
import signal
import sys
from typing import Callable, List, Optional, TextIO

from mysh.core.console import report_error
from mysh.exceptions import InvalidPathError, MyshError, UsageError
from mysh.ipc.client import run_client, send_message
from mysh.logger import get_logger

CD_SHORTCUTS = {
    '.': '.',
    '..': '..',
    '...': '../..',
    '....': '../../..',
}


class BuiltinCommands:
    """
    Built-in shell commands.

    Every command takes its argument list (without the command name)
    and returns an exit code.
    """

    def __init__(self, context):
        """
        Args:
            context: The ShellContext the commands act on
        """
        self._context = context
        self._logger = get_logger('builtins')
        self._commands: dict[str, Callable[[List[str]], int]] = {
            'start-server': self.cmd_start_server,
            'close-server': self.cmd_close_server,
            'send': self.cmd_send,
            'start-client': self.cmd_start_client,
            'ps': self.cmd_ps,
            'kill': self.cmd_kill,
            'echo': self.cmd_echo,
            'ls': self.cmd_ls,
            'cd': self.cmd_cd,
            'cat': self.cmd_cat,
            'wc': self.cmd_wc,
            'help': self.cmd_help,
            'exit': self.cmd_exit,
        }

    def is_builtin(self, name: str) -> bool:
        """Check if a command is built-in."""
        return name in self._commands

    def execute(self, name: str, args: List[str]) -> int:
        """
        Execute a built-in command.

        Errors are reported on stderr and turned into exit code 1.

        Returns:
            Exit code (127 if ``name`` is not a builtin)
        """
        cmd = self._commands.get(name)
        if cmd is None:
            return 127

        try:
            return cmd(args)
        except MyshError as e:
            report_error(e.message)
            self._logger.debug(f"{name} failed", context={'error': e})
            return 1
        except OSError as e:
            report_error(f"{name}: {e.strerror or e}")
            return 1

    @staticmethod
    def _out() -> TextIO:
        return sys.stdout

    # Network

    def cmd_start_server(self, args: List[str]) -> int:
        """Start the broadcast server."""
        if not args:
            raise UsageError("No port provided", command='start-server')
        self._context.start_server(args[0])
        return 0

    def cmd_close_server(self, args: List[str]) -> int:
        """Stop the broadcast server."""
        self._context.stop_server()
        return 0

    def cmd_send(self, args: List[str]) -> int:
        """Send one message to a server and disconnect."""
        if len(args) < 3:
            raise UsageError("Usage: send <port> <host> <message>", command='send')
        send_message(args[0], args[1], " ".join(args[2:]))
        return 0

    def cmd_start_client(self, args: List[str]) -> int:
        """Interactive client session."""
        if len(args) < 2:
            raise UsageError("Usage: start-client <port> <host>", command='start-client')
        run_client(args[0], args[1])
        return 0

    # Processes

    def cmd_ps(self, args: List[str]) -> int:
        """List tracked background jobs."""
        out = self._out()
        for job in self._context.jobs.list_jobs():
            print(f"{job.command} {job.pid}", file=out)
        return 0

    def cmd_kill(self, args: List[str]) -> int:
        """Send a signal (default SIGTERM) to a process."""
        if not args:
            raise UsageError("kill requires at least a process ID", command='kill')

        pid = _to_int(args[0])
        if pid is None or pid <= 0:
            raise UsageError("Invalid process ID", command='kill')

        signum = signal.SIGTERM
        if len(args) > 1:
            signum = _to_int(args[1])
            if signum is None or signum <= 0:
                raise UsageError("Invalid signal specified", command='kill')

        try:
            os.kill(pid, signum)
        except ProcessLookupError:
            raise UsageError("The process does not exist", command='kill') from None
        except (OSError, ValueError):
            raise UsageError("Invalid signal specified", command='kill') from None
        return 0

    # Text and files

    def cmd_echo(self, args: List[str]) -> int:
        """Print the arguments."""
        print(" ".join(args), file=self._out())
        return 0

    def cmd_ls(self, args: List[str]) -> int:
        """
        List directory contents.

        Options:
            --f <substr>  only show names containing substr
            --rec         recurse into subdirectories
            --d <depth>   limit recursion depth (requires --rec)
        """
        path = '.'
        substr: Optional[str] = None
        recursive = False
        max_depth = -1

        i = 0
        while i < len(args):
            arg = args[i]
            if arg == '--f':
                if i + 1 >= len(args):
                    raise UsageError("Missing substring for --f", command='ls')
                substr = args[i + 1]
                i += 1
            elif arg == '--rec':
                recursive = True
            elif arg == '--d':
                if i + 1 >= len(args):
                    raise UsageError("Missing depth for --d", command='ls')
                depth = _to_int(args[i + 1])
                if depth is None:
                    raise UsageError("Invalid depth for --d", command='ls')
                max_depth = depth
                i += 1
            else:
                path = arg
            i += 1

        if max_depth >= 0 and not recursive:
            raise UsageError("--d requires --rec", command='ls')

        if not os.path.isdir(path):
            raise InvalidPathError(path)

        out = self._out()
        if recursive:
            self._list_recursive(path, substr, 0, max_depth, out)
        else:
            for name in _directory_entries(path):
                if substr is None or substr in name:
                    print(name, file=out)
        return 0

    def _list_recursive(
        self,
        path: str,
        substr: Optional[str],
        depth: int,
        max_depth: int,
        out: TextIO
    ) -> None:
        if max_depth >= 0 and depth >= max_depth:
            return

        try:
            names = _directory_entries(path)
        except OSError:
            report_error(f"Invalid path: {path}")
            return

        for name in names:
            if name in ('.', '..'):
                if substr is None:
                    print(name, file=out)
                continue

            if substr is None or substr in name:
                print(name, file=out)

            full_path = os.path.join(path, name)
            if os.path.isdir(full_path) and not os.path.islink(full_path):
                self._list_recursive(full_path, substr, depth + 1, max_depth, out)

    def cmd_cd(self, args: List[str]) -> int:
        """Change directory. ``...`` and ``....`` climb two and three levels."""
        if not args:
            target = os.environ.get('HOME')
            if target is None:
                raise UsageError("HOME environment variable not set", command='cd')
        else:
            target = CD_SHORTCUTS.get(args[0], args[0])

        try:
            os.chdir(target)
        except OSError:
            raise InvalidPathError(target) from None
        return 0

    def cmd_cat(self, args: List[str]) -> int:
        """Print a file, or standard input when no file is given."""
        out = self._out()
        if not args:
            for line in sys.stdin:
                out.write(line)
            out.flush()
            return 0

        try:
            with open(args[0], 'r', encoding='utf-8', errors='replace') as f:
                for line in f:
                    out.write(line)
        except OSError:
            raise UsageError(f"Cannot open file: {args[0]}", command='cat') from None
        out.flush()
        return 0

    def cmd_wc(self, args: List[str]) -> int:
        """Count words, characters and newlines."""
        if args:
            try:
                with open(args[0], 'r', encoding='utf-8', errors='replace') as f:
                    text = f.read()
            except OSError:
                raise UsageError(f"Cannot open file: {args[0]}", command='wc') from None
        else:
            text = sys.stdin.read()

        words, chars, lines = count_text(text)
        print(
            f"word count {words}\ncharacter count {chars}\nnewline count {lines}",
            file=self._out()
        )
        return 0

    # Shell

    def cmd_help(self, args: List[str]) -> int:
        """Display help information."""
        help_text = """mysh built-in commands

Processes:
  ps                         List background jobs
  kill <pid> [signal]        Send a signal (default SIGTERM)

Files:
  echo [text...]             Print text
  ls [path] [--f s] [--rec] [--d n]
                             List a directory
  cd [path]                  Change directory (... and .... climb further)
  cat [file]                 Print a file or standard input
  wc [file]                  Count words, characters and newlines

Network:
  start-server <port>        Start the broadcast server
  close-server               Stop the broadcast server
  send <port> <host> <msg>   Send one message
  start-client <port> <host> Interactive client

Shell:
  NAME=value                 Set a variable ($NAME expands it)
  cmd1 | cmd2                Pipeline
  cmd &                      Run in the background
  help                       Display this help
  exit                       Exit the shell"""
        print(help_text, file=self._out())
        return 0

    def cmd_exit(self, args: List[str]) -> int:
        """Exit the shell."""
        self._context.request_exit()
        return 0


def count_text(text: str) -> tuple[int, int, int]:
    """Return (words, characters, newlines) for ``text``."""
    return len(text.split()), len(text), text.count('\n')


def _directory_entries(path: str) -> List[str]:
    return ['.', '..'] + sorted(os.listdir(path))


def _to_int(value: str) -> Optional[int]:
    try:
        return int(value)
    except ValueError:
        return None
