"""
Shell Context

State owned by one interactive shell: variables, the background job
table and the (optional) broadcast server.

Author: mysh developers
Version: 1.0.0
"""

from typing import Optional

from mysh.core.config_loader import Config, get_config
from mysh.exceptions import ServerAlreadyRunningError, ServerNotRunningError
from mysh.ipc.server import BroadcastServer
from mysh.logger import get_logger
from mysh.process.jobs import JobTable
from mysh.shell.variables import VariableStore


class ShellContext:
    """
    Everything a shell session owns.

    At most one BroadcastServer is active at a time; it is created by
    start_server() and discarded by stop_server() or shutdown().
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        variables: Optional[VariableStore] = None,
        jobs: Optional[JobTable] = None
    ):
        self.config = config or get_config()
        self.variables = variables if variables is not None else VariableStore()
        self.jobs = jobs if jobs is not None else JobTable(capacity=self.config.jobs.capacity)
        self.jobs.initialize()
        self.server: Optional[BroadcastServer] = None
        self.exit_requested = False
        self._logger = get_logger('context')

    def start_server(self, port) -> BroadcastServer:
        """
        Start the broadcast server on ``port``.

        Raises:
            ServerAlreadyRunningError: If a server is already active
            InvalidPortError: If the port is out of range
            ServerBindError: If the port is in use
        """
        if self.server is not None and self.server.running:
            raise ServerAlreadyRunningError(self.server.port)

        server = BroadcastServer(self.config.server)
        server.initialize()
        server.start(port)
        self.server = server
        return server

    def stop_server(self) -> None:
        """
        Stop the active broadcast server.

        Raises:
            ServerNotRunningError: If no server is active
        """
        if self.server is None or not self.server.running:
            raise ServerNotRunningError()
        try:
            self.server.stop()
        finally:
            self.server = None

    def request_exit(self) -> None:
        self.exit_requested = True

    def shutdown(self) -> None:
        """Tear down the server (if any) and release the job table."""
        if self.server is not None and self.server.running:
            self._logger.info("Closing server on exit", context={'port': self.server.port})
            self.stop_server()
        self.server = None
        self.jobs.cleanup()
