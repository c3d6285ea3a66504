"""
Broadcast Server Module

Line-ish, chunk-delimited multi-client broadcast service:
- One accept thread admits connections into the roster
- One reader thread per session echoes and fans out each chunk
- A control token queries the number of connected clients

One ``recv`` is one message. Messages split across reads are not
reassembled and no delimiter is interpreted.

Author: mysh developers
Version: 1.0.0
"""

import socket
import sys
import threading
import time
from typing import Optional, TextIO

from mysh.core.config_loader import get_config, ServerConfig
from mysh.core.subsystem import Subsystem, SubsystemState
from mysh.exceptions import (
    InvalidPortError,
    RosterFullError,
    ServerAlreadyRunningError,
    ServerBindError,
    ServerNotRunningError,
)
from .roster import ClientSession, SessionRoster

# Pause after a failed accept() so a persistent error (EMFILE) cannot spin
ACCEPT_RETRY_DELAY = 0.1


def parse_port(value) -> int:
    """
    Validate a port argument.

    Raises:
        InvalidPortError: Unless ``value`` is an integer in 1..65535
    """
    try:
        port = int(value)
    except (TypeError, ValueError):
        raise InvalidPortError(value) from None
    if port <= 0 or port > 65535:
        raise InvalidPortError(value)
    return port


class BroadcastServer(Subsystem):
    """
    The broadcast service.

    Example:
        >>> server = BroadcastServer()
        >>> server.initialize()
        >>> server.start(9000)
        >>> server.client_count
        0
        >>> server.stop()
    """

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        stdout: Optional[TextIO] = None
    ):
        super().__init__('server')
        self._config = config
        self._stdout = stdout
        self._listener: Optional[socket.socket] = None
        self._acceptor: Optional[threading.Thread] = None
        self._roster: Optional[SessionRoster] = None
        self._running = False
        self._port: Optional[int] = None
        self._output_lock = threading.Lock()

    def initialize(self) -> None:
        if self._config is None:
            self._config = get_config().server
        self.set_state(SubsystemState.INITIALIZED)

    @property
    def running(self) -> bool:
        return self._running

    @property
    def port(self) -> Optional[int]:
        return self._port

    @property
    def address(self) -> Optional[tuple]:
        if self._listener is None:
            return None
        return self._listener.getsockname()

    @property
    def roster(self) -> Optional[SessionRoster]:
        return self._roster

    @property
    def client_count(self) -> int:
        if self._roster is None:
            return 0
        return self._roster.count()

    def start(self, port) -> None:
        """
        Bind, listen and start accepting connections.

        Raises:
            InvalidPortError: If the port is out of range
            ServerAlreadyRunningError: If this server is already listening
            ServerBindError: If the address is already in use
        """
        if self._running:
            raise ServerAlreadyRunningError(self._port)

        if self._config is None:
            self.initialize()

        port = parse_port(port)
        config = self._config

        listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            listener.bind((config.host, port))
            listener.listen(config.backlog)
        except OSError as e:
            listener.close()
            self._logger.error("Bind failed", context={'port': port, 'error': e})
            raise ServerBindError(port, reason=e.strerror) from e

        self._listener = listener
        self._port = port
        self._roster = SessionRoster(config.max_clients, outbox_size=config.outbox_size)
        self._running = True

        self._acceptor = threading.Thread(
            target=self._accept_loop,
            name=f"mysh-acceptor-{port}",
            daemon=True
        )
        self._acceptor.start()

        self.set_state(SubsystemState.RUNNING)
        self._logger.info("Server listening", context={'host': config.host, 'port': port})

    def stop(self) -> None:
        """
        Stop accepting, close every session and empty the roster.

        Reader threads are not joined; they see end-of-stream and exit.

        Raises:
            ServerNotRunningError: If the server is not running
        """
        if not self._running:
            raise ServerNotRunningError()

        self._running = False

        listener = self._listener
        self._listener = None
        try:
            listener.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        listener.close()

        if self._acceptor is not None:
            self._acceptor.join(timeout=self._config.join_timeout)
            self._acceptor = None

        closed = self._roster.close_all()

        self.set_state(SubsystemState.STOPPED)
        self._logger.info(
            "Server stopped",
            context={'port': self._port, 'sessions_closed': closed}
        )

    def cleanup(self) -> None:
        if self._running:
            self.stop()

    def _accept_loop(self) -> None:
        listener = self._listener
        roster = self._roster
        while self._running:
            try:
                connection, address = listener.accept()
            except OSError as e:
                if not self._running:
                    break
                self._logger.error("Accept failed", context={'error': e})
                time.sleep(ACCEPT_RETRY_DELAY)
                continue

            if not self._running:
                connection.close()
                break

            try:
                session = roster.admit(connection)
            except RosterFullError as e:
                connection.close()
                self._logger.warning(
                    "Connection refused, roster full",
                    context={'peer': address, 'capacity': e.capacity}
                )
                continue

            session.start_writer()
            session.reader = threading.Thread(
                target=self._serve_session,
                args=(session, roster),
                name=f"mysh-reader-{session.identifier.rstrip(':')}",
                daemon=True
            )
            session.reader.start()

        self._logger.debug("Accept loop exiting")

    def _serve_session(self, session: ClientSession, roster: SessionRoster) -> None:
        config = self._config
        token = config.control_token.encode()

        while True:
            try:
                data = session.connection.recv(config.read_size)
            except OSError as e:
                self._logger.debug(
                    "Read failed",
                    context={'session': session.identifier, 'error': e}
                )
                break

            if not data:
                break

            if data.rstrip(b"\r\n") == token:
                session.send(f"{roster.count()} clients connected".encode())
                continue

            self._fan_out(roster, session, data)

        roster.remove(session)

    def _fan_out(self, roster: SessionRoster, sender: ClientSession, data: bytes) -> int:
        """
        Deliver one message from ``sender``.

        Prints a prefixed copy locally, echoes the raw chunk to the sender
        and queues a prefixed copy for every other session.

        Returns:
            Number of peers the message was queued for
        """
        text = data.decode('utf-8', errors='replace').rstrip('\r\n')
        self._write_local(f"{sender.identifier} {text}\n")

        sender.send(data)

        prefixed = sender.identifier.encode() + b" " + data
        delivered = 0
        for peer in roster.snapshot():
            if peer is sender:
                continue
            if peer.send(prefixed):
                delivered += 1
        return delivered

    def _write_local(self, text: str) -> None:
        stream = self._stdout or sys.stdout
        with self._output_lock:
            try:
                stream.write(text)
                stream.flush()
            except (OSError, ValueError):
                pass
