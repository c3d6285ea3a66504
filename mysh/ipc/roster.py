"""
Session Roster Module

Shared state of the broadcast server: the connected client sessions
and the single lock that guards them.

Every read and write of the roster (admission, removal, size, snapshot
for broadcast, bulk close) happens under the roster lock. Socket
writes never do: each session owns a bounded outbox drained by its own
writer thread.

Author: mysh developers
Version: 1.0.0
"""

import queue
import socket
import threading
from typing import Optional, List

from mysh.exceptions import RosterFullError
from mysh.logger import get_logger

_CLOSE = None


class ClientSession:
    """
    One connected client.

    Attributes:
        connection: The accepted socket
        identifier: Display identifier, e.g. ``client3:``
        reader: Thread reading from ``connection``; set by the server once
            it starts serving the session
    """

    def __init__(self, connection: socket.socket, identifier: str, outbox_size: int = 64):
        self.connection = connection
        self.identifier = identifier
        self.reader: Optional[threading.Thread] = None
        self._outbox: "queue.Queue[Optional[bytes]]" = queue.Queue(maxsize=outbox_size)
        self._writer: Optional[threading.Thread] = None
        self._closed = threading.Event()
        self._logger = get_logger('server')

    def __repr__(self) -> str:
        return f"ClientSession({self.identifier!r})"

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def start_writer(self) -> None:
        self._writer = threading.Thread(
            target=self._drain_outbox,
            name=f"mysh-writer-{self.identifier.rstrip(':')}",
            daemon=True
        )
        self._writer.start()

    def send(self, data: bytes) -> bool:
        """
        Queue ``data`` for delivery.

        Returns:
            False if the session is closed or its outbox is full (the
            message is dropped for this peer only)
        """
        if self.closed:
            return False
        try:
            self._outbox.put_nowait(data)
        except queue.Full:
            self._logger.warning(
                "Outbox full, message dropped",
                context={'session': self.identifier}
            )
            return False
        return True

    def _drain_outbox(self) -> None:
        while True:
            data = self._outbox.get()
            if data is _CLOSE or self.closed:
                break
            try:
                self.connection.sendall(data)
            except OSError as e:
                self._logger.debug(
                    "Send failed",
                    context={'session': self.identifier, 'error': e}
                )
                break

    def close(self) -> None:
        """Close the connection. Unblocks the reader with end-of-stream."""
        if self._closed.is_set():
            return
        self._closed.set()

        try:
            self.connection.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        self.connection.close()

        try:
            self._outbox.put_nowait(_CLOSE)
        except queue.Full:
            pass


class SessionRoster:
    """
    The set of admitted sessions.

    Identifiers come from a counter that only grows, so an identifier is
    never handed out twice during one server run.

    Example:
        >>> roster = SessionRoster(capacity=10)
        >>> session = roster.admit(conn)
        >>> roster.count()
        1
    """

    def __init__(self, capacity: int, outbox_size: int = 64):
        self._capacity = capacity
        self._outbox_size = outbox_size
        self._sessions: List[ClientSession] = []
        self._next_id = 1
        self._lock = threading.Lock()
        self._logger = get_logger('server')

    @property
    def capacity(self) -> int:
        return self._capacity

    def admit(self, connection: socket.socket) -> ClientSession:
        """
        Add a connection to the roster.

        Raises:
            RosterFullError: If the roster is at capacity. The caller
                closes the connection.
        """
        with self._lock:
            if len(self._sessions) >= self._capacity:
                raise RosterFullError(self._capacity)

            session = ClientSession(
                connection,
                f"client{self._next_id}:",
                outbox_size=self._outbox_size
            )
            self._next_id += 1
            self._sessions.append(session)
            size = len(self._sessions)

        self._logger.info(
            "Client admitted",
            context={'session': session.identifier, 'clients': size}
        )
        return session

    def remove(self, session: ClientSession) -> bool:
        """
        Remove a session and close its connection.

        Returns:
            False if the session was no longer in the roster
        """
        with self._lock:
            try:
                self._sessions.remove(session)
            except ValueError:
                return False
            size = len(self._sessions)

        session.close()
        self._logger.info(
            "Client removed",
            context={'session': session.identifier, 'clients': size}
        )
        return True

    def count(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __len__(self) -> int:
        return self.count()

    def snapshot(self) -> List[ClientSession]:
        """Copy of the current sessions, taken under the lock."""
        with self._lock:
            return list(self._sessions)

    def close_all(self) -> int:
        """
        Close every session and empty the roster.

        Returns:
            Number of sessions closed
        """
        with self._lock:
            sessions = self._sessions
            self._sessions = []
            for session in sessions:
                session.close()
        return len(sessions)
