"""
Broadcast Client Module

Client side of the broadcast protocol, used by the ``send`` and
``start-client`` builtins.

Author: mysh developers
Version: 1.0.0
"""

import select
import socket
import sys
from typing import Optional, TextIO

from mysh.core.config_loader import get_config
from mysh.exceptions import ConnectionFailedError, InvalidAddressError
from mysh.logger import get_logger
from .server import parse_port

_logger = get_logger('client')


def connect(port, host: str) -> socket.socket:
    """
    Open a TCP connection to an IPv4 host.

    Raises:
        InvalidPortError: If the port is out of range
        InvalidAddressError: If host is not a dotted IPv4 address
        ConnectionFailedError: If the connection is refused
    """
    port = parse_port(port)
    try:
        socket.inet_pton(socket.AF_INET, host)
    except OSError:
        raise InvalidAddressError(host) from None

    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.connect((host, port))
    except OSError as e:
        sock.close()
        _logger.debug("Connect failed", context={'host': host, 'port': port, 'error': e})
        raise ConnectionFailedError(host, port, reason=e.strerror) from e
    return sock


def send_message(port, host: str, message: str) -> int:
    """
    Connect, send one message and close.

    Returns:
        Number of bytes sent
    """
    data = message.encode()
    with connect(port, host) as sock:
        sock.sendall(data)
    _logger.debug("Message sent", context={'host': host, 'port': port, 'bytes': len(data)})
    return len(data)


def run_client(
    port,
    host: str,
    stdin: Optional[TextIO] = None,
    stdout: Optional[TextIO] = None
) -> int:
    """
    Interactive client: send each input line, then poll briefly for a reply.

    Returns when input is exhausted or the connection breaks.

    Returns:
        Number of lines sent
    """
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    config = get_config().client

    sent = 0
    with connect(port, host) as sock:
        print("Connected to server. Type messages or \\connected to check connections.",
              file=stdout, flush=True)

        for line in stdin:
            try:
                sock.sendall(line.rstrip('\n').encode())
            except OSError as e:
                _logger.warning("Send failed", context={'error': e})
                break
            sent += 1

            ready, _, _ = select.select([sock], [], [], config.poll_interval)
            if not ready:
                continue

            try:
                reply = sock.recv(config.read_size)
            except OSError:
                break
            if not reply:
                break
            print(reply.decode('utf-8', errors='replace'), file=stdout, flush=True)

    return sent
