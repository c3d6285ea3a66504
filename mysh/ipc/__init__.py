"""
mysh IPC Module

Provides the TCP broadcast service:
- Session roster
- Broadcast server
- Client helpers for send/start-client
"""

from .roster import ClientSession, SessionRoster
from .server import BroadcastServer, parse_port
from .client import connect, send_message, run_client

__all__ = [
    'ClientSession',
    'SessionRoster',
    'BroadcastServer',
    'parse_port',
    'connect',
    'send_message',
    'run_client',
]
