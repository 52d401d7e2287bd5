"""
Connection status of the peer transport.

Tracked in the connection slice, reported by the surrounding application
through CONNECTION_CHANGE. The engine never derives it itself.
"""
from enum import Enum

class ConnectionStatus(Enum):
    """
    Transport lifecycle as reported by the connection owner.

    Independent of the listening / speaking state machines.
    """
    UNINITIALIZED = "UNINITIALIZED"
    CONNECTING = "CONNECTING"
    ONLINE = "ONLINE"
    EXPIRED_TOKEN = "EXPIRED_TOKEN"
    FAILED_TO_CONNECT = "FAILED_TO_CONNECT"
    ENDED = "ENDED"
