"""
Listening (voice input) state enumeration.

Rules:
- This enum defines ONLY the states.
- Transitions are defined exclusively in the shell reducer.
"""

from __future__ import annotations

from enum import Enum


class ListeningState(str, Enum):
    """
    Voice input lifecycle.

    STOPPED -> STARTING -> STARTED -> STOPPING -> STOPPED

    STARTED is only ever entered from STARTING.
    """

    STOPPED = "STOPPED"
    STARTING = "STARTING"
    STARTED = "STARTED"
    STOPPING = "STOPPING"
