"""
Speaking (voice output) state enumeration.
"""

from __future__ import annotations

from enum import Enum


class SpeakingState(str, Enum):
    """
    Voice output lifecycle: STOPPED <-> SPEAKING.

    SPEAKING while a synthesizer call is in flight.
    """

    STOPPED = "STOPPED"
    SPEAKING = "SPEAKING"
