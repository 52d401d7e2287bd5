"""
Origin of the current input buffer contents.
"""

from __future__ import annotations

from enum import Enum


class InputSource(str, Enum):
    """Where an UPDATE_INPUT came from."""

    TEXT = "text"
    SPEECH = "speech"
