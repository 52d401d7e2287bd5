"""
Shared reducer helpers.
"""

from __future__ import annotations

import weakref
from dataclasses import replace
from typing import Any, Callable, TypeVar

T = TypeVar("T")


def evolve(state: T, **changes: Any) -> T:
    """
    dataclasses.replace that preserves identity on no-op.

    Returns state itself when every requested field already holds an equal
    value, so downstream change detection can use `is`.
    """
    if all(getattr(state, name) == value for name, value in changes.items()):
        return state
    return replace(state, **changes)  # type: ignore[type-var]


class _PinnedRef:
    """Strong stand-in for objects that do not support weak references."""

    def __init__(self, obj: Any) -> None:
        self._obj = obj

    def __call__(self) -> Any:
        return self._obj

    def __eq__(self, other: object) -> bool:
        return isinstance(other, _PinnedRef) and other._obj is self._obj

    def __hash__(self) -> int:
        return id(self._obj)


def weak(obj: Any) -> Callable[[], Any] | None:
    """Reference to obj that does not keep it alive where possible."""
    if obj is None:
        return None
    try:
        return weakref.ref(obj)
    except TypeError:
        return _PinnedRef(obj)


def deref(ref: Callable[[], Any] | None) -> Any:
    """Resolve a reference; None when absent or collected."""
    if ref is None:
        return None
    return ref()
