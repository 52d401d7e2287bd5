"""
History slice reducer.

(history, action) -> history'

Rules:
- Pure: no side effects, no IO, no clocks (timestamps come from ts_ms).
- Total: unknown actions return the slice unchanged.
- Identity: a no-op returns the same object; an update replaces only the
  touched Activity, all other entries keep their identity.

Ordering:
- Insertion order is conversation order.
- Typing entries trail the list and are excluded from ordering guarantees.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Callable

from constants import (
    ACTIVITY_TYPE_TYPING,
    REMOVABLE_PLACEHOLDER_IDS,
    RETRY_SENTINEL_ID,
)
from orchestrator.actions import (
    Action,
    ActionType,
    ClearTyping,
    PushQrcodeMessage,
    PushWaitingMessage,
    ReceiveMessage,
    ReceiveSentMessage,
    SelectActivity,
    SendMessage,
    SendMessageFail,
    SendMessageRetry,
    SendMessageSucceed,
    ShowTyping,
    TakeSuggestedAction,
    TimeoutAlert,
)
from orchestrator.activity import Activity, is_postback, iso_timestamp
from orchestrator.reducers._evolve import evolve
from orchestrator.state_dataclass import HistoryState


# =============================================================================
# Small helpers
# =============================================================================

def _is_typing(activity: Activity) -> bool:
    return activity.type == ACTIVITY_TYPE_TYPING


def _same_entries(a: tuple[Activity, ...], b: tuple[Activity, ...]) -> bool:
    return len(a) == len(b) and all(x is y for x, y in zip(a, b))


def _index_of_correlation(
    activities: tuple[Activity, ...],
    correlation_id: str | None,
) -> int:
    if correlation_id is None:
        return -1
    for i, activity in enumerate(activities):
        if activity.correlation_id == correlation_id:
            return i
    return -1


def _replace_at(
    activities: tuple[Activity, ...],
    i: int,
    item: Activity,
) -> tuple[Activity, ...]:
    return activities[:i] + (item,) + activities[i + 1:]


def _follow_selection(
    state: HistoryState,
    old: Activity,
    new: Activity,
) -> Activity | None:
    if state.selected_activity is old:
        return new
    return state.selected_activity


def _insert_before_typing(
    activities: tuple[Activity, ...],
    activity: Activity,
) -> tuple[Activity, ...]:
    """
    Append activity, dropping stale typing entries.

    Typing entries of senders other than activity's sender are kept and
    re-appended after it (the peer can type while a message arrives).
    """
    return (
        tuple(a for a in activities if not _is_typing(a))
        + (activity,)
        + tuple(
            a for a in activities
            if _is_typing(a) and a.from_.id != activity.from_.id
        )
    )


# =============================================================================
# Per-action reducers
# =============================================================================

def _send_message(state: HistoryState, action: SendMessage) -> HistoryState:
    correlation_id = f"{state.correlation_base}.{state.correlation_counter}"
    stamped = replace(
        action.activity,
        timestamp=iso_timestamp(action.ts_ms),
        correlation_id=correlation_id,
    )
    return replace(
        state,
        activities=(
            tuple(a for a in state.activities if not _is_typing(a))
            + (stamped,)
            + tuple(a for a in state.activities if _is_typing(a))
        ),
        correlation_counter=state.correlation_counter + 1,
        outbound_counter=state.outbound_counter + 1,
    )


def _resolve_send(
    state: HistoryState,
    action: SendMessageSucceed | SendMessageFail,
) -> HistoryState:
    i = _index_of_correlation(state.activities, action.correlation_id)
    if i == -1:
        return state

    activity = state.activities[i]

    # Already acknowledged: duplicate or late result
    if activity.id is not None and activity.id != RETRY_SENTINEL_ID:
        return state

    new_id = action.id if isinstance(action, SendMessageSucceed) else RETRY_SENTINEL_ID
    if activity.id == new_id:
        return state

    new_activity = replace(activity, id=new_id)
    return replace(
        state,
        activities=_replace_at(state.activities, i, new_activity),
        selected_activity=_follow_selection(state, activity, new_activity),
    )


def _retry(state: HistoryState, action: SendMessageRetry) -> HistoryState:
    i = _index_of_correlation(state.activities, action.correlation_id)
    if i == -1:
        return state

    activity = state.activities[i]
    new_activity = activity if activity.id is None else replace(activity, id=None)

    activities = (
        tuple(
            a for a in state.activities
            if not _is_typing(a) and a is not activity
        )
        + (new_activity,)
        + tuple(a for a in state.activities if _is_typing(a))
    )
    if _same_entries(activities, state.activities):
        return state

    return replace(
        state,
        activities=activities,
        selected_activity=_follow_selection(state, activity, new_activity),
    )


def _receive(
    state: HistoryState,
    action: ReceiveMessage | ReceiveSentMessage,
) -> HistoryState:
    incoming = action.activity

    # Double delivery
    if incoming.id is not None and any(a.id == incoming.id for a in state.activities):
        return state

    # Sent echo: update the optimistic entry in place. Postbacks never match.
    if not is_postback(incoming):
        i = _index_of_correlation(state.activities, incoming.correlation_id)
        if i != -1:
            activity = state.activities[i]
            return replace(
                state,
                activities=_replace_at(state.activities, i, incoming),
                selected_activity=_follow_selection(state, activity, incoming),
            )

    return replace(
        state,
        activities=_insert_before_typing(state.activities, incoming),
    )


def _push(
    state: HistoryState,
    action: PushWaitingMessage | TimeoutAlert | PushQrcodeMessage,
) -> HistoryState:
    return replace(
        state,
        activities=_insert_before_typing(state.activities, action.activity),
    )


def _remove_waiting(state: HistoryState, _action: Action) -> HistoryState:
    activities = tuple(
        a for a in state.activities if a.id not in REMOVABLE_PLACEHOLDER_IDS
    )
    if len(activities) == len(state.activities):
        return state

    selected = state.selected_activity
    if selected is not None and not any(a is selected for a in activities):
        selected = None

    return replace(state, activities=activities, selected_activity=selected)


def _show_typing(state: HistoryState, action: ShowTyping) -> HistoryState:
    typing = action.activity
    return replace(
        state,
        activities=(
            tuple(a for a in state.activities if not _is_typing(a))
            + tuple(
                a for a in state.activities
                if _is_typing(a) and a.from_.id != typing.from_.id
            )
            + (typing,)
        ),
    )


def _clear_typing(state: HistoryState, action: ClearTyping) -> HistoryState:
    activities = tuple(a for a in state.activities if a.id != action.id)
    if len(activities) == len(state.activities):
        return state

    selected = state.selected_activity
    if selected is not None and selected.id == action.id:
        selected = None

    return replace(state, activities=activities, selected_activity=selected)


def _select(state: HistoryState, action: SelectActivity) -> HistoryState:
    if action.activity is state.selected_activity:
        return state
    return replace(state, selected_activity=action.activity)


def _take_suggested_action(
    state: HistoryState,
    action: TakeSuggestedAction,
) -> HistoryState:
    for i, activity in enumerate(state.activities):
        if activity is action.activity:
            if activity.suggested_actions is None:
                return state
            new_activity = replace(activity, suggested_actions=None)
            return replace(
                state,
                activities=_replace_at(state.activities, i, new_activity),
                selected_activity=_follow_selection(state, activity, new_activity),
            )
    return state


def _reserve_outbound(state: HistoryState, _action: Action) -> HistoryState:
    return replace(state, outbound_counter=state.outbound_counter + 1)


def _rollback_outbound(state: HistoryState, _action: Action) -> HistoryState:
    return evolve(state, outbound_counter=max(0, state.outbound_counter - 1))


# =============================================================================
# Dispatch table
# =============================================================================

_REDUCERS: dict[ActionType, Callable[[HistoryState, Action], HistoryState]] = {
    ActionType.SEND_MESSAGE: _send_message,  # type: ignore[dict-item]
    ActionType.SEND_MESSAGE_SUCCEED: _resolve_send,  # type: ignore[dict-item]
    ActionType.SEND_MESSAGE_FAIL: _resolve_send,  # type: ignore[dict-item]
    ActionType.SEND_MESSAGE_RETRY: _retry,  # type: ignore[dict-item]
    ActionType.RECEIVE_MESSAGE: _receive,  # type: ignore[dict-item]
    ActionType.RECEIVE_SENT_MESSAGE: _receive,  # type: ignore[dict-item]
    ActionType.PUSH_WAITING_MESSAGE: _push,  # type: ignore[dict-item]
    ActionType.TIMEOUT_ALERT: _push,  # type: ignore[dict-item]
    ActionType.PUSH_QRCODE_MESSAGE: _push,  # type: ignore[dict-item]
    ActionType.REMOVE_WAITING_MESSAGE: _remove_waiting,
    ActionType.SHOW_TYPING: _show_typing,  # type: ignore[dict-item]
    ActionType.CLEAR_TYPING: _clear_typing,  # type: ignore[dict-item]
    ActionType.SELECT_ACTIVITY: _select,  # type: ignore[dict-item]
    ActionType.TAKE_SUGGESTED_ACTION: _take_suggested_action,  # type: ignore[dict-item]
    ActionType.CHANGE_LANGUAGE: _reserve_outbound,
    ActionType.CHANGED_LANGUAGE: _reserve_outbound,
    ActionType.PUSH_MENU_MESSAGE: _reserve_outbound,
    ActionType.SENT_MENU_MESSAGE: _reserve_outbound,
    ActionType.CHANGE_LANGUAGE_FAIL: _rollback_outbound,
    ActionType.SEND_MENU_MESSAGE_FAIL: _rollback_outbound,
}


def reduce_history(state: HistoryState, action: Action) -> HistoryState:
    """Reduce one action into the history slice."""
    fn = _REDUCERS.get(action.action_type)
    if fn is None:
        return state
    return fn(state, action)
