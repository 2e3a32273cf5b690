from __future__ import annotations

from enum import Enum

"""Upload session state machine for the CSV upload tool.

The session moves through idle -> parsing -> parsed -> uploading and back.
Allowed transitions are listed explicitly in TRANSITIONS; anything else is
rejected by the session with InvalidTransitionError.
"""

__all__ = [
    "SessionState",
    "TRANSITIONS",
    "can_transition",
]


class SessionState(Enum):
    """Lifecycle of one CSV upload interaction.

    - IDLE: nothing selected (or last upload finished / selection discarded)
    - PARSING: file picked, waiting for the read to complete
    - PARSED: parse result available, upload may be attempted
    - UPLOADING: dataset handed to the transport, progress events applied
    """
    IDLE = "idle"
    PARSING = "parsing"
    PARSED = "parsed"
    UPLOADING = "uploading"


TRANSITIONS: dict[SessionState, frozenset[SessionState]] = {
    SessionState.IDLE: frozenset({SessionState.IDLE, SessionState.PARSING}),
    # PARSING -> PARSING: a new selection replaces the in-flight parse
    # PARSING -> IDLE: parse failed (ParseError / aborted transform) or discarded
    SessionState.PARSING: frozenset({SessionState.PARSING, SessionState.PARSED, SessionState.IDLE}),
    SessionState.PARSED: frozenset({SessionState.UPLOADING, SessionState.IDLE}),
    # UPLOADING -> PARSED: transport failed, dataset kept for retry
    SessionState.UPLOADING: frozenset({SessionState.IDLE, SessionState.PARSED}),
}


def can_transition(current: SessionState, target: SessionState) -> bool:
    return target in TRANSITIONS[current]
