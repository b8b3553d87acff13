"""
auditkit.lifecycle
==================

State‑transition guard for an :class:`auditkit.session.AuditSession`.

A tiny finite‑state‑machine describes which session phases are legal
successors of each state.  ``NO_CLIENT`` is terminal for one start‑up run;
the caller redirects to client setup and may start the session again.
"""

from __future__ import annotations

from enum import Enum, auto


class SessionState(Enum):
    """Progress of a session through start‑up."""
    UNINITIALIZED = auto()
    LOADING = auto()
    NO_CLIENT = auto()
    READY = auto()

    def __str__(self) -> str:
        return self.name


# ---------------------------------------------------------------------
# Allowed transitions: source state → set[valid target states]
# ---------------------------------------------------------------------
RULES = {
    SessionState.UNINITIALIZED: {SessionState.LOADING},
    SessionState.LOADING:       {SessionState.NO_CLIENT, SessionState.READY},
    SessionState.NO_CLIENT:     {SessionState.LOADING},
    SessionState.READY:         {SessionState.LOADING},
}


def advance_state(current: SessionState, new_state: SessionState) -> SessionState:
    """
    Return *new_state* if moving there from *current* is legal, otherwise
    raise :class:`ValueError`.

    Examples
    --------
    >>> advance_state(SessionState.UNINITIALIZED, SessionState.LOADING)
    <SessionState.LOADING: 2>
    >>> advance_state(SessionState.UNINITIALIZED, SessionState.READY)
    Traceback (most recent call last):
        ...
    ValueError: illegal transition UNINITIALIZED → READY
    """
    if new_state not in RULES.get(current, set()):
        raise ValueError(f"illegal transition {current.name} → {new_state.name}")
    return new_state
