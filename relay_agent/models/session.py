"""
Call session state management for ConversationRelay connections.

This module provides the in-memory state for each live call: the call's
conversation log, the cancellation handle of its in-flight reply, and its
position in the turn state machine. The SessionRegistry maps call SIDs to their
sessions for as long as the call's WebSocket connection is open.
"""

import asyncio
import itertools
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from relay_agent.models.conversation import ConversationLog


class SessionState(str, Enum):
    """Position of a call session in the turn state machine."""

    UNINITIALIZED = "uninitialized"
    READY = "ready"
    GENERATING = "generating"
    CLOSED = "closed"


class CancellationHandle:
    """
    Single-use cancellation flag for one reply generation.

    Each handle carries the generation number it was issued for, so a session
    can tell whether a finishing generation is still the current one. Calling
    cancel() more than once has no further effect.
    """

    __slots__ = ("generation", "_cancelled")

    def __init__(self, generation: int):
        self.generation = generation
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> bool:
        """Request cancellation. Returns True only for the first request."""
        if self._cancelled:
            return False
        self._cancelled = True
        return True

    def __repr__(self) -> str:
        return f"CancellationHandle(generation={self.generation}, cancelled={self._cancelled})"


@dataclass
class CallSession:
    """Live state of one call, owned by the SessionRegistry."""

    call_id: str
    user_id: str
    log: ConversationLog = field(default_factory=ConversationLog)
    state: SessionState = SessionState.UNINITIALIZED
    generation_cancel: Optional[CancellationHandle] = None
    generation_task: Optional[asyncio.Task] = None
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    _generations: "itertools.count[int]" = field(
        default_factory=lambda: itertools.count(1), repr=False
    )

    @property
    def is_closed(self) -> bool:
        return self.state == SessionState.CLOSED

    def new_cancellation_handle(self) -> CancellationHandle:
        """Issue a handle for the next generation and make it current."""
        handle = CancellationHandle(next(self._generations))
        self.generation_cancel = handle
        return handle

    def is_current(self, handle: CancellationHandle) -> bool:
        return self.generation_cancel is handle

    def release(self, handle: CancellationHandle) -> bool:
        """
        Clear the in-flight handle if it is still the current one.

        A superseded generation finishing late must not clear the handle of the
        generation that replaced it.

        Returns:
            True if the handle was current and has been cleared
        """
        if not self.is_current(handle):
            return False
        self.generation_cancel = None
        self.generation_task = None
        if self.state == SessionState.GENERATING:
            self.state = SessionState.READY
        return True


class SessionRegistry:
    """
    Maps call SIDs to their live CallSession.

    Lookups, inserts and removals are guarded by a lock so the registry can be
    shared by every connection handled by the server.
    """

    def __init__(self):
        self._sessions: Dict[str, CallSession] = {}
        self._lock = threading.Lock()

    def add(self, session: CallSession) -> CallSession:
        """
        Register a session unless one already exists for the call.

        Returns:
            The registered session for the call (the existing one if present)
        """
        with self._lock:
            existing = self._sessions.get(session.call_id)
            if existing is not None:
                return existing
            self._sessions[session.call_id] = session
            return session

    def get(self, call_id: Optional[str]) -> Optional[CallSession]:
        if call_id is None:
            return None
        with self._lock:
            return self._sessions.get(call_id)

    def remove(self, call_id: Optional[str]) -> Optional[CallSession]:
        if call_id is None:
            return None
        with self._lock:
            return self._sessions.pop(call_id, None)

    def call_ids(self) -> List[str]:
        with self._lock:
            return list(self._sessions)

    def __contains__(self, call_id: object) -> bool:
        with self._lock:
            return call_id in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
