"""
waitlist.py

FIFO queue of members waiting for a book with no free copies.
"""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING, Deque, List, Optional

if TYPE_CHECKING:
    from entities import Member


class Waitlist:
    """Members are promoted strictly in arrival order; no priority, no expiry."""

    def __init__(self):
        self._queue: Deque["Member"] = deque()

    def enqueue(self, member: "Member") -> None:
        """Append a member at the tail; None raises ValueError."""
        if member is None:
            raise ValueError("Cannot waitlist a missing member")
        self._queue.append(member)

    def dequeue(self) -> Optional["Member"]:
        """Remove and return the head, or None when nobody is waiting."""
        return self._queue.popleft() if self._queue else None

    def peek(self) -> Optional["Member"]:
        """Return the head without removing it."""
        return self._queue[0] if self._queue else None

    def requeue_front(self, member: "Member") -> None:
        """Put a member back at the head (used when a promotion is undone)."""
        self._queue.appendleft(member)

    def members(self) -> List["Member"]:
        """Snapshot of the queue, head first."""
        return list(self._queue)

    def clear(self) -> List["Member"]:
        """Empty the queue and return who was in it, head first."""
        drained = list(self._queue)
        self._queue.clear()
        return drained

    def size(self) -> int:
        """Number of waiting members."""
        return len(self._queue)

    def is_empty(self) -> bool:
        return not self._queue

    def __len__(self) -> int:
        return len(self._queue)

    def __contains__(self, member: "Member") -> bool:
        return any(m is member for m in self._queue)
