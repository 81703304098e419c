"""
undo_log.py

Reversible-command records and the LIFO log that replays them.

Each entry type corresponds to one mutating LibrarySystem operation and carries
only the state needed to reverse it. Reversal always goes through the
coordinator's internal (non-logging) methods, so undoing never pushes a new
entry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional, Tuple, Union

from entities import Book, LoanRecord, Member

if TYPE_CHECKING:
    from library_system import LibrarySystem, Outcome

logger = logging.getLogger("LibrarySystem.undo")


@dataclass(frozen=True)
class AddBookEntry:
    book: Book

    def revert(self, system: "LibrarySystem") -> None:
        system._remove_book(self.book.book_id)

    def describe(self) -> str:
        return f"Undid add of book '{self.book.title}'"


@dataclass(frozen=True)
class RemoveBookEntry:
    book: Book
    waitlist: Tuple[Member, ...] = ()

    def revert(self, system: "LibrarySystem") -> None:
        system._add_book(self.book, self.waitlist)

    def describe(self) -> str:
        return f"Undid removal of book '{self.book.title}'"


@dataclass(frozen=True)
class AddMemberEntry:
    member: Member

    def revert(self, system: "LibrarySystem") -> None:
        system._remove_member(self.member.member_id)

    def describe(self) -> str:
        return f"Undid registration of member '{self.member.name}'"


@dataclass(frozen=True)
class RemoveMemberEntry:
    member: Member

    def revert(self, system: "LibrarySystem") -> None:
        system._add_member(self.member)

    def describe(self) -> str:
        return f"Undid removal of member '{self.member.name}'"


@dataclass(frozen=True)
class BorrowEntry:
    record: LoanRecord

    def revert(self, system: "LibrarySystem") -> None:
        system._cancel_loan(self.record)

    def describe(self) -> str:
        return f"Undid borrow of '{self.record.book.title}' by {self.record.member.name}"


@dataclass(frozen=True)
class ReturnEntry:
    """A return plus what it triggered: the late fee and an optional waitlist promotion."""

    record: LoanRecord
    fee: float = 0.0
    promotion: Optional[LoanRecord] = field(default=None)

    def revert(self, system: "LibrarySystem") -> None:
        system._revert_return(self.record, self.fee, self.promotion)

    def describe(self) -> str:
        return f"Undid return of '{self.record.book.title}' by {self.record.member.name}"


UndoEntry = Union[AddBookEntry, RemoveBookEntry, AddMemberEntry, RemoveMemberEntry, BorrowEntry, ReturnEntry]


class UndoLog:
    """LIFO stack of UndoEntry values owned by a single LibrarySystem."""

    def __init__(self):
        self._stack: List[UndoEntry] = []

    def push(self, entry: UndoEntry) -> None:
        if entry is None:
            raise ValueError("Cannot log a missing undo entry")
        self._stack.append(entry)

    def pop(self) -> Optional[UndoEntry]:
        return self._stack.pop() if self._stack else None

    def peek(self) -> Optional[UndoEntry]:
        return self._stack[-1] if self._stack else None

    def has_undo(self) -> bool:
        return bool(self._stack)

    def clear(self) -> None:
        self._stack.clear()

    def __len__(self) -> int:
        return len(self._stack)

    def undo(self, system: "LibrarySystem") -> Tuple["Outcome", str]:
        """
        Pop the most recent entry and reverse it against `system`.

        Returns (Outcome.NOTHING_TO_UNDO, message) when the log is empty.
        """
        from library_system import Outcome

        entry = self.pop()
        if entry is None:
            logger.debug("Undo requested on an empty log")
            return Outcome.NOTHING_TO_UNDO, "Nothing to undo."
        entry.revert(system)
        description = entry.describe()
        logger.info(description)
        return Outcome.OK, description
