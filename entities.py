"""
entities.py

Domain objects for the library catalog: Book, Member and LoanRecord.

The classes only hold state and expose small state transitions that keep their
own invariants (copies never negative, loans never above the member's limit).
They never reach into the coordinator or into each other's mutation methods;
LibrarySystem is the single caller that sequences them.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import List, Optional

from waitlist import Waitlist

DEFAULT_MAX_LOANS = 5


@dataclass(eq=False)
class Book:
    """
    A catalog entry with a finite number of copies.

    Attributes:
        book_id: unique integer identifier.
        title, author, category, year, page_count, isbn: catalog metadata.
        total_copies: copies owned by the library (>= 1).
        borrowed_copies: copies currently on loan (0 <= borrowed <= total).
        popularity_count: number of successful borrows so far.
        waitlist: members waiting for a copy, in arrival order.
    """

    book_id: int
    title: str
    author: str = "Unknown"
    category: str = "General"
    year: int = 0
    page_count: int = 0
    total_copies: int = 1
    isbn: str = ""
    borrowed_copies: int = 0
    popularity_count: int = 0
    waitlist: Waitlist = field(default_factory=Waitlist, repr=False)

    @property
    def available_copies(self) -> int:
        return self.total_copies - self.borrowed_copies

    def can_be_borrowed(self) -> bool:
        return self.available_copies > 0

    def take_copy(self) -> bool:
        """Mark one copy as lent out. Returns False when none is free."""
        if self.borrowed_copies >= self.total_copies:
            return False
        self.borrowed_copies += 1
        return True

    def release_copy(self) -> None:
        if self.borrowed_copies <= 0:
            raise ValueError(f"Book {self.book_id} has no borrowed copy to release")
        self.borrowed_copies -= 1

    def record_borrow(self) -> None:
        self.popularity_count += 1

    def unrecord_borrow(self) -> None:
        if self.popularity_count <= 0:
            raise ValueError(f"Book {self.book_id} popularity is already zero")
        self.popularity_count -= 1

    def matches(self, query: str) -> bool:
        """Case-insensitive substring match over title, author, isbn and category."""
        q = (query or "").strip().lower()
        if not q:
            return False
        return any(q in str(v).lower() for v in (self.title, self.author, self.isbn, self.category))

    def __str__(self) -> str:
        return (f"[{self.book_id}] {self.title} by {self.author} "
                f"({self.available_copies}/{self.total_copies} available)")


@dataclass(eq=False)
class Member:
    """A registered borrower holding up to `max_loans` active loans."""

    member_id: int
    name: str
    max_loans: int = DEFAULT_MAX_LOANS
    penalty_balance: float = 0.0
    active_loans: List["LoanRecord"] = field(default_factory=list, repr=False)
    loan_history: List["LoanRecord"] = field(default_factory=list, repr=False)

    def can_borrow(self, penalty_threshold: float) -> bool:
        """True while under the loan limit and not above the penalty threshold."""
        return len(self.active_loans) < self.max_loans and self.penalty_balance <= penalty_threshold

    def holds(self, book: Book) -> bool:
        return any(lr.book is book for lr in self.active_loans)

    def find_active_loan(self, book_id: int) -> Optional["LoanRecord"]:
        for lr in self.active_loans:
            if lr.book.book_id == book_id:
                return lr
        return None

    def attach_loan(self, record: "LoanRecord") -> bool:
        """
        Add `record` to the active set (and to history the first time it is seen).

        Returns False, leaving the member untouched, when the loan limit is
        reached or a copy of the same book is already held.
        """
        if len(self.active_loans) >= self.max_loans or self.holds(record.book):
            return False
        self.active_loans.append(record)
        if not any(lr is record for lr in self.loan_history):
            self.loan_history.append(record)
        return True

    def detach_loan(self, record: "LoanRecord") -> bool:
        for pos, lr in enumerate(self.active_loans):
            if lr is record:
                del self.active_loans[pos]
                return True
        return False

    def add_penalty(self, amount: float) -> None:
        if amount < 0:
            raise ValueError("Penalty amount cannot be negative")
        self.penalty_balance += amount

    def pay_penalty(self, amount: float) -> float:
        """Reduce the balance by `amount`, never below zero. Returns the new balance."""
        if amount > 0:
            self.penalty_balance = max(0.0, self.penalty_balance - amount)
        return self.penalty_balance

    def __str__(self) -> str:
        return (f"[{self.member_id}] {self.name} | active loans: {len(self.active_loans)}/{self.max_loans}"
                f" | penalty: {self.penalty_balance:.2f}")


@dataclass(eq=False)
class LoanRecord:
    """One borrow transaction; active until returned (or cancelled by undo)."""

    book: Book
    member: Member
    borrow_date: datetime.date
    loan_days: int
    return_date: Optional[datetime.date] = None
    returned: bool = False
    cancelled: bool = False

    @property
    def due_date(self) -> datetime.date:
        return self.borrow_date + datetime.timedelta(days=self.loan_days)

    @property
    def is_active(self) -> bool:
        return not self.returned

    def close(self, on: datetime.date) -> None:
        if self.returned:
            raise ValueError("Loan record is already closed")
        self.returned = True
        self.return_date = on

    def reopen(self) -> None:
        """Undo a close: the loan becomes active again."""
        self.returned = False
        self.return_date = None
        self.cancelled = False

    def cancel(self) -> None:
        """Close the record as if the borrow never happened (no fee, no promotion)."""
        self.returned = True
        self.return_date = self.borrow_date
        self.cancelled = True

    def late_days(self, on: Optional[datetime.date] = None) -> int:
        """Days past the due date at `on` (or at the return date when closed)."""
        end = self.return_date if self.returned else on
        if end is None:
            return 0
        return max(0, (end - self.due_date).days)

    def is_overdue(self, today: datetime.date) -> bool:
        return not self.returned and today > self.due_date

    def fine(self, per_day: float, on: Optional[datetime.date] = None) -> float:
        return self.late_days(on) * per_day

    @property
    def status(self) -> str:
        """Human readable status: BORROWED, RETURNED or CANCELLED."""
        if self.cancelled:
            return "CANCELLED"
        return "RETURNED" if self.returned else "BORROWED"

    def __str__(self) -> str:
        returned = self.return_date.isoformat() if self.return_date else "-"
        return (f"{self.book.title} -> {self.member.name} | borrowed {self.borrow_date.isoformat()}"
                f" | due {self.due_date.isoformat()} | returned {returned} | {self.status}")
