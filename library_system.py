"""
library_system.py

Catalog transaction layer: the LibrarySystem coordinator.

LibrarySystem owns every container (id indexes, title index, popularity heap,
loan history and the undo log) and is the only code that calls entity state
transitions. Each structural operation exists twice: a public method that
validates, logs and records an undo entry, and an internal `_` method that only
performs the mutation. Undo replays exclusively through the internal methods.

Expected failures are returned as (Outcome, message) tuples and never raised.
"""

from __future__ import annotations

import datetime
import enum
import logging
from typing import Callable, Iterable, List, Optional, Tuple

from entities import Book, LoanRecord, Member
from key_index import KeyIndex
from popularity_index import PopularityIndex
from title_index import TitleIndex
from undo_log import (AddBookEntry, AddMemberEntry, BorrowEntry, RemoveBookEntry, RemoveMemberEntry,
                      ReturnEntry, UndoLog)

# Configuration
DEFAULT_LOAN_DAYS = 14
FINE_PER_DAY = 1.0
PENALTY_THRESHOLD = 20.0

logger = logging.getLogger("LibrarySystem")


class Outcome(enum.Enum):
    """Result codes reported alongside a human-readable message."""

    OK = "ok"
    WAITLISTED = "waitlisted"
    NOT_FOUND = "not_found"
    UNAVAILABLE = "unavailable"
    INVALID_STATE = "invalid_state"
    INVALID_ARGUMENT = "invalid_argument"
    NOTHING_TO_UNDO = "nothing_to_undo"

    @property
    def ok(self) -> bool:
        return self is Outcome.OK


Result = Tuple[Outcome, str]


class LibrarySystem:
    """
    LibrarySystem manages books, members, loans, waitlists and undo in memory.

    Books and members are looked up through salted KeyIndex tables, titles
    through a TitleIndex BST and popularity through a max-heap. Instances are
    single-threaded; a caller sharing one across threads must hold a single
    lock around each public call (including its undo push).
    """

    def __init__(self,
                 loan_days: int = DEFAULT_LOAN_DAYS,
                 fine_per_day: float = FINE_PER_DAY,
                 penalty_threshold: float = PENALTY_THRESHOLD,
                 clock: Optional[Callable[[], datetime.date]] = None,
                 hash_salt: Optional[int] = None):
        """
        Initialize an empty catalog.

        Args:
            loan_days: loan period used to compute due dates.
            fine_per_day: late fee charged per day past the due date.
            penalty_threshold: members owing more than this cannot borrow.
            clock: callable returning today's date; defaults to date.today.
            hash_salt: salt for the id indexes (random when omitted).
        """
        self.loan_days = int(loan_days)
        self.fine_per_day = float(fine_per_day)
        self.penalty_threshold = float(penalty_threshold)
        self.clock = clock or datetime.date.today

        self._books = KeyIndex(salt=hash_salt)
        self._members = KeyIndex(salt=hash_salt)
        self._titles = TitleIndex()
        self._popularity = PopularityIndex()
        self._history: List[LoanRecord] = []
        self.undo_log = UndoLog()

    # ---------------- Internal helpers ----------------
    def _today(self) -> datetime.date:
        return self.clock()

    def _new_loan(self, book: Book, member: Member) -> Optional[LoanRecord]:
        """
        Lend one copy of `book` to `member`, keeping both sides consistent.

        The book side (copy + popularity) is applied first; if the member side
        refuses the loan, the book side is rolled back and None is returned.
        """
        if not book.take_copy():
            return None
        book.record_borrow()
        record = LoanRecord(book=book, member=member, borrow_date=self._today(), loan_days=self.loan_days)
        if not member.attach_loan(record):
            book.unrecord_borrow()
            book.release_copy()
            return None
        self._history.append(record)
        self._popularity.increase_key(book)
        return record

    def _promote_next(self, book: Book) -> Optional[LoanRecord]:
        """
        Offer a freshly freed copy to the head of the book's waitlist.

        Only the head is considered. A head member that is no longer registered
        or cannot borrow is dropped from the queue and the copy stays free.
        """
        nxt = book.waitlist.dequeue()
        if nxt is None:
            return None
        if self._members.get(nxt.member_id) is not nxt:
            logger.warning("Skipped waitlisted member %s for book %s: no longer registered",
                           nxt.member_id, book.book_id)
            return None
        if not nxt.can_borrow(self.penalty_threshold) or nxt.holds(book):
            logger.warning("Skipped waitlisted member %s for book %s: not eligible to borrow",
                           nxt.member_id, book.book_id)
            return None
        record = self._new_loan(book, nxt)
        if record is None:
            book.waitlist.requeue_front(nxt)
            return None
        logger.info("Book %s handed to next waiting member %s", book.book_id, nxt.member_id)
        return record

    # ---------------- Internal (non-logging) mutations ----------------
    def _add_book(self, book: Book, waitlist: Iterable[Member] = ()) -> None:
        self._books.put(book.book_id, book)
        self._titles.add(book)
        self._popularity.insert(book)
        for member in waitlist:
            book.waitlist.enqueue(member)

    def _remove_book(self, book_id: int) -> Optional[Tuple[Book, Tuple[Member, ...]]]:
        book = self._books.remove(book_id)
        if book is None:
            return None
        self._titles.remove(book)
        self._popularity.remove(book)
        drained = tuple(book.waitlist.clear())
        return book, drained

    def _add_member(self, member: Member) -> None:
        self._members.put(member.member_id, member)

    def _remove_member(self, member_id: int) -> Optional[Member]:
        return self._members.remove(member_id)

    def _cancel_loan(self, record: LoanRecord) -> None:
        """Reverse a borrow: no fee, no waitlist promotion."""
        record.cancel()
        record.member.detach_loan(record)
        record.book.release_copy()
        record.book.unrecord_borrow()
        self._popularity.update(record.book)

    def _revert_return(self, record: LoanRecord, fee: float, promotion: Optional[LoanRecord]) -> None:
        """
        Reverse a return, including the promotion and fee it triggered.

        The promoted member goes back to the head of the waitlist, the fee is
        refunded and the original loan is reopened. If no copy is free the
        original member is queued instead.
        """
        book, member = record.book, record.member
        if promotion is not None:
            self._cancel_loan(promotion)
            book.waitlist.requeue_front(promotion.member)
        if fee:
            member.pay_penalty(fee)
        if book.take_copy():
            record.reopen()
            if member.attach_loan(record):
                self._popularity.update(book)
                return
            book.release_copy()
            record.close(self._today())
        if member not in book.waitlist:
            book.waitlist.enqueue(member)
        logger.warning("Could not restore loan of book %s to member %s; member waitlisted instead",
                       book.book_id, member.member_id)

    # ---------------- Core operations ----------------
    def add_book(self, book: Optional[Book]) -> Result:
        """
        Add a book to the catalog.

        Returns (Outcome.OK, message) on success; INVALID_ARGUMENT for a missing
        book, blank title, fewer than one copy or a book that already carries
        loan or waitlist state; INVALID_STATE for a duplicate id.
        """
        if book is None or book.book_id is None:
            return Outcome.INVALID_ARGUMENT, "A book with an id is required."
        if not (book.title or "").strip():
            return Outcome.INVALID_ARGUMENT, "Book title cannot be empty."
        if book.total_copies < 1:
            return Outcome.INVALID_ARGUMENT, "A book needs at least one copy."
        if not 0 <= book.borrowed_copies <= book.total_copies:
            return Outcome.INVALID_ARGUMENT, "Borrowed copies must be between 0 and the total copies."
        if book.popularity_count < 0:
            return Outcome.INVALID_ARGUMENT, "Popularity count cannot be negative."
        if not book.waitlist.is_empty():
            return Outcome.INVALID_ARGUMENT, "A new book cannot arrive with a waitlist."
        if book.book_id in self._books:
            logger.debug("Attempt to add existing book: %s", book.book_id)
            return Outcome.INVALID_STATE, f"Book {book.book_id} already exists."
        self._add_book(book)
        self.undo_log.push(AddBookEntry(book))
        logger.info("Added book %s", book.book_id)
        return Outcome.OK, f"Book '{book.title}' added with ID {book.book_id}."

    def remove_book(self, book_id: int) -> Result:
        """Remove a book from every index; its waitlist is dropped and kept for undo."""
        removed = self._remove_book(book_id)
        if removed is None:
            return Outcome.NOT_FOUND, f"Book not found: {book_id}"
        book, drained = removed
        self.undo_log.push(RemoveBookEntry(book, drained))
        logger.info("Removed book %s (%d waitlisted member(s) dropped)", book_id, len(drained))
        return Outcome.OK, f"Book '{book.title}' removed."

    def add_member(self, member: Optional[Member]) -> Result:
        """Register a new member with no loans and a non-negative balance."""
        if member is None or member.member_id is None:
            return Outcome.INVALID_ARGUMENT, "A member with an id is required."
        if not (member.name or "").strip():
            return Outcome.INVALID_ARGUMENT, "Member name cannot be empty."
        if member.max_loans < 1:
            return Outcome.INVALID_ARGUMENT, "Loan limit must be at least one."
        if member.penalty_balance < 0:
            return Outcome.INVALID_ARGUMENT, "Penalty balance cannot be negative."
        if member.active_loans or member.loan_history:
            return Outcome.INVALID_ARGUMENT, "A new member cannot arrive with loans."
        if member.member_id in self._members:
            logger.debug("Attempt to register existing member: %s", member.member_id)
            return Outcome.INVALID_STATE, f"Member {member.member_id} already exists."
        self._add_member(member)
        self.undo_log.push(AddMemberEntry(member))
        logger.info("Registered member %s", member.member_id)
        return Outcome.OK, f"Member '{member.name}' registered with ID {member.member_id}."

    def remove_member(self, member_id: int) -> Result:
        """Unregister a member. Their loans stay open and waitlist places are skipped later."""
        member = self._remove_member(member_id)
        if member is None:
            return Outcome.NOT_FOUND, f"Member not found: {member_id}"
        self.undo_log.push(RemoveMemberEntry(member))
        logger.info("Removed member %s", member_id)
        return Outcome.OK, f"Member '{member.name}' removed."

    def borrow_book(self, member_id: int, book_id: int) -> Result:
        """
        Borrow a book for a member.

        With a free copy the loan is created immediately (Outcome.OK). Without
        one the member joins the book's waitlist and Outcome.WAITLISTED is
        returned; that is not an error and records no undo entry.
        """
        member = self._members.get(member_id)
        if member is None:
            return Outcome.NOT_FOUND, f"Member not found: {member_id}"
        book = self._books.get(book_id)
        if book is None:
            return Outcome.NOT_FOUND, f"Book not found: {book_id}"
        if len(member.active_loans) >= member.max_loans:
            return Outcome.UNAVAILABLE, f"Member {member_id} has reached the loan limit ({member.max_loans})."
        if member.penalty_balance > self.penalty_threshold:
            return (Outcome.UNAVAILABLE,
                    f"Member {member_id} owes {member.penalty_balance:.2f} (limit {self.penalty_threshold:.2f}).")
        if member.holds(book):
            return Outcome.INVALID_STATE, f"Member {member_id} already has '{book.title}'."

        if not book.can_be_borrowed():
            if member in book.waitlist:
                return Outcome.WAITLISTED, f"Member {member_id} is already waiting for '{book.title}'."
            book.waitlist.enqueue(member)
            logger.info("Member %s waitlisted for book %s (position %d)", member_id, book_id, len(book.waitlist))
            return (Outcome.WAITLISTED,
                    f"No copy of '{book.title}' is free; member {member_id} is #{len(book.waitlist)} on the waitlist.")

        record = self._new_loan(book, member)
        if record is None:
            logger.debug("Borrow of %s by %s rolled back", book_id, member_id)
            return Outcome.UNAVAILABLE, f"Book '{book.title}' could not be lent to member {member_id}."
        self.undo_log.push(BorrowEntry(record))
        logger.info("Borrowed %s to %s until %s", book_id, member_id, record.due_date.isoformat())
        return Outcome.OK, f"Book '{book.title}' issued to {member.name}. Due on {record.due_date.isoformat()}."

    def return_book(self, member_id: int, book_id: int) -> Result:
        """
        Process a return, charge any late fee and hand the copy to the next waiting member.

        The active loan is looked up on the member, so a book that was removed
        from the catalog while on loan can still be returned.
        """
        member = self._members.get(member_id)
        if member is None:
            return Outcome.NOT_FOUND, f"Member not found: {member_id}"
        record = member.find_active_loan(book_id)
        if record is None:
            return Outcome.INVALID_STATE, f"Member {member_id} does not have book {book_id} borrowed."

        book = record.book
        record.close(self._today())
        member.detach_loan(record)
        book.release_copy()
        self._popularity.update(book)

        fee = 0.0
        late_days = record.late_days()
        if late_days > 0:
            fee = record.fine(self.fine_per_day)
            member.add_penalty(fee)
            logger.info("Member %s charged %.2f for %d late day(s)", member_id, fee, late_days)

        promotion = None
        if self._books.get(book.book_id) is book:
            promotion = self._promote_next(book)

        self.undo_log.push(ReturnEntry(record, fee, promotion))
        logger.info("Book %s returned by %s", book_id, member_id)
        message = f"Book '{book.title}' returned by {member.name}."
        if fee:
            message += f" Late by {late_days} day(s); fee {fee:.2f}."
        if promotion is not None:
            message += f" Passed on to {promotion.member.name}."
        return Outcome.OK, message

    def pay_penalty(self, member_id: int, amount: float) -> Result:
        """Apply a payment to a member's penalty balance (never below zero). Not undoable."""
        member = self._members.get(member_id)
        if member is None:
            return Outcome.NOT_FOUND, f"Member not found: {member_id}"
        if amount is None or amount <= 0:
            return Outcome.INVALID_ARGUMENT, "Payment amount must be positive."
        balance = member.pay_penalty(amount)
        logger.info("Member %s paid %.2f; balance now %.2f", member_id, amount, balance)
        return Outcome.OK, f"Payment accepted. Remaining balance: {balance:.2f}."

    def undo(self) -> Result:
        """Reverse the most recent structural change; NOTHING_TO_UNDO on an empty log."""
        return self.undo_log.undo(self)

    # ---------------- Search / ranking ----------------
    def search_by_id(self, book_id: int) -> Optional[Book]:
        """Exact lookup through the id index."""
        return self._books.get(book_id)

    def search_by_title_prefix(self, prefix: Optional[str]) -> List[Book]:
        """Books whose normalized title starts with `prefix`, in title order."""
        return self._titles.search_prefix(prefix)

    def search_by_author(self, query: Optional[str]) -> List[Book]:
        """Case-insensitive substring match over all authors (linear scan)."""
        q = (query or "").strip().lower()
        if not q:
            return []
        return [b for b in self._books.values() if b.author and q in b.author.lower()]

    def search_books(self, query: Optional[str]) -> List[Book]:
        """Substring match over title, author, isbn and category."""
        return [b for b in self._books.values() if b.matches(query)]

    def search_members_by_name(self, query: Optional[str]) -> List[Member]:
        """Case-insensitive substring match over member names."""
        q = (query or "").strip().lower()
        if not q:
            return []
        return [m for m in self._members.values() if q in m.name.lower()]

    def top_k_popular(self, k: int) -> List[Book]:
        """Up to `k` books, most borrowed first. The heap itself is left untouched."""
        if k is None or k <= 0:
            return []
        return self._popularity.top_k(k)

    rank = top_k_popular

    # ---------------- Utilities ----------------
    def get_book(self, book_id: int) -> Optional[Book]:
        return self._books.get(book_id)

    def get_member(self, member_id: int) -> Optional[Member]:
        return self._members.get(member_id)

    def list_all_books(self) -> List[Book]:
        """All catalogued books sorted by id."""
        return sorted(self._books.values(), key=lambda b: b.book_id)

    def list_all_members(self) -> List[Member]:
        """All registered members sorted by id."""
        return sorted(self._members.values(), key=lambda m: m.member_id)

    def get_waitlist(self, book_id: int) -> Optional[List[Member]]:
        """Members waiting for a book, head first; None for an unknown book."""
        book = self._books.get(book_id)
        if book is None:
            return None
        return book.waitlist.members()

    def loan_history(self) -> List[LoanRecord]:
        """Every loan ever created, including returned and cancelled ones."""
        return list(self._history)

    def active_loans(self) -> List[LoanRecord]:
        """Loans that are neither returned nor cancelled."""
        return [lr for lr in self._history if lr.is_active]

    def overdue_loans(self) -> List[LoanRecord]:
        """Active loans past their due date as of today."""
        today = self._today()
        return [lr for lr in self._history if lr.is_overdue(today)]

    def book_status(self, book_id: int) -> Optional[dict]:
        """
        Summarise copies, popularity and waitlist length of a book.

        Returns None when the book is not in the catalog.
        """
        book = self._books.get(book_id)
        if book is None:
            return None
        return {
            "Book ID": book.book_id,
            "Title": book.title,
            "Author": book.author,
            "Total": book.total_copies,
            "Borrowed": book.borrowed_copies,
            "Available": book.available_copies,
            "Popularity": book.popularity_count,
            "Waitlist": len(book.waitlist),
        }

    def next_book_id(self) -> int:
        """Smallest id greater than every catalogued book id."""
        return max(self._books.keys(), default=0) + 1

    def next_member_id(self) -> int:
        """Smallest id greater than every registered member id."""
        return max(self._members.keys(), default=0) + 1
