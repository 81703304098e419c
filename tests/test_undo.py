import sys
import pathlib
sys.path.insert(0, str(pathlib.Path(__file__).resolve().parent.parent))

import datetime

import pytest

from entities import Book, Member
from library_system import LibrarySystem, Outcome
from undo_log import AddBookEntry, BorrowEntry, UndoLog


@pytest.fixture
def lib(clock):
    clock.today = datetime.date(2024, 5, 1)
    system = LibrarySystem(clock=clock)
    system.add_book(Book(book_id=1, title="Dune", author="Frank Herbert", total_copies=1))
    system.add_book(Book(book_id=2, title="Emma", author="Jane Austen", total_copies=2))
    system.add_member(Member(member_id=10, name="Ann"))
    system.add_member(Member(member_id=11, name="Ben"))
    system.undo_log.clear()
    return system


def test_empty_log_reports_nothing_to_undo(lib):
    status, msg = lib.undo()
    assert status is Outcome.NOTHING_TO_UNDO
    assert msg == "Nothing to undo."


def test_undo_log_is_lifo():
    log = UndoLog()
    a = AddBookEntry(Book(1, "A"))
    b = AddBookEntry(Book(2, "B"))
    log.push(a)
    log.push(b)
    assert log.peek() is b
    assert [log.pop(), log.pop(), log.pop()] == [b, a, None]
    with pytest.raises(ValueError):
        log.push(None)


def test_undo_add_and_remove_book(lib):
    lib.add_book(Book(book_id=3, title="Ulysses"))
    assert lib.undo()[0] is Outcome.OK
    assert lib.get_book(3) is None
    assert lib.search_by_title_prefix("uly") == []

    book = lib.get_book(2)
    lib.remove_book(2)
    status, msg = lib.undo()
    assert status is Outcome.OK and "Emma" in msg
    assert lib.get_book(2) is book
    assert lib.search_by_title_prefix("emma") == [book]
    assert book in lib.top_k_popular(5)


def test_undo_remove_book_restores_waitlist(lib):
    lib.borrow_book(10, 1)
    lib.borrow_book(11, 1)
    lib.remove_book(1)
    lib.undo()
    assert [m.member_id for m in lib.get_waitlist(1)] == [11]


def test_undo_add_and_remove_member(lib):
    lib.add_member(Member(member_id=12, name="Cid"))
    lib.undo()
    assert lib.get_member(12) is None
    member = lib.get_member(10)
    lib.remove_member(10)
    lib.undo()
    assert lib.get_member(10) is member


def test_undo_borrow_twice_does_not_double_release(lib):
    book = lib.get_book(2)
    lib.borrow_book(10, 2)
    assert book.borrowed_copies == 1
    assert lib.undo()[0] is Outcome.OK
    assert book.borrowed_copies == 0
    assert book.popularity_count == 0
    assert lib.get_member(10).active_loans == []
    assert lib.loan_history()[0].status == "CANCELLED"
    assert lib.undo()[0] is Outcome.NOTHING_TO_UNDO
    assert book.borrowed_copies == 0


def test_undo_borrow_does_not_promote_waitlist(lib):
    lib.borrow_book(10, 1)
    lib.borrow_book(11, 1)
    lib.undo()
    book = lib.get_book(1)
    assert book.available_copies == 1
    assert [m.member_id for m in lib.get_waitlist(1)] == [11]


def test_undo_return_reopens_loan_and_refunds_fee(lib, clock):
    lib.borrow_book(10, 2)
    record = lib.loan_history()[0]
    clock.today = datetime.date(2024, 5, 20)
    lib.return_book(10, 2)
    member = lib.get_member(10)
    assert member.penalty_balance == 5.0

    assert lib.undo()[0] is Outcome.OK
    assert member.penalty_balance == 0.0
    assert member.active_loans == [record]
    assert record.status == "BORROWED"
    assert lib.get_book(2).borrowed_copies == 1
    assert len(lib.loan_history()) == 1
    assert member.loan_history == [record]


def test_undo_return_waitlists_member_when_no_copy_is_free(lib):
    book = lib.get_book(1)
    lib.borrow_book(10, 1)
    record = lib.loan_history()[0]
    lib.return_book(10, 1)
    assert book.take_copy()

    assert lib.undo()[0] is Outcome.OK
    member = lib.get_member(10)
    assert lib.get_waitlist(1) == [member]
    assert record.status == "RETURNED"
    assert not member.holds(book)
    assert book.borrowed_copies == 1
    assert len(lib.loan_history()) == 1


def test_undo_return_reverses_promotion(lib):
    book = lib.get_book(1)
    lib.borrow_book(10, 1)
    lib.borrow_book(11, 1)
    lib.return_book(10, 1)
    assert lib.get_member(11).holds(book)
    assert book.popularity_count == 2

    lib.undo()
    assert lib.get_member(10).holds(book)
    assert not lib.get_member(11).holds(book)
    assert [m.member_id for m in lib.get_waitlist(1)] == [11]
    assert book.borrowed_copies == 1
    assert book.popularity_count == 1

    # after the undo, returning again promotes Ben again
    lib.return_book(10, 1)
    assert lib.get_member(11).holds(book)


def test_full_unwind_restores_start(lib):
    lib.borrow_book(10, 2)
    lib.borrow_book(11, 2)
    lib.return_book(10, 2)
    lib.add_book(Book(book_id=5, title="Walden"))
    lib.remove_member(11)
    while lib.undo()[0] is Outcome.OK:
        pass
    assert len(lib.undo_log) == 0
    assert lib.get_book(2).borrowed_copies == 0
    assert lib.get_book(2).popularity_count == 0
    assert lib.get_book(5) is None
    assert lib.get_member(11) is not None
    assert lib.active_loans() == []


def test_undo_never_logs_itself(lib):
    lib.borrow_book(10, 2)
    lib.return_book(10, 2)
    assert len(lib.undo_log) == 2
    lib.undo()
    assert len(lib.undo_log) == 1
    assert isinstance(lib.undo_log.peek(), BorrowEntry)
