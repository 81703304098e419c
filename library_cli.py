#!/usr/bin/env python3
"""
library_cli.py

Interactive text menu for the library catalog.

Everything here goes through LibrarySystem's public API; the menu only parses
input and prints results.

Typical usage:
    python library_cli.py --loan-days 21 --report-dir library_outputs
"""

from __future__ import annotations

import argparse
import logging
from typing import List, Optional

from entities import Book, Member
from library_system import DEFAULT_LOAN_DAYS, LibrarySystem, Outcome

logger = logging.getLogger("LibrarySystem")

SAMPLE_BOOKS = [
    ("The Great Gatsby", "F. Scott Fitzgerald", "Fiction", 1925),
    ("1984", "George Orwell", "Dystopian", 1949),
    ("To Kill a Mockingbird", "Harper Lee", "Classic", 1960),
    ("Pride and Prejudice", "Jane Austen", "Romance", 1813),
    ("The Catcher in the Rye", "J.D. Salinger", "Coming-of-Age", 1951),
    ("Lord of the Flies", "William Golding", "Adventure", 1954),
    ("Animal Farm", "George Orwell", "Political", 1945),
    ("Brave New World", "Aldous Huxley", "Science Fiction", 1932),
    ("The Hobbit", "J.R.R. Tolkien", "Fantasy", 1937),
    ("Fahrenheit 451", "Ray Bradbury", "Dystopian", 1953),
    ("Moby Dick", "Herman Melville", "Adventure", 1851),
    ("War and Peace", "Leo Tolstoy", "Classic", 1869),
    ("Crime and Punishment", "Fyodor Dostoevsky", "Philosophy", 1866),
    ("The Odyssey", "Homer", "Classic", -700),
    ("Hamlet", "William Shakespeare", "Classic", 1603),
]

SAMPLE_MEMBERS = ["Ahmet Yilmaz", "Ayse Demir", "Mehmet Kaya", "Fatma Sahin", "Ali Celik"]


def load_sample_data(lib: LibrarySystem, copies: int = 2) -> None:
    """
    Seed `lib` with a fixed set of classic books and a few members.

    The undo log is cleared afterwards so the bootstrap itself cannot be undone.
    """
    for i, (title, author, category, year) in enumerate(SAMPLE_BOOKS, start=1):
        lib.add_book(Book(book_id=i, title=title, author=author, category=category, year=year,
                          page_count=200 + 50 * i, total_copies=copies, isbn=f"ISBN-{100000 + i * 100}"))
    for i, name in enumerate(SAMPLE_MEMBERS, start=1):
        lib.add_member(Member(member_id=1000 + i, name=name))
    lib.undo_log.clear()
    logger.info("Loaded %d sample books and %d sample members", len(SAMPLE_BOOKS), len(SAMPLE_MEMBERS))


# ---------------- Input helpers ----------------
def input_prompt(prompt: str) -> str:
    """
    Wrapper around built-in input() that returns a stripped string and handles interrupts.

    Returns an empty string on EOF/KeyboardInterrupt.
    """
    try:
        return input(prompt).strip()
    except (EOFError, KeyboardInterrupt):
        print()
        return ""


def input_int(prompt: str, default: Optional[int] = None) -> Optional[int]:
    raw = input_prompt(prompt)
    if raw.lstrip("-").isdigit():
        return int(raw)
    return default


def input_float(prompt: str) -> Optional[float]:
    raw = input_prompt(prompt)
    try:
        return float(raw)
    except ValueError:
        return None


def print_books(books: List[Book]) -> None:
    if not books:
        print("No books found.")
        return
    for b in books:
        print(f"{b.book_id}: {b.title} | {b.author} | {b.category} | "
              f"{b.available_copies}/{b.total_copies} available | popularity {b.popularity_count}")


def print_result(result) -> None:
    outcome, msg = result
    prefix = "" if outcome.ok or outcome is Outcome.WAITLISTED else f"[{outcome.name}] "
    print(prefix + msg)


def print_menu():
    """
    Print the interactive CLI menu to stdout.

    This function only prints available options and does not return a value.
    """
    print("\n--- Library Catalog (CLI) ---")
    print("1. List all books")
    print("2. Search books by title prefix")
    print("3. Search books by author")
    print("4. Show book status")
    print("5. Add book")
    print("6. Remove book")
    print("7. Register member")
    print("8. Remove member")
    print("9. Borrow book")
    print("10. Return book")
    print("11. Show waitlist")
    print("12. Show most popular books")
    print("13. Pay penalty")
    print("14. Show member loans and history")
    print("15. Undo last action")
    print("16. Export circulation report")
    print("0. Exit")


def cli_loop(lib: LibrarySystem, report_dir: str = "library_outputs"):
    """
    Interactive command-loop for the library catalog.

    Presents a text menu, accepts user input and invokes `LibrarySystem` methods.
    """
    while True:
        print_menu()
        choice = input_prompt("Choose (0-16): ")
        if choice == "0" or choice == "":
            print("Exiting.")
            break
        elif choice == "1":
            books = lib.list_all_books()
            print(f"\nTotal books: {len(books)}")
            print_books(books)
        elif choice == "2":
            print_books(lib.search_by_title_prefix(input_prompt("Title prefix: ")))
        elif choice == "3":
            print_books(lib.search_by_author(input_prompt("Author: ")))
        elif choice == "4":
            status = lib.book_status(input_int("Book ID: ", -1))
            if status is None:
                print("Book not found.")
            else:
                for key, value in status.items():
                    print(f"{key}: {value}")
        elif choice == "5":
            title = input_prompt("Title: ")
            author = input_prompt("Author (Enter for Unknown): ") or "Unknown"
            category = input_prompt("Category (Enter for General): ") or "General"
            year = input_int("Publish year (Enter for 0): ", 0)
            pages = input_int("Page count (Enter for 0): ", 0)
            copies = max(input_int("Total copies (Enter for 1): ", 1), 1)
            book_id = input_int(f"Book ID (Enter for {lib.next_book_id()}): ", lib.next_book_id())
            print_result(lib.add_book(Book(book_id=book_id, title=title, author=author, category=category,
                                           year=year, page_count=pages, total_copies=copies)))
        elif choice == "6":
            print_result(lib.remove_book(input_int("Book ID: ", -1)))
        elif choice == "7":
            name = input_prompt("Name: ")
            member_id = input_int(f"Member ID (Enter for {lib.next_member_id()}): ", lib.next_member_id())
            print_result(lib.add_member(Member(member_id=member_id, name=name)))
        elif choice == "8":
            print_result(lib.remove_member(input_int("Member ID: ", -1)))
        elif choice == "9":
            mid = input_int("Member ID: ", -1)
            bid = input_int("Book ID: ", -1)
            print_result(lib.borrow_book(mid, bid))
        elif choice == "10":
            mid = input_int("Member ID: ", -1)
            bid = input_int("Book ID: ", -1)
            print_result(lib.return_book(mid, bid))
        elif choice == "11":
            waiting = lib.get_waitlist(input_int("Book ID: ", -1))
            if waiting is None:
                print("Book not found.")
            elif not waiting:
                print("Waitlist empty for this book.")
            else:
                for pos, m in enumerate(waiting, start=1):
                    print(f"{pos}. {m.member_id}: {m.name}")
        elif choice == "12":
            print_books(lib.top_k_popular(input_int("How many? ", 5)))
        elif choice == "13":
            mid = input_int("Member ID: ", -1)
            amount = input_float("Amount: ")
            print_result(lib.pay_penalty(mid, amount))
        elif choice == "14":
            member = lib.get_member(input_int("Member ID: ", -1))
            if member is None:
                print("Member not found.")
                continue
            print(member)
            print("Active loans:")
            for lr in member.active_loans:
                print(f"  {lr}")
            print("History:")
            for lr in member.loan_history:
                print(f"  {lr}")
        elif choice == "15":
            print_result(lib.undo())
        elif choice == "16":
            import catalog_reports

            summary = catalog_reports.analyze(lib, report_dir)
            print("Report summary:", summary)
        else:
            print("Unknown choice. Try again.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="In-memory library catalog")
    parser.add_argument("--loan-days", type=int, default=DEFAULT_LOAN_DAYS, help="Loan period in days")
    parser.add_argument("--no-sample-data", action="store_true", help="Start with an empty catalog")
    parser.add_argument("--report-dir", default="library_outputs", help="Output folder for reports")
    parser.add_argument("--log-level", default="INFO", help="Logging level (DEBUG, INFO, WARNING, ...)")
    return parser


def demo_run(argv: Optional[List[str]] = None):
    """
    Start an interactive session, optionally pre-loaded with sample data.
    """
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, str(args.log_level).upper(), logging.INFO),
                        format="%(levelname)s: %(message)s")
    lib = LibrarySystem(loan_days=args.loan_days)
    if not args.no_sample_data:
        load_sample_data(lib)
    print("Welcome to the library catalog.")
    cli_loop(lib, args.report_dir)
    print("Goodbye.")


if __name__ == "__main__":
    demo_run()
