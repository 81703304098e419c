import sys
import pathlib
sys.path.insert(0, str(pathlib.Path(__file__).resolve().parent.parent))

import builtins

import library_cli
from library_system import LibrarySystem


def feed(monkeypatch, answers):
    it = iter(answers)
    monkeypatch.setattr(builtins, "input", lambda prompt="": next(it))


def test_load_sample_data_is_not_undoable():
    lib = LibrarySystem()
    library_cli.load_sample_data(lib)
    assert len(lib.list_all_books()) == len(library_cli.SAMPLE_BOOKS)
    assert len(lib.list_all_members()) == len(library_cli.SAMPLE_MEMBERS)
    assert len(lib.undo_log) == 0
    assert {b.title for b in lib.search_by_title_prefix("the")} >= {"The Hobbit", "The Odyssey"}


def test_cli_borrow_return_and_undo(monkeypatch, capsys):
    lib = LibrarySystem()
    library_cli.load_sample_data(lib, copies=1)
    feed(monkeypatch, [
        "9", "1001", "9",      # borrow The Hobbit
        "9", "1002", "9",      # second member is waitlisted
        "11", "9",             # show waitlist
        "10", "1001", "9",     # return -> handed to 1002
        "15",                  # undo the return
        "0",
    ])
    library_cli.cli_loop(lib)
    out = capsys.readouterr().out
    assert "issued to Ahmet Yilmaz" in out
    assert "#1 on the waitlist" in out
    assert "1. 1002: Ayse Demir" in out
    assert "Passed on to Ayse Demir" in out
    assert "Undid return" in out
    assert lib.get_member(1001).holds(lib.get_book(9))


def test_cli_reports_failures(monkeypatch, capsys):
    lib = LibrarySystem()
    feed(monkeypatch, ["10", "1", "2", "15", "abc", "0"])
    library_cli.cli_loop(lib)
    out = capsys.readouterr().out
    assert "[NOT_FOUND] Member not found: 1" in out
    assert "[NOTHING_TO_UNDO] Nothing to undo." in out
    assert "Unknown choice" in out


def test_cli_exits_on_eof(monkeypatch):
    def raise_eof(prompt=""):
        raise EOFError

    monkeypatch.setattr(builtins, "input", raise_eof)
    library_cli.cli_loop(LibrarySystem())


def test_build_parser_defaults():
    args = library_cli.build_parser().parse_args([])
    assert args.loan_days == 14
    assert not args.no_sample_data
    args = library_cli.build_parser().parse_args(["--loan-days", "7", "--no-sample-data"])
    assert args.loan_days == 7 and args.no_sample_data
