import sys
import pathlib
sys.path.insert(0, str(pathlib.Path(__file__).resolve().parent.parent))

from entities import Book
from title_index import TitleIndex, normalize_title


def build(titles):
    idx = TitleIndex()
    books = [Book(book_id=i, title=t) for i, t in enumerate(titles, start=1)]
    for b in books:
        idx.add(b)
    return idx, books


def test_prefix_is_case_insensitive():
    idx, books = build(["The Hobbit", "The Odyssey", "Hamlet"])
    found = idx.search_prefix("the")
    assert set(b.book_id for b in found) == {1, 2}
    assert set(b.book_id for b in idx.search_prefix("  THE ")) == {1, 2}


def test_blank_prefix_matches_nothing():
    idx, _ = build(["The Hobbit", "Hamlet"])
    assert idx.search_prefix("") == []
    assert idx.search_prefix("   ") == []
    assert idx.search_prefix(None) == []


def test_matches_on_both_sides_of_a_matching_node():
    # "m" is the root; "ma" and "mz" end up on either side of "mb"
    idx, _ = build(["M", "Mb", "Ma", "Mz", "A", "Z"])
    assert sorted(b.title for b in idx.search_prefix("m")) == ["M", "Ma", "Mb", "Mz"]
    assert [b.title for b in idx.search_prefix("mz")] == ["Mz"]
    assert idx.search_prefix("q") == []


def test_duplicate_titles_share_a_node():
    idx, books = build(["Hamlet", "hamlet ", "Macbeth"])
    assert len(idx) == 3
    assert idx.titles() == ["hamlet", "macbeth"]
    assert [b.book_id for b in idx.search_prefix("ham")] == [1, 2]
    assert idx.remove(books[0])
    assert [b.book_id for b in idx.search_prefix("ham")] == [2]


def test_remove_node_with_two_children():
    idx, books = build(["M", "F", "T", "A", "H", "P", "W", "R"])
    assert idx.remove(books[2])  # "T" has children "P" and "W"
    assert idx.titles() == ["a", "f", "h", "m", "p", "r", "w"]
    assert idx.search_prefix("t") == []
    assert [b.title for b in idx.search_prefix("r")] == ["R"]
    assert idx.remove(books[0])  # root
    assert idx.titles() == ["a", "f", "h", "p", "r", "w"]
    assert not idx.remove(books[0])


def test_normalize_title():
    assert normalize_title("  The HOBBIT ") == "the hobbit"
    assert normalize_title(None) == ""
