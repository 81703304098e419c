import sys
import pathlib
sys.path.insert(0, str(pathlib.Path(__file__).resolve().parent.parent))

from entities import Book
from popularity_index import PopularityIndex


def make_books(counts):
    books = []
    for i, count in enumerate(counts, start=1):
        b = Book(book_id=i, title=f"Book {i}")
        b.popularity_count = count
        books.append(b)
    return books


def test_top_k_orders_by_popularity():
    heap = PopularityIndex()
    books = make_books([5, 1, 9, 3])
    for b in books:
        heap.insert(b)
    top = heap.top_k(2)
    assert [b.popularity_count for b in top] == [9, 5]


def test_top_k_leaves_heap_unchanged():
    heap = PopularityIndex()
    for b in make_books([5, 1, 9, 3, 7]):
        heap.insert(b)
    before = list(heap._heap)
    first = heap.top_k(3)
    assert heap._heap == before
    assert heap.top_k(3) == first
    assert len(heap.top_k(10)) == 5
    assert heap.top_k(0) == []


def test_increase_key_moves_book_up():
    heap = PopularityIndex()
    books = make_books([1, 2, 3])
    for b in books:
        heap.insert(b)
    books[0].popularity_count = 10
    heap.increase_key(books[0])
    assert heap.peek() is books[0]


def test_update_handles_decrease():
    heap = PopularityIndex()
    books = make_books([10, 2, 3])
    for b in books:
        heap.insert(b)
    books[0].popularity_count = 0
    heap.update(books[0])
    assert [b.popularity_count for b in heap.top_k(3)] == [3, 2, 0]


def test_remove_drops_book_from_ranking():
    heap = PopularityIndex()
    books = make_books([5, 1, 9, 3])
    for b in books:
        heap.insert(b)
    assert heap.remove(books[2])
    assert not heap.remove(books[2])
    assert books[2] not in heap
    assert [b.popularity_count for b in heap.top_k(4)] == [5, 3, 1]


def test_reinsert_same_id_is_not_double_counted():
    heap = PopularityIndex()
    books = make_books([4, 2])
    for b in books:
        heap.insert(b)
    heap.insert(books[0])
    assert len(heap) == 2
    assert heap.top_k(5).count(books[0]) == 1
