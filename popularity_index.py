"""
popularity_index.py

Array-backed binary max-heap ranking books by popularity_count.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from entities import Book


class PopularityIndex:
    """
    Max-heap of books ordered by `popularity_count` (ties in arbitrary order).

    Parent of slot i is (i - 1) // 2, children are 2i + 1 and 2i + 2. A side
    map from book_id to heap slot gives O(log n) re-sifting and delete by
    identity, so a book removed from the catalog is removed from the ranking
    too, and a book id can occupy at most one slot.
    """

    def __init__(self):
        self._heap: List[Book] = []
        self._slots: Dict[int, int] = {}

    def __len__(self) -> int:
        return len(self._heap)

    def __contains__(self, book: Book) -> bool:
        return book.book_id in self._slots

    def peek(self) -> Optional[Book]:
        return self._heap[0] if self._heap else None

    def insert(self, book: Book) -> None:
        """Add `book`; if its id is already ranked the existing slot is re-sifted instead."""
        if book.book_id in self._slots:
            self._heap[self._slots[book.book_id]] = book
            self.update(book)
            return
        self._heap.append(book)
        self._slots[book.book_id] = len(self._heap) - 1
        self._sift_up(len(self._heap) - 1)

    def increase_key(self, book: Book) -> None:
        """Restore heap order after `book.popularity_count` went up."""
        slot = self._slots.get(book.book_id)
        if slot is not None:
            self._sift_up(slot)

    def update(self, book: Book) -> None:
        """Restore heap order after `book.popularity_count` changed in either direction."""
        slot = self._slots.get(book.book_id)
        if slot is None:
            return
        self._sift_down(self._sift_up(slot))

    def remove(self, book: Book) -> bool:
        """Delete `book` from the ranking. Returns False when it was not ranked."""
        slot = self._slots.pop(book.book_id, None)
        if slot is None:
            return False
        last = self._heap.pop()
        if slot < len(self._heap):
            self._heap[slot] = last
            self._slots[last.book_id] = slot
            self._sift_down(self._sift_up(slot))
        return True

    def top_k(self, k: int) -> List[Book]:
        """
        Return the k most popular books, highest first.

        Extraction runs on a copy of the backing list, so the heap itself is
        left exactly as it was. O(k log n).
        """
        if k <= 0:
            return []
        work = list(self._heap)
        result: List[Book] = []
        while work and len(result) < k:
            result.append(self._extract_max(work))
        return result

    # ---------------- Internal helpers ----------------
    @staticmethod
    def _extract_max(work: List[Book]) -> Book:
        top = work[0]
        last = work.pop()
        if work:
            work[0] = last
            index = 0
            size = len(work)
            while True:
                largest = index
                for child in (2 * index + 1, 2 * index + 2):
                    if child < size and work[child].popularity_count > work[largest].popularity_count:
                        largest = child
                if largest == index:
                    break
                work[index], work[largest] = work[largest], work[index]
                index = largest
        return top

    def _swap(self, i: int, j: int) -> None:
        heap = self._heap
        heap[i], heap[j] = heap[j], heap[i]
        self._slots[heap[i].book_id] = i
        self._slots[heap[j].book_id] = j

    def _sift_up(self, index: int) -> int:
        heap = self._heap
        while index > 0:
            parent = (index - 1) // 2
            if heap[index].popularity_count <= heap[parent].popularity_count:
                break
            self._swap(index, parent)
            index = parent
        return index

    def _sift_down(self, index: int) -> int:
        heap = self._heap
        size = len(heap)
        while True:
            largest = index
            for child in (2 * index + 1, 2 * index + 2):
                if child < size and heap[child].popularity_count > heap[largest].popularity_count:
                    largest = child
            if largest == index:
                return index
            self._swap(index, largest)
            index = largest
