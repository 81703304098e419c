"""
title_index.py

Binary search tree over normalized book titles, used for prefix search.

The tree is not rebalanced: add/remove/search are O(log n) on average and
degrade to O(n) for sorted insertion orders. Results stay correct either way.
"""

from __future__ import annotations

from typing import List, Optional

from entities import Book


def normalize_title(title: Optional[str]) -> str:
    """Trim and case-fold a title for indexing and comparison."""
    return (title or "").strip().casefold()


class _Node:
    __slots__ = ("key", "books", "left", "right")

    def __init__(self, key: str, book: Book):
        self.key = key
        self.books: List[Book] = [book]
        self.left: Optional[_Node] = None
        self.right: Optional[_Node] = None


class TitleIndex:
    """BST keyed by normalized title; books sharing a title share one node."""

    def __init__(self):
        self._root: Optional[_Node] = None
        self._count = 0

    def __len__(self) -> int:
        return self._count

    def add(self, book: Book) -> None:
        key = normalize_title(book.title)
        if self._root is None:
            self._root = _Node(key, book)
            self._count += 1
            return
        node = self._root
        while True:
            if key < node.key:
                if node.left is None:
                    node.left = _Node(key, book)
                    break
                node = node.left
            elif key > node.key:
                if node.right is None:
                    node.right = _Node(key, book)
                    break
                node = node.right
            else:
                node.books.append(book)
                break
        self._count += 1

    def remove(self, book: Book) -> bool:
        """
        Remove `book` from its title node, deleting the node once it is empty.

        Returns False if the book was not indexed under its current title.
        """
        key = normalize_title(book.title)
        removed = [False]
        self._root = self._remove_rec(self._root, key, book, removed)
        if removed[0]:
            self._count -= 1
        return removed[0]

    def _remove_rec(self, node: Optional[_Node], key: str, book: Book, removed: list) -> Optional[_Node]:
        if node is None:
            return None
        if key < node.key:
            node.left = self._remove_rec(node.left, key, book, removed)
        elif key > node.key:
            node.right = self._remove_rec(node.right, key, book, removed)
        else:
            for pos, candidate in enumerate(node.books):
                if candidate is book:
                    del node.books[pos]
                    removed[0] = True
                    break
            if not node.books:
                return self._delete_node(node)
        return node

    @staticmethod
    def _delete_node(node: _Node) -> Optional[_Node]:
        if node.left is None:
            return node.right
        if node.right is None:
            return node.left
        # two children: pull up the in-order successor
        parent, successor = node, node.right
        while successor.left is not None:
            parent, successor = successor, successor.left
        node.key, node.books = successor.key, successor.books
        if parent is node:
            parent.right = successor.right
        else:
            parent.left = successor.right
        return node

    def search_prefix(self, prefix: Optional[str]) -> List[Book]:
        """
        Return every book whose normalized title starts with the normalized prefix.

        A blank prefix matches nothing. Once a node matches, both of its
        subtrees may hold further matches, so the search fans out there.
        """
        p = normalize_title(prefix)
        if not p:
            return []
        result: List[Book] = []
        self._search_rec(self._root, p, result)
        return result

    def _search_rec(self, node: Optional[_Node], prefix: str, result: List[Book]) -> None:
        while node is not None:
            if node.key.startswith(prefix):
                result.extend(node.books)
                self._search_rec(node.left, prefix, result)
                node = node.right
            elif prefix < node.key:
                node = node.left
            else:
                node = node.right

    def titles(self) -> List[str]:
        """Normalized keys in sorted (in-order) order."""
        keys: List[str] = []
        stack: List[_Node] = []
        node = self._root
        while stack or node is not None:
            while node is not None:
                stack.append(node)
                node = node.left
            node = stack.pop()
            keys.append(node.key)
            node = node.right
        return keys
