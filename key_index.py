"""
key_index.py

Chained hash table used as the id lookup backbone for books and members.
"""

from __future__ import annotations

import random
from typing import Any, Hashable, Iterator, List, Optional, Tuple

INITIAL_CAPACITY = 11
LOAD_FACTOR_THRESHOLD = 0.7


def is_prime(num: int) -> bool:
    """Return True when `num` is prime (6k +/- 1 trial division)."""
    if num <= 1:
        return False
    if num <= 3:
        return True
    if num % 2 == 0 or num % 3 == 0:
        return False
    i = 5
    while i * i <= num:
        if num % i == 0 or num % (i + 2) == 0:
            return False
        i += 6
    return True


def next_prime(num: int) -> int:
    """Return the smallest prime >= num."""
    while not is_prime(num):
        num += 1
    return num


class KeyIndex:
    """
    Hash table with separate chaining and prime-sized bucket arrays.

    Each bucket is a list of [key, value] pairs. When the load factor reaches
    LOAD_FACTOR_THRESHOLD the table grows to the next prime >= 2x capacity.
    A per-instance salt is mixed into the bucket hash so two indexes holding
    the same keys do not share a bucket layout; lookups are unaffected.
    """

    def __init__(self, capacity: int = INITIAL_CAPACITY, salt: Optional[int] = None):
        """
        Args:
            capacity: initial number of buckets (rounded up to a prime).
            salt: hash salt; a random one is drawn when omitted.
        """
        self._capacity = next_prime(max(int(capacity), 2))
        self._buckets: List[List[list]] = [[] for _ in range(self._capacity)]
        self._size = 0
        self._salt = random.getrandbits(32) if salt is None else int(salt)

    # ---------------- Internal helpers ----------------
    @staticmethod
    def _validate_key(key: Hashable) -> None:
        """Reject None keys with ValueError."""
        if key is None:
            raise ValueError("Key cannot be None")

    def _index_for(self, key: Hashable, capacity: int) -> int:
        return hash((self._salt, key)) % capacity

    def _find(self, key: Hashable) -> Tuple[List[list], int]:
        """Return the bucket for `key` and the slot holding it (-1 when missing)."""
        bucket = self._buckets[self._index_for(key, self._capacity)]
        for pos, pair in enumerate(bucket):
            if pair[0] == key:
                return bucket, pos
        return bucket, -1

    def _resize(self) -> None:
        """
        Rehash every entry into a bucket array of the next prime >= 2x capacity.

        The new array is filled completely before it replaces the old one, so
        no caller ever sees a half-migrated table.
        """
        new_capacity = next_prime(2 * self._capacity)
        new_buckets: List[List[list]] = [[] for _ in range(new_capacity)]
        for bucket in self._buckets:
            for key, value in bucket:
                new_buckets[self._index_for(key, new_capacity)].append([key, value])
        self._buckets = new_buckets
        self._capacity = new_capacity

    # ---------------- Public API ----------------
    @property
    def capacity(self) -> int:
        """Current number of buckets (always prime)."""
        return self._capacity

    @property
    def load_factor(self) -> float:
        """Stored entries divided by bucket count."""
        return self._size / self._capacity

    def put(self, key: Hashable, value: Any) -> None:
        """Insert or overwrite the value stored under `key`."""
        self._validate_key(key)
        bucket, pos = self._find(key)
        if pos >= 0:
            bucket[pos][1] = value
            return
        bucket.append([key, value])
        self._size += 1
        if self._size / self._capacity >= LOAD_FACTOR_THRESHOLD:
            self._resize()

    def get(self, key: Hashable) -> Optional[Any]:
        """Return the value for `key` or None if absent."""
        self._validate_key(key)
        bucket, pos = self._find(key)
        return bucket[pos][1] if pos >= 0 else None

    def remove(self, key: Hashable) -> Optional[Any]:
        """Remove `key` and return its value, or None if it was not present."""
        self._validate_key(key)
        bucket, pos = self._find(key)
        if pos < 0:
            return None
        _, value = bucket.pop(pos)
        self._size -= 1
        return value

    def values(self) -> List[Any]:
        """All stored values in bucket order."""
        return [value for bucket in self._buckets for _, value in bucket]

    def keys(self) -> List[Hashable]:
        """All stored keys in bucket order."""
        return [key for bucket in self._buckets for key, _ in bucket]

    def items(self) -> List[Tuple[Hashable, Any]]:
        """(key, value) pairs in bucket order."""
        return [(key, value) for bucket in self._buckets for key, value in bucket]

    def __contains__(self, key: Hashable) -> bool:
        if key is None:
            return False
        return self._find(key)[1] >= 0

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self.keys())
