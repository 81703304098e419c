import sys
import pathlib
sys.path.insert(0, str(pathlib.Path(__file__).resolve().parent.parent))

import pytest

from key_index import KeyIndex, is_prime, next_prime


def test_put_get_remove():
    idx = KeyIndex()
    idx.put(1, "a")
    idx.put(2, "b")
    assert idx.get(1) == "a"
    assert idx.get(3) is None
    assert idx.remove(1) == "a"
    assert idx.remove(1) is None
    assert len(idx) == 1
    assert 2 in idx and 1 not in idx


def test_put_overwrites_without_growing():
    idx = KeyIndex()
    idx.put("k", 1)
    idx.put("k", 2)
    assert idx.get("k") == 2
    assert len(idx) == 1


def test_resize_keeps_every_entry():
    idx = KeyIndex(salt=7)
    assert idx.capacity == 11
    for i in range(500):
        idx.put(i, i * 10)
    assert len(idx) == 500
    assert idx.capacity > 11
    assert is_prime(idx.capacity)
    assert idx.load_factor < 0.7
    assert sorted(idx.keys()) == list(range(500))
    assert all(idx.get(i) == i * 10 for i in range(500))
    assert sorted(idx.values()) == [i * 10 for i in range(500)]


def test_resize_grows_to_next_prime_of_double():
    idx = KeyIndex(salt=1)
    for i in range(8):  # 8 / 11 >= 0.7 triggers the first resize
        idx.put(i, i)
    assert idx.capacity == next_prime(22) == 23


def test_salt_does_not_change_lookups():
    a = KeyIndex(salt=1)
    b = KeyIndex(salt=987654321)
    for i in range(100):
        a.put(f"id-{i}", i)
        b.put(f"id-{i}", i)
    assert all(a.get(f"id-{i}") == b.get(f"id-{i}") == i for i in range(100))
    assert sorted(a.items()) == sorted(b.items())


def test_many_collisions_are_chained():
    idx = KeyIndex(capacity=2, salt=0)
    for i in range(40):
        idx.put(i, str(i))
    for i in range(0, 40, 2):
        assert idx.remove(i) == str(i)
    assert sorted(idx.keys()) == list(range(1, 40, 2))


def test_none_key_is_a_programmer_error():
    idx = KeyIndex()
    with pytest.raises(ValueError):
        idx.put(None, 1)
    with pytest.raises(ValueError):
        idx.get(None)
    assert None not in idx


def test_primes():
    assert [n for n in range(20) if is_prime(n)] == [2, 3, 5, 7, 11, 13, 17, 19]
    assert next_prime(24) == 29
