import sys
import pathlib
sys.path.insert(0, str(pathlib.Path(__file__).resolve().parent.parent))

import pytest

from entities import Member
from waitlist import Waitlist


def test_fifo_order():
    wl = Waitlist()
    a, b, c = Member(1, "A"), Member(2, "B"), Member(3, "C")
    for m in (a, b, c):
        wl.enqueue(m)
    assert wl.size() == 3
    assert wl.peek() is a
    assert [wl.dequeue(), wl.dequeue(), wl.dequeue()] == [a, b, c]
    assert wl.dequeue() is None
    assert wl.peek() is None
    assert wl.is_empty()


def test_requeue_front_and_clear():
    wl = Waitlist()
    a, b = Member(1, "A"), Member(2, "B")
    wl.enqueue(b)
    wl.requeue_front(a)
    assert wl.members() == [a, b]
    assert a in wl
    assert wl.clear() == [a, b]
    assert len(wl) == 0


def test_enqueue_none_rejected():
    with pytest.raises(ValueError):
        Waitlist().enqueue(None)
