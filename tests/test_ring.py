# tests/test_ring.py
import pytest

from swervesim.engine.ring import SampleRing


def test_ring_starts_full_of_fill_value():
    ring = SampleRing(4, 0.5)
    assert len(ring) == 4
    assert ring.snapshot() == [0.5, 0.5, 0.5, 0.5]
    assert ring.latest() == 0.5


def test_push_overwrites_oldest_and_iterates_oldest_first():
    ring = SampleRing(3, 0)
    for v in range(1, 6):
        ring.push(v)
    assert ring.snapshot() == [3, 4, 5]
    assert ring.latest() == 5
    assert len(ring) == 3


def test_single_slot_ring():
    ring = SampleRing(1, "a")
    ring.push("b")
    assert ring.snapshot() == ["b"]
    assert ring.latest() == "b"


@pytest.mark.parametrize("capacity", [0, -2])
def test_capacity_must_be_positive(capacity):
    with pytest.raises(ValueError):
        SampleRing(capacity, 0.0)
