"""
Tests for overlap detection. Intervals are half-open: touching is not overlapping.
"""

from datetime import datetime

import pytest

from focusday.time_blocks.conflicts import check_overlap, find_conflicts, find_overlapping, overlaps
from focusday.time_blocks.models import TimeBlock


def at(hour: int, minute: int = 0) -> datetime:
    return datetime(2026, 3, 2, hour, minute)


def make_block(block_id: str, start: datetime, end: datetime) -> TimeBlock:
    return TimeBlock(id=block_id, user_id="user-1", title=block_id, start_time=start, end_time=end)


@pytest.fixture
def a_and_b(blocks):
    a, _ = blocks.create_block("A", at(9), at(10))
    b, _ = blocks.create_block("B", at(9, 30), at(10, 30))
    return a, b


class TestCheckOverlap:
    def test_excluding_b_returns_a(self, blocks, a_and_b):
        a, b = a_and_b
        found = check_overlap(blocks, at(9), at(10), exclude_id=b.id)
        assert [x.id for x in found] == [a.id]

    def test_inner_range_hits_both(self, blocks, a_and_b):
        a, b = a_and_b
        found = check_overlap(blocks, at(9, 45), at(9, 50))
        assert {x.id for x in found} == {a.id, b.id}

    def test_touching_endpoints_do_not_overlap(self, blocks, a_and_b):
        assert check_overlap(blocks, at(10, 30), at(11)) == []
        assert check_overlap(blocks, at(8), at(9)) == []

    def test_without_owner_is_empty(self, anonymous_blocks, a_and_b):
        assert check_overlap(anonymous_blocks, at(9), at(10)) == []

    def test_overlap_never_blocks_saving(self, blocks, a_and_b):
        c, _ = blocks.create_block("C", at(9, 15), at(9, 45))
        assert c is not None


class TestPureHelpers:
    def test_overlaps(self):
        assert overlaps(at(9), at(10), at(9, 59), at(11))
        assert not overlaps(at(9), at(10), at(10), at(11))

    def test_find_overlapping(self):
        a = make_block("a", at(9), at(10))
        b = make_block("b", at(11), at(12))
        assert find_overlapping([a, b], at(9, 30), at(11, 30)) == [a, b]
        assert find_overlapping([a, b], at(9, 30), at(11, 30), exclude_id="a") == [b]

    def test_find_conflicts_pairs(self):
        a = make_block("a", at(9), at(10))
        b = make_block("b", at(9, 30), at(10, 30))
        c = make_block("c", at(10, 30), at(11))
        d = make_block("d", at(8), at(12))

        conflicts = find_conflicts([a, b, c, d])
        pairs = {(x.block_a_id, x.block_b_id) for x in conflicts}

        assert pairs == {("d", "a"), ("d", "b"), ("d", "c"), ("a", "b")}
        ab = next(x for x in conflicts if (x.block_a_id, x.block_b_id) == ("a", "b"))
        assert (ab.overlap_start, ab.overlap_end) == (at(9, 30), at(10))
        assert ab.overlap_minutes == 30

    def test_no_conflicts_when_back_to_back(self):
        blocks = [make_block(str(h), at(h), at(h + 1)) for h in range(8, 12)]
        assert find_conflicts(blocks) == []
