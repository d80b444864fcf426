"""Particionamento puro: reservadas primeiro, espera densa e em ordem de chegada."""
import pytest

from app.models.selection import Selection, SelectionStatus
from app.services.allocation import (
    RESERVED,
    Reserved,
    Waitlisted,
    allocate,
    apply_placement,
    placement_of,
)


def _positions(placements):
    return [p.position for _, p in placements if isinstance(p, Waitlisted)]


class TestAllocate:
    def test_fills_capacity_then_waitlists_in_order(self):
        placements = allocate(["s1", "s2", "s3"], capacity=2)

        assert placements == [("s1", RESERVED), ("s2", RESERVED), ("s3", Waitlisted(1))]

    def test_under_capacity_reserves_everyone(self):
        placements = allocate(["a", "b"], capacity=5)

        assert all(isinstance(p, Reserved) for _, p in placements)

    def test_zero_capacity_sends_everyone_to_waitlist(self):
        placements = allocate(["a", "b", "c"], capacity=0)

        assert _positions(placements) == [1, 2, 3]

    def test_empty_session(self):
        assert allocate([], capacity=3) == []

    def test_waitlist_positions_are_dense(self):
        placements = allocate(list(range(10)), capacity=4)

        assert _positions(placements) == [1, 2, 3, 4, 5, 6]

    def test_no_later_entry_reserved_while_earlier_waits(self):
        placements = allocate(list(range(7)), capacity=3)

        first_waiting = next(i for i, (_, p) in enumerate(placements) if isinstance(p, Waitlisted))
        assert all(isinstance(p, Waitlisted) for _, p in placements[first_waiting:])

    def test_same_input_gives_same_output(self):
        entries = ["x", "y", "z", "w"]

        assert allocate(entries, 2) == allocate(entries, 2)


class TestPlacement:
    def test_waitlisted_requires_positive_position(self):
        with pytest.raises(ValueError):
            Waitlisted(0)

    def test_round_trip_through_selection_columns(self):
        selection = Selection(status=SelectionStatus.RESERVED, waitlist_position=None)

        assert apply_placement(selection, Waitlisted(3)) is True
        assert selection.status == SelectionStatus.WAITLIST
        assert selection.waitlist_position == 3
        assert placement_of(selection) == Waitlisted(3)

    def test_apply_same_placement_reports_no_change(self):
        selection = Selection(status=SelectionStatus.WAITLIST, waitlist_position=2)

        assert apply_placement(selection, Waitlisted(2)) is False

    def test_reserved_clears_position(self):
        selection = Selection(status=SelectionStatus.WAITLIST, waitlist_position=1)

        apply_placement(selection, RESERVED)

        assert selection.status == SelectionStatus.RESERVED
        assert selection.waitlist_position is None

    def test_rejects_unknown_placement(self):
        with pytest.raises(TypeError):
            apply_placement(Selection(status=SelectionStatus.RESERVED), "RESERVED")
