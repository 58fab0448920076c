"""
Tests for the board model.
"""

import pytest

from ..engine_core.board import (
    CENTER_HOUSE,
    HINT_HOUSES,
    HOUSE_IDS,
    are_adjacent,
    build_board,
    house_coords,
    house_number,
    iter_houses,
    neighbors,
)
from ..engine_core.errors import InvalidHouseError


class TestAdjacency:
    """Tests for orthogonal adjacency."""

    def test_orthogonal_neighbors(self):
        """Houses sharing an edge are adjacent, both ways."""
        assert are_adjacent("C5", "C2")
        assert are_adjacent("C2", "C5")
        assert are_adjacent("C1", "C2")
        assert are_adjacent("C6", "C9")

    def test_diagonal_not_adjacent(self):
        """Diagonals do not count."""
        assert not are_adjacent("C1", "C5")
        assert not are_adjacent("C9", "C5")

    def test_no_wrap_between_rows(self):
        """The end of one row is not adjacent to the start of the next."""
        assert not are_adjacent("C3", "C4")
        assert not are_adjacent("C6", "C7")

    def test_house_not_adjacent_to_itself(self):
        """A House is never its own neighbour."""
        assert not are_adjacent("C5", "C5")

    def test_malformed_ids_are_not_adjacent(self):
        """Adjacency is total: bad ids simply return False."""
        assert not are_adjacent("X2", "C1")
        assert not are_adjacent("C1", "C10")
        assert not are_adjacent(None, "C1")

    def test_neighbors(self):
        """neighbors() lists adjacent Houses in board order."""
        assert neighbors("C5") == ["C2", "C4", "C6", "C8"]
        assert neighbors("C1") == ["C2", "C4"]
        assert neighbors("C9") == ["C6", "C8"]


class TestHouseIds:
    """Tests for House id parsing."""

    def test_all_ids(self):
        """Nine Houses, eight of which yield hints."""
        assert len(HOUSE_IDS) == 9
        assert CENTER_HOUSE not in HINT_HOUSES
        assert len(HINT_HOUSES) == 8

    def test_house_coords(self):
        """Ids map to row-major coordinates."""
        assert house_coords("C1") == (0, 0)
        assert house_coords("C6") == (1, 2)
        assert house_coords("C9") == (2, 2)

    @pytest.mark.parametrize("bad", ["C0", "C10", "c1", "5", "", "Cx"])
    def test_invalid_ids(self, bad):
        """Ids outside C1..C9 are rejected."""
        with pytest.raises(InvalidHouseError):
            house_number(bad)


class TestBuildBoard:
    """Tests for building a fresh board."""

    def test_board_is_hidden_with_fixed_costs(self, content):
        """Every House starts hidden and carries its configured cost."""
        board = build_board(content.cost_table(), content.house_names())

        houses = list(iter_houses(board))
        assert [h.house_id for h in houses] == list(HOUSE_IDS)
        assert all(not h.revealed for h in houses)
        assert board[1][2].house_id == "C6"
        assert board[1][2].base_cost == 3
        assert board[1][1].name == "Grove of the Rebel Branches"

    def test_board_without_names(self):
        """Names are optional."""
        board = build_board({h: 1 for h in HOUSE_IDS})
        assert all(h.name == "" for h in iter_houses(board))
