"""
Board Model - Static 3x3 grid of Houses.

    C1 C2 C3
    C4 C5 C6
    C7 C8 C9

C5 is the centre House: players start there and it never yields a hint.
Ordinary movement is gated on orthogonal adjacency; the long jump ignores it.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterator, Mapping

from .errors import InvalidHouseError

GRID_SIZE = 3

HOUSE_IDS: tuple[str, ...] = tuple(f"C{n}" for n in range(1, GRID_SIZE * GRID_SIZE + 1))
CENTER_HOUSE = "C5"
HINT_HOUSES: tuple[str, ...] = tuple(h for h in HOUSE_IDS if h != CENTER_HOUSE)


@dataclass
class House:
    """A board cell. The cost is fixed for the whole match."""
    house_id: str
    base_cost: int
    revealed: bool = False
    name: str = ""

    @property
    def order(self) -> int:
        return house_number(self.house_id)


Board = list[list[House | None]]


def house_number(house_id: str) -> int:
    """Return 1..9 for a House id, raising InvalidHouseError otherwise."""
    if not isinstance(house_id, str) or len(house_id) < 2 or house_id[0] != "C":
        raise InvalidHouseError(f"Invalid house: {house_id}")
    digits = house_id[1:]
    if not digits.isdigit():
        raise InvalidHouseError(f"Invalid house: {house_id}")
    n = int(digits)
    if n < 1 or n > GRID_SIZE * GRID_SIZE:
        raise InvalidHouseError(f"Invalid house: {house_id}")
    return n


def house_coords(house_id: str) -> tuple[int, int]:
    """Return (row, col) of a House on the grid."""
    return divmod(house_number(house_id) - 1, GRID_SIZE)


def are_adjacent(origin_id: str, target_id: str) -> bool:
    """
    Check orthogonal adjacency.

    Total: malformed ids are simply not adjacent to anything.
    """
    try:
        r1, c1 = house_coords(origin_id)
        r2, c2 = house_coords(target_id)
    except InvalidHouseError:
        return False
    return abs(r1 - r2) + abs(c1 - c2) == 1


def neighbors(house_id: str) -> list[str]:
    """Houses orthogonally adjacent to house_id, in board order."""
    return [h for h in HOUSE_IDS if are_adjacent(house_id, h)]


def build_board(
    cost_table: Mapping[str, int],
    names: Mapping[str, str] | None = None,
) -> Board:
    """Create a fresh board with every House hidden."""
    board: Board = [[None] * GRID_SIZE for _ in range(GRID_SIZE)]
    for house_id in HOUSE_IDS:
        row, col = house_coords(house_id)
        board[row][col] = House(
            house_id=house_id,
            base_cost=cost_table[house_id],
            name=(names or {}).get(house_id, ""),
        )
    return board


def iter_houses(board: Board) -> Iterator[House]:
    for row in board:
        for house in row:
            if house is not None:
                yield house
