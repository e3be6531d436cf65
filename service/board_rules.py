"""Core 2048 board mechanics shared by the game session, the advisor and tests."""

from enum import IntEnum
from typing import Dict, List, NamedTuple, Sequence, Tuple, Union

import numpy as np

from board_grid import Grid
from tiles import Position, Tile

DIRECTION_NAMES: Sequence[str] = ("UP", "RIGHT", "DOWN", "LEFT")

_VECTORS = {
    0: (0, -1),  # Up
    1: (1, 0),  # Right
    2: (0, 1),  # Down
    3: (-1, 0),  # Left
}
_SYMBOLS = "urdl"


class Direction(IntEnum):
    UP = 0
    RIGHT = 1
    DOWN = 2
    LEFT = 3

    @property
    def vector(self) -> Tuple[int, int]:
        return _VECTORS[self.value]

    @property
    def symbol(self) -> str:
        return _SYMBOLS[self.value]

    @classmethod
    def parse(cls, direction: Union[int, str, "Direction"]) -> "Direction":
        """Accept a direction member, its index, its name or its oracle symbol."""
        if isinstance(direction, str):
            text = direction.strip()
            if text.upper() in DIRECTION_NAMES:
                return cls[text.upper()]
            if len(text) == 1 and text in _SYMBOLS:
                return cls(_SYMBOLS.index(text))
            raise ValueError(f"Unknown direction: {direction}")
        return cls(direction)


class MoveOutcome(NamedTuple):
    moved: bool
    score: int
    # merged tile ident -> the two tiles it replaced, valid for this move only
    merged_from: Dict[int, Tuple[Tile, Tile]]
    merged: List[Tile]
    previous_positions: Dict[int, Position]


def build_traversals(size: int, vector: Tuple[int, int]) -> Tuple[List[int], List[int]]:
    xs = list(range(size))
    ys = list(range(size))

    # Always traverse from the farthest cell in the chosen direction
    if vector[0] == 1:
        xs.reverse()
    if vector[1] == 1:
        ys.reverse()

    return xs, ys


def find_farthest_position(
    grid: Grid, cell: Position, vector: Tuple[int, int]
) -> Tuple[Position, Position]:
    """Return the last free cell along ``vector`` and the obstacle after it."""
    while True:
        previous = cell
        cell = previous.step(vector)
        if not grid.cell_available(cell):
            break
    return previous, cell


def resolve_move(grid: Grid, direction: Union[int, str, Direction]) -> MoveOutcome:
    """Slide and merge every tile on ``grid`` in place."""
    vector = Direction.parse(direction).vector
    xs, ys = build_traversals(grid.size, vector)

    previous_positions = {tile.ident: tile.position for tile in grid.tiles()}
    merged_from: Dict[int, Tuple[Tile, Tile]] = {}
    merged_tiles: List[Tile] = []
    score = 0
    moved = False

    for x in xs:
        for y in ys:
            cell = Position(x, y)
            tile = grid.cell_content(cell)
            if tile is None:
                continue

            farthest, next_cell = find_farthest_position(grid, cell, vector)
            other = grid.cell_content(next_cell) if grid.within_bounds(next_cell) else None

            if other is not None and other.value == tile.value and other.ident not in merged_from:
                merged = Tile(next_cell, tile.value * 2)
                merged_from[merged.ident] = (tile, other)
                merged_tiles.append(merged)

                grid.remove_tile(other)
                grid.remove_tile(tile)
                grid.insert_tile(merged)

                # Converge the two tiles' positions
                tile.position = next_cell
                score += merged.value
            else:
                grid.move_tile(tile, farthest)

            if tile.position != cell:
                moved = True

    return MoveOutcome(moved, score, merged_from, merged_tiles, previous_positions)


def tile_matches_available(grid: Grid) -> bool:
    for x, y, tile in grid.each_cell():
        if tile is None:
            continue
        for direction in Direction:
            cell = Position(x, y).step(direction.vector)
            if not grid.within_bounds(cell):
                continue
            other = grid.cell_content(cell)
            if other is not None and other.value == tile.value:
                return True
    return False


def moves_available(grid: Grid) -> bool:
    return grid.cells_available() or tile_matches_available(grid)


def simulate_move(grid: Sequence[Sequence[int]], direction: Union[int, str]) -> Tuple[np.ndarray, bool]:
    board = Grid.from_values(grid)
    outcome = resolve_move(board, direction)
    return board.values(), outcome.moved


def valid_moves(grid: Sequence[Sequence[int]]) -> List[str]:
    allowed: List[str] = []
    for direction in DIRECTION_NAMES:
        _, changed = simulate_move(grid, direction)
        if changed:
            allowed.append(direction)
    return allowed


__all__ = [
    "DIRECTION_NAMES",
    "Direction",
    "MoveOutcome",
    "build_traversals",
    "find_farthest_position",
    "moves_available",
    "resolve_move",
    "simulate_move",
    "tile_matches_available",
    "valid_moves",
]


if __name__ == "__main__":
    sample = [
        [2, 0, 0, 2],
        [4, 4, 0, 0],
        [0, 0, 8, 8],
        [16, 0, 16, 0],
    ]
    print("Valid moves:", valid_moves(sample))
    for name in DIRECTION_NAMES:
        board, _ = simulate_move(sample, name)
        print(name, board.tolist())
