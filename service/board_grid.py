"""NxN board of optional tiles, addressed as ``cells[x][y]``."""

from typing import Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from tiles import Position, Tile


class Grid:
    def __init__(self, size: int, previous_state: Optional[Sequence] = None) -> None:
        self.size = size
        self.cells = self.from_state(previous_state) if previous_state is not None else self.empty()

    def empty(self) -> np.ndarray:
        return np.full((self.size, self.size), None, dtype=object)

    def from_state(self, state: Sequence) -> np.ndarray:
        cells = self.empty()
        for x in range(self.size):
            for y in range(self.size):
                saved = state[x][y]
                if saved:
                    position = saved["position"]
                    cells[x][y] = Tile(Position(position["x"], position["y"]), saved["value"])
        return cells

    @classmethod
    def from_values(cls, rows: Sequence[Sequence[int]]) -> "Grid":
        """Build a grid from a row-major value matrix where 0 marks an empty cell."""
        board = np.asarray(rows, dtype=np.int64)
        if board.ndim != 2 or board.shape[0] != board.shape[1]:
            raise ValueError(f"Expected a square grid, received shape {board.shape}")
        grid = cls(board.shape[0])
        for y, row in enumerate(board):
            for x, value in enumerate(row):
                if value:
                    grid.insert_tile(Tile(Position(x, y), int(value)))
        return grid

    def each_cell(self) -> Iterator[Tuple[int, int, Optional[Tile]]]:
        for x in range(self.size):
            for y in range(self.size):
                yield x, y, self.cells[x][y]

    def available_cells(self) -> List[Position]:
        return [Position(x, y) for x, y, tile in self.each_cell() if tile is None]

    def cells_available(self) -> bool:
        return any(tile is None for _, _, tile in self.each_cell())

    def random_available_cell(self, rng: np.random.Generator) -> Position:
        cells = self.available_cells()
        if not cells:
            raise ValueError("No available cell on a full grid")
        return cells[int(rng.integers(len(cells)))]

    def cell_available(self, cell: Tuple[int, int]) -> bool:
        return self.within_bounds(cell) and not self.cell_occupied(cell)

    def cell_occupied(self, cell: Tuple[int, int]) -> bool:
        return self.cell_content(cell) is not None

    def cell_content(self, cell: Tuple[int, int]) -> Optional[Tile]:
        if not self.within_bounds(cell):
            raise IndexError(f"Cell {tuple(cell)} is outside a {self.size}x{self.size} grid")
        return self.cells[cell[0]][cell[1]]

    def insert_tile(self, tile: Tile) -> None:
        if self.cell_occupied(tile.position):
            raise ValueError(f"Cell {tuple(tile.position)} is already occupied")
        self.cells[tile.x][tile.y] = tile

    def remove_tile(self, tile: Tile) -> None:
        self.cells[tile.x][tile.y] = None

    def move_tile(self, tile: Tile, cell: Tuple[int, int]) -> None:
        cell = Position(*cell)
        if cell == tile.position:
            return
        if self.cell_occupied(cell):
            raise ValueError(f"Cell {tuple(cell)} is already occupied")
        self.cells[tile.x][tile.y] = None
        self.cells[cell.x][cell.y] = tile
        tile.position = cell

    def within_bounds(self, position: Tuple[int, int]) -> bool:
        return 0 <= position[0] < self.size and 0 <= position[1] < self.size

    def tiles(self) -> List[Tile]:
        return [tile for _, _, tile in self.each_cell() if tile is not None]

    def values(self) -> np.ndarray:
        """Row-major matrix of tile values, 0 for empty cells."""
        board = np.zeros((self.size, self.size), dtype=np.int64)
        for x, y, tile in self.each_cell():
            if tile is not None:
                board[y][x] = tile.value
        return board

    def serialize(self) -> Dict:
        cells = []
        for x in range(self.size):
            cells.append([
                tile.serialize() if tile is not None else None
                for tile in self.cells[x]
            ])
        return {"size": self.size, "cells": cells}


__all__ = ["Grid"]
