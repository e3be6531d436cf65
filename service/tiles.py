"""Positions and numbered tiles placed on the board."""

import itertools
from typing import Dict, NamedTuple, Tuple

_idents = itertools.count(1)


class Position(NamedTuple):
    x: int
    y: int

    def step(self, vector: Tuple[int, int]) -> "Position":
        return Position(self.x + vector[0], self.y + vector[1])


class Tile:
    """A numbered piece owned by exactly one grid cell.

    Only the grid updates ``position``; a merge produces a new tile rather than
    changing ``value`` on an existing one.
    """

    def __init__(self, position: Tuple[int, int], value: int = 2) -> None:
        self.ident = next(_idents)
        self.position = Position(*position)
        self._value = value

    @property
    def value(self) -> int:
        return self._value

    @property
    def x(self) -> int:
        return self.position.x

    @property
    def y(self) -> int:
        return self.position.y

    def serialize(self) -> Dict:
        return {
            "position": {"x": self.position.x, "y": self.position.y},
            "value": self._value,
        }

    def __repr__(self) -> str:
        return f"Tile({self.position.x}, {self.position.y}, value={self._value})"


__all__ = ["Position", "Tile"]
