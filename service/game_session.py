"""A full game: the grid, the score and the win/loss flags around the move rules."""

import copy
import dataclasses
import logging
from typing import Dict, Optional, Sequence, Union

import numpy as np

from board_grid import Grid
from board_rules import Direction, MoveOutcome, moves_available, resolve_move
from game_settings import GameSettings, validate_tiles
from tiles import Position, Tile

logger = logging.getLogger(__name__)


class Actuator:
    """Receives the board after every change. The base class shows nothing."""

    def render(self, grid: Grid, metadata: Dict) -> None:
        pass

    def announce_continue(self) -> None:
        pass

    def show_error(self, message: str) -> None:
        pass

    def hide_error(self) -> None:
        pass


class MemoryStorage:
    """Keeps the saved game and the best score for the lifetime of the process."""

    def __init__(self) -> None:
        self._state: Optional[Dict] = None
        self._best_score = 0

    def get_state(self) -> Optional[Dict]:
        return copy.deepcopy(self._state)

    def set_state(self, state: Dict) -> None:
        self._state = copy.deepcopy(state)

    def clear_state(self) -> None:
        self._state = None

    def get_best_score(self) -> int:
        return self._best_score

    def set_best_score(self, score: int) -> None:
        self._best_score = score


class GameSession:
    def __init__(
        self,
        settings: Optional[GameSettings] = None,
        storage=None,
        actuator: Optional[Actuator] = None,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        self.settings = settings or GameSettings()
        self.size = self.settings.size
        self.storage = storage if storage is not None else MemoryStorage()
        self.actuator = actuator if actuator is not None else Actuator()
        self.rng = rng if rng is not None else np.random.default_rng(self.settings.seed)
        self.initial_tiles = list(self.settings.initial_tiles) if self.settings.initial_tiles else None
        self.last_outcome: Optional[MoveOutcome] = None

        self.setup()

    @classmethod
    def restore(cls, snapshot: Dict, settings: Optional[GameSettings] = None, **kwargs) -> "GameSession":
        """Rebuild a session from a snapshot produced by ``serialize``."""
        settings = dataclasses.replace(settings or GameSettings(), size=snapshot["grid"]["size"])
        storage = kwargs.pop("storage", None) or MemoryStorage()
        storage.set_state(snapshot)
        return cls(settings, storage=storage, **kwargs)

    def setup(self) -> None:
        previous_state = self.storage.get_state()

        if previous_state:
            self.grid = Grid(previous_state["grid"]["size"], previous_state["grid"]["cells"])
            self.size = self.grid.size
            self.score = previous_state["score"]
            self.over = previous_state["over"]
            self.won = previous_state["won"]
            # "keepPlaying" in snapshots
            self.continued = previous_state["keepPlaying"]
            logger.debug("Restored game with score %d", self.score)
        else:
            self.grid = Grid(self.size)
            self.score = 0
            self.over = False
            self.won = False
            self.continued = False

            if self.initial_tiles and self._place_initial_tiles() > 0:
                logger.debug("Started game from a custom layout")
            else:
                self.add_start_tiles()

        self.actuate()

    def _place_initial_tiles(self) -> int:
        placed = 0
        for index, value in enumerate(self.initial_tiles):
            if value > 0:
                row, col = divmod(index, self.size)
                self.grid.insert_tile(Tile(Position(col, row), value))
                placed += 1
        return placed

    def restart(self) -> None:
        self.storage.clear_state()
        self.actuator.announce_continue()
        self.setup()

    def keep_playing(self) -> None:
        """Continue past a win; ``won`` stays set."""
        self.continued = True
        self.actuator.announce_continue()

    def configure_tiles(self, values: Sequence[int]) -> None:
        """Use ``values`` (row-major) as the layout of the next fresh game."""
        self.initial_tiles = validate_tiles(values, self.size)

    def is_game_terminated(self) -> bool:
        return self.over or (self.won and not self.continued)

    def add_start_tiles(self) -> None:
        for _ in range(self.settings.start_tiles):
            self.add_random_tile()

    def add_random_tile(self) -> None:
        if self.grid.cells_available():
            value = 2 if self.rng.random() < 0.9 else 4
            self.grid.insert_tile(Tile(self.grid.random_available_cell(self.rng), value))

    def moves_available(self) -> bool:
        return moves_available(self.grid)

    def move(self, direction: Union[int, str, Direction]) -> bool:
        """Apply one move; return whether any tile moved."""
        if self.is_game_terminated():
            return False

        direction = Direction.parse(direction)
        outcome = resolve_move(self.grid, direction)
        self.last_outcome = outcome
        if not outcome.moved:
            # A custom or restored layout can start out locked
            if not self.moves_available():
                self.over = True
                self.actuate()
            return False

        self.score += outcome.score
        if any(tile.value == self.settings.winning_value for tile in outcome.merged):
            self.won = True

        self.add_random_tile()
        if not self.moves_available():
            self.over = True

        logger.debug("Moved %s, score %d", direction.name, self.score)
        self.actuate()
        return True

    def actuate(self) -> None:
        if self.storage.get_best_score() < self.score:
            self.storage.set_best_score(self.score)

        # Clear the state when the game is over (game over only, not win)
        if self.over:
            self.storage.clear_state()
        else:
            self.storage.set_state(self.serialize())

        self.actuator.render(self.grid, {
            "score": self.score,
            "over": self.over,
            "won": self.won,
            "bestScore": self.storage.get_best_score(),
            "terminated": self.is_game_terminated(),
        })

    def serialize(self) -> Dict:
        return {
            "grid": self.grid.serialize(),
            "score": self.score,
            "over": self.over,
            "won": self.won,
            "keepPlaying": self.continued,
        }


__all__ = ["Actuator", "GameSession", "MemoryStorage"]
