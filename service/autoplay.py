"""Drive a game session from an external move oracle, one suggestion at a time."""

import asyncio
import logging
from typing import Optional

import numpy as np

from board_grid import Grid
from board_rules import Direction
from game_session import GameSession
from move_log import MoveLog

logger = logging.getLogger(__name__)

# Board symbol for log2(value); "0" marks an empty cell.
RANKS = "0123456789ABCDEFG"


class OracleUnavailable(RuntimeError):
    """The oracle could not be reached or failed to answer."""


class MoveOracle:
    async def request_move(self, board: str) -> str:
        raise NotImplementedError


def _rank(value: int) -> str:
    power = value.bit_length() - 1
    if power < 1 or value != 1 << power or power >= len(RANKS):
        raise ValueError(f"Tile value {value} has no board symbol")
    return RANKS[power]


def encode_board(grid: Grid) -> str:
    board = ""
    for y in range(grid.size):
        for x in range(grid.size):
            tile = grid.cells[x][y]
            board += _rank(tile.value) if tile is not None else "0"
    return board


def decode_board(board: str, size: int) -> np.ndarray:
    if len(board) != size * size:
        raise ValueError(f"Expected {size * size} symbols, received {len(board)}")
    values = []
    for symbol in board:
        power = RANKS.find(symbol.upper())
        if power < 0:
            raise ValueError(f"Unknown board symbol: {symbol!r}")
        values.append(0 if power == 0 else 1 << power)
    return np.array(values, dtype=np.int64).reshape(size, size)


def parse_reply(reply: str) -> Optional[Direction]:
    """Map an oracle reply to a direction, or None when it is not recognized."""
    text = reply.strip() if reply else ""
    if len(text) == 1 and text in "urdl":
        return Direction.parse(text)
    return None


class AutoplayLoop:
    def __init__(
        self,
        session: GameSession,
        oracle: MoveOracle,
        move_log: Optional[MoveLog] = None,
        delay: float = 0.0,
    ) -> None:
        self.session = session
        self.oracle = oracle
        self.move_log = move_log
        self.delay = delay
        self.auto = False
        self.playing = False
        self._cancelled = False

    async def autoplay(self) -> None:
        if not self.auto and not self.playing:
            self.auto = True
            self.playing = True
            await self._play()

    async def step(self) -> None:
        if not self.playing:
            self.auto = False
            self.playing = True
            await self._play()

    def stop(self) -> None:
        """Stop requesting moves; a reply already in flight is discarded."""
        self.auto = False
        if self.playing:
            self._cancelled = True

    async def _play(self) -> None:
        """Request and apply moves until one attempt ends.

        Continuous play stops on an unrecognized reply, a move that changes
        nothing, a terminated game, ``stop()`` or an unreachable oracle. Other
        errors propagate, and the loop is left idle either way.
        """
        try:
            while True:
                board = encode_board(self.session.grid)
                try:
                    reply = await self.oracle.request_move(board)
                except OracleUnavailable as exc:
                    self.auto = False
                    logger.warning("Unable to contact move oracle: %s", exc)
                    self.session.actuator.show_error(f"Unable to contact AI: {exc}")
                    return

                if self._cancelled:
                    logger.debug("Discarding reply %r after stop", reply)
                    return

                self.session.actuator.hide_error()
                direction = parse_reply(reply)
                if direction is None:
                    logger.info("Oracle has no move for board %s", board)
                    self.auto = False
                    return

                if not self._apply(direction):
                    logger.info("Suggested move %s changed nothing", direction.name)
                    self.auto = False
                if self.session.is_game_terminated():
                    self.auto = False
                if not self.auto:
                    return

                await asyncio.sleep(self.delay)
                if self._cancelled or not self.auto:
                    return
        finally:
            self.auto = False
            self.playing = False
            self._cancelled = False

    def _apply(self, direction: Direction) -> bool:
        previous = {"grid": self.session.grid.values().tolist(), "score": self.session.score}
        moved = self.session.move(direction)
        if self.move_log is not None:
            self.move_log.record(
                direction,
                moved,
                previous,
                {"grid": self.session.grid.values().tolist(), "score": self.session.score},
            )
        return moved


async def _main() -> None:
    from move_advisor import GreedyAdvisor
    from game_settings import resolve_settings

    settings = resolve_settings()
    session = GameSession(settings)
    move_log = MoveLog()
    loop = AutoplayLoop(session, GreedyAdvisor(), move_log=move_log)
    await loop.autoplay()

    print(f"Final score: {session.score} (max tile {int(session.grid.values().max())})")
    print(f"Moves played: {len(move_log.valid_entries())}")
    if settings.move_log_path:
        move_log.dump(settings.move_log_path)
        print(f"Saved move log to {settings.move_log_path}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(_main())
