"""In-process move oracle that answers with the best scoring valid direction."""

import math
from typing import Dict, List, Sequence

from autoplay import MoveOracle, decode_board
from board_grid import Grid
from board_rules import DIRECTION_NAMES, Direction, resolve_move

EMPTY_CELL_BONUS = 4.0
NO_MOVE = "?"


def score_moves(grid: Sequence[Sequence[int]]) -> Dict[str, float]:
    """Merge score plus a bonus per empty cell for every direction that moves."""
    scores: Dict[str, float] = {}
    for name in DIRECTION_NAMES:
        board = Grid.from_values(grid)
        outcome = resolve_move(board, name)
        if outcome.moved:
            scores[name] = outcome.score + EMPTY_CELL_BONUS * len(board.available_cells())
    return scores


def predict(grid: Sequence[Sequence[int]]) -> Dict:
    scores = score_moves(grid)
    allowed: List[str] = [name for name in DIRECTION_NAMES if name in scores]
    move = max(allowed, key=lambda name: scores[name]) if allowed else None
    return {
        "move": move,
        "move_index": DIRECTION_NAMES.index(move) if move else None,
        "valid_moves": allowed,
        "scores": scores,
    }


class GreedyAdvisor(MoveOracle):
    async def request_move(self, board: str) -> str:
        return self.suggest(board)

    def suggest(self, board: str) -> str:
        size = math.isqrt(len(board))
        result = predict(decode_board(board, size))
        if result["move"] is None:
            return NO_MOVE
        return Direction[result["move"]].symbol


__all__ = ["EMPTY_CELL_BONUS", "GreedyAdvisor", "NO_MOVE", "predict", "score_moves"]
