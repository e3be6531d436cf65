"""Tests for the in-process move advisor."""

import unittest
from unittest.mock import patch

import move_advisor
from autoplay import encode_board
from board_grid import Grid


class PredictTests(unittest.TestCase):
    """Covers move_advisor.predict and the oracle wrapper around it."""

    def test_prefers_the_merge_that_frees_most_cells(self) -> None:
        grid = [
            [2, 2, 4, 8],
            [0, 0, 0, 16],
            [0, 0, 0, 32],
            [0, 0, 0, 64],
        ]

        payload = move_advisor.predict(grid)

        self.assertEqual(payload["valid_moves"], ["RIGHT", "DOWN", "LEFT"])
        self.assertEqual(payload["move"], "RIGHT")
        self.assertEqual(payload["move_index"], ("UP", "RIGHT", "DOWN", "LEFT").index(payload["move"]))
        self.assertEqual(payload["scores"]["LEFT"], 4 + move_advisor.EMPTY_CELL_BONUS * 10)

    def test_locked_board_has_no_move(self) -> None:
        grid = [
            [2, 4, 8, 16],
            [32, 64, 128, 256],
            [512, 1024, 2048, 4096],
            [8192, 16384, 32768, 65536],
        ]

        payload = move_advisor.predict(grid)

        self.assertIsNone(payload["move"])
        self.assertEqual(payload["valid_moves"], [])
        self.assertEqual(move_advisor.GreedyAdvisor().suggest(encode_board(Grid.from_values(grid))), "?")

    def test_ties_resolve_in_direction_order(self) -> None:
        with patch("move_advisor.score_moves", return_value={"DOWN": 1.0, "LEFT": 1.0}):
            payload = move_advisor.predict([[0, 0], [0, 0]])

        self.assertEqual(payload["move"], "DOWN")
        self.assertEqual(payload["valid_moves"], ["DOWN", "LEFT"])

    def test_suggestion_is_a_direction_symbol(self) -> None:
        board = encode_board(Grid.from_values([[0, 0, 0, 2], [0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0]]))

        with patch("move_advisor.score_moves", return_value={"DOWN": 3.0, "LEFT": 2.0}) as mocked:
            self.assertEqual(move_advisor.GreedyAdvisor().suggest(board), "d")

        self.assertEqual(mocked.call_args[0][0].tolist()[0], [0, 0, 0, 2])


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
