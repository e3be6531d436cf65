"""Tests for the oracle-driven autoplay loop and its board encoding."""

import asyncio
import unittest
from unittest.mock import Mock

import numpy as np

from autoplay import (
    AutoplayLoop,
    MoveOracle,
    OracleUnavailable,
    decode_board,
    encode_board,
    parse_reply,
)
from board_grid import Grid
from board_rules import Direction
from game_session import Actuator, GameSession
from game_settings import GameSettings
from move_log import MoveLog


class ScriptedOracle(MoveOracle):
    """Answers with the queued replies, then with an unrecognized symbol."""

    def __init__(self, *replies) -> None:
        self.replies = list(replies)
        self.boards = []

    async def request_move(self, board: str) -> str:
        self.boards.append(board)
        if not self.replies:
            return "?"
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class BlockingOracle(MoveOracle):
    def __init__(self, reply: str) -> None:
        self.reply = reply
        self.release = asyncio.Event()
        self.calls = 0

    async def request_move(self, board: str) -> str:
        self.calls += 1
        await self.release.wait()
        return self.reply


def session_with(*rows, **kwargs) -> GameSession:
    flat = [value for row in rows for value in row]
    flat += [0] * (16 - len(flat))
    return GameSession(GameSettings(initial_tiles=tuple(flat), seed=3), **kwargs)


class BoardEncodingTests(unittest.TestCase):
    ROWS = [
        [2, 4, 0, 0],
        [0, 0, 0, 0],
        [0, 0, 0, 2048],
        [65536, 0, 0, 0],
    ]

    def test_encode_row_major_ranks(self) -> None:
        self.assertEqual(encode_board(Grid.from_values(self.ROWS)), "1200" "0000" "000B" "G000")

    def test_decode_inverts_encode(self) -> None:
        np.testing.assert_array_equal(decode_board("1200" "0000" "000B" "G000", 4), np.array(self.ROWS))

    def test_decode_rejects_bad_input(self) -> None:
        with self.assertRaises(ValueError):
            decode_board("12", 4)
        with self.assertRaises(ValueError):
            decode_board("Z" * 16, 4)

    def test_value_without_symbol(self) -> None:
        with self.assertRaises(ValueError):
            encode_board(Grid.from_values([[131072, 0], [0, 0]]))

    def test_parse_reply(self) -> None:
        self.assertIs(parse_reply("u"), Direction.UP)
        self.assertIs(parse_reply("r"), Direction.RIGHT)
        self.assertIs(parse_reply("d\n"), Direction.DOWN)
        self.assertIs(parse_reply(" l "), Direction.LEFT)
        self.assertIsNone(parse_reply("?"))
        self.assertIsNone(parse_reply(""))
        self.assertIsNone(parse_reply("left"))


class AutoplayLoopTests(unittest.IsolatedAsyncioTestCase):
    async def test_step_applies_a_single_move(self) -> None:
        session = session_with([2, 2, 0, 0])
        oracle = ScriptedOracle("l", "r")
        loop = AutoplayLoop(session, oracle)

        await loop.step()

        self.assertEqual(oracle.boards, ["1100" + "0" * 12])
        self.assertEqual(session.score, 4)
        self.assertFalse(loop.playing)
        self.assertFalse(loop.auto)

    async def test_autoplay_runs_until_unrecognized_reply(self) -> None:
        session = session_with([2, 2, 4, 4])
        oracle = ScriptedOracle("l", "r")
        loop = AutoplayLoop(session, oracle)

        await loop.autoplay()

        self.assertEqual(len(oracle.boards), 3)
        self.assertFalse(loop.auto)
        self.assertFalse(loop.playing)
        self.assertFalse(session.over)
        self.assertGreaterEqual(session.score, 12)

    async def test_transport_failure_stops_and_reports(self) -> None:
        actuator = Mock(spec=Actuator)
        session = session_with([2, 2, 0, 0], actuator=actuator)
        before = session.serialize()
        loop = AutoplayLoop(session, ScriptedOracle(OracleUnavailable("connection refused")))

        await loop.autoplay()

        self.assertEqual(session.serialize(), before)
        self.assertFalse(loop.auto)
        self.assertFalse(loop.playing)
        actuator.show_error.assert_called_once()
        self.assertIn("connection refused", actuator.show_error.call_args[0][0])

    async def test_unexpected_error_does_not_block_later_autoplay(self) -> None:
        session = session_with([2, 2, 0, 0])
        oracle = ScriptedOracle(ConnectionError("reset by peer"), "l")
        loop = AutoplayLoop(session, oracle)

        with self.assertRaises(ConnectionError):
            await loop.autoplay()
        self.assertFalse(loop.auto)
        self.assertFalse(loop.playing)

        await loop.autoplay()

        self.assertEqual(len(oracle.boards), 3)
        self.assertEqual(session.score, 4)

    async def test_autoplay_stops_when_a_suggestion_changes_nothing(self) -> None:
        session = session_with([2, 4, 8, 16])
        oracle = ScriptedOracle("l", "r", "d")
        loop = AutoplayLoop(session, oracle)

        await loop.autoplay()

        self.assertEqual(len(oracle.boards), 1)
        self.assertFalse(loop.auto)
        self.assertFalse(session.over)
        self.assertEqual(session.grid.values()[0].tolist(), [2, 4, 8, 16])

    async def test_successful_reply_hides_error(self) -> None:
        actuator = Mock(spec=Actuator)
        session = session_with([2, 2, 0, 0], actuator=actuator)

        await AutoplayLoop(session, ScriptedOracle("l")).step()

        actuator.hide_error.assert_called_once_with()

    async def test_calls_while_in_flight_are_ignored(self) -> None:
        session = session_with([2, 2, 0, 0])
        oracle = BlockingOracle("l")
        loop = AutoplayLoop(session, oracle)

        task = asyncio.create_task(loop.step())
        await asyncio.sleep(0)
        self.assertTrue(loop.playing)

        await loop.step()
        await loop.autoplay()
        self.assertEqual(oracle.calls, 1)

        oracle.release.set()
        await task
        self.assertEqual(session.score, 4)
        self.assertFalse(loop.playing)

    async def test_stop_discards_reply_in_flight(self) -> None:
        session = session_with([2, 2, 0, 0])
        before = session.serialize()
        oracle = BlockingOracle("l")
        loop = AutoplayLoop(session, oracle)

        task = asyncio.create_task(loop.autoplay())
        await asyncio.sleep(0)
        loop.stop()
        oracle.release.set()
        await task

        self.assertEqual(session.serialize(), before)
        self.assertEqual(oracle.calls, 1)
        self.assertFalse(loop.auto)
        self.assertFalse(loop.playing)

        # A later step works again
        oracle.release.set()
        await loop.step()
        self.assertEqual(session.score, 4)

    async def test_autoplay_stops_once_the_game_is_won(self) -> None:
        session = session_with([1024, 1024, 0, 0])
        oracle = ScriptedOracle("l", "r", "l")
        loop = AutoplayLoop(session, oracle)

        await loop.autoplay()

        self.assertTrue(session.won)
        self.assertEqual(len(oracle.boards), 1)
        self.assertFalse(loop.auto)

    async def test_moves_are_logged(self) -> None:
        session = session_with([2, 2, 0, 0], [2, 4, 8, 16])
        move_log = MoveLog()
        loop = AutoplayLoop(session, ScriptedOracle("l", "u"), move_log=move_log)

        await loop.autoplay()

        self.assertEqual(len(move_log.entries), 2)
        first = move_log.entries[0]
        self.assertEqual(first["direction"], "LEFT")
        self.assertTrue(first["valid"])
        self.assertEqual(first["prev"]["score"], 0)
        self.assertEqual(first["next"]["score"], 4)
        self.assertEqual(first["prev"]["grid"][0], [2, 2, 0, 0])


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
