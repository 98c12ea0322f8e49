"""Xiangqi AI engine: random, greedy and minimax move selection."""

import logging
import random
from enum import Enum
from typing import List, Optional

from .board import Board, Color, Move
from .evaluation import evaluate, piece_value
from .rules import legal_moves, winner


logger = logging.getLogger(__name__)

WIN_SCORE = 10000
DEFAULT_DEPTH = 2
GREEDY_TOP_N = 3


class Difficulty(Enum):
    """AI difficulty tiers."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @classmethod
    def parse(cls, value) -> "Difficulty":
        """Accept a Difficulty or a case-insensitive name."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(
                f"Unknown difficulty {value!r}; expected one of "
                f"{', '.join(d.value for d in cls)}"
            ) from None


class Engine:
    """Xiangqi AI engine.

    Holds only search settings and statistics; the board is passed in on
    every call, so one engine can serve several games.
    """

    def __init__(
        self,
        difficulty: Difficulty = Difficulty.MEDIUM,
        depth: int = DEFAULT_DEPTH,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ):
        """Initialize engine.

        Args:
            difficulty: Difficulty tier, or its name
            depth: Minimax depth for the hard tier (must be >= 1)
            seed: Seed for the engine's private random generator
            rng: Random generator to use instead of a seeded one
        """
        if depth < 1:
            raise ValueError(f"Search depth must be at least 1, got {depth}")
        self.difficulty = Difficulty.parse(difficulty)
        self.depth = depth
        self.rng = rng if rng is not None else random.Random(seed)
        self.nodes_searched = 0

    def search(self, board: Board, color: Color) -> Optional[Move]:
        """Pick a move for `color`, or None if it has no legal move."""
        self.nodes_searched = 0
        moves = legal_moves(board, color)
        if not moves:
            logger.debug("No legal moves for %s", color.value)
            return None

        if self.difficulty == Difficulty.EASY:
            move = self.rng.choice(moves)
        elif self.difficulty == Difficulty.MEDIUM:
            move = self._greedy_move(board, moves)
        else:
            move = self._minimax_move(board, color, moves)

        logger.debug(
            "%s (%s) chose %s from %d moves, %d nodes",
            color.value, self.difficulty.value, move, len(moves), self.nodes_searched,
        )
        return move

    def _greedy_move(self, board: Board, moves: List[Move]) -> Move:
        """Score moves by capture value plus noise, pick among the best few."""
        scored = []
        for move in moves:
            score = self.rng.uniform(0, 10)
            target = board.piece_at(move.to_pos)
            if target is not None:
                score += piece_value(target.piece_type) * 10
            scored.append((score, move))

        scored.sort(key=lambda x: -x[0])
        top = scored[:GREEDY_TOP_N]
        return self.rng.choice(top)[1]

    def _minimax_move(self, board: Board, color: Color, moves: List[Move]) -> Move:
        """Root of the minimax search; ties are broken at random."""
        best_score = float("-inf")
        best_moves: List[Move] = []

        for move in moves:
            value = self._minimax(
                board.apply_move(move),
                self.depth - 1,
                float("-inf"),
                float("inf"),
                False,
                color,
            )
            if value > best_score:
                best_score = value
                best_moves = [move]
            elif value == best_score:
                best_moves.append(move)

        return self.rng.choice(best_moves)

    def _minimax(
        self,
        board: Board,
        depth: int,
        alpha: float,
        beta: float,
        maximizing: bool,
        color: Color,
    ) -> float:
        """Minimax algorithm with alpha-beta pruning.

        Scores are from `color`'s point of view. A captured General scores
        +-(WIN_SCORE + depth) so that faster wins rank higher.
        """
        self.nodes_searched += 1

        result = winner(board)
        if result is not None:
            return WIN_SCORE + depth if result == color else -WIN_SCORE - depth
        if depth == 0:
            return evaluate(board, color)

        to_move = color if maximizing else color.opponent
        moves = legal_moves(board, to_move)
        if not moves:
            return 0

        if maximizing:
            max_eval = float("-inf")
            for move in moves:
                eval_score = self._minimax(
                    board.apply_move(move), depth - 1, alpha, beta, False, color
                )
                max_eval = max(max_eval, eval_score)
                alpha = max(alpha, eval_score)
                if beta <= alpha:
                    break
            return max_eval
        else:
            min_eval = float("inf")
            for move in moves:
                eval_score = self._minimax(
                    board.apply_move(move), depth - 1, alpha, beta, True, color
                )
                min_eval = min(min_eval, eval_score)
                beta = min(beta, eval_score)
                if beta <= alpha:
                    break
            return min_eval


def select_move(
    board: Board,
    color: Color,
    difficulty=Difficulty.MEDIUM,
    rng: Optional[random.Random] = None,
) -> Optional[Move]:
    """Select a move for `color` at the given difficulty.

    Returns None only when `color` has no legal move; the caller should
    then treat the opponent as the winner.
    """
    return Engine(difficulty, rng=rng).search(board, color)
