"""Game session: current board, turn, undo history and outcome.

The engine functions are pure; this module is the state owner that feeds
them boards and applies the moves they approve or choose.
"""

import logging
from typing import List, Optional

from .board import Board, Color, Move, Position
from .engine import Difficulty, Engine
from .rules import has_legal_move, is_in_check, is_legal, legal_targets, winner


logger = logging.getLogger(__name__)

END_GENERAL_CAPTURED = "general_captured"
END_NO_LEGAL_MOVES = "no_legal_moves"
END_SURRENDER = "surrender"

# Endings that are not moves; undo reopens the game without retracting one
RESIGN_ENDINGS = (END_NO_LEGAL_MOVES, END_SURRENDER)


class Game:
    """A single Xiangqi game."""

    def __init__(
        self,
        board: Optional[Board] = None,
        turn: Color = Color.RED,
        ai_color: Optional[Color] = None,
        difficulty=Difficulty.MEDIUM,
        seed: Optional[int] = None,
        max_history: Optional[int] = None,
    ):
        """Initialize a game.

        Args:
            board: Starting board (standard layout if None)
            turn: Color to move first
            ai_color: Color played by the engine, if any. Human moves are
                refused on that color's turn and engine moves on the other.
            difficulty: Engine difficulty
            seed: Seed for the engine's random choices
            max_history: Keep at most this many moves for undo (unlimited if None)
        """
        self.board = board if board is not None else Board.initial()
        self.turn = turn
        self.ai_color = ai_color
        self.engine = Engine(difficulty, seed=seed)
        self.max_history = max_history
        # Each move carries the board it was played on, which undo restores
        self.moves: List[Move] = []
        self.winner: Optional[Color] = None
        self.end_reason: Optional[str] = None

        # A custom setup may already lack a General
        initial_winner = winner(self.board)
        if initial_winner is not None:
            self._finish(initial_winner, END_GENERAL_CAPTURED)

    @property
    def difficulty(self) -> Difficulty:
        return self.engine.difficulty

    @property
    def is_over(self) -> bool:
        return self.winner is not None

    @property
    def engine_to_move(self) -> bool:
        """True when the side to move is played by the engine."""
        return self.ai_color is not None and self.turn == self.ai_color

    @property
    def human_to_move(self) -> bool:
        """True when the engine has a color and it is not its turn."""
        return self.ai_color is not None and self.turn != self.ai_color

    @property
    def can_undo(self) -> bool:
        return len(self.moves) > 0 or self.end_reason in RESIGN_ENDINGS

    def in_check(self) -> bool:
        """Check if the side to move is in check."""
        return is_in_check(self.board, self.turn)

    def legal_targets(self, position: Position) -> List[Position]:
        """Legal destinations for the piece of the side to move on `position`."""
        piece = self.board.piece_at(position)
        if piece is None or piece.color != self.turn or self.is_over:
            return []
        return legal_targets(piece, self.board)

    def make_move(self, from_pos: Position, to_pos: Position) -> bool:
        """Play a human move for the side to move.

        Returns:
            False if the game is over, the engine owns the side to move, the
            origin does not hold a piece of the side to move, or the move is
            illegal; True otherwise.
        """
        if self.engine_to_move:
            return False
        return self.play(Move(from_pos, to_pos))

    def play(self, move: Move) -> bool:
        """Apply `move` for the side to move if it is legal.

        Does not check which side the engine owns; api.py uses it for
        engine moves searched outside the game.
        """
        if self.is_over:
            return False
        piece = self.board.piece_at(move.from_pos)
        if piece is None or piece.color != self.turn:
            return False
        if not is_legal(piece, move.to_pos, self.board):
            return False

        self._apply(Move(move.from_pos, move.to_pos, board_before=self.board))
        return True

    def ai_move(self) -> Optional[Move]:
        """Let the engine play for the side to move.

        Without an ai_color the engine may move for either side.

        Returns:
            The move played, or None if the game is over, it is the human
            player's turn, or the side to move has no legal move (that side
            then loses).
        """
        if self.is_over or self.human_to_move:
            return None
        move = self.engine.search(self.board, self.turn)
        if move is None:
            self._finish(self.turn.opponent, END_NO_LEGAL_MOVES)
            return None
        move = Move(move.from_pos, move.to_pos, board_before=self.board)
        self._apply(move)
        return move

    def claim_no_moves(self) -> bool:
        """End the game if the side to move has no legal move."""
        if self.is_over or has_legal_move(self.board, self.turn):
            return False
        self._finish(self.turn.opponent, END_NO_LEGAL_MOVES)
        return True

    def surrender(self, color: Optional[Color] = None) -> None:
        """Resign for `color` (the side to move by default)."""
        if self.is_over:
            return
        loser = color if color is not None else self.turn
        self._finish(loser.opponent, END_SURRENDER)

    def undo(self) -> bool:
        """Take back the last move. Returns False if there is none.

        A surrender or no-legal-moves loss was not a move, so undoing it only
        clears the outcome; board, turn and moves are left alone.
        """
        if self.end_reason in RESIGN_ENDINGS:
            self._reopen()
            return True
        if not self.moves:
            return False
        self._retract()
        return True

    def undo_pair(self) -> bool:
        """Take back the engine's reply and the move before it."""
        if len(self.moves) < 2:
            return False
        self._retract()
        self._retract()
        return True

    def _retract(self) -> None:
        self.board = self.moves.pop().board_before
        self.turn = self.turn.opponent
        self._reopen()

    def _reopen(self) -> None:
        self.winner = None
        self.end_reason = None

    def _apply(self, move: Move) -> None:
        self.moves.append(move)
        if self.max_history is not None and len(self.moves) > self.max_history:
            self.moves.pop(0)
        self.board = self.board.apply_move(move)
        self.turn = self.turn.opponent

        result = winner(self.board)
        if result is not None:
            self._finish(result, END_GENERAL_CAPTURED)
        elif is_in_check(self.board, self.turn):
            logger.debug("%s is in check", self.turn.value)

    def _finish(self, result: Color, reason: str) -> None:
        self.winner = result
        self.end_reason = reason
        logger.info("Game over: %s wins (%s)", result.value, reason)
