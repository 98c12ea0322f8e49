"""Unit tests for the Game session."""

import pytest
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from xiangqi import Board, Move, Color, PieceType, Position, Game, Difficulty


def sq(square):
    return Position.from_square(square)


class TestGameInitialization:
    """Test game construction."""

    def test_default_game(self):
        """Test a new game starts from the standard layout with Red to move."""
        game = Game()

        assert game.board == Board.initial()
        assert game.turn == Color.RED
        assert game.winner is None
        assert game.can_undo == False
        assert game.difficulty == Difficulty.MEDIUM

    def test_setup_without_general(self):
        """Test a custom board missing a general is already decided."""
        game = Game(board=Board.from_setup({"e10": "rG", "a1": "gR"}))

        assert game.is_over
        assert game.winner == Color.RED
        assert game.end_reason == "general_captured"


class TestMakeMove:
    """Test human moves."""

    def test_legal_move(self):
        """Test a legal move is applied and the turn passes."""
        game = Game()

        assert game.make_move(sq("a10"), sq("a8"))
        assert game.board.piece_at(sq("a8")).piece_type == PieceType.CHARIOT
        assert game.turn == Color.GREEN
        assert len(game.moves) == 1
        assert game.moves[0].to_uci() == "a10a8"
        assert game.moves[0].board_before == Board.initial()

    def test_illegal_move(self):
        """Test an illegal move is rejected without side effects."""
        game = Game()

        assert game.make_move(sq("a10"), sq("a5")) == False
        assert game.turn == Color.RED
        assert game.moves == []

    def test_wrong_turn(self):
        """Test a player cannot move the opponent's pieces."""
        game = Game()

        assert game.make_move(sq("a1"), sq("a3")) == False

    def test_empty_square(self):
        """Test moving from an empty square fails."""
        game = Game()

        assert game.make_move(sq("e5"), sq("e4")) == False

    def test_capture_general_ends_game(self):
        """Test taking the general finishes the game."""
        game = Game(board=Board.from_setup({"e10": "rG", "d1": "gG", "d8": "rR"}))

        assert game.make_move(sq("d8"), sq("d1"))
        assert game.is_over
        assert game.winner == Color.RED
        assert game.end_reason == "general_captured"
        assert game.make_move(sq("e1"), sq("e2")) == False

    def test_in_check(self):
        """Test check is reported for the side to move."""
        game = Game(board=Board.from_setup({"e10": "rG", "d1": "gG", "a5": "rR"}))

        game.make_move(sq("a5"), sq("d5"))

        assert game.turn == Color.GREEN
        assert game.in_check()

    def test_history_cap(self):
        """Test old moves are dropped beyond max_history."""
        game = Game(max_history=2)

        game.make_move(sq("a10"), sq("a9"))
        game.make_move(sq("a1"), sq("a2"))
        game.make_move(sq("a9"), sq("b9"))

        assert len(game.moves) == 2
        assert [m.to_uci() for m in game.moves] == ["a1a2", "a9b9"]

        assert game.undo()
        assert game.undo()
        assert game.undo() == False
        assert game.board.piece_at(sq("a9")).piece_type == PieceType.CHARIOT
        assert game.turn == Color.GREEN

    def test_history_cap_long_game(self):
        """Test the move list stays bounded over many moves."""
        game = Game(max_history=3)

        for _ in range(10):
            game.make_move(sq("a10"), sq("a9"))
            game.make_move(sq("a1"), sq("a2"))
            game.make_move(sq("a9"), sq("a10"))
            game.make_move(sq("a2"), sq("a1"))

        assert len(game.moves) == 3
        assert game.moves[-1].to_uci() == "a2a1"

    def test_move_on_engine_turn_rejected(self):
        """Test a human cannot move for the engine's color."""
        game = Game(ai_color=Color.GREEN)
        game.make_move(sq("h8"), sq("e8"))

        assert game.engine_to_move
        assert game.make_move(sq("a1"), sq("a2")) == False
        assert game.turn == Color.GREEN
        assert len(game.moves) == 1

    def test_engine_move_applied_with_play(self):
        """Test play() applies a legal move for the engine's color."""
        game = Game(ai_color=Color.GREEN)
        game.make_move(sq("h8"), sq("e8"))

        assert game.play(Move(sq("a1"), sq("a2")))
        assert game.turn == Color.RED
        assert game.play(Move(sq("a10"), sq("a5"))) == False


class TestUndo:
    """Test taking moves back."""

    def test_undo(self):
        """Test undo restores the previous board and turn."""
        game = Game()
        game.make_move(sq("a10"), sq("a8"))

        assert game.undo()
        assert game.board == Board.initial()
        assert game.turn == Color.RED
        assert game.moves == []

    def test_undo_empty(self):
        """Test undo without history fails."""
        assert Game().undo() == False

    def test_undo_clears_outcome(self):
        """Test undoing the winning move reopens the game."""
        game = Game(board=Board.from_setup({"e10": "rG", "d1": "gG", "d8": "rR"}))
        game.make_move(sq("d8"), sq("d1"))

        game.undo()

        assert game.winner is None
        assert game.end_reason is None
        assert game.board.general(Color.GREEN) is not None

    def test_undo_pair(self):
        """Test undoing a human move together with the AI reply."""
        game = Game(ai_color=Color.GREEN, difficulty=Difficulty.EASY, seed=1)
        game.make_move(sq("h8"), sq("e8"))
        game.ai_move()

        assert game.undo_pair()
        assert game.board == Board.initial()
        assert game.turn == Color.RED

    def test_undo_pair_needs_two(self):
        """Test undo_pair with a single move in history fails."""
        game = Game()
        game.make_move(sq("h8"), sq("e8"))

        assert game.undo_pair() == False
        assert len(game.moves) == 1

    def test_undo_after_surrender_keeps_moves(self):
        """Test undoing a resignation reopens the game without taking a move back."""
        game = Game()
        game.make_move(sq("h8"), sq("e8"))
        board = game.board

        game.surrender()
        assert game.can_undo

        assert game.undo()
        assert game.winner is None
        assert game.end_reason is None
        assert game.board is board
        assert game.turn == Color.GREEN
        assert len(game.moves) == 1

    def test_undo_surrender_without_moves(self):
        """Test a resignation before any move can be undone."""
        game = Game()
        game.surrender()

        assert game.undo()
        assert game.is_over == False
        assert game.undo() == False

    def test_undo_after_no_moves_loss(self):
        """Test undoing a no-legal-moves loss leaves the position as it was."""
        game = Game(board=Board.from_setup({"a6": "rG", "e2": "gG"}), turn=Color.GREEN)
        game.make_move(sq("e2"), sq("e1"))
        assert game.claim_no_moves()
        assert game.end_reason == "no_legal_moves"

        assert game.undo()
        assert game.is_over == False
        assert game.turn == Color.RED
        assert len(game.moves) == 1
        assert game.board.piece_at(sq("e1")).piece_type == PieceType.GENERAL


class TestAIMove:
    """Test engine moves through the game."""

    def test_ai_move_applied(self):
        """Test the engine's move is played for the side to move."""
        game = Game(ai_color=Color.GREEN, difficulty=Difficulty.EASY, seed=2)
        game.make_move(sq("b8"), sq("e8"))
        before = game.board

        move = game.ai_move()

        assert move is not None
        assert game.board.piece_at(move.to_pos).color == Color.GREEN
        assert game.turn == Color.RED
        assert game.moves[-1] is move
        assert move.board_before is before

    def test_ai_waits_for_player(self):
        """Test the engine does not move on the player's turn."""
        game = Game(ai_color=Color.GREEN, difficulty=Difficulty.EASY, seed=2)

        assert game.ai_move() is None
        assert game.winner is None
        assert game.turn == Color.RED
        assert game.moves == []

    def test_ai_waits_without_legal_moves(self):
        """Test a stuck player is not declared lost by an engine call."""
        game = Game(
            board=Board.from_setup({"a6": "rG", "e2": "gG"}),
            ai_color=Color.GREEN,
        )

        assert game.ai_move() is None
        assert game.is_over == False

    def test_ai_plays_either_side_without_color(self):
        """Test the engine moves for both sides when it has no color."""
        game = Game(difficulty=Difficulty.EASY, seed=4)

        assert game.ai_move() is not None
        assert game.ai_move() is not None
        assert game.turn == Color.RED

    def test_hard_ai_takes_general(self):
        """Test the hard engine wins when it can."""
        game = Game(
            board=Board.from_setup({"e10": "rG", "d1": "gG", "d8": "rR"}),
            difficulty=Difficulty.HARD,
        )

        move = game.ai_move()

        assert move == Move(sq("d8"), sq("d1"))
        assert game.winner == Color.RED

    def test_no_moves_forfeits(self):
        """Test a side without legal moves loses when asked to move."""
        game = Game(board=Board.from_setup({"a6": "rG", "e2": "gG"}))

        assert game.ai_move() is None
        assert game.winner == Color.GREEN
        assert game.end_reason == "no_legal_moves"

    def test_no_move_after_game_over(self):
        """Test the engine does not move in a finished game."""
        game = Game()
        game.surrender()

        assert game.ai_move() is None


class TestEndings:
    """Test surrender and no-move claims."""

    def test_surrender(self):
        """Test the side to move resigns by default."""
        game = Game()

        game.surrender()

        assert game.winner == Color.GREEN
        assert game.end_reason == "surrender"

    def test_surrender_other_color(self):
        """Test resigning for a given color."""
        game = Game()

        game.surrender(Color.GREEN)

        assert game.winner == Color.RED

    def test_claim_no_moves(self):
        """Test the limbo position can be resolved explicitly."""
        game = Game(board=Board.from_setup({"a6": "rG", "e2": "gG"}))

        assert game.claim_no_moves()
        assert game.winner == Color.GREEN

    def test_claim_rejected_with_moves(self):
        """Test a side with moves cannot be declared lost."""
        game = Game()

        assert game.claim_no_moves() == False
        assert game.winner is None


class TestLegalTargets:
    """Test per-piece move hints."""

    def test_targets_for_side_to_move(self):
        """Test hints for the horse at the start."""
        game = Game()

        assert set(game.legal_targets(sq("b10"))) == {sq("a8"), sq("c8")}

    def test_no_targets_for_opponent(self):
        """Test the waiting side gets no hints."""
        game = Game()

        assert game.legal_targets(sq("b1")) == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
