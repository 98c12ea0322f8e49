"""Xiangqi (Chinese chess) rules engine and AI."""

from .board import Board, Move, Color, PieceType, Piece, Position
from .rules import (
    is_legal, is_legal_move, is_in_check, legal_moves, legal_targets,
    has_legal_move, winner, count_obstacles,
)
from .evaluation import evaluate, piece_value, PIECE_VALUES
from .engine import Engine, Difficulty, select_move
from .game import Game

__version__ = "0.1.0"

__all__ = [
    # Board
    'Board', 'Move', 'Color', 'PieceType', 'Piece', 'Position',
    # Rules
    'is_legal', 'is_legal_move', 'is_in_check', 'legal_moves', 'legal_targets',
    'has_legal_move', 'winner', 'count_obstacles',
    # Evaluation
    'evaluate', 'piece_value', 'PIECE_VALUES',
    # Search
    'Engine', 'Difficulty', 'select_move',
    # Game session
    'Game',
]
