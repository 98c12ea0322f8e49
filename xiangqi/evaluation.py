"""Material evaluation."""

from .board import Board, Color, PieceType


PIECE_VALUES = {
    PieceType.GENERAL: 1000,
    PieceType.CHARIOT: 90,
    PieceType.CANNON: 45,
    PieceType.HORSE: 40,
    PieceType.ELEPHANT: 20,
    PieceType.ADVISOR: 20,
    PieceType.SOLDIER: 10,
}


def piece_value(piece_type: PieceType) -> int:
    """Get the material value of a piece type."""
    return PIECE_VALUES.get(piece_type, 0)


def evaluate(board: Board, color: Color) -> int:
    """Evaluate a board from one color's point of view.

    Material of `color` minus material of the opponent. No positional or
    mobility terms.
    """
    score = 0
    for piece in board:
        value = PIECE_VALUES.get(piece.piece_type, 0)
        if piece.color == color:
            score += value
        else:
            score -= value
    return score
