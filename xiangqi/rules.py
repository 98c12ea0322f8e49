"""Move legality, check detection, move enumeration and win detection.

Every function here is pure: it reads an explicit Board snapshot and never
modifies it. Bad input (off-board targets, pieces that are not on the
given board) yields False or an empty result instead of an exception, so
the checks can be called speculatively on arbitrary clicks.
"""

from typing import Callable, Dict, List, Optional

from .board import (
    Board,
    Color,
    FILES,
    RANKS,
    Move,
    Piece,
    PieceType,
    Position,
    in_palace,
    crossed_river,
    own_side_of_river,
)


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


def count_obstacles(from_pos: Position, to_pos: Position, board: Board) -> int:
    """Count occupied squares strictly between two positions on a line.

    The positions must share a file or a rank; otherwise 0 is returned.
    """
    df = to_pos.file - from_pos.file
    dr = to_pos.rank - from_pos.rank
    if df != 0 and dr != 0:
        return 0
    step_f, step_r = _sign(df), _sign(dr)
    count = 0
    file, rank = from_pos.file + step_f, from_pos.rank + step_r
    while (file, rank) != (to_pos.file, to_pos.rank):
        if board.get_piece(file, rank) is not None:
            count += 1
        file += step_f
        rank += step_r
    return count


def _is_valid_general_move(piece: Piece, target: Position, board: Board) -> bool:
    occupant = board.piece_at(target)
    # Flying general: capture the enemy General along a clear file
    if (
        occupant is not None
        and occupant.piece_type == PieceType.GENERAL
        and occupant.color != piece.color
        and piece.position.file == target.file
        and count_obstacles(piece.position, target, board) == 0
    ):
        return True

    df = abs(target.file - piece.position.file)
    dr = abs(target.rank - piece.position.rank)
    return df + dr == 1 and in_palace(target, piece.color)


def _is_valid_advisor_move(piece: Piece, target: Position, board: Board) -> bool:
    df = abs(target.file - piece.position.file)
    dr = abs(target.rank - piece.position.rank)
    return df == 1 and dr == 1 and in_palace(target, piece.color)


def _is_valid_elephant_move(piece: Piece, target: Position, board: Board) -> bool:
    df = target.file - piece.position.file
    dr = target.rank - piece.position.rank
    if abs(df) != 2 or abs(dr) != 2:
        return False
    if not own_side_of_river(target, piece.color):
        return False
    eye = Position(piece.position.file + df // 2, piece.position.rank + dr // 2)
    return not board.is_occupied(eye)


def _is_valid_horse_move(piece: Piece, target: Position, board: Board) -> bool:
    df = target.file - piece.position.file
    dr = target.rank - piece.position.rank
    if (abs(df), abs(dr)) not in ((1, 2), (2, 1)):
        return False
    # The leg is the square next to the origin along the longer axis
    if abs(df) == 2:
        leg = Position(piece.position.file + df // 2, piece.position.rank)
    else:
        leg = Position(piece.position.file, piece.position.rank + dr // 2)
    return not board.is_occupied(leg)


def _is_valid_chariot_move(piece: Piece, target: Position, board: Board) -> bool:
    if target.file != piece.position.file and target.rank != piece.position.rank:
        return False
    return count_obstacles(piece.position, target, board) == 0


def _is_valid_cannon_move(piece: Piece, target: Position, board: Board) -> bool:
    if target.file != piece.position.file and target.rank != piece.position.rank:
        return False
    obstacles = count_obstacles(piece.position, target, board)
    if board.is_occupied(target):
        # Capture needs exactly one screen
        return obstacles == 1
    return obstacles == 0


def _is_valid_soldier_move(piece: Piece, target: Position, board: Board) -> bool:
    forward = -1 if piece.color == Color.RED else 1
    df = target.file - piece.position.file
    dr = target.rank - piece.position.rank

    if df == 0 and dr == forward:
        return True
    # Sideways only once across the river
    if dr == 0 and abs(df) == 1:
        return crossed_river(piece.position, piece.color)
    return False


_RULES: Dict[PieceType, Callable[[Piece, Position, Board], bool]] = {
    PieceType.GENERAL: _is_valid_general_move,
    PieceType.ADVISOR: _is_valid_advisor_move,
    PieceType.ELEPHANT: _is_valid_elephant_move,
    PieceType.HORSE: _is_valid_horse_move,
    PieceType.CHARIOT: _is_valid_chariot_move,
    PieceType.CANNON: _is_valid_cannon_move,
    PieceType.SOLDIER: _is_valid_soldier_move,
}


def is_legal(piece: Piece, target: Position, board: Board) -> bool:
    """Check whether a piece may move to target on the given board.

    Checks, in order: the target is on the board, the target differs from
    the piece's square, the target does not hold a friendly piece, and the
    piece type's movement rule. The piece must be on the board.
    """
    if not target.on_board():
        return False
    if target == piece.position:
        return False
    if piece not in board:
        return False

    occupant = board.piece_at(target)
    if occupant is not None and occupant.color == piece.color:
        return False

    return _RULES[piece.piece_type](piece, target, board)


def is_legal_move(move: Move, board: Board) -> bool:
    """Check a (from, to) move against the board."""
    piece = board.piece_at(move.from_pos)
    if piece is None:
        return False
    return is_legal(piece, move.to_pos, board)


def is_in_check(board: Board, color: Color) -> bool:
    """Check if the General of the given color is attacked.

    Returns False when the General is not on the board.
    """
    general = board.general(color)
    if general is None:
        return False
    return any(
        is_legal(enemy, general.position, board)
        for enemy in board.pieces_of(color.opponent)
    )


def winner(board: Board) -> Optional[Color]:
    """Return the winning color if a General has been captured."""
    if board.general(Color.RED) is None:
        return Color.GREEN
    if board.general(Color.GREEN) is None:
        return Color.RED
    return None


def legal_targets(piece: Piece, board: Board) -> List[Position]:
    """All squares the piece may legally move to."""
    return [
        Position(file, rank)
        for file in range(FILES)
        for rank in range(RANKS)
        if is_legal(piece, Position(file, rank), board)
    ]


def legal_moves(board: Board, color: Color) -> List[Move]:
    """Generate all legal moves for a color.

    Every piece is tested against every square; the list is rebuilt on
    each call.
    """
    moves = []
    for piece in board.pieces_of(color):
        for target in legal_targets(piece, board):
            moves.append(Move(piece.position, target))
    return moves


def has_legal_move(board: Board, color: Color) -> bool:
    """Check if the color has at least one legal move."""
    for piece in board.pieces_of(color):
        for file in range(FILES):
            for rank in range(RANKS):
                if is_legal(piece, Position(file, rank), board):
                    return True
    return False
