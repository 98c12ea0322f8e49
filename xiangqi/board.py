"""Xiangqi board representation."""

from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple
from dataclasses import dataclass, field, replace


FILES = 9
RANKS = 10
FILE_LETTERS = "abcdefghi"


class Color(Enum):
    """Player colors."""

    RED = "red"  # Bottom side (ranks 5-9), moves first
    GREEN = "green"  # Top side (ranks 0-4)

    @property
    def opponent(self) -> "Color":
        return Color.GREEN if self is Color.RED else Color.RED


class PieceType(Enum):
    """Piece types."""

    GENERAL = "general"
    ADVISOR = "advisor"
    ELEPHANT = "elephant"
    HORSE = "horse"
    CHARIOT = "chariot"
    CANNON = "cannon"
    SOLDIER = "soldier"


# Single-letter codes used by setup dictionaries and the API board grid
PIECE_CODES: Dict[str, PieceType] = {
    "G": PieceType.GENERAL,
    "A": PieceType.ADVISOR,
    "E": PieceType.ELEPHANT,
    "H": PieceType.HORSE,
    "R": PieceType.CHARIOT,
    "C": PieceType.CANNON,
    "S": PieceType.SOLDIER,
}
TYPE_CODES: Dict[PieceType, str] = {v: k for k, v in PIECE_CODES.items()}
COLOR_CODES: Dict[str, Color] = {"r": Color.RED, "g": Color.GREEN}


@dataclass(frozen=True)
class Position:
    """A board intersection. file 0-8 (a-i), rank 0-9 (1-10)."""

    file: int
    rank: int

    def on_board(self) -> bool:
        return 0 <= self.file < FILES and 0 <= self.rank < RANKS

    def to_square(self) -> str:
        """Convert to square notation, e.g. (0, 0) -> "a1"."""
        return f"{FILE_LETTERS[self.file]}{self.rank + 1}"

    @classmethod
    def from_square(cls, square: str) -> "Position":
        """Parse square notation such as "a1" or "i10".

        Raises:
            ValueError: if the square is malformed or off the board.
        """
        square = square.strip().lower()
        if len(square) < 2 or square[0] not in FILE_LETTERS:
            raise ValueError(f"Invalid square: {square!r}")
        try:
            rank = int(square[1:]) - 1
        except ValueError:
            raise ValueError(f"Invalid square: {square!r}") from None
        position = cls(FILE_LETTERS.index(square[0]), rank)
        if not position.on_board():
            raise ValueError(f"Square off the board: {square!r}")
        return position

    def __str__(self) -> str:
        return self.to_square()


@dataclass(frozen=True)
class Piece:
    """A piece on the board.

    The id stays the same for the whole game; moving a piece produces a
    new Piece with the same id and a different position.
    """

    id: str
    piece_type: PieceType
    color: Color
    position: Position

    def moved_to(self, position: Position) -> "Piece":
        return replace(self, position=position)

    @property
    def code(self) -> str:
        """Two-letter code, e.g. "rR" for a red chariot."""
        return f"{self.color.value[0]}{TYPE_CODES[self.piece_type]}"

    def __str__(self) -> str:
        return f"{self.color.value}_{self.piece_type.value}@{self.position}"


@dataclass(frozen=True)
class Move:
    """A move from one position to another.

    board_before optionally carries the snapshot the move was played on
    (for history and undo); it does not take part in equality.
    """

    from_pos: Position
    to_pos: Position
    board_before: Optional["Board"] = field(default=None, compare=False, repr=False)

    def to_uci(self) -> str:
        """Convert to UCI-like notation, e.g. "a10a8"."""
        return f"{self.from_pos.to_square()}{self.to_pos.to_square()}"

    @classmethod
    def from_uci(cls, uci: str) -> "Move":
        """Parse UCI-like notation. Ranks may have one or two digits."""
        uci = uci.strip().lower()
        # The second square starts at the second file letter
        for i in range(2, len(uci)):
            if uci[i] in FILE_LETTERS:
                return cls(Position.from_square(uci[:i]), Position.from_square(uci[i:]))
        raise ValueError(f"Invalid move notation: {uci!r}")

    def __str__(self) -> str:
        return self.to_uci()


def in_palace(position: Position, color: Color) -> bool:
    """Check if a position is in the palace of the given color."""
    if not 3 <= position.file <= 5:
        return False
    if color == Color.RED:
        return 7 <= position.rank <= 9
    return 0 <= position.rank <= 2


def own_side_of_river(position: Position, color: Color) -> bool:
    """Check if a position is on the color's own half of the board."""
    if color == Color.RED:
        return position.rank >= 5
    return position.rank <= 4


def crossed_river(position: Position, color: Color) -> bool:
    """Check if a position is on the opponent's half of the board."""
    return not own_side_of_river(position, color)


class Board:
    """Immutable Xiangqi board: an ordered collection of pieces.

    Boards are never modified in place. apply_move() returns a new board,
    so older boards stay valid as history snapshots.
    """

    __slots__ = ("_pieces", "_by_position")

    def __init__(self, pieces=()):
        """Create a board from an iterable of pieces.

        Raises:
            ValueError: if two pieces share a position or an id, or a
                piece is off the board.
        """
        self._pieces: Tuple[Piece, ...] = tuple(pieces)
        self._by_position: Dict[Position, Piece] = {}
        ids = set()
        for piece in self._pieces:
            if not piece.position.on_board():
                raise ValueError(f"Piece off the board: {piece}")
            if piece.position in self._by_position:
                raise ValueError(f"Two pieces on {piece.position}")
            if piece.id in ids:
                raise ValueError(f"Duplicate piece id: {piece.id}")
            ids.add(piece.id)
            self._by_position[piece.position] = piece

    @classmethod
    def initial(cls) -> "Board":
        """Set up the starting position.

        Green occupies ranks 0-3 (top), Red ranks 6-9 (bottom).
        """
        pieces: List[Piece] = []

        def add(piece_type: PieceType, color: Color, file: int, rank: int) -> None:
            pieces.append(Piece(f"piece-{len(pieces)}", piece_type, color, Position(file, rank)))

        for color in (Color.GREEN, Color.RED):
            back = 9 if color == Color.RED else 0
            cannon_rank = 7 if color == Color.RED else 2
            soldier_rank = 6 if color == Color.RED else 3

            add(PieceType.CHARIOT, color, 0, back)
            add(PieceType.CHARIOT, color, 8, back)
            add(PieceType.HORSE, color, 1, back)
            add(PieceType.HORSE, color, 7, back)
            add(PieceType.ELEPHANT, color, 2, back)
            add(PieceType.ELEPHANT, color, 6, back)
            add(PieceType.ADVISOR, color, 3, back)
            add(PieceType.ADVISOR, color, 5, back)
            add(PieceType.GENERAL, color, 4, back)
            add(PieceType.CANNON, color, 1, cannon_rank)
            add(PieceType.CANNON, color, 7, cannon_rank)
            for file in range(0, FILES, 2):
                add(PieceType.SOLDIER, color, file, soldier_rank)

        return cls(pieces)

    @classmethod
    def from_setup(cls, setup: Dict[str, str]) -> "Board":
        """Build a board from a square -> piece code mapping.

        Args:
            setup: e.g. {"e10": "rG", "e1": "gG", "a10": "rR"}. A code is a
                color letter ("r" or "g") followed by a type letter
                (G, A, E, H, R, C, S).

        Raises:
            ValueError: on a malformed square or piece code.
        """
        pieces = []
        for index, (square, code) in enumerate(setup.items()):
            position = Position.from_square(square)
            if len(code) != 2 or code[0] not in COLOR_CODES or code[1] not in PIECE_CODES:
                raise ValueError(f"Invalid piece code {code!r} on {square}")
            pieces.append(
                Piece(f"piece-{index}", PIECE_CODES[code[1]], COLOR_CODES[code[0]], position)
            )
        return cls(pieces)

    def to_setup(self) -> Dict[str, str]:
        """Inverse of from_setup()."""
        return {piece.position.to_square(): piece.code for piece in self._pieces}

    @property
    def pieces(self) -> Tuple[Piece, ...]:
        return self._pieces

    def __iter__(self) -> Iterator[Piece]:
        return iter(self._pieces)

    def __len__(self) -> int:
        return len(self._pieces)

    def __contains__(self, piece: object) -> bool:
        if not isinstance(piece, Piece):
            return False
        return self._by_position.get(piece.position) == piece

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return self._pieces == other._pieces

    def __hash__(self) -> int:
        return hash(self._pieces)

    def __repr__(self) -> str:
        return f"Board({len(self._pieces)} pieces)"

    def piece_at(self, position: Position) -> Optional[Piece]:
        return self._by_position.get(position)

    def get_piece(self, file: int, rank: int) -> Optional[Piece]:
        """Get piece at (file, rank)."""
        return self._by_position.get(Position(file, rank))

    def is_occupied(self, position: Position) -> bool:
        return position in self._by_position

    def find_piece(self, piece_id: str) -> Optional[Piece]:
        for piece in self._pieces:
            if piece.id == piece_id:
                return piece
        return None

    def pieces_of(self, color: Color) -> List[Piece]:
        return [p for p in self._pieces if p.color == color]

    def general(self, color: Color) -> Optional[Piece]:
        """Get the General of the given color, or None if it was captured."""
        for piece in self._pieces:
            if piece.piece_type == PieceType.GENERAL and piece.color == color:
                return piece
        return None

    def apply_move(self, move: Move) -> "Board":
        """Return a new board with the move played.

        Any piece on the destination is removed and the piece on the origin
        is relocated. No legality check is done here. If the origin is
        empty the same board is returned.
        """
        mover = self._by_position.get(move.from_pos)
        if mover is None:
            return self
        pieces = []
        for piece in self._pieces:
            if piece.position == move.to_pos:
                continue
            if piece is mover:
                piece = piece.moved_to(move.to_pos)
            pieces.append(piece)
        return Board(pieces)

    def grid(self) -> List[List[Optional[str]]]:
        """Board as RANKS rows of FILES piece codes, rank 0 first."""
        rows: List[List[Optional[str]]] = [[None] * FILES for _ in range(RANKS)]
        for piece in self._pieces:
            rows[piece.position.rank][piece.position.file] = piece.code
        return rows

    def __str__(self) -> str:
        lines = []
        for rank, row in enumerate(self.grid()):
            cells = " ".join(code if code else " ." for code in row)
            lines.append(f"{rank + 1:>2} {cells}")
        lines.append("   " + " ".join(f" {letter}" for letter in FILE_LETTERS))
        return "\n".join(lines)
