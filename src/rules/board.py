"""
The Board is pure data plus lookup: which piece stands on which square.

It has no knowledge of the rules. Legality lives in moves.py / attacks.py / legality.py, and only the GameState
(and the legality simulation on a scratch copy) mutates a Board.
"""

from copy import deepcopy
from dataclasses import dataclass, field
from typing import Iterator, Self

from src.core.exceptions import InvariantViolation
from src.rules.pieces import Color, Piece, PieceKind
from src.rules.square import BOARD_SIZE, Square

STARTING_PLACEMENT = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR"


@dataclass
class Board:
    position: dict[Square, Piece] = field(default_factory=dict)

    @classmethod
    def from_placement(cls, placement: str) -> Self:
        """Construct a board using the placement field of a FEN string.

        ex. standard starting position:
        rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR
        means:
        * black pieces are on the 8th rank (rank index 7), starting with a rook on a8
        * ranks 6 through 3 have 8 consecutive empty squares
        * 1st rank (rank index 0) holds the white pieces, again read from the a-file to the h-file.
        """
        position: dict[Square, Piece] = {}
        for rank_idx, fen_one_rank in enumerate(placement.split("/")):
            # FEN string is read from top rank (8th) to bottom rank (1st)
            rank = BOARD_SIZE - 1 - rank_idx
            file = 0
            for character in fen_one_rank:
                if character.isalpha():
                    position[Square(rank, file)] = Piece.from_fen(character)
                    file += 1
                else:
                    # A number denotes the amount of empty squares after each other
                    file += int(character)
        return cls(position)

    @classmethod
    def standard(cls) -> Self:
        return cls.from_placement(STARTING_PLACEMENT)

    def to_placement(self) -> str:
        """Ranks are separated by slashes in FEN string, top rank first."""
        return "/".join(
            self.rank_to_fen(rank) for rank in range(BOARD_SIZE - 1, -1, -1)
        )

    def rank_to_fen(self, rank: int) -> str:
        """FEN string of a single rank: one letter per piece, digits for runs of empty squares."""
        fen_characters: list[str] = []
        empty_count = 0
        for file in range(BOARD_SIZE):
            piece = self.piece_at(Square(rank, file))
            if piece is None:
                empty_count += 1
                continue
            if empty_count > 0:
                fen_characters.append(str(empty_count))
                empty_count = 0
            fen_characters.append(piece.to_fen())

        # if the entire rank is empty, then we still place this number in the string
        if empty_count > 0:
            fen_characters.append(str(empty_count))
        return "".join(fen_characters)

    # --- LOOKUP ---
    def piece_at(self, square: Square) -> Piece | None:
        return self.position.get(square)

    def is_empty(self, square: Square) -> bool:
        return square not in self.position

    def is_enemy(self, square: Square, color: Color) -> bool:
        """True iff the square holds a piece of the opposite color"""
        piece = self.piece_at(square)
        return piece is not None and piece.color != color

    def is_any_occupied(self, squares: list[Square]) -> bool:
        return any(not self.is_empty(square) for square in squares)

    def pieces(self) -> Iterator[tuple[Square, Piece]]:
        """Sorted, so every walk over the board visits squares in the same order"""
        return iter(sorted(self.position.items()))

    def locate_color(self, color: Color) -> list[Square]:
        return [square for square, piece in self.pieces() if piece.color == color]

    def locate_pieces(self, kind: PieceKind, color: Color) -> list[Square]:
        return [square for square, piece in self.pieces() if piece.is_a(kind, color)]

    def king_square(self, color: Color) -> Square:
        kings = self.locate_pieces(PieceKind.KING, color)
        if len(kings) != 1:
            raise InvariantViolation(
                f"Expected exactly one {color.name.lower()} king, found {len(kings)}."
            )
        return kings[0]

    # --- PRIMITIVE MUTATORS (GameState and the legality simulation only) ---
    def place_piece(self, piece: Piece, square: Square) -> None:
        if not square.is_within_bounds():
            raise InvariantViolation(f"Cannot place a piece off the board: {square!r}")
        if not self.is_empty(square):
            raise InvariantViolation(
                f"Square {square} is already occupied by {self.position[square]}."
            )
        self.position[square] = piece

    def remove_piece(self, square: Square) -> Piece | None:
        return self.position.pop(square, None)

    def move_piece(self, from_square: Square, to_square: Square) -> Piece:
        """Relocate a piece to an EMPTY square. Captured pieces must be removed first."""
        piece = self.position.pop(from_square, None)
        if piece is None:
            raise InvariantViolation(f"No piece on {from_square} to move.")
        self.place_piece(piece, to_square)
        return piece

    def copy(self) -> "Board":
        """Independent scratch copy: mutating it never touches the pieces of this board"""
        return deepcopy(self)
