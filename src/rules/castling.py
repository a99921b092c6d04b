"""Helpers for implementing Castling rules. Need to be imported by multiple sources"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Self

from src.rules.pieces import Color
from src.rules.square import Square


class CastlingSide(Enum):
    KINGSIDE = "O-O"
    QUEENSIDE = "O-O-O"


class CastlingDirection(Enum):
    """The four castling directions. Values represent their encodings in the position key / FEN string."""

    WHITE_KING_SIDE = "K"
    WHITE_QUEEN_SIDE = "Q"
    BLACK_KING_SIDE = "k"
    BLACK_QUEEN_SIDE = "q"

    @property
    def color(self) -> Color:
        return Color.WHITE if self.value.isupper() else Color.BLACK

    @property
    def side(self) -> CastlingSide:
        return (
            CastlingSide.KINGSIDE
            if self.value.lower() == "k"
            else CastlingSide.QUEENSIDE
        )

    @classmethod
    def of(cls, color: Color, side: CastlingSide) -> "CastlingDirection":
        return next(
            direction
            for direction in cls
            if direction.color == color and direction.side == side
        )


CASTLING_ORDER: tuple[CastlingDirection, ...] = (
    CastlingDirection.WHITE_KING_SIDE,
    CastlingDirection.WHITE_QUEEN_SIDE,
    CastlingDirection.BLACK_KING_SIDE,
    CastlingDirection.BLACK_QUEEN_SIDE,
)


@dataclass(frozen=True)
class CastlingSquares:
    """
    Store the squares where king/rook start from/end up in by castling.
    NOTE: If castling rights have not been revoked, we already know the king / rook are still at their starting squares.
    """

    king_from: Square
    king_to: Square
    rook_from: Square
    rook_to: Square

    @classmethod
    def from_algebraic(cls, k_from: str, k_to: str, r_from: str, r_to: str) -> Self:
        """Convenience method: to make mapping shown below (from CastlingDirection) more readable"""
        king_from = Square.from_algebraic(k_from)
        king_to = Square.from_algebraic(k_to)
        rook_from = Square.from_algebraic(r_from)
        rook_to = Square.from_algebraic(r_to)
        return cls(king_from, king_to, rook_from, rook_to)

    def squares_between(self) -> list[Square]:
        """Every square strictly between king and rook. All of them must be empty to castle."""
        low, high = sorted([self.king_from.file, self.rook_from.file])
        return [Square(self.king_from.rank, file) for file in range(low + 1, high)]

    def king_path(self) -> list[Square]:
        """The squares the king stands on, passes through and lands on. None of them may be attacked."""
        step = 1 if self.king_to.file > self.king_from.file else -1
        return [
            Square(self.king_from.rank, file)
            for file in range(self.king_from.file, self.king_to.file + step, step)
        ]


# The moves (in classical chess) made when castling
CASTLING_RULES: dict[CastlingDirection, CastlingSquares] = {
    CastlingDirection.WHITE_KING_SIDE: CastlingSquares.from_algebraic(
        "e1", "g1", "h1", "f1"
    ),
    CastlingDirection.WHITE_QUEEN_SIDE: CastlingSquares.from_algebraic(
        "e1", "c1", "a1", "d1"
    ),
    CastlingDirection.BLACK_KING_SIDE: CastlingSquares.from_algebraic(
        "e8", "g8", "h8", "f8"
    ),
    CastlingDirection.BLACK_QUEEN_SIDE: CastlingSquares.from_algebraic(
        "e8", "c8", "a8", "d8"
    ),
}


def castling_directions(color: Color) -> list[CastlingDirection]:
    return [direction for direction in CASTLING_ORDER if direction.color == color]


@dataclass
class CastlingRights:
    """Rights only ever get revoked during a game, never granted back."""

    rights: dict[CastlingDirection, bool] = field(
        default_factory=lambda: {direction: True for direction in CastlingDirection}
    )

    @classmethod
    def from_fen(cls, castle_fen: str) -> Self:
        """parse the part of the FEN string / position key that encodes castling rights"""
        return cls(
            {direction: (direction.value in castle_fen) for direction in CastlingDirection}
        )

    def to_fen(self) -> str:
        castling_chars = "".join(
            [direction.value for direction in CASTLING_ORDER if self.rights[direction]]
        )
        return castling_chars or "-"

    def has(self, direction: CastlingDirection) -> bool:
        return self.rights[direction]

    def has_any(self, color: Color) -> bool:
        return any(self.rights[direction] for direction in castling_directions(color))

    def revoke(self, direction: CastlingDirection) -> None:
        self.rights[direction] = False

    def revoke_all(self, color: Color) -> None:
        for direction in castling_directions(color):
            self.revoke(direction)

    def revoke_for_rook_square(self, square: Square) -> None:
        """A rook left (or got captured on) its corner: the right on that side is gone for good."""
        for direction, squares in CASTLING_RULES.items():
            if squares.rook_from == square:
                self.revoke(direction)
