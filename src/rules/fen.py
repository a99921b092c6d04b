"""
Standard FEN records: loading a game from an arbitrary position, and writing the current one back out.
"""

from dataclasses import dataclass, field
from typing import Optional, Self

from src.core.exceptions import InvalidFENError
from src.rules.castling import CASTLING_ORDER, CastlingRights
from src.rules.pieces import FEN_TO_PIECE, Color
from src.rules.square import BOARD_SIZE, FILE_NAMES, Square

STARTING_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"

COLOR_CODES: dict[str, Color] = {"w": Color.WHITE, "b": Color.BLACK}


def is_valid_fen(fen: str) -> bool:
    """Six space separated fields, each of them valid on its own"""
    fields = fen.split(" ")
    if len(fields) != 6:
        return False

    placement, color, castling, en_passant, halfmove_clock, fullmove_number = fields
    checks = (
        is_valid_position(placement),
        is_valid_color_code(color),
        is_valid_castling_rights(castling),
        is_valid_en_passant(en_passant),
        is_valid_move_counter(halfmove_clock),
        is_valid_move_counter(fullmove_number),
    )
    return all(checks)


def is_valid_position(placement: str) -> bool:
    """Eight ranks, and every rank adds up to exactly eight squares (pieces + runs of empty squares)"""
    ranks = placement.split("/")
    return len(ranks) == BOARD_SIZE and all(_rank_width(rank) == BOARD_SIZE for rank in ranks)


def _rank_width(rank_fen: str) -> Optional[int]:
    width = 0
    for char in rank_fen:
        if char.isdecimal():
            width += int(char)
        elif char.lower() in FEN_TO_PIECE:
            width += 1
        else:
            return None
    return width


def is_valid_color_code(color: str) -> bool:
    return color in COLOR_CODES


def is_valid_castling_rights(castling: str) -> bool:
    """Either '-' (every right revoked), or a non-empty subsequence of KQkq"""
    if castling == "-":
        return True
    remaining = iter("".join(direction.value for direction in CASTLING_ORDER))
    # `in` consumes the iterator, so letters must show up in order and at most once
    return bool(castling) and all(char in remaining for char in castling)


def is_valid_en_passant(en_passant: str) -> bool:
    return en_passant == "-" or is_valid_square(en_passant)


def is_valid_square(square: str) -> bool:
    """a file letter followed by a rank number, e.g. 'e3'"""
    file_char, rank_chars = square[:1], square[1:]
    return (
        file_char != ""
        and file_char in FILE_NAMES
        and rank_chars.isdecimal()
        and 1 <= int(rank_chars) <= BOARD_SIZE
    )


def is_valid_move_counter(counter: str) -> bool:
    return counter.isdecimal()


@dataclass
class FENState:
    """
    Everything a FEN record holds, except the placement is kept as text (the Board parses it).
    ----

    <placement> <side to move> <castling rights> <en passant target> <halfmove clock> <fullmove number>

    ex) the standard starting position:
    rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1
    """

    placement: str
    turn: Color
    castling_rights: CastlingRights = field(default_factory=CastlingRights)
    en_passant_target: Optional[Square] = None
    halfmove_clock: int = 0
    fullmove_number: int = 1

    @classmethod
    def from_fen(cls, fen: str) -> Self:
        if not is_valid_fen(fen):
            raise InvalidFENError(f"Cannot interpret supplied string as FEN: {fen!r}")

        placement, color, castling, en_passant, halfmove_clock, fullmove_number = fen.split(" ")
        return cls(
            placement=placement,
            turn=COLOR_CODES[color],
            castling_rights=CastlingRights.from_fen(castling),
            en_passant_target=None if en_passant == "-" else Square.from_algebraic(en_passant),
            halfmove_clock=int(halfmove_clock),
            fullmove_number=int(fullmove_number),
        )

    def to_fen(self) -> str:
        color = "w" if self.turn == Color.WHITE else "b"
        en_passant = self.en_passant_target.to_algebraic() if self.en_passant_target else "-"
        return (
            f"{self.placement} {color} {self.castling_rights.to_fen()} "
            f"{en_passant} {self.halfmove_clock} {self.fullmove_number}"
        )

    @classmethod
    def starting_position(cls) -> Self:
        return cls.from_fen(STARTING_FEN)
