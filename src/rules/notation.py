"""
Encodings of positions and moves.

* Position key: FEN-like snapshot used for repetition detection.
* Move text: the human readable text stored with every MoveRecord.
* Coordinate notation: what the move-search provider and opening books speak ("e2e4", "e7e8q", "O-O").
"""

import re
from dataclasses import dataclass
from typing import Iterable, Optional

from src.core.exceptions import NotationError
from src.rules.board import Board
from src.rules.castling import (
    CASTLING_RULES,
    CastlingDirection,
    CastlingRights,
    CastlingSide,
)
from src.rules.moves import MoveRecord
from src.rules.pieces import FEN_TO_PIECE, PIECE_TO_FEN, Color, PieceKind
from src.rules.square import BOARD_SIZE, Square

COORDINATE_PATTERN = re.compile(r"^([a-h][1-8])([a-h][1-8])([nbrq])?$")


# --- POSITION KEY ---
def position_key(
    board: Board,
    turn: Color,
    castling_rights: CastlingRights,
    en_passant_target: Optional[Square],
    halfmove_clock: int,
) -> str:
    """
    <placement> <active color> <castling rights> <en passant square> <halfmove clock>

    Unlike a FEN string, placement runs from rank index 0 (White's back rank) up to rank index 7.
    """
    placement = "/".join(board.rank_to_fen(rank) for rank in range(BOARD_SIZE))
    active_color = "w" if turn == Color.WHITE else "b"
    en_passant = en_passant_target.to_algebraic() if en_passant_target else "-"
    return f"{placement} {active_color} {castling_rights.to_fen()} {en_passant} {halfmove_clock}"


def repetition_key(key: str) -> str:
    """Drop the halfmove clock: it differs between otherwise identical positions"""
    return key.rsplit(" ", 1)[0]


# --- MOVE TEXT ---
def move_text(record: MoveRecord) -> str:
    """
    piece letter (none for pawns) + origin + 'x' if capturing + destination, e.g. "Ng1f3", "e5xd6", "e7e8q".
    Castling is written as O-O / O-O-O.
    """
    if record.castling is not None:
        return record.castling.value

    letter = (
        "" if record.piece_kind == PieceKind.PAWN else PIECE_TO_FEN[record.piece_kind].upper()
    )
    capture = "x" if record.is_capture else ""
    promotion = PIECE_TO_FEN[record.promotion_kind] if record.promotion_kind else ""
    return (
        f"{letter}{record.from_square.to_algebraic()}{capture}"
        f"{record.to_square.to_algebraic()}{promotion}"
    )


# --- COORDINATE NOTATION ---
@dataclass(frozen=True)
class CoordinateMove:
    from_square: Square
    to_square: Square
    promotion: Optional[PieceKind] = None


def parse_coordinate_move(text: Optional[str], color: Color) -> CoordinateMove:
    """
    Coordinate notation: <fromFile><fromRank><toFile><toRank>[promotionLetter], or O-O / O-O-O for `color`.
    Raises NotationError on anything else (including an empty string).
    """
    token = (text or "").strip()
    for side in CastlingSide:
        if token == side.value:
            rule = CASTLING_RULES[CastlingDirection.of(color, side)]
            return CoordinateMove(rule.king_from, rule.king_to)

    match = COORDINATE_PATTERN.match(token.lower())
    if match is None:
        raise NotationError(f"Cannot interpret {text!r} as a move in coordinate notation.")

    from_alg, to_alg, promotion_char = match.groups()
    promotion = FEN_TO_PIECE[promotion_char] if promotion_char else None
    return CoordinateMove(
        Square.from_algebraic(from_alg), Square.from_algebraic(to_alg), promotion
    )


def to_coordinate(record: MoveRecord) -> str:
    if record.castling is not None:
        return record.castling.value
    promotion = PIECE_TO_FEN[record.promotion_kind] if record.promotion_kind else ""
    return f"{record.from_square.to_algebraic()}{record.to_square.to_algebraic()}{promotion}"


def coordinate_history(records: Iterable[MoveRecord]) -> str:
    """The game so far as space separated coordinate moves: the provider's input"""
    return " ".join(to_coordinate(record) for record in records)
