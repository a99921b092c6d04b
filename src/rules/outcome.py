"""How a position stands: still playing, check, or one of the ways a game ends."""

from collections import Counter
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

from src.rules.board import Board
from src.rules.notation import repetition_key
from src.rules.pieces import Color, PieceKind

# 50 moves by each player
FIFTY_MOVE_RULE_HALFMOVES = 100
# the current position plus two earlier occurrences
REPETITION_COUNT = 3


class OutcomeStatus(Enum):
    IN_PROGRESS = auto()
    CHECK = auto()
    CHECKMATE = auto()
    STALEMATE = auto()
    DRAW_REPETITION = auto()
    DRAW_FIFTY_MOVE_RULE = auto()
    DRAW_INSUFFICIENT_MATERIAL = auto()


GAME_OVER_STATUSES = frozenset(
    {
        OutcomeStatus.CHECKMATE,
        OutcomeStatus.STALEMATE,
        OutcomeStatus.DRAW_REPETITION,
        OutcomeStatus.DRAW_FIFTY_MOVE_RULE,
        OutcomeStatus.DRAW_INSUFFICIENT_MATERIAL,
    }
)


@dataclass(frozen=True)
class Outcome:
    """
    `color` means something different per status:
    * CHECK: the side that is in check
    * CHECKMATE: the winner
    * otherwise None
    """

    status: OutcomeStatus = OutcomeStatus.IN_PROGRESS
    color: Optional[Color] = None

    @classmethod
    def check(cls, color_in_check: Color) -> "Outcome":
        return cls(OutcomeStatus.CHECK, color_in_check)

    @classmethod
    def checkmate(cls, winner: Color) -> "Outcome":
        return cls(OutcomeStatus.CHECKMATE, winner)

    @property
    def is_game_over(self) -> bool:
        return self.status in GAME_OVER_STATUSES

    @property
    def winner(self) -> Optional[Color]:
        return self.color if self.status == OutcomeStatus.CHECKMATE else None


def is_threefold_repetition(position_history: list[str]) -> bool:
    """Does the latest key (ignoring the halfmove clock) appear at least twice before in the history?"""
    if not position_history:
        return False
    current = repetition_key(position_history[-1])
    earlier = sum(1 for key in position_history[:-1] if repetition_key(key) == current)
    return earlier >= REPETITION_COUNT - 1


def is_fifty_move_rule(halfmove_clock: int) -> bool:
    return halfmove_clock >= FIFTY_MOVE_RULE_HALFMOVES


def is_insufficient_material(board: Board) -> bool:
    """
    Only these material combinations count as a dead draw:
    * K vs K
    * K+B vs K, K+N vs K
    * K+B vs K+B with both bishops on the same square color
    * K+N+N vs K

    Everything else is presumed sufficient (not exhaustive by FIDE rules).
    """
    material: dict[Color, Counter[PieceKind]] = {color: Counter() for color in Color}
    bishop_squares: dict[Color, list[int]] = {color: [] for color in Color}
    for square, piece in board.pieces():
        if piece.kind == PieceKind.KING:
            continue
        material[piece.color][piece.kind] += 1
        if piece.kind == PieceKind.BISHOP:
            bishop_squares[piece.color].append(square.color_index)

    white, black = material[Color.WHITE], material[Color.BLACK]
    lone_minor = [Counter({PieceKind.BISHOP: 1}), Counter({PieceKind.KNIGHT: 1})]
    two_knights = Counter({PieceKind.KNIGHT: 2})
    bare = Counter()

    # K vs K
    if white == bare and black == bare:
        return True

    # K + minor vs K, K + two knights vs K
    for side, other in ((white, black), (black, white)):
        if other == bare and (side in lone_minor or side == two_knights):
            return True

    # K+B vs K+B, bishops on the same color
    lone_bishop = Counter({PieceKind.BISHOP: 1})
    if white == lone_bishop and black == lone_bishop:
        return bishop_squares[Color.WHITE] == bishop_squares[Color.BLACK]

    return False
