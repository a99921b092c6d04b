"""
Type definitions used across layers
"""

from enum import StrEnum


class Status(StrEnum):
    IN_PROGRESS = "in progress"
    CHECK = "check"
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"
    DRAW_REPETITION = "draw by repetition"
    DRAW_FIFTY_MOVE_RULE = "draw by 50 moves"
    DRAW_INSUFFICIENT_MATERIAL = "draw by insufficient material"


class Phase(StrEnum):
    AWAITING_SELECTION = "awaiting selection"
    PIECE_SELECTED = "piece selected"
    AWAITING_PROMOTION_CHOICE = "awaiting promotion choice"
    GAME_OVER = "game over"


# --- NOTE: the rules layer (src/rules/pieces.py) has its own Color and PieceKind enums.
# --- These string versions are what crosses the boundary; the imports show which one is used where.


class Color(StrEnum):
    WHITE = "white"
    BLACK = "black"


class PieceKind(StrEnum):
    PAWN = "pawn"
    KNIGHT = "knight"
    BISHOP = "bishop"
    ROOK = "rook"
    QUEEN = "queen"
    KING = "king"


class OpponentType(StrEnum):
    HUMAN = "human"
    COMPUTER = "computer"


class Personality(StrEnum):
    STANDARD = "standard"
    AGGRESSIVE = "aggressive"
    DEFENSIVE = "defensive"
