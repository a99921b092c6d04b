"""
Capturing/attacking rules: "is this square attacked by that color?"

Attack patterns are tested per piece kind directly from the target square outwards.
They never call move generation, since king move generation itself asks this module which squares are safe.
"""

from typing import Callable, Optional

from src.rules.board import Board
from src.rules.pieces import Color, PieceKind
from src.rules.square import Square

Vector = tuple[int, int]

# (d_rank, d_file)
DIAGONALS: list[Vector] = [(1, 1), (1, -1), (-1, 1), (-1, -1)]
STRAIGHTS: list[Vector] = [(1, 0), (-1, 0), (0, 1), (0, -1)]
KNIGHT_JUMPS: list[Vector] = [
    (2, 1),
    (2, -1),
    (-2, 1),
    (-2, -1),
    (1, 2),
    (1, -2),
    (-1, 2),
    (-1, -2),
]
KING_STEPS: list[Vector] = DIAGONALS + STRAIGHTS


def raycasting_attack(
    square: Square,
    by_color: Color,
    by_kinds: tuple[PieceKind, ...],
    board: Board,
    directions: list[Vector],
    ignore_square: Optional[Square] = None,
) -> bool:
    """
    Raycasting algorithm for attacks.
    ---

    Walk away from the target square along every direction until the first occupied square or the edge of the board.
    The square is attacked if that first piece is one of `by_kinds` and belongs to `by_color`.

    `ignore_square` is looked straight through, as if it were empty (a king stepping away along a ray still stands on
    its old square while we test the destination).
    """
    for d_rank, d_file in directions:
        target_square = square.offset(d_rank, d_file)
        while target_square.is_within_bounds():
            piece_found = board.piece_at(target_square)
            if piece_found is not None and target_square != ignore_square:
                if piece_found.color == by_color and piece_found.kind in by_kinds:
                    return True
                break
            target_square = target_square.offset(d_rank, d_file)
    return False


def single_step_attack(
    square: Square,
    by_color: Color,
    by_kind: PieceKind,
    board: Board,
    deltas: list[Vector],
) -> bool:
    """The equivalent of raycasting for pawns, kings, and knights, which only ever reach a single step away"""
    for d_rank, d_file in deltas:
        target_square = square.offset(d_rank, d_file)
        if not target_square.is_within_bounds():
            continue
        piece_found = board.piece_at(target_square)
        if piece_found is not None and piece_found.is_a(by_kind, by_color):
            return True
    return False


def is_attacked_by_pawn(
    square: Square, by_color: Color, board: Board, ignore_square: Optional[Square] = None
) -> bool:
    """
    Pawns take diagonally forward only.
    ----

    NOTE: Pawn moves are not symmetric, so to check IF a white pawn attacks your square -->
    Must look one rank DOWN the board, i.e. the vectors are the opposite of the pawn's own capture vectors.
    """
    behind = -by_color.forward
    return single_step_attack(
        square, by_color, PieceKind.PAWN, board, [(behind, 1), (behind, -1)]
    )


def is_attacked_by_knight(
    square: Square, by_color: Color, board: Board, ignore_square: Optional[Square] = None
) -> bool:
    return single_step_attack(square, by_color, PieceKind.KNIGHT, board, KNIGHT_JUMPS)


def is_attacked_by_king(
    square: Square, by_color: Color, board: Board, ignore_square: Optional[Square] = None
) -> bool:
    return single_step_attack(square, by_color, PieceKind.KING, board, KING_STEPS)


def is_attacked_by_bishop(
    square: Square, by_color: Color, board: Board, ignore_square: Optional[Square] = None
) -> bool:
    return raycasting_attack(
        square, by_color, (PieceKind.BISHOP,), board, DIAGONALS, ignore_square
    )


def is_attacked_by_rook(
    square: Square, by_color: Color, board: Board, ignore_square: Optional[Square] = None
) -> bool:
    return raycasting_attack(
        square, by_color, (PieceKind.ROOK,), board, STRAIGHTS, ignore_square
    )


def is_attacked_by_queen(
    square: Square, by_color: Color, board: Board, ignore_square: Optional[Square] = None
) -> bool:
    """The Queen combines the rook lines and the bishop diagonals"""
    return raycasting_attack(
        square, by_color, (PieceKind.QUEEN,), board, KING_STEPS, ignore_square
    )


# --- STRATEGY PATTERN: ATTACKING RULES ---
IsAttackedFn = Callable[[Square, Color, Board, Optional[Square]], bool]
ATTACK_RULES: dict[PieceKind, IsAttackedFn] = {
    PieceKind.PAWN: is_attacked_by_pawn,
    PieceKind.KNIGHT: is_attacked_by_knight,
    PieceKind.BISHOP: is_attacked_by_bishop,
    PieceKind.ROOK: is_attacked_by_rook,
    PieceKind.QUEEN: is_attacked_by_queen,
    PieceKind.KING: is_attacked_by_king,
}


def is_attacked(
    board: Board,
    square: Square,
    by_color: Color,
    ignore_square: Optional[Square] = None,
) -> bool:
    """True if any piece of `by_color` could pseudo-legally capture on `square`"""
    return any(
        attack_rule(square, by_color, board, ignore_square)
        for attack_rule in ATTACK_RULES.values()
    )


def is_in_check(board: Board, color: Color) -> bool:
    return is_attacked(board, board.king_square(color), color.opponent())
