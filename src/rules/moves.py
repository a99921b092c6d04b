"""
Geometry/Base movement rules

Key idea: Use strategy pattern to define pseudo-legal move sets for each piece kind.

Pseudo-legal means "follows the piece's movement pattern and the occupancy rules". Whether the move leaves your own
king in check is decided later by legality.py.
"""

from dataclasses import dataclass, field
from typing import Callable, Optional

from src.rules.attacks import (
    DIAGONALS,
    KING_STEPS,
    KNIGHT_JUMPS,
    STRAIGHTS,
    Vector,
    is_attacked,
)
from src.rules.board import Board
from src.rules.castling import (
    CASTLING_RULES,
    CastlingDirection,
    CastlingRights,
    CastlingSide,
    castling_directions,
)
from src.rules.pieces import Color, Piece, PieceKind
from src.rules.square import Square


@dataclass(frozen=True)
class Move:
    """basic definition of a (candidate) move to be made"""

    from_square: Square
    to_square: Square
    castling_direction: Optional[CastlingDirection] = None
    is_en_passant: bool = False


@dataclass(frozen=True)
class MoveRecord:
    """What the history remembers of a move that was actually played"""

    from_square: Square
    to_square: Square
    piece_kind: PieceKind
    is_capture: bool = False
    is_en_passant_capture: bool = False
    castling: Optional[CastlingSide] = None
    promotion_kind: Optional[PieceKind] = None
    notation_text: str = ""


@dataclass(frozen=True)
class MoveContext:
    """The parts of the game state (besides the board) that some movement rules need"""

    en_passant_target: Optional[Square] = None
    castling_rights: CastlingRights = field(default_factory=CastlingRights)


# --- MOVEMENT RULES ---
def raycasting_move(square: Square, board: Board, directions: list[Vector]) -> list[Move]:
    """
    Raycasting algorithm
    -----

    Define move directions and move along them until we hit another piece or the edge of the board.
    The first occupied square is only included when it holds an opponent's piece (a capture).
    """
    player_color = _color_on(square, board)
    moves: list[Move] = []
    for d_rank, d_file in directions:
        target_square = square.offset(d_rank, d_file)
        while target_square.is_within_bounds():
            if not board.is_empty(target_square):
                if board.is_enemy(target_square, player_color):
                    moves.append(Move(square, target_square))
                break
            moves.append(Move(square, target_square))
            target_square = target_square.offset(d_rank, d_file)
    return moves


def single_step_move(square: Square, board: Board, deltas: list[Vector]) -> list[Move]:
    """Raycasting is for sliding pieces. This is the equivalent for kings and knights that move a single step"""
    player_color = _color_on(square, board)
    moves: list[Move] = []
    for d_rank, d_file in deltas:
        target_square = square.offset(d_rank, d_file)
        if not target_square.is_within_bounds():
            continue
        if board.is_empty(target_square) or board.is_enemy(target_square, player_color):
            moves.append(Move(square, target_square))
    return moves


def candidate_pawn_moves(square: Square, board: Board, context: MoveContext) -> list[Move]:
    """
    A pawn:
    - moves by a single square forward.
    - It can move by two in their first move (so when unmoved on their starting rank)
    - takes diagonally forward
    - takes en passant
    """
    pawn = _piece_on(square, board)
    forward = pawn.color.forward
    moves: list[Move] = []

    # Pawn pushes: never captures
    one_step = square.offset(forward, 0)
    if one_step.is_within_bounds() and board.is_empty(one_step):
        moves.append(Move(square, one_step))

        two_steps = one_step.offset(forward, 0)
        on_start_rank = square.rank == pawn.color.pawn_rank and not pawn.has_moved
        if on_start_rank and two_steps.is_within_bounds() and board.is_empty(two_steps):
            moves.append(Move(square, two_steps))

    # pawns take diagonally:
    for d_file in (1, -1):
        target_square = square.offset(forward, d_file)
        if target_square.is_within_bounds() and board.is_enemy(target_square, pawn.color):
            moves.append(Move(square, target_square))

    moves.extend(en_passant_moves(square, board, context.en_passant_target))
    return moves


def en_passant_moves(
    square: Square, board: Board, en_passant_target: Optional[Square]
) -> list[Move]:
    """
    The pawn on `square` may take en passant if the target lies diagonally forward of it (relative to its own color),
    and the square beside it (same rank as the mover, file of the target) holds an enemy pawn that just double pushed.
    """
    if en_passant_target is None:
        return []

    pawn = _piece_on(square, board)
    is_diagonal_forward = (
        en_passant_target.rank == square.rank + pawn.color.forward
        and abs(en_passant_target.file - square.file) == 1
    )
    if not is_diagonal_forward or not board.is_empty(en_passant_target):
        return []

    victim = board.piece_at(Square(square.rank, en_passant_target.file))
    if (
        victim is None
        or not victim.is_a(PieceKind.PAWN, pawn.color.opponent())
        or not victim.en_passant_eligible
    ):
        return []
    return [Move(square, en_passant_target, is_en_passant=True)]


def candidate_knight_moves(square: Square, board: Board, context: MoveContext) -> list[Move]:
    """Knights always move such that |delta_rank| + |delta_file| = 3"""
    return single_step_move(square, board, KNIGHT_JUMPS)


def candidate_bishop_moves(square: Square, board: Board, context: MoveContext) -> list[Move]:
    """Bishops move diagonally: |delta_rank| = |delta_file|"""
    return raycasting_move(square, board, DIAGONALS)


def candidate_rook_moves(square: Square, board: Board, context: MoveContext) -> list[Move]:
    """Rooks move either horizontally or vertically"""
    return raycasting_move(square, board, STRAIGHTS)


def candidate_queen_moves(square: Square, board: Board, context: MoveContext) -> list[Move]:
    """
    The Queen combines the rook moves (horizontal + vertical movements) and bishop moves (diagonal movement)
    """
    return raycasting_move(square, board, DIAGONALS + STRAIGHTS)


def candidate_king_moves(square: Square, board: Board, context: MoveContext) -> list[Move]:
    """
    The king moves by a single square at the time, but never onto a square the opponent attacks.

    The king's own square counts as vacated while testing, otherwise stepping straight away from a rook would look safe.
    Castling is modelled as a special (two-square) king move.
    """
    king = _piece_on(square, board)
    opponent = king.color.opponent()
    moves = [
        move
        for move in single_step_move(square, board, KING_STEPS)
        if not is_attacked(board, move.to_square, opponent, ignore_square=square)
    ]
    if not king.has_moved:
        moves.extend(candidate_castling_moves(square, board, context.castling_rights))
    return moves


def candidate_castling_moves(
    square: Square, board: Board, castling_rights: CastlingRights
) -> list[Move]:
    """
    **you are allowed to castle if**

    * Castling rights in that direction are not yet revoked.
    * Neither the king nor the rook has moved (and the rook is still on its corner).
    * All squares between the king and the rook are empty.
    * The king is not in check, and does not pass through or land on an attacked square.
    """
    king = _piece_on(square, board)
    opponent = king.color.opponent()
    moves: list[Move] = []
    for direction in castling_directions(king.color):
        rule = CASTLING_RULES[direction]
        if square != rule.king_from or not castling_rights.has(direction):
            continue

        rook = board.piece_at(rule.rook_from)
        if rook is None or not rook.is_a(PieceKind.ROOK, king.color) or rook.has_moved:
            continue

        if board.is_any_occupied(rule.squares_between()):
            continue

        if any(is_attacked(board, sq, opponent) for sq in rule.king_path()):
            continue

        moves.append(Move(square, rule.king_to, castling_direction=direction))
    return moves


# -- STRATEGY PATTERN: MOVEMENT RULES ---
CandidateMovesFn = Callable[[Square, Board, MoveContext], list[Move]]
MOVEMENT_RULES: dict[PieceKind, CandidateMovesFn] = {
    PieceKind.PAWN: candidate_pawn_moves,
    PieceKind.KNIGHT: candidate_knight_moves,
    PieceKind.BISHOP: candidate_bishop_moves,
    PieceKind.ROOK: candidate_rook_moves,
    PieceKind.QUEEN: candidate_queen_moves,
    PieceKind.KING: candidate_king_moves,
}


def pseudo_legal_moves(
    square: Square, board: Board, context: Optional[MoveContext] = None
) -> list[Move]:
    """Dispatch on the kind of the piece standing on `square`. An empty square has no moves."""
    piece = board.piece_at(square)
    if piece is None:
        return []
    movement_rule = MOVEMENT_RULES[piece.kind]
    return movement_rule(square, board, context or MoveContext())


def is_promotion_move(move: Move, board: Board) -> bool:
    """check if the move is a pawn move reaching the last rank for its color"""
    piece = board.piece_at(move.from_square)
    return (
        piece is not None
        and piece.kind == PieceKind.PAWN
        and move.to_square.rank == piece.color.promotion_rank
    )


def _piece_on(square: Square, board: Board) -> Piece:
    piece = board.piece_at(square)
    if piece is None:
        raise ValueError(f"No piece on {square} to generate moves for.")
    return piece


def _color_on(square: Square, board: Board) -> Color:
    return _piece_on(square, board).color
