"""
Legality = pseudo-legal + "does not leave your own king attacked afterwards".

Every candidate is played out on a scratch copy of the board and the king is tested on that copy.
This one test covers pins, discovered checks, double checks and en passant captures that expose the king.
"""

from typing import Optional

from src.rules.attacks import is_attacked
from src.rules.board import Board
from src.rules.castling import CASTLING_RULES
from src.rules.moves import Move, MoveContext, pseudo_legal_moves
from src.rules.pieces import Color
from src.rules.square import Square


def simulate_move(board: Board, move: Move) -> Board:
    """
    Play the move on a copy of the board and return the copy. The original board is left untouched.

    Same order as the real move: remove captures first (including the en passant victim), then relocate.
    """
    scratch = board.copy()
    if move.castling_direction is not None:
        rule = CASTLING_RULES[move.castling_direction]
        scratch.move_piece(rule.king_from, rule.king_to)
        scratch.move_piece(rule.rook_from, rule.rook_to)
        return scratch

    if move.is_en_passant:
        scratch.remove_piece(Square(move.from_square.rank, move.to_square.file))
    scratch.remove_piece(move.to_square)
    scratch.move_piece(move.from_square, move.to_square)
    return scratch


def is_legal(board: Board, move: Move) -> bool:
    """Make the move on a scratch board, and check whether the mover's king is attacked there"""
    piece = board.piece_at(move.from_square)
    if piece is None:
        return False
    after_move = simulate_move(board, move)
    king_square = after_move.king_square(piece.color)
    return not is_attacked(after_move, king_square, piece.color.opponent())


def legal_moves(
    square: Square, board: Board, context: Optional[MoveContext] = None
) -> list[Move]:
    """Pseudo-legal moves of the piece on `square`, filtered through the simulate-and-check test"""
    return [
        move
        for move in pseudo_legal_moves(square, board, context)
        if is_legal(board, move)
    ]


def all_legal_moves(
    board: Board, color: Color, context: Optional[MoveContext] = None
) -> list[Move]:
    """Every legal move of every piece of `color`"""
    moves: list[Move] = []
    for square in board.locate_color(color):
        moves.extend(legal_moves(square, board, context))
    return moves


def has_legal_move(
    board: Board, color: Color, context: Optional[MoveContext] = None
) -> bool:
    """Stops at the first legal move found, which is all checkmate/stalemate detection needs"""
    return any(
        is_legal(board, move)
        for square in board.locate_color(color)
        for move in pseudo_legal_moves(square, board, context)
    )
