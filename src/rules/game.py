"""
The GameState is the entrypoint into the rules engine for the service layer.
It is responsible for orchestrating all the rules required to play a turn: checking legality, applying the move
(captures, castling, en passant, promotion), bookkeeping for draws, and computing the outcome after every turn.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum, auto
from typing import Optional, Self

from src.core.exceptions import IllegalMoveError, InvalidFENError, StateError
from src.rules.attacks import is_in_check
from src.rules.board import Board
from src.rules.castling import (
    CASTLING_RULES,
    CastlingDirection,
    CastlingRights,
    castling_directions,
)
from src.rules.fen import FENState
from src.rules.legality import has_legal_move, legal_moves
from src.rules.moves import Move, MoveContext, MoveRecord, is_promotion_move
from src.rules.notation import move_text, position_key
from src.rules.outcome import (
    Outcome,
    OutcomeStatus,
    is_fifty_move_rule,
    is_insufficient_material,
    is_threefold_repetition,
)
from src.rules.pieces import PROMOTION_OPTIONS, Color, Piece, PieceKind
from src.rules.square import Square

logger = logging.getLogger(__name__)


class Phase(Enum):
    AWAITING_SELECTION = auto()
    PIECE_SELECTED = auto()
    AWAITING_PROMOTION_CHOICE = auto()
    GAME_OVER = auto()


@dataclass
class GameState:
    board: Board
    turn: Color = Color.WHITE
    castling_rights: CastlingRights = field(default_factory=CastlingRights)
    en_passant_target: Optional[Square] = None
    halfmove_clock: int = 0
    fullmove_number: int = 1
    position_history: list[str] = field(default_factory=list)
    move_history: list[MoveRecord] = field(default_factory=list)
    phase: Phase = Phase.AWAITING_SELECTION
    outcome: Outcome = field(default_factory=Outcome)
    selected_square: Optional[Square] = None
    pending_promotion: Optional[Square] = None

    # --- CREATION ---
    @classmethod
    def new_game(cls) -> Self:
        """Standard initial placement, White to move"""
        return cls.from_fen(FENState.starting_position().to_fen())

    @classmethod
    def from_fen(cls, fen: str) -> Self:
        """
        Start a game from an arbitrary position.
        ----

        FEN does not say which pieces have moved, so infer it:
        * a king or rook without a matching castling right counts as moved
        * a pawn off its starting rank has moved
        * the pawn that just double pushed (behind the en passant square) is the one that may be taken en passant

        Raises InvalidFENError for a position that cannot occur in a game: a missing or extra king,
        or the side not to move standing in check.
        """
        state = FENState.from_fen(fen)
        board = Board.from_placement(state.placement)
        _assert_reachable_position(board, state.turn)
        _infer_piece_flags(board, state)
        game = cls(
            board=board,
            turn=state.turn,
            castling_rights=state.castling_rights,
            en_passant_target=state.en_passant_target,
            halfmove_clock=state.halfmove_clock,
            fullmove_number=state.fullmove_number,
        )
        game.verify_invariants()
        game.position_history.append(game.get_position_key())
        game._update_outcome()
        return game

    def to_fen(self) -> str:
        return FENState(
            placement=self.board.to_placement(),
            turn=self.turn,
            castling_rights=self.castling_rights,
            en_passant_target=self.en_passant_target,
            halfmove_clock=self.halfmove_clock,
            fullmove_number=self.fullmove_number,
        ).to_fen()

    # --- QUERIES ---
    @property
    def context(self) -> MoveContext:
        return MoveContext(self.en_passant_target, self.castling_rights)

    def get_legal_moves(self, square: Square) -> frozenset[Square]:
        """
        Destination squares the piece on `square` may legally move to.

        Empty for an empty square, for a piece of the side not to move, and whenever the game is not waiting for a move.
        Pure query: calling it never changes the game.
        """
        if self.phase in (Phase.AWAITING_PROMOTION_CHOICE, Phase.GAME_OVER):
            return frozenset()
        piece = self.board.piece_at(square)
        if piece is None or piece.color != self.turn:
            return frozenset()
        moves = legal_moves(square, self.board, self.context)
        return frozenset(move.to_square for move in moves)

    def get_outcome(self) -> Outcome:
        return self.outcome

    def get_position_key(self) -> str:
        return position_key(
            self.board,
            self.turn,
            self.castling_rights,
            self.en_passant_target,
            self.halfmove_clock,
        )

    def get_move_history(self) -> tuple[MoveRecord, ...]:
        return tuple(self.move_history)

    @property
    def is_game_over(self) -> bool:
        return self.phase == Phase.GAME_OVER

    def verify_invariants(self) -> None:
        """Exactly one king of each color. Raises InvariantViolation otherwise."""
        for color in Color:
            self.board.king_square(color)

    # --- SELECTION (the presentation layer's "PieceSelected" phase) ---
    def select_piece(self, square: Square) -> frozenset[Square]:
        """
        Select the piece on `square` and return its legal destinations.
        Selecting a square without a movable piece simply clears the selection.
        """
        self._assert_accepting_moves()
        targets = self.get_legal_moves(square)
        if targets:
            self.selected_square = square
            self.phase = Phase.PIECE_SELECTED
        else:
            self.clear_selection()
        return targets

    def clear_selection(self) -> None:
        if self.phase == Phase.PIECE_SELECTED:
            self.phase = Phase.AWAITING_SELECTION
        self.selected_square = None

    def move_selected(self, target: Square) -> MoveRecord:
        if self.selected_square is None:
            raise StateError("No piece selected.")
        return self.apply_move(self.selected_square, target)

    # --- MOVES ---
    def apply_move(self, from_square: Square, to_square: Square) -> MoveRecord:
        """
        Attempt to make a move
        -----

        1. make sure the game accepts a move and the move is legal (nothing changes otherwise)
        2. update the board (castling moves the rook too, en passant removes the pawn beside the mover)
        3. update en passant / castling rights / halfmove clock
        4. record the move
        5. promotion? wait for the choice. Otherwise finalize the turn and compute the outcome.
        """
        self._assert_accepting_moves()
        move = self._find_legal_move(from_square, to_square)
        piece = self._piece(from_square)
        record = self._create_move_record(move, piece)
        promotes = is_promotion_move(move, self.board)

        self._clear_en_passant_flags(piece.color)
        captured = self._update_board(move)
        self._revoke_castling_rights_if_needed(move, piece, captured)
        self._update_en_passant_target(move, piece)
        self._update_halfmove_clock(piece, captured)
        self.move_history.append(record)
        self.selected_square = None

        if promotes:
            self.pending_promotion = to_square
            self.phase = Phase.AWAITING_PROMOTION_CHOICE
            logger.debug("%s awaits a promotion choice", record.notation_text)
            return record

        self._finalize_turn()
        return record

    def promote_pawn(self, kind: PieceKind) -> MoveRecord:
        """Replace the pawn waiting on the last rank, then finish the turn"""
        if self.pending_promotion is None:
            raise StateError(f"No promotion pending. phase: {self.phase.name.lower()}")
        if kind not in PROMOTION_OPTIONS:
            raise IllegalMoveError(
                f"Cannot promote to {kind.name.lower()}. Pick one of "
                f"{', '.join(option.name.lower() for option in PROMOTION_OPTIONS)}."
            )

        pawn = self.board.remove_piece(self.pending_promotion)
        assert pawn is not None
        promoted = Piece(kind, pawn.color, has_moved=True)
        self.board.place_piece(promoted, self.pending_promotion)

        pending = replace(self.move_history[-1], promotion_kind=kind)
        record = replace(pending, notation_text=move_text(pending))
        self.move_history[-1] = record
        self.pending_promotion = None

        self._finalize_turn()
        return record

    # -- PRIVATE HELPERS ---
    def _assert_accepting_moves(self) -> None:
        if self.phase == Phase.GAME_OVER:
            raise StateError(f"Game is over. outcome: {self.outcome.status.name.lower()}")
        if self.phase == Phase.AWAITING_PROMOTION_CHOICE:
            raise StateError("Waiting for a promotion choice first.")

    def _piece(self, square: Square) -> Piece:
        piece = self.board.piece_at(square)
        if piece is None:
            raise IllegalMoveError(f"There is no piece on {square}.")
        return piece

    def _find_legal_move(self, from_square: Square, to_square: Square) -> Move:
        piece = self._piece(from_square)
        if piece.color != self.turn:
            raise IllegalMoveError(
                f"It is {self.turn.name.lower()}'s turn, the piece on {from_square} is {piece.color.name.lower()}."
            )
        for move in legal_moves(from_square, self.board, self.context):
            if move.to_square == to_square:
                return move
        raise IllegalMoveError(f"Move not allowed: {from_square}{to_square}")

    def _create_move_record(self, move: Move, piece: Piece) -> MoveRecord:
        """Snapshot of the move before the board gets updated."""
        direction = move.castling_direction
        record = MoveRecord(
            from_square=move.from_square,
            to_square=move.to_square,
            piece_kind=piece.kind,
            is_capture=move.is_en_passant or not self.board.is_empty(move.to_square),
            is_en_passant_capture=move.is_en_passant,
            castling=direction.side if direction else None,
        )
        return replace(record, notation_text=move_text(record))

    def _clear_en_passant_flags(self, color: Color) -> None:
        """A pawn may only be taken en passant on the very next move, so your own flags expire when you move."""
        for _, piece in self.board.pieces():
            if piece.color == color:
                piece.en_passant_eligible = False

    def _update_board(self, move: Move) -> Optional[Piece]:
        """Move the piece(s). Returns the captured piece, if any."""
        if move.castling_direction is not None:
            self._move_castling_pieces(move.castling_direction)
            return None

        captured = None
        if move.is_en_passant:
            # the pawn taken stands beside the mover: mover's rank, target's file
            beside = Square(move.from_square.rank, move.to_square.file)
            captured = self.board.remove_piece(beside)
        captured = self.board.remove_piece(move.to_square) or captured

        moved = self.board.move_piece(move.from_square, move.to_square)
        moved.has_moved = True
        return captured

    def _move_castling_pieces(self, direction: CastlingDirection) -> None:
        """Move both the King and the Rook"""
        squares = CASTLING_RULES[direction]
        rook = self.board.move_piece(squares.rook_from, squares.rook_to)
        king = self.board.move_piece(squares.king_from, squares.king_to)
        rook.has_moved = True
        king.has_moved = True

    def _revoke_castling_rights_if_needed(
        self, move: Move, piece: Piece, captured: Optional[Piece]
    ) -> None:
        """
        1. If you are moving your king (castling included) --> revoke both
        2. If you are moving a rook off its corner --> revoke the right on that side
        3. If you are taking your opponent's rook on its corner --> revoke your opponent's right on that side
        """
        if piece.kind == PieceKind.KING:
            self.castling_rights.revoke_all(piece.color)

        if piece.kind == PieceKind.ROOK:
            self.castling_rights.revoke_for_rook_square(move.from_square)

        if captured is not None and captured.kind == PieceKind.ROOK:
            self.castling_rights.revoke_for_rook_square(move.to_square)

    def _update_en_passant_target(self, move: Move, piece: Piece) -> None:
        """A two-square pawn push creates the en passant square (the one passed over). Anything else clears it."""
        ranks_moved = abs(move.to_square.rank - move.from_square.rank)
        if piece.kind == PieceKind.PAWN and ranks_moved == 2:
            piece.en_passant_eligible = True
            self.en_passant_target = move.from_square.offset(piece.color.forward, 0)
        else:
            self.en_passant_target = None

    def _update_halfmove_clock(self, piece: Piece, captured: Optional[Piece]) -> None:
        if piece.kind == PieceKind.PAWN or captured is not None:
            self.halfmove_clock = 0
        else:
            self.halfmove_clock += 1

    def _finalize_turn(self) -> None:
        """
        NOTE flip the color to move BEFORE writing the position key and computing the outcome:
        both describe the position from the point of view of the side that moves next.
        """
        if self.turn == Color.BLACK:
            self.fullmove_number += 1
        self.turn = self.turn.opponent()
        self.verify_invariants()
        self.position_history.append(self.get_position_key())
        self._update_outcome()

    def _update_outcome(self) -> None:
        self.outcome = self._compute_outcome()
        if self.outcome.is_game_over:
            self.phase = Phase.GAME_OVER
            logger.info(
                "game over: %s (winner: %s)",
                self.outcome.status.name.lower(),
                self.outcome.winner.name.lower() if self.outcome.winner else "-",
            )
        else:
            self.phase = Phase.AWAITING_SELECTION

    def _compute_outcome(self) -> Outcome:
        """Checks run in this order. The first one that applies decides the outcome."""
        side = self.turn
        in_check = is_in_check(self.board, side)
        if not has_legal_move(self.board, side, self.context):
            if in_check:
                return Outcome.checkmate(winner=side.opponent())
            return Outcome(OutcomeStatus.STALEMATE)

        if is_threefold_repetition(self.position_history):
            return Outcome(OutcomeStatus.DRAW_REPETITION)

        if is_fifty_move_rule(self.halfmove_clock):
            return Outcome(OutcomeStatus.DRAW_FIFTY_MOVE_RULE)

        if is_insufficient_material(self.board):
            return Outcome(OutcomeStatus.DRAW_INSUFFICIENT_MATERIAL)

        if in_check:
            return Outcome.check(side)

        return Outcome()


def _assert_reachable_position(board: Board, turn: Color) -> None:
    for color in Color:
        kings = board.locate_pieces(PieceKind.KING, color)
        if len(kings) != 1:
            raise InvalidFENError(
                f"Position needs exactly one {color.name.lower()} king, found {len(kings)}."
            )
    if is_in_check(board, turn.opponent()):
        raise InvalidFENError(
            f"{turn.opponent().name.capitalize()} is in check but it is not their move."
        )


def _infer_piece_flags(board: Board, state: FENState) -> None:
    """has_moved / en_passant_eligible are not part of a FEN record, so reconstruct them."""
    for direction, squares in CASTLING_RULES.items():
        rook = board.piece_at(squares.rook_from)
        if rook is not None and not state.castling_rights.has(direction):
            rook.has_moved = True

    for color in Color:
        home = CASTLING_RULES[castling_directions(color)[0]].king_from
        for square in board.locate_pieces(PieceKind.KING, color):
            if square != home or not state.castling_rights.has_any(color):
                board.position[square].has_moved = True

    for square, piece in board.pieces():
        if piece.kind == PieceKind.PAWN and square.rank != piece.color.pawn_rank:
            piece.has_moved = True

    if state.en_passant_target is not None:
        mover = state.turn.opponent()
        pushed = state.en_passant_target.offset(mover.forward, 0)
        pawn = board.piece_at(pushed)
        if pawn is not None and pawn.is_a(PieceKind.PAWN, mover):
            pawn.en_passant_eligible = True
