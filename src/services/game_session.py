"""Orchestration of communication from API models to the rules engine and the move-search provider (and the reverse direction)."""

import logging
from typing import Optional
from uuid import UUID, uuid4

from src.api.models import (
    GameResponse,
    LegalMovesRequest,
    LegalMovesResponse,
    MoveRequest,
    PromotionRequest,
    SelectPieceRequest,
)
from src.core import shared_types
from src.core.config import SessionConfig
from src.core.exceptions import (
    IllegalMoveError,
    NotationError,
    ProviderError,
    StateError,
)
from src.rules.game import GameState, Phase
from src.rules.moves import MoveRecord
from src.rules.notation import (
    CoordinateMove,
    coordinate_history,
    parse_coordinate_move,
)
from src.rules.pieces import PROMOTION_OPTIONS, Color, PieceKind
from src.rules.square import Square
from src.services.providers import MoveSearchProvider, request_best_move

logger = logging.getLogger(__name__)


class GameSession:
    """One game, its settings, and (for games against the computer) the move-search provider."""

    def __init__(
        self, config: SessionConfig, provider: Optional[MoveSearchProvider] = None
    ) -> None:
        if config.plays_computer and provider is None:
            raise StateError("A game against the computer needs a move-search provider.")

        self.session_id: UUID = uuid4()
        self.config = config
        self.provider = provider
        self.game = (
            GameState.from_fen(config.starting_fen)
            if config.starting_fen is not None
            else GameState.new_game()
        )
        self._play_opening_book(config.opening_book)
        logger.info(
            "session %s started: opponent=%s personality=%s",
            self.session_id,
            config.opponent,
            config.personality,
        )

    # -- API logic ---
    def get_game_state(self) -> GameResponse:
        return self._create_game_response()

    def legal_moves(self, request: LegalMovesRequest) -> LegalMovesResponse:
        """Legal destinations for the piece on the requested square."""
        square = Square.from_algebraic(request.square)
        targets = self.game.get_legal_moves(square)
        return self._create_legal_moves_response(square, targets)

    def select_piece(self, request: SelectPieceRequest) -> LegalMovesResponse:
        self._assert_human_turn()
        square = Square.from_algebraic(request.square)
        targets = self.game.select_piece(square)
        return self._create_legal_moves_response(square, targets)

    def make_move(self, request: MoveRequest) -> GameResponse:
        """
        Make a move attempt.
        ----
        Without `promote_to`, a pawn reaching the last rank leaves the game waiting for a PromotionRequest.
        """
        self._assert_human_turn()
        move = CoordinateMove(
            Square.from_algebraic(request.from_square),
            Square.from_algebraic(request.to_square),
            PieceKind[request.promote_to.name] if request.promote_to else None,
        )
        self._apply(move, promote_by_default=False)
        return self._create_game_response()

    def promote(self, request: PromotionRequest) -> GameResponse:
        self._assert_human_turn()
        self.game.promote_pawn(PieceKind[request.piece_kind.name])
        return self._create_game_response()

    def play_computer_turn(self) -> GameResponse:
        """
        Ask the provider for a move and play it.
        ----
        Provider output is treated like any other input: it must parse and it must be legal.
        Anything else raises a ProviderError and the game stays exactly as it was.
        """
        if not self.config.plays_computer or self.provider is None:
            raise StateError("This session has no computer opponent.")
        if self.game.is_game_over:
            raise StateError("Game is over.")
        if not self._is_computer_turn():
            raise StateError("It is not the computer's turn.")

        searching_color = shared_types.Color[self.game.turn.name]
        answer = request_best_move(
            self.provider,
            coordinate_history(self.game.get_move_history()),
            self.config.search_depth,
            searching_color,
            timeout=self.config.provider_timeout,
        )
        try:
            move = parse_coordinate_move(answer, self.game.turn)
            record = self._apply(move, promote_by_default=True)
        except (NotationError, IllegalMoveError) as exc:
            logger.warning("rejected provider move %r: %s", answer, exc)
            raise ProviderError(f"Provider suggested an unusable move {answer!r}: {exc}") from exc

        logger.info("computer (%s) played %s", searching_color, record.notation_text)
        return self._create_game_response()

    # -- Internal helpers --
    def _play_opening_book(self, tokens: list[str]) -> None:
        """Opening book moves go through the same checks as every other move."""
        for token in tokens:
            move = parse_coordinate_move(token, self.game.turn)
            self._apply(move, promote_by_default=True)
        if tokens:
            logger.debug("opening book played: %s", " ".join(tokens))

    def _apply(self, move: CoordinateMove, promote_by_default: bool) -> MoveRecord:
        """
        Apply a move and, if it promotes, the promotion in one go.

        A promotion letter on a non-promoting move is rejected before anything changes.
        `promote_by_default`: a promoting move without a letter becomes a queen (book / provider moves).
        """
        promotes = self._is_promotion(move.from_square, move.to_square)
        if move.promotion is not None and not promotes:
            raise IllegalMoveError(
                f"{move.from_square}{move.to_square} is not a promotion move."
            )
        if move.promotion is not None and move.promotion not in PROMOTION_OPTIONS:
            raise IllegalMoveError(f"Cannot promote to {move.promotion.name.lower()}.")

        record = self.game.apply_move(move.from_square, move.to_square)
        if self.game.phase != Phase.AWAITING_PROMOTION_CHOICE:
            return record

        if move.promotion is not None:
            return self.game.promote_pawn(move.promotion)
        if promote_by_default:
            return self.game.promote_pawn(PieceKind.QUEEN)
        return record

    def _is_promotion(self, from_square: Square, to_square: Square) -> bool:
        piece = self.game.board.piece_at(from_square)
        return (
            piece is not None
            and piece.kind == PieceKind.PAWN
            and to_square.rank == piece.color.promotion_rank
        )

    def _is_computer_turn(self) -> bool:
        return (
            self.config.plays_computer
            and self.game.turn == Color[self.config.computer_color.name]
        )

    def _assert_human_turn(self) -> None:
        if self._is_computer_turn():
            raise StateError("It is the computer's turn.")

    def _create_legal_moves_response(
        self, square: Square, targets: frozenset[Square]
    ) -> LegalMovesResponse:
        return LegalMovesResponse(
            session_id=self.session_id,
            square=square.to_algebraic(),
            color=shared_types.Color[self.game.turn.name],
            legal_moves=sorted(target.to_algebraic() for target in targets),
        )

    def _create_game_response(self) -> GameResponse:
        """Convert the GameState into a GameResponse."""
        outcome = self.game.get_outcome()
        return GameResponse(
            session_id=self.session_id,
            fen_state=self.game.to_fen(),
            position_key=self.game.get_position_key(),
            turn=shared_types.Color[self.game.turn.name],
            phase=shared_types.Phase[self.game.phase.name],
            status=shared_types.Status[outcome.status.name],
            status_color=shared_types.Color[outcome.color.name] if outcome.color else None,
            selected_square=(
                self.game.selected_square.to_algebraic()
                if self.game.selected_square
                else None
            ),
            move_history=[record.notation_text for record in self.game.get_move_history()],
            opponent=self.config.opponent,
            personality=self.config.personality,
        )
