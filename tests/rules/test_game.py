"""Unit tests for /src/rules/game.py"""

import logging
from typing import Callable

import pytest

from src.core.exceptions import (
    IllegalMoveError,
    InvalidFENError,
    StateError,
)
from src.rules.castling import CastlingSide
from src.rules.fen import STARTING_FEN
from src.rules.game import GameState, Phase
from src.rules.outcome import OutcomeStatus
from src.rules.pieces import Color, PieceKind
from src.rules.square import Square

Play = Callable[..., None]


def sq(name: str) -> Square:
    return Square.from_algebraic(name)


def destinations(game: GameState, name: str) -> set[str]:
    return {square.to_algebraic() for square in game.get_legal_moves(sq(name))}


# -- CREATION LOGIC --
def test_new_game(new_game: GameState) -> None:
    assert new_game.to_fen() == STARTING_FEN
    assert new_game.turn == Color.WHITE
    assert new_game.phase == Phase.AWAITING_SELECTION
    assert new_game.get_outcome().status == OutcomeStatus.IN_PROGRESS
    assert new_game.get_move_history() == ()
    # the starting position counts towards repetitions
    assert new_game.position_history == [new_game.get_position_key()]


@pytest.mark.parametrize(
    "fen",
    [
        STARTING_FEN,
        "r3k2r/pppq1ppp/2npbn2/4p3/2B1P3/2NP1N2/PPP2PPP/R1BQ1RK1 b kq - 3 9",
        "rnbqkbnr/ppp1pppp/8/3pP3/8/8/PPPP1PPP/RNBQKBNR w KQkq d6 0 3",
    ],
)
def test_fen_roundtrip(fen: str) -> None:
    assert GameState.from_fen(fen).to_fen() == fen


@pytest.mark.parametrize(
    "fen",
    [
        "8/8/8/8/8/8/8/4K3 w - - 0 1",  # no black king
        "4k3/8/8/8/8/8/8/3KK3 w - - 0 1",  # two white kings
    ],
)
def test_game_needs_one_king_per_color(fen: str) -> None:
    with pytest.raises(InvalidFENError):
        GameState.from_fen(fen)


def test_side_not_to_move_cannot_be_in_check() -> None:
    """Otherwise White could simply take the black king"""
    with pytest.raises(InvalidFENError):
        GameState.from_fen("4k3/8/8/8/8/8/8/4RK2 w - - 0 1")

    game = GameState.from_fen("4k3/8/8/8/8/8/8/4RK2 b - - 0 1")
    assert game.get_outcome().status == OutcomeStatus.CHECK


def test_piece_flags_inferred_from_fen() -> None:
    """Without the right, the rook counts as moved: no queenside castling for White"""
    game = GameState.from_fen("r3k2r/8/8/8/8/8/8/R3K2R w Kq - 0 1")
    assert game.board.piece_at(sq("a1")).has_moved
    assert not game.board.piece_at(sq("h1")).has_moved
    assert destinations(game, "e1") >= {"g1"}
    assert "c1" not in destinations(game, "e1")


def test_en_passant_available_from_fen() -> None:
    game = GameState.from_fen("rnbqkbnr/ppp1pppp/8/3pP3/8/8/PPPP1PPP/RNBQKBNR w KQkq d6 0 3")
    assert destinations(game, "e5") == {"e6", "d6"}


def test_already_finished_position() -> None:
    game = GameState.from_fen("k7/Q7/1K6/8/8/8/8/8 b - - 0 1")
    assert game.is_game_over
    assert game.get_outcome().status == OutcomeStatus.CHECKMATE
    assert game.get_outcome().winner == Color.WHITE


# -- QUERIES --
def test_legal_moves_query_has_no_side_effects(new_game: GameState) -> None:
    first = new_game.get_legal_moves(sq("g1"))
    second = new_game.get_legal_moves(sq("g1"))
    assert first == second == frozenset({sq("f3"), sq("h3")})
    assert new_game.to_fen() == STARTING_FEN
    assert new_game.get_move_history() == ()


def test_no_legal_moves_for_empty_square_or_opponent(new_game: GameState) -> None:
    assert new_game.get_legal_moves(sq("e4")) == frozenset()
    assert new_game.get_legal_moves(sq("e7")) == frozenset()


# -- MOVES --
def test_making_a_move(new_game: GameState) -> None:
    record = new_game.apply_move(sq("e2"), sq("e4"))
    assert record.notation_text == "e2e4"
    assert record.piece_kind == PieceKind.PAWN
    assert not record.is_capture
    assert new_game.turn == Color.BLACK
    assert new_game.to_fen() == "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq e3 0 1"
    assert new_game.get_position_key().endswith(" b KQkq e3 0")
    assert len(new_game.position_history) == 2


def test_fullmove_number_and_halfmove_clock(new_game: GameState, play: Play) -> None:
    play(new_game, "g1f3")
    assert (new_game.halfmove_clock, new_game.fullmove_number) == (1, 1)
    play(new_game, "g8f6")
    assert (new_game.halfmove_clock, new_game.fullmove_number) == (2, 2)
    play(new_game, "e2e4")
    assert new_game.halfmove_clock == 0
    play(new_game, "f6e4")
    assert new_game.halfmove_clock == 0


@pytest.mark.parametrize(
    "from_name, to_name",
    [
        ("e4", "e5"),  # empty square
        ("e7", "e5"),  # not your turn
        ("e2", "e5"),  # not a legal destination
        ("g1", "g3"),
    ],
)
def test_illegal_moves_change_nothing(new_game: GameState, from_name: str, to_name: str) -> None:
    with pytest.raises(IllegalMoveError):
        new_game.apply_move(sq(from_name), sq(to_name))
    assert new_game.to_fen() == STARTING_FEN
    assert new_game.get_move_history() == ()
    assert len(new_game.position_history) == 1


def test_fools_mate(new_game: GameState, play: Play, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.INFO, logger="src.rules.game"):
        play(new_game, "f2f3", "e7e5", "g2g4", "d8h4")

    outcome = new_game.get_outcome()
    assert outcome.status == OutcomeStatus.CHECKMATE
    assert outcome.winner == Color.BLACK
    assert new_game.phase == Phase.GAME_OVER
    assert "checkmate" in caplog.text

    # nothing moves after the game is over
    assert new_game.get_legal_moves(sq("e1")) == frozenset()
    with pytest.raises(StateError):
        new_game.apply_move(sq("a2"), sq("a3"))


def test_check(new_game: GameState, play: Play) -> None:
    play(new_game, "e2e4", "f7f6", "d1h5")
    outcome = new_game.get_outcome()
    assert outcome.status == OutcomeStatus.CHECK
    assert outcome.color == Color.BLACK
    assert not new_game.is_game_over
    # only g7g6 blocks
    assert destinations(new_game, "g7") == {"g6"}
    assert destinations(new_game, "a7") == set()


def test_stalemate() -> None:
    game = GameState.from_fen("k7/8/8/2Q5/8/8/8/7K w - - 0 1")
    game.apply_move(sq("c5"), sq("b6"))
    assert game.get_outcome().status == OutcomeStatus.STALEMATE
    assert game.get_outcome().winner is None
    assert game.is_game_over


# -- SPECIAL MOVES --
def test_en_passant_capture(new_game: GameState, play: Play) -> None:
    play(new_game, "e2e4", "a7a6", "e4e5", "d7d5")
    assert new_game.en_passant_target == sq("d6")
    record = new_game.apply_move(sq("e5"), sq("d6"))

    assert record.is_en_passant_capture
    assert record.is_capture
    assert record.notation_text == "e5xd6"
    assert new_game.board.is_empty(sq("d5"))
    assert new_game.board.piece_at(sq("d6")).kind == PieceKind.PAWN
    assert new_game.halfmove_clock == 0
    assert new_game.en_passant_target is None


def test_en_passant_expires(new_game: GameState, play: Play) -> None:
    """Only on the very next move"""
    play(new_game, "e2e4", "a7a6", "e4e5", "d7d5", "g1f3", "a6a5")
    assert "d6" not in destinations(new_game, "e5")
    with pytest.raises(IllegalMoveError):
        new_game.apply_move(sq("e5"), sq("d6"))


def test_castling_both_colors() -> None:
    game = GameState.from_fen("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")
    record = game.apply_move(sq("e1"), sq("g1"))
    assert record.castling == CastlingSide.KINGSIDE
    assert record.notation_text == "O-O"
    assert game.board.piece_at(sq("f1")).kind == PieceKind.ROOK
    assert game.board.piece_at(sq("g1")).kind == PieceKind.KING
    assert game.board.is_empty(sq("h1"))
    assert game.castling_rights.to_fen() == "kq"

    record = game.apply_move(sq("e8"), sq("c8"))
    assert record.notation_text == "O-O-O"
    assert game.board.piece_at(sq("d8")).kind == PieceKind.ROOK
    assert game.castling_rights.to_fen() == "-"
    assert game.to_fen() == "2kr3r/8/8/8/8/8/8/R4RK1 w - - 2 2"


def test_capturing_a_rook_revokes_its_castling_right() -> None:
    game = GameState.from_fen("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")
    game.apply_move(sq("a1"), sq("a8"))
    assert game.castling_rights.to_fen() == "Kk"
    assert game.get_outcome().status == OutcomeStatus.CHECK


def test_moving_the_king_revokes_both_rights() -> None:
    game = GameState.from_fen("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")
    game.apply_move(sq("e1"), sq("e2"))
    assert game.castling_rights.to_fen() == "kq"


def test_promotion_flow() -> None:
    game = GameState.from_fen("8/4P3/8/8/8/8/8/k3K3 w - - 0 1")
    record = game.apply_move(sq("e7"), sq("e8"))
    assert record.promotion_kind is None
    assert game.phase == Phase.AWAITING_PROMOTION_CHOICE
    # the turn is not over yet
    assert game.turn == Color.WHITE
    assert len(game.position_history) == 1
    assert game.get_legal_moves(sq("e1")) == frozenset()
    with pytest.raises(StateError):
        game.apply_move(sq("e1"), sq("d1"))

    # not a valid choice: still waiting
    with pytest.raises(IllegalMoveError):
        game.promote_pawn(PieceKind.KING)
    assert game.phase == Phase.AWAITING_PROMOTION_CHOICE

    record = game.promote_pawn(PieceKind.QUEEN)
    assert record.notation_text == "e7e8q"
    assert game.get_move_history()[-1] == record
    assert game.board.piece_at(sq("e8")).kind == PieceKind.QUEEN
    assert game.turn == Color.BLACK
    assert game.phase == Phase.AWAITING_SELECTION
    assert game.get_position_key().startswith("k3K3/8/8/8/8/8/8/4Q3 b")


def test_promotion_without_pending_pawn(new_game: GameState) -> None:
    with pytest.raises(StateError):
        new_game.promote_pawn(PieceKind.QUEEN)


def test_underpromotion_with_capture() -> None:
    """Black takes on b1 and picks a knight: K+N vs K is a draw"""
    game = GameState.from_fen("4k3/8/8/8/8/8/p7/1N2K3 b - - 0 1")
    game.apply_move(sq("a2"), sq("b1"))
    record = game.promote_pawn(PieceKind.KNIGHT)
    assert record.notation_text == "a2xb1n"
    assert game.board.piece_at(sq("b1")).is_a(PieceKind.KNIGHT, Color.BLACK)
    assert game.get_outcome().status == OutcomeStatus.DRAW_INSUFFICIENT_MATERIAL


# -- DRAWS --
def test_fifty_move_rule(play: Play) -> None:
    """A hundred half-moves without a capture or a pawn move, while no position occurs a third time"""
    game = GameState.from_fen("7k/8/8/8/8/8/8/R6K w - - 0 1")
    rows = ["abcdef" if rank % 2 else "fedcba" for rank in range(1, 6)]
    rook_tour = [f"{file}{rank}" for rank, files in enumerate(rows, start=1) for file in files]
    rook_tour += rook_tour[-2::-1]
    king_shuffle = ("h8h7", "h7h8")

    for turn in range(50):
        play(game, rook_tour[turn] + rook_tour[turn + 1])
        assert game.halfmove_clock == 2 * turn + 1
        assert not game.is_game_over
        play(game, king_shuffle[turn % 2])

    assert game.halfmove_clock == 100
    assert game.get_outcome().status == OutcomeStatus.DRAW_FIFTY_MOVE_RULE


def test_threefold_repetition(new_game: GameState, play: Play) -> None:
    """The starting position occurs for the third time after the 8th half-move"""
    knight_dance = ("g1f3", "g8f6", "f3g1", "f6g8")
    play(new_game, *knight_dance)
    assert not new_game.is_game_over

    play(new_game, *knight_dance[:3])
    assert not new_game.is_game_over

    play(new_game, knight_dance[3])
    assert new_game.get_outcome().status == OutcomeStatus.DRAW_REPETITION


def test_bishop_takes_last_pawn() -> None:
    """K+B vs K after the capture"""
    game = GameState.from_fen("4k3/8/8/8/8/8/3p4/2B1K3 w - - 0 1")
    assert game.get_outcome().status == OutcomeStatus.CHECK
    game.apply_move(sq("c1"), sq("d2"))
    assert game.get_outcome().status == OutcomeStatus.DRAW_INSUFFICIENT_MATERIAL
    assert game.phase == Phase.GAME_OVER


# -- SELECTION --
def test_select_then_move(new_game: GameState) -> None:
    targets = new_game.select_piece(sq("e2"))
    assert targets == frozenset({sq("e3"), sq("e4")})
    assert new_game.phase == Phase.PIECE_SELECTED
    assert new_game.selected_square == sq("e2")

    record = new_game.move_selected(sq("e4"))
    assert record.notation_text == "e2e4"
    assert new_game.phase == Phase.AWAITING_SELECTION
    assert new_game.selected_square is None


def test_selecting_nothing_clears_selection(new_game: GameState) -> None:
    new_game.select_piece(sq("g1"))
    assert new_game.select_piece(sq("e5")) == frozenset()
    assert new_game.phase == Phase.AWAITING_SELECTION
    assert new_game.selected_square is None


def test_clear_selection(new_game: GameState) -> None:
    new_game.select_piece(sq("b1"))
    new_game.clear_selection()
    assert new_game.phase == Phase.AWAITING_SELECTION
    with pytest.raises(StateError):
        new_game.move_selected(sq("c3"))


# -- PROPERTIES --
def test_castling_through_attack_is_refused() -> None:
    """The rook on f8 covers f1, which the king would pass through"""
    game = GameState.from_fen("4kr2/8/8/8/8/8/8/R3K2R w KQ - 0 1")
    assert "g1" not in destinations(game, "e1")
    with pytest.raises(IllegalMoveError):
        game.apply_move(sq("e1"), sq("g1"))
    assert "c1" in destinations(game, "e1")


def test_invariants_hold_along_a_game(new_game: GameState) -> None:
    """Walk a deterministic sequence of legal moves and check the board after every ply"""
    game = new_game
    for ply in range(60):
        if game.is_game_over:
            break
        own_squares = sorted(game.board.locate_color(game.turn))
        moves = [
            (square, target)
            for square in own_squares
            for target in sorted(game.get_legal_moves(square))
        ]
        assert moves
        assert all(target.is_within_bounds() for _, target in moves)

        before = game.to_fen()
        assert game.get_legal_moves(moves[0][0]) == game.get_legal_moves(moves[0][0])
        assert game.to_fen() == before

        square, target = moves[(ply * 7) % len(moves)]
        game.apply_move(square, target)
        if game.phase == Phase.AWAITING_PROMOTION_CHOICE:
            game.promote_pawn(PieceKind.QUEEN)

        game.verify_invariants()
        assert len(game.position_history) == len(game.get_move_history()) + 1
