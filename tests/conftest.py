"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures/variables required for testing multiple layers.
"""

from typing import Callable

import pytest

from src.rules.board import Board
from src.rules.game import GameState
from src.rules.pieces import Piece
from src.rules.square import Square

EMPTY_PLACEMENT = "/".join(["8"] * 8)

BoardFactory = Callable[[dict[str, str]], Board]


@pytest.fixture
def board_from_pieces() -> BoardFactory:
    """
    Call the inner function with {square name: FEN character}, e.g. {"e1": "K", "e8": "k"}.
    Every square not mentioned stays empty.
    """

    def _create_board(pieces: dict[str, str]) -> Board:
        board = Board.from_placement(EMPTY_PLACEMENT)
        for square_name, fen_char in pieces.items():
            board.place_piece(Piece.from_fen(fen_char), Square.from_algebraic(square_name))
        return board

    return _create_board


@pytest.fixture
def standard_board() -> Board:
    return Board.standard()


@pytest.fixture
def new_game() -> GameState:
    return GameState.new_game()


@pytest.fixture
def play() -> Callable[..., None]:
    """Call the inner function with a game and moves like "e2e4", played one after the other (no promotions)."""

    def _play(game: GameState, *moves: str) -> None:
        for move in moves:
            game.apply_move(
                Square.from_algebraic(move[:2]), Square.from_algebraic(move[2:4])
            )

    return _play
