"""
Exceptions shared by all layers.

Player-facing errors (illegal moves, wrong phase, bad provider output, bad input) are recoverable and leave the game untouched.
InvariantViolation is not: it means the engine itself produced an impossible board and the operation must abort.
"""


class GameError(Exception):
    """Base class for everything the chess application raises on purpose."""


class IllegalMoveError(GameError):
    """The requested move (or promotion choice) is not legal in the current position."""


class StateError(GameError):
    """The operation is not allowed in the current phase of the game (e.g. the game is over)."""


class ProviderError(GameError):
    """The move-search provider returned nothing, garbage, an illegal move, or missed its deadline."""


class InvalidFENError(GameError):
    """String cannot be interpreted as a FEN record."""


class NotationError(GameError):
    """String cannot be interpreted as a move in coordinate notation."""


class InvalidRequestError(GameError):
    """Raised by the request models' validators. Not a ValueError, so pydantic lets it propagate as-is."""


class InvariantViolation(Exception):
    """
    A board invariant is broken (missing king, two pieces on one square).
    Not a GameError.
    """
