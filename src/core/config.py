"""
Session configuration.

Passed into a GameSession when it gets created, so every session carries its own settings
(instead of one process-wide settings object everybody reads from and writes to).
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from src.core.shared_types import Color, OpponentType, Personality
from src.rules.fen import is_valid_fen
from src.rules.notation import COORDINATE_PATTERN

CASTLING_TOKENS = ("O-O", "O-O-O")


class SessionConfig(BaseModel):
    opponent: OpponentType = OpponentType.HUMAN
    computer_color: Color = Color.BLACK
    search_depth: int = Field(default=3, ge=1, le=20)
    personality: Personality = Personality.STANDARD
    # seconds the move-search provider gets per move. None: wait as long as it takes
    provider_timeout: Optional[float] = Field(default=5.0, gt=0)
    starting_fen: Optional[str] = None
    opening_book: list[str] = Field(default_factory=list)

    @field_validator("starting_fen")
    @classmethod
    def validate_starting_fen(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        value = value.strip()
        if not is_valid_fen(value):
            raise ValueError(f"Cannot interpret {value!r} as a FEN string.")
        return value

    @field_validator("opening_book")
    @classmethod
    def validate_opening_book(cls, tokens: list[str]) -> list[str]:
        """Only checks the shape of every token. Legality is checked when the book gets played."""
        for token in tokens:
            if token not in CASTLING_TOKENS and not COORDINATE_PATTERN.match(token):
                raise ValueError(f"Opening book token {token!r} is not in coordinate notation.")
        return tokens

    @model_validator(mode="after")
    def book_needs_standard_start(self) -> "SessionConfig":
        if self.opening_book and self.starting_fen is not None:
            raise ValueError("An opening book can only be played from the standard starting position.")
        return self

    @property
    def plays_computer(self) -> bool:
        return self.opponent == OpponentType.COMPUTER
