"""Requests and Response models"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, field_validator

from src.core.exceptions import InvalidRequestError
from src.core.shared_types import (
    Color,
    OpponentType,
    Personality,
    Phase,
    PieceKind,
    Status,
)
from src.rules.fen import is_valid_square

SquareName = str


def _validate_square_name(value: str) -> str:
    value = value.strip().lower()
    if len(value) != 2 or not is_valid_square(value):
        raise InvalidRequestError(f"Cannot interpret {value!r} as a valid square name.")
    return value


# --- REQUEST MODELS ---
class LegalMovesRequest(BaseModel):
    square: SquareName

    @field_validator("square")
    @classmethod
    def validate_square(cls, value: str) -> str:
        return _validate_square_name(value)


class SelectPieceRequest(BaseModel):
    square: SquareName

    @field_validator("square")
    @classmethod
    def validate_square(cls, value: str) -> str:
        return _validate_square_name(value)


class MoveRequest(BaseModel):
    from_square: SquareName
    to_square: SquareName
    promote_to: Optional[PieceKind] = None

    @field_validator(*["from_square", "to_square"])
    @classmethod
    def validate_square(cls, value: str) -> str:
        return _validate_square_name(value)


class PromotionRequest(BaseModel):
    piece_kind: PieceKind


# --- RESPONSE MODELS ---
class GameResponse(BaseModel):
    session_id: UUID
    fen_state: str
    position_key: str
    turn: Color
    phase: Phase
    status: Status
    # side in check for CHECK, winner for CHECKMATE
    status_color: Optional[Color]
    selected_square: Optional[SquareName]
    move_history: list[str]
    opponent: OpponentType
    personality: Personality

    @property
    def winner(self) -> Optional[Color]:
        return self.status_color if self.status == Status.CHECKMATE else None


class LegalMovesResponse(BaseModel):
    session_id: UUID
    square: SquareName
    color: Color
    legal_moves: list[SquareName]
