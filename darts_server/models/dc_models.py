from pydantic import BaseModel, Field, field_validator
from typing import Any, List, Optional

from darts_server.models.schema_models import (
    GameStateSchema,
    LeaderboardEntrySchema,
    ThrowRecordSchema,
)


class PlayerModel(BaseModel):
    """Identity supplied by the hosting platform."""
    player_id: str
    player_name: Optional[str] = None
    table_id: str


class NewGameModel(BaseModel):
    darts_total: Optional[float] = None


class ThrowModel(BaseModel):
    # aim and radius stay optional: missing values are clamped, not rejected
    game_id: str = Field(min_length=1)
    aim_x: Optional[float] = None
    aim_y: Optional[float] = None
    radius: Optional[float] = None
    client_elapsed_ms: Optional[float] = None

    @field_validator("aim_x", "aim_y", "radius", "client_elapsed_ms", mode="before")
    @classmethod
    def non_numeric_as_missing(cls, value: Any) -> Optional[float]:
        """Anything that is not a number is treated like a missing value."""
        if isinstance(value, bool) or not isinstance(value, (int, float, str)):
            return None
        try:
            return float(value)
        except (ValueError, OverflowError):
            return None


class GameStateModel(BaseModel):
    """Game state as shown to the player. The session seed never leaves the server."""
    game_id: str
    created_at_ms: int
    darts_total: int
    darts_left: int
    total_score: int
    throw_index: int
    history: List[ThrowRecordSchema] = Field(default_factory=list)
    last_throw_at_ms: Optional[int] = None

    @classmethod
    def from_state(cls, state: GameStateSchema) -> "GameStateModel":
        return cls.model_validate(state.model_dump(exclude={"seed32"}))


class GameStateResponseModel(BaseModel):
    ok: bool = True
    state: Optional[GameStateModel] = None

    @classmethod
    def from_state(cls, state: Optional[GameStateSchema]) -> "GameStateResponseModel":
        return cls(state=None if state is None else GameStateModel.from_state(state))


class ThrowResponseModel(BaseModel):
    ok: bool = True
    result: ThrowRecordSchema


class LeaderboardResponseModel(BaseModel):
    ok: bool = True
    entries: List[LeaderboardEntrySchema]


class ErrorResponseModel(BaseModel):
    ok: bool = False
    error: str
    code: str
    retry_after_ms: Optional[int] = None
