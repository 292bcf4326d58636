from pydantic import BaseModel, Field
from typing import List, Optional


class SegmentSchema(BaseModel):
    """Scored board segment. 0 is a miss, 25/50 are the bulls."""
    number: int
    multiplier: int
    label: str
    points: int


class AimSchema(BaseModel):
    """Aim and precision radius actually used by the server (after clamping)."""
    x: float
    y: float
    radius: float


class HitSchema(BaseModel):
    """Resolved hit point with its polar radius and clockwise angle from the top."""
    x: float
    y: float
    r: float
    angle_from_top_rad: float


class ThrowRecordSchema(BaseModel):
    throw_index: int
    aim: AimSchema
    hit: HitSchema
    segment: SegmentSchema
    total_score: int
    darts_left: int
    server_time_ms: int

    class Config:
        frozen = True


class GameStateSchema(BaseModel):
    game_id: str
    created_at_ms: int
    seed32: int
    darts_total: int
    darts_left: int
    total_score: int
    throw_index: int
    history: List[ThrowRecordSchema] = Field(default_factory=list)
    last_throw_at_ms: Optional[int] = None


class LeaderboardEntrySchema(BaseModel):
    player_id: str
    player: str
    score: int
    rank: int
