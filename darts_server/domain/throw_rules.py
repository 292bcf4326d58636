"""Throw resolution rules that are independent from HTTP and Redis.

Rule of thumb:
- OK: clamping, seed mixing, sampling, scoring, pure state transitions.
- Not OK: touching Redis, FastAPI, time.time(), etc.

The client only controls the aim, the precision radius and an elapsed-time
nonce. The hit point depends on the session seed held by the server, so the
client can neither predict nor steer the random offset.
"""
import numpy as np
from typing import List, Optional, Tuple

from darts_server.domain.prng import Xorshift32, to_uint32
from darts_server.errors import NoActiveSessionError, RoundCompleteError, TooFastError
from darts_server.models.schema_models import (
    AimSchema,
    GameStateSchema,
    HitSchema,
    ThrowRecordSchema,
)
from darts_server.score_utils import score_utils

AIM_LIMIT = 1.25

# Keep aligned with the visible precision circle of the client.
MIN_RADIUS = 0.02
MAX_RADIUS = 0.60
FALLBACK_RADIUS = 0.12

MIN_DARTS = 1
MAX_DARTS = 30
DEFAULT_DARTS = 10

DEFAULT_COOLDOWN_MS = 500
DEFAULT_HISTORY_LIMIT = 50

THROW_INDEX_MIX = 0x85EBCA6B
CLIENT_ELAPSED_MIX = 0xC2B2AE35


def _is_finite(value: Optional[float]) -> bool:
    return value is not None and bool(np.isfinite(value))


def clamp_aim(value: Optional[float]) -> float:
    """Clamp an aim coordinate into [-AIM_LIMIT, AIM_LIMIT]; non-finite values become 0."""
    if not _is_finite(value):
        return 0.0
    return float(np.clip(value, -AIM_LIMIT, AIM_LIMIT))


def clamp_radius(value: Optional[float]) -> float:
    """Clamp a precision radius into [MIN_RADIUS, MAX_RADIUS].

    Non-finite values get the mid fallback rather than either boundary.
    """
    if not _is_finite(value):
        return FALLBACK_RADIUS
    return float(np.clip(value, MIN_RADIUS, MAX_RADIUS))


def clamp_darts_total(value: Optional[float], default: int = DEFAULT_DARTS) -> int:
    if not _is_finite(value):
        return default
    return int(np.clip(np.floor(value), MIN_DARTS, MAX_DARTS))


def normalize_client_elapsed(value: Optional[float]) -> int:
    if not _is_finite(value):
        return 0
    return int(np.floor(value))


def mix_seed(seed32: int, throw_index: int, client_elapsed_ms: int) -> int:
    """Derive the per-throw seed from server state and the client nonce."""
    return (
        to_uint32(seed32)
        ^ to_uint32((throw_index + 1) * THROW_INDEX_MIX)
        ^ to_uint32(client_elapsed_ms * CLIENT_ELAPSED_MIX)
    )


def sample_in_circle(rng: Xorshift32, radius: float) -> Tuple[float, float]:
    """Draw an area-uniform offset inside a circle of the given radius.

    The square root on the first draw keeps samples from bunching at the centre.
    """
    if not _is_finite(radius) or radius <= 0:
        return 0.0, 0.0
    u = rng.next01()
    v = rng.next01()
    distance = np.sqrt(u) * radius
    theta = v * 2 * np.pi
    return float(distance * np.cos(theta)), float(distance * np.sin(theta))


def check_cooldown(last_throw_at_ms: Optional[int], now_ms: int, cooldown_ms: int) -> None:
    if last_throw_at_ms is None:
        return
    elapsed = now_ms - last_throw_at_ms
    if elapsed < cooldown_ms:
        raise TooFastError(retry_after_ms=cooldown_ms - elapsed)


def resolve_throw(
    state: Optional[GameStateSchema],
    aim_x: Optional[float],
    aim_y: Optional[float],
    radius: Optional[float],
    client_elapsed_ms: Optional[float],
    now_ms: int,
    *,
    cooldown_ms: int = DEFAULT_COOLDOWN_MS,
) -> ThrowRecordSchema:
    """Resolve one throw against the current game state.

    Args:
        state: Stored game state, None when the player has no game.
        aim_x, aim_y: Raw client aim in normalized board units.
        radius: Raw client precision radius.
        client_elapsed_ms: Client-side elapsed time, used only as a nonce.
        now_ms: Server time of the request.
        cooldown_ms: Minimum delay between two accepted throws.

    Raises:
        NoActiveSessionError: No stored game.
        RoundCompleteError: The game has no darts left.
        TooFastError: The previous throw was accepted less than cooldown_ms ago.

    Returns:
        ThrowRecordSchema: The authoritative result, echoing the clamped aim and radius.
    """
    if state is None:
        raise NoActiveSessionError()
    if state.darts_left <= 0:
        raise RoundCompleteError()
    check_cooldown(state.last_throw_at_ms, now_ms, cooldown_ms)

    used_x = clamp_aim(aim_x)
    used_y = clamp_aim(aim_y)
    used_radius = clamp_radius(radius)

    seed = mix_seed(state.seed32, state.throw_index, normalize_client_elapsed(client_elapsed_ms))
    rng = Xorshift32(seed)
    # Always the clamped radius, never the one the client claimed.
    dx, dy = sample_in_circle(rng, used_radius)
    hit_x = used_x + dx
    hit_y = used_y + dy
    scored = score_utils.score_hit(hit_x, hit_y)

    return ThrowRecordSchema(
        throw_index=state.throw_index,
        aim=AimSchema(x=used_x, y=used_y, radius=used_radius),
        hit=HitSchema(x=hit_x, y=hit_y, r=scored.r, angle_from_top_rad=scored.angle_from_top_rad),
        segment=scored.segment,
        total_score=state.total_score + scored.segment.points,
        darts_left=state.darts_left - 1,
        server_time_ms=now_ms,
    )


def trim_history(history: List[ThrowRecordSchema], limit: int) -> List[ThrowRecordSchema]:
    """Keep the newest `limit` records."""
    if len(history) <= limit:
        return history
    return history[len(history) - limit:]


def apply_throw(
    state: GameStateSchema,
    record: ThrowRecordSchema,
    history_limit: int = DEFAULT_HISTORY_LIMIT,
) -> GameStateSchema:
    """Return the state after an accepted throw. The input state is left untouched."""
    return state.model_copy(
        update={
            "total_score": record.total_score,
            "darts_left": record.darts_left,
            "throw_index": state.throw_index + 1,
            "history": trim_history([*state.history, record], history_limit),
            "last_throw_at_ms": record.server_time_ms,
        }
    )
