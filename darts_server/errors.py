"""
Error taxonomy for the dart server.

Every error carries an internal message for the logs and a user message that
is returned verbatim to the client inside the tagged failure response.
"""
from typing import Optional


class DartsError(Exception):
    """Base exception for all errors surfaced to the caller."""
    status_code: int = 400
    code: str = "error"

    def __init__(self, message: str, user_message: Optional[str] = None):
        super().__init__(message)
        self.user_message = user_message or message


class ValidationError(DartsError):
    """Malformed or missing request fields. Not retried."""
    status_code = 400
    code = "validation_error"


class MissingIdentityError(DartsError):
    """Raised when the hosting platform did not supply the player or table."""
    status_code = 401
    code = "missing_identity"

    def __init__(self, field_name: str):
        super().__init__(
            f"Missing identity field: {field_name}",
            "You must be logged in to play.",
        )


class NoActiveSessionError(DartsError):
    status_code = 404
    code = "no_active_session"

    def __init__(self):
        super().__init__(
            "No stored game for this player",
            "No active game. Start a new game first.",
        )


class RoundCompleteError(DartsError):
    status_code = 409
    code = "round_complete"

    def __init__(self):
        super().__init__(
            "Game has no darts left",
            "No darts left. Start a new game.",
        )


class SessionMismatchError(DartsError):
    """Raised when a throw names a game id other than the stored one (stale tab, concurrent new game)."""
    status_code = 409
    code = "game_id_mismatch"

    def __init__(self, expected_game_id: str, received_game_id: str):
        super().__init__(
            f"Game id mismatch: stored {expected_game_id}, received {received_game_id}",
            "GameId mismatch. Refresh state.",
        )


class TooFastError(DartsError):
    """Cooldown violation. Transient: the client may retry after retry_after_ms."""
    status_code = 429
    code = "too_fast"

    def __init__(self, retry_after_ms: int):
        super().__init__(
            f"Throw rejected by cooldown, {retry_after_ms}ms remaining",
            "You're throwing too fast. Please wait a moment.",
        )
        self.retry_after_ms = retry_after_ms


class StoreUnavailableError(DartsError):
    """Persistence failure. Never retried inside the server, a retry could consume randomness twice."""
    status_code = 503
    code = "store_unavailable"

    def __init__(self, operation: str, details: Optional[str] = None):
        super().__init__(
            f"Store error during {operation}: {details}",
            "Storage is unavailable. Please try again later.",
        )
