import json
import logging
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from darts_server.models.schema_models import GameStateSchema


class DataConverter:
    """This class is used to convert game data between Redis strings and schemas."""

    def convert_gamestate_to_json(self, state: GameStateSchema) -> str:
        """Convert the GameStateSchema to the JSON string stored in Redis

        Args:
            state (GameStateSchema): The game state of one player

        Returns:
            str: JSON representation of the game state
        """
        return state.model_dump_json()

    def convert_json_to_gamestate(self, raw: Optional[str]) -> Optional[GameStateSchema]:
        """Convert a stored JSON string back to the GameStateSchema

        Anything that does not parse into a game state with an id is treated as absent.

        Args:
            raw (Optional[str]): The value read from Redis

        Returns:
            Optional[GameStateSchema]: The game state, or None if nothing usable was stored
        """
        if not raw:
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logging.warning("Stored game state is not valid JSON, ignoring it")
            return None
        if not isinstance(data, dict) or not isinstance(data.get("game_id"), str):
            return None
        try:
            return GameStateSchema.model_validate(data)
        except PydanticValidationError as e:
            logging.warning(f"Stored game state does not match the schema, ignoring it: {e}")
            return None


data_converter = DataConverter()
