from fastapi import Header
from typing import Optional

from darts_server.errors import MissingIdentityError
from darts_server.models.dc_models import PlayerModel


class PlayerIdentity:
    """Reads the identity the hosting platform attaches to every request."""

    def __init__(self):
        pass

    async def check_table_id(self, x_table_id: Optional[str] = Header(default=None)) -> str:
        """Check that the request names a game instance

        Args:
            x_table_id (Optional[str]): Game instance (post / table) the request belongs to

        Raises:
            MissingIdentityError: The header is missing or blank

        Returns:
            str: The table id
        """
        table_id = (x_table_id or "").strip()
        if not table_id:
            raise MissingIdentityError("table_id")
        return table_id

    async def check_player_data(
        self,
        x_player_id: Optional[str] = Header(default=None),
        x_player_name: Optional[str] = Header(default=None),
        x_table_id: Optional[str] = Header(default=None),
    ) -> PlayerModel:
        """Check that a logged in player is attached to the request

        Args:
            x_player_id (Optional[str]): Stable account id, required
            x_player_name (Optional[str]): Display name, only used for the leaderboard
            x_table_id (Optional[str]): Game instance, required

        Raises:
            MissingIdentityError: Player id or table id missing

        Returns:
            PlayerModel: The identity of the player
        """
        player_id = (x_player_id or "").strip()
        if not player_id:
            raise MissingIdentityError("player_id")
        table_id = await self.check_table_id(x_table_id)
        player_name = (x_player_name or "").strip() or None
        return PlayerModel(player_id=player_id, player_name=player_name, table_id=table_id)
