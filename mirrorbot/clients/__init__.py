"""Discord client management and the platform facade."""

from .discord_client import DiscordClientManager
from .platform import PlatformClient

__all__ = [
    "DiscordClientManager",
    "PlatformClient",
]
