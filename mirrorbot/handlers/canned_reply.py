"""
Canned "ping" -> "Pong!" reply, answered in any channel the bot can see.
"""
import logging

from mirrorbot.core.events import MessageCreated
from mirrorbot.core.exceptions import PlatformError

logger = logging.getLogger(__name__)


class CannedReply:
    TRIGGER = "ping"
    RESPONSE = "Pong!"

    def __init__(self, platform):
        self.platform = platform

    async def handle(self, message: MessageCreated) -> bool:
        """Reply when the content is exactly the trigger. Returns True if it matched."""
        if message.content != self.TRIGGER:
            return False

        logger.info(f"Ping received in channel {message.channel_id}")
        try:
            await self.platform.send_message(message.channel_id, self.RESPONSE)
        except PlatformError as e:
            logger.error(f"Error sending message: {e}")
        return True
