"""
Relay engine that mirrors inbound messages into their configured targets.
"""
import logging
from typing import List, Optional

from .caches import MirrorEntry, MirrorState
from .events import MessageCreated
from .exceptions import PlatformError
from .proxy_endpoints import ProxyEndpointManager
from .routing_table import RoutingTable

logger = logging.getLogger(__name__)


class RelayEngine:
    """Relays each routed message through per-author webhooks, one target at a time."""

    def __init__(
        self,
        routing_table: RoutingTable,
        platform,
        endpoints: ProxyEndpointManager,
        state: MirrorState,
        canned_reply=None,
    ):
        self.routing_table = routing_table
        self.platform = platform
        self.endpoints = endpoints
        self.state = state
        self.canned_reply = canned_reply

    async def handle_message(self, message: MessageCreated) -> Optional[List[MirrorEntry]]:
        """
        Mirror a new message.

        Returns the mirrors that were created, or None when the message was
        ignored or its channel is not routed.
        """
        observed = await self.state.counter.increment()

        if self._is_own_or_proxy(message):
            return None

        logger.debug(
            f"[{message.channel_id}] [{message.author.name}] {message.content!r} "
            f"(message #{observed})"
        )

        if self.canned_reply is not None:
            await self.canned_reply.handle(message)

        targets = self.routing_table.targets_for(message.channel_id)
        if not targets:
            return None

        mirrors: List[MirrorEntry] = []
        for target_channel_id in targets:
            mirrored_id = await self._relay_to(message, target_channel_id)
            if mirrored_id is not None:
                mirrors.append((mirrored_id, target_channel_id))

        await self.state.relays.record(message.message_id, mirrors)
        await self.state.authors.set(message.message_id, message.author.id)

        if len(mirrors) < len(targets):
            logger.warning(
                f"Message {message.message_id} mirrored to {len(mirrors)} of {len(targets)} targets"
            )
        else:
            logger.info(f"Message {message.message_id} mirrored to {len(mirrors)} targets")
        return mirrors

    def _is_own_or_proxy(self, message: MessageCreated) -> bool:
        if message.webhook_id is not None:
            return True
        return message.author.id == self.platform.bot_user_id

    async def _relay_to(self, message: MessageCreated, target_channel_id: int) -> Optional[int]:
        """Send one mirror; failures are logged and reported as None."""
        try:
            channel = await self.platform.fetch_channel(target_channel_id)
            webhook = await self.endpoints.get_or_create(channel, message.author)
            mirrored_id = await self.platform.execute_webhook(
                webhook, message.content, message.image_attachments
            )
        except PlatformError as e:
            logger.error(f"Error relaying message {message.message_id} to {target_channel_id}: {e}")
            return None

        logger.debug(f"Relayed {message.message_id} -> {mirrored_id} in {target_channel_id}")
        return mirrored_id
