"""
Edit/delete propagation for mirrored messages.

Both operations are best effort per target: a target whose webhook cannot be
resolved, or whose edit/delete fails, is logged and skipped. Relay and author
records are kept after a delete.
"""
import logging
from typing import Optional

from .caches import MirrorState
from .events import MessageDeleted, MessageEdited, MessagesBulkDeleted
from .exceptions import PlatformError
from .proxy_endpoints import ProxyEndpointManager

logger = logging.getLogger(__name__)


class EditDeletePropagator:
    """Re-issues source edits and deletes on every mirrored copy."""

    def __init__(self, platform, endpoints: ProxyEndpointManager, state: MirrorState):
        self.platform = platform
        self.endpoints = endpoints
        self.state = state

    async def propagate_edit(self, event: MessageEdited) -> int:
        """Edit every mirror of the source message. Returns the number of edits issued."""
        if event.content is None:
            return 0

        mirrors = await self.state.relays.mirrors_of(event.message_id)
        if mirrors is None:
            logger.debug(f"Edited message {event.message_id} was never mirrored")
            return 0

        author_id = await self._resolve_author(event.message_id, event.channel_id, event.author_id)
        if author_id is None:
            return 0

        edited = 0
        for mirrored_id, target_channel_id in mirrors:
            webhook = await self.endpoints.resolve(target_channel_id, author_id)
            if webhook is None:
                logger.warning(f"Skipping edit of {mirrored_id} in {target_channel_id}: no webhook")
                continue
            try:
                await self.platform.edit_webhook_message(webhook, mirrored_id, event.content)
            except PlatformError as e:
                logger.error(f"Couldn't edit message {mirrored_id} in {target_channel_id}: {e}")
                continue
            edited += 1

        logger.info(f"Propagated edit of {event.message_id} to {edited}/{len(mirrors)} mirrors")
        return edited

    async def propagate_delete(self, event: MessageDeleted) -> int:
        """Delete every mirror of the source message. Returns the number of deletes issued."""
        mirrors = await self.state.relays.mirrors_of(event.message_id)
        if mirrors is None:
            logger.debug(f"Deleted message {event.message_id} was never mirrored")
            return 0

        author_id = await self._resolve_author(event.message_id, event.channel_id)
        if author_id is None:
            return 0

        deleted = 0
        for mirrored_id, target_channel_id in mirrors:
            webhook = await self.endpoints.resolve(target_channel_id, author_id)
            if webhook is None:
                logger.warning(f"Skipping delete of {mirrored_id} in {target_channel_id}: no webhook")
                continue
            try:
                await self.platform.delete_webhook_message(webhook, mirrored_id)
            except PlatformError as e:
                logger.error(f"Couldn't delete message {mirrored_id} in {target_channel_id}: {e}")
                continue
            deleted += 1

        logger.info(f"Propagated delete of {event.message_id} to {deleted}/{len(mirrors)} mirrors")
        return deleted

    async def propagate_bulk_delete(self, event: MessagesBulkDeleted) -> int:
        deleted = 0
        for message_id in event.message_ids:
            deleted += await self.propagate_delete(
                MessageDeleted(message_id=message_id, channel_id=event.channel_id, guild_id=event.guild_id)
            )
        return deleted

    async def _resolve_author(
        self, message_id: int, channel_id: int, hint: Optional[int] = None
    ) -> Optional[int]:
        """Author of a source message: cached record, then the notification, then the platform."""
        author_id = await self.state.authors.get(message_id)
        if author_id is not None:
            return author_id
        if hint is not None:
            return hint

        try:
            return await self.platform.fetch_message_author(channel_id, message_id)
        except PlatformError as e:
            logger.warning(f"Could not determine the author of {message_id}: {e}")
            return None
