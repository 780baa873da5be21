"""
Event dispatcher routing each inbound event variant to its handler.
"""
from typing import Awaitable, Callable, Dict, Type

import structlog

from mirrorbot.core import EditDeletePropagator, MirrorState, RelayEngine
from mirrorbot.core.events import (
    BotReady,
    MessageCreated,
    MessageDeleted,
    MessageEdited,
    MessagesBulkDeleted,
    MirrorEvent,
)
from mirrorbot.core.exceptions import PlatformError

logger = structlog.get_logger(__name__)


class EventDispatcher:
    """Single entry point for every event the Discord client receives."""

    def __init__(self, engine: RelayEngine, propagator: EditDeletePropagator, platform, state: MirrorState):
        self.engine = engine
        self.propagator = propagator
        self.platform = platform
        self.state = state
        self._handlers: Dict[Type, Callable[..., Awaitable]] = {
            MessageCreated: self.engine.handle_message,
            MessageEdited: self.propagator.propagate_edit,
            MessageDeleted: self.propagator.propagate_delete,
            MessagesBulkDeleted: self.propagator.propagate_bulk_delete,
            BotReady: self.handle_ready,
        }

    async def dispatch(self, event: MirrorEvent):
        handler = self._handlers.get(type(event))
        if handler is None:
            raise TypeError(f"Unsupported event type: {type(event).__name__}")

        try:
            return await handler(event)
        except Exception as e:
            logger.error(f"Error handling {type(event).__name__}: {e}", exc_info=True)
            return None

    async def handle_ready(self, event: BotReady) -> None:
        """Log the connected identity and the guilds it can see."""
        logger.info(f"{event.user_name} is connected!")

        try:
            guilds = await self.platform.list_guilds()
        except PlatformError as e:
            logger.warning(f"Could not list guilds: {e}")
        else:
            for index, (guild_id, guild_name) in enumerate(guilds):
                logger.info(f"[{index}] [{guild_id}] {guild_name}")

        logger.info("Mirror state", **(await self.state.snapshot()))
