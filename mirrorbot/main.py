"""
Main entry point for the Discord channel mirror.

Loads settings and the routing table, wires the mirroring engine to the
discord.py client and runs until a shutdown signal is received.
"""
import asyncio
import logging
import signal
import sys
from typing import Optional

import discord
import structlog

from mirrorbot.clients import DiscordClientManager
from mirrorbot.config import Settings, load_settings
from mirrorbot.core import (
    EditDeletePropagator,
    MirrorState,
    ProxyEndpointManager,
    RelayEngine,
    RoutingTable,
)
from mirrorbot.core.exceptions import ConfigurationError
from mirrorbot.handlers import CannedReply, EventDispatcher

logger = structlog.get_logger(__name__)


def configure_logging(settings: Settings) -> None:
    """Structured logging on top of the standard library handlers."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handlers = [logging.StreamHandler()]
    if settings.log_file is not None:
        handlers.append(logging.FileHandler(settings.log_file, encoding='utf-8'))

    logging.basicConfig(
        level=getattr(logging, settings.effective_log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True,
    )
    # discord.py is chatty at DEBUG; keep it at INFO unless asked otherwise.
    if not settings.debug_mode:
        logging.getLogger("discord").setLevel(logging.INFO)


class MirrorApplication:
    """Main application class for the Discord channel mirror."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.routing_table: Optional[RoutingTable] = None
        self.state: Optional[MirrorState] = None
        self.client_manager: Optional[DiscordClientManager] = None
        self.dispatcher: Optional[EventDispatcher] = None
        self._shutdown_event = asyncio.Event()

    def initialize(self) -> None:
        """Build every component. Raises ConfigurationError on bad routing config."""
        logger.info("Initializing mirror application...")

        self.routing_table = RoutingTable.load(self.settings.routing_config_path)
        logger.info("Routing table loaded", routes=len(self.routing_table))

        self.state = MirrorState.create(self.settings.relay_cache_max_entries)

        self.client_manager = DiscordClientManager(self.settings)
        platform = self.client_manager.platform

        endpoints = ProxyEndpointManager(platform, self.state.endpoints)
        canned_reply = CannedReply(platform) if self.settings.canned_reply_enabled else None
        engine = RelayEngine(self.routing_table, platform, endpoints, self.state, canned_reply)
        propagator = EditDeletePropagator(platform, endpoints, self.state)

        self.dispatcher = EventDispatcher(engine, propagator, platform, self.state)
        self.client_manager.attach(self.dispatcher)

        logger.info("Mirror application initialization complete")

    async def start(self) -> None:
        """Run the Discord client until it stops or a shutdown signal arrives."""
        logger.info("Starting mirror application...")

        client_task = asyncio.create_task(self.client_manager.start())
        shutdown_task = asyncio.create_task(self._shutdown_event.wait())

        done, pending = await asyncio.wait(
            [client_task, shutdown_task],
            return_when=asyncio.FIRST_COMPLETED
        )
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

        if client_task in done:
            # Re-raises login and connection failures.
            client_task.result()

    async def shutdown(self) -> None:
        """Gracefully shutdown the application."""
        logger.info("Shutting down mirror application...")

        if self.client_manager:
            await self.client_manager.stop()

        if self.state:
            logger.info("Final mirror state", **(await self.state.snapshot()))

        logger.info("Mirror application shutdown complete")

    def signal_handler(self, signum: int, frame) -> None:
        """Handle shutdown signals."""
        logger.info(f"Received signal {signum}, initiating shutdown...")
        self._shutdown_event.set()


async def main(settings: Settings) -> int:
    """Run the application and return the process exit code."""
    app = MirrorApplication(settings)

    loop = asyncio.get_running_loop()
    for sig in [signal.SIGTERM, signal.SIGINT]:
        try:
            loop.add_signal_handler(sig, app.signal_handler, sig, None)
        except NotImplementedError:
            # Windows event loops have no signal handler support.
            signal.signal(sig, app.signal_handler)

    try:
        app.initialize()
        await app.start()
    except ConfigurationError as e:
        logger.error("Fatal configuration error", error=str(e))
        return 1
    except discord.LoginFailure as e:
        logger.error("Discord login failed", error=str(e))
        return 1
    except Exception as e:
        logger.error("Fatal error in main application", error=str(e), exc_info=e)
        return 1
    finally:
        await app.shutdown()

    return 0


def run() -> None:
    """Console entry point."""
    try:
        settings = load_settings()
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    configure_logging(settings)

    # Use uvloop for better performance on Unix systems
    if settings.use_uvloop and sys.platform != 'win32':
        import uvloop
        exit_code = uvloop.run(main(settings))
    else:
        exit_code = asyncio.run(main(settings))

    sys.exit(exit_code)


if __name__ == "__main__":
    run()
