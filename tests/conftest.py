"""Shared test fixtures for the Discord channel mirror."""

import asyncio
import itertools
from dataclasses import dataclass
from typing import Dict, List, Optional, Set, Tuple

import pytest

from mirrorbot.clients.platform import platform_call
from mirrorbot.core import (
    EditDeletePropagator,
    MirrorState,
    ProxyEndpointManager,
    RelayEngine,
    RoutingTable,
)
from mirrorbot.core.events import AttachmentRef, AuthorSnapshot, MessageCreated
from mirrorbot.core.exceptions import (
    ChannelResolutionError,
    EndpointCreationError,
    EndpointResolutionError,
    PlatformError,
)
from mirrorbot.handlers import CannedReply, EventDispatcher

BOT_USER_ID = 1
AUTHOR_ID = 42


# ---------------------------------------------------------------------------
# Fake platform
# ---------------------------------------------------------------------------


@dataclass
class FakeChannel:
    id: int


@dataclass
class FakeWebhook:
    id: int
    channel_id: int
    name: str
    avatar: Optional[bytes] = None


class FakePlatform:
    """In-memory platform that records calls and checks no cache lock is held during I/O."""

    def __init__(self, state: MirrorState, delay: float = 0):
        self.state = state
        self.delay = delay
        self.bot_user_id = BOT_USER_ID
        self._ids = itertools.count(1000)

        self.webhooks: Dict[int, FakeWebhook] = {}
        self.created: List[FakeWebhook] = []
        self.sent: List[Tuple[int, int, str, Tuple[str, ...]]] = []
        self.edited: List[Tuple[int, int, str]] = []
        self.deleted: List[Tuple[int, int]] = []
        self.replies: List[Tuple[int, str]] = []
        self.calls: List[str] = []
        self.message_authors: Dict[int, int] = {}
        self.guilds: List[Tuple[int, str]] = [(10, "Home"), (11, "Mirror")]

        self.missing_channels: Set[int] = set()
        self.reject_create: Set[int] = set()
        self.reject_send: Set[int] = set()
        self.reject_edit: Set[int] = set()
        self.reject_delete: Set[int] = set()
        self.reject_list_guilds = False
        # channel id -> raw transport exception raised inside the facade translation
        self.transport_errors: Dict[int, BaseException] = {}
        self.avatar_unavailable = False
        self.locks_seen_held = 0

    async def _io(self, operation: str) -> None:
        self.calls.append(operation)
        if self.state.any_locked():
            self.locks_seen_held += 1
        await asyncio.sleep(self.delay)
        if self.state.any_locked():
            self.locks_seen_held += 1

    def _transport(self, operation: str, channel_id: int) -> None:
        error = self.transport_errors.get(channel_id)
        if error is not None:
            with platform_call(operation):
                raise error

    def drop_webhook(self, webhook_id: int) -> None:
        """Simulate a webhook deleted outside the bot."""
        del self.webhooks[webhook_id]

    async def fetch_channel(self, channel_id: int) -> FakeChannel:
        await self._io("fetch_channel")
        if channel_id in self.missing_channels:
            raise ChannelResolutionError("fetch_channel", f"unknown channel {channel_id}")
        return FakeChannel(channel_id)

    async def read_asset(self, asset) -> bytes:
        await self._io("read_asset")
        if self.avatar_unavailable:
            raise PlatformError("read_asset", "404")
        return b"avatar:" + str(asset).encode()

    async def create_webhook(self, channel, name: str, avatar: Optional[bytes] = None) -> FakeWebhook:
        await self._io("create_webhook")
        if channel.id in self.reject_create:
            raise EndpointCreationError("create_webhook", "Maximum number of webhooks reached")
        webhook = FakeWebhook(next(self._ids), channel.id, name, avatar)
        self.webhooks[webhook.id] = webhook
        self.created.append(webhook)
        return webhook

    async def fetch_webhook(self, webhook_id: int) -> FakeWebhook:
        await self._io("fetch_webhook")
        if webhook_id not in self.webhooks:
            raise EndpointResolutionError("fetch_webhook", "Unknown Webhook")
        return self.webhooks[webhook_id]

    async def execute_webhook(self, webhook: FakeWebhook, content: str, attachments=()) -> int:
        await self._io("execute_webhook")
        self._transport("execute_webhook", webhook.channel_id)
        if webhook.channel_id in self.reject_send:
            raise PlatformError("execute_webhook", "Missing Permissions")
        message_id = next(self._ids)
        self.sent.append((webhook.channel_id, message_id, content, tuple(a.filename for a in attachments)))
        return message_id

    async def edit_webhook_message(self, webhook: FakeWebhook, message_id: int, content: str) -> None:
        await self._io("edit_webhook_message")
        self._transport("edit_webhook_message", webhook.channel_id)
        if webhook.channel_id in self.reject_edit:
            raise PlatformError("edit_webhook_message", "Unknown Message")
        self.edited.append((webhook.channel_id, message_id, content))

    async def delete_webhook_message(self, webhook: FakeWebhook, message_id: int) -> None:
        await self._io("delete_webhook_message")
        self._transport("delete_webhook_message", webhook.channel_id)
        if webhook.channel_id in self.reject_delete:
            raise PlatformError("delete_webhook_message", "Unknown Message")
        self.deleted.append((webhook.channel_id, message_id))

    async def fetch_message_author(self, channel_id: int, message_id: int) -> int:
        await self._io("fetch_message")
        if message_id not in self.message_authors:
            raise PlatformError("fetch_message", "Unknown Message")
        return self.message_authors[message_id]

    async def send_message(self, channel_id: int, content: str) -> None:
        await self._io("send_message")
        self.replies.append((channel_id, content))

    async def list_guilds(self) -> List[Tuple[int, str]]:
        await self._io("list_guilds")
        if self.reject_list_guilds:
            raise PlatformError("list_guilds", "Service Unavailable")
        return list(self.guilds)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def make_message(
    message_id: int = 1,
    channel_id: int = 100,
    author_id: int = AUTHOR_ID,
    content: str = "hello",
    webhook_id: Optional[int] = None,
    attachments: Tuple[AttachmentRef, ...] = (),
    avatar: Optional[str] = "avatar-hash",
) -> MessageCreated:
    """Create a MessageCreated event for testing."""
    return MessageCreated(
        message_id=message_id,
        channel_id=channel_id,
        author=AuthorSnapshot(id=author_id, name=f"user{author_id}", avatar=avatar),
        content=content,
        webhook_id=webhook_id,
        attachments=attachments,
    )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def state() -> MirrorState:
    return MirrorState()


@pytest.fixture
def platform(state: MirrorState) -> FakePlatform:
    return FakePlatform(state)


@pytest.fixture
def routing_table() -> RoutingTable:
    return RoutingTable.from_entries([[100, 200, 300], [101]])


@pytest.fixture
def endpoints(platform: FakePlatform, state: MirrorState) -> ProxyEndpointManager:
    return ProxyEndpointManager(platform, state.endpoints)


@pytest.fixture
def canned_reply(platform: FakePlatform) -> CannedReply:
    return CannedReply(platform)


@pytest.fixture
def engine(routing_table, platform, endpoints, state, canned_reply) -> RelayEngine:
    return RelayEngine(routing_table, platform, endpoints, state, canned_reply)


@pytest.fixture
def propagator(platform, endpoints, state) -> EditDeletePropagator:
    return EditDeletePropagator(platform, endpoints, state)


@pytest.fixture
def dispatcher(engine, propagator, platform, state) -> EventDispatcher:
    return EventDispatcher(engine, propagator, platform, state)
