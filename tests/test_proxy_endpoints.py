"""Unit tests for ProxyEndpointManager creation, caching and lazy recreation."""

import pytest

from mirrorbot.core.events import AuthorSnapshot
from mirrorbot.core.exceptions import EndpointCreationError

from tests.conftest import FakeChannel

AUTHOR = AuthorSnapshot(id=42, name="alice", avatar="a1b2")


@pytest.mark.asyncio
async def test_unseen_pair_creates_one_endpoint(endpoints, platform, state):
    webhook = await endpoints.get_or_create(FakeChannel(200), AUTHOR)

    assert platform.created == [webhook]
    assert webhook.name == "alice"
    assert webhook.avatar == b"avatar:a1b2"
    assert await state.endpoints.get((200, 42)) == webhook.id
    assert await state.endpoints.size() == 1


@pytest.mark.asyncio
async def test_live_endpoint_is_reused(endpoints, platform):
    first = await endpoints.get_or_create(FakeChannel(200), AUTHOR)
    second = await endpoints.get_or_create(FakeChannel(200), AUTHOR)

    assert second is first
    assert len(platform.created) == 1


@pytest.mark.asyncio
async def test_endpoints_are_per_channel_and_author(endpoints, platform):
    other = AuthorSnapshot(id=43, name="bob")
    await endpoints.get_or_create(FakeChannel(200), AUTHOR)
    await endpoints.get_or_create(FakeChannel(300), AUTHOR)
    await endpoints.get_or_create(FakeChannel(200), other)

    assert len(platform.created) == 3


@pytest.mark.asyncio
async def test_stale_endpoint_is_recreated(endpoints, platform, state):
    stale = await endpoints.get_or_create(FakeChannel(200), AUTHOR)
    platform.drop_webhook(stale.id)

    fresh = await endpoints.get_or_create(FakeChannel(200), AUTHOR)

    assert fresh.id != stale.id
    assert len(platform.created) == 2
    assert await state.endpoints.get((200, 42)) == fresh.id


@pytest.mark.asyncio
async def test_name_only_creation_without_avatar(endpoints, platform):
    author = AuthorSnapshot(id=42, name="alice", avatar=None)
    webhook = await endpoints.get_or_create(FakeChannel(200), author)

    assert webhook.avatar is None
    assert "read_asset" not in platform.calls


@pytest.mark.asyncio
async def test_unreadable_avatar_falls_back_to_name_only(endpoints, platform):
    platform.avatar_unavailable = True
    webhook = await endpoints.get_or_create(FakeChannel(200), AUTHOR)

    assert webhook.avatar is None
    assert webhook.name == "alice"


@pytest.mark.asyncio
async def test_creation_failure_writes_nothing(endpoints, platform, state):
    platform.reject_create.add(200)

    with pytest.raises(EndpointCreationError):
        await endpoints.get_or_create(FakeChannel(200), AUTHOR)

    assert await state.endpoints.get((200, 42)) is None


@pytest.mark.asyncio
async def test_creation_failure_keeps_stale_entry_untouched(endpoints, platform, state):
    stale = await endpoints.get_or_create(FakeChannel(200), AUTHOR)
    platform.drop_webhook(stale.id)
    platform.reject_create.add(200)

    with pytest.raises(EndpointCreationError):
        await endpoints.get_or_create(FakeChannel(200), AUTHOR)

    assert await state.endpoints.get((200, 42)) == stale.id


@pytest.mark.asyncio
async def test_resolve_never_creates(endpoints, platform, state):
    assert await endpoints.resolve(200, 42) is None
    assert platform.created == []
    assert await state.endpoints.size() == 0


@pytest.mark.asyncio
async def test_resolve_returns_live_endpoint(endpoints):
    webhook = await endpoints.get_or_create(FakeChannel(200), AUTHOR)
    assert await endpoints.resolve(200, 42) is webhook


@pytest.mark.asyncio
async def test_resolve_stale_endpoint_returns_none(endpoints, platform):
    webhook = await endpoints.get_or_create(FakeChannel(200), AUTHOR)
    platform.drop_webhook(webhook.id)

    assert await endpoints.resolve(200, 42) is None
    assert len(platform.created) == 1
