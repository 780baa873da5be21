"""
Closed set of inbound events handled by the dispatcher.

The Discord client layer converts gateway payloads into these plain values so
the engine never touches library objects directly, except through the opaque
``handle``/``avatar`` references it passes back to the platform facade.
"""
from dataclasses import dataclass, field
from typing import Any, Optional, Tuple, Union


@dataclass(frozen=True)
class AuthorSnapshot:
    """Identity of a message author at the time the message was observed."""
    id: int
    name: str
    avatar: Optional[Any] = None


@dataclass(frozen=True)
class AttachmentRef:
    filename: str
    url: str
    height: Optional[int] = None
    handle: Optional[Any] = None

    @property
    def is_image(self) -> bool:
        # Only images and videos carry pixel dimensions.
        return self.height is not None


@dataclass(frozen=True)
class MessageCreated:
    message_id: int
    channel_id: int
    author: AuthorSnapshot
    content: str = ""
    webhook_id: Optional[int] = None
    attachments: Tuple[AttachmentRef, ...] = field(default_factory=tuple)

    @property
    def image_attachments(self) -> Tuple[AttachmentRef, ...]:
        return tuple(a for a in self.attachments if a.is_image)


@dataclass(frozen=True)
class MessageEdited:
    message_id: int
    channel_id: int
    content: Optional[str] = None
    author_id: Optional[int] = None


@dataclass(frozen=True)
class MessageDeleted:
    message_id: int
    channel_id: int
    guild_id: Optional[int] = None


@dataclass(frozen=True)
class MessagesBulkDeleted:
    message_ids: Tuple[int, ...]
    channel_id: int
    guild_id: Optional[int] = None


@dataclass(frozen=True)
class BotReady:
    user_id: int
    user_name: str


MirrorEvent = Union[MessageCreated, MessageEdited, MessageDeleted, MessagesBulkDeleted, BotReady]
