from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from config import env

HERO_CARD: str = "application/vnd.microsoft.card.hero"
THUMBNAIL_CARD: str = "application/vnd.microsoft.card.thumbnail"

CARD_ACTION_TYPES: frozenset[str] = frozenset(
    {
        "openUrl",
        "imBack",
        "postBack",
        "call",
        "playAudio",
        "playVideo",
        "showImage",
        "downloadFile",
        "signin",
    }
)


# ──────────────────────────────────────────────────────────────
# Typed configuration container
# ──────────────────────────────────────────────────────────────


@dataclass(slots=True)
class SessionConfig:
    """
    Aggregates everything a :class:`~directline.conversation.ConversationSession`
    needs from the outside world.

    Defaults are pulled from environment variables via *config.py*; pass
    explicit values to keep a session independent of the process environment.
    """

    base_url: str = env("DIRECT_LINE_URL", "https://directline.botframework.com/v3/directline")
    secret: str = env("DIRECT_LINE_SECRET", "")
    user_id: str = env("DIRECT_LINE_USER_ID", "")
    user_name: str = env("DIRECT_LINE_USER_NAME", "user")
    poll_interval: float = env("POLL_INTERVAL", 1.0, cast=float)
    idle_timeout: float = env("POLL_IDLE_TIMEOUT", 30.0, cast=float)  # 0 disables
    create_retries: int = env("CREATE_RETRIES", 3, cast=int)
    send_retries: int = env("SEND_RETRIES", 1, cast=int)
    poll_retries: int = env("POLL_RETRIES", 1, cast=int)
    retry_backoff: float = env("RETRY_BACKOFF", 0.0, cast=float)
    request_timeout: float = env("REQUEST_TIMEOUT", 15.0, cast=float)


# ──────────────────────────────────────────────────────────────
# Activity wire shapes (read-only views)
# ──────────────────────────────────────────────────────────────


def _dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _list(value: Any) -> list:
    return value if isinstance(value, list) else []


@dataclass(slots=True, frozen=True)
class ChannelAccount:
    id: str = ""
    name: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> "ChannelAccount":
        data = _dict(data)
        return cls(id=data.get("id") or "", name=data.get("name") or "")


@dataclass(slots=True, frozen=True)
class CardAction:
    """A button or tap target; unknown *type* values are kept as-is."""

    type: str
    title: Optional[str] = None
    text: Optional[str] = None
    image: Optional[str] = None
    value: Any = None

    @property
    def is_known_type(self) -> bool:
        return self.type in CARD_ACTION_TYPES

    @classmethod
    def from_dict(cls, data: Any) -> Optional["CardAction"]:
        if not isinstance(data, dict):
            return None
        return cls(
            type=data.get("type", ""),
            title=data.get("title"),
            text=data.get("text"),
            image=data.get("image"),
            value=data.get("value"),
        )


@dataclass(slots=True, frozen=True)
class CardImage:
    url: str
    alt: Optional[str] = None
    tap: Optional[CardAction] = None

    @classmethod
    def from_dict(cls, data: Any) -> "CardImage":
        data = _dict(data)
        return cls(
            url=data.get("url", ""),
            alt=data.get("alt"),
            tap=CardAction.from_dict(data.get("tap")),
        )


@dataclass(slots=True, frozen=True)
class CardContent:
    """Body shared by hero and thumbnail cards."""

    title: Optional[str] = None
    subtitle: Optional[str] = None
    text: Optional[str] = None
    images: list[CardImage] = field(default_factory=list)
    buttons: list[CardAction] = field(default_factory=list)
    tap: Optional[CardAction] = None

    @classmethod
    def from_dict(cls, data: Any) -> "CardContent":
        data = _dict(data)
        buttons = (CardAction.from_dict(b) for b in _list(data.get("buttons")))
        return cls(
            title=data.get("title"),
            subtitle=data.get("subtitle"),
            text=data.get("text"),
            images=[CardImage.from_dict(i) for i in _list(data.get("images"))],
            buttons=[b for b in buttons if b is not None],
            tap=CardAction.from_dict(data.get("tap")),
        )


@dataclass(slots=True, frozen=True)
class Attachment:
    """
    One attachment of an activity.

    *content* is a :class:`CardContent` for hero and thumbnail cards and the
    raw decoded JSON for every other content type.
    """

    content_type: str
    content: Any = None
    content_url: Optional[str] = None
    name: Optional[str] = None
    thumbnail_url: Optional[str] = None

    @property
    def is_hero_card(self) -> bool:
        return self.content_type == HERO_CARD

    @property
    def is_thumbnail_card(self) -> bool:
        return self.content_type == THUMBNAIL_CARD

    @classmethod
    def from_dict(cls, data: Any) -> "Attachment":
        data = _dict(data)
        content_type = data.get("contentType", "")
        content = data.get("content")
        if content_type in (HERO_CARD, THUMBNAIL_CARD):
            content = CardContent.from_dict(content)
        return cls(
            content_type=content_type,
            content=content,
            content_url=data.get("contentUrl"),
            name=data.get("name"),
            thumbnail_url=data.get("thumbnailUrl"),
        )


@dataclass(slots=True, frozen=True)
class Activity:
    """
    One unit of conversation traffic as delivered by the service.

    Parsing is lenient: missing keys fall back to empty values and unknown
    keys are ignored, so a partially populated activity never aborts a poll.
    """

    type: str
    id: str = ""
    timestamp: str = ""
    service_url: str = ""
    channel_id: str = ""
    from_: ChannelAccount = field(default_factory=ChannelAccount)
    conversation: ChannelAccount = field(default_factory=ChannelAccount)
    recipient: ChannelAccount = field(default_factory=ChannelAccount)
    text: Optional[str] = None
    reply_to_id: Optional[str] = None
    attachments: list[Attachment] = field(default_factory=list)
    channel_data: dict[str, Any] = field(default_factory=dict)

    @property
    def is_message(self) -> bool:
        return self.type == "message"

    @classmethod
    def from_dict(cls, data: Any) -> "Activity":
        data = _dict(data)
        return cls(
            type=data.get("type") or "",
            id=data.get("id") or "",
            timestamp=data.get("timestamp") or "",
            service_url=data.get("serviceUrl") or "",
            channel_id=data.get("channelId") or "",
            from_=ChannelAccount.from_dict(data.get("from")),
            conversation=ChannelAccount.from_dict(data.get("conversation")),
            recipient=ChannelAccount.from_dict(data.get("recipient")),
            text=data.get("text"),
            reply_to_id=data.get("replyToId"),
            attachments=[Attachment.from_dict(a) for a in _list(data.get("attachments"))],
            channel_data=_dict(data.get("channelData")),
        )


def outgoing_message(text: str, user_id: str, user_name: str) -> dict[str, Any]:
    """Build the JSON body for a message authored by the local user."""
    return {
        "type": "message",
        "text": text,
        "from": {"id": user_id, "name": user_name},
    }
