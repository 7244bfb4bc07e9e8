"""Shared data structures used across all components."""

from dataclasses import dataclass
from enum import Enum


class EventKind(Enum):
    MESSAGE = "message"
    SYSTEM = "system"  # message events with a join/topic/edit style subtype
    OTHER = "other"


class ChannelVisibility(Enum):
    PUBLIC = "public"
    PRIVATE = "private"


class DispatcherState(Enum):
    IDLE = "idle"
    HANDLING = "handling"


@dataclass
class InboundEvent:
    kind: EventKind
    channel_id: str  # raw channel ID, e.g. "C123" or "G456"
    sender_id: str  # raw user ID (or bot ID for bot messages)
    text: str | None = None


@dataclass(frozen=True)
class BotIdentity:
    id: str  # Slack user ID assigned to the bot
    display_name: str  # configured bot name, also used as a trigger


@dataclass
class ChannelRef:
    id: str
    name: str
    visibility: ChannelVisibility


@dataclass
class SpecialOffer:
    title: str = ""
    description: str = ""
    image_ref: str | None = None

    @property
    def is_empty(self) -> bool:
        return not (self.title or self.description or self.image_ref)


@dataclass
class FetchError:
    reason: str  # transport error detail, for logs only
