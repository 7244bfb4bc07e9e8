"""Decide whether an inbound Slack event deserves a reply."""

import logging

from burgerbot.models import BotIdentity, EventKind, InboundEvent

logger = logging.getLogger(__name__)

TRIGGER_PHRASE = "honest special"

# Public channel IDs start with "C", private groups with "G". DMs ("D") are
# not answered.
CHANNEL_PREFIXES = ("C", "G")


def is_chat_message(event: InboundEvent) -> bool:
    return event.kind is EventKind.MESSAGE and bool(event.text)


def is_channel_conversation(event: InboundEvent) -> bool:
    channel_id = event.channel_id
    return isinstance(channel_id, str) and channel_id[:1] in CHANNEL_PREFIXES


def is_not_self(event: InboundEvent, identity: BotIdentity) -> bool:
    return event.sender_id != identity.id


def is_mentioning(event: InboundEvent, identity: BotIdentity) -> bool:
    """True if the text contains the trigger phrase, the bot name or an @mention."""
    if not event.text:
        return False
    text = event.text.lower()
    triggers = (
        TRIGGER_PHRASE,
        identity.display_name.lower(),
        f"<@{identity.id}>".lower() if identity.id else "",
    )
    return any(trigger and trigger in text for trigger in triggers)


def should_respond(event: InboundEvent, identity: BotIdentity | None) -> bool:
    """Return True only if every predicate accepts the event.

    An unresolved identity (None) rejects everything, since neither the
    self check nor the mention check can be evaluated yet.
    """
    if identity is None:
        logger.debug("Bot identity not resolved yet; rejecting event")
        return False

    return (
        is_chat_message(event)
        and is_channel_conversation(event)
        and is_not_self(event, identity)
        and is_mentioning(event, identity)
    )
