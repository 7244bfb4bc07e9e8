"""Slack session using Socket Mode.

Connects to Slack via the bolt framework, resolves the bot's own identity,
converts raw events into InboundEvent instances and posts replies.
"""

from __future__ import annotations

import collections
import logging

from slack_bolt import App
from slack_bolt.adapter.socket_mode import SocketModeHandler
from slack_sdk.errors import SlackApiError

from burgerbot.config import Config
from burgerbot.models import (
    BotIdentity,
    ChannelRef,
    ChannelVisibility,
    EventKind,
    InboundEvent,
)

logger = logging.getLogger(__name__)

# Message subtypes that are platform notices rather than chat.
_SYSTEM_SUBTYPES = frozenset({
    "channel_join",
    "channel_leave",
    "channel_topic",
    "channel_purpose",
    "channel_name",
    "channel_archive",
    "channel_unarchive",
    "group_join",
    "group_leave",
    "group_topic",
    "group_purpose",
    "group_name",
    "group_archive",
    "group_unarchive",
    "message_changed",
    "message_deleted",
    "message_replied",
})


class SlackSession:
    """Wraps a Slack Bolt ``App`` with Socket Mode for real-time events.

    Responsibilities
    ----------------
    * Resolves the bot's :class:`BotIdentity` once, in :meth:`connect`.
    * Converts raw event dicts into :class:`InboundEvent` objects.
    * De-duplicates events using a bounded deque.
    * Resolves channel IDs to :class:`ChannelRef` (cached in memory).
    * Posts replies to public channels and private groups.
    """

    def __init__(self, config: Config) -> None:
        self._name = config.name
        self._app = App(token=config.token)
        self._handler = SocketModeHandler(self._app, config.app_token)

        # None until connect() has run.
        self._identity: BotIdentity | None = None

        # Deduplication: keep the last 1 000 event identifiers.
        self._seen_events: collections.deque[str] = collections.deque(maxlen=1000)

        self._channel_cache: dict[str, ChannelRef] = {}

    # -- public properties / helpers -----------------------------------------

    @property
    def identity(self) -> BotIdentity | None:
        """The bot's own identity, or None before :meth:`connect`."""
        return self._identity

    @property
    def app(self) -> App:
        """The underlying ``slack_bolt.App`` instance."""
        return self._app

    # -- lifecycle -----------------------------------------------------------

    def connect(self) -> BotIdentity:
        """Resolve the bot's user ID. Raises ``SlackApiError`` on bad credentials."""
        auth_response = self._app.client.auth_test()
        self._identity = BotIdentity(
            id=auth_response["user_id"], display_name=self._name
        )
        logger.info(
            "Bot identity resolved: %s (%s)",
            self._identity.id,
            self._identity.display_name,
        )
        return self._identity

    def start(self) -> None:
        """Start the Socket Mode handler (blocking)."""
        logger.info("Starting Socket Mode handler")
        self._handler.start()

    def close(self) -> None:
        """Shut down the Socket Mode handler gracefully."""
        logger.info("Closing Socket Mode handler")
        self._handler.close()

    # -- event parsing -------------------------------------------------------

    def parse_event(self, event: dict) -> InboundEvent | None:
        """Convert a raw Slack event into an :class:`InboundEvent`.

        Returns ``None`` when the event is a duplicate or lacks the fields
        needed to identify it. Everything else is returned, tagged with its
        :class:`EventKind`, so the classifier makes the reply decision.
        """
        event_id = event.get("client_msg_id") or event.get("ts")
        if event_id is None:
            logger.debug("Event has no client_msg_id or ts; dropping")
            return None

        if event_id in self._seen_events:
            logger.debug("Duplicate event %s; dropping", event_id)
            return None

        self._seen_events.append(event_id)

        channel_id = event.get("channel")
        if not channel_id or not isinstance(channel_id, str):
            logger.debug("Event missing 'channel'; dropping")
            return None

        subtype = event.get("subtype")
        if event.get("type") != "message":
            kind = EventKind.OTHER
        elif subtype in _SYSTEM_SUBTYPES:
            kind = EventKind.SYSTEM
        else:
            kind = EventKind.MESSAGE

        sender_id = event.get("user") or event.get("bot_id") or ""

        return InboundEvent(
            kind=kind,
            channel_id=channel_id,
            sender_id=sender_id,
            text=event.get("text"),
        )

    # -- channel roster ------------------------------------------------------

    def resolve_channel(self, channel_id: str, client) -> ChannelRef | None:
        """Look up a public channel or private group by ID.

        Returns ``None`` for DMs and for channels the bot cannot see.
        """
        if channel_id in self._channel_cache:
            return self._channel_cache[channel_id]

        logger.debug("Channel cache miss for %s", channel_id)

        try:
            info = client.conversations_info(channel=channel_id)
            channel = info["channel"]
        except SlackApiError as exc:
            logger.warning(
                "Failed to resolve channel %s: %s", channel_id, exc.response.get("error")
            )
            return None
        except Exception:
            logger.warning("Failed to resolve channel %s", channel_id, exc_info=True)
            return None

        if channel.get("is_im") or channel.get("is_mpim"):
            logger.debug("Channel %s is a DM; not resolvable", channel_id)
            return None

        if channel.get("is_private") or channel.get("is_group"):
            visibility = ChannelVisibility.PRIVATE
        else:
            visibility = ChannelVisibility.PUBLIC

        ref = ChannelRef(
            id=channel_id,
            name=channel.get("name", channel_id),
            visibility=visibility,
        )
        self._channel_cache[channel_id] = ref
        return ref

    # -- outbound ------------------------------------------------------------

    def post_to_channel(self, channel: ChannelRef, text: str, client) -> None:
        """Post ``text`` to a public channel as the bot user."""
        client.chat_postMessage(channel=channel.id, text=text)
        logger.info("Replied in #%s", channel.name)

    def post_to_group(self, channel: ChannelRef, text: str, client) -> None:
        """Post ``text`` to a private group as the bot user."""
        client.chat_postMessage(channel=channel.id, text=text)
        logger.info("Replied in private group %s", channel.name)
