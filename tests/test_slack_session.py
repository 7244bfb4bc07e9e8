"""Tests for the Slack session: identity, event parsing, roster and posting."""

from unittest.mock import MagicMock, patch
from urllib.error import URLError

import pytest
from slack_sdk.errors import SlackApiError

from burgerbot.config import Config
from burgerbot.models import (
    BotIdentity,
    ChannelRef,
    ChannelVisibility,
    EventKind,
)
from burgerbot.slack_session import SlackSession

BOT_USER_ID = "U_BOT_123"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_client(channel: dict | None = None):
    """Return a mock Slack ``WebClient`` with standard stubs."""
    client = MagicMock()
    client.conversations_info.return_value = {
        "channel": channel
        or {"id": "C_CHAN_1", "name": "general", "is_channel": True, "is_private": False},
    }
    return client


def _make_event(**overrides) -> dict:
    """Return a minimal valid message event dict, with overrides."""
    base = {
        "type": "message",
        "channel": "C_CHAN_1",
        "user": "U_ALICE",
        "text": "hello world",
        "ts": "1700000000.000001",
    }
    base.update(overrides)
    return base


@pytest.fixture()
def session():
    """Create a ``SlackSession`` with Slack API calls fully mocked."""
    with (
        patch("burgerbot.slack_session.App") as MockApp,
        patch("burgerbot.slack_session.SocketModeHandler") as MockHandler,
    ):
        mock_app_instance = MockApp.return_value
        mock_app_instance.client.auth_test.return_value = {
            "user_id": BOT_USER_ID,
        }
        s = SlackSession(Config(token="xoxb-fake", app_token="xapp-fake", name="burgerbot"))
        s.mock_app = mock_app_instance
        s.mock_handler = MockHandler.return_value
    return s


# ---------------------------------------------------------------------------
# Identity / lifecycle
# ---------------------------------------------------------------------------


class TestIdentity:
    def test_not_ready_before_connect(self, session):
        assert session.identity is None

    def test_connect_resolves_identity(self, session):
        identity = session.connect()

        assert identity == BotIdentity(id=BOT_USER_ID, display_name="burgerbot")
        assert session.identity == identity
        session.mock_app.client.auth_test.assert_called_once()

    def test_connect_propagates_auth_failure(self, session):
        session.mock_app.client.auth_test.side_effect = SlackApiError(
            "invalid_auth", {"ok": False, "error": "invalid_auth"}
        )

        with pytest.raises(SlackApiError):
            session.connect()
        assert session.identity is None

    def test_tokens_passed_through(self):
        with (
            patch("burgerbot.slack_session.App") as MockApp,
            patch("burgerbot.slack_session.SocketModeHandler") as MockHandler,
        ):
            SlackSession(Config(token="xoxb-1", app_token="xapp-2"))

        MockApp.assert_called_once_with(token="xoxb-1")
        MockHandler.assert_called_once_with(MockApp.return_value, "xapp-2")

    def test_start_and_close(self, session):
        session.start()
        session.close()

        session.mock_handler.start.assert_called_once()
        session.mock_handler.close.assert_called_once()


# ---------------------------------------------------------------------------
# Event parsing
# ---------------------------------------------------------------------------


class TestParseEvent:
    def test_basic_event(self, session):
        inbound = session.parse_event(_make_event())

        assert inbound is not None
        assert inbound.kind is EventKind.MESSAGE
        assert inbound.channel_id == "C_CHAN_1"
        assert inbound.sender_id == "U_ALICE"
        assert inbound.text == "hello world"

    def test_missing_text_is_none(self, session):
        event = _make_event()
        del event["text"]

        inbound = session.parse_event(event)

        assert inbound is not None
        assert inbound.text is None

    @pytest.mark.parametrize(
        "subtype",
        ["channel_join", "group_leave", "channel_topic", "message_changed", "message_deleted"],
    )
    def test_system_subtypes(self, session, subtype):
        inbound = session.parse_event(_make_event(subtype=subtype))

        assert inbound is not None
        assert inbound.kind is EventKind.SYSTEM

    def test_non_message_type(self, session):
        inbound = session.parse_event(_make_event(type="reaction_added"))

        assert inbound is not None
        assert inbound.kind is EventKind.OTHER

    def test_bot_message(self, session):
        event = _make_event(subtype="bot_message", bot_id="B_BOT_2")
        event.pop("user")

        inbound = session.parse_event(event)

        assert inbound is not None
        assert inbound.kind is EventKind.MESSAGE
        assert inbound.sender_id == "B_BOT_2"

    def test_missing_channel_returns_none(self, session):
        event = _make_event()
        del event["channel"]

        assert session.parse_event(event) is None

    def test_missing_ts_and_client_msg_id_returns_none(self, session):
        event = _make_event()
        del event["ts"]

        assert session.parse_event(event) is None


class TestDeduplication:
    def test_duplicate_by_ts(self, session):
        event = _make_event(ts="1700000000.999999")

        assert session.parse_event(event) is not None
        assert session.parse_event(event) is None

    def test_duplicate_by_client_msg_id(self, session):
        event = _make_event(client_msg_id="msg-abc-123")

        assert session.parse_event(event) is not None
        assert session.parse_event(event) is None

    def test_different_events_not_deduped(self, session):
        assert session.parse_event(_make_event(ts="1.1")) is not None
        assert session.parse_event(_make_event(ts="1.2")) is not None


# ---------------------------------------------------------------------------
# Channel roster
# ---------------------------------------------------------------------------


class TestResolveChannel:
    def test_public_channel(self, session):
        ref = session.resolve_channel("C_CHAN_1", _make_client())

        assert ref == ChannelRef(
            id="C_CHAN_1", name="general", visibility=ChannelVisibility.PUBLIC
        )

    @pytest.mark.parametrize(
        "flags", [{"is_private": True}, {"is_group": True}]
    )
    def test_private_group(self, session, flags):
        client = _make_client({"id": "G1", "name": "secret-burgers", **flags})

        ref = session.resolve_channel("G1", client)

        assert ref is not None
        assert ref.visibility is ChannelVisibility.PRIVATE
        assert ref.name == "secret-burgers"

    @pytest.mark.parametrize("flags", [{"is_im": True}, {"is_mpim": True}])
    def test_dm_not_resolved(self, session, flags):
        client = _make_client({"id": "D1", **flags})

        assert session.resolve_channel("D1", client) is None

    def test_lookup_failure_returns_none(self, session):
        client = MagicMock()
        client.conversations_info.side_effect = SlackApiError(
            "not found", {"ok": False, "error": "channel_not_found"}
        )

        assert session.resolve_channel("C_GONE", client) is None

    @pytest.mark.parametrize(
        "exc", [URLError("network down"), TimeoutError("timed out"), KeyError("channel")]
    )
    def test_network_failure_returns_none(self, session, exc, caplog):
        client = MagicMock()
        client.conversations_info.side_effect = exc

        with caplog.at_level("WARNING", logger="burgerbot.slack_session"):
            assert session.resolve_channel("C_FLAKY", client) is None

        assert "Failed to resolve channel C_FLAKY" in caplog.text

    def test_failure_not_cached(self, session):
        client = _make_client()
        found = client.conversations_info.return_value
        client.conversations_info.side_effect = [URLError("network down"), found]

        assert session.resolve_channel("C_CHAN_1", client) is None
        assert session.resolve_channel("C_CHAN_1", client) is not None

    def test_cached(self, session):
        client = _make_client()

        session.resolve_channel("C_CHAN_1", client)
        session.resolve_channel("C_CHAN_1", client)

        client.conversations_info.assert_called_once_with(channel="C_CHAN_1")


# ---------------------------------------------------------------------------
# Posting
# ---------------------------------------------------------------------------


class TestPosting:
    def test_post_to_channel(self, session):
        client = MagicMock()
        ref = ChannelRef(id="C1", name="general", visibility=ChannelVisibility.PUBLIC)

        session.post_to_channel(ref, "*The Smokey*", client)

        client.chat_postMessage.assert_called_once_with(channel="C1", text="*The Smokey*")

    def test_post_to_group(self, session):
        client = MagicMock()
        ref = ChannelRef(id="G1", name="secret", visibility=ChannelVisibility.PRIVATE)

        session.post_to_group(ref, "*The Smokey*", client)

        client.chat_postMessage.assert_called_once_with(channel="G1", text="*The Smokey*")
