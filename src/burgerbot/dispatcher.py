"""Per-event pipeline: classify, fetch, compose and reply."""

from __future__ import annotations

import logging
import threading

from slack_sdk.errors import SlackApiError

from burgerbot.classifier import should_respond
from burgerbot.composer import compose
from burgerbot.config import Config
from burgerbot.fetcher import get_special_offer
from burgerbot.models import ChannelVisibility, DispatcherState

logger = logging.getLogger(__name__)


class EventDispatcher:
    """Runs one inbound event at a time through the reply pipeline.

    Bolt calls listeners from a thread pool, so handling is serialised with a
    lock. The state is HANDLING only while an accepted event is in flight.
    """

    def __init__(self, session, config: Config) -> None:
        self._session = session
        self._config = config
        self._lock = threading.Lock()
        self.state = DispatcherState.IDLE

    def handle(self, event: dict, client) -> None:
        """Process a single Slack event through the full pipeline.

        Steps: parse → classify → resolve channel → fetch → compose → post.
        """
        with self._lock:
            inbound = self._session.parse_event(event)
            if inbound is None:
                return

            if not should_respond(inbound, self._session.identity):
                logger.debug(
                    "Ignored %s event in %s from %s",
                    inbound.kind.value,
                    inbound.channel_id,
                    inbound.sender_id,
                )
                return

            self.state = DispatcherState.HANDLING
            try:
                self._reply(inbound, client)
            except Exception:
                logger.exception(
                    "Failed to handle event in %s; dropping", inbound.channel_id
                )
            finally:
                self.state = DispatcherState.IDLE

    def _reply(self, inbound, client) -> None:
        channel = self._session.resolve_channel(inbound.channel_id, client)
        if channel is None:
            logger.warning(
                "Could not resolve channel %s; dropping event", inbound.channel_id
            )
            return

        result = get_special_offer(
            self._config.url,
            timeout=self._config.fetch_timeout,
            user_agent=self._config.user_agent,
        )
        text = compose(
            result, self._config.apology_message, self._config.no_special_message
        )

        try:
            if channel.visibility is ChannelVisibility.PRIVATE:
                self._session.post_to_group(channel, text, client)
            else:
                self._session.post_to_channel(channel, text, client)
        except SlackApiError as exc:
            logger.error(
                "Failed to post reply in %s: %s",
                channel.name,
                exc.response.get("error"),
            )
        except Exception as exc:
            logger.error("Failed to post reply in %s: %s", channel.name, exc)
