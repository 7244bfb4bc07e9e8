"""Entry point for burgerbot."""

from __future__ import annotations

import argparse
import logging
import signal
import sys

from slack_sdk.errors import SlackApiError

from burgerbot.composer import compose
from burgerbot.config import load_config, validate_tokens
from burgerbot.dispatcher import EventDispatcher
from burgerbot.fetcher import get_special_offer
from burgerbot.slack_session import SlackSession

logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="burgerbot",
        description="Reply in Slack with the current Honest Burgers special.",
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        default=None,
        help="Path to config YAML (default: ~/.config/burgerbot/config.yaml)",
    )
    parser.add_argument(
        "--log-level",
        metavar="LEVEL",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: INFO)",
    )
    parser.add_argument(
        "--preview",
        action="store_true",
        help="Print the reply for the current special and exit without connecting to Slack",
    )
    return parser.parse_args(argv)


def preview(config) -> str:
    """Fetch the page once and return the reply the bot would post."""
    result = get_special_offer(
        config.url, timeout=config.fetch_timeout, user_agent=config.user_agent
    )
    return compose(result, config.apology_message, config.no_special_message)


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)

    logging.basicConfig(
        format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
        level=getattr(logging, args.log_level),
    )

    try:
        config = load_config(args.config)
    except FileNotFoundError as exc:
        logger.error("Config file not found: %s", exc)
        sys.exit(1)
    except ValueError as exc:
        logger.error("Invalid configuration: %s", exc)
        sys.exit(1)

    logger.info("Configuration loaded successfully")

    if args.preview:
        print(preview(config))
        return

    try:
        validate_tokens(config)
    except ValueError as exc:
        logger.error("Invalid configuration: %s", exc)
        sys.exit(1)

    session = SlackSession(config)
    try:
        session.connect()
    except SlackApiError as exc:
        logger.error("Slack authentication failed: %s", exc.response.get("error"))
        sys.exit(1)

    dispatcher = EventDispatcher(session, config)

    @session.app.event("message")
    def _on_message(event, client):
        dispatcher.handle(event, client)

    # Graceful shutdown on SIGTERM / SIGINT.
    def _shutdown(signum, _frame):
        sig_name = signal.Signals(signum).name
        logger.info("Received %s, shutting down", sig_name)
        session.close()

    signal.signal(signal.SIGTERM, _shutdown)
    signal.signal(signal.SIGINT, _shutdown)

    logger.info("Starting burgerbot as '%s'", config.name)
    session.start()
