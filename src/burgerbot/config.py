"""Configuration loading and validation for burgerbot."""

import logging
import os
from dataclasses import dataclass, field
from urllib.parse import urlparse

import yaml

from burgerbot import __version__

logger = logging.getLogger(__name__)

DEFAULT_NAME = "burgerbot"
DEFAULT_URL = "http://www.honestburgers.co.uk/"
DEFAULT_APOLOGY = "Sorry, I couldn't find the current special burger :-("
DEFAULT_NO_SPECIAL = "There's no special listed on the Honest Burgers site right now."
DEFAULT_CONFIG_PATH = "~/.config/burgerbot/config.yaml"

KNOWN_KEYS = {
    "token",
    "app_token",
    "name",
    "url",
    "apology_message",
    "no_special_message",
    "fetch_timeout",
    "user_agent",
}


@dataclass
class Config:
    token: str | None = field(default_factory=lambda: os.environ.get("SLACK_BOT_TOKEN"))
    app_token: str | None = field(default_factory=lambda: os.environ.get("SLACK_APP_TOKEN"))
    name: str = DEFAULT_NAME
    url: str = DEFAULT_URL
    apology_message: str = DEFAULT_APOLOGY
    no_special_message: str = DEFAULT_NO_SPECIAL
    fetch_timeout: int | float = 10
    user_agent: str = f"burgerbot/{__version__}"


def _validate_config(config: Config) -> None:
    """Validate config values, raising ValueError on invalid fields."""
    if not config.name.strip():
        raise ValueError("name must be a non-empty string")

    parsed = urlparse(config.url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"url must be an http(s) URL, got '{config.url}'")

    if not config.apology_message.strip():
        raise ValueError("apology_message must be a non-empty string")

    if not config.no_special_message.strip():
        raise ValueError("no_special_message must be a non-empty string")

    # bool is an int subclass, reject it explicitly
    if isinstance(config.fetch_timeout, bool) or not isinstance(
        config.fetch_timeout, (int, float)
    ):
        raise ValueError(
            f"fetch_timeout must be a number, got {type(config.fetch_timeout).__name__}"
        )
    if config.fetch_timeout <= 0:
        raise ValueError(
            f"fetch_timeout must be positive, got {config.fetch_timeout}"
        )


def validate_tokens(config: Config) -> None:
    """Ensure both Slack tokens are present before connecting."""
    if not config.token:
        raise ValueError(
            "Slack bot token missing: set 'token' in the config or SLACK_BOT_TOKEN"
        )
    if not config.app_token:
        raise ValueError(
            "Slack app token missing: set 'app_token' in the config or SLACK_APP_TOKEN"
        )


def load_config(path: str | None = None) -> Config:
    """Load configuration from a YAML file.

    Config path resolution order:
    1. Explicit path argument
    2. BURGERBOT_CONFIG_PATH environment variable
    3. ~/.config/burgerbot/config.yaml (optional; defaults apply if absent)

    Tokens fall back to the SLACK_BOT_TOKEN and SLACK_APP_TOKEN environment
    variables when the file does not set them.
    """
    if path is None:
        path = os.environ.get("BURGERBOT_CONFIG_PATH")

    if path is None:
        default_path = os.path.expanduser(DEFAULT_CONFIG_PATH)
        if os.path.exists(default_path):
            path = default_path
        else:
            logger.debug("No config file at %s; using defaults", default_path)

    raw = None
    if path is not None:
        with open(path) as f:
            raw = yaml.safe_load(f)

    if raw is None:
        raw = {}

    if not isinstance(raw, dict):
        raise ValueError(f"Config file must contain a YAML mapping, got {type(raw).__name__}")

    for key in raw:
        if key not in KNOWN_KEYS:
            logger.warning("Unknown config key '%s', ignoring", key)

    config = Config()

    if raw.get("token"):
        config.token = str(raw["token"])
    if raw.get("app_token"):
        config.app_token = str(raw["app_token"])
    if "name" in raw:
        config.name = str(raw["name"] or "")
    if "url" in raw:
        config.url = str(raw["url"])
    if "apology_message" in raw:
        config.apology_message = str(raw["apology_message"] or "")
    if "no_special_message" in raw:
        config.no_special_message = str(raw["no_special_message"] or "")
    if "fetch_timeout" in raw:
        config.fetch_timeout = raw["fetch_timeout"]
    if "user_agent" in raw:
        config.user_agent = str(raw["user_agent"])

    _validate_config(config)

    return config
