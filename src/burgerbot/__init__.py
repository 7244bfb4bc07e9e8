"""Slack bot that replies with the current Honest Burgers special."""

__version__ = "0.1.0"
