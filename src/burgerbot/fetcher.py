"""Fetch the special burger page and turn it into a SpecialOffer."""

import logging

import requests

from burgerbot.extractor import extract
from burgerbot.models import FetchError, SpecialOffer

logger = logging.getLogger(__name__)


def fetch_page(url: str, timeout: float, user_agent: str) -> str:
    """GET ``url`` and return the response body.

    Raises ``requests.RequestException`` on connection problems, timeouts and
    non-2xx responses.
    """
    resp = requests.get(url, timeout=timeout, headers={"User-Agent": user_agent})
    resp.raise_for_status()
    return resp.text


def get_special_offer(
    url: str, *, timeout: float, user_agent: str
) -> SpecialOffer | FetchError:
    """Fetch ``url`` once and extract the current special.

    Transport failures come back as a FetchError value so the caller can
    substitute its apology message. A page that loads but has no special
    still returns a (possibly empty) SpecialOffer.
    """
    try:
        markup = fetch_page(url, timeout, user_agent)
    except requests.RequestException as exc:
        logger.warning("Failed to fetch %s: %s", url, exc)
        return FetchError(reason=str(exc))

    offer = extract(markup)
    if offer.is_empty:
        logger.info("No special found on %s", url)
    return offer
