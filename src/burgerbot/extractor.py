"""Scrape the current special out of the Honest Burgers home page markup.

Only the latest-news block under ``#main`` is searched. The page is outside
our control, so anything missing is returned as an empty field instead of
raising.
"""

import logging

from bs4 import BeautifulSoup, NavigableString
from bs4.builder import ParserRejectedMarkup
from bs4.element import PreformattedString, Tag

from burgerbot.models import SpecialOffer

logger = logging.getLogger(__name__)

BLOCK_SELECTOR = "#main > .latest-news"
TITLE_SELECTOR = "a > .news_span"
DESCRIPTION_SELECTOR = "a > p"
IMAGE_SELECTOR = "a > img"


def _own_text(tag: Tag) -> str:
    """Text of the tag's direct string children, ignoring nested elements and comments."""
    return "".join(
        str(node)
        for node in tag.children
        if isinstance(node, NavigableString) and not isinstance(node, PreformattedString)
    )


def _find_block(markup: str | bytes) -> Tag | None:
    try:
        soup = BeautifulSoup(markup, "html.parser")
    except ParserRejectedMarkup as exc:
        logger.warning("Could not parse page markup: %s", exc)
        return None
    return soup.select_one(BLOCK_SELECTOR)


def extract(markup: str | bytes) -> SpecialOffer:
    """Build a SpecialOffer from page markup.

    Each field is read independently; a field that cannot be found is left
    empty. Without a latest-news block the result has every field empty.
    """
    block = _find_block(markup)
    if block is None:
        logger.debug("No '%s' block in page markup", BLOCK_SELECTOR)
        return SpecialOffer()

    title = "".join(el.get_text() for el in block.select(TITLE_SELECTOR)).strip()

    # Children are dropped first, then the joined text is trimmed.
    description = "".join(_own_text(p) for p in block.select(DESCRIPTION_SELECTOR)).strip()

    image_ref = None
    image = block.select_one(IMAGE_SELECTOR)
    if image is not None:
        src = image.get("src")
        image_ref = src.strip() if isinstance(src, str) and src.strip() else None

    return SpecialOffer(title=title, description=description, image_ref=image_ref)
