"""Turn an extraction result into the Slack reply text."""

from burgerbot.models import FetchError, SpecialOffer


def compose(result: SpecialOffer | FetchError, apology: str, no_special: str) -> str:
    """Format a reply: bold title, description and image URL on separate lines.

    Empty fields are left out. A FetchError gives the apology message; a page
    that loaded but had nothing in its latest-news block gives ``no_special``.
    """
    if isinstance(result, FetchError):
        return apology

    if result.is_empty:
        return no_special

    lines = []
    if result.title:
        lines.append(f"*{result.title}*")
    if result.description:
        lines.append(result.description)
    if result.image_ref:
        lines.append(result.image_ref)
    return "\n".join(lines)
