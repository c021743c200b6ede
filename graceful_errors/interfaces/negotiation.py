"""
Accept header negotiation between the default error representations.
"""

from typing import Iterable, Optional

MEDIA_TYPES = {
    "json": "application/json",
    "text": "text/plain",
    "html": "text/html",
}


def _parse_accept(header: str) -> list[tuple[str, float, int]]:
    """Return (media_range, quality, position) for each entry of an Accept header."""
    ranges = []
    for position, part in enumerate(header.split(",")):
        fields = [f.strip() for f in part.split(";")]
        media_range = fields[0].lower()
        if not media_range:
            continue
        quality = 1.0
        for param in fields[1:]:
            name, _, value = param.partition("=")
            if name.strip().lower() == "q":
                try:
                    quality = float(value)
                except ValueError:
                    quality = 0.0
        ranges.append((media_range, quality, position))
    return ranges


def _specificity(media_range: str, media_type: str) -> Optional[int]:
    """Return how specifically media_range matches media_type, or None."""
    if media_range == media_type:
        return 2
    main, _, sub = media_range.partition("/")
    if sub == "*" and media_type.startswith(main + "/"):
        return 1
    if media_range in ("*/*", "*"):
        return 0
    return None


def negotiate(accept: Optional[str], offered: Iterable[str]) -> Optional[str]:
    """Pick the representation token the client prefers.

    Args:
        accept: Raw Accept header value, or None.
        offered: Tokens ("json", "text", "html") in server preference order.

    Returns:
        The chosen token, the first offered one when the client accepts
        anything, or None when nothing offered is acceptable.
    """
    tokens = [t for t in offered if t in MEDIA_TYPES]
    if not tokens:
        return None
    if not accept or not accept.strip():
        return tokens[0]

    ranges = _parse_accept(accept)
    best: Optional[tuple[float, int, int, int]] = None
    chosen = None
    for order, token in enumerate(tokens):
        media_type = MEDIA_TYPES[token]
        # The most specific matching range decides this type's quality
        match = None
        for media_range, quality, position in ranges:
            specificity = _specificity(media_range, media_type)
            if specificity is None:
                continue
            if match is None or specificity > match[0]:
                match = (specificity, quality, position)
        if match is None or match[1] <= 0:
            continue
        specificity, quality, position = match
        score = (quality, specificity, -position, -order)
        if best is None or score > best:
            best = score
            chosen = token
    return chosen
