"""ISO-8601 durations for recipe cook/prep times.

Recipes carry times like ``PT45M`` or ``PT3H30M``. The text is kept for
display and the parsed number of seconds is kept for sorting and arithmetic;
:class:`Duration` holds both so they can never drift apart.
"""
import logging
import re
from decimal import Decimal
from typing import Optional

from .errors import InvalidDuration

logger = logging.getLogger(__name__)

_PATTERN = re.compile(
    r"^(?P<sign>[-+]?)P"
    r"(?:(?P<days>[-+]?\d+)D)?"
    r"(?P<time>T"
    r"(?:(?P<hours>[-+]?\d+)H)?"
    r"(?:(?P<minutes>[-+]?\d+)M)?"
    r"(?:(?P<seconds>[-+]?\d+(?:[.,]\d{0,9})?)S)?"
    r")?$",
    re.IGNORECASE,
)


def _parse(text: str) -> Decimal:
    """Return the signed, exact number of seconds or raise ``ValueError``."""
    match = _PATTERN.match(text.strip())
    if not match:
        raise ValueError(text)
    parts = match.groupdict()
    if parts["time"] is not None and parts["time"].upper() == "T":
        raise ValueError(text)
    if parts["days"] is None and parts["time"] is None:
        raise ValueError(text)
    total = (
        int(parts["days"] or 0) * 86400
        + int(parts["hours"] or 0) * 3600
        + int(parts["minutes"] or 0) * 60
        + Decimal((parts["seconds"] or "0").replace(",", "."))
    )
    return -total if parts["sign"] == "-" else total


def parse(text: Optional[str]) -> int:
    """Lenient parse for ingestion: anything unusable becomes 0 seconds."""
    if not text:
        return 0
    try:
        seconds = _parse(text)
    except ValueError:
        logger.warning("Failed to parse duration: %r", text)
        return 0
    if seconds < 0:
        logger.warning("Negative duration treated as zero: %r", text)
        return 0
    return int(seconds)


def parse_strict(text: Optional[str]) -> int:
    """Parse user-supplied text, raising ``InvalidDuration`` on bad input."""
    if text is None:
        raise InvalidDuration("Duration is required.")
    try:
        seconds = _parse(text)
    except ValueError:
        raise InvalidDuration(f"Invalid ISO duration: {text}") from None
    if seconds < 0:
        raise InvalidDuration(f"Duration must not be negative: {text}")
    return int(seconds)


def try_parse(text: Optional[str]) -> Optional[Decimal]:
    # an absent time counts as zero, a malformed one is unknown
    if not text:
        return Decimal(0)
    try:
        seconds = _parse(text)
    except ValueError:
        return None
    return seconds if seconds >= 0 else None


def format_seconds(seconds) -> str:
    """Render whole or fractional seconds, e.g. ``PT1H30M`` or ``PT1.5S``."""
    if seconds == 0:
        return "PT0S"
    whole = int(seconds)
    fraction = Decimal(seconds) - whole
    hours, rest = divmod(whole, 3600)
    minutes, secs = divmod(rest, 60)
    out = "PT"
    if hours:
        out += f"{hours}H"
    if minutes:
        out += f"{minutes}M"
    if secs or fraction:
        out += f"{(secs + fraction).normalize():f}S"
    return out


def combine(a_seconds, b_seconds) -> Optional[str]:
    """Render ``a + b``; ``None`` if either side could not be parsed."""
    if a_seconds is None or b_seconds is None:
        return None
    return format_seconds(a_seconds + b_seconds)


def total_time(cook_text: Optional[str], prep_text: Optional[str]) -> Optional[str]:
    return combine(try_parse(cook_text), try_parse(prep_text))


class Duration:
    """A duration as both its source text and its length in seconds.

    Mapped onto a ``(*_iso, *_sec)`` column pair with
    :func:`sqlalchemy.orm.composite`.
    """

    def __init__(self, text: Optional[str], seconds: Optional[int]):
        self.text = text
        self.seconds = seconds or 0

    @classmethod
    def from_text(cls, text: Optional[str], strict: bool = False) -> "Duration":
        if not text:
            if strict and text is not None:
                raise InvalidDuration("Duration must not be empty.")
            return cls(None, 0)
        seconds = parse_strict(text) if strict else parse(text)
        return cls(text, seconds)

    def __composite_values__(self):
        return self.text, self.seconds

    def __eq__(self, other):
        return (
            isinstance(other, Duration)
            and other.text == self.text
            and other.seconds == self.seconds
        )

    def __ne__(self, other):
        return not self.__eq__(other)

    def __repr__(self):
        return f"Duration({self.text!r}, {self.seconds!r})"
