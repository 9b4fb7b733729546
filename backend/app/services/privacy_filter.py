"""Detect and mask contact details in free-text messages.

Each category of contact information is an independent ``ContentPattern``.
``PATTERNS`` fixes the order they run in; masking applies every pattern
(several categories often co-occur in one message) and repeats the pass until
nothing else matches. Text already replaced by a placeholder is never
rescanned, so masked output is always reported as clean.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Iterator, Optional

HIDDEN_EMAIL = "[Hidden Email]"
HIDDEN_PHONE = "[Hidden Phone]"
HIDDEN_LINK = "[Hidden Link]"
HIDDEN_CONTACT = "[Hidden Contact]"
HIDDEN_EMAIL_PROVIDER = "[Hidden Email Provider]"

_PLACEHOLDER_RE = re.compile(
    r"(\[Hidden (?:Email Provider|Email|Phone|Link|Contact)\])"
)

_DIGIT_WORD = r"(?:zero|one|two|three|four|five|six|seven|eight|nine|\d)"
_MIN_PHONE_DIGITS = 7


def _digit_count(value: str) -> int:
    return sum(1 for ch in value if ch.isdigit())


def _has_phone_digits(match: re.Match) -> bool:
    return _digit_count(match.group(0)) >= _MIN_PHONE_DIGITS


def _has_spelled_digit(match: re.Match) -> bool:
    # Runs of bare numerals are left to PHONE
    return any(ch.isalpha() for ch in match.group(0))


@dataclass(frozen=True)
class ContentPattern:
    name: str
    regex: re.Pattern
    placeholder: str
    # Extra check on a regex hit; spans that fail it are left untouched
    accept: Optional[Callable[[re.Match], bool]] = None

    def _hits(self, text: str) -> Iterator[re.Match]:
        for match in self.regex.finditer(text):
            if self.accept is None or self.accept(match):
                yield match

    def matches(self, text: str) -> bool:
        """Return True when this category occurs outside existing placeholders."""
        return any(
            next(self._hits(segment), None) is not None
            for segment in _free_segments(text)
        )

    def mask(self, text: str) -> str:
        """Replace every occurrence of this category with its placeholder."""
        return _map_free_segments(text, self._mask_segment)

    def _mask_segment(self, segment: str) -> str:
        def _replace(match: re.Match) -> str:
            if self.accept is not None and not self.accept(match):
                return match.group(0)
            return self.placeholder

        return self.regex.sub(_replace, segment)


def _split(text: str) -> list[str]:
    # re.split with a capture group alternates free text / placeholder
    return _PLACEHOLDER_RE.split(text)


def _free_segments(text: str) -> list[str]:
    return _split(text)[0::2]


def _map_free_segments(text: str, fn: Callable[[str], str]) -> str:
    parts = _split(text)
    for idx in range(0, len(parts), 2):
        if parts[idx]:
            parts[idx] = fn(parts[idx])
    return "".join(parts)


EMAIL = ContentPattern(
    name="email",
    regex=re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"),
    placeholder=HIDDEN_EMAIL,
)

# "john at gmail dot com", "john (at) gmail (dot) co.za"
OBFUSCATED_EMAIL = ContentPattern(
    name="obfuscated_email",
    regex=re.compile(
        r"\b[A-Za-z0-9._%+-]+(?:\s*(?:\(at\)|@)\s*|\s+at\s+)[A-Za-z0-9.-]+\s*"
        r"(?:\(dot\)|\s+dot\s+|\.)\s*(?:com|co\.za|net|org|za)\b",
        re.IGNORECASE,
    ),
    placeholder=HIDDEN_EMAIL,
)

# "john @ gmail", "@john_doe"
AT_MENTION = ContentPattern(
    name="at_mention",
    regex=re.compile(
        r"\b[A-Za-z0-9._%+-]+(?:@|\s+@\s+)[A-Za-z0-9.-]+|(?<![\w@])@[A-Za-z0-9._-]+"
    ),
    placeholder=HIDDEN_EMAIL,
)

WHATSAPP = ContentPattern(
    name="whatsapp",
    regex=re.compile(
        r"\b(?:whatsapp|watsapp|wa)\s*(?:me|number|num|no)?\s*[:=]?\s*\+?[0-9][0-9\s-]{5,}[0-9]",
        re.IGNORECASE,
    ),
    placeholder=HIDDEN_CONTACT,
    accept=_has_phone_digits,
)

# Phone-shaped groups only: "082 123 4567", "(082) 123-4567", "+27 82 123 4567".
# Dates, prices and number lists do not have the 3-3-4 shape.
PHONE = ContentPattern(
    name="phone",
    regex=re.compile(
        r"(?<![\w+])(?:"
        r"\+\d{1,3}[\s.-]?\(?\d{2,3}\)?[\s.-]?\d{3}[\s.-]?\d{4}"
        r"|\(?\d{3}\)?[\s.-]?\d{3}[\s.-]?\d{4,6}"
        r")(?!\w)"
    ),
    placeholder=HIDDEN_PHONE,
)

# "zero eight two one two three four five six seven", "zero 8 2 one 2 3 4 5 6 7"
SPELLED_PHONE = ContentPattern(
    name="spelled_phone",
    regex=re.compile(
        rf"\b{_DIGIT_WORD}(?:[\s-]*{_DIGIT_WORD}){{{_MIN_PHONE_DIGITS - 1},}}\b",
        re.IGNORECASE,
    ),
    placeholder=HIDDEN_PHONE,
    accept=_has_spelled_digit,
)

URL = ContentPattern(
    name="url",
    regex=re.compile(
        r"https?://[^\s]+|\bwww\.[A-Za-z0-9][A-Za-z0-9-]*[A-Za-z0-9]\.[^\s]{2,}",
        re.IGNORECASE,
    ),
    placeholder=HIDDEN_LINK,
)

EMAIL_PROVIDER = ContentPattern(
    name="email_provider",
    regex=re.compile(
        r"\b(?:gmail|yahoo|hotmail|outlook|icloud|protonmail|whatsapp|watsapp|telegram|e-?mail|mail)"
        r"(?:\s*(?:\.com|\.co\.za|dot\s*com|account|address))?\b",
        re.IGNORECASE,
    ),
    placeholder=HIDDEN_EMAIL_PROVIDER,
)

PATTERNS: tuple[ContentPattern, ...] = (
    EMAIL,
    OBFUSCATED_EMAIL,
    AT_MENTION,
    WHATSAPP,
    PHONE,
    SPELLED_PHONE,
    URL,
    EMAIL_PROVIDER,
)


def find_sensitive_categories(text: str | None) -> list[str]:
    """Return the names of every pattern that matches ``text``, in pipeline order."""
    if not text:
        return []
    return [pattern.name for pattern in PATTERNS if pattern.matches(text)]


def contains_sensitive_content(text: str | None) -> bool:
    """Check if the text contains contact information."""
    if not text:
        return False
    return any(pattern.matches(text) for pattern in PATTERNS)


def mask_sensitive_content(text: str | None) -> str | None:
    """Return ``text`` with every detected contact detail replaced by a placeholder."""
    if not text:
        return text
    masked = text
    while True:
        before = masked
        for pattern in PATTERNS:
            masked = pattern.mask(masked)
        # Each productive pass removes free text, so this terminates
        if masked == before:
            return masked
