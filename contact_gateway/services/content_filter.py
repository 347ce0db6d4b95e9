from __future__ import annotations

import re
from typing import Callable, Dict, Iterable, Optional, Sequence, Tuple

from contact_gateway.core.config import settings
from contact_gateway.schemas.contact import SubmittedForm

URL_PATTERN = re.compile(
    r"(https?://[^\s]+)|(www\.[^\s]+)|([a-z0-9\-]+\.[a-z]{2,})"
)

CYRILLIC = (0x0400, 0x04FF)

_WHITESPACE = re.compile(r"\s+")


def normalize_name(name: str) -> str:
    """Lower-case a name and drop every whitespace character."""
    return _WHITESPACE.sub("", name.lower())


def is_blacklisted_name(name: str, forbidden: Iterable[str]) -> bool:
    normalized = normalize_name(name)
    return any(normalized == normalize_name(token) for token in forbidden)


def contains_disallowed_codepoint(
    text: str, ranges: Sequence[Tuple[int, int]]
) -> bool:
    return any(
        start <= ord(char) <= end for char in text for start, end in ranges
    )


def contains_link(text: str) -> bool:
    return URL_PATTERN.search(text) is not None


class ContentFilter:
    """Ordered set of stateless spam checks over a validated submission.

    ``checks`` lists the enabled checks in evaluation order; ``first_violation``
    reports the first one that fails so callers can show a single reason.
    """

    def __init__(
        self,
        checks: Sequence[str] = ("blacklist", "alphabet", "link"),
        blacklisted_names: Iterable[str] = ("robertves",),
        disallowed_ranges: Sequence[Tuple[int, int]] = (CYRILLIC,),
    ):
        self._predicates: Dict[str, Callable[[SubmittedForm], bool]] = {
            "blacklist": self._blacklisted,
            "alphabet": self._disallowed_alphabet,
            "link": self._has_link,
        }
        unknown = set(checks) - self._predicates.keys()
        if unknown:
            raise ValueError(f"Unknown content checks: {sorted(unknown)}")
        self.checks = tuple(checks)
        self.blacklisted_names = tuple(blacklisted_names)
        self.disallowed_ranges = tuple((start, end) for start, end in disallowed_ranges)

    @classmethod
    def from_settings(cls) -> "ContentFilter":
        return cls(
            checks=settings.CONTENT_FILTER_CHECKS,
            blacklisted_names=settings.BLACKLISTED_NAMES,
            disallowed_ranges=settings.DISALLOWED_CODEPOINT_RANGES,
        )

    def _blacklisted(self, form: SubmittedForm) -> bool:
        return is_blacklisted_name(form.name, self.blacklisted_names)

    def _disallowed_alphabet(self, form: SubmittedForm) -> bool:
        return contains_disallowed_codepoint(form.message, self.disallowed_ranges)

    def _has_link(self, form: SubmittedForm) -> bool:
        return contains_link(form.message)

    def first_violation(self, form: SubmittedForm) -> Optional[str]:
        for check in self.checks:
            if self._predicates[check](form):
                return check
        return None
