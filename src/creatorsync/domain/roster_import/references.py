"""Parse raw social references into handles or post shortcodes."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum
from typing import Final

_POST_PATTERN: Final = re.compile(r"/(?:p|reels?|tv)/([A-Za-z0-9_-]+)")
_POST_MARKER: Final = re.compile(r"/(?:p|reels?|tv)/")
_PROFILE_PATTERN: Final = re.compile(r"instagram\.com/([A-Za-z0-9._]+)", re.IGNORECASE)
_HANDLE_PATTERN: Final = re.compile(r"^[A-Za-z0-9._]+$")

RESERVED_PATH_SEGMENTS: Final[frozenset[str]] = frozenset(
    {"explore", "stories", "accounts", "direct", "p", "reel", "reels", "tv"}
)


class ReferenceKind(StrEnum):
    HANDLE = "handle"
    POST_REFERENCE = "post_reference"
    UNRESOLVABLE = "unresolvable"


@dataclass(frozen=True, slots=True)
class ExtractedReference:
    kind: ReferenceKind
    raw: str
    handle: str | None = None
    shortcode: str | None = None

    @property
    def url(self) -> str:
        """The first token of the raw value, as recorded for manual follow-up."""

        return _first_token(self.raw)


def _first_token(value: str) -> str:
    parts = value.split()
    return parts[0] if parts else ""


def extract_shortcode(url: str | None) -> str | None:
    """Return the content shortcode embedded in a post/reel URL, if any."""

    if not url:
        return None
    match = _POST_PATTERN.search(url)
    return match.group(1) if match else None


def extract_reference(value: str | None) -> ExtractedReference:
    """Classify ``value`` as a handle, a post reference or unresolvable.

    Post links may be followed by free text; every other form must be the
    whole trimmed value.
    """

    raw = value or ""
    stripped = raw.strip()
    if not stripped:
        return ExtractedReference(kind=ReferenceKind.UNRESOLVABLE, raw=raw)

    token = _first_token(stripped)
    if _POST_MARKER.search(token):
        shortcode = extract_shortcode(token)
        if shortcode is None:
            return ExtractedReference(kind=ReferenceKind.UNRESOLVABLE, raw=raw)
        return ExtractedReference(
            kind=ReferenceKind.POST_REFERENCE, raw=raw, shortcode=shortcode
        )

    if token != stripped:
        return ExtractedReference(kind=ReferenceKind.UNRESOLVABLE, raw=raw)

    profile = _PROFILE_PATTERN.search(stripped)
    if profile is not None:
        segment = profile.group(1).lower()
        if segment in RESERVED_PATH_SEGMENTS:
            return ExtractedReference(kind=ReferenceKind.UNRESOLVABLE, raw=raw)
        return ExtractedReference(kind=ReferenceKind.HANDLE, raw=raw, handle=segment)

    candidate = stripped.removeprefix("@")
    if _HANDLE_PATTERN.match(candidate):
        return ExtractedReference(kind=ReferenceKind.HANDLE, raw=raw, handle=candidate.lower())

    return ExtractedReference(kind=ReferenceKind.UNRESOLVABLE, raw=raw)


__all__ = [
    "RESERVED_PATH_SEGMENTS",
    "ExtractedReference",
    "ReferenceKind",
    "extract_reference",
    "extract_shortcode",
]
