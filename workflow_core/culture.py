"""Culture (locale tag) handling for localized engine calls."""

import locale
import re
from typing import Optional

from workflow_core.constants import DEFAULT_CULTURE
from workflow_core.errors import InvalidCultureError

_TAG_PATTERN = re.compile(
    r"^(?P<language>[a-z]{2,3})"
    r"(?:-(?P<script>[a-z]{4}))?"
    r"(?:-(?P<region>[a-z]{2}|[0-9]{3}))?$",
    re.IGNORECASE,
)


def _format(language: str, script: Optional[str], region: Optional[str]) -> str:
    parts = [language.lower()]
    if script:
        parts.append(script.title())
    if region:
        parts.append(region.upper())
    return "-".join(parts)


def parse_culture(tag: str) -> str:
    """Validate a locale tag and return it in canonical form (``en-US``).

    Underscores are accepted as separators. Any well-formed
    ``language[-Script][-REGION]`` tag is accepted.

    Raises:
        InvalidCultureError: If the tag is malformed
    """
    match = _TAG_PATTERN.match(tag.strip().replace("_", "-"))
    if match is None:
        raise InvalidCultureError(f"Culture '{tag}' is not a supported culture identifier")
    return _format(match.group("language"), match.group("script"), match.group("region"))


def default_culture() -> str:
    """Get the current process locale as a culture tag."""
    language, _ = locale.getlocale()
    if not language or language in ("C", "POSIX"):
        return DEFAULT_CULTURE
    try:
        return parse_culture(language.split(".", 1)[0])
    except InvalidCultureError:
        return DEFAULT_CULTURE


def resolve_culture(tag: Optional[str]) -> str:
    """Culture for a request: the given tag, or the process default when blank."""
    if tag is None or not tag.strip():
        return default_culture()
    return parse_culture(tag)
