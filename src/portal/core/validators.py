"""Input validators shared by request schemas and services."""

import re
from typing import Final

MAX_SUBDOMAIN_LABEL_LENGTH: Final[int] = 63  # DNS label limit
WORKSPACE_SLUG_REGEX: Final[str] = r"^[a-z0-9]([a-z0-9-]*[a-z0-9])?$"
RESERVED_SLUGS: Final[frozenset[str]] = frozenset(
    # Host names and root-surface paths a tenant label would shadow
    {"www", "api", "static", "localhost", "login", "logout", "auth", "welcome", "select-workspace"}
)

_WORKSPACE_SLUG_PATTERN: Final[re.Pattern[str]] = re.compile(WORKSPACE_SLUG_REGEX)
_HEX_COLOR_PATTERN: Final[re.Pattern[str]] = re.compile(r"^#[0-9a-fA-F]{6}$")


def validate_workspace_slug(slug: str) -> str:
    """Validate a workspace slug as a single DNS label.

    The slug is the only key used for subdomain matching, so it must be a
    lowercase label without dots.
    """
    slug = slug.strip().lower()
    if len(slug) > MAX_SUBDOMAIN_LABEL_LENGTH:
        raise ValueError(f"Slug must be at most {MAX_SUBDOMAIN_LABEL_LENGTH} characters")
    if not _WORKSPACE_SLUG_PATTERN.match(slug):
        raise ValueError(
            "Slug must contain only lowercase letters, numbers and hyphens, "
            "and must start and end with a letter or number"
        )
    if slug in RESERVED_SLUGS:
        raise ValueError(f"Slug '{slug}' is reserved")
    return slug


def validate_hex_color(color: str) -> str:
    if not _HEX_COLOR_PATTERN.match(color):
        raise ValueError("Color must be a hex value like #3b82f6")
    return color.lower()


def normalize_email(email: str) -> str:
    return email.strip().lower()
