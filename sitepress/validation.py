"""Input validation helpers shared by blueprints and services."""

import re

# RFC 1035/1123 hostname: dot-separated labels of letters, digits and
# hyphens, no label starting or ending with a hyphen, at least one dot.
DOMAIN_LABEL_RE = re.compile(r"^(?!-)[a-z0-9-]{1,63}(?<!-)$")
SLUG_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

MAX_DOMAIN_LENGTH = 253


def normalize_domain(value) -> str:
    """Lowercase, trim and drop a trailing dot."""
    if not isinstance(value, str):
        return ""
    return value.strip().lower().rstrip(".")


def is_valid_domain(value) -> bool:
    domain = normalize_domain(value)
    if not domain or len(domain) > MAX_DOMAIN_LENGTH:
        return False
    labels = domain.split(".")
    if len(labels) < 2:
        return False
    return all(DOMAIN_LABEL_RE.match(label) for label in labels)


def is_valid_slug(value) -> bool:
    return (
        isinstance(value, str)
        and 2 <= len(value) <= 63
        and SLUG_RE.match(value) is not None
    )


def is_valid_uuid(value) -> bool:
    return isinstance(value, str) and UUID_RE.match(value) is not None
