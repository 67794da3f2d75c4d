"""Publication service — resolves a published site and its current snapshot.

Public entry points:
    get_published_site_by_domain(hostname) -> SiteLookup
    get_published_site_by_slug(slug)       -> SiteLookup

Each lookup performs at most two sequential steps against the database:
resolve the site id (active domain / published slug), then fetch the site's
name/settings plus the Publish row flagged is_current.

The key contract is error differentiation. Callers get a SiteLookup that is
one of:
    found          data set
    not found      data None, is_service_error False (never retry)
    service error  data None, is_service_error True  (try again later)

Database errors and malformed snapshot payloads are caught here and turned
into service errors; nothing raw leaks past this module. Logs carry the
error kind only, never payloads.

Results are cached in-process for SITE_CACHE_TTL seconds, keyed by
("domain", hostname) or ("slug", slug). Service errors are never cached.
"""

import copy
import logging
import threading
import time
from dataclasses import dataclass
from typing import Optional

from flask import current_app
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from sitepress.extensions import db
from sitepress.models.domain import Domain
from sitepress.models.publish import Publish
from sitepress.models.site import Site
from sitepress.snapshot import PublishedSiteData

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────
# Result + error types
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class SiteLookup:
    data: Optional[PublishedSiteData] = None
    is_service_error: bool = False
    reason: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.data is not None

    @property
    def not_found(self) -> bool:
        return self.data is None and not self.is_service_error


class PublicationNotFound(Exception):
    """The slug/domain/snapshot genuinely does not exist or is not published."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class PublicationServiceError(Exception):
    """The backing store failed or returned something unusable."""

    def __init__(self, kind: str):
        super().__init__(kind)
        self.kind = kind


# ──────────────────────────────────────────────
# Response cache
# ──────────────────────────────────────────────

class _ResponseCache:
    """Small keyed TTL cache. Stores wire dicts so entries cannot be mutated
    through objects handed to callers."""

    def __init__(self):
        self._entries: dict = {}
        self._lock = threading.Lock()

    def get(self, key):
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, reason, wire = entry
            if time.monotonic() >= expires_at:
                del self._entries[key]
                return None
        data = PublishedSiteData.from_wire(copy.deepcopy(wire)) if wire else None
        return SiteLookup(data=data, reason=reason)

    def put(self, key, lookup: SiteLookup, ttl: int):
        if ttl <= 0 or lookup.is_service_error:
            return
        wire = lookup.data.to_wire() if lookup.data is not None else None
        with self._lock:
            self._entries[key] = (time.monotonic() + ttl, lookup.reason, wire)

    def invalidate(self, key):
        with self._lock:
            self._entries.pop(key, None)

    def clear(self):
        with self._lock:
            self._entries.clear()

    def __len__(self):
        with self._lock:
            return len(self._entries)


_cache = _ResponseCache()


def clear_cache():
    """Drop every cached lookup."""
    _cache.clear()


def invalidate_site(slug=None, domains=()):
    """Drop cached lookups for a site's slug and custom domains."""
    if slug:
        _cache.invalidate(("slug", slug))
    for hostname in domains:
        _cache.invalidate(("domain", hostname))


# ──────────────────────────────────────────────
# Store queries
# ──────────────────────────────────────────────

def resolve_by_domain(hostname: str) -> Optional[str]:
    """Return the site id mapped to an *active* domain, exact match only."""
    domain = (
        Domain.query
        .filter_by(domain=hostname, status="active")
        .first()
    )
    return domain.site_id if domain else None


def resolve_by_slug(slug: str) -> Optional[str]:
    """Return the id of the *published* site with this exact slug."""
    site = Site.query.filter_by(slug=slug, status="published").first()
    return site.id if site else None


def _isoformat(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


def fetch_current_snapshot(site_id: str) -> PublishedSiteData:
    """Load site metadata and its current publish.

    Raises PublicationNotFound when either is missing and
    PublicationServiceError when the stored snapshot is malformed.
    If more than one publish is (wrongly) flagged current, the highest
    version wins.
    """
    site = db.session.get(Site, site_id)
    if site is None:
        raise PublicationNotFound("site_not_found")

    publish = (
        Publish.query
        .filter_by(site_id=site_id, is_current=True)
        .order_by(Publish.version.desc())
        .first()
    )
    if publish is None:
        raise PublicationNotFound("no_current_publish")

    payload = {
        "site": {"name": site.name, "settings": site.settings or {}},
        "snapshot": publish.snapshot,
        "version": publish.version,
        "publishedAt": _isoformat(publish.published_at),
    }
    try:
        return PublishedSiteData.from_wire(payload)
    except ValidationError as e:
        logger.error(
            f"Malformed snapshot for site {site_id} v{publish.version}: "
            f"{e.error_count()} validation errors"
        )
        raise PublicationServiceError("malformed_snapshot")


# ──────────────────────────────────────────────
# Public API
# ──────────────────────────────────────────────

def _lookup(resolver, value: str, missing_reason: str) -> SiteLookup:
    """Resolve + fetch, converting every failure into a SiteLookup."""
    try:
        site_id = resolver(value)
        if site_id is None:
            return SiteLookup(reason=missing_reason)
        return SiteLookup(data=fetch_current_snapshot(site_id))
    except PublicationNotFound as e:
        return SiteLookup(reason=e.reason)
    except PublicationServiceError as e:
        logger.error(f"Publication lookup failed: kind={e.kind}")
        return SiteLookup(is_service_error=True, reason="service_error")
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Publication lookup failed: kind={type(e).__name__}")
        return SiteLookup(is_service_error=True, reason="service_error")


def _cached_lookup(key, resolver, value: str, missing_reason: str) -> SiteLookup:
    ttl = current_app.config.get("SITE_CACHE_TTL", 0)
    if ttl > 0:
        hit = _cache.get(key)
        if hit is not None:
            return hit

    result = _lookup(resolver, value, missing_reason)
    _cache.put(key, result, ttl)
    return result


def get_published_site_by_domain(hostname: str) -> SiteLookup:
    """Resolve a custom domain to its current published snapshot."""
    if not hostname:
        return SiteLookup(reason="domain_not_found")
    return _cached_lookup(
        ("domain", hostname), resolve_by_domain, hostname, "domain_not_found"
    )


def get_published_site_by_slug(slug: str) -> SiteLookup:
    """Resolve a site slug to its current published snapshot."""
    if not slug:
        return SiteLookup(reason="site_not_found")
    return _cached_lookup(
        ("slug", slug), resolve_by_slug, slug, "site_not_found"
    )
