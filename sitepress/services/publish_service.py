"""Publish service — creates immutable snapshot versions of a site.

publish_snapshot() appends a new Publish row and makes it the site's current
one; rollback_to_version() makes an older row current again. Neither ever
edits a snapshot: history is append-only, only ``is_current`` flips.

Snapshots are validated before they are stored. Data-quality problems the
renderer would otherwise have to guess about (several homepages, two pages
with the same slug) are rejected here instead.
"""

import logging
from collections import Counter

from pydantic import ValidationError

from sitepress.extensions import db
from sitepress.models.domain import Domain
from sitepress.models.publish import Publish
from sitepress.models.site import Site
from sitepress.services import publication_service
from sitepress.snapshot import Snapshot

logger = logging.getLogger(__name__)


class SnapshotValidationError(ValueError):
    """The snapshot cannot be published. ``errors`` lists every problem."""

    def __init__(self, errors):
        super().__init__("; ".join(errors))
        self.errors = errors


class PublishError(Exception):
    """Publishing or rolling back failed (unknown site, unknown version)."""


def validate_snapshot(payload) -> Snapshot:
    """Validate a snapshot payload and return it parsed.

    Raises SnapshotValidationError listing every problem found.
    """
    if not isinstance(payload, dict):
        raise SnapshotValidationError(["Snapshot must be an object."])

    try:
        snapshot = Snapshot.model_validate(payload)
    except ValidationError as e:
        raise SnapshotValidationError([
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in e.errors()
        ])

    errors = []
    homepages = [p.slug for p in snapshot.pages if p.is_homepage]
    if len(homepages) > 1:
        errors.append(
            f"Only one page may be the homepage (found {len(homepages)}: "
            f"{', '.join(homepages)})."
        )

    duplicates = [
        slug for slug, count in Counter(p.slug for p in snapshot.pages).items()
        if count > 1
    ]
    if duplicates:
        errors.append(f"Duplicate page slugs: {', '.join(sorted(duplicates))}.")

    for page in snapshot.pages:
        if not page.slug and not page.is_homepage:
            errors.append(f"Page {page.id} has no slug.")

    if errors:
        raise SnapshotValidationError(errors)
    return snapshot


def _invalidate_site_cache(site):
    active = [
        d.domain for d in Domain.query.filter_by(site_id=site.id, status="active")
    ]
    publication_service.invalidate_site(slug=site.slug, domains=active)


def _set_current(site_id, publish):
    (
        Publish.query
        .filter(Publish.site_id == site_id, Publish.is_current.is_(True))
        .update({"is_current": False}, synchronize_session="fetch")
    )
    # The old row must be cleared before the partial unique index sees the new one.
    db.session.flush()
    publish.is_current = True


def publish_snapshot(site_id, payload, changelog=None) -> Publish:
    """Store ``payload`` as the site's next version and make it current."""
    snapshot = validate_snapshot(payload)

    site = db.session.get(Site, site_id)
    if site is None:
        raise PublishError(f"Site {site_id} not found")

    last_version = (
        db.session.query(db.func.max(Publish.version))
        .filter(Publish.site_id == site_id)
        .scalar()
    ) or 0

    publish = Publish(
        site_id=site_id,
        version=last_version + 1,
        snapshot=snapshot.to_wire(),
        changelog=changelog,
        is_current=False,
    )
    try:
        _set_current(site_id, publish)
        db.session.add(publish)
        site.status = "published"
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    _invalidate_site_cache(site)
    logger.info(f"Published site {site.slug} v{publish.version}")
    return publish


def rollback_to_version(site_id, version) -> Publish:
    """Make an existing version current again."""
    target = Publish.query.filter_by(site_id=site_id, version=version).first()
    if target is None:
        raise PublishError(f"Version {version} not found for site {site_id}")

    if not target.is_current:
        try:
            _set_current(site_id, target)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

    site = db.session.get(Site, site_id)
    _invalidate_site_cache(site)
    logger.info(f"Site {site.slug} rolled back to v{version}")
    return target


def list_publishes(site_id):
    """All versions of a site, newest first."""
    return (
        Publish.query
        .filter_by(site_id=site_id)
        .order_by(Publish.version.desc())
        .all()
    )
