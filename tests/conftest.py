"""Shared test fixtures for the Sitepress test suite.

Provides:
- app: Flask app configured for testing (in-memory SQLite, caching off)
- client: Flask test client
- db_session: clean database per test (tables created/dropped)
- seed_data: a published site with a custom domain, plus a draft site
- make_section / make_page: builders for snapshot payloads
"""

import pytest

from sitepress import create_app
from sitepress.extensions import db as _db
from sitepress.models.domain import Domain
from sitepress.models.publish import Publish
from sitepress.models.site import Site
from sitepress.services import publication_service


def make_section(section_id, section_type, content, sort_order=0, variant="default", **extra):
    section = {
        "id": section_id,
        "type": section_type,
        "variant": variant,
        "content": content,
        "settings": {},
        "sort_order": sort_order,
    }
    section.update(extra)
    return section


def make_page(page_id, slug, sections=(), is_homepage=False, title=None, seo=None):
    return {
        "id": page_id,
        "slug": slug,
        "title": title if title is not None else slug.title(),
        "is_homepage": is_homepage,
        "seo": seo if seo is not None else {},
        "sections": list(sections),
    }


HERO = {"headline": "Welcome to Site 42", "subheadline": "Great food"}
CTA = {"headline": "Book a table", "button": {"text": "Book", "url": "/book"}}
PRICING = {
    "title": "Our prices",
    "plans": [{"name": "Lunch", "price": "$15", "features": ["Soup", "Main"]}],
}


def default_snapshot():
    return {
        "pages": [
            make_page(
                "page-home", "home", is_homepage=True, title="Home",
                sections=[make_section("hero-1", "hero", HERO, sort_order=0)],
            ),
            make_page(
                "page-pricing", "pricing", title="Pricing",
                seo={"title": "Pricing | Site 42", "description": "What we charge"},
                sections=[
                    make_section("cta-1", "cta", CTA, sort_order=2),
                    make_section("pricing-1", "pricing", PRICING, sort_order=1),
                ],
            ),
        ],
        "settings": {},
    }


@pytest.fixture(scope="session")
def app():
    """Create the Flask application configured for testing."""
    app = create_app("testing")
    yield app


@pytest.fixture(autouse=True)
def db_session(app):
    """Create all tables before each test, drop after."""
    with app.app_context():
        _db.create_all()
        publication_service.clear_cache()
        yield _db.session
        _db.session.rollback()
        _db.drop_all()
        publication_service.clear_cache()


@pytest.fixture
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture
def seed_data(app, db_session):
    """Seed a published site (site-42) with an active custom domain, a
    pending domain, and an unpublished draft site.

    Returns a dict of plain values so tests don't depend on session state.
    """
    site = Site(
        id="site-42",
        slug="site-42",
        name="Site 42",
        status="published",
        settings={"colors": {"primary": "#123456"}, "direction": "ltr"},
    )
    draft = Site(
        id="site-draft",
        slug="my-restaurant",
        name="My Restaurant",
        status="draft",
        settings={},
    )
    _db.session.add_all([site, draft])
    _db.session.flush()

    _db.session.add_all([
        Publish(site_id=site.id, version=1, snapshot={"pages": []}, is_current=False),
        Publish(site_id=site.id, version=2, snapshot=default_snapshot(), is_current=True),
        # Drafts can have history too; it must never be served.
        Publish(site_id=draft.id, version=1, snapshot=default_snapshot(), is_current=True),
        Domain(site_id=site.id, domain="custom.example", status="active", ssl_status="active"),
        Domain(site_id=site.id, domain="pending.example", status="pending"),
    ])
    _db.session.commit()

    return {
        "site_id": site.id,
        "site_slug": site.slug,
        "draft_id": draft.id,
        "draft_slug": draft.slug,
        "domain": "custom.example",
        "pending_domain": "pending.example",
    }
