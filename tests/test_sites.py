"""Tests for the public site routes and the published-site JSON API.

Tests:
- Custom-domain requests render the mapped site's page (Host-header routing)
- Slug routes render published sites only; drafts are a 404
- Service failures are a 503 with Retry-After, never a 404
- /api/sites/published: slug/domain lookup, CORS, error bodies
"""

from unittest.mock import patch

import pytest

from sitepress.extensions import db
from sitepress.models.publish import Publish
from sitepress.models.site import Site
from sitepress.services import publication_service

from conftest import CTA, HERO, make_page, make_section


def _db_down(*args, **kwargs):
    from sqlalchemy.exc import OperationalError
    raise OperationalError("SELECT 1", {}, Exception("connection refused"))


class TestCustomDomainRendering:

    def test_custom_domain_sub_page(self, client, seed_data):
        """custom.example/pricing renders site-42's pricing page in sort_order."""
        response = client.get("/pricing", headers={"Host": "custom.example"})
        assert response.status_code == 200
        html = response.get_data(as_text=True)
        assert "<title>Pricing | Site 42</title>" in html
        assert html.index('data-section-id="pricing-1"') < html.index('data-section-id="cta-1"')
        assert 'content="https://custom.example/pricing"' in html

    def test_custom_domain_root_is_homepage(self, client, seed_data):
        response = client.get("/", headers={"Host": "custom.example"})
        assert response.status_code == 200
        assert "Welcome to Site 42" in response.get_data(as_text=True)

    def test_custom_domain_host_with_port_and_case(self, client, seed_data):
        response = client.get("/pricing", headers={"Host": "Custom.Example:8443"})
        assert response.status_code == 200

    def test_unknown_page_on_custom_domain(self, client, seed_data):
        response = client.get("/does-not-exist", headers={"Host": "custom.example"})
        assert response.status_code == 404
        assert "The page you are looking for was not found." in response.get_data(as_text=True)

    def test_pending_domain_is_404(self, client, seed_data):
        response = client.get("/", headers={"Host": seed_data["pending_domain"]})
        assert response.status_code == 404

    def test_unknown_domain_is_404(self, client, seed_data):
        response = client.get("/", headers={"Host": "stranger.example"})
        assert response.status_code == 404

    def test_theme_from_site_settings(self, client, seed_data):
        html = client.get("/", headers={"Host": "custom.example"}).get_data(as_text=True)
        assert 'dir="ltr"' in html
        assert "--color-primary: #123456" in html
        assert 'data-site-version="2"' in html

    def test_static_still_served_on_custom_domain(self, client, seed_data):
        response = client.get("/static/site.css", headers={"Host": "custom.example"})
        assert response.status_code == 200


class TestSlugRendering:

    def test_published_slug_homepage(self, client, seed_data):
        response = client.get(f"/s/{seed_data['site_slug']}")
        assert response.status_code == 200
        html = response.get_data(as_text=True)
        assert "Welcome to Site 42" in html
        assert 'content="https://sitepress.test/s/site-42"' in html

    def test_published_slug_trailing_slash(self, client, seed_data):
        assert client.get(f"/s/{seed_data['site_slug']}/").status_code == 200

    @pytest.mark.parametrize("path", ["/s/site-42", "/s/site-42/", "/sites/custom.example", "/sites/custom.example/"])
    def test_site_root_served_without_redirect(self, client, seed_data, path):
        response = client.get(path, follow_redirects=False)
        assert response.status_code == 200
        assert "Location" not in response.headers

    def test_draft_slug_without_slash_is_404(self, client, seed_data):
        assert client.get("/s/my-restaurant", follow_redirects=False).status_code == 404

    def test_published_slug_sub_page(self, client, seed_data):
        response = client.get(f"/s/{seed_data['site_slug']}/pricing")
        assert response.status_code == 200
        assert "Our prices" in response.get_data(as_text=True)

    def test_draft_slug_is_not_found(self, client, seed_data):
        """/s/my-restaurant is a draft: a 404 page, not a service error."""
        response = client.get("/s/my-restaurant")
        assert response.status_code == 404
        assert "Retry-After" not in response.headers

    def test_page_without_sections(self, client, seed_data):
        publish = Publish.query.filter_by(site_id=seed_data["site_id"], is_current=True).first()
        publish.snapshot = {"pages": [make_page("p", "home", is_homepage=True)]}
        db.session.commit()
        response = client.get(f"/s/{seed_data['site_slug']}")
        assert response.status_code == 200
        assert "No content to display" in response.get_data(as_text=True)

    def test_malformed_section_does_not_break_page(self, client, seed_data):
        publish = Publish.query.filter_by(site_id=seed_data["site_id"], is_current=True).first()
        snapshot = dict(publish.snapshot)
        snapshot["pages"] = [make_page("p", "home", is_homepage=True, sections=[
            {"id": "g", "type": "gallery", "content": {}, "sort_order": 0},
            {"id": "h", "type": "hero", "content": {"headline": "Still here"}, "sort_order": 1},
        ])]
        publish.snapshot = snapshot
        db.session.commit()
        response = client.get(f"/s/{seed_data['site_slug']}")
        assert response.status_code == 200
        html = response.get_data(as_text=True)
        assert "section--placeholder" in html
        assert "Still here" in html

    def test_malformed_section_metadata_keeps_site_up(self, client, seed_data):
        """A section with a null type and numeric id is one placeholder, not a 503."""
        publish = Publish.query.filter_by(site_id=seed_data["site_id"], is_current=True).first()
        snapshot = dict(publish.snapshot)
        snapshot["pages"] = [make_page("p", "home", is_homepage=True, sections=[
            make_section("hero-1", "hero", HERO, sort_order=0),
            {"id": 7, "type": None, "content": {}, "sort_order": 1},
            make_section("cta-1", "cta", CTA, sort_order=2),
        ])]
        publish.snapshot = snapshot
        db.session.commit()
        response = client.get(f"/s/{seed_data['site_slug']}")
        assert response.status_code == 200
        html = response.get_data(as_text=True)
        assert html.count("data-section-id=") == 3
        assert html.count("section--placeholder") == 1
        assert "Welcome to Site 42" in html
        assert "Book a table" in html

    def test_odd_theme_settings_still_render(self, client, seed_data):
        site = db.session.get(Site, seed_data["site_id"])
        site.settings = {"borderRadius": ["rounded"], "direction": {"x": 1}, "description": 5}
        db.session.commit()
        response = client.get("/", headers={"Host": "custom.example"})
        assert response.status_code == 200
        assert 'dir="rtl"' in response.get_data(as_text=True)


class TestServiceUnavailable:

    def test_slug_lookup_failure_is_503(self, client, seed_data):
        with patch.object(publication_service, "resolve_by_slug", side_effect=_db_down):
            response = client.get(f"/s/{seed_data['site_slug']}")
        assert response.status_code == 503
        assert response.headers["Retry-After"] == "30"
        assert response.headers["Cache-Control"] == "no-store"

    def test_domain_lookup_failure_is_503(self, client, seed_data):
        with patch.object(publication_service, "resolve_by_domain", side_effect=_db_down):
            response = client.get("/pricing", headers={"Host": "custom.example"})
        assert response.status_code == 503


class TestCacheHeaders:

    def test_no_cache_header_when_ttl_zero(self, client, seed_data):
        response = client.get(f"/s/{seed_data['site_slug']}")
        assert "Cache-Control" not in response.headers

    def test_public_cache_header_when_caching(self, app, client, seed_data):
        app.config["SITE_CACHE_TTL"] = 60
        try:
            response = client.get(f"/s/{seed_data['site_slug']}")
        finally:
            app.config["SITE_CACHE_TTL"] = 0
        assert response.headers["Cache-Control"] == "public, max-age=60"


class TestAppPages:

    def test_landing_page(self, client):
        response = client.get("/")
        assert response.status_code == 200

    def test_unknown_app_path_is_404(self, client):
        assert client.get("/no-such-route").status_code == 404


class TestPublishedApi:

    def test_by_slug(self, client, seed_data):
        response = client.get("/api/sites/published?slug=site-42")
        assert response.status_code == 200
        data = response.get_json()
        assert data["version"] == 2
        assert data["site"]["name"] == "Site 42"
        assert "publishedAt" in data
        assert response.headers["Access-Control-Allow-Origin"] == "*"

    def test_by_domain(self, client, seed_data):
        response = client.get("/api/sites/published?domain=Custom.Example")
        assert response.status_code == 200
        assert response.get_json()["version"] == 2

    def test_domain_falls_back_to_slug(self, client, seed_data):
        response = client.get("/api/sites/published?domain=nobody.example&slug=site-42")
        assert response.status_code == 200

    def test_missing_params(self, client):
        response = client.get("/api/sites/published")
        assert response.status_code == 400
        assert response.get_json() == {"error": "Missing slug or domain parameter"}

    def test_draft_is_404(self, client, seed_data):
        response = client.get("/api/sites/published?slug=my-restaurant")
        assert response.status_code == 404
        assert response.get_json() == {"error": "Site not found"}

    def test_no_current_publish_message(self, client, seed_data):
        Publish.query.filter_by(site_id=seed_data["site_id"]).update({"is_current": False})
        db.session.commit()
        response = client.get("/api/sites/published?slug=site-42")
        assert response.status_code == 404
        assert response.get_json() == {"error": "No published version found"}

    def test_service_error_is_503(self, client, seed_data):
        with patch.object(publication_service, "resolve_by_slug", side_effect=_db_down):
            response = client.get("/api/sites/published?slug=site-42")
        assert response.status_code == 503
        assert response.headers["Retry-After"] == "30"

    def test_api_not_rewritten_on_custom_domain(self, client, seed_data):
        response = client.get("/api/sites/published?slug=site-42", headers={"Host": "custom.example"})
        assert response.status_code == 200

    def test_preflight(self, client):
        response = client.options("/api/sites/published")
        assert response.status_code == 204
        assert "GET" in response.headers["Access-Control-Allow-Methods"]


class TestSecurityHeaders:
    """Security headers are present on public and error responses."""

    @pytest.mark.parametrize("path", ["/", "/s/site-42", "/no-such-route"])
    def test_headers_present(self, client, seed_data, path):
        response = client.get(path)
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "SAMEORIGIN"
        assert response.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"
        assert "camera=()" in response.headers["Permissions-Policy"]
        assert "img-src 'self' data: https:" in response.headers["Content-Security-Policy"]

    def test_no_hsts_in_debug(self, client):
        assert client.get("/").headers.get("Strict-Transport-Security") is None
