import os
import json
import logging
import re

import click
from flask import Flask, render_template

from sitepress.config import config_by_name
from sitepress.extensions import db, migrate, limiter


def create_app(config_name=None):
    """Application factory."""

    if config_name is None:
        config_name = os.environ.get("FLASK_ENV", "development")

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])

    # --- Validate required env vars (skip in testing) ---
    if config_name != "testing":
        try:
            config_by_name[config_name].validate()
        except RuntimeError as e:
            app.logger.warning(f"Config validation: {e}")

    # --- Init extensions ---
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)

    # --- Import models so Alembic can discover them ---
    with app.app_context():
        from sitepress import models  # noqa: F401

    # --- Domain routing middleware (runs before URL routing) ---
    from sitepress.middleware.domain_routing import (
        DomainClassifier,
        DomainRoutingMiddleware,
    )
    app.extensions["domain_classifier"] = DomainClassifier(app.config["APP_DOMAINS"])
    app.wsgi_app = DomainRoutingMiddleware(
        app.wsgi_app, app.extensions["domain_classifier"]
    )

    # --- Register blueprints ---
    from sitepress.blueprints.sites import sites_bp
    from sitepress.blueprints.api import api_bp
    from sitepress.blueprints.domains import domains_bp

    app.register_blueprint(sites_bp)
    app.register_blueprint(api_bp)
    app.register_blueprint(domains_bp)

    # --- Root route ---
    @app.route("/")
    def index():
        """Root URL on an app domain — marketing landing page."""
        return render_template("landing.html")

    # --- Error handlers ---
    @app.errorhandler(404)
    def not_found(e):
        return render_template("errors/404.html"), 404

    @app.errorhandler(500)
    def server_error(e):
        return render_template("errors/500.html"), 500

    # --- CLI commands ---
    register_cli(app)

    # --- Security headers ---
    @app.after_request
    def add_security_headers(response):
        """Add security headers to every response."""
        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"
        # Published sites may be embedded by the editor preview only
        response.headers["X-Frame-Options"] = "SAMEORIGIN"
        # Control referrer information
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        # Permissions Policy (restrict browser features)
        response.headers["Permissions-Policy"] = (
            "camera=(), microphone=(), geolocation=()"
        )
        # Content Security Policy: tenant content links images from anywhere
        response.headers["Content-Security-Policy"] = (
            "default-src 'self'; "
            "script-src 'self'; "
            "style-src 'self' 'unsafe-inline' https://fonts.googleapis.com; "
            "img-src 'self' data: https:; "
            "font-src 'self' https://fonts.gstatic.com; "
            "connect-src 'self'; "
            "base-uri 'self'; "
            "form-action 'self'; "
            "frame-ancestors 'self';"
        )
        # Strict Transport Security (only in production)
        if not app.debug:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )
        return response

    # --- Custom Jinja filters ---
    @app.template_filter("safe_url")
    def safe_url_filter(value):
        """Allow only http(s), mailto, tel, relative and fragment URLs."""
        value = (value or "").strip()
        if re.match(r"^(https?://|mailto:|tel:|/(?!/)|#)", value, re.IGNORECASE):
            return value
        return "#"

    # --- Logging ---
    if not app.debug:
        logging.basicConfig(level=logging.INFO)

    return app


def register_cli(app):
    """Register custom CLI commands with the Flask app."""

    @app.cli.command("seed-demo")
    @click.option("--slug", default="demo-cafe", help="Site slug")
    def seed_demo(slug):
        """Create a demo site with one published version.

        Usage:
            flask seed-demo
            flask seed-demo --slug my-restaurant
        """
        from sitepress.models.site import Site
        from sitepress.services.publish_service import publish_snapshot
        from sitepress.validation import is_valid_slug

        if not is_valid_slug(slug):
            click.echo(f"ERROR: '{slug}' is not a valid slug (lowercase letters, digits, hyphens).")
            return

        site = Site.query.filter_by(slug=slug).first()
        if site is None:
            site = Site(
                slug=slug,
                name="Demo Cafe",
                status="draft",
                settings={
                    "colors": {"primary": "#b45309"},
                    "direction": "ltr",
                    "description": "Fresh coffee, every morning.",
                },
            )
            db.session.add(site)
            db.session.commit()
            click.echo(f"Created site: {slug}")

        snapshot = {
            "pages": [
                {
                    "id": "home",
                    "slug": "home",
                    "title": "Home",
                    "is_homepage": True,
                    "seo": {},
                    "sections": [
                        {
                            "id": "hero-1",
                            "type": "hero",
                            "variant": "centered",
                            "content": {
                                "headline": "Demo Cafe",
                                "subheadline": "Fresh coffee, every morning.",
                                "cta_primary": {"text": "Visit us", "url": "#contact"},
                            },
                            "settings": {},
                            "sort_order": 0,
                        },
                        {
                            "id": "contact-1",
                            "type": "contact",
                            "variant": "default",
                            "content": {
                                "title": "Find us",
                                "email": "hello@demo-cafe.example",
                            },
                            "settings": {},
                            "sort_order": 1,
                        },
                    ],
                }
            ],
            "settings": {},
        }
        publish = publish_snapshot(site.id, snapshot, changelog="Demo seed")

        base_url = app.config["PUBLIC_SITE_URL"].rstrip("/")
        click.echo("")
        click.echo("=" * 60)
        click.echo("Demo site published!")
        click.echo("=" * 60)
        click.echo(f"  Site:     {site.name} (id: {site.id})")
        click.echo(f"  Version:  v{publish.version}")
        click.echo(f"  URL:      {base_url}/s/{slug}")
        click.echo("=" * 60)

    @app.cli.command("publish-site")
    @click.option("--slug", required=True, help="Site slug")
    @click.option("--file", "file_path", required=True, type=click.Path(exists=True, dir_okay=False),
                  help="Snapshot JSON file ({pages: [...], settings: {...}})")
    @click.option("--changelog", default=None, help="Optional note stored with the version")
    def publish_site(slug, file_path, changelog):
        """Publish a snapshot JSON file as the site's next version.

        Usage:
            flask publish-site --slug my-restaurant --file snapshot.json
        """
        from sitepress.models.site import Site
        from sitepress.services.publish_service import (
            SnapshotValidationError,
            publish_snapshot,
        )

        site = Site.query.filter_by(slug=slug).first()
        if site is None:
            click.echo(f"ERROR: site '{slug}' not found.")
            return

        with open(file_path, encoding="utf-8") as f:
            try:
                payload = json.load(f)
            except ValueError as e:
                click.echo(f"ERROR: {file_path} is not valid JSON: {e}")
                return

        try:
            publish = publish_snapshot(site.id, payload, changelog=changelog)
        except SnapshotValidationError as e:
            click.echo("ERROR: snapshot rejected:")
            for error in e.errors:
                click.echo(f"  - {error}")
            return

        click.echo(f"Published {slug} v{publish.version}")

    @app.cli.command("rollback-site")
    @click.option("--slug", required=True, help="Site slug")
    @click.option("--version", "version", required=True, type=int, help="Version to make current")
    def rollback_site(slug, version):
        """Make an earlier published version current again.

        Usage:
            flask rollback-site --slug my-restaurant --version 3
        """
        from sitepress.models.site import Site
        from sitepress.services.publish_service import PublishError, rollback_to_version

        site = Site.query.filter_by(slug=slug).first()
        if site is None:
            click.echo(f"ERROR: site '{slug}' not found.")
            return

        try:
            rollback_to_version(site.id, version)
        except PublishError as e:
            click.echo(f"ERROR: {e}")
            return

        click.echo(f"{slug} is now serving v{version}")

    @app.cli.command("check-domain")
    @click.option("--domain", required=True, help="Custom domain to check")
    def check_domain(domain):
        """Run the DNS check for a registered custom domain.

        Usage:
            flask check-domain --domain www.my-restaurant.com
        """
        from sitepress.models.domain import Domain
        from sitepress.services.domain_service import check_domain_dns

        record = Domain.query.filter_by(domain=domain.lower()).first()
        if record is None:
            click.echo(f"ERROR: domain '{domain}' is not registered.")
            return

        result = check_domain_dns(record.id)
        click.echo(f"{result['domain']}: status={result['status']} verified={result['verified']}")
        for r in result["records"]:
            click.echo(f"  {r['type']:<4} {r['name']} -> {r['value']}")
