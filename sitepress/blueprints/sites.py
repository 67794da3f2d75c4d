"""Sites blueprint — public rendering of published sites.

Route Map:
  GET /s/<slug>                       — homepage of a site, by slug
  GET /s/<slug>/<path:sub_path>       — sub-page of a site, by slug
  GET /sites/<domain>                 — homepage, by custom domain
  GET /sites/<domain>/<path:sub_path> — sub-page, by custom domain

/sites/* is never linked directly: custom-domain requests are rewritten to
it by the domain routing middleware.

Outcomes:
  found          200, rendered page + crawler metadata
  not found      404 "site/page not found"
  service error  503 with Retry-After, never a 404
"""

import logging

from flask import Blueprint, current_app, make_response, render_template

from sitepress.services import publication_service, renderer
from sitepress.services.page_resolver import resolve_page, split_sub_path

logger = logging.getLogger(__name__)

sites_bp = Blueprint("sites", __name__)

RETRY_AFTER_SECONDS = 30


def _not_found(message=None):
    return render_template(
        "site/not_found.html",
        title="Site not found",
        message=message,
    ), 404


def _unavailable():
    response = make_response(render_template("site/unavailable.html"), 503)
    response.headers["Retry-After"] = str(RETRY_AFTER_SECONDS)
    response.headers["Cache-Control"] = "no-store"
    return response


def _page_url(base_path, sub_path):
    segments = split_sub_path(sub_path)
    path = base_path + ("/" + "/".join(segments) if segments else "")
    return current_app.config["PUBLIC_SITE_URL"].rstrip("/") + path


def render_published_page(lookup, sub_path, page_url=None):
    """Turn a SiteLookup + sub-path into a response."""
    if lookup.is_service_error:
        return _unavailable()
    if lookup.data is None:
        logger.info(f"Site lookup miss: reason={lookup.reason}")
        return _not_found()

    site_data = lookup.data
    page = resolve_page(site_data.snapshot, sub_path)
    if page is None:
        return _not_found("The page you are looking for was not found.")

    output = renderer.render(site_data, page)
    metadata = renderer.build_metadata(site_data, page, url=page_url)

    response = make_response(render_template(
        "site/page.html",
        site_data=site_data,
        output=output,
        metadata=metadata,
    ))
    ttl = current_app.config.get("SITE_CACHE_TTL", 0)
    if ttl > 0:
        response.headers["Cache-Control"] = f"public, max-age={ttl}"
    return response


# ──────────────────────────────────────────────
# By slug
# ──────────────────────────────────────────────

@sites_bp.route("/s/<slug>", defaults={"sub_path": ""}, strict_slashes=False)
@sites_bp.route("/s/<slug>/<path:sub_path>")
def site_by_slug(slug, sub_path):
    lookup = publication_service.get_published_site_by_slug(slug)
    return render_published_page(
        lookup, sub_path, page_url=_page_url(f"/s/{slug}", sub_path)
    )


# ──────────────────────────────────────────────
# By custom domain (rewrite target)
# ──────────────────────────────────────────────

@sites_bp.route("/sites/<domain>", defaults={"sub_path": ""}, strict_slashes=False)
@sites_bp.route("/sites/<domain>/<path:sub_path>")
def site_by_domain(domain, sub_path):
    lookup = publication_service.get_published_site_by_domain(domain)
    segments = split_sub_path(sub_path)
    url = f"https://{domain}/" + "/".join(segments)
    return render_published_page(lookup, sub_path, page_url=url)
