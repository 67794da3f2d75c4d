"""Public JSON API blueprint — /api/sites/*

Read-only access to published site data for clients that render on their
own (editor preview, external frontends). CORS is open to every origin:
custom domains are user-configured and only published content is served.

Route Map:
  GET     /api/sites/published?slug=<slug>
  GET     /api/sites/published?domain=<hostname>
  OPTIONS /api/sites/published — CORS preflight
"""

import logging

from flask import Blueprint, current_app, jsonify, make_response, request

from sitepress.services import publication_service

logger = logging.getLogger(__name__)

api_bp = Blueprint("api", __name__, url_prefix="/api/sites")


def _cors_response(response):
    """Add CORS headers so cross-origin JS fetches work."""
    response.headers["Access-Control-Allow-Origin"] = "*"
    response.headers["Access-Control-Allow-Methods"] = "GET, OPTIONS"
    response.headers["Access-Control-Allow-Headers"] = (
        "authorization, x-client-info, apikey, content-type"
    )
    return response


@api_bp.route("/published", methods=["OPTIONS"])
def published_preflight():
    """Handle CORS preflight requests."""
    return _cors_response(make_response("", 204))


@api_bp.route("/published", methods=["GET"])
def published_site():
    """Return the PublishedSiteData for a slug or custom domain.

    A domain is tried first; if it does not resolve and a slug was also
    given, the slug is tried.

    Returns: PublishedSiteData JSON, or { error: "..." } with 400/404/503.
    """
    slug = (request.args.get("slug") or "").strip()
    domain = (request.args.get("domain") or "").strip().lower()

    if not slug and not domain:
        return _cors_response(
            jsonify(error="Missing slug or domain parameter")
        ), 400

    lookup = None
    if domain:
        lookup = publication_service.get_published_site_by_domain(domain)
    if slug and (lookup is None or lookup.not_found):
        lookup = publication_service.get_published_site_by_slug(slug)

    if lookup.is_service_error:
        response = _cors_response(jsonify(error="Service temporarily unavailable"))
        response.headers["Retry-After"] = "30"
        return response, 503

    if lookup.data is None:
        message = (
            "No published version found"
            if lookup.reason == "no_current_publish"
            else "Site not found"
        )
        return _cors_response(jsonify(error=message)), 404

    response = _cors_response(jsonify(lookup.data.to_wire()))
    ttl = current_app.config.get("SITE_CACHE_TTL", 0)
    if ttl > 0:
        response.headers["Cache-Control"] = f"public, max-age={ttl}"
    return response
