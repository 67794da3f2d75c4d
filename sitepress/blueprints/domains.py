"""Domains blueprint — /api/domains/*

Administrative endpoints for tenant custom domains. Every route requires a
Supabase bearer token; tenant scoping is left to Supabase row-level security.

Route Map:
  POST        /api/domains                      — attach a domain (provider + local row)
  POST|DELETE /api/domains/remove               — detach a domain
  POST        /api/domains/verify               — ask the provider to verify
  POST        /api/domains/<domain_id>/check-dns — DNS check, updates status

Status codes:
  400  invalid or missing domain (field-level message)
  401  missing/invalid bearer token (no detail)
  404  unknown site or domain record
  500  server missing provider configuration
  xxx  provider error status passed through
"""

import logging

from flask import Blueprint, jsonify, request

from sitepress.decorators import bearer_token_required
from sitepress.extensions import db, limiter
from sitepress.models.site import Site
from sitepress.services import domain_service
from sitepress.validation import is_valid_domain, is_valid_uuid, normalize_domain

logger = logging.getLogger(__name__)

domains_bp = Blueprint("domains", __name__, url_prefix="/api/domains")


def _json_body():
    """The request body if it is a JSON object, else an empty dict."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _read_domain():
    """Extract and validate ``domain`` from the JSON body.

    Returns (domain, None) or (None, error_response).
    """
    raw = _json_body().get("domain")
    if not raw:
        return None, (jsonify(error="Missing domain", field="domain"), 400)

    domain = normalize_domain(raw)
    if not is_valid_domain(domain):
        return None, (
            jsonify(error="Invalid domain name (e.g. mybusiness.com)", field="domain"),
            400,
        )
    return domain, None


def _provider_error_response(e):
    """Map a domain_service exception to a JSON error response."""
    if isinstance(e, domain_service.ProviderConfigError):
        logger.error(f"Domain provider not configured: {e}")
        return jsonify(error="Server configuration error"), 500
    body = {"error": e.message}
    if e.code:
        body["code"] = e.code
    return jsonify(body), e.status_code


# ──────────────────────────────────────────────
# POST /api/domains
# ──────────────────────────────────────────────

@domains_bp.route("", methods=["POST"])
@limiter.limit("30 per hour")
@bearer_token_required
def add_domain():
    """Attach a custom domain.

    Expects: { domain, site_id (optional) }
    Returns: { success, domain, verified, verification }
    """
    domain, error = _read_domain()
    if error:
        return error

    site_id = _json_body().get("site_id")
    if site_id is not None and not isinstance(site_id, str):
        return jsonify(error="Invalid site_id", field="site_id"), 400
    if site_id and db.session.get(Site, site_id) is None:
        return jsonify(error="Site not found", field="site_id"), 404

    try:
        result = domain_service.add_domain_to_provider(domain)
    except (domain_service.ProviderConfigError, domain_service.ProviderError) as e:
        return _provider_error_response(e)

    if site_id:
        domain_service.register_domain(site_id, domain)

    return jsonify(
        success=True,
        domain=result["domain"],
        verified=result["verified"],
        verification=result["verification"],
    ), 200


# ──────────────────────────────────────────────
# POST|DELETE /api/domains/remove
# ──────────────────────────────────────────────

@domains_bp.route("/remove", methods=["POST", "DELETE"])
@limiter.limit("30 per hour")
@bearer_token_required
def remove_domain():
    """Detach a custom domain from the provider and drop its local record."""
    domain, error = _read_domain()
    if error:
        return error

    try:
        domain_service.remove_domain_from_provider(domain)
    except (domain_service.ProviderConfigError, domain_service.ProviderError) as e:
        return _provider_error_response(e)

    domain_service.remove_domain_record(domain)
    return jsonify(success=True), 200


# ──────────────────────────────────────────────
# POST /api/domains/verify
# ──────────────────────────────────────────────

@domains_bp.route("/verify", methods=["POST"])
@limiter.limit("30 per hour")
@bearer_token_required
def verify_domain():
    """Ask the provider to verify a domain.

    Returns: { verified, configured, misconfigured, verification }
    """
    domain, error = _read_domain()
    if error:
        return error

    try:
        result = domain_service.verify_domain_with_provider(domain)
    except (domain_service.ProviderConfigError, domain_service.ProviderError) as e:
        return _provider_error_response(e)

    return jsonify(result), 200


# ──────────────────────────────────────────────
# POST /api/domains/<domain_id>/check-dns
# ──────────────────────────────────────────────

@domains_bp.route("/<domain_id>/check-dns", methods=["POST"])
@limiter.limit("30 per hour")
@bearer_token_required
def check_dns(domain_id):
    """Check DNS for a registered domain and update its status.

    Ownership and tenant scoping of domain rows belong to the auth provider
    (Supabase row-level security); this route only requires a valid token.

    Returns: { verified, status, records, domain }
    """
    if not is_valid_uuid(domain_id):
        return jsonify(error="Domain not found"), 404

    result = domain_service.check_domain_dns(domain_id)
    if result is None:
        return jsonify(error="Domain not found"), 404
    return jsonify(result), 200
