"""Domain service — custom domain registration and verification.

Uses:
- The hosting provider's REST API (Vercel) to attach/detach a custom domain
  to the project that serves tenant sites, and to ask it to verify one.
- DNS-over-HTTPS (Cloudflare dns-query JSON API) to check that a domain's A
  record points at our edge before flipping it to ``active``.

Only ``active`` domains are used by public site resolution, so every status
change here drops the cached lookup for that hostname.
"""

import logging
from datetime import datetime, timezone

import requests
from flask import current_app

from sitepress.extensions import db
from sitepress.models.domain import Domain
from sitepress.services import publication_service

logger = logging.getLogger(__name__)

PROVIDER_TIMEOUT = 15
DNS_TIMEOUT = 8

DNS_TYPE_A = 1
DNS_TYPE_TXT = 16


class ProviderConfigError(RuntimeError):
    """VERCEL_TOKEN / VERCEL_PROJECT_ID are not configured."""


class ProviderError(Exception):
    """The hosting provider rejected a request. Carries its HTTP status."""

    def __init__(self, status_code, message, code=None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.code = code


# ──────────────────────────────────────────────
# Hosting provider (Vercel)
# ──────────────────────────────────────────────

def _provider_config() -> dict:
    token = current_app.config.get("VERCEL_TOKEN")
    project_id = current_app.config.get("VERCEL_PROJECT_ID")
    if not token:
        raise ProviderConfigError("Missing VERCEL_TOKEN")
    if not project_id:
        raise ProviderConfigError("Missing VERCEL_PROJECT_ID")
    return {
        "api_url": current_app.config.get("VERCEL_API_URL", "https://api.vercel.com").rstrip("/"),
        "token": token,
        "project_id": project_id,
        "team_id": current_app.config.get("VERCEL_TEAM_ID"),
    }


def _provider_request(config, method, path, **kwargs):
    """Send a request to the provider API. Raises ProviderError on transport failure."""
    params = kwargs.pop("params", {}) or {}
    if config["team_id"]:
        params["teamId"] = config["team_id"]

    try:
        return requests.request(
            method,
            f"{config['api_url']}{path}",
            headers={"Authorization": f"Bearer {config['token']}"},
            params=params,
            timeout=PROVIDER_TIMEOUT,
            **kwargs,
        )
    except requests.exceptions.RequestException as e:
        logger.error(f"Provider {method} request failed: {type(e).__name__}")
        raise ProviderError(502, "Hosting provider unreachable")


def _json_or_empty(resp) -> dict:
    try:
        data = resp.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def _raise_for_provider(resp, default_message):
    data = _json_or_empty(resp)
    error = data.get("error") if isinstance(data.get("error"), dict) else {}
    logger.warning(f"Provider error: status={resp.status_code} code={error.get('code')}")
    raise ProviderError(
        resp.status_code,
        error.get("message") or default_message,
        error.get("code"),
    )


def add_domain_to_provider(domain: str) -> dict:
    """Attach ``domain`` to the hosting project.

    Returns {"domain", "verified", "verification"}.
    """
    config = _provider_config()
    resp = _provider_request(
        config,
        "POST",
        f"/v10/projects/{config['project_id']}/domains",
        json={"name": domain},
    )
    if not resp.ok:
        _raise_for_provider(resp, "Failed to add domain")

    data = _json_or_empty(resp)
    logger.info(f"Domain added to provider: {domain}")
    return {
        "domain": data.get("name", domain),
        "verified": bool(data.get("verified", False)),
        "verification": data.get("verification"),
    }


def remove_domain_from_provider(domain: str) -> None:
    """Detach ``domain`` from the hosting project. Already gone counts as success."""
    config = _provider_config()
    resp = _provider_request(
        config,
        "DELETE",
        f"/v9/projects/{config['project_id']}/domains/{domain}",
    )
    if not resp.ok and resp.status_code != 404:
        _raise_for_provider(resp, "Failed to remove domain")
    logger.info(f"Domain removed from provider: {domain}")


def verify_domain_with_provider(domain: str) -> dict:
    """Ask the provider to verify ``domain`` and report its DNS configuration.

    Returns {"verified", "configured", "misconfigured", "verification"}.
    """
    config = _provider_config()
    verify_resp = _provider_request(
        config,
        "POST",
        f"/v9/projects/{config['project_id']}/domains/{domain}/verify",
    )
    verify_data = _json_or_empty(verify_resp)

    configured = False
    misconfigured = False
    config_resp = _provider_request(config, "GET", f"/v6/domains/{domain}/config")
    if config_resp.ok:
        config_data = _json_or_empty(config_resp)
        configured = config_data.get("configuredBy") is not None
        misconfigured = bool(config_data.get("misconfigured", False))

    return {
        "verified": bool(verify_data.get("verified", False)),
        "configured": configured,
        "misconfigured": misconfigured,
        "verification": verify_data.get("verification"),
    }


# ──────────────────────────────────────────────
# DNS-over-HTTPS
# ──────────────────────────────────────────────

def _dns_query(name: str, record_type: str) -> list:
    resp = requests.get(
        current_app.config["DNS_RESOLVER_URL"],
        params={"name": name, "type": record_type},
        headers={"Accept": "application/dns-json"},
        timeout=DNS_TIMEOUT,
    )
    resp.raise_for_status()
    return resp.json().get("Answer") or []


def lookup_dns(domain: str) -> dict:
    """Check the domain's A record against DOMAIN_EXPECTED_A_RECORD.

    Returns {"verified": bool, "records": [{"type", "name", "value"}]}.
    A failed lookup reports verified=False with no records.
    """
    expected_ip = current_app.config["DOMAIN_EXPECTED_A_RECORD"]
    txt_name = f"{current_app.config['DOMAIN_TXT_PREFIX']}.{domain}"
    records = []

    try:
        for answer in _dns_query(domain, "A"):
            if answer.get("type") == DNS_TYPE_A:
                records.append({
                    "type": "A",
                    "name": answer.get("name"),
                    "value": answer.get("data"),
                })

        for answer in _dns_query(txt_name, "TXT"):
            if answer.get("type") == DNS_TYPE_TXT:
                records.append({
                    "type": "TXT",
                    "name": answer.get("name"),
                    "value": (answer.get("data") or "").replace('"', ""),
                })
    except (requests.exceptions.RequestException, ValueError) as e:
        logger.warning(f"DNS lookup failed for {domain}: {type(e).__name__}")
        return {"verified": False, "records": []}

    verified = any(r["type"] == "A" and r["value"] == expected_ip for r in records)
    return {"verified": verified, "records": records}


# ──────────────────────────────────────────────
# Local domain records
# ──────────────────────────────────────────────

def register_domain(site_id: str, domain: str) -> Domain:
    """Create (or return the existing) pending Domain row for a site."""
    existing = Domain.query.filter_by(domain=domain).first()
    if existing is not None:
        return existing

    record = Domain(site_id=site_id, domain=domain, status="pending")
    db.session.add(record)
    db.session.commit()
    logger.info(f"Domain registered for site {site_id}: {domain}")
    return record


def remove_domain_record(domain: str) -> bool:
    """Delete the local Domain row. Returns False if there was none."""
    record = Domain.query.filter_by(domain=domain).first()
    if record is None:
        return False
    db.session.delete(record)
    db.session.commit()
    publication_service.invalidate_site(domains=[domain])
    logger.info(f"Domain record removed: {domain}")
    return True


def check_domain_dns(domain_id: str):
    """Run the DNS check for a Domain row and update its status.

    Returns {"verified", "status", "records", "domain"} or None if the row
    does not exist.
    """
    record = db.session.get(Domain, domain_id)
    if record is None:
        return None

    result = lookup_dns(record.domain)
    record.status = "active" if result["verified"] else "pending"
    if result["verified"] and record.verified_at is None:
        record.verified_at = datetime.now(timezone.utc)
        record.ssl_status = "provisioning"
    db.session.commit()

    publication_service.invalidate_site(domains=[record.domain])
    logger.info(f"DNS check for {record.domain}: status={record.status}")
    return {
        "verified": result["verified"],
        "status": record.status,
        "records": result["records"],
        "domain": record.domain,
    }
