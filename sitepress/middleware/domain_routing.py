"""Domain routing middleware — serves tenant custom domains.

Every request is classified by its Host header before URL routing:

    app host (exact or subdomain of an APP_DOMAINS entry)  -> pass through
    any other host                                         -> rewrite

A rewritten request keeps its method, scheme and query string; only the path
changes, from ``/pricing`` to ``/sites/<hostname>/pricing``, which the sites
blueprint serves from the custom-domain resolution path.

The classification is a pure function of the host and the allow-list given
at construction time. No database or network access happens here.
"""

import enum
import logging
from urllib.parse import quote

logger = logging.getLogger(__name__)

SITE_ROUTE_PREFIX = "/sites"

# Paths that are never rewritten (static assets, JSON API).
SKIP_PREFIXES = ("/static/", "/api/")


class Classification(enum.Enum):
    PASS_THROUGH = "pass_through"
    REWRITE = "rewrite"


def normalize_host(host) -> str:
    """Strip the port, trailing dot and case from a Host header value."""
    host = (host or "").strip().lower()
    if host.startswith("["):
        # IPv6 literal: [::1]:5000
        end = host.find("]")
        host = host[: end + 1] if end != -1 else host
    else:
        host = host.split(":", 1)[0]
    return host.rstrip(".")


class DomainClassifier:
    """Decides whether a hostname belongs to the app or to a tenant."""

    def __init__(self, app_domains):
        self.app_domains = tuple(
            d.strip().lower().rstrip(".") for d in app_domains if d and d.strip()
        )

    def is_app_domain(self, hostname: str) -> bool:
        return any(
            hostname == d or hostname.endswith(f".{d}") for d in self.app_domains
        )

    def classify(self, host) -> Classification:
        hostname = normalize_host(host)
        if hostname and self.is_app_domain(hostname):
            return Classification.PASS_THROUGH
        return Classification.REWRITE

    @staticmethod
    def rewrite_path(hostname: str, path: str) -> str:
        """Namespace ``path`` under the internal site route for ``hostname``."""
        if not path.startswith("/"):
            path = f"/{path}"
        return f"{SITE_ROUTE_PREFIX}/{quote(hostname, safe='')}{path}"


class DomainRoutingMiddleware:
    """WSGI middleware applying DomainClassifier ahead of Flask routing.

    Wrap as ``app.wsgi_app = DomainRoutingMiddleware(app.wsgi_app, classifier)``.
    Rewritten requests carry the original path and hostname in the environ
    under ``sitepress.original_path`` and ``sitepress.custom_domain``.
    """

    def __init__(self, wsgi_app, classifier: DomainClassifier):
        self.wsgi_app = wsgi_app
        self.classifier = classifier

    def __call__(self, environ, start_response):
        host = environ.get("HTTP_HOST") or environ.get("SERVER_NAME", "")
        path = environ.get("PATH_INFO", "") or "/"

        if not path.startswith(SKIP_PREFIXES) and (
            self.classifier.classify(host) is Classification.REWRITE
        ):
            hostname = normalize_host(host)
            environ["sitepress.original_path"] = path
            environ["sitepress.custom_domain"] = hostname
            environ["PATH_INFO"] = self.classifier.rewrite_path(hostname, path)

        return self.wsgi_app(environ, start_response)
