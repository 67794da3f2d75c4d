"""Auth service — validates Supabase access tokens.

Sign-in flows live in the dashboard; this service only answers "which user
does this bearer token belong to?" by asking Supabase Auth
(GET {SUPABASE_URL}/auth/v1/user). Tokens are never logged.
"""

import logging

import requests
from flask import current_app

logger = logging.getLogger(__name__)


class AuthConfigError(RuntimeError):
    """SUPABASE_URL / SUPABASE_ANON_KEY are not configured."""


def parse_bearer_token(header):
    """Return the token from an ``Authorization: Bearer <token>`` header, or None."""
    if not header or not header.startswith("Bearer "):
        return None
    token = header[len("Bearer "):].strip()
    return token or None


def get_user_for_token(token):
    """Return the Supabase user dict for ``token``, or None if it is not valid.

    Raises AuthConfigError when the server is missing its Supabase settings.
    """
    supabase_url = current_app.config.get("SUPABASE_URL")
    anon_key = current_app.config.get("SUPABASE_ANON_KEY")
    if not supabase_url or not anon_key:
        raise AuthConfigError("Supabase auth is not configured")

    try:
        resp = requests.get(
            f"{supabase_url.rstrip('/')}/auth/v1/user",
            headers={
                "Authorization": f"Bearer {token}",
                "apikey": anon_key,
            },
            timeout=10,
        )
    except requests.exceptions.RequestException as e:
        logger.warning(f"Token validation request failed: {type(e).__name__}")
        return None

    if resp.status_code != 200:
        logger.info(f"Token rejected by Supabase Auth: status={resp.status_code}")
        return None

    try:
        user = resp.json()
    except ValueError:
        logger.warning("Token validation returned a non-JSON body")
        return None

    if not isinstance(user, dict) or not user.get("id"):
        return None
    return user
