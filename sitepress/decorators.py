"""
Custom route decorators for access control.

- bearer_token_required: the request must carry a valid Supabase access
  token (Authorization: Bearer <token>). Sets g.auth_user_id.
  Failures are a bare 401 with no detail about why.
"""

import logging
from functools import wraps

from flask import g, jsonify, request

from sitepress.services.auth_service import (
    AuthConfigError,
    get_user_for_token,
    parse_bearer_token,
)

logger = logging.getLogger(__name__)


def _unauthorized():
    return jsonify({"error": "Unauthorized"}), 401


def bearer_token_required(f):
    """Require a valid bearer token."""

    @wraps(f)
    def decorated(*args, **kwargs):
        token = parse_bearer_token(request.headers.get("Authorization"))
        if token is None:
            return _unauthorized()

        try:
            user = get_user_for_token(token)
        except AuthConfigError:
            logger.error("Bearer auth unavailable: Supabase is not configured")
            return jsonify({"error": "Server configuration error"}), 500

        if user is None:
            return _unauthorized()

        g.auth_user_id = user["id"]
        return f(*args, **kwargs)

    return decorated
