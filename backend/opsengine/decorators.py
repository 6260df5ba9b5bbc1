# Overview: Request authentication and capability decorators for API routes.

import logging
from functools import wraps

from flask import g, jsonify, request

from .errors import AuthenticationFailure, AuthorizationFailure
from .permissions import validate_permission_code
from .services import auth_service

logger = logging.getLogger(__name__)


def _bearer_token(*, allow_query: bool = False) -> str | None:
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1].strip()
    if allow_query:
        # EventSource cannot set headers
        return request.args.get("access_token")
    return None


def _authenticate(allow_query: bool):
    from .engine import get_engine

    token = _bearer_token(allow_query=allow_query)
    if not token:
        return jsonify({"error": "authentication_failure", "message": "Authentication required"}), 401

    engine = get_engine()
    try:
        g.principal = auth_service.authenticate(
            token,
            engine.identity,
            default_role_name=engine.default_role_name,
        )
    except AuthenticationFailure as e:
        logger.info("Authentication failed for %s: %s", request.path, e.message)
        return jsonify(e.to_dict()), 401
    except AuthorizationFailure as e:
        return jsonify(e.to_dict()), 403
    return None


def require_auth(f):
    """
    Require a verified bearer token.

    Sets g.principal (PrincipalContext: employee + resolved role).
    Returns 401 if the token is missing, invalid or expired, or the
    employee is inactive.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        failure = _authenticate(allow_query=False)
        if failure is not None:
            return failure
        return f(*args, **kwargs)
    return decorated_function


def require_stream_auth(f):
    """require_auth that also accepts ?access_token= for event streams."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        failure = _authenticate(allow_query=True)
        if failure is not None:
            return failure
        return f(*args, **kwargs)
    return decorated_function


def require_permission(permission_code: str):
    """Require one capability from the catalog."""
    if not validate_permission_code(permission_code):
        raise ValueError(f"Unknown capability: {permission_code}")

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            principal = getattr(g, "principal", None)
            if principal is None:
                return jsonify({"error": "authentication_failure", "message": "Authentication required"}), 401

            if not principal.can(permission_code):
                logger.warning(
                    "Permission denied: principal=%s capability=%s path=%s",
                    principal.id, permission_code, request.path,
                )
                return jsonify({
                    "error": "authorization_failure",
                    "required_permission": permission_code,
                    "message": f"Missing capability: {permission_code}",
                }), 403

            return f(*args, **kwargs)
        return decorated_function
    return decorator
