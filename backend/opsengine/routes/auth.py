# Overview: Flask API routes for the authenticated principal's own profile.

from flask import Blueprint, g, jsonify

from ..decorators import require_auth

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.get("/profile")
@require_auth
def profile_route():
    """Employee profile plus the resolved role and its full capability map."""
    return jsonify(g.principal.to_dict())
