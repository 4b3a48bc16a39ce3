"""
Target Service Routes.

Plain-text endpoints whose bodies the workload checks compare byte for
byte.  Bodies are always sent as ``text/plain; charset=utf-8`` so that
clients never have to guess the encoding of multi-byte names.
"""

from __future__ import annotations

import logging

from flask import Blueprint, Response, jsonify

logger = logging.getLogger(__name__)

target_bp = Blueprint("target", __name__)

HELLO_BODY = "hello world!"

# User id -> display name returned by /api/user/<id>.
USERS: dict[int, str] = {
    1: "测试",
}


def _text(body: str, status: int = 200) -> Response:
    return Response(body, status=status, content_type="text/plain; charset=utf-8")


@target_bp.route("/api/health", methods=["GET"])
def health_check() -> tuple[Response, int]:
    """Shallow health check used by test fixtures before a run starts."""
    return jsonify({"status": "healthy", "service": "target"}), 200


@target_bp.route("/hello", methods=["GET"])
def hello() -> Response:
    return _text(HELLO_BODY)


@target_bp.route("/api/user/<int:user_id>", methods=["GET"])
def get_user(user_id: int) -> Response | tuple[Response, int]:
    """
    Return the name of user *user_id* as plain text.

    Returns:
        The name with HTTP 200, or a JSON error with HTTP 404 when the
        user does not exist.
    """
    name = USERS.get(user_id)
    if name is None:
        logger.debug("Unknown user id %s requested", user_id)
        return jsonify({"error": "User not found"}), 404
    return _text(name)
