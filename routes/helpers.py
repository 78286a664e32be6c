"""
Shared helpers for API routes: identity, error mapping, session registry.
"""

import logging
import threading
from typing import Optional

from flask import current_app, jsonify, request

from config import ReviewSettings, get_settings
from errors import (
    BackendError,
    CallCancelled,
    InvalidEntry,
    InvalidFinding,
    InvalidResult,
    NotFound,
    PermissionDenied,
    ReviewError,
)
from models import Identity
from repositories import get_repository
from review.backend import HttpLabelBackend, LabelBackend
from review.session import ReviewSession

from . import history_bp

logger = logging.getLogger(__name__)


class Unauthenticated(ReviewError):
    """No identity was supplied by the auth layer."""


STATUS_CODES = {
    Unauthenticated: 401,
    NotFound: 404,
    InvalidFinding: 400,
    InvalidResult: 400,
    InvalidEntry: 400,
    PermissionDenied: 403,
    CallCancelled: 409,
    BackendError: 502,
}


@history_bp.app_errorhandler(ReviewError)
def handle_review_error(e: ReviewError):
    """Map engine errors to JSON responses."""
    status = 500
    for cls in type(e).__mro__:
        if cls in STATUS_CODES:
            status = STATUS_CODES[cls]
            break
    if status >= 500:
        logger.error("[API] %s: %s", type(e).__name__, e)
    return jsonify({"error": str(e), "type": type(e).__name__}), status


def current_identity() -> Identity:
    """Identity headers are set by the auth layer in front of this service."""
    owner_id = request.headers.get("X-User-Id", "").strip()
    if not owner_id:
        raise Unauthenticated("Missing X-User-Id header")
    privileged = request.headers.get("X-User-Privileged", "").strip().lower() in {"1", "true", "yes"}
    return Identity(
        owner_id=owner_id,
        display_name=request.headers.get("X-User-Name", ""),
        is_privileged=privileged,
    )


def require_privileged() -> Identity:
    identity = current_identity()
    if not identity.is_privileged:
        raise PermissionDenied(f"{identity.owner_id} is not privileged")
    return identity


def int_arg(name: str, default: int) -> int:
    try:
        return int(request.args.get(name, default))
    except (TypeError, ValueError):
        return default


def ids_from_body() -> list[str]:
    """Accept either a bare JSON list of ids or {"ids": [...]}."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        data = data.get("ids", [])
    if not isinstance(data, list):
        return []
    return [str(i) for i in data]


# === Review sessions ===

_sessions: dict[str, ReviewSession] = {}
_sessions_lock = threading.Lock()


def current_settings() -> ReviewSettings:
    return current_app.config.get("REVIEW_SETTINGS") or get_settings()


def get_session(identity: Identity, create: bool = True) -> Optional[ReviewSession]:
    """The operator's active review session."""
    with _sessions_lock:
        session = _sessions.get(identity.owner_id)
        if session is None or session.closed:
            if not create:
                return None
            session = ReviewSession(identity, get_repository().history, settings=current_settings())
            _sessions[identity.owner_id] = session
        return session


def end_session(owner_id: str) -> bool:
    with _sessions_lock:
        session = _sessions.pop(owner_id, None)
    if session is None:
        return False
    session.close()
    return True


def get_backend() -> LabelBackend:
    """Label service client; tests put a fake in app.config['LABEL_BACKEND']."""
    backend = current_app.config.get("LABEL_BACKEND")
    if backend is None:
        backend = HttpLabelBackend(settings=current_settings())
        current_app.config["LABEL_BACKEND"] = backend
    return backend
