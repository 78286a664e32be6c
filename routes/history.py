"""
History API routes.

- GET    /api/user/history         own history, paginated + filtered
- DELETE /api/user/history         bulk delete own entries
- GET    /api/admin/history        everyone's history (privileged)
- DELETE /api/admin/history        bulk delete any entries (privileged)
- GET    /api/admin/history/stats  per-owner totals (privileged)
"""

from typing import Optional

from flask import jsonify, request

from models import ActionType, EntryStatus
from repositories import get_repository
from review.history import HistoryBrowser, HistoryScope

from . import history_bp
from .helpers import current_identity, current_settings, ids_from_body, int_arg, require_privileged


def _enum_arg(name: str, enum_cls) -> Optional[object]:
    raw = request.args.get(name)
    if not raw:
        return None
    try:
        return enum_cls(raw)
    except ValueError:
        return None


def _list_response(browser: HistoryBrowser):
    browser.set_filters(
        action_type=_enum_arg("type", ActionType),
        status=_enum_arg("status", EntryStatus),
        query=request.args.get("q"),
    )
    window, items = browser.page(int_arg("page", 1))
    return jsonify({
        "items": [e.to_dict() for e in items],
        "page": window.to_dict(),
    })


@history_bp.route("/api/user/history")
def list_my_history():
    """The caller's own history, newest first."""
    browser = HistoryBrowser(
        get_repository().history,
        current_identity(),
        scope=HistoryScope.OWNER,
        page_size=max(int_arg("page_size", 0), 0) or current_settings().page_size,
    )
    return _list_response(browser)


@history_bp.route("/api/user/history", methods=["DELETE"])
def delete_my_history():
    """Delete the caller's own entries. Refused if any id belongs to someone else."""
    identity = current_identity()
    deleted = get_repository().history.delete_owned(identity.owner_id, ids_from_body())
    return jsonify({"deleted": deleted})


@history_bp.route("/api/admin/history")
def list_all_history():
    browser = HistoryBrowser(
        get_repository().history,
        require_privileged(),
        scope=HistoryScope.ALL,
        page_size=max(int_arg("page_size", 0), 0) or current_settings().page_size,
    )
    return _list_response(browser)


@history_bp.route("/api/admin/history", methods=["DELETE"])
def delete_any_history():
    require_privileged()
    deleted = get_repository().history.delete_by_ids(ids_from_body())
    return jsonify({"deleted": deleted})


@history_bp.route("/api/admin/history/stats")
def history_stats():
    """Totals per owner plus overall counts."""
    require_privileged()
    repo = get_repository().history
    stats = repo.stats_by_owner()
    return jsonify({
        "total": repo.count(),
        "validations": sum(s.validations for s in stats),
        "translations": sum(s.translations for s in stats),
        "owners": [s.model_dump() for s in stats],
    })
