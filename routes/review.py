"""
Review session API routes.

The document itself is edited through /api/review/edit (what the
operator's keystrokes amount to); nothing re-sends the whole document
until /api/review/export pulls a snapshot.
"""

from flask import Response, jsonify, request

from errors import InvalidResult

from . import review_bp
from .helpers import current_identity, end_session, get_backend, get_session, int_arg


def _session():
    return get_session(current_identity())


@review_bp.route("/api/review")
def get_review():
    """Summary of the caller's session."""
    return jsonify(_session().summary())


@review_bp.route("/api/review", methods=["DELETE"])
def close_review():
    """Navigate away: cancel in-flight calls and discard the session."""
    closed = end_session(current_identity().owner_id)
    return jsonify({"closed": closed})


@review_bp.route("/api/review/result", methods=["POST"])
def load_result():
    """Load a result payload: {"result": {...}, "markup": "..."} or the bare result."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise InvalidResult("Request body must be a JSON object")

    payload = data.get("result", data)
    session = _session()
    report = session.load_result(payload, markup=data.get("markup"))
    return jsonify({"report": report.to_dict(), "session": session.summary()})


@review_bp.route("/api/review/validate", methods=["POST"])
def validate_label():
    """Upload a label image for validation."""
    upload = request.files.get("file")
    if upload is None:
        return jsonify({"error": "file required"}), 400
    country = request.form.get("country", "US")

    session = _session()
    report = session.validate(get_backend(), upload.filename or "label", upload.read(), country)
    return jsonify({"report": report.to_dict(), "session": session.summary()})


@review_bp.route("/api/review/translate", methods=["POST"])
def translate_label():
    """Upload a label image for translation."""
    upload = request.files.get("file")
    if upload is None:
        return jsonify({"error": "file required"}), 400
    country = request.form.get("country", "US")

    session = _session()
    session.translate(get_backend(), upload.filename or "label", upload.read(), country)
    return jsonify({"session": session.summary()})


@review_bp.route("/api/review/findings")
def list_findings():
    session = _session()
    window, items = session.list_findings(int_arg("page", 1))
    return jsonify({
        "items": [f.model_dump(mode="json") for f in items],
        "page": window.to_dict(),
        "counts": session.store.counts(),
        "selected": sorted(session.selection.ids()),
    })


@review_bp.route("/api/review/findings/<finding_id>/activate", methods=["POST"])
def activate_finding(finding_id):
    """Highlight (or un-highlight) a finding's location in the document."""
    session = _session()
    state = session.activate(finding_id)
    return jsonify({
        "state": state.value,
        "finding_id": session.highlighter.active_id,
        "matches": session.highlighter.last_match_count,
    })


@review_bp.route("/api/review/findings/<finding_id>/toggle", methods=["POST"])
def toggle_finding(finding_id):
    session = _session()
    selected = session.toggle_finding(finding_id)
    return jsonify({"selected": selected, "size": session.selection.size()})


@review_bp.route("/api/review/findings/select-all", methods=["POST"])
def select_all_findings():
    session = _session()
    session.select_all_findings()
    return jsonify({"selected": sorted(session.selection.ids())})


@review_bp.route("/api/review/findings/dismiss", methods=["POST"])
def dismiss_findings():
    session = _session()
    removed = session.dismiss_selected()
    return jsonify({"removed": removed, "session": session.summary()})


@review_bp.route("/api/review/edit", methods=["POST"])
def edit_document():
    """Apply one edit: {"selector": "...", "text": "...", "index": 0}."""
    data = request.get_json(silent=True) or {}
    selector = data.get("selector")
    if not selector or "text" not in data:
        return jsonify({"error": "selector and text required"}), 400

    try:
        index = int(data.get("index", 0))
    except (TypeError, ValueError):
        index = -1
    if index < 0:
        return jsonify({"error": "index must be a non-negative integer"}), 400

    session = _session()
    applied = session.edit(selector, str(data["text"]), index)
    if not applied:
        return jsonify({"error": f"No element matches {selector}"}), 404
    return jsonify({"applied": True, "can_undo": session.surface.can_undo})


@review_bp.route("/api/review/undo", methods=["POST"])
def undo_edit():
    session = _session()
    applied = session.undo()
    surface = session.surface
    return jsonify({"applied": applied, "can_undo": surface.can_undo, "can_redo": surface.can_redo})


@review_bp.route("/api/review/redo", methods=["POST"])
def redo_edit():
    session = _session()
    applied = session.redo()
    surface = session.surface
    return jsonify({"applied": applied, "can_undo": surface.can_undo, "can_redo": surface.can_redo})


@review_bp.route("/api/review/shortcut", methods=["POST"])
def keyboard_shortcut():
    """Route a key combo like "Ctrl+Z" to the document's edit history."""
    data = request.get_json(silent=True) or {}
    session = _session()
    handled = session.shortcut(str(data.get("keys", "")))
    surface = session.surface
    return jsonify({"handled": handled, "can_undo": surface.can_undo, "can_redo": surface.can_redo})


@review_bp.route("/api/review/export", methods=["POST"])
def export_document():
    """Snapshot the edited document and return it as a download."""
    data = request.get_json(silent=True) or {}
    bundle = _session().export(data.get("file_name"))
    return Response(
        bundle.document.content,
        mimetype="text/html",
        headers={"Content-Disposition": f'attachment; filename="{bundle.file_name}"'},
    )
