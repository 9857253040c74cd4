"""Flask app for the Genshin profile viewer."""

import logging
import threading

from flask import Flask, jsonify, render_template, request

import display
import fetcher
import reference

# UID searched automatically when the page is opened without one
DEFAULT_UID = "801630705"

NOT_FOUND_MESSAGE = (
    "データが見つかりませんでした。"
    "ゲーム内で詳細を表示設定にしているか確認してください。"
)

logger = logging.getLogger(__name__)

_tables = None
_tables_lock = threading.Lock()

app = Flask(__name__)


def get_reference_tables() -> reference.ReferenceTables:
    """Load the reference tables on first use; later calls reuse them."""
    global _tables
    with _tables_lock:
        if _tables is None:
            _tables = reference.load_reference_tables()
        return _tables


def search(uid: str) -> dict | None:
    tables = get_reference_tables()
    document = fetcher.fetch_profile(uid)
    view = display.build_profile_view(tables, document)
    if document is not None and view is None:
        logger.warning("UID %s has no character showcase", uid)
    return view


def _selected_index(view: dict | None) -> int:
    if not view:
        return 0
    try:
        index = int(request.args.get("char", 0))
    except ValueError:
        index = 0
    return min(max(index, 0), len(view["characters"]) - 1)


# --- Page routes ---


@app.route("/")
def index():
    uid = request.args.get("uid", DEFAULT_UID).strip()
    view = search(uid) if uid else None
    return render_template(
        "index.html",
        uid=uid,
        view=view,
        selected=_selected_index(view),
        error=NOT_FOUND_MESSAGE if uid and view is None else None,
    )


# --- API routes ---


@app.route("/api/profile/<uid>", methods=["GET"])
def api_profile(uid):
    uid = uid.strip()
    if not uid:
        return jsonify({"error": "UID required"}), 400
    view = search(uid)
    if view is None:
        return jsonify({"error": NOT_FOUND_MESSAGE}), 404
    return jsonify({"success": True, "uid": uid, **view})


@app.template_filter("theme_color")
def theme_color_filter(element):
    return display.element_theme(element)


@app.template_filter("element_icon")
def element_icon_filter(element):
    return display.element_icon_url(element)


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    get_reference_tables()
    app.run(debug=True, host="127.0.0.1", port=5000)
