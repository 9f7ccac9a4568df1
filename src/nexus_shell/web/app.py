"""Flask application factory for the Nexus Shell web UI.

The ``create_app`` function boots a desktop (or takes one already
built) and returns a Flask app with these endpoints:

- ``GET /`` — render the desktop HTML page with the boot log.
- ``GET /api/state`` — return a summary of the session.
- ``GET /api/fs`` — list a directory (``?path=``, default cwd).
- ``GET /api/fs/file`` — read a file (``?path=``).
- ``POST /api/fs/<op>`` — run ``cd``, ``mkdir``, ``touch``, ``rm`` or
  ``rename`` with a JSON body.
- ``POST /api/apps/<name>`` — launch an app.
- ``POST /api/windows/<id>/<action>`` — focus, close, minimize,
  restore, maximize, move or resize a window.
- ``POST /api/tick`` — advance session time by one tick.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from flask import Flask, Response, jsonify, render_template, request

from nexus_shell.desktop import Desktop, DesktopState

if TYPE_CHECKING:
    from nexus_shell.fs.results import FsResult

_HTTP_BAD_REQUEST = 400
_HTTP_NOT_FOUND = 404
_HTTP_CONFLICT = 409

_FS_OPERATIONS = frozenset({"cd", "mkdir", "touch", "rm", "rename"})
_WINDOW_ACTIONS = frozenset({"focus", "close", "minimize", "restore", "maximize", "move", "resize"})


def _fs_payload(result: FsResult) -> dict[str, Any]:
    payload: dict[str, Any] = {"ok": result.ok}
    if not result.ok:
        payload["error"] = str(result.error)
        payload["message"] = result.message
    for key in ("path", "name", "content", "source", "target", "cwd"):
        value = getattr(result, key)
        if value is not None:
            payload[key] = value
    if result.items:
        payload["items"] = [{"name": e.name, "type": str(e.node_type)} for e in result.items]
    return payload


def _fs_response(result: FsResult) -> tuple[Response, int] | Response:
    if result:
        return jsonify(_fs_payload(result))
    return jsonify(_fs_payload(result)), _HTTP_CONFLICT


def create_app(desktop: Desktop | None = None) -> Flask:
    """Create and configure the Flask application.

    Args:
        desktop: The session to serve.  When omitted a fresh in-memory
            desktop is built.  A desktop that is not yet running is
            booted here.

    Returns:
        A configured Flask application ready to serve.

    """
    desktop = desktop or Desktop()
    if desktop.state is DesktopState.SHUTDOWN:
        desktop.boot()

    boot_log = "\n".join(desktop.dmesg())

    app = Flask(__name__)

    @app.route("/")
    def index() -> str:  # pyright: ignore[reportUnusedFunction]
        """Render the desktop HTML page."""
        return render_template("index.html", boot_log=boot_log)

    @app.route("/api/state")
    def state() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Return the session summary."""
        return jsonify(desktop.snapshot())

    @app.route("/api/fs")
    def list_directory() -> tuple[Response, int] | Response:  # pyright: ignore[reportUnusedFunction]
        """List a directory."""
        return _fs_response(desktop.vfs.list(request.args.get("path")))

    @app.route("/api/fs/file")
    def read_file() -> tuple[Response, int] | Response:  # pyright: ignore[reportUnusedFunction]
        """Read a file's content."""
        path = request.args.get("path")
        if not path:
            return jsonify({"error": "Missing 'path' parameter"}), _HTTP_BAD_REQUEST
        return _fs_response(desktop.vfs.read_file(path))

    @app.route("/api/fs/<op>", methods=["POST"])
    def fs_operation(op: str) -> tuple[Response, int] | Response:  # pyright: ignore[reportUnusedFunction]
        """Run one mutating filesystem operation.

        Expects JSON body with ``path`` (and ``content`` for touch,
        ``new_name`` for rename).
        """
        if op not in _FS_OPERATIONS:
            return jsonify({"error": f"Unknown operation: {op}"}), _HTTP_NOT_FOUND
        data = request.get_json(silent=True) or {}
        vfs = desktop.vfs
        path = data.get("path")
        match op:
            case "cd":
                result = vfs.cd(path)
            case "mkdir":
                result = vfs.mkdir(path)
            case "touch":
                result = vfs.touch(path, data.get("content", ""))
            case "rm":
                result = vfs.rm(path)
            case _:
                result = vfs.rename(path, data.get("new_name"))
        return _fs_response(result)

    @app.route("/api/apps/<name>", methods=["POST"])
    def launch(name: str) -> tuple[Response, int] | Response:  # pyright: ignore[reportUnusedFunction]
        """Launch an app, or bring its window forward."""
        window_id = desktop.launch_app(name)
        if window_id is None:
            return jsonify({"error": f"Unknown app: {name}"}), _HTTP_NOT_FOUND
        return jsonify({"id": window_id})

    @app.route("/api/windows/<int:window_id>/<action>", methods=["POST"])
    def window_action(window_id: int, action: str) -> tuple[Response, int] | Response:  # pyright: ignore[reportUnusedFunction]
        """Apply one lifecycle or geometry action to a window."""
        if action not in _WINDOW_ACTIONS:
            return jsonify({"error": f"Unknown action: {action}"}), _HTTP_NOT_FOUND
        data = request.get_json(silent=True) or {}
        manager = desktop.manager
        match action:
            case "focus":
                ok = manager.focus_window(window_id)
            case "close":
                ok = manager.close_window(window_id)
            case "minimize":
                ok = manager.minimize_window(window_id)
            case "restore":
                ok = manager.restore_window(window_id)
            case "maximize":
                ok = manager.toggle_maximize(window_id)
            case "move":
                if "x" not in data or "y" not in data:
                    return jsonify({"error": "Missing 'x' or 'y' field"}), _HTTP_BAD_REQUEST
                try:
                    ok = manager.update_window_position(window_id, data["x"], data["y"], persist=True)
                except ValueError as e:
                    return jsonify({"error": str(e)}), _HTTP_BAD_REQUEST
            case _:
                if "width" not in data or "height" not in data:
                    return jsonify({"error": "Missing 'width' or 'height' field"}), _HTTP_BAD_REQUEST
                try:
                    ok = manager.update_window_size(
                        window_id, data["width"], data["height"], persist=True
                    )
                except ValueError as e:
                    return jsonify({"error": str(e)}), _HTTP_BAD_REQUEST
        if not ok:
            return jsonify({"error": f"No such window: {window_id}"}), _HTTP_NOT_FOUND
        return jsonify({"ok": True})

    @app.route("/api/tick", methods=["POST"])
    def tick() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Advance session time by one tick."""
        return jsonify({"autosaved": desktop.tick()})

    return app


def main() -> None:
    """Run the web UI development server.

    This is the ``nexus-shell-web`` console entry point.
    """
    app = create_app()
    app.run(debug=True, port=8080)
