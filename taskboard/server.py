#!/usr/bin/env python3
"""
Task Board Server
-----------------
JSON API over a TaskStore. Plays the part of the board page's event glue:
form submit, delete button, drop handler, search box and clear-all button.

Usage:
    taskboard-server --port 3000 --db ~/.local/share/taskboard/taskboard.db

API:
    GET    /api/board?q=&priority=all   → columns with counts, tasks, overdue/visible flags
    GET    /api/tasks?column=&q=&priority=
    POST   /api/tasks                   → JSON body: { title, description, priority, dueDate, column }
    DELETE /api/tasks/<id>
    POST   /api/tasks/<id>/move         → JSON body: { column }
    POST   /api/drop                    → JSON body: { payload, column }
    DELETE /api/tasks?confirm=true      → clear the board
    GET    /health

Mutating routes require an X-API-Key header when an API secret is configured.
"""

import argparse
import hmac
import logging
import os
import sys
from functools import wraps
from typing import Optional

from flask import Flask, jsonify, request

from .blobstore import SqliteBlobStore, MemoryBlobStore, PersistenceError
from .config import Config
from .events import BoardEventBridge
from .schema import Column, Task, ValidationError, format_due_date
from .store import TaskStore

logger = logging.getLogger(__name__)

TRUTHY = {"1", "true", "yes", "on"}


def open_store(cfg: Config) -> TaskStore:
    """Build the configured blob backend and load the board from it."""
    if cfg.backend == "memory":
        blobs = MemoryBlobStore()
    else:
        try:
            blobs = SqliteBlobStore(cfg.db_path)
        except PersistenceError as e:
            logger.warning(f"Falling back to in-memory storage: {e}")
            blobs = MemoryBlobStore()
    return TaskStore(blobs, key=cfg.storage_key)


def create_app(store: TaskStore, cfg: Optional[Config] = None) -> Flask:
    """Flask app bound to one store instance."""
    cfg = cfg or Config()
    app = Flask(__name__)
    bridge = BoardEventBridge(store)
    bridge.subscribe("task_created", lambda task: logger.info(f"Created task {task.id}: {task.title}"))
    bridge.subscribe("task_deleted", lambda task_id: logger.info(f"Deleted task {task_id}"))
    bridge.subscribe("task_moved", lambda task, column: logger.info(f"Moved task {task.id} to {column}"))
    bridge.subscribe("board_cleared", lambda removed: logger.info(f"Cleared board ({removed} tasks)"))

    app.extensions["taskboard"] = bridge

    # ── Helpers ──────────────────────────────────────────────────────────

    def respond(payload: dict, status: int = 200):
        if store.last_error:
            payload["warning"] = f"Changes are not saved: {store.last_error}"
        return jsonify(payload), status

    def task_view(task: Task, predicate=None) -> dict:
        data = task.to_dict()
        data["overdue"] = store.is_overdue(task)
        data["dueDateLabel"] = format_due_date(task.due_date)
        if predicate is not None:
            data["visible"] = predicate(task)
        return data

    def body() -> dict:
        data = request.get_json(force=True, silent=True)
        return data if isinstance(data, dict) else {}

    def require_api_key(f):
        """Reject mutating requests without a valid X-API-Key header."""
        @wraps(f)
        def decorated(*args, **kwargs):
            secret = cfg.api_secret
            if secret:
                provided = request.headers.get("X-API-Key", "").strip()
                if not hmac.compare_digest(provided, secret):
                    code = 401 if not provided else 403
                    return jsonify({"error": "Unauthorized"}), code
            return f(*args, **kwargs)
        return decorated

    @app.errorhandler(ValidationError)
    def handle_validation(e):
        return jsonify({"error": str(e)}), 400

    # ── Routes ───────────────────────────────────────────────────────────

    @app.route("/api/board")
    def api_board():
        predicate = store.search(request.args.get("q", ""), request.args.get("priority", "all"))
        counts = store.counts()
        columns = []
        for column in Column:
            columns.append({
                "column": column.value,
                "title": cfg.columns.get(column.value, column.value),
                "count": counts[column.value],
                "tasks": [task_view(t, predicate) for t in store.list_by_column(column)],
            })
        return respond({"columns": columns, "total": len(store)})

    @app.route("/api/tasks", methods=["GET"])
    def api_tasks():
        column = request.args.get("column")
        predicate = store.search(request.args.get("q", ""), request.args.get("priority", "all"))
        tasks = store.list_by_column(column) if column else store.all()
        tasks = [t for t in tasks if predicate(t)]
        return respond({"tasks": [task_view(t) for t in tasks], "count": len(tasks)})

    @app.route("/api/tasks", methods=["POST"])
    @require_api_key
    def api_create_task():
        task = bridge.on_submit(body())
        return respond({"task": task_view(task), "id": task.id}, 201)

    @app.route("/api/tasks/<int:task_id>", methods=["DELETE"])
    @require_api_key
    def api_delete_task(task_id):
        removed = bridge.on_delete(task_id)
        return respond({"id": task_id, "deleted": removed})

    @app.route("/api/tasks/<int:task_id>/move", methods=["POST"])
    @require_api_key
    def api_move_task(task_id):
        task = bridge.on_drop(task_id, body().get("column", ""))
        return respond({"id": task_id, "task": task_view(task) if task else None})

    @app.route("/api/drop", methods=["POST"])
    @require_api_key
    def api_drop():
        data = body()
        task = bridge.on_drop(data.get("payload"), data.get("column", ""))
        return respond({"task": task_view(task) if task else None})

    @app.route("/api/tasks", methods=["DELETE"])
    @require_api_key
    def api_clear():
        if request.args.get("confirm", "").strip().lower() not in TRUTHY:
            return jsonify({"error": "Clearing the board requires confirm=true"}), 400
        removed = bridge.on_clear(confirmed=True)
        return respond({"removed": removed})

    @app.route("/health")
    def health():
        return respond({"status": "ok", "storage": repr(store.blobs), "tasks": len(store)})

    return app


# ── Main ─────────────────────────────────────────────────────────────────────

def main(argv=None):
    parser = argparse.ArgumentParser(description="Task Board Server")
    parser.add_argument("--host", default=None,
                        help="Bind address (use 0.0.0.0 to expose on network)")
    parser.add_argument("--port", type=int, default=None)
    parser.add_argument("--db", help="Path to taskboard.db (overrides TASKBOARD_DB env var)")
    parser.add_argument("--config", default=None, help="Path to taskboard.yaml")
    parser.add_argument("--memory", action="store_true",
                        help="Keep tasks in memory only (nothing is saved)")
    args = parser.parse_args(argv)

    if args.db:
        os.environ["TASKBOARD_DB"] = args.db

    cfg = Config.load(args.config)
    if args.memory:
        cfg.backend = "memory"
    host = args.host or cfg.host
    port = args.port or cfg.port

    logging.basicConfig(
        level=getattr(logging, str(cfg.log_level).upper(), logging.INFO),
        format="%(asctime)s [taskboard] %(levelname)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    store = open_store(cfg)
    logger.info(f"Serving {len(store)} tasks from {store.blobs!r} on http://{host}:{port}")

    app = create_app(store, cfg)
    # One request at a time: the store is single-writer
    app.run(host=host, port=port, debug=False, threaded=False)


if __name__ == "__main__":
    main()
