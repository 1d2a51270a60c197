from __future__ import annotations
import threading
from typing import Dict

from flask import Flask, jsonify


class ServerStats:
    """Connection counters shared by every handler thread. Holds no game state."""

    def __init__(self):
        self._lock = threading.Lock()
        self._total = 0
        self._active = 0
        self._completed = 0

    def connection_opened(self) -> None:
        with self._lock:
            self._total += 1
            self._active += 1

    def connection_closed(self) -> None:
        with self._lock:
            self._active -= 1

    def game_completed(self) -> None:
        with self._lock:
            self._completed += 1

    def snapshot(self) -> Dict[str, int]:
        with self._lock:
            return {
                "connections_total": self._total,
                "connections_active": self._active,
                "games_completed": self._completed,
            }


def create_status_app(stats: ServerStats) -> Flask:
    app = Flask(__name__)

    @app.get("/health")
    def health():
        return jsonify({"status": "ok", "role": "concentration"})

    @app.get("/stats")
    def api_stats():
        return jsonify({"status": "ok", **stats.snapshot()})

    return app


def serve_status(stats: ServerStats, host: str, port: int) -> threading.Thread:
    """Run the status app on a daemon thread."""
    app = create_status_app(stats)
    thread = threading.Thread(
        target=app.run,
        kwargs={"host": host, "port": port, "threaded": True, "use_reloader": False},
        name="concentration-status",
        daemon=True,
    )
    thread.start()
    return thread
