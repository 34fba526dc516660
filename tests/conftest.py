"""
Shared fixtures: fake beacon and fake GitHub gist service.

Both fakes are small Flask apps served by werkzeug on a random local port, so
the real requests stack is exercised end to end.
"""

import threading
import time
from functools import wraps

import pytest
from flask import Flask, Response, jsonify, request
from werkzeug.datastructures import Headers
from werkzeug.serving import make_server

TOKEN = "ghp_test-token"


# =============================================================================
# LIVE SERVER
# =============================================================================


class LiveServer:
    def __init__(self, app):
        self.server = make_server("127.0.0.1", 0, app, threaded=True)
        self.url = f"http://127.0.0.1:{self.server.server_port}"
        self.thread = threading.Thread(target=self.server.serve_forever, daemon=True)

    def start(self):
        self.thread.start()
        return self

    def stop(self):
        self.server.shutdown()
        self.server.server_close()


# =============================================================================
# FAKE BEACON
# =============================================================================


class FakeBeacon:
    def __init__(self):
        self.body = "203.0.113.1"
        self.status = 200
        self.delay = 0
        self.stream_bytes = 0
        self.user_agents = []
        self.app = self._build_app()

    def _build_app(self):
        app = Flask("fake_beacon")

        @app.route("/", methods=["GET"])
        def ip():
            self.user_agents.append(request.headers.get("User-Agent", ""))
            if self.delay:
                time.sleep(self.delay)
            if self.stream_bytes:
                def generate():
                    chunk = b" " * 65536
                    sent = 0
                    while sent < self.stream_bytes:
                        yield chunk
                        sent += len(chunk)
                return Response(generate(), status=self.status, mimetype="text/plain")
            return Response(self.body, status=self.status, mimetype="text/plain")

        return app


@pytest.fixture
def fake_beacon():
    beacon = FakeBeacon()
    server = LiveServer(beacon.app).start()
    beacon.url = server.url + "/"
    yield beacon
    server.stop()


# =============================================================================
# FAKE GIST SERVICE
# =============================================================================


class FakeGistService:
    """In-memory stand-in for the GitHub gists API.

    ``calls`` records (method, path) for every authorized request, in order.
    ``fail`` maps a method to a status code the next matching request gets.
    """

    def __init__(self, token=TOKEN):
        self.token = token
        self.gists = {}
        self.calls = []
        self.bodies = []
        self.headers = []
        self.fail = {}
        self.truncated = set()
        self._next_id = 1
        self.app = self._build_app()

    # --- helpers used by tests ---
    def add_gist(self, description, files=None, public=False, gist_id=None):
        gist_id = gist_id or f"gist{self._next_id}"
        self._next_id += 1
        self.gists[gist_id] = {
            "id": gist_id,
            "description": description,
            "public": public,
            "files": {
                name: {"filename": name, "content": content}
                for name, content in (files or {}).items()
            },
        }
        return gist_id

    def count(self, method):
        return sum(1 for m, _ in self.calls if m == method)

    def _render(self, gist, with_content=True):
        files = {}
        for name, f in gist["files"].items():
            entry = {"filename": name, "type": "text/plain", "size": len(f["content"])}
            if with_content:
                entry["content"] = f["content"]
                entry["truncated"] = gist["id"] in self.truncated
            files[name] = entry
        return {
            "id": gist["id"],
            "description": gist["description"],
            "public": gist["public"],
            "files": files,
        }

    def _build_app(self):
        app = Flask("fake_gists")

        def require_token(f):
            """Decorator to require the bearer token on API endpoints."""
            @wraps(f)
            def wrapper(*args, **kwargs):
                self.headers.append(Headers(request.headers))
                auth = request.headers.get("Authorization", "")
                if not auth.startswith("Bearer ") or auth.split(" ", 1)[1] != self.token:
                    return jsonify({"message": "Bad credentials"}), 401
                self.calls.append((request.method, request.path))
                self.bodies.append(request.get_json(silent=True))
                status = self.fail.pop(request.method, None)
                if status:
                    return jsonify({"message": "forced failure"}), status
                return f(*args, **kwargs)
            return wrapper

        @app.route("/gists", methods=["GET"])
        @require_token
        def list_gists():
            per_page = int(request.args.get("per_page", 30))
            page = int(request.args.get("page", 1))
            gists = list(self.gists.values())[(page - 1) * per_page:page * per_page]
            return jsonify([self._render(g, with_content=False) for g in gists])

        @app.route("/gists/<gist_id>", methods=["GET"])
        @require_token
        def get_gist(gist_id):
            gist = self.gists.get(gist_id)
            if gist is None:
                return jsonify({"message": "Not Found"}), 404
            return jsonify(self._render(gist))

        @app.route("/gists", methods=["POST"])
        @require_token
        def create_gist():
            data = request.get_json(force=True)
            files = {name: f["content"] for name, f in data["files"].items()}
            gist_id = self.add_gist(data.get("description", ""), files, data.get("public", False))
            return jsonify(self._render(self.gists[gist_id])), 201

        @app.route("/gists/<gist_id>", methods=["PATCH"])
        @require_token
        def update_gist(gist_id):
            gist = self.gists.get(gist_id)
            if gist is None:
                return jsonify({"message": "Not Found"}), 404
            data = request.get_json(force=True)
            for name, f in data.get("files", {}).items():
                gist["files"][name] = {"filename": name, "content": f["content"]}
            return jsonify(self._render(gist))

        return app


@pytest.fixture
def gist_service():
    service = FakeGistService()
    server = LiveServer(service.app).start()
    service.url = server.url + "/gists"
    yield service
    server.stop()
