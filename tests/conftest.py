"""Fixtures: a real backend served over HTTP and a gateway pointed at it."""
import socket
import threading

import pytest
from flask import Flask, Response, jsonify, request
from werkzeug.serving import make_server

from json_gateway.app import Gateway
from json_gateway.config import GatewayConfig

ALL_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"]


def build_backend() -> Flask:
    backend = Flask("backend")

    @backend.route("/items", methods=["GET"])
    def items():
        return jsonify({"items": [1, 2, 3], "total": 3})

    @backend.route("/echo", methods=ALL_METHODS)
    @backend.route("/search", methods=ALL_METHODS)
    def echo():
        raw_body = request.get_data(as_text=True)
        return jsonify(
            {
                "method": request.method,
                "path": request.path,
                "query": request.query_string.decode(),
                "content_type": request.headers.get("Content-Type"),
                "body": raw_body or None,
            }
        )

    @backend.route("/missing")
    def missing():
        return Response("not found", status=404, mimetype="text/plain")

    @backend.route("/boom")
    def boom():
        return jsonify({"error": "backend exploded"}), 500

    @backend.route("/duplicates")
    def duplicates():
        resp = Response("dup", mimetype="text/plain")
        resp.headers.add("X-Dup", "first")
        resp.headers.add("X-Dup", "second")
        return resp

    @backend.route("/utf8")
    def utf8():
        return Response("héllo wörld €".encode("utf-8"), content_type="text/plain")

    @backend.route("/broken-json")
    def broken_json():
        return Response("{not json", mimetype="application/json")

    return backend


@pytest.fixture(scope="session")
def backend_server():
    server = make_server("127.0.0.1", 0, build_backend(), threaded=True)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.shutdown()
    thread.join(timeout=5)


def make_config(port: int, **overrides) -> GatewayConfig:
    settings = dict(
        backend_host="127.0.0.1",
        backend_port=port,
        backend_timeout=5.0,
        rate_limit_enabled=False,
    )
    settings.update(overrides)
    return GatewayConfig(**settings)


@pytest.fixture
def gateway(backend_server):
    gw = Gateway(make_config(backend_server.server_port))
    yield gw
    gw.close()


@pytest.fixture
def client(gateway):
    return gateway.app.test_client()


@pytest.fixture
def unused_port() -> int:
    """A port nothing listens on, for connection-refused scenarios."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]
