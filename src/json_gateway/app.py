import json
import logging
from typing import Any, Dict, Optional

import requests
from flask import Flask, Response, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from json_gateway.config import GatewayConfig
from json_gateway.errors import GatewayRequestError
from json_gateway.normalizer import dispatch
from json_gateway.translator import translate

logger = logging.getLogger("json-gateway")


def json_response(payload: Dict[str, Any], status: int) -> Response:
    """Pretty-printed JSON, keys in insertion order."""
    return Response(
        json.dumps(payload, indent=2, ensure_ascii=False),
        status=status,
        mimetype="application/json",
    )


class Gateway:
    """Owns the backend HTTP session and the Flask app routing to it.

    Built once per process; request handlers reach the session through
    this object rather than through module globals.
    """

    def __init__(self, config: GatewayConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or requests.Session()
        self.app = Flask(
            __name__,
            static_folder=config.assets_dir,
            static_url_path="/assets",
        )
        self.app.config["RATELIMIT_ENABLED"] = config.rate_limit_enabled
        CORS(self.app, origins=list(config.cors_origins))
        self.limiter = Limiter(key_func=get_remote_address, app=self.app)
        self._register_routes()

    # ----------------------
    # Routes
    # ----------------------
    def _register_routes(self) -> None:
        app = self.app

        @app.route("/ready", methods=["GET"])
        def ready():
            return Response("OK", status=200, mimetype="text/plain")

        @app.route("/gateway", methods=["POST"])
        @self.limiter.limit(lambda: self.config.rate_limit)
        def gateway():
            # Invalid JSON raises BadRequest and is answered by Flask
            payload = request.get_json(force=True)
            call = translate(payload)
            envelope, status = dispatch(
                self.session,
                self.config.backend_url,
                call,
                timeout=self.config.backend_timeout,
            )
            return json_response(envelope, status)

        @app.errorhandler(GatewayRequestError)
        def invalid_request(e):
            logger.warning("Rejected gateway request: %s", e)
            return json_response(
                {"success": False, "error": "invalid request", "reason": str(e)}, 400
            )

    def close(self) -> None:
        if self.session is not None:
            self.session.close()


def create_app(config: Optional[GatewayConfig] = None) -> Flask:
    """Build a Gateway from the environment (or ``config``) and return its app.

    The owning Gateway stays reachable as ``app.extensions["json_gateway"]``.
    """
    gateway = Gateway(config or GatewayConfig.from_env())
    gateway.app.extensions["json_gateway"] = gateway
    return gateway.app
