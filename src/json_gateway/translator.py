"""Turn a JSON "describe an HTTP call" envelope into an outbound call.

The envelope looks like::

    {"method": "get", "path": "/search", "query": {"q": "a b"}, "body": {...}}

Every field is optional. The method is upper-cased but not validated here;
an unknown method is rejected when the call is dispatched.
"""
import json
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional
from urllib.parse import quote

from json_gateway.errors import GatewayRequestError

logger = logging.getLogger(__name__)

_NO_BODY = object()


@dataclass(frozen=True)
class GatewayRequest:
    method: str = "GET"
    path: str = "/"
    query: Optional[Mapping[str, Any]] = None
    body: Any = None


@dataclass(frozen=True)
class OutboundCall:
    method: str
    full_path: str
    body: Any = _NO_BODY

    @property
    def has_body(self) -> bool:
        return self.body is not _NO_BODY


def parse_gateway_request(payload: Any) -> GatewayRequest:
    """Validate the decoded inbound JSON and apply the field defaults."""
    if not isinstance(payload, dict):
        raise GatewayRequestError("gateway request must be a JSON object")

    method = payload.get("method", "GET")
    if not isinstance(method, str):
        raise GatewayRequestError("'method' must be a string")

    path = payload.get("path", "/")
    if not isinstance(path, str):
        raise GatewayRequestError("'path' must be a string")

    query = payload.get("query")
    if query is not None and not isinstance(query, dict):
        raise GatewayRequestError("'query' must be a JSON object")

    return GatewayRequest(
        method=method.upper(),
        path=path,
        query=query,
        body=payload.get("body"),
    )


def stringify_query_value(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    # numbers, booleans and null in their JSON text form
    return json.dumps(value)


def encode_query_value(value: str) -> str:
    try:
        return quote(value, safe="", encoding="utf-8", errors="strict")
    except UnicodeEncodeError:
        logger.debug("Query value not UTF-8 encodable, sending it unencoded")
        return value


def build_query_string(query: Mapping[str, Any]) -> str:
    """Join ``key=value`` pairs with ``&`` in the mapping's iteration order."""
    return "&".join(
        f"{key}={encode_query_value(stringify_query_value(value))}"
        for key, value in query.items()
    )


def to_outbound_call(request: GatewayRequest) -> OutboundCall:
    full_path = request.path
    if request.query is not None:
        # an empty query object still yields a trailing '?'
        full_path = f"{full_path}?{build_query_string(request.query)}"
    body = _NO_BODY if request.body is None else request.body
    return OutboundCall(method=request.method, full_path=full_path, body=body)


def translate(payload: Any) -> OutboundCall:
    return to_outbound_call(parse_gateway_request(payload))
