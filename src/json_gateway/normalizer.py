"""Execute an outbound call against the backend and wrap the outcome.

"success" in the envelope means the backend answered, whatever its status
code. Only a call that never completed produces a failure envelope.
"""
import json
import logging
from typing import Any, Dict, Iterable, Optional, Tuple
from urllib.parse import urlsplit

import requests

from json_gateway.errors import DispatchError
from json_gateway.translator import OutboundCall

logger = logging.getLogger(__name__)

KNOWN_METHODS = frozenset(
    ["GET", "HEAD", "POST", "PUT", "DELETE", "PATCH", "OPTIONS", "TRACE", "CONNECT"]
)

FAILURE_ERROR = "invocation failed"
FAILURE_STATUS = 400
SUCCESS_STATUS = 200

_HTTP_VERSIONS = {10: "HTTP/1.0", 11: "HTTP/1.1", 20: "HTTP/2"}


# ----------------------
# Envelope helpers
# ----------------------
def success_envelope(response: requests.Response) -> Dict[str, Any]:
    return {
        "success": True,
        "body": normalize_body(response),
        "status-code": response.status_code,
        "status-message": response.reason or "",
        "http-version": http_version(response),
        "headers": collect_headers(response),
    }


def failure_envelope(reason: str) -> Dict[str, Any]:
    return {"success": False, "error": FAILURE_ERROR, "reason": reason}


def is_json_content_type(content_type: Optional[str]) -> bool:
    return content_type is not None and "application/json" in content_type


def body_text(response: requests.Response) -> str:
    """Decode with the declared charset, or as UTF-8 when none is declared."""
    content_type = response.headers.get("Content-Type") or ""
    if "charset=" in content_type.lower():
        return response.text
    return response.content.decode("utf-8", errors="replace")


def normalize_body(response: requests.Response) -> str:
    """Pretty-print JSON bodies, pass everything else through as text.

    A body that claims to be JSON but does not parse is logged and returned
    as raw text instead of failing the request.
    """
    text = body_text(response)
    if not is_json_content_type(response.headers.get("Content-Type")):
        return text
    try:
        parsed = json.loads(text)
    except ValueError:
        logger.warning(
            "Backend sent Content-Type %r with a body that is not JSON, passing it through raw",
            response.headers.get("Content-Type"),
        )
        return text
    return json.dumps(parsed, indent=2, ensure_ascii=False)


def _raw_header_items(response: requests.Response) -> Iterable[Tuple[str, str]]:
    raw_headers = getattr(response.raw, "headers", None)
    if raw_headers is not None and hasattr(raw_headers, "iteritems"):
        # one item per header line, duplicates included
        return raw_headers.iteritems()
    return response.headers.items()


def collect_headers(response: requests.Response) -> Dict[str, str]:
    """Flatten response headers; a later duplicate overwrites an earlier one."""
    headers: Dict[str, str] = {}
    for name, value in _raw_header_items(response):
        headers[name] = value
    return headers


def http_version(response: requests.Response) -> str:
    version = getattr(response.raw, "version", None)
    if not isinstance(version, int):
        return "unknown"
    return _HTTP_VERSIONS.get(version, f"HTTP/{version // 10}.{version % 10}")


# ----------------------
# Dispatch
# ----------------------
def send(
    session: requests.Session,
    base_url: str,
    call: OutboundCall,
    timeout: Optional[float] = None,
) -> requests.Response:
    """Make exactly one outbound call; any failure is raised as DispatchError."""
    if call.method not in KNOWN_METHODS:
        raise DispatchError(f"unsupported HTTP method: {call.method!r}")

    kwargs: Dict[str, Any] = {"timeout": timeout}
    if call.has_body:
        kwargs["json"] = call.body

    url = base_url + call.full_path
    try:
        netloc = urlsplit(url).netloc
    except ValueError as e:
        raise DispatchError(str(e)) from e
    if netloc != urlsplit(base_url).netloc:
        raise DispatchError(f"path {call.full_path!r} does not stay on the backend {base_url}")

    logger.debug("Dispatching %s %s", call.method, call.full_path)
    try:
        return session.request(call.method, url, **kwargs)
    except requests.RequestException as e:
        raise DispatchError(str(e) or e.__class__.__name__) from e


def dispatch(
    session: requests.Session,
    base_url: str,
    call: OutboundCall,
    timeout: Optional[float] = None,
) -> Tuple[Dict[str, Any], int]:
    """Run the call and return ``(envelope, outward_status)``."""
    try:
        response = send(session, base_url, call, timeout=timeout)
    except DispatchError as e:
        logger.exception("Backend invocation failed: %s", e)
        return failure_envelope(str(e)), FAILURE_STATUS
    return success_envelope(response), SUCCESS_STATUS
