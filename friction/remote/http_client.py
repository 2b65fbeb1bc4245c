from __future__ import annotations

import json
from http.client import HTTPConnection, HTTPSConnection
from typing import Any
from urllib.parse import ParseResult, urlencode, urlparse


def build_url(base: str, path: str, params: dict[str, str] | None = None) -> str:
    trimmed = base.strip().rstrip("/")
    parsed = urlparse(trimmed)
    if not parsed.scheme:
        trimmed = f"https://{trimmed}"
    url = f"{trimmed}/{path.lstrip('/')}"
    if params:
        url = f"{url}?{urlencode(params)}"
    return url


def _connect(target: ParseResult, timeout_s: float) -> HTTPConnection:
    if not target.hostname:
        raise ValueError("missing hostname")
    if target.scheme == "https":
        return HTTPSConnection(target.hostname, target.port or 443, timeout=timeout_s)
    return HTTPConnection(target.hostname, target.port or 80, timeout=timeout_s)


def _decode(raw: bytes) -> dict[str, Any] | None:
    # Bodies that are not a JSON object come back as an "error" entry.
    if not raw:
        return None
    try:
        data = json.loads(raw.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError):
        snippet = raw[:240].decode("utf-8", errors="replace").strip()
        return {"error": f"non_json_response: {snippet}" if snippet else "non_json_response"}
    if data is None or isinstance(data, dict):
        return data
    return {"error": f"unexpected_json_type: {type(data).__name__}"}


def request_json(
    method: str,
    url: str,
    *,
    headers: dict[str, str] | None = None,
    body: dict[str, Any] | None = None,
    timeout_s: float = 10.0,
) -> tuple[int, dict[str, Any] | None]:
    """Send one JSON request and return ``(status, payload)``.

    Connection errors propagate to the caller; the caller decides whether an
    unparseable 2xx body is acceptable.
    """

    target = urlparse(url)
    conn = _connect(target, timeout_s)
    resource = f"{target.path or '/'}?{target.query}" if target.query else target.path or "/"
    encoded = None
    request_headers = {"Accept": "application/json"}
    if body is not None:
        encoded = json.dumps(body, ensure_ascii=False).encode("utf-8")
        request_headers["Content-Type"] = "application/json"
        request_headers["Content-Length"] = str(len(encoded))
    request_headers.update(headers or {})
    try:
        conn.request(method, resource, body=encoded, headers=request_headers)
        response = conn.getresponse()
        return int(response.status), _decode(response.read())
    finally:
        conn.close()
