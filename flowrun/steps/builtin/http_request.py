"""HTTP Request step: call an arbitrary endpoint with httpx."""

import json
import logging
from typing import Any, Optional

import httpx

from flowrun.steps.plugin import step
from flowrun.types import ActionKind

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30


def _parse_headers(raw: Any) -> dict[str, str]:
    """``httpHeaders`` arrives as a JSON string from the editor; bad JSON means no headers."""
    if isinstance(raw, dict):
        return {str(k): str(v) for k, v in raw.items()}
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        return {}
    return {str(k): str(v) for k, v in parsed.items()} if isinstance(parsed, dict) else {}


def _parse_body(method: str, raw: Any) -> Optional[str]:
    """Serialize the request body. GET requests and empty bodies send nothing."""
    if method == "GET" or raw is None or raw == "":
        return None
    if isinstance(raw, (dict, list)):
        return json.dumps(raw) if raw else None
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        trimmed = str(raw).strip()
        return raw if trimmed and trimmed != "{}" else None
    if isinstance(parsed, (dict, list)) and not parsed:
        return None
    return json.dumps(parsed)


def _parse_response(response: httpx.Response) -> Any:
    if "application/json" in response.headers.get("content-type", ""):
        try:
            return response.json()
        except ValueError:
            return response.text
    return response.text


@step(
    ActionKind.HTTP_REQUEST,
    description="Make an HTTP request to an endpoint",
    config_fields=["endpoint", "httpMethod", "httpHeaders", "httpBody"],
)
async def http_request_step(config: dict) -> dict:
    endpoint = config.get("endpoint")
    if not endpoint:
        return {"success": False, "error": "HTTP request failed: URL is required"}

    method = str(config.get("httpMethod") or "GET").upper()
    headers = _parse_headers(config.get("httpHeaders"))
    body = _parse_body(method, config.get("httpBody"))
    if body is not None:
        headers.setdefault("Content-Type", "application/json")

    try:
        async with httpx.AsyncClient(timeout=DEFAULT_TIMEOUT_SECONDS) as client:
            response = await client.request(method, endpoint, headers=headers, content=body)
    except httpx.HTTPError as exc:
        logger.warning(f"[HTTP Request] {method} {endpoint} failed: {exc}")
        return {"success": False, "error": f"HTTP request failed: {exc}"}

    if not response.is_success:
        return {
            "success": False,
            "error": f"HTTP request failed with status {response.status_code}: {response.text}",
            "status": response.status_code,
        }

    return {"success": True, "data": _parse_response(response), "status": response.status_code}
