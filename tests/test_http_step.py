"""HTTP Request step: methods, headers, bodies, error shapes."""

import json

import httpx
import pytest
import respx

from flowrun.steps.builtin.http_request import _parse_body, _parse_headers, http_request_step

_URL = "https://api.example.com/orders"


@pytest.mark.asyncio
@respx.mock
async def test_get_request_parses_json():
    route = respx.get(_URL).mock(return_value=httpx.Response(200, json={"id": 1}))
    result = await http_request_step({"endpoint": _URL})

    assert result == {"success": True, "data": {"id": 1}, "status": 200}
    assert route.calls.last.request.content == b""


@pytest.mark.asyncio
@respx.mock
async def test_post_sends_json_body_and_headers():
    route = respx.post(_URL).mock(return_value=httpx.Response(201, json={"created": True}))
    result = await http_request_step({
        "endpoint": _URL,
        "httpMethod": "post",
        "httpHeaders": '{"X-Trace": "abc"}',
        "httpBody": '{"qty": 2}',
    })

    assert result["success"] is True
    assert result["status"] == 201
    request = route.calls.last.request
    assert json.loads(request.content) == {"qty": 2}
    assert request.headers["X-Trace"] == "abc"
    assert request.headers["Content-Type"] == "application/json"


@pytest.mark.asyncio
@respx.mock
async def test_text_response_returned_as_text():
    respx.get(_URL).mock(return_value=httpx.Response(200, text="pong", headers={"content-type": "text/plain"}))
    result = await http_request_step({"endpoint": _URL})
    assert result["data"] == "pong"


@pytest.mark.asyncio
@respx.mock
async def test_non_2xx_is_reported_as_failure():
    respx.get(_URL).mock(return_value=httpx.Response(503, text="down"))
    result = await http_request_step({"endpoint": _URL})

    assert result["success"] is False
    assert result["status"] == 503
    assert result["error"] == "HTTP request failed with status 503: down"


@pytest.mark.asyncio
@respx.mock
async def test_transport_error_is_reported_as_failure():
    respx.get(_URL).mock(side_effect=httpx.ConnectError("refused"))
    result = await http_request_step({"endpoint": _URL})
    assert result["success"] is False
    assert "refused" in result["error"]


@pytest.mark.asyncio
async def test_missing_endpoint():
    result = await http_request_step({"httpMethod": "GET"})
    assert result == {"success": False, "error": "HTTP request failed: URL is required"}


def test_parse_headers_tolerates_bad_input():
    assert _parse_headers('{"A": 1}') == {"A": "1"}
    assert _parse_headers("not json") == {}
    assert _parse_headers("[1, 2]") == {}
    assert _parse_headers(None) == {}
    assert _parse_headers({"B": "2"}) == {"B": "2"}


@pytest.mark.parametrize("method,raw,expected", [
    ("GET", '{"a": 1}', None),
    ("POST", "", None),
    ("POST", "{}", None),
    ("POST", {"a": 1}, '{"a": 1}'),
    ("POST", '{"a":1}', '{"a": 1}'),
    ("PUT", "plain text", "plain text"),
])
def test_parse_body(method, raw, expected):
    assert _parse_body(method, raw) == expected
