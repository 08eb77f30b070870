"""ASGI middleware that sanitizes the query string and JSON/form bodies before routing."""

import json
from urllib.parse import parse_qsl, urlencode

from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from app.services.sanitize import sanitize_pairs, sanitize_value

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def sanitize_query_string(query_string: bytes) -> bytes:
    if not query_string:
        return query_string
    pairs = parse_qsl(query_string.decode("latin-1"), keep_blank_values=True)
    cleaned = sanitize_pairs(pairs)
    if cleaned == pairs:
        return query_string
    return urlencode(cleaned).encode("latin-1")


def is_json_content_type(content_type: str) -> bool:
    """application/json or any application/*+json subtype, as FastAPI parses them."""
    main_type, _, subtype = content_type.partition("/")
    return main_type == "application" and (subtype == "json" or subtype.endswith("+json"))


def sanitize_body(body: bytes, content_type: str) -> bytes:
    """Return the sanitized body, or the original bytes if it cannot be decoded."""
    if not body:
        return body
    # FastAPI also parses a body sent without a content type as JSON.
    if not content_type or is_json_content_type(content_type):
        # json.loads on bytes detects a BOM and UTF-16/32, matching request.json().
        try:
            data = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError):
            return body
        return json.dumps(sanitize_value(data), ensure_ascii=False).encode("utf-8")
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError:
        return body
    pairs = parse_qsl(text, keep_blank_values=True)
    return urlencode(sanitize_pairs(pairs)).encode("utf-8")


async def _read_body(receive: Receive) -> bytes:
    chunks: list[bytes] = []
    while True:
        message = await receive()
        if message["type"] != "http.request":
            break
        chunks.append(message.get("body", b""))
        if not message.get("more_body", False):
            break
    return b"".join(chunks)


class SanitizeInputMiddleware:
    """Rewrites the request in place; it never rejects anything."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        scope = dict(scope)
        scope["query_string"] = sanitize_query_string(scope.get("query_string", b""))

        content_type = Headers(scope=scope).get("content-type", "").split(";")[0].strip().lower()
        passthrough = content_type and not (
            content_type == FORM_CONTENT_TYPE or is_json_content_type(content_type)
        )
        if passthrough:
            await self.app(scope, receive, send)
            return

        body = sanitize_body(await _read_body(receive), content_type)
        scope["headers"] = [
            (name, value) for name, value in scope["headers"] if name.lower() != b"content-length"
        ] + [(b"content-length", str(len(body)).encode("latin-1"))]

        replayed = False

        async def replay() -> Message:
            nonlocal replayed
            if not replayed:
                replayed = True
                return {"type": "http.request", "body": body, "more_body": False}
            return await receive()

        await self.app(scope, replay, send)
