"""
Body parsing middleware.

Turns the raw transport body into ``request.parsed_body``:

- ``bytes`` are decoded as UTF-8, then treated as text
- text is JSON-decoded (blank text parses to ``None``)
- already-structured bodies (dict/list) are taken as is
- a queue push envelope ``{"message": {"data": "<base64 JSON>"}}`` is
  unwrapped and its decoded payload becomes ``parsed_body``
"""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any

from fnpipe.core.errors import ParseError
from fnpipe.framework.context import Context


def _is_push_envelope(value: Any) -> bool:
    message = value.get("message") if isinstance(value, dict) else None
    return isinstance(message, dict) and bool(message.get("data"))


def _decode_push_message(envelope: dict[str, Any]) -> Any:
    data = envelope["message"]["data"]
    try:
        decoded = base64.b64decode(data, validate=True).decode("utf-8")
        return json.loads(decoded)
    except (binascii.Error, UnicodeDecodeError, ValueError, TypeError) as exc:
        raise ParseError("Invalid Pub/Sub message", cause=exc) from exc


class BodyParserMiddleware:
    """Parse JSON bodies and unwrap base64 queue deliveries."""

    def before(self, context: Context) -> None:
        raw = context.request.body

        if isinstance(raw, (bytes, bytearray)):
            try:
                raw = bytes(raw).decode("utf-8")
            except UnicodeDecodeError as exc:
                raise ParseError("Invalid JSON body", cause=exc) from exc

        if isinstance(raw, str):
            if not raw.strip():
                parsed: Any = None
            else:
                try:
                    parsed = json.loads(raw)
                except ValueError as exc:
                    raise ParseError("Invalid JSON body", cause=exc) from exc
        else:
            parsed = raw

        if _is_push_envelope(parsed):
            parsed = _decode_push_message(parsed)

        context.request.parsed_body = parsed
