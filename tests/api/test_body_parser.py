"""
Tests for BodyParserMiddleware.
"""

from __future__ import annotations

import base64
import json

import pytest

from fnpipe.api.middleware import BodyParserMiddleware
from fnpipe.core.errors import ParseError


def push_envelope(payload) -> dict:
    data = base64.b64encode(json.dumps(payload).encode()).decode()
    return {"message": {"data": data, "messageId": "1"}, "subscription": "s"}


class TestBodyParser:
    def test_json_text(self, make_context):
        ctx = make_context("POST", body='{"email": "a@b.com"}')
        BodyParserMiddleware().before(ctx)
        assert ctx.request.parsed_body == {"email": "a@b.com"}

    def test_json_bytes(self, make_context):
        ctx = make_context("POST", body=b'[1, 2, 3]')
        BodyParserMiddleware().before(ctx)
        assert ctx.request.parsed_body == [1, 2, 3]

    def test_structured_body_taken_as_is(self, make_context):
        ctx = make_context("POST", body={"a": 1})
        BodyParserMiddleware().before(ctx)
        assert ctx.request.parsed_body == {"a": 1}

    @pytest.mark.parametrize("body", [None, "", b"", "   "])
    def test_empty_body(self, make_context, body):
        ctx = make_context("POST", body=body)
        BodyParserMiddleware().before(ctx)
        assert ctx.request.parsed_body is None

    def test_invalid_json(self, make_context):
        ctx = make_context("POST", body="{not json")
        with pytest.raises(ParseError, match="Invalid JSON body") as exc_info:
            BodyParserMiddleware().before(ctx)
        assert exc_info.value.status_code == 400
        assert ctx.request.parsed_body is None

    def test_invalid_utf8(self, make_context):
        ctx = make_context("POST", body=b"\xff\xfe")
        with pytest.raises(ParseError):
            BodyParserMiddleware().before(ctx)


class TestPushEnvelope:
    def test_unwraps_message(self, make_context):
        ctx = make_context("POST", body=json.dumps(push_envelope({"temperature": 101})))
        BodyParserMiddleware().before(ctx)
        assert ctx.request.parsed_body == {"temperature": 101}

    def test_bad_payload(self, make_context):
        ctx = make_context("POST", body={"message": {"data": "!!not-base64!!"}})
        with pytest.raises(ParseError, match="Invalid Pub/Sub message"):
            BodyParserMiddleware().before(ctx)

    def test_message_without_data_is_plain_body(self, make_context):
        ctx = make_context("POST", body={"message": "hello"})
        BodyParserMiddleware().before(ctx)
        assert ctx.request.parsed_body == {"message": "hello"}
