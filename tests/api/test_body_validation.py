"""
Tests for BodyValidationMiddleware and issue normalization.
"""

from __future__ import annotations

import pytest
from pydantic import BaseModel

from fnpipe.api.middleware import BodyValidationMiddleware
from fnpipe.api.middleware.validation import normalize_issue_code
from fnpipe.core.errors import ValidationError
from fnpipe.services.login import LoginRequest


class Paging(BaseModel):
    page: int = 1
    size: int = 20


class TestPostValidation:
    def test_valid_body(self, make_context):
        ctx = make_context("POST")
        ctx.request.parsed_body = {"email": "a@b.com", "password": "pw", "channel": "web"}
        BodyValidationMiddleware(LoginRequest).before(ctx)
        assert isinstance(ctx.request.validated_body, LoginRequest)
        assert ctx.request.validated_body.email == "a@b.com"

    def test_missing_field(self, make_context):
        ctx = make_context("POST")
        ctx.request.parsed_body = {"email": "a@b.com", "channel": "web"}
        with pytest.raises(ValidationError) as exc_info:
            BodyValidationMiddleware(LoginRequest).before(ctx)

        err = exc_info.value
        assert err.status_code == 400
        assert err.message == "Validation error"
        assert {"path": ["password"], "code": "invalid_type"}.items() <= err.details[0].items()
        assert ctx.request.validated_body is None

    def test_bad_email(self, make_context):
        ctx = make_context("POST")
        ctx.request.parsed_body = {"email": "nope", "password": "pw", "channel": "web"}
        with pytest.raises(ValidationError) as exc_info:
            BodyValidationMiddleware(LoginRequest).before(ctx)
        assert exc_info.value.details[0]["path"] == ["email"]
        assert exc_info.value.details[0]["code"] == "invalid_string"

    def test_raw_structured_body_used(self, make_context):
        ctx = make_context("POST", body={"page": "3"})
        BodyValidationMiddleware(Paging).before(ctx)
        assert ctx.request.validated_body == Paging(page=3)

    def test_none_body_fails(self, make_context):
        ctx = make_context("POST")
        with pytest.raises(ValidationError):
            BodyValidationMiddleware(LoginRequest).before(ctx)

    def test_non_model_schema(self, make_context):
        ctx = make_context("PUT")
        ctx.request.parsed_body = ["1", "2"]
        BodyValidationMiddleware(list[int]).before(ctx)
        assert ctx.request.validated_body == [1, 2]


class TestGetValidation:
    def test_query_coerced_and_written_back(self, make_context):
        ctx = make_context("GET", query={"page": "2"})
        BodyValidationMiddleware(Paging).before(ctx)
        assert ctx.request.query == {"page": 2, "size": 20}
        assert ctx.request.validated_body is None

    def test_invalid_query_untouched(self, make_context):
        ctx = make_context("GET", query={"page": "two"})
        with pytest.raises(ValidationError):
            BodyValidationMiddleware(Paging).before(ctx)
        assert ctx.request.query == {"page": "two"}


class TestIssueCodes:
    @pytest.mark.parametrize(
        "pydantic_type,code",
        [
            ("missing", "invalid_type"),
            ("int_parsing", "invalid_type"),
            ("string_type", "invalid_type"),
            ("string_pattern_mismatch", "invalid_string"),
            ("datetime_from_date_parsing", "invalid_string"),
            ("url_parsing", "invalid_string"),
            ("datetime_type", "invalid_type"),
            ("date_type", "invalid_type"),
            ("time_type", "invalid_type"),
            ("url_type", "invalid_type"),
            ("uuid_type", "invalid_type"),
            ("string_too_short", "too_small"),
            ("less_than_equal", "too_big"),
            ("literal_error", "invalid_enum_value"),
            ("extra_forbidden", "unrecognized_keys"),
            ("value_error", "custom"),
        ],
    )
    def test_normalization(self, pydantic_type, code):
        assert normalize_issue_code(pydantic_type) == code
