"""
Tests for header, path and query presence validators.
"""

from __future__ import annotations

import pytest

from fnpipe.api.middleware import (
    HeaderVariablesMiddleware,
    PathParametersMiddleware,
    QueryParametersMiddleware,
)
from fnpipe.core.errors import ValidationError


class TestHeaderVariables:
    def test_present(self, make_context):
        ctx = make_context(headers={"X-Tenant": "t1", "x-region": "eu"})
        HeaderVariablesMiddleware(["x-tenant", "X-Region"]).before(ctx)

    def test_all_missing_reported_together(self, make_context):
        ctx = make_context(headers={"x-tenant": "t1"})
        with pytest.raises(ValidationError) as exc_info:
            HeaderVariablesMiddleware(["x-tenant", "x-region", "x-trace"]).before(ctx)

        err = exc_info.value
        assert err.message == "Missing required headers: x-region, x-trace"
        assert [i["path"] for i in err.details] == [["headers", "x-region"], ["headers", "x-trace"]]
        assert all(i["code"] == "invalid_type" for i in err.details)

    def test_singular_message(self, make_context):
        with pytest.raises(ValidationError, match="Missing required header: x-tenant"):
            HeaderVariablesMiddleware(["x-tenant"]).before(make_context())


class TestPathParameters:
    def test_present(self, make_context):
        PathParametersMiddleware(["id"]).before(make_context(path_params={"id": "w1"}))

    def test_missing(self, make_context):
        with pytest.raises(ValidationError, match="Missing required path parameter: id") as exc_info:
            PathParametersMiddleware(["id"]).before(make_context(path_params={"id": ""}))
        assert exc_info.value.status_code == 400

    def test_no_names_is_noop(self, make_context):
        PathParametersMiddleware().before(make_context())


class TestQueryParameters:
    def test_present(self, make_context):
        QueryParametersMiddleware(["date"]).before(make_context(query={"date": "2024-01-01"}))

    def test_filled_from_url(self, make_context):
        ctx = make_context(url="https://api.example.com/weather?date=2024-01-01&unit=c")
        QueryParametersMiddleware(["date", "unit"]).before(ctx)
        assert ctx.request.query == {"date": "2024-01-01", "unit": "c"}

    def test_missing(self, make_context):
        ctx = make_context(url="https://api.example.com/weather")
        with pytest.raises(ValidationError) as exc_info:
            QueryParametersMiddleware(["date"]).before(ctx)
        assert exc_info.value.details[0]["path"] == ["query", "date"]
