"""
Schema validation middleware.

Validates the request against a pydantic schema (a ``BaseModel`` subclass
or any type a ``TypeAdapter`` accepts):

- ``GET`` requests validate ``request.query``; the conformant mapping
  (coerced values, defaults applied) is written back to ``request.query``
- other methods validate ``request.parsed_body`` (or the raw body when the
  transport already delivered structured data) into
  ``request.validated_body``

On failure nothing is mutated and a :class:`ValidationError` carrying one
issue per field is raised::

    {"path": ["password"], "code": "invalid_type", "message": "Field required"}

Issue codes are normalized to a small stable vocabulary so that callers
do not depend on pydantic's internal error type names.
"""

from __future__ import annotations

from typing import Any

import pydantic
from pydantic import BaseModel, TypeAdapter

from fnpipe.core.errors import ValidationError
from fnpipe.framework.context import Context

_CODE_MAP: dict[str, str] = {
    "missing": "invalid_type",
    "none_required": "invalid_type",
    "string_pattern_mismatch": "invalid_string",
    "string_too_short": "too_small",
    "too_short": "too_small",
    "greater_than": "too_small",
    "greater_than_equal": "too_small",
    "string_too_long": "too_big",
    "too_long": "too_big",
    "less_than": "too_big",
    "less_than_equal": "too_big",
    "literal_error": "invalid_enum_value",
    "enum": "invalid_enum_value",
    "extra_forbidden": "unrecognized_keys",
}

_STRING_FORMAT_PREFIXES = ("datetime_", "date_", "time_", "url_", "uuid_", "timezone_")


def normalize_issue_code(error_type: str) -> str:
    """Map a pydantic error type onto the issue-code vocabulary."""
    if error_type in _CODE_MAP:
        return _CODE_MAP[error_type]
    if error_type.endswith("_type"):
        return "invalid_type"
    if error_type.startswith(_STRING_FORMAT_PREFIXES):
        return "invalid_string"
    if error_type.endswith("_parsing"):
        return "invalid_type"
    return "custom"


def issues_from_pydantic(exc: pydantic.ValidationError) -> list[dict[str, Any]]:
    """Flatten a pydantic error into ``{path, code, message}`` issues."""
    return [
        {
            "path": list(err["loc"]),
            "code": normalize_issue_code(err["type"]),
            "message": err["msg"],
        }
        for err in exc.errors(include_url=False)
    ]


class BodyValidationMiddleware:
    """Validate the body (or query for GET) against *schema*."""

    def __init__(self, schema: Any) -> None:
        self._schema = schema
        self._adapter: TypeAdapter[Any] = TypeAdapter(schema)

    @property
    def schema(self) -> Any:
        return self._schema

    def _validate(self, data: Any) -> Any:
        try:
            return self._adapter.validate_python(data)
        except pydantic.ValidationError as exc:
            raise ValidationError("Validation error", issues=issues_from_pydantic(exc), cause=exc) from exc

    def before(self, context: Context) -> None:
        request = context.request

        if request.method == "GET":
            value = self._validate(request.query)
            if isinstance(value, BaseModel):
                value = value.model_dump()
            request.query = dict(value) if isinstance(value, dict) else value
            return

        data = request.parsed_body
        if data is None and isinstance(request.body, (dict, list)):
            data = request.body
        request.validated_body = self._validate(data)


SchemaValidator = BodyValidationMiddleware
