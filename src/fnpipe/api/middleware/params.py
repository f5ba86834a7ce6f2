"""Presence validators for headers, path parameters and query parameters."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any
from urllib.parse import parse_qsl, urlsplit

from fnpipe.core.errors import ValidationError
from fnpipe.framework.context import Context


def _missing(names: tuple[str, ...], present: Mapping[str, Any]) -> list[str]:
    return [name for name in names if present.get(name) in (None, "")]


def _raise_missing(kind: str, location: str, missing: list[str]) -> None:
    noun = kind if len(missing) == 1 else f"{kind}s"
    raise ValidationError(
        f"Missing required {noun}: {', '.join(missing)}",
        issues=[
            {"path": [location, name], "code": "invalid_type", "message": "Required"}
            for name in missing
        ],
    )


class HeaderVariablesMiddleware:
    """Require every header in *names* (case-insensitive)."""

    def __init__(self, names: Iterable[str]) -> None:
        self._names = tuple(names)

    def before(self, context: Context) -> None:
        headers = context.request.headers
        missing = [name for name in self._names if not headers.get(name)]
        if missing:
            _raise_missing("header", "headers", missing)


class PathParametersMiddleware:
    """Require every path parameter in *names*."""

    def __init__(self, names: Iterable[str] = ()) -> None:
        self._names = tuple(names)

    def before(self, context: Context) -> None:
        missing = _missing(self._names, context.request.path_params)
        if missing:
            _raise_missing("path parameter", "path", missing)


class QueryParametersMiddleware:
    """Require every query parameter in *names*.

    When the transport delivered only a URL, the query mapping is filled
    from it first (last value wins for repeated keys).
    """

    def __init__(self, names: Iterable[str] = ()) -> None:
        self._names = tuple(names)

    def before(self, context: Context) -> None:
        request = context.request
        if not request.query and request.url:
            request.query = dict(parse_qsl(urlsplit(request.url).query))

        missing = _missing(self._names, request.query)
        if missing:
            _raise_missing("query parameter", "query", missing)
