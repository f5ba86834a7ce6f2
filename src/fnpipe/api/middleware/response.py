"""Response-shaping middleware: success envelope and date header."""

from __future__ import annotations

from fnpipe.core.timestamps import iso_timestamp
from fnpipe.framework.context import Context
from fnpipe.framework.envelope import write_success


class ResponseWrapperMiddleware:
    """Write ``locals["response_body"]`` inside the success envelope.

    Runs as an ``after`` hook, so it only fires when the handler
    succeeded. A handler that already wrote the response directly is
    left alone.
    """

    def after(self, context: Context) -> None:
        if context.response.sent:
            return
        write_success(context.response)


class DateHeaderMiddleware:
    """Stamp ``x-date`` with the current UTC time."""

    header = "x-date"

    def before(self, context: Context) -> None:
        context.response.set_header(self.header, iso_timestamp())
