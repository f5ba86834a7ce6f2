"""
Error-translation middleware: maps raised errors to error envelopes.

Register exactly one per pipeline. Recognized errors (``HttpError``
kinds with ``expose=True``) keep their status, message and details;
anything else becomes a generic 500 whose own message is only
logged.
"""

from __future__ import annotations

from typing import Any

from fnpipe.core.errors import HttpError, categorize_error, is_recognized
from fnpipe.core.logging import get_logger
from fnpipe.framework.context import Context
from fnpipe.framework.envelope import GENERIC_ERROR_MESSAGE, error_envelope

logger = get_logger(__name__)


def translate_error(error: BaseException) -> tuple[int, dict[str, Any]]:
    """Resolve the status code and envelope body for *error*."""
    if not isinstance(error, HttpError):
        return 500, error_envelope(GENERIC_ERROR_MESSAGE)
    if not is_recognized(error):
        return error.status_code, error_envelope(GENERIC_ERROR_MESSAGE)
    return error.status_code, error_envelope(error.message, error.details)


class ErrorHandlerMiddleware:
    """Write the error envelope matching the raised error.

    The executor has already logged the error with its traceback.
    """

    def on_error(self, error: BaseException, context: Context) -> None:
        status_code, body = translate_error(error)
        logger.debug(
            "error_translated",
            error_type=type(error).__name__,
            category=categorize_error(error).value,
            status_code=status_code,
        )
        context.response.send(status_code, body)
