"""Dependency-injection middleware: attaches the shared container."""

from __future__ import annotations

from fnpipe.core.container import Container, get_container
from fnpipe.framework.context import Context


class DependencyInjectionMiddleware:
    """Attach the process-wide :class:`Container` to ``context.container``.

    Register before any middleware or handler that resolves services.
    """

    def __init__(self, container: Container | None = None) -> None:
        self._container = container

    def before(self, context: Context) -> None:
        context.container = self._container or get_container()
