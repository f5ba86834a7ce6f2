"""fnpipe HTTP surface.

Architecture::

    app.py           Transport adapter (endpoint, context/response mapping) and app factory
    deps.py          Composition root: container and example pipelines
    middleware/      Standard middleware set
"""

from fnpipe.api.app import context_from_request, create_app, endpoint, to_response

__all__ = ["context_from_request", "create_app", "endpoint", "to_response"]
