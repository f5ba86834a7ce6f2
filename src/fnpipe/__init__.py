"""
fnpipe - composable request pipelines for serverless-style HTTP handlers.

A handler is an ordered chain of middleware (``before`` / ``after`` /
``on_error`` hooks) ending in a business function. Every request gets its
own :class:`~fnpipe.framework.Context`; pipelines are immutable and
shared.

Quick start::

    from fnpipe.framework import Context, Handler
    from fnpipe.api.middleware import ErrorHandlerMiddleware, ResponseWrapperMiddleware

    async def hello(context: Context) -> None:
        context.response.stage({"message": "hello"})

    pipeline = (
        Handler()
        .use(ErrorHandlerMiddleware())
        .use(ResponseWrapperMiddleware())
        .handle(hello)
    )
"""

__version__ = "0.1.0"
