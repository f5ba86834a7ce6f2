"""
Member and guest chat endpoints.

Members authenticate with a Bearer token and get a per-user history;
guests pass the guest API-key gate and get stateless replies.
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from fnpipe.api.middleware import (
    ApiKeyMiddleware,
    BearerAuthMiddleware,
    BodyParserMiddleware,
    BodyValidationMiddleware,
    DependencyInjectionMiddleware,
    ErrorHandlerMiddleware,
    ResponseWrapperMiddleware,
)
from fnpipe.auth.principal import Principal
from fnpipe.auth.tokens import TokenVerifier
from fnpipe.core.container import Container
from fnpipe.core.settings import ApiKeyCategory, FnpipeSettings
from fnpipe.core.timestamps import utc_now
from fnpipe.framework.context import Context
from fnpipe.framework.handler import Handler, Pipeline

MOCK_REPLY = "This is a mock reply to your message."


class ChatRequest(BaseModel):
    """Incoming chat message; accepts ``contextId`` or ``context_id``."""

    model_config = ConfigDict(populate_by_name=True)

    context_id: str = Field(alias="contextId")
    message: str


class ChatLink(BaseModel):
    title: str
    url: str


class ChatReply(BaseModel):
    context_id: str
    date_time: datetime
    reply_message: str
    links: list[ChatLink] = Field(default_factory=list)
    warning: str | None = None


class MemberChatService:
    """Mock chat backend keeping an in-memory history per member email.

    Each member keeps at most *max_history* replies; beyond *max_members*
    the least recently active member's history is dropped.
    """

    def __init__(self, max_history: int = 100, max_members: int = 1000) -> None:
        if max_history <= 0 or max_members <= 0:
            raise ValueError("max_history and max_members must be positive")
        self._max_history = max_history
        self._max_members = max_members
        self._history: OrderedDict[str, list[ChatReply]] = OrderedDict()
        self._lock = threading.Lock()

    async def reply(self, user: Principal | None, request: ChatRequest) -> ChatReply:
        reply = ChatReply(
            context_id=request.context_id,
            date_time=utc_now(),
            reply_message=MOCK_REPLY,
            links=[ChatLink(title="Mock Link", url="https://example.com")],
        )
        if user is not None:
            with self._lock:
                history = self._history.setdefault(user.email, [])
                self._history.move_to_end(user.email)
                history.append(reply)
                del history[: -self._max_history]
                while len(self._history) > self._max_members:
                    self._history.popitem(last=False)
        return reply

    async def history(self, email: str) -> list[ChatReply]:
        with self._lock:
            return list(self._history.get(email, ()))


# ── Handlers ─────────────────────────────────────────────────────────────


async def member_history(context: Context) -> None:
    service = context.container.get(MemberChatService)
    context.response.stage(await service.history(context.user.email))


async def member_message(context: Context) -> None:
    service = context.container.get(MemberChatService)
    context.response.stage(await service.reply(context.user, context.request.validated_body))


async def guest_message(context: Context) -> None:
    service = context.container.get(MemberChatService)
    context.response.stage(await service.reply(None, context.request.validated_body))


def build_chat_pipelines(
    container: Container, settings: FnpipeSettings, verifier: TokenVerifier
) -> dict[str, Pipeline]:
    """Build the member history, member message and guest message pipelines."""
    base = (
        Handler()
        .use(DependencyInjectionMiddleware(container))
        .use(ErrorHandlerMiddleware())
        .use(ResponseWrapperMiddleware())
    )
    member = base.use(BearerAuthMiddleware(verifier))
    guest = base.use(ApiKeyMiddleware(settings, ApiKeyCategory.GUEST))
    message = (
        member.use(BodyParserMiddleware())
        .use(BodyValidationMiddleware(ChatRequest))
        .handle(member_message)
    )
    return {
        "member_history": member.handle(member_history),
        "member_message": message,
        "guest_message": (
            guest.use(BodyParserMiddleware())
            .use(BodyValidationMiddleware(ChatRequest))
            .handle(guest_message)
        ),
    }
