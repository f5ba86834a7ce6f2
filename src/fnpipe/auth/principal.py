"""Authenticated principal attached to ``Context.user``."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict


class Principal(BaseModel):
    """Identity resolved from a verified token payload."""

    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    name: str = ""
    verified: bool = False
    role: str | None = None


def principal_from_payload(payload: Mapping[str, Any]) -> Principal:
    """Map verified token claims onto a :class:`Principal`.

    ``id`` falls back to the standard ``sub`` claim, then ``userId``, then
    ``email``. A payload naming none of them is rejected with ``ValueError``,
    as are claims of the wrong type (``pydantic.ValidationError``).
    """
    user_id = (
        payload.get("id") or payload.get("sub") or payload.get("userId") or payload.get("email")
    )
    if not user_id:
        raise ValueError("Token payload names no subject")
    return Principal.model_validate(
        {
            "id": str(user_id),
            "email": payload.get("email") or "",
            "name": payload.get("name") or "",
            "verified": bool(payload.get("verified", False)),
            "role": payload.get("role"),
        }
    )
