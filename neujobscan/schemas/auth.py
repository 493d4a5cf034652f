from __future__ import annotations

from datetime import datetime

from pydantic import Field

from .base import CamelModel


class Session(CamelModel):
    token: str
    user_id: str
    email: str
    name: str | None = None
    created_at: datetime
    expires_at: datetime


class SessionCreateRequest(CamelModel):
    email: str = Field(min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    name: str | None = Field(default=None, max_length=200)
