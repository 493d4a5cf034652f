from __future__ import annotations

from pydantic import Field

from .base import CamelModel


class CheckoutSession(CamelModel):
    session_id: str
    url: str
    provider: str
    plan: str
    currency: str = Field(default="USD", min_length=3, max_length=3)
