from __future__ import annotations

import secrets
from typing import Protocol
from urllib.parse import urlencode

from neujobscan.core.config import settings
from neujobscan.core.errors import ValidationError
from neujobscan.schemas.payment import CheckoutSession


class CheckoutProvider(Protocol):
    def create_checkout_session(self, plan: str, email: str) -> CheckoutSession:
        """Start a hosted checkout for a plan and return where to send the buyer."""


class MockCheckoutProvider(CheckoutProvider):
    name = "mock"

    def __init__(
        self,
        base_url: str | None = None,
        plans: tuple[str, ...] | None = None,
        currency: str = "USD",
    ) -> None:
        self.base_url = base_url or settings.checkout_base_url
        self.plans = tuple(plan.lower() for plan in (plans or settings.checkout_plans))
        self.currency = currency

    def create_checkout_session(self, plan: str, email: str) -> CheckoutSession:
        plan_key = (plan or "").strip().lower()
        email = (email or "").strip()
        if not plan_key or not email:
            raise ValidationError("Missing plan or email.")
        if plan_key not in self.plans:
            raise ValidationError(f"Unknown plan '{plan}'. Allowed: {', '.join(self.plans)}.")

        query = urlencode({"plan": plan_key, "email": email, "currency": self.currency})
        return CheckoutSession(
            session_id=f"cs_{self.name}_{secrets.token_hex(8)}",
            url=f"{self.base_url}?{query}",
            provider=self.name,
            plan=plan_key,
            currency=self.currency,
        )
