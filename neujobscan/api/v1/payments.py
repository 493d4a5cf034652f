import logging

from fastapi import APIRouter, Depends, Request

from neujobscan.core.rate_limit import rate_limit
from neujobscan.schemas.api import ApiResponse, CheckoutRequest, CheckoutResult
from neujobscan.services.payments import CheckoutProvider

from .dependencies import get_checkout_provider

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/payments/create-session", response_model=ApiResponse[CheckoutResult])
@rate_limit()
async def create_checkout_session(
    request: Request,
    payload: CheckoutRequest,
    provider: CheckoutProvider = Depends(get_checkout_provider),
):
    _ = request
    session = provider.create_checkout_session(payload.plan, payload.email)
    logger.info("checkout_session_created provider=%s plan=%s", session.provider, session.plan)
    return ApiResponse[CheckoutResult](
        data=CheckoutResult(checkout_url=session.url, session_id=session.session_id, provider=session.provider)
    )
