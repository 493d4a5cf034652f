from fastapi import APIRouter, Depends, Header, Request

from neujobscan.core.rate_limit import rate_limit
from neujobscan.core.security import bearer_token, get_session_store, require_session
from neujobscan.core.session_store import SessionStore
from neujobscan.schemas.api import ApiResponse, DestroyResult
from neujobscan.schemas.auth import Session, SessionCreateRequest

router = APIRouter()


@router.post("/auth/session", response_model=ApiResponse[Session])
@rate_limit()
async def create_session(
    request: Request,
    payload: SessionCreateRequest,
    store: SessionStore = Depends(get_session_store),
):
    _ = request
    session = store.create(payload.email, payload.name)
    return ApiResponse[Session](data=session, message="Signed in")


@router.get("/auth/session", response_model=ApiResponse[Session])
async def current_session(session: Session = Depends(require_session)):
    return ApiResponse[Session](data=session)


@router.delete("/auth/session", response_model=ApiResponse[DestroyResult])
async def destroy_session(
    authorization: str | None = Header(default=None),
    store: SessionStore = Depends(get_session_store),
):
    destroyed = store.destroy(bearer_token(authorization))
    return ApiResponse[DestroyResult](data=DestroyResult(destroyed=destroyed), message="Signed out")
