import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi import _rate_limit_exceeded_handler
import sentry_sdk

from neujobscan.api.v1.analytics import router as analytics_router
from neujobscan.api.v1.auth import router as auth_router
from neujobscan.api.v1.cover_letter import router as cover_letter_router
from neujobscan.api.v1.documents import router as documents_router
from neujobscan.api.v1.health import router as health_router
from neujobscan.api.v1.match import router as match_router
from neujobscan.api.v1.payments import router as payments_router
from neujobscan.api.v1.scan import router as scan_router
from neujobscan.core.cors import cors_allow_origin_regex, cors_allowed_origins
from neujobscan.core.errors import register_error_handlers
from neujobscan.core.rate_limit import limiter
from neujobscan.core.config import settings
from dotenv import load_dotenv
from neujobscan.core.lifespan import lifespan

load_dotenv()
logging.basicConfig(level=settings.log_level, format="%(message)s")
if settings.sentry_dsn:
    sentry_sdk.init(dsn=settings.sentry_dsn)

app = FastAPI(title="NeuJobScan API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_allowed_origins(),
    allow_origin_regex=cors_allow_origin_regex(),
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)
register_error_handlers(app)

app.include_router(health_router, prefix="/v1", tags=["Health"])
app.include_router(scan_router, prefix="/v1", tags=["Scan"])
app.include_router(match_router, prefix="/v1", tags=["Match"])
app.include_router(cover_letter_router, prefix="/v1", tags=["Cover Letter"])
app.include_router(documents_router, prefix="/v1", tags=["Documents"])
app.include_router(analytics_router, prefix="/v1", tags=["Analytics"])
app.include_router(payments_router, prefix="/v1", tags=["Payments"])
app.include_router(auth_router, prefix="/v1", tags=["Auth"])
