"""
main.py

CleanConnect API entrypoint.

Run with `uvicorn main:app` from the backend directory. Wires logging, the
rate limiter, HTTP middlewares and the feature routers. The expiry job
(`expire_services.py`) runs separately from cron.
"""

from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.responses import Response

from cleanconnect.cleaning.routes import router as cleaning_router
from cleanconnect.core.config import settings
from cleanconnect.core.limiter import limiter
from cleanconnect.core.logging import init_logging
from cleanconnect.database.session import engine
from cleanconnect.message.routes import router as message_router
from cleanconnect.property.routes import router as property_router
from cleanconnect.review.routes import router as review_router
from cleanconnect.users.routes import router as users_router
from cleanconnect.utils.middleware import LoggingMiddleware

init_logging()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    await engine.dispose()


app = FastAPI(title=settings.APP_NAME, debug=settings.DEBUG, lifespan=lifespan)

# -----------------------------
# Rate limiting
# -----------------------------
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]
app.add_middleware(SlowAPIMiddleware)


# -----------------------------
# HTTP middlewares
# -----------------------------
@app.middleware("http")
async def security_headers(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    return response


app.add_middleware(LoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -----------------------------
# Routers
# -----------------------------
for router in (cleaning_router, property_router, review_router, message_router, users_router):
    app.include_router(router)


@app.get("/health", tags=["Health"])
async def health() -> dict[str, str]:
    return {"status": "ok"}
