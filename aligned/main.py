"""Main FastAPI application for the Aligned planning backend."""
from fastapi import FastAPI

from aligned.api.routes.identity import router as identity_router
from aligned.api.routes.migrations import router as migrations_router
from aligned.api.routes.plan import router as plan_router
from aligned.core.config import settings
from aligned.core.logging import configure_logging
from aligned.core.middleware import RequestIDMiddleware
from aligned.observability.client import init_opik
from aligned.observability.tracing import trace

configure_logging(log_level=settings.log_level)

app = FastAPI(title=settings.app_name, version="0.1.0")
app.add_middleware(RequestIDMiddleware)
app.include_router(identity_router)
app.include_router(plan_router)
app.include_router(migrations_router)


@app.on_event("startup")
async def startup_observability() -> None:
    """Initialize observability backends after the event loop starts."""
    init_opik()


@app.get("/health", tags=["health"], summary="Readiness probe")
async def health_check() -> dict[str, str]:
    """Return a simple status payload so automation can probe the API."""
    with trace("http.health_check", metadata={"route": "/health"}):
        return {"status": "ok"}
