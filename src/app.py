"""Procurement FastAPI application.

Processes commands synchronously over HTTP inside the procurement domain
context and maps domain errors to HTTP status codes.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from procurement.domain import procurement
from procurement.utils.logging import add_context, clear_context

# Initialized at module level so uvicorn workers share the domain.
# PROTEAN_ENV selects the domain.toml overlay.
procurement.init()

_UNSCOPED_PATHS = ("/health", "/docs", "/openapi.json", "/redoc")

app = FastAPI(
    title="Procurement API",
    description="Pharmacy group procurement: demand, RFQs, awards, orders, escrow and logistics",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the procurement domain context and a request id for each request."""
    if request.url.path.startswith(_UNSCOPED_PATHS):
        return await call_next(request)

    add_context(request_id=request.headers.get("x-request-id", str(uuid4())))
    try:
        with procurement.domain_context():
            return await call_next(request)
    finally:
        clear_context()


# ---------------------------------------------------------------------------
# Routers and error mapping
# ---------------------------------------------------------------------------
from procurement.api import register_error_handlers, routers  # noqa: E402

for router in routers:
    app.include_router(router)

register_error_handlers(app)


@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": procurement.name})
