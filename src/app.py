"""Biteline FastAPI application.

Web server for the marketplace domain. Commands are processed synchronously
and every request runs inside the marketplace domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

import uuid

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from marketplace.api.errors import register_exception_handlers
from marketplace.api.routes import cart_router, food_router, order_router, shop_router
from marketplace.domain import marketplace
from marketplace.utils.logging import bind_request_context, clear_request_context, configure_logging

configure_logging()
logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# Initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay in domain.toml.
marketplace.init()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Biteline API",
    description="Food delivery marketplace: shops, menus, carts and orders",
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
    """Push the marketplace domain context and tag log lines with a request id."""
    clear_request_context()
    bind_request_context(
        request_id=request.headers.get("x-request-id", str(uuid.uuid4())),
        method=request.method,
        path=request.url.path,
    )
    with marketplace.domain_context():
        response = await call_next(request)
    logger.info("Handled request", status_code=response.status_code)
    return response


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
app.include_router(cart_router)
app.include_router(order_router)
app.include_router(shop_router)
app.include_router(food_router)

register_exception_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domains": {"marketplace": {"name": marketplace.name}},
        }
    )
