"""Blindbox order service FastAPI application.

Serves order placement, status updates and order queries over HTTP. Every
order request runs inside the Orders domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 2003 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from orders.domain import orders  # noqa: E402

orders.init()

_DOMAIN_PREFIXES = ("/orders",)


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Blindbox Order Service",
    description="Order placement, stock reservation and order tracking",
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
    """Push the Orders domain context for order requests."""
    if request.url.path.startswith(_DOMAIN_PREFIXES):
        with orders.domain_context():
            response = await call_next(request)
        return response
    # Health check, docs, etc.
    return await call_next(request)


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from orders.api import install_error_handlers, order_router  # noqa: E402

app.include_router(order_router)
install_error_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domains": {"orders": {"name": orders.name}}})
