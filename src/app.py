"""IMS FastAPI application.

Web server that processes commands synchronously via HTTP. Every request runs
inside the IMS domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay from ims/domain.toml.
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from ims.domain import ims
from ims.utils.logging import bind_request_context, clear_request_context, get_logger

ims.init()

logger = get_logger(__name__)

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="IMS API",
    description="Inventory ledger, reservations, refunds, warehouses, catalogue and audit trail",
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
    """Push the IMS domain context and bind request details to the log context."""
    bind_request_context(method=request.method, path=request.url.path)
    try:
        with ims.domain_context():
            response = await call_next(request)
    finally:
        clear_request_context()
    return response


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from ims.api import (  # noqa: E402
    audit_router,
    inventory_router,
    maintenance_router,
    product_router,
    refund_router,
    reservation_router,
    variant_router,
    warehouse_router,
)

app.include_router(inventory_router)
app.include_router(refund_router)
app.include_router(reservation_router)
app.include_router(warehouse_router)
app.include_router(product_router)
app.include_router(variant_router)
app.include_router(audit_router)
app.include_router(maintenance_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": {"name": ims.name}})
