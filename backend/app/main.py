from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.middleware.exceptions import register_exception_handlers
from app.routers import accounts, carrier, health, shipper, vehicles

app = FastAPI(
    title="FreightBid",
    description="Freight marketplace: loads, bids, assignment and delivery",
    version="0.1.0",
)

# ── Exception Handlers ───────────────────────────────────────
register_exception_handlers(app)

# ── Middleware ───────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ──────────────────────────────────────────────────
app.include_router(health.router)
app.include_router(accounts.router, prefix="/api/accounts", tags=["accounts"])
app.include_router(carrier.router, prefix="/api/carrier", tags=["carrier"])
app.include_router(shipper.router, prefix="/api/shipper", tags=["shipper"])
app.include_router(vehicles.router, prefix="/api/vehicles", tags=["vehicles"])
