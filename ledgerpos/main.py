from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
import logging

# Import database components
from ledgerpos.database.database import sync_engine, Base

# Import middleware
from ledgerpos.common.middleware import TenantMiddleware, SecurityHeadersMiddleware

# Import routers
from ledgerpos.modules.sales.router import sales_router
from ledgerpos.modules.payments.router import payments_router
from ledgerpos.modules.cash_register.router import cash_register_router
from ledgerpos.modules.accounts.router import customer_accounts_router, supplier_accounts_router
from ledgerpos.modules.settlement.router import settlement_router
from ledgerpos.modules.financial_stats.router import financial_stats_router

# Import models for table creation
import ledgerpos.modules.customers.models
import ledgerpos.modules.suppliers.models
import ledgerpos.modules.products.models
import ledgerpos.modules.sales.models
import ledgerpos.modules.purchases.models
import ledgerpos.modules.repairs.models
import ledgerpos.modules.cash_register.models
import ledgerpos.modules.notifications.models

from ledgerpos.core.config import settings

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.ENVIRONMENT == "production" else logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# FastAPI app
app = FastAPI(
    title="LedgerPOS API",
    description="Multi-tenant accounts settlement and cash register API built with FastAPI and PostgreSQL",
    version="1.0.0",
    docs_url="/docs" if settings.ENVIRONMENT != "production" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT != "production" else None
)

# Add middleware (order matters!)
app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(TenantMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(sales_router, prefix="/api/v1")
app.include_router(payments_router, prefix="/api/v1")
app.include_router(cash_register_router, prefix="/api/v1")
app.include_router(customer_accounts_router, prefix="/api/v1")
app.include_router(supplier_accounts_router, prefix="/api/v1")
app.include_router(settlement_router, prefix="/api/v1")
app.include_router(financial_stats_router, prefix="/api/v1")

# Create database tables (only for development - use migrations in production)
if settings.ENVIRONMENT == "development":
    Base.metadata.create_all(bind=sync_engine)


@app.get("/")
async def read_root():
    return {
        "message": "LedgerPOS API is running",
        "version": "1.0.0",
        "environment": settings.ENVIRONMENT
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy", "environment": settings.ENVIRONMENT}


@app.on_event("startup")
async def startup_event():
    logger.info("LedgerPOS API starting up...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug mode: {settings.DEBUG}")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("LedgerPOS API shutting down...")
