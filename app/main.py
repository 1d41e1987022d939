# app/main.py
import uvicorn
import os
import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from app.core.config import settings
from app.core.database import engine, Base
from app.core.errors import LedgerError
from app.core.locks import ledger_locks
from app.core.auth import (
    fastapi_users,
    auth_backend,
    UserRead,
    UserCreate,
)
from app.api.v1.api import api_router
from app.services.scheduler import scheduler

# Register every table on Base.metadata before create_all
from app.models import account, budget, category, goal, notification, transaction, user  # noqa: F401

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

# Create all tables on startup; Alembic owns schema changes in deployed databases
async def create_db_and_tables():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    openapi_tags=[
        {"name": "Authentication", "description": "Registration and JWT login"},
        {"name": "accounts", "description": "Accounts and the default account"},
        {"name": "budgets", "description": "Per-category spending limits"},
        {"name": "transactions", "description": "Income and expenses, pending and recurring"},
        {"name": "goals", "description": "Savings goals paid in installments"},
        {"name": "reports", "description": "Income and spending summaries"},
        {"name": "Notifications", "description": "Budget, goal and settlement alerts"},
    ],
)

# CORS Configuration
origins = [
    settings.FRONTEND_URL,
    "http://localhost:3000",  # Local development
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(LedgerError)
async def ledger_exception_handler(request: Request, exc: LedgerError):
    """Typed ledger rejections carry their own status code and machine-readable code"""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled exception on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )

# ------------------------------------------------------------
# AUTHENTICATION ROUTES
# ------------------------------------------------------------

# JWT Login
app.include_router(
    fastapi_users.get_auth_router(auth_backend),
    prefix="/api/v1/auth/jwt",
    tags=["Authentication"],
)

# Registration
app.include_router(
    fastapi_users.get_register_router(UserRead, UserCreate),
    prefix="/api/v1/auth",
    tags=["Authentication"],
)

# ------------------------------------------------------------
# ROOT ENDPOINT
# ------------------------------------------------------------
@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information"""
    return {
        "message": f"{settings.APP_NAME} is running!",
        "version": settings.VERSION
    }

@app.get("/health", tags=["Health"])
async def health_check():
    return {
        "status": "healthy",
        "scheduler_running": scheduler.running,
        "ledger_locks_held": len(ledger_locks.held_keys()),
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT
    }

# ------------------------------------------------------------
# BUSINESS LOGIC ROUTES
# ------------------------------------------------------------
app.include_router(api_router, prefix="/api/v1")

# ------------------------------------------------------------
# STARTUP / SHUTDOWN
# ------------------------------------------------------------
@app.on_event("startup")
async def on_startup():
    await create_db_and_tables()
    logger.info("Database tables created successfully")
    if settings.SCHEDULER_ENABLED:
        scheduler.start()
    else:
        logger.info("Settlement scheduler disabled on this instance")

@app.on_event("shutdown")
async def on_shutdown():
    await scheduler.stop()

if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8000))
    uvicorn.run("app.main:app", host="0.0.0.0", port=port, reload=False)
