from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.config import settings
from app.observability.logging import configure_logging
from app.db.session import engine, create_tables, session_scope
from sqlalchemy import text
from app.errors import ProxyError
from app.deps import get_contract
from app.api.routes_health import router as health_router
from app.api.routes_contract import router as contract_router
from app.api.routes_codehashes import router as codehashes_router
from app.api.routes_agents import router as agents_router
from app.api.routes_governance import router as governance_router
from app.auth.routes import router as auth_router
from app.services.contract import ContractRoot

configure_logging()
logger = logging.getLogger("app")


def init_database(max_retries: int = 5, retry_delay: int = 2):
    """
    Initialize database with retry logic.
    Managed databases may take a moment to be ready.
    """
    for attempt in range(max_retries):
        try:
            # Test connection
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))

            create_tables()
            logger.info("Database initialized")
            return True

        except Exception as e:
            logger.warning(f"Database connection attempt {attempt + 1}/{max_retries} failed: {e}")
            if attempt < max_retries - 1:
                time.sleep(retry_delay)
            else:
                logger.error("Failed to connect to database after all retries")
                # Don't crash - allow app to start, health check will fail
                return False
    return False


contract = ContractRoot.from_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("Starting Governance Proxy API")
    logger.info(f"   Environment: {settings.environment}")
    logger.info(f"   Proxy account: {settings.proxy_account_id}")
    logger.info(f"   Voting contract: {settings.voting_contract_id} @ {settings.voting_base_url}")
    logger.info(f"   Attestation: {settings.attestation_mode}")

    # Same contract the routes get, including test overrides
    root = app.dependency_overrides.get(get_contract, get_contract)()

    if init_database() and settings.owner_id:
        with session_scope() as db:
            if root.bootstrap(db, settings.owner_id):
                logger.info(f"   Initialized with owner {settings.owner_id}")

    yield

    logger.info("Shutting down...")
    # Remote calls are never cancelled; let outstanding ones resolve
    await root.close()


app = FastAPI(
    title="Governance Proxy API",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(ProxyError)
async def proxy_error_handler(request: Request, exc: ProxyError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.get("/")
def root():
    return {
        "name": "Governance Proxy API",
        "status": "ok",
        "docs": "/docs",
        "health": "/health"
    }


# Routers
app.include_router(health_router)
app.include_router(auth_router)
app.include_router(contract_router)
app.include_router(codehashes_router)
app.include_router(agents_router)
app.include_router(governance_router)
