"""FastAPI application entry point.

Starts the Income-Tax Regime Engine API on port 5480.

Usage:
    uvicorn app.main:app --host 0.0.0.0 --port 5480 --reload
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.database import close_db, init_db
from app.routers import compliance, tax
from app.services.exceptions import TaxEngineError, UnknownRegimeError
from app.services.regime_registry import supported_assessment_years

# ── Logging ──────────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan (startup + shutdown) ────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Starting Income-Tax Regime Engine on port %s (assessment years: %s) …",
        settings.APP_PORT,
        ", ".join(supported_assessment_years()),
    )
    await init_db()
    yield
    await close_db()
    logger.info("Application shutdown complete.")


# ── Application factory ──────────────────────────────────────────────────

app = FastAPI(
    title="Income-Tax Regime Engine",
    description=(
        "Dual-regime Indian income-tax computation: slab-wise liability, "
        "old vs new regime comparison with break-even analysis, income "
        "scenarios, deduction headroom, and compliance deadline tracking "
        "with penalty projections."
    ),
    version="1.0.0",
    lifespan=lifespan,
)

# ── CORS ────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Request-level timing middleware ───────────────────────────────────────

@app.middleware("http")
async def timing_middleware(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - start) * 1000
    response.headers["X-Response-Time-Ms"] = f"{elapsed_ms:.2f}"
    logger.debug("%s %s took %.2f ms", request.method, request.url.path, elapsed_ms)
    return response


# ── Exception handlers ───────────────────────────────────────────────────

@app.exception_handler(TaxEngineError)
async def tax_engine_exception_handler(request: Request, exc: TaxEngineError):
    status_code = 404 if isinstance(exc, UnknownRegimeError) else 422
    logger.info("Rejected %s: %s", request.url.path, exc)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled exception on %s: %s", request.url.path, exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error. Please check the logs."},
    )


# ── Register routers ─────────────────────────────────────────────────────
app.include_router(tax.router)
app.include_router(compliance.router)


# ── Health check ──────────────────────────────────────────────────────────

@app.get("/health", tags=["Health"])
async def health_check():
    return {"status": "healthy", "port": settings.APP_PORT}


# ── Dev entry point ──────────────────────────────────────────────────────

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.APP_HOST,
        port=settings.APP_PORT,
        reload=True,
    )
