"""
Trellis Storefront - Main FastAPI Application

Catalog, cart ledger, per-identity interaction sets, ratings, checkout and
AI helpers behind one JSON API.
"""
import json
import os
import time
import traceback
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request as StarletteRequest
from starlette.responses import Response as StarletteResponse

from trellis.config import get_config
from trellis.database import Base, SessionLocal, engine
from trellis.errors import StoreError
from trellis.logger import get_logger
from trellis.routes import ALL_ROUTERS

logger = get_logger("main")

SERVICE_NAME = "Trellis Storefront"
SERVICE_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables on startup. Schema migrations are not managed here."""
    try:
        Base.metadata.create_all(bind=engine)
    except Exception as e:
        logger.warning("main: method=lifespan create_all=failed error=%s", e)
    yield


app = FastAPI(
    title=SERVICE_NAME,
    description="E-commerce storefront API: catalog, cart, interactions, ratings and AI helpers",
    version=SERVICE_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_config().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Request logging middleware
# Logs every non-OPTIONS request with method, path, status and duration_ms.
# When latency_log_path is configured each entry is also appended there as a
# JSON line.
# ---------------------------------------------------------------------------

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: StarletteRequest, call_next) -> StarletteResponse:
        if request.method == "OPTIONS":
            return await call_next(request)
        t0 = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - t0) * 1000, 1)
        entry = {
            "ts": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "duration_ms": duration_ms,
        }
        logger.info("request: %s %s -> %d %.1fms", entry["method"], entry["path"], entry["status"], duration_ms)

        log_path = get_config().latency_log_path
        if log_path:
            try:
                with open(log_path, "a") as f:
                    f.write(json.dumps(entry) + "\n")
            except OSError as e:
                logger.warning("request: latency log write failed path=%s error=%s", log_path, e)
        return response


app.add_middleware(RequestLoggingMiddleware)

for router in ALL_ROUTERS:
    app.include_router(router)


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------

@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    if exc.status_code >= 500:
        logger.error("main: %s %s -> %d %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed input is a 400 naming each violated constraint."""
    issues = [
        {
            "loc": [str(part) for part in err.get("loc", ())],
            "msg": err.get("msg", ""),
            "type": err.get("type", ""),
        }
        for err in exc.errors()
    ]
    logger.info("main: %s %s -> 400 validation issues=%d", request.method, request.url.path, len(issues))
    return JSONResponse(status_code=400, content={"detail": "Invalid request", "issues": issues})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Log unhandled exceptions and return 500 so 'Internal server error' is debuggable."""
    err_msg = str(exc)
    logger.error("Unhandled exception: %s\n%s", err_msg, traceback.format_exc())
    is_dev = os.getenv("ENV", "development").lower() in ("development", "dev", "")
    detail = err_msg if is_dev else "Internal server error"
    return JSONResponse(
        status_code=500,
        content={"detail": detail, "type": type(exc).__name__},
    )


#
# Health Check Endpoints
#

@app.get("/")
def root():
    return {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "status": "operational",
    }


@app.get("/health")
def health_check():
    """
    Detailed health check including database connectivity.
    """
    health_status = {
        "service": "healthy",
        "database": "unknown",
    }
    try:
        db = SessionLocal()
        try:
            db.execute(text("SELECT 1"))
        finally:
            db.close()
        health_status["database"] = "healthy"
    except Exception as e:
        health_status["database"] = f"unhealthy: {str(e)}"
        health_status["service"] = "degraded"
    return health_status


if __name__ == "__main__":
    uvicorn.run(
        "trellis.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("ENV", "development").lower() in ("development", "dev"),
    )
