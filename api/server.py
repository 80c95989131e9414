"""
focusday API Server - REST API for the day view, planner and focus timer.
"""

import logging
import sqlite3
from datetime import datetime

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.response_models import DetailResponse, HealthResponse
from api.schedule_router import schedule_router
from focusday import config
from focusday import db as db_module
from focusday.observability import CorrelationIdMiddleware, configure_logging

logger = logging.getLogger(__name__)

app = FastAPI(
    title="focusday API",
    description="Time blocks, daily planning and focus sessions",
    version="0.3.0",
)

# CORS middleware - configurable via CORS_ORIGINS env var
cors_origins = (
    ["*"] if config.CORS_ORIGINS == "*" else [o.strip() for o in config.CORS_ORIGINS.split(",")]
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(CorrelationIdMiddleware)

app.include_router(schedule_router)


# ==== DB Startup & Migrations ====
@app.on_event("startup")
async def run_db_migrations_on_startup():
    """Converge the schema and log DB info at startup."""
    db_path = db_module.get_db_path()
    logger.info("=== focusday startup ===")
    logger.info("DB path: %s (exists: %s)", db_path, db_path.exists())
    try:
        result = db_module.ensure_migrations(str(db_path))
    except sqlite3.Error as e:
        logger.error("DB startup convergence failed: %s", e)
        return
    if result.get("tables_created"):
        logger.info("Startup created tables: %s", result["tables_created"])


@app.get("/api/health", response_model=HealthResponse)
def health() -> dict:
    with db_module.get_connection() as conn:
        version = db_module.get_schema_version(conn)
    return {
        "status": "healthy",
        "schema_version": version,
        "timestamp": datetime.now().isoformat(timespec="seconds"),
    }


@app.get("/api/debug/db", response_model=DetailResponse)
def debug_db() -> dict:
    return db_module.get_db_info()


# ==== Main ====


def main():
    """Run the server."""
    configure_logging(level=config.LOG_LEVEL, json_format=config.LOG_JSON, log_file=config.LOG_FILE)
    uvicorn.run(app, host=config.API_HOST, port=config.API_PORT)


if __name__ == "__main__":
    main()
