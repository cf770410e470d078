"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.api.router import api_router
from app.config import get_settings
from app.db.engine import create_tables, engine
from app.errors import FlowError

logger = logging.getLogger(__name__)

_settings = get_settings()


def setup_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or _settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    await create_tables()
    logger.info("Record store ready at %s", _settings.database_url)
    yield
    await engine.dispose()


app = FastAPI(
    title="ICSA Ordenes de Trabajo",
    description="Field work orders: clients, personnel, projects, remote signatures and closure reports.",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(FlowError)
async def handle_flow_error(request: Request, exc: FlowError):
    return JSONResponse(status_code=exc.status_code, content={"success": False, "error": exc.message})


app.include_router(api_router)


@app.get("/health")
async def health():
    return {"ok": True}
