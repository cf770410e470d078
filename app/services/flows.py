"""Run a multi-step flow and fold its outcome into a FlowResult.

Every flow that touches more than one record (signature submission,
project closure, reconciliation, completion) goes through ``run_flow`` so
callers always get ``{success, error}`` instead of an exception.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable

from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.errors import FlowError
from app.schemas.flow import FlowResult

logger = logging.getLogger(__name__)


async def run_flow(name: str, flow: Awaitable[dict[str, Any] | None]) -> FlowResult:
    try:
        data = await flow
    except FlowError as exc:
        logger.warning("%s failed: %s", name, exc.message)
        return FlowResult(success=False, error=exc.message, status_code=exc.status_code)
    except SQLAlchemyError:
        logger.exception("%s failed in the record store", name)
        return FlowResult(success=False, error="Error al acceder a la base de datos.", status_code=500)
    return FlowResult(success=True, data=data or {})


def flow_response(result: FlowResult) -> JSONResponse:
    return JSONResponse(status_code=result.status_code, content=result.model_dump())
