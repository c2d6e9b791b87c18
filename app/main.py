from __future__ import annotations

import os
import logging
from typing import Optional

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from app.agents.snapshot_normalizer import snapshot_from_request
from app.config import Settings, load_settings
from app.orchestrator import generate_plan
from app.schemas import ErrorEnvelope

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("TRIP_PLANNER_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False

# The trip code is kept in the path for client compatibility; planning never reads it.
PLAN_ROUTE = "/api/trips/{trip_code}/plan"


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the API around a fixed, read-only :class:`Settings` instance."""
    settings = settings or load_settings()
    app = FastAPI(title="Trip Snapshot Planner API")
    app.state.settings = settings

    # Fixed CORS headers go on every response, pre-flight and errors included.
    @app.middleware("http")
    async def add_cors_headers(request: Request, call_next):
        response = await call_next(request)
        for name, value in settings.cors_headers().items():
            response.headers[name] = value
        return response

    @app.options(PLAN_ROUTE, include_in_schema=False)
    async def plan_preflight(trip_code: str) -> Response:
        return Response(status_code=200)

    @app.api_route(PLAN_ROUTE, methods=["GET", "POST"])
    async def plan(trip_code: str, request: Request) -> JSONResponse:
        """Build an itinerary from query parameters and/or a JSON body."""
        return await _plan_response(request)

    return app


async def _plan_response(request: Request) -> JSONResponse:
    settings: Settings = request.app.state.settings
    try:
        payload = await snapshot_from_request(request)
        envelope = await generate_plan(payload, settings)
    except Exception as exc:
        logger.exception("%s plan request failed", request.method)
        error = ErrorEnvelope(error=str(exc) or "Unexpected error")
        return JSONResponse(error.model_dump(), status_code=500)
    return JSONResponse(envelope.to_wire())


app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=os.getenv("TRIP_PLANNER_HOST", "0.0.0.0"),
        port=int(os.getenv("TRIP_PLANNER_PORT", "8000")),
    )


if __name__ == "__main__":
    run()
