"""FastAPI application entrypoint for cshape service mode."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..codec import entries_to_list
from ..extractors import ProviderContractError
from ..models import TypeEntry
from ..orchestrator import Orchestrator
from ..providers import ParseError, UnknownProviderError


class ExtractRequest(BaseModel):
    source: str
    filename: str = "input.h"
    provider: Optional[str] = None


class ExtractResponse(BaseModel):
    types: List[Dict[str, Any]]


class HealthResponse(BaseModel):
    status: str


def _default_orchestrator(provider_name: Optional[str]) -> Orchestrator:
    return Orchestrator.from_config_file(provider_name=provider_name)


def create_app(
    orchestrator_factory: Callable[[Optional[str]], Orchestrator] = _default_orchestrator,
) -> FastAPI:
    """Create the FastAPI application exposing type extraction."""

    app = FastAPI(title="cshape Service", version="1.0.0")

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/extract", response_model=ExtractResponse)
    async def extract(payload: ExtractRequest) -> ExtractResponse:
        def _run_extract() -> List[TypeEntry]:
            # Fresh orchestrator per request keeps provider state request-local.
            orchestrator = orchestrator_factory(payload.provider)
            return orchestrator.run_extract_source(payload.filename, payload.source)

        loop = asyncio.get_running_loop()
        entries = await loop.run_in_executor(None, _run_extract)
        return ExtractResponse(types=entries_to_list(entries))

    @app.exception_handler(ParseError)
    async def parse_error_handler(_: Any, exc: ParseError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(UnknownProviderError)
    async def unknown_provider_handler(_: Any, exc: UnknownProviderError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(ProviderContractError)
    async def contract_error_handler(_: Any, exc: ProviderContractError) -> JSONResponse:
        return JSONResponse(status_code=500, content={"detail": f"internal error: {exc}"})

    return app


def run_service(host: str = "127.0.0.1", port: int = 8000) -> None:  # pragma: no cover - integration path
    import uvicorn

    app = create_app()
    uvicorn.run(app, host=host, port=port)


def main() -> None:  # pragma: no cover - console script
    import argparse

    from ..logging import configure_logging

    parser = argparse.ArgumentParser(prog="cshape-service", description="Serve cshape over HTTP.")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("-v", "--verbose", action="store_true", default=False)
    args = parser.parse_args()
    configure_logging(verbose=args.verbose)
    run_service(args.host, args.port)
