"""FastAPI application entrypoint for nestdoc service mode."""

from __future__ import annotations

import asyncio
from typing import Any, Callable

import uvicorn
from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field

from ..logging import get_logger, uvicorn_log_level
from ..orchestrator import DocumentationService, GenerationResult

_LOGGER = get_logger("service")


class GenerateRequest(BaseModel):
    project_path: str = Field(alias="projectPath")


class HealthResponse(BaseModel):
    status: str


def _default_service() -> DocumentationService:
    return DocumentationService()


def create_app(
    service_factory: Callable[[], DocumentationService] = _default_service,
) -> FastAPI:
    """Create the FastAPI application exposing document generation."""

    app = FastAPI(title="nestdoc Service", version="1.0.0")

    async def get_service() -> DocumentationService:
        # One service per request so no project index outlives it.
        return service_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/documentation/generate")
    async def generate_documentation(
        payload: GenerateRequest,
        service: DocumentationService = Depends(get_service),
    ) -> Response:
        def _run_generate() -> GenerationResult:
            return service.generate(payload.project_path)

        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, _run_generate)
        return Response(
            content=result.content,
            media_type=service.writer.media_type,
            headers={"Content-Disposition": f"attachment; filename={result.filename}"},
        )

    @app.exception_handler(FileNotFoundError)
    async def file_not_found_handler(_: Any, exc: FileNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(Exception)
    async def generation_error_handler(_: Any, exc: Exception) -> JSONResponse:
        _LOGGER.error("Document generation failed: %s", exc)
        return JSONResponse(
            status_code=500,
            content={"message": "Failed to generate document", "error": str(exc)},
        )

    return app


def run_service(
    host: str = "0.0.0.0", port: int = 8000, *, verbose: bool = False
) -> None:  # pragma: no cover - integration path
    app = create_app()
    uvicorn.run(app, host=host, port=port, log_level=uvicorn_log_level(verbose))


__all__ = ["GenerateRequest", "create_app", "run_service"]
