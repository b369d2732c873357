"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, File, Query, Request, UploadFile
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from nutrilens.app_logging import configure_logging
from nutrilens.containers import AppContainer
from nutrilens.domain.analysis import FoodAnalysis
from nutrilens.domain.errors import (
    AnalysisFailedError,
    NutriLensError,
    UnexpectedAnalysisError,
    UploadValidationError,
)


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(title="NutriLens", lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(NutriLensError)
    async def handle_nutrilens_error(
        request: Request, exc: NutriLensError
    ) -> JSONResponse:
        message = exc.message
        if isinstance(exc, AnalysisFailedError):
            message = f"Failed to analyze food: {message}"
        return JSONResponse(status_code=exc.status_code, content={"message": message})

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        image_errors = [
            error
            for error in exc.errors()
            if tuple(error.get("loc", ()))[:2] == ("body", "image")
        ]
        if image_errors:
            return await handle_nutrilens_error(
                request, UploadValidationError("No image file provided")
            )
        return await request_validation_exception_handler(request, exc)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/analyze")
    async def analyze_food(
        request: Request,
        image: UploadFile | None = File(default=None),
        owner_id: str | None = Query(default=None, alias="ownerId"),
    ) -> FoodAnalysis:
        """Analyze an uploaded meal photo and store the result."""
        state_container: AppContainer = request.app.state.container
        try:
            return await state_container.analysis_service.analyze_upload(
                image, owner_id=owner_id
            )
        except NutriLensError as exc:
            logger.warning("Food analysis rejected: %s", exc.message)
            raise
        except Exception as exc:
            logger.exception("Food analysis failed unexpectedly")
            raise UnexpectedAnalysisError("an unexpected error occurred") from exc

    @app.get("/analyses")
    async def list_analyses(
        request: Request,
        owner_id: str | None = Query(default=None, alias="ownerId"),
    ) -> list[FoodAnalysis]:
        """Return stored analyses, optionally for one owner."""
        state_container: AppContainer = request.app.state.container
        return state_container.analysis_service.list_analyses(owner_id)

    @app.get("/analyses/{analysis_id}")
    async def get_analysis(analysis_id: str, request: Request) -> FoodAnalysis:
        """Return a single stored analysis."""
        state_container: AppContainer = request.app.state.container
        return state_container.analysis_service.get_analysis(analysis_id)

    return app
