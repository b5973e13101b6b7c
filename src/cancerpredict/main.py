"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from cancerpredict.api.routes import router
from cancerpredict.config import get_settings
from cancerpredict.errors import ModelLoadError, ServiceError
from cancerpredict.ml.classifier import OnnxImageClassifier
from cancerpredict.ml.inference import InferencePool
from cancerpredict.ml.policy import ClassificationPolicy
from cancerpredict.storage import PredictionStore

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: load the model before serving, clean up on shutdown.

    A model that fails to load aborts startup; the server never binds its port.
    """
    settings = get_settings()
    app.state.settings = settings

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    logger.info(
        "Starting Cancer Prediction API (model=%s, device=%s, max_concurrent=%s)",
        settings.model_path,
        settings.device,
        settings.max_concurrent,
    )

    try:
        classifier = OnnxImageClassifier.load(settings)
    except ModelLoadError:
        logger.exception("Error loading model")
        raise

    app.state.classifier = classifier
    app.state.policy = ClassificationPolicy(threshold=settings.threshold)
    app.state.store = PredictionStore(settings.predictions_path)
    inference_pool = InferencePool(settings)
    app.state.inference_pool = inference_pool

    logger.info("Cancer Prediction API ready")
    yield

    logger.info("Shutting down Cancer Prediction API")
    inference_pool.shutdown()
    logger.info("Cancer Prediction API shutdown complete")


def _fail(status_code: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"status": "fail", "message": message}, headers=headers)


async def _service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    logger.warning("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.message)
    return _fail(exc.status_code, exc.message)


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _fail(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


async def _request_validation_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.warning("Rejected malformed request to %s: %s", request.url.path, exc)
    return _fail(status.HTTP_400_BAD_REQUEST, "Invalid request")


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return _fail(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    application = FastAPI(
        title="Cancer Prediction API",
        description="Classifies uploaded images as cancer or non-cancer",
        version="0.1.0",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.add_exception_handler(ServiceError, _service_error_handler)
    application.add_exception_handler(StarletteHTTPException, _http_error_handler)
    application.add_exception_handler(RequestValidationError, _request_validation_handler)
    application.add_exception_handler(Exception, _unhandled_error_handler)

    application.include_router(router)
    return application


app = create_app()


def run() -> None:
    """Serve the application with uvicorn on the configured host and port."""
    settings = get_settings()
    uvicorn.run(
        "cancerpredict.main:app",
        host=settings.host,
        port=settings.port,
        lifespan="on",
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
