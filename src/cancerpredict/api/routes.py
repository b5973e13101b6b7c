"""API route definitions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, Request, UploadFile, status
from starlette.concurrency import run_in_threadpool

from cancerpredict.api.schemas import (
    ErrorResponse,
    HealthResponse,
    PredictionResponse,
    WelcomeResponse,
)
from cancerpredict.errors import (
    PayloadTooLargeError,
    PipelineError,
    PredictionError,
    ValidationError,
)
from cancerpredict.storage import PredictionRecord

if TYPE_CHECKING:
    from cancerpredict.config import Settings
    from cancerpredict.ml.classifier import ImageClassifier
    from cancerpredict.ml.inference import InferencePool
    from cancerpredict.ml.policy import ClassificationPolicy
    from cancerpredict.storage import PredictionStore

logger = logging.getLogger(__name__)

router = APIRouter()

WELCOME_MESSAGE = "Welcome to the Cancer Prediction API!"
SUCCESS_MESSAGE = "Model is predicted successfully"


def _get_settings(request: Request) -> Settings:
    settings: Settings = request.app.state.settings
    return settings


def _get_inference_pool(request: Request) -> InferencePool:
    pool: InferencePool = request.app.state.inference_pool
    return pool


def _get_classifier(request: Request) -> ImageClassifier:
    classifier: ImageClassifier = request.app.state.classifier
    return classifier


def _get_policy(request: Request) -> ClassificationPolicy:
    policy: ClassificationPolicy = request.app.state.policy
    return policy


def _get_store(request: Request) -> PredictionStore:
    store: PredictionStore = request.app.state.store
    return store


@router.get(
    "/",
    response_model=WelcomeResponse,
    summary="Welcome message",
)
async def root() -> WelcomeResponse:
    return WelcomeResponse(message=WELCOME_MESSAGE)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
)
async def health(request: Request) -> HealthResponse:
    """Return service health status."""
    settings = _get_settings(request)
    pool = _get_inference_pool(request)
    return HealthResponse(
        status="ok",
        model=_get_classifier(request).model_name,
        device=settings.device,
        concurrent_requests=pool.in_flight,
        queue_depth=pool.waiting,
    )


@router.post(
    "/predict",
    response_model=PredictionResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_413_REQUEST_ENTITY_TOO_LARGE: {"model": ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
    },
    summary="Classify an uploaded image",
)
async def predict(request: Request, image: UploadFile | str | None = None) -> PredictionResponse:
    """Validate the upload, run the model, and store the prediction.

    A record is appended to the prediction log only when every stage
    succeeds. Stage failures are logged in full and reported to the client
    with a generic message.
    """
    settings = _get_settings(request)

    # A plain-text "image" form field is not an upload.
    if image is None or isinstance(image, str):
        raise ValidationError("No file uploaded")
    if image.content_type not in settings.allowed_content_types:
        raise ValidationError("Invalid file type. Only JPEG and PNG are allowed.")

    if image.size is not None and image.size > settings.max_file_size:
        raise PayloadTooLargeError(settings.max_file_size)
    image_bytes = await image.read()
    if len(image_bytes) > settings.max_file_size:
        raise PayloadTooLargeError(settings.max_file_size)

    try:
        record = await _run_pipeline(request, image_bytes)
    except PipelineError as exc:
        logger.exception("Prediction error for %s: %s", image.filename, exc)
        raise PredictionError from exc

    return PredictionResponse(message=SUCCESS_MESSAGE, data=record)


async def _run_pipeline(request: Request, image_bytes: bytes) -> PredictionRecord:
    scores = await _get_inference_pool(request).predict(_get_classifier(request), image_bytes)
    decision = _get_policy(request).decide(scores)
    logger.debug("Decision %s (confidence=%.2f)", decision.label, decision.confidence)

    record = PredictionRecord(result=decision.label, suggestion=decision.suggestion)
    await run_in_threadpool(_get_store(request).append, record)
    return record
