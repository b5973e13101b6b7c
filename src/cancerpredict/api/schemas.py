"""Pydantic response schemas for the Cancer Prediction API."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from cancerpredict.storage import PredictionRecord


class WelcomeResponse(BaseModel):
    """Response for the root endpoint."""

    message: str


class PredictionResponse(BaseModel):
    """Envelope for a successful prediction."""

    status: Literal["success"] = "success"
    message: str
    data: PredictionRecord


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    model: str
    device: str = Field(description="ONNX Runtime device: 'cpu', 'cuda', or 'openvino'")
    concurrent_requests: int
    queue_depth: int


class ErrorResponse(BaseModel):
    """Standard error response."""

    status: Literal["fail"] = "fail"
    message: str
