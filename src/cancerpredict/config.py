"""Environment-based configuration for the Cancer Prediction API."""

from __future__ import annotations

from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from CANCERPREDICT_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CANCERPREDICT_",
        case_sensitive=False,
        populate_by_name=True,
        protected_namespaces=(),
    )

    # Server
    host: str = "0.0.0.0"  # noqa: S104
    port: int = Field(default=3000, validation_alias=AliasChoices("CANCERPREDICT_PORT", "PORT"))
    log_level: str = "INFO"

    # Model
    model_path: str = "ml/model.onnx"
    model_repo_id: str | None = None

    # ML device
    device: Literal["cpu", "cuda", "openvino"] = "cpu"

    # ONNX Runtime threading
    intra_op_threads: int = Field(default=0, ge=0)
    inter_op_threads: int = Field(default=1, ge=1)
    gpu_mem_limit: int = Field(default=2_147_483_648, ge=0)

    # Concurrency
    max_concurrent: int = Field(default=2, ge=1)

    # Input limits
    max_file_size: int = Field(default=1_000_000, ge=1)
    max_image_pixels: int = Field(default=16_777_216, ge=1)
    allowed_content_types: list[str] = ["image/jpeg", "image/png"]

    # Classification
    input_size: int = Field(default=224, ge=1)
    threshold: float = Field(default=50.0, ge=0.0, le=100.0)

    # Persistence
    predictions_path: str = "predictions.json"


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()
