"""Inference adapter around the pre-trained ONNX model.

The model is loaded once at startup. If the file is missing locally and a
Hugging Face repository is configured, it is downloaded into place first.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

import numpy as np
from huggingface_hub import hf_hub_download
from onnxruntime import GraphOptimizationLevel, InferenceSession, SessionOptions
from onnxruntime.capi.onnxruntime_pybind11_state import ExecutionMode

from cancerpredict.errors import InferenceError, ModelLoadError

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from cancerpredict.config import Settings

logger = logging.getLogger(__name__)

Provider = str | tuple[str, dict[str, object]]


# ---------------------------------------------------------------------------
# Interface seen by the request pipeline
# ---------------------------------------------------------------------------


class ImageClassifier(Protocol):
    """Anything that maps a preprocessed image tensor to a score vector."""

    @property
    def model_name(self) -> str:
        """Return the model identifier string."""
        ...

    def classify(self, tensor: NDArray[np.float32]) -> list[float]:
        """Run the model on a preprocessed tensor.

        Args:
            tensor: Batch of one image, shape (1, H, W, 3).

        Returns:
            Flattened score vector of the model's first output.
        """
        ...


# ---------------------------------------------------------------------------
# ONNX Runtime implementation
# ---------------------------------------------------------------------------


class OnnxImageClassifier:
    """Runs a single ONNX Runtime session over preprocessed image tensors."""

    def __init__(self, session: InferenceSession, model_name: str) -> None:
        self._session = session
        self._model_name = model_name
        self._input_name: str = session.get_inputs()[0].name

    @classmethod
    def load(cls, settings: Settings) -> OnnxImageClassifier:
        """Open the configured model file on the configured device.

        The CPU provider always ends the provider chain. OpenVINO optimizes
        the graph itself, so ONNX Runtime's own graph passes are disabled for it.

        Raises:
            ModelLoadError: If the model cannot be found, downloaded, or loaded.
        """
        model_path = ensure_model_file(settings)

        options = SessionOptions()
        options.intra_op_num_threads = settings.intra_op_threads
        options.inter_op_num_threads = settings.inter_op_threads
        options.execution_mode = ExecutionMode.ORT_SEQUENTIAL

        providers: list[Provider] = []
        if settings.device == "cuda":
            cuda_options: dict[str, object] = {
                "device_id": 0,
                "gpu_mem_limit": settings.gpu_mem_limit,
                "arena_extend_strategy": "kSameAsRequested",
            }
            providers.append(("CUDAExecutionProvider", cuda_options))
        elif settings.device == "openvino":
            providers.append(("OpenVINOExecutionProvider", {"device_type": "CPU"}))
            options.graph_optimization_level = GraphOptimizationLevel.ORT_DISABLE_ALL
        providers.append("CPUExecutionProvider")

        try:
            session = InferenceSession(str(model_path), sess_options=options, providers=providers)
        except Exception as exc:
            raise ModelLoadError(f"Failed to load model from {model_path}: {exc}") from exc

        logger.info("Loaded model %s on %s (providers=%s)", model_path, settings.device, session.get_providers())
        return cls(session, model_name=model_path.name)

    @property
    def model_name(self) -> str:
        return self._model_name

    def classify(self, tensor: NDArray[np.float32]) -> list[float]:
        """Run one inference pass. No retries.

        Raises:
            InferenceError: If the session fails or returns no output.
        """
        try:
            outputs = self._session.run(None, {self._input_name: tensor})
        except Exception as exc:
            raise InferenceError(f"Model inference failed: {exc}") from exc

        if not outputs:
            raise InferenceError("Model returned no outputs")
        scores = np.asarray(outputs[0], dtype=np.float32).ravel()
        return [float(score) for score in scores]


def ensure_model_file(settings: Settings) -> Path:
    """Return the local model path, downloading it if configured and missing."""
    model_path = Path(settings.model_path)
    if model_path.is_file():
        return model_path

    if settings.model_repo_id is None:
        raise ModelLoadError(f"Model file not found: {model_path}")

    try:
        downloaded = Path(
            hf_hub_download(
                repo_id=settings.model_repo_id,
                filename=model_path.name,
                local_dir=str(model_path.parent),
            )
        )
    except Exception as exc:
        raise ModelLoadError(f"Failed to download {model_path.name} from {settings.model_repo_id}: {exc}") from exc

    logger.info("Downloaded %s to %s", model_path.name, downloaded)
    return downloaded
