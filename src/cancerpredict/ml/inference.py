"""Bounded worker pool for the decode + classify stage of a prediction.

    /predict (async) -> slot (asyncio.Semaphore) -> worker thread: preprocess -> classify

Both CPU-bound steps run in the same worker call so an upload crosses the
event-loop boundary once. Requests beyond ``max_concurrent`` wait for a slot
with no timeout, and nothing bounds how long the model call may take.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from cancerpredict.ml.preprocessing import preprocess

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from cancerpredict.config import Settings
    from cancerpredict.ml.classifier import ImageClassifier

logger = logging.getLogger(__name__)


class InferencePool:
    """Scores uploaded image bytes with the classifier on worker threads."""

    def __init__(self, settings: Settings) -> None:
        self._input_size = settings.input_size
        self._max_pixels = settings.max_image_pixels
        self._slots = asyncio.Semaphore(settings.max_concurrent)
        self._executor = ThreadPoolExecutor(
            max_workers=settings.max_concurrent,
            thread_name_prefix="cancerpredict-worker",
        )
        self._in_flight = 0
        self._waiting = 0
        self._stats_lock = threading.Lock()

    async def predict(self, classifier: ImageClassifier, image_bytes: bytes) -> list[float]:
        """Decode ``image_bytes`` and return the model's score vector.

        Raises:
            DecodeError: If the bytes are not a usable JPEG/PNG.
            InferenceError: If the model call fails.
        """
        async with self._slot():
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(self._executor, self._score, classifier, image_bytes)

    def _score(self, classifier: ImageClassifier, image_bytes: bytes) -> list[float]:
        tensor = preprocess(image_bytes, size=self._input_size, max_pixels=self._max_pixels)
        return classifier.classify(tensor)

    @asynccontextmanager
    async def _slot(self) -> AsyncIterator[None]:
        with self._stats_lock:
            self._waiting += 1
        try:
            await self._slots.acquire()
        finally:
            with self._stats_lock:
                self._waiting -= 1

        with self._stats_lock:
            self._in_flight += 1
        try:
            yield
        finally:
            self._slots.release()
            with self._stats_lock:
                self._in_flight -= 1

    @property
    def in_flight(self) -> int:
        """Predictions currently running on a worker."""
        with self._stats_lock:
            return self._in_flight

    @property
    def waiting(self) -> int:
        """Predictions waiting for a free worker."""
        with self._stats_lock:
            return self._waiting

    def shutdown(self) -> None:
        """Wait for running predictions and stop the workers."""
        logger.debug("Stopping prediction workers")
        self._executor.shutdown(wait=True)
