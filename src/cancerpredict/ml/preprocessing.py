"""Image preprocessing: decode uploaded bytes into a model input tensor.

The tensor layout is NHWC float32 with raw 0-255 pixel values. No mean/std
normalization is applied; the model was exported to expect unscaled pixels.
"""

from __future__ import annotations

import io
from typing import TYPE_CHECKING

import numpy as np
from PIL import Image, UnidentifiedImageError

from cancerpredict.errors import DecodeError

if TYPE_CHECKING:
    from numpy.typing import NDArray

# Pillow reports JPEGs carrying a multi-picture (MPF) block, as written by
# many phone cameras, as "MPO".
SUPPORTED_FORMATS: frozenset[str] = frozenset({"JPEG", "MPO", "PNG"})

DEFAULT_INPUT_SIZE: int = 224


def decode_image(image_bytes: bytes, max_pixels: int | None = None) -> Image.Image:
    """Decode raw bytes into an RGB Pillow image.

    Args:
        image_bytes: Raw file bytes (JPEG or PNG).
        max_pixels: Reject images with more pixels than this.

    Returns:
        Fully loaded RGB image.

    Raises:
        DecodeError: If the bytes are not a valid JPEG/PNG or exceed ``max_pixels``.
    """
    try:
        image = Image.open(io.BytesIO(image_bytes))
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as exc:
        raise DecodeError(f"Cannot identify image: {exc}") from exc

    if image.format not in SUPPORTED_FORMATS:
        raise DecodeError(f"Unsupported image format: {image.format}")

    width, height = image.size
    if max_pixels is not None and width * height > max_pixels:
        raise DecodeError(f"Image too large: {width}x{height} exceeds {max_pixels} pixels")

    try:
        image.load()
    except (OSError, SyntaxError, ValueError) as exc:
        raise DecodeError(f"Cannot decode image: {exc}") from exc

    return image.convert("RGB")


def to_tensor(image: Image.Image, size: int = DEFAULT_INPUT_SIZE) -> NDArray[np.float32]:
    """Resize with nearest-neighbour sampling and add a batch dimension."""
    resized = image.resize((size, size), resample=Image.Resampling.NEAREST)
    pixels = np.asarray(resized, dtype=np.float32)
    return np.expand_dims(pixels, axis=0)


def preprocess(
    image_bytes: bytes,
    size: int = DEFAULT_INPUT_SIZE,
    max_pixels: int | None = None,
) -> NDArray[np.float32]:
    """Decode image bytes into a ``(1, size, size, 3)`` float32 tensor."""
    return to_tensor(decode_image(image_bytes, max_pixels=max_pixels), size=size)
