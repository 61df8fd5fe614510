"""Image decoding and model-input preprocessing."""

import logging
from pathlib import Path
from typing import Optional, Tuple, Union

import cv2
import numpy as np

from .constants import get_recognition_config
from .errors import DecodeError, ResizeError

logger = logging.getLogger(__name__)

ImageSource = Union[np.ndarray, bytes, bytearray, memoryview, str, Path]


def load_image(source: ImageSource) -> np.ndarray:
    """Decode an image source into an RGB ``uint8`` array.

    Args:
        source: RGB/RGBA/grayscale array, encoded image bytes (JPEG, PNG...)
            or a path to an image file

    Returns:
        Image as ``H x W x 3`` RGB array

    Raises:
        DecodeError: If the source cannot be decoded
    """
    if isinstance(source, np.ndarray):
        return _from_array(source)

    if isinstance(source, (str, Path)):
        try:
            data = Path(source).read_bytes()
        except OSError as e:
            raise DecodeError(f"Could not read image file {source}: {e}") from e
        return _decode_bytes(bytes(data), origin=str(source))

    if isinstance(source, (bytes, bytearray, memoryview)):
        return _decode_bytes(bytes(source))

    raise DecodeError(f"Unsupported image source type: {type(source).__name__}")


def _from_array(image: np.ndarray) -> np.ndarray:
    if image.dtype != np.uint8:
        raise DecodeError(f"Expected 8-bit image samples, got dtype {image.dtype}")

    if image.ndim == 2:
        return np.repeat(image[:, :, np.newaxis], 3, axis=2)

    if image.ndim != 3 or image.shape[2] not in (3, 4):
        raise DecodeError(f"Unsupported image shape {image.shape}")

    if image.shape[2] == 4:
        return np.ascontiguousarray(image[:, :, :3])
    return image


def _decode_bytes(data: bytes, origin: str = "<bytes>") -> np.ndarray:
    if not data:
        raise DecodeError(f"Empty image data from {origin}")

    buffer = np.frombuffer(data, dtype=np.uint8)
    try:
        bgr = cv2.imdecode(buffer, cv2.IMREAD_COLOR)
    except cv2.error as e:
        raise DecodeError(f"Failed to decode image from {origin}: {e}") from e

    if bgr is None:
        raise DecodeError(f"Failed to decode image from {origin}")

    return cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB)


def image_size(image: np.ndarray) -> Tuple[int, int]:
    """Return ``(width, height)`` of an image array."""
    return int(image.shape[1]), int(image.shape[0])


def preprocess(
    image: ImageSource,
    target_size: Optional[int] = None,
) -> np.ndarray:
    """Prepare an image for the embedding model.

    Resizes to a square of ``target_size`` and rescales every sample ``v``
    to ``(v - 127.5) / 128.0``.

    Args:
        image: Image source (see ``load_image``)
        target_size: Model input size (uses config default if None)

    Returns:
        ``float32`` tensor of shape ``(1, target_size, target_size, 3)``

    Raises:
        DecodeError: If the source cannot be decoded
        ResizeError: If the image or target size is degenerate
    """
    config = get_recognition_config()
    if target_size is None:
        target_size = config.input_size

    pixels = load_image(image)

    width, height = image_size(pixels)
    if width == 0 or height == 0:
        raise ResizeError(f"Cannot resize degenerate image {width}x{height}")
    if target_size <= 0:
        raise ResizeError(f"Invalid target size {target_size}")

    resized = cv2.resize(pixels, (target_size, target_size), interpolation=cv2.INTER_LINEAR)

    tensor = resized.astype(np.float32)
    tensor = (tensor - config.pixel_mean) / config.pixel_scale
    return np.expand_dims(tensor, axis=0)
