"""Image quality gate applied before augmentation and embedding."""

import logging
from typing import Optional

import numpy as np

from .constants import QualityConfig, get_quality_config
from .errors import DecodeError
from .preprocessing import ImageSource, image_size, load_image
from .types import QualityIssue, QualityVerdict

logger = logging.getLogger(__name__)


def average_brightness(image: np.ndarray) -> float:
    """Average normalized brightness over every pixel.

    Each pixel contributes ``round((R + G + B) / 3)``; the mean is divided by 255.

    Args:
        image: RGB image

    Returns:
        Brightness in [0, 1]
    """
    if image.size == 0:
        return 0.0
    channel_sum = image[:, :, :3].astype(np.int32).sum(axis=2)
    # (R+G+B)/3 never ends in .5, so round-half-even matches round-half-up
    per_pixel = np.rint(channel_sum / 3.0)
    return float(per_pixel.mean() / 255.0)


class QualityGate:
    """Rejects images unsuitable for embedding."""

    def __init__(self, config: Optional[QualityConfig] = None):
        """Initialize the quality gate.

        Args:
            config: Quality constants (uses config default if None)
        """
        self.config = config or get_quality_config()

    def check(self, image: ImageSource) -> QualityVerdict:
        """Check resolution and exposure of an image.

        Args:
            image: Image source (array, bytes or path)

        Returns:
            QualityVerdict; decode failures are reported as a verdict,
            not raised
        """
        cfg = self.config

        try:
            pixels = load_image(image)
        except DecodeError as e:
            logger.warning(f"Quality check failed to decode image: {e}")
            return QualityVerdict.reject(QualityIssue.DECODE_FAILURE, str(e))

        width, height = image_size(pixels)
        if width < cfg.min_width or height < cfg.min_height:
            message = f"Image resolution too low: {width}x{height}"
            logger.warning(message)
            return QualityVerdict.reject(
                QualityIssue.RESOLUTION_TOO_LOW, message, width, height
            )

        brightness = average_brightness(pixels)
        if brightness < cfg.min_brightness or brightness > cfg.max_brightness:
            message = f"Image brightness out of acceptable range: {brightness:.3f}"
            logger.warning(message)
            return QualityVerdict.reject(
                QualityIssue.BRIGHTNESS_OUT_OF_RANGE, message, width, height, brightness
            )

        return QualityVerdict.ok(width, height, brightness)


def check_quality(image: ImageSource, config: Optional[QualityConfig] = None) -> QualityVerdict:
    """Run the quality gate on a single image."""
    return QualityGate(config).check(image)
