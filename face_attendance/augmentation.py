"""Synthetic image augmentation.

Two augmentation sets are produced from a single capture:

- Randomized variants used to stabilize an embedding. Each call draws a fresh
  brightness offset, flip decision and rotation angle from the injected
  random generator, then adds Gaussian noise as the final step.
- A fixed set of seven registration variants (two brightness levels, two
  contrast levels, a horizontal flip and two rotations) used to enrich the
  enrollment data.
"""

import logging
from typing import List, Optional

import cv2
import numpy as np

from .constants import AugmentationConfig, get_augmentation_config

logger = logging.getLogger(__name__)

PIXEL_MAX = 255.0


def _to_uint8(pixels: np.ndarray) -> np.ndarray:
    return np.clip(np.rint(pixels), 0, PIXEL_MAX).astype(np.uint8)


def adjust_brightness(image: np.ndarray, delta: float) -> np.ndarray:
    """Shift every sample by ``delta`` of the full 8-bit range."""
    return _to_uint8(image.astype(np.float32) + delta * PIXEL_MAX)


def adjust_contrast(image: np.ndarray, factor: float) -> np.ndarray:
    """Scale samples around mid-gray by ``factor``."""
    mid = PIXEL_MAX / 2.0
    return _to_uint8((image.astype(np.float32) - mid) * factor + mid)


def flip_horizontal(image: np.ndarray) -> np.ndarray:
    """Mirror the image left to right."""
    return cv2.flip(image, 1)


def rotate(image: np.ndarray, angle: float) -> np.ndarray:
    """Rotate about the image center, keeping the original size.

    Positive angles rotate clockwise. Uncovered corners are filled with black.
    """
    height, width = image.shape[:2]
    if width == 0 or height == 0:
        return image.copy()

    # OpenCV treats positive angles as counter-clockwise
    matrix = cv2.getRotationMatrix2D((width / 2.0, height / 2.0), -angle, 1.0)
    return cv2.warpAffine(
        image,
        matrix,
        (width, height),
        flags=cv2.INTER_LINEAR,
        borderMode=cv2.BORDER_CONSTANT,
        borderValue=0,
    )


def add_noise(image: np.ndarray, sigma: float, rng: np.random.Generator) -> np.ndarray:
    """Add zero-mean Gaussian noise with standard deviation ``sigma`` (sample units)."""
    noise = rng.normal(0.0, sigma, size=image.shape)
    return _to_uint8(image.astype(np.float32) + noise)


class Augmenter:
    """Generates augmented image variants from an explicit random source."""

    def __init__(
        self,
        rng: Optional[np.random.Generator] = None,
        seed: Optional[int] = None,
        config: Optional[AugmentationConfig] = None,
    ):
        """Initialize the augmenter.

        Args:
            rng: Random generator to draw from. Created from ``seed`` if None.
            seed: Seed for a new generator (ignored when ``rng`` is given)
            config: Augmentation constants (uses config default if None)
        """
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.config = config or get_augmentation_config()

    def augment(self, image: np.ndarray) -> np.ndarray:
        """Produce one randomized variant of ``image``.

        Order is fixed: brightness, conditional flip, rotation, noise.
        """
        cfg = self.config

        delta = self.rng.uniform(-cfg.brightness_range, cfg.brightness_range)
        flip = self.rng.random() < cfg.flip_probability
        angle = self.rng.uniform(-cfg.max_rotation, cfg.max_rotation)

        augmented = adjust_brightness(image, delta)
        if flip:
            augmented = flip_horizontal(augmented)
        augmented = rotate(augmented, angle)
        augmented = add_noise(augmented, cfg.noise_sigma, self.rng)

        logger.debug(f"Augmented image: brightness={delta:+.3f} flip={flip} angle={angle:+.2f}")
        return augmented

    def augment_many(self, image: np.ndarray, count: int) -> List[np.ndarray]:
        """Produce ``count`` independently randomized variants."""
        return [self.augment(image) for _ in range(count)]

    def registration_variants(self, image: np.ndarray) -> List[np.ndarray]:
        """Produce the fixed registration variants of ``image``.

        Returns:
            Seven images: brighter, darker, high contrast, low contrast,
            mirrored, rotated left, rotated right
        """
        return registration_variants(image, self.config)


def registration_variants(
    image: np.ndarray,
    config: Optional[AugmentationConfig] = None,
) -> List[np.ndarray]:
    """Deterministic registration variants (see ``Augmenter.registration_variants``)."""
    cfg = config or get_augmentation_config()
    high_contrast, low_contrast = cfg.registration_contrasts

    return [
        adjust_brightness(image, cfg.registration_brightness),
        adjust_brightness(image, -cfg.registration_brightness),
        adjust_contrast(image, high_contrast),
        adjust_contrast(image, low_contrast),
        flip_horizontal(image),
        rotate(image, -cfg.registration_rotation),
        rotate(image, cfg.registration_rotation),
    ]
