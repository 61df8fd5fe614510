"""Haar Cascade face detector."""

import logging
from typing import List, Optional

import cv2
import numpy as np

from ..constants import DetectionConfig, get_detection_config
from ..errors import ModelLoadError
from .base import BaseFaceDetector, DetectedFace

logger = logging.getLogger(__name__)


class HaarCascadeDetector(BaseFaceDetector):
    """Face detector using OpenCV Haar Cascades."""

    def __init__(
        self,
        config: Optional[DetectionConfig] = None,
        cascade_path: Optional[str] = None,
    ):
        """Initialize Haar Cascade detector.

        Args:
            config: Detection constants (uses config default if None)
            cascade_path: Cascade XML file (uses OpenCV's frontal face model if None)
        """
        self.config = config or get_detection_config()
        self.cascade_path = cascade_path or (
            cv2.data.haarcascades + "haarcascade_frontalface_default.xml"  # type: ignore
        )
        self.cascade = None

    def load(self) -> None:
        if self.cascade is not None:
            return

        cascade = cv2.CascadeClassifier(self.cascade_path)
        if cascade.empty():
            raise ModelLoadError(f"Failed to load cascade from {self.cascade_path}")

        self.cascade = cascade
        logger.info(f"Loaded Haar cascade from {self.cascade_path}")

    def detect(self, image: np.ndarray) -> List[DetectedFace]:
        """Detect faces using Haar Cascade."""
        if self.cascade is None:
            self.load()

        if len(image.shape) == 3:
            gray = cv2.cvtColor(image, cv2.COLOR_RGB2GRAY)
        else:
            gray = image

        # Faces smaller than a fraction of the shorter side are ignored
        min_side = int(min(gray.shape[:2]) * self.config.min_face_ratio)
        min_size = (max(min_side, 1), max(min_side, 1))

        faces = self.cascade.detectMultiScale(
            gray,
            scaleFactor=self.config.scale_factor,
            minNeighbors=self.config.min_neighbors,
            minSize=min_size,
        )

        detected = [
            DetectedFace(x=int(x), y=int(y), width=int(w), height=int(h))
            for (x, y, w, h) in faces
        ]
        return sorted(detected, key=lambda face: face.area, reverse=True)

    def close(self) -> None:
        self.cascade = None
