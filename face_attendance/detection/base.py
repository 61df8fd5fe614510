"""Face detector port."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Tuple

import numpy as np


@dataclass(frozen=True)
class DetectedFace:
    """Face bounding box in pixel coordinates."""

    x: int
    y: int
    width: int
    height: int

    @property
    def bbox(self) -> Tuple[int, int, int, int]:
        """Return bounding box as (x, y, w, h)."""
        return (self.x, self.y, self.width, self.height)

    @property
    def area(self) -> int:
        return self.width * self.height


class BaseFaceDetector(ABC):
    """Abstract base class for face detectors.

    The recognition service only asks whether a face is present; bounding
    boxes are exposed for callers that want to draw or crop.
    """

    def load(self) -> None:
        """Open the detector handle.

        Raises:
            ModelLoadError: If the detector cannot be loaded
        """

    @abstractmethod
    def detect(self, image: np.ndarray) -> List[DetectedFace]:
        """Detect faces in an RGB image, largest first."""
        pass

    def has_face(self, image: np.ndarray) -> bool:
        """Return True if at least one face is present."""
        return len(self.detect(image)) > 0

    def close(self) -> None:
        """Release the detector handle."""
