"""Face detection backends.

Available backends:
- haar_cascade: OpenCV Haar Cascades (default)
"""

from .base import BaseFaceDetector, DetectedFace
from .haar import HaarCascadeDetector

DETECTION_BACKENDS = {
    "haar_cascade": HaarCascadeDetector,
}

__all__ = [
    "DetectedFace",
    "BaseFaceDetector",
    "HaarCascadeDetector",
    "DETECTION_BACKENDS",
]
