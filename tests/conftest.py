"""Pytest configuration and fixtures."""

import sys
from pathlib import Path
from typing import List, Optional

import numpy as np
import pytest

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from face_attendance.detection import BaseFaceDetector, DetectedFace
from face_attendance.embeddings import BaseEmbeddingBackend
from face_attendance.errors import ModelLoadError


class StubEmbeddingBackend(BaseEmbeddingBackend):
    """Deterministic model stand-in.

    Returns ``vector`` when given, otherwise a fixed random projection of a
    coarse sample of the input tensor.
    """

    def __init__(self, vector=None, dim: int = 128, fail_load: bool = False):
        self.vector = None if vector is None else np.asarray(vector, dtype=np.float32)
        self.dim = dim
        self.fail_load = fail_load
        self.load_calls = 0
        self.close_calls = 0
        self.invoke_calls = 0
        self._projection = np.random.default_rng(1234).standard_normal((8 * 8 * 3, dim))

    @property
    def name(self) -> str:
        return "stub"

    def load(self) -> None:
        self.load_calls += 1
        if self.fail_load:
            raise ModelLoadError("stub model missing")

    def invoke(self, tensor: np.ndarray) -> np.ndarray:
        self.invoke_calls += 1
        if self.vector is not None:
            return self.vector.copy()
        sample = tensor[0, ::14, ::14, :].reshape(-1)
        return (sample @ self._projection).astype(np.float32)

    def close(self) -> None:
        self.close_calls += 1


class StubDetector(BaseFaceDetector):
    """Detector stand-in that reports a fixed answer."""

    def __init__(self, found: bool = True):
        self.found = found
        self.load_calls = 0
        self.close_calls = 0

    def load(self) -> None:
        self.load_calls += 1

    def detect(self, image: np.ndarray) -> List[DetectedFace]:
        if not self.found:
            return []
        height, width = image.shape[:2]
        return [DetectedFace(x=width // 4, y=height // 4, width=width // 2, height=height // 2)]

    def close(self) -> None:
        self.close_calls += 1


def unit_vector(index: int, dim: int = 128) -> np.ndarray:
    """Standard basis vector ``e_index``."""
    v = np.zeros(dim, dtype=np.float32)
    v[index] = 1.0
    return v


def vector_with_similarity(similarity: float, dim: int = 128) -> np.ndarray:
    """Vector whose cosine similarity with ``e_0`` is ``similarity``."""
    v = np.zeros(dim, dtype=np.float64)
    v[0] = similarity
    v[1] = np.sqrt(1.0 - similarity ** 2)
    return v


@pytest.fixture
def face_image():
    """A 240x240 mid-brightness RGB image with texture."""
    rng = np.random.default_rng(0)
    base = np.linspace(70, 190, 240, dtype=np.float32)
    image = np.stack([np.tile(base, (240, 1))] * 3, axis=2)
    image += rng.normal(0, 10, image.shape)
    return np.clip(image, 0, 255).astype(np.uint8)


@pytest.fixture
def small_image():
    """An image below the minimum resolution."""
    return np.full((100, 100, 3), 128, dtype=np.uint8)


@pytest.fixture
def stub_backend():
    return StubEmbeddingBackend()


@pytest.fixture
def stub_detector():
    return StubDetector()


@pytest.fixture
def service(stub_backend, stub_detector):
    """A ready service wired to stub ports."""
    from face_attendance import FaceRecognitionService

    svc = FaceRecognitionService(
        embedding_backend=stub_backend,
        detector=stub_detector,
        seed=42,
    )
    svc.initialize()
    yield svc
    svc.teardown()


@pytest.fixture
def constant_service(stub_detector):
    """A ready service whose model always returns ``e_0``."""
    from face_attendance import FaceRecognitionService

    backend = StubEmbeddingBackend(vector=unit_vector(0))
    svc = FaceRecognitionService(embedding_backend=backend, detector=stub_detector, seed=7)
    svc.initialize()
    yield svc
    svc.teardown()
