"""Face attendance recognition core.

Converts captured photos into stabilized face embeddings, gates images by
quality, matches embeddings against registered identities and aggregates
enrollment captures into one canonical embedding per person.

Quick Start:
    from face_attendance import FaceRecognitionService, InMemoryFaceStore

    store = InMemoryFaceStore()
    with FaceRecognitionService() as service:
        session = service.start_registration("E001", "Ada")
        for image in pose_images:
            session.capture(image)
        session.complete(store)

        outcome = service.recognize(photo, store)
"""

from .aggregation import aggregate_embeddings
from .augmentation import Augmenter, registration_variants
from .detection import BaseFaceDetector, DetectedFace, HaarCascadeDetector
from .embeddings import BaseEmbeddingBackend, TFLiteEmbeddingBackend
from .errors import (
    DecodeError,
    FaceAttendanceError,
    LengthMismatchWarning,
    ModelInvocationError,
    ModelLoadError,
    NotInitializedError,
    RegistrationError,
    ResizeError,
)
from .extractor import EmbeddingExtractor
from .preprocessing import load_image, preprocess
from .quality import QualityGate, average_brightness, check_quality
from .registration import POSE_STEPS, CaptureResult, CaptureStatus, RegistrationSession
from .service import FaceRecognitionService
from .similarity import cosine_similarity, find_best_match, rank_matches
from .storage import FaceStore, InMemoryFaceStore, SQLiteFaceStore
from .types import (
    EmbeddingResult,
    EmbeddingStatus,
    MatchResult,
    QualityIssue,
    QualityVerdict,
    RecognitionOutcome,
    RecognitionStatus,
    RegisteredIdentity,
    ServiceState,
)

__version__ = "0.1.0"

__all__ = [
    # Service
    "FaceRecognitionService", "ServiceState",
    # Pipeline
    "load_image", "preprocess", "Augmenter", "registration_variants",
    "EmbeddingExtractor", "QualityGate", "average_brightness", "check_quality",
    "cosine_similarity", "find_best_match", "rank_matches", "aggregate_embeddings",
    # Ports
    "BaseEmbeddingBackend", "TFLiteEmbeddingBackend",
    "BaseFaceDetector", "HaarCascadeDetector", "DetectedFace",
    "FaceStore", "InMemoryFaceStore", "SQLiteFaceStore",
    # Registration
    "RegistrationSession", "CaptureResult", "CaptureStatus", "POSE_STEPS",
    # Types
    "EmbeddingResult", "EmbeddingStatus", "MatchResult", "QualityIssue",
    "QualityVerdict", "RecognitionOutcome", "RecognitionStatus", "RegisteredIdentity",
    # Errors
    "FaceAttendanceError", "DecodeError", "ResizeError", "ModelInvocationError",
    "ModelLoadError", "NotInitializedError", "RegistrationError", "LengthMismatchWarning",
]
