"""Face recognition service.

Owns the embedding model and face detector handles and exposes the
caller-facing operations of the pipeline:

- ``check_quality``: quality gate
- ``detect_and_embed``: face check and quality gate followed by a stabilized embedding
- ``best_match``: threshold-gated nearest neighbour over registered identities
- ``aggregate_registration``: canonical embedding from enrollment embeddings
- ``recognize`` / ``mark_attendance``: attendance check-in and check-out
- ``start_registration``: guided multi-pose enrollment

Every operation requires the service to be ready (``initialize`` called,
``teardown`` not yet called) and raises ``NotInitializedError`` otherwise.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Generator, Iterable, Optional, Sequence

import numpy as np

from .aggregation import aggregate_embeddings
from .augmentation import Augmenter
from .constants import QualityConfig, RecognitionConfig, get_recognition_config
from .detection import BaseFaceDetector, HaarCascadeDetector
from .embeddings import BaseEmbeddingBackend, TFLiteEmbeddingBackend
from .errors import DecodeError, ModelInvocationError, NotInitializedError, ResizeError
from .extractor import EmbeddingExtractor
from .preprocessing import ImageSource, load_image
from .quality import QualityGate
from .registration import RegistrationSession
from .similarity import Candidate, find_best_match
from .storage import FaceStore
from .types import (
    EmbeddingResult,
    EmbeddingStatus,
    MatchResult,
    QualityVerdict,
    RecognitionOutcome,
    RecognitionStatus,
    ServiceState,
)

logger = logging.getLogger(__name__)


class FaceRecognitionService:
    """Recognition pipeline with an explicit lifecycle."""

    def __init__(
        self,
        embedding_backend: Optional[BaseEmbeddingBackend] = None,
        detector: Optional[BaseFaceDetector] = None,
        augmenter: Optional[Augmenter] = None,
        seed: Optional[int] = None,
        config: Optional[RecognitionConfig] = None,
        quality_config: Optional[QualityConfig] = None,
    ):
        """Initialize the service (handles are opened by ``initialize``).

        Args:
            embedding_backend: Model port (defaults to MobileFaceNet TFLite)
            detector: Face detector port (defaults to Haar cascade)
            augmenter: Random augmentation source
            seed: Seed for the default augmenter
            config: Recognition constants (uses config default if None)
            quality_config: Quality gate constants (uses config default if None)
        """
        self.config = config or get_recognition_config()

        self._backend = embedding_backend or TFLiteEmbeddingBackend()
        self._detector = detector or HaarCascadeDetector()
        self._augmenter = augmenter or Augmenter(seed=seed)
        self._quality_gate = QualityGate(quality_config)
        self._extractor: Optional[EmbeddingExtractor] = None

        self._state = ServiceState.UNINITIALIZED
        self._lock = threading.Lock()
        self._active_operations = 0
        self._release_pending = False

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @property
    def state(self) -> ServiceState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state == ServiceState.READY

    @property
    def augmenter(self) -> Augmenter:
        return self._augmenter

    def initialize(self) -> None:
        """Load the model and detector.

        A load failure closes the service permanently and re-raises.

        Raises:
            ModelLoadError: If the model or detector cannot be loaded
            NotInitializedError: If the service was already closed
        """
        with self._lock:
            if self._state == ServiceState.READY:
                return
            if self._state == ServiceState.CLOSED:
                raise NotInitializedError("FaceRecognitionService has been closed")

            logger.info(f"Initializing FaceRecognitionService (backend={self._backend.name})")
            try:
                self._backend.load()
                self._detector.load()
            except Exception as e:
                logger.error(f"Error initializing FaceRecognitionService: {e}")
                self._release_handles()
                self._state = ServiceState.CLOSED
                raise

            self._extractor = EmbeddingExtractor(self._backend, self._augmenter, self.config)
            self._state = ServiceState.READY
            logger.info("FaceRecognitionService initialized successfully")

    def teardown(self) -> None:
        """Close the model and detector handles. Idempotent.

        Operations already in flight keep their handles until they return;
        the handles are closed when the last of them finishes.
        """
        with self._lock:
            if self._state == ServiceState.CLOSED:
                return
            was_ready = self._state == ServiceState.READY
            self._state = ServiceState.CLOSED

            if was_ready and self._active_operations > 0:
                self._release_pending = True
                logger.info(
                    f"FaceRecognitionService closing after {self._active_operations} "
                    f"operation(s) in flight"
                )
                return
            if was_ready:
                self._release_handles()
            self._extractor = None
            logger.info("FaceRecognitionService closed")

    def _release_handles(self) -> None:
        for handle in (self._backend, self._detector):
            try:
                handle.close()
            except Exception as e:
                logger.error(f"Error closing {type(handle).__name__}: {e}")

    def _require_ready(self) -> None:
        if self._state != ServiceState.READY:
            raise NotInitializedError(
                f"FaceRecognitionService is not ready (state={self._state.value})"
            )

    @contextmanager
    def _operation(self) -> Generator[EmbeddingExtractor, None, None]:
        """Hold the model and detector handles open for one call."""
        with self._lock:
            self._require_ready()
            self._active_operations += 1
            extractor = self._extractor

        try:
            yield extractor
        finally:
            with self._lock:
                self._active_operations -= 1
                if self._active_operations == 0 and self._release_pending:
                    self._release_pending = False
                    self._release_handles()
                    self._extractor = None
                    logger.info("FaceRecognitionService closed")

    def __enter__(self):
        self.initialize()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.teardown()
        return False

    # -------------------------------------------------------------------------
    # Pipeline Operations
    # -------------------------------------------------------------------------

    def check_quality(self, image: ImageSource) -> QualityVerdict:
        """Run the quality gate on an image."""
        self._require_ready()
        return self._quality_gate.check(image)

    def detect_face(self, image: ImageSource) -> bool:
        """Return True if the detector finds a face.

        Raises:
            DecodeError: If the image cannot be decoded
        """
        with self._operation():
            return self._detector.has_face(load_image(image))

    def embed(self, image: ImageSource, stabilized: bool = False) -> np.ndarray:
        """Embed an image without a face or quality check.

        Args:
            image: Image source
            stabilized: Average over augmented variants instead of one pass

        Raises:
            DecodeError, ResizeError, ModelInvocationError
        """
        with self._operation() as extractor:
            if stabilized:
                return extractor.embed_stabilized(image)
            return extractor.embed(image)

    def detect_and_embed(self, image: ImageSource) -> EmbeddingResult:
        """Check for a face and image quality, then compute the stabilized embedding.

        The model is not invoked unless a face is found and the quality gate
        passes.

        Returns:
            EmbeddingResult with status OK, NO_FACE, QUALITY_REJECTED carrying
            the verdict, or FAILED carrying the decode/resize/model error

        Raises:
            NotInitializedError: If the service is not ready, or is torn down
                before the model runs
        """
        with self._operation() as extractor:
            try:
                pixels = load_image(image)
                if not self._detector.has_face(pixels):
                    logger.info("No face detected")
                    return EmbeddingResult(EmbeddingStatus.NO_FACE)

                verdict = self._quality_gate.check(pixels)
                if not verdict:
                    return EmbeddingResult(EmbeddingStatus.QUALITY_REJECTED, verdict=verdict)

                self._require_ready()
                embedding = extractor.embed_stabilized(pixels)
            except (DecodeError, ResizeError, ModelInvocationError) as e:
                logger.warning(f"Error getting face embedding: {e}")
                return EmbeddingResult(EmbeddingStatus.FAILED, error=e)

        return EmbeddingResult(EmbeddingStatus.OK, embedding=embedding)

    def best_match(
        self,
        query_embedding: Sequence[float],
        candidates: Iterable[Candidate],
        threshold: Optional[float] = None,
    ) -> Optional[MatchResult]:
        """Best registered match at or above ``threshold`` (default 0.7)."""
        self._require_ready()
        if threshold is None:
            threshold = self.config.similarity_threshold
        return find_best_match(query_embedding, candidates, threshold)

    def aggregate_registration(self, embeddings: Sequence[Sequence[float]]) -> np.ndarray:
        """Combine enrollment embeddings into one canonical embedding."""
        self._require_ready()
        return aggregate_embeddings(embeddings)

    # -------------------------------------------------------------------------
    # Attendance & Registration Workflows
    # -------------------------------------------------------------------------

    def recognize(
        self,
        image: ImageSource,
        store: FaceStore,
        threshold: Optional[float] = None,
        update_attendance: bool = True,
    ) -> RecognitionOutcome:
        """Identify the person in ``image`` and toggle their attendance.

        Args:
            image: Captured image
            store: Registered identities
            threshold: Match threshold (uses config default if None)
            update_attendance: Flip the matched identity's check-in state

        Returns:
            RecognitionOutcome
        """
        self._require_ready()

        result = self.detect_and_embed(image)
        if result.status == EmbeddingStatus.NO_FACE:
            return RecognitionOutcome(RecognitionStatus.NO_FACE)
        if result.status == EmbeddingStatus.QUALITY_REJECTED:
            return RecognitionOutcome(RecognitionStatus.QUALITY_REJECTED, verdict=result.verdict)
        if result.status == EmbeddingStatus.FAILED:
            return RecognitionOutcome(RecognitionStatus.FAILED, error=result.error)

        candidates = store.list_registered()
        logger.info(f"Matching against {len(candidates)} registered identities")

        match = self.best_match(result.embedding, candidates, threshold)
        if match is None:
            logger.info("Face not recognized")
            return RecognitionOutcome(RecognitionStatus.NO_MATCH)

        logger.info(f"Matched {match.name or match.identity} (similarity={match.score:.3f})")

        checked_in = None
        if update_attendance:
            checked_in = self.mark_attendance(store, match.identity)

        return RecognitionOutcome(RecognitionStatus.MATCHED, match=match, checked_in=checked_in)

    def mark_attendance(self, store: FaceStore, identity: str) -> Optional[bool]:
        """Toggle an identity between checked in and checked out.

        The flip is a single atomic store operation.

        Returns:
            New checked-in state, or None if the identity is unknown or the
            store rejected the update
        """
        self._require_ready()

        checked_in = store.toggle_attendance(identity)
        if checked_in is None:
            logger.warning(f"Cannot update attendance for {identity}")
            return None

        record = store.get(identity)
        name = record.name if record else identity
        if checked_in:
            logger.info(f"Welcome, {name}! Check-in successful.")
        else:
            logger.info(f"Goodbye, {name}! Check-out successful.")
        return checked_in

    def start_registration(self, identity: str, name: str) -> RegistrationSession:
        """Begin a guided multi-pose registration."""
        self._require_ready()
        return RegistrationSession(self, identity, name)
