"""Guided multi-pose registration."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, TYPE_CHECKING

import numpy as np

from .augmentation import registration_variants
from .errors import DecodeError, RegistrationError
from .preprocessing import ImageSource, load_image
from .types import QualityVerdict

if TYPE_CHECKING:
    from .service import FaceRecognitionService
    from .storage import FaceStore

logger = logging.getLogger(__name__)

POSE_STEPS = (
    "Look straight at the camera",
    "Turn your head slightly to the left",
    "Turn your head slightly to the right",
    "Tilt your head up a little",
    "Tilt your head down a little",
)


class CaptureStatus(Enum):
    """Outcome of one registration capture."""
    ACCEPTED = "accepted"
    NO_FACE = "no_face"
    QUALITY_REJECTED = "quality_rejected"
    DECODE_FAILED = "decode_failed"
    ALREADY_COMPLETE = "already_complete"


@dataclass
class CaptureResult:
    """Result of submitting a capture for the current pose step."""

    status: CaptureStatus
    step: int
    verdict: Optional[QualityVerdict] = None
    message: str = ""

    @property
    def accepted(self) -> bool:
        return self.status == CaptureStatus.ACCEPTED


class RegistrationSession:
    """Collects one capture per pose step and stores the canonical embedding.

    Each accepted capture is expanded into the fixed registration variants.
    Nothing is embedded or stored until ``complete`` is called, so an
    abandoned session leaves no trace.
    """

    def __init__(
        self,
        service: "FaceRecognitionService",
        identity: str,
        name: str,
        steps: Sequence[str] = POSE_STEPS,
    ):
        self.service = service
        self.identity = identity
        self.name = name
        self.steps = tuple(steps)

        self._current_step = 0
        self._variants: List[np.ndarray] = []
        self._stored = False

    @property
    def current_step(self) -> int:
        return self._current_step

    @property
    def total_steps(self) -> int:
        return len(self.steps)

    @property
    def is_complete(self) -> bool:
        return self._current_step >= self.total_steps

    @property
    def current_instruction(self) -> str:
        if self.is_complete:
            return ""
        return self.steps[self._current_step]

    @property
    def variant_count(self) -> int:
        return len(self._variants)

    def capture(self, image: ImageSource) -> CaptureResult:
        """Validate a capture for the current step and keep its variants."""
        step = self._current_step
        if self.is_complete:
            return CaptureResult(CaptureStatus.ALREADY_COMPLETE, step, message="All steps captured")

        try:
            pixels = load_image(image)
        except DecodeError as e:
            return CaptureResult(CaptureStatus.DECODE_FAILED, step, message=str(e))

        if not self.service.detect_face(pixels):
            return CaptureResult(
                CaptureStatus.NO_FACE, step, message="No face detected. Please try again."
            )

        verdict = self.service.check_quality(pixels)
        if not verdict:
            return CaptureResult(
                CaptureStatus.QUALITY_REJECTED,
                step,
                verdict=verdict,
                message="Image quality insufficient. Please try again.",
            )

        self._variants.extend(
            registration_variants(pixels, self.service.augmenter.config)
        )
        self._current_step += 1

        message = f"Captured and augmented image {self._current_step} of {self.total_steps}"
        logger.info(f"{self.identity}: {message}")
        return CaptureResult(CaptureStatus.ACCEPTED, step, verdict=verdict, message=message)

    def complete(self, store: "FaceStore") -> np.ndarray:
        """Embed all collected variants, aggregate and store the result.

        Returns:
            The stored canonical embedding

        Raises:
            RegistrationError: If steps remain, the session was already
                stored, or the store rejects the write
            DecodeError, ResizeError, ModelInvocationError: From embedding
        """
        if self._stored:
            raise RegistrationError(f"Registration for {self.identity} already stored")
        if not self.is_complete:
            raise RegistrationError(
                f"Registration incomplete: {self._current_step} of {self.total_steps} steps captured"
            )

        logger.info(f"Processing registration for {self.identity} ({len(self._variants)} images)")

        embeddings = [
            self.service.embed(variant, stabilized=True) for variant in self._variants
        ]
        canonical = self.service.aggregate_registration(embeddings)

        if not store.write_registration(self.identity, self.name, canonical):
            raise RegistrationError(f"Failed to store registration for {self.identity}")

        self._variants.clear()
        self._stored = True
        logger.info(f"Registration successful for {self.name} ({self.identity})")
        return canonical

    def reset(self) -> None:
        """Discard captured variants and restart from the first step."""
        self._variants.clear()
        self._current_step = 0
        self._stored = False
