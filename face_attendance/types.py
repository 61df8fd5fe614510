"""Face recognition types."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np


class ServiceState(Enum):
    """Lifecycle state of the recognition service."""
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    CLOSED = "closed"


class QualityIssue(Enum):
    """Reason an image was rejected by the quality gate."""
    RESOLUTION_TOO_LOW = "resolution_too_low"
    BRIGHTNESS_OUT_OF_RANGE = "brightness_out_of_range"
    DECODE_FAILURE = "decode_failure"


@dataclass(frozen=True)
class QualityVerdict:
    """Result of the quality gate for one image."""

    passed: bool
    issue: Optional[QualityIssue] = None
    width: int = 0
    height: int = 0
    brightness: Optional[float] = None
    message: str = ""

    def __bool__(self) -> bool:
        return self.passed

    @classmethod
    def ok(cls, width: int, height: int, brightness: float) -> "QualityVerdict":
        return cls(True, None, width, height, brightness, "ok")

    @classmethod
    def reject(
        cls,
        issue: QualityIssue,
        message: str,
        width: int = 0,
        height: int = 0,
        brightness: Optional[float] = None,
    ) -> "QualityVerdict":
        return cls(False, issue, width, height, brightness, message)


@dataclass(frozen=True)
class MatchResult:
    """Best match of a query embedding against the registered set."""

    identity: str
    score: float
    name: Optional[str] = None


@dataclass
class RegisteredIdentity:
    """A registered person as supplied by the storage collaborator."""

    identity: str
    name: str
    embedding: np.ndarray
    checked_in: bool = False

    def __post_init__(self):
        self.embedding = np.array(self.embedding, dtype=np.float32).reshape(-1)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "identity": self.identity,
            "name": self.name,
            "embedding_size": int(self.embedding.size),
            "checked_in": self.checked_in,
        }


class EmbeddingStatus(Enum):
    """Outcome kind of a detect-and-embed attempt."""
    OK = "ok"
    NO_FACE = "no_face"
    QUALITY_REJECTED = "quality_rejected"
    FAILED = "failed"


@dataclass
class EmbeddingResult:
    """Typed outcome of a detect-and-embed attempt.

    ``embedding`` is set for OK, ``verdict`` for QUALITY_REJECTED and
    ``error`` for FAILED; NO_FACE carries none of them.
    """

    status: EmbeddingStatus
    embedding: Optional[np.ndarray] = None
    error: Optional[Exception] = None
    verdict: Optional[QualityVerdict] = None

    @property
    def ok(self) -> bool:
        return self.status == EmbeddingStatus.OK

    def unwrap(self) -> np.ndarray:
        """Return the embedding or raise the captured failure."""
        if self.status == EmbeddingStatus.OK:
            return self.embedding
        if self.error is not None:
            raise self.error
        raise ValueError(f"No embedding available (status={self.status.value})")


class RecognitionStatus(Enum):
    """Outcome kind of a recognition attempt."""
    MATCHED = "matched"
    NO_MATCH = "no_match"
    NO_FACE = "no_face"
    QUALITY_REJECTED = "quality_rejected"
    FAILED = "failed"


@dataclass
class RecognitionOutcome:
    """Result of a full recognition attempt (detect, embed, match)."""

    status: RecognitionStatus
    match: Optional[MatchResult] = None
    error: Optional[Exception] = None
    # Attendance state after the toggle; None when attendance was not updated
    checked_in: Optional[bool] = None
    verdict: Optional[QualityVerdict] = None

    @property
    def is_match(self) -> bool:
        return self.status == RecognitionStatus.MATCHED

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        issue = self.verdict.issue if self.verdict else None
        return {
            "status": self.status.value,
            "identity": self.match.identity if self.match else None,
            "name": self.match.name if self.match else None,
            "score": self.match.score if self.match else None,
            "checked_in": self.checked_in,
            "error": str(self.error) if self.error else None,
            "quality_issue": issue.value if issue else None,
        }
