"""Cosine similarity and best-match selection against a registered set."""

import logging
import warnings
from typing import Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np

from .constants import get_recognition_config
from .errors import LengthMismatchWarning
from .types import MatchResult, RegisteredIdentity

logger = logging.getLogger(__name__)

Candidate = Union[RegisteredIdentity, Tuple[str, Sequence[float]]]


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity ``dot(a, b) / (|a| * |b|)``.

    Vectors of different length are truncated to their common prefix and a
    ``LengthMismatchWarning`` is emitted. A zero vector has similarity 0.0
    with everything.
    """
    va = np.asarray(a, dtype=np.float64).reshape(-1)
    vb = np.asarray(b, dtype=np.float64).reshape(-1)

    if va.size != vb.size:
        message = f"Embedding length mismatch: {va.size} vs {vb.size}"
        logger.warning(message)
        warnings.warn(message, LengthMismatchWarning, stacklevel=2)
        common = min(va.size, vb.size)
        va = va[:common]
        vb = vb[:common]

    norm_a = np.linalg.norm(va)
    norm_b = np.linalg.norm(vb)

    if norm_a < 1e-10 or norm_b < 1e-10:
        return 0.0

    return float(np.dot(va, vb) / (norm_a * norm_b))


def _unpack(candidate: Candidate) -> Tuple[str, Optional[str], Sequence[float]]:
    if isinstance(candidate, RegisteredIdentity):
        return candidate.identity, candidate.name, candidate.embedding
    identity, embedding = candidate
    return identity, None, embedding


def find_best_match(
    query: Sequence[float],
    candidates: Iterable[Candidate],
    threshold: Optional[float] = None,
) -> Optional[MatchResult]:
    """Find the registered identity most similar to ``query``.

    Only a strictly higher score replaces the current best, so on ties the
    first candidate seen wins.

    Args:
        query: Query embedding
        candidates: RegisteredIdentity records or ``(identity, embedding)`` pairs
        threshold: Minimum similarity (uses config default if None)

    Returns:
        MatchResult for the best candidate if its score reaches ``threshold``,
        otherwise None
    """
    if threshold is None:
        threshold = get_recognition_config().similarity_threshold

    snapshot = tuple(candidates)

    best: Optional[Tuple[str, Optional[str]]] = None
    best_score = float("-inf")

    for candidate in snapshot:
        identity, name, embedding = _unpack(candidate)
        score = cosine_similarity(query, embedding)
        logger.debug(f"Similarity with {identity}: {score:.4f}")

        if score > best_score:
            best_score = score
            best = (identity, name)

    if best is None or best_score < threshold:
        return None

    return MatchResult(identity=best[0], score=best_score, name=best[1])


def rank_matches(
    query: Sequence[float],
    candidates: Iterable[Candidate],
    threshold: Optional[float] = None,
) -> List[MatchResult]:
    """All candidates scoring at least ``threshold``, best first."""
    if threshold is None:
        threshold = get_recognition_config().similarity_threshold

    matches = []
    for candidate in tuple(candidates):
        identity, name, embedding = _unpack(candidate)
        score = cosine_similarity(query, embedding)
        if score >= threshold:
            matches.append(MatchResult(identity=identity, score=score, name=name))

    return sorted(matches, key=lambda m: m.score, reverse=True)
