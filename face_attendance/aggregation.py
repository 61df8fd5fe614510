"""Averaging of per-capture embeddings into one canonical embedding."""

from typing import Sequence

import numpy as np


def aggregate_embeddings(embeddings: Sequence[Sequence[float]]) -> np.ndarray:
    """Component-wise arithmetic mean of equally sized embeddings.

    Args:
        embeddings: Embeddings collected during enrollment

    Returns:
        Mean embedding as ``float32`` vector

    Raises:
        ValueError: If ``embeddings`` is empty or lengths differ
    """
    if len(embeddings) == 0:
        raise ValueError("Cannot aggregate an empty list of embeddings")

    vectors = [np.asarray(e, dtype=np.float64).reshape(-1) for e in embeddings]
    lengths = {v.size for v in vectors}
    if len(lengths) != 1:
        raise ValueError(f"Embeddings must share one length, got {sorted(lengths)}")

    return np.mean(np.stack(vectors), axis=0).astype(np.float32)
