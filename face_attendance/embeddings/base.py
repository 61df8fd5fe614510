"""Base class for face embedding backends."""

from abc import ABC, abstractmethod

import numpy as np


class BaseEmbeddingBackend(ABC):
    """Abstract embedding model port.

    Implementations hold one model handle, opened by ``load`` and released by
    ``close``. ``invoke`` must be deterministic for identical input.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the name of the embedding backend."""
        pass

    @property
    def embedding_dim(self) -> int:
        """Return the dimensionality of the embedding vector."""
        return 128

    @property
    def input_size(self) -> int:
        """Return the square input size expected by the model."""
        return 112

    def load(self) -> None:
        """Open the model handle.

        Raises:
            ModelLoadError: If the model cannot be loaded
        """

    @abstractmethod
    def invoke(self, tensor: np.ndarray) -> np.ndarray:
        """Run the model on a preprocessed tensor.

        Args:
            tensor: ``float32`` tensor of shape ``(1, size, size, 3)``

        Returns:
            Raw model output (flattened by the caller)

        Raises:
            ModelInvocationError: If the model call fails
        """
        pass

    def close(self) -> None:
        """Release the model handle."""
