"""Embedding extraction with augmentation-averaged stabilization."""

import logging
from typing import Optional

import numpy as np

from .aggregation import aggregate_embeddings
from .augmentation import Augmenter
from .constants import RecognitionConfig, get_recognition_config
from .embeddings import BaseEmbeddingBackend
from .errors import FaceAttendanceError, ModelInvocationError, ResizeError
from .preprocessing import ImageSource, image_size, load_image, preprocess

logger = logging.getLogger(__name__)


class EmbeddingExtractor:
    """Turns images into embedding vectors through a model backend."""

    def __init__(
        self,
        backend: BaseEmbeddingBackend,
        augmenter: Optional[Augmenter] = None,
        config: Optional[RecognitionConfig] = None,
    ):
        """Initialize the extractor.

        Args:
            backend: Loaded embedding model
            augmenter: Source of randomized variants for stabilized embeddings
            config: Recognition constants (uses config default if None)
        """
        self.backend = backend
        self.augmenter = augmenter or Augmenter()
        self.config = config or get_recognition_config()

    def _run_model(self, pixels: np.ndarray) -> np.ndarray:
        tensor = preprocess(pixels, self.config.input_size)

        try:
            output = self.backend.invoke(tensor)
        except FaceAttendanceError:
            raise
        except Exception as e:
            raise ModelInvocationError(f"{self.backend.name} model call failed: {e}") from e

        if output is None:
            raise ModelInvocationError(f"{self.backend.name} model returned no output")

        embedding = np.asarray(output, dtype=np.float32).reshape(-1)
        if embedding.size != self.config.embedding_dim:
            raise ModelInvocationError(
                f"Expected embedding of length {self.config.embedding_dim}, "
                f"got {embedding.size}"
            )
        if not np.all(np.isfinite(embedding)):
            raise ModelInvocationError("Model returned non-finite embedding values")

        return embedding

    def embed(self, image: ImageSource) -> np.ndarray:
        """Single-shot embedding: preprocess once and run the model.

        Raises:
            DecodeError: If the image cannot be decoded
            ResizeError: If the image is degenerate
            ModelInvocationError: If the model fails or output is malformed
        """
        return self._run_model(load_image(image))

    def embed_stabilized(
        self,
        image: ImageSource,
        samples: Optional[int] = None,
    ) -> np.ndarray:
        """Average the embeddings of randomized augmented variants.

        Args:
            image: Image source
            samples: Number of variants (uses config default if None)

        Returns:
            Component-wise mean of the variant embeddings
        """
        if samples is None:
            samples = self.config.stabilization_samples
        if samples < 1:
            raise ValueError(f"samples must be at least 1, got {samples}")

        pixels = load_image(image)
        width, height = image_size(pixels)
        if width == 0 or height == 0:
            raise ResizeError(f"Cannot augment degenerate image {width}x{height}")

        embeddings = []
        for variant in self.augmenter.augment_many(pixels, samples):
            embeddings.append(self._run_model(variant))

        logger.debug(f"Averaged {len(embeddings)} augmented embeddings")
        return aggregate_embeddings(embeddings)
