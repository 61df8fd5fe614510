"""Face embedding backends.

Embedding backends wrap a pretrained model that maps a preprocessed face
tensor to a fixed-length embedding vector.
"""

from .base import BaseEmbeddingBackend
from .tflite import TFLiteEmbeddingBackend

EMBEDDING_BACKENDS = {
    "tflite": TFLiteEmbeddingBackend,
}

__all__ = [
    "BaseEmbeddingBackend",
    "TFLiteEmbeddingBackend",
    "EMBEDDING_BACKENDS",
]
