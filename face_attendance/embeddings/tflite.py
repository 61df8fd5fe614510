"""TFLite face embedding backend (MobileFaceNet)."""

import logging
from pathlib import Path
from typing import Optional

import numpy as np

from ..constants import get_recognition_config
from ..errors import ModelInvocationError, ModelLoadError
from .base import BaseEmbeddingBackend

logger = logging.getLogger(__name__)


class TFLiteEmbeddingBackend(BaseEmbeddingBackend):
    """Face embedding using a MobileFaceNet TFLite model (128D)."""

    def __init__(
        self,
        model_path: Optional[str] = None,
        num_threads: Optional[int] = None,
    ):
        """Initialize TFLite embedding backend.

        Args:
            model_path: Path to TFLite face embedding model.
                       If None, uses the configured path or default locations
            num_threads: Interpreter threads (uses config default if None)
        """
        config = get_recognition_config()
        self._model_path = model_path or config.model_path
        self._num_threads = num_threads or config.num_threads
        self._embedding_dim = config.embedding_dim
        self._input_size = config.input_size

        self._interpreter = None
        self._input_details = None
        self._output_details = None

    @property
    def name(self) -> str:
        return "tflite"

    @property
    def embedding_dim(self) -> int:
        return self._embedding_dim

    @property
    def input_size(self) -> int:
        return self._input_size

    @property
    def is_loaded(self) -> bool:
        return self._interpreter is not None

    def _find_model_file(self) -> Optional[str]:
        model_locations = [
            self._model_path,
            "MobileFaceNet.tflite",
            "data/models/MobileFaceNet.tflite",
            Path.home() / ".face_models" / "MobileFaceNet.tflite",
        ]

        for loc in model_locations:
            if loc and Path(str(loc)).exists():
                return str(loc)
        return None

    def load(self) -> None:
        """Load the TFLite interpreter.

        Raises:
            ModelLoadError: If TFLite is unavailable or the model is missing
        """
        if self._interpreter is not None:
            return

        try:
            import tflite_runtime.interpreter as tflite
        except ImportError:
            try:
                import tensorflow.lite as tflite
            except ImportError as e:
                raise ModelLoadError(
                    "TFLite not installed. Install with: "
                    "pip install tflite-runtime or pip install tensorflow"
                ) from e

        model_file = self._find_model_file()
        if not model_file:
            raise ModelLoadError(
                "TFLite face embedding model not found. "
                "Please provide a valid model path."
            )

        try:
            interpreter = tflite.Interpreter(
                model_path=model_file,
                num_threads=self._num_threads,
            )
            interpreter.allocate_tensors()
        except (ValueError, RuntimeError) as e:
            raise ModelLoadError(f"Failed to load TFLite model {model_file}: {e}") from e

        self._interpreter = interpreter
        self._input_details = interpreter.get_input_details()
        self._output_details = interpreter.get_output_details()
        logger.info(f"Loaded TFLite model from {model_file}")

    def invoke(self, tensor: np.ndarray) -> np.ndarray:
        """Run MobileFaceNet on a ``(1, 112, 112, 3)`` tensor."""
        if self._interpreter is None:
            raise ModelInvocationError("TFLite interpreter is not loaded")

        try:
            self._interpreter.set_tensor(
                self._input_details[0]["index"], tensor.astype(np.float32)
            )
            self._interpreter.invoke()

            embedding = self._interpreter.get_tensor(
                self._output_details[0]["index"]
            )
        except (ValueError, RuntimeError) as e:
            raise ModelInvocationError(f"TFLite inference failed: {e}") from e

        return np.array(embedding, dtype=np.float32).flatten()

    def close(self) -> None:
        """Release the interpreter."""
        if self._interpreter is not None:
            logger.info("Closed TFLite interpreter")
        self._interpreter = None
        self._input_details = None
        self._output_details = None
