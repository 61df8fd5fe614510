"""Centralized constants and configuration loader.

This module provides access to configuration values and sensible defaults
for the recognition pipeline. Values are loaded from config/config.yaml when
available, otherwise defaults are used.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

# Path to the default configuration file
DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config" / "config.yaml"


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """Load configuration from YAML file.

    Args:
        config_path: Path to config file. Uses default if None.

    Returns:
        Configuration dictionary.
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    try:
        if path.exists():
            with open(path, "r") as f:
                return yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Failed to load config from {path}: {e}")

    return {}


def _get_nested(config: Dict, *keys: str, default: Any = None) -> Any:
    """Get nested config value with default fallback."""
    value = config
    for key in keys:
        if isinstance(value, dict):
            value = value.get(key)
        else:
            return default
        if value is None:
            return default
    return value


# ============================================================
# Recognition Constants
# ============================================================

@dataclass
class RecognitionConfig:
    """Embedding model and matching constants."""
    # Minimum cosine similarity for a match
    similarity_threshold: float = 0.7
    # Square input size of the embedding model
    input_size: int = 112
    # Length of the embedding vector
    embedding_dim: int = 128
    # Augmented variants averaged per stabilized embedding
    stabilization_samples: int = 5
    # Path to the MobileFaceNet TFLite model
    model_path: Optional[str] = None
    # Interpreter threads
    num_threads: int = 4
    # Pixel normalization (v - mean) / scale
    pixel_mean: float = 127.5
    pixel_scale: float = 128.0

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "RecognitionConfig":
        """Create from config dictionary."""
        rc = _get_nested(config, "recognition") or {}

        return cls(
            similarity_threshold=rc.get("similarity_threshold", 0.7),
            input_size=rc.get("input_size", 112),
            embedding_dim=rc.get("embedding_dim", 128),
            stabilization_samples=rc.get("stabilization_samples", 5),
            model_path=rc.get("model_path"),
            num_threads=rc.get("num_threads", 4),
            pixel_mean=rc.get("pixel_mean", 127.5),
            pixel_scale=rc.get("pixel_scale", 128.0),
        )


# ============================================================
# Quality Gate Constants
# ============================================================

@dataclass
class QualityConfig:
    """Image quality gate constants."""
    min_width: int = 200
    min_height: int = 200
    # Accepted average brightness range, normalized to [0, 1]
    min_brightness: float = 0.2
    max_brightness: float = 0.8

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "QualityConfig":
        """Create from config dictionary."""
        qc = _get_nested(config, "quality") or {}

        return cls(
            min_width=qc.get("min_width", 200),
            min_height=qc.get("min_height", 200),
            min_brightness=qc.get("min_brightness", 0.2),
            max_brightness=qc.get("max_brightness", 0.8),
        )


# ============================================================
# Augmentation Constants
# ============================================================

@dataclass
class AugmentationConfig:
    """Augmentation constants.

    Brightness values are fractions of the full 8-bit range. Noise sigma is
    expressed in 8-bit sample units.
    """
    # Randomized variants (embedding stabilization)
    brightness_range: float = 0.3
    flip_probability: float = 0.5
    max_rotation: float = 10.0
    noise_sigma: float = 0.1
    # Fixed variants (registration enrichment)
    registration_brightness: float = 0.2
    registration_contrasts: Tuple[float, float] = (1.5, 0.8)
    registration_rotation: float = 10.0

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "AugmentationConfig":
        """Create from config dictionary."""
        ac = _get_nested(config, "augmentation") or {}
        registration = ac.get("registration", {})

        contrasts = registration.get("contrasts", [1.5, 0.8])

        return cls(
            brightness_range=ac.get("brightness_range", 0.3),
            flip_probability=ac.get("flip_probability", 0.5),
            max_rotation=ac.get("max_rotation", 10.0),
            noise_sigma=ac.get("noise_sigma", 0.1),
            registration_brightness=registration.get("brightness", 0.2),
            registration_contrasts=tuple(contrasts),
            registration_rotation=registration.get("rotation", 10.0),
        )


# ============================================================
# Detection Constants
# ============================================================

@dataclass
class DetectionConfig:
    """Haar cascade face detection constants."""
    scale_factor: float = 1.1
    min_neighbors: int = 5
    # Minimum face size as fraction of the shorter image side
    min_face_ratio: float = 0.15

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "DetectionConfig":
        """Create from config dictionary."""
        dc = _get_nested(config, "detection") or {}

        return cls(
            scale_factor=dc.get("scale_factor", 1.1),
            min_neighbors=dc.get("min_neighbors", 5),
            min_face_ratio=dc.get("min_face_ratio", 0.15),
        )


# ============================================================
# Storage Constants
# ============================================================

@dataclass
class StorageConfig:
    """Registration storage constants."""
    database_path: str = "data/attendance.db"

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "StorageConfig":
        """Create from config dictionary."""
        sc = _get_nested(config, "storage") or {}
        return cls(database_path=sc.get("database_path", "data/attendance.db"))


# ============================================================
# Global Config Instance (lazy loaded)
# ============================================================

class Config:
    """Global configuration singleton."""

    _instance: Optional["Config"] = None
    _config: Dict[str, Any] = {}

    def __new__(cls) -> "Config":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._load()
        return cls._instance

    def _load(self) -> None:
        """Load configuration from file."""
        self._config = load_config()
        self._reset_sections()

    def _reset_sections(self) -> None:
        self._recognition: Optional[RecognitionConfig] = None
        self._quality: Optional[QualityConfig] = None
        self._augmentation: Optional[AugmentationConfig] = None
        self._detection: Optional[DetectionConfig] = None
        self._storage: Optional[StorageConfig] = None

    def reload(self, config_path: Optional[Path] = None) -> None:
        """Reload configuration from file."""
        self._config = load_config(config_path)
        self._reset_sections()

    @property
    def recognition(self) -> RecognitionConfig:
        """Get recognition config."""
        if self._recognition is None:
            self._recognition = RecognitionConfig.from_config(self._config)
        return self._recognition

    @property
    def quality(self) -> QualityConfig:
        """Get quality gate config."""
        if self._quality is None:
            self._quality = QualityConfig.from_config(self._config)
        return self._quality

    @property
    def augmentation(self) -> AugmentationConfig:
        """Get augmentation config."""
        if self._augmentation is None:
            self._augmentation = AugmentationConfig.from_config(self._config)
        return self._augmentation

    @property
    def detection(self) -> DetectionConfig:
        """Get detection config."""
        if self._detection is None:
            self._detection = DetectionConfig.from_config(self._config)
        return self._detection

    @property
    def storage(self) -> StorageConfig:
        """Get storage config."""
        if self._storage is None:
            self._storage = StorageConfig.from_config(self._config)
        return self._storage

    def get(self, *keys: str, default: Any = None) -> Any:
        """Get a config value by key path."""
        return _get_nested(self._config, *keys, default=default)


def get_config() -> Config:
    """Get the global configuration instance."""
    return Config()


# Convenience accessors
def get_recognition_config() -> RecognitionConfig:
    """Get recognition configuration."""
    return get_config().recognition


def get_quality_config() -> QualityConfig:
    """Get quality gate configuration."""
    return get_config().quality


def get_augmentation_config() -> AugmentationConfig:
    """Get augmentation configuration."""
    return get_config().augmentation


def get_detection_config() -> DetectionConfig:
    """Get detection configuration."""
    return get_config().detection


def get_storage_config() -> StorageConfig:
    """Get storage configuration."""
    return get_config().storage
