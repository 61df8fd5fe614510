"""Tests for embedding extraction."""

import numpy as np
import pytest

from conftest import StubEmbeddingBackend, unit_vector
from face_attendance.augmentation import Augmenter
from face_attendance.errors import DecodeError, ModelInvocationError, ResizeError
from face_attendance.extractor import EmbeddingExtractor


class RaisingBackend(StubEmbeddingBackend):
    """Backend whose model call always fails."""

    def invoke(self, tensor):
        self.invoke_calls += 1
        raise RuntimeError("interpreter crashed")


class TestEmbed:
    """Test cases for single-shot embeddings."""

    def test_embedding_shape(self, stub_backend, face_image):
        embedding = EmbeddingExtractor(stub_backend).embed(face_image)
        assert embedding.shape == (128,)
        assert embedding.dtype == np.float32

    def test_deterministic(self, stub_backend, face_image):
        extractor = EmbeddingExtractor(stub_backend)
        assert np.array_equal(extractor.embed(face_image), extractor.embed(face_image))

    def test_single_model_call(self, stub_backend, face_image):
        EmbeddingExtractor(stub_backend).embed(face_image)
        assert stub_backend.invoke_calls == 1

    def test_wrong_output_length(self, face_image):
        backend = StubEmbeddingBackend(vector=np.ones(64))
        with pytest.raises(ModelInvocationError):
            EmbeddingExtractor(backend).embed(face_image)

    def test_non_finite_output(self, face_image):
        vector = unit_vector(0)
        vector[5] = np.nan
        with pytest.raises(ModelInvocationError):
            EmbeddingExtractor(StubEmbeddingBackend(vector=vector)).embed(face_image)

    def test_backend_exception_wrapped(self, face_image):
        with pytest.raises(ModelInvocationError, match="interpreter crashed"):
            EmbeddingExtractor(RaisingBackend()).embed(face_image)

    def test_decode_error_propagates(self, stub_backend):
        with pytest.raises(DecodeError):
            EmbeddingExtractor(stub_backend).embed(b"garbage")
        assert stub_backend.invoke_calls == 0


class TestEmbedStabilized:
    """Test cases for augmentation-averaged embeddings."""

    def test_uses_configured_sample_count(self, stub_backend, face_image):
        extractor = EmbeddingExtractor(stub_backend, Augmenter(seed=1))
        embedding = extractor.embed_stabilized(face_image)

        assert embedding.shape == (128,)
        assert stub_backend.invoke_calls == 5

    def test_equals_mean_of_augmented_embeddings(self, face_image):
        """The result is the component-wise mean of the variant embeddings."""
        backend = StubEmbeddingBackend()
        stabilized = EmbeddingExtractor(backend, Augmenter(seed=5)).embed_stabilized(face_image)

        plain = EmbeddingExtractor(StubEmbeddingBackend())
        variants = Augmenter(seed=5).augment_many(face_image, 5)
        expected = np.mean([plain.embed(v) for v in variants], axis=0)

        assert np.allclose(stabilized, expected, atol=1e-5)

    def test_reproducible_with_seed(self, face_image):
        a = EmbeddingExtractor(StubEmbeddingBackend(), Augmenter(seed=8)).embed_stabilized(face_image)
        b = EmbeddingExtractor(StubEmbeddingBackend(), Augmenter(seed=8)).embed_stabilized(face_image)
        assert np.array_equal(a, b)

    def test_constant_model(self, face_image):
        backend = StubEmbeddingBackend(vector=unit_vector(3))
        embedding = EmbeddingExtractor(backend).embed_stabilized(face_image, samples=3)

        assert np.allclose(embedding, unit_vector(3))
        assert backend.invoke_calls == 3

    def test_invalid_sample_count(self, stub_backend, face_image):
        with pytest.raises(ValueError):
            EmbeddingExtractor(stub_backend).embed_stabilized(face_image, samples=0)

    def test_degenerate_image(self, stub_backend):
        with pytest.raises(ResizeError):
            EmbeddingExtractor(stub_backend).embed_stabilized(np.zeros((0, 5, 3), dtype=np.uint8))

    def test_model_failure_propagates(self, face_image):
        with pytest.raises(ModelInvocationError):
            EmbeddingExtractor(RaisingBackend()).embed_stabilized(face_image)
