"""Tests for the augmentation generator."""

import numpy as np
import pytest

from face_attendance.augmentation import (
    Augmenter,
    add_noise,
    adjust_brightness,
    adjust_contrast,
    flip_horizontal,
    registration_variants,
    rotate,
)
from face_attendance.constants import AugmentationConfig


@pytest.fixture
def split_image():
    """Left half dark, right half bright."""
    image = np.full((120, 160, 3), 60, dtype=np.uint8)
    image[:, 80:] = 180
    return image


class TestAugmentationPrimitives:
    """Test cases for the individual transforms."""

    def test_brightness_shift(self):
        image = np.full((10, 10, 3), 100, dtype=np.uint8)
        assert np.all(adjust_brightness(image, 0.2) == 151)
        assert np.all(adjust_brightness(image, -0.2) == 49)

    def test_brightness_clips(self):
        image = np.full((10, 10, 3), 250, dtype=np.uint8)
        assert np.all(adjust_brightness(image, 0.3) == 255)
        assert np.all(adjust_brightness(255 - image, -0.3) == 0)

    def test_contrast_around_mid_gray(self):
        image = np.full((10, 10, 3), 100, dtype=np.uint8)
        assert np.all(adjust_contrast(image, 1.5) == 86)
        assert np.all(adjust_contrast(image, 1.0) == 100)

    def test_flip(self, split_image):
        flipped = flip_horizontal(split_image)
        assert np.array_equal(flipped, split_image[:, ::-1])

    def test_rotation_keeps_size_and_fills_corners(self):
        white = np.full((100, 100, 3), 255, dtype=np.uint8)
        rotated = rotate(white, 10)

        assert rotated.shape == white.shape
        assert rotated.dtype == np.uint8
        assert np.all(rotated[0, 0] == 0)
        assert np.all(rotated[50, 50] == 255)

    def test_zero_noise_is_identity(self, face_image):
        rng = np.random.default_rng(0)
        assert np.array_equal(add_noise(face_image, 0.0, rng), face_image)


class TestAugmenter:
    """Test cases for randomized augmentation."""

    def test_same_seed_is_bit_identical(self, face_image):
        """Two augmenters with one seed produce identical sequences."""
        first = Augmenter(seed=42)
        second = Augmenter(seed=42)

        for _ in range(3):
            assert np.array_equal(first.augment(face_image), second.augment(face_image))

    def test_injected_generator(self, face_image):
        a = Augmenter(rng=np.random.default_rng(5)).augment(face_image)
        b = Augmenter(rng=np.random.default_rng(5)).augment(face_image)
        assert np.array_equal(a, b)

    def test_different_seeds_differ(self, face_image):
        a = Augmenter(seed=1).augment(face_image)
        b = Augmenter(seed=2).augment(face_image)
        assert not np.array_equal(a, b)

    def test_shape_and_dtype_preserved(self, face_image):
        augmented = Augmenter(seed=0).augment(face_image)
        assert augmented.shape == face_image.shape
        assert augmented.dtype == np.uint8

    def test_input_not_modified(self, face_image):
        original = face_image.copy()
        Augmenter(seed=0).augment_many(face_image, 5)
        assert np.array_equal(face_image, original)

    def test_augment_many_count(self, face_image):
        variants = Augmenter(seed=3).augment_many(face_image, 5)
        assert len(variants) == 5

    def test_forced_flip(self, split_image):
        """With only the flip enabled the output is the mirror image."""
        config = AugmentationConfig(
            brightness_range=0.0,
            flip_probability=1.0,
            max_rotation=0.0,
            noise_sigma=0.0,
        )
        augmented = Augmenter(seed=0, config=config).augment(split_image)

        expected = split_image[:, ::-1].astype(np.int16)
        assert np.abs(augmented.astype(np.int16) - expected).max() <= 1

    def test_brightness_jitter_is_continuous(self):
        """Offsets are not truncated to whole multiples of the full range."""
        config = AugmentationConfig(
            brightness_range=0.3,
            flip_probability=0.0,
            max_rotation=0.0,
            noise_sigma=0.0,
        )
        augmenter = Augmenter(seed=11, config=config)
        image = np.full((20, 20, 3), 128, dtype=np.uint8)

        means = {int(augmenter.augment(image).mean()) for _ in range(10)}
        assert len(means) > 1
        assert all(128 - 77 <= m <= 128 + 77 for m in means)


class TestRegistrationVariants:
    """Test cases for the fixed registration variants."""

    def test_seven_variants(self, face_image):
        variants = registration_variants(face_image)
        assert len(variants) == 7
        for variant in variants:
            assert variant.shape == face_image.shape
            assert variant.dtype == np.uint8

    def test_variant_order(self):
        image = np.full((50, 50, 3), 100, dtype=np.uint8)
        variants = registration_variants(image)

        assert np.all(variants[0] == 151)
        assert np.all(variants[1] == 49)
        assert np.all(variants[2] == 86)

    def test_flip_variant(self, split_image):
        variants = registration_variants(split_image)
        assert np.array_equal(variants[4], split_image[:, ::-1])

    def test_deterministic(self, face_image):
        first = registration_variants(face_image)
        second = Augmenter(seed=99).registration_variants(face_image)
        for a, b in zip(first, second):
            assert np.array_equal(a, b)
