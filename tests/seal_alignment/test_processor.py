"""
Integration tests for the main seal normalization processor.
"""

import dataclasses

import cv2
import numpy as np
import pytest

from src.common.types import Point
from src.seal_alignment.image_rectification import ring_mask, square_crop
from src.seal_alignment.processor import (
    SealNormalizer,
    normalize_seal_image,
    process_seal,
)
from src.seal_alignment.types import (
    AffineTransform,
    FailureReason,
    NormalizationStatus,
    SealTemplate,
)
from src.utils.constants import NORMALIZED_SIZE


def _apply(matrix, point):
    x, y = point.x, point.y
    return np.array(
        [
            matrix[0, 0] * x + matrix[0, 1] * y + matrix[0, 2],
            matrix[1, 0] * x + matrix[1, 1] * y + matrix[1, 2],
        ]
    )


def _nearest_distance(target, points):
    return min(np.hypot(target.x - p.x, target.y - p.y) for p in points)


@pytest.fixture
def normalizer():
    return SealNormalizer()


class TestSealNormalizer:
    """Tests for SealNormalizer class."""

    def test_initialization_default_config(self, normalizer):
        """Test normalizer initialization with default config."""
        assert normalizer.config is not None
        assert normalizer.config.scoring.max_score == 2.4
        assert normalizer.template.size == NORMALIZED_SIZE

    def test_canonical_image_gives_identity(self, normalizer, canonical_seal_image):
        """Dots already on the template should yield the identity transform."""
        result = normalizer.process(canonical_seal_image)

        assert result.status == NormalizationStatus.RECTIFIED
        assert result.failure_reason == FailureReason.NONE
        assert result.is_rectified() is True

        matrix = result.transform.to_matrix()
        np.testing.assert_allclose(matrix[:, :2], np.eye(2), atol=0.01)
        np.testing.assert_allclose(matrix[:, 2], [0.0, 0.0], atol=3.0)

    def test_canonical_output_matches_input(self, normalizer, canonical_seal_image):
        """Rectified canonical image should equal the input inside the ring."""
        result = normalizer.process(canonical_seal_image)
        inside = ring_mask(normalizer.template)

        diff = np.abs(
            result.image[..., :3].astype(np.int16)
            - canonical_seal_image[..., :3].astype(np.int16)
        )
        assert diff[inside].mean() < 3.0

    def test_output_is_masked_and_opaque(self, normalizer, canonical_seal_image):
        """Everything outside the ring must be opaque black."""
        result = normalizer.process(canonical_seal_image)
        outside = ~ring_mask(normalizer.template)

        assert result.image.shape == (NORMALIZED_SIZE, NORMALIZED_SIZE, 4)
        assert np.all(result.image[outside][:, :3] == 0)
        assert np.all(result.image[..., 3] == 255)

    def test_input_not_modified(self, normalizer, canonical_seal_image):
        """The caller's raster must stay untouched."""
        original = canonical_seal_image.copy()
        normalizer.process(canonical_seal_image)
        np.testing.assert_array_equal(canonical_seal_image, original)

    def test_config_not_modified(self, normalizer, canonical_seal_image):
        """Processing and deriving a stricter variant leave the config intact."""
        before = dataclasses.asdict(normalizer.config)

        normalizer.process(canonical_seal_image)
        dataclasses.replace(
            normalizer.config,
            scoring=dataclasses.replace(normalizer.config.scoring, max_score=0.2),
        )

        assert dataclasses.asdict(normalizer.config) == before
        assert normalizer.config.scoring.max_score == 2.4

    @pytest.mark.parametrize(
        "angle,scale",
        [(30.0, 1.0), (90.0, 1.0), (135.0, 0.9), (-160.0, 1.05), (12.0, 0.95)],
    )
    def test_rotation_and_scale_recovered(
        self, normalizer, canonical_seal_image, rotate_image, angle, scale
    ):
        """Recovered transform should undo the rotation and scale."""
        rotated, forward = rotate_image(canonical_seal_image, angle, scale)

        result = normalizer.process(rotated)

        assert result.is_rectified(), result.get_error_message()
        assert result.transform.determinant > 0

        recovered = result.transform.to_matrix()
        np.testing.assert_allclose(
            recovered[:, :2] @ forward[:, :2], np.eye(2), atol=0.02
        )
        for dot in normalizer.template.dots:
            observed = _apply(forward, dot)
            back = result.transform.apply(Point(x=observed[0], y=observed[1]))
            assert dot.distance_to(back) < 4.0

    def test_rotated_output_realigns(
        self, normalizer, canonical_seal_image, rotate_image
    ):
        """Re-detecting dots on the rectified output lands on the template."""
        rotated, _ = rotate_image(canonical_seal_image, 63.0, 1.0)

        first = normalizer.process(rotated)
        second = normalizer.process(first.image)

        assert second.is_rectified()
        for dot in normalizer.template.dots:
            assert _nearest_distance(dot, second.ordered_dots) < 4.0

    def test_idempotent_on_rectified_output(
        self, normalizer, canonical_seal_image, rotate_image
    ):
        """Rectifying an already rectified image gives ~identity."""
        rotated, _ = rotate_image(canonical_seal_image, -40.0, 1.0)

        first = normalizer.process(rotated)
        second = normalizer.process(first.image)

        matrix = second.transform.to_matrix()
        np.testing.assert_allclose(matrix[:, :2], np.eye(2), atol=0.02)
        np.testing.assert_allclose(matrix[:, 2], [0.0, 0.0], atol=6.0)

    def test_mirrored_seal_is_rectified_without_reflection(
        self, normalizer, canonical_seal_image
    ):
        """
        A reflected seal is indistinguishable from a genuine one.

        The template triangle is nearly isosceles, so the swapped base pair
        gives an orientation-preserving fit: the mirror is rectified, not
        rejected. The returned map itself never reflects.
        """
        mirrored = cv2.flip(canonical_seal_image, 1)

        result = normalizer.process(mirrored)

        assert result.status == NormalizationStatus.RECTIFIED
        assert result.transform.determinant > 0
        assert result.transform.determinant == pytest.approx(1.0, abs=0.05)

    def test_missing_dot_falls_back_to_square_crop(
        self, normalizer, seal_image_factory, canonical_points
    ):
        """With only two dots the square crop is returned unchanged."""
        two_dots = [p.to_tuple() for p in canonical_points[:2]]
        image = seal_image_factory(dots=two_dots)

        result = normalizer.process(image)

        assert result.status == NormalizationStatus.FALLBACK
        assert result.failure_reason == FailureReason.NO_LANDMARKS
        assert result.candidate_count == 2
        assert result.transform is None
        np.testing.assert_array_equal(result.image, square_crop(image, NORMALIZED_SIZE))
        np.testing.assert_array_equal(result.image, image)

    def test_blank_image_falls_back(self, normalizer):
        """A featureless photo has no landmarks."""
        blank = np.full((800, 1200, 3), 200, dtype=np.uint8)

        result = normalizer.process(blank)

        assert result.failure_reason == FailureReason.NO_LANDMARKS
        assert result.image.shape == (NORMALIZED_SIZE, NORMALIZED_SIZE, 3)
        assert "candidates" in result.get_error_message()

    def test_spurious_blobs_do_not_change_transform(
        self, normalizer, seal_image_factory
    ):
        """Blobs outside the annulus or the area range are ignored."""
        clean = normalizer.process(seal_image_factory())

        noisy_image = seal_image_factory(
            extra_blobs=[
                ((512.0, 512.0), 20.0),  # Dot-sized, at the center
                ((60.0, 60.0), 20.0),  # Dot-sized, in the corner
                ((937.0, 512.0), 48.0),  # In the annulus, too large
                ((87.0, 512.0), 2.0),  # In the annulus, too small
            ]
        )
        noisy = normalizer.process(noisy_image)

        assert noisy.is_rectified()
        np.testing.assert_allclose(
            noisy.transform.to_matrix(), clean.transform.to_matrix(), atol=1e-9
        )
        assert noisy.triple_score == pytest.approx(clean.triple_score)

    def test_scattered_dots_do_not_match(self, normalizer, seal_image_factory):
        """Three blobs in the annulus with the wrong geometry are rejected."""
        # Equilateral triangle, all dots at the right radius
        center, radius = 511.5, 0.84 * 509.17
        dots = [
            (
                center + radius * np.cos(np.radians(a)),
                center + radius * np.sin(np.radians(a)),
            )
            for a in (-90.0, 30.0, 150.0)
        ]
        config = dataclasses.replace(
            normalizer.config,
            scoring=dataclasses.replace(normalizer.config.scoring, max_score=0.2),
        )
        strict = SealNormalizer(config=config)

        result = strict.process(seal_image_factory(dots=dots))

        assert result.failure_reason == FailureReason.NO_MATCHING_TRIPLE
        assert result.triple_score is not None
        assert result.triple_score >= 0.2
        assert "score" in result.get_error_message()

    def test_singular_solve_falls_back(
        self, normalizer, canonical_seal_image, monkeypatch
    ):
        """Degenerate solves are reported as singular geometry."""
        monkeypatch.setattr(
            "src.seal_alignment.processor.solve_with_base_ambiguity",
            lambda *args: (None, [None, None]),
        )

        result = normalizer.process(canonical_seal_image)

        assert result.failure_reason == FailureReason.SINGULAR_GEOMETRY
        np.testing.assert_array_equal(result.image, canonical_seal_image)

    def test_mirrored_only_solve_falls_back(
        self, normalizer, canonical_seal_image, monkeypatch
    ):
        """Only negative-determinant solutions must not be used."""
        mirrored = AffineTransform(a=-1.0, b=0.0, c=0.0, d=1.0, e=1023.0, f=0.0)
        monkeypatch.setattr(
            "src.seal_alignment.processor.solve_with_base_ambiguity",
            lambda *args: (None, [mirrored, None]),
        )

        result = normalizer.process(canonical_seal_image)

        assert (
            result.failure_reason
            == FailureReason.NO_ORIENTATION_PRESERVING_SOLUTION
        )
        assert result.transform is None
        assert result.ordered_dots is not None

    @pytest.mark.parametrize("bad_input", [None, np.array([]), np.zeros((4, 4, 2))])
    def test_malformed_input_raises(self, normalizer, bad_input):
        """Malformed input is the only hard error."""
        with pytest.raises(ValueError):
            normalizer.process(bad_input)

    def test_grayscale_and_rgb_inputs(self, normalizer, seal_image_factory):
        """Channel layout does not affect detection."""
        for channels in (1, 3):
            result = normalizer.process(seal_image_factory(channels=channels))
            assert result.is_rectified()
            assert result.image.shape[:2] == (NORMALIZED_SIZE, NORMALIZED_SIZE)


class TestPhotoScenario:
    """End-to-end scenario on a landscape camera frame."""

    def test_landscape_photo(self, normalizer, seal_image_factory, rotate_image):
        """2000x1500 photo of a rotated seal is detected and realigned."""
        seal = seal_image_factory(size=1500)
        rotated, _ = rotate_image(seal, 25.0, 1.0)

        photo = np.full((1500, 2000, 4), 235, dtype=np.uint8)
        photo[:, 250:1750] = rotated

        result = normalizer.process(photo)

        assert result.is_rectified(), result.get_error_message()
        assert result.triple_score < 2.4
        assert result.transform.determinant > 0

        redetected = normalizer.process(result.image)
        assert redetected.is_rectified()
        for dot in SealTemplate.default().dots:
            assert _nearest_distance(dot, redetected.ordered_dots) < 5.0


class TestConvenienceFunctions:
    """Tests for process_seal and normalize_seal_image."""

    def test_process_seal(self, canonical_seal_image):
        result = process_seal(canonical_seal_image)
        assert result.is_rectified()

    def test_normalize_seal_image_returns_image(self, seal_image_factory):
        """Fallback and success both return a normalized raster."""
        good = normalize_seal_image(seal_image_factory())
        bad = normalize_seal_image(seal_image_factory(dots=[]))

        assert good.shape == bad.shape == (NORMALIZED_SIZE, NORMALIZED_SIZE, 4)

    def test_process_with_custom_config(self, canonical_seal_image):
        """A custom config is used instead of the file."""
        from src.seal_alignment.config_loader import load_config

        config = load_config()
        config.candidates.min_area = 500  # Larger than any dot

        result = process_seal(canonical_seal_image, config=config)

        assert result.failure_reason == FailureReason.NO_LANDMARKS
