"""
Pytest Configuration and Shared Fixtures

This file contains pytest configuration and fixtures that are available
to all test modules.
"""

import pytest

BACKGROUND = 235  # Light paper
RING_GRAY = 150  # Printed seal boundary, well above the dark threshold
DOT_RADIUS = 20  # Output px at NORMALIZED_SIZE


def _draw_seal(size, channels, dots, dot_radius, extra_blobs=()):
    import cv2
    import numpy as np

    from src.utils.constants import CANONICAL_DOTS, CANONICAL_RING, NORMALIZED_SIZE

    scale = size / NORMALIZED_SIZE
    shape = (size, size) if channels == 1 else (size, size, channels)
    image = np.full(shape, BACKGROUND, dtype=np.uint8)
    if channels == 4:
        image[..., 3] = 255

    def color(value):
        return (value, value, value, 255) if channels == 4 else (value, value, value)

    def fixed(v):
        # cv2 drawing takes fixed-point coordinates with shift=4
        return int(round(v * 16))

    cx, cy, r = CANONICAL_RING
    cv2.circle(
        image,
        (fixed(cx * scale), fixed(cy * scale)),
        fixed(r * scale * 0.995),
        color(RING_GRAY),
        thickness=3,
        lineType=cv2.LINE_AA,
        shift=4,
    )

    chosen = CANONICAL_DOTS if dots is None else dots
    for x, y in chosen:
        cv2.circle(
            image,
            (fixed(x * scale), fixed(y * scale)),
            fixed(dot_radius * scale),
            color(0),
            thickness=-1,
            lineType=cv2.LINE_AA,
            shift=4,
        )

    for (x, y), radius in extra_blobs:
        cv2.circle(
            image,
            (fixed(x * scale), fixed(y * scale)),
            fixed(radius * scale),
            color(0),
            thickness=-1,
            lineType=cv2.LINE_AA,
            shift=4,
        )

    return image


@pytest.fixture
def seal_image_factory():
    """
    Fixture providing a factory for synthetic seal images.

    Dots and blobs are given in canonical (1024) coordinates and scaled to
    ``size``. ``dots=None`` draws the three canonical dots.
    """

    def factory(
        size=1024, channels=4, dots=None, dot_radius=DOT_RADIUS, extra_blobs=()
    ):
        return _draw_seal(size, channels, dots, dot_radius, extra_blobs)

    return factory


@pytest.fixture
def canonical_seal_image(seal_image_factory):
    """Fixture providing an RGBA seal with dots exactly on the template."""
    return seal_image_factory()


@pytest.fixture
def rotate_image():
    """
    Fixture providing a rotate/scale helper about the image center.

    Returns (warped_image, 2x3 forward matrix). Uncovered areas are filled
    with background paper.
    """
    import cv2

    def rotate(image, angle, scale=1.0):
        h, w = image.shape[:2]
        center = ((w - 1) / 2.0, (h - 1) / 2.0)
        matrix = cv2.getRotationMatrix2D(center, angle, scale)
        fill = (BACKGROUND, BACKGROUND, BACKGROUND, 255)
        warped = cv2.warpAffine(
            image,
            matrix,
            (w, h),
            flags=cv2.INTER_LINEAR,
            borderMode=cv2.BORDER_CONSTANT,
            borderValue=fill,
        )
        return warped, matrix

    return rotate


@pytest.fixture
def canonical_points():
    """Fixture providing the canonical dots as Points [apex, base-1, base-2]."""
    from src.seal_alignment.types import SealTemplate

    return list(SealTemplate.default().dots)
