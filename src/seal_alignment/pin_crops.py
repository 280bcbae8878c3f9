"""
Fixed-offset inspection aids for two normalized seal images.

Because every normalized image shares the canonical frame, the same pixel
offsets land on the same physical spot of the seal. Pin crops zoom into one
spot near each fiducial dot; blink frames are the pair a viewer alternates
between.
"""

import logging
from typing import Sequence, Tuple

import cv2
import numpy as np

from src.common.types import ImageBuffer
from src.utils.constants import PIN_CROP_SIZE, PIN_POINTS, PIN_SOURCE_RADIUS

logger = logging.getLogger(__name__)


def extract_pin_crop(
    image: np.ndarray,
    point: Tuple[float, float],
    output_size: int = PIN_CROP_SIZE,
    source_radius: float = PIN_SOURCE_RADIUS,
) -> np.ndarray:
    """
    Zoom into one pin and clip it to a circle.

    The square of half-width ``source_radius`` centered on the pin is
    resampled to ``output_size x output_size``; everything outside the
    inscribed circle, and any part of the square beyond the image edge, is
    opaque black.

    Args:
        image: Normalized raster (any supported channel layout).
        point: Pin position as (x, y) fractions of the image size.
        output_size: Side length of the crop.
        source_radius: Half-width of the sampled square, in image pixels.

    Returns:
        RGBA array of shape (output_size, output_size, 4).
    """
    buffer = ImageBuffer(data=image)
    rgba = buffer.to_rgba()

    cx = buffer.width * point[0]
    cy = buffer.height * point[1]
    scale = output_size / (2.0 * source_radius)

    # Maps the sampled square onto the output grid (pixel-center aligned)
    matrix = np.array(
        [
            [scale, 0.0, (0.5 - cx + source_radius) * scale - 0.5],
            [0.0, scale, (0.5 - cy + source_radius) * scale - 0.5],
        ],
        dtype=np.float64,
    )
    crop = cv2.warpAffine(
        rgba,
        matrix,
        (output_size, output_size),
        flags=cv2.INTER_LINEAR,
        borderMode=cv2.BORDER_CONSTANT,
        borderValue=(0, 0, 0, 255),
    )

    half = output_size / 2.0
    coords = np.arange(output_size, dtype=np.float64) + 0.5 - half
    outside = np.hypot(coords[np.newaxis, :], coords[:, np.newaxis]) > half
    crop[outside] = (0, 0, 0, 255)

    return crop


def extract_pin_crops(
    image: np.ndarray, points: Sequence[Tuple[float, float]] = PIN_POINTS
) -> list[np.ndarray]:
    """Extract one circular crop per pin point."""
    return [extract_pin_crop(image, point) for point in points]


def build_pin_comparison(
    snapshot: np.ndarray,
    current: np.ndarray,
    points: Sequence[Tuple[float, float]] = PIN_POINTS,
) -> np.ndarray:
    """
    Lay out pin crops side by side: one row per pin, snapshot left.

    Args:
        snapshot: Previously stored normalized image.
        current: Newly captured normalized image.
        points: Pin positions as (x, y) fractions.

    Returns:
        RGBA grid of shape (len(points) * PIN_CROP_SIZE, 2 * PIN_CROP_SIZE, 4).

    Raises:
        ValueError: If the two images differ in size.
    """
    snap_buffer = ImageBuffer(data=snapshot)
    current_buffer = ImageBuffer(data=current)
    if (snap_buffer.width, snap_buffer.height) != (
        current_buffer.width,
        current_buffer.height,
    ):
        raise ValueError(
            f"Images must share the normalized frame, got "
            f"{snap_buffer.width}x{snap_buffer.height} and "
            f"{current_buffer.width}x{current_buffer.height}"
        )

    rows = [
        np.hstack([extract_pin_crop(snapshot, p), extract_pin_crop(current, p)])
        for p in points
    ]
    logger.debug(f"Built pin comparison with {len(rows)} pins")

    return np.vstack(rows)


def build_blink_frames(
    snapshot: np.ndarray, current: np.ndarray
) -> list[Tuple[str, np.ndarray]]:
    """
    Frames a blink-compare viewer alternates between, current image first.

    Scheduling the alternation is left to the caller.
    """
    return [("Current", current), ("Snapshot", snapshot)]
