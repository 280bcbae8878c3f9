"""
Image Rectification Utilities

Provides the raster stages of the seal pipeline:
- Square cropping to the normalized resolution (entry boundary)
- Affine warping onto the canonical template
- Circular masking to the canonical seal ring
"""

import logging

import cv2
import numpy as np

from src.seal_alignment.types import AffineTransform, SealTemplate

logger = logging.getLogger(__name__)

INTERPOLATION_FLAGS = {
    "linear": cv2.INTER_LINEAR,
    "cubic": cv2.INTER_CUBIC,
    "nearest": cv2.INTER_NEAREST,
    "area": cv2.INTER_AREA,
    "lanczos": cv2.INTER_LANCZOS4,
}


def interpolation_flag(name: str) -> int:
    """
    Map a config interpolation name to the OpenCV flag.

    Raises:
        ValueError: If the name is unknown.
    """
    try:
        return INTERPOLATION_FLAGS[name]
    except KeyError:
        raise ValueError(
            f"Unknown interpolation '{name}'. "
            f"Must be one of {sorted(INTERPOLATION_FLAGS)}"
        ) from None


def _opaque_black(image: np.ndarray):
    """Border value painting opaque black for the image's channel layout."""
    if image.ndim == 3 and image.shape[2] == 4:
        return (0, 0, 0, 255)
    return (0, 0, 0)


def square_crop(
    image: np.ndarray, size: int, interpolation: str = "linear"
) -> np.ndarray:
    """
    Center-crop to a square and resample to ``size x size``.

    Shrinking always uses area interpolation (best anti-aliasing); enlarging
    uses the configured method.

    Args:
        image: Raster (H, W), (H, W, 1), (H, W, 3) or (H, W, 4).
        size: Output side length.
        interpolation: Interpolation name used when enlarging.

    Returns:
        New array of shape (size, size[, C]). Single-channel 3D input comes
        back as 2D grayscale.

    Raises:
        ValueError: If image is empty.

    Example:
        >>> photo = np.zeros((1500, 2000, 4), dtype=np.uint8)
        >>> square_crop(photo, 1024).shape
        (1024, 1024, 4)
    """
    if image is None or image.size == 0:
        raise ValueError("Invalid input image: image is None or empty")

    if image.ndim == 3 and image.shape[2] == 1:
        image = image[..., 0]

    height, width = image.shape[:2]
    side = min(width, height)
    x0 = (width - side) // 2
    y0 = (height - side) // 2
    region = image[y0 : y0 + side, x0 : x0 + side]

    logger.debug(
        f"Square crop: {width}x{height} -> {side}x{side} at ({x0}, {y0}), "
        f"resampled to {size}x{size}"
    )

    if side == size:
        return region.copy()

    flag = cv2.INTER_AREA if side > size else interpolation_flag(interpolation)
    return cv2.resize(region, (size, size), interpolation=flag)


def ring_mask(template: SealTemplate) -> np.ndarray:
    """
    Boolean mask of the canonical seal area.

    Returns:
        Array of shape (size, size), True inside (or on) the ring.
    """
    yy, xx = np.ogrid[: template.size, : template.size]
    dx = xx - template.ring_center.x
    dy = yy - template.ring_center.y
    return dx * dx + dy * dy <= template.ring_radius**2


def rectify_to_template(
    square: np.ndarray,
    transform: AffineTransform,
    template: SealTemplate,
    interpolation: str = "linear",
) -> np.ndarray:
    """
    Warp the square crop onto the canonical frame and clip to the seal ring.

    Areas the warp leaves uncovered and everything outside the ring become
    opaque black. RGBA output is fully opaque, so every normalized image
    shares the same outer silhouette.

    Args:
        square: Square-cropped raster.
        transform: Map from square-crop coordinates to canonical coordinates.
        template: Canonical template (output size and ring).
        interpolation: Interpolation name for the warp.

    Returns:
        New array of shape (template.size, template.size[, C]).

    Example:
        >>> template = SealTemplate.default()
        >>> out = rectify_to_template(square, AffineTransform.identity(), template)
    """
    if square is None or square.size == 0:
        raise ValueError("Invalid input image: image is None or empty")

    rectified = cv2.warpAffine(
        square,
        transform.to_matrix(),
        (template.size, template.size),
        flags=interpolation_flag(interpolation),
        borderMode=cv2.BORDER_CONSTANT,
        borderValue=_opaque_black(square),
    )

    inside = ring_mask(template)
    rectified[~inside] = 0
    if rectified.ndim == 3 and rectified.shape[2] == 4:
        rectified[..., 3] = 255

    logger.info(
        f"Rectified seal to {template.size}x{template.size} canonical frame "
        f"(det={transform.determinant:.3f})"
    )

    return rectified
