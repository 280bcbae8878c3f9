"""
Dot mask building and connected-component extraction.

The fiducial dots live in an annular band between the seal's center artwork
and its outer rim. Only that band is thresholded, which keeps unrelated
print near the center or the edge out of the candidate set.
"""

import logging

import cv2
import numpy as np

from src.common.types import ImageBuffer
from src.seal_alignment.types import Component, MaskConfig

logger = logging.getLogger(__name__)


def annulus_mask(size: int, inner: float, outer: float) -> np.ndarray:
    """
    Boolean mask of samples whose center lies in [inner*R, outer*R].

    ``R`` is the half-width of the ``size x size`` grid, measured from the
    grid center to pixel centers.
    """
    half = size / 2.0
    coords = np.arange(size, dtype=np.float64) + 0.5 - half
    dist = np.hypot(coords[np.newaxis, :], coords[:, np.newaxis])
    return (dist >= inner * half) & (dist <= outer * half)


def build_dot_mask(square: np.ndarray, config: MaskConfig) -> np.ndarray:
    """
    Build the binary mask of dark samples inside the dot annulus.

    Args:
        square: Square-cropped raster (any supported channel layout).
        config: Mask configuration (working size, annulus, threshold).

    Returns:
        uint8 array of shape (working_size, working_size) with values 0/1.
        Samples outside the annulus are always 0.
    """
    size = config.working_size
    sample = cv2.resize(square, (size, size), interpolation=cv2.INTER_AREA)
    luma = ImageBuffer(data=sample).luma()

    band = annulus_mask(size, config.annulus_inner, config.annulus_outer)
    mask = (band & (luma < config.dark_threshold)).astype(np.uint8)

    logger.debug(
        f"Dot mask: {int(mask.sum())} dark samples in annulus "
        f"[{config.annulus_inner:.2f}R, {config.annulus_outer:.2f}R] "
        f"at {size}x{size}"
    )

    return mask


def extract_components(mask: np.ndarray) -> list[Component]:
    """
    Label 8-connected regions of the mask.

    Diagonal neighbors are connected so that anti-aliased dot edges merge
    into one component.

    Args:
        mask: Binary uint8 mask (non-zero = set).

    Returns:
        One Component per region with its pixel count and centroid
        (x, y) in mask coordinates. Order is unspecified.
    """
    binary = (mask > 0).astype(np.uint8)
    num_labels, _, stats, centroids = cv2.connectedComponentsWithStats(
        binary, connectivity=8
    )

    # Label 0 is the background
    components = [
        Component(
            area=int(stats[label, cv2.CC_STAT_AREA]),
            centroid=(float(centroids[label, 0]), float(centroids[label, 1])),
        )
        for label in range(1, num_labels)
    ]

    logger.debug(f"Extracted {len(components)} connected components")

    return components
