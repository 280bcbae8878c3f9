"""
Data types and structures for the Seal Alignment module.

Provides type-safe containers for configuration, intermediate detections
and results.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

import numpy as np

from src.common.types import Point
from src.utils.constants import CANONICAL_DOTS, CANONICAL_RING, NORMALIZED_SIZE


class NormalizationStatus(Enum):
    """Pipeline outcomes."""

    RECTIFIED = "RECTIFIED"
    FALLBACK = "FALLBACK"  # Square crop returned unchanged


class FailureReason(Enum):
    """Specific reasons for falling back to the square crop."""

    NO_LANDMARKS = "No Landmarks"  # Fewer than 3 plausible dot blobs
    NO_MATCHING_TRIPLE = "No Matching Triple"  # Best score above threshold
    NO_APEX = "No Apex"  # Triple could not be ordered
    SINGULAR_GEOMETRY = "Singular Geometry"  # Collinear / degenerate points
    NO_ORIENTATION_PRESERVING_SOLUTION = "Mirrored Solution"  # det <= 0
    NONE = "None"  # No failure (rectified)


@dataclass(frozen=True)
class SealTemplate:
    """
    Canonical seal layout in output coordinates.

    ``dots`` is ordered [apex, base-1, base-2].
    """

    size: int
    dots: tuple[Point, Point, Point]
    ring_center: Point
    ring_radius: float

    @classmethod
    def default(cls) -> "SealTemplate":
        """Template built from the shared canonical constants."""
        cx, cy, r = CANONICAL_RING
        return cls(
            size=NORMALIZED_SIZE,
            dots=tuple(Point.from_tuple(dot) for dot in CANONICAL_DOTS),
            ring_center=Point.from_tuple((cx, cy)),
            ring_radius=float(r),
        )


@dataclass
class MaskConfig:
    """Configuration for the dark-dot mask."""

    working_size: int  # Side length of the downsampled sample image
    annulus_inner: float  # Fraction of half-width
    annulus_outer: float  # Fraction of half-width
    dark_threshold: float  # Luma below this is "ink"


@dataclass
class CandidateConfig:
    """Configuration for blob filtering (areas in working-resolution pixels)."""

    min_area: int
    max_area: int
    max_candidates: int


@dataclass
class ScoringConfig:
    """
    Geometric signature of the three-dot template.

    score = w_s * |short/max - short_ratio_target|
          + w_m * |mid/max - mid_ratio_target|
          + |mean_radius - radius_fraction * ring_r| / ring_r
          + radius_spread / ring_r
    """

    short_ratio_target: float
    mid_ratio_target: float
    radius_fraction: float
    short_ratio_weight: float
    mid_ratio_weight: float
    min_max_distance: float  # Output px; tighter triples are rejected
    max_score: float  # Accept only scores strictly below this


@dataclass
class SolverConfig:
    """Configuration for the affine solve."""

    pivot_epsilon: float


@dataclass
class ProcessingConfig:
    """Configuration for resampling."""

    resize_interpolation: str  # Used when the square crop is enlarged
    warp_interpolation: str


@dataclass
class SealAlignmentConfig:
    """Complete seal alignment module configuration."""

    mask: MaskConfig
    candidates: CandidateConfig
    scoring: ScoringConfig
    solver: SolverConfig
    processing: ProcessingConfig


@dataclass(frozen=True)
class Component:
    """8-connected dark region in mask space."""

    area: int
    centroid: tuple[float, float]


@dataclass(frozen=True)
class Candidate:
    """Plausible dot, rescaled into canonical output space."""

    x: float
    y: float
    area: int

    def to_point(self) -> Point:
        return Point(x=self.x, y=self.y)


@dataclass(frozen=True)
class AffineTransform:
    """
    Affine map (x, y) -> (a*x + c*y + e, b*x + d*y + f).

    The coefficient layout matches ``cv2.warpAffine``:
    [[a, c, e], [b, d, f]].
    """

    a: float
    b: float
    c: float
    d: float
    e: float
    f: float

    @classmethod
    def identity(cls) -> "AffineTransform":
        return cls(a=1.0, b=0.0, c=0.0, d=1.0, e=0.0, f=0.0)

    @classmethod
    def from_matrix(cls, matrix: np.ndarray) -> "AffineTransform":
        """Build from a 2x3 (or 3x3 homogeneous) matrix."""
        m = np.asarray(matrix, dtype=np.float64)
        if m.shape not in ((2, 3), (3, 3)):
            raise ValueError(f"Expected a 2x3 or 3x3 matrix, got shape {m.shape}")
        return cls(
            a=float(m[0, 0]),
            b=float(m[1, 0]),
            c=float(m[0, 1]),
            d=float(m[1, 1]),
            e=float(m[0, 2]),
            f=float(m[1, 2]),
        )

    @property
    def determinant(self) -> float:
        return self.a * self.d - self.b * self.c

    @property
    def preserves_orientation(self) -> bool:
        return self.determinant > 0

    def to_matrix(self) -> np.ndarray:
        """2x3 float64 matrix suitable for ``cv2.warpAffine``."""
        return np.array(
            [[self.a, self.c, self.e], [self.b, self.d, self.f]], dtype=np.float64
        )

    def apply(self, point: Point) -> Point:
        return Point(
            x=self.a * point.x + self.c * point.y + self.e,
            y=self.b * point.x + self.d * point.y + self.f,
        )

    def apply_all(self, points: Sequence[Point]) -> list[Point]:
        return [self.apply(p) for p in points]


@dataclass
class TripleMatch:
    """Best-scoring candidate triple (unordered)."""

    candidates: tuple[Candidate, Candidate, Candidate]
    score: float

    @property
    def points(self) -> list[Point]:
        return [c.to_point() for c in self.candidates]


@dataclass
class NormalizationResult:
    """
    Output from the seal normalization pipeline.

    Attributes:
        status: RECTIFIED or FALLBACK.
        image: NORMALIZED_SIZE square raster. On FALLBACK this is the
            square crop, unchanged.
        failure_reason: Why the pipeline fell back, NONE when rectified.
        transform: Orientation-preserving affine map from the square crop onto
            the canonical frame (None on fallback before the solve).
        ordered_dots: Detected dots in output space, [apex, base-1, base-2].
        triple_score: Score of the winning triple (None if no triple scored).
        candidate_count: Number of blobs surviving the area filter.
    """

    status: NormalizationStatus
    image: np.ndarray
    failure_reason: FailureReason
    transform: Optional[AffineTransform] = None
    ordered_dots: Optional[list[Point]] = None
    triple_score: Optional[float] = None
    candidate_count: int = 0

    def is_rectified(self) -> bool:
        """Check if the image was brought into the canonical frame."""
        return self.status == NormalizationStatus.RECTIFIED

    def get_error_message(self) -> str:
        """Get human-readable status message."""
        if self.is_rectified():
            return "Seal rectified to canonical frame"

        reason_messages = {
            FailureReason.NO_LANDMARKS: (
                f"Only {self.candidate_count} dot candidates found (need 3)"
            ),
            FailureReason.NO_MATCHING_TRIPLE: (
                f"No dot triple matched the template (best score {self.triple_score:.2f})"
                if self.triple_score is not None
                else "No dot triple matched the template"
            ),
            FailureReason.NO_APEX: "Could not identify the apex dot",
            FailureReason.SINGULAR_GEOMETRY: "Dot positions are nearly collinear",
            FailureReason.NO_ORIENTATION_PRESERVING_SOLUTION: (
                "Only mirrored solutions were found"
            ),
        }

        return reason_messages.get(
            self.failure_reason, f"Fallback: {self.failure_reason.value}"
        )
