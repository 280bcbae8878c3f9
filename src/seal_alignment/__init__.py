"""
Seal Alignment: fiducial-dot detection and rectification

Brings a photograph of a three-dot tamper-evident seal into the canonical
frame so that two captures of the same seal are pixel-for-pixel comparable.

Pipeline stages:
1. Square crop to the normalized resolution
2. Dot mask inside the expected annulus
3. Connected components (8-connectivity)
4. Candidate filter and template-matching triple search
5. Apex ordering
6. Affine solve (orientation-preserving)
7. Rectification and ring masking

Any failure after stage 1 returns the square crop unchanged.
"""

from src.seal_alignment.affine_solver import solve_affine, solve_with_base_ambiguity
from src.seal_alignment.config_loader import load_config
from src.seal_alignment.image_rectification import rectify_to_template, square_crop
from src.seal_alignment.pin_crops import (
    build_blink_frames,
    build_pin_comparison,
    extract_pin_crops,
)
from src.seal_alignment.processor import (
    SealNormalizer,
    normalize_seal_image,
    process_seal,
)
from src.seal_alignment.types import (
    AffineTransform,
    FailureReason,
    NormalizationResult,
    NormalizationStatus,
    SealAlignmentConfig,
    SealTemplate,
)

__all__ = [
    "SealNormalizer",
    "normalize_seal_image",
    "process_seal",
    "load_config",
    "square_crop",
    "rectify_to_template",
    "solve_affine",
    "solve_with_base_ambiguity",
    "extract_pin_crops",
    "build_pin_comparison",
    "build_blink_frames",
    "AffineTransform",
    "FailureReason",
    "NormalizationResult",
    "NormalizationStatus",
    "SealAlignmentConfig",
    "SealTemplate",
]
