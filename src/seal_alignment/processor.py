"""
Main processor for the Seal Alignment module.

Orchestrates the complete pipeline:
1. Square crop to the normalized resolution
2. Dot mask (dark samples inside the dot annulus)
3. Connected components
4. Candidate filter and triple selection
5. Apex ordering
6. Affine solve (with base-pair ambiguity)
7. Rectification onto the canonical template

Every failure after the square crop falls back to returning the square crop
unchanged; the result object records why.
"""

import logging
from pathlib import Path
from typing import Optional

import numpy as np

from src.common.types import ImageBuffer
from src.seal_alignment.affine_solver import solve_with_base_ambiguity
from src.seal_alignment.config_loader import load_config
from src.seal_alignment.dot_mask import build_dot_mask, extract_components
from src.seal_alignment.image_rectification import rectify_to_template, square_crop
from src.seal_alignment.landmarks import (
    filter_candidates,
    order_triple,
    select_best_triple,
)
from src.seal_alignment.types import (
    FailureReason,
    NormalizationResult,
    NormalizationStatus,
    SealAlignmentConfig,
    SealTemplate,
)

logger = logging.getLogger(__name__)


class SealNormalizer:
    """
    Brings a seal photograph into the canonical frame.

    ``process`` never modifies the configuration or the input image, so one
    instance can be shared freely. Derive variants with
    ``dataclasses.replace`` rather than editing ``normalizer.config``.

    Example:
        >>> normalizer = SealNormalizer()
        >>> result = normalizer.process(photo)
        >>> if not result.is_rectified():
        ...     print(result.get_error_message())
        >>> save_image(result.image, "snapshot.png")
    """

    def __init__(
        self,
        config: Optional[SealAlignmentConfig] = None,
        config_path: Optional[Path] = None,
        template: Optional[SealTemplate] = None,
    ):
        """
        Initialize the normalizer.

        Args:
            config: Pre-loaded configuration object. If None, will load from file.
            config_path: Path to config file. If None, uses default location.
            template: Canonical template. Defaults to the shared constants.
        """
        if config is not None:
            self.config = config
            logger.info("Using provided configuration")
        else:
            self.config = load_config(config_path) if config_path else load_config()
            logger.info("Loaded configuration from file")

        self.template = template if template is not None else SealTemplate.default()

    def process(self, image: np.ndarray) -> NormalizationResult:
        """
        Execute the complete normalization pipeline.

        Args:
            image: Decoded photograph, uint8, (H, W), (H, W, 3) RGB or
                (H, W, 4) RGBA. Not modified.

        Returns:
            NormalizationResult whose ``image`` is always a
            template.size square raster: rectified on success, the plain
            square crop on fallback.

        Raises:
            ValueError: If the image is empty or malformed.
        """
        buffer = ImageBuffer(data=image)

        logger.info(
            f"Normalizing seal image {buffer.width}x{buffer.height} "
            f"({buffer.channels} channels)"
        )

        # Stage 1: Square crop (entry boundary and fallback image)
        square = square_crop(
            buffer.data,
            self.template.size,
            self.config.processing.resize_interpolation,
        )

        # Stages 2-3: Dot mask and connected components
        mask = build_dot_mask(square, self.config.mask)
        components = extract_components(mask)

        # Stage 4: Candidate filter and triple selection
        candidates = filter_candidates(
            components,
            mask_size=self.config.mask.working_size,
            output_size=self.template.size,
            config=self.config.candidates,
        )
        if len(candidates) < 3:
            logger.warning(
                f"Fallback: only {len(candidates)} dot candidates, need 3"
            )
            return self._fallback(
                square, FailureReason.NO_LANDMARKS, candidate_count=len(candidates)
            )

        is_match, best = select_best_triple(
            candidates, self.template, self.config.scoring
        )
        if not is_match:
            logger.warning("Fallback: no dot triple matches the template")
            return self._fallback(
                square,
                FailureReason.NO_MATCHING_TRIPLE,
                candidate_count=len(candidates),
                triple_score=best.score if best is not None else None,
            )

        # Stage 5: Apex ordering
        ordered = order_triple(best.points)
        if ordered is None:
            logger.warning("Fallback: apex dot could not be identified")
            return self._fallback(
                square,
                FailureReason.NO_APEX,
                candidate_count=len(candidates),
                triple_score=best.score,
            )

        # Stage 6: Affine solve
        transform, attempts = solve_with_base_ambiguity(
            ordered, self.template.dots, self.config.solver.pivot_epsilon
        )
        if transform is None:
            reason = (
                FailureReason.SINGULAR_GEOMETRY
                if all(t is None for t in attempts)
                else FailureReason.NO_ORIENTATION_PRESERVING_SOLUTION
            )
            logger.warning(f"Fallback: affine solve failed ({reason.value})")
            return self._fallback(
                square,
                reason,
                candidate_count=len(candidates),
                triple_score=best.score,
                ordered_dots=ordered,
            )

        # Stage 7: Rectification
        rectified = rectify_to_template(
            square,
            transform,
            self.template,
            self.config.processing.warp_interpolation,
        )

        logger.info(f"Seal rectified (triple score {best.score:.3f})")

        return NormalizationResult(
            status=NormalizationStatus.RECTIFIED,
            image=rectified,
            failure_reason=FailureReason.NONE,
            transform=transform,
            ordered_dots=ordered,
            triple_score=best.score,
            candidate_count=len(candidates),
        )

    @staticmethod
    def _fallback(
        square: np.ndarray, reason: FailureReason, **diagnostics
    ) -> NormalizationResult:
        return NormalizationResult(
            status=NormalizationStatus.FALLBACK,
            image=square,
            failure_reason=reason,
            **diagnostics,
        )


def process_seal(
    image: np.ndarray, config: Optional[SealAlignmentConfig] = None
) -> NormalizationResult:
    """
    Convenience function for one-shot normalization with diagnostics.

    Args:
        image: Decoded photograph.
        config: Optional custom configuration. Uses default if None.

    Returns:
        NormalizationResult object.
    """
    return SealNormalizer(config=config).process(image)


def normalize_seal_image(
    image: np.ndarray, config: Optional[SealAlignmentConfig] = None
) -> np.ndarray:
    """
    Normalize a seal photograph, falling back silently.

    The output alone does not tell "rectified" apart from "square crop
    returned unchanged"; use ``process_seal`` when the caller needs to know.

    Example:
        >>> photo = load_image("seal.jpg")
        >>> save_image(normalize_seal_image(photo), "seal_normalized.png")
    """
    return process_seal(image, config=config).image
