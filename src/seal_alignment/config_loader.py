"""
Configuration loader for the Seal Alignment module.

Loads and validates configuration from config.yaml file.
"""

import logging
from pathlib import Path
from typing import Any, Dict

import yaml

from src.seal_alignment.types import (
    CandidateConfig,
    MaskConfig,
    ProcessingConfig,
    ScoringConfig,
    SealAlignmentConfig,
    SolverConfig,
)

logger = logging.getLogger(__name__)

# Default configuration path (relative to this file)
DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"

VALID_INTERPOLATIONS = ["linear", "cubic", "nearest", "area", "lanczos"]


def load_config(config_path: Path = DEFAULT_CONFIG_PATH) -> SealAlignmentConfig:
    """
    Load seal alignment configuration from YAML file.

    Args:
        config_path: Path to the configuration YAML file.

    Returns:
        Validated SealAlignmentConfig object.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValueError: If config is invalid or missing required fields.

    Example:
        >>> config = load_config()
        >>> print(config.scoring.max_score)
        2.4
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    logger.debug(f"Loading seal alignment config from {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        raw_config = yaml.safe_load(f)

    try:
        config = _parse_config(raw_config)
        _validate_config(config)
        logger.info("Successfully loaded seal alignment configuration")
        return config
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Invalid configuration file: {e}") from e


def _parse_config(raw: Dict[str, Any]) -> SealAlignmentConfig:
    """Parse raw dictionary into structured config objects."""
    mask = raw["mask"]
    candidates = raw["candidates"]
    scoring = raw["scoring"]

    return SealAlignmentConfig(
        mask=MaskConfig(
            working_size=int(mask["working_size"]),
            annulus_inner=float(mask["annulus_inner"]),
            annulus_outer=float(mask["annulus_outer"]),
            dark_threshold=float(mask["dark_threshold"]),
        ),
        candidates=CandidateConfig(
            min_area=int(candidates["min_area"]),
            max_area=int(candidates["max_area"]),
            max_candidates=int(candidates["max_candidates"]),
        ),
        scoring=ScoringConfig(
            short_ratio_target=float(scoring["short_ratio_target"]),
            mid_ratio_target=float(scoring["mid_ratio_target"]),
            radius_fraction=float(scoring["radius_fraction"]),
            short_ratio_weight=float(scoring["short_ratio_weight"]),
            mid_ratio_weight=float(scoring["mid_ratio_weight"]),
            min_max_distance=float(scoring["min_max_distance"]),
            max_score=float(scoring["max_score"]),
        ),
        solver=SolverConfig(
            pivot_epsilon=float(raw["solver"]["pivot_epsilon"]),
        ),
        processing=ProcessingConfig(
            resize_interpolation=str(raw["processing"]["resize_interpolation"]),
            warp_interpolation=str(raw["processing"]["warp_interpolation"]),
        ),
    )


def _validate_config(config: SealAlignmentConfig) -> None:
    """
    Validate configuration values for logical consistency.

    Raises:
        ValueError: If any configuration value is invalid.
    """
    mask = config.mask
    if mask.working_size < 16:
        raise ValueError("working_size must be at least 16")

    if not 0 <= mask.annulus_inner < mask.annulus_outer <= 1.0:
        raise ValueError(
            f"Annulus bounds must satisfy 0 <= inner < outer <= 1, "
            f"got inner={mask.annulus_inner}, outer={mask.annulus_outer}"
        )

    if not 0 < mask.dark_threshold <= 255:
        raise ValueError("dark_threshold must be in (0, 255]")

    candidates = config.candidates
    if candidates.min_area < 1:
        raise ValueError("min_area must be at least 1")

    if candidates.min_area > candidates.max_area:
        raise ValueError(
            f"min_area ({candidates.min_area}) must not exceed "
            f"max_area ({candidates.max_area})"
        )

    if candidates.max_candidates < 3:
        raise ValueError("max_candidates must be at least 3")

    scoring = config.scoring
    if scoring.radius_fraction <= 0:
        raise ValueError("radius_fraction must be positive")

    if scoring.short_ratio_weight < 0 or scoring.mid_ratio_weight < 0:
        raise ValueError("Scoring weights cannot be negative")

    if scoring.min_max_distance < 0:
        raise ValueError("min_max_distance cannot be negative")

    if scoring.max_score <= 0:
        raise ValueError("max_score must be positive")

    if config.solver.pivot_epsilon <= 0:
        raise ValueError("pivot_epsilon must be positive")

    for name in ("resize_interpolation", "warp_interpolation"):
        value = getattr(config.processing, name)
        if value not in VALID_INTERPOLATIONS:
            raise ValueError(
                f"Invalid {name}: {value}. Must be one of {VALID_INTERPOLATIONS}"
            )

    logger.debug("Configuration validation passed")
