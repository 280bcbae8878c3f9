"""
Landmark selection for the Seal Alignment module.

Turns dark blobs into the three fiducial dots:
1. Area filter and rescale to output coordinates
2. Brute-force search for the triple matching the template geometry
3. Apex identification and ordering
"""

import logging
from itertools import combinations
from typing import Optional, Sequence, Tuple

import numpy as np

from src.common.types import Point
from src.seal_alignment.types import (
    Candidate,
    CandidateConfig,
    Component,
    ScoringConfig,
    SealTemplate,
    TripleMatch,
)

logger = logging.getLogger(__name__)


def filter_candidates(
    components: Sequence[Component],
    mask_size: int,
    output_size: int,
    config: CandidateConfig,
) -> list[Candidate]:
    """
    Keep plausibly dot-sized components and move them to output space.

    Args:
        components: Connected components in mask coordinates.
        mask_size: Side length of the mask the components come from.
        output_size: Side length of the canonical output frame.
        config: Area bounds and candidate cap.

    Returns:
        Candidates sorted by area (largest first), at most
        ``config.max_candidates`` of them.
    """
    scale = output_size / mask_size
    kept = [
        Candidate(
            # Pixel-center aligned rescale from mask to output grid
            x=(comp.centroid[0] + 0.5) * scale - 0.5,
            y=(comp.centroid[1] + 0.5) * scale - 0.5,
            area=comp.area,
        )
        for comp in components
        if config.min_area <= comp.area <= config.max_area
    ]
    kept.sort(key=lambda c: c.area, reverse=True)
    candidates = kept[: config.max_candidates]

    logger.debug(
        f"Candidate filter: {len(components)} components -> "
        f"{len(kept)} in area range [{config.min_area}, {config.max_area}], "
        f"{len(candidates)} kept"
    )

    return candidates


def score_triple(
    points: Sequence[Point], template: SealTemplate, config: ScoringConfig
) -> Optional[float]:
    """
    Score how well three points match the template geometry (lower is better).

    The signature of the real template is one short base edge, two
    near-equal long edges, and all three dots at a consistent radius.

    Args:
        points: Exactly 3 points in output coordinates.
        template: Canonical template (ring center and radius).
        config: Scoring targets and weights.

    Returns:
        The score, or None if the points are too clustered to be the
        fiducials.
    """
    p0, p1, p2 = points
    short_dist, mid_dist, max_dist = sorted(
        (p0.distance_to(p1), p0.distance_to(p2), p1.distance_to(p2))
    )
    if max_dist < config.min_max_distance:
        return None

    short_ratio = short_dist / max_dist
    mid_ratio = mid_dist / max_dist

    ring_r = template.ring_radius
    radii = np.array([p.distance_to(template.ring_center) for p in points])
    mean_radius = float(radii.mean())
    radius_spread = float(radii.max() - radii.min())

    return (
        config.short_ratio_weight * abs(short_ratio - config.short_ratio_target)
        + config.mid_ratio_weight * abs(mid_ratio - config.mid_ratio_target)
        + abs(mean_radius - config.radius_fraction * ring_r) / ring_r
        + radius_spread / ring_r
    )


def find_best_triple(
    candidates: Sequence[Candidate], template: SealTemplate, config: ScoringConfig
) -> Optional[TripleMatch]:
    """
    Exhaustively score every 3-combination of candidates.

    Returns:
        The lowest-scoring triple regardless of threshold, or None if every
        triple was rejected (or there are fewer than 3 candidates).
    """
    points = [c.to_point() for c in candidates]
    best: Optional[TripleMatch] = None

    for i, j, k in combinations(range(len(candidates)), 3):
        score = score_triple((points[i], points[j], points[k]), template, config)
        if score is None:
            continue
        if best is None or score < best.score:
            best = TripleMatch(
                candidates=(candidates[i], candidates[j], candidates[k]),
                score=score,
            )

    return best


def select_best_triple(
    candidates: Sequence[Candidate], template: SealTemplate, config: ScoringConfig
) -> Tuple[bool, Optional[TripleMatch]]:
    """
    Pick the triple that best matches the template.

    Args:
        candidates: Output-space candidates (at least 3 expected).
        template: Canonical template.
        config: Scoring configuration; ``max_score`` is the acceptance bound.

    Returns:
        Tuple of (is_match, best). ``best`` is returned even when it misses
        the threshold so callers can report its score.

    Example:
        >>> is_match, best = select_best_triple(candidates, template, config)
        >>> if is_match:
        ...     ordered = order_triple(best.points)
    """
    best = find_best_triple(candidates, template, config)

    if best is None:
        logger.warning("No candidate triple is spread wide enough to score")
        return False, None

    is_match = best.score < config.max_score
    if is_match:
        logger.info(f"Best dot triple score {best.score:.3f} < {config.max_score}")
    else:
        logger.warning(
            f"Best dot triple score {best.score:.3f} >= {config.max_score}, "
            "no triple matches the template"
        )

    return is_match, best


def order_triple(points: Sequence[Point]) -> Optional[list[Point]]:
    """
    Order three dots as [apex, base-1, base-2].

    The base is the shortest pairwise segment; the apex is the remaining
    dot. Base order is as found and may need swapping (see the affine solver).

    Args:
        points: Exactly 3 points.

    Returns:
        Ordered list, or None if no apex could be identified.

    Raises:
        ValueError: If not given exactly 3 points.
    """
    if len(points) != 3:
        raise ValueError(f"Expected exactly 3 points, got {len(points)}")

    pairs = [(0, 1), (0, 2), (1, 2)]
    base = min(pairs, key=lambda ij: points[ij[0]].distance_to(points[ij[1]]))
    apex_index = next((i for i in range(3) if i not in base), None)
    if apex_index is None:
        logger.warning("Could not identify apex dot")
        return None

    ordered = [points[apex_index], points[base[0]], points[base[1]]]
    logger.debug(f"Ordered triple: apex={ordered[0]}, base={ordered[1:]}")

    return ordered
