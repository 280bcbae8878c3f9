"""
Affine solve from three point correspondences.

An affine map is fully determined by three non-collinear correspondences.
Each output coordinate is an independent 3x3 linear system over the rows
(x, y, 1) of the observed points, solved here by Gaussian elimination with
partial pivoting so that near-singular input is reported instead of
producing a wild transform.
"""

import logging
from typing import Optional, Sequence, Tuple

import numpy as np

from src.common.types import Point
from src.seal_alignment.types import AffineTransform

logger = logging.getLogger(__name__)

DEFAULT_PIVOT_EPSILON = 1e-8


def gaussian_solve(
    matrix: np.ndarray, rhs: np.ndarray, pivot_epsilon: float = DEFAULT_PIVOT_EPSILON
) -> Optional[np.ndarray]:
    """
    Solve ``matrix @ x = rhs`` by Gaussian elimination with partial pivoting.

    Args:
        matrix: Square (n, n) coefficient matrix.
        rhs: Right-hand side of shape (n,).
        pivot_epsilon: Smallest acceptable pivot magnitude.

    Returns:
        Solution of shape (n,), or None if any pivot falls below
        ``pivot_epsilon``.
    """
    a = np.array(matrix, dtype=np.float64)
    b = np.array(rhs, dtype=np.float64)
    n = a.shape[0]

    for col in range(n):
        pivot_row = col + int(np.argmax(np.abs(a[col:, col])))
        if abs(a[pivot_row, col]) < pivot_epsilon:
            return None
        if pivot_row != col:
            a[[col, pivot_row]] = a[[pivot_row, col]]
            b[[col, pivot_row]] = b[[pivot_row, col]]

        for row in range(col + 1, n):
            factor = a[row, col] / a[col, col]
            a[row, col:] -= factor * a[col, col:]
            b[row] -= factor * b[col]

    x = np.zeros(n, dtype=np.float64)
    for row in range(n - 1, -1, -1):
        x[row] = (b[row] - a[row, row + 1 :] @ x[row + 1 :]) / a[row, row]

    return x


def solve_affine(
    src: Sequence[Point],
    dst: Sequence[Point],
    pivot_epsilon: float = DEFAULT_PIVOT_EPSILON,
) -> Optional[AffineTransform]:
    """
    Fit the affine map taking three source points onto three targets.

    Args:
        src: Observed points.
        dst: Target points, in corresponding order.
        pivot_epsilon: Smallest acceptable pivot magnitude.

    Returns:
        The transform, or None for collinear / near-singular input.

    Raises:
        ValueError: If either side does not hold exactly 3 points.

    Example:
        >>> t = solve_affine(observed, template.dots)
        >>> t.apply(observed[0])  # ~= template.dots[0]
    """
    if len(src) != 3 or len(dst) != 3:
        raise ValueError(
            f"Expected exactly 3 correspondences, got {len(src)} -> {len(dst)}"
        )

    rows = np.array([[p.x, p.y, 1.0] for p in src], dtype=np.float64)

    x_coeffs = gaussian_solve(rows, [p.x for p in dst], pivot_epsilon)
    y_coeffs = gaussian_solve(rows, [p.y for p in dst], pivot_epsilon)
    if x_coeffs is None or y_coeffs is None:
        logger.debug("Affine solve failed: near-singular point configuration")
        return None

    a, c, e = x_coeffs
    b, d, f = y_coeffs
    return AffineTransform(
        a=float(a), b=float(b), c=float(c), d=float(d), e=float(e), f=float(f)
    )


def select_orientation_preserving(
    attempts: Sequence[Optional[AffineTransform]],
) -> Optional[AffineTransform]:
    """Return the first transform with a positive determinant, if any."""
    for transform in attempts:
        if transform is not None and transform.preserves_orientation:
            return transform
    return None


def solve_with_base_ambiguity(
    ordered: Sequence[Point],
    canonical: Sequence[Point],
    pivot_epsilon: float = DEFAULT_PIVOT_EPSILON,
) -> Tuple[Optional[AffineTransform], list[Optional[AffineTransform]]]:
    """
    Solve with the base pair as found and swapped.

    The two base dots are similar enough that the orderer cannot tell them
    apart reliably; the assignment that produces a mirrored map
    (non-positive determinant) is the wrong one.

    Args:
        ordered: Observed [apex, base-1, base-2].
        canonical: Template [apex, base-1, base-2].
        pivot_epsilon: Smallest acceptable pivot magnitude.

    Returns:
        Tuple of (chosen, attempts). ``chosen`` is the first
        orientation-preserving solution or None; ``attempts`` holds both raw
        solutions (as found, swapped) for diagnostics.
    """
    apex, base_1, base_2 = ordered
    attempts = [
        solve_affine([apex, base_1, base_2], canonical, pivot_epsilon),
        solve_affine([apex, base_2, base_1], canonical, pivot_epsilon),
    ]

    chosen = select_orientation_preserving(attempts)

    dets = [f"{t.determinant:.4f}" if t is not None else "n/a" for t in attempts]
    if chosen is None:
        logger.warning(f"No orientation-preserving affine solution (det: {dets})")
    else:
        logger.debug(f"Affine solutions det={dets}, chose det={chosen.determinant:.4f}")

    return chosen, attempts
