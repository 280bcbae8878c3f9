"""
Shared Constants for the Seal Alignment Pipeline

This module contains the canonical seal template. Every normalized image
shares this frame, so the values must not change between releases:
previously normalized snapshots are compared pixel-for-pixel against new ones.
"""

# ============================================================================
# Reference Template
# ============================================================================
# The template was measured on a 362x362 reference image of the seal.
REFERENCE_TEMPLATE_SIZE = 362

# Dot positions on the reference image, ordered [apex, base-1, base-2].
# The apex is the dot that is not part of the shortest pairwise segment.
REFERENCE_DOTS = ((184.0, 27.0), (96.0, 304.0), (270.0, 301.0))

# Seal boundary on the reference image (center x, center y, radius)
REFERENCE_RING = (181.0, 181.0, 180.0)

# ============================================================================
# Canonical Output Frame
# ============================================================================
NORMALIZED_SIZE = 1024  # Side length of every normalized raster

_SCALE = NORMALIZED_SIZE / REFERENCE_TEMPLATE_SIZE

CANONICAL_DOTS = tuple((x * _SCALE, y * _SCALE) for x, y in REFERENCE_DOTS)
CANONICAL_RING = tuple(v * _SCALE for v in REFERENCE_RING)

# ============================================================================
# Pin Inspection Points
# ============================================================================
# Fractions of the normalized raster, one pin near each fiducial dot
PIN_POINTS = ((0.5, 0.2), (0.26, 0.77), (0.74, 0.77))
PIN_CROP_SIZE = 256  # Output side length of one pin crop
PIN_SOURCE_RADIUS = 130  # Half-width of the sampled square, in normalized px
