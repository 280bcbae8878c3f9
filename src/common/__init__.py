"""
Common types and utilities shared across all modules.

This module provides standardized data types for the seal alignment pipeline,
ensuring consistency and type safety between capture, normalization and
comparison code.
"""

from src.common.types import ImageBuffer, Point

__all__ = ["ImageBuffer", "Point"]
