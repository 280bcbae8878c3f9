"""
Common type definitions for the seal alignment pipeline.

This module provides Pydantic-based type definitions for the two core data
structures shared by every stage: raster images and 2D points.

These types provide:
- Type validation and conversion
- Consistent interfaces across modules
- Helper methods for common operations
- Integration with numpy arrays and OpenCV
"""

from typing import Tuple, Union

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator


class ImageBuffer(BaseModel):
    """
    Type-safe wrapper for raster images (numpy.ndarray).

    Rasters are handed in by the capture stage and are read-only to the
    pipeline. Channel order is RGB(A); OpenCV's BGR(A) order is converted at
    the I/O boundary (see ``src.utils.io``).

    Attributes:
        data: The underlying numpy array containing image data.
            Shape: (H, W, 4) for RGBA, (H, W, 3) for RGB, (H, W) for grayscale.
            Dtype: uint8 (0-255).

    Example:
        >>> raster = np.zeros((1500, 2000, 4), dtype=np.uint8)
        >>> buffer = ImageBuffer(data=raster)
        >>> print(buffer.height, buffer.width, buffer.channels)  # 1500 2000 4
    """

    data: np.ndarray = Field(..., description="Image data as numpy array")

    model_config = {"arbitrary_types_allowed": True}

    @field_validator("data")
    @classmethod
    def _validate_image(cls, v: np.ndarray) -> np.ndarray:
        """
        Validate that the numpy array is a usable raster.

        Raises:
            ValueError: If array is not a valid image format.
        """
        if not isinstance(v, np.ndarray):
            raise ValueError(f"Expected numpy.ndarray, got {type(v)}")

        if v.size == 0:
            raise ValueError("Image array is empty")

        if len(v.shape) not in (2, 3):
            raise ValueError(
                f"Expected 2D (grayscale) or 3D (color) image, got shape {v.shape}"
            )

        if len(v.shape) == 3 and v.shape[2] not in (1, 3, 4):
            raise ValueError(
                f"Expected 1, 3, or 4 channels for color image, got {v.shape[2]}"
            )

        if v.dtype != np.uint8:
            raise ValueError(
                f"Expected uint8 dtype for image, got {v.dtype}. "
                "Images should be in range [0, 255]"
            )

        return v

    @property
    def shape(self) -> Tuple[int, ...]:
        """Get image shape (H, W) or (H, W, C)."""
        return self.data.shape

    @property
    def height(self) -> int:
        """Get image height in pixels."""
        return int(self.data.shape[0])

    @property
    def width(self) -> int:
        """Get image width in pixels."""
        return int(self.data.shape[1])

    @property
    def channels(self) -> int:
        """Get number of channels (1 for grayscale, 3 for RGB, 4 for RGBA)."""
        if len(self.data.shape) == 2:
            return 1
        return int(self.data.shape[2])

    @property
    def has_alpha(self) -> bool:
        """Check if image carries an alpha channel."""
        return self.channels == 4

    def luma(self) -> np.ndarray:
        """
        Compute per-pixel luma (Rec. 601 weights) as float32.

        Returns:
            Array of shape (H, W) with values in [0, 255].
        """
        if self.channels == 1:
            return self.data.reshape(self.height, self.width).astype(np.float32)

        rgb = self.data[..., :3].astype(np.float32)
        return 0.299 * rgb[..., 0] + 0.587 * rgb[..., 1] + 0.114 * rgb[..., 2]

    def to_rgba(self) -> np.ndarray:
        """
        Convert to a new RGBA array of shape (H, W, 4).

        Grayscale is replicated into RGB; missing alpha becomes 255.
        """
        if self.channels == 4:
            return self.data.copy()

        if self.channels == 1:
            gray = self.data.reshape(self.height, self.width)
            rgb = np.stack([gray, gray, gray], axis=-1)
        else:
            rgb = self.data

        alpha = np.full((self.height, self.width, 1), 255, dtype=np.uint8)
        return np.concatenate([rgb, alpha], axis=-1)

    def __repr__(self) -> str:
        """String representation of ImageBuffer."""
        return f"ImageBuffer(shape={self.shape}, dtype={self.data.dtype})"


class Point(BaseModel):
    """
    Immutable 2D point (x, y) with sub-pixel precision.

    Coordinates follow the OpenCV convention: x grows to the right, y grows
    downward, and integer values sit on pixel centers.

    Example:
        >>> apex = Point(x=520.5, y=76.4)
        >>> apex.distance_to(Point(x=512, y=512))
        435.68...
    """

    model_config = ConfigDict(frozen=True)

    x: float = Field(..., description="X-coordinate (horizontal)")
    y: float = Field(..., description="Y-coordinate (vertical)")

    @field_validator("x", "y", mode="before")
    @classmethod
    def _convert_to_float(cls, v: Union[int, float, np.number]) -> float:
        """Convert numeric coordinate (including numpy scalars) to float."""
        if isinstance(v, (int, float, np.number)) and not isinstance(v, bool):
            return float(v)
        raise ValueError(f"Coordinate must be numeric, got {type(v)}")

    @classmethod
    def from_tuple(cls, coords: Tuple[float, float]) -> "Point":
        """Create Point from an (x, y) tuple."""
        if len(coords) != 2:
            raise ValueError(f"Expected 2 coordinates, got {len(coords)}")
        return cls(x=coords[0], y=coords[1])

    def to_tuple(self) -> Tuple[float, float]:
        """Convert Point to tuple (x, y)."""
        return (self.x, self.y)

    def distance_to(self, other: "Point") -> float:
        """Euclidean distance to another point."""
        return float(np.hypot(self.x - other.x, self.y - other.y))

    def __repr__(self) -> str:
        return f"Point(x={self.x:.2f}, y={self.y:.2f})"
