"""
I/O Utilities

File input/output operations. Rasters on disk use OpenCV's BGR(A) order;
in memory the pipeline works in RGB(A).
"""

import json
from pathlib import Path
from typing import Any, Dict, Union

import cv2
import numpy as np

from src.common.types import ImageBuffer


def load_image(file_path: Union[str, Path]) -> np.ndarray:
    """
    Decode an image file into an RGBA uint8 array.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If OpenCV cannot decode the file.
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise FileNotFoundError(f"Image not found: {file_path}")

    decoded = cv2.imread(str(file_path), cv2.IMREAD_UNCHANGED)
    if decoded is None:
        raise ValueError(f"Could not decode image: {file_path}")

    if decoded.dtype != np.uint8:
        # 16-bit PNG/TIFF
        decoded = (decoded / 257).astype(np.uint8)

    if decoded.ndim == 2:
        return cv2.cvtColor(decoded, cv2.COLOR_GRAY2RGBA)
    if decoded.shape[2] == 4:
        return cv2.cvtColor(decoded, cv2.COLOR_BGRA2RGBA)
    return cv2.cvtColor(decoded, cv2.COLOR_BGR2RGBA)


def save_image(image: np.ndarray, file_path: Union[str, Path]) -> Path:
    """
    Encode an RGB(A) or grayscale array to disk; format follows the suffix.

    Raises:
        ValueError: If the image is invalid.
        IOError: If OpenCV fails to write the file.
    """
    buffer = ImageBuffer(data=image)
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    if buffer.channels == 4:
        encoded = cv2.cvtColor(buffer.data, cv2.COLOR_RGBA2BGRA)
    elif buffer.channels == 3:
        encoded = cv2.cvtColor(buffer.data, cv2.COLOR_RGB2BGR)
    else:
        encoded = buffer.data

    if not cv2.imwrite(str(file_path), encoded):
        raise IOError(f"Failed to write image: {file_path}")

    return file_path


def save_json(
    data: Dict[str, Any], file_path: Union[str, Path], indent: int = 2
) -> Path:
    """Write a JSON report (UTF-8), creating parent directories."""
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    with open(file_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=indent, ensure_ascii=False)

    return file_path
