"""
Shared Utilities

Common functions used across all modules.
"""

from src.utils.io import load_image, save_image, save_json

__all__ = [
    "load_image",
    "save_image",
    "save_json",
]
