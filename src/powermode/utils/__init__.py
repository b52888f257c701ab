"""Common utility functions and helpers for the powermode package."""

from powermode.utils.file import atomic_write_text, ensure_directory_exists

__all__ = [
    "atomic_write_text",
    "ensure_directory_exists",
]
