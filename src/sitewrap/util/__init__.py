"""
Shared filesystem helpers.
"""

from .filesystem import file_lock, read_text_file, safe_remove, write_text_file

__all__ = [
    "file_lock",
    "read_text_file",
    "safe_remove",
    "write_text_file",
]
