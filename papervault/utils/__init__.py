"""Utility functions."""

from papervault.utils.text import clean_text, dedupe, file_extension, split_list

__all__ = ["clean_text", "dedupe", "file_extension", "split_list"]
