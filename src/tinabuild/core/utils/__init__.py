"""Shared helpers for tinabuild core."""

from .merge import deep_merge, merge_layers, merge_lists

__all__ = ["deep_merge", "merge_layers", "merge_lists"]
