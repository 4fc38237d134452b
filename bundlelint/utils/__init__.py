"""Utility helpers for the linter."""

from .fileio import read_yaml_file, write_text_file
from .manifest import load_bundle, bundle_from_dict

__all__ = [
    "read_yaml_file",
    "write_text_file",
    "load_bundle",
    "bundle_from_dict",
]
