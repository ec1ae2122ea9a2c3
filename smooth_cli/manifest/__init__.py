"""
Manifest Layer.

This package turns SmoothStreaming manifests, fetched over HTTP or read from
disk, into the immutable in-memory model consumed by the planner.
"""

from .loader import ManifestLoader, fix_manifest_url, load_manifest_file
from .parser import parse_manifest

__all__ = ["ManifestLoader", "fix_manifest_url", "load_manifest_file", "parse_manifest"]
