"""
smooth-cli: plan and download SmoothStreaming presentations.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("smooth-cli")
except PackageNotFoundError:
    __version__ = "0.0.0"
