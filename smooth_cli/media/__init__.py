"""
Media Transfer Layer.

This package is responsible for fetching fragment bytes over HTTP and
writing them to disk.
"""

from .downloader import Downloader, close_connection_pool

__all__ = ["Downloader", "close_connection_pool"]
