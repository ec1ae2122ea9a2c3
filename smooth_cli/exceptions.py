"""
Defines custom exceptions for the application to allow for more specific error handling.
"""


class SmoothCliError(Exception):
    """Base exception for all application-specific errors."""


class IncompleteManifestError(SmoothCliError):
    """
    Raised when a complete, final segment plan was requested but the manifest
    cannot provide one yet (live stream, missing chunks, or out-of-range keys).
    """

    def __init__(self, reasons: list[str]):
        self.reasons = list(reasons)
        super().__init__("Manifest is incomplete: " + "; ".join(self.reasons))


class ManifestParsingError(SmoothCliError):
    """Raised when manifest XML is malformed or missing required attributes."""


class InvalidStreamKeyError(SmoothCliError, ValueError):
    """Raised when a stream key selector cannot be parsed."""


class ConfigurationError(SmoothCliError):
    """Raised for issues related to configuration loading or validation."""


class SegmentDownloadError(SmoothCliError):
    """Raised when one or more segments could not be downloaded."""

    def __init__(self, failed_count: int, total_count: int):
        self.failed_count = failed_count
        self.total_count = total_count
        super().__init__(
            f"{failed_count} of {total_count} segments failed to download."
        )
