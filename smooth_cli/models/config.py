"""
Pydantic model for application configuration.
Provides robust validation for all settings.
"""

from pydantic import BaseModel, Field, field_validator

from smooth_cli.models.segment import StreamKey

# Maps stream types to the file extension used for their fragments
STREAM_TYPE_EXT = {
    "video": "ismv",
    "audio": "isma",
    "text": "ismt",
}

TEMPLATE_PLACEHOLDERS = (
    "stream_index",
    "stream_name",
    "stream_type",
    "track_index",
    "bitrate",
    "chunk_index",
    "start_time",
    "start_time_us",
    "ext",
)


class DownloadConfig(BaseModel):
    """A validated configuration model for the application."""

    # Download Settings
    output_dir: str = "."
    output_template: str
    max_workers: int = 8
    max_attempts: int = 3
    base_delay: float = 1.5
    allow_incomplete: bool = False
    dry_run: bool = False

    # Internal fields not loaded from INI file
    config_path: str = Field(..., repr=False)
    manifest_url: str = Field("", repr=False)
    stream_keys: list[StreamKey] = Field(default_factory=list, repr=False)

    class Config:
        """Pydantic model configuration."""

        validate_assignment = True
        str_strip_whitespace = True

    @field_validator("max_workers")
    @classmethod
    def validate_workers(cls, v: int) -> int:
        """Ensures a reasonable number of workers."""
        if v < 1 or v > 32:
            raise ValueError("Max workers must be between 1 and 32.")
        return v

    @field_validator("max_attempts")
    @classmethod
    def validate_attempts(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Max attempts must be at least 1.")
        return v

    @field_validator("base_delay")
    @classmethod
    def validate_delay(cls, v: float) -> float:
        if v < 0:
            raise ValueError("Base delay cannot be negative.")
        return v

    @field_validator("output_template")
    @classmethod
    def validate_template(cls, v: str) -> str:
        """Validates the output path template."""
        if not v:
            raise ValueError("Output template cannot be empty.")
        if ".." in v or v.startswith(("/", "\\")):
            raise ValueError(
                "Output template cannot contain relative '..' or absolute paths."
            )
        if "{chunk_index" not in v and "{start_time" not in v:
            raise ValueError(
                "Output template must contain at least {chunk_index} or {start_time}."
            )
        return v

    @classmethod
    def get_ini_keys(cls) -> set[str]:
        """Returns a set of all keys that are expected in the INI file."""
        internal_fields = {"config_path", "manifest_url", "stream_keys", "dry_run"}
        return {key for key in cls.model_fields if key not in internal_fields}
