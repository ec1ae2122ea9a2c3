from __future__ import annotations

from smooth_cli.utils.formatting import (
    format_bitrate,
    format_duration,
    format_size,
    format_timestamp_us,
)


def test_format_size() -> None:
    assert format_size(0) == "0 B"
    assert format_size(512) == "512.0 B"
    assert format_size(1536) == "1.5 KB"
    assert format_size(5 * 1024**3) == "5.0 GB"


def test_format_duration() -> None:
    assert format_duration(0) == "0s"
    assert format_duration(59.9) == "59s"
    assert format_duration(3600) == "1h"
    assert format_duration(9252) == "2h 34m 12s"


def test_format_timestamp_us() -> None:
    assert format_timestamp_us(0) == "0:00:00.000"
    assert format_timestamp_us(2_000_000) == "0:00:02.000"
    assert format_timestamp_us(3_723_456_789) == "1:02:03.456"


def test_format_bitrate() -> None:
    assert format_bitrate(2_500_000) == "2.5 Mbps"
    assert format_bitrate(128_000) == "128 kbps"
