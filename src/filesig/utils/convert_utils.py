"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

utils/convert_utils.py
"""
from datetime import datetime, timezone
from typing import Optional

_BYTES_PER_MB = 1024 * 1024


class ConvertUtils:
    @staticmethod
    def bytes_to_human(size_bytes: int) -> str:
        """
        Convert bytes to human-readable string (e.g., 1.5KB, 3.2MB).
        """
        if size_bytes < 0:
            return "0B"

        units = ["B", "KB", "MB", "GB", "TB", "PB"]
        for unit in units:
            if size_bytes < 1024:
                return f"{size_bytes:.2f}{unit}"
            size_bytes /= 1024
        return f"{size_bytes:.2f}EB"

    @staticmethod
    def bytes_to_megabytes(size_bytes: int) -> float:
        if size_bytes <= 0:
            return 0.0
        return size_bytes / _BYTES_PER_MB

    @staticmethod
    def timestamp_to_utc(timestamp: float) -> datetime:
        """Convert a Unix timestamp to a timezone-aware UTC datetime."""
        return datetime.fromtimestamp(timestamp, tz=timezone.utc)

    @staticmethod
    def format_timestamp(value: Optional[datetime]) -> str:
        """ISO-8601 text for export; naive datetimes are assumed to be UTC."""
        if value is None:
            return ""
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat()
