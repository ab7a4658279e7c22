"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/config.py
Central constants for reading, progress weighting and repository lookups.
"""
import os


class SignatureConfig:
    READ_BUFFER_SIZE = 1024 * 1024  # 1MB per read, shared by every digest accumulator

    # Relative cost of the phases a file goes through (sums to 1.0)
    DIGEST_PHASE_WEIGHT = 0.96
    METADATA_PHASE_WEIGHT = 0.04

    DEFAULT_REPOSITORY_URI = "https://validate.whitescope.io/api/v1/json/"
    REQUEST_TIMEOUT = 30.0  # seconds, per repository request
    REPOSITORY_ATTRIBUTE_PREFIX = "Repository"

    DEFAULT_MISSING_PLACEHOLDER = "N/A"

    MAX_WORKERS_LIMIT = 8

    @staticmethod
    def get_worker_count(requested: int = None) -> int:
        """Bounded pool size: explicit request wins, otherwise I/O-friendly default."""
        if requested is not None:
            if requested < 1:
                raise ValueError("Worker count must be at least 1")
            return requested
        return min(SignatureConfig.MAX_WORKERS_LIMIT, (os.cpu_count() or 1) + 4)
