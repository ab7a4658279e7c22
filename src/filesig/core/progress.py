"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/progress.py
Weighted progress accounting for one search root.

PHASE WEIGHTS
-------------
Each file contributes its size in MB, split across the phases it goes through:
  • Digest phase: 96% of the file's MB, split evenly across requested algorithms
    (24% per algorithm when all four are requested)
  • Metadata phase: the remaining 4% (version and certificate retrieval)

percentComplete = min(100.0, processed_weighted_mb / total_mb * 100.0), never decreasing.
A root with zero total volume reports 100% immediately.
"""

import logging
from typing import Callable, Optional

from filesig.core.config import SignatureConfig
from filesig.utils.convert_utils import ConvertUtils

logger = logging.getLogger(__name__)


class ProgressEstimator:
    """
    Single-owner progress tracker. Only the aggregating thread may call the record_* methods.
    """

    def __init__(
            self,
            root: str,
            total_bytes: int,
            algorithm_count: int = 4,
            progress_callback: Optional[Callable[[str, float, Optional[float]], None]] = None
    ):
        if algorithm_count < 1:
            raise ValueError("Algorithm count must be at least 1")
        if total_bytes < 0:
            raise ValueError("Total byte volume cannot be negative")
        self.root = root
        self.total_mb = ConvertUtils.bytes_to_megabytes(total_bytes)
        self.algorithm_count = algorithm_count
        self.progress_callback = progress_callback
        self._processed_mb = 0.0
        self._percent = 0.0

    @property
    def percent_complete(self) -> float:
        return self._percent

    def start(self) -> float:
        """Announce the root. Empty roots are complete before any file is seen."""
        if self.total_mb <= 0:
            logger.debug(f"No data to process under {self.root}")
            self._percent = 100.0
        self._emit()
        return self._percent

    def record_digest_phase(self, size_bytes: int) -> float:
        """Account for a finished digest pass; emits once per algorithm."""
        size_mb = ConvertUtils.bytes_to_megabytes(size_bytes)
        per_algorithm = SignatureConfig.DIGEST_PHASE_WEIGHT / self.algorithm_count
        for _ in range(self.algorithm_count):
            self._advance(size_mb * per_algorithm)
        return self._percent

    def record_metadata_phase(self, size_bytes: int) -> float:
        size_mb = ConvertUtils.bytes_to_megabytes(size_bytes)
        return self._advance(size_mb * SignatureConfig.METADATA_PHASE_WEIGHT)

    def record_skipped(self, size_bytes: int) -> float:
        """A file that failed still consumes its full share, so the root can reach 100%."""
        size_mb = ConvertUtils.bytes_to_megabytes(size_bytes)
        return self._advance(size_mb * (SignatureConfig.DIGEST_PHASE_WEIGHT + SignatureConfig.METADATA_PHASE_WEIGHT))

    def _advance(self, weighted_mb: float) -> float:
        if weighted_mb < 0:
            raise ValueError("Progress cannot move backwards")
        self._processed_mb += weighted_mb
        if self.total_mb <= 0:
            percent = 100.0
        else:
            percent = min(100.0, self._processed_mb / self.total_mb * 100.0)
        self._percent = max(self._percent, percent)
        self._emit()
        return self._percent

    def _emit(self) -> None:
        if self.progress_callback:
            self.progress_callback(self.root, self._percent, 100.0)
