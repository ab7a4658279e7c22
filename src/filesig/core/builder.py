"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/builder.py
Assembles SignatureRecords from file metadata, digests and optional metadata blocks.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Optional

from filesig.core.models import (
    CertificateInfo, FileEntry, HashAlgorithm, RunStats, SignatureRecord, VersionInfo)

logger = logging.getLogger(__name__)


class SignatureBuilder:
    """
    Builds immutable signature records and counts them into the run statistics.

    With root-path disclosure disabled, records carry no full path at all, so the
    search root never leaks into exported data.
    """

    def __init__(self, include_root_path: bool = False, stats: Optional[RunStats] = None):
        self.include_root_path = include_root_path
        self.stats = stats if stats is not None else RunStats()

    def build(
            self,
            entry: FileEntry,
            digests: Dict[HashAlgorithm, str],
            relative_path: str,
            version_info: Optional[VersionInfo] = None,
            certificate_info: Optional[CertificateInfo] = None,
            duration: float = 0.0
    ) -> SignatureRecord:
        record = SignatureRecord(
            filename=entry.name.lower(),
            full_path=entry.full_path if self.include_root_path else None,
            path_relative_to_root=relative_path,
            size_bytes=entry.size_bytes,
            created_utc=entry.created_utc,
            modified_utc=entry.modified_utc,
            digests=digests,
            version_info=version_info,
            certificate_info=certificate_info,
            entry_timestamp=datetime.now(timezone.utc)
        )
        self.stats.record_file(duration)
        logger.debug(f"Built signature for {relative_path} ({entry.size_bytes} bytes)")
        return record
