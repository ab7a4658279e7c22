"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

interfaces.py

Defines the collaborator interfaces (Protocols) used by the signature pipeline.
Structural typing keeps the core independent of how files are enumerated and how
executable metadata is extracted.

Key Components:
---------------
- FileEnumerator: yields file handles for a search root.
- VersionInfoProvider: extracts the version resource block of a file.
- CertificateInfoProvider: extracts signing certificate details of a file.
- RepositoryLookup: resolves one digest into zero or more repository match objects.
"""

from typing import Any, Callable, Dict, Iterator, List, Optional, Protocol

from filesig.core.models import CertificateInfo, FileEntry, VersionInfo


class FileEnumerator(Protocol):
    """
    Interface for walking a search root and reporting file metadata.
    """
    def scan(self, stopped_flag: Optional[Callable[[], bool]] = None) -> Iterator[FileEntry]:
        """
        Yield file entries under the configured root.

        Args:
            stopped_flag: Function that returns True if enumeration should stop.
        """
        ...


class VersionInfoProvider(Protocol):
    def get_version_info(self, path: str) -> Optional[VersionInfo]:
        """Return the version block for `path`, or None if the file has none."""
        ...


class CertificateInfoProvider(Protocol):
    def get_certificate_info(self, path: str) -> Optional[CertificateInfo]:
        """Return certificate details for `path`, or None if the file is unsigned."""
        ...


class RepositoryLookup(Protocol):
    def lookup(self, digest: str) -> List[Dict[str, Any]]:
        """
        Query the repository for one hex digest.

        Returns:
            Zero or more flat attribute mappings.

        Raises:
            RepositoryRequestError: On transport failure, non-200 status or bad payload.
        """
        ...
