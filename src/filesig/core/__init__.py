"""
Core signature engine — enumeration, hashing, progress, matching and repository merge.

This package contains the algorithmic foundation of filesig:
- FileScannerImpl: search-root enumeration with recursion and hidden-file filters
- DigestEngine: single-pass MD5/SHA1/SHA256/SHA512 digests
- ProgressEstimator: phase-weighted, monotonic completion per search root
- SignatureBuilder: immutable SignatureRecord assembly
- ReferenceMatcher: tri-state comparison against reference data
- RepositoryClient + ResultMerger: remote lookups folded back onto signatures

No CLI or serialization dependencies — suitable for library usage.
"""

from .errors import (
    FileSignatureError, UnsupportedAlgorithmError, NoValidPathsError,
    HashComputationError, RepositoryRequestError, ReferenceFormatError)
from .models import (
    HashAlgorithm, MatchState, FileEntry, VersionInfo, CertificateInfo, SignatureRecord,
    ReferenceRecord, MatchResult, MatchedRecord, RepositoryMatch, MergedRecord, RunStats,
    SignatureParams, LookupParams)
from .normalizer import normalize_path, PathIdentity
from .hasher import DigestEngine
from .progress import ProgressEstimator
from .scanner import FileScannerImpl
from .builder import SignatureBuilder
from .matcher import ReferenceMatcher
from .repository import RepositoryClient
from .merger import ResultMerger

__all__ = [
    "FileSignatureError",
    "UnsupportedAlgorithmError",
    "NoValidPathsError",
    "HashComputationError",
    "RepositoryRequestError",
    "ReferenceFormatError",
    "HashAlgorithm",
    "MatchState",
    "FileEntry",
    "VersionInfo",
    "CertificateInfo",
    "SignatureRecord",
    "ReferenceRecord",
    "MatchResult",
    "MatchedRecord",
    "RepositoryMatch",
    "MergedRecord",
    "RunStats",
    "SignatureParams",
    "LookupParams",
    "normalize_path",
    "PathIdentity",
    "DigestEngine",
    "ProgressEstimator",
    "FileScannerImpl",
    "SignatureBuilder",
    "ReferenceMatcher",
    "RepositoryClient",
    "ResultMerger",
]
