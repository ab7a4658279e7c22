"""
filesig — multi-digest file signatures with reference and repository verification.

Core features:
- Single-pass MD5 / SHA1 / SHA256 / SHA512 digests for every file under a search path
- Tri-state (Matched / Mismatched / Missing) comparison against reference signatures
- Remote signature repository lookups merged back onto the signatures
- Schema-union CSV / JSON export
- CLI interface for headless/server usage
"""

# Get version
try:
    from importlib.metadata import PackageNotFoundError, version as _version
    __version__ = _version("filesig")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Public API — only what users should import directly
from filesig.api import compute_signatures, verify_signatures, lookup_repository, reference_template
from filesig.commands import SignatureCommand, VerifyCommand, LookupCommand
from filesig.core import (
    HashAlgorithm, SignatureRecord, ReferenceRecord, MatchedRecord, MergedRecord,
    SignatureParams, LookupParams, RunStats)
from filesig.services import ExportService, ReferenceLoader

__all__ = [
    "compute_signatures",
    "verify_signatures",
    "lookup_repository",
    "reference_template",
    "SignatureCommand",
    "VerifyCommand",
    "LookupCommand",
    "HashAlgorithm",
    "SignatureRecord",
    "ReferenceRecord",
    "MatchedRecord",
    "MergedRecord",
    "SignatureParams",
    "LookupParams",
    "RunStats",
    "ExportService",
    "ReferenceLoader",
    "__version__",
]
