"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/models.py
Data models for file signatures, reference data, match results and repository merges.
"""

from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union
import os

from filesig.core.config import SignatureConfig
from filesig.core.errors import NoValidPathsError, UnsupportedAlgorithmError


# =============================
# Enums
# =============================

class HashAlgorithm(Enum):
    """
    Supported digest algorithms. Member order is the column order of every output row.
    """
    MD5 = "MD5"
    SHA1 = "SHA1"
    SHA256 = "SHA256"
    SHA512 = "SHA512"

    @property
    def hashlib_name(self) -> str:
        return self.value.lower()

    @property
    def hex_length(self) -> int:
        """Width of the hex digest (two characters per byte)."""
        mapping = {
            HashAlgorithm.MD5: 32,
            HashAlgorithm.SHA1: 40,
            HashAlgorithm.SHA256: 64,
            HashAlgorithm.SHA512: 128,
        }
        return mapping[self]

    @property
    def hash_field(self) -> str:
        return f"{self.value}Hash"

    @property
    def match_field(self) -> str:
        return f"{self.value}HashMatch"

    @classmethod
    def get_all(cls) -> List["HashAlgorithm"]:
        return [cls.MD5, cls.SHA1, cls.SHA256, cls.SHA512]

    @classmethod
    def parse(cls, name: Union[str, "HashAlgorithm"]) -> "HashAlgorithm":
        """
        Resolve an algorithm name: case-insensitive, dashes and underscores ignored
        ("sha-256", "Sha_256" and "SHA256" are the same algorithm).
        Raises UnsupportedAlgorithmError for anything else.
        """
        if isinstance(name, cls):
            return name
        key = str(name).strip().upper().replace("-", "").replace("_", "")
        try:
            return cls(key)
        except ValueError:
            raise UnsupportedAlgorithmError(str(name)) from None

    @classmethod
    def parse_many(cls, names: Optional[Iterable[Union[str, "HashAlgorithm"]]]) -> List["HashAlgorithm"]:
        """Parse a collection of names, dropping repeats. None means all algorithms."""
        if names is None:
            return cls.get_all()
        result = []
        for name in names:
            algorithm = cls.parse(name)
            if algorithm not in result:
                result.append(algorithm)
        return result

    def __repr__(self) -> str:
        return self.value


class MatchState(Enum):
    """Tri-state outcome of comparing one digest against reference data."""
    MATCHED = "matched"
    MISMATCHED = "mismatched"
    MISSING = "missing"


def _column_name(field_name: str) -> str:
    """snake_case field name -> PascalCase output column ("file_version" -> "FileVersion")."""
    return "".join(part[:1].upper() + part[1:] for part in field_name.split("_"))


# ======================
#  File enumeration
# ======================

@dataclass
class FileEntry:
    """
    A file handle as supplied by the enumeration collaborator.
    """
    full_path: str
    size_bytes: int
    created_utc: datetime
    modified_utc: datetime
    name: Optional[str] = None
    is_directory: bool = False
    is_readable: bool = True

    def __post_init__(self):
        if self.name is None:
            self.name = os.path.basename(self.full_path)

    def __repr__(self):
        return f"<FileEntry path={self.full_path}, size={self.size_bytes}>"


# ======================
#  Metadata blocks
# ======================

@dataclass(frozen=True)
class VersionInfo:
    """Version resource of an executable, as reported by a VersionInfoProvider."""
    internal_name: Optional[str] = None
    original_filename: Optional[str] = None
    file_version: Optional[str] = None
    file_description: Optional[str] = None
    product: Optional[str] = None
    product_version: Optional[str] = None

    def to_row(self) -> Dict[str, Any]:
        return {_column_name(f.name): getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class CertificateInfo:
    """Authenticode-style signing details, as reported by a CertificateInfoProvider."""
    signer_subject: Optional[str] = None
    signer_issuer: Optional[str] = None
    signer_serial_number: Optional[str] = None
    signer_thumbprint: Optional[str] = None
    signer_not_before: Optional[datetime] = None
    signer_not_after: Optional[datetime] = None
    timestamper_subject: Optional[str] = None
    timestamper_issuer: Optional[str] = None
    timestamper_serial_number: Optional[str] = None
    timestamper_thumbprint: Optional[str] = None
    timestamper_not_before: Optional[datetime] = None
    timestamper_not_after: Optional[datetime] = None
    signature_status: Optional[str] = None

    def to_row(self) -> Dict[str, Any]:
        return {_column_name(f.name): getattr(self, f.name) for f in fields(self)}


# ======================
#  Core Data Models
# ======================

@dataclass(frozen=True)
class SignatureRecord:
    """
    One successfully hashed file: metadata plus one hex digest per requested algorithm.
    Immutable once built. `filename` is the lowercased base name and serves as the
    identity key for reference matching.

    Records compare by value but are unhashable: the digest mapping cannot be hashed,
    and the same file may legitimately appear under two search roots.
    """
    __hash__ = None

    filename: str
    path_relative_to_root: str
    size_bytes: int
    created_utc: datetime
    modified_utc: datetime
    digests: Mapping[HashAlgorithm, str]
    full_path: Optional[str] = None  # only set when root-path disclosure is enabled
    version_info: Optional[VersionInfo] = None
    certificate_info: Optional[CertificateInfo] = None
    entry_timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        if self.size_bytes <= 0:
            raise ValueError(f"Signature size must be positive, got {self.size_bytes}")
        if not self.digests:
            raise ValueError("Signature must carry at least one digest")
        object.__setattr__(self, "digests", MappingProxyType(dict(self.digests)))

    def get_digest(self, algorithm: HashAlgorithm) -> Optional[str]:
        return self.digests.get(algorithm)

    def to_row(self) -> Dict[str, Any]:
        """Flat, ordered row. FullPath is absent (not blank) when not disclosed."""
        row: Dict[str, Any] = {"Filename": self.filename}
        if self.full_path is not None:
            row["FullPath"] = self.full_path
        row["PathRelativeToRoot"] = self.path_relative_to_root
        row["SizeBytes"] = self.size_bytes
        row["CreatedUtc"] = self.created_utc
        row["ModifiedUtc"] = self.modified_utc
        for algorithm in HashAlgorithm.get_all():
            if algorithm in self.digests:
                row[algorithm.hash_field] = self.digests[algorithm]
        if self.version_info is not None:
            row.update(self.version_info.to_row())
        if self.certificate_info is not None:
            row.update(self.certificate_info.to_row())
        row["EntryTimestamp"] = self.entry_timestamp
        return row

    def __repr__(self):
        return f"<SignatureRecord filename={self.filename}, size={self.size_bytes}>"


@dataclass
class ReferenceRecord:
    """
    Known-good signature data for one filename.
    A missing key in `digests` means "not supplied"; an empty string means
    "supplied but empty". Both are treated as Missing when matching.
    """
    filename: str
    digests: Dict[HashAlgorithm, str] = field(default_factory=dict)

    def get_digest(self, algorithm: HashAlgorithm) -> Optional[str]:
        return self.digests.get(algorithm)

    def supplies(self, algorithm: HashAlgorithm) -> bool:
        """True if a non-empty digest is present for this algorithm."""
        value = self.digests.get(algorithm)
        return bool(value and value.strip())

    @staticmethod
    def empty_template() -> "ReferenceRecord":
        """All-blank record exposing the expected column set."""
        return ReferenceRecord(
            filename="",
            digests={algorithm: "" for algorithm in HashAlgorithm.get_all()}
        )

    def to_row(self) -> Dict[str, Any]:
        row: Dict[str, Any] = {"Filename": self.filename}
        for algorithm in HashAlgorithm.get_all():
            row[algorithm.hash_field] = self.digests.get(algorithm, "")
        return row


@dataclass(frozen=True)
class MatchResult:
    state: MatchState

    def render(self, placeholder: str) -> Union[bool, str]:
        """Matched -> True, Mismatched -> False, Missing -> placeholder."""
        if self.state is MatchState.MATCHED:
            return True
        if self.state is MatchState.MISMATCHED:
            return False
        return placeholder


@dataclass
class MatchedRecord:
    """A signature together with its per-algorithm comparison against reference data."""
    signature: SignatureRecord
    matches: Dict[HashAlgorithm, MatchResult]
    missing_placeholder: str = SignatureConfig.DEFAULT_MISSING_PLACEHOLDER

    def match_for(self, algorithm: HashAlgorithm) -> MatchResult:
        return self.matches.get(algorithm, MatchResult(MatchState.MISSING))

    def to_row(self) -> Dict[str, Any]:
        row = self.signature.to_row()
        for algorithm in HashAlgorithm.get_all():
            row[algorithm.match_field] = self.match_for(algorithm).render(self.missing_placeholder)
        return row


def repository_field(key: str, prefix: str = SignatureConfig.REPOSITORY_ATTRIBUTE_PREFIX) -> str:
    """Namespaced column for a repository attribute ("publisher" -> "RepositoryPublisher")."""
    key = str(key)
    return f"{prefix}{key[:1].upper()}{key[1:]}"


@dataclass(frozen=True)
class RepositoryMatch:
    """One match object returned by the repository for a digest."""
    filename: str
    algorithm: HashAlgorithm
    attributes: Mapping[str, Any] = field(default_factory=dict)

    def prefixed_attributes(self) -> Dict[str, Any]:
        return {repository_field(key): value for key, value in self.attributes.items()}


@dataclass
class MergedRecord:
    """
    A signature with the attributes of at most one repository match attached.
    `match` is None for records in the no-match partition.
    """
    signature: SignatureRecord
    match: Optional[RepositoryMatch] = None

    @property
    def is_match(self) -> bool:
        return self.match is not None

    def to_row(self) -> Dict[str, Any]:
        row = self.signature.to_row()
        if self.match is not None:
            row.update(self.match.prefixed_attributes())
        return row


# ======================
#  Run statistics
# ======================

@dataclass
class RunStats:
    """
    Counters and timings for one invocation. Owned by the aggregating command,
    never shared as module state.
    """
    total_time: float = 0.0
    files_processed: int = 0
    files_skipped: int = 0
    file_time: float = 0.0
    requests_issued: int = 0
    requests_failed: int = 0
    partial: bool = False

    def record_file(self, duration: float) -> None:
        self.files_processed += 1
        self.file_time += duration

    def record_skip(self) -> None:
        self.files_skipped += 1

    @property
    def average_file_duration(self) -> float:
        if self.files_processed == 0:
            return 0.0
        return self.file_time / self.files_processed

    @property
    def files_per_second(self) -> float:
        if self.total_time <= 0:
            return 0.0
        return self.files_processed / self.total_time

    def print_summary(self) -> str:
        lines = [
            "📊 Run Statistics:",
            f"Total Execution Time: {self.total_time:.3f}s",
            f"Files processed: {self.files_processed}",
            f"Files skipped: {self.files_skipped}",
            f"Average time per file: {self.average_file_duration:.4f}s",
            f"Throughput: {self.files_per_second:.2f} files/s",
        ]
        if self.requests_issued:
            lines.append(f"Repository requests: {self.requests_issued} ({self.requests_failed} failed)")
        if self.partial:
            lines.append("⚠️ Run was cancelled: results are partial")
        return "\n".join(lines)


"""
DTOs for run parameters with built-in validation.
Interface-agnostic — used by both the library API and the CLI.
"""

@dataclass
class SignatureParams:
    """Parameters for computing signatures under one or more search paths."""
    paths: List[str]
    recurse: bool = False
    include_hidden_and_system: bool = False
    include_version_data: bool = False
    include_certificate_data: bool = False
    include_root_path: bool = False
    algorithms: List[HashAlgorithm] = field(default_factory=HashAlgorithm.get_all)
    max_workers: Optional[int] = None

    def __post_init__(self):
        """Validate parameters immediately after creation."""
        cleaned = [str(p).strip() for p in (self.paths or []) if p is not None and str(p).strip()]
        if not cleaned:
            raise NoValidPathsError("At least one search path is required")
        self.paths = cleaned

        self.algorithms = HashAlgorithm.parse_many(self.algorithms)
        if not self.algorithms:
            raise ValueError("At least one hash algorithm is required")

        self.max_workers = SignatureConfig.get_worker_count(self.max_workers)


@dataclass
class LookupParams:
    """Parameters for querying the remote signature repository."""
    root_uri: str = SignatureConfig.DEFAULT_REPOSITORY_URI
    algorithms: List[HashAlgorithm] = field(default_factory=lambda: [HashAlgorithm.MD5])
    timeout: float = SignatureConfig.REQUEST_TIMEOUT
    max_workers: Optional[int] = None

    def __post_init__(self):
        self.root_uri = (self.root_uri or "").strip()
        if not self.root_uri:
            raise ValueError("Repository URI cannot be empty")
        if not self.root_uri.lower().startswith(("http://", "https://")):
            raise ValueError(f"Repository URI must use http or https: {self.root_uri}")

        self.algorithms = HashAlgorithm.parse_many(self.algorithms)
        if not self.algorithms:
            raise ValueError("At least one lookup algorithm is required")

        if self.timeout <= 0:
            raise ValueError("Request timeout must be positive")

        self.max_workers = SignatureConfig.get_worker_count(self.max_workers)
