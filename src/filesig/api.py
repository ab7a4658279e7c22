"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

api.py

Library entry points for the signature workflow.

These functions are thin facades over the command classes for callers that only need
the resulting rows:
- compute_signatures: enumerate and hash files under search paths
- verify_signatures: tri-state comparison against reference data
- lookup_repository: remote repository lookups merged onto signatures
- reference_template: the empty reference record (column discovery)

Callers that need progress reporting, cancellation or run statistics should use
SignatureCommand / LookupCommand directly.
"""
from typing import Iterable, List, Optional, Union

from filesig.commands import LookupCommand, SignatureCommand, VerifyCommand
from filesig.core.config import SignatureConfig
from filesig.core.interfaces import CertificateInfoProvider, VersionInfoProvider
from filesig.core.models import (
    HashAlgorithm, LookupParams, MatchedRecord, MergedRecord, ReferenceRecord, SignatureParams,
    SignatureRecord)
from filesig.core.matcher import ReferenceMatcher

AlgorithmNames = Iterable[Union[str, HashAlgorithm]]


def compute_signatures(
        paths: List[str],
        recurse: bool = False,
        include_hidden_and_system: bool = False,
        include_version_data: bool = False,
        include_certificate_data: bool = False,
        include_root_path: bool = False,
        algorithms: Optional[AlgorithmNames] = None,
        max_workers: Optional[int] = None,
        version_provider: Optional[VersionInfoProvider] = None,
        certificate_provider: Optional[CertificateInfoProvider] = None
) -> List[SignatureRecord]:
    """
    Hash every file under `paths` with all four algorithms (or `algorithms`).

    Missing, inaccessible and zero-length files are skipped with a logged warning.

    Raises:
        NoValidPathsError: If no path exists.
        UnsupportedAlgorithmError: If an algorithm name is unknown.
    """
    params = SignatureParams(
        paths=list(paths),
        recurse=recurse,
        include_hidden_and_system=include_hidden_and_system,
        include_version_data=include_version_data,
        include_certificate_data=include_certificate_data,
        include_root_path=include_root_path,
        algorithms=HashAlgorithm.parse_many(algorithms),
        max_workers=max_workers
    )
    command = SignatureCommand(
        version_provider=version_provider,
        certificate_provider=certificate_provider
    )
    records, _ = command.execute(params)
    return records


def verify_signatures(
        signatures: List[SignatureRecord],
        references: List[ReferenceRecord],
        missing_placeholder: str = SignatureConfig.DEFAULT_MISSING_PLACEHOLDER
) -> List[MatchedRecord]:
    """Compare signatures with reference records by filename."""
    return VerifyCommand(missing_placeholder=missing_placeholder).execute(signatures, references)


def lookup_repository(
        signatures: List[SignatureRecord],
        root_uri: str = SignatureConfig.DEFAULT_REPOSITORY_URI,
        algorithms: AlgorithmNames = (HashAlgorithm.MD5,),
        timeout: float = SignatureConfig.REQUEST_TIMEOUT,
        max_workers: Optional[int] = None
) -> List[MergedRecord]:
    """Look signatures up in the remote repository: matched rows first, then unmatched."""
    params = LookupParams(
        root_uri=root_uri,
        algorithms=HashAlgorithm.parse_many(algorithms),
        timeout=timeout,
        max_workers=max_workers
    )
    merged, _ = LookupCommand().execute(signatures, params)
    return merged


def reference_template() -> ReferenceRecord:
    return ReferenceMatcher.template()
