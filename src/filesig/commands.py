"""
Command orchestrators for signature computation, verification and repository lookup.
This is the SINGLE source of business workflow — used by both the library API and the CLI.

Threading model: worker threads only read files, call metadata providers and issue
HTTP requests. The calling thread is the single aggregator: it owns the progress
estimator, the signature builder, the run statistics and the result merger.
"""
import os
import time
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from filesig.core.builder import SignatureBuilder
from filesig.core.errors import HashComputationError, NoValidPathsError, RepositoryRequestError
from filesig.core.hasher import DigestEngine
from filesig.core.interfaces import (
    CertificateInfoProvider, FileEnumerator, RepositoryLookup, VersionInfoProvider)
from filesig.core.matcher import ReferenceMatcher
from filesig.core.merger import ResultMerger
from filesig.core.models import (
    CertificateInfo, FileEntry, HashAlgorithm, LookupParams, MatchedRecord, MergedRecord,
    ReferenceRecord, RunStats, SignatureParams, SignatureRecord, VersionInfo)
from filesig.core.normalizer import normalize_path, strip_provider_prefix
from filesig.core.progress import ProgressEstimator
from filesig.core.repository import RepositoryClient
from filesig.core.scanner import FileScannerImpl

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, float, Optional[float]], None]
StoppedFlag = Callable[[], bool]
EnumeratorFactory = Callable[[str, bool, bool], FileEnumerator]


@dataclass
class _HashOutcome:
    digests: Dict[HashAlgorithm, str]
    version_info: Optional[VersionInfo]
    certificate_info: Optional[CertificateInfo]
    duration: float


def _stopped(stopped_flag: Optional[StoppedFlag]) -> bool:
    return bool(stopped_flag and stopped_flag())


class SignatureCommand:
    """
    Orchestrates the hashing workflow:
    1. Resolve search paths (missing paths are skipped; none left is fatal)
    2. Enumerate each root and drop missing, inaccessible and zero-length files
    3. Hash files on a bounded worker pool, one read pass per file
    4. Build records in enumeration order while reporting weighted progress

    Usage:
        params = SignatureParams(paths=["/srv/app"], recurse=True)
        records, stats = SignatureCommand().execute(
            params,
            progress_callback=cli_progress_printer,
            stopped_flag=signal_handler_check
        )
    """

    def __init__(
            self,
            enumerator_factory: Optional[EnumeratorFactory] = None,
            version_provider: Optional[VersionInfoProvider] = None,
            certificate_provider: Optional[CertificateInfoProvider] = None
    ):
        self._enumerator_factory = enumerator_factory or FileScannerImpl
        self._version_provider = version_provider
        self._certificate_provider = certificate_provider
        self._records: List[SignatureRecord] = []

    def execute(
            self,
            params: SignatureParams,
            progress_callback: Optional[ProgressCallback] = None,
            stopped_flag: Optional[StoppedFlag] = None
    ) -> Tuple[List[SignatureRecord], RunStats]:
        """
        Compute signatures for every file under the configured paths.

        Args:
            params: Validated signature parameters
            progress_callback: (root: str, percent: float, total: 100.0) -> None
            stopped_flag: () -> bool (returns True if the run should stop)

        Returns:
            Tuple of (signature_records, statistics). statistics.partial is True
            when the run was cancelled.

        Raises:
            NoValidPathsError: If none of the paths exist
        """
        stats = RunStats()
        start_time = time.time()
        roots = self._resolve_roots(params.paths)

        if params.include_version_data and self._version_provider is None:
            logger.warning("Version data requested but no version info provider is configured")
        if params.include_certificate_data and self._certificate_provider is None:
            logger.warning("Certificate data requested but no certificate info provider is configured")

        engine = DigestEngine(params.algorithms)
        builder = SignatureBuilder(include_root_path=params.include_root_path, stats=stats)
        records: List[SignatureRecord] = []

        with ThreadPoolExecutor(max_workers=params.max_workers) as executor:
            for root, root_is_directory in roots:
                if _stopped(stopped_flag):
                    stats.partial = True
                    break
                records.extend(self._process_root(
                    executor, engine, builder, stats, params,
                    root, root_is_directory, progress_callback, stopped_flag
                ))

        stats.total_time = time.time() - start_time
        self._records = records
        logger.info(
            f"Hashed {stats.files_processed} files ({stats.files_skipped} skipped) "
            f"in {stats.total_time:.2f}s, avg {stats.average_file_duration:.4f}s per file"
        )
        return records, stats

    def get_records(self) -> List[SignatureRecord]:
        """Get records of the last execution."""
        return self._records.copy()

    @staticmethod
    def _resolve_roots(paths: List[str]) -> List[Tuple[str, bool]]:
        roots = []
        for path in paths:
            absolute = os.path.abspath(strip_provider_prefix(path))
            if not os.path.exists(absolute):
                logger.warning(f"Search path not found, skipping: {path}")
                continue
            roots.append((absolute, os.path.isdir(absolute)))

        if not roots:
            raise NoValidPathsError(f"None of the search paths exist: {', '.join(paths)}")
        return roots

    def _collect_entries(
            self,
            root: str,
            params: SignatureParams,
            stats: RunStats,
            stopped_flag: Optional[StoppedFlag]
    ) -> List[FileEntry]:
        """Enumerate a root, skipping (with a warning) files that cannot be hashed."""
        scanner = self._enumerator_factory(root, params.recurse, params.include_hidden_and_system)
        entries = []
        for entry in scanner.scan(stopped_flag=stopped_flag):
            if entry.is_directory:
                continue
            if not entry.is_readable or not os.path.isfile(entry.full_path):
                logger.warning(f"Skipping missing or inaccessible file: {entry.full_path}")
                stats.record_skip()
                continue
            if entry.size_bytes == 0:
                logger.warning(f"Skipping zero-length file: {entry.full_path}")
                stats.record_skip()
                continue
            entries.append(entry)
        return entries

    def _process_root(
            self,
            executor: ThreadPoolExecutor,
            engine: DigestEngine,
            builder: SignatureBuilder,
            stats: RunStats,
            params: SignatureParams,
            root: str,
            root_is_directory: bool,
            progress_callback: Optional[ProgressCallback],
            stopped_flag: Optional[StoppedFlag]
    ) -> List[SignatureRecord]:
        entries = self._collect_entries(root, params, stats, stopped_flag)
        if _stopped(stopped_flag):
            stats.partial = True
            return []

        # A file root is identified relative to its parent directory
        identity_root = root if root_is_directory else os.path.dirname(root)

        estimator = ProgressEstimator(
            root=root,
            total_bytes=sum(entry.size_bytes for entry in entries),
            algorithm_count=len(params.algorithms),
            progress_callback=progress_callback
        )
        estimator.start()

        futures = {
            executor.submit(self._hash_entry, engine, entry, params, stopped_flag): index
            for index, entry in enumerate(entries)
        }
        slots: List[Optional[SignatureRecord]] = [None] * len(entries)
        cancel_requested = False

        for future in as_completed(futures):
            index = futures[future]
            entry = entries[index]
            if future.cancelled():
                continue

            try:
                outcome = future.result()
            except HashComputationError as e:
                logger.warning(f"Skipping {entry.full_path}: could not compute digests ({e.cause})")
                stats.record_skip()
                estimator.record_skipped(entry.size_bytes)
                continue

            if outcome is None:
                # Worker saw the stop request before opening the file
                stats.partial = True
                continue

            estimator.record_digest_phase(entry.size_bytes)
            estimator.record_metadata_phase(entry.size_bytes)

            identity = normalize_path(entry.full_path, identity_root, True)
            slots[index] = builder.build(
                entry,
                outcome.digests,
                identity.relative_path,
                version_info=outcome.version_info,
                certificate_info=outcome.certificate_info,
                duration=outcome.duration
            )

            if not cancel_requested and _stopped(stopped_flag):
                cancel_requested = True
                cancelled = sum(1 for pending in futures if pending.cancel())
                # Nothing left to cancel means the root is complete
                if cancelled:
                    stats.partial = True
                    logger.info(f"Run cancelled: {cancelled} pending files not hashed")

        return [record for record in slots if record is not None]

    def _hash_entry(
            self,
            engine: DigestEngine,
            entry: FileEntry,
            params: SignatureParams,
            stopped_flag: Optional[StoppedFlag]
    ) -> Optional[_HashOutcome]:
        """Worker: one read pass plus optional metadata. Returns None if stopped first."""
        if _stopped(stopped_flag):
            return None

        started = time.perf_counter()
        digests = engine.compute_file(entry.full_path)

        version_info = None
        if params.include_version_data and self._version_provider is not None:
            try:
                version_info = self._version_provider.get_version_info(entry.full_path)
            except Exception as e:
                logger.warning(f"Version info unavailable for {entry.full_path}: {e}")

        certificate_info = None
        if params.include_certificate_data and self._certificate_provider is not None:
            try:
                certificate_info = self._certificate_provider.get_certificate_info(entry.full_path)
            except Exception as e:
                logger.warning(f"Certificate info unavailable for {entry.full_path}: {e}")

        return _HashOutcome(digests, version_info, certificate_info, time.perf_counter() - started)


class VerifyCommand:
    """Compares signatures against reference data; one row per signature, input order."""

    def __init__(self, missing_placeholder: str = "N/A", case_sensitive: bool = True):
        self._matcher = ReferenceMatcher(missing_placeholder=missing_placeholder, case_sensitive=case_sensitive)

    def execute(
            self,
            signatures: List[SignatureRecord],
            references: List[ReferenceRecord]
    ) -> List[MatchedRecord]:
        return self._matcher.match(signatures, references)


class LookupCommand:
    """
    Queries the repository once per (signature, algorithm) pair with a non-empty digest.

    Requests run on a bounded pool; responses are merged in input order, so the
    matched/no-match partition is stable for a given set of responses. A failed
    request is logged and treated as no match for that pair.
    """

    def __init__(self, client: Optional[RepositoryLookup] = None):
        self._client = client

    def execute(
            self,
            signatures: List[SignatureRecord],
            params: Optional[LookupParams] = None,
            progress_callback: Optional[ProgressCallback] = None,
            stopped_flag: Optional[StoppedFlag] = None
    ) -> Tuple[List[MergedRecord], RunStats]:
        params = params or LookupParams()
        stats = RunStats()
        start_time = time.time()

        owns_client = self._client is None
        client = self._client or RepositoryClient(params.root_uri, timeout=params.timeout)

        pairs: List[Tuple[int, HashAlgorithm]] = []
        without_digest: List[int] = []
        for index, signature in enumerate(signatures):
            signature_pairs = [
                (index, algorithm) for algorithm in params.algorithms
                if signature.get_digest(algorithm)
            ]
            if not signature_pairs:
                logger.debug(f"No digest to look up for {signature.filename}")
                without_digest.append(index)
            pairs.extend(signature_pairs)

        outcomes: Dict[Tuple[int, HashAlgorithm], List[dict]] = {}
        try:
            with ThreadPoolExecutor(max_workers=params.max_workers) as executor:
                futures = {
                    executor.submit(self._lookup_pair, client, signatures[index].get_digest(algorithm), stopped_flag):
                        (index, algorithm)
                    for index, algorithm in pairs
                }
                completed = 0
                cancel_requested = False
                for future in as_completed(futures):
                    index, algorithm = futures[future]
                    if future.cancelled():
                        continue

                    try:
                        payloads = future.result()
                    except RepositoryRequestError as e:
                        logger.warning(
                            f"Repository lookup failed for {signatures[index].filename} ({algorithm.value}): {e}")
                        stats.requests_failed += 1
                        payloads = []
                    else:
                        if payloads is None:
                            # Worker saw the stop request before sending
                            stats.partial = True
                            continue

                    stats.requests_issued += 1
                    outcomes[(index, algorithm)] = payloads

                    completed += 1
                    if progress_callback:
                        progress_callback("Repository lookup", completed, len(pairs))

                    if not cancel_requested and _stopped(stopped_flag):
                        cancel_requested = True
                        cancelled = sum(1 for pending in futures if pending.cancel())
                        if cancelled:
                            stats.partial = True
                            logger.info(f"Lookup cancelled: {cancelled} pending requests not sent")
        finally:
            if owns_client:
                client.close()

        merger = ResultMerger()
        for index, algorithm in pairs:
            if (index, algorithm) in outcomes:
                merger.add_matches(signatures[index], algorithm, outcomes[(index, algorithm)])
        for index in without_digest:
            merger.add_no_match(signatures[index])

        stats.total_time = time.time() - start_time
        logger.info(
            f"Repository lookup: {stats.requests_issued} requests, {stats.requests_failed} failed, "
            f"{len(merger.matched)} matched rows, {len(merger.no_match)} unmatched rows"
        )
        return merger.results(), stats

    @staticmethod
    def _lookup_pair(
            client: RepositoryLookup,
            digest: str,
            stopped_flag: Optional[StoppedFlag]
    ) -> Optional[List[dict]]:
        """Worker: one request. Returns None if the run was stopped before issuing it."""
        if _stopped(stopped_flag):
            return None
        return client.lookup(digest)
