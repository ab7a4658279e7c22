"""
Tests for the command orchestrators.
Exercise the full hashing workflow on real temporary files, and the lookup
workflow against an in-memory repository.
"""
import threading
from datetime import datetime, timezone
from unittest import mock

import pytest

from filesig.commands import LookupCommand, SignatureCommand, VerifyCommand
from filesig.core.errors import HashComputationError, NoValidPathsError, RepositoryRequestError
from filesig.core.models import (
    FileEntry, HashAlgorithm, LookupParams, ReferenceRecord, SignatureParams, VersionInfo)
from conftest import ABC_DIGESTS, A1024_MD5, make_signature


def by_name(records):
    return {r.filename: r for r in records}


class TestSignatureCommand:

    def test_hashes_files_and_skips_empty(self, temp_dir, test_files):
        params = SignatureParams(paths=[str(temp_dir)])
        records, stats = SignatureCommand().execute(params)

        assert [r.filename for r in records] == ["abc.bin", "same_a.txt", "same_b.txt"]
        assert stats.files_processed == 3
        assert stats.files_skipped == 1  # empty.txt
        assert stats.partial is False

        abc = by_name(records)["abc.bin"]
        assert dict(abc.digests) == ABC_DIGESTS
        assert abc.path_relative_to_root == "ABC.bin"

    def test_identical_files_share_digests(self, temp_dir, test_files):
        records, _ = SignatureCommand().execute(SignatureParams(paths=[str(temp_dir)]))
        records = by_name(records)

        assert dict(records["same_a.txt"].digests) == dict(records["same_b.txt"].digests)
        assert records["same_a.txt"].get_digest(HashAlgorithm.MD5) == A1024_MD5

    def test_recursive_relative_paths(self, temp_dir, test_files):
        params = SignatureParams(paths=[str(temp_dir) + "//"], recurse=True)
        records, _ = SignatureCommand().execute(params)

        nested = by_name(records)["nested.dat"]
        assert nested.path_relative_to_root == "sub/nested.dat"
        assert nested.full_path is None

    def test_include_root_path(self, temp_dir, test_files):
        params = SignatureParams(paths=[str(temp_dir)], include_root_path=True)
        records, _ = SignatureCommand().execute(params)

        assert by_name(records)["abc.bin"].full_path == str(test_files["abc"])

    def test_file_root_relative_to_parent(self, test_files):
        records, _ = SignatureCommand().execute(SignatureParams(paths=[str(test_files["nested"])]))

        assert len(records) == 1
        assert records[0].path_relative_to_root == "nested.dat"

    def test_requested_algorithms_only(self, temp_dir, test_files):
        params = SignatureParams(paths=[str(test_files["abc"])], algorithms=["sha256"])
        records, _ = SignatureCommand().execute(params)

        assert list(records[0].digests) == [HashAlgorithm.SHA256]

    def test_missing_path_skipped_when_others_exist(self, temp_dir, test_files, caplog):
        params = SignatureParams(paths=[str(temp_dir / "missing"), str(test_files["abc"])])
        with caplog.at_level("WARNING"):
            records, _ = SignatureCommand().execute(params)

        assert [r.filename for r in records] == ["abc.bin"]
        assert "Search path not found" in caplog.text

    def test_no_valid_paths_is_fatal(self, temp_dir):
        with pytest.raises(NoValidPathsError):
            SignatureCommand().execute(SignatureParams(paths=[str(temp_dir / "missing")]))

    def test_results_independent_of_worker_count(self, temp_dir, test_files):
        def rows(workers):
            params = SignatureParams(paths=[str(temp_dir)], recurse=True, max_workers=workers)
            records, _ = SignatureCommand().execute(params)
            return [{k: v for k, v in r.to_row().items() if k != "EntryTimestamp"} for r in records]

        assert rows(1) == rows(8)

    def test_inaccessible_and_vanished_entries_skipped(self, temp_dir, test_files):
        ts = datetime(2024, 1, 1, tzinfo=timezone.utc)
        fake_entries = [
            FileEntry(str(test_files["abc"]), 3, ts, ts),
            FileEntry(str(temp_dir / "locked.bin"), 10, ts, ts, is_readable=False),
            FileEntry(str(temp_dir / "vanished.bin"), 10, ts, ts),
        ]
        scanner = mock.Mock()
        scanner.scan.return_value = iter(fake_entries)

        command = SignatureCommand(enumerator_factory=lambda root, recurse, hidden: scanner)
        records, stats = command.execute(SignatureParams(paths=[str(temp_dir)]))

        assert [r.filename for r in records] == ["abc.bin"]
        assert stats.files_skipped == 2

    def test_file_deleted_before_hashing_is_skipped(self, temp_dir, test_files):
        params = SignatureParams(paths=[str(temp_dir)], max_workers=1)
        with mock.patch("filesig.commands.DigestEngine.compute_file") as compute_file:
            compute_file.side_effect = [
                dict(ABC_DIGESTS),
                HashComputationError("same_a.txt", FileNotFoundError("gone")),
                dict(ABC_DIGESTS),
            ]
            records, stats = SignatureCommand().execute(params)

        assert [r.filename for r in records] == ["abc.bin", "same_b.txt"]
        assert stats.files_skipped == 2  # empty.txt and same_a.txt

    def test_progress_reaches_100(self, temp_dir, test_files):
        events = []
        SignatureCommand().execute(
            SignatureParams(paths=[str(temp_dir)]),
            progress_callback=lambda root, percent, total: events.append(percent)
        )

        assert events[0] == 0.0
        assert events[-1] == pytest.approx(100.0)
        assert all(b >= a for a, b in zip(events, events[1:]))

    def test_version_and_certificate_providers(self, test_files):
        version_provider = mock.Mock()
        version_provider.get_version_info.return_value = VersionInfo(file_version="2.0")
        certificate_provider = mock.Mock()
        certificate_provider.get_certificate_info.side_effect = OSError("no signature store")

        command = SignatureCommand(version_provider=version_provider, certificate_provider=certificate_provider)
        params = SignatureParams(
            paths=[str(test_files["abc"])],
            include_version_data=True,
            include_certificate_data=True
        )
        records, _ = command.execute(params)

        assert records[0].version_info.file_version == "2.0"
        assert records[0].certificate_info is None
        version_provider.get_version_info.assert_called_once_with(str(test_files["abc"]))

    def test_providers_not_called_unless_requested(self, test_files):
        version_provider = mock.Mock()
        command = SignatureCommand(version_provider=version_provider)
        command.execute(SignatureParams(paths=[str(test_files["abc"])]))

        version_provider.get_version_info.assert_not_called()

    def test_cancel_before_start_returns_partial(self, temp_dir, test_files):
        records, stats = SignatureCommand().execute(
            SignatureParams(paths=[str(temp_dir)]), stopped_flag=lambda: True)

        assert records == []
        assert stats.partial is True

    def test_in_flight_file_completes_on_cancel(self, temp_dir, test_files):
        """Stop requested while the first file is hashing: it finishes, nothing else starts."""
        stop = threading.Event()

        def get_version_info(path):
            stop.set()
            return None

        version_provider = mock.Mock()
        version_provider.get_version_info.side_effect = get_version_info

        command = SignatureCommand(version_provider=version_provider)
        params = SignatureParams(paths=[str(temp_dir)], include_version_data=True, max_workers=1)
        records, stats = command.execute(params, stopped_flag=stop.is_set)

        assert [r.filename for r in records] == ["abc.bin"]
        assert stats.partial is True

    def test_stop_after_last_file_is_not_partial(self, test_files):
        """A stop arriving once every file is done leaves the output complete."""
        stop = threading.Event()
        version_provider = mock.Mock()
        version_provider.get_version_info.side_effect = lambda path: stop.set()

        command = SignatureCommand(version_provider=version_provider)
        params = SignatureParams(paths=[str(test_files["abc"])], include_version_data=True)
        records, stats = command.execute(params, stopped_flag=stop.is_set)

        assert [r.filename for r in records] == ["abc.bin"]
        assert stop.is_set()
        assert stats.partial is False


class TestVerifyCommand:

    def test_verify_rows(self):
        references = [ReferenceRecord("abc.bin", {HashAlgorithm.MD5: ABC_DIGESTS[HashAlgorithm.MD5]})]
        results = VerifyCommand(missing_placeholder="-").execute([make_signature()], references)

        row = results[0].to_row()
        assert row["MD5HashMatch"] is True
        assert row["SHA512HashMatch"] == "-"


class FakeRepository:
    """In-memory repository keyed by digest; values are payload lists or exceptions."""

    def __init__(self, responses, on_lookup=None):
        self.responses = responses
        self.requests = []
        self.on_lookup = on_lookup
        self._lock = threading.Lock()

    def lookup(self, digest):
        with self._lock:
            self.requests.append(digest)
        if self.on_lookup:
            self.on_lookup(digest)
        response = self.responses.get(digest, [])
        if isinstance(response, Exception):
            raise response
        return response


def lookup_params(*algorithms):
    return LookupParams(root_uri="https://repo.example/", algorithms=list(algorithms or ["md5"]), max_workers=4)


class TestLookupCommand:

    def test_zero_matches_goes_to_no_match_once(self):
        repo = FakeRepository({})
        merged, stats = LookupCommand(repo).execute([make_signature()], lookup_params())

        assert len(merged) == 1
        assert merged[0].is_match is False
        assert stats.requests_issued == 1

    def test_one_row_per_match_object(self):
        md5 = ABC_DIGESTS[HashAlgorithm.MD5]
        repo = FakeRepository({md5: [{"publisher": "Contoso"}, {"publisher": "Fabrikam", "signed": True}]})
        merged, _ = LookupCommand(repo).execute([make_signature()], lookup_params())

        assert [m.is_match for m in merged] == [True, True]
        rows = [m.to_row() for m in merged]
        assert rows[0]["RepositoryPublisher"] == "Contoso"
        assert rows[1]["RepositoryPublisher"] == "Fabrikam"
        assert rows[1]["RepositorySigned"] is True
        assert rows[0]["MD5Hash"] == md5

    def test_failed_request_is_no_match(self):
        md5 = ABC_DIGESTS[HashAlgorithm.MD5]
        repo = FakeRepository({md5: RepositoryRequestError("https://repo.example/" + md5, "HTTP 500", 500)})
        merged, stats = LookupCommand(repo).execute([make_signature()], lookup_params())

        assert len(merged) == 1 and not merged[0].is_match
        assert stats.requests_failed == 1
        assert stats.requests_issued == 1

    def test_matched_rows_precede_unmatched_in_input_order(self):
        hit_a = make_signature("a.bin", digests={HashAlgorithm.MD5: "A" * 32})
        miss = make_signature("m.bin", digests={HashAlgorithm.MD5: "B" * 32})
        hit_c = make_signature("c.bin", digests={HashAlgorithm.MD5: "C" * 32})
        repo = FakeRepository({"A" * 32: [{"k": 1}], "C" * 32: [{"k": 3}]})

        merged, _ = LookupCommand(repo).execute([hit_a, miss, hit_c], lookup_params())

        assert [(m.signature.filename, m.is_match) for m in merged] == [
            ("a.bin", True), ("c.bin", True), ("m.bin", False)]

    def test_one_request_per_algorithm(self):
        repo = FakeRepository({ABC_DIGESTS[HashAlgorithm.SHA1]: [{"source": "sha1"}]})
        merged, stats = LookupCommand(repo).execute([make_signature()], lookup_params("md5", "sha1"))

        assert sorted(repo.requests) == sorted([ABC_DIGESTS[HashAlgorithm.MD5], ABC_DIGESTS[HashAlgorithm.SHA1]])
        assert stats.requests_issued == 2
        # sha1 matched once, md5 produced one no-match row
        assert [m.is_match for m in merged] == [True, False]
        assert merged[0].match.algorithm is HashAlgorithm.SHA1

    def test_signature_without_lookup_digest(self):
        signature = make_signature(digests={HashAlgorithm.SHA256: ABC_DIGESTS[HashAlgorithm.SHA256]})
        repo = FakeRepository({})
        merged, stats = LookupCommand(repo).execute([signature], lookup_params("md5"))

        assert repo.requests == []
        assert stats.requests_issued == 0
        assert len(merged) == 1 and not merged[0].is_match

    def test_progress_reports_completed_requests(self):
        repo = FakeRepository({})
        events = []
        signatures = [make_signature("a.bin"), make_signature("b.bin")]
        LookupCommand(repo).execute(
            signatures, lookup_params(),
            progress_callback=lambda stage, current, total: events.append((current, total)))

        assert events == [(1, 2), (2, 2)]

    def test_owned_client_is_closed(self):
        with mock.patch("filesig.commands.RepositoryClient") as client_cls:
            client_cls.return_value.lookup.return_value = []
            LookupCommand().execute([make_signature()], lookup_params())

        client_cls.assert_called_once_with("https://repo.example/", timeout=30.0)
        client_cls.return_value.close.assert_called_once()

    def test_cancel_stops_further_requests(self):
        """Stop raised by the first response: no later request is sent, partial results returned."""
        stop = threading.Event()
        signatures = [
            make_signature("a.bin", digests={HashAlgorithm.MD5: "A" * 32}),
            make_signature("b.bin", digests={HashAlgorithm.MD5: "B" * 32}),
            make_signature("c.bin", digests={HashAlgorithm.MD5: "C" * 32}),
        ]
        repo = FakeRepository({"A" * 32: [{"k": 1}]}, on_lookup=lambda digest: stop.set())
        params = LookupParams(root_uri="https://repo.example/", max_workers=1)

        merged, stats = LookupCommand(repo).execute(signatures, params, stopped_flag=stop.is_set)

        assert repo.requests == ["A" * 32]
        assert stats.requests_issued == 1
        assert stats.partial is True
        assert [(m.signature.filename, m.is_match) for m in merged] == [("a.bin", True)]

    def test_stop_after_last_response_is_not_partial(self):
        stop = threading.Event()
        repo = FakeRepository({}, on_lookup=lambda digest: stop.set())
        params = LookupParams(root_uri="https://repo.example/", max_workers=1)

        merged, stats = LookupCommand(repo).execute([make_signature()], params, stopped_flag=stop.is_set)

        assert stats.partial is False
        assert len(merged) == 1
