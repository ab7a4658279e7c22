"""
Unit tests for ProgressEstimator.
Verifies phase weighting, monotonicity, the 100% cap and the empty-root case.
"""
import random
import pytest

from filesig.core.progress import ProgressEstimator

MB = 1024 * 1024


class TestProgressEstimator:

    def test_phase_weights_for_four_algorithms(self):
        """Each algorithm contributes 24% of a file's share, metadata the last 4%."""
        events = []
        estimator = ProgressEstimator("/root", total_bytes=10 * MB, algorithm_count=4,
                                      progress_callback=lambda stage, current, total: events.append(current))
        estimator.start()
        estimator.record_digest_phase(10 * MB)

        # start + one emission per algorithm
        assert len(events) == 5
        assert events[1:] == pytest.approx([24.0, 48.0, 72.0, 96.0])

        estimator.record_metadata_phase(10 * MB)
        assert estimator.percent_complete == pytest.approx(100.0)

    def test_digest_weight_split_across_requested_algorithms(self):
        estimator = ProgressEstimator("/root", total_bytes=MB, algorithm_count=2)
        estimator.record_digest_phase(MB)
        assert estimator.percent_complete == pytest.approx(96.0)

    def test_callback_receives_root_and_total(self):
        calls = []
        estimator = ProgressEstimator("/srv", total_bytes=MB,
                                      progress_callback=lambda *args: calls.append(args))
        estimator.record_metadata_phase(MB)
        assert calls == [("/srv", pytest.approx(4.0), 100.0)]

    def test_monotonic_and_bounded_for_random_sizes(self):
        """For any size distribution percent never decreases and never exceeds 100."""
        rng = random.Random(1234)
        sizes = [rng.randint(1, 50 * MB) for _ in range(200)]
        events = []
        estimator = ProgressEstimator("/root", total_bytes=sum(sizes),
                                      progress_callback=lambda s, current, t: events.append(current))
        estimator.start()
        for size in sizes:
            estimator.record_digest_phase(size)
            estimator.record_metadata_phase(size)

        assert all(b >= a for a, b in zip(events, events[1:]))
        assert max(events) <= 100.0
        assert events[-1] == pytest.approx(100.0)

    def test_overshoot_is_capped(self):
        """More processed volume than announced still reports at most 100%."""
        estimator = ProgressEstimator("/root", total_bytes=MB)
        estimator.record_digest_phase(5 * MB)
        estimator.record_metadata_phase(5 * MB)
        assert estimator.percent_complete == 100.0

    def test_empty_root_reports_complete_without_division(self):
        """Zero total volume: 100% immediately, later phases stay at 100%."""
        events = []
        estimator = ProgressEstimator("/empty", total_bytes=0,
                                      progress_callback=lambda s, current, t: events.append(current))
        assert estimator.start() == 100.0
        estimator.record_digest_phase(0)
        assert events and all(value == 100.0 for value in events)

    def test_skipped_file_consumes_its_share(self):
        estimator = ProgressEstimator("/root", total_bytes=2 * MB)
        estimator.record_skipped(MB)
        estimator.record_digest_phase(MB)
        estimator.record_metadata_phase(MB)
        assert estimator.percent_complete == pytest.approx(100.0)

    def test_invalid_arguments(self):
        with pytest.raises(ValueError):
            ProgressEstimator("/root", total_bytes=-1)
        with pytest.raises(ValueError):
            ProgressEstimator("/root", total_bytes=1, algorithm_count=0)
