"""Tests for the bulk enqueue summary."""

import pytest

from joblog.jobs import JobSnapshot
from joblog.summary import class_breakdown, enqueued_jobs_message, pluralize, summarize_enqueue_all


def _jobs(*class_names: str, enqueued: bool = True) -> list[JobSnapshot]:
    return [JobSnapshot(class_name=name, successfully_enqueued=enqueued) for name in class_names]


class TestPluralize:
    @pytest.mark.parametrize("count, expected", [(0, "jobs"), (1, "job"), (2, "jobs"), (10, "jobs")])
    def test_job(self, count, expected):
        assert pluralize("job", count) == expected


class TestClassBreakdown:
    def test_sorted_by_descending_count(self):
        jobs = _jobs("Mail", "Report", "Report", "Export", "Report", "Export")

        assert class_breakdown(jobs) == [("Report", 3), ("Export", 2), ("Mail", 1)]

    def test_ties_keep_first_seen_order(self):
        jobs = _jobs("B", "A", "C", "A", "B", "C")

        assert class_breakdown(jobs) == [("B", 2), ("A", 2), ("C", 2)]

    @pytest.mark.parametrize(
        "names",
        [
            ("A",),
            ("A", "B", "B", "C", "C", "C"),
            ("Z", "Y", "Z", "X", "Y", "Z", "W"),
        ],
    )
    def test_counts_non_increasing_and_complete(self, names):
        breakdown = class_breakdown(_jobs(*names))
        counts = [count for _, count in breakdown]

        assert counts == sorted(counts, reverse=True)
        assert sum(counts) == len(names)
        assert {name for name, _ in breakdown} == set(names)


class TestSummarizeEnqueueAll:
    def test_all_enqueued(self):
        jobs = _jobs("A", "B", "A")

        message = summarize_enqueue_all(jobs, "Async", 3)

        assert message == "Enqueued 3 jobs to Async (2 A, 1 B)"
        assert "Failed" not in message

    def test_single_job(self):
        assert summarize_enqueue_all(_jobs("A"), "Async", 1) == "Enqueued 1 job to Async (1 A)"

    def test_partial_failure(self):
        jobs = _jobs("A", "A") + _jobs("B", enqueued=False)

        assert summarize_enqueue_all(jobs, "Async", 2) == "Enqueued 2 jobs to Async (2 A). Failed enqueuing 1 job"

    def test_partial_failure_reports_only_successful_classes(self):
        jobs = _jobs("A") + _jobs("B", "B", "C", enqueued=False)

        assert summarize_enqueue_all(jobs, "Async", 1) == "Enqueued 1 job to Async (1 A). Failed enqueuing 3 jobs"

    @pytest.mark.parametrize("total, expected", [(1, "job"), (2, "jobs"), (5, "jobs")])
    def test_nothing_enqueued(self, total, expected):
        jobs = _jobs(*["A"] * total, enqueued=False)

        assert summarize_enqueue_all(jobs, "Async", 0) == f"Failed enqueuing {total} {expected} to Async"

    def test_confirmed_count_wins_over_flags(self):
        # The backend confirmed every job even though the flags were not set.
        jobs = _jobs("A", "B", enqueued=False)

        assert summarize_enqueue_all(jobs, "Async", 2) == "Enqueued 2 jobs to Async (1 A, 1 B)"

    def test_missing_count_uses_flags(self):
        jobs = _jobs("A") + _jobs("B", enqueued=False)

        assert summarize_enqueue_all(jobs, "Async") == "Enqueued 1 job to Async (1 A). Failed enqueuing 1 job"

    def test_empty_batch(self):
        assert summarize_enqueue_all([], "Async", 0) == "Enqueued 0 jobs to Async ()"


def test_enqueued_jobs_message():
    assert enqueued_jobs_message("Celery", _jobs("Mail", "Mail")) == "Enqueued 2 jobs to Celery (2 Mail)"
