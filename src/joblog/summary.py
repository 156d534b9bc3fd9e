"""Summary line for bulk enqueues.

One ``enqueue_all`` call produces one log line, whatever the batch size:

    Enqueued 3 jobs to Async (2 ReportJob, 1 MailJob)
    Enqueued 2 jobs to Async (2 ReportJob). Failed enqueuing 1 job
    Failed enqueuing 3 jobs to Async

Partial failures stay at info severity; some of the work did succeed.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence

from joblog.jobs import JobSnapshot


def pluralize(word: str, count: int) -> str:
    return word if count == 1 else f"{word}s"


def class_breakdown(jobs: Sequence[JobSnapshot]) -> list[tuple[str, int]]:
    """Job classes with their counts, most frequent first.

    Ties keep the order in which the classes first appear.
    """
    tally = Counter(job.class_name for job in jobs)
    return sorted(tally.items(), key=lambda item: -item[1])


def enqueued_jobs_message(adapter_name: str, enqueued_jobs: Sequence[JobSnapshot]) -> str:
    count = len(enqueued_jobs)
    breakdown = ", ".join(f"{n} {class_name}" for class_name, n in class_breakdown(enqueued_jobs))
    return f"Enqueued {count} {pluralize('job', count)} to {adapter_name} ({breakdown})"


def summarize_enqueue_all(
    jobs: Sequence[JobSnapshot],
    adapter_name: str,
    enqueued_count: int | None = None,
) -> str:
    """Summarize one bulk enqueue.

    Args:
        jobs: Every job submitted in the call
        adapter_name: Display name of the adapter
        enqueued_count: Jobs the backend confirmed; defaults to the number of
            jobs flagged ``successfully_enqueued``
    """
    enqueued_jobs = [job for job in jobs if job.successfully_enqueued]
    if enqueued_count is None:
        enqueued_count = len(enqueued_jobs)

    if enqueued_count == len(jobs):
        return enqueued_jobs_message(adapter_name, jobs)

    failed_count = len(jobs) - enqueued_count
    if enqueued_jobs:
        if failed_count == 0:
            return enqueued_jobs_message(adapter_name, enqueued_jobs)
        return (
            f"{enqueued_jobs_message(adapter_name, enqueued_jobs)}. "
            f"Failed enqueuing {failed_count} {pluralize('job', failed_count)}"
        )
    return f"Failed enqueuing {failed_count} {pluralize('job', failed_count)} to {adapter_name}"


__all__ = [
    "class_breakdown",
    "enqueued_jobs_message",
    "pluralize",
    "summarize_enqueue_all",
]
