"""The job status report produced by the status validator."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from gatekeeper.validators import Status


def pretty_print_job_list(jobs: Sequence[str]) -> str:
    """Render jobs as a bulleted list, or ``[]`` when there are none."""
    if not jobs:
        return "[]"
    return "\n".join(f"- {job}" for job in jobs)


@dataclass
class JobStatus(Status):
    """Counts and lists of jobs seen during one validation pass."""

    total_jobs: list[str] = field(default_factory=list)
    complete_jobs: list[str] = field(default_factory=list)
    err_jobs: list[str] = field(default_factory=list)
    ignored_jobs: list[str] = field(default_factory=list)
    succeeded: bool = False

    def incomplete_jobs(self) -> list[str]:
        """Jobs that are neither completed, failed nor ignored."""
        settled = {*self.complete_jobs, *self.err_jobs, *self.ignored_jobs}
        return [job for job in self.total_jobs if job not in settled]

    def is_success(self) -> bool:
        return self.succeeded

    def detail(self) -> str:
        incomplete = self.incomplete_jobs()
        summary = (
            f"{len(self.complete_jobs)} out of {len(self.total_jobs)}\n"
            "\n"
            f"Total job count:       {len(self.total_jobs)}\n"
            f"Completed job count:   {len(self.complete_jobs)}\n"
            f"Incompleted job count: {len(incomplete)}\n"
            f"Failed job count:      {len(self.err_jobs)}\n"
            f"Ignored job count:     {len(self.ignored_jobs)}\n"
        )
        groups = [
            ("Failed jobs", self.err_jobs),
            ("Completed jobs", self.complete_jobs),
            ("Incomplete jobs", incomplete),
            ("Ignored jobs", self.ignored_jobs),
            ("All jobs", self.total_jobs),
        ]
        sections = "\n".join(
            f"::group::{title}\n{pretty_print_job_list(jobs)}\n::endgroup::\n"
            for title, jobs in groups
        )
        return f"{summary}\n{sections}"