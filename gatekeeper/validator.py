"""Validator that checks the commit statuses and check runs of a ref."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass

from gatekeeper.github import CheckRun, Client, RepoStatus
from gatekeeper.multierror import MultiError
from gatekeeper.status import JobStatus
from gatekeeper.validators import Validator

SUCCESS_STATE = "success"
ERROR_STATE = "error"
FAILURE_STATE = "failure"
PENDING_STATE = "pending"

CHECK_RUN_COMPLETED_STATUS = "completed"

CHECK_RUN_NEUTRAL_CONCLUSION = "neutral"
CHECK_RUN_SUCCESS_CONCLUSION = "success"
CHECK_RUN_SKIP_CONCLUSION = "skipped"

MAX_STATUSES_PER_PAGE = 100
MAX_CHECK_RUNS_PER_PAGE = 100


class InvalidCombinedStatusResponse(ValueError):
    """A commit status came back without a context or a state."""

    def __init__(self, context: str | None, state: str | None) -> None:
        super().__init__(
            f"github combined status response is invalid context: {context}, status: {state}"
        )
        self.context = context
        self.state = state


class InvalidCheckRunResponse(ValueError):
    """A check run came back without a name or a status."""

    def __init__(self, name: str | None, status: str | None) -> None:
        super().__init__(
            f"github checkRun response is invalid name: {name}, status: {status}"
        )
        self.name = name
        self.status = status


@dataclass
class GhaStatus:
    """A job identifier together with its normalised state."""

    job: str
    state: str


Option = Callable[["StatusValidator"], None]


def with_self_job(name: str) -> Option:
    """Set the name of the job running the validation, if not empty."""

    def apply(sv: StatusValidator) -> None:
        if name:
            sv.self_job_name = name

    return apply


def with_github_owner_and_repo(owner: str, repo: str) -> Option:
    """Set the repository owner and name, each only if not empty."""

    def apply(sv: StatusValidator) -> None:
        if owner:
            sv.owner = owner
        if repo:
            sv.repo = repo

    return apply


def with_github_ref(ref: str) -> Option:
    """Set the ref (SHA, branch or tag) to validate, if not empty."""

    def apply(sv: StatusValidator) -> None:
        if ref:
            sv.ref = ref

    return apply


def with_ignored_jobs(names: str) -> Option:
    """Set the jobs to ignore from a comma-separated list."""

    def apply(sv: StatusValidator) -> None:
        if not names:
            return
        sv.ignored_jobs = [job for job in (part.strip() for part in names.split(",")) if job]

    return apply


def _job_identifier(name: str, ident: int | None) -> str:
    return name if ident is None else f"{name}-{ident}"


@dataclass
class StatusValidator(Validator):
    """Check that every other job on a ref has finished successfully."""

    client: Client | None = None
    owner: str = ""
    repo: str = ""
    ref: str = ""
    self_job_name: str = ""
    ignored_jobs: list[str] | None = None

    @property
    def name(self) -> str:
        return self.self_job_name

    def _check_fields(self) -> None:
        errors: list[Exception] = []
        if not self.repo:
            errors.append(ValueError("repository name is empty"))
        if not self.owner:
            errors.append(ValueError("repository owner is empty"))
        if not self.ref:
            errors.append(ValueError("reference of repository is empty"))
        if not self.self_job_name:
            errors.append(ValueError("self job name is empty"))
        if self.client is None:
            errors.append(ValueError("github client is empty"))
        if errors:
            raise MultiError(errors)

    def _is_self(self, job: str) -> bool:
        return bool(self.self_job_name) and self.self_job_name in job

    def validate(self) -> JobStatus:
        """Run one pass; raise with the report if any job has failed."""
        gha_statuses = self.list_gha_statuses()
        ignored = list(self.ignored_jobs or [])
        st = JobStatus(ignored_jobs=list(ignored), succeeded=True)

        success_count = 0
        for gha in gha_statuses:
            # Ignored jobs and this job itself count as successful whatever their state.
            if gha.job in ignored or self._is_self(gha.job):
                success_count += 1
                continue

            st.total_jobs.append(gha.job)
            if gha.state == SUCCESS_STATE:
                st.complete_jobs.append(gha.job)
                success_count += 1
            elif gha.state in (ERROR_STATE, FAILURE_STATE):
                st.err_jobs.append(gha.job)

        if st.err_jobs:
            raise RuntimeError(st.detail())
        if success_count != len(gha_statuses):
            st.succeeded = False
        return st

    def _combined_statuses(self) -> Iterable[RepoStatus]:
        page = 1
        while True:
            combined = self.client.get_combined_status(
                self.owner, self.repo, self.ref, page, MAX_STATUSES_PER_PAGE
            )
            yield from combined.statuses
            if combined.total_count < MAX_STATUSES_PER_PAGE:
                return
            page += 1

    def _check_runs(self) -> list[CheckRun]:
        runs: list[CheckRun] = []
        page = 1
        while True:
            result = self.client.list_check_runs_for_ref(
                self.owner, self.repo, self.ref, page, MAX_CHECK_RUNS_PER_PAGE
            )
            runs.extend(result.check_runs)
            if result.total <= len(runs):
                return runs
            page += 1

    def list_gha_statuses(self) -> list[GhaStatus]:
        """Collect commit statuses and check runs, keeping the latest of each job."""
        combined = list(self._combined_statuses())

        # Jobs created dynamically may share a name; only the first (latest) counts.
        seen: set[str] = set()
        result: list[GhaStatus] = []
        for status in combined:
            if status.context is None or status.state is None:
                raise InvalidCombinedStatusResponse(status.context, status.state)
            job = _job_identifier(status.context, status.id)
            if job in seen:
                continue
            seen.add(job)
            result.append(GhaStatus(job=job, state=status.state))

        for run in self._check_runs():
            if run.name is None or run.status is None:
                raise InvalidCheckRunResponse(run.name, run.status)
            job = _job_identifier(run.name, run.id)
            if job in seen:
                continue
            seen.add(job)

            if run.status != CHECK_RUN_COMPLETED_STATUS:
                result.append(GhaStatus(job=job, state=PENDING_STATE))
                continue

            if run.conclusion in (CHECK_RUN_NEUTRAL_CONCLUSION, CHECK_RUN_SUCCESS_CONCLUSION):
                result.append(GhaStatus(job=job, state=SUCCESS_STATE))
            elif run.conclusion == CHECK_RUN_SKIP_CONCLUSION:
                continue
            else:
                result.append(GhaStatus(job=job, state=ERROR_STATE))

        return result


def create_validator(client: Client | None, *args: Option) -> StatusValidator:
    """Build a validator from options; raise MultiError if a field is missing."""
    sv = StatusValidator(client=client)
    for option in args:
        option(sv)
    sv._check_fields()
    return sv