import pytest

from gatekeeper.github import CheckRun, CheckRunsResult, CombinedStatus, RepoStatus
from gatekeeper.multierror import MultiError
from gatekeeper.status import JobStatus
from gatekeeper.validator import (
    GhaStatus,
    InvalidCheckRunResponse,
    InvalidCombinedStatusResponse,
    StatusValidator,
    create_validator,
    with_github_owner_and_repo,
    with_github_ref,
    with_ignored_jobs,
    with_self_job,
)


class FakeClient:
    def __init__(self, combined=None, check_runs=None):
        self._combined = combined
        self._check_runs = check_runs
        self.status_pages = []
        self.run_pages = []

    def get_combined_status(self, owner, repo, ref, page, per_page):
        self.status_pages.append((owner, repo, ref, page, per_page))
        return self._combined(page, per_page)

    def list_check_runs_for_ref(self, owner, repo, ref, page, per_page):
        self.run_pages.append((owner, repo, ref, page, per_page))
        return self._check_runs(page, per_page)


def static_statuses(*statuses):
    return lambda page, per_page: CombinedStatus(statuses=list(statuses))


def static_runs(*runs):
    return lambda page, per_page: CheckRunsResult(check_runs=list(runs))


def paged_statuses(statuses):
    def combined(page, per_page):
        chunk = statuses[(page - 1) * per_page : min(page * per_page, len(statuses))]
        return CombinedStatus(statuses=chunk, total_count=len(chunk))

    return combined


def all_runs(runs):
    return lambda page, per_page: CheckRunsResult(check_runs=runs, total=len(runs))


def raising(message):
    def fail(page, per_page):
        raise RuntimeError(message)

    return fail


def rs(context, state):
    return RepoStatus(context=context, state=state)


# ---------------------------------------------------------------- create_validator


def test_create_validator_with_all_options():
    client = FakeClient()
    got = create_validator(
        client,
        with_github_owner_and_repo("test-owner", "test-repo"),
        with_github_ref("sha"),
        with_self_job("job"),
        with_ignored_jobs("job-01,job-02"),
    )
    assert got == StatusValidator(
        client=client,
        owner="test-owner",
        repo="test-repo",
        ref="sha",
        self_job_name="job",
        ignored_jobs=["job-01", "job-02"],
    )


def test_create_validator_with_duplicate_options_keeps_last():
    client = FakeClient()
    got = create_validator(
        client,
        with_github_owner_and_repo("test", "test-repo"),
        with_github_ref("sha"),
        with_github_ref("sha-01"),
        with_self_job("job"),
        with_self_job("job-01"),
    )
    assert got == StatusValidator(
        client=client,
        owner="test",
        repo="test-repo",
        ref="sha-01",
        self_job_name="job-01",
    )
    assert got.ignored_jobs is None


def test_create_validator_with_malformed_ignored_jobs():
    client = FakeClient()
    got = create_validator(
        client,
        with_github_owner_and_repo("test", "test-repo"),
        with_github_ref("sha"),
        with_github_ref("sha-01"),
        with_self_job("job"),
        with_self_job("job-01"),
        with_ignored_jobs(","),
    )
    assert got.ignored_jobs == []
    assert got.ref == "sha-01"
    assert got.self_job_name == "job-01"


def test_create_validator_without_options_raises():
    with pytest.raises(MultiError) as info:
        create_validator(FakeClient())
    messages = [str(err) for err in info.value.errors]
    assert messages == [
        "repository name is empty",
        "repository owner is empty",
        "reference of repository is empty",
        "self job name is empty",
    ]


def test_create_validator_without_client_raises():
    with pytest.raises(MultiError) as info:
        create_validator(
            None,
            with_github_owner_and_repo("test", "test-repo"),
            with_github_ref("sha"),
            with_self_job("job"),
        )
    assert str(info.value) == "github client is empty"


def test_name_is_self_job_name():
    got = create_validator(
        FakeClient(),
        with_github_owner_and_repo("test-owner", "test-repo"),
        with_github_ref("sha"),
        with_self_job("job"),
        with_ignored_jobs("job-01,job-02"),
    )
    assert got.name == "job"


def test_ignored_jobs_are_trimmed_and_empty_entries_skipped():
    sv = StatusValidator()
    with_ignored_jobs(" a , ,b,, c ")(sv)
    assert sv.ignored_jobs == ["a", "b", "c"]


def test_empty_options_leave_fields_untouched():
    sv = StatusValidator(owner="o", repo="r", ref="x", self_job_name="s")
    for option in (
        with_github_owner_and_repo("", ""),
        with_github_ref(""),
        with_self_job(""),
        with_ignored_jobs(""),
    ):
        option(sv)
    assert (sv.owner, sv.repo, sv.ref, sv.self_job_name, sv.ignored_jobs) == (
        "o",
        "r",
        "x",
        "s",
        None,
    )


# ---------------------------------------------------------------- validate


def test_validate_propagates_client_error():
    sv = StatusValidator(client=FakeClient(combined=raising("err")))
    with pytest.raises(RuntimeError, match="^err$"):
        sv.validate()


def test_validate_no_jobs_succeeds():
    sv = StatusValidator(client=FakeClient(static_statuses(), static_runs()))
    assert sv.validate() == JobStatus(succeeded=True)


def test_validate_only_self_job_succeeds():
    sv = StatusValidator(
        self_job_name="self-job",
        client=FakeClient(static_statuses(rs("self-job", "pending")), static_runs()),
    )
    assert sv.validate() == JobStatus(succeeded=True)


def test_validate_one_pending_job_is_not_success():
    sv = StatusValidator(client=FakeClient(static_statuses(rs("job", "pending")), static_runs()))
    got = sv.validate()
    assert got == JobStatus(succeeded=False, total_jobs=["job"])
    assert got.is_success() is False


@pytest.mark.parametrize("state", ["error", "failure"])
def test_validate_failed_job_raises_with_detail(state):
    sv = StatusValidator(
        self_job_name="self-job",
        client=FakeClient(
            static_statuses(rs("job-01", "success"), rs("job-02", state), rs("self-job", "pending")),
            static_runs(),
        ),
    )
    expected = JobStatus(
        total_jobs=["job-01", "job-02"],
        complete_jobs=["job-01"],
        err_jobs=["job-02"],
    ).detail()
    with pytest.raises(RuntimeError) as info:
        sv.validate()
    assert str(info.value) == expected


def test_validate_fewer_successes_than_total():
    sv = StatusValidator(
        self_job_name="self-job",
        client=FakeClient(
            static_statuses(
                rs("job-01", "success"), rs("job-02", "pending"), rs("self-job", "pending")
            ),
            static_runs(),
        ),
    )
    assert sv.validate() == JobStatus(
        succeeded=False, total_jobs=["job-01", "job-02"], complete_jobs=["job-01"]
    )


def test_validate_all_successful():
    sv = StatusValidator(
        self_job_name="self-job",
        client=FakeClient(
            static_statuses(
                rs("job-01", "success"), rs("job-02", "success"), rs("self-job", "pending")
            ),
            static_runs(),
        ),
    )
    got = sv.validate()
    assert got == JobStatus(
        succeeded=True,
        total_jobs=["job-01", "job-02"],
        complete_jobs=["job-01", "job-02"],
    )
    assert got.is_success() is True


@pytest.mark.parametrize("state", ["error", "failure"])
def test_validate_ignored_failing_job_succeeds(state):
    sv = StatusValidator(
        self_job_name="self-job",
        ignored_jobs=["job-02", "job-03"],
        client=FakeClient(
            static_statuses(rs("job-01", "success"), rs("job-02", state), rs("self-job", "pending")),
            static_runs(),
        ),
    )
    assert sv.validate() == JobStatus(
        succeeded=True,
        total_jobs=["job-01"],
        complete_jobs=["job-01"],
        ignored_jobs=["job-02", "job-03"],
    )


# ---------------------------------------------------------------- list_gha_statuses


def make_validator(client):
    return StatusValidator(
        client=client,
        self_job_name="self-job",
        owner="test-owner",
        repo="test-repo",
        ref="main",
    )


EXPECTED_MIXED = [
    GhaStatus("job-01", "success"),
    GhaStatus("job-02", "pending"),
    GhaStatus("job-03", "success"),
    GhaStatus("job-04", "success"),
    GhaStatus("job-05", "error"),
]


def test_list_keeps_latest_of_duplicate_jobs():
    client = FakeClient(
        static_statuses(rs("job-01", "success"), rs("job-01", "error")),
        static_runs(
            CheckRun(name="job-02", status="failure"),
            CheckRun(name="job-02", status="completed", conclusion="neutral"),
            CheckRun(name="job-03", status="completed", conclusion="neutral"),
            CheckRun(name="job-04", status="completed", conclusion="success"),
            CheckRun(name="job-05", status="completed", conclusion="failure"),
            CheckRun(name="job-06", status="completed", conclusion="skipped"),
        ),
    )
    assert make_validator(client).list_gha_statuses() == EXPECTED_MIXED


def test_list_passes_repository_coordinates():
    client = FakeClient(static_statuses(), static_runs())
    make_validator(client).list_gha_statuses()
    assert client.status_pages == [("test-owner", "test-repo", "main", 1, 100)]
    assert client.run_pages == [("test-owner", "test-repo", "main", 1, 100)]


def test_list_combined_status_error():
    client = FakeClient(combined=raising("err"))
    with pytest.raises(RuntimeError, match="err"):
        make_validator(client).list_gha_statuses()


def test_list_invalid_combined_status():
    client = FakeClient(static_statuses(RepoStatus()))
    with pytest.raises(InvalidCombinedStatusResponse, match="combined status response is invalid"):
        make_validator(client).list_gha_statuses()


def test_list_check_runs_error():
    client = FakeClient(static_statuses(), raising("error"))
    with pytest.raises(RuntimeError, match="error"):
        make_validator(client).list_gha_statuses()


def test_list_invalid_check_run():
    client = FakeClient(static_statuses(), static_runs(CheckRun()))
    with pytest.raises(InvalidCheckRunResponse, match="checkRun response is invalid"):
        make_validator(client).list_gha_statuses()


def test_list_without_duplicates():
    client = FakeClient(
        static_statuses(rs("job-01", "success")),
        static_runs(
            CheckRun(name="job-02", status="failure"),
            CheckRun(name="job-03", status="completed", conclusion="neutral"),
            CheckRun(name="job-04", status="completed", conclusion="success"),
            CheckRun(name="job-05", status="completed", conclusion="failure"),
            CheckRun(name="job-06", status="completed", conclusion="skipped"),
        ),
    )
    assert make_validator(client).list_gha_statuses() == EXPECTED_MIXED


@pytest.mark.parametrize("count", [100, 162, 587])
def test_list_paginates(count):
    statuses = [rs(f"job-{i}", "success") for i in range(count)]
    runs = [
        CheckRun(name=f"job-{i}", status="completed", conclusion="neutral") for i in range(count)
    ]
    client = FakeClient(paged_statuses(statuses), all_runs(runs))
    got = make_validator(client).list_gha_statuses()
    assert got == [GhaStatus(f"job-{i}", "success") for i in range(count)]
    assert [page for *_, page, _ in client.status_pages] == list(range(1, count // 100 + 2))


def test_list_identifiers_include_ids():
    client = FakeClient(
        static_statuses(RepoStatus(id=1, context="build", state="success")),
        static_runs(
            CheckRun(id=2, name="build", status="completed", conclusion="success"),
            CheckRun(id=2, name="build", status="completed", conclusion="failure"),
        ),
    )
    assert make_validator(client).list_gha_statuses() == [
        GhaStatus("build-1", "success"),
        GhaStatus("build-2", "success"),
    ]