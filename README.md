# gatekeeper

`gatekeeper` gives finer control over merges. It watches every commit status and check run on a Git ref in
a GitHub repository and waits until they have all finished. It succeeds only if none of them failed. Run
it as a single job in your CI workflow, and branch protection then needs only that one required check.

## Installation

```
pip install .
```

For the test suite:

```
pip install ".[test]"
pytest
```

## Usage

```
merge-gatekeeper --token token validate --repo owner/repository --ref main
```

`--token` may be given before or after `validate`. `merge-gatekeeper --version` prints the version. Run
without a command, it prints help.

Options of `validate`:

| Option | Default | Meaning |
| --- | --- | --- |
| `-t`, `--token` | (required) | GitHub token used for API calls |
| `--ref` | (required) | A SHA, branch name or tag name |
| `-r`, `--repo` | | Repository as `owner/name`. A non-empty `GITHUB_REPOSITORY` takes its place |
| `-s`, `--self` | `merge-gatekeeper` | Name of this job. Any job whose identifier contains it counts as successful |
| `-i`, `--ignored` | | Comma-separated list of job identifiers to ignore. Blanks around names are stripped |
| `--timeout` | `600` | Seconds to wait before giving up |
| `--interval` | `10` | Seconds between checks |

The API base URL is `https://api.github.com`. If `GITHUB_API_URL` is set, it is used instead.

The command checks right away. After that it checks again every `--interval` seconds until one of these
happens:

- every job that is not ignored and is not this job has succeeded. The command prints
  `All validations were successful!` and exits with status 0.
- some job has failed. The command exits with status 1 and prints the report.
- the timeout runs out. The command exits with status 1.

Every error is printed to standard error as `failed to execute command: <reason>`. SIGINT and SIGTERM
also end the command with status 1.

### How jobs are judged

A job is identified by its name and the id that GitHub gives it, as `<name>-<id>`. When the API returns no
id, the name alone is used. If the same identifier shows up more than once, only the first occurrence
counts. Ignored jobs are matched against this identifier exactly.

- A commit status in state `success` is completed. A status in `error` or `failure` has failed. Any other
  state is still running.
- A check run whose status is not `completed` is still running. A completed run with conclusion `success`
  or `neutral` is completed. One with `skipped` is left out entirely. Any other conclusion has failed.

Each check prints a report. It gives the total number of jobs and how many are completed, incomplete,
failed and ignored. Then come the lists of jobs, wrapped in `::group::` / `::endgroup::` markers so that
they fold up in GitHub Actions logs.

## Library use

```python
import sys

from gatekeeper.cli import do_validate
from gatekeeper.github import GitHubClient
from gatekeeper.validator import (
    create_validator,
    with_github_owner_and_repo,
    with_github_ref,
    with_self_job,
)

with GitHubClient("token") as client:
    validator = create_validator(
        client,
        with_github_owner_and_repo("owner", "repository"),
        with_github_ref("main"),
        with_self_job("merge-gatekeeper"),
    )
    do_validate([validator], timeout=600, interval=10, stdout=sys.stdout, stderr=sys.stderr)
```

- `create_validator` raises `gatekeeper.multierror.MultiError` if the owner, repository, ref, self job name
  or client is missing. The error lists every missing field.
- `StatusValidator.validate()` runs a single pass and returns a `gatekeeper.status.JobStatus`. If a job has
  failed, it raises `RuntimeError` carrying the report.
- `StatusValidator.list_gha_statuses()` returns the job identifiers and their normalised states as
  `GhaStatus` objects.
- `do_validate` raises `ValidationTimeout` if the validators do not all succeed in time. It raises
  `RuntimeError` as soon as a validator raises.

Any object with the methods `get_combined_status` and `list_check_runs_for_ref` can serve as the client,
as described by `gatekeeper.github.Client`. Your own checks can subclass `gatekeeper.validators.Validator`
and `gatekeeper.validators.Status`.