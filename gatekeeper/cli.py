"""Command line interface: wait until every other job on a ref has passed."""

from __future__ import annotations

import argparse
import os
import signal
import sys
import time
from collections.abc import Iterable
from importlib import metadata
from typing import TextIO

from gatekeeper.github import GitHubClient
from gatekeeper.ticker import InstantTicker
from gatekeeper.validator import (
    create_validator,
    with_github_owner_and_repo,
    with_github_ref,
    with_ignored_jobs,
    with_self_job,
)
from gatekeeper.validators import Validator

DEFAULT_SELF_JOB_NAME = "merge-gatekeeper"
DEFAULT_TIMEOUT_SECONDS = 600
DEFAULT_INTERVAL_SECONDS = 10


class ValidationTimeout(TimeoutError):
    """Validation did not finish successfully before the deadline."""

    def __init__(self, timeout: float) -> None:
        super().__init__(f"validation timed out after {timeout:g} seconds")
        self.timeout = timeout


class _UsageError(ValueError):
    """The command line could not be parsed."""


class _Cancelled(Exception):
    """The process was asked to terminate."""


class _Parser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        raise _UsageError(message)


def owner_and_repository(value: str) -> tuple[str, str]:
    """Split ``owner/repo`` into its owner and repository parts.

    Anything after the first slash belongs to the repository part.
    """
    owner, _, repo = value.partition("/")
    return owner, repo


def _run_validator(validator: Validator, stdout: TextIO) -> bool:
    name = f"validator: {validator.name}"
    stdout.write(f"Start processing {name}....\n")
    try:
        try:
            status = validator.validate()
        except Exception as err:
            raise RuntimeError(f"validation failed, err: {err}") from err
        print(status.detail(), file=stdout)
        return status.is_success()
    finally:
        stdout.write(f"Finish {name} processing.\n")


def do_validate(
    validators: Iterable[Validator],
    timeout: float,
    interval: float,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
) -> None:
    """Run the validators every ``interval`` seconds until all succeed.

    Raises ValidationTimeout when ``timeout`` seconds pass first, and
    RuntimeError as soon as a validator raises.
    """
    out = sys.stdout if stdout is None else stdout
    err = sys.stderr if stderr is None else stderr
    checks = list(validators)
    deadline = time.monotonic() + timeout

    with InstantTicker(interval) as ticker:
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0 or ticker.tick(timeout=remaining) is None:
                raise ValidationTimeout(timeout)

            succeeded = sum(_run_validator(check, out) for check in checks)
            if succeeded == len(checks):
                print("All validations were successful!", file=out)
                return

            print("", file=err)
            print(
                "  WARNING: Validation is yet to be completed. "
                "This is most likely due to some other jobs still running.",
                file=err,
            )
            err.write(f"           Waiting for {interval:g} seconds before retrying.\n\n")


def _uint(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid unsigned integer: {text!r}") from None
    if value < 0:
        raise argparse.ArgumentTypeError(f"invalid unsigned integer: {text!r}")
    return value


def _build_parser(version: str) -> _Parser:
    token_flags = _Parser(add_help=False)
    token_flags.add_argument(
        "-t", "--token", default=argparse.SUPPRESS, help="set github token"
    )

    parser = _Parser(
        prog="gatekeeper",
        description="Get more refined merge control",
        parents=[token_flags],
    )
    parser.add_argument(
        "-v", "--version", action="version", version=f"%(prog)s version {version}"
    )
    commands = parser.add_subparsers(dest="command")

    validate = commands.add_parser(
        "validate",
        parents=[token_flags],
        help="Validate other github actions job",
        description="Validate other github actions job",
    )
    validate.add_argument(
        "-s", "--self", dest="self_job", default=DEFAULT_SELF_JOB_NAME,
        help="set self job name",
    )
    validate.add_argument("-r", "--repo", default="", help="set github repository")
    validate.add_argument(
        "--ref",
        default=None,
        help="set ref of github repository. the ref can be a SHA, a branch name, or tag name",
    )
    validate.add_argument(
        "--timeout", type=_uint, default=DEFAULT_TIMEOUT_SECONDS,
        help="set validate timeout second",
    )
    validate.add_argument(
        "--interval", type=_uint, default=DEFAULT_INTERVAL_SECONDS,
        help="set validate interval second",
    )
    validate.add_argument(
        "-i", "--ignored", default="", help="set ignored jobs (comma-separated list)"
    )
    return parser


def _validate_command(args: argparse.Namespace) -> None:
    missing = sorted(
        flag for flag, value in (("ref", args.ref), ("token", getattr(args, "token", None)))
        if value is None
    )
    if missing:
        quoted = ", ".join(f'"{flag}"' for flag in missing)
        raise _UsageError(f"required flag(s) {quoted} not set")

    repository = os.environ.get("GITHUB_REPOSITORY") or args.repo
    owner, repo = owner_and_repository(repository)
    if not owner or not repo:
        raise ValueError(
            f"github owner or repository is empty. owner: {owner}, repository: {repo}"
        )

    with GitHubClient(args.token) as client:
        try:
            validator = create_validator(
                client,
                with_self_job(args.self_job),
                with_github_owner_and_repo(owner, repo),
                with_github_ref(args.ref),
                with_ignored_jobs(args.ignored),
            )
        except Exception as err:
            raise RuntimeError(f"failed to create validator: {err}") from err
        do_validate([validator], args.timeout, args.interval)


def run(version: str, argv: list[str] | None = None) -> None:
    """Parse ``argv`` and run the chosen command; raise on failure."""
    parser = _build_parser(version)
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help(sys.stdout)
        return
    _validate_command(args)


def _package_version() -> str:
    try:
        return metadata.version("gatekeeper")
    except metadata.PackageNotFoundError:
        return "0.0.0"


def _on_terminate(signum: int, frame: object) -> None:
    raise _Cancelled("context canceled")


def main(argv: list[str] | None = None) -> int:
    """Entry point of the command; returns the process exit status."""
    previous = signal.getsignal(signal.SIGTERM)
    try:
        signal.signal(signal.SIGTERM, _on_terminate)
    except ValueError:
        previous = None  # not in the main thread
    try:
        run(_package_version(), argv)
    except KeyboardInterrupt:
        sys.stderr.write("failed to execute command: context canceled\n")
        return 1
    except Exception as err:
        sys.stderr.write(f"failed to execute command: {err}\n")
        return 1
    finally:
        if previous is not None:
            signal.signal(signal.SIGTERM, previous)
    return 0