"""Minimal GitHub REST client for commit statuses and check runs."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Protocol
from urllib.parse import quote

import requests

DEFAULT_API_URL = "https://api.github.com"


@dataclass
class RepoStatus:
    """One commit status as reported by the combined-status endpoint."""

    id: int | None = None
    context: str | None = None
    state: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RepoStatus:
        return cls(id=data.get("id"), context=data.get("context"), state=data.get("state"))


@dataclass
class CombinedStatus:
    """A page of commit statuses for a ref."""

    statuses: list[RepoStatus] = field(default_factory=list)
    total_count: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CombinedStatus:
        return cls(
            statuses=[RepoStatus.from_dict(item) for item in data.get("statuses") or []],
            total_count=data.get("total_count") or 0,
        )


@dataclass
class CheckRun:
    """One check run for a ref."""

    id: int | None = None
    name: str | None = None
    status: str | None = None
    conclusion: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CheckRun:
        return cls(
            id=data.get("id"),
            name=data.get("name"),
            status=data.get("status"),
            conclusion=data.get("conclusion"),
        )


@dataclass
class CheckRunsResult:
    """A page of check runs together with the overall total."""

    check_runs: list[CheckRun] = field(default_factory=list)
    total: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CheckRunsResult:
        return cls(
            check_runs=[CheckRun.from_dict(item) for item in data.get("check_runs") or []],
            total=data.get("total_count") or 0,
        )


class Client(Protocol):
    """What the validators need from a GitHub client."""

    def get_combined_status(
        self, owner: str, repo: str, ref: str, page: int, per_page: int
    ) -> CombinedStatus: ...

    def list_check_runs_for_ref(
        self, owner: str, repo: str, ref: str, page: int, per_page: int
    ) -> CheckRunsResult: ...


class GitHubClient:
    """Token-authenticated client for the GitHub REST API."""

    def __init__(
        self,
        token: str,
        base_url: str | None = None,
        session: requests.Session | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._base_url = (
            base_url or os.environ.get("GITHUB_API_URL") or DEFAULT_API_URL
        ).rstrip("/")
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github.v3+json",
            }
        )
        self._timeout = timeout

    def _get(self, path: str, page: int, per_page: int) -> dict[str, Any]:
        response = self._session.get(
            f"{self._base_url}{path}",
            params={"page": page, "per_page": per_page},
            timeout=self._timeout,
        )
        response.raise_for_status()
        return response.json()

    @staticmethod
    def _commit_path(owner: str, repo: str, ref: str) -> str:
        return f"/repos/{quote(owner, safe='')}/{quote(repo, safe='')}/commits/{quote(ref, safe='/')}"

    def get_combined_status(
        self, owner: str, repo: str, ref: str, page: int, per_page: int
    ) -> CombinedStatus:
        """Fetch one page of the combined status for ``ref``."""
        data = self._get(f"{self._commit_path(owner, repo, ref)}/status", page, per_page)
        return CombinedStatus.from_dict(data)

    def list_check_runs_for_ref(
        self, owner: str, repo: str, ref: str, page: int, per_page: int
    ) -> CheckRunsResult:
        """Fetch one page of check runs for ``ref``."""
        data = self._get(f"{self._commit_path(owner, repo, ref)}/check-runs", page, per_page)
        return CheckRunsResult.from_dict(data)

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> GitHubClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()