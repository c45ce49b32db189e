"""Dataclasses shared across modules."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from .exceptions import MergeRequestError


@dataclass(frozen=True)
class ProjectIdentity:
    """The GitLab project a merge request belongs to. Namespaces cache slots."""

    project_id: int

    def __str__(self) -> str:
        return str(self.project_id)


@dataclass(frozen=True)
class RepoState:
    """Repository state captured before the session touches anything.

    With a detached HEAD, ``initial_branch`` holds the commit id and
    ``detached`` is set.
    """

    initial_branch: str
    is_clean: bool
    detached: bool = False


@dataclass(frozen=True)
class GitLabUser:
    id: int
    username: str
    web_url: str = ""


@dataclass(frozen=True)
class GitLabPipeline:
    id: int | None
    status: str
    web_url: str = ""


NO_PIPELINE = GitLabPipeline(id=None, status="none")


@dataclass(frozen=True)
class MergeRequestInfo:
    """Merge request metadata as returned by the GitLab API."""

    id: int
    iid: int
    title: str
    source_branch: str
    target_branch: str
    project_id: int
    author: GitLabUser
    pipeline: GitLabPipeline = NO_PIPELINE

    @property
    def project(self) -> ProjectIdentity:
        return ProjectIdentity(self.project_id)

    @classmethod
    def from_payload(cls, payload: Any, *, default_iid: int | None = None) -> MergeRequestInfo:
        """Build an instance from a decoded API response.

        ``pipeline`` falls back to ``head_pipeline`` and may be null. Anything
        else that does not match the expected shape raises ``MergeRequestError``.
        """

        if not isinstance(payload, Mapping):
            raise MergeRequestError("Unexpected merge request payload: expected a JSON object.")
        iid = payload.get("iid", default_iid)
        author = payload.get("author")
        if not isinstance(author, Mapping):
            raise MergeRequestError("Unexpected merge request payload: missing 'author'.")
        raw_pipeline = payload.get("pipeline") or payload.get("head_pipeline")
        if raw_pipeline is None:
            pipeline = NO_PIPELINE
        elif isinstance(raw_pipeline, Mapping):
            pipeline = GitLabPipeline(
                id=_optional_int(raw_pipeline, "id", "pipeline.id"),
                status=_require_str(raw_pipeline, "status", "pipeline.status"),
                web_url=str(raw_pipeline.get("web_url") or ""),
            )
        else:
            raise MergeRequestError("Unexpected merge request payload: 'pipeline' is not an object.")
        return cls(
            id=_require_int(payload, "id", "id"),
            iid=_require_int({"iid": iid}, "iid", "iid"),
            title=_require_str(payload, "title", "title"),
            source_branch=_require_str(payload, "source_branch", "source_branch"),
            target_branch=_require_str(payload, "target_branch", "target_branch"),
            project_id=_require_int(payload, "project_id", "project_id"),
            author=GitLabUser(
                id=_require_int(author, "id", "author.id"),
                username=_require_str(author, "username", "author.username"),
                web_url=str(author.get("web_url") or ""),
            ),
            pipeline=pipeline,
        )


def _require_int(data: Mapping[str, Any], key: str, label: str) -> int:
    value = data.get(key)
    # bool is an int subclass; GitLab never sends one for an id
    if isinstance(value, bool) or not isinstance(value, int):
        raise MergeRequestError(f"Unexpected merge request payload: '{label}' must be an integer.")
    return value


def _optional_int(data: Mapping[str, Any], key: str, label: str) -> int | None:
    if data.get(key) is None:
        return None
    return _require_int(data, key, label)


def _require_str(data: Mapping[str, Any], key: str, label: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value:
        raise MergeRequestError(f"Unexpected merge request payload: '{label}' must be a non-empty string.")
    return value
