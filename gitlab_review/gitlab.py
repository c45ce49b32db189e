"""Fetching merge request metadata from the GitLab REST API."""

from __future__ import annotations

from urllib.parse import quote

import requests

from . import render
from .config import ReviewConfig
from .exceptions import MergeRequestError
from .models import MergeRequestInfo


def merge_request_url(instance: str, project_id: int, mr: int) -> str:
    base = instance.rstrip("/")
    return f"{base}/api/v4/projects/{quote(str(project_id), safe='')}/merge_requests/{mr}"


def fetch_merge_request(config: ReviewConfig, mr: int) -> MergeRequestInfo:
    """Return merge request ``mr`` of the configured project.

    Any network error, timeout, non-2xx status or malformed body raises
    ``MergeRequestError``.
    """

    config.require_remote()
    url = merge_request_url(config.instance, config.project_id, mr)
    headers = {"Accept": "application/json"}
    if config.token:
        headers["Authorization"] = f"Bearer {config.token}"
    render.debug(f"GET {url}")
    try:
        response = requests.get(url, headers=headers, timeout=config.timeout)
    except requests.Timeout as exc:
        raise MergeRequestError(
            f"Timed out after {config.timeout:g}s fetching MR info from {config.instance}"
        ) from exc
    except requests.RequestException as exc:
        raise MergeRequestError(f"Failed to fetch MR info from GitLab instance: {exc}") from exc

    if not response.ok:
        raise MergeRequestError(f"GitLab answered HTTP {response.status_code} for {url}")
    try:
        payload = response.json()
    except ValueError as exc:
        raise MergeRequestError(f"Failed to parse MR info: {exc}") from exc
    return MergeRequestInfo.from_payload(payload, default_iid=mr)
