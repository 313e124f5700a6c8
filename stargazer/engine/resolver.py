"""Map GitHub repository URLs onto REST API endpoints."""

from __future__ import annotations

import re

from ..config.models import DEFAULT_API_BASE_URL

_REPO_URL = re.compile(r"https://github\.com/([^/\s]+)/([^/\s]+)")


def resolve_endpoint(url: object, api_base_url: str = DEFAULT_API_BASE_URL) -> str | None:
    """Return the repository API endpoint for ``url`` or ``None``.

    Only ``https://github.com/<owner>/<repo>`` (with at most one trailing
    slash) resolves. Never raises.
    """

    if not isinstance(url, str):
        return None
    candidate = url[:-1] if url.endswith("/") else url
    match = _REPO_URL.fullmatch(candidate)
    if match is None:
        return None
    owner, repo = match.groups()
    return f"{api_base_url.rstrip('/')}/{owner}/{repo}"


__all__ = ["resolve_endpoint"]
