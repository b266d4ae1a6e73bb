"""
HTTP plumbing for the GBIF clients.

``ApiSession`` is a ``requests.Session`` that retries transient upstream
failures, asks for JSON and never waits forever: a request sent without a
timeout gets the session's ``default_timeout``. Callers share the
module-level ``session``::

    from wilder.services.http import session

    resp = session.get("https://api.gbif.org/v1/species/match", params={"name": name})
    resp.raise_for_status()
"""

from __future__ import annotations

from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

#: GBIF answers 429 when throttling and 5xx under load; both clear up on retry.
DEFAULT_RETRY = Retry(
    total=3,
    backoff_factor=1,
    status_forcelist=[429, 500, 502, 503, 504],
    allowed_methods=["GET", "HEAD"],
    raise_on_status=False,
)

DEFAULT_TIMEOUT = 20  # seconds

USER_AGENT = "wilder/0.1 (wild plant finder)"

DEFAULT_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "application/json",
}


class ApiSession(requests.Session):
    """Session with a retrying adapter, JSON headers and a fallback timeout."""

    def __init__(self, retry: Retry | None = None, timeout: float = DEFAULT_TIMEOUT) -> None:
        super().__init__()
        self.default_timeout = timeout
        adapter = HTTPAdapter(max_retries=retry or DEFAULT_RETRY)
        for prefix in ("https://", "http://"):
            self.mount(prefix, adapter)
        self.headers.update(DEFAULT_HEADERS)

    def send(self, request: requests.PreparedRequest, **kwargs: Any) -> requests.Response:
        # Session.request passes timeout=None explicitly
        if kwargs.get("timeout") is None:
            kwargs["timeout"] = self.default_timeout
        return super().send(request, **kwargs)


def create_session(retry: Retry | None = None, timeout: float = DEFAULT_TIMEOUT) -> ApiSession:
    """New ``ApiSession``; ``retry`` defaults to ``DEFAULT_RETRY``."""
    return ApiSession(retry=retry, timeout=timeout)


session: ApiSession = create_session()
