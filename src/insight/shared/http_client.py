"""httpx client builder shared by the data tools."""

from __future__ import annotations

import httpx

from insight import __version__
from insight.schemas.config import ExternalAPIsConfig

USER_AGENT = f"insight-assistant/{__version__}"


def build_async_client(
    config: ExternalAPIsConfig | None = None,
    *,
    extra_headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create an ``httpx.AsyncClient`` with the timeout and headers every tool uses.

    ``transport`` lets tests plug in an ``httpx.MockTransport``.
    """
    config = config or ExternalAPIsConfig()
    headers = {
        "User-Agent": USER_AGENT,
        "Accept": "application/json",
    }
    if extra_headers:
        headers.update(extra_headers)
    return httpx.AsyncClient(
        timeout=httpx.Timeout(config.timeout_seconds),
        follow_redirects=True,
        headers=headers,
        transport=transport,
    )
