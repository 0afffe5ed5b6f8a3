import logging
from typing import Any

import requests

from cryptojackal.core.errors import UpstreamError

logger = logging.getLogger("cryptojackal")

DEFAULT_TIMEOUT = 30.0


def get_json(
    session: requests.Session,
    url: str,
    *,
    source: str,
    operation: str,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    allow_not_found: bool = False,
) -> Any:
    """GET ``url`` and decode the JSON body.

    Returns None on 404 when ``allow_not_found`` is set. Everything else that
    is not a 2xx response with a JSON body raises UpstreamError.
    """
    try:
        resp = session.get(url, params=params, headers=headers, timeout=timeout)
    except requests.RequestException as e:
        raise UpstreamError(source, operation, f"request failed: {e}") from e

    if allow_not_found and resp.status_code == 404:
        return None
    if not 200 <= resp.status_code < 300:
        raise UpstreamError(
            source,
            operation,
            f"API error: {resp.status_code}",
            status_code=resp.status_code,
        )

    try:
        return resp.json()
    except ValueError as e:
        raise UpstreamError(source, operation, f"failed to decode response: {e}") from e
