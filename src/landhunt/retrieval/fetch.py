"""Best-effort page fetches for planning-summary sources."""

import logging

import httpx

from landhunt.core.errors import RateLimitedError, UpstreamFetchError
from landhunt.observability.tracing import trace

logger = logging.getLogger(__name__)

ERROR_BODY_LIMIT = 500


def raise_for_upstream(resp: httpx.Response, source: str) -> None:
    """Map a non-2xx upstream response to UpstreamFetchError.

    429 becomes RateLimitedError so callers can tell "back off" apart from
    a generic failure. The upstream body is kept (truncated) for diagnosis.
    """
    if resp.is_success:
        return
    body = resp.text[:ERROR_BODY_LIMIT]
    logger.error("Upstream %s error %d: %s", source, resp.status_code, body)
    if resp.status_code == 429:
        raise RateLimitedError(f"{source} rate limited", status=429, body=body)
    raise UpstreamFetchError(
        f"{source} returned HTTP {resp.status_code}", status=resp.status_code, body=body,
    )


@trace(name="fetch_page", span_type="TOOL")
async def fetch_page(client: httpx.AsyncClient, url: str) -> str:
    """GET a URL and return the response body as text.

    Raises:
        UpstreamFetchError: malformed URL, transport failure or non-success status.
        RateLimitedError: the upstream answered 429.
    """
    try:
        resp = await client.get(url, follow_redirects=True)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.error("Failed to fetch %s: %s", url, e, extra={"source_url": url})
        raise UpstreamFetchError(f"Could not fetch URL: {e}") from e

    raise_for_upstream(resp, "source URL")
    return resp.text
