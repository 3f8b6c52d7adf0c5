"""
Async HTTP fetching helpers.

Every helper returns a FetchResult instead of raising: network errors,
timeouts and non-2xx statuses are reported through the error field so
callers can treat them as ordinary, recoverable outcomes.

A transport may be injected (e.g. httpx.MockTransport in tests); when it
is None the default network transport is used.
"""

from __future__ import annotations

from dataclasses import dataclass

import httpx


@dataclass
class FetchResult:
    """Result of an HTTP fetch operation.

    Either text will be populated (success) or error will be populated (failure),
    but never both. status_code may be None for network-level failures.

    Attributes:
        url: The URL that was requested
        status_code: HTTP status code, or None if request failed before getting response
        text: The response body text, or None on error
        error: Error message if fetch failed, None on success
        final_url: URL of the last response after redirects
        location: Location header of an unfollowed redirect
    """
    url: str
    status_code: int | None
    text: str | None
    error: str | None
    final_url: str | None = None
    location: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def fetch_url(
    url: str,
    timeout: float,
    headers: dict[str, str] | None = None,
    trust_env: bool = True,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FetchResult:
    """GET a URL, following redirects.

    Args:
        url: The URL to fetch
        timeout: Request timeout in seconds
        headers: Request headers (User-Agent, Accept, ...)
        trust_env: Whether to respect system proxy settings from environment
        transport: Optional transport override

    Returns:
        FetchResult with text on a 2xx response, error otherwise
    """
    try:
        async with httpx.AsyncClient(
            timeout=timeout,
            headers=headers,
            follow_redirects=True,
            trust_env=trust_env,
            transport=transport,
        ) as client:
            resp = await client.get(url)
    except httpx.TimeoutException as exc:
        return FetchResult(url=url, status_code=None, text=None, error=f"TimeoutError: {exc}")
    except Exception as exc:  # noqa: BLE001
        return FetchResult(url=url, status_code=None, text=None, error=f"{type(exc).__name__}: {exc}")

    if not resp.is_success:
        return FetchResult(
            url=url,
            status_code=resp.status_code,
            text=None,
            error=f"HTTP {resp.status_code}",
            final_url=str(resp.url),
        )
    return FetchResult(
        url=url,
        status_code=resp.status_code,
        text=resp.text,
        error=None,
        final_url=str(resp.url),
    )


async def probe_redirect(
    url: str,
    timeout: float,
    headers: dict[str, str] | None = None,
    trust_env: bool = True,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FetchResult:
    """Issue a HEAD request without following redirects.

    The redirect target, if any, is reported in ``location`` resolved
    against the request URL. A non-redirect response is not an error.
    """
    try:
        async with httpx.AsyncClient(
            timeout=timeout,
            headers=headers,
            follow_redirects=False,
            trust_env=trust_env,
            transport=transport,
        ) as client:
            resp = await client.head(url)
    except httpx.TimeoutException as exc:
        return FetchResult(url=url, status_code=None, text=None, error=f"TimeoutError: {exc}")
    except Exception as exc:  # noqa: BLE001
        return FetchResult(url=url, status_code=None, text=None, error=f"{type(exc).__name__}: {exc}")

    location = None
    if resp.is_redirect and resp.headers.get("location"):
        location = str(resp.url.join(resp.headers["location"]))
    return FetchResult(
        url=url,
        status_code=resp.status_code,
        text=None,
        error=None,
        final_url=str(resp.url),
        location=location,
    )
