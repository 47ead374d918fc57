"""Certificate retrieval over HTTP via httpx."""

from __future__ import annotations

import logging

import httpx

from ipn.protocol.errors import CertificateFetchError
from ipn.protocol.types import MAX_CERTIFICATE_SIZE
from ipn.sdk.transport.base import CertificateFetcher

logger = logging.getLogger(__name__)


class HTTPCertificateFetcher(CertificateFetcher):
    """Fetch signing certificates with a single GET per verification.

    The response is streamed inside ``async with`` so the connection goes
    back to the pool (or is closed) on every exit path, including error
    statuses, oversize bodies and task cancellation.  Redirects are not
    followed.

    Pass ``client`` to reuse a caller-owned ``httpx.AsyncClient``; it is
    never closed here.  Otherwise a short-lived client is created per fetch.
    """

    def __init__(
        self,
        timeout: float = 10.0,
        max_size: int = MAX_CERTIFICATE_SIZE,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout
        self._max_size = max_size
        self._client = client
        self._transport = transport

    async def fetch(self, url: str) -> bytes:
        if self._client is not None:
            return await self._download(self._client, url)

        async with httpx.AsyncClient(
            timeout=self._timeout,
            follow_redirects=False,
            transport=self._transport,
        ) as client:
            return await self._download(client, url)

    async def _download(self, client: httpx.AsyncClient, url: str) -> bytes:
        chunks: list[bytes] = []
        size = 0
        try:
            async with client.stream("GET", url, timeout=self._timeout) as resp:
                if resp.status_code != 200:
                    raise CertificateFetchError(
                        f"Certificate fetch returned HTTP {resp.status_code}"
                    )
                async for chunk in resp.aiter_bytes():
                    size += len(chunk)
                    if size > self._max_size:
                        raise CertificateFetchError(
                            f"Certificate exceeds maximum size of {self._max_size} bytes"
                        )
                    chunks.append(chunk)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise CertificateFetchError(f"Certificate fetch failed: {exc}") from exc

        logger.debug("Fetched %d-byte signing certificate from %s", size, url)
        return b"".join(chunks)
