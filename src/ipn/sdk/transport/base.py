"""Abstract certificate retrieval interface."""

from __future__ import annotations

import abc


class CertificateFetcher(abc.ABC):
    """Retrieves signing-certificate bytes for a ``SigningCertURL``.

    One implementation ships: ``HTTPCertificateFetcher`` (httpx).  Tests
    and callers with their own HTTP stack supply others.
    """

    @abc.abstractmethod
    async def fetch(self, url: str) -> bytes:
        """Return the raw certificate body found at *url*.

        Raises ``CertificateFetchError`` on any retrieval failure.
        """
