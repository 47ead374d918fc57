"""Inbound IPN verification.

Usage with Starlette/FastAPI::

    from ipn.sdk import SignatureVerifier

    verifier = SignatureVerifier()

    @app.post("/ipn")
    async def ipn(request: Request):
        envelope, verified = await verifier.verify_request(request)
        if not verified:
            return Response(status_code=403)
        ...

Every request runs the same pipeline: message-type header check, body
read, parse, certificate fetch, subject check, canonical string, digest
and signature check.  The first failing step ends it.  Failures are
logged with their specific cause but always reach the caller as a plain
``False``.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Mapping

from cryptography import x509
from starlette.requests import Request

from ipn.protocol.crypto import (
    canonical_bytes,
    decode_signature,
    load_certificate,
    verification_key,
    verify_certificate_subject,
    verify_signature,
)
from ipn.protocol.envelope import NotificationEnvelope, parse_envelope
from ipn.protocol.errors import (
    BodyReadError,
    EnvelopeTooLargeError,
    HeaderMismatchError,
    IPNError,
    UntrustedCertificateURLError,
)
from ipn.protocol.types import MESSAGE_TYPE_HEADER, MessageType
from ipn.sdk._sync import run_sync
from ipn.sdk.cert_url_validator import validate_cert_url
from ipn.sdk.config import VerifierConfig
from ipn.sdk.transport.base import CertificateFetcher
from ipn.sdk.transport.http import HTTPCertificateFetcher

logger = logging.getLogger(__name__)

VerificationResult = tuple[NotificationEnvelope | None, bool]


def _header(headers: Mapping[str, str], name: str) -> str | None:
    """Case-insensitive header lookup over any string mapping."""
    value = headers.get(name)
    if value is not None:
        return value
    lowered = name.lower()
    for key, item in headers.items():
        if key.lower() == lowered:
            return item
    return None


def _describe(envelope: NotificationEnvelope) -> str:
    return envelope.message_id or "<no MessageId>"


class SignatureVerifier:
    """Verifies SNS-signed IPN notifications.

    Holds only immutable configuration and a certificate fetcher, so one
    instance can serve any number of concurrent requests.
    """

    def __init__(
        self,
        config: VerifierConfig | None = None,
        fetcher: CertificateFetcher | None = None,
    ) -> None:
        self.config = config if config is not None else VerifierConfig()
        self.fetcher = fetcher if fetcher is not None else HTTPCertificateFetcher(
            timeout=self.config.cert_fetch_timeout,
        )

    async def fetch_certificate(self, url: str) -> x509.Certificate:
        """Validate *url*, fetch it, and parse the signing certificate.

        Raises:
            UntrustedCertificateURLError: If URL validation is on and fails.
            CertificateFetchError: On network failure or non-200 status.
            CertificateParseError: If the body is not a certificate.
        """
        if self.config.validate_cert_url:
            ok, reason = validate_cert_url(url, self.config.allowed_cert_hosts)
            if not ok:
                raise UntrustedCertificateURLError(reason)
        data = await self.fetcher.fetch(url)
        return load_certificate(data)

    async def check(self, envelope: NotificationEnvelope) -> None:
        """Run the verification pipeline, raising on the first failure.

        The subject check runs before any signature work.
        """
        cert = await self.fetch_certificate(envelope.signing_cert_url)
        verify_certificate_subject(cert, self.config.expected_subject)

        canonical = canonical_bytes(envelope)
        signature = decode_signature(envelope.signature)
        verify_signature(canonical, signature, verification_key(cert))

    async def verify(self, envelope: NotificationEnvelope) -> bool:
        """Return ``True`` only if *envelope* carries a valid signature."""
        try:
            await self.check(envelope)
        except IPNError as exc:
            logger.warning(
                "IPN %s failed verification (%s): %s",
                _describe(envelope),
                type(exc).__name__,
                exc,
            )
            return False
        logger.info("IPN %s verified", _describe(envelope))
        return True

    async def read_envelope(
        self,
        headers: Mapping[str, str],
        read_body: Callable[[], Awaitable[bytes]],
    ) -> NotificationEnvelope:
        """Check the message-type header, then read and parse the body.

        *read_body* is not called unless the header says ``Notification``.

        Raises:
            HeaderMismatchError, BodyReadError, MalformedEnvelopeError
        """
        message_type = _header(headers, MESSAGE_TYPE_HEADER)
        if message_type != MessageType.NOTIFICATION.value:
            raise HeaderMismatchError(
                f"{MESSAGE_TYPE_HEADER} is {message_type!r}, expected "
                f"{MessageType.NOTIFICATION.value!r}"
            )

        try:
            body = await read_body()
        # CancelledError is a BaseException and still propagates.
        except Exception as exc:
            raise BodyReadError(f"Failed to read request body: {exc}") from exc

        if len(body) > self.config.max_body_size:
            raise EnvelopeTooLargeError(
                f"Body size {len(body)} bytes exceeds maximum {self.config.max_body_size} bytes"
            )
        return parse_envelope(body)

    async def verify_message(
        self,
        headers: Mapping[str, str],
        read_body: Callable[[], Awaitable[bytes]],
    ) -> VerificationResult:
        """Verify a raw inbound message.

        Returns ``(None, False)`` when the header, body or parse step
        fails, ``(envelope, False)`` when verification fails after parsing,
        and ``(envelope, True)`` only when every step passed.
        """
        try:
            envelope = await self.read_envelope(headers, read_body)
        except IPNError as exc:
            logger.warning("IPN request rejected (%s): %s", type(exc).__name__, exc)
            return None, False
        return envelope, await self.verify(envelope)

    async def verify_request(self, request: Request) -> VerificationResult:
        """Verify a Starlette/FastAPI request.  See :meth:`verify_message`."""
        return await self.verify_message(request.headers, request.body)

    # -- sync wrappers -----------------------------------------------------

    def verify_sync(self, envelope: NotificationEnvelope) -> bool:
        """Synchronous wrapper for :meth:`verify`."""
        return run_sync(self.verify(envelope))

    def verify_message_sync(
        self,
        headers: Mapping[str, str],
        read_body: Callable[[], bytes],
    ) -> VerificationResult:
        """Synchronous wrapper for :meth:`verify_message` (WSGI callers)."""

        async def _read() -> bytes:
            return read_body()

        return run_sync(self.verify_message(headers, _read))


async def verify_ipn_request(
    request: Request,
    config: VerifierConfig | None = None,
) -> VerificationResult:
    """One-shot verification of a Starlette/FastAPI request."""
    return await SignatureVerifier(config).verify_request(request)
