"""IPN exception hierarchy.

All verification failures inherit from :class:`IPNError`.  The distinctions
exist for logging and diagnostics; the public verification entry points
collapse every one of them into an unverified result.
"""

from __future__ import annotations


class IPNError(Exception):
    """Base exception for all IPN verification errors."""


class HeaderMismatchError(IPNError):
    """Raised when the message-type header is missing or not ``Notification``."""


class BodyReadError(IPNError):
    """Raised when the inbound request body cannot be read."""


class MalformedEnvelopeError(IPNError):
    """Raised when a body is not valid JSON or not shaped like an envelope."""


class EnvelopeTooLargeError(MalformedEnvelopeError):
    """Raised when a request body exceeds the configured maximum size."""


class CertificateError(IPNError):
    """Base class for signing-certificate failures."""


class UntrustedCertificateURLError(CertificateError):
    """Raised when ``SigningCertURL`` points outside the allowed hosts."""


class CertificateFetchError(CertificateError):
    """Raised on network failure or a non-200 response fetching a certificate."""


class CertificateParseError(CertificateError):
    """Raised when fetched bytes are not a valid X.509 certificate."""


class SubjectMismatchError(CertificateError):
    """Raised when the certificate's common name is not the expected signer."""


class SignatureError(IPNError):
    """Base class for signature failures."""


class SignatureDecodeError(SignatureError):
    """Raised when the ``Signature`` field is not valid base64."""


class SignatureInvalidError(SignatureError):
    """Raised when a cryptographic signature does not verify."""


class UnsupportedKeyTypeError(SignatureInvalidError):
    """Raised when the certificate carries a non-RSA public key."""
