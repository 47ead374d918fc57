"""IPN Protocol -- envelope parsing and signature primitives.

Public API re-exports for ``ipn.protocol``.  Nothing in this package
performs I/O.
"""

from ipn.protocol.types import (
    MESSAGE_TYPE_HEADER,
    DEFAULT_SIGNING_SUBJECT,
    DEFAULT_CERT_HOSTS,
    SIGNED_FIELDS,
    INNER_PAYLOAD_FIELDS,
    MAX_BODY_SIZE,
    MAX_CERTIFICATE_SIZE,
    MessageType,
    b64_decode_strict,
)

from ipn.protocol.errors import (
    IPNError,
    HeaderMismatchError,
    BodyReadError,
    MalformedEnvelopeError,
    EnvelopeTooLargeError,
    CertificateError,
    UntrustedCertificateURLError,
    CertificateFetchError,
    CertificateParseError,
    SubjectMismatchError,
    SignatureError,
    SignatureDecodeError,
    SignatureInvalidError,
    UnsupportedKeyTypeError,
)

from ipn.protocol.envelope import (
    InnerPayload,
    NotificationEnvelope,
    parse_envelope,
    to_wire_dict,
)

from ipn.protocol.crypto import (
    RSAVerificationKey,
    UnsupportedVerificationKey,
    VerificationKey,
    build_canonical_string,
    canonical_bytes,
    load_certificate,
    certificate_common_name,
    verify_certificate_subject,
    verification_key,
    decode_signature,
    sha1_digest,
    verify_signature,
)

__all__ = [
    # Types
    "MESSAGE_TYPE_HEADER",
    "DEFAULT_SIGNING_SUBJECT",
    "DEFAULT_CERT_HOSTS",
    "SIGNED_FIELDS",
    "INNER_PAYLOAD_FIELDS",
    "MAX_BODY_SIZE",
    "MAX_CERTIFICATE_SIZE",
    "MessageType",
    "b64_decode_strict",
    # Errors
    "IPNError",
    "HeaderMismatchError",
    "BodyReadError",
    "MalformedEnvelopeError",
    "EnvelopeTooLargeError",
    "CertificateError",
    "UntrustedCertificateURLError",
    "CertificateFetchError",
    "CertificateParseError",
    "SubjectMismatchError",
    "SignatureError",
    "SignatureDecodeError",
    "SignatureInvalidError",
    "UnsupportedKeyTypeError",
    # Envelope
    "InnerPayload",
    "NotificationEnvelope",
    "parse_envelope",
    "to_wire_dict",
    # Crypto
    "RSAVerificationKey",
    "UnsupportedVerificationKey",
    "VerificationKey",
    "build_canonical_string",
    "canonical_bytes",
    "load_certificate",
    "certificate_common_name",
    "verify_certificate_subject",
    "verification_key",
    "decode_signature",
    "sha1_digest",
    "verify_signature",
]
