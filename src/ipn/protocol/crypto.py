"""Cryptographic checks for IPN verification.

Canonical-string construction, X.509 signing-certificate handling, and
RSA PKCS#1 v1.5 / SHA-1 signature verification.  Every primitive
delegates to ``cryptography``; failures surface as :mod:`ipn.protocol.errors`
exceptions.
"""

from __future__ import annotations

import binascii
import hashlib
import logging
from dataclasses import dataclass
from typing import Union

from cryptography import x509
from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.hazmat.primitives.asymmetric.utils import Prehashed
from cryptography.x509.oid import NameOID

from ipn.protocol.envelope import NotificationEnvelope
from ipn.protocol.errors import (
    CertificateParseError,
    MalformedEnvelopeError,
    SignatureDecodeError,
    SignatureInvalidError,
    SubjectMismatchError,
    UnsupportedKeyTypeError,
)
from ipn.protocol.types import b64_decode_strict

logger = logging.getLogger(__name__)

_PEM_MARKER = b"-----BEGIN"


# ---------------------------------------------------------------------------
# Canonical string
# ---------------------------------------------------------------------------

def build_canonical_string(envelope: NotificationEnvelope) -> str:
    """Build the string the sender signed.

    Fields appear in the fixed order ``Message, MessageId, Timestamp,
    TopicArn, Type``, each as ``"<name>\\n<value>\\n"``.  ``Message`` is
    always present; the others are omitted entirely when empty.
    """
    parts = [f"Message\n{envelope.message.serialize()}\n"]
    for name, value in (
        ("MessageId", envelope.message_id),
        ("Timestamp", envelope.timestamp),
        ("TopicArn", envelope.topic_arn),
        ("Type", envelope.type),
    ):
        if value:
            parts.append(f"{name}\n{value}\n")
    return "".join(parts)


def canonical_bytes(envelope: NotificationEnvelope) -> bytes:
    """UTF-8 encoding of :func:`build_canonical_string`.

    Raises:
        MalformedEnvelopeError: If a signed field holds a lone surrogate
            (JSON allows ``"\\ud800"``; UTF-8 cannot encode it).
    """
    try:
        return build_canonical_string(envelope).encode("utf-8")
    except UnicodeEncodeError as exc:
        raise MalformedEnvelopeError(f"Signed fields are not valid Unicode: {exc}") from exc


# ---------------------------------------------------------------------------
# Certificates
# ---------------------------------------------------------------------------

def load_certificate(data: bytes) -> x509.Certificate:
    """Parse a DER (or PEM) encoded X.509 certificate.

    Raises:
        CertificateParseError: If *data* is not a certificate.
    """
    try:
        if data.lstrip().startswith(_PEM_MARKER):
            return x509.load_pem_x509_certificate(data)
        return x509.load_der_x509_certificate(data)
    except ValueError as exc:
        raise CertificateParseError(f"Invalid X.509 certificate: {exc}") from exc


def certificate_common_name(cert: x509.Certificate) -> str | None:
    """Return the subject common name, or ``None`` if there is none.

    When the subject repeats CN, the last one wins.
    """
    attrs = cert.subject.get_attributes_for_oid(NameOID.COMMON_NAME)
    if not attrs:
        return None
    value = attrs[-1].value
    return value.decode("utf-8", errors="replace") if isinstance(value, bytes) else value


def verify_certificate_subject(cert: x509.Certificate, expected: str) -> None:
    """Check the certificate was issued to the *expected* signer.

    Raises:
        SubjectMismatchError: If the common name differs from *expected*.
    """
    common_name = certificate_common_name(cert)
    if common_name != expected:
        raise SubjectMismatchError(
            f"Certificate subject {common_name!r} does not match {expected!r}"
        )


# ---------------------------------------------------------------------------
# Verification keys
#
# Only RSA keys can verify an SNS signature.  Anything else the certificate
# carries is modelled as an explicit unsupported arm so that callers fail
# verification instead of crashing.
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RSAVerificationKey:
    key: rsa.RSAPublicKey


@dataclass(frozen=True)
class UnsupportedVerificationKey:
    algorithm: str


VerificationKey = Union[RSAVerificationKey, UnsupportedVerificationKey]


def verification_key(cert: x509.Certificate) -> VerificationKey:
    """Classify the certificate's public key.  Never raises."""
    try:
        key = cert.public_key()
    except (ValueError, UnsupportedAlgorithm) as exc:
        return UnsupportedVerificationKey(algorithm=f"unreadable ({exc})")
    if isinstance(key, rsa.RSAPublicKey):
        return RSAVerificationKey(key=key)
    return UnsupportedVerificationKey(algorithm=type(key).__name__)


# ---------------------------------------------------------------------------
# Signatures
# ---------------------------------------------------------------------------

def decode_signature(signature_b64: str) -> bytes:
    """Decode the envelope's base64 ``Signature`` field.

    Raises:
        SignatureDecodeError: If the value is not valid base64.
    """
    try:
        return b64_decode_strict(signature_b64)
    except (binascii.Error, ValueError) as exc:
        raise SignatureDecodeError(f"Signature is not valid base64: {exc}") from exc


def sha1_digest(data: bytes) -> bytes:
    return hashlib.sha1(data).digest()


def verify_signature(data: bytes, signature: bytes, key: VerificationKey) -> None:
    """Verify an RSA PKCS#1 v1.5 signature over the SHA-1 digest of *data*.

    Raises:
        UnsupportedKeyTypeError: If *key* is not an RSA key.
        SignatureInvalidError: If the signature does not match.
    """
    if isinstance(key, UnsupportedVerificationKey):
        raise UnsupportedKeyTypeError(f"Unsupported public key type: {key.algorithm}")

    digest = sha1_digest(data)
    logger.debug("Verifying %d-byte canonical string, sha1=%s", len(data), digest.hex())
    try:
        key.key.verify(signature, digest, padding.PKCS1v15(), Prehashed(hashes.SHA1()))
    except InvalidSignature as exc:
        raise SignatureInvalidError("Signature does not match canonical string") from exc
