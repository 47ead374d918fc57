"""Shared test fixtures for IPN verification tests.

Signing keys and certificates are generated locally; nothing here
touches the network.
"""

from __future__ import annotations

import base64
import datetime
import json

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, padding, rsa
from cryptography.hazmat.primitives.serialization import Encoding
from cryptography.x509.oid import NameOID

from ipn.protocol.crypto import build_canonical_string
from ipn.protocol.envelope import parse_envelope
from ipn.sdk.config import VerifierConfig
from ipn.sdk.transport.base import CertificateFetcher
from ipn.sdk.verifier import SignatureVerifier

CERT_URL = "https://sns.us-east-1.amazonaws.com/SimpleNotificationService-0000000000.pem"

SAMPLE_MESSAGE = {
    "NotificationReferenceId": "P01-0000000-0000000-C000000",
    "NotificationType": "OrderReferenceNotification",
    "SellerId": "A1B2C3D4E5F6G7",
    "ReleaseEnvironment": "Sandbox",
    "Version": "2013-01-01",
    "NotificationData": "<?xml version=\"1.0\" encoding=\"UTF-8\"?><OrderReferenceNotification/>",
    "Timestamp": "2024-01-01T00:00:00Z",
}


def make_certificate(private_key, common_name: str) -> x509.Certificate:
    """Self-signed certificate for *private_key* with subject CN *common_name*."""
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.datetime.now(datetime.timezone.utc)
    return (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(private_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=30))
        .sign(private_key, hashes.SHA256())
    )


def sign_wire_fields(wire: dict, private_key) -> dict:
    """Return *wire* plus a ``Signature`` over its canonical string."""
    envelope = parse_envelope(json.dumps(wire).encode("utf-8"))
    canonical = build_canonical_string(envelope).encode("utf-8")
    signature = private_key.sign(canonical, padding.PKCS1v15(), hashes.SHA1())
    return {**wire, "Signature": base64.b64encode(signature).decode("ascii")}


class StaticCertificateFetcher(CertificateFetcher):
    """Serves fixed certificate bytes (or raises) and records requested URLs."""

    def __init__(self, data: bytes = b"", error: Exception | None = None) -> None:
        self.data = data
        self.error = error
        self.calls: list[str] = []

    async def fetch(self, url: str) -> bytes:
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        return self.data


class FakeRequest:
    """Minimal stand-in for a Starlette request that counts body reads."""

    def __init__(self, headers: dict, body: bytes = b"", error: Exception | None = None) -> None:
        self.headers = headers
        self._body = body
        self._error = error
        self.body_reads = 0

    async def body(self) -> bytes:
        self.body_reads += 1
        if self._error is not None:
            raise self._error
        return self._body


@pytest.fixture(scope="session")
def rsa_key():
    """2048-bit RSA signing key standing in for the notification service."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def other_rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def ec_key():
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture(scope="session")
def sns_cert(rsa_key) -> x509.Certificate:
    return make_certificate(rsa_key, "sns.amazonaws.com")


@pytest.fixture(scope="session")
def sns_cert_der(sns_cert) -> bytes:
    return sns_cert.public_bytes(Encoding.DER)


@pytest.fixture()
def cert_factory():
    """Build a DER certificate for ``(private_key, common_name)``."""

    def _make(private_key, common_name: str = "sns.amazonaws.com") -> bytes:
        return make_certificate(private_key, common_name).public_bytes(Encoding.DER)

    return _make


@pytest.fixture()
def wire_fields() -> dict:
    """Unsigned IPN wire fields, ``Message`` carried as a JSON string."""
    return {
        "Type": "Notification",
        "MessageId": "abc-123",
        "TopicArn": "arn:x",
        "Message": json.dumps(SAMPLE_MESSAGE, separators=(",", ":")),
        "Timestamp": "2024-01-01T00:00:00Z",
        "SignatureVersion": "1",
        "SigningCertURL": CERT_URL,
        "UnsubscribeURL": "https://sns.us-east-1.amazonaws.com/?Action=Unsubscribe",
    }


@pytest.fixture()
def sign():
    """Sign wire fields with a given key: ``sign(wire, key) -> dict``."""
    return sign_wire_fields


@pytest.fixture()
def signed_wire(wire_fields, rsa_key) -> dict:
    return sign_wire_fields(wire_fields, rsa_key)


@pytest.fixture()
def signed_body(signed_wire) -> bytes:
    return json.dumps(signed_wire).encode("utf-8")


@pytest.fixture()
def verifier_config() -> VerifierConfig:
    return VerifierConfig(
        expected_subject="sns.amazonaws.com",
        validate_cert_url=True,
        allowed_cert_hosts=("sns.*.amazonaws.com",),
        cert_fetch_timeout=5.0,
        max_body_size=65536,
    )


@pytest.fixture()
def static_fetcher():
    """Factory for :class:`StaticCertificateFetcher` instances."""
    return StaticCertificateFetcher


@pytest.fixture()
def make_verifier(verifier_config):
    """Build a verifier serving *cert_der* for every certificate fetch."""

    def _make(cert_der: bytes = b"", *, error: Exception | None = None, config=None):
        fetcher = StaticCertificateFetcher(cert_der, error)
        return SignatureVerifier(config or verifier_config, fetcher), fetcher

    return _make


@pytest.fixture()
def fake_request():
    """Factory for :class:`FakeRequest` instances."""
    return FakeRequest
