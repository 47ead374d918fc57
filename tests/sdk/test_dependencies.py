"""Tests for the VerifiedIPN FastAPI dependency."""

from __future__ import annotations

from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from ipn.protocol.envelope import NotificationEnvelope
from ipn.sdk.dependencies import VerifiedIPN
from ipn.sdk.verifier import SignatureVerifier


def _client(verifier: SignatureVerifier, status_code: int = 403) -> TestClient:
    app = FastAPI()
    verified_ipn = VerifiedIPN(verifier, status_code=status_code)

    @app.post("/ipn")
    async def ipn(envelope: NotificationEnvelope = Depends(verified_ipn)):
        return {"seller": envelope.message.seller_id, "id": envelope.message_id}

    return TestClient(app)


class TestVerifiedIPN:
    def test_verified_request_reaches_route(self, make_verifier, sns_cert_der, signed_body):
        verifier, _ = make_verifier(sns_cert_der)
        resp = _client(verifier).post(
            "/ipn",
            content=signed_body,
            headers={"x-amz-sns-message-type": "Notification"},
        )
        assert resp.status_code == 200
        assert resp.json() == {"seller": "A1B2C3D4E5F6G7", "id": "abc-123"}

    def test_missing_header_rejected(self, make_verifier, sns_cert_der, signed_body):
        verifier, fetcher = make_verifier(sns_cert_der)
        resp = _client(verifier).post("/ipn", content=signed_body)
        assert resp.status_code == 403
        assert resp.json() == {"detail": "IPN verification failed"}
        assert fetcher.calls == []

    def test_bad_signature_rejected(self, make_verifier, cert_factory, other_rsa_key, signed_body):
        verifier, _ = make_verifier(cert_factory(other_rsa_key))
        resp = _client(verifier).post(
            "/ipn",
            content=signed_body,
            headers={"x-amz-sns-message-type": "Notification"},
        )
        assert resp.status_code == 403

    def test_custom_status_code(self, make_verifier, sns_cert_der):
        verifier, _ = make_verifier(sns_cert_der)
        resp = _client(verifier, status_code=400).post("/ipn", content=b"{}")
        assert resp.status_code == 400

    def test_default_verifier_built_lazily(self):
        dependency = VerifiedIPN()
        assert dependency._verifier is None
        assert isinstance(dependency.verifier, SignatureVerifier)
        assert dependency.verifier is dependency.verifier
