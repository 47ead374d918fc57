"""Shared fixtures for IPN SDK tests."""

from __future__ import annotations

import pytest

_IPN_ENV_VARS = (
    "IPN_CONFIG",
    "IPN_EXPECTED_SUBJECT",
    "IPN_VALIDATE_CERT_URL",
    "IPN_ALLOWED_CERT_HOSTS",
    "IPN_CERT_TIMEOUT",
    "IPN_MAX_BODY_SIZE",
)


@pytest.fixture(autouse=True)
def clean_ipn_env(monkeypatch):
    """Keep the host environment from leaking into config resolution."""
    for name in _IPN_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
