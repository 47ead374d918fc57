"""Certificate retrieval transports."""

from ipn.sdk.transport.base import CertificateFetcher
from ipn.sdk.transport.http import HTTPCertificateFetcher

__all__ = ["CertificateFetcher", "HTTPCertificateFetcher"]
