"""IPN SDK -- certificate retrieval, configuration, and verification entry points."""

from ipn.sdk.config import VerifierConfig
from ipn.sdk.verifier import SignatureVerifier, verify_ipn_request

__all__ = ["SignatureVerifier", "VerifierConfig", "verify_ipn_request"]
