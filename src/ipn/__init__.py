"""IPN -- authenticity checks for SNS-delivered payment notifications.

Top-level convenience re-exports::

    from ipn import SignatureVerifier, VerifierConfig
    from ipn.protocol import parse_envelope, build_canonical_string
"""

__version__ = "0.1.0"

from ipn.protocol.envelope import InnerPayload, NotificationEnvelope, parse_envelope
from ipn.protocol.errors import IPNError
from ipn.sdk.config import VerifierConfig
from ipn.sdk.verifier import SignatureVerifier, verify_ipn_request

__all__ = [
    "__version__",
    "IPNError",
    "InnerPayload",
    "NotificationEnvelope",
    "SignatureVerifier",
    "VerifierConfig",
    "parse_envelope",
    "verify_ipn_request",
]
