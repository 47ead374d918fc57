"""Signing-certificate URL validation with SSRF prevention.

``SigningCertURL`` arrives inside the unverified request body, so it is
attacker-controlled.  Before fetching, the URL must use HTTPS, name a host
on the allow-list, and point at a ``.pem`` object.
"""

from __future__ import annotations

import fnmatch
import logging
import urllib.parse
from typing import Iterable

logger = logging.getLogger(__name__)


def host_allowed(hostname: str, allowed_hosts: Iterable[str]) -> bool:
    """Return ``True`` if *hostname* matches any allow-list pattern.

    Patterns use shell-style wildcards (``sns.*.amazonaws.com``); ``*``
    never crosses a dot.  Matching is case-insensitive.
    """
    hostname = hostname.lower().rstrip(".")
    labels = hostname.split(".")
    for pattern in allowed_hosts:
        pattern_labels = pattern.lower().split(".")
        if len(pattern_labels) != len(labels):
            continue
        if all(fnmatch.fnmatchcase(label, p) for label, p in zip(labels, pattern_labels)):
            return True
    return False


def validate_cert_url(url: str, allowed_hosts: Iterable[str]) -> tuple[bool, str]:
    """Validate a signing-certificate URL for safety.

    Enforces:
    - HTTPS-only scheme
    - Hostname on the allow-list
    - No userinfo or explicit non-443 port
    - Path ending in ``.pem``

    Returns ``(True, "")`` on success or ``(False, reason)`` on failure.
    """
    if not url:
        return (False, "Empty certificate URL")

    try:
        parsed = urllib.parse.urlparse(url)
        port = parsed.port
    except ValueError:
        return (False, "Malformed certificate URL")

    if parsed.scheme != "https":
        return (False, "Certificate URL must use HTTPS")

    hostname = parsed.hostname
    if not hostname:
        return (False, "Certificate URL has no hostname")

    if parsed.username is not None or parsed.password is not None:
        return (False, "Certificate URL must not carry credentials")

    if port not in (None, 443):
        return (False, f"Certificate URL uses non-standard port {port}")

    if not host_allowed(hostname, allowed_hosts):
        return (False, f"Certificate host not allowed: {hostname}")

    if not parsed.path.endswith(".pem"):
        return (False, "Certificate URL must point at a .pem file")

    return (True, "")
