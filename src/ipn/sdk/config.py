"""Verifier configuration via dataclass (no pydantic -- instant construction)."""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, fields
from pathlib import Path

from ipn.protocol.types import (
    DEFAULT_CERT_HOSTS,
    DEFAULT_SIGNING_SUBJECT,
    MAX_BODY_SIZE,
)

logger = logging.getLogger(__name__)

_DEFAULT_CERT_TIMEOUT = 10.0

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"Invalid boolean for {name}: {value!r}")


def _parse_hosts(value: str) -> tuple[str, ...]:
    return tuple(h.strip().lower() for h in value.split(",") if h.strip())


@dataclass
class VerifierConfig:
    """Configuration for a :class:`~ipn.sdk.verifier.SignatureVerifier`.

    ``expected_subject`` is the trust anchor: the common name the signing
    certificate must carry.  Tests and non-AWS deployments substitute their
    own.

    Priority (highest wins): constructor arg > env var > TOML file > default.
    The TOML file is read from ``config_path`` or the ``IPN_CONFIG`` env var
    and must hold a ``[verifier]`` table.
    """

    expected_subject: str | None = None
    validate_cert_url: bool | None = None
    allowed_cert_hosts: tuple[str, ...] | list[str] | None = None
    cert_fetch_timeout: float | None = None
    max_body_size: int | None = None
    config_path: Path | str | None = None

    def __post_init__(self) -> None:
        # Lowest priority first: file values only fill fields still unset
        if self.config_path is None:
            env_path = os.getenv("IPN_CONFIG")
            if env_path:
                self.config_path = env_path
        if self.config_path is not None:
            self.config_path = Path(self.config_path)
            file_values = self._load_config_file(self.config_path)
        else:
            file_values = {}

        if self.expected_subject is None:
            self.expected_subject = os.getenv("IPN_EXPECTED_SUBJECT") or file_values.get(
                "expected_subject", DEFAULT_SIGNING_SUBJECT
            )

        if self.validate_cert_url is None:
            env_validate = os.getenv("IPN_VALIDATE_CERT_URL")
            if env_validate:
                self.validate_cert_url = _parse_bool("IPN_VALIDATE_CERT_URL", env_validate)
            else:
                file_validate = file_values.get("validate_cert_url", True)
                if isinstance(file_validate, str):
                    file_validate = _parse_bool("validate_cert_url", file_validate)
                self.validate_cert_url = bool(file_validate)

        if self.allowed_cert_hosts is None:
            env_hosts = os.getenv("IPN_ALLOWED_CERT_HOSTS")
            if env_hosts:
                self.allowed_cert_hosts = _parse_hosts(env_hosts)
            else:
                self.allowed_cert_hosts = file_values.get("allowed_cert_hosts", DEFAULT_CERT_HOSTS)
        self.allowed_cert_hosts = tuple(h.lower() for h in self.allowed_cert_hosts)

        if self.cert_fetch_timeout is None:
            env_timeout = os.getenv("IPN_CERT_TIMEOUT")
            self.cert_fetch_timeout = float(
                env_timeout or file_values.get("cert_fetch_timeout", _DEFAULT_CERT_TIMEOUT)
            )

        if self.max_body_size is None:
            env_size = os.getenv("IPN_MAX_BODY_SIZE")
            self.max_body_size = int(env_size or file_values.get("max_body_size", MAX_BODY_SIZE))

        self._validate()

    def _validate(self) -> None:
        if not self.expected_subject:
            raise ValueError("expected_subject must be a non-empty string")
        if self.validate_cert_url and not self.allowed_cert_hosts:
            raise ValueError("allowed_cert_hosts must not be empty when validate_cert_url is on")
        if self.cert_fetch_timeout <= 0:
            raise ValueError(f"cert_fetch_timeout must be positive, got {self.cert_fetch_timeout}")
        if self.max_body_size <= 0:
            raise ValueError(f"max_body_size must be positive, got {self.max_body_size}")

    @staticmethod
    def _load_config_file(path: Path) -> dict:
        """Load the ``[verifier]`` table from a TOML file.

        A missing or unreadable file is logged and treated as empty.
        """
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError):
            logger.warning("Failed to load config file %s", path, exc_info=True)
            return {}

        section = data.get("verifier", {})
        known = {f.name for f in fields(VerifierConfig)} - {"config_path"}
        unknown = set(section) - known
        if unknown:
            logger.warning("Ignoring unknown keys in %s: %s", path, sorted(unknown))
        return {k: v for k, v in section.items() if k in known}
