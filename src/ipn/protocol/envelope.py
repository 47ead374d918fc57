"""IPN notification envelope -- parsing and wire format.

An envelope is the outer SNS JSON document (``Type``, ``MessageId``,
``Signature``, ...) wrapping the Amazon Pay business payload in its
``Message`` field.  Python attribute names are snake_case; the wire uses
the SNS PascalCase names.

The inner payload keeps its key/value pairs in the exact order they
arrived on the wire, because the signature covers its serialized form.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from functools import partial
from typing import Any

from ipn.protocol.errors import MalformedEnvelopeError
from ipn.protocol.types import INNER_PAYLOAD_FIELDS


# Wire name -> attribute name for the string-valued envelope fields
_WIRE_FIELDS = {
    "Type": "type",
    "MessageId": "message_id",
    "TopicArn": "topic_arn",
    "Timestamp": "timestamp",
    "SignatureVersion": "signature_version",
    "Signature": "signature",
    "SigningCertURL": "signing_cert_url",
    "UnsubscribeURL": "unsubscribe_url",
}

_compact_json = partial(json.dumps, separators=(",", ":"), ensure_ascii=False)

# Senders HTML-escape these inside JSON strings; the signature covers that form.
_HTML_SAFE = str.maketrans({
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
})


class _WireInt(int):
    """An integer that remembers its spelling on the wire."""

    def __new__(cls, text: str) -> _WireInt:
        obj = super().__new__(cls, text)
        obj.text = text
        return obj


class _WireFloat(float):
    """A float that remembers its spelling on the wire (``1e2`` stays ``1e2``)."""

    def __new__(cls, text: str) -> _WireFloat:
        obj = super().__new__(cls, text)
        obj.text = text
        return obj


class _Pairs(list):
    """Key/value pairs of one JSON object, in wire order."""


def _loads_ordered(text: str) -> Any:
    return json.loads(
        text, object_pairs_hook=_Pairs, parse_int=_WireInt, parse_float=_WireFloat
    )


def _to_plain(value: Any) -> Any:
    """Turn nested ``_Pairs`` into insertion-ordered dicts."""
    if isinstance(value, _Pairs):
        return {k: _to_plain(v) for k, v in value}
    if isinstance(value, list):
        return [_to_plain(v) for v in value]
    return value


def _encode_string(value: str) -> str:
    return _compact_json(value).translate(_HTML_SAFE)


def _encode(value: Any) -> str:
    """Compact JSON for *value*, matching the sender's encoder."""
    if isinstance(value, str):
        return _encode_string(value)
    if isinstance(value, (_WireInt, _WireFloat)):
        return value.text
    if isinstance(value, dict):
        return "{" + ",".join(f"{_encode_string(k)}:{_encode(v)}" for k, v in value.items()) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_encode(v) for v in value) + "]"
    return _compact_json(value)


@dataclass(frozen=True)
class InnerPayload:
    """The business payload carried in an envelope's ``Message`` field.

    ``fields`` holds the top-level pairs in wire order.  ``raw`` is the
    verbatim JSON text when the wire carried ``Message`` as a string; it is
    what the sender signed, so :meth:`serialize` prefers it.
    """

    fields: tuple[tuple[str, Any], ...] = ()
    raw: str | None = None

    def get(self, key: str, default: Any = "") -> Any:
        for k, v in self.fields:
            if k == key:
                return default if v is None else v
        return default

    @property
    def notification_reference_id(self) -> str:
        return self.get("NotificationReferenceId")

    @property
    def notification_type(self) -> str:
        return self.get("NotificationType")

    @property
    def seller_id(self) -> str:
        return self.get("SellerId")

    @property
    def release_environment(self) -> str:
        return self.get("ReleaseEnvironment")

    @property
    def version(self) -> str:
        return self.get("Version")

    @property
    def notification_data(self) -> str:
        return self.get("NotificationData")

    @property
    def timestamp(self) -> str:
        return self.get("Timestamp")

    def to_dict(self) -> dict[str, Any]:
        return dict(self.fields)

    def serialize(self) -> str:
        """Return the compact JSON form covered by the signature.

        Pairs are emitted one by one in captured order, so duplicate keys
        and the sender's key order both survive.  Strings are HTML-escaped
        (``<`` becomes ``\\u003c``) and numbers keep their wire spelling.
        """
        if self.raw is not None:
            return self.raw
        members = ",".join(f"{_encode_string(k)}:{_encode(v)}" for k, v in self.fields)
        return "{" + members + "}"


@dataclass(frozen=True)
class NotificationEnvelope:
    """A parsed SNS notification.

    Constructed fresh per inbound request.  Callers must not act on its
    contents unless verification succeeded.
    """

    type: str = ""
    message_id: str = ""
    topic_arn: str = ""
    timestamp: str = ""
    signature_version: str = ""
    signature: str = ""
    signing_cert_url: str = ""
    unsubscribe_url: str = ""
    message: InnerPayload = field(default_factory=InnerPayload)


def _parse_message(value: Any) -> InnerPayload:
    if value is None:
        return InnerPayload()

    raw: str | None = None
    if isinstance(value, str):
        raw = value
        try:
            value = _loads_ordered(value)
        except ValueError as exc:
            raise MalformedEnvelopeError(f"Message is not valid JSON: {exc}") from exc

    if not isinstance(value, _Pairs):
        raise MalformedEnvelopeError("Message must be a JSON object")

    pairs = tuple((k, _to_plain(v)) for k, v in value)
    for key, item in pairs:
        if key in INNER_PAYLOAD_FIELDS and item is not None and not isinstance(item, str):
            raise MalformedEnvelopeError(f"Message field {key!r} must be a string")

    return InnerPayload(fields=pairs, raw=raw)


def parse_envelope(raw_body: bytes) -> NotificationEnvelope:
    """Decode a raw request body into a :class:`NotificationEnvelope`.

    Missing or ``null`` optional fields default to ``""``; unknown
    top-level fields are ignored.

    Raises:
        MalformedEnvelopeError: If the body is not UTF-8 JSON or does not
            have the envelope's shape.
    """
    try:
        text = raw_body.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedEnvelopeError(f"Body is not valid UTF-8: {exc}") from exc

    try:
        doc = _loads_ordered(text)
    except ValueError as exc:
        raise MalformedEnvelopeError(f"Body is not valid JSON: {exc}") from exc

    if not isinstance(doc, _Pairs):
        raise MalformedEnvelopeError("Body must be a JSON object")

    top = dict(doc)
    kwargs: dict[str, Any] = {}
    for wire_name, attr in _WIRE_FIELDS.items():
        value = top.get(wire_name)
        if value is None:
            continue
        if not isinstance(value, str):
            raise MalformedEnvelopeError(f"Field {wire_name!r} must be a string")
        kwargs[attr] = value

    kwargs["message"] = _parse_message(top.get("Message"))
    return NotificationEnvelope(**kwargs)


def to_wire_dict(envelope: NotificationEnvelope) -> dict[str, str]:
    """Convert an envelope back to a wire-named dict.

    ``Message`` is emitted in its serialized (signed) string form.
    """
    d = {wire_name: getattr(envelope, attr) for wire_name, attr in _WIRE_FIELDS.items()}
    d["Message"] = envelope.message.serialize()
    return d
