"""Core types, constants, and utility functions for IPN verification."""

from __future__ import annotations

import base64
import binascii
from enum import Enum


# Inbound header carrying the SNS message kind
MESSAGE_TYPE_HEADER = "x-amz-sns-message-type"

# Subject common name of the notification service's signing certificate
DEFAULT_SIGNING_SUBJECT = "sns.amazonaws.com"

# Host patterns a signing certificate may be fetched from
DEFAULT_CERT_HOSTS = ("sns.*.amazonaws.com",)

# Fields covered by the signature, in canonical-string order.  This order is
# part of the wire contract with the sender.
SIGNED_FIELDS = ("Message", "MessageId", "Timestamp", "TopicArn", "Type")

# Amazon Pay business fields carried inside ``Message``
INNER_PAYLOAD_FIELDS = (
    "NotificationReferenceId",
    "NotificationType",
    "SellerId",
    "ReleaseEnvironment",
    "Version",
    "NotificationData",
    "Timestamp",
)

# Maximum inbound request body size in bytes (1 MiB)
MAX_BODY_SIZE = 1024 * 1024

# Maximum signing certificate size in bytes (64 KB)
MAX_CERTIFICATE_SIZE = 65536


class MessageType(str, Enum):
    """SNS message kinds.

    Using ``str, Enum`` so that ``MessageType.NOTIFICATION == "Notification"``
    is True.  Only notifications are ever verified.
    """

    NOTIFICATION = "Notification"
    SUBSCRIPTION_CONFIRMATION = "SubscriptionConfirmation"
    UNSUBSCRIBE_CONFIRMATION = "UnsubscribeConfirmation"


def b64_decode_strict(s: str) -> bytes:
    """Standard base64 decode *s*, rejecting characters outside the alphabet.

    Raises:
        binascii.Error: If *s* is not valid padded base64.
    """
    if not isinstance(s, str):
        raise binascii.Error("base64 input must be a string")
    return base64.b64decode(s.encode("ascii", errors="strict"), validate=True)
