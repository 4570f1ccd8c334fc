"""VAPID key generation for Web Push."""
from __future__ import annotations

from dataclasses import dataclass

from cryptography.hazmat.primitives import serialization
from py_vapid import Vapid
from py_vapid.utils import b64urlencode


@dataclass(frozen=True)
class VapidKeyPair:
    """URL-safe base64 keys in the form browsers and ``pywebpush`` accept."""

    public_key: str
    private_key: str


def generate_vapid_keys() -> VapidKeyPair:
    """Create a fresh P-256 key pair.

    The public key is the uncompressed point handed to
    ``PushManager.subscribe``; the private key is the raw 32-byte scalar
    used as ``VAPID_PRIVATE_KEY``.
    """

    vapid = Vapid()
    vapid.generate_keys()
    public_raw = vapid.public_key.public_bytes(
        serialization.Encoding.X962, serialization.PublicFormat.UncompressedPoint
    )
    private_raw = vapid.private_key.private_numbers().private_value.to_bytes(32, "big")
    return VapidKeyPair(public_key=b64urlencode(public_raw), private_key=b64urlencode(private_raw))
