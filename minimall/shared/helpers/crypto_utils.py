"""
HMAC and hashing helpers shared by OAuth, webhooks and R2 signing
"""

import base64
import hashlib
import hmac
from typing import Union

BytesLike = Union[str, bytes]


def _to_bytes(value: BytesLike) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else value


def sha256_hex(data: BytesLike) -> str:
    return hashlib.sha256(_to_bytes(data)).hexdigest()


def hmac_sha256_hex(key: BytesLike, message: BytesLike) -> str:
    return hmac.new(_to_bytes(key), _to_bytes(message), hashlib.sha256).hexdigest()


def hmac_sha256_base64(key: BytesLike, message: BytesLike) -> str:
    digest = hmac.new(_to_bytes(key), _to_bytes(message), hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def timing_safe_equal(a: BytesLike, b: BytesLike) -> bool:
    """Constant-time comparison that returns False for length mismatches"""
    return hmac.compare_digest(_to_bytes(a), _to_bytes(b))
