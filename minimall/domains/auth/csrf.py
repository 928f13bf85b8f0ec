"""
CSRF tokens for admin forms

Two schemes: a salted token/secret pair with a one hour lifetime, and a
stateless double-submit token whose hash is set as a cookie.
"""

import secrets
from dataclasses import dataclass
from typing import Optional, Tuple

from minimall.shared.helpers import hmac_sha256_hex, now_ms, timing_safe_equal

TOKEN_LIFETIME_MS = 60 * 60 * 1000
SECRET_LENGTH = 32
TOKEN_LENGTH = 32


@dataclass
class CSRFTokenData:
    token: str
    secret: str
    timestamp: int


class CSRFProtection:
    @staticmethod
    def generate_token() -> CSRFTokenData:
        return CSRFTokenData(
            token=secrets.token_hex(TOKEN_LENGTH),
            secret=secrets.token_hex(SECRET_LENGTH),
            timestamp=now_ms(),
        )

    @staticmethod
    def create_token_hash(token_data: CSRFTokenData, salt: str) -> str:
        return hmac_sha256_hex(
            salt, f"{token_data.token}:{token_data.secret}:{token_data.timestamp}"
        )

    @staticmethod
    def verify_token(
        submitted_token: str,
        secret: str,
        stored_hash: str,
        salt: str,
        stored_timestamp: int,
        now: Optional[int] = None,
    ) -> bool:
        current = now if now is not None else now_ms()
        if current - stored_timestamp > TOKEN_LIFETIME_MS:
            return False

        expected = hmac_sha256_hex(salt, f"{submitted_token}:{secret}:{stored_timestamp}")
        return timing_safe_equal(stored_hash or "", expected)

    @staticmethod
    def generate_double_submit_token(secret: str) -> Tuple[str, str]:
        """(token, hash); the hash goes in a cookie, the token in the form"""
        token = secrets.token_hex(TOKEN_LENGTH)
        return token, hmac_sha256_hex(secret, token)

    @staticmethod
    def verify_double_submit_token(token: str, token_hash: str, secret: str) -> bool:
        return timing_safe_equal(token_hash or "", hmac_sha256_hex(secret, token or ""))
