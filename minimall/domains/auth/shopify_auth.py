"""
Shopify OAuth and admin session tokens

Session tokens are HS256 JWTs signed with the app secret. They carry a
token id instead of the access token; the access token itself lives in
Redis under `session:{shop}:{tokenId}` for the token lifetime.
"""

import re
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union
from urllib.parse import urlencode

import httpx
import jwt

from minimall.core.config.settings import settings
from minimall.core.exceptions import AuthenticationError, EnvironmentVariableError
from minimall.core.logging import get_logger
from minimall.core.redis import get_redis_client
from minimall.shared.constants import SESSION_TOKEN_TTL, SHOP_DOMAIN_PATTERN, SHOPIFY_SCOPES
from minimall.shared.helpers import (
    hmac_sha256_base64,
    hmac_sha256_hex,
    now_utc,
    timing_safe_equal,
)

logger = get_logger(__name__)

JWT_ALGORITHM = "HS256"
_SHOP_RE = re.compile(SHOP_DOMAIN_PATTERN)

QueryParams = Union[Mapping[str, str], Iterable[Tuple[str, str]]]


@dataclass
class ShopifyAuthConfig:
    api_key: str
    api_secret: str
    host_name: str
    scopes: List[str] = field(default_factory=lambda: list(SHOPIFY_SCOPES))


@dataclass
class ShopifySession:
    shop: str
    access_token: str
    scope: str
    expires_at: Optional[datetime] = None
    associated_user: Optional[Dict[str, Any]] = None


class RedisTokenStore:
    """Access tokens keyed by shop and token id"""

    def __init__(self, client_factory=get_redis_client, ttl: int = SESSION_TOKEN_TTL):
        self._client_factory = client_factory
        self.ttl = ttl

    @staticmethod
    def key(shop: str, token_id: str) -> str:
        return f"session:{shop}:{token_id}"

    async def store(self, shop: str, token_id: str, access_token: str) -> None:
        client = await self._client_factory()
        await client.set(self.key(shop, token_id), access_token, ttl=self.ttl)

    async def get(self, shop: str, token_id: str) -> Optional[str]:
        client = await self._client_factory()
        return await client.get(self.key(shop, token_id))

    async def delete(self, shop: str, token_id: str) -> None:
        client = await self._client_factory()
        await client.delete(self.key(shop, token_id))


class ShopifyAuth:
    def __init__(
        self,
        config: ShopifyAuthConfig,
        token_store: Optional[RedisTokenStore] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config
        self.token_store = token_store or RedisTokenStore()
        self._http_client = http_client

    def generate_auth_url(self, shop: str, state: Optional[str] = None) -> str:
        params = {
            "client_id": self.config.api_key,
            "scope": ",".join(self.config.scopes),
            "redirect_uri": f"{self.config.host_name}/api/auth/shopify/callback",
            "state": state or self.generate_state(),
            "grant_options[]": "per-user",
        }
        return f"https://{shop}/admin/oauth/authorize?{urlencode(params)}"

    async def exchange_code_for_token(self, shop: str, code: str) -> ShopifySession:
        token_url = f"https://{shop}/admin/oauth/access_token"
        body = {
            "client_id": self.config.api_key,
            "client_secret": self.config.api_secret,
            "code": code,
        }

        if self._http_client is not None:
            response = await self._http_client.post(token_url, json=body)
        else:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(30.0, connect=10.0)
            ) as client:
                response = await client.post(token_url, json=body)

        if response.status_code >= 400:
            raise AuthenticationError(
                f"Failed to exchange code for token: {response.text}",
                details={"shop": shop, "status_code": response.status_code},
            )

        data = response.json()
        expires_in = data.get("expires_in")
        session = ShopifySession(
            shop=shop,
            access_token=data["access_token"],
            scope=data.get("scope", ""),
            expires_at=now_utc() + timedelta(seconds=expires_in) if expires_in else None,
            associated_user=data.get("associated_user"),
        )

        await self.token_store.store(
            shop, self.generate_token_id(session.access_token), session.access_token
        )
        logger.info("Exchanged OAuth code for access token", shop=shop)
        return session

    @staticmethod
    def generate_state() -> str:
        return secrets.token_hex(16)

    @staticmethod
    def validate_shop(shop: Optional[str]) -> bool:
        return bool(shop) and bool(_SHOP_RE.match(shop))

    def validate_hmac(self, query: QueryParams, received_hmac: str) -> bool:
        """Check the OAuth redirect signature over the sorted query string"""
        pairs = query.items() if isinstance(query, Mapping) else query
        message = "&".join(
            f"{key}={value}"
            for key, value in sorted(
                ((k, v) for k, v in pairs if k not in ("hmac", "signature")),
                key=lambda pair: pair[0],
            )
        )
        expected = hmac_sha256_hex(self.config.api_secret, message)
        return timing_safe_equal(received_hmac or "", expected)

    def verify_webhook(self, body: Union[str, bytes], signature: str) -> bool:
        expected = hmac_sha256_base64(self.config.api_secret, body)
        return timing_safe_equal(signature or "", expected)

    def extract_shop_from_request(
        self, query: Mapping[str, str], headers: Mapping[str, str]
    ) -> Optional[str]:
        """Shop from the `shop` query param, the host subdomain, then the Shopify header"""
        shop = query.get("shop")
        if shop and self.validate_shop(shop):
            return shop

        host = headers.get("host")
        if host:
            candidate = f"{host.split('.')[0]}.myshopify.com"
            if self.validate_shop(candidate):
                return candidate

        shop_header = headers.get("x-shopify-shop-domain")
        if shop_header and self.validate_shop(shop_header):
            return shop_header

        return None

    def generate_token_id(self, access_token: str) -> str:
        return hmac_sha256_hex(self.config.api_secret, access_token)[:16]

    def create_session_token(self, session: ShopifySession) -> str:
        now = int(now_utc().timestamp())
        max_expiry = now + SESSION_TOKEN_TTL
        session_expiry = (
            int(session.expires_at.timestamp()) if session.expires_at else max_expiry
        )
        payload = {
            "shop": session.shop,
            "tokenId": self.generate_token_id(session.access_token),
            "scope": session.scope,
            "exp": min(session_expiry, max_expiry),
            "iat": now,
            "nonce": secrets.token_hex(16),
        }
        return jwt.encode(payload, self.config.api_secret, algorithm=JWT_ALGORITHM)

    async def verify_session_token(self, token: str) -> Optional[ShopifySession]:
        """Decoded session with its stored access token, or None when invalid or expired"""
        try:
            payload = jwt.decode(
                token,
                self.config.api_secret,
                algorithms=[JWT_ALGORITHM],
                options={"require": ["exp", "iat", "shop", "tokenId", "scope"]},
            )
        except jwt.PyJWTError as e:
            logger.debug(f"Session token rejected: {e}")
            return None

        now = int(now_utc().timestamp())
        if now - int(payload["iat"]) > SESSION_TOKEN_TTL:
            return None

        access_token = await self.token_store.get(payload["shop"], payload["tokenId"])
        if not access_token:
            return None

        return ShopifySession(
            shop=payload["shop"],
            access_token=access_token,
            scope=payload["scope"],
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )

    async def revoke_session_token(self, token: str) -> bool:
        """Drop the stored access token behind a session token"""
        try:
            payload = jwt.decode(
                token,
                self.config.api_secret,
                algorithms=[JWT_ALGORITHM],
                options={"verify_exp": False},
            )
        except jwt.PyJWTError:
            return False

        shop, token_id = payload.get("shop"), payload.get("tokenId")
        if not shop or not token_id:
            return False
        await self.token_store.delete(shop, token_id)
        return True


_auth: Optional[ShopifyAuth] = None


def get_shopify_auth() -> ShopifyAuth:
    global _auth

    if _auth is None:
        required = {
            "SHOPIFY_API_KEY": settings.shopify.SHOPIFY_API_KEY,
            "SHOPIFY_API_SECRET": settings.shopify.SHOPIFY_API_SECRET,
            "SHOPIFY_APP_URL": settings.shopify.SHOPIFY_APP_URL,
        }
        for name, value in required.items():
            if not value:
                raise EnvironmentVariableError(name)
        api_key, api_secret, host_name = required.values()
        _auth = ShopifyAuth(
            ShopifyAuthConfig(api_key=api_key, api_secret=api_secret, host_name=host_name)
        )

    return _auth


def reset_shopify_auth() -> None:
    global _auth
    _auth = None
