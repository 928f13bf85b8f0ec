"""
Cloudflare R2 client

R2 speaks the S3 API, so requests are signed with AWS Signature Version 4
(service "s3", region "auto") and sent with httpx.
"""

import hashlib
import hmac
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Tuple, Union
from urllib.parse import quote, urlparse

import httpx

from minimall.core.exceptions import ObjectNotFoundError, StorageError
from minimall.core.logging import get_logger
from minimall.shared.helpers import sha256_hex

logger = get_logger(__name__)

ALGORITHM = "AWS4-HMAC-SHA256"
SERVICE = "s3"
UNSIGNED_PAYLOAD = "UNSIGNED-PAYLOAD"


@dataclass
class R2Config:
    endpoint: str
    access_key_id: str
    secret_access_key: str
    bucket_name: str
    region: str = "auto"


def _uri_encode(value: str, safe: str = "-_.~") -> str:
    return quote(value, safe=safe)


def canonical_query_string(params: Dict[str, str]) -> str:
    """Sorted, RFC 3986 encoded query string"""
    pairs = sorted((_uri_encode(k), _uri_encode(str(v))) for k, v in params.items())
    return "&".join(f"{k}={v}" for k, v in pairs)


def derive_signing_key(secret: str, date_stamp: str, region: str, service: str) -> bytes:
    k_date = hmac.new(f"AWS4{secret}".encode(), date_stamp.encode(), hashlib.sha256).digest()
    k_region = hmac.new(k_date, region.encode(), hashlib.sha256).digest()
    k_service = hmac.new(k_region, service.encode(), hashlib.sha256).digest()
    return hmac.new(k_service, b"aws4_request", hashlib.sha256).digest()


class R2Client:
    """Minimal S3-compatible client for a single R2 bucket"""

    def __init__(
        self,
        config: R2Config,
        http_client: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.config = config
        self.endpoint = config.endpoint.rstrip("/")
        self._host = urlparse(self.endpoint).netloc
        self._http_client = http_client
        self._clock = clock

    # ------------------------------------------------------------------
    # Signing
    # ------------------------------------------------------------------

    def _timestamps(self) -> Tuple[str, str]:
        now = self._clock().astimezone(timezone.utc)
        amz_date = now.strftime("%Y%m%dT%H%M%SZ")
        return amz_date, amz_date[:8]

    def _scope(self, date_stamp: str) -> str:
        return f"{date_stamp}/{self.config.region}/{SERVICE}/aws4_request"

    def object_path(self, key: str = "") -> str:
        path = f"/{self.config.bucket_name}"
        if key:
            path += "/" + _uri_encode(key, safe="-_.~/")
        return path

    def sign_request(
        self,
        method: str,
        path: str,
        query: Optional[Dict[str, str]] = None,
        body: bytes = b"",
        extra_headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, str]:
        """Return the headers (including Authorization) for a signed request"""
        amz_date, date_stamp = self._timestamps()
        payload_hash = sha256_hex(body)

        headers = {
            "host": self._host,
            "x-amz-content-sha256": payload_hash,
            "x-amz-date": amz_date,
        }
        for name, value in (extra_headers or {}).items():
            headers[name.lower()] = str(value).strip()

        signed_names = sorted(headers)
        canonical_headers = "".join(f"{name}:{headers[name]}\n" for name in signed_names)
        signed_headers = ";".join(signed_names)

        canonical_request = "\n".join(
            [
                method.upper(),
                path,
                canonical_query_string(query or {}),
                canonical_headers,
                signed_headers,
                payload_hash,
            ]
        )

        scope = self._scope(date_stamp)
        string_to_sign = "\n".join(
            [ALGORITHM, amz_date, scope, sha256_hex(canonical_request)]
        )
        signing_key = derive_signing_key(
            self.config.secret_access_key, date_stamp, self.config.region, SERVICE
        )
        signature = hmac.new(
            signing_key, string_to_sign.encode(), hashlib.sha256
        ).hexdigest()

        request_headers = {k: v for k, v in headers.items() if k != "host"}
        request_headers["Authorization"] = (
            f"{ALGORITHM} Credential={self.config.access_key_id}/{scope}, "
            f"SignedHeaders={signed_headers}, Signature={signature}"
        )
        return request_headers

    def generate_presigned_url(
        self, key: str, method: str = "GET", expires_in: int = 3600
    ) -> str:
        """Query-string signed URL valid for `expires_in` seconds"""
        amz_date, date_stamp = self._timestamps()
        scope = self._scope(date_stamp)
        path = self.object_path(key)

        params = {
            "X-Amz-Algorithm": ALGORITHM,
            "X-Amz-Credential": f"{self.config.access_key_id}/{scope}",
            "X-Amz-Date": amz_date,
            "X-Amz-Expires": str(expires_in),
            "X-Amz-SignedHeaders": "host",
        }
        query = canonical_query_string(params)

        canonical_request = "\n".join(
            [method.upper(), path, query, f"host:{self._host}\n", "host", UNSIGNED_PAYLOAD]
        )
        string_to_sign = "\n".join(
            [ALGORITHM, amz_date, scope, sha256_hex(canonical_request)]
        )
        signing_key = derive_signing_key(
            self.config.secret_access_key, date_stamp, self.config.region, SERVICE
        )
        signature = hmac.new(
            signing_key, string_to_sign.encode(), hashlib.sha256
        ).hexdigest()

        return f"{self.endpoint}{path}?{query}&X-Amz-Signature={signature}"

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _send(
        self,
        method: str,
        path: str,
        query: Optional[Dict[str, str]] = None,
        body: bytes = b"",
        extra_headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        headers = self.sign_request(method, path, query, body, extra_headers)
        url = f"{self.endpoint}{path}"
        if query:
            url += "?" + canonical_query_string(query)

        if self._http_client is not None:
            return await self._http_client.request(
                method, url, content=body or None, headers=headers
            )

        async with httpx.AsyncClient(timeout=httpx.Timeout(30.0, connect=10.0)) as client:
            return await client.request(method, url, content=body or None, headers=headers)

    async def put_object(
        self,
        key: str,
        body: Union[str, bytes],
        content_type: str = "application/octet-stream",
    ) -> None:
        data = body.encode("utf-8") if isinstance(body, str) else body
        response = await self._send(
            "PUT", self.object_path(key), body=data, extra_headers={"Content-Type": content_type}
        )
        if response.status_code >= 300:
            raise StorageError(
                f"Failed to upload to R2: {response.status_code} {response.text}",
                status_code=response.status_code,
                key=key,
            )
        logger.debug(f"Uploaded {key} to R2", size=len(data))

    async def get_object(self, key: str) -> bytes:
        response = await self._send("GET", self.object_path(key))
        if response.status_code == 404:
            raise ObjectNotFoundError(key)
        if response.status_code >= 300:
            raise StorageError(
                f"Failed to fetch from R2: {response.status_code} {response.text}",
                status_code=response.status_code,
                key=key,
            )
        return response.content

    async def get_object_text(self, key: str) -> str:
        return (await self.get_object(key)).decode("utf-8")

    async def delete_object(self, key: str) -> None:
        response = await self._send("DELETE", self.object_path(key))
        # Deleting a missing key is not an error
        if response.status_code >= 300 and response.status_code != 404:
            raise StorageError(
                f"Failed to delete from R2: {response.status_code} {response.text}",
                status_code=response.status_code,
                key=key,
            )

    async def list_objects(self, prefix: str = "", max_keys: int = 1000) -> List[str]:
        """List keys under a prefix using ListObjectsV2, following continuation tokens"""
        keys: List[str] = []
        continuation: Optional[str] = None

        while True:
            query = {"list-type": "2", "max-keys": str(max_keys)}
            if prefix:
                query["prefix"] = prefix
            if continuation:
                query["continuation-token"] = continuation

            response = await self._send("GET", self.object_path(), query=query)
            if response.status_code >= 300:
                raise StorageError(
                    f"Failed to list R2 objects: {response.status_code} {response.text}",
                    status_code=response.status_code,
                )

            page_keys, continuation = parse_list_objects_response(response.text)
            keys.extend(page_keys)
            if not continuation or len(keys) >= max_keys:
                return keys[:max_keys]

    def get_public_url(self, key: str) -> str:
        return f"{self.endpoint}/{self.config.bucket_name}/{key}"


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def parse_list_objects_response(xml_text: str) -> Tuple[List[str], Optional[str]]:
    """Extract object keys and the next continuation token from a ListObjectsV2 body"""
    root = ET.fromstring(xml_text)
    keys: List[str] = []
    token: Optional[str] = None
    truncated = False

    for element in root:
        name = _local_name(element.tag)
        if name == "Contents":
            for child in element:
                if _local_name(child.tag) == "Key" and child.text:
                    keys.append(child.text)
        elif name == "IsTruncated":
            truncated = (element.text or "").lower() == "true"
        elif name == "NextContinuationToken":
            token = element.text

    return keys, token if truncated else None
