"""
Shopify OAuth install/callback and admin session endpoints
"""

import base64
import math
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, RedirectResponse

from minimall.core.config import settings
from minimall.core.logging import get_logger
from minimall.domains.auth import (
    CSRFProtection,
    ShopifySession,
    auth_rate_limiter,
    get_shopify_auth,
    install_rate_limiter,
)
from minimall.repository.ShopRepository import ShopRepository
from minimall.repository.UserRepository import UserRepository

logger = get_logger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

SESSION_COOKIE = "shopify_session"
FALLBACK_SESSION_COOKIE = "shopify_session_fallback"
FINGERPRINT_COOKIE = "session_fingerprint"
SESSION_COOKIE_MAX_AGE = 60 * 60 * 24 * 7
OAUTH_COOKIE_MAX_AGE = 300


def get_client_ip(request: Request) -> str:
    return (
        request.headers.get("x-forwarded-for")
        or request.headers.get("x-real-ip")
        or "unknown"
    )


def _error_redirect(error: str) -> RedirectResponse:
    return RedirectResponse(
        f"{settings.shopify.SHOPIFY_APP_URL}/admin/auth/error?{urlencode({'error': error})}"
    )


def _user_identity(session: ShopifySession, shop: str):
    user = session.associated_user or {}
    email = user.get("email") or f"admin@{shop}"
    if session.associated_user:
        name = f"{user.get('first_name') or ''} {user.get('last_name') or ''}".strip()
    else:
        name = "Admin"
    role = "owner" if user.get("account_owner") else "editor"
    return email, name or "Admin", role


async def _store_installation(session: ShopifySession, shop: str) -> None:
    """Persist the shop and its installing user; storage failures do not block login"""
    email, name, role = _user_identity(session, shop)
    try:
        await ShopRepository().upsert_installation(shop, session.access_token, session.scope)
        await UserRepository().upsert_by_email(
            email=email, name=name, shop_domain=shop, role=role, permissions=[]
        )
    except Exception as e:
        logger.error(f"Database error (continuing without storage): {e}", shop=shop)


def _session_token_from_request(request: Request) -> Optional[str]:
    authorization = request.headers.get("authorization", "")
    if authorization.startswith("Bearer "):
        return authorization[len("Bearer ") :]
    return request.cookies.get(SESSION_COOKIE) or request.cookies.get(
        FALLBACK_SESSION_COOKIE
    )


@router.get("/shopify/install")
async def install(request: Request, shop: Optional[str] = None):
    """Start the OAuth flow by redirecting to Shopify's consent screen"""
    if not shop:
        return JSONResponse(status_code=400, content={"error": "Missing shop parameter"})

    client_ip = get_client_ip(request)
    if not install_rate_limiter.is_allowed(client_ip):
        retry_after = math.ceil(install_rate_limiter.get_time_until_reset(client_ip))
        return JSONResponse(
            status_code=429,
            content={"error": "Too many install attempts", "retryAfter": retry_after},
        )

    try:
        shopify_auth = get_shopify_auth()
        if not shopify_auth.validate_shop(shop):
            return JSONResponse(status_code=400, content={"error": "Invalid shop domain"})

        state = shopify_auth.generate_state()
        response = RedirectResponse(shopify_auth.generate_auth_url(shop, state))
        secure = not settings.is_development
        for name, value in (("oauth_state", state), ("oauth_shop", shop)):
            response.set_cookie(
                name,
                value,
                max_age=OAUTH_COOKIE_MAX_AGE,
                httponly=True,
                secure=secure,
                samesite="lax",
            )
        logger.info(f"Starting OAuth flow for shop: {shop}")
        return response
    except Exception as e:
        logger.error(f"OAuth install error: {e}")
        return JSONResponse(status_code=500, content={"error": "Failed to start OAuth flow"})


@router.get("/shopify/callback")
async def callback(request: Request):
    """Finish OAuth: verify the redirect, exchange the code and open a session"""
    params = request.query_params
    code = params.get("code")
    state = params.get("state")
    shop = params.get("shop")
    received_hmac = params.get("hmac")

    client_ip = get_client_ip(request)
    if not auth_rate_limiter.is_allowed(client_ip):
        return _error_redirect("rate_limit_exceeded")

    if not code or not state or not shop or not received_hmac:
        logger.error(
            "Missing OAuth parameters",
            code=bool(code),
            state=bool(state),
            shop=bool(shop),
            hmac=bool(received_hmac),
        )
        return _error_redirect("no_shop_provided" if not shop else "authentication_failed")

    try:
        shopify_auth = get_shopify_auth()

        if not shopify_auth.validate_shop(shop):
            return JSONResponse(status_code=400, content={"error": "Invalid shop domain"})

        stored_state = request.cookies.get("oauth_state")
        stored_shop = request.cookies.get("oauth_shop")
        if not stored_state or stored_state != state:
            return JSONResponse(status_code=400, content={"error": "Invalid state parameter"})
        if not stored_shop or stored_shop != shop:
            return JSONResponse(status_code=400, content={"error": "Shop mismatch"})

        if not shopify_auth.validate_hmac(params.multi_items(), received_hmac):
            return JSONResponse(status_code=401, content={"error": "Invalid HMAC signature"})

        session = await shopify_auth.exchange_code_for_token(shop, code)
        await _store_installation(session, shop)

        session_token = shopify_auth.create_session_token(session)
        host = base64.b64encode(f"{shop}/admin".encode()).decode()
        redirect_url = (
            f"{settings.shopify.SHOPIFY_APP_URL}/?{urlencode({'shop': shop, 'host': host})}"
        )
        response = RedirectResponse(redirect_url)

        response.set_cookie(
            SESSION_COOKIE,
            session_token,
            max_age=SESSION_COOKIE_MAX_AGE,
            path="/",
            httponly=True,
            secure=True,
            samesite="none",
        )
        response.set_cookie(
            FALLBACK_SESSION_COOKIE,
            session_token,
            max_age=SESSION_COOKIE_MAX_AGE,
            path="/",
            httponly=True,
            secure=True,
            samesite="lax",
        )
        _, fingerprint = CSRFProtection.generate_double_submit_token(session_token)
        response.set_cookie(
            FINGERPRINT_COOKIE,
            fingerprint,
            max_age=SESSION_COOKIE_MAX_AGE,
            path="/",
            httponly=True,
            secure=True,
            samesite="lax",
        )
        response.delete_cookie("oauth_state")
        response.delete_cookie("oauth_shop")

        logger.info(f"OAuth successful for shop: {shop}")
        return response
    except Exception as e:
        logger.error(f"OAuth callback error: {e}")
        return _error_redirect("authentication_failed")


@router.get("/session")
async def get_session(request: Request):
    """Report whether the request carries a valid admin session"""
    token = _session_token_from_request(request)
    if not token:
        return JSONResponse(status_code=401, content={"authenticated": False})

    try:
        session = await get_shopify_auth().verify_session_token(token)
    except Exception as e:
        logger.error(f"Session verification error: {e}")
        session = None

    if session is None:
        return JSONResponse(
            status_code=401,
            content={"authenticated": False, "requiresAuth": True},
        )

    return {
        "authenticated": True,
        "shop": session.shop,
        "scope": session.scope,
        "expiresAt": session.expires_at.isoformat() if session.expires_at else None,
    }


@router.delete("/session")
async def logout(request: Request):
    """Revoke the session token and clear the session cookies"""
    token = _session_token_from_request(request)
    if token:
        try:
            await get_shopify_auth().revoke_session_token(token)
        except Exception as e:
            logger.warning(f"Failed to revoke session token: {e}")

    response = JSONResponse(content={"success": True})
    for name in (SESSION_COOKIE, FALLBACK_SESSION_COOKIE, FINGERPRINT_COOKIE):
        response.delete_cookie(name, path="/")
    return response
