"""OAuth login and token management."""

from __future__ import annotations

import logging
import urllib.parse
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import httpx

from correction_slot.api.client import IntraClient
from correction_slot.auth.models import Token
from correction_slot.auth.storage import load_token, save_token
from correction_slot.config import Settings
from correction_slot.constants import AUTH_STATE, HTTP_TIMEOUT_SEC

logger = logging.getLogger(__name__)

AUTH_PROMPT = "Go to the following link in your browser then type the authorization code:"
CODE_PROMPT = "Authorization code (or full redirect URL)"


class AuthError(RuntimeError):
    """The authorization flow could not produce a token."""


def build_authorization_url(settings: Settings, state: str = AUTH_STATE) -> str:
    params = {
        "response_type": "code",
        "client_id": settings.client_id,
        "redirect_uri": settings.redirect_uri,
        "state": state,
        "access_type": "offline",
    }
    if settings.scopes:
        params["scope"] = " ".join(settings.scopes)
    return f"{settings.authorize_url}?{urllib.parse.urlencode(params)}"


def parse_authorization_input(raw: str) -> tuple[str | None, str | None]:
    """Extract (code, state) from a pasted code or redirect URL."""
    value = raw.strip()
    if not value:
        return None, None

    url = urllib.parse.urlparse(value)
    if url.scheme and url.query:
        qs = urllib.parse.parse_qs(url.query)
        code = qs.get("code", [None])[0]
        if code:
            return code, qs.get("state", [None])[0]

    if "code=" in value:
        qs = urllib.parse.parse_qs(value.lstrip("?"))
        return qs.get("code", [None])[0], qs.get("state", [None])[0]

    return value, None


def _parse_token_payload(
    payload: dict[str, Any],
    missing_message: str,
    previous: Token | None = None,
) -> Token:
    access = payload.get("access_token")
    if not access:
        raise AuthError(missing_message)
    refresh = payload.get("refresh_token") or (previous.refresh_token if previous else "")
    expires_in = payload.get("expires_in")
    expiry = None
    if isinstance(expires_in, (int, float)) and expires_in > 0:
        expiry = datetime.now(timezone.utc) + timedelta(seconds=expires_in)
    return Token(
        access_token=str(access),
        refresh_token=str(refresh),
        token_type=str(payload.get("token_type") or "Bearer"),
        expiry=expiry,
    )


def _post_token_request(
    settings: Settings,
    data: dict[str, str],
    transport: httpx.BaseTransport | None,
    failure: str,
) -> dict[str, Any]:
    data = {
        **data,
        "client_id": settings.client_id,
        "client_secret": settings.client_secret,
    }
    try:
        with httpx.Client(timeout=HTTP_TIMEOUT_SEC, transport=transport) as client:
            response = client.post(
                settings.token_url,
                data=data,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
    except httpx.HTTPError as exc:
        raise AuthError(f"{failure}: {exc}") from exc
    if response.status_code != 200:
        raise AuthError(f"{failure}: {response.status_code} {response.text}")
    try:
        payload = response.json()
    except ValueError as exc:
        raise AuthError(f"{failure}: invalid JSON response") from exc
    if not isinstance(payload, dict):
        raise AuthError(f"{failure}: unexpected response")
    return payload


def exchange_code(
    settings: Settings,
    code: str,
    transport: httpx.BaseTransport | None = None,
) -> Token:
    payload = _post_token_request(
        settings,
        {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": settings.redirect_uri,
        },
        transport,
        "Unable to retrieve token from web",
    )
    return _parse_token_payload(payload, "Token response missing fields")


def refresh_token(
    settings: Settings,
    token: Token,
    transport: httpx.BaseTransport | None = None,
) -> Token:
    if not token.refresh_token:
        raise AuthError("No refresh token stored")
    payload = _post_token_request(
        settings,
        {
            "grant_type": "refresh_token",
            "refresh_token": token.refresh_token,
        },
        transport,
        "Token refresh failed",
    )
    return _parse_token_payload(payload, "Token refresh response missing fields", previous=token)


def login_interactive(
    settings: Settings,
    on_auth: Callable[[str], None] | None = None,
    on_prompt: Callable[[str], str] | None = None,
    transport: httpx.BaseTransport | None = None,
) -> Token:
    """Interactive login flow. Blocks until a code is entered."""
    url = build_authorization_url(settings)
    if on_auth:
        on_auth(url)
    else:
        print(f"{AUTH_PROMPT}\n{url}")

    try:
        raw = on_prompt(CODE_PROMPT) if on_prompt else input(f"{CODE_PROMPT}: ")
    except (EOFError, KeyboardInterrupt) as exc:
        raise AuthError("Unable to read authorization code") from exc

    code, state = parse_authorization_input(raw)
    if state and state != AUTH_STATE:
        raise AuthError("State validation failed.")
    if not code:
        raise AuthError("Authorization code not found.")

    return exchange_code(settings, code, transport=transport)


def ensure_token(
    settings: Settings,
    on_auth: Callable[[str], None] | None = None,
    on_prompt: Callable[[str], str] | None = None,
    transport: httpx.BaseTransport | None = None,
) -> Token:
    """Load, or obtain interactively, a token and try to refresh it."""
    token = load_token(settings.token_path)
    if token is None:
        token = login_interactive(settings, on_auth=on_auth, on_prompt=on_prompt, transport=transport)
        save_token(settings.token_path, token)

    try:
        refreshed = refresh_token(settings, token, transport=transport)
    except AuthError as exc:
        # A stale token is still tried against the API.
        logger.debug("Token refresh skipped: %s", exc)
        return token

    save_token(settings.token_path, refreshed)
    return refreshed


def ensure_client(
    settings: Settings,
    on_auth: Callable[[str], None] | None = None,
    on_prompt: Callable[[str], str] | None = None,
    transport: httpx.BaseTransport | None = None,
) -> IntraClient:
    """Return an API client bound to a valid (or best-effort refreshed) token."""
    token = ensure_token(settings, on_auth=on_auth, on_prompt=on_prompt, transport=transport)
    if token.expired():
        logger.warning("Stored token expired at %s and could not be refreshed", token.expiry)
    return IntraClient(settings.api_base, token, transport=transport)
