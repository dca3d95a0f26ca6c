"""OAuth authentication against the 42 intra."""

from correction_slot.auth.flow import (
    AuthError,
    ensure_client,
    ensure_token,
    login_interactive,
)
from correction_slot.auth.models import Token
from correction_slot.auth.storage import TokenStoreError, load_token, save_token

__all__ = [
    "AuthError",
    "Token",
    "TokenStoreError",
    "ensure_client",
    "ensure_token",
    "load_token",
    "login_interactive",
    "save_token",
]
