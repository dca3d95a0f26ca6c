"""Token storage helpers."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from correction_slot.auth.models import Token

logger = logging.getLogger(__name__)


class TokenStoreError(RuntimeError):
    """The token file could not be written."""


def load_token(path: Path) -> Token | None:
    """Read a stored token; None when the file is missing or unreadable."""
    if not path.exists():
        return None
    try:
        with path.open(encoding="utf-8") as fp:
            data = json.load(fp)
        return Token.from_dict(data)
    except (OSError, ValueError, KeyError, TypeError, AttributeError) as exc:
        logger.debug("Ignoring unreadable token file %s: %s", path, exc)
        return None


def save_token(path: Path, token: Token) -> None:
    """Write the token as JSON, readable by the owner only."""
    logger.info("Saving credential file to: %s", path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as fp:
            json.dump(token.to_dict(), fp, ensure_ascii=True, indent=2)
            fp.write("\n")
    except OSError as exc:
        raise TokenStoreError(f"Unable to cache oauth token: {exc}") from exc
    try:
        os.chmod(path, 0o600)
    except OSError:
        # Ignore permission setting failures on filesystems without modes.
        pass
