"""Runtime settings, built once by the CLI and passed down explicitly."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from correction_slot.constants import (
    API_BASE_URL,
    AUTHORIZE_URL,
    HORIZON_DAYS,
    REDIRECT_URI,
    TOKEN_FILENAME,
    TOKEN_URL,
    WINDOW_HOUR_MAX,
    WINDOW_HOUR_MIN,
    WINDOW_MINUTE_MAX,
    WINDOW_MINUTE_MIN,
)


@dataclass(frozen=True)
class SlotWindow:
    """Inclusive bounds on the end time of an acceptable slot.

    Hour and minute are checked independently, so the defaults only accept
    slots ending exactly on the hour between 09:00 and 18:00.
    """

    hour_min: int = WINDOW_HOUR_MIN
    hour_max: int = WINDOW_HOUR_MAX
    minute_min: int = WINDOW_MINUTE_MIN
    minute_max: int = WINDOW_MINUTE_MAX

    def contains(self, hour: int, minute: int) -> bool:
        return (
            self.hour_min <= hour <= self.hour_max
            and self.minute_min <= minute <= self.minute_max
        )


@dataclass
class Settings:
    """OAuth client credentials plus everything the flow needs to run."""

    client_id: str
    client_secret: str
    scopes: list[str] = field(default_factory=list)
    token_path: Path = field(default_factory=lambda: Path(TOKEN_FILENAME))
    api_base: str = API_BASE_URL
    authorize_url: str = AUTHORIZE_URL
    token_url: str = TOKEN_URL
    redirect_uri: str = REDIRECT_URI
    horizon_days: int = HORIZON_DAYS
    window: SlotWindow = field(default_factory=SlotWindow)

    @classmethod
    def from_options(
        cls,
        client_id: str,
        client_secret: str,
        scopes: str | None = None,
        token_file: str | Path | None = None,
    ) -> "Settings":
        settings = cls(
            client_id=client_id,
            client_secret=client_secret,
            scopes=split_scopes(scopes),
        )
        if token_file:
            settings.token_path = Path(token_file)
        return settings


def split_scopes(raw: str | None) -> list[str]:
    """Split a comma-separated scope list, dropping blanks."""
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]
