"""Projects awaiting correction and their correction slots."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable

from correction_slot.api.client import ApiError, IntraClient
from correction_slot.auth.models import parse_timestamp
from correction_slot.config import SlotWindow
from correction_slot.constants import (
    HORIZON_DAYS,
    ME_PATH,
    SLOTS_PAGE_SIZE,
    SLOTS_PATH,
    WAITING_FOR_CORRECTION,
)

logger = logging.getLogger(__name__)

DEFAULT_HORIZON = timedelta(days=HORIZON_DAYS)


@dataclass
class ProjectUser:
    """One project enrollment of the authenticated user."""

    project_id: int
    status: str
    project_name: str | None = None


@dataclass
class Slot:
    """A correction time slot."""

    id: int
    begin_at: datetime
    end_at: datetime


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_rfc3339(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


def parse_project_users(payload: Any) -> list[ProjectUser]:
    """Read the `projects_users` list out of a /v2/me body."""
    if isinstance(payload, dict):
        entries = payload.get("projects_users") or []
    elif isinstance(payload, list):
        entries = payload
    else:
        raise ValueError("expected a JSON object with projects_users")

    project_users: list[ProjectUser] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        project = entry.get("project")
        name = None
        if isinstance(project, dict):
            name = project.get("name")
            project = project.get("id")
        if project is None:
            continue
        project_users.append(
            ProjectUser(
                project_id=int(project),
                status=str(entry.get("status") or ""),
                project_name=name,
            )
        )
    return project_users


def list_correction_projects(client: IntraClient) -> list[int]:
    """IDs of the projects waiting for correction, in API order."""
    payload = client.get_json(ME_PATH)
    try:
        project_users = parse_project_users(payload)
    except (ValueError, TypeError) as exc:
        raise ApiError(f"Unexpected {ME_PATH} response: {exc}") from exc
    return [pu.project_id for pu in project_users if pu.status == WAITING_FOR_CORRECTION]


def parse_slots(payload: Any) -> list[Slot]:
    if not isinstance(payload, list):
        raise ValueError("expected a JSON list of slots")
    slots: list[Slot] = []
    for item in payload:
        try:
            slots.append(
                Slot(
                    id=int(item["id"]),
                    begin_at=parse_timestamp(item["begin_at"]),
                    end_at=parse_timestamp(item["end_at"]),
                )
            )
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            logger.debug("Skipping unparsable slot %r: %s", item, exc)
    return slots


def list_slots(
    client: IntraClient,
    project_id: int,
    now: datetime | None = None,
    horizon: timedelta = DEFAULT_HORIZON,
) -> list[Slot]:
    """Slots of a project ending within the horizon, sorted by begin time."""
    now = now or _utcnow()
    params = {
        "range[end_at]": f"{format_rfc3339(now)},{format_rfc3339(now + horizon)}",
        "sort": "begin_at",
        "page[size]": SLOTS_PAGE_SIZE,
    }
    body = client.get(SLOTS_PATH.format(project_id=project_id), params=params)
    if not body.strip():
        logger.warning("Empty slots response for project %s", project_id)
        return []
    try:
        return parse_slots(json.loads(body))
    except ValueError as exc:
        logger.warning("Unparsable slots response for project %s: %s", project_id, exc)
        return []


def select_slot(
    slots: Iterable[Slot],
    now: datetime | None = None,
    horizon: timedelta = DEFAULT_HORIZON,
    window: SlotWindow = SlotWindow(),
) -> Slot | None:
    """First slot ending before the horizon with an end time inside the window."""
    deadline = (now or _utcnow()) + horizon
    for slot in slots:
        if slot.end_at >= deadline:
            continue
        if window.contains(slot.end_at.hour, slot.end_at.minute):
            return slot
    return None
