import urllib.parse
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from correction_slot.api.client import ApiError, IntraClient
from correction_slot.auth.models import Token
from correction_slot.config import SlotWindow
from correction_slot.slots import (
    Slot,
    list_correction_projects,
    list_slots,
    parse_project_users,
    parse_slots,
    select_slot,
)

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def _client(handler) -> IntraClient:
    return IntraClient("https://intra.test", Token(access_token="t"), transport=httpx.MockTransport(handler))


def _slot(slot_id: int, end: str) -> Slot:
    end_at = datetime.fromisoformat(end.replace("Z", "+00:00"))
    return Slot(id=slot_id, begin_at=end_at - timedelta(minutes=15), end_at=end_at)


def test_list_correction_projects_filters_and_keeps_order() -> None:
    me = {
        "login": "someone",
        "projects_users": [
            {"project": 1, "status": "waiting_for_correction"},
            {"project": 2, "status": "finished"},
            {"project": {"id": 7, "name": "libft"}, "status": "waiting_for_correction"},
            {"project": {"id": 3}, "status": "in_progress"},
        ],
    }

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/v2/me"
        return httpx.Response(200, json=me)

    with _client(handler) as client:
        assert list_correction_projects(client) == [1, 7]


def test_list_correction_projects_scenario() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "projects_users": [
                    {"project": 1, "status": "waiting_for_correction"},
                    {"project": 2, "status": "finished"},
                ]
            },
        )

    with _client(handler) as client:
        assert list_correction_projects(client) == [1]


def test_list_correction_projects_unexpected_body_raises() -> None:
    with _client(lambda request: httpx.Response(200, json="nope")) as client:
        with pytest.raises(ApiError):
            list_correction_projects(client)


def test_parse_project_users_keeps_names() -> None:
    users = parse_project_users({"projects_users": [{"project": {"id": 4, "name": "push_swap"}, "status": "x"}]})

    assert users[0].project_id == 4
    assert users[0].project_name == "push_swap"


def test_list_slots_requests_horizon_sorted_by_begin() -> None:
    captured: dict[str, object] = {}
    payload = [
        {"id": 10, "begin_at": "2024-01-02T09:45:00.000Z", "end_at": "2024-01-02T10:00:00.000Z"},
        {"id": 11, "begin_at": "2024-01-02T09:15:00.000Z", "end_at": "2024-01-02T09:30:00.000Z"},
    ]

    def handler(request: httpx.Request) -> httpx.Response:
        captured["path"] = request.url.path
        captured["params"] = dict(urllib.parse.parse_qsl(request.url.query.decode()))
        return httpx.Response(200, json=payload)

    with _client(handler) as client:
        slots = list_slots(client, 1314, now=NOW)

    assert captured["path"] == "/v2/projects/1314/slots"
    assert captured["params"]["range[end_at]"] == "2024-01-01T12:00:00Z,2024-01-06T12:00:00Z"
    assert captured["params"]["sort"] == "begin_at"
    # Server order is kept as-is.
    assert [s.id for s in slots] == [10, 11]
    assert slots[0].end_at == datetime(2024, 1, 2, 10, tzinfo=timezone.utc)


@pytest.mark.parametrize("body", [b"", b"[]", b"not json", b'{"error": "x"}'])
def test_list_slots_empty_or_unparsable_is_empty(body) -> None:
    with _client(lambda request: httpx.Response(200, content=body)) as client:
        assert list_slots(client, 1, now=NOW) == []


def test_list_slots_http_error_is_fatal() -> None:
    with _client(lambda request: httpx.Response(403, text="forbidden")) as client:
        with pytest.raises(ApiError):
            list_slots(client, 1, now=NOW)


def test_parse_slots_skips_broken_entries() -> None:
    slots = parse_slots(
        [
            {"id": 1, "begin_at": "2024-01-02T09:00:00Z", "end_at": "2024-01-02T10:00:00Z"},
            {"id": 2, "begin_at": "garbage"},
            "nope",
        ]
    )

    assert [s.id for s in slots] == [1]


def test_select_slot_scenario_first_full_hour() -> None:
    slots = [_slot(1, "2024-01-02T10:00:00Z"), _slot(2, "2024-01-02T09:30:00Z")]

    assert select_slot(slots, now=NOW).id == 1


def test_select_slot_skips_minutes_other_than_zero() -> None:
    slots = [_slot(1, "2024-01-02T09:30:00Z"), _slot(2, "2024-01-02T11:00:00Z")]

    assert select_slot(slots, now=NOW).id == 2


def test_select_slot_hour_bounds_are_inclusive() -> None:
    assert select_slot([_slot(1, "2024-01-02T18:00:00Z")], now=NOW).id == 1
    assert select_slot([_slot(1, "2024-01-02T09:00:00Z")], now=NOW).id == 1
    assert select_slot([_slot(1, "2024-01-02T08:00:00Z"), _slot(2, "2024-01-02T19:00:00Z")], now=NOW) is None


def test_select_slot_respects_horizon() -> None:
    beyond = _slot(1, "2024-01-06T12:00:00Z")
    inside = _slot(2, "2024-01-06T11:00:00Z")

    assert select_slot([beyond], now=NOW) is None
    assert select_slot([beyond, inside], now=NOW).id == 2


def test_select_slot_uses_slot_offset() -> None:
    end_at = datetime(2024, 1, 2, 10, 0, tzinfo=timezone(timedelta(hours=1)))
    slot = Slot(id=5, begin_at=end_at - timedelta(minutes=15), end_at=end_at)

    assert select_slot([slot], now=NOW) is slot


def test_select_slot_empty() -> None:
    assert select_slot([], now=NOW) is None


def test_select_slot_custom_window() -> None:
    slots = [_slot(1, "2024-01-02T09:30:00Z")]

    assert select_slot(slots, now=NOW, window=SlotWindow(minute_max=59)).id == 1
