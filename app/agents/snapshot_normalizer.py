"""Normalizes incoming plan requests into a ``SnapshotPayload``.

Callers reach the planner in three shapes: plain query parameters on a GET,
a JSON body on a POST, or a mix of both. The helpers here fold all of them
into one predictable structure so the generators never have to care where a
value came from. Nothing in this module raises on bad input; malformed values
are simply treated as absent.
"""
from __future__ import annotations

import json
import math
from typing import Any, Dict, List, Mapping, Optional, Union

from fastapi import Request

from app.schemas import Constraints, DateWindow, SnapshotPayload, VoteSummary

Number = Union[int, float]

# payload field -> (query parameter, body field)
_FIELD_SOURCES = {
    "group_size": ("group", "group_size"),
    "max_budget_per_person": ("budget", "max_budget_per_person"),
    "dates": ("dates", "dates"),
    "preferred_provinces": ("provinces", "preferred_provinces"),
    "travel_styles": ("styles", "travel_styles"),
    "votes_summary": ("votes", "votes_summary"),
}


def parse_csv_list(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


def parse_number(raw: Any) -> Optional[Number]:
    """Coerce ``raw`` to a finite number, or ``None`` when that isn't possible."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        value = raw
    elif isinstance(raw, str):
        text = raw.strip()
        if not text or "_" in text:
            return None
        try:
            value = float(text)
        except ValueError:
            return None
    else:
        return None

    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        if value.is_integer():
            return int(value)
    return value


def parse_votes(raw: Any) -> List[VoteSummary]:
    """Decode the ranked vote list.

    Accepts an already-decoded list (POST bodies), a JSON array string, or the
    compact ``name|cost|duration|location;...`` encoding used in query strings.
    """
    if isinstance(raw, list):
        return _votes_from_objects(raw)
    if not isinstance(raw, str):
        return []

    trimmed = raw.strip()
    if not trimmed:
        return []

    try:
        decoded = json.loads(trimmed)
    except ValueError:
        decoded = None
    if isinstance(decoded, list):
        return _votes_from_objects(decoded)

    return _votes_from_delimited(trimmed)


def build_snapshot(query: Mapping[str, str], body: Optional[Mapping[str, Any]] = None) -> SnapshotPayload:
    """Merge query parameters and a JSON body; body fields win when present."""
    body = body or {}

    def pick(field: str) -> Any:
        query_key, body_key = _FIELD_SOURCES[field]
        value = body.get(body_key)
        if value is not None:
            return value
        return query.get(query_key)

    constraints = Constraints(
        group_size=_positive_int(parse_number(pick("group_size"))),
        max_budget_per_person=_non_negative(parse_number(pick("max_budget_per_person"))),
        travel_styles=_parse_list(pick("travel_styles")),
        preferred_provinces=_parse_list(pick("preferred_provinces")),
        date_window=DateWindow(all_dates=_parse_list(pick("dates"))),
    )
    return SnapshotPayload(constraints=constraints, votes_summary=parse_votes(pick("votes_summary")))


async def read_json_body(request: Request) -> Dict[str, Any]:
    """Return the request's JSON object body, or ``{}`` for GET/absent/malformed bodies."""
    if request.method == "GET":
        return {}
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


async def snapshot_from_request(request: Request) -> SnapshotPayload:
    body = await read_json_body(request)
    return build_snapshot(request.query_params, body)


def _votes_from_objects(items: List[Any]) -> List[VoteSummary]:
    votes: List[VoteSummary] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        raw_name = item.get("name")
        name = str(raw_name if raw_name is not None else "").strip()
        if not name:
            continue
        location = item.get("location")
        duration = item.get("duration")
        votes.append(
            VoteSummary(
                name=name,
                location=str(location) if location else None,
                estimated_cost=_non_negative(parse_number(item.get("estimated_cost"))),
                duration=str(duration) if duration else None,
            )
        )
    return votes


def _votes_from_delimited(raw: str) -> List[VoteSummary]:
    votes: List[VoteSummary] = []
    for record in raw.split(";"):
        record = record.strip()
        if not record:
            continue
        fields = [part.strip() for part in record.split("|")]
        fields += [""] * (4 - len(fields))
        name, cost, duration, location = fields[:4]
        if not name:
            continue
        votes.append(
            VoteSummary(
                name=name,
                estimated_cost=_non_negative(parse_number(cost)),
                duration=duration or None,
                location=location or None,
            )
        )
    return votes


def _parse_list(raw: Any) -> List[str]:
    if isinstance(raw, str):
        return parse_csv_list(raw)
    if isinstance(raw, list):
        return [str(v).strip() for v in raw if v is not None and str(v).strip()]
    return []


def _positive_int(value: Optional[Number]) -> Optional[int]:
    if isinstance(value, int) and value > 0:
        return value
    return None


def _non_negative(value: Optional[Number]) -> Optional[Number]:
    if value is None or value < 0:
        return None
    return value
