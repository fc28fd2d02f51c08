"""
Submission payload validation.

Turns raw JSON bodies into frozen, typed inputs for the submission service.
All field problems are collected and raised together as one ValidationError
whose ``details`` is a list of ``{"field", "message"}`` entries, with
paths like ``sections[1].subsections[0].result``.

A ``status`` key in the payload is never read here: the status is derived
from the sections by the model.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime

from runboard.core.exceptions import ValidationError
from runboard.core.outcome import Outcome

TEAM_MAX = 100
TEST_NAME_MAX = 200
SECTION_NAME_MAX = 200
SEARCH_MAX = 200

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass(frozen=True)
class SubsectionInput:
    name: str
    result: Outcome


@dataclass(frozen=True)
class SectionInput:
    name: str
    result: Outcome
    subsections: tuple[SubsectionInput, ...] = ()


@dataclass(frozen=True)
class SubmissionInput:
    test_name: str
    sections: tuple[SectionInput, ...]
    team: str | None = None
    timestamp: datetime | None = None


class _Errors:
    """Accumulates field errors; raises once at the end."""

    def __init__(self):
        self.items: list[dict] = []

    def add(self, field: str, message: str) -> None:
        self.items.append({"field": field, "message": message})

    def raise_if_any(self) -> None:
        if self.items:
            raise ValidationError("Validation failed", details=self.items)


def _text(errors: _Errors, field: str, value, max_len: int, label: str) -> str | None:
    if not isinstance(value, str) or not value.strip():
        errors.add(field, f"{label} is required")
        return None
    value = value.strip()
    if len(value) > max_len:
        errors.add(field, f"{label} must be between 1 and {max_len} characters")
        return None
    return value


def _outcome(errors: _Errors, field: str, value) -> Outcome | None:
    try:
        return Outcome.parse(value, field=field)
    except ValidationError as exc:
        errors.items.extend(exc.details)
        return None


def _sections(errors: _Errors, raw) -> tuple[SectionInput, ...]:
    if not isinstance(raw, list) or not raw:
        errors.add("sections", "At least one section is required")
        return ()

    parsed = []
    for i, s in enumerate(raw):
        path = f"sections[{i}]"
        if not isinstance(s, dict):
            errors.add(path, "Section must be an object")
            continue
        name = _text(errors, f"{path}.name", s.get("name"), SECTION_NAME_MAX, "Section name")
        result = _outcome(errors, f"{path}.result", s.get("result"))

        raw_subs = s.get("subsections")
        if raw_subs is None:
            raw_subs = []
        if not isinstance(raw_subs, list):
            errors.add(f"{path}.subsections", "Subsections must be an array")
            raw_subs = []

        subs = []
        for j, sub in enumerate(raw_subs):
            sub_path = f"{path}.subsections[{j}]"
            if not isinstance(sub, dict):
                errors.add(sub_path, "Subsection must be an object")
                continue
            sub_name = _text(errors, f"{sub_path}.name", sub.get("name"), SECTION_NAME_MAX, "Subsection name")
            sub_result = _outcome(errors, f"{sub_path}.result", sub.get("result"))
            if sub_name is not None and sub_result is not None:
                subs.append(SubsectionInput(name=sub_name, result=sub_result))

        if name is not None and result is not None:
            parsed.append(SectionInput(name=name, result=result, subsections=tuple(subs)))
    return tuple(parsed)


def parse_timestamp(value, field: str = "timestamp") -> datetime:
    """Parse an ISO-8601 timestamp into a naive server-local datetime.

    Aware values are converted to server-local time; naive values are
    taken as already local.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        raw = value.strip()
        if raw.endswith(("Z", "z")):
            raw = raw[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            raise ValidationError.for_field(field, "Timestamp must be a valid ISO 8601 date") from None
    else:
        raise ValidationError.for_field(field, "Timestamp must be a valid ISO 8601 date")

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def parse_iso_date(value, field: str = "date") -> date:
    """Strict ``YYYY-MM-DD`` that must also be a real calendar date."""
    if not isinstance(value, str) or not _ISO_DATE_RE.match(value):
        raise ValidationError.for_field(field, "Date is required and must be in YYYY-MM-DD format")
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError.for_field(field, f"{value} is not a valid calendar date") from None


def parse_submission_create(data: dict) -> SubmissionInput:
    """Validate a create body. ``team`` and ``timestamp`` are optional."""
    errors = _Errors()

    team = None
    if data.get("team") is not None:
        team = _text(errors, "team", data.get("team"), TEAM_MAX, "Team name")
    test_name = _text(errors, "test_name", data.get("test_name"), TEST_NAME_MAX, "Test name")
    sections = _sections(errors, data.get("sections"))

    timestamp = None
    if data.get("timestamp") is not None:
        try:
            timestamp = parse_timestamp(data["timestamp"])
        except ValidationError as exc:
            errors.items.extend(exc.details)

    errors.raise_if_any()
    return SubmissionInput(test_name=test_name, sections=sections, team=team, timestamp=timestamp)


def parse_submission_update(data: dict) -> dict:
    """Validate a partial update body.

    Returns only the fields present in ``data``:
    ``team``, ``test_name``, ``sections`` (tuple of SectionInput), ``timestamp``.
    """
    errors = _Errors()
    updates: dict = {}

    if "team" in data:
        updates["team"] = _text(errors, "team", data["team"], TEAM_MAX, "Team name")
    if "test_name" in data:
        updates["test_name"] = _text(errors, "test_name", data["test_name"], TEST_NAME_MAX, "Test name")
    if "sections" in data:
        updates["sections"] = _sections(errors, data["sections"])
    if "timestamp" in data:
        try:
            updates["timestamp"] = parse_timestamp(data["timestamp"])
        except ValidationError as exc:
            errors.items.extend(exc.details)

    errors.raise_if_any()
    return updates


def parse_pagination(page, limit, search, *, max_limit: int = 100) -> tuple[int, int, str | None]:
    """Validate listMine paging arguments (already int-coerced or None)."""
    errors = _Errors()
    page = 1 if page is None else page
    limit = 10 if limit is None else limit

    if not isinstance(page, int) or page < 1:
        errors.add("page", "Page must be a positive integer")
    if not isinstance(limit, int) or not 1 <= limit <= max_limit:
        errors.add("limit", f"Limit must be between 1 and {max_limit}")
    if search is not None:
        search = search.strip() if isinstance(search, str) else search
        if not isinstance(search, str) or not 1 <= len(search) <= SEARCH_MAX:
            errors.add("search", f"Search term must be between 1 and {SEARCH_MAX} characters")

    errors.raise_if_any()
    return page, limit, search or None
