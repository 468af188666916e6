"""
Payload Normalizers

The workforce API is loose about field names and types: ids arrive as
strings or numbers, amounts as "12,50 €", notes nested in arbitrary
objects. These helpers coerce raw JSON values into predictable Python ones.
"""

import math
import re
from decimal import Decimal, InvalidOperation
from typing import Any

_NON_NUMERIC = re.compile(r"[^0-9,.-]")

NOTE_PREFERRED_KEYS = ("text", "note", "description", "value", "comment")
NOTE_FIELDS = (
    "note",
    "notes",
    "comment",
    "comments",
    "observation",
    "observations",
    "description",
    "value",
)

# Hour records keep their hours under "value"; observations are joined separately
DESCRIPTION_FIELDS = tuple(
    field for field in NOTE_FIELDS if field not in ("value", "observation", "observations")
)


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value)


def _number_to_string(value: int | float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def pick_string(*values: Any) -> str | None:
    """First non-blank string (trimmed) or finite number (as text)."""
    for value in values:
        if isinstance(value, str):
            trimmed = value.strip()
            if trimmed:
                return trimmed
        elif _is_number(value):
            return _number_to_string(value)
    return None


def parse_numeric(value: Any) -> Decimal | None:
    """
    Parse a number out of a JSON value.

    Strings are stripped of everything but digits, separators and minus,
    and commas are read as decimal points ("12,5 h" -> 12.5).
    """
    if _is_number(value):
        return Decimal(str(value))

    if isinstance(value, str):
        normalized = _NON_NUMERIC.sub("", value).replace(",", ".")
        if not normalized:
            return None
        try:
            parsed = Decimal(normalized)
        except InvalidOperation:
            return None
        if parsed.is_finite():
            return parsed

    return None


def parse_relation_type(*values: Any) -> int | None:
    for value in values:
        if _is_number(value):
            return int(value)
        if isinstance(value, str):
            trimmed = value.strip()
            if not trimmed:
                continue
            try:
                return int(Decimal(trimmed))
            except (InvalidOperation, ValueError, OverflowError):
                continue
    return None


def normalize_identifier(value: Any) -> str | None:
    if isinstance(value, str):
        trimmed = value.strip()
        return trimmed or None
    if _is_number(value):
        return _number_to_string(value)
    return None


def extract_list(payload: Any, *keys: str) -> list:
    """A JSON array, or the first array found under `keys` of an object."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in keys:
            if isinstance(payload.get(key), list):
                return payload[key]
    return []


def _inspect_note(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value.strip() or None
    if _is_number(value):
        return _number_to_string(value)
    if isinstance(value, list):
        for item in value:
            result = _inspect_note(item)
            if result:
                return result
        return None
    if isinstance(value, dict):
        for key in NOTE_PREFERRED_KEYS:
            if key in value:
                result = _inspect_note(value[key])
                if result:
                    return result
        for item in value.values():
            result = _inspect_note(item)
            if result:
                return result
    return None


def extract_note_text(entry: dict, fields: tuple[str, ...] = NOTE_FIELDS) -> str | None:
    """Primary note text of a schedule record."""
    for field in fields:
        text = _inspect_note(entry.get(field))
        if text:
            return text
    return None


def collect_note_strings(value: Any, collector: dict[str, None] | None = None) -> list[str]:
    """Every non-blank string or number nested in `value`, deduplicated, in order."""
    if collector is None:
        collector = {}

    if isinstance(value, str):
        trimmed = value.strip()
        if trimmed:
            collector[trimmed] = None
    elif _is_number(value):
        collector[_number_to_string(value)] = None
    elif isinstance(value, list):
        for item in value:
            collect_note_strings(item, collector)
    elif isinstance(value, dict):
        for item in value.values():
            collect_note_strings(item, collector)

    return list(collector)
