"""
Altegio Onboarding — Row Input

Turns a batch payload into a list of string-keyed rows. Accepts:
  - a list of dicts (already structured)
  - a JSON array (or single object) as text
  - CSV text with a header row
"""

from __future__ import annotations

import csv
import io
import json
from typing import Any

from onboarding.errors import FieldError, ValidationError


def parse_csv(text: str) -> list[dict[str, str]]:
    """Header row + data rows. Missing trailing cells become ''."""
    text = text.lstrip("\ufeff").strip()
    if not text:
        return []
    reader = csv.DictReader(io.StringIO(text), restval="", skipinitialspace=True)
    rows: list[dict[str, str]] = []
    for raw in reader:
        row = {
            (k or "").strip(): (v or "").strip()
            for k, v in raw.items()
            if k is not None
        }
        if any(row.values()):
            rows.append(row)
    return rows


def _parse_json(text: str) -> list[dict[str, Any]]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValidationError(
            "Payload looks like JSON but could not be parsed",
            [FieldError(row=0, field="", message=str(e))],
        ) from e
    if isinstance(data, dict):
        data = [data]
    return _check_records(data)


def _check_records(data: Any) -> list[dict[str, Any]]:
    if not isinstance(data, list):
        raise ValidationError(
            "Payload must be a list of records",
            [FieldError(row=0, field="", message=f"got {type(data).__name__}")],
        )
    errors = [
        FieldError(row=i + 1, field="", message=f"expected an object, got {type(r).__name__}")
        for i, r in enumerate(data)
        if not isinstance(r, dict)
    ]
    if errors:
        raise ValidationError("Payload contains non-object rows", errors)
    return [dict(r) for r in data]


def parse_rows(payload: Any) -> list[dict[str, Any]]:
    """
    Normalize a batch payload to a list of rows.

    Raises ValidationError for payloads that are neither records nor
    parseable text. An empty string yields [].
    """
    if payload is None:
        return []
    if isinstance(payload, str):
        text = payload.strip()
        if text.startswith(("[", "{")):
            return _parse_json(text)
        return parse_csv(text)
    return _check_records(payload)
