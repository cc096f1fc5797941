# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Record codec — JSON text for session payloads and ISO-8601 text for instants."""

from __future__ import annotations

import json
from datetime import date, datetime, timezone
from typing import Any

from sqlsession.exceptions import SessionDecodeException, SessionEncodeException


def format_instant(value: datetime) -> str:
    """Render *value* in the fixed-width ``YYYY-MM-DDTHH:MM:SS.mmmZ`` UTC form.

    Naive datetimes are taken as UTC. Every ``expire`` column value is written
    through this function so that string order equals chronological order,
    which is why the year is always four digits.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    utc = value.astimezone(timezone.utc)
    return (
        f"{utc.year:04d}-{utc.month:02d}-{utc.day:02d}"
        f"T{utc.hour:02d}:{utc.minute:02d}:{utc.second:02d}.{utc.microsecond // 1000:03d}Z"
    )


def parse_instant(text: str) -> datetime:
    """Parse an ISO-8601 string into an aware UTC datetime.

    Raises:
        SessionDecodeException: If *text* is not an ISO-8601 timestamp or
            falls outside the representable UTC range.
    """
    try:
        parsed = datetime.fromisoformat(text.strip())
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)
    except (AttributeError, TypeError, ValueError, OverflowError) as exc:
        raise SessionDecodeException(
            f"Not a valid ISO-8601 instant: {text!r}",
            code="INSTANT_DECODE",
            context={"instant": text},
        ) from exc


def _default(value: Any) -> Any:
    if isinstance(value, datetime):
        return format_instant(value)
    if isinstance(value, date):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def encode(sess: Any) -> str:
    """Serialize a session payload to compact JSON text, preserving key order."""
    try:
        return json.dumps(sess, separators=(",", ":"), ensure_ascii=False, default=_default)
    except (TypeError, ValueError, OverflowError) as exc:
        raise SessionEncodeException(
            f"Session payload is not JSON serializable: {exc}",
            code="SESSION_ENCODE",
        ) from exc


def decode(text: str | bytes) -> Any:
    """Deserialize stored session text back into the session payload."""
    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError) as exc:
        raise SessionDecodeException(
            f"Stored session is not valid JSON: {exc}",
            code="SESSION_DECODE",
        ) from exc
