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
"""TTL resolver — derives a session's absolute expiry from its cookie metadata."""

from __future__ import annotations

import math
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlsession.codec import parse_instant
from sqlsession.exceptions import InvalidExpiryException, SessionDecodeException

DEFAULT_TTL = timedelta(seconds=86400)


def _max_age(cookie: Mapping[str, Any]) -> float | None:
    """Return ``maxAge`` in milliseconds when it is a usable number."""
    value = cookie.get("maxAge")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return value


def _invalid_expires(value: Any) -> InvalidExpiryException:
    return InvalidExpiryException(
        f"Cookie 'expires' is not a representable ISO-8601 timestamp: {value!r}",
        code="INVALID_EXPIRES",
        context={"expires": value},
    )


def _expires(value: Any) -> datetime:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        try:
            return value.astimezone(timezone.utc)
        except OverflowError as exc:
            raise _invalid_expires(value) from exc
    if isinstance(value, str):
        try:
            return parse_instant(value)
        except SessionDecodeException as exc:
            raise _invalid_expires(value) from exc
    raise InvalidExpiryException(
        f"Cookie 'expires' must be a datetime or ISO-8601 string, got {type(value).__name__}",
        code="INVALID_EXPIRES",
        context={"expires": value},
    )


def resolve_expiry(cookie: Mapping[str, Any] | None, now: datetime) -> datetime:
    """Compute the absolute expiry instant for a session cookie.

    Precedence:
    1. ``maxAge`` (milliseconds, finite, non-negative): ``now + maxAge``
    2. ``expires`` (datetime or ISO-8601 string): taken as-is
    3. :data:`DEFAULT_TTL` from ``now``

    The result is not clamped: a ``maxAge`` of ``0`` yields an instant that is
    already in the past.

    Raises:
        InvalidExpiryException: If ``expires`` cannot be parsed or ``maxAge``
            is out of the representable datetime range.
    """
    cookie = cookie or {}
    max_age = _max_age(cookie)
    if max_age is not None:
        try:
            return now + timedelta(milliseconds=max_age)
        except OverflowError as exc:
            raise InvalidExpiryException(
                f"Cookie 'maxAge' is out of range: {max_age!r}",
                code="INVALID_MAX_AGE",
                context={"maxAge": max_age},
            ) from exc

    expires = cookie.get("expires")
    if expires is not None:
        return _expires(expires)

    return now + DEFAULT_TTL


def session_expiry(sess: Mapping[str, Any] | None, now: datetime) -> datetime:
    """Resolve the expiry for a whole session payload via its ``cookie`` entry."""
    cookie = sess.get("cookie") if isinstance(sess, Mapping) else None
    if cookie is not None and not isinstance(cookie, Mapping):
        raise InvalidExpiryException(
            f"Session 'cookie' must be a mapping, got {type(cookie).__name__}",
            code="INVALID_COOKIE",
        )
    return resolve_expiry(cookie, now)
