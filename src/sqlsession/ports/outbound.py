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
"""Session store protocol."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

Callback = Callable[[BaseException | None, Any], Any]
"""Completion callback receiving ``(error, result)``; exactly one side is set."""


@runtime_checkable
class SessionStorePort(Protocol):
    """Operation surface a session middleware consumes.

    Every operation runs to completion whether or not *callback* is given and
    reports failures through the callback's error slot instead of raising.
    """

    def get(self, sid: str, callback: Callback | None = None) -> None: ...

    def set(self, sid: str, sess: dict[str, Any], callback: Callback | None = None) -> None: ...

    def destroy(self, sid: str, callback: Callback | None = None) -> None: ...

    def touch(self, sid: str, sess: dict[str, Any] | None, callback: Callback | None = None) -> None: ...

    def length(self, callback: Callback | None = None) -> None: ...

    def clear(self, callback: Callback | None = None) -> None: ...

    def all(self, callback: Callback | None = None) -> None: ...
