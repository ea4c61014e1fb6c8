# Copyright 2025 Google LLC
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
# ==============================================================================

import time
from datetime import datetime, timezone, tzinfo
from typing import Any, Optional

from shared.constants import CONVERSATION_ID_SEPARATOR, TEMP_ID_PREFIX

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def conversation_id(first_uid: str, second_uid: str) -> str:
    """
    Returns the id shared by both participants of a direct conversation.

    The pair is sorted before joining, so either side computes the same id.
    """
    return CONVERSATION_ID_SEPARATOR.join(sorted([first_uid, second_uid]))


def now_iso() -> str:
    """UTC now as an ISO-8601 string with millisecond precision and a Z suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def temp_id(now_ms: Optional[int] = None) -> str:
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{TEMP_ID_PREFIX}{now_ms}"


def parse_timestamp(value: Any) -> datetime:
    """
    Normalizes the timestamp shapes found in documents (datetime, ISO string)
    to an aware datetime. Missing or unparseable values map to the epoch.
    """
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return _EPOCH
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return _EPOCH


def time_label(timestamp: Any, tz: Optional[tzinfo] = None) -> str:
    """
    HH:MM for a resolved timestamp, "Now" while the server has not set one.
    Times are shown in `tz`, or in the machine's local zone when omitted.
    """
    if not isinstance(timestamp, datetime):
        return "Now"
    return parse_timestamp(timestamp).astimezone(tz).strftime("%H:%M")
