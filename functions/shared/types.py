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

from dataclasses import dataclass, fields
from enum import Enum, StrEnum
from typing import Any, Optional, Type, TypeVar

from dacite import Config, from_dict

from shared.constants import TEMP_ID_PREFIX
from shared.json_utils import convert_keys

T = TypeVar("T")


class MessageType(StrEnum):
    TEXT = "text"


@dataclass
class AuthUser:
    """The signed-in account as reported by the identity provider."""

    uid: str
    email: str
    display_name: Optional[str] = None
    id_token: Optional[str] = None
    refresh_token: Optional[str] = None

    @property
    def handle(self) -> str:
        """Name shown to other users when no display name was set."""
        return self.display_name or self.email.split("@")[0]


@dataclass
class Profile:
    """Public profile mirrored into `users/{uid}` at signup."""

    id: str
    email: str
    username: str
    created_at: Optional[str] = None


@dataclass
class ListEntry:
    """A single entry of an account's list."""

    id: str
    text: str
    user_id: str
    user_email: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        """True while this is a local placeholder awaiting its server id."""
        return self.id.startswith(TEMP_ID_PREFIX)


@dataclass
class ContactLink:
    """Directed edge from `user_id` to the profile of `contact_id`."""

    id: str
    user_id: str
    contact_id: str
    username: str
    email: Optional[str] = None
    added_at: Optional[str] = None


@dataclass
class Message:
    """A direct message. `timestamp` is assigned by the server on write."""

    id: str
    text: str
    sender_id: str
    recipient_id: str
    conversation_id: str
    sender_email: Optional[str] = None
    sender_username: Optional[str] = None
    recipient_email: Optional[str] = None
    recipient_username: Optional[str] = None
    timestamp: Any = None
    read: bool = False
    type: MessageType = MessageType.TEXT


def from_document(data_class: Type[T], doc_id: str, data: dict) -> T:
    """Builds a dataclass from a camelCase Firestore document."""
    return from_dict(
        data_class=data_class,
        data={**convert_keys(data, "camel_to_snake"), "id": doc_id},
        config=Config(check_types=False, cast=[MessageType]),
    )


def to_document(obj: Any) -> dict:
    """
    Converts a dataclass into a camelCase document body without its id.

    Fields are copied shallowly so write sentinels such as SERVER_TIMESTAMP
    keep their identity.
    """
    doc = {}
    for field in fields(obj):
        if field.name == "id":
            continue
        value = getattr(obj, field.name)
        doc[field.name] = value.value if isinstance(value, Enum) else value
    return convert_keys(doc, "snake_to_camel")
