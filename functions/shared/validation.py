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

from shared.constants import (
    MAX_MESSAGE_LENGTH,
    MIN_PASSWORD_LENGTH,
    MIN_USERNAME_LENGTH,
)
from shared.errors import ATTENTION_TITLE, ValidationError


def validate_login(email: str, password: str) -> None:
    if not email or not password:
        raise ValidationError("Fill in all fields!")


def validate_signup(
    email: str, username: str, password: str, confirm_password: str
) -> None:
    """Checks run in the order the signup form reports them."""
    if not email or not password or not confirm_password or not username:
        raise ValidationError("Fill in all fields!")
    if password != confirm_password:
        raise ValidationError("Passwords do not match!")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters!"
        )
    if len(username) < MIN_USERNAME_LENGTH:
        raise ValidationError(
            f"Username must be at least {MIN_USERNAME_LENGTH} characters!"
        )


def validate_item_text(text: str) -> None:
    if not text or not text.strip():
        raise ValidationError("Type something!", title=ATTENTION_TITLE)


def validate_message_text(text: str) -> str:
    """Returns the trimmed message body."""
    body = (text or "").strip()
    if not body:
        raise ValidationError("Type a message!", title=ATTENTION_TITLE)
    if len(body) > MAX_MESSAGE_LENGTH:
        raise ValidationError(
            f"Messages are limited to {MAX_MESSAGE_LENGTH} characters!",
            title=ATTENTION_TITLE,
        )
    return body
