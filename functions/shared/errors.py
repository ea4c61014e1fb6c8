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

# Alert titles shown alongside user-facing messages.
ERROR_TITLE = "Error"
ATTENTION_TITLE = "Attention"
WARNING_TITLE = "Warning"
INFO_TITLE = "Info"


class UserFacingError(Exception):
    """An error whose message is fixed text meant to be shown to the user."""

    def __init__(self, message: str, title: str = ERROR_TITLE):
        super().__init__(message)
        self.title = title
        self.message = message


class ValidationError(UserFacingError):
    """A form failed a client-side check before anything was written."""


class NotSignedInError(UserFacingError):
    def __init__(self, message: str = "User not authenticated!"):
        super().__init__(message)


class AuthError(Exception):
    """
    Raised by identity providers. `code` follows the Firebase client SDK
    convention, e.g. "auth/email-already-in-use".
    """

    def __init__(self, code: str, message: str | None = None):
        super().__init__(message or code)
        self.code = code
