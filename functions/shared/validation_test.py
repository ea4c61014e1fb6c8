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

import unittest

from shared.errors import ATTENTION_TITLE, ValidationError
from shared.validation import (
    validate_item_text,
    validate_login,
    validate_message_text,
    validate_signup,
)


class ValidateSignupTest(unittest.TestCase):
    def assertRejected(self, message, *args):
        with self.assertRaises(ValidationError) as ctx:
            validate_signup(*args)
        self.assertEqual(ctx.exception.message, message)

    def test_requires_every_field(self):
        self.assertRejected("Fill in all fields!", "a@b.com", "", "secret1", "secret1")
        self.assertRejected("Fill in all fields!", "", "alice", "secret1", "secret1")

    def test_passwords_must_match(self):
        self.assertRejected(
            "Passwords do not match!", "a@b.com", "alice", "secret1", "secret2"
        )

    def test_rejects_short_password(self):
        self.assertRejected(
            "Password must be at least 6 characters!",
            "a@b.com",
            "alice",
            "12345",
            "12345",
        )

    def test_rejects_short_username(self):
        self.assertRejected(
            "Username must be at least 3 characters!",
            "a@b.com",
            "al",
            "123456",
            "123456",
        )

    def test_password_checked_before_username(self):
        self.assertRejected(
            "Password must be at least 6 characters!", "a@b.com", "al", "123", "123"
        )

    def test_accepts_minimum_lengths(self):
        validate_signup("a@b.com", "ali", "123456", "123456")


class ValidateOtherFormsTest(unittest.TestCase):
    def test_login_requires_both_fields(self):
        with self.assertRaises(ValidationError):
            validate_login("a@b.com", "")
        validate_login("a@b.com", "x")

    def test_item_text_must_not_be_blank(self):
        with self.assertRaises(ValidationError) as ctx:
            validate_item_text("   ")
        self.assertEqual(ctx.exception.title, ATTENTION_TITLE)
        validate_item_text(" milk ")

    def test_message_text_is_trimmed_and_bounded(self):
        self.assertEqual(validate_message_text("  hi  "), "hi")
        with self.assertRaises(ValidationError):
            validate_message_text(" \n ")
        with self.assertRaises(ValidationError):
            validate_message_text("x" * 1001)
        self.assertEqual(len(validate_message_text("x" * 1000)), 1000)


if __name__ == "__main__":
    unittest.main()
