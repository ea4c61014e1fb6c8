import unittest
from unittest.mock import patch

from backend.accounts import LoginScreen, SignupScreen
from backend.identity import InMemoryIdentityProvider
from backend.session import Session
from backend.store import InMemoryDocumentStore, StoreError
from shared.errors import AuthError, UserFacingError, ValidationError


class SignupScreenTests(unittest.TestCase):
    def setUp(self):
        self.identity = InMemoryIdentityProvider()
        self.session = Session(self.identity)
        self.store = InMemoryDocumentStore()
        self.screen = SignupScreen(self.session, self.store)

    def test_creates_account_and_profile(self):
        message = self.screen.submit(
            "alice@example.com", "AliceW", "secret1", "secret1"
        )

        self.assertEqual(message, "Account created successfully!")
        user = self.session.current_user
        self.assertIsNotNone(user)
        profile = self.store.get("users", user.uid)
        self.assertEqual(profile.data["username"], "alicew")
        self.assertEqual(profile.data["email"], "alice@example.com")
        self.assertTrue(profile.data["createdAt"].endswith("Z"))
        self.assertFalse(self.screen.submitting)

    def test_profile_uses_account_email(self):
        self.screen.submit("Alice@Example.com", "alice", "secret1", "secret1")
        user = self.session.current_user
        profile = self.store.get("users", user.uid)
        self.assertEqual(profile.data["email"], "alice@example.com")
        self.assertEqual(profile.data["email"], user.email)

    def test_rejects_short_password_before_calling_provider(self):
        with patch.object(self.identity, "create_user") as create_user:
            with self.assertRaises(ValidationError):
                self.screen.submit("alice@example.com", "alice", "12345", "12345")
            create_user.assert_not_called()

    def test_rejects_short_username(self):
        with self.assertRaises(ValidationError) as ctx:
            self.screen.submit("alice@example.com", "al", "secret1", "secret1")
        self.assertEqual(ctx.exception.message, "Username must be at least 3 characters!")
        self.assertEqual(self.store.collections.get("users", {}), {})

    def test_email_in_use(self):
        self.identity.create_user("alice@example.com", "secret1")
        with self.assertRaises(UserFacingError) as ctx:
            self.screen.submit("alice@example.com", "alice", "secret1", "secret1")
        self.assertEqual(ctx.exception.message, "This email is already in use!")

    def test_unmapped_provider_error_is_generic(self):
        with patch.object(
            self.identity, "create_user", side_effect=AuthError("auth/too-many-requests")
        ):
            with self.assertRaises(UserFacingError) as ctx:
                self.screen.submit("alice@example.com", "alice", "secret1", "secret1")
        self.assertEqual(ctx.exception.message, "Could not create account. Try again.")

    def test_profile_write_failure_is_generic(self):
        with patch.object(self.store, "set", side_effect=StoreError("denied")):
            with self.assertRaises(UserFacingError) as ctx:
                self.screen.submit("alice@example.com", "alice", "secret1", "secret1")
        self.assertEqual(ctx.exception.message, "Could not create account. Try again.")


class LoginScreenTests(unittest.TestCase):
    def setUp(self):
        self.identity = InMemoryIdentityProvider()
        self.identity.create_user("alice@example.com", "secret1")
        self.session = Session(self.identity)
        self.screen = LoginScreen(self.session)

    def test_signs_in(self):
        user = self.screen.submit("alice@example.com", "secret1")
        self.assertIs(self.session.current_user, user)

    def test_requires_both_fields(self):
        with self.assertRaises(ValidationError) as ctx:
            self.screen.submit("", "secret1")
        self.assertEqual(ctx.exception.message, "Fill in all fields!")

    def test_maps_provider_errors(self):
        cases = {
            ("nobody@example.com", "secret1"): "User not found!",
            ("alice@example.com", "wrong!"): "Wrong password!",
            ("not-an-email", "secret1"): "Invalid email!",
        }
        for (email, password), expected in cases.items():
            with self.subTest(email=email):
                with self.assertRaises(UserFacingError) as ctx:
                    self.screen.submit(email, password)
                self.assertEqual(ctx.exception.message, expected)
        self.assertIsNone(self.session.current_user)

    def test_invalid_credential_and_fallback(self):
        for code, expected in [
            ("auth/invalid-credential", "Invalid email or password!"),
            ("auth/network-request-failed", "Could not sign in. Try again."),
        ]:
            with self.subTest(code=code):
                with patch.object(self.identity, "sign_in", side_effect=AuthError(code)):
                    with self.assertRaises(UserFacingError) as ctx:
                        self.screen.submit("alice@example.com", "secret1")
                self.assertEqual(ctx.exception.message, expected)
                self.assertFalse(self.screen.submitting)


if __name__ == "__main__":
    unittest.main()
