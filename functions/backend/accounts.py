"""
Login and signup screens.
"""

from __future__ import annotations

import logging

from backend.session import Session
from backend.store import DocumentStore, StoreError
from shared.constants import USERS_COLLECTION
from shared.errors import AuthError, UserFacingError
from shared.types import AuthUser, Profile, to_document
from shared.utils import now_iso
from shared.validation import validate_login, validate_signup

logger = logging.getLogger(__name__)

LOGIN_ERROR_MESSAGES = {
    "auth/invalid-email": "Invalid email!",
    "auth/user-not-found": "User not found!",
    "auth/wrong-password": "Wrong password!",
    "auth/invalid-credential": "Invalid email or password!",
}
LOGIN_FALLBACK_MESSAGE = "Could not sign in. Try again."

SIGNUP_ERROR_MESSAGES = {
    "auth/email-already-in-use": "This email is already in use!",
    "auth/invalid-email": "Invalid email!",
    "auth/weak-password": "Password is too weak!",
}
SIGNUP_FALLBACK_MESSAGE = "Could not create account. Try again."
SIGNUP_SUCCESS_MESSAGE = "Account created successfully!"


class LoginScreen:
    def __init__(self, session: Session):
        self.session = session
        self.submitting = False

    def submit(self, email: str, password: str) -> AuthUser:
        validate_login(email, password)
        self.submitting = True
        try:
            return self.session.sign_in(email, password)
        except AuthError as e:
            logger.info("Login rejected: %s", e.code)
            raise UserFacingError(
                LOGIN_ERROR_MESSAGES.get(e.code, LOGIN_FALLBACK_MESSAGE)
            ) from e
        finally:
            self.submitting = False


class SignupScreen:
    """
    Creates the identity account, then mirrors its public profile into
    `users/{uid}` so other accounts can find it by username.
    """

    def __init__(self, session: Session, store: DocumentStore):
        self.session = session
        self.store = store
        self.submitting = False

    def submit(
        self, email: str, username: str, password: str, confirm_password: str
    ) -> str:
        validate_signup(email, username, password, confirm_password)
        self.submitting = True
        try:
            user = self.session.create_account(email, password)
            profile = Profile(
                id=user.uid,
                email=user.email,
                username=username.lower(),
                created_at=now_iso(),
            )
            self.store.set(USERS_COLLECTION, user.uid, to_document(profile))
        except AuthError as e:
            logger.info("Signup rejected: %s", e.code)
            raise UserFacingError(
                SIGNUP_ERROR_MESSAGES.get(e.code, SIGNUP_FALLBACK_MESSAGE)
            ) from e
        except StoreError as e:
            logger.error("Could not write profile for %s: %s", email, e)
            raise UserFacingError(SIGNUP_FALLBACK_MESSAGE) from e
        finally:
            self.submitting = False
        return SIGNUP_SUCCESS_MESSAGE
