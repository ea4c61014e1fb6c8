"""
Identity provider abstraction for Firebase Authentication and an in-memory test implementation.
"""

from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass, field
from typing import Dict, Optional, Protocol

import requests

from shared.constants import MIN_PASSWORD_LENGTH
from shared.errors import AuthError
from shared.types import AuthUser

logger = logging.getLogger(__name__)

IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1"
REQUEST_TIMEOUT = 30  # seconds

# Identity Toolkit REST error strings -> Firebase client SDK codes.
REST_ERROR_CODES = {
    "EMAIL_EXISTS": "auth/email-already-in-use",
    "INVALID_EMAIL": "auth/invalid-email",
    "MISSING_EMAIL": "auth/invalid-email",
    "WEAK_PASSWORD": "auth/weak-password",
    "MISSING_PASSWORD": "auth/wrong-password",
    "EMAIL_NOT_FOUND": "auth/user-not-found",
    "INVALID_PASSWORD": "auth/wrong-password",
    "INVALID_LOGIN_CREDENTIALS": "auth/invalid-credential",
    "USER_DISABLED": "auth/user-disabled",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "auth/too-many-requests",
}

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class IdentityProvider(Protocol):
    """Operations the app needs from the hosted identity service."""

    def create_user(self, email: str, password: str) -> AuthUser:
        ...

    def sign_in(self, email: str, password: str) -> AuthUser:
        ...

    def sign_out(self, user: AuthUser) -> None:
        ...


def rest_error_code(message: str) -> str:
    """
    Maps an Identity Toolkit error message such as
    "WEAK_PASSWORD : Password should be at least 6 characters" to an auth code.
    """
    key = (message or "").split(":")[0].strip()
    return REST_ERROR_CODES.get(key, "auth/internal-error")


@dataclass
class FirebaseIdentityProvider:
    """Email/password accounts through the Identity Toolkit REST API."""

    api_key: str
    emulator_host: Optional[str] = None
    timeout: int = REQUEST_TIMEOUT

    def __post_init__(self):
        if not self.api_key:
            raise ValueError("A Firebase web API key is required")
        if self.emulator_host:
            self.base_url = (
                f"http://{self.emulator_host}/identitytoolkit.googleapis.com/v1"
            )
        else:
            self.base_url = IDENTITY_TOOLKIT_URL

    def _post(self, method: str, payload: dict) -> dict:
        url = f"{self.base_url}/accounts:{method}"
        try:
            response = requests.post(
                url,
                params={"key": self.api_key},
                json=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning("Identity request %s failed: %s", method, e)
            raise AuthError("auth/network-request-failed", str(e)) from e

        if response.status_code != 200:
            try:
                message = response.json().get("error", {}).get("message", "")
            except ValueError:
                message = response.text
            code = rest_error_code(message)
            logger.info("Identity request %s rejected: %s (%s)", method, message, code)
            raise AuthError(code, message)
        return response.json()

    def _to_user(self, body: dict) -> AuthUser:
        return AuthUser(
            uid=body["localId"],
            email=body.get("email", ""),
            display_name=body.get("displayName") or None,
            id_token=body.get("idToken"),
            refresh_token=body.get("refreshToken"),
        )

    def create_user(self, email: str, password: str) -> AuthUser:
        body = self._post(
            "signUp",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        return self._to_user(body)

    def sign_in(self, email: str, password: str) -> AuthUser:
        body = self._post(
            "signInWithPassword",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        return self._to_user(body)

    def sign_out(self, user: AuthUser) -> None:
        # ID tokens are bearer tokens; dropping them locally is the whole sign out.
        user.id_token = None
        user.refresh_token = None


@dataclass
class _Account:
    uid: str
    email: str
    password: str
    display_name: Optional[str] = None


@dataclass
class InMemoryIdentityProvider:
    """Test double for the identity service."""

    accounts: Dict[str, _Account] = field(default_factory=dict)

    def reset(self) -> None:
        self.accounts.clear()

    def create_user(self, email: str, password: str) -> AuthUser:
        key = email.strip().lower()
        if not _EMAIL_PATTERN.match(key):
            raise AuthError("auth/invalid-email")
        if key in self.accounts:
            raise AuthError("auth/email-already-in-use")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise AuthError("auth/weak-password")
        account = _Account(uid=uuid.uuid4().hex[:28], email=key, password=password)
        self.accounts[key] = account
        return self._to_user(account)

    def sign_in(self, email: str, password: str) -> AuthUser:
        key = email.strip().lower()
        if not _EMAIL_PATTERN.match(key):
            raise AuthError("auth/invalid-email")
        account = self.accounts.get(key)
        if account is None:
            raise AuthError("auth/user-not-found")
        if account.password != password:
            raise AuthError("auth/wrong-password")
        return self._to_user(account)

    def sign_out(self, user: AuthUser) -> None:
        user.id_token = None

    def _to_user(self, account: _Account) -> AuthUser:
        return AuthUser(
            uid=account.uid,
            email=account.email,
            display_name=account.display_name,
            id_token=uuid.uuid4().hex,
        )
