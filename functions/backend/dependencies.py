"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import logging

import firebase_admin
from firebase_admin import credentials, firestore

from backend.config import get_settings
from backend.identity import (
    FirebaseIdentityProvider,
    IdentityProvider,
    InMemoryIdentityProvider,
)
from backend.session import Session
from backend.shell import AppShell
from backend.store import DocumentStore, FirestoreDocumentStore, InMemoryDocumentStore

logger = logging.getLogger(__name__)

_store: DocumentStore | None = None
_identity: IdentityProvider | None = None
_shell: AppShell | None = None


def _use_in_memory() -> bool:
    settings = get_settings()
    return settings.use_in_memory_backends or not settings.firebase_configured


def _firestore_client():
    settings = get_settings()
    try:
        app = firebase_admin.get_app()
    except ValueError:
        cred = (
            credentials.Certificate(settings.google_application_credentials)
            if settings.google_application_credentials
            else credentials.ApplicationDefault()
        )
        app = firebase_admin.initialize_app(
            cred, {"projectId": settings.firebase_project_id}
        )
    return firestore.client(app)


def get_store() -> DocumentStore:
    """
    Return a singleton document store so listeners outlive single requests.
    """
    global _store
    if _store:
        return _store

    if _use_in_memory():
        logger.info("Using in-memory document store")
        _store = InMemoryDocumentStore()
    else:
        _store = FirestoreDocumentStore(_firestore_client())
    return _store


def get_identity_provider() -> IdentityProvider:
    global _identity
    if _identity:
        return _identity

    settings = get_settings()
    if _use_in_memory():
        logger.info("Using in-memory identity provider")
        _identity = InMemoryIdentityProvider()
    else:
        _identity = FirebaseIdentityProvider(
            api_key=settings.firebase_api_key,
            emulator_host=settings.firebase_auth_emulator_host,
            timeout=settings.identity_request_timeout,
        )
    return _identity


def get_shell() -> AppShell:
    """
    Return the single app shell: one signed-in device session per process.
    """
    global _shell
    if _shell:
        return _shell
    _shell = AppShell(get_store(), Session(get_identity_provider()))
    return _shell
