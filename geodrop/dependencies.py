"""
Shared application dependencies.
Supports both Firebase mode and local development mode.
"""

import os
from typing import Any, Optional

from fastapi import Depends, Header, Request

from geodrop.config import Settings, get_settings
from geodrop.crud.drop import DropCRUD
from geodrop.crud.report import ReportCRUD
from geodrop.crud.user import UserCRUD
from geodrop.models.user import UserModel
from geodrop.services.admin import BlobStore, IdentityProvider, require_admin
from geodrop.services.firebase.auth_service import Identity
from geodrop.services.rate_limit import AttemptLimiter, attempt_key
from geodrop.utils.concurrency import run_blocking
from geodrop.utils.exceptions import AuthenticationError
from geodrop.utils.logger import get_logger

logger = get_logger(__name__)

# Global Instances
_db_client = None
_blob_store = None
_identity_provider = None
_unlock_limiter = None
_is_local_mode = None


def _check_local_mode() -> bool:
    """Determine if we should use local mode (no Firebase)."""
    global _is_local_mode
    if _is_local_mode is not None:
        return _is_local_mode

    settings = get_settings()
    cred_path = settings.firebase_credentials_path

    if not cred_path or not os.path.exists(cred_path):
        logger.info("Firebase credentials not found - running in LOCAL DEV mode")
        _is_local_mode = True
    else:
        _is_local_mode = False

    return _is_local_mode


def get_identity_provider(settings: Settings = Depends(get_settings)) -> IdentityProvider:
    """Get identity provider - Firebase Auth in prod, LocalAuthService in dev."""
    global _identity_provider
    if _identity_provider is not None:
        return _identity_provider

    if _check_local_mode():
        from geodrop.services.firebase.auth_service import LocalAuthService
        _identity_provider = LocalAuthService()
        logger.info("Using LocalAuthService identity provider")
    else:
        from geodrop.services.firebase.auth_service import FirebaseAuthService
        _identity_provider = FirebaseAuthService(
            settings.firebase_credentials_path,
            storage_bucket=settings.storage_bucket,
        )
        logger.info("Using Firebase Auth identity provider")

    return _identity_provider


def get_db_client(settings: Settings = Depends(get_settings)) -> Any:
    """Get database client - Firestore in prod, LocalStore in dev."""
    global _db_client
    if _db_client is not None:
        return _db_client

    if _check_local_mode():
        from geodrop.services.local_store import get_local_store
        _db_client = get_local_store(settings.local_data_dir or None)
        if settings.local_data_dir:
            logger.info(f"Using LocalStore database persisted to {settings.local_data_dir}")
        else:
            logger.info("Using LocalStore (in-memory) database")
    else:
        from firebase_admin import firestore
        # Initializes the default Firebase app on first use
        get_identity_provider(settings)
        _db_client = firestore.client()
        logger.info("Using Firestore database")

    return _db_client


def get_blob_store(settings: Settings = Depends(get_settings)) -> BlobStore:
    """Get file storage - Cloud Storage in prod, LocalBlobStore in dev."""
    global _blob_store
    if _blob_store is not None:
        return _blob_store

    if _check_local_mode():
        from geodrop.services.local_store import get_local_blob_store
        _blob_store = get_local_blob_store()
        logger.info("Using LocalBlobStore file storage")
    else:
        from geodrop.services.firebase.storage_service import FirebaseStorageService
        get_identity_provider(settings)
        _blob_store = FirebaseStorageService(settings.storage_bucket)
        logger.info("Using Cloud Storage bucket")

    return _blob_store


async def get_optional_identity(
    authorization: Optional[str] = Header(None),
    provider: IdentityProvider = Depends(get_identity_provider),
    settings: Settings = Depends(get_settings),
) -> Optional[Identity]:
    """Resolve the caller from a Bearer token, or None when absent or invalid."""
    if not authorization or not authorization.startswith("Bearer "):
        return None

    token = authorization[len("Bearer "):].strip()
    return await run_blocking(
        provider.verify_token,
        token,
        timeout=settings.external_call_timeout_seconds,
    )


async def get_current_identity(
    identity: Optional[Identity] = Depends(get_optional_identity),
) -> Identity:
    """Require an authenticated caller."""
    if identity is None:
        raise AuthenticationError(message="Invalid or missing authentication token")
    return identity


class RequestSession:
    """Stores and collaborators bound to one request."""

    def __init__(
        self,
        identity: Optional[Identity],
        db: Any,
        blobs: BlobStore,
        identity_provider: IdentityProvider,
        settings: Settings,
    ):
        timeout = settings.external_call_timeout_seconds
        self.identity = identity
        self.users = UserCRUD(db, timeout=timeout)
        self.drops = DropCRUD(db, timeout=timeout)
        self.reports = ReportCRUD(db, timeout=timeout)
        self.blobs = blobs
        self.identity_provider = identity_provider
        self.settings = settings
        self.admin: Optional[UserModel] = None

    @property
    def concurrency(self) -> int:
        return self.settings.fanout_concurrency

    @property
    def timeout(self) -> float:
        return self.settings.external_call_timeout_seconds


def get_session(
    identity: Optional[Identity] = Depends(get_optional_identity),
    db: Any = Depends(get_db_client),
    blobs: BlobStore = Depends(get_blob_store),
    identity_provider: IdentityProvider = Depends(get_identity_provider),
    settings: Settings = Depends(get_settings),
) -> RequestSession:
    return RequestSession(identity, db, blobs, identity_provider, settings)


async def get_admin_session(session: RequestSession = Depends(get_session)) -> RequestSession:
    """Session for admin-only routes; raises 401/404/403 from the admin gate."""
    check = await require_admin(session.identity, session.users)
    session.admin = check.raise_for_status()
    return session


def get_unlock_limiter(settings: Settings = Depends(get_settings)) -> AttemptLimiter:
    """Process-wide limiter for secret attempts."""
    global _unlock_limiter
    if _unlock_limiter is None:
        _unlock_limiter = AttemptLimiter(
            max_attempts=settings.unlock_max_attempts,
            window_seconds=settings.unlock_window_seconds,
        )
    return _unlock_limiter


async def enforce_unlock_limit(
    request: Request,
    identity: Optional[Identity] = Depends(get_optional_identity),
    limiter: AttemptLimiter = Depends(get_unlock_limiter),
) -> None:
    """Count a secret attempt for the caller; raises 429 once the window is used up."""
    limiter.hit(attempt_key(identity, request))
