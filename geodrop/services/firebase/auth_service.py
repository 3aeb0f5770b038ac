"""Identity provider adapters: Firebase Auth and a local token store for dev mode."""

import hashlib
import os
import secrets
from typing import Dict, Optional

from pydantic import BaseModel

from geodrop.utils.logger import get_logger

logger = get_logger(__name__)


class Identity(BaseModel):
    """A verified caller, as reported by the identity provider."""

    uid: str
    email: str = ""
    display_name: str = ""


class FirebaseAuthService:
    """Service for Firebase Admin authentication and user management."""

    def __init__(self, credentials_path: Optional[str] = None, storage_bucket: Optional[str] = None):
        """Initialize Firebase Admin SDK.

        Args:
            credentials_path: Path to Firebase credentials JSON file.
                            If None, looks for FIREBASE_CREDENTIALS_PATH env var
                            or uses default application credentials.
            storage_bucket: Default Cloud Storage bucket for the app.
        """
        self._auth = None
        self._initialized = False
        self.initialize(credentials_path, storage_bucket)

    def initialize(self, credentials_path: Optional[str] = None, storage_bucket: Optional[str] = None) -> bool:
        """Initialize Firebase Admin SDK with credentials.

        Args:
            credentials_path: Path to Firebase credentials JSON file
            storage_bucket: Default Cloud Storage bucket

        Returns:
            True if initialization successful
        """
        import firebase_admin
        from firebase_admin import auth, credentials

        if credentials_path is None:
            credentials_path = os.getenv("FIREBASE_CREDENTIALS_PATH")

        options = {"storageBucket": storage_bucket} if storage_bucket else None

        if not firebase_admin._apps:
            if credentials_path and os.path.exists(credentials_path):
                cred = credentials.Certificate(credentials_path)
                firebase_admin.initialize_app(cred, options)
                logger.info(f"Firebase initialized with credentials: {credentials_path}")
            else:
                firebase_admin.initialize_app(options=options)
                logger.info("Firebase initialized with default credentials")

        self._auth = auth
        self._initialized = True
        return True

    def verify_token(self, token: str) -> Optional[Identity]:
        """Verify a Firebase ID token.

        Args:
            token: Firebase ID token

        Returns:
            Identity of the caller, or None if the token is invalid
        """
        if not token:
            return None

        try:
            decoded = self._auth.verify_id_token(token)
        except Exception as e:
            logger.warning(f"Token verification failed: {e}")
            return None

        logger.debug(f"Token verified for user: {decoded.get('uid')}")
        return Identity(
            uid=decoded["uid"],
            email=decoded.get("email", "") or "",
            display_name=decoded.get("name", "") or "",
        )

    def delete_user(self, uid: str) -> None:
        """Delete a Firebase Auth user.

        Args:
            uid: User ID to delete

        Raises:
            ValueError: If uid is empty
            firebase_admin.auth.UserNotFoundError: If no such user exists
        """
        if not uid:
            raise ValueError("uid cannot be empty")
        self._auth.delete_user(uid)
        logger.info(f"Auth user deleted: {uid}")

    def is_initialized(self) -> bool:
        return self._initialized


class LocalAuthService:
    """Opaque-token identity provider used when Firebase is not configured."""

    def __init__(self):
        self._users: Dict[str, Identity] = {}
        self._tokens: Dict[str, str] = {}  # token -> uid

    def register(self, email: str, display_name: str = "", uid: Optional[str] = None) -> Identity:
        """Create (or return) a local identity for ``email``."""
        uid = uid or hashlib.sha256(email.encode()).hexdigest()[:28]
        identity = self._users.get(uid) or Identity(uid=uid, email=email, display_name=display_name)
        self._users[uid] = identity
        return identity

    def issue_token(self, uid: str) -> str:
        if uid not in self._users:
            raise KeyError(f"Unknown local user: {uid}")
        token = secrets.token_hex(24)
        self._tokens[token] = uid
        return token

    def verify_token(self, token: str) -> Optional[Identity]:
        uid = self._tokens.get(token)
        if uid is None:
            return None
        return self._users.get(uid)

    def delete_user(self, uid: str) -> None:
        if uid not in self._users:
            raise KeyError(f"Unknown local user: {uid}")
        del self._users[uid]
        self._tokens = {t: u for t, u in self._tokens.items() if u != uid}
