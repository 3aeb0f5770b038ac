"""Cloud Storage adapter for drop files."""

from typing import Optional

from geodrop.utils.logger import get_logger

logger = get_logger(__name__)


class FirebaseStorageService:
    """Deletes drop files from the app's Cloud Storage bucket.

    Uploads happen client-side; the backend only ever removes objects.
    """

    def __init__(self, bucket_name: Optional[str] = None):
        from firebase_admin import storage

        self._bucket = storage.bucket(bucket_name or None)

    def delete(self, path: str) -> None:
        """Delete one object.

        Raises:
            google.api_core.exceptions.NotFound: If the object does not exist
        """
        self._bucket.blob(path).delete()
        logger.debug(f"Deleted storage object: {path}")
