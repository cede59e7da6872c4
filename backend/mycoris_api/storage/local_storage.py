import logging
import uuid
from pathlib import Path
from typing import Iterable
from fastapi import UploadFile
from mycoris_api.core.config import settings
from mycoris_api.core.errors import FileTooLargeError, MissingFileError, UnsupportedFileError

logger = logging.getLogger(__name__)


class LocalStorage:
    """
    Stores uploaded subscription documents on disk, one directory per user.

    Only the returned path is kept in the database; file content stays on
    disk under upload_dir/<user_id>/.
    """

    def __init__(self, upload_dir: str | Path, max_size: int, allowed_extensions: Iterable[str]):
        self.upload_dir = Path(upload_dir)
        # Upper bound in bytes for a single document
        self.max_size = max_size
        # Extensions are compared lower-cased, e.g. ".PDF" matches ".pdf"
        self.allowed_extensions = {ext.lower() for ext in allowed_extensions}

    async def save_document(self, file: UploadFile, user_id: int) -> str:
        """Validate and save an uploaded document, returning its path"""
        # A multipart part without a filename is not a file upload
        if file is None or not file.filename:
            raise MissingFileError()

        # Reject by extension before reading any content
        file_ext = Path(file.filename).suffix.lower()
        if file_ext not in self.allowed_extensions:
            raise UnsupportedFileError(
                f"Type de fichier non supporté. Autorisés : {', '.join(sorted(self.allowed_extensions))}"
            )

        # Read at most one byte past the limit: enough to detect an oversized
        # file without buffering all of it in memory
        content = await file.read(self.max_size + 1)
        if not content:
            raise MissingFileError()
        if len(content) > self.max_size:
            raise FileTooLargeError()

        # Generate unique filename so uploads never overwrite each other
        # The user's directory is created on first upload
        user_dir = self.upload_dir / str(user_id)
        user_dir.mkdir(parents=True, exist_ok=True)
        file_path = user_dir / f"{uuid.uuid4()}{file_ext}"

        with open(file_path, "wb") as f:
            f.write(content)

        logger.info(f"Stored document {file_path.name} ({len(content)} bytes) for user {user_id}")
        return str(file_path)

    def delete(self, file_path: str) -> bool:
        """Remove a stored document; returns False if it was already gone"""
        path = Path(file_path)
        if path.exists():
            path.unlink()
            return True
        return False


# Shared instance used by the get_storage dependency
storage = LocalStorage(
    settings.UPLOAD_DIR,
    max_size=settings.MAX_UPLOAD_SIZE,
    allowed_extensions=settings.get_allowed_extensions(),
)
