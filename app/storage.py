"""
Local blob store for uploaded PDFs.
"""

import logging
import uuid
from pathlib import Path
from typing import Optional

from app.config import Config

logger = logging.getLogger(__name__)


class BlobStore:
    """Stores opaque files under uuid-generated names."""

    def __init__(self, root: Optional[Path] = None):
        self._root = root

    @property
    def root(self) -> Path:
        # Read lazily so UPLOAD_DIR can be changed after import
        return self._root or Config.UPLOAD_DIR

    def save(self, content: bytes, suffix: str = "") -> Path:
        """Write ``content`` to a new file and return its path."""
        self.root.mkdir(parents=True, exist_ok=True)
        path = self.root / f"{uuid.uuid4()}{suffix}"
        path.write_bytes(content)
        logger.debug("Stored %d bytes at %s", len(content), path)
        return path

    def resolve(self, file_path: str) -> Path:
        path = Path(file_path)
        return path if path.is_absolute() else Path.cwd() / path

    def delete(self, file_path: str) -> bool:
        """Remove a stored file. Returns False if it was already gone."""
        path = self.resolve(file_path)
        if not path.exists():
            return False
        path.unlink()
        return True


# Singleton
blob_store = BlobStore()
