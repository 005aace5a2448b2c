"""
Blob store collaborator.

The core only needs upload(local file) -> MediaHandle and delete(handle).
LocalBlobStore keeps blobs in a directory; production deployments plug in
their own BlobStore.
"""

import logging
import shutil
from abc import ABC, abstractmethod
from pathlib import Path

from config import BLOB_DIR
from errors import UpstreamError, ValidationError
from models import MediaHandle, new_id

logger = logging.getLogger(__name__)


class BlobStore(ABC):
    """Abstract blob store."""

    @abstractmethod
    def upload(self, local_path: Path) -> MediaHandle:
        """Store a local file. Raises UpstreamError on failure."""
        pass

    @abstractmethod
    def delete(self, handle: str) -> None:
        """Remove a stored blob. Unknown handles are ignored."""
        pass


class LocalBlobStore(BlobStore):
    """Copies uploads into a directory and serves them under base_url."""

    def __init__(self, root: Path = None, base_url: str = "/blobs", remove_source: bool = True):
        self.root = Path(root) if root else BLOB_DIR
        self.base_url = base_url.rstrip("/")
        self.remove_source = remove_source

    def upload(self, local_path: Path) -> MediaHandle:
        local_path = Path(local_path)
        if not local_path.is_file():
            raise ValidationError("File is required")

        handle = f"{new_id()}{local_path.suffix.lower()}"
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(local_path, self.root / handle)
        except OSError as e:
            raise UpstreamError("Blob upload failed") from e

        # Uploaded copies replace the temporary local file
        if self.remove_source:
            local_path.unlink(missing_ok=True)

        logger.info("Uploaded blob %s", handle)
        return MediaHandle(url=f"{self.base_url}/{handle}", handle=handle)

    def delete(self, handle: str) -> None:
        if not handle:
            return
        try:
            (self.root / Path(handle).name).unlink(missing_ok=True)
        except OSError as e:
            raise UpstreamError("Blob delete failed") from e
        logger.info("Deleted blob %s", handle)

    def exists(self, handle: str) -> bool:
        return (self.root / Path(handle).name).is_file()
