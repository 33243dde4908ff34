"""Filesystem-backed object storage.

Containers are directories under a root directory and blobs are files inside
them. Writes go to a temporary file first and are moved into place, so a
reader never sees a partially written blob.
"""

import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import List, Union

logger = logging.getLogger(__name__)


class LocalBlobStore:
    """Object store keeping blobs as files below a root directory.

    Attributes:
        root (Path): Directory holding one subdirectory per container
        lock (threading.Lock): Serializes writes and deletes
    """

    def __init__(self, root: Union[str, Path]) -> None:
        self.root = Path(root)
        self.lock = threading.Lock()
        self._closed = False

    def check_access(self) -> None:
        """Make sure the root exists and is writable.

        Raises:
            OSError: If the root cannot be created or written
        """
        self.root.mkdir(parents=True, exist_ok=True)
        if not os.access(self.root, os.W_OK):
            raise PermissionError(f"storage root {self.root} is not writable")

    def ensure_container(self, container: str) -> bool:
        """Create a container if it does not exist yet. Never removes anything.

        Args:
            container: Container name

        Returns:
            True if the container was created, False if it already existed
        """
        path = self._container_path(container)
        if path.is_dir():
            return False
        path.mkdir(parents=True, exist_ok=True)
        logger.info(f"Created storage container '{container}' at {path}")
        return True

    def put(self, container: str, name: str, data: bytes) -> None:
        """Store a blob, replacing any previous content."""
        path = self._blob_path(container, name)
        with self.lock:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=".upload-")
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
                os.replace(tmp_path, path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        logger.debug(f"Stored blob {container}/{name} ({len(data)} bytes)")

    def get(self, container: str, name: str) -> bytes:
        """Read a blob.

        Raises:
            FileNotFoundError: If the blob does not exist
        """
        return self._blob_path(container, name).read_bytes()

    def exists(self, container: str, name: str) -> bool:
        return self._blob_path(container, name).is_file()

    def delete(self, container: str, name: str) -> bool:
        """Delete a blob.

        Returns:
            True if a blob was deleted, False if there was nothing to delete
        """
        path = self._blob_path(container, name)
        with self.lock:
            try:
                path.unlink()
            except FileNotFoundError:
                return False
        return True

    def list_blobs(self, container: str, prefix: str = "") -> List[str]:
        """List blob names in a container, sorted, optionally filtered by prefix."""
        base = self._container_path(container)
        if not base.is_dir():
            return []
        names = [
            path.relative_to(base).as_posix()
            for path in base.rglob("*")
            if path.is_file() and not path.name.startswith(".upload-")
        ]
        return sorted(name for name in names if name.startswith(prefix))

    def close(self) -> None:
        self._closed = True

    def _container_path(self, container: str) -> Path:
        if self._closed:
            raise RuntimeError("blob store is closed")
        if not container or "/" in container or "\\" in container or container in (".", ".."):
            raise ValueError(f"invalid container name: {container!r}")
        return self.root / container

    def _blob_path(self, container: str, name: str) -> Path:
        base = self._container_path(container).resolve()
        path = (base / name).resolve()
        if not name or base not in path.parents:
            raise ValueError(f"invalid blob name: {name!r}")
        return path
