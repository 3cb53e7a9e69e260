"""
File Access Module.

Uploaded files are referenced by an UploadedFile handle. Reading and
releasing go through a FileAccess object so the pipeline never touches
storage directly.
"""

import asyncio
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from catalog_valuation.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)


@dataclass(frozen=True)
class UploadedFile:
    """
    Handle to one submitted file.

    Attributes:
        path: Location of the stored bytes
        original_name: Name the file was submitted under (drives dispatch)
        size: Size in bytes
        content_type: Declared MIME type, if known
    """
    path: Path
    original_name: str
    size: int
    content_type: Optional[str] = None

    @classmethod
    def from_path(cls, path: Union[str, Path], original_name: Optional[str] = None) -> 'UploadedFile':
        """Build a handle for a file already on disk."""
        path = Path(path)
        name = original_name or path.name
        content_type, _ = mimetypes.guess_type(name)
        return cls(
            path=path,
            original_name=name,
            size=path.stat().st_size,
            content_type=content_type,
        )


class LocalFileAccess:
    """
    Filesystem-backed file access.

    Attributes:
        delete_on_release: Whether release_file removes the stored file
            (True for temporary uploads, False for user-owned files)

    Example:
        >>> access = LocalFileAccess(delete_on_release=True)
        >>> data = await access.read_file(handle)
        >>> await access.release_file(handle)
    """

    def __init__(self, delete_on_release: bool = False) -> None:
        self.delete_on_release = delete_on_release

    async def read_file(self, file: UploadedFile) -> bytes:
        return await asyncio.to_thread(file.path.read_bytes)

    async def release_file(self, file: UploadedFile) -> None:
        """
        Release a file after processing.

        Cleanup failures are logged, never raised, so they cannot mask
        the outcome of processing.
        """
        if not self.delete_on_release:
            return

        try:
            await asyncio.to_thread(file.path.unlink, True)
            logger.debug(f"Removed temporary file: {file.path}")
        except OSError as e:
            logger.error(f"Could not remove temporary file {file.path}: {e}")
