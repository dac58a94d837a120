import logging
import re
import shutil
import time
from pathlib import Path, PurePosixPath
from typing import BinaryIO

from keitruckhub.errors import StorageError

logger = logging.getLogger(__name__)

URL_PREFIX = "/uploads"

_UNSAFE_STEM = re.compile(r"[^A-Za-z0-9_-]")
_UNSAFE_SUFFIX = re.compile(r"[^A-Za-z0-9.]")


class AssetStore:
    """
    Directory of uploaded images, served read-only under ``/uploads``.

    Files are never removed: replacing a record's image or deleting the
    record leaves the old file behind.
    """

    def __init__(self, upload_dir: Path):
        self.upload_dir = Path(upload_dir)

    def ensure_dir(self) -> None:
        self.upload_dir.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def generate_name(original_filename: str) -> str:
        """``<stem>-<ns timestamp><suffix>`` built from the client's filename."""
        # Clients may send full paths, with either separator
        base = PurePosixPath(original_filename.replace("\\", "/")).name
        path = PurePosixPath(base)
        stem = _UNSAFE_STEM.sub("_", path.stem).strip("_-")[:100] or "image"
        suffix = _UNSAFE_SUFFIX.sub("", path.suffix)
        return f"{stem}-{time.time_ns()}{suffix}"

    def save(self, original_filename: str, stream: BinaryIO) -> str:
        """Write ``stream`` to the upload directory and return its URL path."""
        try:
            self.ensure_dir()
            while True:
                filename = self.generate_name(original_filename)
                try:
                    # "x" refuses to overwrite when the clock did not move between two uploads
                    buffer = (self.upload_dir / filename).open("xb")
                except FileExistsError:
                    continue
                break
            with buffer:
                shutil.copyfileobj(stream, buffer)
        except OSError as e:
            logger.error("Error saving upload %r: %s", original_filename, e)
            raise StorageError(str(e)) from e
        logger.info("Stored upload %s", filename)
        return f"{URL_PREFIX}/{filename}"
