"""
WasteCollect Server - Report File Storage
Opaque store/retrieve of generated files under REPORTS_DIR
"""
import logging
import re
import uuid
from pathlib import Path
from typing import Optional

from app.core.config import settings
from app.core.exceptions import NotFoundError

logger = logging.getLogger(__name__)

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")


class FileStorage:
    """Files live under one base directory; paths handed out are relative to it"""

    def __init__(self, base_dir: Optional[str] = None):
        self.base_dir = Path(base_dir or settings.REPORTS_DIR).resolve()
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _resolve(self, path: str) -> Path:
        full = (self.base_dir / path).resolve()
        if self.base_dir not in full.parents:
            raise NotFoundError("File", path)
        return full

    def store(self, content: bytes, name: str) -> str:
        safe_name = _UNSAFE.sub("_", name).strip("._") or "file"
        relative = f"{uuid.uuid4().hex[:12]}_{safe_name}"
        target = self._resolve(relative)
        with open(target, "wb") as f:
            f.write(content)
        logger.info(f"Stored {len(content)} bytes at {relative}")
        return relative

    def retrieve(self, path: str) -> bytes:
        full = self._resolve(path)
        if not full.is_file():
            raise NotFoundError("File", path)
        with open(full, "rb") as f:
            return f.read()


def get_file_storage() -> FileStorage:
    return FileStorage()
