import logging
import mimetypes
import re
import uuid
from pathlib import Path
from typing import Any
from urllib.parse import unquote
from urllib.parse import urlparse

from django.conf import settings
from PIL import Image


logger = logging.getLogger(__name__)

_EXT_NOISE = re.compile(r"[^a-z0-9.]")


class UploadRejected(Exception):
    def __init__(self, code: str, *, status: int = 400, details: dict[str, Any] | None = None):
        super().__init__(code)
        self.code = code
        self.status = status
        self.details = details or {}


class UploadStore:
    """Images on local disk, addressed by URLs under ``public_base``."""

    def __init__(self, upload_dir: str | Path, public_base: str):
        self.root = Path(upload_dir).resolve()
        base = str(public_base or "").strip().strip("/") or "uploads"
        self.public_base = f"/{base}"

    def _extension(self, original_name: str, content_type: str) -> str:
        ext = _EXT_NOISE.sub("", Path(original_name or "").suffix.lower())
        if ext and ext != ".":
            return ext
        return mimetypes.guess_extension(content_type) or ""

    def save_image(self, f: Any, *, max_bytes: int | None = None) -> str:
        limit = int(max_bytes or getattr(settings, "PAGES_UPLOAD_MAX_BYTES", 10 * 1024 * 1024))
        content_type = str(getattr(f, "content_type", "") or "").lower()
        if not content_type.startswith("image/"):
            raise UploadRejected("invalid_file_type")
        size = int(getattr(f, "size", 0) or 0)
        if size <= 0:
            raise UploadRejected("empty_file")
        if size > limit:
            raise UploadRejected("file_too_large", status=413, details={"maxBytes": limit})

        try:
            f.seek(0)
            probe = Image.open(f)
            probe.verify()
            f.seek(0)
        except Exception:
            raise UploadRejected("invalid_image")

        name = f"{uuid.uuid4()}{self._extension(str(getattr(f, 'name', '') or ''), content_type)}"
        self.root.mkdir(parents=True, exist_ok=True)
        with open(self.root / name, "wb") as out:
            for chunk in f.chunks():
                out.write(chunk)
        return f"{self.public_base}/{name}"

    def _contained(self, relative: str) -> Path | None:
        target = (self.root / relative).resolve()
        if target == self.root or not target.is_relative_to(self.root):
            return None
        return target

    def delete_url(self, url: str) -> bool:
        path = urlparse(str(url or "").strip()).path
        prefix = f"{self.public_base}/"
        if not path.startswith(prefix):
            return False
        target = self._contained(unquote(path[len(prefix) :]))
        if target is None:
            logger.warning("Rejected upload delete outside the upload directory: %s", path)
            raise UploadRejected("invalid_path")
        if not target.is_file():
            return False
        target.unlink()
        return True

    def discard(self, url: str | None) -> bool:
        if not url:
            return False
        try:
            return self.delete_url(url)
        except (UploadRejected, OSError):
            logger.warning("Could not remove uploaded file %s", url, exc_info=True)
            return False

    def resolve(self, relative: str) -> Path | None:
        target = self._contained(relative)
        if target is None or not target.is_file():
            return None
        return target


def default_store() -> UploadStore:
    return UploadStore(
        getattr(settings, "PAGES_UPLOAD_DIR"),
        str(getattr(settings, "PAGES_UPLOAD_PUBLIC_BASE", "/uploads") or "/uploads"),
    )
