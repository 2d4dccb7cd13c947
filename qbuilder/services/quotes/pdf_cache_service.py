# qbuilder/services/quotes/pdf_cache_service.py
"""
On-disk cache of rendered quote PDFs.

Files are named ``quote_<user>_<quote>_<stamp>.pdf`` where ``stamp`` is the
quote's last modification time, so an edited quote never matches an old
file. Files older than ``PDF_CACHE_EXPIRY_HOURS`` are treated as misses and
removed by the hourly cleanup job.
"""
import os
import time
from datetime import datetime
from pathlib import Path
from typing import Optional

from qbuilder.core.config import PDF_CACHE_DIR, PDF_CACHE_EXPIRY_HOURS
from qbuilder.utils.logger import get_logger

logger = get_logger(__name__)


class PDFCache:
    def __init__(self, directory: str, expiry_hours: int):
        self.directory = Path(directory)
        self.max_age_seconds = expiry_hours * 3600

    def _path(self, user_id: int, quote_id: int, modified: datetime) -> Path:
        stamp = int(modified.timestamp() * 1000)
        return self.directory / f"quote_{user_id}_{quote_id}_{stamp}.pdf"

    def _expired(self, path: Path, now: float) -> bool:
        return now - path.stat().st_mtime > self.max_age_seconds

    def get(self, user_id: int, quote_id: int, modified: datetime) -> Optional[bytes]:
        path = self._path(user_id, quote_id, modified)
        if not path.is_file():
            return None
        if self._expired(path, time.time()):
            path.unlink(missing_ok=True)
            return None
        logger.debug("PDF cache hit", extra={"quote_id": quote_id})
        return path.read_bytes()

    def put(self, user_id: int, quote_id: int, modified: datetime, content: bytes) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        # stale renders of the same quote are useless once a newer one exists
        self.invalidate(user_id, quote_id)

        path = self._path(user_id, quote_id, modified)
        tmp = path.with_suffix(".tmp")
        tmp.write_bytes(content)
        os.replace(tmp, path)

    def invalidate(self, user_id: int, quote_id: int) -> int:
        if not self.directory.is_dir():
            return 0
        removed = 0
        for path in self.directory.glob(f"quote_{user_id}_{quote_id}_*.pdf"):
            path.unlink(missing_ok=True)
            removed += 1
        if removed:
            logger.debug("PDF cache invalidated", extra={"quote_id": quote_id, "removed": removed})
        return removed

    def cleanup_expired(self) -> int:
        if not self.directory.is_dir():
            return 0
        now = time.time()
        removed = 0
        for path in self.directory.glob("quote_*.pdf"):
            try:
                if self._expired(path, now):
                    path.unlink()
                    removed += 1
            except FileNotFoundError:
                continue
        return removed


pdf_cache = PDFCache(PDF_CACHE_DIR, PDF_CACHE_EXPIRY_HOURS)
