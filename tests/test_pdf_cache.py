import os
import time
from datetime import datetime, timezone

from qbuilder.services.quotes.pdf_cache_service import PDFCache

MODIFIED = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


def test_put_then_get(tmp_path):
    cache = PDFCache(str(tmp_path / "pdfs"), expiry_hours=24)

    assert cache.get(1, 10, MODIFIED) is None
    cache.put(1, 10, MODIFIED, b"%PDF-1.4 test")

    assert cache.get(1, 10, MODIFIED) == b"%PDF-1.4 test"


def test_new_modification_time_misses_and_replaces(tmp_path):
    cache = PDFCache(str(tmp_path), expiry_hours=24)
    cache.put(1, 10, MODIFIED, b"old")

    later = MODIFIED.replace(hour=13)
    assert cache.get(1, 10, later) is None

    cache.put(1, 10, later, b"new")
    assert cache.get(1, 10, MODIFIED) is None
    assert len(list(tmp_path.glob("quote_1_10_*.pdf"))) == 1


def test_invalidate_only_touches_one_quote(tmp_path):
    cache = PDFCache(str(tmp_path), expiry_hours=24)
    cache.put(1, 10, MODIFIED, b"a")
    cache.put(1, 11, MODIFIED, b"b")

    assert cache.invalidate(1, 10) == 1
    assert cache.get(1, 11, MODIFIED) == b"b"


def test_invalidate_missing_directory(tmp_path):
    cache = PDFCache(str(tmp_path / "never-created"), expiry_hours=24)
    assert cache.invalidate(1, 1) == 0
    assert cache.cleanup_expired() == 0


def test_cleanup_removes_old_files(tmp_path):
    cache = PDFCache(str(tmp_path), expiry_hours=1)
    cache.put(1, 10, MODIFIED, b"old")
    cache.put(2, 20, MODIFIED, b"fresh")

    old = next(tmp_path.glob("quote_1_10_*.pdf"))
    two_hours_ago = time.time() - 7200
    os.utime(old, (two_hours_ago, two_hours_ago))

    assert cache.cleanup_expired() == 1
    assert cache.get(1, 10, MODIFIED) is None
    assert cache.get(2, 20, MODIFIED) == b"fresh"
