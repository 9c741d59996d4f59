from __future__ import annotations

import hashlib
import logging
from pathlib import Path
from typing import Any

import pytest

from newsglobe.util import NOISY_LOGGERS, setup_logging, sha256_file, write_json


@pytest.fixture(autouse=True)
def _restore_logging() -> Any:
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    noisy = {name: logging.getLogger(name).level for name in NOISY_LOGGERS}
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    for name, saved in noisy.items():
        logging.getLogger(name).setLevel(saved)


def test_setup_logging_quiets_http_loggers(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "run.log"
    setup_logging(log_file)
    assert logging.getLogger().level == logging.INFO
    assert logging.getLogger("urllib3").level == logging.WARNING

    logging.getLogger("newsglobe.test").info("hello file")
    for handler in logging.getLogger().handlers:
        handler.flush()
    assert "hello file" in log_file.read_text(encoding="utf-8")


def test_setup_logging_verbose_releases_http_loggers() -> None:
    setup_logging(verbose=True)
    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("urllib3").level == logging.NOTSET


def test_write_json_keeps_field_order_and_unicode(tmp_path: Path) -> None:
    path = tmp_path / "out" / "rows.json"
    write_json(path, [{"title": "Zürich", "lat": 1.5, "id": "z"}])
    text = path.read_text(encoding="utf-8")
    assert "Zürich" in text
    assert text.index('"title"') < text.index('"lat"') < text.index('"id"')
    assert text.endswith("\n")


def test_sha256_file(tmp_path: Path) -> None:
    path = tmp_path / "blob.bin"
    path.write_bytes(b"newsglobe")
    assert sha256_file(path) == hashlib.sha256(b"newsglobe").hexdigest()
