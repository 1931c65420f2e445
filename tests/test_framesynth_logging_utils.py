from __future__ import annotations

import logging
from pathlib import Path

import pytest

from framesynth.logging_utils import (
    configure_logging,
    debug_enabled,
    get_log_dir,
    get_log_path,
    log_exception,
)


def test_log_path_uses_env_override(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FRAMESYNTH_LOG_DIR", str(tmp_path))
    assert get_log_dir() == tmp_path
    assert get_log_path() == tmp_path / "framesynth.log"


def test_default_log_dir(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("FRAMESYNTH_LOG_DIR", raising=False)
    assert get_log_dir() == Path.home() / ".cache" / "framesynth" / "logs"


def test_debug_flag(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("FRAMESYNTH_DEBUG", raising=False)
    assert not debug_enabled()
    monkeypatch.setenv("FRAMESYNTH_DEBUG", "1")
    assert debug_enabled()


def test_log_exception_appends_traceback(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FRAMESYNTH_LOG_DIR", str(tmp_path / "logs"))
    try:
        raise ValueError("bad render")
    except ValueError as exc:
        path = log_exception("render", exc)

    assert path == tmp_path / "logs" / "framesynth.log"
    text = path.read_text()
    assert "render failed: ValueError: bad render" in text
    assert "Traceback" in text


def test_configure_logging_adds_file_handler(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("FRAMESYNTH_LOG_DIR", str(tmp_path))
    logger = logging.getLogger("framesynth")
    try:
        configure_logging(force=True)
        file_handlers = [h for h in logger.handlers if isinstance(h, logging.FileHandler)]
        assert len(file_handlers) == 1
        assert Path(file_handlers[0].baseFilename) == tmp_path / "framesynth.log"
        assert logger.propagate
    finally:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
