"""Tests for logging configuration and timing helpers."""
import logging

import pytest

from towerops_reconciler.utils.logging_config import (
    get_log_file,
    get_log_level,
    timed,
    timed_section,
)


class TestEnvironment:
    """Tests for environment-driven settings."""

    def test_log_level(self, monkeypatch):
        monkeypatch.setenv("TOWEROPS_LOG_LEVEL", "debug")
        assert get_log_level() == logging.DEBUG

    def test_unknown_log_level_falls_back(self, monkeypatch):
        monkeypatch.setenv("TOWEROPS_LOG_LEVEL", "chatty")
        assert get_log_level() == logging.INFO

    def test_log_file(self, monkeypatch, tmp_path):
        monkeypatch.setenv("TOWEROPS_LOG_FILE", str(tmp_path / "x.log"))
        assert get_log_file() == tmp_path / "x.log"


class Api:
    @timed("read", target_arg=1)
    async def read(self, kind, resource_id):
        return resource_id

    @timed("delete")
    async def delete(self, kind, resource_id):
        raise RuntimeError("gone wrong")


class TestTimed:
    """Tests for the timing decorator and context manager."""

    @pytest.mark.asyncio
    async def test_success_logged(self, caplog):
        caplog.set_level(logging.INFO, logger="towerops.perf")

        assert await Api().read("site", "S1") == "S1"

        assert "read" in caplog.text
        assert "S1" in caplog.text
        assert "OK" in caplog.text

    @pytest.mark.asyncio
    async def test_failure_logged_and_raised(self, caplog):
        caplog.set_level(logging.INFO, logger="towerops.perf")

        with pytest.raises(RuntimeError):
            await Api().delete("site", "S1")

        assert "FAIL: gone wrong" in caplog.text

    @pytest.mark.asyncio
    async def test_timed_section(self, caplog):
        caplog.set_level(logging.INFO, logger="towerops.perf")

        async with timed_section("apply", target="device/D1", action="update"):
            pass

        assert "device/D1" in caplog.text
        assert "action=update" in caplog.text
