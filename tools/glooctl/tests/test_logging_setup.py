"""Tests for choosing the log directory and installing handlers."""

from __future__ import annotations

import logging
import os

import pytest

from glooctl import logging_setup
from glooctl.config import ConfigError


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in saved_handlers:
            handler.close()
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)


class TestDefaultLogDir:

    def test_source_checkout_logs_beside_sources(self, tmp_path):
        (tmp_path / "src" / "glooctl").mkdir(parents=True)
        assert logging_setup.default_log_dir(str(tmp_path)) == str(tmp_path / "logs")

    def test_installed_package_logs_under_home(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path / "home"))
        assert logging_setup.default_log_dir(str(tmp_path / "site")) == os.path.join(
            str(tmp_path / "home"), ".glooctl", "logs"
        )


@pytest.mark.usefixtures("restore_root_logger")
class TestSetupLogging:

    def test_explicit_dir_wins_over_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv(logging_setup.ENV_LOG_DIR, str(tmp_path / "env"))
        log_path = logging_setup.setup_logging(log_dir=str(tmp_path / "flag"))
        assert os.path.dirname(log_path) == str(tmp_path / "flag")
        assert os.path.isfile(log_path)

    def test_env_dir(self, tmp_path, monkeypatch):
        monkeypatch.setenv(logging_setup.ENV_LOG_DIR, str(tmp_path / "env"))
        log_path = logging_setup.setup_logging()
        assert os.path.dirname(log_path) == str(tmp_path / "env")

    def test_console_level_follows_verbose(self, tmp_path):
        logging_setup.setup_logging(verbose=True, log_dir=str(tmp_path))
        levels = sorted(h.level for h in logging.getLogger().handlers)
        assert levels == [logging.DEBUG, logging.DEBUG]

        logging_setup.setup_logging(verbose=False, log_dir=str(tmp_path))
        levels = sorted(h.level for h in logging.getLogger().handlers)
        assert levels == [logging.DEBUG, logging.WARNING]

    def test_file_receives_debug_records(self, tmp_path):
        log_path = logging_setup.setup_logging(log_dir=str(tmp_path))
        logging.getLogger("glooctl.test").debug("route resolved")
        for handler in logging.getLogger().handlers:
            handler.flush()
        with open(log_path, encoding="utf-8") as f:
            assert "route resolved" in f.read()

    def test_unusable_dir_is_config_error(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("")
        with pytest.raises(ConfigError, match="Unable to write log file"):
            logging_setup.setup_logging(log_dir=str(blocker / "logs"))
