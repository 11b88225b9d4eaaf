import logging
from datetime import datetime

import pytest

from zabbix_reconciler.core.logging_utils import LogSettings, get_logger, resource_logger, setup_logging


@pytest.fixture
def log_dir(monkeypatch, tmp_path, restore_logging):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("ZBX_LOG_LEVEL", raising=False)
    monkeypatch.delenv("ZBX_LOG_FILE_LEVEL", raising=False)
    monkeypatch.setenv("ZBX_LOG_DIR", str(tmp_path / "logs"))
    return tmp_path / "logs"


def test_file_and_console_handlers(log_dir):
    logfile = setup_logging(run="zbx", action="apply")
    assert logfile.parent == log_dir
    assert logfile.name.startswith("zbx-apply-")
    assert logfile.suffix == ".log"

    root = logging.getLogger()
    assert len(root.handlers) == 2
    get_logger("zabbix_reconciler.test").debug("written to the file only")
    for h in root.handlers:
        h.flush()
    assert "written to the file only" in logfile.read_text(encoding="utf-8")


def test_setup_twice_does_not_duplicate(log_dir):
    setup_logging(run="zbx", action="plan")
    setup_logging(run="zbx", action="plan")
    assert len(logging.getLogger().handlers) == 2


def test_console_only(log_dir):
    assert setup_logging() is None
    (handler,) = logging.getLogger().handlers
    assert handler.level == logging.INFO


def test_file_level_from_env(log_dir, monkeypatch):
    monkeypatch.setenv("ZBX_LOG_FILE_LEVEL", "warning")
    setup_logging(run="zbx", action="plan")
    levels = sorted(h.level for h in logging.getLogger().handlers)
    assert levels == [logging.INFO, logging.WARNING]


def test_resource_records_are_tagged(log_dir):
    logfile = setup_logging(run="zbx", action="apply")
    logger = get_logger("zabbix_reconciler.main")
    resource_logger(logger, "user_group", "ops").error("CREATE failed: boom")
    logger.info("run finished")
    for h in logging.getLogger().handlers:
        h.flush()
    lines = logfile.read_text(encoding="utf-8").splitlines()
    assert any("zabbix_reconciler.main [user_group/ops]" in line and "CREATE failed: boom" in line for line in lines)
    (finished,) = [line for line in lines if "run finished" in line]
    assert "zabbix_reconciler.main [test_logging_utils.py:" in finished


def test_settings_from_env(log_dir, monkeypatch):
    monkeypatch.setenv("ZBX_LOG_LEVEL", "info")
    settings = LogSettings.from_env()
    assert settings.directory == log_dir
    assert settings.root_level == logging.INFO
    assert settings.file_level == logging.INFO
    assert LogSettings.from_env("nonsense").root_level == logging.INFO
    name = settings.logfile("zbx", "plan", now=datetime(2026, 3, 9, 14)).name
    assert name == "zbx-plan-2026-03-14.log"
