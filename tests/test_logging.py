import logging
import sys

from loguru import logger

from owner_intel.utils import logging_config
from owner_intel.utils.logging_utils import Timer, env_log_level, log_search


def test_env_log_level(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    assert env_log_level() == "DEBUG"

    monkeypatch.delenv("LOG_LEVEL")
    assert env_log_level("warning") == "WARNING"


def test_configure_logger_writes_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    try:
        logging_config.configure_logger(log_file="test.log", level="INFO")
        logger.info("resolver started")
    finally:
        logger.remove()
        logger.add(sys.stderr)

    text = (tmp_path / "logs" / "test.log").read_text()
    assert "resolver started" in text


def test_setup_default_logging_runs_once(monkeypatch):
    calls = []
    monkeypatch.setattr(logging_config, "_configured", False)
    monkeypatch.setattr(logging_config, "configure_logger", lambda: calls.append("configure"))
    monkeypatch.setattr(logging_config, "intercept_stdlib_logging", lambda: calls.append("intercept"))

    logging_config.setup_default_logging()
    logging_config.setup_default_logging()

    assert calls == ["configure", "intercept"]


def test_intercept_handler_forwards_stdlib_records(log_records):
    std = logging.getLogger("owner_intel.test")
    std.handlers = [logging_config.InterceptHandler()]
    std.propagate = False
    std.setLevel(logging.INFO)
    try:
        std.warning("upstream slow")
    finally:
        std.handlers = []

    assert any(r["message"] == "upstream slow" and r["level"].name == "WARNING" for r in log_records)


def test_log_search_binds_context(log_records):
    log_search(source="Tax Lots", query="3", results_raw=4, duration_ms=12.345, lots=20, parcel=None)

    (record,) = log_records
    assert record["message"] == "search Tax Lots: 4 rows"
    assert record["extra"] == {"source": "Tax Lots", "query": "3", "results_raw": 4, "duration_ms": 12.3, "lots": 20}


def test_timer_measures():
    with Timer() as timer:
        pass

    assert timer.elapsed_ms >= 0


def test_setup_hook_exported_from_package():
    import owner_intel

    assert owner_intel.setup_default_logging is logging_config.setup_default_logging
