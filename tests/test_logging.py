import logging

from pinball_rankings.core.logging import (
    ProgressLogger,
    get_logger,
    log_timing,
    setup_logging,
)


def test_get_logger_prefixes_package_name():
    assert get_logger("decay").name == "pinball_rankings.decay"
    assert get_logger("pinball_rankings.rating").name == "pinball_rankings.rating"


def test_setup_logging_writes_file(tmp_path):
    log_file = tmp_path / "run.log"
    logger = setup_logging(level="DEBUG", log_file=log_file, format_style="simple")
    get_logger("tests").debug("hello from tests")
    for handler in logger.handlers:
        handler.flush()
    assert "hello from tests" in log_file.read_text()
    assert logger.propagate is False


def test_log_timing_reports_completion(caplog):
    caplog.set_level(logging.INFO, logger="pinball_rankings")
    with log_timing(get_logger("tests"), "unit of work"):
        pass
    assert any("Completed unit of work" in m for m in caplog.messages)


def test_progress_logger_reports_final_count(caplog):
    caplog.set_level(logging.INFO, logger="pinball_rankings")
    with ProgressLogger(get_logger("tests"), "sweep", total=3) as progress:
        for i in range(3):
            progress.update(i + 1)
    assert any("sweep: 3/3 (100.0%)" in m for m in caplog.messages)
