from pathlib import Path

from pahana.core.config import settings
from pahana.core.logging import setup_logging


def test_each_front_end_writes_its_own_log_file():
    logger = setup_logging(frontend="console", console=False)
    try:
        logger.info("menu opened")
        logger.error("data file unreadable")
        logger.complete()

        console_logs = list(Path(settings.LOG_DIR).glob("console_*.log"))
        error_logs = list(Path(settings.LOG_DIR).glob("errors_*.log"))
        assert len(console_logs) == 1
        assert "| console | " in console_logs[0].read_text()
        assert "menu opened" in console_logs[0].read_text()
        assert any("data file unreadable" in path.read_text() for path in error_logs)
    finally:
        setup_logging()
