import asyncio
import logging
from unittest.mock import MagicMock

import pytest

from resume_scanner.utils.logging_config import (
    PerformanceMonitor,
    get_logger,
    log_api_call,
    setup_logging,
)


@pytest.fixture
def restore_logging():
    yield
    setup_logging(level="WARNING")


class TestSetupLogging:
    """Handlers configured for the resume_scanner tree"""

    def test_file_handler_when_log_dir_given(self, tmp_path, restore_logging):
        log_dir = tmp_path / "logs"

        setup_logging(level="DEBUG", log_dir=str(log_dir))
        get_logger("tests").info("written to file")

        files = list(log_dir.glob("resume_scanner_*.log"))
        assert len(files) == 1
        assert "written to file" in files[0].read_text()
        assert logging.getLogger("pdfminer").level == logging.ERROR

    def test_console_only_without_log_dir(self, restore_logging):
        setup_logging(level="INFO")

        root = logging.getLogger("resume_scanner")
        assert root.level == logging.INFO
        assert not root.propagate
        assert [type(h) for h in root.handlers] == [logging.StreamHandler]


class TestGetLogger:
    def test_names_are_prefixed_once(self):
        assert get_logger("api.scan").name == "resume_scanner.api.scan"
        assert get_logger("resume_scanner.services.pipeline").name == "resume_scanner.services.pipeline"
        assert get_logger("resume_scanner").name == "resume_scanner"


class TestPerformanceMonitor:
    """Batch timing and counts"""

    def test_counts_and_summary(self):
        logger = MagicMock()

        with PerformanceMonitor("batch", logger, threshold_ms=60000) as monitor:
            monitor.record(True)
            monitor.record(False)
            monitor.record(True)

        assert monitor.total == 3
        assert monitor.failed == 1
        assert monitor.elapsed_ms >= 0
        assert monitor.summary().startswith("batch: 3 item(s), 1 failed, ")
        logger.info.assert_called_once_with(monitor.summary())

    def test_slow_batch_warns(self):
        logger = MagicMock()

        with PerformanceMonitor("slow", logger, threshold_ms=-1):
            pass

        assert "slower than" in logger.warning.call_args.args[0]

    def test_aborted_batch_warns_and_reraises(self):
        logger = MagicMock()

        with pytest.raises(RuntimeError):
            with PerformanceMonitor("broken", logger) as monitor:
                monitor.record(True)
                raise RuntimeError("stop")

        message = logger.warning.call_args.args[0]
        assert message.startswith("broken: 1 item(s), 0 failed")
        assert "aborted" in message


class TestLogApiCall:
    @pytest.mark.asyncio
    async def test_result_passes_through(self):
        @log_api_call("echo")
        async def echo(value):
            await asyncio.sleep(0)
            return value

        assert await echo(5) == 5
        assert echo.__name__ == "echo"

    @pytest.mark.asyncio
    async def test_errors_are_reraised(self):
        @log_api_call("fail")
        async def fail():
            raise ValueError("bad input")

        with pytest.raises(ValueError):
            await fail()
