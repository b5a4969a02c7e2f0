"""
core/logging.py 테스트
"""

import logging
from pathlib import Path

import pytest

from core.logging import LOG_FORMAT, LedgerContextFormatter, record_context, setup_logging


def _record(msg: str, **extra: object) -> logging.LogRecord:
    record = logging.LogRecord("core.ledger.engine", logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def restore_root_logger():
    """테스트 후 루트 로거 핸들러/레벨 복원"""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestLedgerContextFormatter:
    """extra 컨텍스트 포맷 테스트"""

    def test_appends_sorted_context(self) -> None:
        formatter = LedgerContextFormatter("%(message)s")
        record = _record("Transaction posted", transaction_id="tx-1", owner_id="user-1")

        assert formatter.format(record) == "Transaction posted [owner_id=user-1 transaction_id=tx-1]"

    def test_plain_message_without_context(self) -> None:
        formatter = LedgerContextFormatter(LOG_FORMAT)
        line = formatter.format(_record("hello"))

        assert line.endswith("| core.ledger.engine | hello")
        assert "[" not in line

    def test_record_context_ignores_standard_attributes(self) -> None:
        record = _record("msg", wallet_id="w-1")
        record.message = record.getMessage()

        assert record_context(record) == {"wallet_id": "w-1"}


class TestSetupLogging:
    """setup_logging 테스트"""

    def test_writes_to_rotating_file(self, tmp_path: Path, restore_root_logger) -> None:
        root = setup_logging("web", level="DEBUG", log_dir=tmp_path)

        logging.getLogger("core.ledger.store").info("soft deleted", extra={"transaction_id": "tx-9"})
        for handler in root.handlers:
            handler.flush()

        content = (tmp_path / "web.log").read_text(encoding="utf-8")
        assert "soft deleted [transaction_id=tx-9]" in content
        assert root.level == logging.DEBUG

    def test_repeated_setup_does_not_duplicate_handlers(
        self, tmp_path: Path, restore_root_logger
    ) -> None:
        setup_logging("web", level="INFO", log_dir=tmp_path)
        root = setup_logging("web", level="INFO", log_dir=tmp_path)

        assert len(root.handlers) == 2

    def test_quiet_loggers_raised_to_warning(self, tmp_path: Path, restore_root_logger) -> None:
        setup_logging("web", level="DEBUG", log_dir=tmp_path)

        assert logging.getLogger("aiosqlite").level == logging.WARNING
