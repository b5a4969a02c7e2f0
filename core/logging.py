"""
로깅 설정

Web 프로세스 공통 로깅 설정.
- 콘솔: settings.yaml logging.level
- 파일: 같은 레벨, 자정마다 롤링 (logs/web/web.log)

원장/저장소 모듈은 logger.info(..., extra={"transaction_id": ...}) 형태로
식별자를 넘기며, LedgerContextFormatter가 이를 메시지 뒤에 key=value로 붙임.

사용법:
    from core.logging import setup_logging
    setup_logging("web")
"""

import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from core.config.loader import get_settings
from core.constants import Paths

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_BACKUP_DAYS = 7

# 레벨을 WARNING으로 낮출 외부 로거
QUIET_LOGGERS = ("aiosqlite", "asyncio", "multipart", "httpx", "httpcore")

# LogRecord 기본 속성 (이외의 속성은 extra로 전달된 컨텍스트)
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}


def record_context(record: logging.LogRecord) -> dict[str, object]:
    """extra로 전달된 컨텍스트 필드 추출 (키 정렬)"""
    return {
        key: record.__dict__[key]
        for key in sorted(record.__dict__)
        if key not in _RECORD_ATTRS and not key.startswith("_")
    }


class LedgerContextFormatter(logging.Formatter):
    """extra 컨텍스트를 메시지 뒤에 붙이는 포맷터

    예: ... | core.ledger.engine | Transaction posted: expense 30.00 [owner_id=u1 transaction_id=...]
    """

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = record_context(record)
        if not context:
            return line
        pairs = " ".join(f"{key}={value}" for key, value in context.items())
        return f"{line} [{pairs}]"


def setup_logging(
    process_name: str,
    level: int | str | None = None,
    log_dir: Path | None = None,
) -> logging.Logger:
    """루트 로거 초기화 (콘솔 + 일별 롤링 파일)

    Args:
        process_name: 로그 파일 이름 ("web" → web.log)
        level: 로그 레벨 (None이면 settings.yaml의 logging.level)
        log_dir: 로그 디렉토리 (None이면 logs/<process_name>)

    Returns:
        설정된 루트 Logger
    """
    if level is None:
        level = get_settings().log_level

    log_dir = log_dir or Paths.LOGS_DIR / process_name
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"{process_name}.log"

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    # 재호출 시 핸들러 중복 방지
    root_logger.handlers.clear()

    formatter = LedgerContextFormatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    file_handler = TimedRotatingFileHandler(
        filename=log_file,
        when="midnight",
        backupCount=LOG_BACKUP_DAYS,
        encoding="utf-8",
    )
    file_handler.suffix = "%Y-%m-%d"
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root_logger.info(
        f"로깅 초기화 완료: {process_name} ({logging.getLevelName(root_logger.level)}, {log_file})"
    )
    return root_logger
