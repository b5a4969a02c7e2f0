"""
하드코딩 상수 - 변경될 일이 거의 없는 고정값

중요: 경로는 반드시 pathlib.Path 사용 (Windows/Linux 크로스 플랫폼)
"""

from decimal import Decimal
from pathlib import Path


# 프로젝트 루트 (이 파일 기준 2단계 상위: core/constants.py → pocketledger/)
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent


class Defaults:
    """기본값 상수 (settings.yaml에 값이 없을 때 사용)"""

    WEB_HOST: str = "127.0.0.1"
    WEB_PORT: int = 8000

    LOG_LEVEL: str = "INFO"

    # SQLite 쓰기 잠금 대기 시간 (밀리초)
    BUSY_TIMEOUT_MS: int = 30000

    # 목록 조회 페이지 크기
    PAGE_LIMIT: int = 50
    PAGE_LIMIT_MAX: int = 100


class Paths:
    """프로젝트 경로 상수 (pathlib 사용 - OS 독립적)"""

    # 디렉토리
    CONFIG_DIR: Path = PROJECT_ROOT / "config"
    DATA_DIR: Path = PROJECT_ROOT / "data"
    LOGS_DIR: Path = PROJECT_ROOT / "logs"

    # 설정 파일
    SETTINGS_FILE: Path = CONFIG_DIR / "settings.yaml"

    # DB 파일
    DEFAULT_DB: Path = DATA_DIR / "pocketledger.db"


class MoneyLimits:
    """금액 관련 제한값"""

    # 소수점 이하 최대 자릿수 (센트 단위 저장)
    DECIMAL_PLACES: int = 2
    MINOR_UNIT: Decimal = Decimal("0.01")

    NOTE_MAX_LENGTH: int = 1000
    NAME_MAX_LENGTH: int = 100
