"""
설정 로더

settings.yaml 로드 및 DB/Web/로깅 설정 생성
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from core.constants import PROJECT_ROOT, Defaults, Paths

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class DatabaseConfig:
    """DB 설정

    불변 데이터 구조로 설정 변경 방지
    """

    path: Path
    busy_timeout_ms: int


@dataclass(frozen=True)
class WebConfig:
    """Web 서버 설정"""

    host: str
    port: int


@dataclass(frozen=True)
class AppConfig:
    """애플리케이션 전체 설정 (settings.yaml에서 로드)"""

    database: DatabaseConfig
    web: WebConfig
    log_level: str


class SettingsLoadError(Exception):
    """Settings 로드 실패 예외"""

    pass


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    """하위 섹션 추출 (없으면 빈 dict)"""
    value = data.get(name) or {}
    if not isinstance(value, dict):
        raise SettingsLoadError(f"settings.yaml의 '{name}' 섹션은 매핑이어야 합니다")
    return value


def load_settings(path: Path | None = None) -> AppConfig:
    """settings.yaml 파일 로드

    누락된 키는 Defaults 값으로 채움.

    Args:
        path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        AppConfig 인스턴스

    Raises:
        SettingsLoadError: 파일이 없거나 형식이 잘못된 경우
        ValueError: 유효하지 않은 로그 레벨 또는 포트인 경우
    """
    if path is None:
        path = Paths.SETTINGS_FILE

    if not path.exists():
        raise SettingsLoadError(f"settings.yaml 파일을 찾을 수 없습니다: {path}")

    try:
        content = path.read_text(encoding="utf-8")
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise SettingsLoadError(f"settings.yaml 파싱 실패: {e}") from e

    if data is None:
        raise SettingsLoadError("settings.yaml이 비어 있습니다")

    if not isinstance(data, dict):
        raise SettingsLoadError("settings.yaml 최상위는 매핑이어야 합니다")

    # database
    db_section = _section(data, "database")
    db_path = Path(db_section.get("path") or Paths.DEFAULT_DB)
    if not db_path.is_absolute():
        db_path = PROJECT_ROOT / db_path

    busy_timeout_ms = int(db_section.get("busy_timeout_ms", Defaults.BUSY_TIMEOUT_MS))

    # web
    web_section = _section(data, "web")
    host = str(web_section.get("host", Defaults.WEB_HOST))
    port = int(web_section.get("port", Defaults.WEB_PORT))
    if not 0 < port < 65536:
        raise ValueError(f"유효하지 않은 포트입니다: {port}")

    # logging
    log_section = _section(data, "logging")
    log_level = str(log_section.get("level", Defaults.LOG_LEVEL)).upper()
    if log_level not in VALID_LOG_LEVELS:
        raise ValueError(
            f"유효하지 않은 로그 레벨입니다: '{log_level}'. "
            f"유효한 값: {list(VALID_LOG_LEVELS)}"
        )

    return AppConfig(
        database=DatabaseConfig(path=db_path, busy_timeout_ms=busy_timeout_ms),
        web=WebConfig(host=host, port=port),
        log_level=log_level,
    )


class Settings:
    """애플리케이션 설정 (싱글턴 패턴)

    settings.yaml을 로드하고 관련 설정을 제공
    """

    _instance: "Settings | None" = None
    _config: AppConfig | None = None

    def __new__(cls, settings_path: Path | None = None) -> "Settings":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, settings_path: Path | None = None) -> None:
        if self._config is None:
            type(self)._config = load_settings(settings_path)

    @property
    def db_path(self) -> Path:
        """DB 파일 경로"""
        assert self._config is not None
        return self._config.database.path

    @property
    def busy_timeout_ms(self) -> int:
        """SQLite busy_timeout (밀리초)"""
        assert self._config is not None
        return self._config.database.busy_timeout_ms

    @property
    def web_host(self) -> str:
        """Web 바인드 호스트"""
        assert self._config is not None
        return self._config.web.host

    @property
    def web_port(self) -> int:
        """Web 포트"""
        assert self._config is not None
        return self._config.web.port

    @property
    def log_level(self) -> str:
        """콘솔 로그 레벨"""
        assert self._config is not None
        return self._config.log_level

    @classmethod
    def reset(cls) -> None:
        """싱글턴 인스턴스 초기화 (테스트용)"""
        cls._instance = None
        cls._config = None


def get_settings(settings_path: Path | None = None) -> Settings:
    """Settings 인스턴스 반환

    Args:
        settings_path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        Settings 싱글턴 인스턴스
    """
    return Settings(settings_path)
