"""
core/config/loader.py 테스트

settings.yaml 로드, 기본값, 검증 테스트
"""

from pathlib import Path

import pytest

from core.config.loader import (
    AppConfig,
    Settings,
    SettingsLoadError,
    get_settings,
    load_settings,
)
from core.constants import PROJECT_ROOT, Defaults


@pytest.fixture
def settings_file(temp_dir: Path) -> Path:
    """테스트용 settings.yaml"""
    content = """
database:
  path: data/test.db
  busy_timeout_ms: 1000

web:
  host: 0.0.0.0
  port: 9000

logging:
  level: debug
"""
    path = temp_dir / "settings.yaml"
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def reset_settings():
    """싱글턴 초기화"""
    Settings.reset()
    yield
    Settings.reset()


class TestLoadSettings:
    """load_settings 테스트"""

    def test_load_full(self, settings_file: Path) -> None:
        config = load_settings(settings_file)

        assert isinstance(config, AppConfig)
        assert config.database.path == PROJECT_ROOT / "data" / "test.db"
        assert config.database.busy_timeout_ms == 1000
        assert config.web.host == "0.0.0.0"
        assert config.web.port == 9000
        assert config.log_level == "DEBUG"

    def test_defaults_for_missing_sections(self, temp_dir: Path) -> None:
        """누락된 섹션은 Defaults 값"""
        path = temp_dir / "minimal.yaml"
        path.write_text("logging:\n  level: INFO\n", encoding="utf-8")

        config = load_settings(path)

        assert config.web.host == Defaults.WEB_HOST
        assert config.web.port == Defaults.WEB_PORT
        assert config.database.busy_timeout_ms == Defaults.BUSY_TIMEOUT_MS

    def test_absolute_db_path_kept(self, temp_dir: Path) -> None:
        db_path = temp_dir / "abs.db"
        path = temp_dir / "abs.yaml"
        path.write_text(f"database:\n  path: {db_path.as_posix()}\n", encoding="utf-8")

        assert load_settings(path).database.path == db_path

    def test_file_not_found(self, temp_dir: Path) -> None:
        with pytest.raises(SettingsLoadError):
            load_settings(temp_dir / "missing.yaml")

    def test_empty_file(self, temp_dir: Path) -> None:
        path = temp_dir / "empty.yaml"
        path.write_text("", encoding="utf-8")

        with pytest.raises(SettingsLoadError):
            load_settings(path)

    def test_invalid_yaml(self, temp_dir: Path) -> None:
        path = temp_dir / "broken.yaml"
        path.write_text("database: [unclosed\n", encoding="utf-8")

        with pytest.raises(SettingsLoadError):
            load_settings(path)

    def test_section_must_be_mapping(self, temp_dir: Path) -> None:
        path = temp_dir / "bad_section.yaml"
        path.write_text("web: 8000\n", encoding="utf-8")

        with pytest.raises(SettingsLoadError):
            load_settings(path)

    def test_invalid_log_level(self, temp_dir: Path) -> None:
        path = temp_dir / "bad_level.yaml"
        path.write_text("logging:\n  level: LOUD\n", encoding="utf-8")

        with pytest.raises(ValueError):
            load_settings(path)

    def test_invalid_port(self, temp_dir: Path) -> None:
        path = temp_dir / "bad_port.yaml"
        path.write_text("web:\n  port: 70000\n", encoding="utf-8")

        with pytest.raises(ValueError):
            load_settings(path)


class TestSettings:
    """Settings 싱글턴 테스트"""

    def test_singleton(self, settings_file: Path) -> None:
        first = get_settings(settings_file)
        second = get_settings()

        assert first is second
        assert second.web_port == 9000

    def test_properties(self, settings_file: Path) -> None:
        settings = Settings(settings_file)

        assert settings.db_path.name == "test.db"
        assert settings.busy_timeout_ms == 1000
        assert settings.web_host == "0.0.0.0"
        assert settings.log_level == "DEBUG"

    def test_reset(self, settings_file: Path, temp_dir: Path) -> None:
        get_settings(settings_file)
        Settings.reset()

        other = temp_dir / "other.yaml"
        other.write_text("web:\n  port: 8123\n", encoding="utf-8")

        assert get_settings(other).web_port == 8123
