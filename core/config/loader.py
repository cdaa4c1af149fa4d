"""
설정 로더

settings.yaml 로드 및 실행 설정 생성
"""

from dataclasses import dataclass
from pathlib import Path

import yaml

from core.constants import Defaults, Paths
from core.types import RunMode, Scope


@dataclass(frozen=True)
class LedgerSettings:
    """애플리케이션 설정 (settings.yaml에서 로드)

    불변 데이터 구조로 설정 변경 방지
    """

    mode: RunMode
    organization_id: str
    currency: str
    command_timeout_sec: float
    webhook_url: str
    web_host: str
    web_port: int

    @property
    def scope(self) -> Scope:
        """기본 조직 범위"""
        return Scope.create(self.organization_id, self.currency)

    @property
    def notifications_enabled(self) -> bool:
        """Webhook 알림 활성화 여부"""
        return bool(self.webhook_url)


class SettingsLoadError(Exception):
    """Settings 로드 실패 예외"""

    pass


def load_settings(path: Path | None = None) -> LedgerSettings:
    """settings.yaml 파일 로드

    Args:
        path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        LedgerSettings 인스턴스

    Raises:
        SettingsLoadError: 파일이 없거나 형식이 잘못된 경우
        ValueError: 유효하지 않은 mode 또는 timeout인 경우
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

    # mode 검증
    mode_str = data.get("mode")
    if mode_str is None:
        raise SettingsLoadError("settings.yaml에 'mode' 필드가 없습니다")

    try:
        mode = RunMode(mode_str)
    except ValueError as e:
        valid_modes = [m.value for m in RunMode]
        raise ValueError(
            f"유효하지 않은 mode입니다: '{mode_str}'. "
            f"유효한 값: {valid_modes}"
        ) from e

    org_config = data.get("organization")
    if not org_config or not org_config.get("id"):
        raise SettingsLoadError(
            "settings.yaml의 organization 섹션에 'id'가 없습니다"
        )

    ledger_config = data.get("ledger") or {}
    timeout = float(
        ledger_config.get("command_timeout_sec", Defaults.COMMAND_TIMEOUT_SEC)
    )
    if timeout <= 0:
        raise ValueError(f"command_timeout_sec는 0보다 커야 합니다: {timeout}")

    notifications_config = data.get("notifications") or {}
    web_config = data.get("web") or {}

    return LedgerSettings(
        mode=mode,
        organization_id=str(org_config["id"]),
        currency=str(org_config.get("currency", Defaults.CURRENCY)),
        command_timeout_sec=timeout,
        webhook_url=notifications_config.get("webhook_url") or "",
        web_host=web_config.get("host", Defaults.WEB_HOST),
        web_port=int(web_config.get("port", Defaults.WEB_PORT)),
    )


def get_db_path(settings: LedgerSettings) -> Path:
    """모드에 따른 DB 경로 반환

    Args:
        settings: LedgerSettings 인스턴스

    Returns:
        DB 파일 경로 (Path 타입)
    """
    if settings.mode == RunMode.PRODUCTION:
        return Paths.PROD_DB
    return Paths.DEV_DB


class Settings:
    """애플리케이션 설정 (싱글턴 패턴)

    settings.yaml을 로드하고 관련 설정을 제공
    """

    _instance: "Settings | None" = None
    _settings: LedgerSettings | None = None

    def __new__(cls, settings_path: Path | None = None) -> "Settings":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, settings_path: Path | None = None) -> None:
        if self._settings is None:
            self._settings = load_settings(settings_path)

    @property
    def values(self) -> LedgerSettings:
        """로드된 설정 값"""
        assert self._settings is not None
        return self._settings

    @property
    def mode(self) -> RunMode:
        """현재 실행 모드"""
        return self.values.mode

    @property
    def scope(self) -> Scope:
        """기본 조직 범위"""
        return self.values.scope

    @property
    def command_timeout_sec(self) -> float:
        """명령 실행 제한 시간 (초)"""
        return self.values.command_timeout_sec

    @property
    def webhook_url(self) -> str:
        """알림 Webhook URL (빈 문자열이면 비활성)"""
        return self.values.webhook_url

    @property
    def db_path(self) -> Path:
        """현재 모드의 DB 경로"""
        return get_db_path(self.values)

    @classmethod
    def reset(cls) -> None:
        """싱글턴 인스턴스 초기화 (테스트용)"""
        cls._instance = None
        cls._settings = None


def get_settings(settings_path: Path | None = None) -> Settings:
    """Settings 인스턴스 반환

    Args:
        settings_path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        Settings 싱글턴 인스턴스
    """
    return Settings(settings_path)
