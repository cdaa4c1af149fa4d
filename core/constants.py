"""
하드코딩 상수 - 변경될 일이 거의 없는 고정값

중요: 경로는 반드시 pathlib.Path 사용 (Windows/Linux 크로스 플랫폼)
"""

from pathlib import Path


# 프로젝트 루트 (이 파일 기준 2단계 상위: core/constants.py → 프로젝트 루트)
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent


class Defaults:
    """기본값 상수"""

    ORGANIZATION_ID: str = "org-main"
    CURRENCY: str = "GHS"

    WEB_HOST: str = "127.0.0.1"
    WEB_PORT: int = 8000

    LOG_LEVEL: str = "INFO"
    COMMAND_TIMEOUT_SEC: float = 10.0

    # 대출/당좌차월 기본 카테고리 (수입, 부채 양쪽)
    LOAN_CATEGORY: str = "Loans/Overdrafts"


class Paths:
    """프로젝트 경로 상수 (pathlib 사용 - OS 독립적)"""

    # 디렉토리
    CONFIG_DIR: Path = PROJECT_ROOT / "config"
    DATA_DIR: Path = PROJECT_ROOT / "data"
    LOGS_DIR: Path = PROJECT_ROOT / "logs"
    LEDGER_LOGS_DIR: Path = LOGS_DIR / "ledger"
    WEB_LOGS_DIR: Path = LOGS_DIR / "web"

    # 설정 파일
    SETTINGS_FILE: Path = CONFIG_DIR / "settings.yaml"

    # DB 파일
    PROD_DB: Path = DATA_DIR / "ledger_prod.db"
    DEV_DB: Path = DATA_DIR / "ledger_dev.db"


class SystemCategories:
    """시스템 카테고리 (수정 불가, 삭제 시 종속 레코드 연쇄 삭제)

    프레임워크가 자동 생성하는 거래에만 사용되는 고정 카테고리.
    """

    OPENING_BALANCE: str = "Opening Balance"
    ASSET_DISPOSAL: str = "Asset Disposal"
    LIABILITIES: str = "Liabilities"

    # 유형별 시스템 카테고리 이름
    BY_TYPE: dict[str, tuple[str, ...]] = {
        "income": (OPENING_BALANCE, ASSET_DISPOSAL),
        "expense": (),
        "liability": (LIABILITIES,),
    }

    @classmethod
    def is_system(cls, name: str, category_type: str) -> bool:
        """해당 유형의 시스템 카테고리인지 확인"""
        return name in cls.BY_TYPE.get(category_type, ())


# 금액 비교 허용 오차 (Decimal 연산이므로 사실상 0, 표시 반올림 대비)
MONEY_TOLERANCE: str = "0.005"
