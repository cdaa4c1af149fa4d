"""
Ledger 스키마 초기화

명령 처리기/Web 시작 시 자동으로 재무 테이블 생성.
CREATE IF NOT EXISTS 패턴으로 안전하게 동작.

금액은 Decimal 문자열(TEXT), 날짜는 ISO 문자열(YYYY-MM-DD)로 저장.
모든 행은 organization_id를 가지며 저장소가 항상 이 값으로 필터링함.
"""

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


# 재무 테이블 목록 (check_ledger 스크립트 및 테스트에서 사용)
LEDGER_TABLES: tuple[str, ...] = (
    "finance_accounts",
    "finance_income_records",
    "finance_expenditure_records",
    "finance_transfers",
    "finance_liabilities",
    "finance_categories",
    "finance_budgets",
    "finance_reconciliation_records",
    "asset_disposals",
    "assets",
    "members",
)


async def init_ledger_schema(db: "SQLiteAdapter") -> None:
    """Ledger 스키마 초기화 (테이블 + 인덱스)

    이미 존재하는 경우 안전하게 건너뜀 (IF NOT EXISTS).

    Args:
        db: SQLiteAdapter 인스턴스
    """
    await _create_entity_tables(db)
    await _create_finance_tables(db)
    await _create_indexes(db)
    await db.commit()
    logger.info("Ledger 스키마 초기화 완료")


async def _create_entity_tables(db: "SQLiteAdapter") -> None:
    """비금융 엔티티 테이블 (자산, 회원) - 외부 참조 대상"""

    await db.execute("""
        CREATE TABLE IF NOT EXISTS assets (
            id               TEXT PRIMARY KEY,
            organization_id  TEXT NOT NULL,
            name             TEXT NOT NULL,
            status           TEXT NOT NULL DEFAULT 'Available',
            previous_status  TEXT,
            created_at       TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at       TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)

    await db.execute("""
        CREATE TABLE IF NOT EXISTS members (
            id               TEXT PRIMARY KEY,
            organization_id  TEXT NOT NULL,
            name             TEXT NOT NULL,
            phone            TEXT,
            created_at       TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)


async def _create_finance_tables(db: "SQLiteAdapter") -> None:
    """재무 테이블 생성"""

    # 계좌 (balance는 Balance Engine만 변경)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS finance_accounts (
            id               TEXT PRIMARY KEY,
            organization_id  TEXT NOT NULL,
            name             TEXT NOT NULL,
            account_type     TEXT NOT NULL,
            opening_balance  TEXT NOT NULL DEFAULT '0',
            balance          TEXT NOT NULL DEFAULT '0',
            currency         TEXT NOT NULL,
            description      TEXT,
            created_at       TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at       TEXT NOT NULL DEFAULT (datetime('now')),
            UNIQUE(organization_id, name)
        )
    """)

    # 부채 (balance/status는 조회 시 파생)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS finance_liabilities (
            id               TEXT PRIMARY KEY,
            organization_id  TEXT NOT NULL,
            date             TEXT NOT NULL,
            category         TEXT NOT NULL,
            creditor         TEXT NOT NULL,
            original_amount  TEXT NOT NULL,
            amount_paid      TEXT NOT NULL DEFAULT '0',
            description      TEXT,
            is_loan          INTEGER NOT NULL DEFAULT 0,
            linked_income_id TEXT,
            amount_received  TEXT,
            interest_rate    TEXT,
            loan_start_date  TEXT,
            loan_end_date    TEXT,
            created_at       TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at       TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)

    await db.execute("""
        CREATE TABLE IF NOT EXISTS finance_income_records (
            id                   TEXT PRIMARY KEY,
            organization_id      TEXT NOT NULL,
            date                 TEXT NOT NULL,
            source               TEXT NOT NULL,
            category             TEXT NOT NULL,
            amount               TEXT NOT NULL,
            account_id           TEXT NOT NULL REFERENCES finance_accounts(id),
            method               TEXT,
            reference            TEXT,
            member_id            TEXT,
            linked_asset_id      TEXT,
            linked_liability_id  TEXT,
            is_reconciled        INTEGER NOT NULL DEFAULT 0,
            reconciled_in        TEXT,
            created_at           TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at           TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)

    await db.execute("""
        CREATE TABLE IF NOT EXISTS finance_expenditure_records (
            id                   TEXT PRIMARY KEY,
            organization_id      TEXT NOT NULL,
            date                 TEXT NOT NULL,
            description          TEXT NOT NULL,
            category             TEXT NOT NULL,
            amount               TEXT NOT NULL,
            account_id           TEXT NOT NULL REFERENCES finance_accounts(id),
            method               TEXT,
            reference            TEXT,
            linked_liability_id  TEXT REFERENCES finance_liabilities(id),
            is_reconciled        INTEGER NOT NULL DEFAULT 0,
            reconciled_in        TEXT,
            created_at           TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at           TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)

    await db.execute("""
        CREATE TABLE IF NOT EXISTS finance_transfers (
            id                TEXT PRIMARY KEY,
            organization_id   TEXT NOT NULL,
            date              TEXT NOT NULL,
            from_account_id   TEXT NOT NULL REFERENCES finance_accounts(id),
            to_account_id     TEXT NOT NULL REFERENCES finance_accounts(id),
            amount            TEXT NOT NULL,
            description       TEXT,
            created_at        TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at        TEXT NOT NULL DEFAULT (datetime('now')),
            CHECK (from_account_id <> to_account_id)
        )
    """)

    await db.execute("""
        CREATE TABLE IF NOT EXISTS finance_categories (
            id               TEXT PRIMARY KEY,
            organization_id  TEXT NOT NULL,
            name             TEXT NOT NULL,
            category_type    TEXT NOT NULL,
            description      TEXT,
            track_members    INTEGER NOT NULL DEFAULT 0,
            created_at       TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at       TEXT NOT NULL DEFAULT (datetime('now')),
            UNIQUE(organization_id, category_type, name)
        )
    """)

    await db.execute("""
        CREATE TABLE IF NOT EXISTS finance_budgets (
            id               TEXT PRIMARY KEY,
            organization_id  TEXT NOT NULL,
            category         TEXT NOT NULL,
            period           TEXT NOT NULL,
            budgeted         TEXT NOT NULL,
            spent            TEXT NOT NULL DEFAULT '0',
            description      TEXT,
            created_at       TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at       TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)

    # 대사 기록 (항목 ID 목록은 JSON 배열)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS finance_reconciliation_records (
            id                          TEXT PRIMARY KEY,
            organization_id             TEXT NOT NULL,
            account_id                  TEXT NOT NULL REFERENCES finance_accounts(id),
            date                        TEXT NOT NULL,
            book_balance                TEXT NOT NULL,
            bank_balance                TEXT NOT NULL,
            reconciled_income_ids       TEXT NOT NULL DEFAULT '[]',
            reconciled_expenditure_ids  TEXT NOT NULL DEFAULT '[]',
            added_income_ids            TEXT NOT NULL DEFAULT '[]',
            added_expenditure_ids       TEXT NOT NULL DEFAULT '[]',
            notes                       TEXT,
            created_at                  TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at                  TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)

    # 자산 처분 (생성된 수입 1건과 1:1)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS asset_disposals (
            id                TEXT PRIMARY KEY,
            organization_id   TEXT NOT NULL,
            asset_id          TEXT NOT NULL REFERENCES assets(id),
            asset_name        TEXT NOT NULL,
            date              TEXT NOT NULL,
            account_id        TEXT NOT NULL REFERENCES finance_accounts(id),
            amount            TEXT NOT NULL,
            linked_income_id  TEXT NOT NULL UNIQUE
                              REFERENCES finance_income_records(id),
            description       TEXT,
            created_at        TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)


async def _create_indexes(db: "SQLiteAdapter") -> None:
    """조회용 인덱스 생성"""
    statements = [
        "CREATE INDEX IF NOT EXISTS ix_income_account ON finance_income_records(organization_id, account_id)",
        "CREATE INDEX IF NOT EXISTS ix_income_category ON finance_income_records(organization_id, category)",
        "CREATE INDEX IF NOT EXISTS ix_expenditure_account ON finance_expenditure_records(organization_id, account_id)",
        "CREATE INDEX IF NOT EXISTS ix_expenditure_category_date ON finance_expenditure_records(organization_id, category, date)",
        "CREATE INDEX IF NOT EXISTS ix_expenditure_liability ON finance_expenditure_records(linked_liability_id)",
        "CREATE INDEX IF NOT EXISTS ix_transfers_from ON finance_transfers(organization_id, from_account_id)",
        "CREATE INDEX IF NOT EXISTS ix_transfers_to ON finance_transfers(organization_id, to_account_id)",
        "CREATE INDEX IF NOT EXISTS ix_liabilities_category ON finance_liabilities(organization_id, category)",
        "CREATE INDEX IF NOT EXISTS ix_liabilities_loan ON finance_liabilities(organization_id, is_loan)",
        "CREATE INDEX IF NOT EXISTS ix_income_liability ON finance_income_records(linked_liability_id)",
        "CREATE INDEX IF NOT EXISTS ix_budgets_category ON finance_budgets(organization_id, category)",
        "CREATE INDEX IF NOT EXISTS ix_reconciliation_account ON finance_reconciliation_records(organization_id, account_id, date)",
        "CREATE INDEX IF NOT EXISTS ix_disposals_asset ON asset_disposals(organization_id, asset_id)",
    ]
    for sql in statements:
        await db.execute(sql)
