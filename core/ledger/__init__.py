"""
재무 원장 (Ledger) 코어

계좌 잔액 불변식, 연결 거래(자산 처분/부채 상환), 대사, 카테고리 무결성,
예산 합계를 하나의 명령 서비스로 제공.

사용 예시:
```python
from core.ledger import LedgerService, init_ledger_schema

await init_schema(writer)
await init_ledger_schema(writer)

service = LedgerService(writer, SQLiteEntityStore(writer), reader=reader)
await service.ensure_system_categories()

account = await service.create_account("Main", "Bank", opening_balance="100")
await service.create_expenditure(account.id, "30", "2024-03-02", "Chairs", "Furniture")

drifts = await service.detect_drift()
```
"""

from core.ledger.balance import BalanceEngine, DriftInfo
from core.ledger.budget import BudgetRollup, parse_period
from core.ledger.categories import CategoryEnforcer
from core.ledger.linker import TransactionLinker
from core.ledger.locks import KeyedLock
from core.ledger.notifications import ContributionNotifier
from core.ledger.reconciliation import ReconciliationWorkflow
from core.ledger.schema import LEDGER_TABLES, init_ledger_schema
from core.ledger.service import LedgerService
from core.ledger.store import LedgerStore

__all__ = [
    # 핵심 클래스
    "LedgerService",
    "LedgerStore",
    "BalanceEngine",
    "TransactionLinker",
    "ReconciliationWorkflow",
    "CategoryEnforcer",
    "BudgetRollup",
    "KeyedLock",
    "ContributionNotifier",
    # 값 객체 / 헬퍼
    "DriftInfo",
    "parse_period",
    # 스키마
    "LEDGER_TABLES",
    "init_ledger_schema",
]
