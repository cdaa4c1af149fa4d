"""
Balance Invariant Engine

계좌 잔액의 유일한 변경 경로.

불변식:
    balance == opening_balance
             + Σ income (Opening Balance 제외)
             - Σ expenditure
             + Σ transfers in
             - Σ transfers out

거래 생성 시 apply(txn), 삭제 시 apply(txn, reverse=True),
수정 시 이전 거래 역반영 후 새 거래 반영.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from core.constants import SystemCategories
from core.domain.models import Account
from core.domain.transactions import Transaction, Transfer
from core.errors import EntityNotFound, InsufficientBalance
from core.ledger.store import LedgerStore
from core.types import EntityKind

logger = logging.getLogger(__name__)


@dataclass
class DriftInfo:
    """잔액 불일치 정보"""

    account_id: str
    account_name: str
    stored: Decimal
    expected: Decimal

    @property
    def drift(self) -> Decimal:
        """저장 잔액 - 기대 잔액"""
        return self.stored - self.expected

    def to_dict(self) -> dict[str, Any]:
        return {
            "account_id": self.account_id,
            "account_name": self.account_name,
            "stored": str(self.stored),
            "expected": str(self.expected),
            "drift": str(self.drift),
        }


class BalanceEngine:
    """잔액 불변식 엔진

    Args:
        store: 조직 범위 LedgerStore
    """

    def __init__(self, store: LedgerStore):
        self.store = store

    async def require_account(self, account_id: str) -> Account:
        """계좌 조회 (없으면 EntityNotFound)"""
        account = await self.store.get_account(account_id)
        if account is None:
            raise EntityNotFound(EntityKind.ACCOUNT.value, account_id)
        return account

    async def apply_delta(self, account_id: str, signed_amount: Decimal) -> Decimal:
        """계좌 잔액 조정

        Args:
            account_id: 계좌 ID
            signed_amount: 부호 있는 변화량

        Returns:
            조정 후 잔액
        """
        account = await self.require_account(account_id)
        new_balance = account.balance + signed_amount
        await self.store.set_account_balance(account_id, new_balance)
        logger.debug(
            "잔액 조정",
            extra={
                "account_id": account_id,
                "delta": str(signed_amount),
                "balance": str(new_balance),
            },
        )
        return new_balance

    async def apply(self, txn: Transaction, reverse: bool = False) -> None:
        """거래의 잔액 효과 반영 (reverse=True면 역반영)

        이체의 두 다리는 같은 명령 트랜잭션 안에서 함께 커밋/롤백됨.
        """
        for account_id, delta in txn.balance_deltas():
            await self.apply_delta(account_id, -delta if reverse else delta)

    async def check_transfer(
        self,
        transfer: Transfer,
        replacing: Transfer | None = None,
    ) -> None:
        """이체 사전 검증 (쓰기 전)

        Args:
            transfer: 적용할 이체
            replacing: 수정 시 역반영될 기존 이체 (잔액 계산에 반영)

        Raises:
            EntityNotFound: 계좌 없음
            InsufficientBalance: 출금 계좌 잔액 부족
        """
        source = await self.require_account(transfer.from_account_id)
        await self.require_account(transfer.to_account_id)

        available = source.balance
        if replacing is not None:
            # 기존 이체 역반영 후 잔액 기준으로 판단
            if replacing.from_account_id == source.id:
                available += replacing.amount
            if replacing.to_account_id == source.id:
                available -= replacing.amount

        if available < transfer.amount:
            raise InsufficientBalance(
                f"Insufficient balance in account '{source.name}'",
                {
                    "account_id": source.id,
                    "available": str(available),
                    "requested": str(transfer.amount),
                },
            )

    async def expected_balance(self, account: Account) -> Decimal:
        """거래 이력으로부터 잔액 계산"""
        income = await self.store.sum_income(account.id, SystemCategories.OPENING_BALANCE)
        expenditure = await self.store.sum_expenditure(account.id)
        transfers_in = await self.store.sum_transfers_in(account.id)
        transfers_out = await self.store.sum_transfers_out(account.id)
        return account.opening_balance + income - expenditure + transfers_in - transfers_out

    async def recompute(self, account_id: str) -> Decimal:
        """이력 기반 잔액 재계산 및 기록

        Returns:
            재계산된 잔액
        """
        account = await self.require_account(account_id)
        expected = await self.expected_balance(account)
        if expected != account.balance:
            logger.info(
                f"잔액 재계산: {account.name} {account.balance} -> {expected}",
                extra={"account_id": account.id},
            )
            await self.store.set_account_balance(account.id, expected)
        return expected

    async def detect_drift(self) -> list[DriftInfo]:
        """저장 잔액과 이력 기반 잔액이 다른 계좌 목록"""
        drifts: list[DriftInfo] = []
        for account in await self.store.list_accounts():
            expected = await self.expected_balance(account)
            if account.balance != expected:
                drifts.append(
                    DriftInfo(
                        account_id=account.id,
                        account_name=account.name,
                        stored=account.balance,
                        expected=expected,
                    )
                )
        return drifts

    async def recompute_all(self) -> list[DriftInfo]:
        """전체 계좌 잔액 재계산

        Returns:
            보정된 계좌의 drift 목록 (보정 전 값 기준)
        """
        drifts = await self.detect_drift()
        for drift in drifts:
            await self.store.set_account_balance(drift.account_id, drift.expected)
            logger.warning(
                f"잔액 drift 보정: {drift.account_name} drift={drift.drift}",
                extra={"account_id": drift.account_id},
            )
        return drifts
