"""
어댑터 인터페이스 정의

Protocol 기반으로 정의하여 의존성 주입 및 Mock 교체 가능.
모든 구현체는 이 Protocol을 준수해야 함.
"""

from typing import Any, Protocol, runtime_checkable

from core.domain.models import Asset


@runtime_checkable
class IEntityStore(Protocol):
    """비금융 엔티티 저장소 인터페이스

    Ledger는 자산 상태/이전 상태와 회원 존재 여부만 읽고,
    처분 명령에서 자산 status/previous_status만 씀.
    명령 트랜잭션과 같은 연결을 사용해야 원자성이 보장됨.
    """

    async def get_asset(self, organization_id: str, asset_id: str) -> Asset | None:
        """자산 조회

        Args:
            organization_id: 조직 ID
            asset_id: 자산 ID

        Returns:
            Asset 또는 None (없음)
        """
        ...

    async def set_asset_status(
        self,
        organization_id: str,
        asset_id: str,
        status: str,
        previous_status: str | None,
    ) -> None:
        """자산 상태 변경 (처분/처분 취소 전용)"""
        ...

    async def member_exists(self, organization_id: str, member_id: str) -> bool:
        """회원 존재 여부"""
        ...


@runtime_checkable
class INotifier(Protocol):
    """알림 서비스 인터페이스

    ContributionRecorded 등 Ledger 이벤트를 외부 서비스로 전달.
    전달 방식(템플릿, SMS 등)은 구현체 책임.
    """

    async def send(
        self,
        message: str,
        level: str = "INFO",
        extra: dict[str, Any] | None = None,
    ) -> bool:
        """알림 전송

        Args:
            message: 알림 메시지
            level: 알림 레벨 (INFO, WARNING, ERROR, CRITICAL)
            extra: 추가 데이터 (선택)

        Returns:
            전송 성공 여부
        """
        ...

    async def send_contribution(self, contribution: dict[str, Any]) -> bool:
        """회원 헌금 기록 알림 전송

        Args:
            contribution: member_id, amount, category, date, currency

        Returns:
            전송 성공 여부
        """
        ...
