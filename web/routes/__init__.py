"""
API 라우트 패키지

각 기능별 라우터 모듈:
- health: 헬스 체크
- accounts: 계좌, 잔액 drift/재계산
- transactions: 수입, 지출, 이체, 거래 삭제
- liabilities: 부채, 부채 상환, 자산 처분
- reconciliations: 계좌 대사
- categories: 카테고리, 예산
- events: 이벤트 이력, Command 실행
"""
