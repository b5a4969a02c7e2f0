"""
API 라우트 패키지

각 기능별 라우터 모듈:
- health: 헬스 체크
- wallets: 지갑 관리, 잔액 점검
- categories: 카테고리 관리
- transactions: 거래 기록/조회/삭제
- templates: 거래 템플릿
- loans: 대출/채권, 상환
- goals: 목표, 마일스톤
"""
