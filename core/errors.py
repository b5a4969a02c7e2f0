"""
Ledger 에러 정의

에러 종류(kind)별 예외 클래스. 모든 예외는 안정적인 문자열 코드를 가짐.

- NotFoundError: 대상 없음 또는 소유자 불일치 (HTTP 404)
- InvalidStateError: 보관된 지갑, 카테고리 유형 불일치, 동일 지갑 이체 등 (HTTP 400)
- ConflictError: 이름 중복 (HTTP 409)
- TransientError: 원자적 커밋 실패 (경합/연결), 재시도 가능 (HTTP 500)
- UnsupportedError: 알 수 없는 거래 유형 (HTTP 500)
"""


class LedgerError(Exception):
    """Ledger 공통 에러

    Args:
        code: 에러 코드 (예: "WALLET_NOT_FOUND")
        message: 사람이 읽을 수 있는 설명
    """

    kind: str = "error"

    def __init__(self, code: str, message: str | None = None):
        self.code = code
        self.message = message or code
        super().__init__(f"[{code}] {self.message}")


class NotFoundError(LedgerError):
    """대상 없음 (또는 다른 사용자 소유)"""

    kind = "not_found"


class InvalidStateError(LedgerError):
    """현재 상태에서 허용되지 않는 요청"""

    kind = "invalid_state"


class ConflictError(LedgerError):
    """중복 이름 등 유일성 제약 위반"""

    kind = "conflict"


class TransientError(LedgerError):
    """일시적 저장소 실패

    작업 단위(unit of work)가 롤백됨. 호출자가 재시도 여부를 결정.
    """

    kind = "transient"


class UnsupportedError(LedgerError):
    """지원하지 않는 요청 (상위 검증을 통과했다면 도달 불가)"""

    kind = "unsupported"
