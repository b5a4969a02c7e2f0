"""
타입 정의 모듈

Enum 등 핵심 타입 정의
모든 Enum은 str을 상속하여 문자열 직렬화 가능
"""

from enum import Enum


class WalletKind(str, Enum):
    """지갑 유형"""

    CASH = "cash"
    BANK = "bank"
    EWALLET = "ewallet"
    CREDIT = "credit"  # 잔액 음수 허용 (관례상)


class TransactionType(str, Enum):
    """거래 유형"""

    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class EntryDirection(str, Enum):
    """분개 방향 (지갑 기준 입금/출금)"""

    IN = "in"
    OUT = "out"


class CategoryType(str, Enum):
    """카테고리 유형"""

    INCOME = "income"
    EXPENSE = "expense"


class LoanKind(str, Enum):
    """대출 유형"""

    YOU_OWE = "you_owe"  # 내가 빌린 돈
    OWED_TO_YOU = "owed_to_you"  # 내가 빌려준 돈


class LoanStatus(str, Enum):
    """대출 상태"""

    OPEN = "open"
    CLOSED = "closed"


class GoalPeriod(str, Enum):
    """목표 기간 유형"""

    YEARLY = "yearly"
    MONTHLY = "monthly"


class GoalTracking(str, Enum):
    """목표 추적 방식"""

    CHECKBOX = "checkbox"
    VALUE = "value"


class GoalStatus(str, Enum):
    """목표 상태"""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class GoalPriority(str, Enum):
    """목표 우선순위"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
