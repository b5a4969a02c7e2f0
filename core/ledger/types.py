"""
Ledger 타입 정의

지갑, 분개(Entry), 포스팅(Posting), 거래 의도(Intent) 등
Ledger 시스템에서 사용하는 데이터 구조.

Entry는 frozen dataclass이며 수정 경로가 없음.
정정은 새 거래로만 가능.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, ClassVar, Union

from core.types import EntryDirection, TransactionType, WalletKind
from core.utils.money import from_minor
from core.utils.timezone import parse_iso


@dataclass(frozen=True)
class Posting:
    """포스팅 (지갑, 방향, 금액)

    TransactionEngine이 계산하여 EntryPoster에 전달하는 단위.
    """

    wallet_id: str
    direction: EntryDirection
    amount: Decimal

    @property
    def delta(self) -> Decimal:
        """지갑 잔액 변화량 (in: +amount, out: -amount)"""
        if self.direction == EntryDirection.IN:
            return self.amount
        return -self.amount


@dataclass(frozen=True)
class Entry:
    """분개

    하나의 지갑에 대한 하나의 입출금 기록. 정확히 하나의 거래에 속함.
    """

    entry_id: str
    transaction_id: str
    wallet_id: str
    direction: EntryDirection
    amount: Decimal
    line_order: int = 0

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Entry":
        """DB 행에서 생성"""
        return cls(
            entry_id=row["entry_id"],
            transaction_id=row["transaction_id"],
            wallet_id=row["wallet_id"],
            direction=EntryDirection(row["direction"]),
            amount=from_minor(row["amount"]),
            line_order=row.get("line_order", 0),
        )

    def to_dict(self) -> dict[str, Any]:
        """딕셔너리 변환"""
        return {
            "entry_id": self.entry_id,
            "transaction_id": self.transaction_id,
            "wallet_id": self.wallet_id,
            "direction": self.direction.value,
            "amount": str(self.amount),
            "line_order": self.line_order,
        }


@dataclass
class Wallet:
    """지갑

    Attributes:
        wallet_id: 지갑 ID
        owner_id: 소유 사용자 ID
        name: 지갑 이름
        kind: 지갑 유형 (cash/bank/ewallet/credit)
        opening_balance: 개설 잔액
        current_balance: 현재 잔액 (opening + Σin - Σout)
        is_archived: 보관 여부
    """

    wallet_id: str
    owner_id: str
    name: str
    kind: WalletKind
    opening_balance: Decimal
    current_balance: Decimal
    is_archived: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Wallet":
        """DB 행에서 생성"""
        return cls(
            wallet_id=row["wallet_id"],
            owner_id=row["owner_id"],
            name=row["name"],
            kind=WalletKind(row["kind"]),
            opening_balance=from_minor(row["opening_balance"]),
            current_balance=from_minor(row["current_balance"]),
            is_archived=bool(row["is_archived"]),
            created_at=parse_iso(row.get("created_at")),
            updated_at=parse_iso(row.get("updated_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        """딕셔너리 변환"""
        return {
            "wallet_id": self.wallet_id,
            "owner_id": self.owner_id,
            "name": self.name,
            "kind": self.kind.value,
            "opening_balance": str(self.opening_balance),
            "current_balance": str(self.current_balance),
            "is_archived": self.is_archived,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


# =========================================================================
# 거래 의도 (Tagged Union)
# =========================================================================


@dataclass(frozen=True)
class IncomeIntent:
    """수입 거래 의도"""

    type: ClassVar[TransactionType] = TransactionType.INCOME

    wallet_id: str
    category_id: str
    amount: Decimal
    transaction_date: datetime
    note: str | None = None


@dataclass(frozen=True)
class ExpenseIntent:
    """지출 거래 의도"""

    type: ClassVar[TransactionType] = TransactionType.EXPENSE

    wallet_id: str
    category_id: str
    amount: Decimal
    transaction_date: datetime
    note: str | None = None


@dataclass(frozen=True)
class TransferIntent:
    """이체 거래 의도 (카테고리 없음, 수수료/환전 없음)"""

    type: ClassVar[TransactionType] = TransactionType.TRANSFER

    from_wallet_id: str
    to_wallet_id: str
    amount: Decimal
    transaction_date: datetime
    note: str | None = None


TransactionIntent = Union[IncomeIntent, ExpenseIntent, TransferIntent]


@dataclass
class LedgerTransaction:
    """거래 (헤더 + 분개 목록)"""

    transaction_id: str
    owner_id: str
    type: TransactionType
    transaction_date: datetime
    amount: Decimal
    category_id: str | None = None
    note: str | None = None
    entries: list[Entry] = field(default_factory=list)
    deleted_at: datetime | None = None
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any], entries: list[Entry] | None = None) -> "LedgerTransaction":
        """DB 행에서 생성"""
        return cls(
            transaction_id=row["transaction_id"],
            owner_id=row["owner_id"],
            type=TransactionType(row["type"]),
            transaction_date=parse_iso(row["transaction_date"]),  # type: ignore[arg-type]
            amount=from_minor(row["amount"]),
            category_id=row.get("category_id"),
            note=row.get("note"),
            entries=entries or [],
            deleted_at=parse_iso(row.get("deleted_at")),
            created_at=parse_iso(row.get("created_at")),
        )

    @property
    def is_deleted(self) -> bool:
        """소프트 삭제 여부"""
        return self.deleted_at is not None

    def to_dict(self) -> dict[str, Any]:
        """딕셔너리 변환"""
        return {
            "transaction_id": self.transaction_id,
            "owner_id": self.owner_id,
            "type": self.type.value,
            "transaction_date": self.transaction_date.isoformat(),
            "amount": str(self.amount),
            "category_id": self.category_id,
            "note": self.note,
            "entries": [e.to_dict() for e in self.entries],
            "deleted_at": self.deleted_at.isoformat() if self.deleted_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class PostResult:
    """거래 기록 결과

    Attributes:
        transaction: 커밋된 거래 (분개 포함)
        affected_wallets: 커밋 직후 잔액이 반영된 지갑 목록 (포스팅 순서)
    """

    transaction: LedgerTransaction
    affected_wallets: tuple[Wallet, ...]

    @property
    def transaction_id(self) -> str:
        return self.transaction.transaction_id

    @property
    def entries(self) -> list[Entry]:
        return self.transaction.entries
