"""
LoanStore - 대출/채권 저장소

원금과 잔여 금액(running total)만 관리.
이자/상환 스케줄 계산 없음. 대출 기록은 원장 분개를 생성하지 않음.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import uuid4

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.constants import MoneyLimits
from core.errors import InvalidStateError, NotFoundError
from core.ledger.store import clamp_limit
from core.ledger.wallet_ledger import WalletLedger
from core.types import LoanKind, LoanStatus
from core.utils.money import from_minor, to_minor, validate_amount
from core.utils.timezone import now_utc, parse_iso, to_iso

logger = logging.getLogger(__name__)


@dataclass
class Loan:
    """대출/채권"""

    loan_id: str
    owner_id: str
    kind: LoanKind
    counterparty_name: str
    principal: Decimal
    outstanding: Decimal
    wallet_id: str
    start_date: datetime
    due_date: datetime | None = None
    note: str | None = None
    status: LoanStatus = LoanStatus.OPEN
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Loan":
        """DB 행에서 생성"""
        return cls(
            loan_id=row["loan_id"],
            owner_id=row["owner_id"],
            kind=LoanKind(row["kind"]),
            counterparty_name=row["counterparty_name"],
            principal=from_minor(row["principal"]),
            outstanding=from_minor(row["outstanding"]),
            wallet_id=row["wallet_id"],
            start_date=parse_iso(row["start_date"]),  # type: ignore[arg-type]
            due_date=parse_iso(row.get("due_date")),
            note=row.get("note"),
            status=LoanStatus(row["status"]),
            created_at=parse_iso(row.get("created_at")),
            updated_at=parse_iso(row.get("updated_at")),
        )

    @property
    def paid(self) -> Decimal:
        """상환 누계"""
        return self.principal - self.outstanding

    def to_dict(self) -> dict[str, Any]:
        """딕셔너리 변환"""
        return {
            "loan_id": self.loan_id,
            "owner_id": self.owner_id,
            "kind": self.kind.value,
            "counterparty_name": self.counterparty_name,
            "principal": str(self.principal),
            "outstanding": str(self.outstanding),
            "paid": str(self.paid),
            "wallet_id": self.wallet_id,
            "start_date": self.start_date.isoformat(),
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "note": self.note,
            "status": self.status.value,
        }


@dataclass
class LoanPayment:
    """상환 기록"""

    payment_id: str
    loan_id: str
    wallet_id: str
    payment_date: datetime
    amount: Decimal
    note: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "LoanPayment":
        """DB 행에서 생성"""
        return cls(
            payment_id=row["payment_id"],
            loan_id=row["loan_id"],
            wallet_id=row["wallet_id"],
            payment_date=parse_iso(row["payment_date"]),  # type: ignore[arg-type]
            amount=from_minor(row["amount"]),
            note=row.get("note"),
        )

    def to_dict(self) -> dict[str, Any]:
        """딕셔너리 변환"""
        return {
            "payment_id": self.payment_id,
            "loan_id": self.loan_id,
            "wallet_id": self.wallet_id,
            "payment_date": self.payment_date.isoformat(),
            "amount": str(self.amount),
            "note": self.note,
        }


def _as_datetime(value: datetime | date | None) -> str | None:
    if isinstance(value, date) and not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    return to_iso(value)


def _check_note(note: str | None) -> None:
    if note is not None and len(note) > MoneyLimits.NOTE_MAX_LENGTH:
        raise InvalidStateError("NOTE_TOO_LONG", "메모는 1000자 이하여야 합니다")


class LoanStore:
    """대출/채권 저장소

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db
        self.wallet_ledger = WalletLedger(db)

    async def create_loan(
        self,
        owner_id: str,
        kind: LoanKind | str,
        counterparty_name: str,
        principal: Decimal | int | float | str,
        wallet_id: str,
        start_date: datetime | date,
        due_date: datetime | date | None = None,
        note: str | None = None,
    ) -> Loan:
        """대출/채권 생성 (outstanding = principal)

        Raises:
            NotFoundError: WALLET_NOT_FOUND
            InvalidStateError: INVALID_AMOUNT, INVALID_NAME, NOTE_TOO_LONG
        """
        kind = LoanKind(kind)
        amount = validate_amount(principal)
        counterparty_name = (counterparty_name or "").strip()
        if not counterparty_name or len(counterparty_name) > 255:
            raise InvalidStateError("INVALID_NAME", "상대방 이름은 1~255자여야 합니다")
        _check_note(note)

        await self.wallet_ledger.ownership_check(owner_id, wallet_id)

        loan_id = str(uuid4())
        now = now_utc().isoformat()
        async with self.db.unit_of_work() as uow:
            await uow.execute(
                """
                INSERT INTO loan (
                    loan_id, owner_id, kind, counterparty_name, principal, outstanding,
                    wallet_id, start_date, due_date, note, status, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    loan_id, owner_id, kind.value, counterparty_name,
                    to_minor(amount), to_minor(amount), wallet_id,
                    _as_datetime(start_date), _as_datetime(due_date), note,
                    LoanStatus.OPEN.value, now, now,
                ),
            )

        logger.info(
            f"Loan created: {kind.value} {amount}",
            extra={"loan_id": loan_id, "owner_id": owner_id},
        )
        return await self.get_loan(owner_id, loan_id)

    async def get_loan(self, owner_id: str, loan_id: str) -> Loan:
        """대출 조회

        Raises:
            NotFoundError: LOAN_NOT_FOUND
        """
        row = await self.db.fetchone_dict(
            "SELECT * FROM loan WHERE loan_id = ? AND owner_id = ? AND deleted_at IS NULL",
            (loan_id, owner_id),
        )
        if row is None:
            raise NotFoundError("LOAN_NOT_FOUND", f"대출을 찾을 수 없습니다: {loan_id}")
        return Loan.from_row(row)

    async def list_loans(
        self,
        owner_id: str,
        kind: LoanKind | str | None = None,
        status: LoanStatus | str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> tuple[list[Loan], int]:
        """대출 목록 (최신 시작일순)

        Returns:
            (대출 목록, 전체 개수)
        """
        where = "WHERE owner_id = ? AND deleted_at IS NULL"
        params: list[Any] = [owner_id]
        if kind is not None:
            where += " AND kind = ?"
            params.append(LoanKind(kind).value)
        if status is not None:
            where += " AND status = ?"
            params.append(LoanStatus(status).value)

        total_row = await self.db.fetchone(f"SELECT COUNT(*) FROM loan {where}", tuple(params))
        rows = await self.db.fetchall_dict(
            f"SELECT * FROM loan {where} ORDER BY start_date DESC LIMIT ? OFFSET ?",
            tuple(params) + (clamp_limit(limit), max(offset, 0)),
        )
        return [Loan.from_row(row) for row in rows], (total_row[0] if total_row else 0)

    async def update_loan(
        self,
        owner_id: str,
        loan_id: str,
        counterparty_name: str | None = None,
        due_date: datetime | date | None = None,
        note: str | None = None,
    ) -> Loan:
        """대출 정보 수정 (상대방, 만기일, 메모)

        Raises:
            NotFoundError: LOAN_NOT_FOUND
        """
        _check_note(note)
        fields: dict[str, Any] = {}
        if counterparty_name is not None:
            fields["counterparty_name"] = counterparty_name.strip()
        if due_date is not None:
            fields["due_date"] = _as_datetime(due_date)
        if note is not None:
            fields["note"] = note
        fields["updated_at"] = now_utc().isoformat()

        assignments = ", ".join(f"{column} = ?" for column in fields)
        async with self.db.unit_of_work() as uow:
            updated = await uow.update_one(
                f"UPDATE loan SET {assignments} WHERE loan_id = ? AND owner_id = ? AND deleted_at IS NULL",
                tuple(fields.values()) + (loan_id, owner_id),
            )
            if not updated:
                raise NotFoundError("LOAN_NOT_FOUND", f"대출을 찾을 수 없습니다: {loan_id}")

        return await self.get_loan(owner_id, loan_id)

    async def delete_loan(self, owner_id: str, loan_id: str) -> None:
        """대출 소프트 삭제

        Raises:
            NotFoundError: LOAN_NOT_FOUND
        """
        async with self.db.unit_of_work() as uow:
            updated = await uow.update_one(
                "UPDATE loan SET deleted_at = ? WHERE loan_id = ? AND owner_id = ? AND deleted_at IS NULL",
                (now_utc().isoformat(), loan_id, owner_id),
            )
            if not updated:
                raise NotFoundError("LOAN_NOT_FOUND", f"대출을 찾을 수 없습니다: {loan_id}")

        logger.info(f"Loan deleted: {loan_id}")

    async def record_payment(
        self,
        owner_id: str,
        loan_id: str,
        wallet_id: str,
        amount: Decimal | int | float | str,
        payment_date: datetime | date,
        note: str | None = None,
    ) -> tuple[Loan, LoanPayment]:
        """상환 기록

        잔여 금액은 저장소 수준 차감(outstanding = outstanding - ?)으로 갱신.
        0이 되면 상태를 closed로 변경.

        Returns:
            (갱신된 대출, 상환 기록)

        Raises:
            NotFoundError: LOAN_NOT_FOUND, WALLET_NOT_FOUND
            InvalidStateError: LOAN_CLOSED, LOAN_PAYMENT_EXCEEDS_OUTSTANDING, INVALID_AMOUNT
        """
        value = validate_amount(amount)
        _check_note(note)
        await self.wallet_ledger.ownership_check(owner_id, wallet_id)

        payment_id = str(uuid4())
        minor = to_minor(value)

        async with self.db.unit_of_work() as uow:
            row = await uow.fetchone(
                "SELECT status, outstanding FROM loan WHERE loan_id = ? AND owner_id = ? AND deleted_at IS NULL",
                (loan_id, owner_id),
            )
            if row is None:
                raise NotFoundError("LOAN_NOT_FOUND", f"대출을 찾을 수 없습니다: {loan_id}")
            if row[0] == LoanStatus.CLOSED.value:
                raise InvalidStateError("LOAN_CLOSED", f"이미 종료된 대출입니다: {loan_id}")
            if minor > row[1]:
                raise InvalidStateError(
                    "LOAN_PAYMENT_EXCEEDS_OUTSTANDING",
                    f"상환 금액이 잔여 금액({from_minor(row[1])})을 초과합니다",
                )

            now = now_utc().isoformat()
            await uow.execute(
                """
                UPDATE loan
                SET outstanding = outstanding - ?,
                    status = CASE WHEN outstanding - ? = 0 THEN 'closed' ELSE status END,
                    updated_at = ?
                WHERE loan_id = ?
                """,
                (minor, minor, now, loan_id),
            )
            await uow.execute(
                """
                INSERT INTO loan_payment (
                    payment_id, loan_id, wallet_id, payment_date, amount, note, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (payment_id, loan_id, wallet_id, _as_datetime(payment_date), minor, note, now),
            )
            payment_row = await uow.fetchone_dict(
                "SELECT * FROM loan_payment WHERE payment_id = ?", (payment_id,)
            )

        loan = await self.get_loan(owner_id, loan_id)
        logger.info(
            f"Loan payment recorded: {value}",
            extra={"loan_id": loan_id, "outstanding": str(loan.outstanding)},
        )
        return loan, LoanPayment.from_row(payment_row)  # type: ignore[arg-type]

    async def list_payments(self, owner_id: str, loan_id: str) -> list[LoanPayment]:
        """상환 기록 목록 (최신순)"""
        await self.get_loan(owner_id, loan_id)
        rows = await self.db.fetchall_dict(
            "SELECT * FROM loan_payment WHERE loan_id = ? ORDER BY payment_date DESC",
            (loan_id,),
        )
        return [LoanPayment.from_row(row) for row in rows]

    async def get_stats(self, owner_id: str) -> dict[str, Any]:
        """유형별 잔여 금액 합계 (진행 중인 대출만)"""
        rows = await self.db.fetchall(
            """
            SELECT kind, COUNT(*), COALESCE(SUM(outstanding), 0)
            FROM loan
            WHERE owner_id = ? AND deleted_at IS NULL AND status = 'open'
            GROUP BY kind
            """,
            (owner_id,),
        )
        stats: dict[str, Any] = {
            kind.value: {"count": 0, "outstanding": from_minor(0)} for kind in LoanKind
        }
        for kind, count, outstanding in rows:
            stats[kind] = {"count": count, "outstanding": from_minor(outstanding)}
        return stats
