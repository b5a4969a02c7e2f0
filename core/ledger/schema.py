"""
Ledger 스키마 초기화

Web 시작 시 자동으로 테이블, 인덱스, 트리거, View 생성.
CREATE IF NOT EXISTS / DROP VIEW IF EXISTS 패턴으로 안전하게 동작.

금액 컬럼(*_balance, amount, principal, outstanding)은 INTEGER 센트 단위.
"""

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


async def init_ledger_schema(db: "SQLiteAdapter") -> None:
    """Ledger 스키마 초기화 (테이블 + 트리거 + View)

    이미 존재하는 경우 안전하게 건너뜀 (IF NOT EXISTS).

    Args:
        db: 연결된 SQLiteAdapter 인스턴스
    """
    await _create_ledger_tables(db)
    await _create_record_tables(db)
    await _create_indexes(db)
    await _create_triggers(db)
    await _create_views(db)
    logger.info("Ledger 스키마 초기화 완료")


async def _create_ledger_tables(db: "SQLiteAdapter") -> None:
    """지갑/거래/분개 테이블 생성"""

    # wallet 테이블
    await db.execute("""
        CREATE TABLE IF NOT EXISTS wallet (
            wallet_id        TEXT PRIMARY KEY,
            owner_id         TEXT NOT NULL,
            name             TEXT NOT NULL,
            kind             TEXT NOT NULL
                             CHECK (kind IN ('cash', 'bank', 'ewallet', 'credit')),
            opening_balance  INTEGER NOT NULL DEFAULT 0,
            current_balance  INTEGER NOT NULL DEFAULT 0,
            is_archived      INTEGER NOT NULL DEFAULT 0,
            created_at       TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at       TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)

    # category 테이블
    await db.execute("""
        CREATE TABLE IF NOT EXISTS category (
            category_id      TEXT PRIMARY KEY,
            owner_id         TEXT NOT NULL,
            type             TEXT NOT NULL CHECK (type IN ('income', 'expense')),
            name             TEXT NOT NULL,
            parent_id        TEXT,
            created_at       TEXT NOT NULL DEFAULT (datetime('now')),
            UNIQUE(owner_id, type, name),
            FOREIGN KEY (parent_id) REFERENCES category(category_id)
        )
    """)

    # ledger_transaction 테이블 (거래 헤더)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS ledger_transaction (
            transaction_id   TEXT PRIMARY KEY,
            owner_id         TEXT NOT NULL,
            type             TEXT NOT NULL
                             CHECK (type IN ('income', 'expense', 'transfer')),
            transaction_date TEXT NOT NULL,
            category_id      TEXT,
            amount           INTEGER NOT NULL CHECK (amount > 0),
            note             TEXT,
            deleted_at       TEXT,
            created_at       TEXT NOT NULL DEFAULT (datetime('now')),
            FOREIGN KEY (category_id) REFERENCES category(category_id)
        )
    """)

    # entry 테이블 (분개 - 생성 후 불변)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS entry (
            entry_id         TEXT PRIMARY KEY,
            transaction_id   TEXT NOT NULL,
            wallet_id        TEXT NOT NULL,
            direction        TEXT NOT NULL CHECK (direction IN ('in', 'out')),
            amount           INTEGER NOT NULL CHECK (amount > 0),
            line_order       INTEGER NOT NULL DEFAULT 0,
            created_at       TEXT NOT NULL DEFAULT (datetime('now')),
            FOREIGN KEY (transaction_id) REFERENCES ledger_transaction(transaction_id),
            FOREIGN KEY (wallet_id) REFERENCES wallet(wallet_id)
        )
    """)


async def _create_record_tables(db: "SQLiteAdapter") -> None:
    """템플릿/대출/목표 테이블 생성"""

    # transaction_template 테이블
    await db.execute("""
        CREATE TABLE IF NOT EXISTS transaction_template (
            template_id      TEXT PRIMARY KEY,
            owner_id         TEXT NOT NULL,
            name             TEXT NOT NULL,
            type             TEXT NOT NULL
                             CHECK (type IN ('income', 'expense', 'transfer')),
            wallet_id        TEXT,
            category_id      TEXT,
            amount           INTEGER,
            note             TEXT,
            created_at       TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at       TEXT NOT NULL DEFAULT (datetime('now')),
            UNIQUE(owner_id, name)
        )
    """)

    # loan 테이블
    await db.execute("""
        CREATE TABLE IF NOT EXISTS loan (
            loan_id           TEXT PRIMARY KEY,
            owner_id          TEXT NOT NULL,
            kind              TEXT NOT NULL CHECK (kind IN ('you_owe', 'owed_to_you')),
            counterparty_name TEXT NOT NULL,
            principal         INTEGER NOT NULL CHECK (principal > 0),
            outstanding       INTEGER NOT NULL CHECK (outstanding >= 0),
            wallet_id         TEXT NOT NULL,
            start_date        TEXT NOT NULL,
            due_date          TEXT,
            note              TEXT,
            status            TEXT NOT NULL DEFAULT 'open',
            deleted_at        TEXT,
            created_at        TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at        TEXT NOT NULL DEFAULT (datetime('now')),
            FOREIGN KEY (wallet_id) REFERENCES wallet(wallet_id)
        )
    """)

    # loan_payment 테이블
    await db.execute("""
        CREATE TABLE IF NOT EXISTS loan_payment (
            payment_id       TEXT PRIMARY KEY,
            loan_id          TEXT NOT NULL,
            wallet_id        TEXT NOT NULL,
            payment_date     TEXT NOT NULL,
            amount           INTEGER NOT NULL CHECK (amount > 0),
            note             TEXT,
            created_at       TEXT NOT NULL DEFAULT (datetime('now')),
            FOREIGN KEY (loan_id) REFERENCES loan(loan_id),
            FOREIGN KEY (wallet_id) REFERENCES wallet(wallet_id)
        )
    """)

    # goal 테이블 (값은 Decimal TEXT)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS goal (
            goal_id          TEXT PRIMARY KEY,
            owner_id         TEXT NOT NULL,
            title            TEXT NOT NULL,
            description      TEXT,
            period_type      TEXT NOT NULL CHECK (period_type IN ('yearly', 'monthly')),
            tracking_type    TEXT NOT NULL DEFAULT 'checkbox',
            target_value     TEXT,
            current_value    TEXT NOT NULL DEFAULT '0',
            unit             TEXT,
            parent_goal_id   TEXT,
            auto_calculate   INTEGER NOT NULL DEFAULT 0,
            status           TEXT NOT NULL DEFAULT 'pending',
            priority         TEXT NOT NULL DEFAULT 'medium',
            month            INTEGER,
            year             INTEGER,
            created_at       TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at       TEXT NOT NULL DEFAULT (datetime('now')),
            FOREIGN KEY (parent_goal_id) REFERENCES goal(goal_id)
        )
    """)

    # milestone 테이블
    await db.execute("""
        CREATE TABLE IF NOT EXISTS milestone (
            milestone_id     TEXT PRIMARY KEY,
            goal_id          TEXT NOT NULL,
            title            TEXT NOT NULL,
            description      TEXT,
            target_value     TEXT,
            current_value    TEXT NOT NULL DEFAULT '0',
            is_completed     INTEGER NOT NULL DEFAULT 0,
            sort_order       INTEGER NOT NULL DEFAULT 0,
            created_at       TEXT NOT NULL DEFAULT (datetime('now')),
            FOREIGN KEY (goal_id) REFERENCES goal(goal_id) ON DELETE CASCADE
        )
    """)


async def _create_indexes(db: "SQLiteAdapter") -> None:
    """인덱스 생성"""
    statements = [
        "CREATE INDEX IF NOT EXISTS ix_wallet_owner ON wallet(owner_id, is_archived)",
        "CREATE INDEX IF NOT EXISTS ix_category_owner ON category(owner_id, type)",
        """CREATE INDEX IF NOT EXISTS ix_transaction_owner_date
           ON ledger_transaction(owner_id, transaction_date)""",
        "CREATE INDEX IF NOT EXISTS ix_entry_wallet ON entry(wallet_id)",
        "CREATE INDEX IF NOT EXISTS ix_entry_transaction ON entry(transaction_id)",
        "CREATE INDEX IF NOT EXISTS ix_loan_owner ON loan(owner_id, status)",
        "CREATE INDEX IF NOT EXISTS ix_goal_parent ON goal(parent_goal_id)",
        "CREATE INDEX IF NOT EXISTS ix_milestone_goal ON milestone(goal_id)",
    ]
    for sql in statements:
        await db.execute(sql)


async def _create_triggers(db: "SQLiteAdapter") -> None:
    """분개 불변성 트리거 생성

    entry 행은 거래 헤더와 함께 생성된 뒤 수정/삭제 불가.
    """
    await db.execute("""
        CREATE TRIGGER IF NOT EXISTS trg_entry_no_update
        BEFORE UPDATE ON entry
        BEGIN
            SELECT RAISE(ABORT, 'entry rows are immutable');
        END
    """)

    await db.execute("""
        CREATE TRIGGER IF NOT EXISTS trg_entry_no_delete
        BEFORE DELETE ON entry
        BEGIN
            SELECT RAISE(ABORT, 'entry rows are immutable');
        END
    """)


async def _create_views(db: "SQLiteAdapter") -> None:
    """View 생성 (DROP 후 재생성)"""

    # v_wallet_drift: 저장된 잔액과 분개 합계로 계산한 잔액 비교
    await db.execute("DROP VIEW IF EXISTS v_wallet_drift")
    await db.execute("""
        CREATE VIEW v_wallet_drift AS
        SELECT
            w.wallet_id,
            w.owner_id,
            w.opening_balance,
            w.current_balance,
            w.opening_balance
                + COALESCE(SUM(CASE WHEN e.direction = 'in' THEN e.amount ELSE 0 END), 0)
                - COALESCE(SUM(CASE WHEN e.direction = 'out' THEN e.amount ELSE 0 END), 0)
                AS expected_balance
        FROM wallet w
        LEFT JOIN entry e ON e.wallet_id = w.wallet_id
        GROUP BY w.wallet_id
    """)
