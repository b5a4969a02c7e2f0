"""
데이터베이스 어댑터

SQLite WAL 모드 연결 관리 및 원자적 작업 단위.
"""

from adapters.db.sqlite_adapter import (
    SQLiteAdapter,
    UnitOfWork,
    create_connection,
)

__all__ = [
    "SQLiteAdapter",
    "UnitOfWork",
    "create_connection",
]
