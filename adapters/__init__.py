"""
어댑터 레이어

외부 저장소(SQLite)와의 연동을 담당.
"""

from adapters.db.sqlite_adapter import SQLiteAdapter, UnitOfWork

__all__ = [
    "SQLiteAdapter",
    "UnitOfWork",
]
