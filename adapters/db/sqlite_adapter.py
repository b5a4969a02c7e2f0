"""
SQLite 어댑터

WAL 모드로 SQLite 연결 관리.
- 조회: 공유 연결 사용 (커밋된 데이터만 보임)
- 쓰기: unit_of_work()로 전용 연결 + BEGIN IMMEDIATE

BEGIN IMMEDIATE는 트랜잭션 시작 시점에 쓰기 잠금을 잡으므로
같은 지갑에 대한 동시 기록은 저장소 수준에서 직렬화됨.

주의: SQLite alias로 time, count 사용 금지 (예약어)
"""

import logging
import sqlite3
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

import aiosqlite

from core.constants import Defaults
from core.errors import ConflictError, LedgerError, TransientError

logger = logging.getLogger(__name__)


async def create_connection(
    db_path: Path | str,
    readonly: bool = False,
    busy_timeout_ms: int = Defaults.BUSY_TIMEOUT_MS,
    autocommit: bool = False,
) -> aiosqlite.Connection:
    """SQLite 연결 생성 (WAL 모드)

    Args:
        db_path: DB 파일 경로
        readonly: 읽기 전용 여부
        busy_timeout_ms: 쓰기 잠금 대기 시간
        autocommit: True면 isolation_level=None (BEGIN/COMMIT 직접 관리)

    Returns:
        aiosqlite 연결 객체
    """
    db_path_str = str(db_path)

    # 디렉토리가 없으면 생성
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    kwargs: dict[str, Any] = {}
    if autocommit:
        kwargs["isolation_level"] = None

    if readonly:
        conn = await aiosqlite.connect(f"file:{db_path_str}?mode=ro", uri=True, **kwargs)
    else:
        conn = await aiosqlite.connect(db_path_str, **kwargs)

    if not readonly:
        await conn.execute("PRAGMA journal_mode=WAL")

    # 동시 접근 설정
    await conn.execute(f"PRAGMA busy_timeout={int(busy_timeout_ms)}")

    # 외래 키 제약 활성화
    await conn.execute("PRAGMA foreign_keys=ON")

    logger.debug(
        "SQLite 연결 생성",
        extra={"db_path": db_path_str, "readonly": readonly},
    )

    return conn


class UnitOfWork:
    """원자적 작업 단위

    SQLiteAdapter.unit_of_work()가 생성. 전용 연결 위에서 열린 트랜잭션을 감싸며,
    컨텍스트를 벗어날 때 전체 커밋 또는 전체 롤백.

    Args:
        conn: BEGIN IMMEDIATE가 실행된 연결
    """

    def __init__(self, conn: aiosqlite.Connection):
        self._conn = conn

    async def execute(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> aiosqlite.Cursor:
        """SQL 실행"""
        return await self._conn.execute(sql, parameters or ())

    async def fetchone(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> tuple[Any, ...] | None:
        """단일 행 조회 (트랜잭션 내부 시점)"""
        cursor = await self.execute(sql, parameters)
        return await cursor.fetchone()

    async def fetchall(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> list[tuple[Any, ...]]:
        """전체 행 조회 (트랜잭션 내부 시점)"""
        cursor = await self.execute(sql, parameters)
        return list(await cursor.fetchall())

    async def fetchone_dict(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> dict[str, Any] | None:
        """단일 행을 컬럼명 dict로 조회 (트랜잭션 내부 시점)"""
        cursor = await self.execute(sql, parameters)
        row = await cursor.fetchone()
        if row is None:
            return None
        columns = [desc[0] for desc in cursor.description]
        return dict(zip(columns, row))

    async def update_one(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> bool:
        """UPDATE 실행 후 정확히 1행이 변경되었는지 반환"""
        cursor = await self.execute(sql, parameters)
        return cursor.rowcount == 1


class SQLiteAdapter:
    """SQLite 어댑터

    WAL 모드로 SQLite 연결 관리.
    쓰기 작업은 unit_of_work() 컨텍스트 매니저로만 수행.

    Args:
        db_path: DB 파일 경로
        readonly: 읽기 전용 여부
        busy_timeout_ms: 쓰기 잠금 대기 시간

    사용 예시:
    ```python
    adapter = SQLiteAdapter(db_path)
    await adapter.connect()

    async with adapter.unit_of_work() as uow:
        await uow.execute("INSERT INTO ...")
        await uow.execute("UPDATE wallet SET current_balance = current_balance + ? ...")

    await adapter.close()
    ```
    """

    def __init__(
        self,
        db_path: Path | str,
        readonly: bool = False,
        busy_timeout_ms: int = Defaults.BUSY_TIMEOUT_MS,
    ):
        self.db_path = Path(db_path)
        self.readonly = readonly
        self.busy_timeout_ms = busy_timeout_ms
        self._conn: aiosqlite.Connection | None = None

    @property
    def is_connected(self) -> bool:
        """연결 상태 확인"""
        return self._conn is not None

    async def connect(self) -> None:
        """연결 생성"""
        if self._conn is not None:
            return

        self._conn = await create_connection(
            self.db_path,
            readonly=self.readonly,
            busy_timeout_ms=self.busy_timeout_ms,
            autocommit=True,
        )

    async def close(self) -> None:
        """연결 종료"""
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            logger.debug("SQLite 연결 종료")

    async def execute(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> aiosqlite.Cursor:
        """SQL 실행 (공유 연결, 스키마 생성 및 조회용)"""
        if self._conn is None:
            raise RuntimeError("Not connected to database")

        if parameters:
            return await self._conn.execute(sql, parameters)
        return await self._conn.execute(sql)

    async def fetchone(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> tuple[Any, ...] | None:
        """단일 행 조회"""
        cursor = await self.execute(sql, parameters)
        return await cursor.fetchone()

    async def fetchall(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> list[tuple[Any, ...]]:
        """전체 행 조회"""
        cursor = await self.execute(sql, parameters)
        return list(await cursor.fetchall())

    async def fetchone_dict(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> dict[str, Any] | None:
        """단일 행을 컬럼명 dict로 조회"""
        cursor = await self.execute(sql, parameters)
        row = await cursor.fetchone()
        if row is None:
            return None
        columns = [desc[0] for desc in cursor.description]
        return dict(zip(columns, row))

    async def fetchall_dict(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> list[dict[str, Any]]:
        """전체 행을 컬럼명 dict 목록으로 조회"""
        cursor = await self.execute(sql, parameters)
        rows = await cursor.fetchall()
        columns = [desc[0] for desc in cursor.description]
        return [dict(zip(columns, row)) for row in rows]

    @asynccontextmanager
    async def unit_of_work(self) -> AsyncIterator[UnitOfWork]:
        """원자적 작업 단위 컨텍스트 매니저

        전용 연결을 열고 BEGIN IMMEDIATE로 쓰기 잠금을 잡음.
        성공 시 커밋, 예외 시 롤백. 부분 반영은 없음.

        LedgerError(도메인 에러)는 그대로 전파되고,
        SQLite 에러(잠금 타임아웃, 디스크 오류 등)는 TransientError로 변환됨.

        사용 예시:
        ```python
        async with adapter.unit_of_work() as uow:
            await uow.execute("INSERT INTO ...")
            # 성공 시 자동 커밋
        ```
        """
        if self.readonly:
            raise RuntimeError("Read-only adapter cannot open a unit of work")

        try:
            conn = await create_connection(
                self.db_path,
                busy_timeout_ms=self.busy_timeout_ms,
                autocommit=True,
            )
        except sqlite3.Error as e:
            raise TransientError("STORAGE_UNAVAILABLE", f"DB 연결 실패: {e}") from e

        try:
            try:
                await conn.execute("BEGIN IMMEDIATE")
            except sqlite3.Error as e:
                raise TransientError("STORAGE_BUSY", f"쓰기 잠금 획득 실패: {e}") from e

            try:
                yield UnitOfWork(conn)
                await conn.execute("COMMIT")
            except LedgerError:
                await _safe_rollback(conn)
                raise
            except sqlite3.IntegrityError as e:
                await _safe_rollback(conn)
                raise ConflictError("CONSTRAINT_VIOLATION", f"제약 조건 위반: {e}") from e
            except sqlite3.Error as e:
                await _safe_rollback(conn)
                logger.warning(f"작업 단위 롤백 (저장소 오류): {e}")
                raise TransientError("STORAGE_COMMIT_FAILED", f"커밋 실패: {e}") from e
            except BaseException:
                await _safe_rollback(conn)
                raise
        finally:
            await conn.close()

    async def table_exists(self, table_name: str) -> bool:
        """테이블 존재 여부 확인"""
        result = await self.fetchone(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
            (table_name,),
        )
        return result is not None

    # -------------------------------------------------------------------------
    # 컨텍스트 매니저
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> "SQLiteAdapter":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


async def _safe_rollback(conn: aiosqlite.Connection) -> None:
    """롤백 시도 (연결이 이미 끊긴 경우 원래 예외를 우선)"""
    try:
        await conn.execute("ROLLBACK")
    except sqlite3.Error as e:
        logger.warning(f"롤백 실패 (연결 종료로 자동 폐기됨): {e}")
