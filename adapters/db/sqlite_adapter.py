"""
SQLite 어댑터

WAL 모드로 SQLite 연결 관리.
원장 쓰기는 BEGIN IMMEDIATE 트랜잭션으로 직렬화.

주의: 연결은 autocommit 모드(isolation_level=None)로 생성되며
      트랜잭션 경계는 transaction()/snapshot()이 직접 관리.
"""

import asyncio
import logging
import sqlite3
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

import aiosqlite

from core.errors import LedgerError, StoreError, UniqueViolation

logger = logging.getLogger(__name__)


async def create_connection(
    db_path: Path | str,
    readonly: bool = False,
) -> aiosqlite.Connection:
    """SQLite 연결 생성 (WAL 모드)

    Args:
        db_path: DB 파일 경로
        readonly: 읽기 전용 여부

    Returns:
        aiosqlite 연결 객체
    """
    db_path_str = str(db_path)

    # 디렉토리가 없으면 생성
    db_dir = Path(db_path).parent
    db_dir.mkdir(parents=True, exist_ok=True)

    if readonly:
        conn = await aiosqlite.connect(
            f"file:{db_path_str}?mode=ro", uri=True, isolation_level=None
        )
    else:
        conn = await aiosqlite.connect(db_path_str, isolation_level=None)

    # WAL 모드 설정 (읽기는 커밋된 스냅샷만 조회)
    await conn.execute("PRAGMA journal_mode=WAL")

    # 동시 접근 설정
    await conn.execute("PRAGMA busy_timeout=30000")  # 30초 대기

    # 외래 키 제약 활성화 (journal_entry CASCADE 삭제)
    await conn.execute("PRAGMA foreign_keys=ON")

    logger.info(
        "SQLite 연결 생성",
        extra={"db_path": db_path_str, "readonly": readonly},
    )

    return conn


def wrap_store_error(exc: sqlite3.Error) -> StoreError:
    """sqlite3 예외를 StoreError로 변환 (원본은 __cause__로 연결)"""
    if isinstance(exc, sqlite3.IntegrityError) and "UNIQUE" in str(exc):
        error: StoreError = UniqueViolation(str(exc))
    else:
        error = StoreError(str(exc))
    error.__cause__ = exc
    return error


class SQLiteAdapter:
    """SQLite 어댑터

    WAL 모드로 SQLite 연결 관리.
    트랜잭션/스냅샷 컨텍스트 매니저 제공.

    하나의 연결을 여러 코루틴이 공유하므로 asyncio.Lock으로
    작업 단위(transaction, snapshot, 단일 쿼리)를 직렬화.
    다른 프로세스와의 쓰기 경합은 BEGIN IMMEDIATE + busy_timeout으로 직렬화.

    Args:
        db_path: DB 파일 경로
        readonly: 읽기 전용 여부 (조회 전용 프로세스용)

    사용 예시:
    ```python
    adapter = SQLiteAdapter(db_path)
    await adapter.connect()

    async with adapter.transaction() as conn:
        await conn.execute("INSERT INTO ...")

    await adapter.close()
    ```
    """

    def __init__(self, db_path: Path | str, readonly: bool = False):
        self.db_path = Path(db_path)
        self.readonly = readonly
        self._conn: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        """연결 상태 확인"""
        return self._conn is not None

    async def connect(self) -> None:
        """연결 생성"""
        if self._conn is not None:
            return

        try:
            self._conn = await create_connection(self.db_path, self.readonly)
        except sqlite3.Error as e:
            raise wrap_store_error(e) from e

    async def close(self) -> None:
        """연결 종료"""
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            logger.info("SQLite 연결 종료")

    def _require_conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise StoreError("Not connected to database")
        return self._conn

    async def execute(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> int:
        """단일 SQL 실행 (autocommit)

        Returns:
            영향받은 행 수
        """
        conn = self._require_conn()
        async with self._lock:
            try:
                cursor = await conn.execute(sql, parameters or ())
                return cursor.rowcount
            except sqlite3.Error as e:
                raise wrap_store_error(e) from e

    async def fetchone(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> tuple[Any, ...] | None:
        """단일 행 조회"""
        conn = self._require_conn()
        async with self._lock:
            try:
                cursor = await conn.execute(sql, parameters or ())
                return await cursor.fetchone()
            except sqlite3.Error as e:
                raise wrap_store_error(e) from e

    async def fetchall(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> list[tuple[Any, ...]]:
        """전체 행 조회"""
        conn = self._require_conn()
        async with self._lock:
            try:
                cursor = await conn.execute(sql, parameters or ())
                return list(await cursor.fetchall())
            except sqlite3.Error as e:
                raise wrap_store_error(e) from e

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """쓰기 트랜잭션 컨텍스트 매니저

        성공 시 자동 커밋, 예외 시 자동 롤백 후 재발생.
        sqlite3 예외는 StoreError로 변환, 원장 예외는 그대로 전달.

        사용 예시:
        ```python
        async with adapter.transaction() as conn:
            await conn.execute("INSERT INTO ...")
            # 성공 시 자동 커밋
        ```
        """
        conn = self._require_conn()

        async with self._lock:
            try:
                await conn.execute("BEGIN IMMEDIATE")
            except sqlite3.Error as e:
                raise wrap_store_error(e) from e

            try:
                yield conn
                await conn.execute("COMMIT")
            except BaseException as exc:
                await self._rollback(conn)
                if isinstance(exc, sqlite3.Error):
                    logger.error("트랜잭션 롤백 (DB 오류)", exc_info=exc)
                    raise wrap_store_error(exc) from exc
                if isinstance(exc, LedgerError):
                    logger.debug(f"트랜잭션 롤백: {exc}")
                raise

    @asynccontextmanager
    async def snapshot(self) -> AsyncIterator[aiosqlite.Connection]:
        """읽기 스냅샷 컨텍스트 매니저

        여러 쿼리로 구성된 보고서가 하나의 커밋된 상태만 보도록
        읽기 트랜잭션(BEGIN DEFERRED)으로 묶음.
        """
        conn = self._require_conn()

        async with self._lock:
            try:
                await conn.execute("BEGIN")
            except sqlite3.Error as e:
                raise wrap_store_error(e) from e

            try:
                yield conn
            except sqlite3.Error as e:
                raise wrap_store_error(e) from e
            finally:
                await self._rollback(conn)

    @staticmethod
    async def _rollback(conn: aiosqlite.Connection) -> None:
        """열린 트랜잭션 롤백 (이미 종료된 경우 무시)"""
        if conn.in_transaction:
            await conn.execute("ROLLBACK")

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
