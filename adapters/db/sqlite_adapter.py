"""
SQLite 어댑터

WAL 모드로 SQLite 연결 관리.
Web 요청과 관리 스크립트가 동시에 접근 가능하도록 설정.
행은 aiosqlite.Row 로 반환되어 인덱스/컬럼명 모두로 접근 가능.

주의: SQLite alias로 time, count 사용 금지 (예약어)
"""

import logging
from pathlib import Path
from typing import Any

import aiosqlite

from core.constants import Paths
from core.types import AppMode

logger = logging.getLogger(__name__)

MEMORY_DB = ":memory:"


def get_db_path(mode: AppMode | str) -> Path:
    """모드에 따른 DB 경로 반환
    
    Args:
        mode: 실행 모드 (PRODUCTION/TEST)
        
    Returns:
        DB 파일 경로 (Path 타입)
    """
    if isinstance(mode, str):
        mode = AppMode(mode.lower())
    
    if mode == AppMode.PRODUCTION:
        return Paths.PROD_DB
    return Paths.TEST_DB


async def create_connection(
    db_path: Path | str,
    readonly: bool = False,
) -> aiosqlite.Connection:
    """SQLite 연결 생성 (WAL 모드)
    
    Args:
        db_path: DB 파일 경로 (":memory:"면 인메모리 DB)
        readonly: 읽기 전용 여부
        
    Returns:
        aiosqlite 연결 객체
    """
    db_path_str = str(db_path)
    
    if db_path_str == MEMORY_DB:
        conn = await aiosqlite.connect(MEMORY_DB)
    else:
        # 디렉토리가 없으면 생성
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        
        if readonly:
            conn = await aiosqlite.connect(f"file:{db_path_str}?mode=ro", uri=True)
        else:
            conn = await aiosqlite.connect(db_path_str)
        
        # WAL 모드 설정 (인메모리 DB는 해당 없음)
        await conn.execute("PRAGMA journal_mode=WAL")
    
    # 동시 접근 설정
    await conn.execute("PRAGMA busy_timeout=30000")  # 30초 대기
    
    # 컬럼명으로 접근 가능한 행
    conn.row_factory = aiosqlite.Row
    
    logger.info(
        "SQLite 연결 생성",
        extra={"db_path": db_path_str, "readonly": readonly},
    )
    
    return conn


class SQLiteAdapter:
    """SQLite 어댑터
    
    WAL 모드로 SQLite 연결 관리.
    쓰기는 execute_write()로 실행 즉시 커밋한다 (실패 시 롤백).
    
    Args:
        db_path: DB 파일 경로
        readonly: 읽기 전용 여부 (조회 전용 요청용)
    
    사용 예시:
    ```python
    async with SQLiteAdapter(db_path) as db:
        await init_schema(db)
        affected = await db.execute_write(
            "DELETE FROM cash_records WHERE record_id = ?",
            (record_id,),
        )
    ```
    """
    
    def __init__(self, db_path: Path | str, readonly: bool = False):
        self.db_path = db_path if str(db_path) == MEMORY_DB else Path(db_path)
        self.readonly = readonly
        self._conn: aiosqlite.Connection | None = None
    
    @property
    def is_connected(self) -> bool:
        """연결 상태 확인"""
        return self._conn is not None
    
    async def connect(self) -> None:
        """연결 생성"""
        if self._conn is not None:
            return
        
        self._conn = await create_connection(self.db_path, self.readonly)
    
    async def close(self) -> None:
        """연결 종료"""
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            logger.info("SQLite 연결 종료")
    
    async def execute(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> aiosqlite.Cursor:
        """SQL 실행 (커밋하지 않음)"""
        if self._conn is None:
            raise RuntimeError("Not connected to database")
        
        if parameters:
            return await self._conn.execute(sql, parameters)
        return await self._conn.execute(sql)
    
    async def execute_write(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> int:
        """쓰기 SQL 실행 후 커밋
        
        Returns:
            영향받은 행 수 (cursor.rowcount)
        """
        try:
            cursor = await self.execute(sql, parameters)
            await self.commit()
        except Exception:
            await self.rollback()
            raise
        return cursor.rowcount
    
    async def fetchone(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> aiosqlite.Row | None:
        """단일 행 조회"""
        cursor = await self.execute(sql, parameters)
        return await cursor.fetchone()
    
    async def fetchall(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> list[aiosqlite.Row]:
        """전체 행 조회"""
        cursor = await self.execute(sql, parameters)
        return list(await cursor.fetchall())
    
    async def commit(self) -> None:
        """커밋"""
        if self._conn is not None:
            await self._conn.commit()
    
    async def rollback(self) -> None:
        """롤백"""
        if self._conn is not None:
            await self._conn.rollback()
    
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


async def init_schema(adapter: SQLiteAdapter) -> None:
    """스키마 초기화 (테이블 생성)
    
    Args:
        adapter: 연결된 SQLiteAdapter
    
    시각 컬럼(date, *_at)은 모두 고정 폭 UTC ISO 문자열로 저장한다.
    (core.utils.timezone.to_db_ts 참고)
    """
    # cash_records (시재 기록)
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS cash_records (
            record_id        TEXT PRIMARY KEY,
            date             TEXT NOT NULL,
            kind             TEXT NOT NULL,
            amount           INTEGER NOT NULL,
            description      TEXT,
            
            source_type      TEXT,
            source_id        TEXT,
            payment_id       TEXT NOT NULL DEFAULT '',
            
            is_completed     INTEGER NOT NULL DEFAULT 0,
            completed_at     TEXT,
            group_id         TEXT,
            is_grouped       INTEGER NOT NULL DEFAULT 0,
            is_closed        INTEGER NOT NULL DEFAULT 0,
            closing_amount   INTEGER,
            closed_at        TEXT,
            
            created_at       TEXT NOT NULL,
            updated_at       TEXT NOT NULL
        )
    """)
    
    # transactions (내원 정보, payments 배열은 JSON 문서로 저장)
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS transactions (
            transaction_id   TEXT PRIMARY KEY,
            date             TEXT NOT NULL,
            chart_number     TEXT,
            patient_name     TEXT,
            doctor           TEXT,
            payment_method   TEXT,
            payment_amount   INTEGER NOT NULL DEFAULT 0,
            payload_json     TEXT NOT NULL,
            
            created_at       TEXT NOT NULL,
            updated_at       TEXT NOT NULL
        )
    """)
    
    # expenses (지출 내역)
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS expenses (
            expense_id       TEXT PRIMARY KEY,
            date             TEXT NOT NULL,
            description      TEXT NOT NULL,
            amount           INTEGER NOT NULL,
            method           TEXT NOT NULL,
            has_receipt      INTEGER NOT NULL DEFAULT 0,
            vendor           TEXT,
            account          TEXT,
            notes            TEXT,
            created_by       TEXT NOT NULL,
            
            created_at       TEXT NOT NULL,
            updated_at       TEXT NOT NULL
        )
    """)
    
    # consultations (상담 내역)
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS consultations (
            consultation_id  TEXT PRIMARY KEY,
            date             TEXT NOT NULL,
            chart_number     TEXT,
            patient_name     TEXT,
            doctor           TEXT,
            staff            TEXT,
            amount           INTEGER NOT NULL DEFAULT 0,
            agreed           INTEGER NOT NULL DEFAULT 0,
            confirmed_date   TEXT,
            notes            TEXT,
            
            created_at       TEXT NOT NULL,
            updated_at       TEXT NOT NULL
        )
    """)
    
    # 인덱스 생성
    await adapter.execute("""
        CREATE INDEX IF NOT EXISTS ix_cash_records_date 
        ON cash_records(date)
    """)
    
    await adapter.execute("""
        CREATE INDEX IF NOT EXISTS ix_cash_records_source 
        ON cash_records(source_id, kind, payment_id)
    """)
    
    await adapter.execute("""
        CREATE INDEX IF NOT EXISTS ix_transactions_date 
        ON transactions(date)
    """)
    
    await adapter.execute("""
        CREATE INDEX IF NOT EXISTS ix_expenses_date 
        ON expenses(date)
    """)
    
    await adapter.execute("""
        CREATE INDEX IF NOT EXISTS ix_consultations_date 
        ON consultations(date)
    """)
    
    await adapter.commit()
    
    logger.info("스키마 초기화 완료")
