# medlab/core/database.py

"""
애플리케이션의 데이터베이스 연결 및 세션 관리를 담당하는 모듈입니다.

- SQLModel의 비동기 엔진을 설정합니다.
- 비동기 세션 생성을 위한 유틸리티 함수를 제공합니다.
- 애플리케이션 시작 시 데이터베이스 테이블을 생성하는 함수를 포함합니다 (개발용).
- 워크플로 서비스가 사용하는 트랜잭션 경계(atomic)를 제공합니다.
"""

import logging
from typing import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine
from sqlalchemy.orm import configure_mappers, sessionmaker

from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from medlab.core.config import settings
from medlab.core.exceptions import DomainError, PersistenceError

# =============================================================================
# 모든 도메인 모델 임포트
# =============================================================================
# SQLModel.metadata가 모든 테이블을 인식하고 configure_mappers()가
# 문자열로 지정된 관계를 해석할 수 있도록 런타임에 임포트합니다.
from medlab.domains import models  # noqa: F401

logger = logging.getLogger(__name__)


def enable_sqlite_savepoints(async_engine: AsyncEngine) -> None:
    """
    pysqlite/aiosqlite 드라이버의 자체 트랜잭션 처리를 끄고 BEGIN을 직접 발행합니다.
    이렇게 해야 SAVEPOINT(begin_nested)가 SQLite에서도 올바르게 동작합니다.
    """
    @event.listens_for(async_engine.sync_engine, "connect")
    def _do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(async_engine.sync_engine, "begin")
    def _do_begin(conn):
        conn.exec_driver_sql("BEGIN")


def build_engine(url: str, echo: bool = False, **kwargs) -> AsyncEngine:
    """URL 종류에 맞춰 비동기 엔진을 생성합니다."""
    if url.startswith("sqlite"):
        async_engine = create_async_engine(url, echo=echo, future=True, **kwargs)
        enable_sqlite_savepoints(async_engine)
        return async_engine

    return create_async_engine(
        url,
        echo=echo,
        future=True,
        pool_recycle=3600,  # 1시간마다 연결 재활용
        pool_size=10,
        max_overflow=20,
        **kwargs,
    )


# SQLModel 엔진을 생성합니다.
engine: AsyncEngine = build_engine(
    settings.DATABASE_URL.get_secret_value(),
    echo=settings.DEBUG_MODE,  # 디버그 모드일 때만 SQL 쿼리 출력
)

# 비동기 세션을 생성하는 '세션 공장'을 정의합니다.
AsyncSessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

metadata = SQLModel.metadata

# 매퍼 구성 완료 플래그 (중복 호출 방지)
_mappers_configured = False


# =============================================================================
# 데이터베이스 초기화 및 테이블 생성 함수
# =============================================================================
async def create_db_and_tables(target_engine: AsyncEngine = engine) -> None:
    """
    데이터베이스 테이블을 생성합니다.
    개발 환경에서만 사용해야 하며, 기존 테이블을 삭제하지는 않습니다.
    """
    global _mappers_configured

    if not _mappers_configured:
        configure_mappers()
        _mappers_configured = True
        logger.debug("SQLAlchemy mappers configured.")

    async with target_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("Database tables created (or already present).")


# =============================================================================
# 비동기 데이터베이스 세션 의존성 주입
# =============================================================================
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI 의존성 주입을 위한 비동기 데이터베이스 세션 제너레이터입니다.
    요청마다 새로운 세션을 생성하고, 요청 처리 후 세션을 자동으로 닫습니다.
    """
    async with AsyncSessionLocal() as session:
        yield session



@asynccontextmanager
async def atomic(db: AsyncSession, action: str) -> AsyncGenerator[AsyncSession, None]:
    """
    여러 쓰기 작업을 하나의 트랜잭션으로 묶습니다.

    블록이 정상 종료되면 커밋하고, 어떤 예외든 발생하면 전체를 롤백합니다.
    저장소 오류(SQLAlchemyError)는 PersistenceError로 변환하고,
    도메인 예외는 그대로 다시 발생시킵니다. 재시도는 하지 않습니다.
    """
    try:
        yield db
        await db.commit()
    except DomainError as e:
        await db.rollback()
        logger.warning("%s rolled back: %s (%s)", action, e.message, e.code)
        raise
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("%s rolled back by the store: %s", action, e)
        raise PersistenceError(f"The store rejected {action}.", detail=str(getattr(e, "orig", e))) from e
    except Exception:
        await db.rollback()
        raise
