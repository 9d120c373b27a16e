# app/core/database.py

"""
애플리케이션의 데이터베이스 연결 및 세션 관리를 담당하는 모듈입니다.

- SQLModel의 비동기 엔진을 설정합니다.
- 비동기 세션 생성을 위한 유틸리티 함수를 제공합니다.
- 애플리케이션 시작 시 데이터베이스 테이블을 생성하는 함수를 포함합니다 (개발용).
"""

import logging
from typing import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine
from sqlalchemy.orm import sessionmaker

from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import settings

# =============================================================================
# 모든 도메인 모델 임포트
# =============================================================================
# 모든 SQLModel 클래스가 SQLModel.metadata에 등록되도록 명시적으로 임포트해야 합니다.
from app.domains.usr import models  # noqa
from app.domains.sem import models  # noqa

logger = logging.getLogger(__name__)


def _engine_options(url: str) -> dict:
    """연결 풀 옵션은 서버형 DB(PostgreSQL)에만 적용합니다."""
    if make_url(url).get_backend_name() == "sqlite":
        return {}
    return {
        "pool_recycle": 3600,  # 1시간마다 연결 재활용
        "pool_size": 10,
        "max_overflow": 20,
    }


def build_engine(url: str, **kwargs) -> AsyncEngine:
    options = _engine_options(url)
    options.update(kwargs)
    return create_async_engine(url, echo=settings.DEBUG_MODE, future=True, **options)


# SQLModel 엔진을 생성합니다.
engine: AsyncEngine = build_engine(settings.DATABASE_URL.get_secret_value())

# 비동기 세션을 생성하는 '세션 공장'을 정의합니다.
AsyncSessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

metadata = SQLModel.metadata


# =============================================================================
# 데이터베이스 초기화 및 테이블 생성 함수
# =============================================================================
async def create_db_and_tables(bind: AsyncEngine = engine) -> None:
    """
    데이터베이스 테이블을 생성합니다.
    이 함수는 개발 환경에서만 사용해야 하며, 기존 테이블을 삭제하지는 않습니다.
    """
    logger.info("Creating database tables...")
    async with bind.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("Database tables created (or already exist).")


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
async def get_async_session_context() -> AsyncGenerator[AsyncSession, None]:
    """
    ARQ Task 등 비동기 컨텍스트에서 사용할 수 있는
    독립적인 비동기 DB 세션을 제공하는 컨텍스트 관리자입니다.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
