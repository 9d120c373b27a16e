# app/main.py

import logging
from typing import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
from arq import cron
from arq.connections import create_pool, RedisSettings
from redis.exceptions import RedisError

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from fastapi import FastAPI, Depends, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware

from app import API_PREFIX
from app.core.config import settings
from app.core.database import engine, get_session
from app.core.exceptions import SeminarHubError, seminar_hub_error_handler
from app.services.drive import build_drive_integration

# 태스크 모듈 임포트
from app.core import tasks as core_tasks
from app.domains.sem import tasks as sem_tasks
from app.domains.evi import tasks as evi_tasks

# 라우터 임포트
from app.domains.usr.routers import router as usr_router
from app.domains.sem.routers import router as sem_router
from app.domains.evi.routers import router as evi_router

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG_MODE else logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


# =============================================================================
# ARQ 워커 설정
# =============================================================================
async def worker_startup(ctx) -> None:
    """워커 프로세스 시작 시 Drive 연동 객체와 공용 HTTP 클라이언트를 한 번만 만듭니다."""
    ctx["drive"] = build_drive_integration(settings)
    ctx["http"] = httpx.AsyncClient(timeout=10.0)


async def worker_shutdown(ctx) -> None:
    if ctx.get("drive") is not None:
        await ctx["drive"].aclose()
    if ctx.get("http") is not None:
        await ctx["http"].aclose()


# ARQ 워커가 실행할 태스크 함수 목록
worker_functions = [
    core_tasks.health_check_database_task,
    sem_tasks.send_seminar_created_notification_task,
    evi_tasks.reconcile_duplicate_folders_task,
]


class ArqWorkerSettings:
    redis_settings = RedisSettings(host=settings.REDIS_HOST, port=settings.REDIS_PORT)
    functions = worker_functions
    on_startup = worker_startup
    on_shutdown = worker_shutdown
    cron_jobs = [
        # 매일 자정 DB 헬스 체크
        cron(core_tasks.health_check_database_task, hour={0}, minute={0}, timeout=300, keep_result=600),
        # 매일 새벽 3시 중복 증빙자료 폴더 정리
        cron(evi_tasks.reconcile_duplicate_folders_task, hour={3}, minute={0}, timeout=1800, keep_result=3600),
    ]


# -- 애플리케이션 수명 주기 이벤트 핸들러 --
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI 애플리케이션의 수명 주기 이벤트(데이터베이스, ARQ Redis, Google Drive)를 함께 처리합니다.
    """
    logger.info("Starting %s %s...", settings.APP_NAME, settings.APP_VERSION)

    # 1. Google Drive 연동 (설정이 없으면 None, 잘못된 키는 시작 실패)
    app.state.drive = build_drive_integration(settings)

    # 2. ARQ Redis 커넥션 풀 (연결 실패 시 알림 작업 없이 계속 실행)
    try:
        app.state.redis = await create_pool(ArqWorkerSettings.redis_settings)
        logger.info("ARQ Redis connection pool created.")
    except (RedisError, OSError) as e:
        app.state.redis = None
        logger.warning("ARQ Redis unavailable, background jobs disabled: %s", e)

    yield  # 애플리케이션 실행

    logger.info("Shutting down %s...", settings.APP_NAME)
    if app.state.redis is not None:
        await app.state.redis.close()
        logger.info("ARQ Redis connection pool closed.")
    if app.state.drive is not None:
        await app.state.drive.aclose()
        logger.info("Google Drive client closed.")
    await engine.dispose()
    logger.info("Database connection pool disposed.")


# -- FastAPI 애플리케이션 인스턴스 생성 --
app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_exception_handler(SeminarHubError, seminar_hub_error_handler)

# -- CORS 미들웨어 설정 --
# 프로덕션에서는 'allow_origins'를 실제 프론트엔드 도메인으로 제한해야 합니다.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -- 도메인 라우터 포함 --
app.include_router(usr_router, prefix=f"{API_PREFIX}/usr", tags=["User Management (사용자 관리)"])
app.include_router(sem_router, prefix=f"{API_PREFIX}/sem", tags=["Seminar Management (세미나 관리)"])
app.include_router(evi_router, prefix=f"{API_PREFIX}/sem", tags=["Seminar Evidence (세미나 증빙자료)"])


# -- 루트 엔드포인트 --
@app.get("/", summary="API Root", response_description="Welcome message and documentation link.")
async def read_root():
    """
    API의 시작점을 알리고 문서 링크를 제공합니다.
    """
    return {"message": f"Welcome to {settings.APP_NAME}. Visit /docs for interactive API documentation."}


# -- 헬스 체크 엔드포인트 --
@app.get("/health-check", summary="Health Check", response_description="Status of the application and database connection.")
async def health_check(session: AsyncSession = Depends(get_session)):
    """
    데이터베이스 연결을 테스트하여 서비스의 정상 작동 여부를 확인합니다.
    """
    try:
        result = await session.exec(select(1))
        if result.first():
            return {"status": "ok", "database_connection": "successful"}
    except SQLAlchemyError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Database connection error during health check: {e}"
        )
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Database health check failed: No result from test query"
    )
