# tests/conftest.py

import os
import tempfile
from typing import AsyncGenerator, Awaitable, Callable, Optional
from contextlib import asynccontextmanager

# 앱 설정(Settings)이 임포트 시점에 필수 값을 읽으므로, 앱 임포트 전에 테스트 기본값을 지정합니다.
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{os.path.join(tempfile.gettempdir(), 'seminarhub_app.db')}")
os.environ.setdefault("SECRET_KEY", "seminarhub-test-secret-key")

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import AsyncClient, ASGITransport, MockTransport  # noqa: E402

from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402
from sqlmodel.ext.asyncio.session import AsyncSession  # noqa: E402

from app.main import app as main_app  # noqa: E402
from app.core import dependencies as deps  # noqa: E402
from app.core.config import settings  # noqa: E402
from app.core.database import get_session  # noqa: E402
from app.core.security import get_password_hash  # noqa: E402
from app.services.drive import DriveClient, DriveIntegration  # noqa: E402
from app.services.drive.auth import StaticTokenProvider  # noqa: E402

# --- 모델 임포트 (SQLModel.metadata에 모든 테이블 등록) ---
from app.domains.usr import models as usr_models  # noqa: E402
from app.domains.sem import models as sem_models  # noqa: E402

from tests.fakes import FakeDrive  # noqa: E402

ROOT_FOLDER_ID = "root-folder"


# --- 데이터베이스 픽스처 ---
@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """
    테스트마다 독립된 데이터베이스를 준비합니다.
    기본은 임시 디렉토리의 SQLite 파일이며, TEST_DATABASE_URL로 다른 DB를 지정할 수 있습니다.
    """
    url = os.environ.get("TEST_DATABASE_URL") or f"sqlite+aiosqlite:///{tmp_path / 'seminarhub_test.db'}"
    engine = create_async_engine(url, echo=False, future=True, poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(test_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """테스트와 API 요청이 공유하는 비동기 데이터베이스 세션"""
    async with AsyncSession(test_engine, expire_on_commit=False) as session:
        yield session


# --- 사용자 픽스처 ---
@pytest.fixture
def user_factory(db_session: AsyncSession) -> Callable[..., Awaitable[usr_models.User]]:
    """
    테스트용 사용자를 생성하는 팩토리 함수를 반환합니다.
    """
    async def _create_user(
        login_id: str,
        password: str = "password123",
        role: usr_models.UserRole = usr_models.UserRole.GENERAL_USER,
        name: Optional[str] = None,
        email: Optional[str] = None,
        is_active: bool = True,
    ) -> usr_models.User:
        user = usr_models.User(
            login_id=login_id,
            password_hash=get_password_hash(password),
            email=email or f"{login_id}@example.com",
            name=name or login_id.capitalize(),
            role=role,
            is_active=is_active,
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _create_user


@pytest_asyncio.fixture(name="test_user")
async def test_user_fixture(user_factory) -> usr_models.User:
    """일반 사용자 (세미나 개설자 역할로 주로 사용)"""
    return await user_factory("instructor", name="Kim Instructor")


@pytest_asyncio.fixture(name="other_user")
async def other_user_fixture(user_factory) -> usr_models.User:
    return await user_factory("student", name="Lee Student")


@pytest_asyncio.fixture(name="test_admin_user")
async def test_admin_user_fixture(user_factory) -> usr_models.User:
    return await user_factory("admin", password="adminpass123", role=usr_models.UserRole.ADMIN, name="Admin")


@pytest_asyncio.fixture(name="test_semester")
async def test_semester_fixture(db_session: AsyncSession) -> sem_models.Semester:
    semester = sem_models.Semester(name="2024-1", is_active=True)
    db_session.add(semester)
    await db_session.commit()
    await db_session.refresh(semester)
    return semester


# --- 가짜 Google Drive 픽스처 ---
@pytest.fixture
def fake_drive() -> FakeDrive:
    return FakeDrive()


@pytest_asyncio.fixture(scope="function")
async def drive(fake_drive: FakeDrive) -> AsyncGenerator[DriveIntegration, None]:
    """가짜 Drive 서버에 연결된 DriveIntegration (설정값은 애플리케이션 설정을 그대로 사용)"""
    client = DriveClient(StaticTokenProvider("test-token"), http=AsyncClient(transport=MockTransport(fake_drive)))
    integration = DriveIntegration.from_client(client, ROOT_FOLDER_ID, settings)
    yield integration
    await integration.aclose()


# --- 비동기 테스트 클라이언트 픽스처 ---
@asynccontextmanager
async def _overridden_app(overrides: dict) -> AsyncGenerator[AsyncClient, None]:
    original_overrides = main_app.dependency_overrides.copy()
    try:
        main_app.dependency_overrides.update(overrides)
        async with AsyncClient(transport=ASGITransport(app=main_app), base_url="http://test") as async_client:
            yield async_client
    finally:
        # 클라이언트가 끝나면 오버라이드를 반드시 복원해야 합니다.
        main_app.dependency_overrides.clear()
        main_app.dependency_overrides.update(original_overrides)


@pytest.fixture
def integrations() -> dict:
    """요청 처리 시 주입할 외부 연동 객체. 기본값은 Drive/작업 큐 미설정 상태입니다."""
    return {"drive": None, "task_queue": None}


@pytest.fixture
def dependency_overrides(db_session: AsyncSession, integrations: dict) -> dict:
    """모든 클라이언트에 공통으로 적용할 의존성 오버라이드"""
    async def override_get_session():
        yield db_session

    return {
        get_session: override_get_session,
        deps.get_drive: lambda: integrations["drive"],
        deps.get_task_queue: lambda: integrations["task_queue"],
    }


@pytest.fixture
def use_drive(integrations: dict, drive: DriveIntegration) -> DriveIntegration:
    """요청 처리에 가짜 Drive 연동 객체를 주입합니다."""
    integrations["drive"] = drive
    return drive


@pytest_asyncio.fixture(scope="function")
async def client(dependency_overrides: dict) -> AsyncGenerator[AsyncClient, None]:
    """
    인증되지 않은 사용자를 위한 AsyncClient 인스턴스를 생성하고,
    테스트용 비동기 DB 세션을 주입합니다.
    """
    async with _overridden_app(dependency_overrides) as async_client:
        yield async_client


# --- 인증된 클라이언트 팩토리 ---
@pytest.fixture
def authorized_client_factory(
    dependency_overrides: dict,
) -> Callable[[usr_models.User, str], AsyncGenerator[AsyncClient, None]]:
    """
    특정 사용자로 로그인된 AsyncClient를 생성하는 팩토리 함수를 반환합니다.
    실제 로그인 엔드포인트로 토큰을 발급받아 Authorization 헤더에 설정합니다.
    """
    @asynccontextmanager
    async def _create_client_context(user: usr_models.User, password: str) -> AsyncGenerator[AsyncClient, None]:
        async with _overridden_app(dependency_overrides) as async_client:
            login_data = {"username": user.login_id, "password": password}
            res = await async_client.post("/api/v1/usr/auth/token", data=login_data)
            if res.status_code != 200:
                pytest.fail(f"Login failed for {user.login_id}: {res.text}")
            async_client.headers["Authorization"] = f"Bearer {res.json()['access_token']}"
            yield async_client

    return _create_client_context


@pytest_asyncio.fixture(scope="function")
async def authorized_client(authorized_client_factory, test_user) -> AsyncGenerator[AsyncClient, None]:
    """일반 사용자(test_user)로 로그인된 클라이언트"""
    async with authorized_client_factory(test_user, "password123") as client:
        yield client


@pytest_asyncio.fixture(scope="function")
async def admin_client(authorized_client_factory, test_admin_user) -> AsyncGenerator[AsyncClient, None]:
    """관리자로 로그인된 클라이언트"""
    async with authorized_client_factory(test_admin_user, "adminpass123") as client:
        yield client


@pytest_asyncio.fixture(scope="function")
async def other_client(authorized_client_factory, other_user) -> AsyncGenerator[AsyncClient, None]:
    """세미나와 관계없는 다른 일반 사용자로 로그인된 클라이언트"""
    async with authorized_client_factory(other_user, "password123") as client:
        yield client
