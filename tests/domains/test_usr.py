# tests/domains/test_usr.py

"""
'usr' 도메인 (인증, 사용자 관리) API 엔드포인트에 대한 통합 테스트 모듈입니다.
"""

import pytest
from httpx import AsyncClient
from fastapi import status

from app.domains.usr import models as usr_models
from app.domains.usr import crud as usr_crud


# =============================================================================
# 1. 인증 (Authentication) 엔드포인트 테스트
# =============================================================================
@pytest.mark.asyncio
async def test_login_success(client: AsyncClient, test_user: usr_models.User):
    """
    올바른 로그인 ID와 비밀번호로 액세스 토큰을 발급받는지 테스트합니다.
    """
    response = await client.post("/api/v1/usr/auth/token", data={"username": "instructor", "password": "password123"})

    assert response.status_code == status.HTTP_200_OK
    token = response.json()
    assert token["token_type"] == "bearer"
    assert token["access_token"]


@pytest.mark.asyncio
async def test_login_wrong_password(client: AsyncClient, test_user: usr_models.User):
    response = await client.post("/api/v1/usr/auth/token", data={"username": "instructor", "password": "wrong-password"})

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["detail"] == "Incorrect login ID or password"


@pytest.mark.asyncio
async def test_login_inactive_user(client: AsyncClient, user_factory):
    await user_factory("sleeper", is_active=False)

    response = await client.post("/api/v1/usr/auth/token", data={"username": "sleeper", "password": "password123"})

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "Inactive user"


@pytest.mark.asyncio
async def test_read_me(authorized_client: AsyncClient, test_user: usr_models.User):
    response = await authorized_client.get("/api/v1/usr/auth/me")

    assert response.status_code == status.HTTP_200_OK
    me = response.json()
    assert me["login_id"] == test_user.login_id
    assert me["name"] == "Kim Instructor"
    assert "password_hash" not in me


@pytest.mark.asyncio
async def test_read_me_requires_token(client: AsyncClient):
    response = await client.get("/api/v1/usr/auth/me")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.asyncio
async def test_read_me_rejects_invalid_token(client: AsyncClient):
    response = await client.get("/api/v1/usr/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


# =============================================================================
# 2. 사용자 (User) 관리 엔드포인트 테스트
# =============================================================================
@pytest.mark.asyncio
async def test_create_user_admin(admin_client: AsyncClient, db_session):
    """
    관리자 권한으로 새 사용자를 생성하고, 비밀번호가 해싱되어 저장되는지 테스트합니다.
    """
    user_data = {"login_id": "newbie", "password": "newbiepass1", "email": "newbie@example.com", "name": "Newbie"}

    response = await admin_client.post("/api/v1/usr/users", json=user_data)

    assert response.status_code == status.HTTP_201_CREATED
    created = response.json()
    assert created["login_id"] == "newbie"
    assert created["role"] == usr_models.UserRole.GENERAL_USER

    db_user = await usr_crud.user.get_by_login_id(db_session, login_id="newbie")
    assert db_user is not None
    assert db_user.password_hash != "newbiepass1"


@pytest.mark.asyncio
async def test_create_user_duplicate_login_id(admin_client: AsyncClient, test_user: usr_models.User):
    response = await admin_client.post(
        "/api/v1/usr/users", json={"login_id": test_user.login_id, "password": "whatever123"}
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "Login ID already registered"


@pytest.mark.asyncio
async def test_create_user_duplicate_email(admin_client: AsyncClient, test_user: usr_models.User):
    response = await admin_client.post(
        "/api/v1/usr/users", json={"login_id": "someone", "password": "whatever123", "email": test_user.email}
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "Email already registered"


@pytest.mark.asyncio
async def test_create_user_short_password(admin_client: AsyncClient):
    response = await admin_client.post("/api/v1/usr/users", json={"login_id": "shorty", "password": "short"})
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


@pytest.mark.asyncio
async def test_create_user_unauthorized(authorized_client: AsyncClient, client: AsyncClient):
    """
    권한 없는 사용자의 사용자 생성 시도를 테스트합니다. (일반 사용자, 비인증 사용자)
    """
    user_data = {"login_id": "denied", "password": "deniedpass1"}

    response_user = await authorized_client.post("/api/v1/usr/users", json=user_data)
    assert response_user.status_code == status.HTTP_403_FORBIDDEN

    response_no_auth = await client.post("/api/v1/usr/users", json=user_data)
    assert response_no_auth.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.asyncio
async def test_read_users_admin_sees_everyone(
    admin_client: AsyncClient, test_user: usr_models.User, other_user: usr_models.User
):
    response = await admin_client.get("/api/v1/usr/users")

    assert response.status_code == status.HTTP_200_OK
    assert {u["login_id"] for u in response.json()} == {"admin", "instructor", "student"}


@pytest.mark.asyncio
async def test_read_users_general_user_sees_self(authorized_client: AsyncClient, other_user: usr_models.User):
    response = await authorized_client.get("/api/v1/usr/users")

    assert response.status_code == status.HTTP_200_OK
    assert [u["login_id"] for u in response.json()] == ["instructor"]


@pytest.mark.asyncio
async def test_read_user_permissions(
    authorized_client: AsyncClient,
    admin_client: AsyncClient,
    test_user: usr_models.User,
    other_user: usr_models.User,
):
    assert (await authorized_client.get(f"/api/v1/usr/users/{test_user.id}")).status_code == status.HTTP_200_OK
    assert (await authorized_client.get(f"/api/v1/usr/users/{other_user.id}")).status_code == status.HTTP_403_FORBIDDEN
    assert (await admin_client.get(f"/api/v1/usr/users/{other_user.id}")).status_code == status.HTTP_200_OK
    assert (await admin_client.get("/api/v1/usr/users/99999")).status_code == status.HTTP_404_NOT_FOUND
