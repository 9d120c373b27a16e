# app/domains/usr/routers.py

"""
'usr' 도메인 (사용자 관리 및 인증)과 관련된 API 엔드포인트를 정의하는 모듈입니다.
"""

from typing import List
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, status, Query
from fastapi.security import OAuth2PasswordRequestForm
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import settings
from app.core.database import get_session
from app.core import dependencies as deps

from . import crud as usr_crud
from . import models as usr_models
from . import schemas as usr_schemas


# 라우터 인스턴스 생성 (prefix는 main.py에서 관리)
router = APIRouter(
    tags=["User Management (사용자 관리)"],
    responses={404: {"description": "Not found"}},
)


# =============================================================================
# 1. 인증 (Authentication) 엔드포인트
# =============================================================================

@router.post("/auth/token", response_model=usr_schemas.Token, summary="Access Token 획득")
async def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_session),
):
    user = await usr_crud.user.authenticate(db, login_id=form_data.username, password=form_data.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect login ID or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user")

    access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    access_token = deps.create_access_token(data={"sub": user.login_id}, expires_delta=access_token_expires)
    return {"access_token": access_token, "token_type": "bearer"}


@router.get("/auth/me", response_model=usr_schemas.UserRead, summary="현재 사용자 정보 조회")
async def read_users_me(current_user: usr_models.User = Depends(deps.get_current_active_user)):
    return current_user


# =============================================================================
# 2. 사용자 (User) 관리 엔드포인트
# =============================================================================
@router.post("/users", response_model=usr_schemas.UserRead, status_code=status.HTTP_201_CREATED, summary="새 사용자 생성")
async def create_user(
    user: usr_schemas.UserCreate,
    db: AsyncSession = Depends(get_session),
    current_admin_user: usr_models.User = Depends(deps.get_current_admin_user),
):
    return await usr_crud.user.create(db, obj_in=user)


@router.get("/users", response_model=List[usr_schemas.UserRead], summary="모든 사용자 조회")
async def read_users(
    db: AsyncSession = Depends(get_session),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    """
    사용자 목록을 조회합니다.
    - 관리자는 모든 사용자를 조회할 수 있습니다.
    - 일반 사용자는 자신의 정보만 조회합니다.
    """
    if not current_user.is_admin:
        return [current_user]
    return await usr_crud.user.get_multi(db, skip=skip, limit=limit)


@router.get("/users/{user_id}", response_model=usr_schemas.UserRead, summary="특정 사용자 조회")
async def read_user(
    user_id: int,
    db: AsyncSession = Depends(get_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    user = await usr_crud.user.get(db, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    if not current_user.is_admin and user.id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions to view other user's information."
        )
    return user
