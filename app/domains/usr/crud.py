# app/domains/usr/crud.py

"""
'usr' 도메인의 CRUD 작업을 담당하는 모듈입니다.
"""

from typing import Optional
from sqlmodel.ext.asyncio.session import AsyncSession
from fastapi import HTTPException, status

from app.core.crud_base import CRUDBase
from app.core.security import get_password_hash, verify_password
from . import models as usr_models
from . import schemas as usr_schemas


class CRUDUser(CRUDBase[usr_models.User, usr_schemas.UserCreate, usr_schemas.UserCreate]):
    def __init__(self):
        super().__init__(model=usr_models.User)

    async def get_by_login_id(self, db: AsyncSession, *, login_id: str) -> Optional[usr_models.User]:
        return await self.get_by_attribute(db, attribute="login_id", value=login_id)

    async def get_by_email(self, db: AsyncSession, *, email: str) -> Optional[usr_models.User]:
        return await self.get_by_attribute(db, attribute="email", value=email)

    async def create(self, db: AsyncSession, *, obj_in: usr_schemas.UserCreate) -> usr_models.User:
        """새로운 사용자를 생성하며 비밀번호를 해싱하고 중복을 검사합니다."""
        if await self.get_by_login_id(db, login_id=obj_in.login_id):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Login ID already registered")
        if obj_in.email and await self.get_by_email(db, email=obj_in.email):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")

        user_data = obj_in.model_dump(exclude={"password"})
        db_user = usr_models.User(**user_data, password_hash=get_password_hash(obj_in.password))

        db.add(db_user)
        await db.commit()
        await db.refresh(db_user)
        return db_user

    async def authenticate(self, db: AsyncSession, *, login_id: str, password: str) -> Optional[usr_models.User]:
        """로그인 ID와 비밀번호를 사용하여 사용자를 인증합니다."""
        user = await self.get_by_login_id(db, login_id=login_id)
        if not user:
            return None
        if not verify_password(password, user.password_hash):
            return None
        return user


user = CRUDUser()
