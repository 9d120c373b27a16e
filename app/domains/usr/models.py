# app/domains/usr/models.py

"""
'usr' 도메인의 데이터베이스 ORM 모델을 정의하는 모듈입니다.

세미나 개설자(강사), 수강 신청자, 관리자 모두 하나의 `users` 테이블에 저장되며
역할(role)로 권한을 구분합니다.
"""

from typing import Optional
from datetime import datetime, timezone
from enum import IntEnum

from sqlmodel import Field, SQLModel, Column
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP


class UserRole(IntEnum):
    """
    사용자 역할을 정의하는 정수형 Enum 클래스입니다.
    DB에는 정수 값으로 저장되며, 값이 작을수록 권한이 높습니다.
    """
    ADMIN = 10              # 시스템 관리자
    GENERAL_USER = 100      # 일반 사용자 (세미나 개설/신청)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# users 테이블 모델
# =============================================================================
class UserBase(SQLModel):
    """
    users 테이블의 기본 속성을 정의하는 SQLModel Base 클래스입니다.
    """
    id: Optional[int] = Field(default=None, primary_key=True, description="사용자 고유 ID")
    login_id: str = Field(max_length=50, sa_column_kwargs={"unique": True}, description="로그인 ID")
    password_hash: str = Field(max_length=255, description="해싱된 비밀번호")
    email: Optional[str] = Field(default=None, max_length=100, sa_column_kwargs={"unique": True}, description="사용자 이메일")
    name: Optional[str] = Field(default=None, max_length=100, description="사용자 이름 (세미나 목록의 강사명)")
    role: UserRole = Field(default=UserRole.GENERAL_USER, description="사용자 역할 (권한)")
    is_active: bool = Field(default=True, description="계정 활성 여부")

    created_at: Optional[datetime] = Field(
        default_factory=utc_now,
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
        description="레코드 생성 일시"
    )
    updated_at: Optional[datetime] = Field(
        default_factory=utc_now,
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()),
        description="레코드 마지막 업데이트 일시"
    )


class User(UserBase, table=True):
    __tablename__ = "users"

    @property
    def is_admin(self) -> bool:
        return self.role <= UserRole.ADMIN

    @property
    def display_name(self) -> str:
        return self.name or self.login_id
