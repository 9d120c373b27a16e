# app/domains/sem/models.py

"""
'sem' 도메인 (학기, 세미나, 수강 신청)의 데이터베이스 ORM 모델을 정의하는 모듈입니다.

- `Semester`: 세미나가 개설되는 학기.
- `Seminar`: 세미나 본문. 증빙자료용 Google Drive 폴더 ID를 선택적으로 보관합니다.
- `Enrollment`: 사용자-세미나 수강 신청 (사용자당 세미나 하나에 한 건).
"""

from typing import Optional, List
from datetime import datetime
from enum import Enum

from sqlmodel import Field, SQLModel, Column
from sqlalchemy import ForeignKey, Integer, JSON, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP

from app.domains.usr.models import utc_now


class SeminarStatus(str, Enum):
    DRAFT = "draft"
    RECRUITING = "recruiting"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class EnrollmentStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


# =============================================================================
# 1. semesters 테이블 모델
# =============================================================================
class Semester(SQLModel, table=True):
    __tablename__ = "semesters"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=50, sa_column_kwargs={"unique": True}, description="학기명 (예: 2024-1)")
    is_active: bool = Field(default=True, description="현재 학기 여부")


# =============================================================================
# 2. seminars 테이블 모델
# =============================================================================
class SeminarBase(SQLModel):
    id: Optional[int] = Field(default=None, primary_key=True, description="세미나 고유 ID")
    title: str = Field(max_length=200, description="세미나 제목 (증빙자료 폴더 이름의 기준)")
    description: Optional[str] = Field(default=None, description="세미나 소개")
    capacity: int = Field(default=0, description="정원 (0이면 제한 없음)")
    start_date: Optional[datetime] = Field(
        default=None, sa_column=Column(TIMESTAMP(timezone=True)), description="시작 일시"
    )
    end_date: Optional[datetime] = Field(
        default=None, sa_column=Column(TIMESTAMP(timezone=True)), description="종료 일시"
    )
    location: Optional[str] = Field(default=None, max_length=200)
    external_url: Optional[str] = Field(default=None, max_length=500)
    owner_id: int = Field(
        sa_column=Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False),
        description="개설자(강사) 사용자 ID (FK)"
    )
    semester_id: int = Field(
        sa_column=Column(Integer, ForeignKey("semesters.id", ondelete="RESTRICT"), nullable=False),
        description="학기 ID (FK)"
    )
    status: SeminarStatus = Field(default=SeminarStatus.DRAFT)
    application_start: Optional[datetime] = Field(default=None, sa_column=Column(TIMESTAMP(timezone=True)))
    application_end: Optional[datetime] = Field(default=None, sa_column=Column(TIMESTAMP(timezone=True)))
    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False, default=list))
    google_drive_folder_id: Optional[str] = Field(
        default=None, max_length=100, description="세미나 생성 시 만든 Drive 폴더 ID (증빙자료 업로드 대상)"
    )

    created_at: Optional[datetime] = Field(
        default_factory=utc_now,
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
    )
    updated_at: Optional[datetime] = Field(
        default_factory=utc_now,
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()),
    )


class Seminar(SeminarBase, table=True):
    __tablename__ = "seminars"


# =============================================================================
# 3. enrollments 테이블 모델
# =============================================================================
class Enrollment(SQLModel, table=True):
    __tablename__ = "enrollments"
    __table_args__ = (UniqueConstraint("user_id", "seminar_id", name="uq_enrollments_user_seminar"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(sa_column=Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False))
    seminar_id: int = Field(sa_column=Column(Integer, ForeignKey("seminars.id", ondelete="CASCADE"), nullable=False))
    status: EnrollmentStatus = Field(default=EnrollmentStatus.PENDING)
    applied_at: Optional[datetime] = Field(
        default_factory=utc_now, sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now())
    )
    approved_at: Optional[datetime] = Field(default=None, sa_column=Column(TIMESTAMP(timezone=True)))
    approved_by: Optional[int] = Field(
        default=None, sa_column=Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    )
    notes: Optional[str] = Field(default=None)
