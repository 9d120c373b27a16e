# app/domains/sem/schemas.py

"""
'sem' 도메인 (학기, 세미나, 수강 신청)의 API 데이터 전송 객체(DTO)를 정의하는 모듈입니다.
"""

from typing import Optional, List
from datetime import datetime
from sqlmodel import SQLModel, Field

from . import models as sem_models


# =============================================================================
# 1. 학기 (Semester) 스키마
# =============================================================================
class SemesterCreate(SQLModel):
    name: str = Field(..., max_length=50)
    is_active: bool = True


class SemesterRead(SemesterCreate):
    id: int


# =============================================================================
# 2. 세미나 (Seminar) 스키마
# =============================================================================
class SeminarCreate(SQLModel):
    """
    세미나 생성 요청 스키마.
    `semester_id`는 필수지만, 누락 시 422가 아닌 400으로 응답하기 위해 Optional로 받습니다.
    """
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    capacity: int = Field(0, ge=0)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    location: Optional[str] = None
    external_url: Optional[str] = None
    semester_id: Optional[int] = None
    application_start: Optional[datetime] = None
    application_end: Optional[datetime] = None
    tags: List[str] = Field(default_factory=list)


class SeminarUpdate(SQLModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    capacity: Optional[int] = Field(None, ge=0)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    location: Optional[str] = None
    external_url: Optional[str] = None
    status: Optional[sem_models.SeminarStatus] = None
    application_start: Optional[datetime] = None
    application_end: Optional[datetime] = None
    tags: Optional[List[str]] = None


class SeminarRead(SQLModel):
    id: int
    title: str
    description: Optional[str] = None
    capacity: int
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    location: Optional[str] = None
    external_url: Optional[str] = None
    owner_id: int
    semester_id: int
    status: sem_models.SeminarStatus
    application_start: Optional[datetime] = None
    application_end: Optional[datetime] = None
    tags: List[str] = []
    google_drive_folder_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MyEnrollment(SQLModel):
    status: sem_models.EnrollmentStatus
    applied_at: Optional[datetime] = None


class SeminarListItem(SQLModel):
    """세미나 목록 조회 응답 항목 (강사명, 승인 인원, 학기명, 본인 신청 현황 포함)"""
    id: int
    title: str
    description: Optional[str] = None
    instructor: str
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    capacity: int
    enrolled: int
    location: Optional[str] = None
    tags: List[str] = []
    status: sem_models.SeminarStatus
    sessions: int = 0
    semester: str
    application_start: Optional[datetime] = None
    application_end: Optional[datetime] = None
    current_user_enrollment: Optional[MyEnrollment] = None


# =============================================================================
# 3. 수강 신청 (Enrollment) 스키마
# =============================================================================
class EnrollmentCreate(SQLModel):
    notes: Optional[str] = None


class EnrollmentDecision(SQLModel):
    """개설자/관리자의 승인 또는 거절"""
    status: sem_models.EnrollmentStatus
    notes: Optional[str] = None


class EnrollmentRead(SQLModel):
    id: int
    user_id: int
    seminar_id: int
    status: sem_models.EnrollmentStatus
    applied_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    approved_by: Optional[int] = None
    notes: Optional[str] = None
