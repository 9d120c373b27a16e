# app/domains/sem/routers.py

"""
'sem' 도메인 (학기, 세미나, 수강 신청)과 관련된 API 엔드포인트를 정의하는 모듈입니다.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.database import get_session
from app.core import dependencies as deps
from app.domains.usr import models as usr_models

from . import crud as sem_crud
from . import models as sem_models
from . import schemas as sem_schemas


router = APIRouter(
    tags=["Seminar Management (세미나 관리)"],
    responses={404: {"description": "Not found"}},
)


async def get_seminar_or_404(db: AsyncSession, seminar_id: int) -> sem_models.Seminar:
    seminar = await sem_crud.seminar.get(db, seminar_id)
    if not seminar:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Seminar not found")
    return seminar


def ensure_can_manage(seminar: sem_models.Seminar, user: usr_models.User) -> None:
    """세미나 개설자 또는 관리자만 통과합니다."""
    if seminar.owner_id != user.id and not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the seminar owner or an admin can manage this seminar."
        )


# =============================================================================
# 1. 학기 (Semester) 엔드포인트
# =============================================================================
@router.post("/semesters", response_model=sem_schemas.SemesterRead, status_code=status.HTTP_201_CREATED, summary="새 학기 생성")
async def create_semester(
    semester_in: sem_schemas.SemesterCreate,
    db: AsyncSession = Depends(get_session),
    current_admin_user: usr_models.User = Depends(deps.get_current_admin_user),
):
    return await sem_crud.semester.create(db, obj_in=semester_in)


@router.get("/semesters", response_model=List[sem_schemas.SemesterRead], summary="학기 목록 조회")
async def read_semesters(db: AsyncSession = Depends(get_session)):
    return await sem_crud.semester.get_multi(db)


# =============================================================================
# 2. 세미나 (Seminar) 엔드포인트
# =============================================================================
@router.get("/seminars", response_model=List[sem_schemas.SeminarListItem], summary="세미나 목록 조회")
async def read_seminars(
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = Query(None),
    tags: Optional[str] = Query(None, description="쉼표로 구분된 태그 (모두 포함하는 세미나만)"),
    db: AsyncSession = Depends(get_session),
    current_user: Optional[usr_models.User] = Depends(deps.get_optional_current_user),
):
    """
    세미나 목록을 조회합니다. 로그인하지 않아도 조회할 수 있으며,
    로그인한 경우 각 세미나에 대한 본인의 신청 현황이 포함됩니다.
    """
    tag_list = [t.strip() for t in tags.split(",") if t.strip()] if tags else None
    seminars = await sem_crud.seminar.get_list(db, status_filter=status_filter, search=search, tags=tag_list)
    return await sem_crud.seminar.build_list_items(db, seminars, viewer=current_user)


@router.post("/seminars", response_model=sem_schemas.SeminarRead, status_code=status.HTTP_201_CREATED, summary="새 세미나 생성")
async def create_seminar(
    seminar_in: sem_schemas.SeminarCreate,
    db: AsyncSession = Depends(get_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
    drive=Depends(deps.get_drive),
    arq_redis_pool=Depends(deps.get_task_queue),
):
    """
    세미나를 생성합니다 ('draft' 상태).
    Drive 폴더 생성, 개설자 자동 등록, 개설 알림은 실패해도 세미나 생성을 막지 않습니다.
    """
    return await sem_crud.seminar.create(
        db, obj_in=seminar_in, owner=current_user, drive=drive, arq_redis_pool=arq_redis_pool
    )


@router.get("/seminars/{seminar_id}", response_model=sem_schemas.SeminarRead, summary="특정 세미나 조회")
async def read_seminar(seminar_id: int, db: AsyncSession = Depends(get_session)):
    return await get_seminar_or_404(db, seminar_id)


@router.patch("/seminars/{seminar_id}", response_model=sem_schemas.SeminarRead, summary="세미나 수정")
async def update_seminar(
    seminar_id: int,
    seminar_in: sem_schemas.SeminarUpdate,
    db: AsyncSession = Depends(get_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    seminar = await get_seminar_or_404(db, seminar_id)
    ensure_can_manage(seminar, current_user)
    return await sem_crud.seminar.update(db, db_obj=seminar, obj_in=seminar_in)


@router.delete("/seminars/{seminar_id}", status_code=status.HTTP_204_NO_CONTENT, summary="세미나 삭제")
async def delete_seminar(
    seminar_id: int,
    db: AsyncSession = Depends(get_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    """
    세미나를 삭제합니다. Drive의 증빙자료 폴더는 삭제하지 않습니다.
    """
    seminar = await get_seminar_or_404(db, seminar_id)
    ensure_can_manage(seminar, current_user)
    for e in await sem_crud.enrollment.get_multi(db, seminar_id=seminar_id, limit=10000):
        await db.delete(e)
    await sem_crud.seminar.delete(db, id=seminar_id)
    return None


# =============================================================================
# 3. 수강 신청 (Enrollment) 엔드포인트
# =============================================================================
@router.post(
    "/seminars/{seminar_id}/enrollments",
    response_model=sem_schemas.EnrollmentRead,
    status_code=status.HTTP_201_CREATED,
    summary="수강 신청",
)
async def apply_enrollment(
    seminar_id: int,
    enrollment_in: sem_schemas.EnrollmentCreate,
    db: AsyncSession = Depends(get_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    seminar = await get_seminar_or_404(db, seminar_id)
    return await sem_crud.enrollment.apply(db, seminar=seminar, user=current_user, obj_in=enrollment_in)


@router.get("/seminars/{seminar_id}/enrollments", response_model=List[sem_schemas.EnrollmentRead], summary="수강 신청 목록")
async def read_enrollments(
    seminar_id: int,
    db: AsyncSession = Depends(get_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    seminar = await get_seminar_or_404(db, seminar_id)
    ensure_can_manage(seminar, current_user)
    return await sem_crud.enrollment.get_multi(db, seminar_id=seminar_id, limit=10000)


@router.delete("/seminars/{seminar_id}/enrollments/me", response_model=sem_schemas.EnrollmentRead, summary="본인 수강 신청 취소")
async def cancel_my_enrollment(
    seminar_id: int,
    db: AsyncSession = Depends(get_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    await get_seminar_or_404(db, seminar_id)
    enrollment = await sem_crud.enrollment.get_for_user(db, seminar_id=seminar_id, user_id=current_user.id)
    if not enrollment or enrollment.status == sem_models.EnrollmentStatus.CANCELLED:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Enrollment not found")
    return await sem_crud.enrollment.cancel(db, db_obj=enrollment)


@router.patch(
    "/seminars/{seminar_id}/enrollments/{enrollment_id}",
    response_model=sem_schemas.EnrollmentRead,
    summary="수강 신청 승인/거절",
)
async def decide_enrollment(
    seminar_id: int,
    enrollment_id: int,
    decision: sem_schemas.EnrollmentDecision,
    db: AsyncSession = Depends(get_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    seminar = await get_seminar_or_404(db, seminar_id)
    ensure_can_manage(seminar, current_user)
    enrollment = await sem_crud.enrollment.get(db, enrollment_id)
    if not enrollment or enrollment.seminar_id != seminar_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Enrollment not found")
    return await sem_crud.enrollment.decide(db, db_obj=enrollment, obj_in=decision, decided_by=current_user)
