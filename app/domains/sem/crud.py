# app/domains/sem/crud.py

"""
'sem' 도메인의 CRUD 작업을 담당하는 모듈입니다.

세미나 생성 시 부가 작업(Drive 폴더 생성, 개설자 자동 승인 등록, 개설 알림)은
모두 best-effort로 처리합니다. 실패해도 경고 로그만 남기고 세미나 생성은 유지됩니다.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from fastapi import HTTPException, status
from redis.exceptions import RedisError
from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.crud_base import CRUDBase
from app.core.exceptions import SeminarHubError
from app.domains.usr import models as usr_models
from app.services.drive import DriveIntegration
from app.utils.naming import sanitize_title
from . import models as sem_models
from . import schemas as sem_schemas
from . import tasks as sem_tasks

logger = logging.getLogger(__name__)


# =============================================================================
# 1. semesters 테이블 CRUD
# =============================================================================
class CRUDSemester(CRUDBase[sem_models.Semester, sem_schemas.SemesterCreate, sem_schemas.SemesterCreate]):
    def __init__(self):
        super().__init__(model=sem_models.Semester)

    async def create(self, db: AsyncSession, *, obj_in: sem_schemas.SemesterCreate) -> sem_models.Semester:
        if await self.get_by_attribute(db, attribute="name", value=obj_in.name):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Semester with this name already exists")
        return await super().create(db, obj_in=obj_in)


semester = CRUDSemester()


# =============================================================================
# 2. enrollments 테이블 CRUD
# =============================================================================
class CRUDEnrollment(CRUDBase[sem_models.Enrollment, sem_schemas.EnrollmentCreate, sem_schemas.EnrollmentDecision]):
    def __init__(self):
        super().__init__(model=sem_models.Enrollment)

    async def get_for_user(self, db: AsyncSession, *, seminar_id: int, user_id: int) -> Optional[sem_models.Enrollment]:
        return await self.get_one_filtered(db, filters={"seminar_id": seminar_id, "user_id": user_id})

    async def count_approved(self, db: AsyncSession, *, seminar_id: int) -> int:
        statement = select(func.count()).select_from(sem_models.Enrollment).where(
            sem_models.Enrollment.seminar_id == seminar_id,
            sem_models.Enrollment.status == sem_models.EnrollmentStatus.APPROVED,
        )
        result = await db.execute(statement)
        return result.scalar_one()

    async def apply(
        self, db: AsyncSession, *, seminar: sem_models.Seminar, user: usr_models.User, obj_in: sem_schemas.EnrollmentCreate
    ) -> sem_models.Enrollment:
        """
        수강 신청을 등록합니다. 이미 신청했거나 정원이 찬 경우 400을 반환합니다.
        취소했던 신청은 대기 상태로 다시 엽니다.
        """
        existing = await self.get_for_user(db, seminar_id=seminar.id, user_id=user.id)
        if existing and existing.status != sem_models.EnrollmentStatus.CANCELLED:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Already applied to this seminar")

        if seminar.capacity and await self.count_approved(db, seminar_id=seminar.id) >= seminar.capacity:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Seminar is full")

        enrollment = existing or sem_models.Enrollment(seminar_id=seminar.id, user_id=user.id)
        enrollment.status = sem_models.EnrollmentStatus.PENDING
        enrollment.notes = obj_in.notes
        enrollment.applied_at = sem_models.utc_now()
        enrollment.approved_at = None
        enrollment.approved_by = None

        db.add(enrollment)
        await db.commit()
        await db.refresh(enrollment)
        return enrollment

    async def decide(
        self, db: AsyncSession, *, db_obj: sem_models.Enrollment, obj_in: sem_schemas.EnrollmentDecision, decided_by: usr_models.User
    ) -> sem_models.Enrollment:
        """개설자/관리자가 신청을 승인하거나 거절합니다."""
        allowed = (sem_models.EnrollmentStatus.APPROVED, sem_models.EnrollmentStatus.REJECTED)
        if obj_in.status not in allowed:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Status must be 'approved' or 'rejected'")

        db_obj.status = obj_in.status
        if obj_in.notes is not None:
            db_obj.notes = obj_in.notes
        if obj_in.status == sem_models.EnrollmentStatus.APPROVED:
            db_obj.approved_at = sem_models.utc_now()
            db_obj.approved_by = decided_by.id
        else:
            db_obj.approved_at = None
            db_obj.approved_by = None

        db.add(db_obj)
        await db.commit()
        await db.refresh(db_obj)
        return db_obj

    async def cancel(self, db: AsyncSession, *, db_obj: sem_models.Enrollment) -> sem_models.Enrollment:
        db_obj.status = sem_models.EnrollmentStatus.CANCELLED
        db.add(db_obj)
        await db.commit()
        await db.refresh(db_obj)
        return db_obj


enrollment = CRUDEnrollment()


# =============================================================================
# 3. seminars 테이블 CRUD
# =============================================================================
class CRUDSeminar(CRUDBase[sem_models.Seminar, sem_schemas.SeminarCreate, sem_schemas.SeminarUpdate]):
    def __init__(self):
        super().__init__(model=sem_models.Seminar)

    async def get_list(
        self,
        db: AsyncSession,
        *,
        status_filter: Optional[str] = None,
        search: Optional[str] = None,
        tags: Optional[Sequence[str]] = None,
    ) -> List[sem_models.Seminar]:
        """
        상태/검색어/태그로 세미나를 조회합니다 (최근 생성순).
        태그는 지정된 태그를 모두 포함하는 세미나만 남깁니다.
        """
        query = select(sem_models.Seminar)
        if status_filter and status_filter != "all":
            query = query.where(sem_models.Seminar.status == status_filter)
        if search:
            pattern = f"%{search}%"
            query = query.where(or_(
                col(sem_models.Seminar.title).ilike(pattern),
                col(sem_models.Seminar.description).ilike(pattern),
            ))
        query = query.order_by(col(sem_models.Seminar.created_at).desc(), col(sem_models.Seminar.id).desc())

        result = await db.execute(query)
        seminars = list(result.scalars().all())
        if tags:
            wanted = set(tags)
            seminars = [s for s in seminars if wanted.issubset(s.tags or [])]
        return seminars

    async def build_list_items(
        self, db: AsyncSession, seminars: List[sem_models.Seminar], *, viewer: Optional[usr_models.User] = None
    ) -> List[sem_schemas.SeminarListItem]:
        """목록 응답에 강사명, 승인 인원, 학기명, 조회자 본인의 신청 현황을 채워 넣습니다."""
        if not seminars:
            return []
        seminar_ids = [s.id for s in seminars]

        owners_result = await db.execute(
            select(usr_models.User).where(col(usr_models.User.id).in_({s.owner_id for s in seminars}))
        )
        owners = {u.id: u for u in owners_result.scalars().all()}

        semesters_result = await db.execute(
            select(sem_models.Semester).where(col(sem_models.Semester.id).in_({s.semester_id for s in seminars}))
        )
        semesters = {s.id: s for s in semesters_result.scalars().all()}

        enrollments_result = await db.execute(
            select(sem_models.Enrollment).where(col(sem_models.Enrollment.seminar_id).in_(seminar_ids))
        )
        approved: Dict[int, int] = {}
        mine: Dict[int, sem_models.Enrollment] = {}
        for e in enrollments_result.scalars().all():
            if e.status == sem_models.EnrollmentStatus.APPROVED:
                approved[e.seminar_id] = approved.get(e.seminar_id, 0) + 1
            if viewer is not None and e.user_id == viewer.id:
                mine[e.seminar_id] = e

        items = []
        for s in seminars:
            owner = owners.get(s.owner_id)
            sem = semesters.get(s.semester_id)
            own = mine.get(s.id)
            items.append(sem_schemas.SeminarListItem(
                id=s.id,
                title=s.title,
                description=s.description,
                instructor=owner.name if owner and owner.name else "Unknown",
                start_date=s.start_date,
                end_date=s.end_date,
                capacity=s.capacity or 0,
                enrolled=approved.get(s.id, 0),
                location=s.location,
                tags=s.tags or [],
                status=s.status,
                semester=sem.name if sem else "Unknown",
                application_start=s.application_start,
                application_end=s.application_end,
                current_user_enrollment=(
                    sem_schemas.MyEnrollment(status=own.status, applied_at=own.applied_at) if own else None
                ),
            ))
        return items

    async def create(
        self,
        db: AsyncSession,
        *,
        obj_in: sem_schemas.SeminarCreate,
        owner: usr_models.User,
        drive: Optional[DriveIntegration] = None,
        arq_redis_pool: Any = None,
    ) -> sem_models.Seminar:
        """
        세미나를 'draft' 상태로 생성합니다.
        학기 ID가 없거나 존재하지 않으면 400을 반환합니다.
        """
        if obj_in.semester_id is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Semester ID is required")
        semester_obj = await semester.get(db, obj_in.semester_id)
        if semester_obj is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid semester selected. Please contact admin."
            )

        db_obj = sem_models.Seminar(
            **obj_in.model_dump(exclude={"semester_id"}),
            semester_id=semester_obj.id,
            owner_id=owner.id,
            status=sem_models.SeminarStatus.DRAFT,
        )
        db.add(db_obj)
        await db.commit()
        await db.refresh(db_obj)
        logger.info("Seminar created: %d '%s' (owner %s, semester %s)", db_obj.id, db_obj.title, owner.login_id, semester_obj.name)

        await self._create_drive_folder(db, db_obj, drive)
        await self._enroll_creator(db, db_obj, owner)
        await self._notify_created(db_obj, owner, arq_redis_pool)
        return db_obj

    async def _create_drive_folder(
        self, db: AsyncSession, seminar: sem_models.Seminar, drive: Optional[DriveIntegration]
    ) -> None:
        if drive is None:
            return
        # 같은 제목의 세미나가 있어도 세미나마다 새 폴더를 만듭니다.
        folder_name = sanitize_title(seminar.title)
        try:
            folder = await drive.client.create_folder(drive.root_folder_id, folder_name)
        except SeminarHubError as e:
            logger.warning(
                "Failed to create Google Drive folder for seminar %d '%s' (seminar still created): %s",
                seminar.id, seminar.title, e.message,
            )
            return
        seminar.google_drive_folder_id = folder.id
        db.add(seminar)
        await db.commit()
        await db.refresh(seminar)
        logger.info("Google Drive folder %s created for seminar '%s'", folder.id, seminar.title)

    async def _enroll_creator(self, db: AsyncSession, seminar: sem_models.Seminar, owner: usr_models.User) -> None:
        seminar_id, owner_id = seminar.id, owner.id
        now = sem_models.utc_now()
        auto = sem_models.Enrollment(
            user_id=owner_id,
            seminar_id=seminar_id,
            status=sem_models.EnrollmentStatus.APPROVED,
            applied_at=now,
            approved_at=now,
            approved_by=owner_id,
            notes="Automatically enrolled as seminar creator",
        )
        db.add(auto)
        try:
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.warning("Failed to auto-enroll creator of seminar %d: %s", seminar_id, e)
            # 롤백으로 만료된 속성을 다시 읽습니다.
            await db.refresh(seminar)
            await db.refresh(owner)
            return
        logger.info("Creator %d automatically enrolled in seminar %d", owner_id, seminar_id)

    async def _notify_created(self, seminar: sem_models.Seminar, owner: usr_models.User, arq_redis_pool: Any) -> None:
        if arq_redis_pool is None:
            logger.warning("ARQ Redis pool not available, skipping seminar creation notification for %d", seminar.id)
            return
        owner_name = owner.name or (owner.email.split("@")[0] if owner.email else "익명")
        try:
            await arq_redis_pool.enqueue_job(
                sem_tasks.send_seminar_created_notification_task.__name__,
                seminar.id,
                seminar.title,
                owner_name,
                seminar.description or "",
            )
        except (RedisError, OSError) as e:
            logger.warning("Failed to enqueue seminar creation notification for %d: %s", seminar.id, e)


seminar = CRUDSeminar()
