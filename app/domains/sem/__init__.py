# app/domains/sem/__init__.py

"""
FastAPI 애플리케이션의 'sem' (세미나) 도메인 패키지입니다.

학기, 세미나, 수강 신청 데이터를 관리합니다.

주요 서브모듈:
- `models.py`: semesters, seminars, enrollments 테이블의 SQLModel 정의.
- `schemas.py`: 요청 및 응답 유효성 검사용 Pydantic 모델.
- `crud.py`: 비동기 CRUD 로직 (세미나 생성 시 Drive 폴더 생성, 개설자 자동 등록, 알림 포함).
- `routers.py`: 학기, 세미나, 수강 신청 API 엔드포인트.
- `tasks.py`: 세미나 개설 알림 ARQ 작업.
"""

__title__ = "Seminar Hub Seminar Domain"
__description__ = "Manages semesters, seminars and enrollments."
__version__ = "0.1.0"
__all__ = []
