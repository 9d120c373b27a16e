# app/domains/usr/__init__.py

"""
FastAPI 애플리케이션의 'usr' 도메인 패키지입니다.

'usr' 도메인은 시스템 사용자와 인증/권한 부여에 관련된 핵심 데이터를 관리합니다.

주요 서브모듈:
- `models.py`: users 테이블에 매핑되는 SQLModel 정의와 `UserRole`.
- `schemas.py`: 요청 및 응답 유효성 검사용 Pydantic 모델 (인증 토큰 스키마 포함).
- `crud.py`: 비동기 CRUD 로직 및 사용자 인증 로직.
- `routers.py`: 로그인, 사용자 관리 API 엔드포인트.
"""

__title__ = "Seminar Hub User Domain"
__description__ = "Manages user accounts and handles authentication."
__version__ = "0.1.0"
__all__ = []
