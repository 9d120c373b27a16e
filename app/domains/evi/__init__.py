# app/domains/evi/__init__.py

"""
FastAPI 애플리케이션의 'evi' (세미나 증빙자료) 도메인 패키지입니다.

세미나 활동 증빙 파일을 Google Drive의 날짜별 세미나 폴더에 올리고 조회합니다.
자체 테이블은 없으며, 폴더와 파일의 존재 여부는 Drive가 유일한 기준입니다.

주요 서브모듈:
- `schemas.py`: 업로드 후보/결과, 폴더 조회 응답 모델.
- `services.py`: 파일 검증, 일괄 업로드 조정, 증빙자료 폴더 조회/업로드.
- `routers.py`: `/sem/seminars/{id}/evidence`, `/sem/seminars/{id}/proof-materials` 엔드포인트.
- `tasks.py`: 중복 폴더 정리 ARQ 작업.
"""

__title__ = "Seminar Hub Evidence Domain"
__description__ = "Uploads seminar evidence files into dated Google Drive folders."
__version__ = "0.1.0"
__all__ = []
