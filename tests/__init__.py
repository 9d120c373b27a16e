# tests/__init__.py

"""
Seminar Hub FastAPI 애플리케이션의 테스트 스위트 패키지입니다.

- `conftest.py`: 테스트용 SQLite 데이터베이스, 사용자, 로그인된 클라이언트, 가짜 Drive 픽스처.
- `fakes.py`: `httpx.MockTransport`로 동작하는 인메모리 Google Drive 서버.
- `services/`: Drive 연동 (이름 규칙, 폴더 해석, 업로드, 중복 정리) 단위 테스트.
- `domains/`: 도메인별 (usr, sem, evi) API 통합 테스트.
"""

__title__ = "Seminar Hub API Tests"
__description__ = "Test suite for the Seminar Hub FastAPI application."
__version__ = "0.1.0"
__all__ = []
