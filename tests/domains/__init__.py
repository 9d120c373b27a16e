# tests/domains/__init__.py

"""
도메인별 API 통합 테스트 패키지입니다.

- `test_usr.py`: 로그인, 사용자 관리.
- `test_sem.py`: 학기, 세미나 (Drive 폴더 생성, 개설자 자동 등록), 수강 신청.
- `test_evi.py`: 증빙자료 폴더 조회/생성, 단일 업로드, 일괄 업로드.
"""

__title__ = "Seminar Hub Domain Tests"
__version__ = "0.1.0"
__all__ = []
