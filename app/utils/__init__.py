# app/utils/__init__.py

"""
FastAPI 애플리케이션의 'utils' 패키지입니다.

특정 비즈니스 도메인에 속하지 않는 범용 유틸리티 함수들을 포함합니다.

주요 서브모듈:
- `naming.py`: 증빙자료 폴더/파일 이름 생성 (날짜 포맷, 제목 정리).
"""

# flake8: noqa
from . import naming

__title__ = "Seminar Hub Utilities"
__description__ = "Provides common, reusable utility functions for the application."
__version__ = "0.1.0"
__all__ = ["naming"]
