# app/__init__.py

"""
Seminar Hub FastAPI 애플리케이션의 메인 패키지입니다.

이 패키지는 세미나 관리 백엔드의 핵심 로직과 도메인별 모듈을 포함합니다.
FastAPI 애플리케이션의 진입점 (main.py)과
공통 설정, 데이터베이스 연결, 보안 관련 유틸리티를 담는 core 서브패키지,
Google Drive 연동을 담당하는 services 서브패키지,
그리고 각 비즈니스 도메인(usr, sem, evi)을 대표하는 domains 서브패키지로 구성됩니다.
"""

APP_NAME = "Seminar Hub API"
APP_VERSION = "0.1.0"
API_PREFIX = "/api/v1"  # API 라우트의 공통 접두사 (main.py에서 적용)

__version__ = APP_VERSION
__title__ = APP_NAME
__description__ = "Seminar management backend with Google Drive evidence uploads."
__license__ = "MIT"
__all__ = []
