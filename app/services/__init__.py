# app/services/__init__.py

"""
여러 도메인에서 공통으로 사용하는 외부 연동 서비스 패키지입니다.

주요 서브패키지:
- `drive/`: Google Drive 연동 (인증, 폴더 find-or-create, 파일 업로드).
"""

__title__ = "Seminar Hub Services"
__description__ = "External integrations shared by the Seminar Hub domains."
__version__ = "0.1.0"
__all__ = ["drive"]
