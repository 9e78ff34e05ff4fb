# tests/__init__.py

"""
MedLab 워크플로 API의 테스트 스위트 패키지입니다.

- `conftest.py`: SQLite(aiosqlite) 테스트 DB, 세션, HTTP 클라이언트, 카탈로그/환자/주문 픽스처.
- `domains/`: 판정기, 상태 전이, 식별 번호, 서비스, 라우터별 테스트 모듈.
"""

__title__ = "MedLab API Tests"
__description__ = "Test suite for the MedLab workflow FastAPI application."
__version__ = "0.1.0"
__all__ = []
