# medlab/core/__init__.py

"""
FastAPI 애플리케이션의 핵심 구성 요소 패키지입니다.

- `config.py`: 애플리케이션 설정 및 환경 변수 관리 (Pydantic Settings).
- `database.py`: 데이터베이스 연결, 세션 관리 (SQLModel 및 AsyncSQLAlchemy).
- `crud_base.py`: 공통 비동기 CRUD 기본 클래스.
- `exceptions.py`: 도메인 예외 체계 (ValidationError, NotFoundError 등).
- `security.py`: JWT 디코딩 및 행위자(actor) 식별.
- `dependencies.py`: FastAPI 의존성 주입에서 사용할 공통 의존성 함수들.
"""

__title__ = "MedLab Core"
__description__ = "Core components for the MedLab FastAPI application."
__version__ = "0.1.0"
__all__ = []
