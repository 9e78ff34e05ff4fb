# medlab/domains/pat/__init__.py

"""
'pat' 도메인 (환자) 패키지입니다.

검사 주문이 참조하는 환자 정보를 관리합니다. 워크플로 엔진은 주문 생성 시
환자 참조의 유효성만 확인하며 환자 정보를 변경하지 않습니다.

주요 서브모듈:
- `models.py`: 환자 테이블 SQLModel 정의.
- `schemas.py`: 요청 및 응답 Pydantic 모델.
- `crud.py`: 비동기 CRUD 로직.
- `routers.py`: FastAPI API 엔드포인트.
"""

__title__ = "MedLab Patient Domain"
__description__ = "Manages patients referenced by laboratory orders."
__version__ = "0.1.0"
__all__ = []
