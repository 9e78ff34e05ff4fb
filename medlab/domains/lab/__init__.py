# medlab/domains/lab/__init__.py

"""
'lab' 도메인 (검사 주문 워크플로) 패키지입니다.

환자의 검사 주문(Order)은 하나 이상의 검사(OrderExam)를 만들고,
각 검사는 검체 채취 → 분석 → 결과 입력 → 결과 확인(validation) 단계를 거칩니다.
입력된 결과(ExamResult)는 모두 참고 범위 기준으로 이상 여부가 판정됩니다.

주요 서브모듈:
- `models.py`: 주문, 검사, 결과, 식별 번호 시퀀스 테이블 SQLModel 정의.
- `schemas.py`: 요청 및 응답 Pydantic 모델.
- `crud.py`: 비동기 CRUD 로직 (최종 가격 재계산, 결과 판정 적용 포함).
- `identifiers.py`: 날짜 범위 식별 번호 생성기 (ORD-YYYYMMDD-NNNNNN).
- `classifier.py`: 참고 범위 기반 이상값 판정기.
- `workflow.py`: 검사 상태 전이 규칙.
- `routers.py`: FastAPI API 엔드포인트.
"""

__title__ = "MedLab Laboratory Workflow Domain"
__description__ = "Orders, exams and results moving through the laboratory workflow."
__version__ = "0.1.0"
__all__ = []
