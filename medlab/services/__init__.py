# medlab/services/__init__.py

"""
MedLab 워크플로 엔진의 서비스 계층 패키지입니다.

각 도메인의 `crud.py`가 단일 테이블 단위의 읽기/쓰기를 맡는다면,
서비스는 여러 도메인(pat, cat, lab)의 CRUD를 하나의 트랜잭션으로 묶고
업무 규칙(상태 전이, 가격 규칙, 결과 판정)을 적용합니다.

- `order_service.py`: 주문 생성(번호 발급 + 검사 생성), 목록 조회, 취소.
- `exam_service.py`: 검체 채취, 분석 시작, 반려, 결과 입력/확인/정정.

모든 변경 작업은 행위자 ID(actor_id)를 명시적인 인자로 받습니다.
"""

__title__ = "MedLab Services"
__description__ = "Transactional workflow services spanning the patient, catalog and lab domains."
__version__ = "0.1.0"
__all__ = []
